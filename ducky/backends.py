"""
Output backends: where keystrokes, mouse events and consumer keys end up.

- HidBackend:       interface plus the shared "type a character" logic
- PynputBackend:    drives the local machine through pynput (pyautogui as
                    mouse fallback), the same libraries the clicker uses
- RecordingBackend: records everything; used for dry runs and tests

Notes
-----
- Keycodes are HID usages from ``keymap``. A keycode carrying
  ``keymap.SHIFT_FLAG`` is sent as Shift + key.
- Lock LED state is read back from the OS where possible. Without it,
  LED_WAIT can only finish when the script is stopped.
"""

from __future__ import annotations

import sys
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from . import keymap
from .errors import BackendError


class HidBackend:
    """Interface consumed by the interpreter."""

    # Keyboard -----------------------------------------------------------------
    def press(self, keycode: int) -> None:
        if keycode & keymap.SHIFT_FLAG:
            self._press(keymap.KEY_L_SHIFT)
        self._press(keycode & keymap.KEYCODE_MASK)

    def release(self, keycode: int) -> None:
        self._release(keycode & keymap.KEYCODE_MASK)
        if keycode & keymap.SHIFT_FLAG:
            self._release(keymap.KEY_L_SHIFT)

    def release_all(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def type_char(self, ch: str) -> None:
        """Press and release the key for a printable character, with Shift if needed."""
        mapped = keymap.char_to_keycode(ch)
        if mapped is None:
            return
        keycode, needs_shift = mapped
        if needs_shift:
            self._press(keymap.KEY_L_SHIFT)
        self._press(keycode)
        self._release(keycode)
        if needs_shift:
            self._release(keymap.KEY_L_SHIFT)

    def _press(self, keycode: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def _release(self, keycode: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    # Mouse --------------------------------------------------------------------
    def mouse_move(self, dx: int, dy: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def mouse_press(self, button: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def mouse_release(self, button: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def mouse_scroll(self, amount: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    # Consumer control ---------------------------------------------------------
    def consumer_press(self, usage: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def consumer_release(self, usage: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def consumer_release_all(self) -> None:
        pass

    # Host feedback --------------------------------------------------------------
    def led_state(self) -> int:
        """Bitmask of keymap.LED_NUM / LED_CAPS / LED_SCROLL."""
        return 0


class RecordingBackend(HidBackend):
    """Backend that records events instead of emitting them.

    ``events`` holds tuples such as ``("press", 0x04)``, ``("char", "a")`` or
    ``("mouse_move", 5, -3)``. When ``toggle_caps_on_press`` is set, pressing
    Caps Lock flips the Caps LED bit the way a host would.
    """

    def __init__(self, led_state: int = 0, toggle_caps_on_press: bool = False):
        self.events: List[Tuple[Any, ...]] = []
        self.held: Set[int] = set()
        self.consumer_held: Set[int] = set()
        self.toggle_caps_on_press = toggle_caps_on_press
        self._led_state = led_state
        self._lock = threading.Lock()

    def _record(self, *event: Any) -> None:
        with self._lock:
            self.events.append(event)

    def _press(self, keycode: int) -> None:
        self.held.add(keycode)
        self._record("press", keycode)
        if self.toggle_caps_on_press and keycode == keymap.KEY_CAPS_LOCK:
            self.set_led_state(self.led_state() ^ keymap.LED_CAPS)

    def _release(self, keycode: int) -> None:
        self.held.discard(keycode)
        self._record("release", keycode)

    def type_char(self, ch: str) -> None:
        if keymap.char_to_keycode(ch) is None:
            return
        self._record("char", ch)
        super().type_char(ch)

    def release_all(self) -> None:
        self.held.clear()
        self._record("release_all")

    def mouse_move(self, dx: int, dy: int) -> None:
        self._record("mouse_move", dx, dy)

    def mouse_press(self, button: int) -> None:
        self._record("mouse_press", button)

    def mouse_release(self, button: int) -> None:
        self._record("mouse_release", button)

    def mouse_scroll(self, amount: int) -> None:
        self._record("mouse_scroll", amount)

    def consumer_press(self, usage: int) -> None:
        self.consumer_held.add(usage)
        self._record("consumer_press", usage)

    def consumer_release(self, usage: int) -> None:
        self.consumer_held.discard(usage)
        self._record("consumer_release", usage)

    def consumer_release_all(self) -> None:
        self.consumer_held.clear()
        self._record("consumer_release_all")

    def led_state(self) -> int:
        with self._lock:
            return self._led_state

    def set_led_state(self, value: int) -> None:
        with self._lock:
            self._led_state = value

    # Inspection helpers -----------------------------------------------------
    def typed_text(self) -> str:
        """All characters sent through type_char, in order."""
        return "".join(e[1] for e in self.events if e[0] == "char")

    def pressed_keys(self) -> List[int]:
        return [e[1] for e in self.events if e[0] == "press"]

    def of_kind(self, kind: str) -> List[Tuple[Any, ...]]:
        return [e for e in self.events if e[0] == kind]


def _get_pynput() -> Tuple[Optional[Any], Optional[Any]]:
    """Import pynput lazily and return (KeyboardControllerClass, KeyModule)."""
    try:
        from pynput.keyboard import Controller as KeyboardController, Key as KeyModule  # type: ignore
        return KeyboardController, KeyModule
    except Exception:
        return None, None


def _get_pynput_mouse() -> Tuple[Optional[Any], Optional[Any]]:
    """Import pynput.mouse lazily and return (MouseControllerClass, ButtonModule)."""
    try:
        from pynput.mouse import Controller as MouseController, Button as MouseButton  # type: ignore
        return MouseController, MouseButton
    except Exception:
        return None, None


# HID usage -> pynput Key attribute name
_PYNPUT_KEY_NAMES: Dict[int, str] = {
    keymap.KEY_ENTER: "enter",
    keymap.KEY_ESCAPE: "esc",
    keymap.KEY_BACKSPACE: "backspace",
    keymap.KEY_TAB: "tab",
    keymap.KEY_SPACE: "space",
    keymap.KEY_CAPS_LOCK: "caps_lock",
    keymap.KEY_PRINT_SCREEN: "print_screen",
    keymap.KEY_SCROLL_LOCK: "scroll_lock",
    keymap.KEY_PAUSE: "pause",
    keymap.KEY_INSERT: "insert",
    keymap.KEY_HOME: "home",
    keymap.KEY_PAGE_UP: "page_up",
    keymap.KEY_DELETE: "delete",
    keymap.KEY_END: "end",
    keymap.KEY_PAGE_DOWN: "page_down",
    keymap.KEY_RIGHT: "right",
    keymap.KEY_LEFT: "left",
    keymap.KEY_DOWN: "down",
    keymap.KEY_UP: "up",
    keymap.KEY_NUM_LOCK: "num_lock",
    keymap.KEY_APPLICATION: "menu",
    keymap.KEY_L_CTRL: "ctrl_l",
    keymap.KEY_L_SHIFT: "shift_l",
    keymap.KEY_L_ALT: "alt_l",
    keymap.KEY_L_GUI: "cmd",
}
_PYNPUT_KEY_NAMES.update({keymap.KEY_F1 + n: f"f{n + 1}" for n in range(12)})

# Consumer usage -> pynput media Key attribute name
_PYNPUT_MEDIA_NAMES: Dict[int, str] = {
    0xCD: "media_play_pause",
    0xB0: "media_play_pause",
    0xB1: "media_play_pause",
    0xB5: "media_next",
    0xB6: "media_previous",
    0xE9: "media_volume_up",
    0xEA: "media_volume_down",
    0xE2: "media_volume_mute",
}

# HID usage -> unshifted character, for keys that type a character
_HID_TO_CHAR: Dict[int, str] = {
    code: ch for ch, code in keymap.ASCII_TO_HID.items() if not code & keymap.SHIFT_FLAG and ch != " "
}

_LINUX_LED_SUFFIXES = {
    keymap.LED_NUM: "numlock",
    keymap.LED_CAPS: "capslock",
    keymap.LED_SCROLL: "scrolllock",
}


class PynputBackend(HidBackend):
    """Emit input on this machine through pynput, with pyautogui for the mouse as fallback."""

    def __init__(self, logger=None):
        kb_cls, key_mod = _get_pynput()
        if kb_cls is None or key_mod is None:
            raise BackendError("No keyboard backend available (install pynput)")
        self._kb = kb_cls()
        self._keys = key_mod
        m_ctrl_cls, m_btn_mod = _get_pynput_mouse()
        self._mouse = m_ctrl_cls() if m_ctrl_cls is not None else None
        self._buttons = m_btn_mod
        self._held: Set[int] = set()
        self._logger = logger

    def _log(self, msg: str) -> None:
        if self._logger:
            self._logger(msg)

    def _to_pynput(self, keycode: int) -> Any:
        name = _PYNPUT_KEY_NAMES.get(keycode)
        if name is not None:
            key = getattr(self._keys, name, None)
            if key is not None:
                return key
        ch = _HID_TO_CHAR.get(keycode)
        if ch is not None:
            return ch
        raise BackendError(f"Keycode 0x{keycode:02X} has no local equivalent")

    def _press(self, keycode: int) -> None:
        self._kb.press(self._to_pynput(keycode))
        self._held.add(keycode)

    def _release(self, keycode: int) -> None:
        self._kb.release(self._to_pynput(keycode))
        self._held.discard(keycode)

    def type_char(self, ch: str) -> None:
        if keymap.char_to_keycode(ch) is None:
            return
        # pynput resolves shift and keyboard layout for characters itself
        self._kb.press(ch)
        self._kb.release(ch)

    def release_all(self) -> None:
        for keycode in list(self._held):
            try:
                self._release(keycode)
            except BackendError:
                self._held.discard(keycode)

    # Mouse --------------------------------------------------------------------
    def _button_name(self, button: int) -> str:
        if button == keymap.MOUSE_RIGHT:
            return "right"
        if button == keymap.MOUSE_MIDDLE:
            return "middle"
        return "left"

    def mouse_move(self, dx: int, dy: int) -> None:
        if self._mouse is not None:
            self._mouse.move(dx, dy)
            return
        try:
            import pyautogui  # local import to avoid hard dep at import time
            pyautogui.moveRel(dx, dy)
        except Exception as e:  # pragma: no cover
            raise BackendError(f"mouse_move failed: {e}")

    def mouse_press(self, button: int) -> None:
        name = self._button_name(button)
        if self._mouse is not None and self._buttons is not None:
            self._mouse.press(getattr(self._buttons, name))
            return
        try:
            import pyautogui
            pyautogui.mouseDown(button=name)
        except Exception as e:  # pragma: no cover
            raise BackendError(f"mouse_press failed: {e}")

    def mouse_release(self, button: int) -> None:
        name = self._button_name(button)
        if self._mouse is not None and self._buttons is not None:
            self._mouse.release(getattr(self._buttons, name))
            return
        try:
            import pyautogui
            pyautogui.mouseUp(button=name)
        except Exception as e:  # pragma: no cover
            raise BackendError(f"mouse_release failed: {e}")

    def mouse_scroll(self, amount: int) -> None:
        if self._mouse is not None:
            self._mouse.scroll(0, amount)
            return
        try:
            import pyautogui
            pyautogui.scroll(amount)
        except Exception as e:  # pragma: no cover
            raise BackendError(f"mouse_scroll failed: {e}")

    # Consumer control ---------------------------------------------------------
    def _media_key(self, usage: int) -> Any:
        name = _PYNPUT_MEDIA_NAMES.get(usage)
        return getattr(self._keys, name, None) if name else None

    def consumer_press(self, usage: int) -> None:
        key = self._media_key(usage)
        if key is None:
            self._log(f"consumer key 0x{usage:X} is not supported on this platform")
            return
        self._kb.press(key)

    def consumer_release(self, usage: int) -> None:
        key = self._media_key(usage)
        if key is not None:
            self._kb.release(key)

    # Host feedback --------------------------------------------------------------
    def led_state(self) -> int:
        if sys.platform.startswith("win"):
            return _windows_led_state()
        if sys.platform.startswith("linux"):
            return _linux_led_state()
        return 0


def _windows_led_state() -> int:
    try:
        import ctypes

        user32 = ctypes.windll.user32
        state = 0
        if user32.GetKeyState(0x90) & 1:  # VK_NUMLOCK
            state |= keymap.LED_NUM
        if user32.GetKeyState(0x14) & 1:  # VK_CAPITAL
            state |= keymap.LED_CAPS
        if user32.GetKeyState(0x91) & 1:  # VK_SCROLL
            state |= keymap.LED_SCROLL
        return state
    except (AttributeError, OSError):
        return 0


def _linux_led_state(leds_dir: Path = Path("/sys/class/leds")) -> int:
    state = 0
    try:
        entries = list(leds_dir.iterdir())
    except OSError:
        return 0
    for bit, suffix in _LINUX_LED_SUFFIXES.items():
        for entry in entries:
            if not entry.name.endswith(suffix):
                continue
            try:
                if (entry / "brightness").read_text().strip() not in ("", "0"):
                    state |= bit
                    break
            except OSError:
                continue
    return state


def create_backend(name: str, logger=None) -> HidBackend:
    """Build a backend by settings name: ``pynput`` or ``dry_run``."""
    key = (name or "").strip().lower()
    if key in ("dry_run", "dry-run", "recording"):
        return RecordingBackend()
    if key == "pynput":
        return PynputBackend(logger=logger)
    raise BackendError(f"Unknown backend: {name}")
