"""Global pause/stop hotkeys for a running script, built on top of pynput."""

from __future__ import annotations

from typing import Callable, Dict, Optional

try:
    from pynput import keyboard  # type: ignore
except Exception as _e:  # pragma: no cover - environment dependent
    keyboard = None  # type: ignore


class HotkeyManager:
    """Manages the pause/resume and stop hotkeys across Windows, macOS, and Linux."""

    _SPECIAL_KEY_ALIASES: Dict[str, str] = {
        "ctrl": "ctrl",
        "control": "ctrl",
        "alt": "alt",
        "shift": "shift",
        "win": "cmd",
        "cmd": "cmd",
        "command": "cmd",
        "option": "alt",
        "super": "cmd",
        "esc": "esc",
        "escape": "esc",
        "pause": "pause",
    }

    def __init__(
        self,
        pause_hotkey: str = "F8",
        stop_hotkey: str = "F9",
        logger: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._pause_hotkey = pause_hotkey
        self._stop_hotkey = stop_hotkey
        self._pause_callback: Optional[Callable[[], None]] = None
        self._stop_callback: Optional[Callable[[], None]] = None
        self._logger = logger or print
        self._listener: Optional[object] = None
        self._is_registered = False

    def register_pause_callback(self, callback: Callable[[], None]) -> None:
        """Called on the pause hotkey; expected to toggle pause/resume."""
        self._pause_callback = callback

    def register_stop_callback(self, callback: Callable[[], None]) -> None:
        self._stop_callback = callback

    def is_enabled(self) -> bool:
        return self._is_registered

    def build_hotkey_map(self) -> Dict[str, Callable[[], None]]:
        """pynput hotkey strings mapped to the registered callbacks.

        Raises:
            ValueError: a hotkey definition is empty, or both hotkeys are the same.
        """
        hotkey_map: Dict[str, Callable[[], None]] = {}
        if self._pause_callback:
            hotkey_map[self._to_pynput_hotkey(self._pause_hotkey)] = self._pause_callback
        if self._stop_callback:
            hotkey = self._to_pynput_hotkey(self._stop_hotkey)
            if hotkey in hotkey_map:
                raise ValueError(f"Pause and stop share the hotkey {self._stop_hotkey}")
            hotkey_map[hotkey] = self._stop_callback
        return hotkey_map

    def enable_hotkeys(self) -> bool:
        if self._is_registered:
            return True

        try:
            hotkey_map = self.build_hotkey_map()
        except ValueError as exc:
            self._logger(f"Invalid hotkey definition: {exc}")
            return False

        if not hotkey_map:
            return False

        if keyboard is None:
            self._logger("pynput/keyboard backend not available; global hotkeys disabled")
            self._listener = None
            self._is_registered = False
            return False
        try:
            self._listener = keyboard.GlobalHotKeys(hotkey_map)
            self._listener.start()
            self._is_registered = True
            return True
        except Exception as exc:  # pragma: no cover - system specific
            self._logger(f"Failed to register hotkeys: {exc}")
            self._listener = None
            self._is_registered = False
            return False

    def disable_hotkeys(self) -> None:
        if not self._is_registered:
            return

        if self._listener is not None:
            try:
                self._listener.stop()  # type: ignore[attr-defined]
            except Exception as exc:  # pragma: no cover - system specific
                self._logger(f"Failed to stop hotkey listener: {exc}")
            self._listener = None

        self._is_registered = False

    def get_pause_hotkey(self) -> str:
        return self._pause_hotkey

    def get_stop_hotkey(self) -> str:
        return self._stop_hotkey

    def update_hotkeys(self, pause_hotkey: str, stop_hotkey: str) -> bool:
        was_registered = self._is_registered
        if was_registered:
            self.disable_hotkeys()

        self._pause_hotkey = pause_hotkey
        self._stop_hotkey = stop_hotkey

        if was_registered:
            return self.enable_hotkeys()
        return True

    def _to_pynput_hotkey(self, hotkey: str) -> str:
        if not hotkey:
            raise ValueError("Empty hotkey string")

        tokens = [token.strip() for token in hotkey.replace("+", " ").split() if token.strip()]
        if not tokens:
            raise ValueError("Hotkey contains no tokens")

        parsed: list[str] = []
        for token in tokens:
            lower_token = token.lower()

            if lower_token in self._SPECIAL_KEY_ALIASES:
                parsed.append(f"<{self._SPECIAL_KEY_ALIASES[lower_token]}>")
                continue

            if lower_token.startswith("f") and lower_token[1:].isdigit():
                parsed.append(f"<{lower_token}>")
                continue

            parsed.append(lower_token)

        return "+".join(parsed)
