"""
Key, modifier, consumer-usage and mouse-button lookup tables.

Keycodes are USB HID keyboard usage IDs. A code with ``SHIFT_FLAG`` set means
"hold Shift while pressing the key" and only appears in the ASCII table and in
single-character key names.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

SHIFT_FLAG = 0x8000
KEYCODE_MASK = 0x7FFF

# Keyboard usages -------------------------------------------------------------
KEY_A = 0x04
KEY_1 = 0x1E
KEY_0 = 0x27
KEY_ENTER = 0x28
KEY_ESCAPE = 0x29
KEY_BACKSPACE = 0x2A
KEY_TAB = 0x2B
KEY_SPACE = 0x2C
KEY_MINUS = 0x2D
KEY_EQUAL = 0x2E
KEY_OPEN_BRACKET = 0x2F
KEY_CLOSE_BRACKET = 0x30
KEY_BACKSLASH = 0x31
KEY_SEMICOLON = 0x33
KEY_APOSTROPHE = 0x34
KEY_GRAVE = 0x35
KEY_COMMA = 0x36
KEY_DOT = 0x37
KEY_SLASH = 0x38
KEY_CAPS_LOCK = 0x39
KEY_F1 = 0x3A
KEY_PRINT_SCREEN = 0x46
KEY_SCROLL_LOCK = 0x47
KEY_PAUSE = 0x48
KEY_INSERT = 0x49
KEY_HOME = 0x4A
KEY_PAGE_UP = 0x4B
KEY_DELETE = 0x4C
KEY_END = 0x4D
KEY_PAGE_DOWN = 0x4E
KEY_RIGHT = 0x4F
KEY_LEFT = 0x50
KEY_DOWN = 0x51
KEY_UP = 0x52
KEY_NUM_LOCK = 0x53
KEY_APPLICATION = 0x65

KEY_L_CTRL = 0xE0
KEY_L_SHIFT = 0xE1
KEY_L_ALT = 0xE2
KEY_L_GUI = 0xE3

MODIFIER_KEYCODES = frozenset({KEY_L_CTRL, KEY_L_SHIFT, KEY_L_ALT, KEY_L_GUI})


def letter(ch: str) -> int:
    return KEY_A + (ord(ch.lower()) - ord("a"))


def digit(ch: str) -> int:
    return KEY_0 if ch == "0" else KEY_1 + (ord(ch) - ord("1"))


# Named keys (case-insensitive lookup) ----------------------------------------
NAMED_KEYS: Dict[str, int] = {
    "ENTER": KEY_ENTER,
    "RETURN": KEY_ENTER,
    "TAB": KEY_TAB,
    "ESCAPE": KEY_ESCAPE,
    "ESC": KEY_ESCAPE,
    "SPACE": KEY_SPACE,
    "BACKSPACE": KEY_BACKSPACE,
    "DELETE": KEY_DELETE,
    "DEL": KEY_DELETE,
    "HOME": KEY_HOME,
    "END": KEY_END,
    "INSERT": KEY_INSERT,
    "PAGEUP": KEY_PAGE_UP,
    "PAGE_UP": KEY_PAGE_UP,
    "PAGEDOWN": KEY_PAGE_DOWN,
    "PAGE_DOWN": KEY_PAGE_DOWN,
    "UPARROW": KEY_UP,
    "UP": KEY_UP,
    "DOWNARROW": KEY_DOWN,
    "DOWN": KEY_DOWN,
    "LEFTARROW": KEY_LEFT,
    "LEFT": KEY_LEFT,
    "RIGHTARROW": KEY_RIGHT,
    "RIGHT": KEY_RIGHT,
    "PRINTSCREEN": KEY_PRINT_SCREEN,
    "PAUSE": KEY_PAUSE,
    "BREAK": KEY_PAUSE,
    "CAPSLOCK": KEY_CAPS_LOCK,
    "CAPS_LOCK": KEY_CAPS_LOCK,
    "NUMLOCK": KEY_NUM_LOCK,
    "NUM_LOCK": KEY_NUM_LOCK,
    "SCROLLLOCK": KEY_SCROLL_LOCK,
    "SCROLL_LOCK": KEY_SCROLL_LOCK,
    "MENU": KEY_APPLICATION,
    "APP": KEY_APPLICATION,
    # Modifiers as standalone keys
    "GUI": KEY_L_GUI,
    "WINDOWS": KEY_L_GUI,
    "COMMAND": KEY_L_GUI,
    "ALT": KEY_L_ALT,
    "CTRL": KEY_L_CTRL,
    "CONTROL": KEY_L_CTRL,
    "SHIFT": KEY_L_SHIFT,
}
NAMED_KEYS.update({f"F{n}": KEY_F1 + n - 1 for n in range(1, 13)})

MODIFIERS: Dict[str, int] = {
    "CTRL": KEY_L_CTRL,
    "CONTROL": KEY_L_CTRL,
    "ALT": KEY_L_ALT,
    "SHIFT": KEY_L_SHIFT,
    "GUI": KEY_L_GUI,
    "WINDOWS": KEY_L_GUI,
    "COMMAND": KEY_L_GUI,
}


def _build_ascii_table() -> Dict[str, int]:
    table: Dict[str, int] = {" ": KEY_SPACE}
    for code in range(ord("a"), ord("z") + 1):
        table[chr(code)] = letter(chr(code))
        table[chr(code).upper()] = letter(chr(code)) | SHIFT_FLAG
    for ch in "0123456789":
        table[ch] = digit(ch)
    # Characters sharing a key with a digit
    for ch, base in zip(")!@#$%^&*(", "0123456789"):
        table[ch] = digit(base) | SHIFT_FLAG
    plain_and_shifted = (
        ("-", "_", KEY_MINUS),
        ("=", "+", KEY_EQUAL),
        ("[", "{", KEY_OPEN_BRACKET),
        ("]", "}", KEY_CLOSE_BRACKET),
        ("\\", "|", KEY_BACKSLASH),
        (";", ":", KEY_SEMICOLON),
        ("'", '"', KEY_APOSTROPHE),
        ("`", "~", KEY_GRAVE),
        (",", "<", KEY_COMMA),
        (".", ">", KEY_DOT),
        ("/", "?", KEY_SLASH),
    )
    for plain, shifted, code in plain_and_shifted:
        table[plain] = code
        table[shifted] = code | SHIFT_FLAG
    return table


# Printable ASCII 0x20..0x7E -> keycode, SHIFT_FLAG set where Shift is needed
ASCII_TO_HID: Dict[str, int] = _build_ascii_table()

# Consumer control usages ------------------------------------------------------
CONSUMER_KEYS: Dict[str, int] = {
    # Media transport
    "PLAY": 0xB0,
    "PAUSE": 0xB1,
    "PLAY_PAUSE": 0xCD,
    "STOP": 0xB7,
    "RECORD": 0xB2,
    "NEXT_TRACK": 0xB5,
    "PREV_TRACK": 0xB6,
    "PREVIOUS_TRACK": 0xB6,
    "FAST_FORWARD": 0xB3,
    "FF": 0xB3,
    "REWIND": 0xB4,
    "RW": 0xB4,
    "EJECT": 0xB8,
    "RANDOM_PLAY": 0xB9,
    "REPEAT": 0xBC,
    # Volume
    "VOLUME_UP": 0xE9,
    "VOL_UP": 0xE9,
    "VOLUME_DOWN": 0xEA,
    "VOL_DOWN": 0xEA,
    "MUTE": 0xE2,
    "BASS_BOOST": 0xE5,
    # Power
    "POWER": 0x30,
    "SLEEP": 0x32,
    # Menu navigation
    "MENU": 0x40,
    "MENU_PICK": 0x41,
    "MENU_UP": 0x42,
    "MENU_DOWN": 0x43,
    "MENU_LEFT": 0x44,
    "MENU_RIGHT": 0x45,
    "MENU_ESCAPE": 0x46,
    # App launchers
    "EMAIL": 0x18A,
    "CALCULATOR": 0x192,
    "MY_COMPUTER": 0x194,
    "EXPLORER": 0x194,
    "BROWSER": 0x196,
    "INTERNET": 0x196,
    # Application controls
    "AC_SEARCH": 0x221,
    "AC_HOME": 0x223,
    "AC_BACK": 0x224,
    "AC_FORWARD": 0x225,
    "AC_STOP": 0x226,
    "AC_REFRESH": 0x227,
    "AC_BOOKMARKS": 0x22A,
    "AC_ZOOM_IN": 0x22D,
    "AC_ZOOM_OUT": 0x22E,
    "BROWSER_HOME": 0x223,
    "BROWSER_BACK": 0x224,
    "BROWSER_FORWARD": 0x225,
    "BROWSER_STOP": 0x226,
    "BROWSER_REFRESH": 0x227,
    "BROWSER_SEARCH": 0x221,
    "BROWSER_BOOKMARKS": 0x22A,
    "BROWSER_FAVORITES": 0x22A,
    "SNAPSHOT": 0x65,
}

# Mouse buttons (bitmask values) ----------------------------------------------
MOUSE_LEFT = 1 << 0
MOUSE_RIGHT = 1 << 1
MOUSE_MIDDLE = 1 << 2

MOUSE_BUTTONS: Dict[str, int] = {
    "LEFT": MOUSE_LEFT,
    "RIGHT": MOUSE_RIGHT,
    "MIDDLE": MOUSE_MIDDLE,
}

# Lock LEDs as reported by the host -------------------------------------------
LED_NUM = 1 << 0
LED_CAPS = 1 << 1
LED_SCROLL = 1 << 2

LED_MASKS: Dict[str, int] = {
    "NUM": LED_NUM,
    "CAPS": LED_CAPS,
    "SCROLL": LED_SCROLL,
}


def resolve_keyname(name: str) -> int:
    """Return the keycode for a key name or single printable character, 0 if unknown."""
    code = NAMED_KEYS.get(name.upper())
    if code is not None:
        return code
    if len(name) == 1:
        return ASCII_TO_HID.get(name, 0)
    return 0


def is_modifier(word: str) -> bool:
    return word.upper() in MODIFIERS


def modifier_keycode(word: str) -> int:
    return MODIFIERS.get(word.upper(), 0)


def char_to_keycode(ch: str) -> Optional[Tuple[int, bool]]:
    """Map a printable character to ``(keycode, needs_shift)``; None if not printable."""
    mapped = ASCII_TO_HID.get(ch)
    if mapped is None:
        return None
    return mapped & KEYCODE_MASK, bool(mapped & SHIFT_FLAG)


def resolve_consumer_key(name: str) -> int:
    """Consumer usage for a name such as ``VOLUME_UP`` or a raw ``0xCD`` value; 0 if unknown."""
    trimmed = name.strip()
    usage = CONSUMER_KEYS.get(trimmed.upper())
    if usage is not None:
        return usage
    if trimmed[:2] in ("0x", "0X"):
        hex_digits = ""
        for ch in trimmed[2:]:
            if ch not in "0123456789abcdefABCDEF":
                break
            hex_digits += ch
        return int(hex_digits, 16) & 0xFFFF if hex_digits else 0
    return 0


def resolve_mouse_button(name: str) -> int:
    return MOUSE_BUTTONS.get(name.strip().upper(), MOUSE_LEFT)


def led_mask(name: str) -> int:
    return LED_MASKS.get(name.strip().upper(), 0)
