"""
Line tokenizer: turns one line of DuckyScript into exactly one Token.

Dispatch order (first match wins):
1. blank line or REM comment
2. command keywords (case-sensitive)
3. key combos whose first word is a modifier, e.g. ``CTRL ALT DELETE``
4. a single key name (case-insensitive) or one printable character
5. otherwise ``ParseError("Unknown command: ...")``
"""

from __future__ import annotations

from typing import Callable, List, Optional, Tuple

from . import keymap
from .errors import ParseError
from .text import atoi, clamp, skip_ws, strip_trailing
from .tokens import (
    CallToken,
    ConsumerKeyToken,
    DefaultDelayToken,
    DefaultStringDelayToken,
    DelayToken,
    ElseToken,
    EndFunctionToken,
    EndIfToken,
    EndWhileToken,
    FunctionToken,
    IfToken,
    KeyComboToken,
    KeyToken,
    LedCheckToken,
    LedWaitToken,
    MouseClickToken,
    MouseMoveToken,
    MouseScrollToken,
    OsDetectToken,
    RemToken,
    RepeatToken,
    StopToken,
    StringLnToken,
    StringToken,
    Token,
    VarToken,
    WhileToken,
)

MAX_COMBO_KEYS = 8
INT8_MIN = -128
INT8_MAX = 127


def _clamp8(value: int) -> int:
    return clamp(value, INT8_MIN, INT8_MAX)


def _parse_mouse_move(args: str) -> MouseMoveToken:
    parts = args.split(None, 1)
    x = atoi(parts[0]) if parts else 0
    y = atoi(parts[1]) if len(parts) > 1 else 0
    return MouseMoveToken(_clamp8(x), _clamp8(y))


def _delay_ms(args: str) -> int:
    return max(atoi(args), 0)


def _repeat_count(args: str) -> int:
    count = atoi(args)
    return count if count > 0 else 1


# (keyword, may stand alone, factory). The keyword must be followed by a
# space and its argument text unless it may stand alone.
_Factory = Callable[[str], Token]
_KEYWORDS: List[Tuple[str, bool, _Factory]] = [
    ("STRINGLN", True, lambda a: StringLnToken(a)),
    ("STRING", True, lambda a: StringToken(a)),
    ("DELAY", False, lambda a: DelayToken(_delay_ms(a))),
    ("DEFAULT_DELAY", False, lambda a: DefaultDelayToken(_delay_ms(a))),
    ("DEFAULTDELAY", False, lambda a: DefaultDelayToken(_delay_ms(a))),
    ("DEFAULT_STRING_DELAY", False, lambda a: DefaultStringDelayToken(_delay_ms(a))),
    ("REPEAT", False, lambda a: RepeatToken(_repeat_count(a))),
    ("IF", False, lambda a: IfToken(a)),
    ("WHILE", False, lambda a: WhileToken(a)),
    ("VAR", False, lambda a: VarToken(a)),
    ("FUNCTION", False, lambda a: FunctionToken(a.strip())),
    ("CALL", False, lambda a: CallToken(a.strip())),
    ("LED_CHECK", False, lambda a: LedCheckToken(a)),
    ("LED_WAIT", False, lambda a: LedWaitToken(a)),
    ("MOUSE_MOVE", False, _parse_mouse_move),
    ("MOUSE_CLICK", False, lambda a: MouseClickToken(a.strip())),
    ("MOUSE_SCROLL", False, lambda a: MouseScrollToken(_clamp8(atoi(a)))),
    ("CONSUMER_KEY", False, lambda a: ConsumerKeyToken(a.strip())),
]

# Keywords that must be the whole line
_BARE_KEYWORDS = {
    "STOP": StopToken,
    "ELSE": ElseToken,
    "END_IF": EndIfToken,
    "END_WHILE": EndWhileToken,
    "END_FUNCTION": EndFunctionToken,
    "OS_DETECT": OsDetectToken,
}


def _match_keyword(line: str) -> Optional[Token]:
    bare = _BARE_KEYWORDS.get(line)
    if bare is not None:
        return bare()
    for keyword, may_be_alone, factory in _KEYWORDS:
        if line.startswith(keyword + " "):
            return factory(line[len(keyword) + 1:])
        if may_be_alone and line == keyword:
            return factory("")
    return None


def _parse_key_combo(line: str) -> Optional[Token]:
    words = line.split()[:MAX_COMBO_KEYS]
    if not words or not keymap.is_modifier(words[0]):
        return None
    if len(words) == 1:
        return KeyToken(keymap.modifier_keycode(words[0]), words[0])
    codes: List[int] = []
    for word in words[:-1]:
        code = keymap.modifier_keycode(word) or keymap.resolve_keyname(word)
        if code == 0:
            return None
        codes.append(code)
    last = keymap.resolve_keyname(words[-1])
    if last == 0:
        return None
    codes.append(last)
    return KeyComboToken(tuple(codes))


def parse_line(raw_line: str) -> Token:
    """Parse one script line into a Token (``RemToken`` for blanks/comments).

    Raises:
        ParseError: when the line is not a command, combo or key name.
    """
    line = skip_ws(strip_trailing(raw_line))

    if not line:
        return RemToken()
    if line == "REM" or line.startswith("REM "):
        return RemToken(line[4:])

    token = _match_keyword(line)
    if token is not None:
        return token

    token = _parse_key_combo(line)
    if token is not None:
        return token

    code = keymap.resolve_keyname(line)
    if code:
        return KeyToken(code, line)

    raise ParseError(f"Unknown command: {line[:60]}")
