"""Small string helpers shared by the tokenizer and the variable layer."""

from __future__ import annotations

_BLANKS = " \t"


def skip_ws(text: str) -> str:
    """Drop leading spaces and tabs."""
    return text.lstrip(_BLANKS)


def strip_trailing(text: str) -> str:
    """Drop trailing spaces, tabs and line endings."""
    return text.rstrip(" \t\r\n")


def atoi(text: str) -> int:
    """Permissive integer parse: leading blanks, optional sign, leading digits.

    Anything that does not start with a number yields 0, so ``"12ms"`` is 12
    and ``"abc"`` is 0.
    """
    s = text.lstrip(" \t\r\n\v\f")
    sign = 1
    if s[:1] in ("+", "-"):
        if s[0] == "-":
            sign = -1
        s = s[1:]
    digits = ""
    for ch in s:
        if not ("0" <= ch <= "9"):
            break
        digits += ch
    if not digits:
        return 0
    return sign * int(digits)


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))
