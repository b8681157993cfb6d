"""
Script variables, ``$name`` substitution and IF/WHILE condition evaluation.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from .text import atoi, skip_ws

MAX_VARS = 16
VAR_NAME_LEN = 32
VAR_VAL_LEN = 128


class VariableTable:
    """Bounded name -> value table with update-or-insert semantics."""

    def __init__(self, max_vars: int = MAX_VARS):
        self._values: Dict[str, str] = {}
        self._max_vars = max_vars

    def get(self, name: str) -> Optional[str]:
        return self._values.get(name[: VAR_NAME_LEN - 1])

    def set(self, name: str, value: str) -> bool:
        """Store a value. Returns False when the table is full and ``name`` is new."""
        key = name[: VAR_NAME_LEN - 1]
        if key not in self._values and len(self._values) >= self._max_vars:
            return False
        self._values[key] = value[: VAR_VAL_LEN - 1]
        return True

    def clear(self) -> None:
        self._values.clear()

    def names(self) -> List[str]:
        return list(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name[: VAR_NAME_LEN - 1] in self._values


def _is_name_char(ch: str) -> bool:
    return ch == "_" or (ch.isascii() and ch.isalnum())


def substitute(text: str, table: VariableTable) -> str:
    """Replace ``$NAME`` and ``${NAME}`` with their values; unknown names become ''."""
    out: List[str] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch != "$":
            out.append(ch)
            i += 1
            continue
        i += 1
        braced = i < n and text[i] == "{"
        if braced:
            i += 1
        name = ""
        while i < n and len(name) < VAR_NAME_LEN - 1:
            c = text[i]
            if braced:
                if c == "}":
                    i += 1
                    break
            elif not _is_name_char(c):
                break
            name += c
            i += 1
        value = table.get(name)
        if value:
            out.append(value)
    return "".join(out)


def _split_operands(text: str, op: str) -> Tuple[str, str]:
    left, _, right = text.partition(op)
    return left.rstrip(" \t"), right.strip(" \t")


def evaluate_condition(condition: str, table: VariableTable) -> bool:
    """Evaluate an IF/WHILE condition after variable substitution.

    ``TRUE``/``FALSE`` short-circuit, then the first ``==`` or ``!=`` compares
    the trimmed operands as strings, otherwise the text is read as an integer.
    """
    expanded = skip_ws(substitute(condition, table))
    if expanded.upper() == "TRUE":
        return True
    if expanded.upper() == "FALSE":
        return False
    if "==" in expanded:
        left, right = _split_operands(expanded, "==")
        return left == right
    if "!=" in expanded:
        left, right = _split_operands(expanded, "!=")
        return left != right
    return atoi(expanded) != 0


def parse_assignment(expression: str) -> Optional[Tuple[str, str]]:
    """Split a VAR body ``$name = value`` into ``(name, raw_value)``.

    Returns None on malformed syntax. The value is returned unsubstituted.
    """
    p = skip_ws(expression)
    if not p.startswith("$"):
        return None
    p = p[1:]
    name = ""
    while p and p[0] not in " =" and len(name) < VAR_NAME_LEN - 1:
        name += p[0]
        p = p[1:]
    p = skip_ws(p)
    if not name or not p.startswith("="):
        return None
    return name, skip_ws(p[1:])
