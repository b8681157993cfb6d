"""
Program loader: tokenizes a whole script and discovers its FUNCTION blocks.
"""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Iterable, List, Union

from .errors import ParseError, ScriptLoadError, UnmatchedFunctionError
from .script_model import Function, Program
from .tokenizer import parse_line
from .tokens import EndFunctionToken, FunctionToken, RemToken, Token

MAX_TOKENS = 1024
MAX_FUNCS = 16
FUNC_NAME_LEN = 32


def parse_script(lines: Iterable[str], source: str | None = None) -> Program:
    """Tokenize every line and return a Program without functions registered.

    Comment and blank lines produce no token but still count towards the
    line numbers stamped on later tokens.

    Raises:
        ScriptLoadError: on the first line that fails to parse, or when the
            script holds more than MAX_TOKENS commands. No partial program
            is returned.
    """
    tokens: List[Token] = []
    line_no = 0
    for raw in lines:
        line_no += 1
        try:
            token = parse_line(raw)
        except ParseError as e:
            raise ScriptLoadError(e.message, line_no) from e
        if isinstance(token, RemToken):
            continue
        if len(tokens) >= MAX_TOKENS:
            raise ScriptLoadError(f"Too many commands (max {MAX_TOKENS})", line_no)
        tokens.append(dataclasses.replace(token, line=line_no))
    return Program(tokens=tokens, source=source, line_count=line_no)


def parse_text(text: str, source: str | None = None) -> Program:
    return parse_script(text.splitlines(), source=source)


def load_script_file(path: Union[str, Path]) -> Program:
    """Read and tokenize a script file."""
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8", errors="replace") as fh:
            return parse_script(fh, source=str(path))
    except OSError as e:
        raise ScriptLoadError("Cannot open file") from e


def find_functions(tokens: List[Token]) -> List[Function]:
    """Locate every FUNCTION ... END_FUNCTION block.

    The body of each function ends at the first END_FUNCTION after it.
    Either every function is returned or an error is raised.

    Raises:
        UnmatchedFunctionError: a FUNCTION has no END_FUNCTION after it.
        ScriptLoadError: more than MAX_FUNCS functions are defined.
    """
    functions: List[Function] = []
    for i, token in enumerate(tokens):
        if not isinstance(token, FunctionToken):
            continue
        name = token.name[: FUNC_NAME_LEN - 1]
        end = -1
        for j in range(i + 1, len(tokens)):
            if isinstance(tokens[j], EndFunctionToken):
                end = j
                break
        if end < 0:
            raise UnmatchedFunctionError(
                f"Unmatched FUNCTION '{name}' at line {token.line}", token.line
            )
        if len(functions) >= MAX_FUNCS:
            raise ScriptLoadError(f"Too many functions (max {MAX_FUNCS})", token.line)
        functions.append(Function(name=name, body_start=i + 1, body_end=end))
    return functions


def count_lines(path: Union[str, Path]) -> int:
    """Number of lines in a script file, 0 if it cannot be read."""
    try:
        with Path(path).open("r", encoding="utf-8", errors="replace") as fh:
            return sum(1 for _ in fh)
    except OSError:
        return 0
