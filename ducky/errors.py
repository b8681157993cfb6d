"""
Errors raised by the DuckyScript tokenizer, loader, interpreter and backends.
"""

from __future__ import annotations


class DuckyError(Exception):
    pass


class ParseError(DuckyError):
    """A single line could not be turned into a token."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ScriptLoadError(DuckyError):
    """A script could not be loaded. ``line`` is 1-based, 0 when unknown."""

    def __init__(self, message: str, line: int = 0):
        self.message = message
        self.line = line
        text = message if not line else f"Line {line}: {message}"
        super().__init__(text)


class UnmatchedFunctionError(ScriptLoadError):
    pass


class ScriptRuntimeError(DuckyError):
    """Fatal condition hit while executing a loaded script."""

    def __init__(self, message: str, line: int = 0):
        self.message = message
        self.line = line
        super().__init__(message)


class BackendError(DuckyError):
    pass
