"""
Loaded-program data model: the token sequence, its function table, the
engine state enum and the status snapshot delivered to observers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .tokens import Token


class ScriptState(Enum):
    """Interpreter lifecycle states."""
    IDLE = "idle"
    LOADED = "loaded"
    RUNNING = "running"
    PAUSED = "paused"
    DONE = "done"
    ERROR = "error"

    @property
    def label(self) -> str:
        return _STATE_LABELS[self]


_STATE_LABELS = {
    ScriptState.IDLE: "Idle",
    ScriptState.LOADED: "Ready",
    ScriptState.RUNNING: "Running",
    ScriptState.PAUSED: "Paused",
    ScriptState.DONE: "Done",
    ScriptState.ERROR: "ERROR",
}


@dataclass(frozen=True)
class Function:
    """A script-level function: ``tokens[body_start:body_end]`` is its body.

    ``body_end`` is the index of the matching END_FUNCTION token.
    """
    name: str
    body_start: int
    body_end: int


@dataclass
class Program:
    """Ordered token sequence plus the functions discovered in it."""

    tokens: List[Token] = field(default_factory=list)
    functions: List[Function] = field(default_factory=list)
    source: Optional[str] = None
    line_count: int = 0

    def __len__(self) -> int:
        return len(self.tokens)

    def find_function(self, name: str) -> Optional[Function]:
        for func in self.functions:
            if func.name == name:
                return func
        return None


@dataclass(frozen=True)
class ExecutionStatus:
    """Copy of the engine state taken at a notification point."""

    state: ScriptState
    pc: int = 0
    token_count: int = 0
    current_line: int = 0
    total_lines: int = 0
    current_command: str = ""
    led_num: bool = False
    led_caps: bool = False
    led_scroll: bool = False
    error_message: str = ""
    error_line: int = 0

    def __str__(self) -> str:
        def dot(on: bool) -> str:
            return "*" if on else "o"

        text = (
            f"Line {self.current_line} / {self.total_lines} [{self.state.label}] "
            f"{self.current_command} "
            f"[N:{dot(self.led_num)} C:{dot(self.led_caps)} S:{dot(self.led_scroll)}]"
        )
        if self.state == ScriptState.ERROR and self.error_message:
            text += f" {self.error_message}"
        return text
