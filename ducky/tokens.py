"""
Script tokens: one small immutable class per DuckyScript command.

Tokens that only produce output on the target (typed text, delays, keys,
combos, mouse and consumer keys) are ``Action`` subclasses with a
``run(ctx)`` method. Flow-control and configuration tokens carry data only;
the interpreter handles them because they move the program counter or change
engine state.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple

from . import keymap
from .variables import VariableTable, substitute

KEY_HOLD_MS = 10


@dataclass(frozen=True)
class Token:
    """Common base for all tokens. ``line`` is the 1-based source line."""

    line: int = field(default=0, kw_only=True)

    keyword = ""

    def describe(self) -> str:
        return self.keyword


@dataclass(frozen=True)
class Action(Token):
    def run(self, ctx: "RunContext") -> None:  # pragma: no cover - abstract
        raise NotImplementedError


# Output ----------------------------------------------------------------------


@dataclass(frozen=True)
class RemToken(Token):
    text: str = ""

    keyword = "REM"


@dataclass(frozen=True)
class StringToken(Action):
    text: str = ""

    keyword = "STRING"

    def describe(self) -> str:
        return f"STRING {self.text[:40]}"

    def run(self, ctx: "RunContext") -> None:
        ctx.type_text(ctx.substitute(self.text))


@dataclass(frozen=True)
class StringLnToken(Action):
    text: str = ""

    keyword = "STRINGLN"

    def describe(self) -> str:
        return f"STRING {self.text[:40]}"

    def run(self, ctx: "RunContext") -> None:
        ctx.type_text(ctx.substitute(self.text))
        ctx.tap(keymap.KEY_ENTER)


@dataclass(frozen=True)
class DelayToken(Action):
    milliseconds: int = 0

    keyword = "DELAY"

    def describe(self) -> str:
        return f"DELAY {self.milliseconds}"

    def run(self, ctx: "RunContext") -> None:
        ctx.delay_ms(self.milliseconds)


@dataclass(frozen=True)
class KeyToken(Action):
    """A single key press. ``keycode`` 0 means resolve ``name`` when executed."""

    keycode: int = 0
    name: str = ""

    def describe(self) -> str:
        return self.name

    def run(self, ctx: "RunContext") -> None:
        code = self.keycode or keymap.resolve_keyname(self.name)
        if code:
            ctx.tap(code)


@dataclass(frozen=True)
class KeyComboToken(Action):
    keycodes: Tuple[int, ...] = ()

    def describe(self) -> str:
        return f"COMBO ({len(self.keycodes)} keys)"

    def run(self, ctx: "RunContext") -> None:
        ctx.press_combo(self.keycodes)


# Timing defaults ---------------------------------------------------------------


@dataclass(frozen=True)
class DefaultDelayToken(Token):
    milliseconds: int = 0

    keyword = "DEFAULT_DELAY"

    def describe(self) -> str:
        return f"DEFAULT_DELAY {self.milliseconds}"


@dataclass(frozen=True)
class DefaultStringDelayToken(Token):
    milliseconds: int = 0

    keyword = "DEFAULT_STRING_DELAY"

    def describe(self) -> str:
        return f"DEFAULT_STRING_DELAY {self.milliseconds}"


# Flow control ----------------------------------------------------------------


@dataclass(frozen=True)
class RepeatToken(Token):
    count: int = 1

    keyword = "REPEAT"

    def describe(self) -> str:
        return f"REPEAT {self.count}"


@dataclass(frozen=True)
class StopToken(Token):
    keyword = "STOP"


@dataclass(frozen=True)
class IfToken(Token):
    condition: str = ""

    keyword = "IF"

    def describe(self) -> str:
        return self.condition[:60]


@dataclass(frozen=True)
class ElseToken(Token):
    keyword = "ELSE"


@dataclass(frozen=True)
class EndIfToken(Token):
    keyword = "END_IF"


@dataclass(frozen=True)
class WhileToken(Token):
    condition: str = ""

    keyword = "WHILE"

    def describe(self) -> str:
        return self.condition[:60]


@dataclass(frozen=True)
class EndWhileToken(Token):
    keyword = "END_WHILE"


@dataclass(frozen=True)
class VarToken(Token):
    expression: str = ""

    keyword = "VAR"

    def describe(self) -> str:
        return self.expression[:60]


@dataclass(frozen=True)
class FunctionToken(Token):
    name: str = ""

    keyword = "FUNCTION"

    def describe(self) -> str:
        return self.name[:60]


@dataclass(frozen=True)
class EndFunctionToken(Token):
    keyword = "END_FUNCTION"


@dataclass(frozen=True)
class CallToken(Token):
    name: str = ""

    keyword = "CALL"

    def describe(self) -> str:
        return self.name[:60]


# LED channel -------------------------------------------------------------------


@dataclass(frozen=True)
class LedCheckToken(Token):
    led: str = ""

    keyword = "LED_CHECK"

    def describe(self) -> str:
        return self.led[:60]


@dataclass(frozen=True)
class LedWaitToken(Token):
    arguments: str = ""

    keyword = "LED_WAIT"

    def describe(self) -> str:
        return f"LED_WAIT {self.arguments[:50]}"


@dataclass(frozen=True)
class OsDetectToken(Token):
    keyword = "OS_DETECT"


# Mouse and consumer keys -------------------------------------------------------


@dataclass(frozen=True)
class MouseMoveToken(Action):
    dx: int = 0
    dy: int = 0

    def describe(self) -> str:
        return f"MOUSE {self.dx},{self.dy}"

    def run(self, ctx: "RunContext") -> None:
        ctx.backend.mouse_move(self.dx, self.dy)


@dataclass(frozen=True)
class MouseClickToken(Action):
    button: str = "LEFT"

    def describe(self) -> str:
        return self.button[:60]

    def run(self, ctx: "RunContext") -> None:
        btn = keymap.resolve_mouse_button(self.button)
        ctx.backend.mouse_press(btn)
        ctx.sleep_ms(KEY_HOLD_MS)
        ctx.backend.mouse_release(btn)


@dataclass(frozen=True)
class MouseScrollToken(Action):
    amount: int = 0

    def describe(self) -> str:
        return f"SCROLL {self.amount}"

    def run(self, ctx: "RunContext") -> None:
        ctx.backend.mouse_scroll(self.amount)


@dataclass(frozen=True)
class ConsumerKeyToken(Action):
    name: str = ""

    def describe(self) -> str:
        return self.name[:60]

    def run(self, ctx: "RunContext") -> None:
        usage = keymap.resolve_consumer_key(self.name)
        if usage == 0:
            ctx.log(f"Unknown consumer key: {self.name}")
            return
        ctx.backend.consumer_press(usage)
        ctx.sleep_ms(KEY_HOLD_MS)
        ctx.backend.consumer_release(usage)


# Only these kinds are re-executed by REPEAT; anything else repeats as a no-op.
REPEATABLE = (StringToken, StringLnToken, DelayToken, KeyComboToken, KeyToken)


def adjusted_delay(milliseconds: int, multiplier: float) -> int:
    """Scale a delay by the speed multiplier. Multipliers <= 0 leave it unscaled."""
    if multiplier <= 0:
        return milliseconds
    result = milliseconds / multiplier
    if result < 1.0:
        result = 1.0
    return int(result)


class RunContext:
    """Output helpers handed to actions at runtime."""

    def __init__(
        self,
        backend,
        variables: VariableTable,
        logger: Optional[Callable[[str], None]] = None,
        sleep_hook: Optional[Callable[[float], None]] = None,
    ):
        self.backend = backend
        self.variables = variables
        self.speed = 1.0
        self.string_delay = 0
        self._logger = logger
        self._sleep = sleep_hook

    def log(self, msg: str) -> None:
        if self._logger:
            self._logger(msg)

    def sleep(self, seconds: float) -> None:
        if self._sleep:
            self._sleep(seconds)
        else:
            time.sleep(seconds)

    def sleep_ms(self, ms: int) -> None:
        self.sleep(max(ms, 0) / 1000.0)

    def delay_ms(self, ms: int) -> None:
        """Sleep for ``ms`` scaled by the current speed multiplier."""
        self.sleep_ms(adjusted_delay(ms, self.speed))

    def substitute(self, text: str) -> str:
        return substitute(text, self.variables)

    def type_text(self, text: str) -> None:
        for ch in text:
            self.backend.type_char(ch)
            if self.string_delay > 0:
                self.delay_ms(self.string_delay)

    def tap(self, keycode: int) -> None:
        self.backend.press(keycode)
        self.sleep_ms(KEY_HOLD_MS)
        self.backend.release(keycode)

    def press_combo(self, keycodes: Tuple[int, ...]) -> None:
        for code in keycodes:
            self.backend.press(code)
        self.sleep_ms(KEY_HOLD_MS)
        for code in reversed(keycodes):
            self.backend.release(code)
