"""
Interpreter core: executes a loaded Program token by token.

The engine is driven from two threads. ``run()`` blocks and belongs on a
worker thread; ``pause()``, ``resume()`` and ``stop()`` are called from the
owning thread and only flip the shared state, which the worker observes at
its next check (per token, inside the pause wait and inside LED_WAIT).
Delays are plain sleeps, so a stop issued during a DELAY takes effect when
the sleep returns.
"""

from __future__ import annotations

import functools
import threading
import time
from typing import Callable, Dict, List, Optional

from . import keymap
from .errors import DuckyError, ScriptLoadError, ScriptRuntimeError
from .loader import find_functions
from .script_model import ExecutionStatus, Function, Program, ScriptState
from .tokens import (
    REPEATABLE,
    Action,
    CallToken,
    DefaultDelayToken,
    DefaultStringDelayToken,
    ElseToken,
    EndFunctionToken,
    EndIfToken,
    EndWhileToken,
    FunctionToken,
    IfToken,
    LedCheckToken,
    LedWaitToken,
    OsDetectToken,
    RepeatToken,
    RunContext,
    StopToken,
    Token,
    VarToken,
    WhileToken,
    adjusted_delay,
)
from .variables import MAX_VARS, VariableTable, evaluate_condition, parse_assignment, substitute

MAX_STACK = 32

PAUSE_POLL_SECONDS = 0.1
LED_POLL_MS = 50
OS_DETECT_TIMEOUT_MS = 500
OS_DETECT_SETTLE_MS = 100
OS_MAC_MAX_MS = 25
OS_WIN_MAX_MS = 70

StatusCallback = Callable[[ExecutionStatus], None]

# What the main loop does after a token has been executed
_ADVANCE = "advance"
_JUMPED = "jumped"
_HALT = "halt"

__all__ = ["ScriptEngine", "adjusted_delay", "MAX_STACK"]


class ScriptEngine:
    """
    Stack-based DuckyScript interpreter.

    Owns the token sequence, the function table, the variable table, the
    call stack and the Idle/Loaded/Running/Paused/Done/Error state machine.
    All output goes through the backend handed in at construction.
    """

    def __init__(
        self,
        backend,
        *,
        sleep: Optional[Callable[[float], None]] = None,
        clock: Optional[Callable[[], float]] = None,
        logger: Optional[Callable[[str], None]] = None,
    ):
        """
        Args:
            backend: a ``HidBackend`` receiving keystrokes, mouse and consumer events
            sleep: sleep function in seconds (``time.sleep`` by default)
            clock: monotonic clock in seconds, used for OS detection timing
            logger: optional sink for diagnostic messages
        """
        self._backend = backend
        self._sleep = sleep or time.sleep
        self._clock = clock or time.monotonic
        self._logger = logger
        self._cond = threading.Condition()
        # True from entry to exit of run(), which outlives a stop() by up to one sleep
        self._worker_active = False
        self._worker_thread: Optional[threading.Thread] = None
        self._state = ScriptState.IDLE
        self._status_callback: Optional[StatusCallback] = None
        self._variables = VariableTable()
        self._ctx = RunContext(backend, self._variables, logger=logger, sleep_hook=self._sleep)
        self._handlers: Dict[type, Callable[[Token], Optional[str]]] = {
            DefaultDelayToken: self._do_default_delay,
            DefaultStringDelayToken: self._do_default_string_delay,
            RepeatToken: self._do_repeat,
            StopToken: self._do_stop,
            IfToken: self._do_if,
            ElseToken: self._do_else,
            EndIfToken: self._do_nothing,
            WhileToken: self._do_while,
            EndWhileToken: self._do_end_while,
            VarToken: self._do_var,
            FunctionToken: self._do_function,
            EndFunctionToken: self._do_end_function,
            CallToken: self._do_call,
            LedCheckToken: self._do_led_check,
            LedWaitToken: self._do_led_wait,
            OsDetectToken: self._do_os_detect,
        }
        self.init()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def init(self) -> None:
        """Reset to Idle and drop any loaded program. The status callback is kept.

        Waits for a stopped worker to finish. Raises RuntimeError while a
        script is running or paused.
        """
        with self._cond:
            self._wait_for_worker("reset")
            self._state = ScriptState.IDLE
            self._program: Optional[Program] = None
            self._tokens: List[Token] = []
            self._functions: List[Function] = []
            self._pc = 0
            self._call_stack: List[int] = []
            self._in_func_def = False
            self._default_delay = 0
            self._ctx.string_delay = 0
            self._ctx.speed = 1.0
            self._led_state = 0
            self._error_message = ""
            self._error_line = 0
            self._variables.clear()

    def load(self, program: Program) -> bool:
        """Take ownership of a program and register its functions.

        Returns True when the engine is Loaded. An unmatched FUNCTION (or too
        many functions) leaves the engine in Error with no functions registered.
        A stopped worker that is still finishing is waited for first.

        Raises:
            RuntimeError: a script is running or paused, or this is called
                from the worker thread itself.
        """
        with self._cond:
            self._wait_for_worker("load")
            self._program = program
            self._tokens = program.tokens
            self._functions = []
            program.functions = []
            self._pc = 0
            self._call_stack = []
            self._in_func_def = False
            self._variables.clear()
            self._error_message = ""
            self._error_line = 0
            try:
                functions = find_functions(self._tokens)
            except ScriptLoadError as e:
                self._state = ScriptState.ERROR
                self._error_message = e.message
                self._error_line = e.line
                self._log(f"Load failed: {e.message}")
                return False
            self._functions = functions
            program.functions = list(functions)
            self._state = ScriptState.LOADED
            return True

    def run(self) -> None:
        """Execute the loaded program until it ends, is stopped or fails.

        Blocking; intended for a worker thread. Does nothing unless the
        engine is Loaded or Paused. Runtime errors end in the Error state
        and are not raised. Returns at once if another thread is already
        inside ``run()``.
        """
        with self._cond:
            if self._worker_active or self._state not in (ScriptState.LOADED, ScriptState.PAUSED):
                return
            self._worker_active = True
            self._worker_thread = threading.current_thread()
            self._state = ScriptState.RUNNING

        try:
            self._notify()
            self._execute()
        except ScriptRuntimeError as e:
            self._fail(e.message, e.line)
        except DuckyError as e:
            self._fail(str(e), self._current_line())
        except Exception as e:
            self._fail(f"Error: {e}", self._current_line())
            raise
        finally:
            try:
                with self._cond:
                    if self._state in (ScriptState.RUNNING, ScriptState.PAUSED):
                        self._state = ScriptState.DONE
                self._release_all()
                self._notify()
            finally:
                with self._cond:
                    self._worker_active = False
                    self._worker_thread = None
                    self._cond.notify_all()

    def pause(self) -> None:
        with self._cond:
            if self._state != ScriptState.RUNNING:
                return
            self._state = ScriptState.PAUSED
        self._notify()

    def resume(self) -> None:
        with self._cond:
            if self._state != ScriptState.PAUSED:
                return
            self._state = ScriptState.RUNNING
            self._cond.notify_all()
        self._notify()

    def stop(self) -> None:
        """Ask the worker to finish. Idempotent; valid from Running or Paused."""
        with self._cond:
            if self._state not in (ScriptState.RUNNING, ScriptState.PAUSED):
                return
            self._state = ScriptState.DONE
            self._cond.notify_all()
        self._notify()

    # ------------------------------------------------------------------
    # Configuration and queries
    # ------------------------------------------------------------------
    def set_speed(self, multiplier: float) -> None:
        """Scale all delays; 2.0 halves them, <= 0 disables scaling."""
        self._ctx.speed = float(multiplier)

    def set_status_callback(self, callback: Optional[Callable], context=None) -> None:
        """Register the per-token notification sink.

        The callback receives an ``ExecutionStatus`` snapshot, preceded by
        ``context`` when one is given. It runs on the worker thread.
        """
        if callback is not None and context is not None:
            callback = functools.partial(callback, context)
        self._status_callback = callback

    def get_variable(self, name: str) -> Optional[str]:
        return self._variables.get(name)

    def set_variable(self, name: str, value: str) -> bool:
        return self._variables.set(name, value)

    @property
    def state(self) -> ScriptState:
        with self._cond:
            return self._state

    @property
    def pc(self) -> int:
        return self._pc

    @property
    def speed(self) -> float:
        return self._ctx.speed

    @property
    def default_delay(self) -> int:
        return self._default_delay

    @default_delay.setter
    def default_delay(self, milliseconds: int) -> None:
        self._default_delay = max(int(milliseconds), 0)

    @property
    def default_string_delay(self) -> int:
        return self._ctx.string_delay

    @property
    def led_state(self) -> int:
        return self._led_state

    @property
    def error_message(self) -> str:
        with self._cond:
            return self._error_message

    @property
    def error_line(self) -> int:
        with self._cond:
            return self._error_line

    @property
    def functions(self) -> List[Function]:
        return list(self._functions)

    @property
    def program(self) -> Optional[Program]:
        return self._program

    @property
    def call_depth(self) -> int:
        return len(self._call_stack)

    def status(self) -> ExecutionStatus:
        """Snapshot of the current execution state."""
        with self._cond:
            state = self._state
            error_message = self._error_message
            error_line = self._error_line
        pc = self._pc
        tokens = self._tokens
        token = tokens[pc] if pc < len(tokens) else None
        leds = self._led_state
        return ExecutionStatus(
            state=state,
            pc=pc,
            token_count=len(tokens),
            current_line=token.line if token is not None else 0,
            total_lines=self._program.line_count if self._program else 0,
            current_command=token.describe() if token is not None else "",
            led_num=bool(leds & keymap.LED_NUM),
            led_caps=bool(leds & keymap.LED_CAPS),
            led_scroll=bool(leds & keymap.LED_SCROLL),
            error_message=error_message,
            error_line=error_line,
        )

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------
    def _execute(self) -> None:
        while True:
            with self._cond:
                while self._state == ScriptState.PAUSED:
                    self._cond.wait(PAUSE_POLL_SECONDS)
                if self._state != ScriptState.RUNNING or self._pc >= len(self._tokens):
                    return

            token = self._tokens[self._pc]

            # FUNCTION bodies only run through CALL
            if self._in_func_def:
                if isinstance(token, EndFunctionToken):
                    self._in_func_def = False
                self._pc += 1
                continue
            if isinstance(token, FunctionToken):
                self._in_func_def = True
                self._pc += 1
                continue

            self._poll_leds()
            self._notify()

            outcome = self._dispatch(token)
            if outcome == _HALT:
                return
            if outcome == _JUMPED:
                continue

            self._pc += 1
            if self._default_delay > 0 and self.state == ScriptState.RUNNING:
                self._ctx.delay_ms(self._default_delay)

    def _dispatch(self, token: Token) -> str:
        handler = self._handlers.get(type(token))
        if handler is not None:
            return handler(token) or _ADVANCE
        if isinstance(token, Action):
            token.run(self._ctx)
        return _ADVANCE

    # ------------------------------------------------------------------
    # Token handlers
    # ------------------------------------------------------------------
    def _do_nothing(self, token: Token) -> None:
        return None

    def _do_default_delay(self, token: DefaultDelayToken) -> None:
        self._default_delay = token.milliseconds

    def _do_default_string_delay(self, token: DefaultStringDelayToken) -> None:
        self._ctx.string_delay = token.milliseconds

    def _do_repeat(self, token: RepeatToken) -> None:
        if self._pc == 0:
            return
        previous = self._tokens[self._pc - 1]
        for _ in range(token.count):
            if self.state != ScriptState.RUNNING:
                break
            if isinstance(previous, REPEATABLE):
                previous.run(self._ctx)
            if self._default_delay > 0:
                self._ctx.delay_ms(self._default_delay)

    def _do_stop(self, token: StopToken) -> str:
        with self._cond:
            self._state = ScriptState.DONE
        return _HALT

    def _do_if(self, token: IfToken) -> None:
        holds = evaluate_condition(token.condition, self._variables)
        target = self._find_else_or_end_if(self._pc + 1)
        if target is None:
            raise ScriptRuntimeError(f"Unmatched IF at line {token.line}", token.line)
        if not holds:
            # continue after the ELSE, or after END_IF when there is none
            self._pc = target

    def _do_else(self, token: ElseToken) -> None:
        # Reached by straight-line execution: the IF branch just finished
        target = self._find_end_if(self._pc + 1)
        if target is None:
            raise ScriptRuntimeError(f"Unmatched ELSE at line {token.line}", token.line)
        self._pc = target

    def _do_while(self, token: WhileToken) -> None:
        holds = evaluate_condition(token.condition, self._variables)
        target = self._find_end_while(self._pc + 1)
        if target is None:
            raise ScriptRuntimeError(f"Unmatched WHILE at line {token.line}", token.line)
        if not holds:
            self._pc = target

    def _do_end_while(self, token: EndWhileToken) -> str:
        start = self._find_matching_while(self._pc)
        if start is None:
            raise ScriptRuntimeError(f"Unmatched END_WHILE at line {token.line}", token.line)
        self._pc = start
        return _JUMPED

    def _do_var(self, token: VarToken) -> None:
        parsed = parse_assignment(token.expression)
        if parsed is None:
            raise ScriptRuntimeError(f"VAR syntax error at line {token.line}", token.line)
        name, raw_value = parsed
        self._store_variable(name, substitute(raw_value, self._variables), token.line)

    def _do_function(self, token: FunctionToken) -> None:
        self._in_func_def = True

    def _do_end_function(self, token: EndFunctionToken) -> None:
        if self._call_stack:
            # resume after the CALL
            self._pc = self._call_stack.pop()

    def _do_call(self, token: CallToken) -> str:
        func = self._find_function(token.name)
        if func is None:
            raise ScriptRuntimeError(f"Unknown function: {token.name[:100]}", token.line)
        if len(self._call_stack) >= MAX_STACK:
            raise ScriptRuntimeError(f"Call stack overflow at line {token.line}", token.line)
        self._call_stack.append(self._pc)
        self._pc = func.body_start
        return _JUMPED

    def _do_led_check(self, token: LedCheckToken) -> None:
        self._poll_leds()
        which = token.led.strip().upper()
        mask = keymap.led_mask(which)
        if not mask:
            self._log(f"LED_CHECK: unknown LED '{token.led.strip()}'")
            return
        value = "1" if self._led_state & mask else "0"
        self._store_variable(f"LED_{which}", value, token.line)

    def _do_led_wait(self, token: LedWaitToken) -> None:
        parts = token.arguments.split()
        if len(parts) < 2:
            return
        mask = keymap.led_mask(parts[0])
        if not mask:
            return
        want_on = parts[1].upper() == "ON" or parts[1] == "1"
        while self.state in (ScriptState.RUNNING, ScriptState.PAUSED):
            self._poll_leds()
            if bool(self._led_state & mask) == want_on:
                break
            self._sleep(LED_POLL_MS / 1000.0)
            self._notify()

    def _do_os_detect(self, token: OsDetectToken) -> None:
        before = self._backend.led_state()
        self._backend.press(keymap.KEY_CAPS_LOCK)
        self._backend.release(keymap.KEY_CAPS_LOCK)

        start = self._clock()
        elapsed_ms = 0.0
        changed = False
        while elapsed_ms < OS_DETECT_TIMEOUT_MS:
            if self._backend.led_state() != before:
                changed = True
                break
            self._sleep(0.001)
            elapsed_ms = (self._clock() - start) * 1000.0

        # put Caps Lock back the way it was
        self._backend.press(keymap.KEY_CAPS_LOCK)
        self._backend.release(keymap.KEY_CAPS_LOCK)
        self._sleep(OS_DETECT_SETTLE_MS / 1000.0)

        os_name = "UNKNOWN"
        if changed:
            if elapsed_ms <= OS_MAC_MAX_MS:
                os_name = "MAC"
            elif elapsed_ms <= OS_WIN_MAX_MS:
                os_name = "WIN"
            else:
                os_name = "LINUX"
        self._log(f"OS_DETECT: {os_name} ({elapsed_ms:.0f} ms)")
        self._store_variable("OS", os_name, token.line)

    # ------------------------------------------------------------------
    # Block matching (linear scans over the token list)
    # ------------------------------------------------------------------
    def _find_else_or_end_if(self, start: int) -> Optional[int]:
        depth = 1
        for i in range(start, len(self._tokens)):
            tok = self._tokens[i]
            if isinstance(tok, IfToken):
                depth += 1
            elif isinstance(tok, EndIfToken):
                depth -= 1
                if depth == 0:
                    return i
            elif isinstance(tok, ElseToken) and depth == 1:
                return i
        return None

    def _find_end_if(self, start: int) -> Optional[int]:
        depth = 1
        for i in range(start, len(self._tokens)):
            tok = self._tokens[i]
            if isinstance(tok, IfToken):
                depth += 1
            elif isinstance(tok, EndIfToken):
                depth -= 1
                if depth == 0:
                    return i
        return None

    def _find_end_while(self, start: int) -> Optional[int]:
        depth = 1
        for i in range(start, len(self._tokens)):
            tok = self._tokens[i]
            if isinstance(tok, WhileToken):
                depth += 1
            elif isinstance(tok, EndWhileToken):
                depth -= 1
                if depth == 0:
                    return i
        return None

    def _find_matching_while(self, end_while: int) -> Optional[int]:
        depth = 1
        for i in range(end_while - 1, -1, -1):
            tok = self._tokens[i]
            if isinstance(tok, EndWhileToken):
                depth += 1
            elif isinstance(tok, WhileToken):
                depth -= 1
                if depth == 0:
                    return i
        return None

    def _find_function(self, name: str) -> Optional[Function]:
        for func in self._functions:
            if func.name == name:
                return func
        return None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _store_variable(self, name: str, value: str, line: int) -> None:
        if not self._variables.set(name, value):
            raise ScriptRuntimeError(f"Too many variables (max {MAX_VARS}) at line {line}", line)

    def _poll_leds(self) -> None:
        self._led_state = self._backend.led_state()

    def _current_line(self) -> int:
        if self._pc < len(self._tokens):
            return self._tokens[self._pc].line
        return 0

    def _fail(self, message: str, line: int) -> None:
        with self._cond:
            self._state = ScriptState.ERROR
            self._error_message = message
            self._error_line = line
        self._log(f"Script error: {message}")

    def _wait_for_worker(self, action: str) -> None:
        # caller holds self._cond
        if self._state in (ScriptState.RUNNING, ScriptState.PAUSED):
            raise RuntimeError(f"Cannot {action} while a script is running")
        if self._worker_active and self._worker_thread is threading.current_thread():
            raise RuntimeError(f"Cannot {action} from inside a running script")
        while self._worker_active:
            self._cond.wait(PAUSE_POLL_SECONDS)

    def _release_all(self) -> None:
        try:
            self._backend.release_all()
            self._backend.consumer_release_all()
        except DuckyError as e:
            self._log(f"Releasing keys failed: {e}")

    def _notify(self) -> None:
        callback = self._status_callback
        if callback is not None:
            callback(self.status())

    def _log(self, msg: str) -> None:
        if self._logger:
            self._logger(msg)
