"""
Worker-thread wrapper around ScriptEngine.

The engine's ``run()`` blocks, so the owning thread (CLI loop or hotkey
listener) starts it here and observes progress through callbacks or the
status queue.
"""

from __future__ import annotations

import queue
import threading
from typing import Callable, List, Optional

from .engine import ScriptEngine
from .script_model import ExecutionStatus, ScriptState


class ScriptRunner:
    """
    Runs a loaded ScriptEngine on a daemon thread.

    Status snapshots are forwarded to the ``on_status`` callback (on the
    worker thread) and also pushed onto a queue that the owning thread can
    drain at its own pace. ``on_done(ok, message)`` fires once per run.
    """

    def __init__(self, engine: ScriptEngine, logger: Optional[Callable[[str], None]] = None):
        self._engine = engine
        self._logger = logger
        self._thread: Optional[threading.Thread] = None
        self._queue: "queue.Queue[ExecutionStatus]" = queue.Queue()
        self._on_status: Optional[Callable[[ExecutionStatus], None]] = None
        self._on_done: Optional[Callable[[bool, str], None]] = None
        engine.set_status_callback(self._handle_status)

    @property
    def engine(self) -> ScriptEngine:
        return self._engine

    def on_status(self, cb: Callable[[ExecutionStatus], None]) -> None:
        self._on_status = cb

    def on_done(self, cb: Callable[[bool, str], None]) -> None:
        self._on_done = cb

    def start(self) -> bool:
        """
        Start executing the loaded script in a separate thread.

        Returns:
            bool: True if a worker was started, False if one is already
            running or the engine has nothing runnable loaded.
        """
        if self.is_running():
            self._log("Script already running")
            return False
        if self._engine.state not in (ScriptState.LOADED, ScriptState.PAUSED):
            self._log(f"Cannot start from state {self._engine.state.label}")
            return False
        self._thread = threading.Thread(target=self._worker, daemon=True)
        self._thread.start()
        self._log("Script started")
        return True

    def pause(self) -> None:
        if self._engine.state == ScriptState.RUNNING:
            self._log("Script paused")
        self._engine.pause()

    def resume(self) -> None:
        if self._engine.state == ScriptState.PAUSED:
            self._log("Script resumed")
        self._engine.resume()

    def toggle_pause(self) -> None:
        state = self._engine.state
        if state == ScriptState.RUNNING:
            self.pause()
        elif state == ScriptState.PAUSED:
            self.resume()

    def stop(self, timeout: float = 2.0) -> None:
        """Stop the script and wait briefly for the worker to release its keys."""
        if self._engine.state in (ScriptState.RUNNING, ScriptState.PAUSED):
            self._log("Script stopped")
        self._engine.stop()
        if self._thread and self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the worker. Returns True once it has finished."""
        if self._thread is None:
            return True
        self._thread.join(timeout=timeout)
        return not self._thread.is_alive()

    def is_running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def drain_status(self) -> List[ExecutionStatus]:
        """Return every snapshot queued since the last call."""
        items: List[ExecutionStatus] = []
        while True:
            try:
                items.append(self._queue.get_nowait())
            except queue.Empty:
                return items

    def _handle_status(self, status: ExecutionStatus) -> None:
        self._queue.put(status)
        if self._on_status:
            self._on_status(status)

    def _worker(self) -> None:
        try:
            self._engine.run()
        except Exception as e:
            self._log(f"Worker crashed: {e}")
            self._finish(False, f"Error: {e}")
            return

        engine = self._engine
        if engine.state == ScriptState.ERROR:
            self._finish(False, engine.error_message)
        else:
            self._finish(True, "Completed")

    def _finish(self, ok: bool, msg: str) -> None:
        self._log(msg)
        if self._on_done:
            self._on_done(ok, msg)

    def _log(self, msg: str) -> None:
        if self._logger:
            self._logger(msg)
