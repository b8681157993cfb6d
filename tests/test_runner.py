import threading
import time

from ducky.backends import RecordingBackend
from ducky.engine import ScriptEngine
from ducky.loader import parse_text
from ducky.runner import ScriptRunner
from ducky.script_model import ScriptState


def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return False


def make_runner(source, backend, fake_time=None, logs=None):
    kwargs = {}
    if fake_time is not None:
        kwargs = {"sleep": fake_time.sleep, "clock": fake_time.clock}
    engine = ScriptEngine(backend, **kwargs)
    engine.load(parse_text(source))
    return ScriptRunner(engine, logger=logs.append if logs is not None else None)


def test_runs_to_completion(backend, fake_time):
    logs = []
    runner = make_runner("STRING hi\nDELAY 10\n", backend, fake_time, logs)
    done = []
    runner.on_done(lambda ok, msg: done.append((ok, msg)))

    assert runner.start()
    assert runner.join(timeout=2.0)
    assert done == [(True, "Completed")]
    assert backend.typed_text() == "hi"
    assert "Script started" in logs

    statuses = runner.drain_status()
    assert statuses[0].state == ScriptState.RUNNING
    assert statuses[-1].state == ScriptState.DONE
    assert runner.drain_status() == []


def test_reports_runtime_error(backend, fake_time):
    runner = make_runner("IF $x == 1\nSTRING a\n", backend, fake_time)
    done = []
    runner.on_done(lambda ok, msg: done.append((ok, msg)))
    runner.start()
    runner.join(timeout=2.0)
    assert done == [(False, "Unmatched IF at line 1")]


def test_start_refuses_unloaded_engine(backend):
    runner = ScriptRunner(ScriptEngine(backend))
    assert not runner.start()
    assert runner.join(timeout=0.1)


def test_start_refuses_second_worker(backend):
    runner = make_runner("LED_WAIT CAPS ON\n", backend)
    assert runner.start()
    assert not runner.start()
    assert wait_for(lambda: runner.engine.state == ScriptState.RUNNING)
    runner.stop()
    assert not runner.is_running()


def test_on_status_runs_on_worker_thread(backend, fake_time):
    runner = make_runner("STRING a\n", backend, fake_time)
    threads = set()
    runner.on_status(lambda status: threads.add(threading.current_thread()))
    runner.start()
    runner.join(timeout=2.0)
    assert threading.main_thread() not in threads


def test_toggle_pause():
    backend = RecordingBackend()
    runner = make_runner("LED_WAIT CAPS ON\nSTRING b\n", backend)
    runner.start()
    engine = runner.engine
    assert wait_for(lambda: engine.state == ScriptState.RUNNING)

    runner.toggle_pause()
    assert engine.state == ScriptState.PAUSED
    runner.toggle_pause()
    assert engine.state == ScriptState.RUNNING

    runner.stop()
    assert engine.state == ScriptState.DONE
    assert not runner.is_running()
    assert backend.typed_text() == ""
