"""
Ducky package: DuckyScript tokenizer, loader and threaded interpreter.

Key parts
---------
- keymap:       HID usage codes, key-name and consumer-key tables
- tokenizer:    one line of script text -> one token
- loader:       whole script -> Program, FUNCTION block discovery
- variables:    variable table, ``$name`` substitution, IF/WHILE conditions
- engine:       stack-based interpreter with pause/resume/stop
- runner:       worker thread around the engine
- backends:     where keystrokes go (pynput, or a recorder for dry runs)
- library:      script file discovery
"""

from .backends import HidBackend, PynputBackend, RecordingBackend, create_backend
from .engine import ScriptEngine, adjusted_delay
from .errors import (
    BackendError,
    DuckyError,
    ParseError,
    ScriptLoadError,
    ScriptRuntimeError,
    UnmatchedFunctionError,
)
from .library import ScriptInfo, describe_script, list_scripts
from .loader import find_functions, load_script_file, parse_script, parse_text
from .runner import ScriptRunner
from .script_model import ExecutionStatus, Function, Program, ScriptState
from .tokenizer import parse_line

__version__ = "1.0.0"

__all__ = [
    "BackendError",
    "DuckyError",
    "ExecutionStatus",
    "Function",
    "HidBackend",
    "ParseError",
    "Program",
    "PynputBackend",
    "RecordingBackend",
    "ScriptEngine",
    "ScriptInfo",
    "ScriptLoadError",
    "ScriptRunner",
    "ScriptRuntimeError",
    "ScriptState",
    "UnmatchedFunctionError",
    "adjusted_delay",
    "create_backend",
    "describe_script",
    "find_functions",
    "list_scripts",
    "load_script_file",
    "parse_line",
    "parse_script",
    "parse_text",
]
