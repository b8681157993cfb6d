"""
Script library: finds runnable scripts in a directory.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

from .loader import count_lines

MAX_FILES = 64
SCRIPT_SUFFIXES = (".ds", ".txt")
NAME_LEN = 64


@dataclass(frozen=True)
class ScriptInfo:
    path: Path
    name: str
    size: int
    line_count: int

    def __str__(self) -> str:
        return f"{self.name} ({self.line_count} lines, {self.size} bytes)"


def list_scripts(directory: Union[str, Path], limit: int = MAX_FILES) -> List[Path]:
    """Return script files in ``directory`` sorted by name.

    The directory is created when it does not exist yet. Names longer than
    NAME_LEN - 1 characters are skipped.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    scripts = [
        p for p in directory.iterdir()
        if p.is_file() and p.suffix.lower() in SCRIPT_SUFFIXES and len(p.name) < NAME_LEN
    ]
    scripts.sort(key=lambda p: p.name.lower())
    return scripts[:limit]


def describe_script(path: Union[str, Path]) -> ScriptInfo:
    path = Path(path)
    try:
        size = path.stat().st_size
    except OSError:
        size = 0
    return ScriptInfo(path=path, name=path.name, size=size, line_count=count_lines(path))
