"""
Domain models for the Ducky script runner application.
Settings, speed choices and the per-run configuration live here.
"""

from enum import Enum
from dataclasses import dataclass
from pathlib import Path
from typing import List, Dict, Any


class SpeedSetting(Enum):
    """Speed multipliers offered to the user. 2x halves every delay."""
    HALF = 0.5
    NORMAL = 1.0
    DOUBLE = 2.0
    QUAD = 4.0

    @property
    def label(self) -> str:
        return _SPEED_LABELS[self]

    @staticmethod
    def from_value(value: Any) -> "SpeedSetting":
        """Map a stored number (or a label like "2x") to the nearest setting."""
        if isinstance(value, str):
            value = value.strip().lower().rstrip("x")
        multiplier = float(value)
        return min(SpeedSetting, key=lambda s: abs(s.value - multiplier))


_SPEED_LABELS = {
    SpeedSetting.HALF: "0.5x",
    SpeedSetting.NORMAL: "1x",
    SpeedSetting.DOUBLE: "2x",
    SpeedSetting.QUAD: "4x",
}

DEFAULT_DELAY_CHOICES: List[int] = [0, 50, 100, 250, 500, 1000]


class BackendKind(Enum):
    """Where keystrokes are sent."""
    PYNPUT = "pynput"
    DRY_RUN = "dry_run"


def nearest_default_delay(milliseconds: int) -> int:
    """Snap a delay to the closest offered choice."""
    return min(DEFAULT_DELAY_CHOICES, key=lambda choice: abs(choice - milliseconds))


@dataclass
class RunConfiguration:
    """
    Everything needed to run one script.

    Validated on construction so the runner never starts with a
    nonsensical speed or delay.
    """
    script_path: Path
    speed: float = 1.0
    default_delay_ms: int = 0
    backend: BackendKind = BackendKind.PYNPUT
    hotkeys_enabled: bool = True

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.speed <= 0:
            raise ValueError("Speed must be positive")

        if self.default_delay_ms < 0:
            raise ValueError("Default delay cannot be negative")

    def is_dry_run(self) -> bool:
        return self.backend == BackendKind.DRY_RUN


@dataclass
class ApplicationSettings:
    """Persisted application preferences."""

    scripts_dir: str = "scripts"
    speed: SpeedSetting = SpeedSetting.NORMAL
    default_delay_ms: int = 0
    backend: BackendKind = BackendKind.PYNPUT
    pause_hotkey: str = "F8"
    stop_hotkey: str = "F9"
    hotkeys_enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Serialize settings to primitive types for JSON storage."""
        return {
            "scripts_dir": self.scripts_dir,
            "speed": self.speed.value,
            "default_delay_ms": self.default_delay_ms,
            "backend": self.backend.value,
            "pause_hotkey": self.pause_hotkey,
            "stop_hotkey": self.stop_hotkey,
            "hotkeys_enabled": self.hotkeys_enabled,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ApplicationSettings":
        """Create settings instance from JSON dictionary."""
        return ApplicationSettings(
            scripts_dir=str(data.get("scripts_dir", "scripts") or "scripts"),
            speed=SpeedSetting.from_value(data.get("speed", 1.0) or 1.0),
            default_delay_ms=nearest_default_delay(int(data.get("default_delay_ms", 0) or 0)),
            backend=BackendKind(str(data.get("backend", BackendKind.PYNPUT.value))),
            pause_hotkey=str(data.get("pause_hotkey", "F8")),
            stop_hotkey=str(data.get("stop_hotkey", "F9")),
            hotkeys_enabled=bool(data.get("hotkeys_enabled", True)),
        )
