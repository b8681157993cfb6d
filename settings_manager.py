"""Persistence utilities for Ducky script runner settings."""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from hotkey_manager import HotkeyManager
from models import ApplicationSettings


class SettingsManager:
    """Loads, checks and saves the runner settings file.

    A file that cannot be parsed is moved aside to ``settings.bak`` and the
    defaults are used. A file that parses but holds unusable values keeps
    its other values; each repaired field is listed in ``warnings``.
    """

    def __init__(self, storage_path: Optional[Path] = None) -> None:
        package_root = Path(__file__).resolve().parent
        self._storage_path = Path(storage_path) if storage_path else package_root / "settings.json"
        self._last_error: Optional[str] = None
        self._warnings: List[str] = []

    @property
    def storage_path(self) -> Path:
        """Absolute path to the settings file."""
        return self._storage_path

    @property
    def last_error(self) -> Optional[str]:
        """Why the last load fell back to defaults, if it did."""
        return self._last_error

    @property
    def warnings(self) -> List[str]:
        """Fields the last load replaced with their defaults."""
        return list(self._warnings)

    def load(self) -> ApplicationSettings:
        """Load settings from disk, returning defaults if the file is missing or corrupt."""
        self._last_error = None
        self._warnings = []
        path = self.storage_path
        if not path.exists():
            return ApplicationSettings()

        try:
            raw_data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(raw_data, dict):
                raise ValueError("Settings file has invalid structure")
            settings = ApplicationSettings.from_dict(raw_data)
        except (OSError, ValueError, TypeError) as e:
            self._last_error = f"{path.name}: {e}"
            backup_path = path.with_suffix(".bak")
            try:
                path.replace(backup_path)
            except OSError as backup_error:
                self._last_error += f" (backup failed: {backup_error})"
            return ApplicationSettings()

        return self._check(settings)

    def save(self, settings: ApplicationSettings) -> None:
        """Persist settings atomically to disk."""
        path = self.storage_path
        path.parent.mkdir(parents=True, exist_ok=True)

        tmp_path = path.with_suffix(".tmp")
        payload = json.dumps(settings.to_dict(), indent=2, ensure_ascii=False)
        tmp_path.write_text(payload, encoding="utf-8")
        tmp_path.replace(path)

    def resolve_scripts_dir(self, settings: ApplicationSettings) -> Path:
        """Script directory; a relative one is taken from beside the settings file."""
        directory = Path(settings.scripts_dir).expanduser()
        if directory.is_absolute():
            return directory
        return self.storage_path.parent / directory

    def _check(self, settings: ApplicationSettings) -> ApplicationSettings:
        defaults = ApplicationSettings()

        if not settings.scripts_dir.strip():
            self._warnings.append("scripts_dir is empty")
            settings = replace(settings, scripts_dir=defaults.scripts_dir)
        elif self.resolve_scripts_dir(settings).is_file():
            self._warnings.append(f"scripts_dir {settings.scripts_dir} is a file")
            settings = replace(settings, scripts_dir=defaults.scripts_dir)

        if not settings.pause_hotkey.strip():
            self._warnings.append("pause_hotkey is empty")
            settings = replace(settings, pause_hotkey=defaults.pause_hotkey)
        if not settings.stop_hotkey.strip():
            self._warnings.append("stop_hotkey is empty")
            settings = replace(settings, stop_hotkey=defaults.stop_hotkey)

        # Same conversion the listener uses, so "ctrl+F8" and "Control+f8" collide
        hotkeys = HotkeyManager(settings.pause_hotkey, settings.stop_hotkey)
        hotkeys.register_pause_callback(_noop)
        hotkeys.register_stop_callback(_noop)
        try:
            hotkeys.build_hotkey_map()
        except ValueError as e:
            self._warnings.append(f"hotkeys: {e}")
            settings = replace(settings, pause_hotkey=defaults.pause_hotkey, stop_hotkey=defaults.stop_hotkey)

        return settings


def _noop() -> None:
    pass
