"""
Command line runner for DuckyScript files.

Usage:
    python run_script.py scripts/hello.ds --speed 2
    python run_script.py scripts/hello.ds --dry-run
    python run_script.py --list scripts
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from ducky import (
    BackendError,
    ExecutionStatus,
    RecordingBackend,
    ScriptEngine,
    ScriptLoadError,
    ScriptRunner,
    ScriptState,
    create_backend,
    describe_script,
    list_scripts,
    load_script_file,
)
from hotkey_manager import HotkeyManager
from logger import StatusLogger
from models import ApplicationSettings, BackendKind, RunConfiguration
from settings_manager import SettingsManager

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run a DuckyScript file")
    parser.add_argument("script", nargs="?", help="Path to a .ds script")
    parser.add_argument("--speed", type=float, default=None, help="Delay divisor, e.g. 2 runs twice as fast")
    parser.add_argument("--default-delay", type=int, default=None, help="Milliseconds slept after every command")
    parser.add_argument("--dry-run", action="store_true", help="Record keystrokes instead of sending them")
    parser.add_argument("--no-hotkeys", action="store_true", help="Do not register the pause/stop hotkeys")
    parser.add_argument("--list", metavar="DIR", nargs="?", const="", default=None,
                        help="List scripts in DIR (default: the configured scripts directory)")
    parser.add_argument("--settings", default=None, help="Path to settings.json")
    parser.add_argument("--quiet", action="store_true", help="Only print the final status")
    return parser


def cmd_list(directory: Path) -> int:
    scripts = list_scripts(directory)
    if not scripts:
        print(f"No scripts in {directory}")
        return EXIT_OK
    for path in scripts:
        print(describe_script(path))
    return EXIT_OK


def build_run_configuration(args: argparse.Namespace, settings: ApplicationSettings) -> RunConfiguration:
    """Merge command line overrides over the stored settings.

    Raises:
        ValueError: an override is out of range.
    """
    backend = BackendKind.DRY_RUN if args.dry_run else settings.backend
    return RunConfiguration(
        script_path=Path(args.script),
        speed=args.speed if args.speed is not None else settings.speed.value,
        default_delay_ms=args.default_delay if args.default_delay is not None else settings.default_delay_ms,
        backend=backend,
        hotkeys_enabled=settings.hotkeys_enabled and not args.no_hotkeys,
    )


class _StatusPrinter:
    """Prints a status line whenever the line or state changes."""

    def __init__(self, quiet: bool = False):
        self._quiet = quiet
        self._last = None

    def __call__(self, status: ExecutionStatus) -> None:
        key = (status.current_line, status.state)
        if self._quiet or key == self._last:
            return
        self._last = key
        print(status)


def run(config: RunConfiguration, settings: ApplicationSettings, quiet: bool = False) -> int:
    logger = StatusLogger()
    if not quiet:
        logger.register_listener(print)

    try:
        program = load_script_file(config.script_path)
    except ScriptLoadError as e:
        print(str(e))
        return EXIT_FAILED

    try:
        backend = create_backend(config.backend.value, logger=logger.log_warning)
    except BackendError as e:
        print(f"Backend unavailable: {e}")
        return EXIT_FAILED

    engine = ScriptEngine(backend, logger=logger.log_error)
    if not engine.load(program):
        print(f"Line {engine.error_line}: {engine.error_message}")
        return EXIT_FAILED
    engine.set_speed(config.speed)
    engine.default_delay = config.default_delay_ms

    runner = ScriptRunner(engine, logger=logger.log_info)
    runner.on_status(_StatusPrinter(quiet))

    hotkeys: Optional[HotkeyManager] = None
    if config.hotkeys_enabled:
        hotkeys = HotkeyManager(settings.pause_hotkey, settings.stop_hotkey, logger=logger.log_warning)
        hotkeys.register_pause_callback(runner.toggle_pause)
        hotkeys.register_stop_callback(runner.stop)
        if hotkeys.enable_hotkeys():
            logger.log_info(
                f"{settings.pause_hotkey} pauses/resumes, {settings.stop_hotkey} stops"
            )

    logger.update_status(f"Running {config.script_path.name} ({len(program)} commands)")
    runner.start()
    try:
        while not runner.join(timeout=0.2):
            pass
    except KeyboardInterrupt:
        runner.stop()
    finally:
        if hotkeys is not None:
            hotkeys.disable_hotkeys()

    final = engine.status()
    print(final)
    if isinstance(backend, RecordingBackend) and not quiet:
        print(f"Typed: {backend.typed_text()!r}")
    return EXIT_OK if final.state == ScriptState.DONE else EXIT_FAILED


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings_manager = SettingsManager(Path(args.settings) if args.settings else None)
    settings = settings_manager.load()
    if settings_manager.last_error:
        print(f"Settings reset to defaults: {settings_manager.last_error}")
    for warning in settings_manager.warnings:
        print(f"Settings: {warning}, using the default")

    if args.list is not None:
        return cmd_list(Path(args.list) if args.list else settings_manager.resolve_scripts_dir(settings))

    if not args.script:
        parser.print_usage()
        print("Provide path to a script.")
        return EXIT_USAGE
    path = Path(args.script)
    if not path.exists():
        print(f"File not found: {path}")
        return EXIT_USAGE

    try:
        config = build_run_configuration(args, settings)
    except ValueError as e:
        print(f"Invalid option: {e}")
        return EXIT_USAGE

    return run(config, settings, quiet=args.quiet)


if __name__ == "__main__":
    sys.exit(main())
