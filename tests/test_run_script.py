import json

import pytest

import run_script


@pytest.fixture
def settings_path(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"scripts_dir": str(tmp_path / "scripts")}), encoding="utf-8")
    return path


def write_script(tmp_path, text, name="test.ds"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def run_cli(script, settings_path, *extra):
    return run_script.main(
        [str(script), "--dry-run", "--no-hotkeys", "--settings", str(settings_path), *extra]
    )


def test_dry_run_completes(tmp_path, settings_path, capsys):
    script = write_script(tmp_path, "STRING Hello\nDELAY 100\nENTER\n")
    assert run_cli(script, settings_path, "--speed", "100") == 0
    out = capsys.readouterr().out
    assert "Typed: 'Hello'" in out
    assert "[Done]" in out
    assert "[Running] STRING Hello" in out


def test_parse_error_exits_with_failure(tmp_path, settings_path, capsys):
    script = write_script(tmp_path, "STRING ok\nFOO\n")
    assert run_cli(script, settings_path) == 1
    assert "Line 2: Unknown command: FOO" in capsys.readouterr().out


def test_unmatched_function_exits_with_failure(tmp_path, settings_path, capsys):
    script = write_script(tmp_path, "FUNCTION f\nSTRING a\n")
    assert run_cli(script, settings_path) == 1
    assert "Line 1: Unmatched FUNCTION 'f' at line 1" in capsys.readouterr().out


def test_runtime_error_exits_with_failure(tmp_path, settings_path, capsys):
    script = write_script(tmp_path, "IF $x == 1\nSTRING a\n")
    assert run_cli(script, settings_path, "--quiet") == 1
    assert "Unmatched IF at line 1" in capsys.readouterr().out


def test_missing_script_is_usage_error(tmp_path, settings_path):
    assert run_cli(tmp_path / "nope.ds", settings_path) == 2


def test_no_script_is_usage_error(settings_path):
    assert run_script.main(["--settings", str(settings_path)]) == 2


def test_invalid_speed_is_usage_error(tmp_path, settings_path):
    script = write_script(tmp_path, "STRING a\n")
    assert run_cli(script, settings_path, "--speed", "0") == 2


def test_list_scripts(tmp_path, settings_path, capsys):
    scripts = tmp_path / "scripts"
    scripts.mkdir()
    write_script(scripts, "ENTER\n", name="one.ds")
    assert run_script.main(["--settings", str(settings_path), "--list"]) == 0
    assert "one.ds (1 lines" in capsys.readouterr().out


def test_list_empty_directory(tmp_path, settings_path, capsys):
    assert run_script.main(["--settings", str(settings_path), "--list", str(tmp_path / "empty")]) == 0
    assert "No scripts in" in capsys.readouterr().out


def test_list_uses_scripts_dir_relative_to_settings(tmp_path, capsys):
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    settings_path = config_dir / "settings.json"
    settings_path.write_text(json.dumps({"scripts_dir": "payloads", "stop_hotkey": ""}), encoding="utf-8")
    scripts = config_dir / "payloads"
    scripts.mkdir()
    write_script(scripts, "ENTER\n", name="two.ds")

    assert run_script.main(["--settings", str(settings_path), "--list"]) == 0
    out = capsys.readouterr().out
    assert "Settings: stop_hotkey is empty, using the default" in out
    assert "two.ds (1 lines" in out
