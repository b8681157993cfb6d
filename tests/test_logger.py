from logger import StatusLogger


def test_history_is_bounded():
    logger = StatusLogger(max_entries=3)
    for i in range(5):
        logger.log_info(f"message {i}")
    assert [e.message for e in logger.get_all_logs()] == ["message 2", "message 3", "message 4"]


def test_levels_and_lines():
    logger = StatusLogger()
    logger.log_warning("slow host")
    logger.log_error("Unmatched IF at line 4", line=4)
    errors = logger.get_errors()
    assert len(errors) == 1
    assert str(errors[0]).endswith("ERROR: Unmatched IF at line 4 (line 4)")


def test_listener_sees_new_entries():
    logger = StatusLogger()
    seen = []
    logger.register_listener(seen.append)
    logger.update_status("Running hello.ds")
    assert logger.get_current_status() == "Running hello.ds"
    assert [e.message for e in seen] == ["Running hello.ds"]


def test_export(tmp_path):
    logger = StatusLogger()
    logger.log_info("Script started")
    target = tmp_path / "log.txt"
    assert logger.export_logs_to_file(str(target))
    content = target.read_text(encoding="utf-8")
    assert content.startswith("Ducky Script Runner - Log Export")
    assert "INFO: Script started" in content


def test_export_to_bad_path(tmp_path):
    logger = StatusLogger()
    assert not logger.export_logs_to_file(str(tmp_path / "missing" / "log.txt"))
