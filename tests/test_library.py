from ducky.library import describe_script, list_scripts


def test_lists_scripts_sorted(tmp_path):
    for name in ("b.ds", "A.ds", "notes.txt", "tool.py"):
        (tmp_path / name).write_text("STRING x\nENTER\n", encoding="utf-8")
    (tmp_path / "folder.ds").mkdir()

    names = [p.name for p in list_scripts(tmp_path)]
    assert names == ["A.ds", "b.ds", "notes.txt"]


def test_limit(tmp_path):
    for i in range(5):
        (tmp_path / f"s{i}.ds").write_text("ENTER\n", encoding="utf-8")
    assert len(list_scripts(tmp_path, limit=3)) == 3


def test_creates_missing_directory(tmp_path):
    target = tmp_path / "scripts"
    assert list_scripts(target) == []
    assert target.is_dir()


def test_describe_script(tmp_path):
    path = tmp_path / "hello.ds"
    path.write_text("REM x\nSTRING hi\nENTER\n", encoding="utf-8")
    info = describe_script(path)
    assert info.name == "hello.ds"
    assert info.line_count == 3
    assert info.size == path.stat().st_size
    assert str(info).startswith("hello.ds (3 lines")
