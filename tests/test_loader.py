import pytest

from ducky.errors import ScriptLoadError, UnmatchedFunctionError
from ducky.loader import MAX_FUNCS, MAX_TOKENS, count_lines, find_functions, load_script_file, parse_text
from ducky.tokens import DelayToken, StringToken


def test_hello_delay_produces_two_tokens():
    program = parse_text("STRING Hello\nDELAY 100\n")
    assert program.tokens == [StringToken("Hello", line=1), DelayToken(100, line=2)]


def test_line_numbers_count_blank_and_comment_lines():
    source = "REM header\n\nSTRING a\n   \nREM mid\nENTER\nDELAY 5\n"
    program = parse_text(source)
    assert len(program) == 3
    assert [t.line for t in program.tokens] == [3, 6, 7]
    assert program.line_count == 7


def test_parse_error_carries_line_number():
    with pytest.raises(ScriptLoadError) as exc:
        parse_text("STRING ok\n\nFOO\n")
    assert exc.value.line == 3
    assert exc.value.message == "Unknown command: FOO"
    assert str(exc.value) == "Line 3: Unknown command: FOO"


def test_token_limit():
    parse_text("ENTER\n" * MAX_TOKENS)
    with pytest.raises(ScriptLoadError) as exc:
        parse_text("ENTER\n" * (MAX_TOKENS + 1))
    assert exc.value.line == MAX_TOKENS + 1
    assert "max 1024" in exc.value.message


def test_comments_do_not_count_towards_token_limit():
    program = parse_text("REM x\n" * 10 + "ENTER\n" * MAX_TOKENS)
    assert len(program) == MAX_TOKENS


def test_find_functions_records_body_bounds():
    program = parse_text("FUNCTION f\nSTRING hi\nEND_FUNCTION\nCALL f\n")
    functions = find_functions(program.tokens)
    assert len(functions) == 1
    assert functions[0].name == "f"
    assert functions[0].body_start == 1
    assert functions[0].body_end == 2


def test_unmatched_function():
    program = parse_text("STRING a\nFUNCTION f\nSTRING hi\n")
    with pytest.raises(UnmatchedFunctionError) as exc:
        find_functions(program.tokens)
    assert exc.value.line == 2
    assert exc.value.message == "Unmatched FUNCTION 'f' at line 2"


def test_too_many_functions():
    source = "".join(f"FUNCTION f{i}\nEND_FUNCTION\n" for i in range(MAX_FUNCS + 1))
    with pytest.raises(ScriptLoadError) as exc:
        find_functions(parse_text(source).tokens)
    assert exc.value.message == "Too many functions (max 16)"


def test_load_script_file(tmp_path):
    path = tmp_path / "hello.ds"
    path.write_text("REM hi\nSTRING Hello\n", encoding="utf-8")
    program = load_script_file(path)
    assert program.source == str(path)
    assert program.tokens == [StringToken("Hello", line=2)]
    assert count_lines(path) == 2


def test_load_missing_file(tmp_path):
    with pytest.raises(ScriptLoadError) as exc:
        load_script_file(tmp_path / "missing.ds")
    assert exc.value.message == "Cannot open file"
    assert count_lines(tmp_path / "missing.ds") == 0
