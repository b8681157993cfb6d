import pytest

from ducky import keymap
from ducky.errors import ParseError
from ducky.tokenizer import parse_line
from ducky.tokens import (
    CallToken,
    ConsumerKeyToken,
    DefaultDelayToken,
    DelayToken,
    ElseToken,
    EndWhileToken,
    FunctionToken,
    IfToken,
    KeyComboToken,
    KeyToken,
    LedWaitToken,
    MouseClickToken,
    MouseMoveToken,
    MouseScrollToken,
    OsDetectToken,
    RemToken,
    RepeatToken,
    StopToken,
    StringLnToken,
    StringToken,
    VarToken,
)


def test_blank_and_comment_lines_are_rem():
    assert isinstance(parse_line(""), RemToken)
    assert isinstance(parse_line("   \t\r\n"), RemToken)
    assert parse_line("REM opens notepad") == RemToken("opens notepad")
    assert isinstance(parse_line("REM"), RemToken)


def test_string_keeps_text_after_keyword():
    assert parse_line("STRING Hello, World!\r\n") == StringToken("Hello, World!")
    assert parse_line("STRINGLN echo $x") == StringLnToken("echo $x")
    assert parse_line("STRING") == StringToken("")


@pytest.mark.parametrize(
    "line,expected",
    [("DELAY 250", 250), ("DELAY -5", 0), ("DELAY abc", 0), ("DELAY 12ms", 12)],
)
def test_delay_is_never_negative(line, expected):
    assert parse_line(line) == DelayToken(expected)


def test_default_delay_has_two_spellings():
    assert parse_line("DEFAULT_DELAY 100") == DefaultDelayToken(100)
    assert parse_line("DEFAULTDELAY 100") == DefaultDelayToken(100)


def test_repeat_count_defaults_to_one():
    assert parse_line("REPEAT 3") == RepeatToken(3)
    assert parse_line("REPEAT 0") == RepeatToken(1)
    assert parse_line("REPEAT -2") == RepeatToken(1)


def test_flow_control_keywords():
    assert parse_line("IF $x == 1") == IfToken("$x == 1")
    assert parse_line("ELSE") == ElseToken()
    assert parse_line("END_WHILE") == EndWhileToken()
    assert parse_line("VAR $x = 1") == VarToken("$x = 1")
    assert parse_line("FUNCTION greet ") == FunctionToken("greet")
    assert parse_line("CALL greet") == CallToken("greet")
    assert parse_line("STOP") == StopToken()
    assert parse_line("OS_DETECT") == OsDetectToken()
    assert parse_line("LED_WAIT CAPS ON") == LedWaitToken("CAPS ON")


def test_keywords_are_case_sensitive():
    with pytest.raises(ParseError):
        parse_line("string hello")


def test_single_key_names_are_case_insensitive():
    assert parse_line("ENTER") == KeyToken(keymap.KEY_ENTER, "ENTER")
    assert parse_line("enter").keycode == keymap.KEY_ENTER
    assert parse_line("F5").keycode == keymap.KEY_F1 + 4
    assert parse_line("a").keycode == keymap.KEY_A


def test_modifier_combo():
    token = parse_line("CTRL ALT DELETE")
    assert token == KeyComboToken((keymap.KEY_L_CTRL, keymap.KEY_L_ALT, keymap.KEY_DELETE))


def test_combo_with_printable_last_key():
    token = parse_line("GUI r")
    assert token == KeyComboToken((keymap.KEY_L_GUI, keymap.letter("r")))


def test_lone_modifier_is_a_key():
    token = parse_line("CTRL")
    assert token == KeyToken(keymap.KEY_L_CTRL, "CTRL")
    assert token.describe() == "CTRL"


def test_combo_with_unknown_key_is_unknown_command():
    with pytest.raises(ParseError) as exc:
        parse_line("CTRL FOO")
    assert exc.value.message == "Unknown command: CTRL FOO"


def test_unknown_command():
    with pytest.raises(ParseError) as exc:
        parse_line("FOO")
    assert exc.value.message == "Unknown command: FOO"


def test_mouse_arguments_are_clamped():
    assert parse_line("MOUSE_MOVE 300 -300") == MouseMoveToken(127, -128)
    assert parse_line("MOUSE_MOVE 5") == MouseMoveToken(5, 0)
    assert parse_line("MOUSE_SCROLL -500") == MouseScrollToken(-128)
    assert parse_line("MOUSE_CLICK RIGHT") == MouseClickToken("RIGHT")


def test_consumer_key():
    assert parse_line("CONSUMER_KEY VOLUME_UP") == ConsumerKeyToken("VOLUME_UP")
