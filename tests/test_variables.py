import pytest

from ducky.variables import MAX_VARS, VariableTable, evaluate_condition, parse_assignment, substitute


@pytest.fixture
def table():
    t = VariableTable()
    t.set("X", "42")
    t.set("name", "duck")
    return t


def test_plain_and_braced_substitution_agree(table):
    assert substitute("$X", table) == "42"
    assert substitute("${X}", table) == "42"
    assert substitute("v=${X}ms", table) == "v=42ms"


def test_unset_variable_is_empty(table):
    assert substitute("[$missing]", table) == "[]"
    assert "$" not in substitute("hello $nobody there", table)


def test_name_stops_at_non_name_character(table):
    assert substitute("$name.txt", table) == "duck.txt"


def test_table_is_bounded():
    t = VariableTable()
    for i in range(MAX_VARS):
        assert t.set(f"v{i}", str(i))
    assert not t.set("overflow", "x")
    assert t.set("v0", "updated")
    assert t.get("v0") == "updated"
    assert len(t) == MAX_VARS


def test_values_are_truncated():
    t = VariableTable()
    t.set("long", "x" * 500)
    assert len(t.get("long")) == 127


@pytest.mark.parametrize(
    "condition,expected",
    [
        ("TRUE", True),
        ("false", False),
        ("$X == 42", True),
        ("$X == 41", False),
        ("$X != 41", True),
        ("$missing == ", True),
        ("$X", True),
        ("0", False),
        ("abc", False),
    ],
)
def test_conditions(table, condition, expected):
    assert evaluate_condition(condition, table) is expected


def test_parse_assignment():
    assert parse_assignment("$x = 1") == ("x", "1")
    assert parse_assignment("  $greeting=hello $x") == ("greeting", "hello $x")
    assert parse_assignment("x = 1") is None
    assert parse_assignment("$x 1") is None
    assert parse_assignment("$ = 1") is None
