from ducky.script_model import ExecutionStatus, Function, Program, ScriptState


def test_state_labels():
    assert ScriptState.LOADED.label == "Ready"
    assert ScriptState.ERROR.label == "ERROR"


def test_status_line_format():
    status = ExecutionStatus(
        state=ScriptState.RUNNING,
        current_line=3,
        total_lines=10,
        current_command="STRING hi",
        led_caps=True,
    )
    assert str(status) == "Line 3 / 10 [Running] STRING hi [N:o C:* S:o]"


def test_error_status_includes_message():
    status = ExecutionStatus(state=ScriptState.ERROR, error_message="Unmatched IF at line 1", error_line=1)
    assert str(status).endswith("Unmatched IF at line 1")


def test_program_function_lookup():
    program = Program(functions=[Function("f", 1, 2)])
    assert program.find_function("f").body_end == 2
    assert program.find_function("g") is None
