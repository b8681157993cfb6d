import pytest

from ducky import keymap
from ducky.backends import RecordingBackend, _linux_led_state, create_backend
from ducky.errors import BackendError


def test_shift_flag_wraps_key_in_shift():
    backend = RecordingBackend()
    backend.press(keymap.KEY_A | keymap.SHIFT_FLAG)
    backend.release(keymap.KEY_A | keymap.SHIFT_FLAG)
    assert backend.events == [
        ("press", keymap.KEY_L_SHIFT),
        ("press", keymap.KEY_A),
        ("release", keymap.KEY_A),
        ("release", keymap.KEY_L_SHIFT),
    ]
    assert backend.held == set()


def test_unprintable_characters_are_skipped():
    backend = RecordingBackend()
    backend.type_char("é")
    assert backend.events == []


def test_caps_toggle_simulation():
    backend = RecordingBackend(toggle_caps_on_press=True)
    backend.press(keymap.KEY_CAPS_LOCK)
    assert backend.led_state() == keymap.LED_CAPS
    backend.press(keymap.KEY_CAPS_LOCK)
    assert backend.led_state() == 0


def test_create_backend_by_name():
    assert isinstance(create_backend("dry_run"), RecordingBackend)
    assert isinstance(create_backend("dry-run"), RecordingBackend)
    with pytest.raises(BackendError):
        create_backend("serial")


def test_linux_led_state_reads_sysfs(tmp_path):
    for name, value in (("input0::capslock", "1"), ("input0::numlock", "0"), ("input0::scrolllock", "1")):
        (tmp_path / name).mkdir()
        (tmp_path / name / "brightness").write_text(value + "\n")
    assert _linux_led_state(tmp_path) == keymap.LED_CAPS | keymap.LED_SCROLL
    assert _linux_led_state(tmp_path / "missing") == 0


def test_unshifted_character_lookup_for_pynput():
    from ducky.backends import _HID_TO_CHAR

    assert _HID_TO_CHAR[keymap.KEY_A] == "a"
    assert _HID_TO_CHAR[keymap.KEY_1] == "1"
    assert _HID_TO_CHAR[keymap.KEY_SLASH] == "/"
    assert keymap.KEY_SPACE not in _HID_TO_CHAR
