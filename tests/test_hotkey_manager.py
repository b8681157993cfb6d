import pytest

from hotkey_manager import HotkeyManager


def test_function_keys_and_modifiers():
    manager = HotkeyManager()
    assert manager._to_pynput_hotkey("F8") == "<f8>"
    assert manager._to_pynput_hotkey("ctrl+shift+x") == "<ctrl>+<shift>+x"
    assert manager._to_pynput_hotkey("Win + P") == "<cmd>+p"


def test_empty_hotkey_is_rejected():
    with pytest.raises(ValueError):
        HotkeyManager()._to_pynput_hotkey("")


def test_hotkey_map_uses_registered_callbacks():
    manager = HotkeyManager("F8", "F9")
    pause = lambda: None
    stop = lambda: None
    manager.register_pause_callback(pause)
    manager.register_stop_callback(stop)
    assert manager.build_hotkey_map() == {"<f8>": pause, "<f9>": stop}


def test_same_key_for_pause_and_stop_is_rejected():
    messages = []
    manager = HotkeyManager("F8", "f8", logger=messages.append)
    manager.register_pause_callback(lambda: None)
    manager.register_stop_callback(lambda: None)
    assert not manager.enable_hotkeys()
    assert messages and "Invalid hotkey" in messages[0]


def test_nothing_to_register():
    manager = HotkeyManager(logger=lambda msg: None)
    assert not manager.enable_hotkeys()
    assert not manager.is_enabled()


def test_update_hotkeys_while_disabled():
    manager = HotkeyManager()
    assert manager.update_hotkeys("F10", "F11")
    assert manager.get_pause_hotkey() == "F10"
    assert manager.get_stop_hotkey() == "F11"
