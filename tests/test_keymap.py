from ducky import keymap


def test_printable_characters():
    assert keymap.char_to_keycode("a") == (keymap.KEY_A, False)
    assert keymap.char_to_keycode("A") == (keymap.KEY_A, True)
    assert keymap.char_to_keycode("!") == (keymap.KEY_1, True)
    assert keymap.char_to_keycode("0") == (keymap.KEY_0, False)
    assert keymap.char_to_keycode("\x07") is None


def test_every_printable_ascii_is_mapped():
    for code in range(0x20, 0x7F):
        assert keymap.char_to_keycode(chr(code)) is not None, chr(code)


def test_key_names():
    assert keymap.resolve_keyname("enter") == keymap.KEY_ENTER
    assert keymap.resolve_keyname("F12") == keymap.KEY_F1 + 11
    assert keymap.resolve_keyname("NOPE") == 0


def test_modifiers():
    assert keymap.is_modifier("ctrl")
    assert keymap.modifier_keycode("GUI") == keymap.KEY_L_GUI
    assert not keymap.is_modifier("ENTER")


def test_consumer_keys():
    assert keymap.resolve_consumer_key("volume_up") == 0xE9
    assert keymap.resolve_consumer_key("0xCD") == 0xCD
    assert keymap.resolve_consumer_key("whatever") == 0


def test_mouse_buttons_default_to_left():
    assert keymap.resolve_mouse_button("middle") == keymap.MOUSE_MIDDLE
    assert keymap.resolve_mouse_button("") == keymap.MOUSE_LEFT


def test_led_masks():
    assert keymap.led_mask("caps") == keymap.LED_CAPS
    assert keymap.led_mask("KANA") == 0
