from __future__ import annotations

import pytest

from chip8.constants import NO_KEY
from chip8.keypad import KEY_MAP, KeyEvent, Keypad


def test_get_key() -> None:
    keypad = Keypad()
    keypad.keys[2] = True

    assert keypad.get_key(2)
    assert not keypad.get_key(1)


def test_wait_for_keypress() -> None:
    keypad = Keypad()
    assert keypad.wait_for_keypress() == NO_KEY
    assert keypad.waiting_for_keypress
    assert keypad.wait_for_keypress() == NO_KEY

    keypad.last_key_pressed = 1
    assert keypad.wait_for_keypress() == 1
    assert not keypad.waiting_for_keypress


def test_wait_resolves_from_event() -> None:
    keypad = Keypad()
    keypad.wait_for_keypress()
    assert keypad.handle_event(KeyEvent("v", pressed=True))
    assert keypad.wait_for_keypress() == 0xF

    # A fresh wait ignores the earlier press
    assert keypad.wait_for_keypress() == NO_KEY


def test_key_release_does_not_resolve_wait() -> None:
    keypad = Keypad()
    keypad.wait_for_keypress()
    keypad.handle_event(KeyEvent("x", pressed=False))
    assert keypad.wait_for_keypress() == NO_KEY


def test_handle_event_sets_and_clears() -> None:
    keypad = Keypad()
    assert keypad.handle_event(KeyEvent("Q", pressed=True))
    assert keypad.get_key(0x4)
    assert keypad.pressed_keys() == (0x4,)

    keypad.handle_event(KeyEvent("q", pressed=False))
    assert not keypad.get_key(0x4)
    assert keypad.pressed_keys() == ()


def test_unmapped_key_is_ignored() -> None:
    keypad = Keypad()
    assert not keypad.handle_event(KeyEvent("p", pressed=True))
    assert keypad.pressed_keys() == ()
    assert keypad.last_key_pressed == NO_KEY


def test_key_map_covers_all_sixteen_keys() -> None:
    assert sorted(KEY_MAP.values()) == list(range(16))
    assert KEY_MAP["1"] == 0x1
    assert KEY_MAP["4"] == 0xC
    assert KEY_MAP["x"] == 0x0
    assert KEY_MAP["v"] == 0xF


def test_custom_key_map() -> None:
    keypad = Keypad(key_map={"up": 0x2})
    assert keypad.handle_event(KeyEvent("UP", pressed=True))
    assert keypad.get_key(0x2)


def test_out_of_range_key_index() -> None:
    keypad = Keypad()
    with pytest.raises(IndexError):
        keypad.press(16)
    with pytest.raises(IndexError):
        keypad.get_key(-1)


def test_reset() -> None:
    keypad = Keypad()
    keypad.press(3)
    keypad.wait_for_keypress()
    keypad.reset()
    assert keypad.pressed_keys() == ()
    assert not keypad.waiting_for_keypress
    assert keypad.last_key_pressed == NO_KEY
