"""Tests for the CHIP-8 keypad."""

import pytest

from chip8emu.chip8.keyboard import KEYPAD_LAYOUT, Chip8Keypad


def test_press_and_release() -> None:
    keypad = Chip8Keypad()
    keypad.press(0xA)
    assert keypad.is_pressed(0xA)
    assert keypad.first_pressed() == 0xA

    keypad.release(0xA)
    assert not keypad.is_pressed(0xA)
    assert keypad.first_pressed() is None


def test_first_pressed_returns_lowest_key() -> None:
    keypad = Chip8Keypad()
    keypad.press(0xE)
    keypad.press(0x3)

    assert keypad.first_pressed() == 0x3


def test_validation() -> None:
    keypad = Chip8Keypad()
    with pytest.raises(ValueError):
        keypad.press(16)
    with pytest.raises(ValueError):
        keypad.set_keys([True] * 15)

    keypad.set_keys([True] * 16)
    assert all(keypad.get_keys())
    keypad.clear()
    assert not any(keypad.get_keys())


def test_layout_covers_all_sixteen_keys() -> None:
    assert sorted(KEYPAD_LAYOUT.values()) == list(range(16))
    assert KEYPAD_LAYOUT["x"] == 0x0
    assert KEYPAD_LAYOUT["4"] == 0xC
