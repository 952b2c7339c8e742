"""Chip8CPU tests for the random, keypad, timer and memory instruction families."""

from __future__ import annotations

import random
from dataclasses import dataclass, field

import pytest

from chip8emu.chip8.hardware import Chip8Hardware
from chip8emu.cpu.cpu import Chip8CPU, Quirks
from chip8emu.memory import FONT_SET


@dataclass
class DummyComputer:
    hardware: Chip8Hardware = field(default_factory=Chip8Hardware)


def make_cpu(*words: int, quirks: Quirks | None = None) -> Chip8CPU:
    cpu = Chip8CPU(DummyComputer(), quirks=quirks)
    for offset, word in enumerate(words):
        cpu.memory.store16(0x200 + offset * 2, word)
    return cpu


def test_random_is_masked_and_seedable() -> None:
    first = Chip8CPU(DummyComputer(), rng=random.Random(1234))
    second = Chip8CPU(DummyComputer(), rng=random.Random(1234))
    for cpu in (first, second):
        for offset in range(8):
            cpu.memory.store16(0x200 + offset * 2, 0xC00F)
        cpu.execute(8)

    assert first.registers.v[0] == second.registers.v[0]
    assert first.registers.v[0] <= 0x0F


def test_random_with_zero_mask_is_zero() -> None:
    cpu = make_cpu(0xC300)
    cpu.registers.v[3] = 0x55
    cpu.step()
    assert cpu.registers.v[3] == 0


@pytest.mark.parametrize(
    "opcode, pressed, taken",
    [(0xE19E, True, True), (0xE19E, False, False), (0xE1A1, True, False), (0xE1A1, False, True)],
)
def test_key_skips(opcode: int, pressed: bool, taken: bool) -> None:
    cpu = make_cpu(opcode)
    cpu.registers.v[1] = 0xB
    if pressed:
        cpu.keypad.press(0xB)

    cpu.step()

    assert cpu.registers.program_counter == (0x204 if taken else 0x202)


def test_wait_for_key_repeats_until_pressed() -> None:
    cpu = make_cpu(0xF20A)

    cpu.step()
    cpu.step()
    assert cpu.registers.program_counter == 0x200

    cpu.keypad.press(0x7)
    cpu.step()

    assert cpu.registers.v[2] == 0x7
    assert cpu.registers.program_counter == 0x202


def test_timer_registers() -> None:
    cpu = make_cpu(0x6120, 0xF115, 0xF118, 0xF207)

    cpu.execute(3)
    assert cpu.timers.delay == 0x20
    assert cpu.timers.sound == 0x20

    cpu.timers.tick()
    cpu.step()
    assert cpu.registers.v[2] == 0x1F


def test_add_to_index_wraps_without_flag() -> None:
    cpu = make_cpu(0xF31E)
    cpu.registers.index = 0xFFE
    cpu.registers.v[3] = 0x05
    cpu.registers.v[0xF] = 0x42

    cpu.step()

    assert cpu.registers.index == 0x003
    assert cpu.registers.v[0xF] == 0x42


def test_font_address_instruction() -> None:
    cpu = make_cpu(0xF429)
    cpu.registers.v[4] = 0x0A

    cpu.step()

    assert cpu.registers.index == 0x32
    assert cpu.memory.read_block(cpu.registers.index, 5) == bytes(FONT_SET[0x32:0x37])


def test_bcd() -> None:
    cpu = make_cpu(0xF533)
    cpu.registers.v[5] = 254
    cpu.registers.index = 0x400

    cpu.step()

    assert cpu.memory.read_block(0x400, 3) == bytes([2, 5, 4])


def test_register_dump_and_load() -> None:
    cpu = make_cpu(0xF355, 0x6000, 0x6100, 0xF265)
    cpu.registers.v[0:4] = [0x11, 0x22, 0x33, 0x44]
    cpu.registers.index = 0x400

    cpu.step()
    assert cpu.memory.read_block(0x400, 5) == bytes([0x11, 0x22, 0x33, 0x44, 0x00])
    assert cpu.registers.index == 0x400

    cpu.registers.v[3] = 0
    cpu.execute(3)
    assert cpu.registers.v[0:4] == [0x11, 0x22, 0x33, 0x00]
    assert cpu.registers.index == 0x400


def test_memory_increments_index_quirk() -> None:
    cpu = make_cpu(0xF255, 0xF165, quirks=Quirks(memory_increments_index=True))
    cpu.registers.index = 0x400

    cpu.step()
    assert cpu.registers.index == 0x403

    cpu.step()
    assert cpu.registers.index == 0x405


def test_register_dump_cannot_overwrite_font() -> None:
    cpu = make_cpu(0xFF55)
    cpu.registers.v = [0xEE] * 16
    cpu.registers.index = 0x048

    cpu.step()

    assert cpu.memory.read_block(0x000, len(FONT_SET)) == bytes(FONT_SET)
    assert cpu.memory.read_block(0x050, 8) == bytes([0xEE] * 8)
