"""Tests covering the CHIP-8 memory layout."""

from __future__ import annotations

import pytest

from chip8emu.memory import (
    FONT_END,
    FONT_SET,
    FontRom,
    MainRam,
    Memory,
    MemorySystem,
    create_memory_system,
    font_address,
)


def test_font_table_occupies_first_80_bytes() -> None:
    memory = create_memory_system()

    assert FONT_END == 0x50
    assert memory.read_block(0x000, 0x50) == bytes(FONT_SET)
    assert memory.read_block(0x050, 4) == bytes(4)


def test_font_rom_ignores_writes() -> None:
    memory = create_memory_system()

    memory.store8(0x000, 0x12)
    memory.store16(0x04F, 0xABCD)

    assert memory.load8(0x000) == 0xF0
    assert memory.load8(0x04F) == 0x80
    assert memory.load8(0x050) == 0xCD


def test_installs_expected_blocks() -> None:
    memory = create_memory_system()

    assert memory.capacity == 0x1000
    assert isinstance(memory.get_memory(FontRom), FontRom)
    ram = memory.get_memory(MainRam)
    assert ram is not None
    assert ram.get_start_address() == 0x050
    assert ram.get_end_address() == 0xFFF


def test_load16_is_big_endian_and_wraps() -> None:
    memory = create_memory_system()
    memory.store8(0x200, 0x12)
    memory.store8(0x201, 0x34)
    memory.store8(0xFFF, 0xAB)

    assert memory.load16(0x200) == 0x1234
    assert memory.load16(0xFFF) == 0xAB00 | FONT_SET[0]
    assert memory.load8(0x1200) == 0x12


def test_clear_keeps_font() -> None:
    memory = create_memory_system()
    memory.write_block(0x200, [1, 2, 3])

    memory.clear()

    assert memory.read_block(0x200, 3) == bytes(3)
    assert memory.load8(font_address(0xF)) == 0xF0


@pytest.mark.parametrize("digit, address", [(0x0, 0x00), (0x1, 0x05), (0xA, 0x32), (0x1F, 0x4B)])
def test_font_address(digit: int, address: int) -> None:
    assert font_address(digit) == address


def test_invalid_ranges_rejected() -> None:
    with pytest.raises(ValueError):
        Memory(0xF00, 0x200)
    with pytest.raises(ValueError):
        MemorySystem().allocate_space(0x2000)


def test_debug_prints_accesses(capsys) -> None:
    memory = create_memory_system()
    memory.enable_debug(True)

    memory.store8(0x300, 0x7F)
    memory.load8(0x300)

    out = capsys.readouterr().out
    assert "store8: addr=300 val=7F" in out
    assert "load8: addr=300 val=7F" in out
