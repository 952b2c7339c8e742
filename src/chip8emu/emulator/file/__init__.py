"""File loading helpers for the CHIP-8 emulator."""

from chip8emu.emulator.file.program import (
    MAX_ROM_SIZE,
    ProgramInfo,
    ProgramLoadError,
    RomTooLarge,
    load_rom,
    load_rom_file,
)

__all__ = [
    "MAX_ROM_SIZE",
    "ProgramInfo",
    "ProgramLoadError",
    "RomTooLarge",
    "load_rom",
    "load_rom_file",
]
