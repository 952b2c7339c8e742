"""Program loaders for CHIP-8 ROM images."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from chip8emu.memory import MEMORY_SIZE, PROGRAM_START, MemorySystem

MAX_ROM_SIZE = MEMORY_SIZE - PROGRAM_START


class ProgramLoadError(RuntimeError):
    """Raised when a ROM image cannot be read or placed in memory."""


class RomTooLarge(ProgramLoadError):
    """Raised when a ROM image does not fit between 0x200 and 0xFFF."""

    def __init__(self, size: int, limit: int = MAX_ROM_SIZE) -> None:
        super().__init__(f"ROM image too large: {size} bytes (max {limit})")
        self.size = size
        self.limit = limit


@dataclass
class ProgramInfo:
    memory: MemorySystem
    name: str = ""
    size: int = 0
    start: int = PROGRAM_START
    path: Optional[Path] = None
    image: bytes = b""

    @property
    def end(self) -> int:
        return self.start + self.size - 1


def load_rom(memory: MemorySystem, data: bytes | bytearray, *, name: str = "") -> ProgramInfo:
    """Copy a raw ROM image into memory at 0x200.

    The image has no header and is written verbatim. The rest of the
    program area up to 0xFFF is zeroed; nothing below 0x200 is touched.
    """

    image = bytes(data)
    if len(image) > MAX_ROM_SIZE:
        raise RomTooLarge(len(image))
    memory.write_block(PROGRAM_START, image.ljust(MAX_ROM_SIZE, b"\x00"))
    return ProgramInfo(memory=memory, name=name, size=len(image), image=image)


def load_rom_file(memory: MemorySystem, path: str | Path) -> ProgramInfo:
    """Read a ROM file from disk and load it with :func:`load_rom`."""

    file_path = Path(path)
    try:
        image = file_path.read_bytes()
    except OSError as exc:
        raise ProgramLoadError(f"could not read ROM file {file_path}: {exc}") from exc
    info = load_rom(memory, image, name=file_path.stem.upper())
    info.path = file_path
    return info
