"""Memory system primitives for the CHIP-8 address space."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Protocol

MEMORY_SIZE = 0x1000
ADDRESS_MASK = 0x0FFF
FONT_START = 0x000
FONT_GLYPH_SIZE = 5
PROGRAM_START = 0x200

FONT_SET = (
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
)
FONT_END = FONT_START + len(FONT_SET)


def font_address(digit: int) -> int:
    """Return the address of the 5-byte glyph for hex ``digit``."""

    return FONT_START + (digit & 0x0F) * FONT_GLYPH_SIZE


class Addressable(Protocol):
    """Protocol describing memory mapped components."""

    def get_start_address(self) -> int:
        ...

    def get_end_address(self) -> int:
        ...

    def load8(self, address: int) -> int:
        ...

    def store8(self, address: int, value: int) -> None:
        ...


class Memory(Addressable):
    """Generic byte-addressable memory block."""

    start: int
    length: int
    data: List[int]

    def __init__(self, start: int, length: int) -> None:
        self.start = start & ADDRESS_MASK
        self.length = length
        if length <= 0 or self.start + length > MEMORY_SIZE:
            raise ValueError("invalid memory range")
        self.data = [0x00] * length

    def get_start_address(self) -> int:
        return self.start

    def get_end_address(self) -> int:
        return self.start + self.length - 1

    def _index(self, address: int) -> int:
        return (address - self.start) % self.length

    def load8(self, address: int) -> int:
        return self.data[self._index(address)] & 0xFF

    def store8(self, address: int, value: int) -> None:
        self.data[self._index(address)] = value & 0xFF

    def clear(self) -> None:
        self.data = [0x00] * self.length


class MainRam(Memory):
    """Program and data area following the font table."""


class FontRom(Memory):
    """Read-only block holding the hex digit glyphs.

    Writes are dropped so that FX55 and similar stores aimed below
    ``FONT_END`` can never corrupt the glyph table.
    """

    def __init__(self, start: int = FONT_START, glyphs: Iterable[int] = FONT_SET) -> None:
        values = [value & 0xFF for value in glyphs]
        super().__init__(start, len(values))
        self.data = values

    def store8(self, address: int, value: int) -> None:
        return

    def clear(self) -> None:
        return


class MemorySystem:
    """Memory mapper dispatching reads/writes to registered blocks."""

    def __init__(self) -> None:
        self._space: List[Addressable] = []
        self._map: Dict[type, Addressable] = {}
        self._debug: bool = False

    def allocate_space(self, capacity: int = MEMORY_SIZE) -> None:
        if capacity <= 0 or capacity > MEMORY_SIZE:
            raise ValueError("invalid capacity for memory system")
        filler = MainRam(0, capacity)
        self._space = [filler for _ in range(capacity)]
        self._map = {MainRam: filler}

    def register_memory(self, memory: Addressable) -> None:
        start = memory.get_start_address() & ADDRESS_MASK
        end = memory.get_end_address() & ADDRESS_MASK
        if start > end:
            raise ValueError("memory range wrapping not supported")
        for address in range(start, end + 1):
            self._space[address] = memory
        self._map[type(memory)] = memory

    def get_memory(self, cls: type) -> Optional[Addressable]:
        return self._map.get(cls)

    @property
    def capacity(self) -> int:
        return len(self._space)

    def load8(self, address: int) -> int:
        addr = address & ADDRESS_MASK
        value = self._space[addr].load8(addr) & 0xFF
        if self._debug:
            print(f"load8: addr={addr:03X} val={value:02X}")
        return value

    def store8(self, address: int, value: int) -> None:
        addr = address & ADDRESS_MASK
        if self._debug:
            print(f"store8: addr={addr:03X} val={value:02X}")
        self._space[addr].store8(addr, value & 0xFF)

    def load16(self, address: int) -> int:
        addr = address & ADDRESS_MASK
        hi = self._space[addr].load8(addr)
        lo_addr = (addr + 1) & ADDRESS_MASK
        lo = self._space[lo_addr].load8(lo_addr)
        value = ((hi << 8) | lo) & 0xFFFF
        if self._debug:
            print(f"load16: addr={addr:03X} val={value:04X}")
        return value

    def store16(self, address: int, value: int) -> None:
        addr = address & ADDRESS_MASK
        if self._debug:
            print(f"store16: addr={addr:03X} val={value:04X}")
        self._space[addr].store8(addr, (value >> 8) & 0xFF)
        lo_addr = (addr + 1) & ADDRESS_MASK
        self._space[lo_addr].store8(lo_addr, value & 0xFF)

    def read_block(self, address: int, length: int) -> bytes:
        return bytes(self.load8(address + offset) for offset in range(length))

    def write_block(self, address: int, data: Iterable[int]) -> None:
        for offset, value in enumerate(data):
            self.store8(address + offset, value)

    def clear(self) -> None:
        for memory in self._map.values():
            if hasattr(memory, "clear"):
                memory.clear()

    def enable_debug(self, enabled: bool) -> None:
        self._debug = enabled


def create_memory_system() -> MemorySystem:
    """Build the standard 4 KiB layout: font ROM followed by main RAM."""

    memory = MemorySystem()
    memory.allocate_space(MEMORY_SIZE)
    memory.register_memory(FontRom())
    memory.register_memory(MainRam(FONT_END, MEMORY_SIZE - FONT_END))
    return memory


__all__ = [
    "ADDRESS_MASK",
    "Addressable",
    "FONT_END",
    "FONT_GLYPH_SIZE",
    "FONT_SET",
    "FONT_START",
    "FontRom",
    "MEMORY_SIZE",
    "MainRam",
    "Memory",
    "MemorySystem",
    "PROGRAM_START",
    "create_memory_system",
    "font_address",
]
