"""CHIP-8 hardware bundle shared by the CPU and the host."""

from __future__ import annotations

from dataclasses import dataclass, field

from chip8emu.chip8.display import Chip8Display
from chip8emu.chip8.keyboard import Chip8Keypad
from chip8emu.chip8.timers import Chip8Timers
from chip8emu.memory import MemorySystem, create_memory_system


@dataclass
class Chip8Hardware:
    memory: MemorySystem = field(default_factory=create_memory_system)
    display: Chip8Display = field(default_factory=Chip8Display)
    keypad: Chip8Keypad = field(default_factory=Chip8Keypad)
    timers: Chip8Timers = field(default_factory=Chip8Timers)
