"""CHIP-8 system wiring."""

from __future__ import annotations

import os
import random
from pathlib import Path
from typing import Optional

from chip8emu.chip8.display import Chip8Display
from chip8emu.chip8.hardware import Chip8Hardware
from chip8emu.chip8.keyboard import KEYPAD_LAYOUT, Chip8Keypad
from chip8emu.chip8.timers import Chip8Timers
from chip8emu.cpu.cpu import Chip8CPU, Quirks
from chip8emu.emulator.file import ProgramInfo, load_rom, load_rom_file
from chip8emu.memory import MemorySystem
from chip8emu.system.computer import Computer

PAUSE_KEY = "space"
QUIT_KEY = "escape"


class Chip8Computer(Computer):
    """Concrete CHIP-8 machine: 4 KiB memory, 64x32 display, hex keypad."""

    ENV_ROM_PATH = "CHIP8EMU_ROM"

    def __init__(
        self,
        rom_path: str | os.PathLike[str] | None = None,
        *,
        quirks: Optional[Quirks] = None,
        strict: bool = False,
        seed: Optional[int] = None,
    ) -> None:
        super().__init__(hardware=Chip8Hardware())
        self.program_info: Optional[ProgramInfo] = None
        self.cpu_core = Chip8CPU(self, quirks=quirks, strict=strict, rng=random.Random(seed))
        self.set_cpu(self.cpu_core)
        self._rom_path = self._resolve_rom_path(rom_path)
        if self._rom_path is not None:
            self.load_rom_file(self._rom_path)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def memory(self) -> MemorySystem:
        return self.hardware.memory

    @property
    def display(self) -> Chip8Display:
        return self.hardware.display

    @property
    def keypad(self) -> Chip8Keypad:
        return self.hardware.keypad

    @property
    def timers(self) -> Chip8Timers:
        return self.hardware.timers

    @property
    def rom_path(self) -> Optional[Path]:
        return self._rom_path

    # ------------------------------------------------------------------
    # ROM helpers
    # ------------------------------------------------------------------
    def _resolve_rom_path(self, rom_path: str | os.PathLike[str] | None) -> Optional[Path]:
        if rom_path is not None and str(rom_path):
            return Path(rom_path)
        env_value = os.getenv(self.ENV_ROM_PATH)
        if env_value:
            return Path(env_value)
        return None

    def load_rom(self, data: bytes, *, name: str = "") -> ProgramInfo:
        self.program_info = load_rom(self.memory, data, name=name)
        return self.program_info

    def load_rom_file(self, path: str | os.PathLike[str]) -> ProgramInfo:
        self.program_info = load_rom_file(self.memory, path)
        self._rom_path = Path(path)
        return self.program_info

    def reset(self) -> None:
        """Return to the power-on state and reload the current ROM image."""

        self.memory.clear()
        self.display.clear()
        self.keypad.clear()
        self.timers.reset()
        self.cpu_core.reset()
        self.last_error = None
        self._reported_opcodes.clear()
        self.frame_count = 0
        self._running_status = self.STATUS_RUNNING
        if self.program_info is not None:
            load_rom(self.memory, self.program_info.image, name=self.program_info.name)

    # ------------------------------------------------------------------
    # Host input
    # ------------------------------------------------------------------
    def handle_key(self, name: str, pressed: bool) -> None:
        """Apply a host key event: keypad keys, pause toggle or quit."""

        key_name = name.lower()
        if key_name == QUIT_KEY:
            if pressed:
                self.halt()
            return
        if key_name == PAUSE_KEY:
            if pressed:
                self.toggle_pause()
                if self.is_paused():
                    print("=====PAUSED=====")
            return
        key = KEYPAD_LAYOUT.get(key_name)
        if key is None:
            return
        if pressed:
            self.keypad.press(key)
        else:
            self.keypad.release(key)
