"""Computer scaffold providing run-state control and step scheduling."""

from __future__ import annotations

import sys
from typing import Optional, Set, TYPE_CHECKING

from chip8emu.cpu.cpu import CPUError, UnsupportedOpcodeError

if TYPE_CHECKING:
    from chip8emu.chip8.hardware import Chip8Hardware
    from chip8emu.cpu.cpu import Chip8CPU
else:  # pragma: no cover - used for runtime only
    Chip8Hardware = object
    Chip8CPU = object


class Computer:
    """Host machine tying together hardware and CPU under a run state.

    The run state only changes through :meth:`pause`, :meth:`resume`,
    :meth:`toggle_pause` and :meth:`halt` (or a fatal CPU error); the CPU
    itself never alters it.
    """

    STATUS_RUNNING = 0
    STATUS_PAUSED = 1
    STATUS_HALTED = 2

    STATUS_NAMES = {
        STATUS_RUNNING: "running",
        STATUS_PAUSED: "paused",
        STATUS_HALTED: "halted",
    }

    DEFAULT_STEPS_PER_FRAME = 10

    def __init__(self, hardware: Chip8Hardware) -> None:
        self.hardware = hardware
        self.frame_count: int = 0
        self.last_error: Optional[Exception] = None
        self._cpu: Optional[Chip8CPU] = None
        self._running_status: int = self.STATUS_RUNNING
        self._reported_opcodes: Set[int] = set()

    # ------------------------------------------------------------------
    # CPU integration
    # ------------------------------------------------------------------
    @property
    def cpu(self) -> Optional[Chip8CPU]:
        return self._cpu

    def set_cpu(self, cpu: Chip8CPU) -> None:
        self._cpu = cpu
        if hasattr(cpu, "computer"):
            setattr(cpu, "computer", self)

    def step(self) -> bool:
        """Execute one instruction if running; return whether one ran.

        Unsupported opcodes (strict mode) are reported once on stderr and
        skipped. Any other :class:`~chip8emu.cpu.cpu.CPUError` halts the
        machine and is re-raised to the caller.
        """

        if self._running_status != self.STATUS_RUNNING or self._cpu is None:
            return False
        try:
            self._cpu.step()
        except UnsupportedOpcodeError as exc:
            self.last_error = exc
            if exc.opcode not in self._reported_opcodes:
                self._reported_opcodes.add(exc.opcode)
                print(f"Skipping {exc}", file=sys.stderr)
        except CPUError as exc:
            self.last_error = exc
            self.halt()
            raise
        return True

    def run_frame(self, steps: Optional[int] = None) -> int:
        """Run up to ``steps`` instructions, then tick the timers once."""

        if steps is None:
            steps = self.DEFAULT_STEPS_PER_FRAME
        executed = 0
        while executed < steps and self.step():
            executed += 1
        if self._running_status == self.STATUS_RUNNING:
            self.hardware.timers.tick()
            self.frame_count += 1
        return executed

    # ------------------------------------------------------------------
    # Run state
    # ------------------------------------------------------------------
    @property
    def running_status(self) -> int:
        return self._running_status

    @property
    def status_name(self) -> str:
        return self.STATUS_NAMES[self._running_status]

    def is_running(self) -> bool:
        return self._running_status == self.STATUS_RUNNING

    def is_paused(self) -> bool:
        return self._running_status == self.STATUS_PAUSED

    def is_halted(self) -> bool:
        return self._running_status == self.STATUS_HALTED

    def pause(self) -> None:
        if self._running_status == self.STATUS_RUNNING:
            self._running_status = self.STATUS_PAUSED

    def resume(self) -> None:
        if self._running_status == self.STATUS_PAUSED:
            self._running_status = self.STATUS_RUNNING

    def toggle_pause(self) -> None:
        if self._running_status == self.STATUS_RUNNING:
            self.pause()
        else:
            self.resume()

    def halt(self) -> None:
        self._running_status = self.STATUS_HALTED
