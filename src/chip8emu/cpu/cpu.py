"""CHIP-8 interpreter core: register file, call stack and instruction execution."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from chip8emu.cpu.decode import Instruction, Op, decode, describe
from chip8emu.memory import ADDRESS_MASK, PROGRAM_START, font_address

REGISTER_COUNT = 16
STACK_DEPTH = 12
FLAG = 0xF


class CPUError(RuntimeError):
    """Base class for conditions reported by :meth:`Chip8CPU.step`."""

    def __init__(self, message: str, *, address: int, opcode: int) -> None:
        super().__init__(f"{message} at 0x{address:03X} (opcode 0x{opcode:04X})")
        self.address = address
        self.opcode = opcode


class StackOverflowError(CPUError):
    """CALL issued with all twelve return slots in use."""


class StackUnderflowError(CPUError):
    """RET issued with an empty call stack."""


class UnsupportedOpcodeError(CPUError):
    """Raised in strict mode for opcodes without a defined meaning."""


@dataclass
class CPURegisters:
    """Register file: V0..VF, the index register and the program counter."""

    v: List[int] = field(default_factory=lambda: [0] * REGISTER_COUNT)
    index: int = 0
    program_counter: int = PROGRAM_START

    def reset(self) -> None:
        self.v = [0] * REGISTER_COUNT
        self.index = 0
        self.program_counter = PROGRAM_START


class CallStack:
    """Bounded return-address stack with an explicit depth counter."""

    def __init__(self, capacity: int = STACK_DEPTH) -> None:
        self.capacity = capacity
        self._slots: List[int] = [0] * capacity
        self._depth = 0

    @property
    def depth(self) -> int:
        return self._depth

    def push(self, address: int) -> None:
        if self._depth >= self.capacity:
            raise IndexError("call stack overflow")
        self._slots[self._depth] = address & 0xFFFF
        self._depth += 1

    def pop(self) -> int:
        if self._depth == 0:
            raise IndexError("call stack underflow")
        self._depth -= 1
        return self._slots[self._depth]

    def peek(self) -> Optional[int]:
        if self._depth == 0:
            return None
        return self._slots[self._depth - 1]

    def entries(self) -> List[int]:
        return self._slots[: self._depth]

    def clear(self) -> None:
        self._slots = [0] * self.capacity
        self._depth = 0


@dataclass
class Quirks:
    """Behaviour switches for instructions whose semantics differ between interpreters.

    The defaults keep the flag semantics of this machine's table (VF set
    when 8XY5/8XY7 borrow, I untouched by FX55/FX65).
    """

    vf_no_borrow: bool = False
    memory_increments_index: bool = False


class CPU:
    """Abstract CPU base class."""

    def __init__(self, computer: object) -> None:
        self.computer = computer

    def reset(self) -> None:
        raise NotImplementedError

    def step(self) -> Instruction:
        raise NotImplementedError

    def execute(self, steps: int) -> int:
        raise NotImplementedError


class Chip8CPU(CPU):
    """Fetch/decode/execute engine advancing one instruction per :meth:`step`."""

    def __init__(
        self,
        computer: object,
        *,
        quirks: Optional[Quirks] = None,
        strict: bool = False,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(computer)
        self.registers = CPURegisters()
        self.stack = CallStack()
        self.quirks = quirks or Quirks()
        self.strict = strict
        self.rng = rng or random.Random()
        self.instruction_count = 0
        self.last_instruction: Optional[Instruction] = None
        self._trace = False
        self._current_address = PROGRAM_START
        hardware = getattr(computer, "hardware", None)
        self.memory = getattr(hardware, "memory", None)
        self.display = getattr(hardware, "display", None)
        self.keypad = getattr(hardware, "keypad", None)
        self.timers = getattr(hardware, "timers", None)
        self._opcode_table: Dict[Op, Callable[[Instruction], None]] = {}
        self._init_opcode_table()

    # ------------------------------------------------------------------
    # Public control
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self.registers.reset()
        self.stack.clear()
        self.instruction_count = 0
        self.last_instruction = None

    def enable_trace(self, enabled: bool) -> None:
        self._trace = enabled

    def execute(self, steps: int) -> int:
        executed = 0
        while executed < steps:
            self.step()
            executed += 1
        return executed

    def step(self) -> Instruction:
        """Execute exactly one instruction.

        Stack faults leave the program counter at the faulting
        instruction and propagate as :class:`CPUError` subclasses.
        """

        if self.memory is None:
            raise RuntimeError("Memory system is not attached to Chip8CPU")
        address = self.registers.program_counter
        instruction = decode(self._fetch_op())
        self._current_address = address
        if self._trace:
            print(
                f"Address : 0x{address:04X} , Opcode : 0x{instruction.opcode:04X} , "
                f"Desc : {describe(instruction)}"
            )
        handler = self._opcode_table[instruction.op]
        try:
            handler(instruction)
        except (StackOverflowError, StackUnderflowError):
            self.registers.program_counter = address
            raise
        self.instruction_count += 1
        self.last_instruction = instruction
        return instruction

    # ------------------------------------------------------------------
    # Fetch helpers
    # ------------------------------------------------------------------
    def _fetch_op(self) -> int:
        op = self.memory.load16(self.registers.program_counter)
        self.registers.program_counter = (self.registers.program_counter + 2) & 0xFFFF
        return op

    def _skip_if(self, condition: bool) -> None:
        if condition:
            self.registers.program_counter = (self.registers.program_counter + 2) & 0xFFFF

    # ------------------------------------------------------------------
    # Opcode table
    # ------------------------------------------------------------------
    def _init_opcode_table(self) -> None:
        self._opcode_table.clear()
        self._register_opcode(Op.CLS, self._opcode_cls)
        self._register_opcode(Op.RET, self._opcode_ret)
        self._register_opcode(Op.JP, self._opcode_jp)
        self._register_opcode(Op.CALL, self._opcode_call)
        self._register_opcode(Op.SE_VX_NN, self._opcode_se_vx_nn)
        self._register_opcode(Op.SNE_VX_NN, self._opcode_sne_vx_nn)
        self._register_opcode(Op.SE_VX_VY, self._opcode_se_vx_vy)
        self._register_opcode(Op.LD_VX_NN, self._opcode_ld_vx_nn)
        self._register_opcode(Op.ADD_VX_NN, self._opcode_add_vx_nn)
        self._register_opcode(Op.LD_VX_VY, self._opcode_ld_vx_vy)
        self._register_opcode(Op.OR, self._opcode_or)
        self._register_opcode(Op.AND, self._opcode_and)
        self._register_opcode(Op.XOR, self._opcode_xor)
        self._register_opcode(Op.ADD_VX_VY, self._opcode_add_vx_vy)
        self._register_opcode(Op.SUB, self._opcode_sub)
        self._register_opcode(Op.SHR, self._opcode_shr)
        self._register_opcode(Op.SUBN, self._opcode_subn)
        self._register_opcode(Op.SHL, self._opcode_shl)
        self._register_opcode(Op.SNE_VX_VY, self._opcode_sne_vx_vy)
        self._register_opcode(Op.LD_I, self._opcode_ld_i)
        self._register_opcode(Op.JP_V0, self._opcode_jp_v0)
        self._register_opcode(Op.RND, self._opcode_rnd)
        self._register_opcode(Op.DRW, self._opcode_drw)
        self._register_opcode(Op.SKP, self._opcode_skp)
        self._register_opcode(Op.SKNP, self._opcode_sknp)
        self._register_opcode(Op.LD_VX_DT, self._opcode_ld_vx_dt)
        self._register_opcode(Op.LD_VX_K, self._opcode_ld_vx_k)
        self._register_opcode(Op.LD_DT_VX, self._opcode_ld_dt_vx)
        self._register_opcode(Op.LD_ST_VX, self._opcode_ld_st_vx)
        self._register_opcode(Op.ADD_I_VX, self._opcode_add_i_vx)
        self._register_opcode(Op.LD_F_VX, self._opcode_ld_f_vx)
        self._register_opcode(Op.LD_B_VX, self._opcode_ld_b_vx)
        self._register_opcode(Op.LD_I_VX, self._opcode_ld_i_vx)
        self._register_opcode(Op.LD_VX_I, self._opcode_ld_vx_i)
        self._register_opcode(Op.UNKNOWN, self._opcode_unknown)
        missing = [op.name for op in Op if op not in self._opcode_table]
        if missing:
            raise RuntimeError("opcode handlers missing for: " + ", ".join(missing))

    def _register_opcode(self, op: Op, handler: Callable[[Instruction], None]) -> None:
        self._opcode_table[op] = handler

    # ------------------------------------------------------------------
    # Flow control
    # ------------------------------------------------------------------
    def _opcode_cls(self, inst: Instruction) -> None:
        self.display.clear()

    def _opcode_ret(self, inst: Instruction) -> None:
        if self.stack.depth == 0:
            raise StackUnderflowError(
                "call stack underflow", address=self._current_address, opcode=inst.opcode
            )
        self.registers.program_counter = self.stack.pop()

    def _opcode_jp(self, inst: Instruction) -> None:
        self.registers.program_counter = inst.nnn

    def _opcode_call(self, inst: Instruction) -> None:
        if self.stack.depth >= self.stack.capacity:
            raise StackOverflowError(
                "call stack overflow", address=self._current_address, opcode=inst.opcode
            )
        self.stack.push(self.registers.program_counter)
        self.registers.program_counter = inst.nnn

    def _opcode_jp_v0(self, inst: Instruction) -> None:
        self.registers.program_counter = (self.registers.v[0] + inst.nnn) & 0xFFFF

    def _opcode_se_vx_nn(self, inst: Instruction) -> None:
        self._skip_if(self.registers.v[inst.x] == inst.nn)

    def _opcode_sne_vx_nn(self, inst: Instruction) -> None:
        self._skip_if(self.registers.v[inst.x] != inst.nn)

    def _opcode_se_vx_vy(self, inst: Instruction) -> None:
        self._skip_if(self.registers.v[inst.x] == self.registers.v[inst.y])

    def _opcode_sne_vx_vy(self, inst: Instruction) -> None:
        self._skip_if(self.registers.v[inst.x] != self.registers.v[inst.y])

    # ------------------------------------------------------------------
    # Register arithmetic
    # ------------------------------------------------------------------
    def _opcode_ld_vx_nn(self, inst: Instruction) -> None:
        self.registers.v[inst.x] = inst.nn

    def _opcode_add_vx_nn(self, inst: Instruction) -> None:
        self.registers.v[inst.x] = (self.registers.v[inst.x] + inst.nn) & 0xFF

    def _opcode_ld_vx_vy(self, inst: Instruction) -> None:
        self.registers.v[inst.x] = self.registers.v[inst.y]

    def _opcode_or(self, inst: Instruction) -> None:
        self.registers.v[inst.x] |= self.registers.v[inst.y]

    def _opcode_and(self, inst: Instruction) -> None:
        self.registers.v[inst.x] &= self.registers.v[inst.y]

    def _opcode_xor(self, inst: Instruction) -> None:
        self.registers.v[inst.x] ^= self.registers.v[inst.y]

    # VF first, then V[X]: with X == F the result is what remains.
    def _set_with_flag(self, x: int, value: int, flag: bool) -> None:
        self.registers.v[FLAG] = 1 if flag else 0
        self.registers.v[x] = value & 0xFF

    def _opcode_add_vx_vy(self, inst: Instruction) -> None:
        total = self.registers.v[inst.x] + self.registers.v[inst.y]
        self._set_with_flag(inst.x, total, total > 0xFF)

    def _opcode_sub(self, inst: Instruction) -> None:
        vx = self.registers.v[inst.x]
        vy = self.registers.v[inst.y]
        flag = vx >= vy if self.quirks.vf_no_borrow else vy > vx
        self._set_with_flag(inst.x, vx - vy, flag)

    def _opcode_subn(self, inst: Instruction) -> None:
        vx = self.registers.v[inst.x]
        vy = self.registers.v[inst.y]
        flag = vy >= vx if self.quirks.vf_no_borrow else vy < vx
        self._set_with_flag(inst.x, vy - vx, flag)

    def _opcode_shr(self, inst: Instruction) -> None:
        vx = self.registers.v[inst.x]
        self._set_with_flag(inst.x, vx >> 1, bool(vx & 0x01))

    def _opcode_shl(self, inst: Instruction) -> None:
        vx = self.registers.v[inst.x]
        self._set_with_flag(inst.x, vx << 1, bool((vx >> 7) & 0x01))

    def _opcode_rnd(self, inst: Instruction) -> None:
        self.registers.v[inst.x] = self.rng.randrange(0x100) & inst.nn

    # ------------------------------------------------------------------
    # Index register and memory
    # ------------------------------------------------------------------
    def _opcode_ld_i(self, inst: Instruction) -> None:
        self.registers.index = inst.nnn

    def _opcode_add_i_vx(self, inst: Instruction) -> None:
        self.registers.index = (self.registers.index + self.registers.v[inst.x]) & ADDRESS_MASK

    def _opcode_ld_f_vx(self, inst: Instruction) -> None:
        self.registers.index = font_address(self.registers.v[inst.x])

    def _opcode_ld_b_vx(self, inst: Instruction) -> None:
        value = self.registers.v[inst.x]
        base = self.registers.index
        self.memory.store8(base, value // 100)
        self.memory.store8(base + 1, (value // 10) % 10)
        self.memory.store8(base + 2, value % 10)

    def _opcode_ld_i_vx(self, inst: Instruction) -> None:
        base = self.registers.index
        for offset in range(inst.x + 1):
            self.memory.store8(base + offset, self.registers.v[offset])
        if self.quirks.memory_increments_index:
            self.registers.index = (base + inst.x + 1) & ADDRESS_MASK

    def _opcode_ld_vx_i(self, inst: Instruction) -> None:
        base = self.registers.index
        for offset in range(inst.x + 1):
            self.registers.v[offset] = self.memory.load8(base + offset)
        if self.quirks.memory_increments_index:
            self.registers.index = (base + inst.x + 1) & ADDRESS_MASK

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------
    def _opcode_drw(self, inst: Instruction) -> None:
        display = self.display
        origin_x = self.registers.v[inst.x] % display.WIDTH
        y = self.registers.v[inst.y] % display.HEIGHT
        self.registers.v[FLAG] = 0
        for row in range(inst.n):
            sprite = self.memory.load8(self.registers.index + row)
            x = origin_x
            for bit in range(7, -1, -1):
                if display.xor_pixel(x, y, bool(sprite & (1 << bit))):
                    self.registers.v[FLAG] = 1
                x += 1
                if x >= display.WIDTH:
                    break
            y += 1
            if y >= display.HEIGHT:
                break

    # ------------------------------------------------------------------
    # Keypad and timers
    # ------------------------------------------------------------------
    def _opcode_skp(self, inst: Instruction) -> None:
        self._skip_if(self.keypad.is_pressed(self.registers.v[inst.x]))

    def _opcode_sknp(self, inst: Instruction) -> None:
        self._skip_if(not self.keypad.is_pressed(self.registers.v[inst.x]))

    def _opcode_ld_vx_k(self, inst: Instruction) -> None:
        key = self.keypad.first_pressed()
        if key is None:
            # Re-run this instruction on the next step until a key is down.
            self.registers.program_counter = self._current_address
            return
        self.registers.v[inst.x] = key

    def _opcode_ld_vx_dt(self, inst: Instruction) -> None:
        self.registers.v[inst.x] = self.timers.delay

    def _opcode_ld_dt_vx(self, inst: Instruction) -> None:
        self.timers.set_delay(self.registers.v[inst.x])

    def _opcode_ld_st_vx(self, inst: Instruction) -> None:
        self.timers.set_sound(self.registers.v[inst.x])

    def _opcode_unknown(self, inst: Instruction) -> None:
        if self.strict:
            raise UnsupportedOpcodeError(
                "unsupported opcode", address=self._current_address, opcode=inst.opcode
            )
