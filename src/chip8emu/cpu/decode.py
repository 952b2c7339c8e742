"""CHIP-8 opcode decoding and disassembly."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple


class Op(Enum):
    """Closed set of instruction kinds produced by :func:`decode`."""

    CLS = "00E0"
    RET = "00EE"
    JP = "1NNN"
    CALL = "2NNN"
    SE_VX_NN = "3XNN"
    SNE_VX_NN = "4XNN"
    SE_VX_VY = "5XY0"
    LD_VX_NN = "6XNN"
    ADD_VX_NN = "7XNN"
    LD_VX_VY = "8XY0"
    OR = "8XY1"
    AND = "8XY2"
    XOR = "8XY3"
    ADD_VX_VY = "8XY4"
    SUB = "8XY5"
    SHR = "8XY6"
    SUBN = "8XY7"
    SHL = "8XYE"
    SNE_VX_VY = "9XY0"
    LD_I = "ANNN"
    JP_V0 = "BNNN"
    RND = "CXNN"
    DRW = "DXYN"
    SKP = "EX9E"
    SKNP = "EXA1"
    LD_VX_DT = "FX07"
    LD_VX_K = "FX0A"
    LD_DT_VX = "FX15"
    LD_ST_VX = "FX18"
    ADD_I_VX = "FX1E"
    LD_F_VX = "FX29"
    LD_B_VX = "FX33"
    LD_I_VX = "FX55"
    LD_VX_I = "FX65"
    UNKNOWN = "????"


@dataclass(frozen=True)
class Instruction:
    """Decoded opcode with every fixed field extracted."""

    opcode: int
    op: Op
    nnn: int
    nn: int
    n: int
    x: int
    y: int

    @property
    def family(self) -> int:
        return (self.opcode >> 12) & 0x0F


_ALU_OPS: Dict[int, Op] = {
    0x0: Op.LD_VX_VY,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD_VX_VY,
    0x5: Op.SUB,
    0x6: Op.SHR,
    0x7: Op.SUBN,
    0x8: Op.SHL,
    0xE: Op.SHL,
}

_KEY_OPS: Dict[int, Op] = {
    0x9E: Op.SKP,
    0xA1: Op.SKNP,
}

_MISC_OPS: Dict[int, Op] = {
    0x07: Op.LD_VX_DT,
    0x0A: Op.LD_VX_K,
    0x15: Op.LD_DT_VX,
    0x18: Op.LD_ST_VX,
    0x1E: Op.ADD_I_VX,
    0x29: Op.LD_F_VX,
    0x33: Op.LD_B_VX,
    0x55: Op.LD_I_VX,
    0x65: Op.LD_VX_I,
}

_SIMPLE_FAMILIES: Dict[int, Op] = {
    0x1: Op.JP,
    0x2: Op.CALL,
    0x3: Op.SE_VX_NN,
    0x4: Op.SNE_VX_NN,
    0x6: Op.LD_VX_NN,
    0x7: Op.ADD_VX_NN,
    0xA: Op.LD_I,
    0xB: Op.JP_V0,
    0xC: Op.RND,
    0xD: Op.DRW,
}


def _classify(opcode: int) -> Op:
    family = (opcode >> 12) & 0x0F
    nn = opcode & 0x00FF
    n = opcode & 0x000F
    if family in _SIMPLE_FAMILIES:
        return _SIMPLE_FAMILIES[family]
    if family == 0x0:
        if nn == 0xE0:
            return Op.CLS
        if nn == 0xEE:
            return Op.RET
        return Op.UNKNOWN
    if family == 0x5:
        return Op.SE_VX_VY if n == 0 else Op.UNKNOWN
    if family == 0x9:
        return Op.SNE_VX_VY if n == 0 else Op.UNKNOWN
    if family == 0x8:
        return _ALU_OPS.get(n, Op.UNKNOWN)
    if family == 0xE:
        return _KEY_OPS.get(nn, Op.UNKNOWN)
    return _MISC_OPS.get(nn, Op.UNKNOWN)


def decode(opcode: int) -> Instruction:
    """Split a 16-bit opcode into its fields and instruction kind."""

    opcode &= 0xFFFF
    return Instruction(
        opcode=opcode,
        op=_classify(opcode),
        nnn=opcode & 0x0FFF,
        nn=opcode & 0x00FF,
        n=opcode & 0x000F,
        x=(opcode >> 8) & 0x0F,
        y=(opcode >> 4) & 0x0F,
    )


_TEMPLATES: Dict[Op, Tuple[str, str]] = {
    Op.CLS: ("CLS", "Clear screen"),
    Op.RET: ("RET", "Return from subroutine"),
    Op.JP: ("JP 0x{nnn:03X}", "Jump to address 0x{nnn:03X}"),
    Op.CALL: ("CALL 0x{nnn:03X}", "Call subroutine at 0x{nnn:03X}"),
    Op.SE_VX_NN: ("SE V{x:X}, 0x{nn:02X}", "Skip next instruction if V{x:X} == 0x{nn:02X}"),
    Op.SNE_VX_NN: ("SNE V{x:X}, 0x{nn:02X}", "Skip next instruction if V{x:X} != 0x{nn:02X}"),
    Op.SE_VX_VY: ("SE V{x:X}, V{y:X}", "Skip next instruction if V{x:X} == V{y:X}"),
    Op.LD_VX_NN: ("LD V{x:X}, 0x{nn:02X}", "Set V{x:X} to 0x{nn:02X}"),
    Op.ADD_VX_NN: ("ADD V{x:X}, 0x{nn:02X}", "Set V{x:X} to V{x:X} + 0x{nn:02X}"),
    Op.LD_VX_VY: ("LD V{x:X}, V{y:X}", "Set V{x:X} to V{y:X}"),
    Op.OR: ("OR V{x:X}, V{y:X}", "Set V{x:X} to V{x:X} | V{y:X}"),
    Op.AND: ("AND V{x:X}, V{y:X}", "Set V{x:X} to V{x:X} & V{y:X}"),
    Op.XOR: ("XOR V{x:X}, V{y:X}", "Set V{x:X} to V{x:X} ^ V{y:X}"),
    Op.ADD_VX_VY: ("ADD V{x:X}, V{y:X}", "Set V{x:X} to V{x:X} + V{y:X}, VF = carry"),
    Op.SUB: ("SUB V{x:X}, V{y:X}", "Set V{x:X} to V{x:X} - V{y:X}, VF = borrow"),
    Op.SHR: ("SHR V{x:X}", "Set V{x:X} to V{x:X} >> 1, VF = shifted out bit"),
    Op.SUBN: ("SUBN V{x:X}, V{y:X}", "Set V{x:X} to V{y:X} - V{x:X}, VF = borrow"),
    Op.SHL: ("SHL V{x:X}", "Set V{x:X} to V{x:X} << 1, VF = shifted out bit"),
    Op.SNE_VX_VY: ("SNE V{x:X}, V{y:X}", "Skip next instruction if V{x:X} != V{y:X}"),
    Op.LD_I: ("LD I, 0x{nnn:03X}", "Set I to 0x{nnn:03X}"),
    Op.JP_V0: ("JP V0, 0x{nnn:03X}", "Jump to V0 + 0x{nnn:03X}"),
    Op.RND: ("RND V{x:X}, 0x{nn:02X}", "Set V{x:X} to random byte & 0x{nn:02X}"),
    Op.DRW: (
        "DRW V{x:X}, V{y:X}, {n}",
        "Draw {n} height sprite at coords V{x:X}, V{y:X} from memory location I, VF = collision",
    ),
    Op.SKP: ("SKP V{x:X}", "Skip next instruction if key V{x:X} is pressed"),
    Op.SKNP: ("SKNP V{x:X}", "Skip next instruction if key V{x:X} is not pressed"),
    Op.LD_VX_DT: ("LD V{x:X}, DT", "Set V{x:X} to delay timer"),
    Op.LD_VX_K: ("LD V{x:X}, K", "Wait for a key press and store it in V{x:X}"),
    Op.LD_DT_VX: ("LD DT, V{x:X}", "Set delay timer to V{x:X}"),
    Op.LD_ST_VX: ("LD ST, V{x:X}", "Set sound timer to V{x:X}"),
    Op.ADD_I_VX: ("ADD I, V{x:X}", "Set I to I + V{x:X}"),
    Op.LD_F_VX: ("LD F, V{x:X}", "Set I to font glyph for digit V{x:X}"),
    Op.LD_B_VX: ("LD B, V{x:X}", "Store BCD of V{x:X} at I, I+1, I+2"),
    Op.LD_I_VX: ("LD [I], V{x:X}", "Store V0..V{x:X} at I"),
    Op.LD_VX_I: ("LD V{x:X}, [I]", "Load V0..V{x:X} from I"),
    Op.UNKNOWN: ("DW 0x{opcode:04X}", "Unknown opcode"),
}


def _fields(instruction: Instruction) -> Dict[str, int]:
    return {
        "opcode": instruction.opcode,
        "nnn": instruction.nnn,
        "nn": instruction.nn,
        "n": instruction.n,
        "x": instruction.x,
        "y": instruction.y,
    }


def mnemonic(instruction: Instruction) -> str:
    return _TEMPLATES[instruction.op][0].format(**_fields(instruction))


def describe(instruction: Instruction) -> str:
    return _TEMPLATES[instruction.op][1].format(**_fields(instruction))


def disassemble(data: bytes, start: int = 0x200) -> list[str]:
    """Render a ROM image as one ``ADDR OPCODE MNEMONIC`` line per word."""

    lines: list[str] = []
    for offset in range(0, len(data) - 1, 2):
        instruction = decode((data[offset] << 8) | data[offset + 1])
        lines.append(f"{start + offset:03X} {instruction.opcode:04X} {mnemonic(instruction)}")
    if len(data) % 2:
        lines.append(f"{start + len(data) - 1:03X} {data[-1]:02X}")
    return lines
