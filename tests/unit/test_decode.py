"""Tests for opcode decoding and disassembly text."""

from __future__ import annotations

import pytest

from chip8emu.cpu.decode import Op, decode, describe, disassemble, mnemonic


def test_fields_extracted_for_every_opcode() -> None:
    inst = decode(0xD12F)

    assert inst.op is Op.DRW
    assert inst.family == 0xD
    assert (inst.x, inst.y, inst.n) == (0x1, 0x2, 0xF)
    assert inst.nn == 0x2F
    assert inst.nnn == 0x12F


@pytest.mark.parametrize(
    "opcode, op",
    [
        (0x00E0, Op.CLS),
        (0x00EE, Op.RET),
        (0x0123, Op.UNKNOWN),
        (0x1ABC, Op.JP),
        (0x2ABC, Op.CALL),
        (0x3A12, Op.SE_VX_NN),
        (0x4A12, Op.SNE_VX_NN),
        (0x5AB0, Op.SE_VX_VY),
        (0x5AB1, Op.UNKNOWN),
        (0x6A12, Op.LD_VX_NN),
        (0x7A12, Op.ADD_VX_NN),
        (0x8AB0, Op.LD_VX_VY),
        (0x8AB4, Op.ADD_VX_VY),
        (0x8AB7, Op.SUBN),
        (0x8AB8, Op.SHL),
        (0x8ABE, Op.SHL),
        (0x8AB9, Op.UNKNOWN),
        (0x9AB0, Op.SNE_VX_VY),
        (0xA123, Op.LD_I),
        (0xB123, Op.JP_V0),
        (0xC1FF, Op.RND),
        (0xE19E, Op.SKP),
        (0xE1A1, Op.SKNP),
        (0xE100, Op.UNKNOWN),
        (0xF10A, Op.LD_VX_K),
        (0xF133, Op.LD_B_VX),
        (0xF165, Op.LD_VX_I),
        (0xF199, Op.UNKNOWN),
    ],
)
def test_classification(opcode: int, op: Op) -> None:
    assert decode(opcode).op is op


def test_describe_and_mnemonic() -> None:
    assert describe(decode(0x600A)) == "Set V0 to 0x0A"
    assert mnemonic(decode(0x8014)) == "ADD V0, V1"
    assert mnemonic(decode(0x0123)) == "DW 0x0123"


def test_disassemble_lists_words_and_trailing_byte() -> None:
    lines = disassemble(bytes([0x60, 0x0A, 0x00, 0xE0, 0x12]))

    assert lines == ["200 600A LD V0, 0x0A", "202 00E0 CLS", "204 12"]
