"""Opcode decoding for the CHIP-8 instruction set.

A raw 16-bit opcode is split into four nibbles and matched against the known
encodings, producing an :class:`Instruction` tagged with an :class:`Op`.
Operand fields are extracted once here so execution never re-slices the
opcode:

========  ===========================================
field     bits
========  ===========================================
``nnn``   lowest 12 bits (address)
``kk``    lowest 8 bits (immediate byte)
``x``     bits 8-11 (register index)
``y``     bits 4-7 (register index)
``n``     lowest 4 bits (sprite height / sub-opcode)
========  ===========================================

Anything that matches no encoding decodes to :attr:`Op.UNKNOWN`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Dict, Tuple


class Op(enum.Enum):
    """Closed set of instruction variants."""

    CLS = "00E0"
    RET = "00EE"
    JP = "1nnn"
    CALL = "2nnn"
    SE_BYTE = "3xkk"
    SNE_BYTE = "4xkk"
    SE_REG = "5xy0"
    LD_BYTE = "6xkk"
    ADD_BYTE = "7xkk"
    LD_REG = "8xy0"
    OR = "8xy1"
    AND = "8xy2"
    XOR = "8xy3"
    ADD_REG = "8xy4"
    SUB = "8xy5"
    SHR = "8xy6"
    SUBN = "8xy7"
    SHL_EXT = "8xy8"
    SHL = "8xyE"
    SNE_REG = "9xy0"
    LD_I = "Annn"
    JP_V0 = "Bnnn"
    RND = "Cxkk"
    DRW = "Dxyn"
    SKP = "Ex9E"
    SKNP = "ExA1"
    LD_VX_DT = "Fx07"
    LD_VX_K = "Fx0A"
    LD_DT_VX = "Fx15"
    LD_ST_VX = "Fx18"
    ADD_I = "Fx1E"
    LD_F = "Fx29"
    LD_B = "Fx33"
    LD_MEM_VX = "Fx55"
    LD_VX_MEM = "Fx65"
    UNKNOWN = "????"


@dataclass(frozen=True)
class Instruction:
    """Decoded opcode with its operand fields."""

    op: Op
    opcode: int
    x: int = 0
    y: int = 0
    n: int = 0
    kk: int = 0
    nnn: int = 0

    def render(self) -> str:
        """Return an assembler-style rendering, e.g. ``LD V1, 0x23``."""
        renderer = _RENDERERS.get(self.op)
        if renderer is None:
            return f"DW 0x{self.opcode:04X}"
        return renderer(self)

    def __str__(self) -> str:
        return self.render()


def split_nibbles(opcode: int) -> Tuple[int, int, int, int]:
    return (
        (opcode >> 12) & 0xF,
        (opcode >> 8) & 0xF,
        (opcode >> 4) & 0xF,
        opcode & 0xF,
    )


# Single-variant groups keyed by the high nibble.
_HIGH_NIBBLE_OPS: Dict[int, Op] = {
    0x1: Op.JP,
    0x2: Op.CALL,
    0x3: Op.SE_BYTE,
    0x4: Op.SNE_BYTE,
    0x6: Op.LD_BYTE,
    0x7: Op.ADD_BYTE,
    0xA: Op.LD_I,
    0xB: Op.JP_V0,
    0xC: Op.RND,
    0xD: Op.DRW,
}

_ALU_OPS: Dict[int, Op] = {
    0x0: Op.LD_REG,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD_REG,
    0x5: Op.SUB,
    0x6: Op.SHR,
    0x7: Op.SUBN,
    0x8: Op.SHL_EXT,
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
    0x1E: Op.ADD_I,
    0x29: Op.LD_F,
    0x33: Op.LD_B,
    0x55: Op.LD_MEM_VX,
    0x65: Op.LD_VX_MEM,
}


def _classify(opcode: int, shift_left_extension: bool) -> Op:
    high, _, _, low = split_nibbles(opcode)
    kk = opcode & 0xFF

    if opcode == 0x00E0:
        return Op.CLS
    if opcode == 0x00EE:
        return Op.RET

    op = _HIGH_NIBBLE_OPS.get(high)
    if op is not None:
        return op

    if high == 0x5 and low == 0x0:
        return Op.SE_REG
    if high == 0x9 and low == 0x0:
        return Op.SNE_REG
    if high == 0x8:
        op = _ALU_OPS.get(low, Op.UNKNOWN)
        if op is Op.SHL_EXT and not shift_left_extension:
            return Op.UNKNOWN
        return op
    if high == 0xE:
        return _KEY_OPS.get(kk, Op.UNKNOWN)
    if high == 0xF:
        return _MISC_OPS.get(kk, Op.UNKNOWN)
    return Op.UNKNOWN


def decode(opcode: int, *, shift_left_extension: bool = True) -> Instruction:
    """Decode a raw 16-bit opcode.

    Args:
        opcode: Instruction word as fetched from memory (big-endian).
        shift_left_extension: Recognise the non-standard ``8xy8`` shift.
            When disabled, ``8xy8`` decodes to :attr:`Op.UNKNOWN`.
    """
    opcode &= 0xFFFF
    _, x, y, n = split_nibbles(opcode)
    return Instruction(
        op=_classify(opcode, shift_left_extension),
        opcode=opcode,
        x=x,
        y=y,
        n=n,
        kk=opcode & 0xFF,
        nnn=opcode & 0x0FFF,
    )


def _vx(ins: Instruction) -> str:
    return f"V{ins.x:X}"


def _vy(ins: Instruction) -> str:
    return f"V{ins.y:X}"


_RENDERERS: Dict[Op, Callable[[Instruction], str]] = {
    Op.CLS: lambda ins: "CLS",
    Op.RET: lambda ins: "RET",
    Op.JP: lambda ins: f"JP 0x{ins.nnn:03X}",
    Op.CALL: lambda ins: f"CALL 0x{ins.nnn:03X}",
    Op.SE_BYTE: lambda ins: f"SE {_vx(ins)}, 0x{ins.kk:02X}",
    Op.SNE_BYTE: lambda ins: f"SNE {_vx(ins)}, 0x{ins.kk:02X}",
    Op.SE_REG: lambda ins: f"SE {_vx(ins)}, {_vy(ins)}",
    Op.LD_BYTE: lambda ins: f"LD {_vx(ins)}, 0x{ins.kk:02X}",
    Op.ADD_BYTE: lambda ins: f"ADD {_vx(ins)}, 0x{ins.kk:02X}",
    Op.LD_REG: lambda ins: f"LD {_vx(ins)}, {_vy(ins)}",
    Op.OR: lambda ins: f"OR {_vx(ins)}, {_vy(ins)}",
    Op.AND: lambda ins: f"AND {_vx(ins)}, {_vy(ins)}",
    Op.XOR: lambda ins: f"XOR {_vx(ins)}, {_vy(ins)}",
    Op.ADD_REG: lambda ins: f"ADD {_vx(ins)}, {_vy(ins)}",
    Op.SUB: lambda ins: f"SUB {_vx(ins)}, {_vy(ins)}",
    Op.SHR: lambda ins: f"SHR {_vx(ins)}",
    Op.SUBN: lambda ins: f"SUBN {_vx(ins)}, {_vy(ins)}",
    Op.SHL_EXT: lambda ins: f"SHLX {_vx(ins)}",
    Op.SHL: lambda ins: f"SHL {_vx(ins)}",
    Op.SNE_REG: lambda ins: f"SNE {_vx(ins)}, {_vy(ins)}",
    Op.LD_I: lambda ins: f"LD I, 0x{ins.nnn:03X}",
    Op.JP_V0: lambda ins: f"JP V0, 0x{ins.nnn:03X}",
    Op.RND: lambda ins: f"RND {_vx(ins)}, 0x{ins.kk:02X}",
    Op.DRW: lambda ins: f"DRW {_vx(ins)}, {_vy(ins)}, {ins.n}",
    Op.SKP: lambda ins: f"SKP {_vx(ins)}",
    Op.SKNP: lambda ins: f"SKNP {_vx(ins)}",
    Op.LD_VX_DT: lambda ins: f"LD {_vx(ins)}, DT",
    Op.LD_VX_K: lambda ins: f"LD {_vx(ins)}, K",
    Op.LD_DT_VX: lambda ins: f"LD DT, {_vx(ins)}",
    Op.LD_ST_VX: lambda ins: f"LD ST, {_vx(ins)}",
    Op.ADD_I: lambda ins: f"ADD I, {_vx(ins)}",
    Op.LD_F: lambda ins: f"LD F, {_vx(ins)}",
    Op.LD_B: lambda ins: f"LD B, {_vx(ins)}",
    Op.LD_MEM_VX: lambda ins: f"LD [I], {_vx(ins)}",
    Op.LD_VX_MEM: lambda ins: f"LD {_vx(ins)}, [I]",
}


__all__ = ["Instruction", "Op", "decode", "split_nibbles"]
