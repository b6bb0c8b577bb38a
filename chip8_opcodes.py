"""
CHIP-8 instruction decoding.

Every 16-bit opcode word maps to one Instruction: an Op tag plus the operand
fields the tag uses. Words with no defined behaviour raise
UnsupportedOpcodeError, so the executor never sees an unknown instruction.
"""

from dataclasses import dataclass
from enum import Enum

from chip8_errors import UnsupportedOpcodeError


class Op(Enum):
    NOP = "0000"
    CLS = "00E0"
    RET = "00EE"
    JP = "1NNN"
    CALL = "2NNN"
    SE_BYTE = "3XNN"
    SNE_BYTE = "4XNN"
    SE_REG = "5XY0"
    LD_BYTE = "6XNN"
    ADD_BYTE = "7XNN"
    LD_REG = "8XY0"
    OR = "8XY1"
    AND = "8XY2"
    XOR = "8XY3"
    ADD_REG = "8XY4"
    SUB = "8XY5"
    SHR = "8XY6"
    SUBN = "8XY7"
    SHL = "8XYE"
    SNE_REG = "9XY0"
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
    ADD_I = "FX1E"
    LD_F = "FX29"
    LD_B = "FX33"
    LD_MEM_VX = "FX55"
    LD_VX_MEM = "FX65"


@dataclass(frozen=True)
class Instruction:
    """One decoded opcode"""
    op: Op
    opcode: int
    x: int = 0
    y: int = 0
    n: int = 0
    nn: int = 0
    nnn: int = 0


# Sub-dispatch tables keyed on the low nibble / low byte
_ALU_OPS = {
    0x0: Op.LD_REG, 0x1: Op.OR, 0x2: Op.AND, 0x3: Op.XOR, 0x4: Op.ADD_REG,
    0x5: Op.SUB, 0x6: Op.SHR, 0x7: Op.SUBN, 0xE: Op.SHL,
}

_KEY_OPS = {0x9E: Op.SKP, 0xA1: Op.SKNP}

_MISC_OPS = {
    0x07: Op.LD_VX_DT, 0x0A: Op.LD_VX_K, 0x15: Op.LD_DT_VX, 0x18: Op.LD_ST_VX,
    0x1E: Op.ADD_I, 0x29: Op.LD_F, 0x33: Op.LD_B, 0x55: Op.LD_MEM_VX,
    0x65: Op.LD_VX_MEM,
}

# First nibbles whose meaning does not depend on the low bits
_SIMPLE_OPS = {
    0x1: Op.JP, 0x2: Op.CALL, 0x3: Op.SE_BYTE, 0x4: Op.SNE_BYTE,
    0x6: Op.LD_BYTE, 0x7: Op.ADD_BYTE, 0xA: Op.LD_I, 0xB: Op.JP_V0,
    0xC: Op.RND, 0xD: Op.DRW,
}


def split_nibbles(opcode: int) -> tuple:
    """Split a word into its four nibbles, highest first"""
    return ((opcode >> 12) & 0xF, (opcode >> 8) & 0xF,
            (opcode >> 4) & 0xF, opcode & 0xF)


def decode(opcode: int) -> Instruction:
    """
    Decode a 16-bit opcode word.

    Args:
        opcode: instruction word, 0x0000-0xFFFF

    Returns:
        Instruction tagged with its Op

    Raises:
        UnsupportedOpcodeError: the word has no defined behaviour
    """
    opcode &= 0xFFFF
    b1, x, y, n = split_nibbles(opcode)
    nn = opcode & 0x00FF
    nnn = opcode & 0x0FFF

    op = None
    if b1 == 0x0:
        op = {0x0000: Op.NOP, 0x00E0: Op.CLS, 0x00EE: Op.RET}.get(opcode)
    elif b1 in _SIMPLE_OPS:
        op = _SIMPLE_OPS[b1]
    elif b1 == 0x5 or b1 == 0x9:
        if n == 0:
            op = Op.SE_REG if b1 == 0x5 else Op.SNE_REG
    elif b1 == 0x8:
        op = _ALU_OPS.get(n)
    elif b1 == 0xE:
        op = _KEY_OPS.get(nn)
    elif b1 == 0xF:
        op = _MISC_OPS.get(nn)

    if op is None:
        raise UnsupportedOpcodeError(opcode)

    return Instruction(op=op, opcode=opcode, x=x, y=y, n=n, nn=nn, nnn=nnn)
