"""Vole ISA — opcode table, instruction layout and ALU helpers.

Every instruction is two bytes.  The upper nibble of the first byte is the
opcode; the remaining three nibbles carry the operands:

    byte0 = [OP:4][R:4]     byte1 = [S:4][T:4]   (or one 8-bit XY field)

  0x0  NOP                          no operation
  0x1  LOAD_MEM    R  XY            R  <- m[XY]
  0x2  LOAD_IMM    R  XY            R  <- XY
  0x3  STORE       R  XY            m[XY] <- R
  0x4  MOVE        0  S  T          T  <- S
  0x5  ADD_INT     R  S  T          R  <- S + T   (two's complement, wraps)
  0x6  ADD_FLOAT   R  S  T          R  <- S + T   (float, clamps to 0..255)
  0x7  OR          R  S  T
  0x8  AND         R  S  T
  0x9  XOR         R  S  T
  0xA  ROTATE      R  0  X          R  <- R rotated right X mod 8 bits
  0xB  JUMP_EQ     R  XY            if R == R0: pc <- XY
  0xC  HALT
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum


# ── Architecture ───────────────────────────────────────────────────────────────
REGISTER_COUNT   = 16
MEMORY_SIZE      = 256
MAX_HEAT         = 5
INSTRUCTION_SIZE = 2       # bytes
WORD_BITS        = 8
WORD_MASK        = 0xFF


class VMError(Exception):
    """Base class for every machine fault."""


class InvalidOpcodeError(VMError):
    """Upper nibble 0xD–0xF: the run cannot continue."""

    def __init__(self, opcode: int, address: int | None = None):
        self.opcode  = opcode
        self.address = address
        where = f" at m{address:02X}" if address is not None else ""
        super().__init__(f"Invalid opcode {opcode:#x}{where}")


# ── Opcodes ────────────────────────────────────────────────────────────────────

class Op(IntEnum):
    NOP       = 0x0
    LOAD_MEM  = 0x1
    LOAD_IMM  = 0x2
    STORE     = 0x3
    MOVE      = 0x4
    ADD_INT   = 0x5
    ADD_FLOAT = 0x6
    OR        = 0x7
    AND       = 0x8
    XOR       = 0x9
    ROTATE    = 0xA
    JUMP_EQ   = 0xB
    HALT      = 0xC
    # 0xD–0xF undefined


OPCODES: dict[str, int] = {op.name: int(op) for op in Op}

# Reverse lookup: opcode int → mnemonic string
OPCODE_NAMES: dict[int, str] = {v: k for k, v in OPCODES.items()}


# ── Instruction word ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Instruction:
    """A decoded two-byte instruction."""
    op:    Op
    byte0: int
    byte1: int

    @property
    def r(self) -> int:
        return self.byte0 & 0x0F

    @property
    def s(self) -> int:
        return self.byte1 >> 4

    @property
    def t(self) -> int:
        return self.byte1 & 0x0F

    @property
    def xy(self) -> int:
        return self.byte1

    @property
    def mnemonic(self) -> str:
        return self.op.name

    def __str__(self) -> str:
        return f"{self.byte0:02X}{self.byte1:02X} {self.mnemonic}"


def decode(byte0: int, byte1: int) -> Instruction:
    nibble = (byte0 >> 4) & 0x0F
    try:
        op = Op(nibble)
    except ValueError:
        raise InvalidOpcodeError(nibble) from None
    return Instruction(op, byte0 & WORD_MASK, byte1 & WORD_MASK)


def encode(op: int, r: int = 0, xy: int = 0) -> bytes:
    """Pack an R/XY instruction: [op|r] [xy]."""
    return bytes((((op & 0x0F) << 4) | (r & 0x0F), xy & WORD_MASK))


def encode_rst(op: int, r: int, s: int, t: int) -> bytes:
    """Pack an R/S/T instruction: [op|r] [s|t]."""
    return encode(op, r, ((s & 0x0F) << 4) | (t & 0x0F))


# ── ALU ────────────────────────────────────────────────────────────────────────
#   All total over 0..255 inputs; none of them raise.

def add_twos_complement(a: int, b: int) -> int:
    return (a + b) & WORD_MASK


def add_float(a: int, b: int) -> int:
    total = float(a) + float(b)
    return max(0, min(WORD_MASK, math.trunc(total)))


def rotate_right(value: int, bits: int) -> int:
    bits  %= WORD_BITS
    value &= WORD_MASK
    return ((value >> bits) | (value << (WORD_BITS - bits))) & WORD_MASK
