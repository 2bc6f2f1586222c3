"""Built-in demo programs.

  A  loaded at m30 — copies m00–m02 into m10–m12 by patching its own
     LOAD_MEM / STORE address bytes after every pass, until R2 reaches R0
  B  loaded at m00 — counts R1 up from 1 until it equals R0 (4)
  C  loaded at m00 — adds 3 + (-7) in two's complement and stores it at m00
"""
from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional

from vole.isa import Op, encode, encode_rst
from vole.machine import Program, ProgramLoadError


def _code(*instrs: bytes) -> bytes:
    return b"".join(instrs)


PROGRAM_A = Program("A", _code(
    encode(Op.LOAD_IMM, 0, 0x03),            # m30  R0 <- 3
    encode(Op.LOAD_IMM, 1, 0x01),            # m32  R1 <- 1
    encode(Op.LOAD_IMM, 2, 0x00),            # m34  R2 <- 0
    encode(Op.LOAD_IMM, 3, 0x10),            # m36  R3 <- 0x10
    encode(Op.LOAD_MEM, 4, 0x00),            # m38  R4 <- m[00]   (operand patched)
    encode(Op.STORE,    4, 0x10),            # m3A  m[10] <- R4   (operand patched)
    encode_rst(Op.ADD_INT, 2, 2, 1),         # m3C  R2 <- R2 + R1
    encode_rst(Op.ADD_INT, 3, 3, 1),         # m3E  R3 <- R3 + R1
    encode(Op.STORE,    2, 0x39),            # m40  m[39] <- R2
    encode(Op.STORE,    3, 0x3B),            # m42  m[3B] <- R3
    encode(Op.JUMP_EQ,  2, 0x48),            # m44  R2 == R0 → m48
    encode(Op.JUMP_EQ,  0, 0x38),            # m46  always → m38
    encode(Op.HALT),                         # m48
), 0x30)

PROGRAM_B = Program("B", _code(
    encode(Op.LOAD_IMM, 0, 0x04),            # m00  R0 <- 4
    encode(Op.LOAD_IMM, 1, 0x01),            # m02  R1 <- 1
    encode_rst(Op.MOVE, 0, 1, 2),            # m04  R2 <- R1
    encode_rst(Op.ADD_INT, 1, 1, 2),         # m06  R1 <- R1 + R2
    encode(Op.JUMP_EQ,  1, 0x0C),            # m08  R1 == R0 → m0C
    encode(Op.JUMP_EQ,  0, 0x06),            # m0A  always → m06
    encode(Op.HALT),                         # m0C
), 0x00)

PROGRAM_C = Program("C", _code(
    encode(Op.LOAD_IMM, 5, 0x03),            # m00  R5 <- 3
    encode(Op.LOAD_IMM, 0, 0xF9),            # m02  R0 <- -7
    encode_rst(Op.ADD_INT, 3, 0, 5),         # m04  R3 <- R0 + R5
    encode(Op.STORE,    3, 0x00),            # m06  m[00] <- R3
    encode(Op.HALT),                         # m08
    encode(Op.HALT),
    encode(Op.HALT),
), 0x00)


class ProgramLibrary:
    def __init__(self, programs: Optional[Iterable[Program]] = None):
        self._programs: Dict[str, Program] = {}
        for program in programs or ():
            self.add(program)

    def add(self, program: Program) -> None:
        if not program.name:
            raise ProgramLoadError("Program name must not be empty")
        self._programs[program.name] = program

    def names(self) -> List[str]:
        return list(self._programs)

    def get(self, name: str) -> Program:
        try:
            return self._programs[name]
        except KeyError:
            raise KeyError(f"Unknown program {name!r}; choose from {', '.join(self.names())}") from None

    def __contains__(self, name: object) -> bool:
        return name in self._programs

    def __iter__(self) -> Iterator[Program]:
        return iter(self._programs.values())

    def __len__(self) -> int:
        return len(self._programs)


def default_library() -> ProgramLibrary:
    return ProgramLibrary([PROGRAM_A, PROGRAM_B, PROGRAM_C])
