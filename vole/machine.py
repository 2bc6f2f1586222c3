"""Vole machine — storage, heat tracking and the fetch/decode/execute engine.

One call to ``VoleMachine.step()`` is one cycle:

  1. decay every heat value by one (floored at 0)
  2. count the cycle
  3. fetch m[pc], m[pc+1]
  4. decode (0xD–0xF → InvalidOpcodeError, machine faults)
  5. execute; every register / memory write re-heats its target to MAX_HEAT
  6. advance: taken JUMP_EQ sets pc to the target, HALT stays put,
     anything else moves pc forward by two (mod 256)

A taken JUMP_EQ also runs one extra decay, so heat ages by two on that cycle.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from vole.isa import (
    INSTRUCTION_SIZE, MAX_HEAT, MEMORY_SIZE, REGISTER_COUNT, WORD_MASK,
    Instruction, InvalidOpcodeError, Op, VMError,
    add_float, add_twos_complement, decode, rotate_right,
)

log = logging.getLogger(__name__)


class ProgramLoadError(VMError, ValueError):
    """Program rejected at load time (e.g. no name)."""


class MachineHaltedError(VMError):
    """The machine halted or faulted and must be reset before reuse."""


class CycleLimitExceeded(VMError):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Program did not halt within {limit} cycles")


# ── Storage ───────────────────────────────────────────────────────────────────

class _ByteBank:
    size = 0

    def __init__(self) -> None:
        self._cells: List[int] = [0] * self.size

    def read(self, index: int) -> int:
        return self._cells[index % self.size]

    def write(self, index: int, value: int) -> None:
        self._cells[index % self.size] = value & WORD_MASK

    def clear(self) -> None:
        self._cells = [0] * self.size

    def values(self) -> Tuple[int, ...]:
        return tuple(self._cells)

    def __getitem__(self, index: int) -> int:
        return self.read(index)

    def __len__(self) -> int:
        return self.size

    def __iter__(self) -> Iterator[int]:
        return iter(self._cells)


class RegisterFile(_ByteBank):
    """R0–R15.  R0 is the JUMP_EQ comparand by convention only."""
    size = REGISTER_COUNT


class MemoryBank(_ByteBank):
    """256 one-byte cells; addresses wrap."""
    size = MEMORY_SIZE

    def load(self, start: int, code: Sequence[int]) -> None:
        # A program running past m[FF] wraps round and overwrites low memory.
        for offset, byte in enumerate(code):
            self.write(start + offset, byte)


class HeatTracker:
    """Recency of write for every register and memory cell (0–MAX_HEAT).

    Pure observability state: the engine writes it, nothing reads it back
    to make a decision.
    """

    def __init__(self) -> None:
        self.registers: List[int] = [0] * REGISTER_COUNT
        self.memory:    List[int] = [0] * MEMORY_SIZE

    def touch_register(self, index: int) -> None:
        self.registers[index % REGISTER_COUNT] = MAX_HEAT

    def touch_memory(self, address: int) -> None:
        self.memory[address % MEMORY_SIZE] = MAX_HEAT

    def decay(self) -> None:
        self.registers = [h - 1 if h > 0 else 0 for h in self.registers]
        self.memory    = [h - 1 if h > 0 else 0 for h in self.memory]

    def clear(self) -> None:
        self.registers = [0] * REGISTER_COUNT
        self.memory    = [0] * MEMORY_SIZE


# ── Records ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Program:
    name:          str
    code:          bytes
    start_address: int = 0

    def __post_init__(self):
        # bytes() rejects values outside 0..255
        object.__setattr__(self, "code", bytes(self.code))
        object.__setattr__(self, "start_address", self.start_address & WORD_MASK)


@dataclass(frozen=True)
class Snapshot:
    """Read-only view of the machine handed to renderers."""
    registers:     Tuple[int, ...]
    register_heat: Tuple[int, ...]
    memory:        Tuple[int, ...]
    memory_heat:   Tuple[int, ...]
    pc:            int
    cycles:        int
    program_name:  str
    halted:        bool = False


class StepResult(Enum):
    CONTINUED = "continued"
    HALTED    = "halted"


# ── Engine ────────────────────────────────────────────────────────────────────

class VoleMachine:
    def __init__(self) -> None:
        self.registers = RegisterFile()
        self.memory    = MemoryBank()
        self.heat      = HeatTracker()
        self.reset()

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def reset(self) -> None:
        """Return to the zero state of a freshly constructed machine."""
        self.registers.clear()
        self.memory.clear()
        self.heat.clear()
        self.pc           = 0
        self.cycles       = 0
        self.program_name = ""
        self.halted       = False
        self.fault: Optional[VMError] = None

    def load(self, program: Program) -> None:
        if not program.name:
            raise ProgramLoadError("Program name must not be empty")
        if self.halted:
            raise MachineHaltedError("Machine has halted; reset() before loading")
        self.program_name = program.name
        self.memory.load(program.start_address, program.code)
        self.pc = program.start_address
        log.info("loaded %r: %d bytes at m%02X",
                 program.name, len(program.code), program.start_address)

    def load_program(self, name: str, code: Sequence[int], start_address: int = 0) -> None:
        self.load(Program(name, bytes(code), start_address))

    def snapshot(self) -> Snapshot:
        return Snapshot(
            registers=self.registers.values(),
            register_heat=tuple(self.heat.registers),
            memory=self.memory.values(),
            memory_heat=tuple(self.heat.memory),
            pc=self.pc,
            cycles=self.cycles,
            program_name=self.program_name,
            halted=self.halted,
        )

    # ── Main loop ─────────────────────────────────────────────────────────────

    def run(self, on_cycle: Optional[Callable[[Snapshot], None]] = None,
            max_cycles: Optional[int] = None) -> Snapshot:
        """Step until HALT, then reset.  Returns the state at the halt.

        ``on_cycle`` sees the state before every cycle; drivers use it to
        render or to pause.
        """
        while True:
            if max_cycles is not None and self.cycles >= max_cycles:
                raise CycleLimitExceeded(max_cycles)
            if on_cycle is not None:
                on_cycle(self.snapshot())
            if self.step() is StepResult.HALTED:
                break
        final = self.snapshot()
        self.reset()
        return final

    # ── Single-step execution ─────────────────────────────────────────────────

    def step(self) -> StepResult:
        if self.halted:
            raise MachineHaltedError("Machine has halted; reset() and load a program")

        self.heat.decay()
        self.cycles += 1

        pc = self.pc
        try:
            instr = decode(self.memory[pc], self.memory[pc + 1])
        except InvalidOpcodeError as e:
            fault = InvalidOpcodeError(e.opcode, pc)
            self.halted = True
            self.fault  = fault
            log.error("fault in %r at cycle %d: %s", self.program_name, self.cycles, fault)
            raise fault from None

        log.debug("cycle=%d pc=%02X  %s", self.cycles, pc, instr)

        if instr.op is Op.HALT:
            self.halted = True
            log.info("%r halted after %d cycles", self.program_name, self.cycles)
            return StepResult.HALTED

        jump = self._execute(instr)
        if jump is not None:
            self.pc = jump
        else:
            self.pc = (pc + INSTRUCTION_SIZE) % MEMORY_SIZE
        return StepResult.CONTINUED

    def _execute(self, instr: Instruction) -> Optional[int]:
        """Apply one instruction; return a jump target if a branch is taken."""
        op   = instr.op
        regs = self.registers
        r    = instr.r

        # ── NOP ────────────────────────────────────────────────────────────────
        if op is Op.NOP:
            pass

        # ── Loads / store / move ──────────────────────────────────────────────
        elif op is Op.LOAD_MEM:
            regs.write(r, self.memory[instr.xy])
            self.heat.touch_register(r)

        elif op is Op.LOAD_IMM:
            regs.write(r, instr.xy)
            self.heat.touch_register(r)

        elif op is Op.STORE:
            self.memory.write(instr.xy, regs[r])
            self.heat.touch_memory(instr.xy)

        elif op is Op.MOVE:
            regs.write(instr.t, regs[instr.s])
            # the source register is the one marked hot
            self.heat.touch_register(instr.s)

        # ── Arithmetic / logic ────────────────────────────────────────────────
        elif op is Op.ADD_INT:
            regs.write(r, add_twos_complement(regs[instr.s], regs[instr.t]))
            self.heat.touch_register(r)

        elif op is Op.ADD_FLOAT:
            regs.write(r, add_float(regs[instr.s], regs[instr.t]))
            self.heat.touch_register(r)

        elif op is Op.OR:
            regs.write(r, regs[instr.s] | regs[instr.t])
            self.heat.touch_register(r)

        elif op is Op.AND:
            regs.write(r, regs[instr.s] & regs[instr.t])
            self.heat.touch_register(r)

        elif op is Op.XOR:
            regs.write(r, regs[instr.s] ^ regs[instr.t])
            self.heat.touch_register(r)

        elif op is Op.ROTATE:
            regs.write(r, rotate_right(regs[r], instr.t))
            self.heat.touch_register(r)

        # ── Control flow ──────────────────────────────────────────────────────
        elif op is Op.JUMP_EQ:
            if regs[r] == regs[0]:
                self.heat.decay()
                return instr.xy

        else:
            raise InvalidOpcodeError(int(op), self.pc)

        return None
