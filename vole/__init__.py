"""Vole — a small teaching CPU with heat-tracked registers and memory."""

__version__ = "1.0.0"

from vole.isa import InvalidOpcodeError, Op, VMError
from vole.machine import (
    CycleLimitExceeded, MachineHaltedError, Program, ProgramLoadError,
    Snapshot, StepResult, VoleMachine,
)

__all__ = [
    "__version__",
    "CycleLimitExceeded", "InvalidOpcodeError", "MachineHaltedError", "Op",
    "Program", "ProgramLoadError", "Snapshot", "StepResult", "VMError",
    "VoleMachine",
]
