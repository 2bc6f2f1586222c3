"""
tests/test_heat.py — heat tracking, snapshots and reset
=======================================================
  - HeatTracker touch / decay                          (unit)
  - heat side effects of each writing instruction      (integration)
  - taken vs untaken branch ageing                     (integration)
  - Snapshot / run() / reset() lifecycle               (integration)
"""
from __future__ import annotations

import pytest

from vole.isa import MAX_HEAT
from vole.machine import HeatTracker, StepResult, VoleMachine
from vole.programs import PROGRAM_B


# ── Helpers ──────────────────────────────────────────────────────────────────

def machine(code, start=0):
    vm = VoleMachine()
    vm.load_program("heat", code, start)
    return vm


NOP  = [0x00, 0x00]
HALT = [0xC0, 0x00]


# ══════════════════════════════════════════════════════════════════════════════
# HeatTracker — unit
# ══════════════════════════════════════════════════════════════════════════════

class TestHeatTracker:
    def setup_method(self):
        self.heat = HeatTracker()

    def test_starts_cold(self):
        assert self.heat.registers == [0] * 16
        assert self.heat.memory == [0] * 256

    def test_touch_register(self):
        self.heat.touch_register(7)
        assert self.heat.registers[7] == MAX_HEAT

    def test_touch_memory(self):
        self.heat.touch_memory(0xFF)
        assert self.heat.memory[0xFF] == MAX_HEAT

    def test_decay_decrements(self):
        self.heat.touch_register(1)
        self.heat.touch_memory(2)
        self.heat.decay()
        assert self.heat.registers[1] == MAX_HEAT - 1
        assert self.heat.memory[2] == MAX_HEAT - 1

    def test_decay_floors_at_zero(self):
        self.heat.touch_register(0)
        for _ in range(20):
            self.heat.decay()
        assert self.heat.registers[0] == 0
        assert min(self.heat.memory) == 0

    def test_clear(self):
        self.heat.touch_register(3)
        self.heat.touch_memory(4)
        self.heat.clear()
        assert max(self.heat.registers) == 0
        assert max(self.heat.memory) == 0


# ══════════════════════════════════════════════════════════════════════════════
# Instruction heat — integration
# ══════════════════════════════════════════════════════════════════════════════

class TestInstructionHeat:
    def test_write_sets_max_then_cools(self):
        vm = machine([0x21, 0x07] + NOP * 7 + HALT)
        vm.step()
        assert vm.heat.registers[1] == MAX_HEAT
        seen = []
        for _ in range(7):
            vm.step()
            seen.append(vm.heat.registers[1])
        assert seen == [4, 3, 2, 1, 0, 0, 0]

    def test_store_heats_memory_cell(self):
        vm = machine([0x31, 0x40] + HALT)
        vm.step()
        assert vm.heat.memory[0x40] == MAX_HEAT
        assert vm.heat.registers[1] == 0

    def test_move_heats_source_register(self):
        vm = machine([0x21, 0x09] + NOP * 5 + [0x40, 0x12] + HALT)
        for _ in range(6):
            vm.step()
        assert vm.heat.registers[1] == 0
        vm.step()
        assert vm.registers[2] == 0x09
        assert vm.heat.registers[1] == MAX_HEAT
        assert vm.heat.registers[2] == 0

    @pytest.mark.parametrize("code,reg", [
        ([0x1A, 0x00], 0xA),          # LOAD_MEM
        ([0x2B, 0x01], 0xB),          # LOAD_IMM
        ([0x5C, 0x12], 0xC),          # ADD_INT
        ([0x6D, 0x12], 0xD),          # ADD_FLOAT
        ([0x7E, 0x12], 0xE),          # OR
        ([0x8F, 0x12], 0xF),          # AND
        ([0x93, 0x12], 0x3),          # XOR
        ([0xA4, 0x03], 0x4),          # ROTATE
    ])
    def test_register_writers_heat_destination(self, code, reg):
        vm = machine(code + HALT)
        vm.step()
        assert vm.heat.registers[reg] == MAX_HEAT

    def test_nop_heats_nothing(self):
        vm = machine(NOP + HALT)
        vm.step()
        assert max(vm.heat.registers) == 0
        assert max(vm.heat.memory) == 0

    def test_loaded_bytes_are_not_hot(self):
        vm = machine([0x21, 0x07] + HALT)
        assert max(vm.heat.memory) == 0


# ══════════════════════════════════════════════════════════════════════════════
# Branch ageing
# ══════════════════════════════════════════════════════════════════════════════

class TestBranchHeat:
    def test_taken_branch_ages_by_two(self):
        # R1 <- 5, m[20] <- R1, then R0 == R0 always taken
        vm = machine([0x21, 0x05, 0x31, 0x20, 0xB0, 0x06] + HALT)
        vm.step()
        vm.step()
        assert vm.heat.registers[1] == 4
        assert vm.heat.memory[0x20] == 5
        vm.step()
        assert vm.pc == 0x06
        assert vm.heat.registers[1] == 2
        assert vm.heat.memory[0x20] == 3

    def test_untaken_branch_ages_by_one(self):
        vm = machine([0x21, 0x05, 0xB1, 0x08] + HALT)
        vm.step()
        vm.step()
        assert vm.pc == 0x04
        assert vm.heat.registers[1] == 4

    def test_taken_branch_floors_at_zero(self):
        vm = machine([0x21, 0x05] + NOP * 3 + [0xB0, 0x0A] + HALT)
        for _ in range(5):
            vm.step()
        assert vm.heat.registers[1] == 0
        assert all(h >= 0 for h in vm.heat.memory)


# ══════════════════════════════════════════════════════════════════════════════
# Snapshot / lifecycle
# ══════════════════════════════════════════════════════════════════════════════

class TestLifecycle:
    def test_snapshot_fields(self):
        vm = machine([0x21, 0x07] + HALT)
        vm.step()
        snap = vm.snapshot()
        assert len(snap.registers) == 16 and len(snap.register_heat) == 16
        assert len(snap.memory) == 256 and len(snap.memory_heat) == 256
        assert snap.registers[1] == 7
        assert snap.register_heat[1] == MAX_HEAT
        assert (snap.pc, snap.cycles, snap.program_name) == (2, 1, "heat")
        assert snap.halted is False

    def test_snapshot_is_detached(self):
        vm = machine([0x21, 0x07] + HALT)
        before = vm.snapshot()
        vm.step()
        assert before.registers[1] == 0
        with pytest.raises(AttributeError):
            before.pc = 9

    def test_reset_after_run_is_zero_state(self):
        vm = VoleMachine()
        vm.load(PROGRAM_B)
        while vm.step() is StepResult.CONTINUED:
            pass
        vm.reset()
        assert vm.snapshot() == VoleMachine().snapshot()
        assert vm.fault is None

    def test_run_returns_final_state_then_resets(self):
        vm = VoleMachine()
        vm.load(PROGRAM_B)
        final = vm.run()
        assert final.registers[0] == final.registers[1] == 4
        assert final.cycles == 12
        assert final.halted is True
        assert vm.snapshot() == VoleMachine().snapshot()

    def test_run_hook_sees_every_cycle(self):
        vm = VoleMachine()
        vm.load(PROGRAM_B)
        seen = []
        vm.run(on_cycle=lambda snap: seen.append(snap.cycles))
        assert seen == list(range(12))

    def test_load_keeps_heat_and_cycles(self):
        vm = machine([0x21, 0x07] + HALT)
        vm.step()
        vm.load_program("second", HALT, 0x80)
        assert vm.cycles == 1
        assert vm.heat.registers[1] == MAX_HEAT
        assert vm.pc == 0x80
        assert vm.program_name == "second"
