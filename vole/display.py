"""
vole/display.py — terminal rendering of machine snapshots
=========================================================

Register and memory cells are coloured by heat; the cell the program
counter points at is marked with ``*`` in magenta.

Usage
-----
    print(render(machine.snapshot()))
    print(render(snap, colour=False))     # plain text, e.g. for logs
"""
from __future__ import annotations

import os
import sys
from typing import List, Optional

from vole.isa import MAX_HEAT, MEMORY_SIZE
from vole.machine import Snapshot

# ANSI colours (disabled on Windows / non-TTY)
_USE_COLOUR = sys.stdout.isatty() and os.name != "nt"

FOREGROUND = {
    "black":   "\033[30m",
    "red":     "\033[31m",
    "green":   "\033[32m",
    "yellow":  "\033[33m",
    "blue":    "\033[34m",
    "magenta": "\033[35m",
    "cyan":    "\033[36m",
    "white":   "\033[37m",
}
_RESET = FOREGROUND["white"]
_CLEAR = "\033[H\033[2J"

# heat 0 (coldest) → 5 (hottest); magenta is reserved for the PC
HEAT_COLOURS = ("white", "blue", "cyan", "green", "yellow", "red")

ROW_WIDTH = 16


def heat_colour(level: int) -> str:
    if not 0 <= level <= MAX_HEAT:
        raise ValueError(f"Heat level {level} out of range 0–{MAX_HEAT}")
    return HEAT_COLOURS[level]


def _paint(text: str, colour: str, enabled: bool) -> str:
    if not enabled:
        return text
    return f"{FOREGROUND[colour]}{text}{_RESET}"


def _use_colour(colour: Optional[bool]) -> bool:
    return _USE_COLOUR if colour is None else colour


# ── Sections ────────────────────────────────────────────────────────────────

def render_registers(snap: Snapshot, colour: Optional[bool] = None) -> str:
    on = _use_colour(colour)
    header = "".join(f" r{i:02X}" for i in range(len(snap.registers)))
    cells = "".join(
        "  " + _paint(f"{value:02X}", heat_colour(heat), on)
        for value, heat in zip(snap.registers, snap.register_heat)
    )
    return f"{header}\n{cells}"


def render_memory(snap: Snapshot, colour: Optional[bool] = None) -> str:
    on = _use_colour(colour)
    lines: List[str] = [" " * 4 + "".join(f" m{i:02X}" for i in range(ROW_WIDTH))]
    for base in range(0, MEMORY_SIZE, ROW_WIDTH):
        row = [f" m{base:02X}"]
        for addr in range(base, base + ROW_WIDTH):
            value = f"{snap.memory[addr]:02X}"
            if addr == snap.pc:
                row.append(" *" + _paint(value, "magenta", on))
            else:
                row.append("  " + _paint(value, heat_colour(snap.memory_heat[addr]), on))
        lines.append("".join(row))
    return "\n".join(lines)


def render(snap: Snapshot, colour: Optional[bool] = None) -> str:
    return "\n".join([
        f"Program's Used CPU Cycles: 0x{snap.cycles:02X}::{snap.cycles}",
        f"Program Counter: m0x{snap.pc:02X}",
        "",
        render_registers(snap, colour),
        "",
        render_memory(snap, colour),
    ])


def clear_screen(colour: Optional[bool] = None) -> str:
    return _CLEAR if _use_colour(colour) else ""


# ── Help text ───────────────────────────────────────────────────────────────

_KEY = [
    ("White",  "Coldest", "Last modified at least 6 cycles ago or never"),
    ("Blue",   "Cold",    "Last modified 5 cycles ago"),
    ("Cyan",   "Cool",    "Last modified 4 cycles ago"),
    ("Green",  "Warm",    "Last modified 3 cycles ago"),
    ("Yellow", "Hot",     "Last modified 2 cycles ago"),
    ("Red",    "Hottest", "Last modified 1 cycle ago"),
]


def colour_key(colour: Optional[bool] = None) -> str:
    on = _use_colour(colour)
    lines = ["Color Key:"]
    for name, temp, desc in _KEY:
        lines.append(f"  {_paint(f'{name:<8}', name.lower(), on)}::  {temp:<9}::  {desc}")
    return "\n".join(lines)


def introduction_pages(colour: Optional[bool] = None) -> List[str]:
    on = _use_colour(colour)
    pages = [
        f"{'':=^33} Vole-Machine {'':=^33}\n"
        "A simple CPU emulator written in Python.",
        "When printing the memory and registers, the color of the text\n"
        "indicates the \"heat\" of the memory or register. The hotter the\n"
        "color, the more recent the memory or register was accessed.",
        colour_key(on),
        "The memory address the program counter is pointing to is indicated by\n"
        "an asterisk (*) next to the value in memory colored in "
        + _paint("Magenta", "magenta", on),
    ]
    total = len(pages)
    return [f"{page}\n{f'{i} of {total}':>80}" for i, page in enumerate(pages, 1)]
