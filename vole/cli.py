#!/usr/bin/env python3
"""
Vole CLI — run the built-in programs on the Vole machine
Commands: list · run · shell · version
"""

import argparse
import logging
import sys
import time
from enum import Enum

from vole import __version__
from vole.display import clear_screen, introduction_pages, render
from vole.machine import VMError, VoleMachine
from vole.programs import default_library

DEFAULT_DELAY = 0.5   # seconds between cycles in auto mode


class IterationMode(Enum):
    MANUAL = "manual"   # Enter advances one cycle
    AUTO   = "auto"     # every cycle shown, paced by --delay
    SILENT = "silent"   # final state only


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------

def _configure_logging(trace: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if trace else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _prompt(text: str, valid) -> str:
    """Ask until ``valid(answer)`` holds; return the stripped answer."""
    while True:
        answer = input(text).strip()
        if valid(answer):
            return answer
        print("Invalid input. Please try again...")


def _colour(args):
    return False if args.no_colour else None


def run_program(program, mode: IterationMode, *, delay: float = DEFAULT_DELAY,
                max_cycles=None, colour=None) -> None:
    """Drive one program to HALT, rendering according to ``mode``."""
    machine = VoleMachine()
    machine.load(program)

    def on_cycle(snap):
        if mode is IterationMode.SILENT:
            return
        print(clear_screen(colour) + render(snap, colour))
        if mode is IterationMode.MANUAL:
            input("Press Enter to continue...")
        else:
            time.sleep(delay)

    start = time.perf_counter()
    final = machine.run(on_cycle=on_cycle, max_cycles=max_cycles)
    elapsed = time.perf_counter() - start

    print(clear_screen(colour) + render(final, colour))
    print(f"\nProgram {final.program_name} completed in {elapsed:.2f} seconds.")


# ---------------------------------------------------------------------------
# sub-command handlers
# ---------------------------------------------------------------------------

def cmd_list(args):
    """vole list"""
    for program in default_library():
        print(f"{program.name:<8} m{program.start_address:02X}  {len(program.code)} bytes")


def cmd_run(args):
    """vole run NAME [--mode manual|auto|silent] [--delay S] [--max-cycles N]"""
    library = default_library()
    try:
        program = library.get(args.program)
    except KeyError as e:
        print(f"error: {e.args[0]}", file=sys.stderr)
        sys.exit(1)
    try:
        run_program(program, IterationMode(args.mode), delay=args.delay,
                    max_cycles=args.max_cycles, colour=_colour(args))
    except VMError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)


def cmd_shell(args):
    """vole shell — introduction, then pick / run / repeat"""
    colour = _colour(args)
    for page in introduction_pages(colour):
        print(clear_screen(colour) + page)
        input("Press Enter to continue...")

    library = default_library()
    modes = {"m": IterationMode.MANUAL, "a": IterationMode.AUTO, "n": IterationMode.SILENT}
    while True:
        print(clear_screen(colour))
        name = _prompt(
            "\nChoose a program to run:\n\t" + "\n\t".join(library.names()) + "\n> ",
            lambda answer: answer in library,
        )
        choice = _prompt(
            "\nHow would you like to iterate through the program?"
            "\n\tEnter 'm' for manual (you cycle the CPU)"
            "\n\tEnter 'a' for automatic (shows every cycle)"
            "\n\tEnter 'n' for no cycle (shows the final state of the CPU)\n> ",
            lambda answer: answer.lower() in modes,
        )
        try:
            run_program(library.get(name), modes[choice.lower()],
                        delay=args.delay, max_cycles=args.max_cycles, colour=colour)
        except VMError as e:
            print(f"error: {e}", file=sys.stderr)
            sys.exit(1)

        again = _prompt(
            "\nWould you like to run another program? (y/n)\n> ",
            lambda answer: answer.lower() in ("y", "n"),
        )
        if again.lower() == "n":
            break


# ---------------------------------------------------------------------------
# main
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vole",
        description=(
            f"Vole {__version__} — a 16-register, 256-byte teaching CPU\n\n"
            "  list     Show the built-in programs\n"
            "  run      Run one program to HALT\n"
            "  shell    Interactive program picker\n"
            "  version  Show version info\n"
        ),
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"Vole {__version__}")

    sub = parser.add_subparsers(dest="cmd", required=True)

    # ── list ───────────────────────────────────────────────────────────────
    p_list = sub.add_parser("list", help="Show the built-in programs")
    p_list.set_defaults(func=cmd_list)

    # ── shared run options ─────────────────────────────────────────────────
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--delay", type=float, default=DEFAULT_DELAY, metavar="S",
                        help="Seconds between cycles in auto mode")
    common.add_argument("--max-cycles", type=int, default=None, metavar="N",
                        help="Abort if the program has not halted after N cycles")
    common.add_argument("--no-colour", action="store_true", help="Plain text output")
    common.add_argument("--trace", action="store_true", help="Log every cycle to stderr")

    # ── run ────────────────────────────────────────────────────────────────
    p_run = sub.add_parser("run", parents=[common], help="Run one program to HALT")
    p_run.add_argument("program", help="Program name (see `vole list`)")
    p_run.add_argument("--mode", choices=[m.value for m in IterationMode],
                       default=IterationMode.AUTO.value)
    p_run.set_defaults(func=cmd_run)

    # ── shell ──────────────────────────────────────────────────────────────
    p_shell = sub.add_parser("shell", parents=[common], help="Interactive program picker")
    p_shell.set_defaults(func=cmd_shell)

    # ── version ────────────────────────────────────────────────────────────
    p_ver = sub.add_parser("version", help="Show version info")
    p_ver.set_defaults(func=lambda _: print(f"Vole {__version__}"))

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    _configure_logging(getattr(args, "trace", False))
    args.func(args)


if __name__ == "__main__":
    main()
