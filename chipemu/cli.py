"""
Command-line entry point.

Run:
  chipemu path/to/rom [--scale 15] [--clock 500] [--tone 440]
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .constants import CPU_HZ
from .emulator import Chip8
from .errors import Chip8Error


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chipemu", description="CHIP-8 emulator in Python")
    parser.add_argument("rom", help="Path to CHIP-8 ROM")
    parser.add_argument("--scale", type=int, default=15,
                        help="Pixel scale factor (default 15)")
    parser.add_argument("--clock", type=int, default=CPU_HZ,
                        help=f"CPU clock in Hz (default {CPU_HZ})")
    parser.add_argument("--legacy-store", action="store_true",
                        help="Use original FX55/FX65 quirk (I increments)")
    parser.add_argument("--tone", type=int, default=440,
                        help="Beep tone frequency in Hz")
    parser.add_argument("--mute", action="store_true",
                        help="Disable the beep")
    parser.add_argument("--trace", action="store_true",
                        help="Log every executed instruction (implies --log-level DEBUG)")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging verbosity (default WARNING)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.clock <= 0:
        print("chipemu: --clock must be positive", file=sys.stderr)
        return 2

    level = logging.DEBUG if args.trace else getattr(logging, args.log_level)
    logging.basicConfig(level=level, format="[%(levelname)s]:  %(message)s")

    chip8 = Chip8(legacy_store=args.legacy_store, cpu_hz=args.clock, trace=args.trace)

    # Load ROM
    try:
        chip8.load_program_from_file(args.rom)
    except (OSError, Chip8Error) as e:
        print(f"chipemu: cannot load {args.rom}: {e}", file=sys.stderr)
        return 1

    # pygame is only needed once there is something to run
    import pygame
    from .frontend import Frontend

    pygame.init()
    pygame.display.set_allow_screensaver(True)
    try:
        frontend = Frontend(chip8, scale=args.scale, tone_hz=args.tone, mute=args.mute)
        frontend.run()
    except Chip8Error as e:
        print(f"chipemu: {e} (PC={chip8.pc:03X})", file=sys.stderr)
        return 1
    finally:
        pygame.quit()
    return 0
