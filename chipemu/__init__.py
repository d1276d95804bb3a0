"""
CHIPemu: a CHIP-8 emulator.

The core (``Chip8``, ``decode``/``encode``) has no dependency on pygame;
``chipemu.frontend`` and the ``chipemu`` command add the window, beep and
keyboard.
"""
from .decoder import Instruction, Kind, decode, disassemble, encode
from .display import Framebuffer
from .emulator import RUNNING, AwaitingKey, Chip8, Running
from .errors import Chip8Error, RomTooLargeError, StackOverflowError, StackUnderflowError
from .keypad import Keypad
from .platform import Platform

__version__ = "0.1.0"

__all__ = [
    "AwaitingKey",
    "Chip8",
    "Chip8Error",
    "Framebuffer",
    "Instruction",
    "Keypad",
    "Kind",
    "Platform",
    "RUNNING",
    "RomTooLargeError",
    "Running",
    "StackOverflowError",
    "StackUnderflowError",
    "decode",
    "disassemble",
    "encode",
]
