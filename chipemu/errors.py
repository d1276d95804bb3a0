"""Exceptions raised by the CHIP-8 core."""


class Chip8Error(Exception):
    """Base class for every error the emulator reports."""


class RomTooLargeError(Chip8Error, ValueError):
    """The program image does not fit between 0x200 and the end of memory."""


class StackOverflowError(Chip8Error):
    """A CALL was executed with all 16 stack slots in use."""


class StackUnderflowError(Chip8Error):
    """A RET was executed with an empty call stack."""
