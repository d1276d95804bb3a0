"""
CHIP-8 instruction decoder.

Every 16-bit opcode decodes to an ``Instruction``: a kind plus the operand
nibbles that kind uses. Opcodes that match no table entry decode to
``Kind.UNKNOWN`` with the raw word kept in ``opcode``, so decoding never
fails.

Operand names follow the usual CHIP-8 notation:

  nnn  12-bit address        (opcode & 0x0FFF)
  x    register in nibble 2  ((opcode & 0x0F00) >> 8)
  y    register in nibble 3  ((opcode & 0x00F0) >> 4)
  kk   8-bit constant        (opcode & 0x00FF)
  n    4-bit constant        (opcode & 0x000F)
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Tuple


class Kind(enum.Enum):
    CLEAR_DISPLAY = enum.auto()
    RETURN = enum.auto()
    JUMP = enum.auto()
    CALL = enum.auto()
    SKIP_EQ_CONST = enum.auto()
    SKIP_NE_CONST = enum.auto()
    SKIP_EQ_REG = enum.auto()
    LOAD_CONST = enum.auto()
    ADD_CONST = enum.auto()
    ASSIGN = enum.auto()
    OR = enum.auto()
    AND = enum.auto()
    XOR = enum.auto()
    ADD = enum.auto()
    SUB = enum.auto()
    SHIFT_RIGHT = enum.auto()
    SUBN = enum.auto()
    SHIFT_LEFT = enum.auto()
    SKIP_NE_REG = enum.auto()
    SET_INDEX = enum.auto()
    JUMP_V0 = enum.auto()
    RANDOM = enum.auto()
    DRAW = enum.auto()
    SKIP_KEY = enum.auto()
    SKIP_NOT_KEY = enum.auto()
    LOAD_DELAY = enum.auto()
    AWAIT_KEY = enum.auto()
    SET_DELAY = enum.auto()
    SET_SOUND = enum.auto()
    ADD_INDEX = enum.auto()
    LOAD_FONT = enum.auto()
    STORE_BCD = enum.auto()
    STORE_REGISTERS = enum.auto()
    LOAD_REGISTERS = enum.auto()
    UNKNOWN = enum.auto()


@dataclass(frozen=True)
class Instruction:
    kind: Kind
    x: int = 0
    y: int = 0
    n: int = 0
    kk: int = 0
    nnn: int = 0
    # raw word, only set for Kind.UNKNOWN
    opcode: int = 0


# (mask, pattern, kind, operands), most specific first
OPCODE_TABLE = [
    (0xFFFF, 0x00E0, Kind.CLEAR_DISPLAY, ()),
    (0xFFFF, 0x00EE, Kind.RETURN, ()),
    (0xF000, 0x1000, Kind.JUMP, ("nnn",)),
    (0xF000, 0x2000, Kind.CALL, ("nnn",)),
    (0xF000, 0x3000, Kind.SKIP_EQ_CONST, ("x", "kk")),
    (0xF000, 0x4000, Kind.SKIP_NE_CONST, ("x", "kk")),
    (0xF00F, 0x5000, Kind.SKIP_EQ_REG, ("x", "y")),
    (0xF000, 0x6000, Kind.LOAD_CONST, ("x", "kk")),
    (0xF000, 0x7000, Kind.ADD_CONST, ("x", "kk")),
    (0xF00F, 0x8000, Kind.ASSIGN, ("x", "y")),
    (0xF00F, 0x8001, Kind.OR, ("x", "y")),
    (0xF00F, 0x8002, Kind.AND, ("x", "y")),
    (0xF00F, 0x8003, Kind.XOR, ("x", "y")),
    (0xF00F, 0x8004, Kind.ADD, ("x", "y")),
    (0xF00F, 0x8005, Kind.SUB, ("x", "y")),
    (0xF00F, 0x8006, Kind.SHIFT_RIGHT, ("x",)),  # y nibble ignored
    (0xF00F, 0x8007, Kind.SUBN, ("x", "y")),
    (0xF00F, 0x800E, Kind.SHIFT_LEFT, ("x",)),  # y nibble ignored
    (0xF00F, 0x9000, Kind.SKIP_NE_REG, ("x", "y")),
    (0xF000, 0xA000, Kind.SET_INDEX, ("nnn",)),
    (0xF000, 0xB000, Kind.JUMP_V0, ("nnn",)),
    (0xF000, 0xC000, Kind.RANDOM, ("x", "kk")),
    (0xF000, 0xD000, Kind.DRAW, ("x", "y", "n")),
    (0xF0FF, 0xE09E, Kind.SKIP_KEY, ("x",)),
    (0xF0FF, 0xE0A1, Kind.SKIP_NOT_KEY, ("x",)),
    (0xF0FF, 0xF007, Kind.LOAD_DELAY, ("x",)),
    (0xF0FF, 0xF00A, Kind.AWAIT_KEY, ("x",)),
    (0xF0FF, 0xF015, Kind.SET_DELAY, ("x",)),
    (0xF0FF, 0xF018, Kind.SET_SOUND, ("x",)),
    (0xF0FF, 0xF01E, Kind.ADD_INDEX, ("x",)),
    (0xF0FF, 0xF029, Kind.LOAD_FONT, ("x",)),
    (0xF0FF, 0xF033, Kind.STORE_BCD, ("x",)),
    (0xF0FF, 0xF055, Kind.STORE_REGISTERS, ("x",)),
    (0xF0FF, 0xF065, Kind.LOAD_REGISTERS, ("x",)),
]

# operand -> (shift, width mask)
OPERAND_FIELDS: Dict[str, Tuple[int, int]] = {
    "x": (8, 0xF),
    "y": (4, 0xF),
    "n": (0, 0xF),
    "kk": (0, 0xFF),
    "nnn": (0, 0xFFF),
}

_ENCODING = {kind: (pattern, operands) for _, pattern, kind, operands in OPCODE_TABLE}

MNEMONICS = {
    Kind.CLEAR_DISPLAY: "CLS",
    Kind.RETURN: "RET",
    Kind.JUMP: "JP 0x{nnn:03X}",
    Kind.CALL: "CALL 0x{nnn:03X}",
    Kind.SKIP_EQ_CONST: "SE V{x:X}, 0x{kk:02X}",
    Kind.SKIP_NE_CONST: "SNE V{x:X}, 0x{kk:02X}",
    Kind.SKIP_EQ_REG: "SE V{x:X}, V{y:X}",
    Kind.LOAD_CONST: "LD V{x:X}, 0x{kk:02X}",
    Kind.ADD_CONST: "ADD V{x:X}, 0x{kk:02X}",
    Kind.ASSIGN: "LD V{x:X}, V{y:X}",
    Kind.OR: "OR V{x:X}, V{y:X}",
    Kind.AND: "AND V{x:X}, V{y:X}",
    Kind.XOR: "XOR V{x:X}, V{y:X}",
    Kind.ADD: "ADD V{x:X}, V{y:X}",
    Kind.SUB: "SUB V{x:X}, V{y:X}",
    Kind.SHIFT_RIGHT: "SHR V{x:X}",
    Kind.SUBN: "SUBN V{x:X}, V{y:X}",
    Kind.SHIFT_LEFT: "SHL V{x:X}",
    Kind.SKIP_NE_REG: "SNE V{x:X}, V{y:X}",
    Kind.SET_INDEX: "LD I, 0x{nnn:03X}",
    Kind.JUMP_V0: "JP V0, 0x{nnn:03X}",
    Kind.RANDOM: "RND V{x:X}, 0x{kk:02X}",
    Kind.DRAW: "DRW V{x:X}, V{y:X}, {n}",
    Kind.SKIP_KEY: "SKP V{x:X}",
    Kind.SKIP_NOT_KEY: "SKNP V{x:X}",
    Kind.LOAD_DELAY: "LD V{x:X}, DT",
    Kind.AWAIT_KEY: "LD V{x:X}, K",
    Kind.SET_DELAY: "LD DT, V{x:X}",
    Kind.SET_SOUND: "LD ST, V{x:X}",
    Kind.ADD_INDEX: "ADD I, V{x:X}",
    Kind.LOAD_FONT: "LD F, V{x:X}",
    Kind.STORE_BCD: "LD B, V{x:X}",
    Kind.STORE_REGISTERS: "LD [I], V{x:X}",
    Kind.LOAD_REGISTERS: "LD V{x:X}, [I]",
    Kind.UNKNOWN: "DW 0x{opcode:04X}",
}


@lru_cache(maxsize=None)
def decode(opcode: int) -> Instruction:
    """Decode a 16-bit opcode. Unmatched words become ``Kind.UNKNOWN``."""
    opcode &= 0xFFFF
    for mask, pattern, kind, operands in OPCODE_TABLE:
        if opcode & mask == pattern:
            values = {name: (opcode >> OPERAND_FIELDS[name][0]) & OPERAND_FIELDS[name][1]
                      for name in operands}
            return Instruction(kind, **values)
    return Instruction(Kind.UNKNOWN, opcode=opcode)


def encode(instruction: Instruction) -> int:
    """Build the opcode for ``instruction``; the inverse of ``decode``.

    Raises ValueError when an operand does not fit its field.
    """
    if instruction.kind is Kind.UNKNOWN:
        return instruction.opcode & 0xFFFF
    pattern, operands = _ENCODING[instruction.kind]
    opcode = pattern
    for name in operands:
        shift, width = OPERAND_FIELDS[name]
        value = getattr(instruction, name)
        if not 0 <= value <= width:
            raise ValueError(
                f"{instruction.kind.name}: operand {name}={value:#x} out of range")
        opcode |= value << shift
    return opcode


def disassemble(instruction: Instruction) -> str:
    """Render the conventional mnemonic, e.g. ``DRW V2, V3, 5``."""
    return MNEMONICS[instruction.kind].format(
        x=instruction.x, y=instruction.y, n=instruction.n, kk=instruction.kk,
        nnn=instruction.nnn, opcode=instruction.opcode)
