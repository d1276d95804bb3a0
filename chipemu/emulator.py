"""
CHIP-8 CPU: machine state, instruction semantics and the real-time scheduler.

The host calls ``Chip8.step(elapsed)`` once per frame with the wall-clock
time since the previous call. Three accumulators collect that time:

  - the CPU accumulator runs one instruction every 1/cpu_hz seconds
  - the delay and sound accumulators each tick their timer every 1/timer_hz

Each threshold fires at most once per ``step`` call; a late host call makes
the machine fall behind rather than run a burst of catch-up instructions.

Notes:
- FX55 / FX65 leave I untouched unless ``legacy_store`` is set.
- VF = 1 means "no borrow" for SUB / SUBN.
- Sprites are clipped at the screen edge; only the origin wraps.
- Every memory access through I wraps modulo 4096.
- FX0A parks the CPU in ``AwaitingKey`` with PC on the FX0A itself.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Iterable, List, Tuple, Union

from .constants import (CPU_HZ, FONT_ADDRESS, FONT_STRIDE, FONTSET, GLYPH_HEIGHT,
                        MAX_ACCUMULATED, MAX_ROM_SIZE, MEM_SIZE, REGISTER_COUNT,
                        SCREEN_H, SCREEN_W, STACK_SIZE, START_ADDRESS, TIMER_HZ)
from .decoder import Instruction, Kind, decode, disassemble, encode
from .display import Framebuffer
from .errors import RomTooLargeError, StackOverflowError, StackUnderflowError
from .keypad import Keypad
from .platform import Platform

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Running:
    pass


@dataclass(frozen=True)
class AwaitingKey:
    register: int


RUNNING = Running()
ExecState = Union[Running, AwaitingKey]


@dataclass
class Chip8:
    # if True, FX55/FX65 increment I (original quirk)
    legacy_store: bool = False
    cpu_hz: int = CPU_HZ
    timer_hz: int = TIMER_HZ
    # log every executed instruction at DEBUG
    trace: bool = False
    platform: Platform = field(default_factory=Platform, repr=False)
    rng: random.Random = field(default_factory=random.Random, repr=False)

    memory: bytearray = field(init=False, repr=False)
    V: List[int] = field(init=False)  # registers V0..VF
    I: int = field(init=False)
    pc: int = field(init=False)
    stack: List[int] = field(init=False)
    stack_index: int = field(init=False)
    delay_timer: int = field(init=False)
    sound_timer: int = field(init=False)
    display: Framebuffer = field(default_factory=Framebuffer, init=False, repr=False)
    keys: Keypad = field(default_factory=Keypad, init=False, repr=False)
    state: ExecState = field(init=False)
    draw_flag: bool = field(init=False, repr=False)

    _cpu_elapsed: float = field(init=False, repr=False)
    _delay_elapsed: float = field(init=False, repr=False)
    _sound_elapsed: float = field(init=False, repr=False)
    _sound_playing: bool = field(default=False, init=False, repr=False)

    def __post_init__(self):
        if self.cpu_hz <= 0 or self.timer_hz <= 0:
            raise ValueError("cpu_hz and timer_hz must be positive")
        self.reset()

    def reset(self):
        self.memory = bytearray(MEM_SIZE)
        self._load_font()
        self.V = [0] * REGISTER_COUNT
        self.I = 0
        self.pc = START_ADDRESS
        self.stack = [0] * STACK_SIZE
        self.stack_index = -1
        self.delay_timer = 0
        self.sound_timer = 0
        self.display.clear()
        self.keys.release_all()
        self.state = RUNNING
        self.draw_flag = True

        # primed so the first step runs the first instruction straight away
        self._cpu_elapsed = self.cpu_period
        self._delay_elapsed = 0.0
        self._sound_elapsed = 0.0
        self._update_sound()

    def _load_font(self):
        for digit in range(16):
            base = FONT_ADDRESS + digit * FONT_STRIDE
            glyph = FONTSET[digit * GLYPH_HEIGHT:(digit + 1) * GLYPH_HEIGHT]
            self.memory[base:base + 2 * GLYPH_HEIGHT:2] = bytes(glyph)

    # =============== Read accessors ===============
    @property
    def cpu_period(self) -> float:
        return 1.0 / self.cpu_hz

    @property
    def timer_period(self) -> float:
        return 1.0 / self.timer_hz

    @property
    def registers(self) -> Tuple[int, ...]:
        return tuple(self.V)

    @property
    def framebuffer(self) -> Framebuffer:
        return self.display

    @property
    def awaiting_key(self) -> bool:
        return isinstance(self.state, AwaitingKey)

    # =============== Program loading ===============
    def load_program_from_bytes(self, data: bytes):
        if len(data) > MAX_ROM_SIZE:
            raise RomTooLargeError(
                f"ROM is {len(data)} bytes, only {MAX_ROM_SIZE} fit in memory")
        self.reset()
        self.memory[START_ADDRESS:START_ADDRESS + len(data)] = data
        logger.debug("Loaded %d byte program at %#05x", len(data), START_ADDRESS)

    def load_program_from_file(self, path: Union[str, Path]):
        self.load_program_from_bytes(Path(path).read_bytes())

    def load_instructions(self, instructions: Iterable[Instruction]):
        """Assemble ``instructions`` back to back and load them as a program."""
        self.load_program_from_bytes(
            b"".join(encode(ins).to_bytes(2, "big") for ins in instructions))

    # =============== Scheduler ===============
    def step(self, elapsed: Union[float, timedelta]):
        """Advance the machine by ``elapsed`` seconds of host time."""
        if isinstance(elapsed, timedelta):
            elapsed = elapsed.total_seconds()
        if elapsed < 0:
            raise ValueError(f"elapsed time cannot be negative: {elapsed}")

        self._cpu_elapsed = min(self._cpu_elapsed + elapsed, MAX_ACCUMULATED)
        self._delay_elapsed = min(self._delay_elapsed + elapsed, MAX_ACCUMULATED)
        self._sound_elapsed = min(self._sound_elapsed + elapsed, MAX_ACCUMULATED)

        if self._delay_elapsed >= self.timer_period:
            self.delay_timer = max(self.delay_timer - 1, 0)
            self._delay_elapsed = 0.0
        if self._sound_elapsed >= self.timer_period:
            self.sound_timer = max(self.sound_timer - 1, 0)
            self._sound_elapsed = 0.0
        if self._cpu_elapsed >= self.cpu_period:
            self._cpu_elapsed = 0.0
            self.cycle()

        self._update_sound()

    def _update_sound(self):
        playing = self.sound_timer > 0
        if playing == self._sound_playing:
            return
        self._sound_playing = playing
        if playing:
            logger.debug("Sound on (ST=%d)", self.sound_timer)
            self.platform.play_sound()
        else:
            logger.debug("Sound off")
            self.platform.stop_sound()

    # =============== Core fetch/decode/execute cycle ===============
    def fetch_opcode(self) -> int:
        hi = self.memory[self.pc % MEM_SIZE]
        lo = self.memory[(self.pc + 1) % MEM_SIZE]
        return (hi << 8) | lo

    def cycle(self):
        """One CPU step: a key poll while awaiting a key, else one instruction."""
        if isinstance(self.state, AwaitingKey):
            self._poll_key(self.state.register)
            return
        instruction = decode(self.fetch_opcode())
        if self.trace:
            logger.debug("%03X: %s", self.pc, disassemble(instruction))
        self.execute(instruction)

    def execute(self, instruction: Instruction):
        self.pc = (self.pc + 2) & 0xFFF
        self._HANDLERS[instruction.kind](self, instruction)

    # =============== Helpers ===============
    def _skip(self):
        self.pc = (self.pc + 2) & 0xFFF

    def _poll_key(self, register: int):
        key = self.keys.get_key_pressed()
        if key is None:
            return
        self.V[register] = key
        self.pc = (self.pc + 2) & 0xFFF
        self.state = RUNNING
        logger.debug("Key %X pressed, stored in V%X", key, register)

    def _addr(self, offset: int) -> int:
        return (self.I + offset) % MEM_SIZE

    def _sprite_pixels(self, origin_x: int, origin_y: int, height: int) -> List[Tuple[int, int]]:
        pixels = []
        for row in range(height):
            py = origin_y + row
            if py >= SCREEN_H:
                break
            sprite = self.memory[self._addr(row)]
            for col in range(8):
                px = origin_x + col
                if px >= SCREEN_W:
                    break
                if sprite & (0x80 >> col):
                    pixels.append((px, py))
        return pixels

    # =============== Instructions ===============
    def _cls(self, ins: Instruction):
        self.display.clear()
        self.draw_flag = True

    def _ret(self, ins: Instruction):
        if self.stack_index < 0:
            raise StackUnderflowError(f"RET at {self.pc - 2:03X} with an empty stack")
        self.pc = self.stack[self.stack_index]
        self.stack_index -= 1

    def _jp(self, ins: Instruction):
        self.pc = ins.nnn

    def _call(self, ins: Instruction):
        if self.stack_index + 1 >= STACK_SIZE:
            raise StackOverflowError(
                f"CALL {ins.nnn:03X} at {self.pc - 2:03X} exceeds {STACK_SIZE} nested calls")
        self.stack_index += 1
        self.stack[self.stack_index] = self.pc
        self.pc = ins.nnn

    def _se_const(self, ins: Instruction):
        if self.V[ins.x] == ins.kk:
            self._skip()

    def _sne_const(self, ins: Instruction):
        if self.V[ins.x] != ins.kk:
            self._skip()

    def _se_reg(self, ins: Instruction):
        if self.V[ins.x] == self.V[ins.y]:
            self._skip()

    def _ld_const(self, ins: Instruction):
        self.V[ins.x] = ins.kk

    def _add_const(self, ins: Instruction):
        self.V[ins.x] = (self.V[ins.x] + ins.kk) & 0xFF

    def _ld_reg(self, ins: Instruction):
        self.V[ins.x] = self.V[ins.y]

    def _or(self, ins: Instruction):
        self.V[ins.x] |= self.V[ins.y]

    def _and(self, ins: Instruction):
        self.V[ins.x] &= self.V[ins.y]

    def _xor(self, ins: Instruction):
        self.V[ins.x] ^= self.V[ins.y]

    # VF is written after the result so it holds the flag when x == F
    def _add(self, ins: Instruction):
        total = self.V[ins.x] + self.V[ins.y]
        self.V[ins.x] = total & 0xFF
        self.V[0xF] = 1 if total > 0xFF else 0

    def _sub(self, ins: Instruction):
        vx, vy = self.V[ins.x], self.V[ins.y]
        self.V[ins.x] = (vx - vy) & 0xFF
        self.V[0xF] = 1 if vx >= vy else 0

    def _shr(self, ins: Instruction):
        bit = self.V[ins.x] & 0x1
        self.V[ins.x] >>= 1
        self.V[0xF] = bit

    def _subn(self, ins: Instruction):
        vx, vy = self.V[ins.x], self.V[ins.y]
        self.V[ins.x] = (vy - vx) & 0xFF
        self.V[0xF] = 1 if vy >= vx else 0

    def _shl(self, ins: Instruction):
        bit = (self.V[ins.x] >> 7) & 0x1
        self.V[ins.x] = (self.V[ins.x] << 1) & 0xFF
        self.V[0xF] = bit

    def _sne_reg(self, ins: Instruction):
        if self.V[ins.x] != self.V[ins.y]:
            self._skip()

    def _ld_i(self, ins: Instruction):
        self.I = ins.nnn

    def _jp_v0(self, ins: Instruction):
        self.pc = (ins.nnn + self.V[0]) & 0xFFF

    def _rnd(self, ins: Instruction):
        self.V[ins.x] = self.rng.randint(0, 255) & ins.kk

    def _drw(self, ins: Instruction):
        pixels = self._sprite_pixels(
            self.V[ins.x] % SCREEN_W, self.V[ins.y] % SCREEN_H, ins.n)
        collision = False
        if pixels:
            collision = self.display.draw_pixels(pixels)
            self.draw_flag = True
        self.V[0xF] = 1 if collision else 0

    def _skp(self, ins: Instruction):
        if self.keys.is_key_pressed(self.V[ins.x]):
            self._skip()

    def _sknp(self, ins: Instruction):
        if not self.keys.is_key_pressed(self.V[ins.x]):
            self._skip()

    def _ld_vx_dt(self, ins: Instruction):
        self.V[ins.x] = self.delay_timer

    def _ld_vx_k(self, ins: Instruction):
        key = self.keys.get_key_pressed()
        if key is not None:
            self.V[ins.x] = key
            return
        # park on this instruction until the host reports a key
        self.pc = (self.pc - 2) & 0xFFF
        self.state = AwaitingKey(ins.x)
        logger.debug("Waiting for a key press into V%X", ins.x)

    def _ld_dt(self, ins: Instruction):
        self.delay_timer = self.V[ins.x]

    def _ld_st(self, ins: Instruction):
        self.sound_timer = self.V[ins.x]

    def _add_i(self, ins: Instruction):
        self.I = (self.I + self.V[ins.x]) & 0xFFFF

    def _ld_f(self, ins: Instruction):
        digit = self.V[ins.x]
        if digit <= 0xF:
            self.I = FONT_ADDRESS + digit * FONT_STRIDE
        else:
            logger.debug("LD F, V%X: %#x is not a hex digit, I unchanged", ins.x, digit)

    def _ld_b(self, ins: Instruction):
        val = self.V[ins.x]
        self.memory[self._addr(0)] = val // 100
        self.memory[self._addr(1)] = (val // 10) % 10
        self.memory[self._addr(2)] = val % 10

    def _ld_mem_vx(self, ins: Instruction):
        for i in range(ins.x + 1):
            self.memory[self._addr(i)] = self.V[i]
        if self.legacy_store:
            self.I = (self.I + ins.x + 1) & 0xFFFF

    def _ld_vx_mem(self, ins: Instruction):
        for i in range(ins.x + 1):
            self.V[i] = self.memory[self._addr(i)]
        if self.legacy_store:
            self.I = (self.I + ins.x + 1) & 0xFFFF

    def _unknown(self, ins: Instruction):
        logger.warning("Unknown opcode: %04X at PC %03X", ins.opcode, self.pc - 2)

    _HANDLERS = {
        Kind.CLEAR_DISPLAY: _cls,
        Kind.RETURN: _ret,
        Kind.JUMP: _jp,
        Kind.CALL: _call,
        Kind.SKIP_EQ_CONST: _se_const,
        Kind.SKIP_NE_CONST: _sne_const,
        Kind.SKIP_EQ_REG: _se_reg,
        Kind.LOAD_CONST: _ld_const,
        Kind.ADD_CONST: _add_const,
        Kind.ASSIGN: _ld_reg,
        Kind.OR: _or,
        Kind.AND: _and,
        Kind.XOR: _xor,
        Kind.ADD: _add,
        Kind.SUB: _sub,
        Kind.SHIFT_RIGHT: _shr,
        Kind.SUBN: _subn,
        Kind.SHIFT_LEFT: _shl,
        Kind.SKIP_NE_REG: _sne_reg,
        Kind.SET_INDEX: _ld_i,
        Kind.JUMP_V0: _jp_v0,
        Kind.RANDOM: _rnd,
        Kind.DRAW: _drw,
        Kind.SKIP_KEY: _skp,
        Kind.SKIP_NOT_KEY: _sknp,
        Kind.LOAD_DELAY: _ld_vx_dt,
        Kind.AWAIT_KEY: _ld_vx_k,
        Kind.SET_DELAY: _ld_dt,
        Kind.SET_SOUND: _ld_st,
        Kind.ADD_INDEX: _add_i,
        Kind.LOAD_FONT: _ld_f,
        Kind.STORE_BCD: _ld_b,
        Kind.STORE_REGISTERS: _ld_mem_vx,
        Kind.LOAD_REGISTERS: _ld_vx_mem,
        Kind.UNKNOWN: _unknown,
    }
