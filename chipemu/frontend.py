"""
pygame host for the CHIP-8 core.

Keyboard mapping (common layout):

  CHIP-8  =>  Keyboard
  1 2 3 C =>  1 2 3 4
  4 5 6 D =>  Q W E R
  7 8 9 E =>  A S D F
  A 0 B F =>  Z X C V

Escape or closing the window quits.
"""
from __future__ import annotations

import logging
import sys

import numpy as np

try:
    import pygame
except ImportError:
    print("This emulator requires pygame. Install with: pip install pygame", file=sys.stderr)
    raise

from .constants import SCREEN_H, SCREEN_W
from .emulator import Chip8
from .platform import Platform

logger = logging.getLogger(__name__)

# host loop rate; the CPU runs at most one instruction per host tick
HOST_HZ = 1000
FPS = 60
SAMPLE_RATE = 44100

# Keyboard mapping: CHIP-8 key index -> pygame key
KEYMAP = {
    0x0: pygame.K_x,
    0x1: pygame.K_1,
    0x2: pygame.K_2,
    0x3: pygame.K_3,
    0x4: pygame.K_q,
    0x5: pygame.K_w,
    0x6: pygame.K_e,
    0x7: pygame.K_a,
    0x8: pygame.K_s,
    0x9: pygame.K_d,
    0xA: pygame.K_z,
    0xB: pygame.K_c,
    0xC: pygame.K_4,
    0xD: pygame.K_r,
    0xE: pygame.K_f,
    0xF: pygame.K_v,
}
KEY_LOOKUP = {pgk: k_idx for k_idx, pgk in KEYMAP.items()}


def square_wave(tone_hz: int, sample_rate: int = SAMPLE_RATE, volume: float = 0.25) -> np.ndarray:
    """One second of a mono square wave as int16 samples."""
    t = np.arange(sample_rate)
    wave = ((t * tone_hz * 2 / sample_rate) % 2 >= 1).astype('float32') * 2 - 1
    return (wave * volume * 32767).astype('int16')


class Frontend(Platform):
    def __init__(self, chip8: Chip8, scale: int = 10, tone_hz: int = 440, mute: bool = False):
        self.chip8 = chip8
        self.scale = max(1, int(scale))
        self.surface = pygame.display.set_mode(
            (SCREEN_W * self.scale, SCREEN_H * self.scale))
        pygame.display.set_caption("CHIPemu")
        self.clock = pygame.time.Clock()
        self.pending_close = False

        # Audio setup (simple square tone)
        self.tone_hz = tone_hz
        self.sound = None
        if not mute:
            self._init_audio()

        chip8.platform = self

    def _init_audio(self):
        try:
            pygame.mixer.pre_init(SAMPLE_RATE, -16, 1, 256)
            pygame.mixer.init()
            self.sound = pygame.mixer.Sound(buffer=square_wave(self.tone_hz).tobytes())
        except pygame.error as e:
            logger.warning("Audio disabled: %s", e)
            self.sound = None
            return
        self.sound.set_volume(0.2)

    # =============== Platform hooks ===============
    def play_sound(self):
        if self.sound is not None:
            self.sound.play(loops=-1)

    def stop_sound(self):
        if self.sound is not None:
            self.sound.stop()

    # =============== Host loop ===============
    def handle_events(self):
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.pending_close = True
            elif event.type in (pygame.KEYDOWN, pygame.KEYUP):
                is_down = event.type == pygame.KEYDOWN
                # Escape to quit
                if event.key == pygame.K_ESCAPE:
                    self.pending_close = True
                    continue
                k_idx = KEY_LOOKUP.get(event.key)
                if k_idx is not None:
                    self.chip8.keys[k_idx] = is_down

    def render(self):
        # Draw pixels (monochrome)
        surf = self.surface
        surf.fill((0, 0, 0))
        pixel_size = self.scale
        for x, y in self.chip8.framebuffer:
            rect = pygame.Rect(x * pixel_size, y * pixel_size, pixel_size, pixel_size)
            pygame.draw.rect(surf, (255, 255, 255), rect)
        pygame.display.flip()

    def run(self, host_hz: int = HOST_HZ):
        frame_period = 1.0 / FPS
        since_render = frame_period
        self.clock.tick()
        try:
            while not self.pending_close:
                self.handle_events()
                elapsed = self.clock.tick(host_hz) / 1000.0
                self.chip8.step(elapsed)

                # Render when needed, capped at FPS
                since_render += elapsed
                if self.chip8.draw_flag and since_render >= frame_period:
                    self.render()
                    self.chip8.draw_flag = False
                    since_render = 0.0
        finally:
            self.stop_sound()
