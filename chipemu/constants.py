"""Machine constants shared by the CHIP-8 core and its frontend."""

MEM_SIZE = 4096
START_ADDRESS = 0x200
MAX_ROM_SIZE = MEM_SIZE - START_ADDRESS
SCREEN_W, SCREEN_H = 64, 32
REGISTER_COUNT = 16
STACK_SIZE = 16
KEY_COUNT = 16

# Glyph for hex digit d starts at FONT_ADDRESS + d * FONT_STRIDE; its five
# rows sit on even offsets and the odd bytes stay zero.
FONT_ADDRESS = 0x000
FONT_STRIDE = 0x0A

# Classic CHIP-8 4x5 font (each char 5 bytes)
FONTSET = [
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80   # F
]
GLYPH_HEIGHT = 5

# Scheduling rates (Hz)
CPU_HZ = 500
TIMER_HZ = 60
# Ceiling for the step accumulators, in seconds
MAX_ACCUMULATED = 1.0
