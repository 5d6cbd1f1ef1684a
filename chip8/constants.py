"""Shared machine constants for the CHIP-8 interpreter.

Everything that describes the fixed shape of the virtual machine lives here so
the CPU, peripherals and tests agree on a single set of numbers.
"""

# 4 KB of byte-addressable memory. The first 512 bytes are reserved for the
# interpreter; the hex font lives at the very start of that region.
MEMORY_SIZE = 0x1000
FONT_START = 0x000
PROGRAM_START = 0x200
MAX_ROM_SIZE = MEMORY_SIZE - PROGRAM_START  # 3584 bytes

REGISTER_COUNT = 16
FLAG_REGISTER = 0xF
STACK_DEPTH = 16

# Register widths
BYTE_MASK = 0xFF
INDEX_MASK = 0xFFFF
ADDRESS_MASK = 0x0FFF

DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32
SPRITE_WIDTH = 8
# Dxyn encodes the row count in a single nibble.
MAX_SPRITE_HEIGHT = 15

KEY_COUNT = 16
# Returned by the keypad while a wait-for-keypress is unresolved.
NO_KEY = 0x10

TIMER_RATE_HZ = 60

# Each glyph is 5 rows tall; Fx29 relies on this stride.
FONT_GLYPH_SIZE = 5
FONT = bytes(
    [
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
        0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
    ]
)
