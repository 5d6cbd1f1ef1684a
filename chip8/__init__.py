"""CHIP-8 interpreter package."""

from .config import MachineConfig, QuirkConfig
from .cpu import Chip8
from .display import Framebuffer
from .errors import (
    Chip8Error,
    ConfigError,
    MemoryAccessError,
    RomTooLargeError,
    StackOverflowError,
    StackUnderflowError,
)
from .instructions import Instruction, Op, decode
from .keypad import KeyEvent, Keypad
from .state_model import (
    CPUState,
    DisplayState,
    FieldDiff,
    KeypadState,
    MachineState,
    StateDiff,
    TimerState,
    capture_state,
    diff_states,
)
from .timers import ManualClock, TimerSubsystem

__all__ = [
    "Chip8",
    "MachineConfig",
    "QuirkConfig",
    "Framebuffer",
    "Keypad",
    "KeyEvent",
    "TimerSubsystem",
    "ManualClock",
    "Instruction",
    "Op",
    "decode",
    "Chip8Error",
    "ConfigError",
    "MemoryAccessError",
    "RomTooLargeError",
    "StackOverflowError",
    "StackUnderflowError",
    "CPUState",
    "TimerState",
    "KeypadState",
    "DisplayState",
    "MachineState",
    "FieldDiff",
    "StateDiff",
    "capture_state",
    "diff_states",
]
