"""Immutable machine snapshots and diff utilities."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Tuple

from .cpu import Chip8


@dataclass(frozen=True)
class CPUState:
    """Registers, stack and execution counters."""

    pc: int
    i: int
    sp: int
    v: Tuple[int, ...]
    stack: Tuple[int, ...]
    instruction_count: int
    cycle_count: int


@dataclass(frozen=True)
class TimerState:
    delay: int
    sound: int
    ticks: int


@dataclass(frozen=True)
class KeypadState:
    pressed: Tuple[int, ...]
    waiting_for_keypress: bool
    last_key_pressed: int


@dataclass(frozen=True)
class DisplayState:
    """Framebuffer contents as packed rows (one int per row, MSB = column 0)."""

    rows: Tuple[int, ...]
    changed: bool

    def lit_count(self) -> int:
        return sum(bin(row).count("1") for row in self.rows)


@dataclass(frozen=True)
class MachineState:
    """Composite snapshot of the whole machine."""

    cpu: CPUState
    timers: TimerState
    keypad: KeypadState
    display: DisplayState
    memory_digest: str

    def to_dict(self) -> Dict[str, Any]:
        """JSON friendly representation."""
        return {
            "cpu": {
                "pc": self.cpu.pc,
                "i": self.cpu.i,
                "sp": self.cpu.sp,
                "v": list(self.cpu.v),
                "stack": list(self.cpu.stack),
                "instruction_count": self.cpu.instruction_count,
                "cycle_count": self.cpu.cycle_count,
            },
            "timers": {
                "delay": self.timers.delay,
                "sound": self.timers.sound,
                "ticks": self.timers.ticks,
            },
            "keypad": {
                "pressed": list(self.keypad.pressed),
                "waiting_for_keypress": self.keypad.waiting_for_keypress,
                "last_key_pressed": self.keypad.last_key_pressed,
            },
            "display": {
                "rows": [f"{row:016X}" for row in self.display.rows],
                "changed": self.display.changed,
            },
            "memory_sha1": self.memory_digest,
        }


@dataclass(frozen=True)
class FieldDiff:
    """Difference for a single named field."""

    name: str
    before: object
    after: object


@dataclass(frozen=True)
class StateDiff:
    """Aggregated differences between two machine states."""

    cpu: Tuple[FieldDiff, ...] = field(default_factory=tuple)
    timers: Tuple[FieldDiff, ...] = field(default_factory=tuple)
    keypad: Tuple[FieldDiff, ...] = field(default_factory=tuple)
    display_changed: bool = False
    memory_changed: bool = False

    def is_empty(self) -> bool:
        """Return True when no differences were recorded."""

        return (
            not self.cpu
            and not self.timers
            and not self.keypad
            and not self.display_changed
            and not self.memory_changed
        )


def _pack_rows(chip8: Chip8) -> Tuple[int, ...]:
    packed = []
    for row in chip8.framebuffer.pixels:
        value = 0
        for cell in row:
            value = (value << 1) | int(cell)
        packed.append(value)
    return tuple(packed)


def capture_state(chip8: Chip8) -> MachineState:
    """Capture an immutable snapshot of ``chip8``."""

    cpu = CPUState(
        pc=chip8.pc,
        i=chip8.i,
        sp=chip8.sp,
        v=chip8.v.snapshot(),
        stack=chip8.stack.snapshot(),
        instruction_count=chip8.instruction_count,
        cycle_count=chip8.cycle_count,
    )
    timers = TimerState(
        delay=chip8.timers.delay,
        sound=chip8.timers.sound,
        ticks=chip8.timers.ticks,
    )
    keypad = KeypadState(
        pressed=chip8.keypad.pressed_keys(),
        waiting_for_keypress=chip8.keypad.waiting_for_keypress,
        last_key_pressed=chip8.keypad.last_key_pressed,
    )
    display = DisplayState(rows=_pack_rows(chip8), changed=chip8.framebuffer.changed)
    digest = hashlib.sha1(chip8.memory.dump()).hexdigest()
    return MachineState(
        cpu=cpu,
        timers=timers,
        keypad=keypad,
        display=display,
        memory_digest=digest,
    )


def _diff_fields(before: object, after: object) -> Tuple[FieldDiff, ...]:
    diffs = []
    for f in fields(before):  # type: ignore[arg-type]
        old = getattr(before, f.name)
        new = getattr(after, f.name)
        if old != new:
            diffs.append(FieldDiff(f.name, old, new))
    return tuple(diffs)


def diff_states(before: MachineState, after: MachineState) -> StateDiff:
    """Compute the differences between two snapshots."""

    return StateDiff(
        cpu=_diff_fields(before.cpu, after.cpu),
        timers=_diff_fields(before.timers, after.timers),
        keypad=_diff_fields(before.keypad, after.keypad),
        display_changed=before.display.rows != after.display.rows,
        memory_changed=before.memory_digest != after.memory_digest,
    )


__all__ = [
    "CPUState",
    "DisplayState",
    "FieldDiff",
    "KeypadState",
    "MachineState",
    "StateDiff",
    "TimerState",
    "capture_state",
    "diff_states",
]
