"""Interpreter trace events and the dispatcher that delivers them.

The CPU and the runner describe what happened in CHIP-8 terms (a sprite was
drawn, a subroutine was entered, a frame finished) and the dispatcher turns
each report into a :class:`TraceEvent` on one of a few fixed tracks. Writers
such as the Perfetto observer only ever see those events.

Callers guard emission with :meth:`TraceDispatcher.has_observers` so an
untraced run never builds event objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol

CPU_TRACK = "CPU"
DISPLAY_TRACK = "Display"
KEYPAD_TRACK = "Keypad"
TRACKS = (CPU_TRACK, DISPLAY_TRACK, KEYPAD_TRACK)

# Counters sampled once per frame by the runner.
INSTRUCTIONS_COUNTER = "instructions"
DELAY_TIMER_COUNTER = "delay_timer"
SOUND_TIMER_COUNTER = "sound_timer"
FRAME_COUNTERS = (INSTRUCTIONS_COUNTER, DELAY_TIMER_COUNTER, SOUND_TIMER_COUNTER)


class TraceEventType(Enum):
    START = "start"
    STOP = "stop"
    INSTANT = "instant"
    COUNTER = "counter"
    CALL = "call"
    RETURN = "return"


@dataclass
class TraceEvent:
    type: TraceEventType
    track: str = CPU_TRACK
    name: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)


class TraceObserver(Protocol):
    def handle_event(self, event: TraceEvent) -> None: ...


class TraceDispatcher:
    """Fan interpreter events out to every registered observer."""

    def __init__(self) -> None:
        self._observers: List[TraceObserver] = []

    def register(self, observer: TraceObserver) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def unregister(self, observer: TraceObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def observers(self) -> Iterable[TraceObserver]:
        return tuple(self._observers)

    def has_observers(self) -> bool:
        return bool(self._observers)

    # ------------------------------------------------------------------ #
    # Session control
    # ------------------------------------------------------------------ #
    def start_trace(self, output_path: Path | str) -> None:
        self._emit(
            TraceEvent(TraceEventType.START, payload={"output_path": Path(output_path)})
        )

    def stop_trace(self) -> None:
        self._emit(TraceEvent(TraceEventType.STOP))

    # ------------------------------------------------------------------ #
    # Interpreter events
    # ------------------------------------------------------------------ #
    def subroutine_call(self, target: int, caller: int) -> None:
        """2nnn: open a ``sub_NNN`` slice on the CPU track."""
        self._emit(
            TraceEvent(
                TraceEventType.CALL,
                name=f"sub_{target:03X}",
                payload={"target": target, "caller": caller},
            )
        )

    def subroutine_return(self, from_pc: int, to_pc: int) -> None:
        """00EE: close the innermost CPU slice."""
        self._emit(
            TraceEvent(
                TraceEventType.RETURN,
                payload={"from_pc": from_pc, "to_pc": to_pc},
            )
        )

    def screen_cleared(self, pc: int) -> None:
        self._instant(DISPLAY_TRACK, "clear", pc=pc)

    def sprite_drawn(self, x: int, y: int, rows: int, collision: bool) -> None:
        self._instant(
            DISPLAY_TRACK, "draw", x=x, y=y, rows=rows, collision=collision
        )

    def key_resolved(self, key: int, register: int) -> None:
        """Fx0A finished waiting and stored ``key`` in V``register``."""
        self._instant(KEYPAD_TRACK, "keypress_resolved", key=key, register=register)

    def unknown_opcode(self, opcode: int, pc: int) -> None:
        self._instant(CPU_TRACK, "unknown_opcode", opcode=opcode, pc=pc)

    def frame_completed(self, instruction_count: int, delay: int, sound: int) -> None:
        """Sample the per-frame counters."""
        self._counter(INSTRUCTIONS_COUNTER, instruction_count)
        self._counter(DELAY_TIMER_COUNTER, delay)
        self._counter(SOUND_TIMER_COUNTER, sound)

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _instant(self, track: str, name: str, **payload: Any) -> None:
        self._emit(
            TraceEvent(TraceEventType.INSTANT, track=track, name=name, payload=payload)
        )

    def _counter(self, name: str, value: int) -> None:
        self._emit(TraceEvent(TraceEventType.COUNTER, name=name, payload={"value": value}))

    def _emit(self, event: TraceEvent) -> None:
        for observer in tuple(self._observers):
            observer.handle_event(event)


# Shared by every machine that is not given its own dispatcher.
trace_dispatcher = TraceDispatcher()

__all__ = [
    "CPU_TRACK",
    "DISPLAY_TRACK",
    "FRAME_COUNTERS",
    "KEYPAD_TRACK",
    "TRACKS",
    "TraceDispatcher",
    "TraceEvent",
    "TraceEventType",
    "TraceObserver",
    "trace_dispatcher",
]
