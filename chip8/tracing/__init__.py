"""Tracing utilities for the CHIP-8 interpreter.

The Perfetto writer lives in :mod:`chip8.tracing.perfetto_tracing` and is
attached to a dispatcher with ``perfetto_tracing.install()``.
"""

from .dispatcher import (
    CPU_TRACK,
    DISPLAY_TRACK,
    FRAME_COUNTERS,
    KEYPAD_TRACK,
    TRACKS,
    TraceDispatcher,
    TraceEvent,
    TraceEventType,
    TraceObserver,
    trace_dispatcher,
)

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
