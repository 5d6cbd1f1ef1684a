"""Perfetto trace writer fed by the tracing dispatcher.

Events are recorded with ``retrobus-perfetto`` and saved as a protobuf trace
that opens directly in ui.perfetto.dev. Subroutine calls become slices on the
CPU track, draws and key presses become instants, and the per-frame samples
fill one counter track each.
"""

import logging
import threading
import time
from typing import Any, Dict, List, Optional

from retrobus_perfetto import PerfettoTraceBuilder

from .dispatcher import (
    CPU_TRACK,
    FRAME_COUNTERS,
    TRACKS,
    TraceDispatcher,
    TraceEvent,
    TraceEventType,
    trace_dispatcher,
)

logger = logging.getLogger(__name__)

class PerfettoTracer:
    """
    Perfetto tracer using retrobus-perfetto protobuf format.
    Wall-clock timestamps via time.perf_counter().
    Off until start() is called.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._enabled = False
        self._start = 0.0
        self._builder: Optional[PerfettoTraceBuilder] = None
        self._path: Optional[str] = None
        self._track_uuids: Dict[str, int] = {}
        self._counter_tracks: Dict[str, int] = {}
        self._slice_stacks: Dict[str, List[str]] = {}

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def path(self) -> Optional[str]:
        return self._path

    def _now_ns(self) -> int:
        return int((time.perf_counter() - self._start) * 1_000_000_000)

    def _ensure_track(self, name: str) -> int:
        with self._lock:
            if name in self._track_uuids:
                return self._track_uuids[name]
            if not self._builder:
                return 0
            uuid = self._builder.add_thread(name)
            self._track_uuids[name] = uuid
            self._slice_stacks[name] = []
            return uuid

    def _ensure_counter_track(self, name: str, unit: str = "count") -> int:
        with self._lock:
            if name in self._counter_tracks:
                return self._counter_tracks[name]
            if not self._builder:
                return 0
            uuid = self._builder.add_counter_track(name, unit)
            self._counter_tracks[name] = uuid
            return uuid

    def _get_builder(self) -> Optional[PerfettoTraceBuilder]:
        if not self._enabled:
            return None
        return self._builder

    def start(self, path: str = "chip8.perfetto-trace") -> None:
        """Start tracing to the specified file."""
        with self._lock:
            if self._enabled:
                return

            self._enabled = True
            self._path = path
            self._start = time.perf_counter()
            self._track_uuids.clear()
            self._counter_tracks.clear()
            self._slice_stacks.clear()

            self._builder = PerfettoTraceBuilder("CHIP-8 Interpreter")
            for track in TRACKS:
                self._ensure_track(track)
            for counter in FRAME_COUNTERS:
                self._ensure_counter_track(counter)
            logger.info("Perfetto tracing started -> %s", path)

    def stop(self) -> None:
        """Stop tracing and save the file."""
        with self._lock:
            if not self._enabled or not self._builder:
                return

            # Close slices left open by calls that never returned.
            for track_name, stack in self._slice_stacks.items():
                track_uuid = self._track_uuids.get(track_name)
                if track_uuid is None:
                    continue
                while stack:
                    stack.pop()
                    self._builder.end_slice(track_uuid, self._now_ns())

            path = self._path or "chip8.perfetto-trace"
            self._builder.save(path)
            logger.info("Perfetto trace saved to %s", path)

            self._enabled = False
            self._builder = None
            self._track_uuids.clear()
            self._counter_tracks.clear()
            self._slice_stacks.clear()
            self._path = None

    # ---- Event APIs ----

    def instant(
        self, track: str, name: str, args: Optional[Dict[str, Any]] = None
    ) -> None:
        builder = self._get_builder()
        if not builder:
            return
        track_uuid = self._ensure_track(track)
        event = builder.add_instant_event(track_uuid, name, self._now_ns())
        if args:
            event.add_annotations(args)

    def counter(self, name: str, value: float) -> None:
        builder = self._get_builder()
        if not builder:
            return
        track_uuid = self._ensure_counter_track(name)
        builder.update_counter(track_uuid, value, self._now_ns())

    def begin_slice(
        self, track: str, name: str, args: Optional[Dict[str, Any]] = None
    ) -> None:
        builder = self._get_builder()
        if not builder:
            return
        track_uuid = self._ensure_track(track)
        self._slice_stacks.setdefault(track, []).append(name)
        event = builder.begin_slice(track_uuid, name, self._now_ns())
        if args:
            event.add_annotations(args)

    def end_slice(self, track: str) -> None:
        builder = self._get_builder()
        if not builder:
            return
        stack = self._slice_stacks.get(track)
        if not stack:
            # Unbalanced return; nothing open on this track.
            return
        stack.pop()
        builder.end_slice(self._ensure_track(track), self._now_ns())


class PerfettoObserver:
    """Bridge dispatcher events into a :class:`PerfettoTracer`."""

    def __init__(self, tracer: PerfettoTracer) -> None:
        self.tracer = tracer

    def handle_event(self, event: TraceEvent) -> None:
        if event.type == TraceEventType.START:
            path = event.payload.get("output_path") if event.payload else None
            if path:
                self.tracer.start(str(path))
        elif event.type == TraceEventType.STOP:
            self.tracer.stop()
        elif event.type == TraceEventType.INSTANT:
            self.tracer.instant(event.track, event.name or "event", event.payload)
        elif event.type == TraceEventType.COUNTER:
            self.tracer.counter(event.name or "counter", event.payload["value"])
        elif event.type == TraceEventType.CALL:
            self.tracer.begin_slice(CPU_TRACK, event.name or "sub", event.payload)
        elif event.type == TraceEventType.RETURN:
            self.tracer.end_slice(CPU_TRACK)


# Global tracer for convenience
tracer = PerfettoTracer()


def install(dispatcher: TraceDispatcher = trace_dispatcher) -> PerfettoObserver:
    """Register the global tracer with ``dispatcher`` and return the observer."""
    for existing in dispatcher.observers():
        if isinstance(existing, PerfettoObserver) and existing.tracer is tracer:
            return existing
    observer = PerfettoObserver(tracer)
    dispatcher.register(observer)
    return observer


__all__ = ["PerfettoObserver", "PerfettoTracer", "install", "tracer"]
