"""Shared pytest fixtures for CHIP-8 core tests."""

from __future__ import annotations

import random

import pytest

from chip8.config import MachineConfig
from chip8.cpu import Chip8
from chip8.timers import ManualClock
from chip8.tracing import TraceDispatcher, TraceEvent


class RecordingObserver:
    """Collects dispatched trace events."""

    def __init__(self) -> None:
        self.events: list[TraceEvent] = []

    def handle_event(self, event: TraceEvent) -> None:
        self.events.append(event)

    def names(self) -> list[str]:
        return [event.name or "" for event in self.events]


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def dispatcher() -> TraceDispatcher:
    return TraceDispatcher()


@pytest.fixture
def recorder(dispatcher: TraceDispatcher) -> RecordingObserver:
    observer = RecordingObserver()
    dispatcher.register(observer)
    return observer


@pytest.fixture
def make_chip8(clock: ManualClock, dispatcher: TraceDispatcher):
    def _make(config: MachineConfig | None = None, seed: int = 1234) -> Chip8:
        return Chip8(
            config,
            clock=clock,
            rng=random.Random(seed),
            dispatcher=dispatcher,
        )

    return _make


@pytest.fixture
def chip8(make_chip8) -> Chip8:
    return make_chip8()
