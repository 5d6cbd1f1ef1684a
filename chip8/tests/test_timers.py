from __future__ import annotations

import pytest

from chip8.timers import ManualClock, TimerSubsystem


def test_timer_subsystem_decays_after_elapsed_time() -> None:
    clock = ManualClock()
    timers = TimerSubsystem(clock=clock)
    timers.delay = 200
    timers.sound = 200

    clock.advance(1000)
    timers.cycle()

    assert timers.delay < 200
    assert timers.sound < 200
    assert timers.delay >= 140


def test_no_tick_before_one_period() -> None:
    clock = ManualClock()
    timers = TimerSubsystem(clock=clock)
    timers.delay = 5

    clock.advance(10)
    assert timers.cycle() == 0
    assert timers.delay == 5

    # Remainder carries over to the next call
    clock.advance(10)
    assert timers.cycle() == 1
    assert timers.delay == 4


def test_rate_independent_of_call_count() -> None:
    clock = ManualClock()
    many = TimerSubsystem(clock=clock)
    many.delay = 100
    for _ in range(101):
        many.cycle()
        clock.advance(5)
    many.cycle()
    # 505 ms in 5 ms steps
    assert many.ticks == 30
    assert many.delay == 100 - 30


def test_counters_floor_at_zero() -> None:
    clock = ManualClock()
    timers = TimerSubsystem(clock=clock)
    timers.delay = 2
    timers.sound = 1
    clock.advance(1010)
    assert timers.cycle() == 60
    assert timers.delay == 0
    assert timers.sound == 0
    assert timers.ticks == 60


def test_setters_mask_to_byte() -> None:
    timers = TimerSubsystem(clock=ManualClock())
    timers.delay = 0x1FF
    assert timers.delay == 0xFF


def test_reset_restarts_reference() -> None:
    clock = ManualClock()
    timers = TimerSubsystem(clock=clock)
    timers.delay = 50
    clock.advance(500)
    timers.reset()
    timers.delay = 50
    timers.cycle()
    assert timers.delay == 50
    assert timers.accumulator_ms == 0


def test_backwards_clock_is_ignored() -> None:
    clock = ManualClock(now_ms=100)
    timers = TimerSubsystem(clock=clock)
    timers.delay = 10
    clock.now_ms = 50
    timers.cycle()
    assert timers.delay == 10


def test_invalid_rate() -> None:
    with pytest.raises(ValueError):
        TimerSubsystem(clock=ManualClock(), rate_hz=0)


def test_manual_clock_rejects_negative_advance() -> None:
    with pytest.raises(ValueError):
        ManualClock().advance(-1)
