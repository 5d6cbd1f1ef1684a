"""Headless host loop for driving a :class:`~chip8.cpu.Chip8` frame by frame."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from .config import MachineConfig
from .constants import MAX_ROM_SIZE
from .cpu import Chip8
from .errors import RomTooLargeError

logger = logging.getLogger(__name__)


def load_rom_file(path: Union[str, Path]) -> bytes:
    """Read a raw CHIP-8 program, rejecting images that cannot fit."""
    data = Path(path).read_bytes()
    if len(data) > MAX_ROM_SIZE:
        raise RomTooLargeError(len(data), MAX_ROM_SIZE)
    return data


@dataclass
class RunStats:
    frames: int = 0
    cycles: int = 0
    renders: int = 0
    sound_frames: int = 0
    seconds: float = 0.0

    @property
    def instructions_per_second(self) -> float:
        if self.seconds <= 0:
            return 0.0
        return self.cycles / self.seconds


class HeadlessRunner:
    """Run a machine for a number of frames without any window.

    Each frame executes ``cycles_per_frame`` cycles and then plays the
    renderer's part by consuming the framebuffer's ``changed`` flag. When the
    machine's dispatcher has observers, each frame also samples the
    instruction count and both timers as trace counters. With ``realtime``
    set, frames are paced to ``frame_rate`` using ``sleep``.
    """

    def __init__(
        self,
        chip8: Chip8,
        config: Optional[MachineConfig] = None,
        *,
        realtime: bool = False,
        sleep: Callable[[float], None] = time.sleep,
        on_frame: Optional[Callable[[Chip8], None]] = None,
    ) -> None:
        self.chip8 = chip8
        self.config = config or chip8.config
        self.realtime = realtime
        self._sleep = sleep
        self._on_frame = on_frame
        self.stats = RunStats()

    def run_frame(self) -> None:
        for _ in range(self.config.cycles_per_frame):
            self.chip8.cycle()
        self.stats.cycles += self.config.cycles_per_frame
        self.stats.frames += 1
        if self.chip8.framebuffer.consume_changed():
            self.stats.renders += 1
        if self.chip8.sound_active:
            self.stats.sound_frames += 1
        dispatcher = self.chip8.dispatcher
        if dispatcher.has_observers():
            dispatcher.frame_completed(
                self.chip8.instruction_count,
                self.chip8.timers.delay,
                self.chip8.timers.sound,
            )
        if self._on_frame is not None:
            self._on_frame(self.chip8)

    def run(self, frames: int) -> RunStats:
        """Run ``frames`` frames and return the accumulated statistics."""
        frame_period = 1.0 / self.config.frame_rate
        started = time.perf_counter()
        for _ in range(frames):
            frame_start = time.perf_counter()
            self.run_frame()
            if self.realtime:
                remaining = frame_period - (time.perf_counter() - frame_start)
                if remaining > 0:
                    self._sleep(remaining)
        self.stats.seconds += time.perf_counter() - started
        logger.info(
            "Ran %d frames (%d cycles) in %.3fs",
            self.stats.frames,
            self.stats.cycles,
            self.stats.seconds,
        )
        return self.stats


__all__ = ["HeadlessRunner", "RunStats", "load_rom_file"]
