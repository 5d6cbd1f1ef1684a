#!/usr/bin/env python3
"""Command line runner: execute a ROM headlessly and dump the results."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .config import MachineConfig
from .cpu import Chip8
from .errors import Chip8Error
from .runner import HeadlessRunner, load_rom_file
from .state_model import capture_state
from .tracing import trace_dispatcher

logger = logging.getLogger("chip8")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Headless CHIP-8 interpreter")
    parser.add_argument("rom", type=Path, help="Raw CHIP-8 program image")
    parser.add_argument(
        "--frames", type=int, default=600, help="Number of 60 Hz frames to run"
    )
    parser.add_argument(
        "--cycles-per-frame",
        type=int,
        default=None,
        help="Instructions executed per frame (overrides config)",
    )
    parser.add_argument("--config", type=Path, help="Machine config JSON file")
    parser.add_argument("--seed", type=int, help="Seed for the Cxkk random source")
    parser.add_argument(
        "--realtime",
        action="store_true",
        help="Pace frames to the configured frame rate",
    )
    parser.add_argument("--save-png", type=Path, help="Save the final framebuffer")
    parser.add_argument("--zoom", type=int, default=8, help="PNG scale factor")
    parser.add_argument(
        "--dump-state", type=Path, help="Write the final machine state as JSON"
    )
    parser.add_argument(
        "--print-screen",
        action="store_true",
        help="Print the final framebuffer as text",
    )
    parser.add_argument("--perfetto", type=Path, help="Write a Perfetto trace")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser


def _resolve_config(args: argparse.Namespace) -> MachineConfig:
    config = MachineConfig.load(args.config) if args.config else MachineConfig()
    config = MachineConfig.from_env(config)
    if args.cycles_per_frame is not None:
        config = replace(config, cycles_per_frame=args.cycles_per_frame)
    if args.seed is not None:
        config = replace(config, random_seed=args.seed)
    return config


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.perfetto:
        from .tracing import perfetto_tracing

        perfetto_tracing.install(trace_dispatcher)
        trace_dispatcher.start_trace(args.perfetto)

    try:
        config = _resolve_config(args)
        chip8 = Chip8(config)
        chip8.load_rom(load_rom_file(args.rom))
        stats = HeadlessRunner(chip8, config, realtime=args.realtime).run(args.frames)
    except (Chip8Error, OSError) as exc:
        logger.error("%s", exc)
        return 1
    finally:
        if args.perfetto:
            trace_dispatcher.stop_trace()

    logger.info(
        "frames=%d cycles=%d renders=%d sound_frames=%d",
        stats.frames,
        stats.cycles,
        stats.renders,
        stats.sound_frames,
    )

    if args.save_png:
        chip8.framebuffer.to_image(zoom=args.zoom).save(args.save_png)
        logger.info("Framebuffer saved to %s", args.save_png)
    if args.dump_state:
        with open(args.dump_state, "w") as f:
            json.dump(capture_state(chip8).to_dict(), f, indent=2)
        logger.info("State written to %s", args.dump_state)
    if args.print_screen:
        print(chip8.framebuffer.to_text())
    return 0


if __name__ == "__main__":
    sys.exit(main())
