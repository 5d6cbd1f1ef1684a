"""Machine configuration for the CHIP-8 interpreter."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from ..constants import TIMER_RATE_HZ
from ..errors import ConfigError

PathLike = Union[str, Path]


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().casefold()
    return normalized not in {"0", "false", "off", ""}


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip(), 0)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def _bool_field(data: Mapping[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be true or false, got {value!r}")
    return value


@dataclass(frozen=True)
class QuirkConfig:
    """Behaviour switches where CHIP-8 interpreters disagree."""

    shift_left_extension: bool = True  # accept the non-standard 8xy8 shift
    subtract_reverse_stores_vx: bool = False  # 8xy7 writes Vx instead of Vy

    def to_dict(self) -> Dict[str, bool]:
        return {
            "shift_left_extension": self.shift_left_extension,
            "subtract_reverse_stores_vx": self.subtract_reverse_stores_vx,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "QuirkConfig":
        return cls(
            shift_left_extension=_bool_field(data, "shift_left_extension", True),
            subtract_reverse_stores_vx=_bool_field(
                data, "subtract_reverse_stores_vx", False
            ),
        )


@dataclass
class MachineConfig:
    """CHIP-8 machine configuration."""

    name: str = "CHIP-8"
    cycles_per_frame: int = 10
    frame_rate: int = 60
    timer_rate_hz: int = TIMER_RATE_HZ
    random_seed: Optional[int] = None
    quirks: QuirkConfig = field(default_factory=QuirkConfig)

    def __post_init__(self) -> None:
        for attr in ("cycles_per_frame", "frame_rate", "timer_rate_hz"):
            value = getattr(self, attr)
            if not isinstance(value, int) or value <= 0:
                raise ConfigError(f"{attr} must be a positive integer, got {value!r}")

    @property
    def instructions_per_second(self) -> int:
        return self.cycles_per_frame * self.frame_rate

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "cycles_per_frame": self.cycles_per_frame,
            "frame_rate": self.frame_rate,
            "timer_rate_hz": self.timer_rate_hz,
            "random_seed": self.random_seed,
            "quirks": self.quirks.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MachineConfig":
        return cls(
            name=data.get("name", "CHIP-8"),
            cycles_per_frame=data.get("cycles_per_frame", 10),
            frame_rate=data.get("frame_rate", 60),
            timer_rate_hz=data.get("timer_rate_hz", TIMER_RATE_HZ),
            random_seed=data.get("random_seed"),
            quirks=QuirkConfig.from_dict(data.get("quirks", {})),
        )

    def save(self, path: PathLike) -> None:
        """Save configuration to JSON file."""
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: PathLike) -> "MachineConfig":
        """Load configuration from JSON file."""
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid configuration file {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file {path} must hold a JSON object")
        return cls.from_dict(data)

    @classmethod
    def from_env(cls, base: Optional["MachineConfig"] = None) -> "MachineConfig":
        """Apply ``CHIP8_*`` environment overrides on top of ``base``."""
        config = base or cls()
        quirks = QuirkConfig(
            shift_left_extension=_env_flag(
                "CHIP8_SHIFT_LEFT_EXTENSION", config.quirks.shift_left_extension
            ),
            subtract_reverse_stores_vx=_env_flag(
                "CHIP8_SUBTRACT_REVERSE_STORES_VX",
                config.quirks.subtract_reverse_stores_vx,
            ),
        )
        return replace(
            config,
            cycles_per_frame=_env_int(
                "CHIP8_CYCLES_PER_FRAME", config.cycles_per_frame
            ),
            frame_rate=_env_int("CHIP8_FRAME_RATE", config.frame_rate),
            random_seed=_env_int("CHIP8_RANDOM_SEED", config.random_seed),
            quirks=quirks,
        )


__all__ = ["MachineConfig", "QuirkConfig"]
