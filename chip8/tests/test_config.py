from __future__ import annotations

import json

import pytest

from chip8.config import MachineConfig, QuirkConfig
from chip8.errors import ConfigError


def test_defaults() -> None:
    config = MachineConfig()
    assert config.cycles_per_frame == 10
    assert config.frame_rate == 60
    assert config.timer_rate_hz == 60
    assert config.instructions_per_second == 600
    assert config.quirks == QuirkConfig()
    assert config.quirks.shift_left_extension
    assert not config.quirks.subtract_reverse_stores_vx


def test_save_and_load_round_trip(tmp_path) -> None:
    path = tmp_path / "machine.json"
    config = MachineConfig(
        name="test",
        cycles_per_frame=20,
        random_seed=5,
        quirks=QuirkConfig(subtract_reverse_stores_vx=True),
    )
    config.save(path)

    assert json.loads(path.read_text())["quirks"]["subtract_reverse_stores_vx"]
    assert MachineConfig.load(path) == config


def test_load_partial_file_uses_defaults(tmp_path) -> None:
    path = tmp_path / "machine.json"
    path.write_text(json.dumps({"cycles_per_frame": 15}))
    config = MachineConfig.load(path)
    assert config.cycles_per_frame == 15
    assert config.frame_rate == 60
    assert config.quirks.shift_left_extension


def test_load_rejects_bad_json(tmp_path) -> None:
    path = tmp_path / "machine.json"
    path.write_text("{not json")
    with pytest.raises(ConfigError):
        MachineConfig.load(path)

    path.write_text("[1, 2]")
    with pytest.raises(ConfigError):
        MachineConfig.load(path)


@pytest.mark.parametrize("value", ["false", 0, None])
def test_load_rejects_non_boolean_quirks(tmp_path, value) -> None:
    path = tmp_path / "machine.json"
    path.write_text(json.dumps({"quirks": {"shift_left_extension": value}}))
    with pytest.raises(ConfigError):
        MachineConfig.load(path)


@pytest.mark.parametrize("field", ["cycles_per_frame", "frame_rate", "timer_rate_hz"])
def test_rejects_non_positive_rates(field: str) -> None:
    with pytest.raises(ConfigError):
        MachineConfig(**{field: 0})


def test_from_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("CHIP8_CYCLES_PER_FRAME", "12")
    monkeypatch.setenv("CHIP8_RANDOM_SEED", "0x10")
    monkeypatch.setenv("CHIP8_SHIFT_LEFT_EXTENSION", "off")
    monkeypatch.setenv("CHIP8_SUBTRACT_REVERSE_STORES_VX", "1")

    config = MachineConfig.from_env()
    assert config.cycles_per_frame == 12
    assert config.random_seed == 16
    assert not config.quirks.shift_left_extension
    assert config.quirks.subtract_reverse_stores_vx


def test_from_env_keeps_base_values(monkeypatch) -> None:
    for name in (
        "CHIP8_CYCLES_PER_FRAME",
        "CHIP8_FRAME_RATE",
        "CHIP8_RANDOM_SEED",
        "CHIP8_SHIFT_LEFT_EXTENSION",
        "CHIP8_SUBTRACT_REVERSE_STORES_VX",
    ):
        monkeypatch.delenv(name, raising=False)
    base = MachineConfig(cycles_per_frame=3, random_seed=9)
    assert MachineConfig.from_env(base) == base


def test_from_env_rejects_garbage(monkeypatch) -> None:
    monkeypatch.setenv("CHIP8_FRAME_RATE", "fast")
    with pytest.raises(ConfigError):
        MachineConfig.from_env()
