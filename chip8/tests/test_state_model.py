"""Snapshot and diff tests for the machine state model."""

from __future__ import annotations

import json

from chip8.state_model import capture_state, diff_states


def test_capture_initial_state(chip8) -> None:
    state = capture_state(chip8)
    assert state.cpu.pc == 0x200
    assert state.cpu.sp == 0
    assert state.cpu.v == (0,) * 16
    assert state.cpu.stack == ()
    assert state.timers.delay == 0
    assert state.keypad.pressed == ()
    assert state.display.rows == (0,) * 32
    assert state.display.changed


def test_identical_snapshots_have_empty_diff(chip8) -> None:
    assert diff_states(capture_state(chip8), capture_state(chip8)).is_empty()


def test_diff_tracks_register_and_pc_changes(chip8) -> None:
    before = capture_state(chip8)
    chip8.run_opcode(0x6A05)
    diff = diff_states(before, capture_state(chip8))

    names = {d.name for d in diff.cpu}
    assert names == {"pc", "v", "instruction_count"}
    assert not diff.display_changed
    assert not diff.memory_changed
    assert not diff.is_empty()


def test_diff_tracks_display_memory_and_keypad(chip8) -> None:
    before = capture_state(chip8)
    chip8.v[0] = 123
    chip8.i = 0x300
    chip8.run_opcode(0xF033)
    chip8.v[0] = 0
    chip8.i = 0
    chip8.run_opcode(0xD001)
    chip8.keypad.press(0xE)
    after = capture_state(chip8)

    diff = diff_states(before, after)
    assert diff.memory_changed
    assert diff.display_changed
    assert {d.name for d in diff.keypad} == {"pressed", "last_key_pressed"}
    assert after.display.rows[0] == 0xF0 << 56
    assert after.display.lit_count() == 4


def test_display_rows_pack_msb_first(chip8) -> None:
    chip8.framebuffer.draw(0, 1, 1, [0x80])
    chip8.framebuffer.draw(63, 2, 1, [0x80])
    state = capture_state(chip8)
    assert state.display.rows[1] == 1 << 63
    assert state.display.rows[2] == 1
    assert state.display.lit_count() == 2


def test_to_dict_is_json_serialisable(chip8) -> None:
    chip8.run_opcode(0x2300)
    data = capture_state(chip8).to_dict()
    encoded = json.loads(json.dumps(data))
    assert encoded["cpu"]["stack"] == [0x202]
    assert encoded["cpu"]["pc"] == 0x300
    assert len(encoded["display"]["rows"]) == 32
    assert len(encoded["memory_sha1"]) == 40
