"""Hex keypad state and the wait-for-keypress latch."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .constants import KEY_COUNT, NO_KEY

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyEvent:
    """Key-down / key-up notification from the input source."""

    key: str
    pressed: bool


def _build_key_map() -> Dict[str, int]:
    """Map the left block of a QWERTY keyboard onto the COSMAC VIP pad."""

    # Physical layout (rows)      CHIP-8 keys
    #   1 2 3 4                     1 2 3 C
    #   q w e r                     4 5 6 D
    #   a s d f                     7 8 9 E
    #   z x c v                     A 0 B F
    physical = ["1234", "qwer", "asdf", "zxcv"]
    hexpad = [
        [0x1, 0x2, 0x3, 0xC],
        [0x4, 0x5, 0x6, 0xD],
        [0x7, 0x8, 0x9, 0xE],
        [0xA, 0x0, 0xB, 0xF],
    ]
    mapping: Dict[str, int] = {}
    for keys, values in zip(physical, hexpad):
        for name, value in zip(keys, values):
            mapping[name] = value
    return mapping


KEY_MAP: Dict[str, int] = _build_key_map()


class Keypad:
    """Sixteen key flags plus the two-phase wait latch used by ``Fx0A``."""

    def __init__(self, key_map: Optional[Dict[str, int]] = None) -> None:
        self._key_map = dict(KEY_MAP if key_map is None else key_map)
        self.keys: List[bool] = [False] * KEY_COUNT
        self.waiting_for_keypress = False
        self.last_key_pressed = NO_KEY

    def reset(self) -> None:
        self.keys = [False] * KEY_COUNT
        self.waiting_for_keypress = False
        self.last_key_pressed = NO_KEY

    def map_key(self, name: str) -> Optional[int]:
        return self._key_map.get(name.lower())

    def handle_event(self, event: KeyEvent) -> bool:
        """Apply an input event; return False when the key is not mapped."""

        index = self.map_key(event.key)
        if index is None:
            logger.debug("Ignoring unmapped key %r", event.key)
            return False
        if event.pressed:
            self.press(index)
        else:
            self.release(index)
        return True

    def press(self, index: int) -> None:
        self._check(index)
        self.keys[index] = True
        self.last_key_pressed = index

    def release(self, index: int) -> None:
        self._check(index)
        self.keys[index] = False

    def get_key(self, index: int) -> bool:
        self._check(index)
        return self.keys[index]

    def pressed_keys(self) -> Tuple[int, ...]:
        return tuple(index for index, down in enumerate(self.keys) if down)

    def wait_for_keypress(self) -> int:
        """Poll the wait latch.

        The first call arms the wait and returns ``NO_KEY``. Later calls keep
        returning ``NO_KEY`` until a key press lands, then disarm and return
        the key index.
        """
        if self.waiting_for_keypress:
            if self.last_key_pressed != NO_KEY:
                self.waiting_for_keypress = False
        else:
            self.last_key_pressed = NO_KEY
            self.waiting_for_keypress = True

        return self.last_key_pressed

    @staticmethod
    def _check(index: int) -> None:
        if not 0 <= index < KEY_COUNT:
            raise IndexError(f"Key index out of range: {index}")


__all__ = ["KEY_MAP", "KeyEvent", "Keypad"]
