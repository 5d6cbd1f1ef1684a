"""Bounds-checked storage for the CHIP-8 core: RAM, registers and call stack."""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from .constants import (
    BYTE_MASK,
    FONT,
    FONT_START,
    INDEX_MASK,
    MAX_ROM_SIZE,
    MEMORY_SIZE,
    PROGRAM_START,
    REGISTER_COUNT,
    STACK_DEPTH,
)
from .errors import (
    MemoryAccessError,
    RomTooLargeError,
    StackOverflowError,
    StackUnderflowError,
)


class Memory:
    """4 KB byte-addressable RAM with the hex font preloaded at 0x000."""

    def __init__(self, size: int = MEMORY_SIZE) -> None:
        self._data = bytearray(size)
        self.load_font()

    def __len__(self) -> int:
        return len(self._data)

    def _check(self, address: int, length: int = 1) -> None:
        if address < 0 or length < 0 or address + length > len(self._data):
            raise MemoryAccessError(address, length)

    def reset(self) -> None:
        """Zero RAM and reload the font."""
        self._data[:] = bytes(len(self._data))
        self.load_font()

    def load_font(self) -> None:
        self._data[FONT_START : FONT_START + len(FONT)] = FONT

    def load_program(self, data: bytes) -> None:
        """Copy a program image to 0x200.

        Oversized images are rejected before any byte is written.
        """
        if len(data) > MAX_ROM_SIZE:
            raise RomTooLargeError(len(data), MAX_ROM_SIZE)
        self._data[PROGRAM_START : PROGRAM_START + len(data)] = data

    def read_byte(self, address: int) -> int:
        self._check(address)
        return self._data[address]

    def write_byte(self, address: int, value: int) -> None:
        self._check(address)
        self._data[address] = value & BYTE_MASK

    def read_word(self, address: int) -> int:
        """Read a 16-bit big-endian word."""
        self._check(address, 2)
        return (self._data[address] << 8) | self._data[address + 1]

    def read_bytes(self, address: int, length: int) -> bytes:
        self._check(address, length)
        return bytes(self._data[address : address + length])

    def write_bytes(self, address: int, values: Iterable[int]) -> None:
        payload = bytes(value & BYTE_MASK for value in values)
        self._check(address, len(payload))
        self._data[address : address + len(payload)] = payload

    def dump(self) -> bytes:
        """Return an immutable copy of the whole address space."""
        return bytes(self._data)


class RegisterFile:
    """Sixteen 8-bit V registers plus the 16-bit index register."""

    def __init__(self) -> None:
        self._v: List[int] = [0] * REGISTER_COUNT
        self._i = 0

    def reset(self) -> None:
        self._v = [0] * REGISTER_COUNT
        self._i = 0

    @staticmethod
    def _check(index: int) -> None:
        # Indexes come from 4-bit opcode fields; anything else is a bug.
        if not 0 <= index < REGISTER_COUNT:
            raise IndexError(f"V register index out of range: {index}")

    def __getitem__(self, index: int) -> int:
        self._check(index)
        return self._v[index]

    def __setitem__(self, index: int, value: int) -> None:
        self._check(index)
        self._v[index] = value & BYTE_MASK

    @property
    def i(self) -> int:
        return self._i

    @i.setter
    def i(self, value: int) -> None:
        self._i = value & INDEX_MASK

    def snapshot(self) -> Tuple[int, ...]:
        return tuple(self._v)

    def load(self, values: Sequence[int]) -> None:
        if len(values) != REGISTER_COUNT:
            raise ValueError(f"Expected {REGISTER_COUNT} register values")
        self._v = [value & BYTE_MASK for value in values]


class CallStack:
    """Fixed-depth return address stack.

    ``sp`` counts the stored return addresses, so 0 means empty.
    """

    def __init__(self, depth: int = STACK_DEPTH) -> None:
        self._slots: List[int] = [0] * depth
        self._sp = 0

    @property
    def sp(self) -> int:
        return self._sp

    @property
    def depth(self) -> int:
        return len(self._slots)

    def __len__(self) -> int:
        return self._sp

    def reset(self) -> None:
        self._slots = [0] * len(self._slots)
        self._sp = 0

    def push(self, address: int) -> None:
        if self._sp >= len(self._slots):
            raise StackOverflowError(
                f"Call stack overflow: depth {len(self._slots)} exceeded "
                f"calling from 0x{address - 2:03X}"
            )
        self._slots[self._sp] = address
        self._sp += 1

    def pop(self) -> int:
        if self._sp == 0:
            raise StackUnderflowError("Return with empty call stack")
        self._sp -= 1
        return self._slots[self._sp]

    def peek(self) -> int:
        if self._sp == 0:
            raise StackUnderflowError("Call stack is empty")
        return self._slots[self._sp - 1]

    def snapshot(self) -> Tuple[int, ...]:
        """Return the live entries, oldest first."""
        return tuple(self._slots[: self._sp])


__all__ = ["CallStack", "Memory", "RegisterFile"]
