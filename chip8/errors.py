"""Exception types raised by the CHIP-8 core."""

from __future__ import annotations


class Chip8Error(Exception):
    """Base class for every error raised by the interpreter."""


class RomTooLargeError(Chip8Error, ValueError):
    """ROM image does not fit into program memory."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"ROM is {size} bytes; program memory holds {limit}")
        self.size = size
        self.limit = limit


class MemoryAccessError(Chip8Error, IndexError):
    """Address outside of the 4 KB address space."""

    def __init__(self, address: int, length: int = 1) -> None:
        if length == 1:
            message = f"Memory access out of range: 0x{address:04X}"
        else:
            message = (
                f"Memory access out of range: 0x{address:04X}"
                f"..0x{address + length - 1:04X}"
            )
        super().__init__(message)
        self.address = address
        self.length = length


class StackOverflowError(Chip8Error):
    """Subroutine call with every stack slot already in use."""


class StackUnderflowError(Chip8Error):
    """Return from subroutine with an empty call stack."""


class ConfigError(Chip8Error, ValueError):
    """Invalid machine configuration value."""


__all__ = [
    "Chip8Error",
    "ConfigError",
    "MemoryAccessError",
    "RomTooLargeError",
    "StackOverflowError",
    "StackUnderflowError",
]
