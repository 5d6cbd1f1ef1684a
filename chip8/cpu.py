"""CHIP-8 interpreter core.

:class:`Chip8` owns the whole machine: memory, registers, call stack and the
three peripherals the instruction set touches directly (framebuffer, keypad
and timers). A host loop calls :meth:`Chip8.cycle` repeatedly; each call
executes exactly one instruction and then lets the timers catch up with wall
clock time.

Every handler returns the number of bytes the program counter advances by:
0 for control transfers (and an unresolved ``Fx0A``), 2 for ordinary
instructions and 4 when a skip is taken.
"""

from __future__ import annotations

import logging
import random
from typing import Callable, Dict, Optional

from .config import MachineConfig
from .constants import (
    BYTE_MASK,
    FLAG_REGISTER,
    FONT_GLYPH_SIZE,
    FONT_START,
    INDEX_MASK,
    NO_KEY,
    PROGRAM_START,
)
from .display import Framebuffer
from .instructions import Instruction, Op, decode
from .keypad import Keypad
from .memory import CallStack, Memory, RegisterFile
from .timers import Clock, TimerSubsystem, monotonic_ms
from .tracing import TraceDispatcher, trace_dispatcher

logger = logging.getLogger(__name__)

Handler = Callable[[Instruction], int]

NEXT = 2
SKIP = 4
STAY = 0

_HANDLER_NAMES: Dict[Op, str] = {
    Op.CLS: "op_00E0",
    Op.RET: "op_00EE",
    Op.JP: "op_1nnn",
    Op.CALL: "op_2nnn",
    Op.SE_BYTE: "op_3xkk",
    Op.SNE_BYTE: "op_4xkk",
    Op.SE_REG: "op_5xy0",
    Op.LD_BYTE: "op_6xkk",
    Op.ADD_BYTE: "op_7xkk",
    Op.LD_REG: "op_8xy0",
    Op.OR: "op_8xy1",
    Op.AND: "op_8xy2",
    Op.XOR: "op_8xy3",
    Op.ADD_REG: "op_8xy4",
    Op.SUB: "op_8xy5",
    Op.SHR: "op_8xy6",
    Op.SUBN: "op_8xy7",
    Op.SHL_EXT: "op_8xy8",
    Op.SHL: "op_8xyE",
    Op.SNE_REG: "op_9xy0",
    Op.LD_I: "op_Annn",
    Op.JP_V0: "op_Bnnn",
    Op.RND: "op_Cxkk",
    Op.DRW: "op_Dxyn",
    Op.SKP: "op_Ex9E",
    Op.SKNP: "op_ExA1",
    Op.LD_VX_DT: "op_Fx07",
    Op.LD_VX_K: "op_Fx0A",
    Op.LD_DT_VX: "op_Fx15",
    Op.LD_ST_VX: "op_Fx18",
    Op.ADD_I: "op_Fx1E",
    Op.LD_F: "op_Fx29",
    Op.LD_B: "op_Fx33",
    Op.LD_MEM_VX: "op_Fx55",
    Op.LD_VX_MEM: "op_Fx65",
    Op.UNKNOWN: "unimplemented",
}

if set(_HANDLER_NAMES) != set(Op):
    raise RuntimeError(
        f"Missing handlers for {sorted(op.name for op in set(Op) - set(_HANDLER_NAMES))}"
    )


class Chip8:
    """The CHIP-8 virtual machine."""

    def __init__(
        self,
        config: Optional[MachineConfig] = None,
        *,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
        dispatcher: Optional[TraceDispatcher] = None,
    ) -> None:
        self.config = config or MachineConfig()
        self.memory = Memory()
        self.v = RegisterFile()
        self.stack = CallStack()
        self.pc = PROGRAM_START

        self.framebuffer = Framebuffer()
        self.keypad = Keypad()
        self.timers = TimerSubsystem(
            clock=clock or monotonic_ms, rate_hz=self.config.timer_rate_hz
        )

        self.rng = rng or random.Random(self.config.random_seed)
        self.dispatcher = dispatcher or trace_dispatcher
        self._rom = b""

        self.instruction_count = 0
        self.cycle_count = 0

        self._handlers: Dict[Op, Handler] = {
            op: getattr(self, name) for op, name in _HANDLER_NAMES.items()
        }

    # ------------------------------------------------------------------ #
    # Register views
    # ------------------------------------------------------------------ #

    @property
    def i(self) -> int:
        return self.v.i

    @i.setter
    def i(self, value: int) -> None:
        self.v.i = value

    @property
    def sp(self) -> int:
        return self.stack.sp

    @property
    def sound_active(self) -> bool:
        """True while the audio collaborator should be playing a tone."""
        return self.timers.sound > 0

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def load_rom(self, rom: bytes) -> None:
        """Copy a program into memory at 0x200.

        Raises:
            RomTooLargeError: the image exceeds the 3584 bytes of program
                memory. Memory is left untouched.
            TypeError: ``rom`` is not a bytes-like object.
        """
        # memoryview rejects ints, which bytes() would expand to zero bytes.
        data = memoryview(rom).tobytes()
        self.memory.load_program(data)
        self._rom = data
        logger.debug("Loaded %d byte ROM at 0x%03X", len(data), PROGRAM_START)

    def reset(self) -> None:
        """Return to power-on state, reloading the last ROM."""
        self.memory.reset()
        if self._rom:
            self.memory.load_program(self._rom)
        self.v.reset()
        self.stack.reset()
        self.pc = PROGRAM_START
        self.framebuffer.clear()
        self.keypad.reset()
        self.timers.reset()
        self.instruction_count = 0
        self.cycle_count = 0
        logger.debug("Machine reset")

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #

    def fetch_opcode(self) -> int:
        """Return the big-endian opcode at the program counter."""
        return self.memory.read_word(self.pc)

    def decode(self, opcode: int) -> Instruction:
        return decode(
            opcode, shift_left_extension=self.config.quirks.shift_left_extension
        )

    def cycle(self) -> None:
        """Execute one instruction and advance the timers."""
        self.run_opcode(self.fetch_opcode())
        self.timers.cycle()
        self.cycle_count += 1

    def run_opcode(self, opcode: int) -> None:
        """Decode and execute ``opcode``, then apply its PC delta."""
        instruction = self.decode(opcode)
        pc_change = self._handlers[instruction.op](instruction)
        self.pc = (self.pc + pc_change) & INDEX_MASK
        self.instruction_count += 1

    # ------------------------------------------------------------------ #
    # Instruction handlers
    # ------------------------------------------------------------------ #

    # Clear display
    def op_00E0(self, ins: Instruction) -> int:
        self.framebuffer.clear()
        if self.dispatcher.has_observers():
            self.dispatcher.screen_cleared(self.pc)
        return NEXT

    # Return from subroutine
    def op_00EE(self, ins: Instruction) -> int:
        from_pc = self.pc
        self.pc = self.stack.pop()
        if self.dispatcher.has_observers():
            self.dispatcher.subroutine_return(from_pc, self.pc)
        return STAY

    # Jump to address nnn
    def op_1nnn(self, ins: Instruction) -> int:
        self.pc = ins.nnn
        return STAY

    # Call subroutine at nnn; the return address is the next instruction
    def op_2nnn(self, ins: Instruction) -> int:
        caller = self.pc
        self.stack.push(caller + 2)
        self.pc = ins.nnn
        if self.dispatcher.has_observers():
            self.dispatcher.subroutine_call(ins.nnn, caller)
        return STAY

    def op_3xkk(self, ins: Instruction) -> int:
        return SKIP if self.v[ins.x] == ins.kk else NEXT

    def op_4xkk(self, ins: Instruction) -> int:
        return SKIP if self.v[ins.x] != ins.kk else NEXT

    def op_5xy0(self, ins: Instruction) -> int:
        return SKIP if self.v[ins.x] == self.v[ins.y] else NEXT

    def op_6xkk(self, ins: Instruction) -> int:
        self.v[ins.x] = ins.kk
        return NEXT

    # Add without touching VF
    def op_7xkk(self, ins: Instruction) -> int:
        self.v[ins.x] = (self.v[ins.x] + ins.kk) & BYTE_MASK
        return NEXT

    def op_8xy0(self, ins: Instruction) -> int:
        self.v[ins.x] = self.v[ins.y]
        return NEXT

    def op_8xy1(self, ins: Instruction) -> int:
        self.v[ins.x] = self.v[ins.x] | self.v[ins.y]
        return NEXT

    def op_8xy2(self, ins: Instruction) -> int:
        self.v[ins.x] = self.v[ins.x] & self.v[ins.y]
        return NEXT

    def op_8xy3(self, ins: Instruction) -> int:
        self.v[ins.x] = self.v[ins.x] ^ self.v[ins.y]
        return NEXT

    # Flag handlers below write VF first and the result second, so a
    # result register of VF ends up holding the result.

    # Add Vy to Vx, VF = carry
    def op_8xy4(self, ins: Instruction) -> int:
        total = self.v[ins.x] + self.v[ins.y]
        self.v[FLAG_REGISTER] = 1 if total > BYTE_MASK else 0
        self.v[ins.x] = total & BYTE_MASK
        return NEXT

    # Subtract Vy from Vx, VF = 1 if Vx > Vy
    def op_8xy5(self, ins: Instruction) -> int:
        vx, vy = self.v[ins.x], self.v[ins.y]
        self.v[FLAG_REGISTER] = 1 if vx > vy else 0
        self.v[ins.x] = (vx - vy) & BYTE_MASK
        return NEXT

    # Shift Vx right, VF = bit shifted out
    def op_8xy6(self, ins: Instruction) -> int:
        vx = self.v[ins.x]
        self.v[FLAG_REGISTER] = vx & 1
        self.v[ins.x] = vx >> 1
        return NEXT

    # Vy - Vx, VF = 1 if Vy > Vx; destination depends on quirk
    def op_8xy7(self, ins: Instruction) -> int:
        vx, vy = self.v[ins.x], self.v[ins.y]
        self.v[FLAG_REGISTER] = 1 if vy > vx else 0
        target = ins.x if self.config.quirks.subtract_reverse_stores_vx else ins.y
        self.v[target] = (vy - vx) & BYTE_MASK
        return NEXT

    # Non-standard shift left; VF takes the low bit like 8xy6
    def op_8xy8(self, ins: Instruction) -> int:
        vx = self.v[ins.x]
        self.v[FLAG_REGISTER] = vx & 1
        self.v[ins.x] = (vx << 1) & BYTE_MASK
        return NEXT

    # Shift Vx left, VF = bit shifted out
    def op_8xyE(self, ins: Instruction) -> int:
        vx = self.v[ins.x]
        self.v[FLAG_REGISTER] = (vx >> 7) & 1
        self.v[ins.x] = (vx << 1) & BYTE_MASK
        return NEXT

    def op_9xy0(self, ins: Instruction) -> int:
        return SKIP if self.v[ins.x] != self.v[ins.y] else NEXT

    def op_Annn(self, ins: Instruction) -> int:
        self.i = ins.nnn
        return NEXT

    def op_Bnnn(self, ins: Instruction) -> int:
        self.pc = ins.nnn + self.v[0]
        return STAY

    def op_Cxkk(self, ins: Instruction) -> int:
        self.v[ins.x] = self.rng.randrange(256) & ins.kk
        return NEXT

    # Draw n-byte sprite from memory[I] at (Vx, Vy), VF = collision
    def op_Dxyn(self, ins: Instruction) -> int:
        sprite = self.memory.read_bytes(self.i, ins.n)
        x, y = self.v[ins.x], self.v[ins.y]
        collision = self.framebuffer.draw(x, y, ins.n, sprite)
        self.v[FLAG_REGISTER] = 1 if collision else 0
        if self.dispatcher.has_observers():
            self.dispatcher.sprite_drawn(x, y, ins.n, collision)
        return NEXT

    # Key indexes use the low nibble of Vx
    def op_Ex9E(self, ins: Instruction) -> int:
        return SKIP if self.keypad.get_key(self.v[ins.x] & 0xF) else NEXT

    def op_ExA1(self, ins: Instruction) -> int:
        return SKIP if not self.keypad.get_key(self.v[ins.x] & 0xF) else NEXT

    def op_Fx07(self, ins: Instruction) -> int:
        self.v[ins.x] = self.timers.delay
        return NEXT

    # Wait for a key press; PC stays put until the keypad reports one
    def op_Fx0A(self, ins: Instruction) -> int:
        key = self.keypad.wait_for_keypress()
        if key == NO_KEY:
            return STAY
        self.v[ins.x] = key
        if self.dispatcher.has_observers():
            self.dispatcher.key_resolved(key, ins.x)
        return NEXT

    def op_Fx15(self, ins: Instruction) -> int:
        self.timers.delay = self.v[ins.x]
        return NEXT

    def op_Fx18(self, ins: Instruction) -> int:
        self.timers.sound = self.v[ins.x]
        return NEXT

    def op_Fx1E(self, ins: Instruction) -> int:
        self.i = self.i + self.v[ins.x]
        return NEXT

    # Point I at the font glyph for the digit in Vx
    def op_Fx29(self, ins: Instruction) -> int:
        self.i = FONT_START + self.v[ins.x] * FONT_GLYPH_SIZE
        return NEXT

    def op_Fx33(self, ins: Instruction) -> int:
        value = self.v[ins.x]
        self.memory.write_bytes(self.i, (value // 100, (value // 10) % 10, value % 10))
        return NEXT

    # Store V0..Vx at memory[I]; I is left unchanged
    def op_Fx55(self, ins: Instruction) -> int:
        count = min(ins.x, 0xF) + 1
        self.memory.write_bytes(self.i, (self.v[r] for r in range(count)))
        return NEXT

    # Load V0..Vx from memory[I]; I is left unchanged
    def op_Fx65(self, ins: Instruction) -> int:
        count = min(ins.x, 0xF) + 1
        for r, value in enumerate(self.memory.read_bytes(self.i, count)):
            self.v[r] = value
        return NEXT

    def unimplemented(self, ins: Instruction) -> int:
        logger.warning("Unimplemented opcode 0x%04X at 0x%03X", ins.opcode, self.pc)
        if self.dispatcher.has_observers():
            self.dispatcher.unknown_opcode(ins.opcode, self.pc)
        return NEXT


__all__ = ["Chip8"]
