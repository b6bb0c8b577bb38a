#!/usr/bin/env python3
"""
╔═══════════════════════════════════════════════════════════════════════════════╗
║                🐱 Cat's CHIP-8 Interpreter - "Meow Machine" Core 🐱            ║
║                                                                               ║
║  Fetch-decode-execute engine for the classic 35-opcode CHIP-8 dialect         ║
╚═══════════════════════════════════════════════════════════════════════════════╝

Features:
- Complete CHIP-8 instruction set (35 opcodes), one fixed dialect
- XOR sprite drawing with wraparound and collision detection
- 60Hz delay/sound timers with an edge-triggered beep callback
- Fail-fast errors for bad opcodes, stack misuse and out-of-range memory
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import numpy as np

from chip8_errors import (
    MemoryAccessError,
    RomTooLargeError,
    StackOverflowError,
    StackUnderflowError,
)
from chip8_opcodes import Instruction, Op, decode

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════════

DISPLAY_W, DISPLAY_H = 64, 32          # CHIP-8 native resolution

MEMORY_SIZE = 4096                      # 4KB RAM
PROGRAM_START = 0x200                   # Programs load at 0x200
STACK_SIZE = 16                         # 16-level stack
NUM_REGISTERS = 16                      # V0-VF registers
NUM_KEYS = 16                           # 16 hex keys
FONT_GLYPH_SIZE = 5                     # Bytes per font digit
SPRITE_WIDTH = 8                        # Pixels per sprite row

TIMER_HZ = 60                           # Delay/Sound timer rate

# CHIP-8 Font (4x5 pixels, stored as 5 bytes each)
FONTSET = [
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
]


def bcd_digits(value: int) -> Tuple[int, int, int]:
    """Split a byte into its (hundreds, tens, ones) decimal digits"""
    value &= 0xFF
    return value // 100, (value // 10) % 10, value % 10


# ═══════════════════════════════════════════════════════════════════════════════
# CHIP-8 CPU CORE
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class CPUState:
    """CHIP-8 CPU state container"""
    # Memory
    memory: bytearray = field(default_factory=lambda: bytearray(MEMORY_SIZE))

    # Registers
    V: List[int] = field(default_factory=lambda: [0] * NUM_REGISTERS)  # V0-VF
    I: int = 0              # Index register (16-bit)
    PC: int = PROGRAM_START # Program counter
    SP: int = 0             # Stack pointer

    # Stack
    stack: List[int] = field(default_factory=lambda: [0] * STACK_SIZE)

    # Timers (60Hz)
    delay_timer: int = 0
    sound_timer: int = 0

    # Display (64x32), indexed [y, x]
    display: np.ndarray = field(default_factory=lambda: np.zeros((DISPLAY_H, DISPLAY_W), dtype=bool))

    # Keypad state
    keys: List[bool] = field(default_factory=lambda: [False] * NUM_KEYS)


class Chip8CPU:
    """CHIP-8 interpreter: owns all machine state and runs one opcode per tick"""

    def __init__(self, rng: Optional[random.Random] = None,
                 sound_callback: Optional[Callable[[], None]] = None):
        self.rng = rng or random.Random()
        self.sound_callback = sound_callback
        self.draw_flag = False
        self.reset()

    def _load_fontset(self):
        """Load built-in font sprites to memory"""
        self.state.memory[:len(FONTSET)] = bytes(FONTSET)

    def reset(self):
        """Reset CPU to initial state"""
        self.state = CPUState()
        self._load_fontset()
        self.draw_flag = True
        logger.debug("CPU reset, PC=$%03X", self.state.PC)

    def load_rom(self, data: bytes):
        """
        Copy a program image into memory at PROGRAM_START.

        Raises:
            RomTooLargeError: the image does not fit below the top of memory
        """
        capacity = MEMORY_SIZE - PROGRAM_START
        if len(data) > capacity:
            raise RomTooLargeError(len(data), capacity)

        self.state.memory[PROGRAM_START:PROGRAM_START + len(data)] = data
        logger.debug("Loaded %d byte ROM at $%03X", len(data), PROGRAM_START)

    # ─── Host interface ───

    def set_key(self, key: int, pressed: bool):
        """Record the pressed state of hex key 0x0-0xF"""
        if not 0 <= key < NUM_KEYS:
            raise ValueError(f"key index out of range: {key}")
        self.state.keys[key] = pressed

    def key_down(self, key: int):
        self.set_key(key, True)

    def key_up(self, key: int):
        self.set_key(key, False)

    def framebuffer(self) -> np.ndarray:
        """Read-only flat view of the display, indexed x + DISPLAY_W * y"""
        view = self.state.display.view()
        view.flags.writeable = False
        return view.reshape(-1)

    def tick(self):
        """Fetch, decode and execute exactly one instruction"""
        opcode = self.fetch()
        self.execute(decode(opcode))

    def tick_timers(self) -> bool:
        """
        Decrement both timers (call at TIMER_HZ).

        Returns:
            True if the sound timer just ran out and the beep fired
        """
        if self.state.delay_timer > 0:
            self.state.delay_timer -= 1

        beep = False
        if self.state.sound_timer > 0:
            self.state.sound_timer -= 1
            if self.state.sound_timer == 0:
                beep = True
                logger.info("BEEP")
                if self.sound_callback:
                    self.sound_callback()
        return beep

    # ─── Memory & stack ───

    def _check_range(self, address: int, length: int = 1):
        if address < 0 or address + length > MEMORY_SIZE:
            raise MemoryAccessError(address, length)

    def _push(self, value: int, target: int):
        if self.state.SP >= STACK_SIZE:
            raise StackOverflowError(target)
        self.state.stack[self.state.SP] = value
        self.state.SP += 1

    def _pop(self) -> int:
        if self.state.SP == 0:
            raise StackUnderflowError()
        self.state.SP -= 1
        return self.state.stack[self.state.SP]

    def fetch(self) -> int:
        """Fetch next 16-bit opcode"""
        self._check_range(self.state.PC, 2)
        hi = self.state.memory[self.state.PC]
        lo = self.state.memory[self.state.PC + 1]
        self.state.PC += 2
        return (hi << 8) | lo

    # ─── Execute ───

    def execute(self, ins: Instruction):
        """Execute a single decoded instruction"""
        op, x, y = ins.op, ins.x, ins.y
        nn, nnn = ins.nn, ins.nnn
        s = self.state
        V = s.V

        # ─── Flow control ───
        if op is Op.NOP:
            pass

        elif op is Op.CLS:
            s.display.fill(False)
            self.draw_flag = True

        elif op is Op.RET:
            s.PC = self._pop()

        elif op is Op.JP:
            s.PC = nnn

        elif op is Op.CALL:
            self._push(s.PC, nnn)
            s.PC = nnn

        elif op is Op.JP_V0:
            s.PC = V[0] + nnn

        # ─── Conditional skips ───
        elif op is Op.SE_BYTE:
            if V[x] == nn:
                s.PC += 2

        elif op is Op.SNE_BYTE:
            if V[x] != nn:
                s.PC += 2

        elif op is Op.SE_REG:
            if V[x] == V[y]:
                s.PC += 2

        elif op is Op.SNE_REG:
            if V[x] != V[y]:
                s.PC += 2

        elif op is Op.SKP:
            if s.keys[V[x] & 0xF]:
                s.PC += 2

        elif op is Op.SKNP:
            if not s.keys[V[x] & 0xF]:
                s.PC += 2

        # ─── Register loads & ALU ───
        elif op is Op.LD_BYTE:
            V[x] = nn

        elif op is Op.ADD_BYTE:
            V[x] = (V[x] + nn) & 0xFF

        elif op is Op.LD_REG:
            V[x] = V[y]

        elif op is Op.OR:
            V[x] |= V[y]

        elif op is Op.AND:
            V[x] &= V[y]

        elif op is Op.XOR:
            V[x] ^= V[y]

        elif op is Op.ADD_REG:
            # VF = carry
            result = V[x] + V[y]
            V[x] = result & 0xFF
            V[0xF] = 1 if result > 0xFF else 0

        elif op is Op.SUB:
            # VF = NOT borrow
            flag = 0 if V[x] < V[y] else 1
            V[x] = (V[x] - V[y]) & 0xFF
            V[0xF] = flag

        elif op is Op.SUBN:
            flag = 0 if V[y] < V[x] else 1
            V[x] = (V[y] - V[x]) & 0xFF
            V[0xF] = flag

        elif op is Op.SHR:
            # Shifts VX in place, VY is ignored
            dropped = V[x] & 0x1
            V[x] = V[x] >> 1
            V[0xF] = dropped

        elif op is Op.SHL:
            dropped = (V[x] >> 7) & 0x1
            V[x] = (V[x] << 1) & 0xFF
            V[0xF] = dropped

        elif op is Op.RND:
            V[x] = self.rng.randint(0, 255) & nn

        # ─── Display ───
        elif op is Op.DRW:
            self._draw_sprite(V[x], V[y], ins.n)

        # ─── Timers & keys ───
        elif op is Op.LD_VX_DT:
            V[x] = s.delay_timer

        elif op is Op.LD_VX_K:
            # Busy-poll: rewind so the same opcode runs again next tick
            for key, pressed in enumerate(s.keys):
                if pressed:
                    V[x] = key
                    break
            else:
                s.PC -= 2

        elif op is Op.LD_DT_VX:
            s.delay_timer = V[x]

        elif op is Op.LD_ST_VX:
            s.sound_timer = V[x]

        # ─── Index register & memory ───
        elif op is Op.LD_I:
            s.I = nnn

        elif op is Op.ADD_I:
            s.I = (s.I + V[x]) & 0xFFFF

        elif op is Op.LD_F:
            s.I = V[x] * FONT_GLYPH_SIZE

        elif op is Op.LD_B:
            self._check_range(s.I, 3)
            s.memory[s.I:s.I + 3] = bytes(bcd_digits(V[x]))

        elif op is Op.LD_MEM_VX:
            self._check_range(s.I, x + 1)
            for i in range(x + 1):
                s.memory[s.I + i] = V[i]

        elif op is Op.LD_VX_MEM:
            self._check_range(s.I, x + 1)
            for i in range(x + 1):
                V[i] = s.memory[s.I + i]

    def _draw_sprite(self, x: int, y: int, height: int):
        """XOR an 8-wide sprite from memory[I] at (x, y); VF = collision"""
        s = self.state
        self._check_range(s.I, height)

        collision = False
        for row in range(height):
            sprite_byte = s.memory[s.I + row]
            py = (y + row) % DISPLAY_H

            for col in range(SPRITE_WIDTH):
                if sprite_byte & (0x80 >> col):
                    px = (x + col) % DISPLAY_W

                    # XOR pixel
                    if s.display[py, px]:
                        collision = True
                    s.display[py, px] = not s.display[py, px]

        s.V[0xF] = 1 if collision else 0
        self.draw_flag = True
