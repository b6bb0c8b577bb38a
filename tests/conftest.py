import os
import random

import pytest

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

from chip8 import PROGRAM_START, Chip8CPU


@pytest.fixture
def cpu():
    return Chip8CPU(rng=random.Random(1234))


@pytest.fixture
def run(cpu):
    """Load opcode words at PROGRAM_START and tick once per word"""
    def _run(*words, ticks=None):
        data = b"".join(w.to_bytes(2, "big") for w in words)
        cpu.load_rom(data)
        cpu.state.PC = PROGRAM_START
        for _ in range(len(words) if ticks is None else ticks):
            cpu.tick()
        return cpu
    return _run
