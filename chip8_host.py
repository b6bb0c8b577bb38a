#!/usr/bin/env python3
"""
╔═══════════════════════════════════════════════════════════════════════════════╗
║                  🐱 Cat's CHIP-8 Interpreter - pygame front end 🐱             ║
╚═══════════════════════════════════════════════════════════════════════════════╝

Opens a window, maps the QWERTY keyboard onto the hex keypad and drives the
interpreter: a fixed number of ticks per frame, one timer tick per frame,
then a redraw, paced to the configured frame rate.
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
import pygame

from chip8 import DISPLAY_H, DISPLAY_W, TIMER_HZ, Chip8CPU
from chip8_errors import Chip8Error, UnsupportedOpcodeError

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════

# Keyboard mapping (QWERTY -> CHIP-8 hex keypad)
# CHIP-8 Keypad:    Keyboard:
# 1 2 3 C          1 2 3 4
# 4 5 6 D          Q W E R
# 7 8 9 E          A S D F
# A 0 B F          Z X C V
KEY_MAP = {
    pygame.K_1: 0x1, pygame.K_2: 0x2, pygame.K_3: 0x3, pygame.K_4: 0xC,
    pygame.K_q: 0x4, pygame.K_w: 0x5, pygame.K_e: 0x6, pygame.K_r: 0xD,
    pygame.K_a: 0x7, pygame.K_s: 0x8, pygame.K_d: 0x9, pygame.K_f: 0xE,
    pygame.K_z: 0xA, pygame.K_x: 0x0, pygame.K_c: 0xB, pygame.K_v: 0xF,
}


@dataclass
class HostConfig:
    """Front-end settings; the interpreter itself has none"""
    scale: int = 15
    ticks_per_frame: int = 10
    fps: int = TIMER_HZ
    fg_color: Tuple[int, int, int] = (255, 255, 255)
    bg_color: Tuple[int, int, int] = (0, 0, 0)
    halt_on_unsupported: bool = False

    @property
    def window_size(self) -> Tuple[int, int]:
        return DISPLAY_W * self.scale, DISPLAY_H * self.scale


def load_config(path: Optional[str] = None) -> HostConfig:
    """Load a HostConfig from a JSON file; unknown keys are an error"""
    if path is None:
        return HostConfig()

    with open(path) as f:
        data = json.load(f)

    known = {f.name for f in fields(HostConfig)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(sorted(unknown))}")

    for name in ("fg_color", "bg_color"):
        if name in data:
            data[name] = tuple(data[name])

    config = HostConfig(**data)
    logger.debug("Loaded config from %s: %s", path, asdict(config))
    return config


# ═══════════════════════════════════════════════════════════════════════════════
# FRAME DRIVER
# ═══════════════════════════════════════════════════════════════════════════════

def run_frame(cpu: Chip8CPU, config: HostConfig) -> bool:
    """
    Run one frame's worth of interpreter work.

    Returns:
        False if the interpreter should stop
    """
    for _ in range(config.ticks_per_frame):
        try:
            cpu.tick()
        except UnsupportedOpcodeError as e:
            if config.halt_on_unsupported:
                logger.error("Halting at $%03X: %s", cpu.state.PC - 2, e)
                return False
            logger.warning("Skipping at $%03X: %s", cpu.state.PC - 2, e)
    cpu.tick_timers()
    return True


class Renderer:
    """Scales the 64x32 framebuffer onto a pygame surface"""

    def __init__(self, config: HostConfig):
        self.config = config
        self.final_size = config.window_size

    def render(self, display: np.ndarray) -> pygame.Surface:
        """
        Convert boolean display to a scaled surface

        Args:
            display: (height, width) boolean array
        """
        rgb = np.empty((DISPLAY_W, DISPLAY_H, 3), dtype=np.uint8)
        rgb[:] = self.config.bg_color
        rgb[display.T] = self.config.fg_color

        surf = pygame.surfarray.make_surface(rgb)
        return pygame.transform.scale(surf, self.final_size)


# ═══════════════════════════════════════════════════════════════════════════════
# MAIN APPLICATION
# ═══════════════════════════════════════════════════════════════════════════════

class Chip8Host:
    """pygame window, keyboard and frame loop around a Chip8CPU"""

    def __init__(self, cpu: Chip8CPU, config: HostConfig):
        pygame.init()
        pygame.display.set_caption("🐱 Cat's CHIP-8")

        self.cpu = cpu
        self.config = config
        self.screen = pygame.display.set_mode(config.window_size)
        self.clock = pygame.time.Clock()
        self.renderer = Renderer(config)
        self.running = True

        self.cpu.sound_callback = self._beep

    def _beep(self):
        print("BEEP")

    def handle_events(self):
        """Process input events"""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.running = False
                elif event.key in KEY_MAP:
                    self.cpu.key_down(KEY_MAP[event.key])

            elif event.type == pygame.KEYUP:
                if event.key in KEY_MAP:
                    self.cpu.key_up(KEY_MAP[event.key])

    def render(self):
        if self.cpu.draw_flag:
            self.screen.blit(self.renderer.render(self.cpu.state.display), (0, 0))
            pygame.display.flip()
            self.cpu.draw_flag = False

    def run(self):
        """Main loop"""
        try:
            while self.running:
                self.handle_events()
                if not run_frame(self.cpu, self.config):
                    break
                self.render()
                self.clock.tick(self.config.fps)
        finally:
            pygame.quit()


# ═══════════════════════════════════════════════════════════════════════════════
# ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════════════

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run a CHIP-8 ROM.")
    parser.add_argument("rom", help="path to the ROM image")
    parser.add_argument("--config", help="JSON file with front-end settings")
    parser.add_argument("--scale", type=int, help="window pixels per CHIP-8 pixel")
    parser.add_argument("--ticks-per-frame", type=int, dest="ticks_per_frame",
                        help="instructions executed per frame")
    parser.add_argument("--halt-on-unsupported", action="store_true", default=None,
                        dest="halt_on_unsupported",
                        help="stop instead of skipping unsupported opcodes")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def main(argv=None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format="[%(levelname)s] %(name)s: %(message)s")

    config = load_config(args.config)
    for name in ("scale", "ticks_per_frame", "halt_on_unsupported"):
        value = getattr(args, name)
        if value is not None:
            setattr(config, name, value)

    cpu = Chip8CPU()
    try:
        cpu.load_rom(Path(args.rom).read_bytes())
    except (OSError, Chip8Error) as e:
        print(f"Failed to load ROM: {e}")
        return 1

    print("Controls:")
    print("  CHIP-8 Keypad: 1234 / QWER / ASDF / ZXCV")
    print("  ESC = Exit")

    try:
        Chip8Host(cpu, config).run()
    except Chip8Error as e:
        logger.error("Interpreter stopped at $%03X: %s", cpu.state.PC, e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
