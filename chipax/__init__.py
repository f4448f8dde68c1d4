"""CHIP-8 emulator package."""

from chipax.state import EmulatorState, create_state
from chipax.emulator import (
    execute, fetch, step, run_cycles, tick_timers, consume_beep, set_keypad, draw
)
from chipax.memory import load_rom, load_program, read_byte, write_byte, write_bytes
from chipax.decode import DecodedInstruction, decode, disassemble
from chipax.constants import *
from chipax.errors import (
    Chip8Error, RomLoadError, DecodeError, StackOverflowError, StackUnderflowError,
    AddressError, KeypadError, raise_for_fault
)
from chipax.machine import Chip8
from chipax.rendering import chip8_display_to_rgb, create_color_scheme

__all__ = [
    "EmulatorState",
    "create_state",
    "fetch",
    "execute",
    "step",
    "run_cycles",
    "tick_timers",
    "consume_beep",
    "set_keypad",
    "draw",
    "load_rom",
    "load_program",
    "read_byte",
    "write_byte",
    "write_bytes",
    "DecodedInstruction",
    "decode",
    "disassemble",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "Chip8",
    "Chip8Error",
    "RomLoadError",
    "DecodeError",
    "StackOverflowError",
    "StackUnderflowError",
    "AddressError",
    "KeypadError",
    "raise_for_fault",
    "chip8_display_to_rgb",
    "create_color_scheme",
]
