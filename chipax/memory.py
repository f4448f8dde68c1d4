"""CHIP-8 memory store: bounds-checked access and program loading."""

import jax.numpy as jnp

from chipax.constants import MEMORY_SIZE, PROGRAM_START, MAX_ROM_SIZE
from chipax.errors import AddressError, RomLoadError
from chipax.state import EmulatorState


def _check_address(address: int, length: int = 1) -> None:
    if address < 0 or address + length > MEMORY_SIZE:
        raise AddressError(f"Address range 0x{address:03X}+{length} outside memory")


def read_byte(state: EmulatorState, address: int) -> int:
    """Read one byte from memory."""
    _check_address(address)
    return int(state.memory[address])


def write_byte(state: EmulatorState, address: int, value: int) -> EmulatorState:
    """Write one byte to memory, wrapping the value modulo 256."""
    _check_address(address)
    return state.replace(memory=state.memory.at[address].set(value & 0xFF))


def write_bytes(state: EmulatorState, address: int, data) -> EmulatorState:
    """Copy a byte sequence into memory starting at `address`."""
    data = bytes(data)
    _check_address(address, len(data))
    values = jnp.array(list(data), dtype=jnp.uint8)
    return state.replace(memory=state.memory.at[address:address + len(data)].set(values))


def load_program(state: EmulatorState, data) -> EmulatorState:
    """Load program bytes into CHIP-8 memory starting at 0x200."""
    data = bytes(data)
    if not data:
        raise RomLoadError("ROM is empty")
    if len(data) > MAX_ROM_SIZE:
        raise RomLoadError(f"ROM is {len(data)} bytes, at most {MAX_ROM_SIZE} fit in memory")
    return write_bytes(state, PROGRAM_START, data)


def load_rom(state: EmulatorState, filename: str) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200."""
    try:
        with open(filename, 'rb') as f:
            rom_data = f.read()
    except OSError as e:
        raise RomLoadError(f"Cannot read ROM {filename!r}: {e}") from e
    return load_program(state, rom_data)
