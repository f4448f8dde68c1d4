"""Test configuration and fixtures for CHIP-8 emulator tests."""

import pytest
import jax.numpy as jnp
from chipax import create_state, load_program


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def program_state(*words):
    """Fresh state with the given instruction words loaded at 0x200."""
    data = b"".join(word.to_bytes(2, "big") for word in words)
    return load_program(create_state(), data)


def with_registers(state, **registers):
    """Set registers by name, e.g. with_registers(state, V0=1, VF=0xFF)."""
    for name, value in registers.items():
        state = state.replace(V=state.V.at[int(name[1:], 16)].set(value))
    return state
