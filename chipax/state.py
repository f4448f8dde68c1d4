"""CHIP-8 emulator state structures."""

import jax
import jax.numpy as jnp
from flax.struct import dataclass, PyTreeNode

from chipax.constants import (
    PROGRAM_START, FONT_START, FONT_DATA, SCREEN_WIDTH, SCREEN_HEIGHT, STACK_SIZE,
    MEMORY_SIZE, NUM_REGISTERS, NUM_KEYS, NO_FAULT,
)


@dataclass(frozen=True)
class StackState:
    """Stack state for subroutine calls."""
    data: jnp.ndarray
    pointer: jnp.ndarray


class EmulatorState(PyTreeNode):
    """Main CHIP-8 emulator state.

    Every field is a JAX array with a fixed dtype so that states produced by
    different instruction handlers share one pytree type.
    """
    rng: jax.Array
    memory: jnp.ndarray
    pc: jnp.ndarray
    I: jnp.ndarray
    V: jnp.ndarray
    stack: StackState
    delay_timer: jnp.ndarray
    sound_timer: jnp.ndarray
    beep: jnp.ndarray
    keypad: jnp.ndarray
    key_latch: jnp.ndarray
    waiting_for_key: jnp.ndarray
    key_register: jnp.ndarray
    display: jnp.ndarray
    draw_flag: jnp.ndarray
    opcode: jnp.ndarray
    fault: jnp.ndarray


def create_state(rng: jax.Array = None) -> EmulatorState:
    """Create initial emulator state with font data loaded."""
    if rng is None:
        rng = jax.random.PRNGKey(0)
    memory = jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8)
    memory = memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(jnp.array(FONT_DATA, dtype=jnp.uint8))
    return EmulatorState(
        rng=rng,
        memory=memory,
        pc=jnp.asarray(PROGRAM_START, dtype=jnp.uint16),
        I=jnp.zeros((), dtype=jnp.uint16),
        V=jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8),
        stack=StackState(
            data=jnp.zeros(STACK_SIZE, dtype=jnp.uint16),
            pointer=jnp.zeros((), dtype=jnp.int32),
        ),
        delay_timer=jnp.zeros((), dtype=jnp.uint8),
        sound_timer=jnp.zeros((), dtype=jnp.uint8),
        beep=jnp.zeros((), dtype=jnp.bool_),
        keypad=jnp.zeros(NUM_KEYS, dtype=jnp.bool_),
        key_latch=jnp.zeros(NUM_KEYS, dtype=jnp.bool_),
        waiting_for_key=jnp.zeros((), dtype=jnp.bool_),
        key_register=jnp.zeros((), dtype=jnp.uint8),
        display=jnp.zeros((SCREEN_WIDTH, SCREEN_HEIGHT), dtype=jnp.bool_),
        draw_flag=jnp.zeros((), dtype=jnp.bool_),
        opcode=jnp.zeros((), dtype=jnp.uint16),
        fault=jnp.asarray(NO_FAULT, dtype=jnp.uint8),
    )


def advance(state: EmulatorState, amount=2) -> EmulatorState:
    """Move PC forward by `amount` bytes."""
    return state.replace(pc=jnp.asarray(state.pc + amount, dtype=jnp.uint16))


def set_register(state: EmulatorState, index, value) -> EmulatorState:
    """Write an 8-bit value into V[index], wrapping modulo 256."""
    value = jnp.asarray(jnp.asarray(value, dtype=jnp.int32) & 0xFF, dtype=jnp.uint8)
    return state.replace(V=state.V.at[index].set(value))


def raise_fault(state: EmulatorState, code: int) -> EmulatorState:
    """Halt the machine with the given fault code."""
    return state.replace(fault=jnp.asarray(code, dtype=jnp.uint8))


def guard(condition, code: int, state: EmulatorState, new_state: EmulatorState) -> EmulatorState:
    """Return `new_state`, or `state` with a fault raised when `condition` holds."""
    return jax.lax.cond(
        condition,
        lambda: raise_fault(state, code),
        lambda: new_state,
    )
