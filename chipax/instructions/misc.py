"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax.numpy as jnp
from chipax.constants import FONT_START, FONT_GLYPH_SIZE, MEMORY_SIZE, NUM_REGISTERS, FAULT_ADDRESS
from chipax.state import EmulatorState, advance, guard, set_register
from chipax.decode import DecodedInstruction

_REGISTER_INDICES = jnp.arange(NUM_REGISTERS)


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return advance(set_register(state, instruction.x, state.delay_timer))


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX0A - Wait for a key press, store it in VX.

    Only arms the wait; PC stays on this instruction until a cycle sees a
    key that was not already held at this point.
    """
    return state.replace(
        waiting_for_key=jnp.ones((), dtype=jnp.bool_),
        key_register=jnp.asarray(instruction.x, dtype=jnp.uint8),
        key_latch=state.keypad,
    )


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return advance(state.replace(delay_timer=state.V[instruction.x]))


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return advance(state.replace(sound_timer=state.V[instruction.x]))


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX1E - Add VX to I register. VF is not affected."""
    new_i = jnp.asarray(state.I, dtype=jnp.int32) + state.V[instruction.x]
    return advance(state.replace(I=jnp.asarray(new_i & 0xFFFF, dtype=jnp.uint16)))


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX29 - Set I to location of sprite for digit VX."""
    font_address = FONT_START + jnp.asarray(state.V[instruction.x], dtype=jnp.int32) * FONT_GLYPH_SIZE
    return advance(state.replace(I=jnp.asarray(font_address, dtype=jnp.uint16)))


def execute_bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    index = jnp.asarray(state.I, dtype=jnp.int32)
    new_memory = state.memory.at[jnp.arange(3) + index].set(digits, mode="drop")
    stored = advance(state.replace(memory=new_memory))
    return guard(index + 3 > MEMORY_SIZE, FAULT_ADDRESS, state, stored)


def execute_store_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I. I is unchanged."""
    index = jnp.asarray(state.I, dtype=jnp.int32)
    register_mask = _REGISTER_INDICES <= instruction.x
    # Registers past X target an out-of-range slot and are dropped
    indices = jnp.where(register_mask, index + _REGISTER_INDICES, MEMORY_SIZE)
    new_memory = state.memory.at[indices].set(state.V, mode="drop")
    stored = advance(state.replace(memory=new_memory))
    return guard(index + instruction.x + 1 > MEMORY_SIZE, FAULT_ADDRESS, state, stored)


def execute_load_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I. I is unchanged."""
    index = jnp.asarray(state.I, dtype=jnp.int32)
    register_mask = _REGISTER_INDICES <= instruction.x
    base_indices = jnp.clip(index + _REGISTER_INDICES, 0, MEMORY_SIZE - 1)
    new_V = jnp.where(register_mask, state.memory[base_indices], state.V)
    loaded = advance(state.replace(V=new_V))
    return guard(index + instruction.x + 1 > MEMORY_SIZE, FAULT_ADDRESS, state, loaded)
