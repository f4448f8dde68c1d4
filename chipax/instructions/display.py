"""CHIP-8 display operations."""

import jax.numpy as jnp
from chipax.constants import SCREEN_WIDTH, SCREEN_HEIGHT, MEMORY_SIZE, FLAG_REGISTER, FAULT_ADDRESS
from chipax.state import EmulatorState, advance, guard, set_register
from chipax.decode import DecodedInstruction

# Pre-computed coordinate grids for display operations
xx, yy = jnp.meshgrid(jnp.arange(SCREEN_WIDTH), jnp.arange(SCREEN_HEIGHT), indexing='ij')


def sprite_mask(memory: jnp.ndarray, index, sprite_x, sprite_y, height) -> jnp.ndarray:
    """Boolean (64, 32) mask of the pixels set by an 8-wide sprite.

    Each axis wraps independently, so a sprite crossing the right edge
    continues on the left of the same rows.
    """
    col_offset = (xx - sprite_x) % SCREEN_WIDTH
    row_offset = (yy - sprite_y) % SCREEN_HEIGHT
    in_sprite = (col_offset < 8) & (row_offset < height)

    addresses = jnp.clip(index + row_offset, 0, MEMORY_SIZE - 1)
    sprite_bytes = jnp.asarray(memory[addresses], dtype=jnp.int32)
    bits = (sprite_bytes >> jnp.clip(7 - col_offset, 0, 7)) & 1
    return (bits == 1) & in_sprite


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N."""
    sprite_x = jnp.asarray(state.V[instruction.x], dtype=jnp.int32) % SCREEN_WIDTH
    sprite_y = jnp.asarray(state.V[instruction.y], dtype=jnp.int32) % SCREEN_HEIGHT
    height = jnp.asarray(instruction.n, dtype=jnp.int32)
    index = jnp.asarray(state.I, dtype=jnp.int32)

    sprite = sprite_mask(state.memory, index, sprite_x, sprite_y, height)
    collision = jnp.any(state.display & sprite)

    drawn = state.replace(
        display=state.display ^ sprite,
        draw_flag=jnp.ones((), dtype=jnp.bool_),
    )
    drawn = advance(set_register(drawn, FLAG_REGISTER, collision))
    return guard(index + height > MEMORY_SIZE, FAULT_ADDRESS, state, drawn)
