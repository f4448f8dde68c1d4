"""Main CHIP-8 emulator execution engine."""

from functools import partial
from typing import Optional

import jax
import jax.lax
import jax.numpy as jnp
import numpy as np

from chipax.state import EmulatorState, advance, raise_fault, set_register
from chipax.decode import decode, instruction_index, INSTRUCTION_SET
from chipax.constants import MEMORY_SIZE, NO_FAULT, FAULT_ADDRESS, NUM_KEYS
from chipax.instructions.system import (
    execute_clear_screen, execute_return, execute_machine_call, execute_unknown
)
from chipax.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_skip_if_key, execute_skip_if_not_key
)
from chipax.instructions.alu import (
    execute_alu_set, execute_alu_or, execute_alu_and, execute_alu_xor, execute_alu_add,
    execute_alu_sub_xy, execute_alu_shift_right, execute_alu_sub_yx, execute_alu_shift_left
)
from chipax.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chipax.instructions.display import execute_display
from chipax.instructions.misc import (
    execute_get_delay_timer, execute_wait_for_key, execute_set_delay_timer,
    execute_set_sound_timer, execute_add_to_index, execute_font_character,
    execute_bcd_conversion, execute_store_registers, execute_load_registers
)
from chipax.logging import scan_with_progress

# One handler per INSTRUCTION_SET entry, same order, unknown last.
HANDLERS = (
    execute_clear_screen,
    execute_return,
    execute_machine_call,
    execute_jump,
    execute_call,
    execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate,
    execute_skip_if_equal_register,
    execute_set,
    execute_add,
    execute_alu_set,
    execute_alu_or,
    execute_alu_and,
    execute_alu_xor,
    execute_alu_add,
    execute_alu_sub_xy,
    execute_alu_shift_right,
    execute_alu_sub_yx,
    execute_alu_shift_left,
    execute_skip_if_not_equal_register,
    execute_set_index,
    execute_jump_with_offset,
    execute_random,
    execute_display,
    execute_skip_if_key,
    execute_skip_if_not_key,
    execute_get_delay_timer,
    execute_wait_for_key,
    execute_set_delay_timer,
    execute_set_sound_timer,
    execute_add_to_index,
    execute_font_character,
    execute_bcd_conversion,
    execute_store_registers,
    execute_load_registers,
    execute_unknown,
)


@jax.jit
def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single CHIP-8 instruction."""
    instruction = jnp.asarray(instruction, dtype=jnp.uint16)
    state = state.replace(opcode=instruction)
    return jax.lax.switch(
        instruction_index(instruction),
        HANDLERS,
        state, decode(instruction)
    )


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> jnp.ndarray:
    """Fetch the instruction word at PC."""
    return _pack_u16(state.memory[state.pc], state.memory[state.pc + 1])


def _fetch_and_execute(state: EmulatorState) -> EmulatorState:
    return jax.lax.cond(
        state.pc > MEMORY_SIZE - 2,
        lambda s: raise_fault(s, FAULT_ADDRESS),
        lambda s: execute(s, fetch(s)),
        state
    )


def _poll_keypad(state: EmulatorState) -> EmulatorState:
    """Stalled FX0A cycle: resolve on a newly pressed key, otherwise keep waiting."""
    new_presses = state.keypad & ~state.key_latch

    def key_pressed_action(state):
        state = set_register(state, state.key_register, jnp.argmax(new_presses))
        return advance(state.replace(waiting_for_key=jnp.zeros((), dtype=jnp.bool_)))

    def wait_action(state):
        return state.replace(key_latch=state.keypad)

    return jax.lax.cond(jnp.any(new_presses), key_pressed_action, wait_action, state)


@jax.jit
def step(state: EmulatorState) -> EmulatorState:
    """Advance one cycle. A halted machine does not move."""
    def run(state):
        return jax.lax.cond(state.waiting_for_key, _poll_keypad, _fetch_and_execute, state)

    return jax.lax.cond(state.fault != NO_FAULT, lambda s: s, run, state)


def _run_cycle(state, _):
    return step(state), None


@partial(jax.jit, static_argnums=(1, 2))
def run_cycles(state: EmulatorState, cycles: int, progress: bool = False) -> EmulatorState:
    """Run `cycles` cycles with lax.scan, optionally showing a tqdm progress bar."""
    body = _run_cycle
    if progress:
        body = scan_with_progress(cycles, desc=f"Emulating ({cycles:,} cycles)")(body)
    state, _ = jax.lax.scan(body, state, jnp.arange(cycles))
    return state


@jax.jit
def tick_timers(state: EmulatorState) -> EmulatorState:
    """Decrement delay and sound timers toward zero; sound 1 -> 0 raises a beep."""
    def countdown(timer):
        return jnp.asarray(jnp.where(timer > 0, timer - 1, timer), dtype=jnp.uint8)

    return state.replace(
        delay_timer=countdown(state.delay_timer),
        sound_timer=countdown(state.sound_timer),
        beep=state.beep | (state.sound_timer == 1),
    )


def consume_beep(state: EmulatorState) -> tuple[EmulatorState, bool]:
    """Return whether a beep is pending and clear it."""
    fired = bool(state.beep)
    if fired:
        state = state.replace(beep=jnp.zeros((), dtype=jnp.bool_))
    return state, fired


def set_keypad(state: EmulatorState, keys) -> EmulatorState:
    """Overwrite the keypad latch with 16 key states."""
    keys = np.asarray(keys, dtype=np.bool_)
    if keys.shape != (NUM_KEYS,):
        raise ValueError(f"Expected {NUM_KEYS} key states, got shape {keys.shape}")
    return state.replace(keypad=jnp.asarray(keys))


def draw(state: EmulatorState) -> tuple[EmulatorState, Optional[np.ndarray]]:
    """Return the framebuffer if it changed since the last call.

    The frame is a flat boolean array in row-major order, pixel (x, y) at
    index x + 64 * y. The dirty flag is cleared.
    """
    if not bool(state.draw_flag):
        return state, None
    frame = np.array(state.display).T.flatten()
    return state.replace(draw_flag=jnp.zeros((), dtype=jnp.bool_)), frame
