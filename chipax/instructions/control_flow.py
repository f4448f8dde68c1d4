"""CHIP-8 control flow instructions."""

import jax.numpy as jnp
from chipax.constants import FAULT_STACK_OVERFLOW, FAULT_KEY, NUM_KEYS
from chipax.state import EmulatorState, advance, guard
from chipax.decode import DecodedInstruction
from chipax.stack import push, is_full


def execute_jump(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """1NNN - Jump to address NNN."""
    return state.replace(pc=jnp.asarray(instruction.nnn, dtype=jnp.uint16))


def execute_call(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """2NNN - Call subroutine at NNN."""
    called = execute_jump(state.replace(stack=push(state.stack, state.pc + 2)), instruction)
    return guard(is_full(state.stack), FAULT_STACK_OVERFLOW, state, called)


def make_skip_instruction(condition_fn):
    """Factory for skip instructions."""
    def skip_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        condition = condition_fn(state, instruction)
        return advance(state, jnp.where(condition, 4, 2))
    return skip_instruction


execute_skip_if_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == inst.nn
)

execute_skip_if_not_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != inst.nn
)

execute_skip_if_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == state.V[inst.y]
)

execute_skip_if_not_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != state.V[inst.y]
)


def execute_jump_with_offset(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """BNNN - Jump to address NNN + V0."""
    jump_address = jnp.asarray(instruction.nnn, dtype=jnp.uint16) + jnp.asarray(state.V[0], dtype=jnp.uint16)
    return state.replace(pc=jump_address)


def _make_key_skip(expect_pressed: bool):
    def skip_if_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        key_index = state.V[instruction.x]
        key_pressed = state.keypad[key_index & 0xF]
        condition = key_pressed if expect_pressed else ~key_pressed
        skipped = advance(state, jnp.where(condition, 4, 2))
        return guard(key_index >= NUM_KEYS, FAULT_KEY, state, skipped)
    return skip_if_key


execute_skip_if_key = _make_key_skip(True)
execute_skip_if_key.__doc__ = """EX9E - Skip if key VX is pressed."""

execute_skip_if_not_key = _make_key_skip(False)
execute_skip_if_not_key.__doc__ = """EXA1 - Skip if key VX is not pressed."""
