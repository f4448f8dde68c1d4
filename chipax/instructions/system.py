"""CHIP-8 system instructions (0x0xxx)."""

import jax.numpy as jnp
from chipax.constants import FAULT_STACK_UNDERFLOW, FAULT_UNKNOWN_INSTRUCTION
from chipax.state import EmulatorState, advance, guard, raise_fault
from chipax.decode import DecodedInstruction
from chipax.stack import pop, is_empty


def execute_machine_call(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """0NNN - Call machine code routine. Ignored."""
    return advance(state)


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00E0 - Clear display."""
    state = state.replace(
        display=jnp.zeros_like(state.display),
        draw_flag=jnp.ones((), dtype=jnp.bool_),
    )
    return advance(state)


def execute_return(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00EE - Return from subroutine."""
    stack, address = pop(state.stack)
    returned = state.replace(stack=stack, pc=address)
    return guard(is_empty(state.stack), FAULT_STACK_UNDERFLOW, state, returned)


def execute_unknown(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Instruction word matching no known form."""
    return raise_fault(state, FAULT_UNKNOWN_INSTRUCTION)
