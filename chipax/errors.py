"""Exceptions raised by the CHIP-8 machine."""

from chipax.constants import (
    NO_FAULT, FAULT_UNKNOWN_INSTRUCTION, FAULT_STACK_OVERFLOW, FAULT_STACK_UNDERFLOW,
    FAULT_ADDRESS, FAULT_KEY,
)


class Chip8Error(Exception):
    """Base class for fatal emulator errors.

    Attributes:
        pc: Program counter of the faulting instruction, if known
        opcode: Faulting instruction word, if known
    """

    def __init__(self, message: str, pc: int = None, opcode: int = None):
        self.pc = pc
        self.opcode = opcode
        if pc is not None and opcode is not None:
            message = f"{message} (opcode 0x{opcode:04X} at 0x{pc:03X})"
        super().__init__(message)


class RomLoadError(Chip8Error, OSError):
    """ROM image could not be read or does not fit in memory."""


class DecodeError(Chip8Error):
    """Instruction word matches no known instruction."""


class StackOverflowError(Chip8Error):
    """Subroutine call beyond the maximum stack depth."""


class StackUnderflowError(Chip8Error):
    """Return with an empty call stack."""


class AddressError(Chip8Error):
    """Memory access outside the 4 KiB address space."""


class KeypadError(Chip8Error):
    """Keypad index outside 0x0-0xF."""


FAULT_ERRORS = {
    FAULT_UNKNOWN_INSTRUCTION: (DecodeError, "Unknown instruction"),
    FAULT_STACK_OVERFLOW: (StackOverflowError, "Stack overflow"),
    FAULT_STACK_UNDERFLOW: (StackUnderflowError, "Stack underflow"),
    FAULT_ADDRESS: (AddressError, "Memory access out of range"),
    FAULT_KEY: (KeypadError, "Keypad index out of range"),
}


def fault_error(state):
    """Build the exception matching `state.fault`, or None while running."""
    code = int(state.fault)
    if code == NO_FAULT:
        return None
    error_cls, message = FAULT_ERRORS.get(code, (Chip8Error, f"Unknown fault code {code}"))
    return error_cls(message, pc=int(state.pc), opcode=int(state.opcode))


def raise_for_fault(state) -> None:
    """Raise the exception matching `state.fault`, if any."""
    error = fault_error(state)
    if error is not None:
        raise error
