"""CHIP-8 instruction decoding."""

import jax.numpy as jnp
from chex import dataclass


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    raw: int
    opcode: int  # First nibble
    x: int       # Second nibble (VX register)
    y: int       # Third nibble (VY register)
    n: int       # Fourth nibble (4-bit immediate)
    nn: int      # Last byte (8-bit immediate)
    nnn: int     # Last 12 bits (12-bit address)


def decode(instruction: int) -> DecodedInstruction:
    """Decode 16-bit instruction into components."""
    return DecodedInstruction(
        raw=instruction,
        opcode=(instruction & 0xF000) >> 12,
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF
    )


# (mask, pattern, mnemonic) for every instruction form, in dispatch order.
# 00E0 and 00EE come before 0NNN so the exact matches win.
INSTRUCTION_SET = (
    (0xFFFF, 0x00E0, "CLS"),
    (0xFFFF, 0x00EE, "RET"),
    (0xF000, 0x0000, "SYS {nnn}"),
    (0xF000, 0x1000, "JP {nnn}"),
    (0xF000, 0x2000, "CALL {nnn}"),
    (0xF000, 0x3000, "SE V{x}, {nn}"),
    (0xF000, 0x4000, "SNE V{x}, {nn}"),
    (0xF00F, 0x5000, "SE V{x}, V{y}"),
    (0xF000, 0x6000, "LD V{x}, {nn}"),
    (0xF000, 0x7000, "ADD V{x}, {nn}"),
    (0xF00F, 0x8000, "LD V{x}, V{y}"),
    (0xF00F, 0x8001, "OR V{x}, V{y}"),
    (0xF00F, 0x8002, "AND V{x}, V{y}"),
    (0xF00F, 0x8003, "XOR V{x}, V{y}"),
    (0xF00F, 0x8004, "ADD V{x}, V{y}"),
    (0xF00F, 0x8005, "SUB V{x}, V{y}"),
    (0xF00F, 0x8006, "SHR V{x}"),
    (0xF00F, 0x8007, "SUBN V{x}, V{y}"),
    (0xF00F, 0x800E, "SHL V{x}"),
    (0xF00F, 0x9000, "SNE V{x}, V{y}"),
    (0xF000, 0xA000, "LD I, {nnn}"),
    (0xF000, 0xB000, "JP V0, {nnn}"),
    (0xF000, 0xC000, "RND V{x}, {nn}"),
    (0xF000, 0xD000, "DRW V{x}, V{y}, {n}"),
    (0xF0FF, 0xE09E, "SKP V{x}"),
    (0xF0FF, 0xE0A1, "SKNP V{x}"),
    (0xF0FF, 0xF007, "LD V{x}, DT"),
    (0xF0FF, 0xF00A, "LD V{x}, K"),
    (0xF0FF, 0xF015, "LD DT, V{x}"),
    (0xF0FF, 0xF018, "LD ST, V{x}"),
    (0xF0FF, 0xF01E, "ADD I, V{x}"),
    (0xF0FF, 0xF029, "LD F, V{x}"),
    (0xF0FF, 0xF033, "LD B, V{x}"),
    (0xF0FF, 0xF055, "LD [I], V{x}"),
    (0xF0FF, 0xF065, "LD V{x}, [I]"),
)

UNKNOWN_INSTRUCTION = len(INSTRUCTION_SET)

_MASKS = jnp.array([mask for mask, _, _ in INSTRUCTION_SET], dtype=jnp.uint16)
_PATTERNS = jnp.array([pattern for _, pattern, _ in INSTRUCTION_SET], dtype=jnp.uint16)


def instruction_index(instruction) -> jnp.ndarray:
    """Index of the first matching form in INSTRUCTION_SET, or UNKNOWN_INSTRUCTION."""
    instruction = jnp.asarray(instruction, dtype=jnp.uint16)
    matches = (instruction & _MASKS) == _PATTERNS
    return jnp.where(jnp.any(matches), jnp.argmax(matches), UNKNOWN_INSTRUCTION)


def disassemble(instruction: int) -> str:
    """Render an instruction word as an assembly mnemonic."""
    instruction = int(instruction)
    for mask, pattern, template in INSTRUCTION_SET:
        if instruction & mask == pattern:
            fields = decode(instruction)
            return template.format(
                x=f"{fields.x:X}",
                y=f"{fields.y:X}",
                n=f"{fields.n}",
                nn=f"0x{fields.nn:02X}",
                nnn=f"0x{fields.nnn:03X}",
            )
    return f"DW 0x{instruction:04X}"
