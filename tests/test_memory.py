"""Tests for register operations and the memory store."""

import pytest
import numpy as np
from chipax import (
    execute, create_state, load_program, load_rom, read_byte, write_byte, write_bytes,
    AddressError, RomLoadError
)
from chipax.constants import FONT_START, FONT_DATA, PROGRAM_START, MAX_ROM_SIZE


class TestBasicMemory:
    """Test register set/add operations."""

    def test_set_basic(self, fresh_state):
        """6XNN - Set VX = NN."""
        state = execute(fresh_state, 0x600A)  # V0 = 0xA
        assert state.V[0] == 0xA
        assert state.pc == 0x202

    def test_add_basic(self, fresh_state):
        """7XNN - Add NN to VX."""
        state = fresh_state.replace(V=fresh_state.V.at[1].set(0x10))
        state = execute(state, 0x7105)  # V1 += 5
        assert state.V[1] == 0x15

    def test_add_wraps_without_flag(self, fresh_state):
        """7XNN - Wraps modulo 256 and leaves VF alone."""
        state = execute(fresh_state, 0x61F0)
        state = execute(state, 0x7120)
        assert state.V[1] == 0x10
        assert state.V[15] == 0

    @pytest.mark.parametrize("register", [0x0, 0x7, 0xE, 0xF])
    @pytest.mark.parametrize("nn, mm", [(0, 0), (5, 10), (0xFF, 1), (0x80, 0x80), (0xFF, 0xFF)])
    def test_set_then_add_is_modular(self, fresh_state, register, nn, mm):
        state = execute(fresh_state, 0x6000 | (register << 8) | nn)
        state = execute(state, 0x7000 | (register << 8) | mm)
        assert state.V[register] == (nn + mm) % 256


class TestIndexRegister:
    """Test I register operations."""

    def test_set_index_basic(self, fresh_state):
        """ANNN - Set I register to NNN."""
        state = execute(fresh_state, 0xA123)  # I = 0x123
        assert state.I == 0x123

    def test_set_index_maximum(self, fresh_state):
        """ANNN - Set I register to maximum 12-bit value."""
        state = execute(fresh_state, 0xAFFF)  # I = 0xFFF
        assert state.I == 0xFFF

    def test_set_index_multiple_operations(self, fresh_state):
        """ANNN - Test multiple consecutive I register sets."""
        state = fresh_state

        state = execute(state, 0xA111)
        assert state.I == 0x111

        state = execute(state, 0xA000)
        assert state.I == 0x000


class TestRandom:
    """Test random number generation."""

    def test_random_zero_mask(self, fresh_state):
        """CXNN - Random AND with 0x00 should always be 0."""
        state = execute(fresh_state, 0xC000)
        assert state.V[0] == 0

    def test_random_bit_mask(self, fresh_state):
        """CXNN - Random AND with specific mask."""
        state = fresh_state
        for _ in range(20):
            state = execute(state, 0xC20F)
            assert 0 <= state.V[2] <= 15

    def test_random_advances_rng(self, fresh_state):
        """CXNN - Successive draws use fresh keys."""
        state = fresh_state
        values = set()
        for _ in range(20):
            state = execute(state, 0xC3FF)
            values.add(int(state.V[3]))
        assert len(values) > 1

    def test_random_preserves_state(self, fresh_state):
        """CXNN - Verify other state is preserved."""
        state = execute(fresh_state, 0x6142)
        state = execute(state, 0xA300)

        state = execute(state, 0xC0FF)

        assert state.V[1] == 0x42
        assert state.I == 0x300
        assert state.pc == 0x206


class TestMemoryStore:
    """Test the memory store contract."""

    def test_font_is_preloaded(self, fresh_state):
        font = np.asarray(fresh_state.memory[FONT_START:FONT_START + len(FONT_DATA)])
        np.testing.assert_array_equal(font, np.array(FONT_DATA, dtype=np.uint8))

    def test_read_write_byte(self, fresh_state):
        state = write_byte(fresh_state, 0x345, 0x1AB)
        assert read_byte(state, 0x345) == 0xAB

    @pytest.mark.parametrize("address", [-1, 0x1000])
    def test_access_out_of_range(self, fresh_state, address):
        with pytest.raises(AddressError):
            read_byte(fresh_state, address)
        with pytest.raises(AddressError):
            write_byte(fresh_state, address, 0)

    def test_write_bytes_past_end(self, fresh_state):
        with pytest.raises(AddressError):
            write_bytes(fresh_state, 0xFFE, b"\x01\x02\x03")

    def test_load_program_at_0x200(self):
        state = load_program(create_state(), b"\x60\x05\x12\x00")
        assert [read_byte(state, PROGRAM_START + i) for i in range(4)] == [0x60, 0x05, 0x12, 0x00]
        assert state.pc == PROGRAM_START

    def test_load_program_fills_memory_exactly(self):
        state = load_program(create_state(), bytes([0xAA]) * MAX_ROM_SIZE)
        assert read_byte(state, 0xFFF) == 0xAA

    def test_load_program_too_large(self):
        with pytest.raises(RomLoadError):
            load_program(create_state(), bytes(MAX_ROM_SIZE + 1))

    def test_load_program_empty(self):
        with pytest.raises(RomLoadError):
            load_program(create_state(), b"")

    def test_load_rom_from_file(self, tmp_path):
        rom = tmp_path / "test.ch8"
        rom.write_bytes(b"\x00\xE0")
        state = load_rom(create_state(), str(rom))
        assert read_byte(state, 0x200) == 0x00
        assert read_byte(state, 0x201) == 0xE0

    def test_load_rom_missing_file(self, tmp_path):
        with pytest.raises(RomLoadError) as excinfo:
            load_rom(create_state(), str(tmp_path / "missing.ch8"))
        assert isinstance(excinfo.value, OSError)
        assert isinstance(excinfo.value.__cause__, FileNotFoundError)
