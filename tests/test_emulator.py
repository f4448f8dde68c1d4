"""Tests for the cycle loop, timers, keypad and draw query."""

import jax.numpy as jnp
import numpy as np
import pytest
from chipax import (
    step, fetch, run_cycles, tick_timers, consume_beep, set_keypad, draw, create_state
)
from chipax.constants import FAULT_ADDRESS, FAULT_UNKNOWN_INSTRUCTION, FONT_START
from conftest import program_state, setup_sprite_in_memory, with_registers


def run_steps(state, count):
    for _ in range(count):
        state = step(state)
    return state


def press(state, *keys):
    pressed = [False] * 16
    for key in keys:
        pressed[key] = True
    return set_keypad(state, pressed)


class TestCycle:
    """Fetch-decode-execute through step()."""

    def test_fetch_is_big_endian(self):
        state = program_state(0xA2F0)
        assert fetch(state) == 0xA2F0

    def test_single_set_instruction(self):
        state = step(program_state(0x6005))

        assert state.V[0] == 5
        assert state.pc == 0x202
        assert state.opcode == 0x6005

    def test_font_address_after_two_cycles(self):
        state = with_registers(program_state(0xA050, 0xF029), V0=0xA)

        state = run_steps(state, 2)

        assert state.I == 0x050 + 50
        assert state.I == FONT_START + 0xA * 5

    def test_clear_then_draw_one_row(self):
        state = program_state(0x00E0, 0xD011)
        state = setup_sprite_in_memory(state, 0x300, [0b10110001])
        state = with_registers(state, V0=3, V1=4, VF=9)
        state = state.replace(I=jnp.asarray(0x300, dtype=jnp.uint16))

        state = run_steps(state, 2)

        assert state.V[15] == 0
        row = [bool(state.display[3 + i, 4]) for i in range(8)]
        assert row == [True, False, True, True, False, False, False, True]
        assert jnp.sum(state.display) == 4

    def test_call_and_return_program(self):
        # 0x200: CALL 0x206; 0x202: LD V1, 1; 0x204: JP 0x204; 0x206: LD V2, 2; 0x208: RET
        state = program_state(0x2206, 0x6101, 0x1204, 0x6202, 0x00EE)

        state = run_steps(state, 6)

        assert state.V[1] == 1
        assert state.V[2] == 2
        assert state.pc == 0x204
        assert state.stack.pointer == 0

    def test_unknown_instruction_halts(self):
        state = program_state(0x6005, 0x5121, 0x6106)

        state = run_steps(state, 5)

        assert state.fault == FAULT_UNKNOWN_INSTRUCTION
        assert state.pc == 0x202
        assert state.opcode == 0x5121
        assert state.V[1] == 0

    def test_halted_state_does_not_move(self):
        state = step(program_state(0x00EE))
        halted = step(state)

        assert halted.pc == state.pc
        assert halted.fault == state.fault

    def test_pc_past_memory_faults(self, fresh_state):
        state = step(fresh_state.replace(pc=jnp.asarray(0xFFF, dtype=jnp.uint16)))
        assert state.fault == FAULT_ADDRESS

    def test_run_cycles_matches_steps(self):
        state = program_state(0x6001, 0x7102, 0x8014, 0xA123, 0x1208)
        np.testing.assert_array_equal(
            np.asarray(run_cycles(state, 7).V), np.asarray(run_steps(state, 7).V)
        )
        assert run_cycles(state, 7).pc == run_steps(state, 7).pc

    def test_run_cycles_stops_at_fault(self):
        state = program_state(0x6001, 0xFFFF, 0x6002)
        state = run_cycles(state, 10)

        assert state.fault == FAULT_UNKNOWN_INSTRUCTION
        assert state.V[0] == 1


class TestWaitForKey:
    """FX0A stalls the cycle loop until a new key press."""

    def test_stalls_without_key(self):
        state = program_state(0xF30A, 0x6001)

        state = run_steps(state, 5)

        assert state.waiting_for_key
        assert state.pc == 0x200
        assert state.V[0] == 0

    def test_resolves_on_press(self):
        state = run_steps(program_state(0xF30A, 0x6001), 2)

        state = step(press(state, 7))

        assert not state.waiting_for_key
        assert state.V[3] == 7
        assert state.pc == 0x202

        state = step(state)
        assert state.V[0] == 1

    def test_lowest_new_key_wins(self):
        state = step(program_state(0xF30A))
        state = step(press(state, 0xB, 0x4))
        assert state.V[3] == 0x4

    def test_key_held_before_wait_needs_release(self):
        state = press(program_state(0xF20A), 5)
        state = run_steps(state, 3)
        assert state.waiting_for_key

        state = step(press(state))
        assert state.waiting_for_key

        state = step(press(state, 5))
        assert not state.waiting_for_key
        assert state.V[2] == 5

    def test_timers_keep_running_while_waiting(self):
        state = step(program_state(0xF00A)).replace(delay_timer=jnp.asarray(3, dtype=jnp.uint8))
        state = tick_timers(state)
        assert state.delay_timer == 2
        assert state.waiting_for_key


class TestTimers:
    """Timers tick independently of cycles."""

    def test_delay_counts_down_to_zero(self, fresh_state):
        state = fresh_state.replace(delay_timer=jnp.asarray(2, dtype=jnp.uint8))
        for expected in (1, 0, 0):
            state = tick_timers(state)
            assert state.delay_timer == expected

    def test_beep_fires_once_on_one_to_zero(self, fresh_state):
        state = fresh_state.replace(sound_timer=jnp.asarray(3, dtype=jnp.uint8))
        beeps = []
        for _ in range(6):
            state = tick_timers(state)
            state, fired = consume_beep(state)
            beeps.append(fired)

        assert beeps == [False, False, True, False, False, False]
        assert state.sound_timer == 0

    def test_no_beep_at_zero(self, fresh_state):
        state = tick_timers(fresh_state)
        state, fired = consume_beep(state)
        assert not fired

    def test_beep_is_held_until_consumed(self, fresh_state):
        state = fresh_state.replace(sound_timer=jnp.asarray(1, dtype=jnp.uint8))
        state = tick_timers(tick_timers(state))

        state, fired = consume_beep(state)
        assert fired
        state, fired = consume_beep(state)
        assert not fired

    def test_cycles_do_not_tick_timers(self):
        # LD V0, 5; LD DT, V0; JP 0x204
        state = program_state(0x6005, 0xF015, 0x1204)

        state = run_steps(state, 20)

        assert state.delay_timer == 5


class TestKeypadAndDraw:
    """Host-facing keypad and framebuffer operations."""

    def test_set_keypad(self, fresh_state):
        state = press(fresh_state, 0, 15)
        assert state.keypad.dtype == jnp.bool_
        assert [bool(k) for k in state.keypad] == [True] + [False] * 14 + [True]

    @pytest.mark.parametrize("keys", [[True] * 15, [[False] * 16]])
    def test_set_keypad_rejects_bad_shape(self, fresh_state, keys):
        with pytest.raises(ValueError):
            set_keypad(fresh_state, keys)

    def test_draw_returns_none_when_clean(self, fresh_state):
        state, frame = draw(fresh_state)
        assert frame is None

    def test_draw_consumes_dirty_flag(self):
        state = step(program_state(0x00E0))

        state, frame = draw(state)
        assert frame is not None
        assert frame.shape == (2048,)
        assert not frame.any()

        state, frame = draw(state)
        assert frame is None

    def test_frame_is_row_major(self):
        state = program_state(0xD011)
        state = setup_sprite_in_memory(state, 0x300, [0x80])
        state = with_registers(state, V0=10, V1=3)
        state = state.replace(I=jnp.asarray(0x300, dtype=jnp.uint16))

        state, frame = draw(step(state))

        assert np.flatnonzero(frame).tolist() == [10 + 64 * 3]

    def test_frame_is_a_snapshot(self):
        state, frame = draw(step(program_state(0x00E0)))
        frame[0] = True
        assert not state.display[0, 0]
