"""Host-facing CHIP-8 machine owning one emulator state."""

import os
import time
from typing import Callable, Optional

import jax
import numpy as np

from chipax import emulator
from chipax.constants import MEMORY_SIZE, TIMER_FREQUENCY
from chipax.decode import disassemble
from chipax.errors import fault_error
from chipax.logging import MachineLogger
from chipax.memory import load_program, load_rom
from chipax.state import EmulatorState, create_state

# Timers never need more than this many ticks to reach zero.
MAX_TIMER_CATCHUP = 256


class Chip8:
    """Stateful wrapper driving the pure emulator functions.

    The machine owns the emulator state, converts fault codes into
    exceptions and ticks the timers from a wall clock at 60 Hz, independently
    of how many cycles run in between. The timer clock starts once the first
    cycle has run, so JIT compilation is not counted as emulated time.

    Args:
        rng: JAX random key for the RND instruction
        logger: Logger for lifecycle events, a MachineLogger by default
        on_beep: Called once each time the sound timer runs out
        clock: Monotonic time source in seconds
    """

    def __init__(
        self,
        rng: jax.Array = None,
        logger: MachineLogger = None,
        on_beep: Callable[[], None] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.rng = rng if rng is not None else jax.random.PRNGKey(0)
        self.logger = logger or MachineLogger()
        self.on_beep = on_beep
        self.clock = clock
        self.timer_period = 1.0 / TIMER_FREQUENCY
        self._loader = None
        self.state: EmulatorState = create_state(self.rng)
        self._last_timer_update = None

    def reset(self):
        """Restart from a fresh state, reloading the last program if any."""
        self.state = create_state(self.rng)
        if self._loader is not None:
            self.state = self._loader(self.state)
        self._last_timer_update = None

    def load_rom(self, filename: str):
        """Load a ROM file at 0x200. Raises RomLoadError."""
        self.state = load_rom(self.state, filename)
        self._loader = lambda state: load_rom(state, filename)
        self._last_timer_update = None
        self.logger.log_rom_loaded(str(filename), os.path.getsize(filename))

    def load_program(self, data: bytes):
        """Load program bytes at 0x200. Raises RomLoadError."""
        data = bytes(data)
        self.state = load_program(self.state, data)
        self._loader = lambda state: load_program(state, data)
        self._last_timer_update = None
        self.logger.log_rom_loaded("program", len(data))

    @property
    def halted(self) -> bool:
        return int(self.state.fault) != 0

    @property
    def waiting_for_key(self) -> bool:
        return bool(self.state.waiting_for_key)

    def _check_fault(self):
        error = fault_error(self.state)
        if error is not None:
            self.logger.log_fault(error)
            raise error

    def _start_timer_clock(self):
        if self._last_timer_update is None:
            self._last_timer_update = self.clock()

    def cycle(self):
        """Advance one cycle. Raises the Chip8Error matching any fault."""
        if self.logger.is_enabled_for("DEBUG") and not self.halted and not self.waiting_for_key:
            pc = int(self.state.pc)
            if pc <= MEMORY_SIZE - 2:
                opcode = int(emulator.fetch(self.state))
                self.logger.log_instruction(pc, opcode, disassemble(opcode))
        self.state = emulator.step(self.state)
        self._start_timer_clock()
        self._check_fault()

    def run(self, cycles: int, progress: bool = False):
        """Run several cycles in one jitted scan."""
        self.state = emulator.run_cycles(self.state, cycles, progress)
        self._start_timer_clock()
        self._check_fault()

    def set_keypad(self, keys):
        """Overwrite the 16-key latch."""
        self.state = emulator.set_keypad(self.state, keys)

    def tick_timers(self):
        """Apply one 60 Hz timer tick."""
        self.state = emulator.tick_timers(self.state)
        self._deliver_beep()

    def update_timers(self) -> int:
        """Apply the timer ticks due since the last update. Returns the ticks applied.

        Nothing is due before the first cycle has run. A long stall applies at
        most MAX_TIMER_CATCHUP ticks.
        """
        if self._last_timer_update is None:
            return 0
        due = int((self.clock() - self._last_timer_update) / self.timer_period)
        if due <= 0:
            return 0
        self._last_timer_update += due * self.timer_period
        applied = min(due, MAX_TIMER_CATCHUP)
        for _ in range(applied):
            self.tick_timers()
        return applied

    def _deliver_beep(self):
        self.state, fired = emulator.consume_beep(self.state)
        if fired:
            self.logger.log_beep()
            if self.on_beep is not None:
                self.on_beep()

    def draw(self) -> Optional[np.ndarray]:
        """Framebuffer snapshot if it changed since the last call, else None."""
        self.state, frame = emulator.draw(self.state)
        return frame
