"""Console logging for the chipax emulator.

Provides a levelled, optionally coloured console logger used by the machine
and the host shell, and a tqdm progress bar that jitted `lax.scan` loops can
drive through `io_callback`.
"""

import sys
import time
from typing import Callable, Optional, TextIO

import jax
from jax.experimental import io_callback

from tqdm import tqdm

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
RESET_COLOR = "\033[0m"


def _level_rank(level: str) -> int:
    level = level.upper()
    return LEVELS.index(level) if level in LEVELS else LEVELS.index("INFO")


class ConsoleLogger:
    """Console logger with level filtering, timestamps and ANSI colours.

    Args:
        name: Tag printed with every line
        log_level: Lowest level that is printed
        use_colors: Colour the level tag when the stream is a terminal
        show_timestamps: Prefix lines with seconds since creation
        stream: Output stream, the current sys.stdout when None
    """

    def __init__(
        self,
        name: str = "Chipax",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
        stream: Optional[TextIO] = None,
    ):
        self.name = name
        self.log_level = log_level.upper()
        self.use_colors = use_colors
        self.show_timestamps = show_timestamps
        self.stream = stream
        self.start_time = time.time()

    def _output(self) -> TextIO:
        return self.stream if self.stream is not None else sys.stdout

    def is_enabled_for(self, level: str) -> bool:
        """Whether messages at `level` pass the configured threshold."""
        return _level_rank(level) >= _level_rank(self.log_level)

    def format(self, level: str, message: str) -> str:
        level = level.upper()
        parts = []
        if self.show_timestamps:
            parts.append(f"[{time.time() - self.start_time:8.2f}s]")

        tag = f"[{level:>8s}]"
        output = self._output()
        if self.use_colors and getattr(output, "isatty", lambda: False)():
            tag = f"{LEVEL_COLORS.get(level, '')}{tag}{RESET_COLOR}"
        parts.append(tag)
        parts.append(f"[{self.name}]")

        return "".join(parts) + f" {message}"

    def log(self, level: str, message: str):
        if self.is_enabled_for(level):
            print(self.format(level, message), file=self._output(), flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def warning(self, message: str):
        self.log("WARNING", message)

    def error(self, message: str):
        self.log("ERROR", message)

    def critical(self, message: str):
        self.log("CRITICAL", message)


class MachineLogger(ConsoleLogger):
    """Logger for machine lifecycle events."""

    def __init__(self, name: str = "Chip8", **kwargs):
        super().__init__(name, **kwargs)

    def log_rom_loaded(self, source: str, size: int):
        self.info(f"Loaded {source} ({size} bytes)")

    def log_instruction(self, pc: int, opcode: int, mnemonic: str):
        self.debug(f"0x{pc:03X}: {opcode:04X}  {mnemonic}")

    def log_fault(self, error: Exception):
        self.critical(f"{type(error).__name__}: {error}")

    def log_beep(self):
        self.info("BEEP")


class CycleProgress:
    """Host-side tqdm bar advanced from inside a jitted loop.

    Args:
        total: Number of loop iterations
        print_rate: Iterations between bar refreshes, about 20 refreshes when None
        desc: Bar description
    """

    def __init__(self, total: int, print_rate: Optional[int] = None, desc: str = None, **tqdm_kwargs):
        self.total = total
        if print_rate is None:
            print_rate = total // 20
        self.print_rate = max(1, min(print_rate, max(total, 1)))
        self.desc = desc or f"Running ({total:,} cycles)"
        for kwarg in ("total", "desc", "unit"):
            tqdm_kwargs.pop(kwarg, None)
        self.tqdm_kwargs = tqdm_kwargs
        self.bar = None

    def _open(self):
        self.bar = tqdm(total=self.total, desc=self.desc, unit="cycle", **self.tqdm_kwargs)

    def _advance_to(self, done):
        if self.bar is not None:
            self.bar.update(int(done) - self.bar.n)

    def _close(self):
        if self.bar is not None:
            self.bar.close()
            self.bar = None

    def before(self, iter_num):
        """Traced hook run at the start of iteration `iter_num`."""
        jax.lax.cond(
            iter_num == 0,
            lambda: io_callback(self._open, None, ordered=True),
            lambda: None,
        )

    def after(self, iter_num):
        """Traced hook run once iteration `iter_num` has finished."""
        done = iter_num + 1
        jax.lax.cond(
            (done % self.print_rate == 0) | (done == self.total),
            lambda: io_callback(self._advance_to, None, done, ordered=True),
            lambda: None,
        )
        jax.lax.cond(
            done == self.total,
            lambda: io_callback(self._close, None, ordered=True),
            lambda: None,
        )


def scan_with_progress(
    n: int,
    print_rate: Optional[int] = None,
    desc: str = None,
    **tqdm_kwargs,
) -> Callable:
    """Decorate a `lax.scan` body over `jnp.arange(n)` with a progress bar."""
    progress = CycleProgress(n, print_rate, desc, **tqdm_kwargs)

    def decorator(body):
        def body_with_progress(carry, x):
            iter_num = x[0] if isinstance(x, tuple) else x
            progress.before(iter_num)
            result = body(carry, x)
            progress.after(iter_num)
            return result

        return body_with_progress

    return decorator
