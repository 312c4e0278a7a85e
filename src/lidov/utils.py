"""
Timing and soft-validation helpers shared across lidov.
"""

from time import perf_counter
import warnings
from typing import Optional, Type
from .config import config
from .errors import ConfigurationError


def format_duration(seconds: float) -> str:
    """Wall-clock duration as ``1h02m03.4s`` / ``2m03.4s`` / ``3.42s``."""
    minutes, secs = divmod(float(seconds), 60.0)
    hours, minutes = divmod(int(minutes), 60)
    if hours:
        return f"{hours}h{minutes:02d}m{secs:04.1f}s"
    if minutes:
        return f"{minutes}m{secs:04.1f}s"
    return f"{secs:.2f}s"


class Timer:
    """
    Wall-clock stopwatch usable as a context manager.

    ``elapsed`` is live while the block runs and frozen on exit, so a
    long integration can report its running time from inside the loop.

    Examples
    --------
    >>> with Timer("Compilation"):
    ...     sim.initialize_auxiliary_state(force)
    Compilation: 4.21s

    >>> with Timer(verbose=False) as t:
    ...     driver.run()
    >>> t.elapsed
    """
    def __init__(self, name: str = "Operation", verbose: bool = True):
        self.name = name
        self.verbose = verbose
        self._start: Optional[float] = None
        self._stop: Optional[float] = None

    def __enter__(self):
        self._start = perf_counter()
        self._stop = None
        return self

    def __exit__(self, *exc):
        self._stop = perf_counter()
        if self.verbose:
            print(f"{self.name}: {format_duration(self.elapsed)}")

    @property
    def elapsed(self) -> float:
        """Seconds since entry (0 before entry)"""
        if self._start is None:
            return 0.0
        end = self._stop if self._stop is not None else perf_counter()
        return end - self._start


def validation_error(message: str,
                     error_class: Type[Exception] = ConfigurationError):
    """
    Raise ``error_class`` when config.STRICT_VALIDATION is set, otherwise
    emit a UserWarning pointing at the caller's caller.

    Used for inputs that are physically odd but still integrable, such
    as a tidal Love number on a massless body.
    """
    if config.STRICT_VALIDATION:
        raise error_class(message)
    warnings.warn(message, UserWarning, stacklevel=3)
