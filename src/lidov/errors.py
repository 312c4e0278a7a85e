"""
Exception hierarchy for the Lidov package.

Each class also derives from the builtin exception that callers would
naturally catch (ValueError, RuntimeError, OSError), so code written
against plain Python exceptions keeps working.
"""

from typing import Optional, Sequence


class LidovError(Exception):
    """Base class for all errors raised by lidov."""


class ConfigurationError(LidovError, ValueError):
    """Invalid physical parameters or setup ordering, detected before integration."""


class IntegrationFailure(LidovError, RuntimeError):
    """
    The engine could not advance the state to the requested time.

    Attributes
    ----------
    time : float
        Simulation clock [code units] at which the failure was detected
    target_time : float or None
        Macro-step boundary the engine was asked to reach
    bodies : tuple of int
        Indices of the bodies whose state became invalid (may be empty)
    """

    def __init__(
        self,
        message: str,
        time: float,
        target_time: Optional[float] = None,
        bodies: Sequence[int] = ()
    ):
        self.time = float(time)
        self.target_time = None if target_time is None else float(target_time)
        self.bodies = tuple(int(b) for b in bodies)
        detail = f"{message} (t={self.time:.10g}"
        if self.target_time is not None:
            detail += f", target={self.target_time:.10g}"
        if self.bodies:
            detail += f", bodies={list(self.bodies)}"
        super().__init__(detail + ")")


class OutputError(LidovError, OSError):
    """The output sink could not be opened or written."""
