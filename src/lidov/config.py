"""
Package-wide settings for lidov
==============================

A single mutable ``config`` object holds the tolerances used by the orbit
conversion, the strictness of input checks, the heyoka integrator options
and the output file format.

Examples
--------
View current configuration:

>>> import lidov
>>> print(lidov.config)

Modify settings:

>>> lidov.config.SNAP_TO_CIRCULAR = 1e-10
>>> lidov.config.PROGRESS_EVERY = 1000

Reset to defaults:

>>> lidov.config.reset()

Temporarily modify settings:

>>> with lidov.temp_config(STRICT_VALIDATION=False):
...     # massless spin bodies only warn inside this block
...     configurator.configure(sim)
"""

from dataclasses import dataclass
from contextlib import contextmanager
import math


@dataclass
class LidovConfig:
    """
    Global configuration for Lidov package.

    Attributes
    ----------
    EQUALITY_RTOL : float
        Relative tolerance for floating-point equality comparisons.
        Default: 1e-12
    EQUALITY_ATOL : float
        Absolute tolerance for floating-point equality comparisons.
        Default: 1e-14
    SNAP_TO_ZERO_THRESHOLD : float
        Separations and angular momenta below this threshold are treated
        as exactly zero (degenerate orbit geometry).
        Default: 1e-14
    SNAP_TO_CIRCULAR : float
        Eccentricity below this threshold treated as circular orbit
        (argument of pericenter set to zero).
        Default: 1e-8
    SNAP_TO_EQUATORIAL : float
        sin(inclination) below this threshold treated as equatorial
        (longitude of ascending node set to zero).
        Default: 1e-8
    STRICT_VALIDATION : bool
        If True, soft validation failures raise exceptions.
        If False, they issue warnings.
        Default: True
    INTEGRATION_TOL : float
        Tolerance handed to the Taylor integrator.
        Default: 2.220446049250313e-16 (double precision epsilon)
    COMPACT_MODE : bool
        Compile the integrator in heyoka's compact mode. Much faster
        compilation for the tidal equations at a small runtime cost.
        Default: True
    OUTPUT_PRECISION : int
        Number of decimal places written for every output column.
        Default: 10
    PROGRESS_EVERY : int
        Print a progress line every this many rows (0 disables).
        Default: 10000
    FLUSH_EVERY : int
        Flush the output file every this many rows (0 flushes only on close).
        Default: 1000
    """

    # Numerical tolerance for equality comparisons
    EQUALITY_RTOL: float = 1e-12
    EQUALITY_ATOL: float = 1e-14

    # Snapping behavior thresholds
    SNAP_TO_ZERO_THRESHOLD: float = 1e-14
    SNAP_TO_CIRCULAR: float = 1e-8
    SNAP_TO_EQUATORIAL: float = 1e-8

    # Validation behavior
    STRICT_VALIDATION: bool = True

    # Integrator
    INTEGRATION_TOL: float = 2.220446049250313e-16
    COMPACT_MODE: bool = True

    # Output
    OUTPUT_PRECISION: int = 10
    PROGRESS_EVERY: int = 10000
    FLUSH_EVERY: int = 1000

    @property
    def HASH_DECIMALS(self) -> int:
        """Decimals kept when hashing OrbitalElements, two short of EQUALITY_ATOL."""
        magnitude = -math.floor(math.log10(self.EQUALITY_ATOL))
        return max(magnitude - 2, 0)

    def reset(self):
        """
        Reset all configuration values to package defaults.

        Examples
        --------
        >>> import lidov
        >>> lidov.config.OUTPUT_PRECISION = 6
        >>> lidov.config.reset()
        >>> lidov.config.OUTPUT_PRECISION
        10
        """
        defaults = LidovConfig()
        for key in self.__dataclass_fields__:
            setattr(self, key, getattr(defaults, key))

    def __repr__(self):
        lines = ["LidovConfig:"]
        for group, keys in _GROUPS:
            lines.append(f"  {group}:")
            lines.extend(f"    {key} = {getattr(self, key)}" for key in keys)
        return "\n".join(lines)


_GROUPS = (
    ("Numerical Tolerances", ("EQUALITY_RTOL", "EQUALITY_ATOL", "HASH_DECIMALS")),
    ("Snapping Thresholds", ("SNAP_TO_ZERO_THRESHOLD", "SNAP_TO_CIRCULAR",
                             "SNAP_TO_EQUATORIAL")),
    ("Integration", ("INTEGRATION_TOL", "COMPACT_MODE")),
    ("Behavior", ("STRICT_VALIDATION",)),
    ("Output", ("OUTPUT_PRECISION", "PROGRESS_EVERY", "FLUSH_EVERY")),
)

# Global configuration instance
config = LidovConfig()


@contextmanager
def temp_config(**overrides):
    """
    Override configuration values inside a ``with`` block.

    All keys are checked before anything is changed; previous values are
    restored on exit, including on error.

    Examples
    --------
    >>> import lidov
    >>> with lidov.temp_config(OUTPUT_PRECISION=4, PROGRESS_EVERY=0):
    ...     summary = lidov.run_scenario(scenario, output="short.txt")
    >>> lidov.config.OUTPUT_PRECISION
    10

    Raises
    ------
    AttributeError
        If a key is not a LidovConfig field
    """
    unknown = [key for key in overrides if key not in config.__dataclass_fields__]
    if unknown:
        raise AttributeError(
            f"LidovConfig has no attribute(s) {unknown}. "
            f"Valid attributes: {list(config.__dataclass_fields__)}")

    saved = {key: getattr(config, key) for key in overrides}
    for key, value in overrides.items():
        setattr(config, key, value)
    try:
        yield config
    finally:
        for key, value in saved.items():
            setattr(config, key, value)
