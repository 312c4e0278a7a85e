"""
Immutable parameter sets for a hierarchical triple with spins.

Angles are given in degrees, spin periods in days and tidal lags
(k2 * delta_t) in seconds; lidov.builder and lidov.spin convert them to
code units. Scenarios round-trip through JSON with load_scenario and
save_scenario.
"""

import json
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Optional
import numpy as np
from .errors import ConfigurationError


def _require_finite(name, value):
    if value is None or not np.isfinite(value):
        raise ConfigurationError(f"{name} must be finite, got {value}")


@dataclass(frozen=True)
class StarParams:
    """
    Central star, placed at the origin at rest before the COM shift.

    Attributes
    ----------
    mass : float
        Mass [solar masses], > 0
    radius : float
        Radius [AU], >= 0
    """
    mass: float
    radius: float = 0.0
    name: Optional[str] = None

    def __post_init__(self):
        _require_finite("Star mass", self.mass)
        _require_finite("Star radius", self.radius)
        if self.mass <= 0:
            raise ConfigurationError(f"Star mass must be positive, got {self.mass}")
        if self.radius < 0:
            raise ConfigurationError(f"Star radius must be >= 0, got {self.radius}")


@dataclass(frozen=True)
class OrbitParams:
    """
    A body added on a bound Keplerian orbit.

    Attributes
    ----------
    mass : float
        Mass [solar masses], >= 0
    a : float
        Semi-major axis [AU], > 0
    e : float
        Eccentricity, 0 <= e < 1
    radius : float, optional
        Radius [AU], >= 0
    inc_deg, Omega_deg, omega_deg, f_deg : float, optional
        Inclination, node, argument of pericenter and true anomaly [deg]
    """
    mass: float
    a: float
    e: float
    radius: float = 0.0
    inc_deg: float = 0.0
    Omega_deg: float = 0.0
    omega_deg: float = 0.0
    f_deg: float = 0.0
    name: Optional[str] = None

    def __post_init__(self):
        for f in fields(self):
            if f.name != 'name':
                _require_finite(f.name, getattr(self, f.name))
        if self.mass < 0:
            raise ConfigurationError(f"Mass must be >= 0, got {self.mass}")
        if self.radius < 0:
            raise ConfigurationError(f"Radius must be >= 0, got {self.radius}")
        if self.a <= 0:
            raise ConfigurationError(f"Semi-major axis must be positive, got {self.a}")
        if self.e < 0 or self.e >= 1:
            raise ConfigurationError(
                f"Eccentricity must satisfy 0 <= e < 1 for a bound orbit, got {self.e}")
        if self.inc_deg < 0 or self.inc_deg > 180:
            raise ConfigurationError(
                f"Inclination must lie in [0, 180] deg, got {self.inc_deg}")

    @property
    def angles_rad(self):
        """(inc, Omega, omega, f) in radians"""
        return tuple(np.radians([self.inc_deg, self.Omega_deg,
                                 self.omega_deg, self.f_deg]))


@dataclass(frozen=True)
class SpinParams:
    """
    Spin and equilibrium-tide parameters of one body.

    Attributes
    ----------
    period_days : float
        Rotation period [days], > 0
    k2 : float
        Potential Love number, >= 0 (0 disables the tidal response)
    k2_delta_t : float
        Product of k2 and the constant time lag [s], >= 0
    gyration_constant : float
        Moment of inertia divided by m R^2, in (0, 1]
    obliquity_deg : float, optional
        Angle between spin and the +z axis before alignment [deg]
    azimuth_deg : float, optional
        Azimuth of the spin axis, measured from +y toward +x [deg]
    """
    period_days: float
    k2: float
    k2_delta_t: float
    gyration_constant: float
    obliquity_deg: float = 0.0
    azimuth_deg: float = 0.0

    def __post_init__(self):
        for f in fields(self):
            _require_finite(f.name, getattr(self, f.name))
        if self.period_days <= 0:
            raise ConfigurationError(
                f"Spin period must be positive, got {self.period_days}")
        if self.k2 < 0:
            raise ConfigurationError(f"k2 must be >= 0, got {self.k2}")
        if self.k2_delta_t < 0:
            raise ConfigurationError(f"k2_delta_t must be >= 0, got {self.k2_delta_t}")
        if self.k2 == 0 and self.k2_delta_t > 0:
            raise ConfigurationError("k2_delta_t > 0 requires k2 > 0")
        if not 0 < self.gyration_constant <= 1:
            raise ConfigurationError(
                f"Gyration constant must lie in (0, 1], got {self.gyration_constant}")


@dataclass(frozen=True)
class RunParams:
    """
    Integration loop and output settings.

    Attributes
    ----------
    n_steps : int
        Number of macro-steps
    macro_step_years : float
        Length of one macro-step [years]
    max_time_years : float or None
        Optional wall on the simulation clock [years]
    output : str
        Path of the time-series file
    progress_every : int or None
        Rows between progress lines, None for config.PROGRESS_EVERY
    precision : int or None
        Decimals per value, None for config.OUTPUT_PRECISION
    record_initial : bool
        Also write the t = 0 state as the first row
    """
    n_steps: int = 1_000_000
    macro_step_years: float = 100.0
    max_time_years: Optional[float] = None
    output: str = "11_28_HD80860.txt"
    progress_every: Optional[int] = None
    precision: Optional[int] = None
    record_initial: bool = False

    def __post_init__(self):
        if self.n_steps < 0:
            raise ConfigurationError(f"n_steps must be >= 0, got {self.n_steps}")
        _require_finite("macro_step_years", self.macro_step_years)
        if self.macro_step_years <= 0:
            raise ConfigurationError(
                f"Macro-step must be positive, got {self.macro_step_years}")
        if self.max_time_years is not None and not self.max_time_years > 0:
            raise ConfigurationError(
                f"max_time_years must be positive, got {self.max_time_years}")
        if self.progress_every is not None and self.progress_every < 0:
            raise ConfigurationError(
                f"progress_every must be >= 0, got {self.progress_every}")
        if self.precision is not None and self.precision < 0:
            raise ConfigurationError(f"precision must be >= 0, got {self.precision}")


@dataclass(frozen=True)
class Scenario:
    """Full description of a run: bodies, spins and loop settings."""
    star: StarParams
    planet: OrbitParams
    perturber: OrbitParams
    star_spin: SpinParams
    planet_spin: SpinParams
    run: RunParams = field(default_factory=RunParams)
    name: Optional[str] = None

    def __post_init__(self):
        if self.perturber.mass <= 0:
            raise ConfigurationError(
                f"Perturber mass must be positive, got {self.perturber.mass}")

    def replace_run(self, **changes) -> "Scenario":
        """Copy of this scenario with some RunParams fields changed."""
        run = RunParams(**{**asdict(self.run), **changes})
        return Scenario(self.star, self.planet, self.perturber,
                        self.star_spin, self.planet_spin, run, self.name)


def _dataclass_from_dict(cls, d: Dict[str, Any]):
    # allow passing dict for nested dataclasses
    if not isinstance(d, dict):
        raise ConfigurationError(f"Expected a mapping for {cls.__name__}, got {d!r}")
    known = {f.name: f for f in fields(cls)}
    unknown = set(d) - set(known)
    if unknown:
        raise ConfigurationError(
            f"Unknown keys for {cls.__name__}: {sorted(unknown)}")
    kwargs = {}
    for name, val in d.items():
        ftype = known[name].type
        if hasattr(ftype, "__dataclass_fields__") and isinstance(val, dict):
            kwargs[name] = _dataclass_from_dict(ftype, val)
        else:
            kwargs[name] = val
    try:
        return cls(**kwargs)
    except TypeError as exc:
        raise ConfigurationError(f"Invalid {cls.__name__}: {exc}") from exc


def scenario_from_dict(d: Dict[str, Any]) -> Scenario:
    """Build a Scenario from nested plain dictionaries."""
    return _dataclass_from_dict(Scenario, d)


def load_scenario(path: str) -> Scenario:
    """
    Read a Scenario from a JSON file.

    Raises
    ------
    ConfigurationError
        If the file is not valid JSON or describes an invalid scenario
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            d = json.load(f)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"{path}: invalid JSON ({exc})") from exc
    return scenario_from_dict(d)


def save_scenario(scenario: Scenario, path: str) -> None:
    """Write a Scenario to a JSON file."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(asdict(scenario), f, indent=2)
