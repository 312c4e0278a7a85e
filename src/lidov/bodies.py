"""
Read-only body snapshots handed out by the engine.

The engine owns the mutable dynamical state; everything outside it
works on these immutable copies taken at macro-step boundaries.
"""

from dataclasses import dataclass, field
import numpy as np

STAR, PLANET, PERTURBER = 0, 1, 2


def _frozen_vector(values) -> np.ndarray:
    vec = np.array(values, dtype=float).reshape(3)
    vec.flags.writeable = False
    return vec


@dataclass(frozen=True, eq=False)
class Body:
    """
    Immutable snapshot of one body.

    Attributes
    ----------
    index : int
        Position in the simulation (0 star, 1 planet, 2 perturber)
    mass : float
        Mass [solar masses]
    radius : float
        Physical radius [AU]
    position, velocity : np.ndarray
        Barycentric state [AU, AU per code time unit]
    spin : np.ndarray
        Spin angular velocity vector [rad per code time unit];
        zeros for bodies without spin state
    moment_of_inertia : float
        Moment of inertia (gyration constant * m * R^2), 0 if unset
    k2 : float
        Potential Love number, 0 if unset
    tidal_time_lag : float
        Constant tidal time lag [code time units], 0 if unset
    """
    index: int
    mass: float
    radius: float
    position: np.ndarray
    velocity: np.ndarray
    spin: np.ndarray = field(default_factory=lambda: _frozen_vector((0.0, 0.0, 0.0)))
    moment_of_inertia: float = 0.0
    k2: float = 0.0
    tidal_time_lag: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, 'position', _frozen_vector(self.position))
        object.__setattr__(self, 'velocity', _frozen_vector(self.velocity))
        object.__setattr__(self, 'spin', _frozen_vector(self.spin))

    @property
    def momentum(self) -> np.ndarray:
        """Linear momentum m*v"""
        return self.mass * self.velocity


@dataclass(frozen=True, eq=False)
class SyntheticBody:
    """Mass-weighted centre of a body subset, usable as an orbit reference."""
    mass: float
    position: np.ndarray
    velocity: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, 'position', _frozen_vector(self.position))
        object.__setattr__(self, 'velocity', _frozen_vector(self.velocity))


def pairwise_center_of_mass(body_a, body_b) -> SyntheticBody:
    """
    Barycentre of two bodies.

    When both masses are zero the plain midpoint is used, so the
    result is always finite for finite inputs.

    Parameters
    ----------
    body_a, body_b : Body or SyntheticBody

    Returns
    -------
    SyntheticBody
        Combined mass, mass-weighted position and velocity
    """
    m = body_a.mass + body_b.mass
    if m > 0:
        wa, wb = body_a.mass / m, body_b.mass / m
    else:
        wa = wb = 0.5
    position = wa * np.asarray(body_a.position) + wb * np.asarray(body_b.position)
    velocity = wa * np.asarray(body_a.velocity) + wb * np.asarray(body_b.velocity)
    return SyntheticBody(mass=m, position=position, velocity=velocity)
