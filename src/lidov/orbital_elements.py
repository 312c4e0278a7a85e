'''Osculating Keplerian elements for a body relative to a reference body
OrbitalElements class definition'''

import numpy as np
from typing import TYPE_CHECKING, Tuple
from .config import config
from .errors import ConfigurationError

if TYPE_CHECKING:
    from .bodies import Body, SyntheticBody

TWO_PI = 2.0 * np.pi


class OrbitalElements:
    """
    Osculating Keplerian elements [a, e, inc, Omega, omega, f] of a
    two-body pair with gravitational parameter mu = G*(m_body + m_ref).

    Angles are in radians. Omega, omega and f are wrapped into [0, 2*pi).
    The longitude of pericenter pomega is derived: Omega + omega for
    prograde orbits and Omega - omega for retrograde ones.

    An element set built from degenerate geometry (zero separation,
    zero angular momentum, non-positive mu) carries NaN in every slot
    and reports ``is_defined == False``. Such sets are sentinels for the
    output stream, never silently fabricated numbers.

    OrbitalElements is immutable: the element array is read-only.
    """
    # ========== CLASS CONSTANTS ==========
    _NAMES = ('a', 'e', 'inc', 'Omega', 'omega', 'f')

    # ========== CONSTRUCTION ==========
    def __init__(self, a, e, inc=0.0, Omega=0.0, omega=0.0, f=0.0,
                 mu=1.0, validate=True):
        """
        Create an element set.

        Parameters
        ----------
        a : float
            Semi-major axis (negative for hyperbolic orbits)
        e : float
            Eccentricity
        inc : float, optional
            Inclination [rad], default 0
        Omega : float, optional
            Longitude of ascending node [rad], default 0
        omega : float, optional
            Argument of pericenter [rad], default 0
        f : float, optional
            True anomaly [rad], default 0
        mu : float, optional
            Gravitational parameter G*(m_body + m_ref), default 1
        validate : bool, optional
            Whether to check physical consistency (default True)

        Raises
        ------
        ConfigurationError
            If validate is True and the elements are inconsistent
        """
        self.elements = np.array([a, e, inc, Omega, omega, f], dtype=float)
        self.elements.flags.writeable = False
        self._mu = float(mu)
        if validate:
            self._validate()

    @classmethod
    def undefined(cls, mu=np.nan):
        """Sentinel element set for degenerate geometry (all NaN)."""
        return cls(np.nan, np.nan, np.nan, np.nan, np.nan, np.nan,
                   mu=mu, validate=False)

    # ========== VALIDATION ==========
    def _validate(self):
        a, e, inc, Omega, omega, f = self.elements
        if not np.all(np.isfinite(self.elements)):
            raise ConfigurationError("Elements contain NaN or Inf")
        if not np.isfinite(self._mu) or self._mu <= 0:
            raise ConfigurationError(
                f"Gravitational parameter must be positive, got {self._mu}")
        if e < 0:
            raise ConfigurationError(f"Eccentricity must be >= 0, got {e}")
        if e < 1 and a <= 0:
            raise ConfigurationError(
                f"Elliptic orbit (e={e}) requires positive semi-major axis, got a={a}")
        if e > 1 and a >= 0:
            raise ConfigurationError(
                f"Hyperbolic orbit (e={e}) requires negative semi-major axis, got a={a}")
        if e == 1:
            raise ConfigurationError("Parabolic orbits (e=1) are not supported")
        if inc < 0 or inc > np.pi:
            raise ConfigurationError(
                f"Inclination must lie in [0, pi], got {inc}")

    # ========== CONVERSIONS ==========
    @classmethod
    def from_cartesian(cls, position, velocity, mu):
        """
        Build elements from a relative state vector.

        Uses the node/in-plane basis algorithm of Flores & Fantino,
        Advances in Space Research, v.75, pp.4910, with explicit
        conventions at the singular boundaries:

        - sin(inc) < config.SNAP_TO_EQUATORIAL: Omega = 0, so omega
          is measured from the x axis
        - e < config.SNAP_TO_CIRCULAR: omega = 0, so f is the argument
          of latitude (true longitude when also equatorial)

        Parameters
        ----------
        position : array_like
            Relative position (body - reference)
        velocity : array_like
            Relative velocity (body - reference)
        mu : float
            Gravitational parameter G*(m_body + m_ref)

        Returns
        -------
        OrbitalElements
            Osculating elements, or the undefined sentinel
        """
        rvec = np.asarray(position, dtype=float)
        vvec = np.asarray(velocity, dtype=float)
        mu = float(mu)

        if (not np.isfinite(mu) or mu <= 0
                or not np.all(np.isfinite(rvec)) or not np.all(np.isfinite(vvec))):
            return cls.undefined(mu)

        r = np.linalg.norm(rvec)
        v = np.linalg.norm(vvec)
        if r < config.SNAP_TO_ZERO_THRESHOLD:
            return cls.undefined(mu)

        # angular momentum h = r x v; radial orbits have no plane
        hvec = np.cross(rvec, vvec)
        h = np.linalg.norm(hvec)
        if h <= config.SNAP_TO_ZERO_THRESHOLD * r * v or v == 0.0:
            return cls.undefined(mu)

        # inclination and node
        h_perp = np.hypot(hvec[0], hvec[1])
        inc = np.arctan2(h_perp, hvec[2])
        if h_perp / h < config.SNAP_TO_EQUATORIAL:
            Omega = 0.0
        else:
            Omega = np.arctan2(hvec[0], -hvec[1])
        # line of nodes and the in-plane vector 90 degrees ahead of it
        nhat = np.array([np.cos(Omega), np.sin(Omega), 0.0])
        bhat = np.cross(hvec / h, nhat)

        # semi-major axis from the energy equation
        inv_a = 2.0 / r - v**2 / mu
        a = np.inf if inv_a == 0.0 else 1.0 / inv_a

        # eccentricity vector
        evec = np.cross(vvec, hvec) / mu - rvec / r
        e = np.linalg.norm(evec)
        if e < config.SNAP_TO_CIRCULAR:
            omega = 0.0
        else:
            omega = np.arctan2(np.dot(evec, bhat), np.dot(evec, nhat))

        # argument of latitude minus argument of pericenter
        u = np.arctan2(np.dot(rvec, bhat), np.dot(rvec, nhat))
        f = u - omega

        return cls(a, e, inc, Omega % TWO_PI, omega % TWO_PI, f % TWO_PI,
                   mu=mu, validate=False)

    def to_cartesian(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Convert to a relative state vector.

        Returns
        -------
        position, velocity : np.ndarray
            Relative position and velocity, shape (3,) each
        """
        a, e, inc, Omega, omega, f = self.elements
        # semi-latus rectum
        p = a * (1 - e**2)
        # position and velocity in the perifocal frame
        r_mag = p / (1 + e * np.cos(f))
        rvec = np.array([r_mag * np.cos(f), r_mag * np.sin(f), 0.0])
        vvec = np.array([-np.sqrt(self._mu / p) * np.sin(f),
                         np.sqrt(self._mu / p) * (e + np.cos(f)), 0.0])
        # rotation about z-axis by the node
        R3_Omega = np.array([
            [np.cos(Omega), -np.sin(Omega), 0],
            [np.sin(Omega),  np.cos(Omega), 0],
            [0,              0,             1]
        ])
        # rotation about x-axis by inclination
        R1_i = np.array([
            [1, 0,            0           ],
            [0, np.cos(inc), -np.sin(inc) ],
            [0, np.sin(inc),  np.cos(inc) ]
        ])
        # rotation about z-axis by argument of pericenter
        R3_omega = np.array([
            [np.cos(omega), -np.sin(omega), 0],
            [np.sin(omega),  np.cos(omega), 0],
            [0,              0,             1]
        ])
        DCM = R3_Omega @ R1_i @ R3_omega
        return DCM @ rvec, DCM @ vvec

    # ========== PROPERTY ACCESS ==========
    @property
    def mu(self):
        """Gravitational parameter of the pair"""
        return self._mu

    @property
    def a(self):
        """Semi-major axis"""
        return self.elements[0]

    @property
    def e(self):
        """Eccentricity"""
        return self.elements[1]

    @property
    def inc(self):
        """Inclination [rad]"""
        return self.elements[2]

    @property
    def Omega(self):
        """Longitude of ascending node [rad]"""
        return self.elements[3]

    @property
    def omega(self):
        """Argument of pericenter [rad]"""
        return self.elements[4]

    @property
    def f(self):
        """True anomaly [rad]"""
        return self.elements[5]

    @property
    def pomega(self):
        """Longitude of pericenter [rad], in [0, 2*pi)"""
        if not self.is_defined:
            return np.nan
        if self.inc < np.pi / 2:
            return (self.Omega + self.omega) % TWO_PI
        return (self.Omega - self.omega) % TWO_PI

    @property
    def is_defined(self) -> bool:
        """False for the degenerate-geometry sentinel"""
        return bool(np.all(np.isfinite(self.elements[1:])))

    # ========== ORBITAL PROPERTIES ==========
    def orbital_period(self):
        """
        Orbital period in code time units (2*pi = one year when G = 1,
        lengths in AU and masses in solar masses).
        """
        if not self.is_defined or self.e >= 1:
            raise ValueError("Orbital period undefined for unbound or degenerate orbits")
        return TWO_PI * np.sqrt(self.a**3 / self._mu)

    def specific_energy(self):
        """Specific orbital energy of the relative orbit"""
        return -self._mu / (2 * self.a)

    # ========== SPECIAL METHODS ==========
    def __len__(self):
        return 6

    def __getitem__(self, key):
        return self.elements[key]

    def __iter__(self):
        return iter(self.elements)

    def __repr__(self):
        values = ", ".join(f"{name}={value!r}"
                           for name, value in zip(self._NAMES, self.elements.tolist()))
        return f"OrbitalElements({values}, mu={self._mu!r})"

    def __str__(self):
        if not self.is_defined:
            return "Keplerian Elements: undefined (degenerate geometry)"
        a, e, inc, Omega, omega, f = self.elements
        return (f"Keplerian Elements:\n"
                f"  a     = {a:14.8f}\n"
                f"  e     = {e:14.8f}\n"
                f"  i     = {np.degrees(inc):14.6f} deg\n"
                f"  Omega = {np.degrees(Omega):14.6f} deg\n"
                f"  omega = {np.degrees(omega):14.6f} deg\n"
                f"  f     = {np.degrees(f):14.6f} deg")

    def __eq__(self, other):
        if not isinstance(other, OrbitalElements):
            return False
        return np.allclose(self.elements, other.elements,
                           rtol=config.EQUALITY_RTOL,
                           atol=config.EQUALITY_ATOL,
                           equal_nan=True)

    def __hash__(self):
        rounded = tuple(round(x, config.HASH_DECIMALS) for x in self.elements)
        return hash(rounded)


def orbital_elements_from_state(G: float,
                                body: "Body | SyntheticBody",
                                reference: "Body | SyntheticBody") -> OrbitalElements:
    """
    Osculating elements of ``body`` relative to ``reference``.

    Parameters
    ----------
    G : float
        Gravitational constant in code units
    body, reference : Body or SyntheticBody
        Anything exposing ``mass``, ``position`` and ``velocity``

    Returns
    -------
    OrbitalElements
        Elements with mu = G*(body.mass + reference.mass), or the
        undefined sentinel for degenerate geometry
    """
    mu = G * (body.mass + reference.mass)
    return OrbitalElements.from_cartesian(
        np.asarray(body.position) - np.asarray(reference.position),
        np.asarray(body.velocity) - np.asarray(reference.velocity),
        mu
    )
