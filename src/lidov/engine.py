'''N-body engine with spin and tides
Simulation, SpinExtension and Force definitions'''

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple
import warnings
import numpy as np
import heyoka as hy

from .bodies import Body, SyntheticBody
from .config import config
from .errors import ConfigurationError, IntegrationFailure
from .forces import TidalBody, build_eom
from .orbital_elements import OrbitalElements
from .utils import Timer, format_duration, validation_error


@dataclass(frozen=True)
class Force:
    """Handle for an additional force provided by a SpinExtension."""
    name: str


class SpinExtension:
    """
    Per-body spin/tidal parameters and the forces that use them.

    Obtained from ``Simulation.attach_extension()``; the extension is
    bound to exactly one simulation.

    Scalar parameters (see ``PARAMETERS``) are unset until given a value
    and read back as 0. The spin vector of a body is the triple
    (spin_x, spin_y, spin_z) in rad per code time unit.
    """
    # ========== CLASS CONSTANTS ==========
    PARAMETERS = ('moment_of_inertia', 'spin_x', 'spin_y', 'spin_z',
                  'k2', 'tidal_time_lag')
    FORCES = ('tides_spin',)
    _SPIN_KEYS = ('spin_x', 'spin_y', 'spin_z')

    # ========== CONSTRUCTION ==========
    def __init__(self, simulation: "Simulation"):
        self._sim = simulation
        self._params: Dict[int, Dict[str, float]] = {}
        self._forces: List[Force] = []

    # ========== FORCES ==========
    def load_force(self, name: str) -> Force:
        """
        Look up a force by name.

        Raises
        ------
        ConfigurationError
            If the force is not provided by this extension
        """
        if name not in self.FORCES:
            raise ConfigurationError(
                f"Unknown force '{name}'. Available: {list(self.FORCES)}")
        return Force(name)

    def add_force(self, force: Force):
        """Activate a force for the next integrator compilation."""
        if self._sim.is_initialized:
            raise ConfigurationError(
                "Forces cannot be added after initialize_auxiliary_state")
        if force.name not in self.FORCES:
            raise ConfigurationError(f"Unknown force '{force.name}'")
        if force not in self._forces:
            self._forces.append(force)

    @property
    def forces(self) -> Tuple[Force, ...]:
        """Active forces in the order they were added"""
        return tuple(self._forces)

    # ========== PARAMETERS ==========
    def set_scalar_parameter(self, index: int, key: str, value: float):
        """
        Set a named scalar parameter on body ``index``.

        Once the integrator is initialised only the spin components may
        change; they are written straight into the integrator state.

        Raises
        ------
        ConfigurationError
            For an unknown key, an out-of-range index, a non-finite or
            negative (where physical) value, or a structural parameter
            changed after initialisation
        """
        if key not in self.PARAMETERS:
            raise ConfigurationError(
                f"Unknown parameter '{key}'. Valid keys: {list(self.PARAMETERS)}")
        if not 0 <= index < self._sim.n_bodies:
            raise ConfigurationError(
                f"Body index {index} out of range for {self._sim.n_bodies} bodies")
        value = float(value)
        if not np.isfinite(value):
            raise ConfigurationError(f"Parameter '{key}' must be finite, got {value}")
        if key not in self._SPIN_KEYS and value < 0:
            raise ConfigurationError(f"Parameter '{key}' must be >= 0, got {value}")

        if self._sim.is_initialized:
            if key not in self._SPIN_KEYS or index not in self._sim.spin_indices:
                raise ConfigurationError(
                    f"Parameter '{key}' of body {index} is fixed after "
                    f"initialize_auxiliary_state")
            spin = self._sim.get_spin(index)
            spin[self._SPIN_KEYS.index(key)] = value
            self._sim._write_spin(index, spin)
            return
        self._params.setdefault(index, {})[key] = value

    def get_scalar_parameter(self, index: int, key: str) -> float:
        """Current value of a parameter, 0 when unset."""
        if key not in self.PARAMETERS:
            raise ConfigurationError(f"Unknown parameter '{key}'")
        if key in self._SPIN_KEYS and self._sim.is_initialized:
            if index in self._sim.spin_indices:
                return float(self._sim.get_spin(index)[self._SPIN_KEYS.index(key)])
        return self._params.get(index, {}).get(key, 0.0)

    def has_parameters(self, index: int) -> bool:
        """True if any parameter was set on body ``index``."""
        return index in self._params

    @property
    def configured_bodies(self) -> Tuple[int, ...]:
        """Sorted indices of bodies carrying any parameter"""
        return tuple(sorted(self._params))

    def _stored_spin(self, index: int) -> np.ndarray:
        params = self._params.get(index, {})
        return np.array([params.get(k, 0.0) for k in self._SPIN_KEYS])

    def _rotate_spins(self, rotation: np.ndarray):
        for index, params in self._params.items():
            spin = rotation @ self._stored_spin(index)
            for key, value in zip(self._SPIN_KEYS, spin):
                params[key] = float(value)

    def __repr__(self):
        names = [f.name for f in self._forces]
        return (f"SpinExtension(bodies={list(self.configured_bodies)}, "
                f"forces={names})")


class Simulation:
    """
    Owned N-body simulation context integrated with heyoka.

    Units are chosen by the caller through G; lidov uses G = 1 with
    lengths in AU, masses in solar masses and 2*pi time units per year.

    The setup sequence is:

    1. ``add_body`` / ``add_body_from_orbital_elements`` for every body
    2. ``move_to_center_of_mass``
    3. optionally ``attach_extension`` and spin/tidal parameters,
       ``align_reference_plane``, ``initialize_auxiliary_state``
    4. ``advance`` repeatedly

    The symbolic equations of motion are compiled once, at
    ``initialize_auxiliary_state`` or at the first ``advance``. From then
    on the body set and the tidal parameters are fixed.

    Examples
    --------
    >>> sim = Simulation()
    >>> sim.add_body(1.0)
    0
    >>> sim.add_body_from_orbital_elements(1e-3, 0.0, a=1.0, e=0.0)
    1
    >>> sim.move_to_center_of_mass()
    >>> sim.advance(2 * np.pi)
    """
    # ========== CONSTRUCTION ==========
    def __init__(self, G: float = 1.0):
        G = float(G)
        if not np.isfinite(G) or G <= 0:
            raise ConfigurationError(f"G must be positive and finite, got {G}")
        self._G = G
        self._t = 0.0
        self._masses: List[float] = []
        self._radii: List[float] = []
        self._states: List[np.ndarray] = []
        self._extension: Optional[SpinExtension] = None
        self._com_corrected = False
        self._aligned = False
        self._spin_indices: Tuple[int, ...] = ()
        self._event_pairs: List[Tuple[int, int]] = []
        self._cached_integrator = None

    def add_body(self, mass: float, radius: float = 0.0,
                 position=(0.0, 0.0, 0.0), velocity=(0.0, 0.0, 0.0)) -> int:
        """
        Add a body from a Cartesian state.

        Parameters
        ----------
        mass : float
            Mass, >= 0 (zero makes a test particle)
        radius : float, optional
            Physical radius, >= 0 (default 0)
        position, velocity : array_like, optional
            State in the simulation frame (default origin, at rest)

        Returns
        -------
        int
            Index of the new body
        """
        if self.is_initialized:
            raise ConfigurationError(
                "Bodies cannot be added after the integrator is compiled")
        mass, radius = float(mass), float(radius)
        if not np.isfinite(mass) or mass < 0:
            raise ConfigurationError(f"Mass must be >= 0, got {mass}")
        if not np.isfinite(radius) or radius < 0:
            raise ConfigurationError(f"Radius must be >= 0, got {radius}")
        state = np.concatenate([np.asarray(position, dtype=float).reshape(3),
                                np.asarray(velocity, dtype=float).reshape(3)])
        if not np.all(np.isfinite(state)):
            raise ConfigurationError(f"Body state contains NaN or Inf: {state}")

        self._masses.append(mass)
        self._radii.append(radius)
        self._states.append(state)
        self._com_corrected = False
        self._aligned = False
        return len(self._masses) - 1

    def add_body_from_orbital_elements(
        self, mass: float, radius: float, a: float, e: float,
        inc: float = 0.0, Omega: float = 0.0, omega: float = 0.0,
        f: float = 0.0, primary: "Body | SyntheticBody | None" = None
    ) -> int:
        """
        Add a body on a Keplerian orbit about ``primary``.

        Parameters
        ----------
        mass, radius : float
            Physical properties of the new body
        a, e, inc, Omega, omega, f : float
            Osculating elements of the new body relative to ``primary``
            (angles in radians)
        primary : Body or SyntheticBody, optional
            Orbit reference; defaults to the centre of mass of all bodies
            added so far (Jacobi coordinates)

        Returns
        -------
        int
            Index of the new body

        Raises
        ------
        ConfigurationError
            If there is no massive primary or the elements are invalid
        """
        if primary is None:
            if not self._masses:
                raise ConfigurationError(
                    "Cannot add a body from orbital elements to an empty simulation")
            primary = self.center_of_mass()
        mu = self._G * (primary.mass + float(mass))
        if mu <= 0:
            raise ConfigurationError(
                "Orbit requires a positive combined mass with its primary")
        elements = OrbitalElements(a, e, inc, Omega, omega, f, mu=mu)
        position, velocity = elements.to_cartesian()
        return self.add_body(
            mass, radius,
            np.asarray(primary.position) + position,
            np.asarray(primary.velocity) + velocity
        )

    def attach_extension(self) -> SpinExtension:
        """Create the spin/tidal extension for this simulation."""
        if self._extension is not None:
            raise ConfigurationError("An extension is already attached")
        if self.is_initialized:
            raise ConfigurationError(
                "Cannot attach an extension after the integrator is compiled")
        self._extension = SpinExtension(self)
        return self._extension

    # ========== FRAME OPERATIONS ==========
    def move_to_center_of_mass(self):
        """Shift positions and velocities so the barycentre rests at the origin."""
        com = self.center_of_mass()
        if com.mass <= 0:
            raise ConfigurationError("Total mass must be positive")
        shift = np.concatenate([com.position, com.velocity])
        self._write_orbital_state(self._orbital_state() - shift)
        self._com_corrected = True

    def align_reference_plane(self, extension: Optional[SpinExtension] = None):
        """
        Rotate the frame so +z points along the total orbital angular
        momentum (invariable plane as reference plane).

        Positions, velocities and every spin stored in ``extension`` are
        rotated by the same proper rotation.

        Raises
        ------
        ConfigurationError
            If called before ``move_to_center_of_mass``, after
            initialisation, with a foreign extension, or when the
            orbital angular momentum vanishes
        """
        if not self._com_corrected:
            raise ConfigurationError(
                "move_to_center_of_mass must run before align_reference_plane")
        if self.is_initialized:
            raise ConfigurationError(
                "Cannot realign after initialize_auxiliary_state")
        if extension is not None and extension is not self._extension:
            raise ConfigurationError("Extension belongs to another simulation")

        rotation = invariable_plane_rotation(self.angular_momentum())
        state = self._orbital_state()
        state[:, :3] = state[:, :3] @ rotation.T
        state[:, 3:] = state[:, 3:] @ rotation.T
        self._write_orbital_state(state)
        if self._extension is not None:
            self._extension._rotate_spins(rotation)
        self._aligned = True

    # ========== INTEGRATION ==========
    def initialize_auxiliary_state(self, force: Force):
        """
        Couple the spin state into the integrator and compile it.

        Must follow ``move_to_center_of_mass`` and
        ``align_reference_plane``; ``force`` must have been added to the
        attached extension.
        """
        if not self._com_corrected:
            raise ConfigurationError(
                "move_to_center_of_mass must run before initialize_auxiliary_state")
        if not self._aligned:
            raise ConfigurationError(
                "align_reference_plane must run before initialize_auxiliary_state")
        if self._extension is None or force not in self._extension.forces:
            raise ConfigurationError(
                f"Force '{force.name}' has not been added to the extension")
        if self.is_initialized:
            raise ConfigurationError("Auxiliary state is already initialised")
        self._compile_integrator()

    def advance(self, target_time: float):
        """
        Integrate until ``target_time`` (blocking).

        Raises
        ------
        ValueError
            If target_time lies before the current time
        IntegrationFailure
            If the integrator stops early (close encounter, non-finite
            state); the simulation clock is left where it stopped
        """
        target_time = float(target_time)
        if not np.isfinite(target_time) or target_time < self._t:
            raise ValueError(
                f"Cannot advance from t={self._t} to t={target_time}")

        # Ensure compiled
        if not self.is_compiled:
            self._compile_integrator()
        ta = self._cached_integrator
        assert ta is not None, "Integrator should be compiled"

        outcome = ta.propagate_until(target_time)[0]
        self._t = float(ta.time)

        bad = self._nonfinite_bodies()
        if bad:
            raise IntegrationFailure(
                "Integration failed: state became invalid", self._t,
                target_time, bad)
        if outcome != hy.taylor_outcome.time_limit:
            pair = self._event_pair(outcome)
            if pair is not None:
                raise IntegrationFailure(
                    "Bodies collided", self._t, target_time, pair)
            raise IntegrationFailure(
                f"Integration stopped early with outcome {outcome}",
                self._t, target_time)

    def _compile_integrator(self):
        """Build the equations of motion and compile the heyoka integrator."""
        if self._cached_integrator is not None:
            return  # Already compiled
        if not self._masses:
            raise ConfigurationError("Simulation has no bodies")

        tidal, spin_indices = self._collect_tidal_bodies()
        sys = build_eom(self._G, self._masses, tidal, spin_indices)

        state = list(self._orbital_state().ravel())
        for index in spin_indices:
            state.extend(self._extension._stored_spin(index))

        # close-encounter events on pairs with physical size
        pos = hy.make_vars(*(f"{c}{i}" for i in range(self.n_bodies)
                             for c in ("x", "y", "z")))
        events, pairs = [], []
        for i in range(self.n_bodies):
            for j in range(i + 1, self.n_bodies):
                if self._radii[i] > 0 and self._radii[j] > 0:
                    d = [pos[3 * i + k] - pos[3 * j + k] for k in range(3)]
                    d2 = d[0]**2 + d[1]**2 + d[2]**2
                    contact = (self._radii[i] + self._radii[j])**2
                    events.append(hy.t_event(
                        d2 - contact, direction=hy.event_direction.negative))
                    pairs.append((i, j))

        msg = f"Compiling {self.n_bodies}-body integrator"
        if tidal:
            msg += f" with tides_spin on bodies {[tb.index for tb in tidal]}"
        print(msg + "...")

        kwargs = {"t_events": events} if events else {}
        with Timer("Compilation", verbose=False) as timer:
            self._cached_integrator = hy.taylor_adaptive(
                sys=sys,
                state=state,
                time=self._t,
                tol=config.INTEGRATION_TOL,
                compact_mode=config.COMPACT_MODE,
                **kwargs
            )
        self._spin_indices = tuple(spin_indices)
        self._event_pairs = pairs
        print(f"✓ Compilation complete ({format_duration(timer.elapsed)})")

    def _collect_tidal_bodies(self):
        ext = self._extension
        if ext is None:
            return [], ()
        spin_indices = ext.configured_bodies
        if not any(f.name == 'tides_spin' for f in ext.forces):
            return [], spin_indices

        tidal = []
        for index in spin_indices:
            k2 = ext.get_scalar_parameter(index, 'k2')
            moi = ext.get_scalar_parameter(index, 'moment_of_inertia')
            if k2 <= 0:
                continue
            if self._masses[index] == 0:
                warnings.warn(
                    f"Body {index} is massless; its tidal response is "
                    f"disabled and its spin is held constant",
                    UserWarning, stacklevel=3)
                continue
            if moi <= 0:
                validation_error(
                    f"Body {index} has k2 > 0 but no moment of inertia; "
                    f"set moment_of_inertia or k2 = 0")
                continue
            tidal.append(TidalBody(
                index=index,
                radius=self._radii[index],
                k2=k2,
                tidal_time_lag=ext.get_scalar_parameter(index, 'tidal_time_lag'),
                moment_of_inertia=moi,
            ))
        return tidal, spin_indices

    # ========== STATE ACCESS ==========
    def _orbital_state(self) -> np.ndarray:
        """Copy of the (N, 6) position/velocity array."""
        n = self.n_bodies
        if self._cached_integrator is not None:
            return np.array(self._cached_integrator.state[:6 * n]).reshape(n, 6)
        if n == 0:
            return np.zeros((0, 6))
        return np.array(self._states)

    def _write_orbital_state(self, state: np.ndarray):
        n = self.n_bodies
        if self._cached_integrator is not None:
            self._cached_integrator.state[:6 * n] = np.asarray(state).ravel()
        else:
            self._states = [row.copy() for row in np.asarray(state, dtype=float)]

    def _spin_slot(self, index: int) -> int:
        return 6 * self.n_bodies + 3 * self._spin_indices.index(index)

    def get_spin(self, index: int) -> np.ndarray:
        """Spin vector of body ``index`` (zeros when it has none)."""
        if self._cached_integrator is not None:
            if index not in self._spin_indices:
                return np.zeros(3)
            start = self._spin_slot(index)
            return np.array(self._cached_integrator.state[start:start + 3])
        if self._extension is None:
            return np.zeros(3)
        return self._extension._stored_spin(index)

    def _write_spin(self, index: int, spin):
        start = self._spin_slot(index)
        self._cached_integrator.state[start:start + 3] = np.asarray(spin, dtype=float)

    def _nonfinite_bodies(self) -> Tuple[int, ...]:
        state = self._orbital_state()
        bad = {i for i in range(self.n_bodies) if not np.all(np.isfinite(state[i]))}
        for index in self._spin_indices:
            if not np.all(np.isfinite(self.get_spin(index))):
                bad.add(index)
        return tuple(sorted(bad))

    def _event_pair(self, outcome) -> Optional[Tuple[int, int]]:
        try:
            idx = int(outcome)
        except (TypeError, ValueError):
            return None
        # terminal event i reports i, or -i-1 when stopped by its callback
        if idx < 0:
            idx = -idx - 1
        if idx < len(self._event_pairs):
            return self._event_pairs[idx]
        return None

    def body(self, index: int) -> Body:
        """Immutable snapshot of body ``index``."""
        if not 0 <= index < self.n_bodies:
            raise IndexError(f"Body index {index} out of range")
        state = self._orbital_state()[index]
        ext = self._extension
        params = {}
        if ext is not None:
            params = {key: ext.get_scalar_parameter(index, key)
                      for key in ('moment_of_inertia', 'k2', 'tidal_time_lag')}
        return Body(
            index=index,
            mass=self._masses[index],
            radius=self._radii[index],
            position=state[:3],
            velocity=state[3:],
            spin=self.get_spin(index),
            **params
        )

    @property
    def particles(self) -> Tuple[Body, ...]:
        """Snapshots of all bodies"""
        return tuple(self.body(i) for i in range(self.n_bodies))

    def center_of_mass(self, indices: Optional[Sequence[int]] = None) -> SyntheticBody:
        """Barycentre of the given bodies (default: all)."""
        if indices is None:
            indices = range(self.n_bodies)
        indices = list(indices)
        state = self._orbital_state()
        masses = np.array([self._masses[i] for i in indices])
        m = masses.sum()
        if m > 0:
            weighted = (masses[:, None] * state[indices]).sum(axis=0) / m
        else:
            weighted = state[indices].mean(axis=0)
        return SyntheticBody(mass=m, position=weighted[:3], velocity=weighted[3:])

    def total_momentum(self) -> np.ndarray:
        """Total linear momentum"""
        state = self._orbital_state()
        return (np.array(self._masses)[:, None] * state[:, 3:]).sum(axis=0)

    def angular_momentum(self) -> np.ndarray:
        """Total orbital angular momentum sum(m r x v) about the origin"""
        state = self._orbital_state()
        masses = np.array(self._masses)[:, None]
        return (masses * np.cross(state[:, :3], state[:, 3:])).sum(axis=0)

    # ========== PROPERTY ACCESS ==========
    @property
    def G(self) -> float:
        """Gravitational constant"""
        return self._G

    @property
    def t(self) -> float:
        """Current simulation time [code units]"""
        return self._t

    @property
    def n_bodies(self) -> int:
        """Number of bodies"""
        return len(self._masses)

    @property
    def extension(self) -> Optional[SpinExtension]:
        """Attached spin extension, if any"""
        return self._extension

    @property
    def spin_indices(self) -> Tuple[int, ...]:
        """Bodies whose spin is part of the integrated state"""
        return self._spin_indices

    @property
    def com_corrected(self) -> bool:
        """True once move_to_center_of_mass has run"""
        return self._com_corrected

    @property
    def aligned(self) -> bool:
        """True once align_reference_plane has run"""
        return self._aligned

    @property
    def is_compiled(self) -> bool:
        """Check if integrator has been compiled."""
        return self._cached_integrator is not None

    is_initialized = is_compiled

    # ========== SPECIAL METHODS ==========
    def __repr__(self):
        parts = [f"Simulation(G={self._G}", f"n_bodies={self.n_bodies}",
                 f"t={self._t:.6g}"]
        if self._extension is not None:
            parts.append(repr(self._extension))
        return ", ".join(parts) + ")"


def invariable_plane_rotation(angular_momentum) -> np.ndarray:
    """
    Proper rotation matrix taking ``angular_momentum`` onto +z.

    The new x axis is the ascending node of the invariable plane on the
    old xy plane (old x axis when the two planes coincide).

    Raises
    ------
    ConfigurationError
        If the angular momentum vanishes or is not finite
    """
    L = np.asarray(angular_momentum, dtype=float)
    L_mag = np.linalg.norm(L)
    if not np.isfinite(L_mag) or L_mag == 0:
        raise ConfigurationError(
            "Cannot align reference plane: orbital angular momentum is zero")
    z_new = L / L_mag
    x_new = np.cross([0.0, 0.0, 1.0], z_new)
    if np.linalg.norm(x_new) < config.SNAP_TO_EQUATORIAL:
        # planes coincide: keep the old x axis, orthogonalised against z
        x_new = np.array([1.0, 0.0, 0.0]) - z_new[0] * z_new
    x_new = x_new / np.linalg.norm(x_new)
    y_new = np.cross(z_new, x_new)
    return np.vstack([x_new, y_new, z_new])
