'''Spin and tidal set-up of the star and planet
SpinConfigurator class definition'''

from typing import Tuple
import warnings
import numpy as np
from .bodies import PLANET, STAR
from .defaults import DAY, SECOND
from .engine import Force, Simulation, SpinExtension
from .params import SpinParams


def spin_vector(period_days: float, obliquity_deg: float = 0.0,
                azimuth_deg: float = 0.0) -> np.ndarray:
    """
    Spin angular velocity vector in code units.

    |Omega| = 2*pi / (period_days * DAY) and
    Omega = |Omega| (sin(theta) sin(phi), sin(theta) cos(phi), cos(theta))
    with theta the obliquity and phi the azimuth.
    """
    magnitude = 2 * np.pi / (period_days * DAY)
    theta = np.radians(obliquity_deg)
    phi = np.radians(azimuth_deg)
    return magnitude * np.array([np.sin(theta) * np.sin(phi),
                                 np.sin(theta) * np.cos(phi),
                                 np.cos(theta)])


def tidal_time_lag(k2: float, k2_delta_t: float) -> float:
    """Constant time lag tau = (k2 delta_t / k2) seconds, in code units (0 when k2 = 0)."""
    if k2 == 0:
        return 0.0
    return k2_delta_t / k2 * SECOND


class SpinConfigurator:
    """
    Attach spin/tidal state to the star and planet of a built simulation.

    ``configure`` sets the per-body parameters, aligns the reference
    plane with the invariable plane and couples the spins into the
    integrator, in that order.
    """
    def __init__(self, star_spin: SpinParams, planet_spin: SpinParams):
        self.star_spin = star_spin
        self.planet_spin = planet_spin

    def configure(self, sim: Simulation) -> Tuple[SpinExtension, Force]:
        """
        Parameters
        ----------
        sim : Simulation
            Output of PhysicalStateBuilder.build()

        Returns
        -------
        extension : SpinExtension
        force : Force
            The active tides_spin force

        Raises
        ------
        ConfigurationError
            If the simulation has not been moved to its centre of mass
        """
        extension = sim.attach_extension()
        force = extension.load_force("tides_spin")
        extension.add_force(force)

        for index, params in ((STAR, self.star_spin), (PLANET, self.planet_spin)):
            self._set_body(sim, extension, index, params)

        sim.align_reference_plane(extension)
        sim.initialize_auxiliary_state(force)
        return extension, force

    @staticmethod
    def _set_body(sim: Simulation, extension: SpinExtension, index: int,
                  params: SpinParams):
        body = sim.body(index)
        spin = spin_vector(params.period_days, params.obliquity_deg,
                           params.azimuth_deg)
        for key, value in zip(('spin_x', 'spin_y', 'spin_z'), spin):
            extension.set_scalar_parameter(index, key, value)

        if body.mass == 0 and params.k2 > 0:
            warnings.warn(
                f"Body {index} is massless; its tidal response is disabled "
                f"and its spin is held constant", UserWarning, stacklevel=3)
            return

        moi = params.gyration_constant * body.mass * body.radius**2
        extension.set_scalar_parameter(index, 'moment_of_inertia', moi)
        extension.set_scalar_parameter(index, 'k2', params.k2)
        extension.set_scalar_parameter(
            index, 'tidal_time_lag', tidal_time_lag(params.k2, params.k2_delta_t))
