'''Per-step diagnostics from the engine state
OrbitalElementsExtractor class definition'''

import numpy as np
from .bodies import PERTURBER, PLANET, STAR, pairwise_center_of_mass
from .orbital_elements import orbital_elements_from_state
from .recorder import OutputRecord, SpinObliquity


def spin_obliquity(spin) -> SpinObliquity:
    """
    Magnitude and obliquity of a spin vector against the fixed +z pole.

    The obliquity is degrees(arccos(s_z / |s|)) with the ratio clipped
    into [-1, 1]; a zero spin gives NaN.
    """
    s = np.asarray(spin, dtype=float)
    magnitude = float(np.linalg.norm(s))
    if magnitude == 0 or not np.isfinite(magnitude):
        return SpinObliquity(magnitude, np.nan)
    cos_obl = np.clip(s[2] / magnitude, -1.0, 1.0)
    return SpinObliquity(magnitude, float(np.degrees(np.arccos(cos_obl))))


class OrbitalElementsExtractor:
    """
    Turn the current simulation state into an OutputRecord.

    Inner orbit: planet relative to the star. Outer orbit: perturber
    relative to the star-planet barycentre. Degenerate geometry yields
    NaN elements rather than an exception.
    """
    def __init__(self, G: float = 1.0):
        self.G = G

    def compute(self, sim, extension=None) -> OutputRecord:
        """
        Parameters
        ----------
        sim : Simulation
            Anything exposing ``t`` and ``body(index)``
        extension : SpinExtension, optional
            Source of the spin vectors; without it they are read from
            the body snapshots

        Returns
        -------
        OutputRecord
        """
        star = sim.body(STAR)
        planet = sim.body(PLANET)
        perturber = sim.body(PERTURBER)

        inner = orbital_elements_from_state(self.G, planet, star)
        outer = orbital_elements_from_state(
            self.G, perturber, pairwise_center_of_mass(star, planet))

        star_s, planet_s = star.spin, planet.spin
        if extension is not None:
            star_s = self._spin(extension, STAR)
            planet_s = self._spin(extension, PLANET)

        planet_spin = spin_obliquity(planet_s)
        return OutputRecord(
            float(sim.t),
            *star.position, *star.velocity, *star_s,
            inner.a, inner.inc, inner.e,
            *planet_s, planet_spin.magnitude,
            inner.pomega, inner.Omega, inner.f,
            *planet.position, *planet.velocity,
            outer.a, outer.inc, outer.e, outer.Omega, outer.pomega,
            star_obliquity=spin_obliquity(star_s),
            planet_obliquity=planet_spin,
        )

    @staticmethod
    def _spin(extension, index: int) -> np.ndarray:
        return np.array([extension.get_scalar_parameter(index, key)
                         for key in ('spin_x', 'spin_y', 'spin_z')])
