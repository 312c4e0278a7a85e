'''Initial configuration of the star / planet / perturber triple
PhysicalStateBuilder class definition'''

from .bodies import PERTURBER, PLANET, STAR
from .engine import Simulation
from .errors import ConfigurationError
from .params import OrbitParams, StarParams


class PhysicalStateBuilder:
    """
    Build a barycentric three-body Simulation.

    The star is placed at the origin at rest, the planet is added from
    its elements relative to the star, and the perturber from its
    elements relative to the centre of mass of the star and planet
    (Jacobi convention). The frame is then shifted to the barycentre,
    once, after all bodies are present.

    Examples
    --------
    >>> from lidov import hd80860
    >>> s = hd80860()
    >>> sim = PhysicalStateBuilder(s.star, s.planet, s.perturber).build()
    >>> sim.n_bodies
    3
    """
    def __init__(self, star: StarParams, planet: OrbitParams,
                 perturber: OrbitParams, G: float = 1.0):
        if perturber.mass <= 0:
            raise ConfigurationError(
                f"Perturber mass must be positive, got {perturber.mass}")
        self.star = star
        self.planet = planet
        self.perturber = perturber
        self.G = G

    def build(self) -> Simulation:
        """
        Create the simulation.

        Returns
        -------
        Simulation
            Three bodies with zero total momentum, barycentre at the origin

        Raises
        ------
        ConfigurationError
            If any orbit cannot be constructed
        """
        sim = Simulation(G=self.G)
        star_index = sim.add_body(self.star.mass, self.star.radius)

        inc, Omega, omega, f = self.planet.angles_rad
        planet_index = sim.add_body_from_orbital_elements(
            self.planet.mass, self.planet.radius, self.planet.a, self.planet.e,
            inc=inc, Omega=Omega, omega=omega, f=f,
            primary=sim.body(star_index)
        )

        # Jacobi: perturber orbits the barycentre of the inner pair
        inc, Omega, omega, f = self.perturber.angles_rad
        perturber_index = sim.add_body_from_orbital_elements(
            self.perturber.mass, self.perturber.radius,
            self.perturber.a, self.perturber.e,
            inc=inc, Omega=Omega, omega=omega, f=f,
            primary=sim.center_of_mass()
        )
        assert (star_index, planet_index, perturber_index) == (STAR, PLANET, PERTURBER)

        sim.move_to_center_of_mass()
        return sim
