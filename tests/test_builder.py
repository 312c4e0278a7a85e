"""Tests for the initial three-body configuration."""

import numpy as np
import pytest

from lidov import (ConfigurationError, OrbitParams, PhysicalStateBuilder,
                   StarParams, hd80860, pairwise_center_of_mass)
from lidov.orbital_elements import orbital_elements_from_state

RTOL = 1e-10
ATOL = 1e-14


@pytest.fixture
def built():
    s = hd80860()
    return PhysicalStateBuilder(s.star, s.planet, s.perturber).build()


class TestBarycentre:
    """The frame is barycentric after build()."""

    def test_zero_momentum(self, built):
        np.testing.assert_allclose(built.total_momentum(), 0.0, atol=ATOL)

    def test_com_at_origin(self, built):
        com = built.center_of_mass()
        np.testing.assert_allclose(com.position, 0.0, atol=1e-12)
        np.testing.assert_allclose(com.velocity, 0.0, atol=ATOL)

    def test_state_flags(self, built):
        assert built.n_bodies == 3
        assert built.com_corrected
        assert not built.aligned
        assert not built.is_initialized


class TestOrbits:
    """Planet about the star, perturber about the inner barycentre."""

    def test_inner_orbit(self, built):
        oe = orbital_elements_from_state(1.0, built.body(1), built.body(0))
        assert oe.a == pytest.approx(5.0, rel=RTOL)
        assert oe.e == pytest.approx(0.1, rel=RTOL)
        assert oe.inc == pytest.approx(0.0, abs=1e-10)
        # equatorial: pericentre measured from +x
        assert oe.omega == pytest.approx(np.radians(45.0), abs=1e-10)
        assert np.sin(oe.f) == pytest.approx(0.0, abs=1e-10)

    def test_outer_orbit_jacobi(self, built):
        inner = pairwise_center_of_mass(built.body(0), built.body(1))
        oe = orbital_elements_from_state(1.0, built.body(2), inner)
        assert oe.a == pytest.approx(1000.0, rel=RTOL)
        assert oe.e == pytest.approx(0.0, abs=1e-10)
        assert oe.inc == pytest.approx(np.radians(85.6), abs=1e-10)

    def test_masses_and_radii(self, built):
        s = hd80860()
        assert built.body(0).mass == s.star.mass
        assert built.body(1).radius == s.planet.radius
        assert built.body(2).radius == 0.0

    def test_massless_planet(self):
        s = hd80860()
        planet = OrbitParams(mass=0.0, radius=s.planet.radius, a=5.0, e=0.1)
        sim = PhysicalStateBuilder(s.star, planet, s.perturber).build()
        oe = orbital_elements_from_state(1.0, sim.body(1), sim.body(0))
        assert oe.a == pytest.approx(5.0, rel=RTOL)


class TestValidation:
    """Invalid configurations are rejected before integration."""

    def test_massless_perturber(self):
        s = hd80860()
        with pytest.raises(ConfigurationError, match="Perturber"):
            PhysicalStateBuilder(s.star, s.planet,
                                 OrbitParams(mass=0.0, a=1000.0, e=0.0))

    def test_invalid_star(self):
        with pytest.raises(ConfigurationError):
            StarParams(mass=-1.1)

    def test_unbound_planet(self):
        with pytest.raises(ConfigurationError):
            OrbitParams(mass=1e-3, a=5.0, e=1.0)
