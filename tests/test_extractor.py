"""Tests for per-step element and obliquity extraction."""

import numpy as np
import pytest

from lidov import OrbitalElementsExtractor, OutputRecord, spin_obliquity

from conftest import FakeSimulation, make_triple


class TestSpinObliquity:
    """Obliquity against the fixed +z pole."""

    def test_aligned_spin(self):
        result = spin_obliquity([0.0, 0.0, 3.0])
        assert result.magnitude == pytest.approx(3.0)
        assert result.obliquity_deg == pytest.approx(0.0)

    def test_perpendicular_spin(self):
        assert spin_obliquity([2.0, 0.0, 0.0]).obliquity_deg == pytest.approx(90.0)
        assert spin_obliquity([0.0, -1.0, 0.0]).obliquity_deg == pytest.approx(90.0)

    def test_antialigned_spin(self):
        assert spin_obliquity([0.0, 0.0, -1.0]).obliquity_deg == pytest.approx(180.0)

    def test_zero_spin_nan(self):
        result = spin_obliquity([0.0, 0.0, 0.0])
        assert result.magnitude == 0.0
        assert np.isnan(result.obliquity_deg)

    def test_tilted(self):
        theta = np.radians(30)
        result = spin_obliquity([np.sin(theta), 0.0, np.cos(theta)])
        assert result.obliquity_deg == pytest.approx(30.0)


class TestCompute:
    """OrbitalElementsExtractor.compute on a fixed configuration."""

    def test_record_contents(self):
        sim = FakeSimulation()
        sim.t = 100 * 2 * np.pi
        record = OrbitalElementsExtractor(G=1.0).compute(sim, None)

        assert isinstance(record, OutputRecord)
        assert record.t == sim.t
        assert record.t_years == pytest.approx(100.0)
        # planet on a circular orbit at 1 AU about the star
        assert record.a1 == pytest.approx(1.0, rel=1e-12)
        assert record.e1 == pytest.approx(0.0, abs=1e-12)
        assert record.i1 == pytest.approx(0.0, abs=1e-12)
        assert (record.p1x, record.p1y, record.p1z) == (1.0, 0.0, 0.0)
        # spins
        assert (record.star_sx, record.star_sy, record.star_sz) == (0.0, 0.0, 0.5)
        assert record.mag1 == pytest.approx(1.0)
        assert record.planet_obliquity.obliquity_deg == pytest.approx(0.0)
        assert record.star_obliquity.magnitude == pytest.approx(0.5)

    def test_outer_orbit_about_inner_barycentre(self):
        """Perturber elements are relative to the star-planet barycentre."""
        record = OrbitalElementsExtractor().compute(FakeSimulation(), None)
        com_x = 1e-3 / (1.0 + 1e-3)
        r = 100.0 - com_x
        mu = 2.0 + 1e-3
        v_rel = np.sqrt(mu / 100.0) - np.sqrt(1.0 + 1e-3) * 1e-3 / (1.0 + 1e-3)
        inv_a = 2.0 / r - v_rel**2 / mu
        assert record.a2 == pytest.approx(1.0 / inv_a, rel=1e-12)
        assert np.isfinite(record.e2)

    def test_obliquity_90(self):
        sim = FakeSimulation(make_triple(planet_spin=(1.0, 0.0, 0.0)))
        record = OrbitalElementsExtractor().compute(sim, None)
        assert record.planet_obliquity.obliquity_deg == pytest.approx(90.0)

    def test_zero_spin_gives_nan_obliquity(self):
        sim = FakeSimulation(make_triple(planet_spin=(0.0, 0.0, 0.0)))
        record = OrbitalElementsExtractor().compute(sim, None)
        assert record.mag1 == 0.0
        assert np.isnan(record.planet_obliquity.obliquity_deg)

    def test_massless_planet(self):
        """Inner elements still compute when the planet is a test particle."""
        sim = FakeSimulation(make_triple(planet_mass=0.0))
        record = OrbitalElementsExtractor().compute(sim, None)
        assert record.a1 == pytest.approx(1.0, rel=1e-12)
        assert np.isfinite(record.a2)

    def test_degenerate_inner_orbit(self):
        """Planet on top of the star yields NaN inner elements, not an error."""
        bodies = make_triple()
        star = bodies[0]
        bodies[1] = type(star)(index=1, mass=1e-3, radius=0.0,
                               position=star.position, velocity=(0, 1, 0))
        record = OrbitalElementsExtractor().compute(FakeSimulation(bodies), None)
        assert np.isnan(record.a1)
        assert np.isnan(record.pom1)
        assert np.isfinite(record.a2)
