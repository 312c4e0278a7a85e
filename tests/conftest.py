"""
Shared fixtures: an in-memory stand-in for the engine and record helpers.

FakeSimulation exposes the small surface the extractor and the driver
use (``G``, ``t``, ``body(index)``, ``advance(target)``) without
compiling a heyoka integrator.
"""

from dataclasses import fields

import numpy as np
import pytest

from lidov import Body, IntegrationFailure, OutputRecord, SpinObliquity


def circular_velocity(mu, r):
    return np.sqrt(mu / r)


def make_triple(planet_mass=1e-3, planet_spin=(0.0, 0.0, 1.0),
                star_spin=(0.0, 0.0, 0.5)):
    """Star at the origin, planet on a circular orbit at 1 AU, perturber at 100 AU."""
    star = Body(index=0, mass=1.0, radius=0.005, position=(0, 0, 0),
                velocity=(0, 0, 0), spin=star_spin)
    v1 = circular_velocity(1.0 + planet_mass, 1.0)
    planet = Body(index=1, mass=planet_mass, radius=5e-4, position=(1, 0, 0),
                  velocity=(0, v1, 0), spin=planet_spin)
    v2 = circular_velocity(2.0 + planet_mass, 100.0)
    perturber = Body(index=2, mass=1.0, radius=0.0, position=(100, 0, 0),
                     velocity=(0, v2, 0))
    return [star, planet, perturber]


class FakeSimulation:
    """Engine stand-in whose bodies stay put while the clock advances."""

    def __init__(self, bodies=None, G=1.0, fail_after=None):
        self.G = G
        self.t = 0.0
        self._bodies = list(bodies) if bodies is not None else make_triple()
        self.fail_after = fail_after
        self.targets = []

    def body(self, index):
        return self._bodies[index]

    def advance(self, target_time):
        if self.fail_after is not None and len(self.targets) >= self.fail_after:
            raise IntegrationFailure("close encounter", self.t, target_time, (0, 1))
        self.targets.append(target_time)
        self.t = target_time


def make_record(t, **overrides):
    """OutputRecord with every numeric column 0 unless overridden."""
    values = {}
    for f in fields(OutputRecord):
        if f.name in ('star_obliquity', 'planet_obliquity'):
            values[f.name] = SpinObliquity(1.0, 0.0)
        else:
            values[f.name] = 0.0
    values['t'] = t
    values.update(overrides)
    return OutputRecord(**values)


@pytest.fixture
def fake_sim():
    return FakeSimulation()
