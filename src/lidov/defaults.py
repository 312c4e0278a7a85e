"""
Unit Constants and Default Scenarios
====================================

Code units: G = 1, lengths in AU, masses in solar masses, so one year
is 2*pi time units.

Examples
--------
>>> from lidov import hd80860, run_scenario
>>> scenario = hd80860()
>>> run_scenario(scenario.replace_run(n_steps=10, output="short.txt"))
"""
import numpy as np
from .params import OrbitParams, RunParams, Scenario, SpinParams, StarParams

# time conversions to code units
YEAR = 2 * np.pi
DAY = YEAR / 365.0
SECOND = YEAR / 3.154e7

# masses [solar masses] and radii [AU]
M_JUPITER = 9.55e-4
R_JUPITER = 4.676e-4
R_SUN = 0.00465

# default macro-step between output rows [years]
MACRO_STEP_YEARS = 100.0


def hd80860(run: RunParams = None) -> Scenario:
    """
    Spin-orbit Lidov-Kozai setup for an HD 80860-like system.

    A 7.8 Jupiter-mass planet at 5 AU (e = 0.1) around a 1.1 solar-mass
    star, perturbed by a 1.1 solar-mass companion at 1000 AU on an orbit
    inclined by 85.6 deg. The planet starts with a 10 h spin tilted 1 deg
    from the star's equator; the star spins every 20 days.

    Parameters
    ----------
    run : RunParams, optional
        Loop settings; defaults to 10^6 steps of 100 years written to
        11_28_HD80860.txt

    Returns
    -------
    Scenario
    """
    return Scenario(
        star=StarParams(mass=1.1, radius=R_SUN, name='star'),
        planet=OrbitParams(
            mass=7.8 * M_JUPITER,
            radius=R_JUPITER,
            a=5.0,
            e=0.1,
            omega_deg=45.0,
            name='planet'
        ),
        perturber=OrbitParams(
            mass=1.1,
            a=1000.0,
            e=0.0,
            inc_deg=85.6,
            name='perturber'
        ),
        star_spin=SpinParams(
            period_days=20.0,
            k2=0.028,
            k2_delta_t=0.2,
            gyration_constant=0.08,
        ),
        planet_spin=SpinParams(
            period_days=10.0 / 24.0,
            k2=0.51,
            k2_delta_t=0.02,
            gyration_constant=0.25,
            obliquity_deg=1.0,
            azimuth_deg=0.0,
        ),
        run=run if run is not None else RunParams(),
        name='HD80860',
    )
