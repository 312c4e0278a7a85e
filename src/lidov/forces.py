'''Symbolic equations of motion for the spin/tidal N-body problem
Builds heyoka expression systems consumed by Simulation'''

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple
import heyoka as hy


@dataclass(frozen=True)
class TidalBody:
    """
    Parameters of a body whose shape responds to spin and tides.

    Attributes
    ----------
    index : int
        Body index in the simulation
    radius : float
        Physical radius [AU]
    k2 : float
        Potential Love number
    tidal_time_lag : float
        Constant time lag of the equilibrium tide [code time units]
    moment_of_inertia : float
        Moment of inertia [M_sun AU^2]
    """
    index: int
    radius: float
    k2: float
    tidal_time_lag: float
    moment_of_inertia: float


def _dot(u, v):
    return u[0] * v[0] + u[1] * v[1] + u[2] * v[2]


def _cross(u, v):
    return (u[1] * v[2] - u[2] * v[1],
            u[2] * v[0] - u[0] * v[2],
            u[0] * v[1] - u[1] * v[0])


def _total(terms):
    """Sum a list of expressions; an empty list is the constant zero."""
    if not terms:
        return hy.expression(0.0)
    return sum(terms[1:], terms[0])


def make_state_vars(n_bodies: int, spin_indices: Sequence[int]):
    """
    Create symbolic state variables.

    Returns
    -------
    pos, vel : list of 3-tuples of hy.expression
        Position and velocity variables per body
    spin : dict
        Body index -> 3-tuple of spin variables
    """
    pos, vel = [], []
    for i in range(n_bodies):
        pos.append(hy.make_vars(f"x{i}", f"y{i}", f"z{i}"))
        vel.append(hy.make_vars(f"vx{i}", f"vy{i}", f"vz{i}"))
    spin = {i: hy.make_vars(f"sx{i}", f"sy{i}", f"sz{i}") for i in spin_indices}
    return pos, vel, spin


def build_eom(
    G: float,
    masses: Sequence[float],
    tidal_bodies: Sequence[TidalBody] = (),
    spin_indices: Sequence[int] = ()
) -> List[Tuple]:
    """
    Build heyoka equations of motion for N bodies with spin and tides.

    State vector order: [x, y, z, vx, vy, vz] per body, followed by the
    spin vector [sx, sy, sz] of every body in ``spin_indices``.

    Gravity is Newtonian between every pair. Each tidal body *i* is
    distorted by its own spin and by the tide of every other body *j*
    (equilibrium tide with constant time lag tau, Eggleton, Kiseleva & Hut
    1998; Lu et al. 2023). With r = r_i - r_j, v = v_i - v_j, Omega the
    spin of *i* and R, k2 its radius and Love number, the relative
    acceleration is

        f_QD = k2 R^5 (1 + m_j/m_i) / r^4 *
               [(5 (Omega.r^)^2/2 - Omega^2/2 - 3 G m_j / r^3) r^
                - (Omega.r^) Omega]
        f_TF = -3 k2 tau G m_j R^5 (1 + m_j/m_i) / r^8 *
               [2 (v.r^) r^ + v - Omega x r]

    which is split between the bodies in proportion to their masses.
    The spin absorbs the opposite torque, I_i dOmega_i/dt = -mu_ij r x f
    with mu_ij = m_i m_j / (m_i + m_j), so total angular momentum is
    conserved.

    Parameters
    ----------
    G : float
        Gravitational constant
    masses : sequence of float
        Body masses; zero-mass bodies exert no gravity
    tidal_bodies : sequence of TidalBody
        Bodies with an active tidal response. Each must have positive
        mass and moment of inertia.
    spin_indices : sequence of int
        Bodies whose spin is part of the state. Spins of bodies without
        a tidal response are constant.

    Returns
    -------
    sys : list of (var, rhs) tuples
        heyoka ODE system definition ready for taylor_adaptive()
    """
    n = len(masses)
    spin_indices = tuple(spin_indices)
    for tb in tidal_bodies:
        if tb.index not in spin_indices:
            raise ValueError(f"Tidal body {tb.index} has no spin state")

    pos, vel, spin = make_state_vars(n, spin_indices)

    acc: List[List[list]] = [[[], [], []] for _ in range(n)]
    dspin: Dict[int, List[list]] = {i: [[], [], []] for i in spin_indices}

    # Newtonian gravity
    for i in range(n):
        for j in range(i + 1, n):
            if masses[i] == 0 and masses[j] == 0:
                continue
            d = tuple(pos[j][k] - pos[i][k] for k in range(3))
            inv_r3 = _dot(d, d) ** -1.5
            for k in range(3):
                if masses[j] != 0:
                    acc[i][k].append(G * masses[j] * d[k] * inv_r3)
                if masses[i] != 0:
                    acc[j][k].append(-G * masses[i] * d[k] * inv_r3)

    # spin and tidal distortion of body i by body j
    for tb in tidal_bodies:
        i = tb.index
        mi = masses[i]
        Om = spin[i]
        R5 = tb.radius**5
        for j in range(n):
            if j == i:
                continue
            mj = masses[j]
            r = tuple(pos[i][k] - pos[j][k] for k in range(3))
            v = tuple(vel[i][k] - vel[j][k] for k in range(3))
            d2 = _dot(r, r)
            d = hy.sqrt(d2)

            # conservative quadrupole: spin flattening + static tide
            om_dot_r = _dot(Om, r)
            radial = (2.5 * om_dot_r**2 / d2 - 0.5 * _dot(Om, Om)
                      - 3.0 * G * mj / d**3)
            pre_q = tb.k2 * R5 * (1.0 + mj / mi) / d**4
            f = [pre_q * (radial * r[k] / d - om_dot_r / d * Om[k])
                 for k in range(3)]

            # tidal friction from the lagged bulge
            if tb.tidal_time_lag > 0 and mj != 0:
                pre_t = (3.0 * tb.k2 * tb.tidal_time_lag * G * mj * R5
                         * (1.0 + mj / mi) / d**8)
                v_dot_r = _dot(v, r)
                om_x_r = _cross(Om, r)
                for k in range(3):
                    f[k] = f[k] - pre_t * (2.0 * v_dot_r / d2 * r[k]
                                           + v[k] - om_x_r[k])

            m_tot = mi + mj
            for k in range(3):
                if mj != 0:
                    acc[i][k].append(mj / m_tot * f[k])
                acc[j][k].append(-mi / m_tot * f[k])

            # back-reaction on the spin
            mu_ij = mi * mj / m_tot
            if mu_ij != 0:
                torque = _cross(r, f)
                for k in range(3):
                    dspin[i][k].append(-mu_ij / tb.moment_of_inertia * torque[k])

    sys = []
    for i in range(n):
        for k in range(3):
            sys.append((pos[i][k], vel[i][k]))
        for k in range(3):
            sys.append((vel[i][k], _total(acc[i][k])))
    for i in spin_indices:
        for k in range(3):
            sys.append((spin[i][k], _total(dspin[i][k])))
    return sys
