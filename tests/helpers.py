"""Shared test helpers for the gensys_py test suite.

Provides factory functions that build small, analytically tractable linear
rational-expectations models in gensys canonical form

    Gamma0 y_t = Gamma1 y_{t-1} + C + Psi eps_t + Pi eta_t

together with state-space systems built from their solutions.  Keeping them
in a single helpers module avoids duplicating model definitions across test
modules.
"""

import numpy as np

from gensys_py.gensys import gensys
from gensys_py.system import StateSpaceSystem


def make_forward_ar_model(a: float = 0.5, rho: float = 0.8):
    """Forward-looking equation driven by an AR(1) process.

    Variables ``y = [x, E_t x_{t+1}, z]``, one shock, one expectational error:

        x_t = a E_t x_{t+1} + z_t
        x_t = E_{t-1} x_t + eta_t
        z_t = rho z_{t-1} + eps_t

    For ``|a| < 1`` the unique stable solution is ``x_t = z_t / (1 - a rho)``,
    so a unit shock moves ``x`` by ``1 / (1 - a rho)`` on impact and the
    response then decays at rate ``rho``.  For ``|a| > 1`` the model is
    indeterminate.

    Returns
    -------
    tuple
        ``(Gamma0, Gamma1, C, Psi, Pi)``.
    """
    g0 = np.array(
        [
            [1.0, -a, -1.0],
            [1.0, 0.0, 0.0],
            [0.0, 0.0, 1.0],
        ]
    )
    g1 = np.array(
        [
            [0.0, 0.0, 0.0],
            [0.0, 1.0, 0.0],
            [0.0, 0.0, rho],
        ]
    )
    c = np.zeros(3)
    psi = np.array([[0.0], [0.0], [1.0]])
    pi = np.array([[0.0], [1.0], [0.0]])
    return g0, g1, c, psi, pi


def make_nk_model(
    sigma: float = 1.0,
    beta: float = 0.99,
    kappa: float = 0.1,
    phi_pi: float = 1.5,
    phi_x: float = 0.125,
    rho: float = 0.8,
):
    """Three-equation New Keynesian model with a persistent demand shock.

    Variables ``y = [x, pi, i, g, E_t x_{t+1}, E_t pi_{t+1}]``; shocks
    ``eps = [demand, monetary policy]``; two expectational errors.

        x_t  = E_t x_{t+1} - (i_t - E_t pi_{t+1}) / sigma + g_t
        pi_t = beta E_t pi_{t+1} + kappa x_t
        i_t  = phi_pi pi_t + phi_x x_t + eps^m_t
        g_t  = rho g_{t-1} + eps^g_t

    The Taylor principle (``phi_pi > 1``) gives a unique stable solution;
    ``phi_pi < 1`` gives indeterminacy.

    Returns
    -------
    tuple
        ``(Gamma0, Gamma1, C, Psi, Pi)``.
    """
    g0 = np.array(
        [
            [1.0, 0.0, 1.0 / sigma, -1.0, -1.0, -1.0 / sigma],
            [-kappa, 1.0, 0.0, 0.0, 0.0, -beta],
            [-phi_x, -phi_pi, 1.0, 0.0, 0.0, 0.0],
            [0.0, 0.0, 0.0, 1.0, 0.0, 0.0],
            [1.0, 0.0, 0.0, 0.0, 0.0, 0.0],
            [0.0, 1.0, 0.0, 0.0, 0.0, 0.0],
        ]
    )
    g1 = np.zeros((6, 6))
    g1[3, 3] = rho
    g1[4, 4] = 1.0
    g1[5, 5] = 1.0
    c = np.zeros(6)
    psi = np.zeros((6, 2))
    psi[3, 0] = 1.0
    psi[2, 1] = 1.0
    pi = np.zeros((6, 2))
    pi[4, 0] = 1.0
    pi[5, 1] = 1.0
    return g0, g1, c, psi, pi


NK_OBSERVABLES = {"obs_gap": 0, "obs_inflation": 1, "obs_nominalrate": 2}
NK_SHOCKS = {"g_sh": 0, "rm_sh": 1}


def make_nk_state_space(rate_level: float = 1.0, pseudo: bool = False, **params) -> StateSpaceSystem:
    """Solve :func:`make_nk_model` and attach a measurement equation.

    Observables are the output gap, inflation and the nominal rate, the
    latter measured around a steady-state level *rate_level*.  With
    *pseudo* set, the demand state is exposed as a pseudo-observable.
    """
    solution = gensys(*make_nk_model(**params))
    Z = np.zeros((3, 6))
    Z[0, 0] = 1.0
    Z[1, 1] = 1.0
    Z[2, 2] = 1.0
    D = np.array([0.0, 0.5, rate_level])
    Q = np.diag([0.25, 0.04])
    if pseudo:
        Z_pseudo = np.zeros((1, 6))
        Z_pseudo[0, 3] = 1.0
        return StateSpaceSystem.from_gensys(solution, Z, D, Q, Z_pseudo, np.zeros(1))
    return StateSpaceSystem.from_gensys(solution, Z, D, Q)


def make_rate_state_space(persistence: float = 0.9, rate_level: float = 0.5) -> StateSpaceSystem:
    """Two-state system whose first state is the nominal-rate deviation.

    ``z_t = diag(persistence, 0.5) z_{t-1} + eps_t``; observables are
    ``rate = rate_level + z[0]`` and ``z[1]``; shock 0 is the policy shock.
    """
    return StateSpaceSystem.from_matrices(
        T=np.diag([persistence, 0.5]),
        R=np.eye(2),
        C=np.zeros(2),
        Q=np.eye(2),
        Z=np.eye(2),
        D=np.array([rate_level, 0.0]),
    )
