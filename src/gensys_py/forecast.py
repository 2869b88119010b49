"""Forward simulation of a solved state-space system.

Forecasts iterate the transition equation::

    z_t = C + T z_{t-1} + R eps_t,      t = 1, ..., H

starting from the final historical state ``z_0``, then apply the
measurement (``y_t = D + Z z_t``) and, when available, pseudo-measurement
equations.

Zero lower bound
----------------
With ZLB enforcement on, each period's implied nominal rate
``D[r] + Z[r, :] z_t`` is checked against the floor.  When it falls below,
the monetary-policy shock of that period is replaced by the value that puts
the rate exactly at the floor.  Because the transition is linear in the
shock this is a closed-form correction: the policy shock is zeroed, the
baseline state is recomputed, and

.. math::

    \\varepsilon_t[s] = \\frac{\\underline{r} - D_r - Z_r \\, z^{base}_t}
                             {Z_r R_{:, s}}

The returned shock matrix contains the corrected values.

Draw independence
-----------------
:func:`compute_forecast` reads only its arguments and returns freshly
allocated arrays; the supplied shock matrix is copied before any
correction.  :func:`forecast` spawns one random generator per draw from a
single :class:`numpy.random.SeedSequence`, so results do not depend on how
draws are distributed over workers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Sequence

import numpy as np

from .config import DEFAULT_ZLB_VALUE, ForecastModel
from .errors import DimensionMismatch, ZLBCorrectionFailure
from .shocks import shock_sampler_from_settings
from .system import StateSpaceSystem

Array = np.ndarray
MapFunction = Callable[[Callable[[Any], Any], Iterable[Any]], Iterable[Any]]

logger = logging.getLogger(__name__)

ZLB_TOLERANCE = 1e-8


@dataclass(frozen=True)
class ForecastResult:
    """Forecast paths for a single draw.

    Attributes
    ----------
    states : ndarray, shape (n_states, horizon)
        Forecasted states.
    obs : ndarray, shape (n_obs, horizon)
        Forecasted observables.
    pseudo : ndarray, shape (n_pseudo, horizon)
        Forecasted pseudo-observables; zero rows when pseudo-measurement is
        disabled or undefined.
    shocks : ndarray, shape (n_shocks, horizon)
        Realised shocks, including ZLB corrections.
    """

    states: Array
    obs: Array
    pseudo: Array
    shocks: Array

    @property
    def horizon(self) -> int:
        return self.states.shape[1]


@dataclass(frozen=True)
class BatchForecastResult:
    """Forecast paths for many draws, stacked along a leading draw axis.

    Attributes
    ----------
    states : ndarray, shape (n_draws, n_states, horizon)
    obs : ndarray, shape (n_draws, n_obs, horizon)
    pseudo : ndarray, shape (n_draws, n_pseudo, horizon)
    shocks : ndarray, shape (n_draws, n_shocks, horizon)
    """

    states: Array
    obs: Array
    pseudo: Array
    shocks: Array

    @property
    def n_draws(self) -> int:
        return self.states.shape[0]

    def draw(self, index: int) -> ForecastResult:
        return ForecastResult(
            states=self.states[index],
            obs=self.obs[index],
            pseudo=self.pseudo[index],
            shocks=self.shocks[index],
        )


def _check_index(name: str, index: int | None, size: int) -> int:
    if index is None:
        raise ValueError(f"{name} is required when enforce_zlb is True")
    if not 0 <= index < size:
        raise DimensionMismatch(f"{name}={index} is out of bounds for size {size}")
    return int(index)


def compute_forecast(
    system: StateSpaceSystem,
    z0: Array,
    shocks: Array,
    *,
    enforce_zlb: bool = False,
    ind_r: int | None = None,
    ind_r_sh: int | None = None,
    zlb_value: float = DEFAULT_ZLB_VALUE,
    include_pseudo: bool = True,
) -> ForecastResult:
    """Forecast a state-space system under a given shock path.

    Parameters
    ----------
    system : StateSpaceSystem
        Transition, measurement and optional pseudo-measurement matrices.
    z0 : ndarray, shape (n_states,)
        State in the final historical period.
    shocks : ndarray, shape (n_shocks, horizon)
        Shock innovations; column ``t`` is used in period ``t``.  Not
        modified.
    enforce_zlb : bool
        Keep observable ``ind_r`` at or above *zlb_value* by adjusting
        shock ``ind_r_sh``.
    ind_r : int or None
        Row of the nominal-rate observable in ``Z``.
    ind_r_sh : int or None
        Column of the monetary-policy shock in ``R``.
    zlb_value : float
        Floor on the rate observable.
    include_pseudo : bool
        Compute pseudo-observables when the system defines them.

    Returns
    -------
    ForecastResult
        States, observables, pseudo-observables and realised shocks.

    Raises
    ------
    DimensionMismatch
        If *z0*, *shocks* or the ZLB indices do not match the system.
    ZLBCorrectionFailure
        If the rate observable does not respond to the policy shock or the
        corrected rate is still below the floor.
    """
    T, R, C = system.transition.T, system.transition.R, system.transition.C
    Z, D = system.measurement.Z, system.measurement.D
    n_states = system.n_states

    z0 = np.asarray(z0, dtype=float).reshape(-1)
    if z0.size != n_states:
        raise DimensionMismatch(f"z0 must have {n_states} entries, got {z0.size}")

    shocks = np.array(shocks, dtype=float)
    if shocks.ndim != 2:
        raise DimensionMismatch("shocks must have shape (n_shocks, horizon)")
    if shocks.shape[0] != system.n_shocks:
        raise DimensionMismatch(
            f"shocks must have {system.n_shocks} rows to match R, got shape {shocks.shape}"
        )
    horizon = shocks.shape[1]
    if horizon == 0:
        raise ValueError("horizon must be positive")

    if enforce_zlb:
        ind_r = _check_index("ind_r", ind_r, system.n_observables)
        ind_r_sh = _check_index("ind_r_sh", ind_r_sh, system.n_shocks)
        z_rate = Z[ind_r, :]
        sensitivity = float(z_rate @ R[:, ind_r_sh])

    def iterate(z_prev: Array, eps: Array) -> Array:
        return C + T @ z_prev + R @ eps

    states = np.zeros((n_states, horizon), dtype=float)
    z_prev = z0
    for t in range(horizon):
        z_t = iterate(z_prev, shocks[:, t])

        if enforce_zlb:
            rate = D[ind_r] + z_rate @ z_t
            if rate < zlb_value:
                if sensitivity == 0.0 or not np.isfinite(sensitivity):
                    raise ZLBCorrectionFailure(
                        t, float(rate), zlb_value, "The rate observable does not load on the policy shock."
                    )
                shocks[ind_r_sh, t] = 0.0
                baseline = iterate(z_prev, shocks[:, t])
                shocks[ind_r_sh, t] = (zlb_value - D[ind_r] - z_rate @ baseline) / sensitivity

                z_t = iterate(z_prev, shocks[:, t])
                corrected = D[ind_r] + z_rate @ z_t
                if not corrected >= zlb_value - ZLB_TOLERANCE:
                    raise ZLBCorrectionFailure(t, float(corrected), zlb_value)
                logger.debug(
                    "ZLB binding in period %d: rate %.6g -> %.6g, policy shock %.6g",
                    t,
                    rate,
                    corrected,
                    shocks[ind_r_sh, t],
                )

        states[:, t] = z_t
        z_prev = z_t

    obs = D[:, None] + Z @ states
    if include_pseudo and system.has_pseudo:
        pseudo_eq = system.pseudo_measurement
        pseudo = pseudo_eq.D_pseudo[:, None] + pseudo_eq.Z_pseudo @ states
    else:
        pseudo = np.zeros((0, horizon), dtype=float)

    return ForecastResult(states=states, obs=obs, pseudo=pseudo, shocks=shocks)


def compute_model_forecast(
    model: ForecastModel,
    system: StateSpaceSystem,
    z0: Array,
    shocks: Array | None = None,
    *,
    rng: np.random.Generator | None = None,
) -> ForecastResult:
    """Forecast one draw using the model's forecast settings.

    When *shocks* is ``None`` or empty, ``forecast_horizons`` columns of
    shocks are generated: zeros if ``forecast_kill_shocks``, Student-t draws
    if ``forecast_tdist_shocks``, otherwise ``N(0, Q)`` draws.

    Parameters
    ----------
    model : ForecastModel
        Settings and named indices.  Read once.
    system : StateSpaceSystem
        System matrices for this draw.
    z0 : ndarray, shape (n_states,)
        Initial state for this draw.
    shocks : ndarray, shape (n_shocks, horizon), optional
        Shocks for this draw.
    rng : numpy.random.Generator, optional
        Source of randomness for generated shocks.
    """
    settings = model.settings
    for name, index in model.exogenous_shocks.items():
        if not 0 <= index < system.n_shocks:
            raise DimensionMismatch(f"shock {name!r} index {index} exceeds R's {system.n_shocks} columns")
    for name, index in model.observables.items():
        if not 0 <= index < system.n_observables:
            raise DimensionMismatch(
                f"observable {name!r} index {index} exceeds Z's {system.n_observables} rows"
            )

    if shocks is None or np.size(shocks) == 0:
        sampler = shock_sampler_from_settings(settings, system.measurement.Q)
        shocks = sampler.draw(settings.forecast_horizons, rng)

    ind_r = ind_r_sh = None
    if settings.forecast_enforce_zlb:
        ind_r, ind_r_sh = model.zlb_indices()

    return compute_forecast(
        system,
        z0,
        shocks,
        enforce_zlb=settings.forecast_enforce_zlb,
        ind_r=ind_r,
        ind_r_sh=ind_r_sh,
        zlb_value=settings.forecast_zlb_value,
        include_pseudo=settings.forecast_pseudoobservables,
    )


def _forecast_draw(task: tuple[Any, ...]) -> ForecastResult:
    model, system, z0, shocks, seed = task
    return compute_model_forecast(model, system, z0, shocks, rng=np.random.default_rng(seed))


def forecast(
    model: ForecastModel,
    systems: Sequence[StateSpaceSystem],
    z0s: Sequence[Array],
    shocks: Array | None = None,
    *,
    seed: int | None = None,
    map_fn: MapFunction = map,
) -> BatchForecastResult:
    """Forecast every draw and stack the results in draw order.

    Parameters
    ----------
    model : ForecastModel
        Settings shared by all draws.
    systems : sequence of StateSpaceSystem
        System matrices, one per draw.
    z0s : sequence of ndarray
        Initial states, one per draw.
    shocks : ndarray, shape (n_draws, n_shocks, horizon), optional
        Shocks per draw.  Generated per draw when omitted.
    seed : int, optional
        Seed for generated shocks.  Each draw receives its own child seed.
    map_fn : callable
        Order-preserving map used to evaluate the draws, for example
        ``concurrent.futures.Executor.map``.  Defaults to the built-in
        :func:`map`.

    Returns
    -------
    BatchForecastResult
        Arrays with a leading draw axis in the order of *systems*.
    """
    systems = list(systems)
    z0s = list(z0s)
    n_draws = len(systems)
    if n_draws == 0:
        raise ValueError("at least one draw is required")
    if len(z0s) != n_draws:
        raise DimensionMismatch(f"got {n_draws} systems but {len(z0s)} initial states")

    shocks_provided = shocks is not None and np.size(shocks) > 0
    if shocks_provided:
        shocks = np.asarray(shocks, dtype=float)
        if shocks.ndim != 3 or shocks.shape[0] != n_draws:
            raise DimensionMismatch(
                f"shocks must have shape ({n_draws}, n_shocks, horizon), got {shocks.shape}"
            )

    seeds = np.random.SeedSequence(seed).spawn(n_draws)
    tasks = [
        (model, systems[i], z0s[i], shocks[i] if shocks_provided else None, seeds[i])
        for i in range(n_draws)
    ]
    logger.info("Forecasting %d draw(s)", n_draws)
    results = list(map_fn(_forecast_draw, tasks))

    return BatchForecastResult(
        states=np.stack([r.states for r in results]),
        obs=np.stack([r.obs for r in results]),
        pseudo=np.stack([r.pseudo for r in results]),
        shocks=np.stack([r.shocks for r in results]),
    )
