import numpy as np
import pytest

from gensys_py.config import ForecastModel, ForecastSettings
from gensys_py.errors import DimensionMismatch
from gensys_py.forecast import compute_forecast, compute_model_forecast
from gensys_py.system import StateSpaceSystem
from helpers import NK_OBSERVABLES, NK_SHOCKS, make_nk_state_space, make_rate_state_space


def _nk_model(**settings) -> ForecastModel:
    return ForecastModel(
        settings=ForecastSettings(**settings),
        observables=NK_OBSERVABLES,
        exogenous_shocks=NK_SHOCKS,
    )


def test_forecast_iterates_transition_and_measurement():
    system = make_nk_state_space()
    T, R = system.transition.T, system.transition.R
    Z, D = system.measurement.Z, system.measurement.D
    rng = np.random.default_rng(0)
    z0 = rng.standard_normal(6)
    shocks = rng.standard_normal((2, 5))

    result = compute_forecast(system, z0, shocks)

    z = z0
    for t in range(5):
        z = T @ z + R @ shocks[:, t]
        np.testing.assert_allclose(result.states[:, t], z)
        np.testing.assert_allclose(result.obs[:, t], D + Z @ z)
    assert result.horizon == 5
    assert result.pseudo.shape == (0, 5)
    np.testing.assert_array_equal(result.shocks, shocks)


def test_constant_enters_every_period():
    system = make_rate_state_space(persistence=0.5)
    shifted = StateSpaceSystem.from_matrices(
        T=system.transition.T,
        R=system.transition.R,
        C=np.array([1.0, 0.0]),
        Q=system.measurement.Q,
        Z=system.measurement.Z,
        D=system.measurement.D,
    )

    result = compute_forecast(shifted, np.zeros(2), np.zeros((2, 3)))

    np.testing.assert_allclose(result.states[0], [1.0, 1.5, 1.75])


def test_zero_shocks_from_zero_state_stay_at_steady_state():
    system = make_nk_state_space(rate_level=1.0)

    result = compute_forecast(system, np.zeros(6), np.zeros((2, 8)))

    np.testing.assert_allclose(result.states, 0.0)
    np.testing.assert_allclose(result.obs, np.tile(system.measurement.D[:, None], (1, 8)))


def test_forecast_is_deterministic_given_inputs():
    system = make_nk_state_space()
    z0 = np.linspace(-1.0, 1.0, 6)
    shocks = np.random.default_rng(4).standard_normal((2, 6))

    first = compute_forecast(system, z0, shocks)
    second = compute_forecast(system, z0, shocks)

    np.testing.assert_array_equal(first.states, second.states)
    np.testing.assert_array_equal(first.obs, second.obs)


def test_inputs_are_not_modified():
    system = make_rate_state_space()
    z0 = np.array([-1.0, 0.0])
    shocks = np.zeros((2, 4))

    result = compute_forecast(system, z0, shocks, enforce_zlb=True, ind_r=0, ind_r_sh=0)

    assert not shocks.any()
    np.testing.assert_array_equal(z0, [-1.0, 0.0])
    assert result.shocks is not shocks


def test_pseudo_observables():
    system = make_nk_state_space(pseudo=True)
    z0 = np.zeros(6)
    z0[3] = 1.0

    result = compute_forecast(system, z0, np.zeros((2, 4)))
    disabled = compute_forecast(system, z0, np.zeros((2, 4)), include_pseudo=False)

    # The pseudo-observable tracks the demand state g_t = rho^t g_0.
    np.testing.assert_allclose(result.pseudo[0], 0.8 ** np.arange(1, 5), atol=1e-10)
    assert disabled.pseudo.shape == (0, 4)


@pytest.mark.parametrize(
    "z0, shocks",
    [
        (np.zeros(5), np.zeros((2, 3))),
        (np.zeros(6), np.zeros((3, 3))),
        (np.zeros(6), np.zeros(3)),
    ],
)
def test_dimension_checks(z0, shocks):
    with pytest.raises(DimensionMismatch):
        compute_forecast(make_nk_state_space(), z0, shocks)


def test_empty_horizon_is_rejected():
    with pytest.raises(ValueError):
        compute_forecast(make_nk_state_space(), np.zeros(6), np.zeros((2, 0)))


def test_model_forecast_generates_shocks_from_settings():
    system = make_nk_state_space()
    model = _nk_model(forecast_horizons=7)

    result = compute_model_forecast(model, system, np.zeros(6), rng=np.random.default_rng(1))
    again = compute_model_forecast(model, system, np.zeros(6), rng=np.random.default_rng(1))

    assert result.states.shape == (6, 7)
    assert result.obs.shape == (3, 7)
    assert result.shocks.shape == (2, 7)
    assert result.shocks.any()
    np.testing.assert_array_equal(result.shocks, again.shocks)


def test_model_forecast_treats_empty_shocks_as_missing():
    model = _nk_model(forecast_horizons=3, forecast_kill_shocks=True)

    result = compute_model_forecast(model, make_nk_state_space(), np.zeros(6), np.zeros((0, 0)))

    assert result.shocks.shape == (2, 3)
    assert not result.shocks.any()


def test_model_forecast_uses_supplied_shock_horizon():
    model = _nk_model(forecast_horizons=3)
    shocks = np.ones((2, 5))

    result = compute_model_forecast(model, make_nk_state_space(), np.zeros(6), shocks)

    assert result.horizon == 5
    np.testing.assert_array_equal(result.shocks, shocks)


def test_model_forecast_pseudo_follows_settings():
    system = make_nk_state_space(pseudo=True)

    off = compute_model_forecast(_nk_model(forecast_kill_shocks=True), system, np.zeros(6))
    on = compute_model_forecast(
        _nk_model(forecast_kill_shocks=True, forecast_pseudoobservables=True), system, np.zeros(6)
    )

    assert off.pseudo.shape == (0, 12)
    assert on.pseudo.shape == (1, 12)


def test_model_indices_must_fit_system():
    model = ForecastModel(observables={"obs_nominalrate": 5}, exogenous_shocks={"rm_sh": 1})

    with pytest.raises(DimensionMismatch):
        compute_model_forecast(model, make_nk_state_space(), np.zeros(6))


def test_empty_pseudo_measurement_means_no_pseudo_observables():
    base = make_rate_state_space()
    system = StateSpaceSystem.from_matrices(
        T=base.transition.T,
        R=base.transition.R,
        C=base.transition.C,
        Q=base.measurement.Q,
        Z=base.measurement.Z,
        D=base.measurement.D,
        Z_pseudo=np.array([]),
        D_pseudo=np.array([]),
    )

    result = compute_forecast(system, np.zeros(2), np.ones((2, 5)))

    assert not system.has_pseudo
    assert system.pseudo_measurement.Z_pseudo.shape == (0, 2)
    assert result.pseudo.shape == (0, 5)
