"""Shock generation policies for forecasts without supplied shocks.

Three policies are available, chosen from :class:`ForecastSettings`:

* :class:`ZeroShocks` -- deterministic forecast (``forecast_kill_shocks``).
* :class:`StudentTShocks` -- one Student-t draw per period, shared by every
  shock (``forecast_tdist_shocks``).  Cross-shock covariance is ignored.
* :class:`DegenerateMvNormal` -- ``N(0, Q)`` with a possibly singular
  covariance ``Q``.  The symmetric square root of ``Q`` is computed once and
  reused, so every draw lies in the range of ``Q``.

Every policy draws one column per period, independently across periods,
and returns an array of shape ``(n_shocks, horizon)``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

import numpy as np
from scipy.linalg import eigh

from .config import ForecastSettings
from .errors import DimensionMismatch

Array = np.ndarray


class ShockSampler(Protocol):
    n_shocks: int

    def draw(self, horizon: int, rng: np.random.Generator | None = None) -> Array: ...


def _check_horizon(horizon: int) -> None:
    if horizon <= 0:
        raise ValueError("horizon must be positive")


@dataclass(frozen=True)
class ZeroShocks:
    n_shocks: int

    def draw(self, horizon: int, rng: np.random.Generator | None = None) -> Array:
        _check_horizon(horizon)
        return np.zeros((self.n_shocks, horizon), dtype=float)


@dataclass(frozen=True)
class StudentTShocks:
    """Student-t draws with ``df`` degrees of freedom.

    One draw per period is applied to every shock; cross-shock covariance
    is ignored.
    """

    n_shocks: int
    df: float

    def __post_init__(self) -> None:
        if not self.df > 0.0:
            raise ValueError("df must be positive")

    def draw(self, horizon: int, rng: np.random.Generator | None = None) -> Array:
        _check_horizon(horizon)
        rng = rng if rng is not None else np.random.default_rng()
        shocks = np.zeros((self.n_shocks, horizon), dtype=float)
        for t in range(horizon):
            shocks[:, t] = rng.standard_t(self.df)
        return shocks


def psd_sqrt(cov: Array, tol: float = 1e-10) -> Array:
    """Symmetric square root of a positive semi-definite matrix.

    Eigenvalues within ``tol`` (relative to the largest) of zero are
    treated as zero, so rank-deficient covariances are accepted and the
    root has the same range as *cov*.

    Raises
    ------
    ValueError
        If *cov* has a materially negative eigenvalue.
    """
    cov = np.asarray(cov, dtype=float)
    if cov.size == 0:
        return np.zeros_like(cov)
    sym = 0.5 * (cov + cov.T)
    eigenvalues, eigenvectors = eigh(sym)
    scale = max(1.0, float(np.max(np.abs(eigenvalues))))
    if eigenvalues.min() < -tol * scale:
        raise ValueError("covariance matrix must be positive semi-definite")
    # Rounding noise on a zero eigenvalue would leak into the null space.
    root = np.sqrt(np.where(eigenvalues > tol * scale, eigenvalues, 0.0))
    return (eigenvectors * root) @ eigenvectors.T


@dataclass(frozen=True)
class DegenerateMvNormal:
    """Multivariate normal ``N(mean, cov)`` allowing a singular ``cov``.

    Draws are ``mean + sqrt(cov) @ u`` with ``u ~ N(0, I)``.
    """

    mean: Array
    cov: Array
    sqrt_cov: Array = field(init=False, repr=False)

    def __post_init__(self) -> None:
        mean = np.asarray(self.mean, dtype=float).reshape(-1)
        cov = np.asarray(self.cov, dtype=float)
        if cov.shape != (mean.size, mean.size):
            raise DimensionMismatch(
                f"covariance must be {mean.size}x{mean.size}, got shape {cov.shape}"
            )
        object.__setattr__(self, "mean", mean)
        object.__setattr__(self, "cov", cov)
        object.__setattr__(self, "sqrt_cov", psd_sqrt(cov))

    @property
    def n_shocks(self) -> int:
        return self.mean.size

    def draw(self, horizon: int, rng: np.random.Generator | None = None) -> Array:
        _check_horizon(horizon)
        rng = rng if rng is not None else np.random.default_rng()
        shocks = np.zeros((self.n_shocks, horizon), dtype=float)
        for t in range(horizon):
            shocks[:, t] = self.mean + self.sqrt_cov @ rng.standard_normal(self.n_shocks)
        return shocks


def shock_sampler_from_settings(settings: ForecastSettings, Q: Array) -> ShockSampler:
    """Select the shock policy described by *settings*.

    Parameters
    ----------
    settings : ForecastSettings
        ``forecast_kill_shocks`` takes precedence over
        ``forecast_tdist_shocks``; otherwise shocks are normal with
        covariance *Q*.
    Q : Array, shape (n_shocks, n_shocks)
        Shock covariance matrix of the state-space system.
    """
    Q = np.asarray(Q, dtype=float)
    if Q.ndim != 2 or Q.shape[0] != Q.shape[1]:
        raise DimensionMismatch(f"Q must be square, got shape {Q.shape}")
    n_shocks = Q.shape[0]
    if settings.forecast_kill_shocks:
        return ZeroShocks(n_shocks=n_shocks)
    if settings.forecast_tdist_shocks:
        return StudentTShocks(n_shocks=n_shocks, df=settings.forecast_tdist_df_val)
    return DegenerateMvNormal(mean=np.zeros(n_shocks), cov=Q)
