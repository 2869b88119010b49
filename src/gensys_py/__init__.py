"""gensys_py -- Sims' gensys solver and forecasting for linear DSGE models.

This package solves linear rational-expectations models written in the
canonical form ``Gamma0 y_t = Gamma1 y_{t-1} + C + Psi eps_t + Pi eta_t``
with the QZ-based gensys algorithm, and forecasts the resulting state-space
system forward under supplied or sampled shocks, optionally enforcing a
zero lower bound on the nominal interest rate.

Key references:
    Sims (2002), Computational Economics 20(1-2).
    Blanchard and Kahn (1980), Econometrica 48(5).
"""

from .config import ForecastModel, ForecastSettings
from .errors import DecompositionFailure, DimensionMismatch, GensysError, ZLBCorrectionFailure
from .forecast import (
    BatchForecastResult,
    ForecastResult,
    compute_forecast,
    compute_model_forecast,
    forecast,
)
from .gensys import GensysSolution, gensys, solve
from .qz import (
    GeneralizedSchur,
    classify_bk_failure,
    compute_generalized_eigenvalues,
    stability_predicate,
)
from .serialization import (
    load_solution,
    load_state_space,
    load_structural_matrices,
    save_forecast,
    save_solution,
    save_state_space,
    save_structural_matrices,
)
from .shocks import (
    DegenerateMvNormal,
    ShockSampler,
    StudentTShocks,
    ZeroShocks,
    psd_sqrt,
    shock_sampler_from_settings,
)
from .system import Measurement, PseudoMeasurement, StateSpaceSystem, Transition
from .version import __version__

__all__ = [
    "__version__",
    "GensysError",
    "DecompositionFailure",
    "DimensionMismatch",
    "ZLBCorrectionFailure",
    "GeneralizedSchur",
    "GensysSolution",
    "StateSpaceSystem",
    "Transition",
    "Measurement",
    "PseudoMeasurement",
    "ForecastSettings",
    "ForecastModel",
    "ForecastResult",
    "BatchForecastResult",
    "ShockSampler",
    "ZeroShocks",
    "StudentTShocks",
    "DegenerateMvNormal",
    "classify_bk_failure",
    "compute_generalized_eigenvalues",
    "stability_predicate",
    "gensys",
    "solve",
    "compute_forecast",
    "compute_model_forecast",
    "forecast",
    "psd_sqrt",
    "shock_sampler_from_settings",
    "load_structural_matrices",
    "save_structural_matrices",
    "load_solution",
    "save_solution",
    "load_state_space",
    "save_state_space",
    "save_forecast",
]
