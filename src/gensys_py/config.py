"""Forecast configuration.

All settings that influence a forecast are collected in
:class:`ForecastSettings` and read once at the forecast entry point.  The
option names follow the model-settings keys of the surrounding estimation
code (``forecast_horizons``, ``forecast_kill_shocks``, ...), so a settings
dictionary can be passed through :meth:`ForecastSettings.from_mapping`
unchanged.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

DEFAULT_ZLB_VALUE = 0.13 / 4


@dataclass(frozen=True)
class ForecastSettings:
    """Scalar forecast options.

    Attributes
    ----------
    forecast_horizons : int
        Number of periods to forecast.
    forecast_kill_shocks : bool
        Use all-zero shocks (deterministic forecast) when none are supplied.
    forecast_tdist_shocks : bool
        Draw shocks from a Student-t distribution instead of the normal.
    forecast_tdist_df_val : float
        Degrees of freedom of the Student-t distribution.
    forecast_enforce_zlb : bool
        Keep the nominal-rate observable at or above ``forecast_zlb_value``.
    forecast_zlb_value : float
        Floor on the rate observable, in quarterly percent (``0.13 / 4``).
    forecast_pseudoobservables : bool
        Compute pseudo-observables when the system defines them.
    """

    forecast_horizons: int = 12
    forecast_kill_shocks: bool = False
    forecast_tdist_shocks: bool = False
    forecast_tdist_df_val: float = 15.0
    forecast_enforce_zlb: bool = False
    forecast_zlb_value: float = DEFAULT_ZLB_VALUE
    forecast_pseudoobservables: bool = False

    def __post_init__(self) -> None:
        if int(self.forecast_horizons) <= 0:
            raise ValueError("forecast_horizons must be positive")
        if not float(self.forecast_tdist_df_val) > 0.0:
            raise ValueError("forecast_tdist_df_val must be positive")
        object.__setattr__(self, "forecast_horizons", int(self.forecast_horizons))
        object.__setattr__(self, "forecast_tdist_df_val", float(self.forecast_tdist_df_val))
        object.__setattr__(self, "forecast_zlb_value", float(self.forecast_zlb_value))

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "ForecastSettings":
        """Build settings from a mapping of option names.

        Raises
        ------
        ValueError
            If the mapping contains unrecognised option names.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown forecast settings: {', '.join(unknown)}")
        return cls(**dict(values))

    @classmethod
    def from_json(cls, path: str | Path) -> "ForecastSettings":
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError(f"Forecast settings file {path} must contain a JSON object")
        return cls.from_mapping(payload)


@dataclass(frozen=True)
class ForecastModel:
    """Model-level information the forecast engine needs.

    Parameters
    ----------
    settings : ForecastSettings
        Scalar forecast options.
    observables : Mapping[str, int]
        Observable name to row index in ``Z``.
    exogenous_shocks : Mapping[str, int]
        Shock name to column index in ``R``.
    rate_observable : str
        Name of the nominal-rate observable bounded by the ZLB.
    rate_shock : str
        Name of the monetary-policy shock used to enforce the ZLB.
    """

    settings: ForecastSettings = field(default_factory=ForecastSettings)
    observables: Mapping[str, int] = field(default_factory=dict)
    exogenous_shocks: Mapping[str, int] = field(default_factory=dict)
    rate_observable: str = "obs_nominalrate"
    rate_shock: str = "rm_sh"

    @property
    def n_observables(self) -> int:
        return len(self.observables)

    @property
    def n_shocks(self) -> int:
        return len(self.exogenous_shocks)

    def zlb_indices(self) -> tuple[int, int]:
        """Return ``(rate observable index, rate shock index)``.

        Raises
        ------
        ValueError
            If either name is not registered.
        """
        if self.rate_observable not in self.observables:
            raise ValueError(f"Observable {self.rate_observable!r} is not defined for this model")
        if self.rate_shock not in self.exogenous_shocks:
            raise ValueError(f"Shock {self.rate_shock!r} is not defined for this model")
        return int(self.observables[self.rate_observable]), int(self.exogenous_shocks[self.rate_shock])
