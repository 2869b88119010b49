from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol

import numpy as np

from .gensys import GensysSolution
from .system import StateSpaceSystem

Array = np.ndarray

STRUCTURAL_KEYS = ("G0", "G1", "C", "PSI", "PI")


class _ForecastLike(Protocol):
    states: Array
    obs: Array
    pseudo: Array
    shocks: Array


def load_structural_matrices(path: str | Path) -> tuple[Array, Array, Array, Array, Array]:
    """Read ``G0, G1, C, PSI, PI`` from a JSON file."""
    payload = _read(path)
    missing = [key for key in STRUCTURAL_KEYS if key not in payload]
    if missing:
        raise ValueError(f"{path} is missing structural matrices: {', '.join(missing)}")
    g0, g1, c, psi, pi = (np.asarray(payload[key], dtype=float) for key in STRUCTURAL_KEYS)
    n = g0.shape[0]
    # JSON cannot hold an (n, 0) matrix; an empty list means no columns.
    if psi.size == 0:
        psi = np.zeros((n, 0))
    if pi.size == 0:
        pi = np.zeros((n, 0))
    return g0, g1, c, psi, pi


def save_structural_matrices(
    path: str | Path, g0: Array, g1: Array, c: Array, psi: Array, pi: Array
) -> None:
    payload = {key: _to_list(value) for key, value in zip(STRUCTURAL_KEYS, (g0, g1, c, psi, pi))}
    _write(path, payload)


def save_solution(solution: GensysSolution, path: str | Path) -> None:
    payload = {
        "G1": _to_list(solution.G1),
        "C": _to_list(solution.C),
        "impact": _to_list(solution.impact),
        "fmat": _to_complex(solution.fmat),
        "fwt": _to_complex(solution.fwt),
        "ywt": _to_complex(solution.ywt),
        "gev": _to_complex(solution.gev),
        "eu": list(solution.eu),
        "loose": int(solution.loose),
        "loose_matrix": _to_list(solution.loose_matrix),
        "stake": float(solution.stake),
        "shapes": {
            name: list(np.shape(getattr(solution, name)))
            for name in ("G1", "impact", "fmat", "fwt", "ywt", "gev", "loose_matrix")
        },
    }
    _write(path, payload)


def load_solution(path: str | Path) -> GensysSolution:
    payload = _read(path)
    shapes = payload["shapes"]
    return GensysSolution(
        G1=_to_array(payload["G1"], shapes["G1"]),
        C=np.asarray(payload["C"], dtype=float),
        impact=_to_array(payload["impact"], shapes["impact"]),
        fmat=_from_complex(payload["fmat"], shapes["fmat"]),
        fwt=_from_complex(payload["fwt"], shapes["fwt"]),
        ywt=_from_complex(payload["ywt"], shapes["ywt"]),
        gev=_from_complex(payload["gev"], shapes["gev"]),
        eu=(int(payload["eu"][0]), int(payload["eu"][1])),
        loose=int(payload["loose"]),
        loose_matrix=_to_array(payload["loose_matrix"], shapes["loose_matrix"]),
        stake=float(payload["stake"]),
    )


def save_state_space(system: StateSpaceSystem, path: str | Path) -> None:
    payload = {
        "TTT": _to_list(system.transition.T),
        "RRR": _to_list(system.transition.R),
        "CCC": _to_list(system.transition.C),
        "QQ": _to_list(system.measurement.Q),
        "ZZ": _to_list(system.measurement.Z),
        "DD": _to_list(system.measurement.D),
    }
    if system.has_pseudo:
        payload["ZZ_pseudo"] = _to_list(system.pseudo_measurement.Z_pseudo)
        payload["DD_pseudo"] = _to_list(system.pseudo_measurement.D_pseudo)
    _write(path, payload)


def load_state_space(path: str | Path) -> StateSpaceSystem:
    payload = _read(path)
    return StateSpaceSystem.from_matrices(
        T=np.asarray(payload["TTT"], dtype=float),
        R=np.asarray(payload["RRR"], dtype=float),
        C=np.asarray(payload["CCC"], dtype=float),
        Q=np.asarray(payload["QQ"], dtype=float),
        Z=np.asarray(payload["ZZ"], dtype=float),
        D=np.asarray(payload["DD"], dtype=float),
        Z_pseudo=_to_array(payload.get("ZZ_pseudo")),
        D_pseudo=_to_array(payload.get("DD_pseudo")),
    )


def save_forecast(result: _ForecastLike, path: str | Path) -> None:
    payload = {
        "states": _to_list(result.states),
        "obs": _to_list(result.obs),
        "pseudo": _to_list(result.pseudo),
        "shocks": _to_list(result.shocks),
    }
    _write(path, payload)


def _read(path: str | Path) -> dict[str, Any]:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return payload


def _write(path: str | Path, payload: dict[str, Any]) -> None:
    Path(path).write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")


def _to_list(array: Array | None) -> Any:
    if array is None:
        return None
    return np.asarray(array, dtype=float).tolist()


def _to_array(value: Any, shape: list[int] | None = None) -> Array | None:
    if value is None:
        return None
    out = np.asarray(value, dtype=float)
    return out.reshape(shape) if shape is not None else out


def _to_complex(array: Array) -> dict[str, Any]:
    array = np.asarray(array, dtype=complex)
    return {"real": array.real.tolist(), "imag": array.imag.tolist()}


def _from_complex(value: dict[str, Any], shape: list[int]) -> Array:
    real = np.asarray(value["real"], dtype=float)
    imag = np.asarray(value["imag"], dtype=float)
    return (real + 1j * imag).reshape(shape)
