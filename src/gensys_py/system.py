"""State-space representation consumed by the forecast engine.

The system is split into the usual three pieces::

    z_t      = C + T z_{t-1} + R eps_t       (transition)
    y_t      = D + Z z_t                      (measurement)
    y~_t     = D_pseudo + Z_pseudo z_t        (pseudo-measurement, optional)

with ``eps_t ~ (0, Q)``.  ``Q`` only drives default shock generation; the
shocks enter the state additively through ``R``.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .errors import DimensionMismatch
from .gensys import GensysSolution

Array = np.ndarray


def _matrix(name: str, value: Array) -> Array:
    out = np.array(value, dtype=float)
    if out.ndim != 2:
        raise DimensionMismatch(f"{name} must be two-dimensional, got shape {out.shape}")
    return out


def _vector(name: str, value: Array, size: int) -> Array:
    out = np.array(value, dtype=float).reshape(-1)
    if out.size != size:
        raise DimensionMismatch(f"{name} must have {size} entries, got {out.size}")
    return out


@dataclass(frozen=True)
class Transition:
    """Transition equation ``z_t = C + T z_{t-1} + R eps_t``."""

    T: Array
    R: Array
    C: Array

    def __post_init__(self) -> None:
        T = _matrix("T", self.T)
        if T.shape[0] != T.shape[1]:
            raise DimensionMismatch(f"T must be square, got shape {T.shape}")
        R = _matrix("R", self.R)
        if R.shape[0] != T.shape[0]:
            raise DimensionMismatch(f"R must have {T.shape[0]} rows, got shape {R.shape}")
        object.__setattr__(self, "T", T)
        object.__setattr__(self, "R", R)
        object.__setattr__(self, "C", _vector("C", self.C, T.shape[0]))


@dataclass(frozen=True)
class Measurement:
    """Measurement equation ``y_t = D + Z z_t`` with shock covariance ``Q``."""

    Z: Array
    D: Array
    Q: Array

    def __post_init__(self) -> None:
        Z = _matrix("Z", self.Z)
        Q = _matrix("Q", self.Q)
        if Q.shape[0] != Q.shape[1]:
            raise DimensionMismatch(f"Q must be square, got shape {Q.shape}")
        object.__setattr__(self, "Z", Z)
        object.__setattr__(self, "D", _vector("D", self.D, Z.shape[0]))
        object.__setattr__(self, "Q", Q)


@dataclass(frozen=True)
class PseudoMeasurement:
    """Pseudo-measurement equation ``y~_t = D_pseudo + Z_pseudo z_t``.

    Empty inputs mean no pseudo-observables.
    """

    Z_pseudo: Array
    D_pseudo: Array

    def __post_init__(self) -> None:
        Z_pseudo = np.array(self.Z_pseudo, dtype=float)
        if Z_pseudo.size == 0:
            Z_pseudo = np.zeros((0, Z_pseudo.shape[1] if Z_pseudo.ndim == 2 else 0))
        Z_pseudo = _matrix("Z_pseudo", Z_pseudo)
        object.__setattr__(self, "Z_pseudo", Z_pseudo)
        object.__setattr__(self, "D_pseudo", _vector("D_pseudo", self.D_pseudo, Z_pseudo.shape[0]))


@dataclass(frozen=True)
class StateSpaceSystem:
    """Transition, measurement and optional pseudo-measurement equations.

    Parameters
    ----------
    transition : Transition
        ``T`` (n, n), ``R`` (n, m), ``C`` (n,).
    measurement : Measurement
        ``Z`` (p, n), ``D`` (p,), ``Q`` (m, m).
    pseudo_measurement : PseudoMeasurement or None
        ``Z_pseudo`` (q, n), ``D_pseudo`` (q,).  ``None`` when the model
        defines no pseudo-observables.

    Raises
    ------
    DimensionMismatch
        If the pieces are not conformable with the state dimension or
        ``Q`` does not match the number of shocks.
    """

    transition: Transition
    measurement: Measurement
    pseudo_measurement: PseudoMeasurement | None = None

    def __post_init__(self) -> None:
        n = self.n_states
        if self.measurement.Z.shape[1] != n:
            raise DimensionMismatch(
                f"Z must have {n} columns to match T, got shape {self.measurement.Z.shape}"
            )
        if self.measurement.Q.shape[0] != self.n_shocks:
            raise DimensionMismatch(
                f"Q must be {self.n_shocks}x{self.n_shocks} to match R, "
                f"got shape {self.measurement.Q.shape}"
            )
        pseudo = self.pseudo_measurement
        if pseudo is not None and pseudo.Z_pseudo.size == 0:
            object.__setattr__(self, "pseudo_measurement", PseudoMeasurement(np.zeros((0, n)), np.zeros(0)))
            pseudo = self.pseudo_measurement
        if pseudo is not None and pseudo.Z_pseudo.shape[1] != n:
            raise DimensionMismatch(
                f"Z_pseudo must have {n} columns to match T, got shape {pseudo.Z_pseudo.shape}"
            )

    @classmethod
    def from_matrices(
        cls,
        T: Array,
        R: Array,
        C: Array,
        Q: Array,
        Z: Array,
        D: Array,
        Z_pseudo: Array | None = None,
        D_pseudo: Array | None = None,
    ) -> "StateSpaceSystem":
        """Build a system from bare matrices."""
        pseudo = None
        if Z_pseudo is not None and D_pseudo is not None:
            pseudo = PseudoMeasurement(Z_pseudo=Z_pseudo, D_pseudo=D_pseudo)
        return cls(
            transition=Transition(T=T, R=R, C=C),
            measurement=Measurement(Z=Z, D=D, Q=Q),
            pseudo_measurement=pseudo,
        )

    @classmethod
    def from_gensys(
        cls,
        solution: GensysSolution,
        Z: Array,
        D: Array,
        Q: Array,
        Z_pseudo: Array | None = None,
        D_pseudo: Array | None = None,
    ) -> "StateSpaceSystem":
        """Use ``G1``, ``impact`` and ``C`` of a gensys solution as ``T``, ``R``, ``C``.

        Raises
        ------
        ValueError
            If the solution does not exist (``eu[0] != 1``).
        """
        if not solution.exists:
            raise ValueError(f"gensys solution is not usable: eu={solution.eu} ({solution.reason})")
        return cls.from_matrices(
            T=solution.G1,
            R=solution.impact,
            C=solution.C,
            Q=Q,
            Z=Z,
            D=D,
            Z_pseudo=Z_pseudo,
            D_pseudo=D_pseudo,
        )

    @property
    def n_states(self) -> int:
        return self.transition.T.shape[0]

    @property
    def n_shocks(self) -> int:
        return self.transition.R.shape[1]

    @property
    def n_observables(self) -> int:
        return self.measurement.Z.shape[0]

    @property
    def has_pseudo(self) -> bool:
        """Whether pseudo-measurement matrices are present and non-empty."""
        pseudo = self.pseudo_measurement
        return pseudo is not None and pseudo.Z_pseudo.size > 0 and pseudo.D_pseudo.size > 0

    @property
    def n_pseudo(self) -> int:
        return self.pseudo_measurement.Z_pseudo.shape[0] if self.has_pseudo else 0
