"""Generalised complex Schur (QZ) decomposition with stability reordering.

For a square matrix pencil ``(A, B)`` the complex QZ decomposition is

.. math::

    A = Q S Z^H, \\qquad B = Q T Z^H

with unitary ``Q`` and ``Z`` and upper-triangular ``S`` and ``T``.  The
generalised eigenvalues of the pencil are the ratios ``T_ii / S_ii``; an
entry with ``S_ii`` numerically zero is an infinite eigenvalue.

gensys needs the decomposition reordered so that the stable roots
(modulus below a cutoff slightly above one) occupy the leading block.  This
module wraps :func:`scipy.linalg.qz` and :func:`scipy.linalg.ordqz` for that
purpose and converts LAPACK failures into :class:`DecompositionFailure`.

References
----------
Moler, C. B. and Stewart, G. W. (1973). "An Algorithm for Generalized
    Matrix Eigenvalue Problems." *SIAM Journal on Numerical Analysis*,
    10(2), 241-256.
Sims, C. A. (2002). "Solving Linear Rational Expectations Models."
    *Computational Economics*, 20(1-2), 1-20.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

import numpy as np
from scipy.linalg import LinAlgError, ordqz, qz

from .errors import DecompositionFailure, DimensionMismatch

Array = np.ndarray
StabilityPredicate = Callable[[Array, Array], Array]


def compute_generalized_eigenvalues(s_diag: Array, t_diag: Array, singular_tol: float) -> Array:
    """Compute generalised eigenvalues ``t_ii / s_ii`` from QZ output.

    Entries where ``|s_ii|`` is below *singular_tol* are mapped to
    ``inf`` (infinite eigenvalues, always unstable).

    Parameters
    ----------
    s_diag : Array
        Diagonal of the S factor (from the lead matrix ``A``).
    t_diag : Array
        Diagonal of the T factor (from the lag matrix ``B``).
    singular_tol : float
        Threshold below which ``|s_ii|`` is considered zero.

    Returns
    -------
    Array
        Complex generalised eigenvalues in the order of the diagonals.
    """
    s_diag = np.asarray(s_diag, dtype=complex)
    t_diag = np.asarray(t_diag, dtype=complex)
    with np.errstate(divide="ignore", invalid="ignore"):
        eigenvalues = t_diag / s_diag
    return np.where(np.abs(s_diag) < singular_tol, complex(np.inf, 0.0), eigenvalues)


def classify_bk_failure(unstable_count: int, expected_unstable: int) -> str:
    """Classify a Blanchard-Kahn root count.

    Parameters
    ----------
    unstable_count : int
        Number of unstable generalised eigenvalues.
    expected_unstable : int
        Number of independent expectational errors available to offset
        them.

    Returns
    -------
    str
        ``"indeterminacy"`` if there are too few unstable roots,
        ``"no_stable_equilibrium"`` if there are too many, otherwise
        ``"ok"``.  The count is a heuristic; the rank checks in gensys
        decide ``eu``.
    """
    if unstable_count < expected_unstable:
        return "indeterminacy"
    if unstable_count > expected_unstable:
        return "no_stable_equilibrium"
    return "ok"


def stability_predicate(stake: float) -> StabilityPredicate:
    """Return the gensys selector for stable roots.

    A root is stable unless ``|t_ii| > stake * |s_ii|``.  An entry with
    ``s_ii == 0`` and ``t_ii != 0`` is therefore never stable.
    """

    def stable(s_diag: Array, t_diag: Array) -> Array:
        return ~(np.abs(t_diag) > stake * np.abs(s_diag))

    return stable


@dataclass
class GeneralizedSchur:
    """Complex generalised Schur form of a matrix pencil ``(A, B)``.

    Attributes
    ----------
    S, T : Array, shape (n, n)
        Upper-triangular factors with ``A = Q S Z^H`` and ``B = Q T Z^H``.
    Q, Z : Array, shape (n, n)
        Unitary Schur vectors.
    singular_tol : float
        Threshold below which a diagonal entry of ``S`` marks an infinite
        eigenvalue.
    """

    S: Array
    T: Array
    Q: Array
    Z: Array
    singular_tol: float = 1e-12
    _a: Array | None = field(default=None, repr=False)
    _b: Array | None = field(default=None, repr=False)

    @classmethod
    def decompose(cls, a: Array, b: Array, *, singular_tol: float = 1e-12) -> "GeneralizedSchur":
        """Compute the unordered complex QZ decomposition of ``(a, b)``.

        Raises
        ------
        DimensionMismatch
            If *a* and *b* are not square matrices of equal size.
        DecompositionFailure
            If the inputs contain non-finite entries or LAPACK does not
            converge.
        """
        a = np.array(a, dtype=complex)
        b = np.array(b, dtype=complex)
        if a.ndim != 2 or a.shape[0] != a.shape[1]:
            raise DimensionMismatch(f"A must be square, got shape {a.shape}")
        if b.shape != a.shape:
            raise DimensionMismatch(f"B must have shape {a.shape}, got {b.shape}")
        if a.shape[0] == 0:
            raise DimensionMismatch("matrix pencil must be non-empty")
        if not (np.all(np.isfinite(a)) and np.all(np.isfinite(b))):
            raise DecompositionFailure("matrix pencil contains non-finite entries")

        try:
            s, t, q, z = qz(a, b, output="complex")
        except (LinAlgError, ValueError) as exc:
            raise DecompositionFailure(str(exc)) from exc

        return cls(S=s, T=t, Q=q, Z=z, singular_tol=singular_tol, _a=a, _b=b)

    @property
    def n(self) -> int:
        return self.S.shape[0]

    @property
    def s_diag(self) -> Array:
        return np.diag(self.S).copy()

    @property
    def t_diag(self) -> Array:
        return np.diag(self.T).copy()

    def eigenvalues(self) -> Array:
        """Ordered generalised eigenvalues ``T_ii / S_ii`` (``inf`` if ``S_ii ~ 0``)."""
        return compute_generalized_eigenvalues(self.s_diag, self.t_diag, self.singular_tol)

    def has_coincident_zeros(self, tol: float) -> bool:
        """Whether some ``S_ii`` and ``T_ii`` are simultaneously below *tol*.

        A coincident zero means the pencil is singular: the generalised
        eigenvalue is undefined and gensys cannot classify the root.
        """
        both = (np.abs(self.s_diag) < tol) & (np.abs(self.t_diag) < tol)
        return bool(np.any(both))

    def reorder(self, predicate: StabilityPredicate) -> int:
        """Reorder the decomposition so that selected roots lead.

        *predicate* receives the diagonals of ``S`` and ``T`` and returns a
        boolean mask of roots to move into the leading block.  ``S``, ``T``,
        ``Q`` and ``Z`` are replaced in place.

        Returns
        -------
        int
            Number of selected (stable) roots.
        """
        if self._a is None or self._b is None:
            self._a = self.Q @ self.S @ self.Z.conj().T
            self._b = self.Q @ self.T @ self.Z.conj().T

        selected = int(np.sum(predicate(self.s_diag, self.t_diag)))
        try:
            s, t, _, _, q, z = ordqz(self._a, self._b, sort=predicate, output="complex")
        except (LinAlgError, ValueError) as exc:
            raise DecompositionFailure(str(exc)) from exc

        self.S, self.T, self.Q, self.Z = s, t, q, z
        return selected
