"""Sims (2002) gensys solver for linear rational-expectations models.

The structural model is written in implicit form

.. math::

    \\Gamma_0 y_t = \\Gamma_1 y_{t-1} + C + \\Psi \\varepsilon_t + \\Pi \\eta_t

where :math:`\\varepsilon_t` are exogenous shocks and :math:`\\eta_t` are
expectational errors, which are endogenous to the solution.  gensys finds
the minimal-state-variable solution

.. math::

    y_t = G_1 y_{t-1} + C_{out} + \\text{impact} \\, \\varepsilon_t

Algorithm outline
-----------------
1. Compute the complex QZ decomposition of ``(Gamma0, Gamma1)`` and reorder
   it so that the roots with ``|t_ii| <= stake * |s_ii|`` lead.
2. Existence: the unstable rows ``Q_2^H Pi`` must span the whole unstable
   block, so that the expectational errors can offset every explosive
   direction.
3. Uniqueness: the part of the stable-block loading ``Q_1^H Pi`` not
   determined by the unstable block is "loose"; its rank is the number of
   indeterminate (sunspot) directions.
4. Eliminate the unstable block and rotate back with ``Z``.

Existence and uniqueness are reported in ``eu`` rather than raised, because
a model without a unique stable solution is a valid research outcome (for
example a parameter draw in the indeterminacy region).

Results are sensitive to ``stake`` when a root has modulus close to the
cutoff; compare outputs with tolerances rather than exact equality.

References
----------
Sims, C. A. (2002). "Solving Linear Rational Expectations Models."
    *Computational Economics*, 20(1-2), 1-20.
Blanchard, O. J. and Kahn, C. M. (1980). "The Solution of Linear
    Difference Models under Rational Expectations." *Econometrica*,
    48(5), 1305-1311.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .errors import DimensionMismatch
from .qz import (
    GeneralizedSchur,
    classify_bk_failure,
    compute_generalized_eigenvalues,
    stability_predicate,
)

Array = np.ndarray

logger = logging.getLogger(__name__)

DEFAULT_STAKE = 1.0 + 1e-6
REALSMALL = 1e-6


@dataclass(frozen=True)
class GensysSolution:
    """Reduced-form solution returned by :func:`gensys`.

    Attributes
    ----------
    G1 : Array, shape (n, n)
        Transition matrix of the reduced form.
    C : Array, shape (n,)
        Constant vector of the reduced form.
    impact : Array, shape (n, k)
        Loading of the exogenous shocks on ``y_t``.
    fmat : Array, shape (n_unstable, n_unstable)
        Forward dynamics of the unstable block, ``T_22^{-1} S_22``.
    fwt : Array, shape (n_unstable, k)
        Forward loading of the shocks on the unstable block.
    ywt : Array, shape (n, n_unstable)
        Mapping from the unstable block back to ``y_t``.
    gev : Array, shape (n, 2)
        Ordered diagonals of ``S`` (column 0) and ``T`` (column 1).
    eu : tuple of int
        ``(existence, uniqueness)``: ``(1, 1)`` unique stable solution,
        ``(1, 0)`` solution exists but is not unique, ``(0, *)`` no stable
        solution, ``(-2, -2)`` coincident zeros in the pencil.
    loose : int
        Number of loose (underdetermined) expectational-error directions.
    loose_matrix : Array, shape (n, l)
        Response of ``y_t`` to the loose part of the expectational errors.
        The returned solution sets those directions to zero.
    stake : float
        Stability cutoff used for the partition.
    """

    G1: Array
    C: Array
    impact: Array
    fmat: Array
    fwt: Array
    ywt: Array
    gev: Array
    eu: tuple[int, int]
    loose: int
    loose_matrix: Array
    stake: float = DEFAULT_STAKE

    @property
    def exists(self) -> bool:
        return self.eu[0] == 1

    @property
    def unique(self) -> bool:
        return self.eu[1] == 1

    @property
    def reason(self) -> str:
        """One of ``"ok"``, ``"no_stable_equilibrium"``, ``"indeterminacy"``
        or ``"coincident_zeros"``."""
        if self.eu == (-2, -2):
            return "coincident_zeros"
        if not self.exists:
            return "no_stable_equilibrium"
        if not self.unique:
            return "indeterminacy"
        return "ok"

    @property
    def eigenvalues(self) -> Array:
        """Ordered generalised eigenvalues ``t_ii / s_ii``."""
        if self.gev.size == 0:
            return np.zeros(0, dtype=complex)
        return compute_generalized_eigenvalues(self.gev[:, 0], self.gev[:, 1], singular_tol=1e-12)

    @property
    def n_unstable(self) -> int:
        return self.fmat.shape[0]

    @property
    def n_stable(self) -> int:
        return self.gev.shape[0] - self.n_unstable


def _as_square(name: str, value: Array) -> Array:
    out = np.asarray(value, dtype=float)
    if out.ndim != 2 or out.shape[0] != out.shape[1]:
        raise DimensionMismatch(f"{name} must be a square matrix, got shape {out.shape}")
    return out


def _as_loading(name: str, value: Array, n: int) -> Array:
    out = np.asarray(value, dtype=float)
    if out.ndim == 1:
        out = out.reshape(-1, 1) if out.size else np.zeros((n, 0))
    if out.ndim != 2 or out.shape[0] != n:
        raise DimensionMismatch(f"{name} must have {n} rows, got shape {out.shape}")
    return out


def _validate_structural(
    g0: Array, g1: Array, c: Array, psi: Array, pi: Array
) -> tuple[Array, Array, Array, Array, Array]:
    g0 = _as_square("Gamma0", g0)
    g1 = _as_square("Gamma1", g1)
    if g1.shape != g0.shape:
        raise DimensionMismatch(f"Gamma1 must have shape {g0.shape}, got {g1.shape}")
    n = g0.shape[0]
    if n == 0:
        raise DimensionMismatch("Gamma0 must be non-empty")

    c = np.asarray(c, dtype=float)
    if c.size != n or (c.ndim == 2 and c.shape[1] != 1) or c.ndim > 2:
        raise DimensionMismatch(f"C must be a vector of length {n}, got shape {c.shape}")
    c = c.reshape(-1)

    return g0, g1, c, _as_loading("Psi", psi, n), _as_loading("Pi", pi, n)


def _retained_svd(mat: Array, tol: float) -> tuple[Array, Array, Array]:
    """Thin SVD keeping singular values above *tol*.

    Returns ``(U, d, V)`` with ``mat ~ U diag(d) V^H``; ``V`` holds right
    singular vectors as columns.
    """
    rows, cols = mat.shape
    if mat.size == 0:
        return np.zeros((rows, 0), dtype=complex), np.zeros(0), np.zeros((cols, 0), dtype=complex)
    u, d, vh = np.linalg.svd(mat, full_matrices=False)
    keep = d > tol
    return u[:, keep], d[keep], vh[keep, :].conj().T


def _coincident_zero_solution(stake: float) -> GensysSolution:
    empty = np.zeros((0, 0))
    return GensysSolution(
        G1=empty,
        C=np.zeros(0),
        impact=empty,
        fmat=np.zeros((0, 0), dtype=complex),
        fwt=np.zeros((0, 0), dtype=complex),
        ywt=np.zeros((0, 0), dtype=complex),
        gev=np.zeros((0, 2), dtype=complex),
        eu=(-2, -2),
        loose=0,
        loose_matrix=empty,
        stake=stake,
    )


def gensys(
    g0: Array,
    g1: Array,
    c: Array,
    psi: Array,
    pi: Array,
    stake: float = DEFAULT_STAKE,
    *,
    realsmall: float = REALSMALL,
) -> GensysSolution:
    """Solve ``Gamma0 y_t = Gamma1 y_{t-1} + C + Psi eps_t + Pi eta_t``.

    Parameters
    ----------
    g0, g1 : Array, shape (n, n)
        Coefficients on ``y_t`` and ``y_{t-1}``.
    c : Array, shape (n,) or (n, 1)
        Constant term.
    psi : Array, shape (n, k)
        Loading of the exogenous shocks.
    pi : Array, shape (n, l)
        Loading of the expectational errors.
    stake : float
        Roots with ``|t_ii| > stake * |s_ii|`` are unstable.  Default
        ``1 + 1e-6``.
    realsmall : float
        Threshold for numerically zero singular values and diagonal
        entries.

    Returns
    -------
    GensysSolution
        Reduced form plus diagnostics.  Inspect ``eu`` before using
        ``G1`` and ``impact``.

    Raises
    ------
    DimensionMismatch
        If the inputs are not conformable.
    DecompositionFailure
        If the QZ decomposition cannot be computed.
    """
    g0, g1, c, psi, pi = _validate_structural(g0, g1, c, psi, pi)
    if not np.isfinite(stake) or stake <= 0.0:
        raise ValueError(f"stake must be a positive finite number, got {stake}")

    n = g0.shape[0]
    n_shocks = psi.shape[1]
    neta = pi.shape[1]

    schur = GeneralizedSchur.decompose(g0, g1)
    if schur.has_coincident_zeros(realsmall):
        logger.warning("Coincident zeros in the QZ decomposition: indeterminacy and/or nonexistence.")
        return _coincident_zero_solution(stake)

    n_stable = schur.reorder(stability_predicate(stake))
    nunstab = n - n_stable
    logger.debug("gensys: n=%d, stable roots=%d, unstable roots=%d", n, n_stable, nunstab)
    n_eta = int(np.linalg.matrix_rank(pi, tol=realsmall)) if neta else 0
    logger.debug(
        "Blanchard-Kahn count: %d unstable roots, %d independent expectational errors (%s)",
        nunstab,
        n_eta,
        classify_bk_failure(nunstab, n_eta),
    )

    a, b, q, z = schur.S, schur.T, schur.Q, schur.Z
    gev = np.column_stack([np.diag(a), np.diag(b)])

    qh = q.conj().T
    q1h = qh[:n_stable, :]
    q2h = qh[n_stable:, :]

    # Existence: the retained left singular vectors of Q2^H Pi must span
    # the whole unstable block.
    etawt = q2h @ pi
    ueta, deta, veta = _retained_svd(etawt, realsmall)
    residual = np.linalg.norm(np.eye(nunstab) - ueta @ ueta.conj().T) if nunstab else 0.0
    existence = residual <= realsmall * n
    if not existence:
        logger.warning(
            "%d unstable roots but only %d independent expectational errors: no stable solution.",
            nunstab,
            deta.size,
        )

    # Uniqueness: expectational errors loading on the stable block that the
    # unstable block leaves undetermined.
    etawt1 = q1h @ pi
    ueta1, deta1, veta1 = _retained_svd(etawt1, realsmall)
    if veta1.shape[1] == 0:
        n_loose = 0
    else:
        loose_dirs = veta1 - veta @ (veta.conj().T @ veta1)
        n_loose = int(np.sum(np.linalg.svd(loose_dirs, compute_uv=False) > realsmall * n))
    if n_loose:
        logger.warning("Indeterminacy: %d loose endogenous error(s).", n_loose)

    eu = (int(existence), int(n_loose == 0))

    coupling = ueta @ (veta.conj().T / deta[:, None]) @ veta1 @ (deta1[:, None] * ueta1.conj().T)
    tmat = np.hstack([np.eye(n_stable), -coupling.conj().T])

    g0_block = np.vstack([tmat @ a, np.hstack([np.zeros((nunstab, n_stable)), np.eye(nunstab)])])
    g1_block = np.vstack([tmat @ b, np.zeros((nunstab, n))])

    # The upper-left block of g0_block is S_11, whose diagonal has no zeros
    # once coincident zeros are ruled out, so g0_block is invertible.
    g0_inv = np.linalg.inv(g0_block)
    G1 = g0_inv @ g1_block

    a22 = a[n_stable:, n_stable:]
    b22 = b[n_stable:, n_stable:]
    if nunstab:
        c_unstable = np.linalg.solve(a22 - b22, q2h @ c)
        b22_inv = np.linalg.inv(b22)
    else:
        c_unstable = np.zeros(0, dtype=complex)
        b22_inv = np.zeros((0, 0), dtype=complex)

    C = g0_inv @ np.concatenate([tmat @ (qh @ c), c_unstable])
    impact = g0_inv @ np.vstack([tmat @ (qh @ psi), np.zeros((nunstab, n_shocks))])
    fmat = b22_inv @ a22
    fwt = -b22_inv @ (q2h @ psi)
    ywt = z @ g0_inv[:, n_stable:]

    loose_matrix = g0_inv @ np.vstack(
        [etawt1 @ (np.eye(neta) - veta @ veta.conj().T), np.zeros((nunstab, neta))]
    )

    zh = z.conj().T
    return GensysSolution(
        G1=np.real(z @ G1 @ zh),
        C=np.real(z @ C),
        impact=np.real(z @ impact),
        fmat=fmat,
        fwt=fwt,
        ywt=ywt,
        gev=gev,
        eu=eu,
        loose=n_loose,
        loose_matrix=np.real(z @ loose_matrix),
        stake=stake,
    )


def solve(
    g0: Array,
    g1: Array,
    c: Array,
    psi: Array,
    pi: Array,
    stake: float = DEFAULT_STAKE,
) -> GensysSolution:
    """Solve a structural system with gensys; see :func:`gensys`."""
    return gensys(g0, g1, c, psi, pi, stake)
