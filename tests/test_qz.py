"""Tests for the generalised Schur (QZ) kernel.

``GeneralizedSchur`` wraps the complex QZ decomposition ``A = Q S Z^H``,
``B = Q T Z^H`` and reorders it so that roots selected by a stability
predicate lead.  The generalised eigenvalues are the ratios ``T_ii / S_ii``;
a zero ``S_ii`` marks an infinite eigenvalue, which gensys must always treat
as unstable.
"""

import numpy as np
import pytest

from gensys_py.errors import DecompositionFailure, DimensionMismatch
from gensys_py.qz import (
    GeneralizedSchur,
    classify_bk_failure,
    compute_generalized_eigenvalues,
    stability_predicate,
)


def test_decomposition_reconstructs_pencil():
    rng = np.random.default_rng(1)
    a = rng.normal(size=(4, 4))
    b = rng.normal(size=(4, 4))

    schur = GeneralizedSchur.decompose(a, b)

    assert np.allclose(schur.Q @ schur.S @ schur.Z.conj().T, a, atol=1e-10)
    assert np.allclose(schur.Q @ schur.T @ schur.Z.conj().T, b, atol=1e-10)
    assert np.allclose(np.tril(schur.S, -1), 0.0, atol=1e-12)
    assert np.allclose(np.tril(schur.T, -1), 0.0, atol=1e-12)


def test_reorder_moves_stable_roots_first():
    """Eigenvalues 2.0 and 0.5: after reordering the stable root 0.5 leads."""
    a = np.eye(2)
    b = np.diag([2.0, 0.5])

    schur = GeneralizedSchur.decompose(a, b)
    n_stable = schur.reorder(stability_predicate(1.0 + 1e-6))

    assert n_stable == 1
    moduli = np.abs(schur.eigenvalues())
    assert np.isclose(moduli[0], 0.5)
    assert np.isclose(moduli[1], 2.0)
    assert np.allclose(schur.Q @ schur.S @ schur.Z.conj().T, a, atol=1e-10)
    assert np.allclose(schur.Q @ schur.T @ schur.Z.conj().T, b, atol=1e-10)


def test_infinite_eigenvalue_is_never_stable():
    """A singular lead matrix produces an infinite root, classified unstable."""
    a = np.diag([1.0, 0.0])
    b = np.diag([0.5, 1.0])

    schur = GeneralizedSchur.decompose(a, b)
    eigenvalues = schur.eigenvalues()

    assert np.sum(np.isinf(eigenvalues)) == 1
    assert schur.reorder(stability_predicate(1.0 + 1e-6)) == 1
    assert np.isclose(abs(schur.eigenvalues()[0]), 0.5)
    assert np.isinf(schur.eigenvalues()[1])


def test_compute_generalized_eigenvalues_maps_zero_lead_to_infinity():
    eigenvalues = compute_generalized_eigenvalues(
        np.array([2.0, 0.0]), np.array([1.0, 3.0]), singular_tol=1e-12
    )
    assert np.isclose(eigenvalues[0], 0.5)
    assert np.isinf(eigenvalues[1])


def test_coincident_zeros_are_detected():
    schur = GeneralizedSchur.decompose(np.diag([1.0, 0.0]), np.diag([0.5, 0.0]))
    assert schur.has_coincident_zeros(1e-6)


def test_non_finite_input_raises_decomposition_failure():
    a = np.array([[1.0, np.nan], [0.0, 1.0]])
    with pytest.raises(DecompositionFailure) as exc:
        GeneralizedSchur.decompose(a, np.eye(2))
    assert "non-finite" in exc.value.reason


def test_mismatched_pencil_raises_dimension_mismatch():
    with pytest.raises(DimensionMismatch):
        GeneralizedSchur.decompose(np.eye(2), np.eye(3))
    with pytest.raises(DimensionMismatch):
        GeneralizedSchur.decompose(np.ones((2, 3)), np.ones((2, 3)))


@pytest.mark.parametrize(
    "unstable, expected, label",
    [
        (1, 2, "indeterminacy"),
        (3, 2, "no_stable_equilibrium"),
        (2, 2, "ok"),
        (0, 0, "ok"),
    ],
)
def test_classify_bk_failure(unstable, expected, label):
    assert classify_bk_failure(unstable, expected) == label
