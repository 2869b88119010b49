"""Exception hierarchy for the gensys solver and the forecast engine.

Only structural failures are raised: a QZ decomposition that cannot be
computed, inputs that are not conformable, and a zero-lower-bound correction
that cannot hold.  Non-existence and indeterminacy of a rational-expectations
solution are research outcomes, so they are reported through the ``eu`` code
of :class:`~gensys_py.gensys.GensysSolution` instead.
"""

from __future__ import annotations


class GensysError(Exception):
    """Base class for all errors raised by ``gensys_py``."""


class DecompositionFailure(GensysError, RuntimeError):
    """Raised when the generalised Schur (QZ) decomposition cannot be computed.

    Retrying with identical input is deterministic, so callers must change
    the input (typically the parameter draw) rather than retry.

    Attributes
    ----------
    reason : str
        Short description of the failure reported by the kernel.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"QZ decomposition failed: {reason}")


class DimensionMismatch(GensysError, ValueError):
    """Raised when input matrices are not conformable."""


class ZLBCorrectionFailure(GensysError, RuntimeError):
    """Raised when the zero-lower-bound shock correction cannot be enforced.

    Attributes
    ----------
    period : int
        Zero-based forecast period in which the correction failed.
    rate : float
        Value of the rate observable after the attempted correction.
    zlb_value : float
        The floor that the rate observable was required to respect.
    """

    def __init__(self, period: int, rate: float, zlb_value: float, detail: str = ""):
        self.period = period
        self.rate = rate
        self.zlb_value = zlb_value
        message = (
            "ZLB correction failed: "
            f"period={period}, rate={rate:.6g}, zlb_value={zlb_value:.6g}."
        )
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)
