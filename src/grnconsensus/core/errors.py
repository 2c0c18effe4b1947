"""
Exception taxonomy for consensus network inference.

Fatal vs recoverable:
    InvalidRegulatorError       -- fatal, aborts the whole run
    ScorerFailure               -- recoverable, controlled by the failure policy
    UnfittableTopologyError     -- recoverable, the pipeline falls back to the
                                   unfiltered consensus network
    DegenerateDistributionError -- internal to the power-law fit, converted by
                                   the topology filter into a skipped candidate
"""

from __future__ import annotations

__all__ = [
    'GRNInferenceError',
    'InvalidRegulatorError',
    'ScorerFailure',
    'UnfittableTopologyError',
    'DegenerateDistributionError',
]


class GRNInferenceError(Exception):
    """Base class for all inference errors raised by grnconsensus."""
    pass


class InvalidRegulatorError(GRNInferenceError):
    """Raised when none of the supplied regulators exist in the expression matrix."""
    pass


class ScorerFailure(GRNInferenceError):
    """
    Raised when one edge scorer fails or times out.

    Attributes:
        scorer_name: Name of the scorer that failed ("ensemble" when every
            scorer failed)
        cause: Underlying exception (a TimeoutError for timeouts)
    """

    def __init__(self, scorer_name: str, message: str, cause: BaseException | None = None):
        super().__init__(f"{scorer_name}: {message}")
        self.scorer_name = scorer_name
        self.message = message
        self.cause = cause


class UnfittableTopologyError(GRNInferenceError):
    """Raised when no candidate subgraph admits a power-law fit."""
    pass


class DegenerateDistributionError(GRNInferenceError):
    """Raised when a degree sequence is too small or too uniform to fit."""
    pass
