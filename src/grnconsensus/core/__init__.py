"""
Core data structures shared by every stage of the inference pipeline.

1. ExpressionMatrix: validated genes x samples matrix
2. Edge-list column conventions (Regulator, Target, Score, CombinedRank)
3. Exception taxonomy (InvalidRegulatorError, ScorerFailure, ...)
"""

from grnconsensus.core.errors import (
    GRNInferenceError,
    InvalidRegulatorError,
    ScorerFailure,
    UnfittableTopologyError,
    DegenerateDistributionError,
)
from grnconsensus.core.expression import ExpressionMatrix, to_expression_matrix

__all__ = [
    'ExpressionMatrix',
    'to_expression_matrix',
    'GRNInferenceError',
    'InvalidRegulatorError',
    'ScorerFailure',
    'UnfittableTopologyError',
    'DegenerateDistributionError',
]
