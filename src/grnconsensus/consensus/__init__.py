"""
Consensus ranking of edges reported by several scorers.
"""

from grnconsensus.consensus.aggregation import (
    DEFAULT_TIE_BREAK,
    aggregate_ranks,
    rank_edges,
    rank_matrix,
)

__all__ = [
    'DEFAULT_TIE_BREAK',
    'aggregate_ranks',
    'rank_edges',
    'rank_matrix',
]
