"""
Rank aggregation across scorers ("wisdom of the crowds").

Score scales differ between inference families (forest importances, CLR
z-scores, mutual information in nats), so scores are never compared
directly. Each scorer's edge list is converted to ranks within that list,
and the consensus rank of an edge is the mean of its ranks over the scorers
that reported it.

Ranking rules:
    - Rank 1 = strongest evidence (highest score)
    - Ties share the average of the ranks they span (1, 2.5, 2.5, 4)
    - Edges missing from a scorer's list are not imputed; the scorer
      abstained and simply does not contribute to that edge's mean
    - The consensus is sorted by combined rank, ties broken by
      (Regulator, Target) in lexicographic order

Because the combined rank is an average of the reported ranks, it always lies
between the best and the worst individual rank of the edge.

Examples:
    >>> import pandas as pd
    >>> from grnconsensus.consensus import aggregate_ranks
    >>> a = pd.DataFrame({"Regulator": ["A", "A"], "Target": ["B", "C"], "Score": [0.9, 0.1]})
    >>> b = pd.DataFrame({"Regulator": ["A"], "Target": ["C"], "Score": [5.0]})
    >>> consensus = aggregate_ranks({"genie3": a, "clr": b})
    >>> consensus["Target"].tolist(), consensus["CombinedRank"].tolist()
    (['B', 'C'], [1.0, 1.5])
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

import pandas as pd

from grnconsensus.core.edges import (
    COMBINED_RANK,
    EDGE_KEY,
    RANK,
    REGULATOR,
    SCORE,
    SUPPORT,
    TARGET,
    validate_edge_list,
)

logger = logging.getLogger(__name__)

__all__ = [
    'DEFAULT_TIE_BREAK',
    'rank_edges',
    'rank_matrix',
    'aggregate_ranks',
]

DEFAULT_TIE_BREAK = (REGULATOR, TARGET)


def rank_edges(edge_list: pd.DataFrame, source: str = "edge list") -> pd.DataFrame:
    """
    Rank edges within a single scorer's edge list.

    Args:
        edge_list: DataFrame with Regulator, Target, Score
        source: Name used in validation messages

    Returns:
        Copy of the edge list with an added Rank column
        (1 = highest score, average rank for ties)
    """
    ranked = validate_edge_list(edge_list, source=source)
    ranked[RANK] = ranked[SCORE].rank(ascending=False, method="average")
    return ranked


def rank_matrix(edge_lists: Mapping[str, pd.DataFrame]) -> pd.DataFrame:
    """
    Wide table of per-scorer ranks.

    Returns:
        DataFrame indexed by (Regulator, Target), one column per scorer in
        sorted name order, NaN where a scorer did not report the edge.
    """
    columns = []
    for name in sorted(edge_lists):
        ranked = rank_edges(edge_lists[name], source=name)
        columns.append(ranked.set_index(EDGE_KEY)[RANK].rename(name))

    if not columns:
        return pd.DataFrame(index=pd.MultiIndex.from_tuples([], names=EDGE_KEY))

    return pd.concat(columns, axis=1, join="outer")


def _validate_tie_break(tie_break: Sequence[str]) -> list[str]:
    keys = list(tie_break)
    if sorted(keys) != sorted(EDGE_KEY):
        raise ValueError(
            f"tie_break must be an ordering of {EDGE_KEY}, got {keys}"
        )
    return keys


def aggregate_ranks(
    edge_lists: Mapping[str, pd.DataFrame],
    tie_break: Sequence[str] = DEFAULT_TIE_BREAK,
) -> pd.DataFrame:
    """
    Combine per-scorer rankings into one consensus edge list.

    Args:
        edge_lists: Scorer name -> edge list (Regulator, Target, Score)
        tie_break: Secondary sort key for equal combined ranks, an ordering
            of ("Regulator", "Target")

    Returns:
        DataFrame with Regulator, Target, CombinedRank, Support sorted
        ascending by CombinedRank then the tie-break key, index reset.
        Support is the number of scorers that reported the edge.

    Raises:
        ValueError: If no edge lists are given or an edge list is malformed
    """
    if not edge_lists:
        raise ValueError("No edge lists to aggregate")

    keys = _validate_tie_break(tie_break)
    wide = rank_matrix(edge_lists)

    consensus = pd.DataFrame({
        COMBINED_RANK: wide.mean(axis=1, skipna=True),
        SUPPORT: wide.notna().sum(axis=1).astype(int),
    }).reset_index()

    consensus = consensus.sort_values(
        [COMBINED_RANK, *keys], kind="mergesort"
    ).reset_index(drop=True)

    consensus = consensus[[REGULATOR, TARGET, COMBINED_RANK, SUPPORT]]
    logger.info(
        f"Aggregated {len(edge_lists)} rankings into {len(consensus)} consensus edges "
        f"({int((consensus[SUPPORT] == len(edge_lists)).sum())} supported by all)"
    )
    return consensus
