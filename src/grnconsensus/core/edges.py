"""
Column conventions and validation for directed edge lists.

Edge lists are plain pandas DataFrames so they can flow straight into
networkx, CSV writers or downstream R tooling:

    Scorer output:     Regulator | Target | Score
    Consensus output:  Regulator | Target | CombinedRank | Support
"""

from __future__ import annotations

import pandas as pd

__all__ = [
    'REGULATOR',
    'TARGET',
    'SCORE',
    'RANK',
    'COMBINED_RANK',
    'SUPPORT',
    'EDGE_KEY',
    'empty_edge_list',
    'validate_edge_list',
]

REGULATOR = "Regulator"
TARGET = "Target"
SCORE = "Score"
RANK = "Rank"
COMBINED_RANK = "CombinedRank"
SUPPORT = "Support"

EDGE_KEY = [REGULATOR, TARGET]


def empty_edge_list() -> pd.DataFrame:
    return pd.DataFrame({
        REGULATOR: pd.Series(dtype=str),
        TARGET: pd.Series(dtype=str),
        SCORE: pd.Series(dtype=float),
    })


def validate_edge_list(edges: pd.DataFrame, source: str = "edge list") -> pd.DataFrame:
    """
    Check that a scorer edge list honours the edge-list contract.

    Contract:
        - columns Regulator, Target, Score
        - no self-loops
        - at most one row per (Regulator, Target)
        - finite scores

    Args:
        edges: Edge list to validate
        source: Name used in error messages (usually the scorer name)

    Returns:
        The edge list restricted to the three contract columns, index reset.

    Raises:
        ValueError: If any part of the contract is violated
    """
    missing = [c for c in (REGULATOR, TARGET, SCORE) if c not in edges.columns]
    if missing:
        raise ValueError(f"{source} is missing columns {missing}")

    out = edges[[REGULATOR, TARGET, SCORE]].reset_index(drop=True)

    if (out[REGULATOR] == out[TARGET]).any():
        raise ValueError(f"{source} contains self-loops")
    if out.duplicated(subset=EDGE_KEY).any():
        n_dup = int(out.duplicated(subset=EDGE_KEY).sum())
        raise ValueError(f"{source} contains {n_dup} duplicated (Regulator, Target) pairs")

    scores = pd.to_numeric(out[SCORE], errors="coerce")
    if scores.isna().any() or not scores.abs().lt(float("inf")).all():
        raise ValueError(f"{source} contains missing or non-finite scores")

    out[SCORE] = scores.astype(float)
    return out
