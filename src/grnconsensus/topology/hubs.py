"""
Hub regulators of an inferred regulatory network.

Hubs are the regulators with the highest out-degree, i.e. the transcription
factors controlling the most targets. Only regulator nodes are ranked;
targets never count as hubs.
"""

from __future__ import annotations

import math
from typing import Iterable

import pandas as pd

from grnconsensus.topology.power_law import degree_sequence

__all__ = ['get_hubs']


def get_hubs(
    edges: pd.DataFrame,
    top_percentile: float = 0.1,
    top_n: int | None = None,
    regulators: Iterable[str] | None = None,
) -> pd.DataFrame:
    """
    Identify hub regulators by out-degree.

    Args:
        edges: Directed edge list, first two columns regulator and target
        top_percentile: Fraction of regulators reported as hubs (default 0.1),
            rounded down. Ignored when ``top_n`` is given.
        top_n: Number of hubs to report
        regulators: Regulator set. Default: every source node of ``edges``.

    Returns:
        DataFrame with columns Gene and Degree, sorted by degree (descending)
        then gene identifier

    Raises:
        ValueError: If top_percentile is outside (0, 1] or top_n is negative
    """
    if top_n is None and not 0 < top_percentile <= 1:
        raise ValueError(f"top_percentile must be in (0, 1], got {top_percentile}")
    if top_n is not None and top_n < 0:
        raise ValueError(f"top_n must be non-negative, got {top_n}")

    degrees = degree_sequence(edges, net_type="grn", regulators=regulators)
    table = pd.DataFrame({"Gene": degrees.index.astype(str), "Degree": degrees.to_numpy()})
    table = table.sort_values(
        ["Degree", "Gene"], ascending=[False, True], kind="mergesort"
    ).reset_index(drop=True)

    n_hubs = top_n if top_n is not None else math.floor(len(table) * top_percentile)
    return table.head(n_hubs).reset_index(drop=True)
