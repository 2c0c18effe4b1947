"""
Scale-free topology check: discrete power-law fit of degree distributions.

Biological networks are expected to be approximately scale-free: most genes
have few connections and a few hubs have many. The fit tells how well a
network's degree distribution follows P(k) ~ k^(-alpha) for k >= xmin.

Algorithm (Clauset, Shalizi & Newman 2009, discrete case):
    1. Drop zero degrees (a power law is undefined at zero)
    2. For every candidate xmin (each distinct degree except the largest):
        a. Estimate alpha by maximum likelihood with the Hurwitz zeta
           normaliser, L(alpha) = -n log zeta(alpha, xmin) - alpha sum(log k)
        b. Compute the Kolmogorov-Smirnov distance D between the empirical
           and fitted CDFs of the tail k >= xmin
    3. Keep the xmin with the smallest D
    4. Report the KS p-value for D at the tail size (scipy ``kstwo``)

The KS p-value already accounts for the tail size, so it is comparable
across networks of different sizes; the sample sizes are reported alongside
so callers can weight further if they need to.

Network kinds for degree computation:
    "grn" -- directed, out-degree of regulator nodes
    "gcn" -- undirected co-expression network, self-loops ignored
    "ppi" -- undirected, plain degree

References:
    Clauset, A., Shalizi, C. R., & Newman, M. E. (2009). Power-law
    distributions in empirical data. SIAM Review, 51(4), 661-703.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

import networkx as nx
import numpy as np
import pandas as pd
from scipy import optimize, special, stats

from grnconsensus.core.errors import DegenerateDistributionError

logger = logging.getLogger(__name__)

__all__ = [
    'NET_TYPES',
    'MIN_DISTINCT_DEGREES',
    'PowerLawFit',
    'degree_sequence',
    'fit_power_law',
    'check_scale_free',
    'cormat_to_edgelist',
]

NET_TYPES = ("grn", "gcn", "ppi")
MIN_DISTINCT_DEGREES = 3

# Search interval for the exponent; zeta(alpha) diverges at alpha = 1
_ALPHA_BOUNDS = (1.0 + 1e-6, 10.0)


@dataclass(frozen=True)
class PowerLawFit:
    """
    Result of a discrete power-law fit.

    Attributes:
        alpha: Estimated exponent
        xmin: Lower bound of the power-law tail
        ks_statistic: Kolmogorov-Smirnov distance of the tail fit
        ks_pvalue: KS goodness-of-fit p-value (higher = better fit)
        n: Number of positive degrees in the input
        n_tail: Number of degrees >= xmin used in the fit
        log_likelihood: Log-likelihood of the tail at alpha
    """

    alpha: float
    xmin: int
    ks_statistic: float
    ks_pvalue: float
    n: int
    n_tail: int
    log_likelihood: float

    def is_scale_free(self, level: float = 0.05) -> bool:
        """True when the KS test does not reject the power law at ``level``."""
        return self.ks_pvalue >= level

    def to_dict(self) -> dict[str, object]:
        return {
            "exponent": self.alpha,
            "xmin": self.xmin,
            "ks_statistic": self.ks_statistic,
            "ks_pvalue": self.ks_pvalue,
            "n": self.n,
            "n_tail": self.n_tail,
            "log_likelihood": self.log_likelihood,
        }


def _build_graph(edges: pd.DataFrame, directed: bool) -> nx.Graph:
    if edges.shape[1] < 2:
        raise ValueError("Edge list needs at least two columns (source, target)")
    graph = nx.DiGraph() if directed else nx.Graph()
    graph.add_edges_from(zip(edges.iloc[:, 0], edges.iloc[:, 1]))
    return graph


def degree_sequence(
    edges: pd.DataFrame,
    net_type: str = "grn",
    regulators: Iterable[str] | None = None,
) -> pd.Series:
    """
    Degree of every node of an edge list.

    The first two columns of ``edges`` are read as source and target. Repeated
    pairs count once.

    Args:
        edges: Edge list (Regulator/Target, Node1/Node2, ...)
        net_type: "grn" (directed out-degree), "gcn" (undirected, no
            self-loops) or "ppi" (undirected degree)
        regulators: For "grn", restrict the sequence to these nodes. Default:
            the nodes that appear as sources.

    Returns:
        Integer Series named "Degree" indexed by node
    """
    if net_type not in NET_TYPES:
        raise ValueError(f"Invalid network type: {net_type}. Use one of {NET_TYPES}")

    if net_type == "grn":
        graph = _build_graph(edges, directed=True)
        if regulators is None:
            nodes = list(dict.fromkeys(edges.iloc[:, 0]))
        else:
            wanted = {str(r) for r in regulators}
            nodes = [n for n in graph.nodes if str(n) in wanted]
        degrees = {n: graph.out_degree(n) for n in nodes}
    elif net_type == "gcn":
        graph = _build_graph(edges, directed=False)
        graph.remove_edges_from(list(nx.selfloop_edges(graph)))
        degrees = dict(graph.degree())
    else:
        graph = _build_graph(edges, directed=False)
        degrees = dict(graph.degree())

    return pd.Series(degrees, dtype=int, name="Degree")


def _mle_alpha(tail: np.ndarray, xmin: int) -> tuple[float, float]:
    """Maximum-likelihood exponent and log-likelihood of a discrete tail."""
    n = tail.size
    sum_log = float(np.log(tail).sum())

    def neg_log_likelihood(a: float) -> float:
        return n * np.log(special.zeta(a, xmin)) + a * sum_log

    res = optimize.minimize_scalar(
        neg_log_likelihood, bounds=_ALPHA_BOUNDS, method="bounded"
    )
    return float(res.x), float(-res.fun)


def _ks_distance(tail: np.ndarray, xmin: int, alpha: float) -> float:
    """KS distance between the empirical tail CDF and the fitted discrete CDF."""
    values, counts = np.unique(tail, return_counts=True)
    empirical = np.cumsum(counts) / tail.size
    fitted = 1.0 - special.zeta(alpha, values + 1.0) / special.zeta(alpha, xmin)
    return float(np.max(np.abs(empirical - fitted)))


def fit_power_law(
    degrees: Sequence[int] | np.ndarray | pd.Series,
    xmin: int | None = None,
    min_distinct: int = MIN_DISTINCT_DEGREES,
) -> PowerLawFit:
    """
    Fit a discrete power law to a degree sequence.

    Args:
        degrees: Non-negative integer degrees; zeros are ignored
        xmin: Fixed lower bound. Default: chosen by minimum KS distance.
        min_distinct: Minimum number of distinct positive degrees required

    Returns:
        PowerLawFit for the selected tail

    Raises:
        DegenerateDistributionError: If the sequence is empty, all degrees are
            equal, or it has fewer than ``min_distinct`` distinct positive
            values (or the fixed ``xmin`` leaves fewer than two)
        ValueError: If degrees are negative or not integers
    """
    values = np.asarray(degrees, dtype=float).ravel()

    if values.size == 0:
        raise DegenerateDistributionError("Degree sequence is empty")
    if np.any(values < 0) or not np.all(np.isfinite(values)):
        raise ValueError("Degrees must be non-negative and finite")
    if np.any(values != np.round(values)):
        raise ValueError("Degrees must be integers")

    positive = values[values > 0]
    distinct = np.unique(positive)

    if distinct.size <= 1:
        raise DegenerateDistributionError(
            f"All {positive.size} positive degrees are equal; no distribution to fit"
        )
    if distinct.size < min_distinct:
        raise DegenerateDistributionError(
            f"Only {distinct.size} distinct degree values (need {min_distinct})"
        )

    if xmin is not None:
        if xmin < 1:
            raise ValueError(f"xmin must be >= 1, got {xmin}")
        if np.unique(positive[positive >= xmin]).size < 2:
            raise DegenerateDistributionError(
                f"Fewer than two distinct degrees at or above xmin={xmin}"
            )
        candidates = [float(xmin)]
    else:
        candidates = list(distinct[:-1])

    best: tuple[float, int, float, float, int] | None = None
    for xm in candidates:
        tail = positive[positive >= xm]
        alpha, loglik = _mle_alpha(tail, int(xm))
        distance = _ks_distance(tail, int(xm), alpha)
        if best is None or distance < best[0]:
            best = (distance, int(xm), alpha, loglik, tail.size)

    distance, best_xmin, alpha, loglik, n_tail = best
    pvalue = float(stats.kstwo.sf(distance, n_tail))

    return PowerLawFit(
        alpha=alpha,
        xmin=best_xmin,
        ks_statistic=distance,
        ks_pvalue=pvalue,
        n=int(positive.size),
        n_tail=int(n_tail),
        log_likelihood=loglik,
    )


def check_scale_free(
    edges: pd.DataFrame,
    net_type: str = "grn",
    regulators: Iterable[str] | None = None,
    alpha: float = 0.05,
) -> PowerLawFit:
    """
    Test a network for scale-free topology.

    Args:
        edges: Edge list, first two columns are the edge endpoints
        net_type: "grn", "gcn" or "ppi"
        regulators: For "grn", nodes whose out-degree is tested
        alpha: Significance level used for the log message

    Returns:
        PowerLawFit of the network's degree sequence

    Raises:
        DegenerateDistributionError: If the degree sequence cannot be fitted
    """
    degrees = degree_sequence(edges, net_type=net_type, regulators=regulators)
    fit = fit_power_law(degrees.to_numpy())

    if fit.is_scale_free(alpha):
        logger.info(f"Graph fits the scale-free topology. P-value: {fit.ks_pvalue:.4g}")
    else:
        logger.info(
            f"At the {1 - alpha:.0%} confidence level for the Kolmogorov-Smirnov "
            f"statistic, the graph does not fit the scale-free topology. "
            f"P-value: {fit.ks_pvalue:.4g}"
        )
    return fit


def cormat_to_edgelist(matrix: pd.DataFrame) -> pd.DataFrame:
    """
    Convert a symmetric correlation matrix to an undirected edge list.

    Only the upper triangle (diagonal excluded) is used; missing values are
    dropped.

    Returns:
        DataFrame with columns Node1, Node2, Weight
    """
    if matrix.shape[0] != matrix.shape[1]:
        raise ValueError(f"Correlation matrix must be square, got shape {matrix.shape}")

    rows, cols = np.triu_indices(matrix.shape[0], k=1)
    values = matrix.to_numpy(dtype=float)[rows, cols]
    edges = pd.DataFrame({
        "Node1": matrix.index.to_numpy()[rows].astype(str),
        "Node2": matrix.columns.to_numpy()[cols].astype(str),
        "Weight": values,
    })
    return edges.dropna(subset=["Weight"]).reset_index(drop=True)
