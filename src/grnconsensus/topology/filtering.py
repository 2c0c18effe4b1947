"""
Topology-adaptive filtering of a ranked consensus edge list.

A consensus ranking orders every scored edge but says nothing about how many
of them to keep. This module picks the network density whose regulator
out-degree distribution best matches a scale-free model.

Algorithm:
    1. Split the edge count E into k increasing thresholds
       ceil(E*1/k), ceil(E*2/k), ..., E (duplicates removed)
    2. For each threshold take the prefix of the consensus edge list
       (candidates are nested: every candidate contains all smaller ones)
    3. Compute the out-degree of the regulators in the candidate and fit a
       discrete power law; candidates whose degree sequence is degenerate
       are skipped
    4. Select a candidate by policy:
        "best"  -- highest KS p-value (ties: smaller candidate). Default,
                   independent of any significance cutoff.
        "first" -- smallest candidate whose p-value >= alpha; falls back to
                   "best" when none clears the cutoff

Examples:
    >>> from grnconsensus.topology import candidate_sizes
    >>> candidate_sizes(1000, 10)
    [100, 200, 300, 400, 500, 600, 700, 800, 900, 1000]
    >>> candidate_sizes(3, 10)
    [1, 2, 3]
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable

import pandas as pd

from grnconsensus.core.edges import COMBINED_RANK, REGULATOR, TARGET
from grnconsensus.core.errors import DegenerateDistributionError, UnfittableTopologyError
from grnconsensus.topology.power_law import PowerLawFit, degree_sequence, fit_power_law

logger = logging.getLogger(__name__)

__all__ = [
    'FILTER_POLICIES',
    'CandidateFit',
    'FilterResult',
    'candidate_sizes',
    'filter_by_topology',
]

FILTER_POLICIES = ("best", "first")

HISTORY_COLUMNS = [
    "n_edges", "fitted", "selected", "exponent", "xmin",
    "ks_statistic", "ks_pvalue", "log_likelihood", "n", "n_tail", "reason",
]


@dataclass(frozen=True)
class CandidateFit:
    """Power-law fit of one candidate subgraph (fit is None when skipped)."""
    n_edges: int
    fit: PowerLawFit | None
    reason: str | None = None

    @property
    def fitted(self) -> bool:
        return self.fit is not None


@dataclass
class FilterResult:
    """
    Selected network and per-candidate diagnostics.

    Attributes:
        network: Selected prefix of the consensus edge list
        n_edges: Number of edges in the selected network
        fit: Power-law fit of the selected network
        candidates: Every evaluated candidate, in increasing size
        policy: Selection policy that was applied
    """
    network: pd.DataFrame
    n_edges: int
    fit: PowerLawFit
    candidates: list[CandidateFit] = field(default_factory=list)
    policy: str = "best"

    @property
    def history(self) -> pd.DataFrame:
        """One row per candidate with its fit statistics."""
        rows = []
        for cand in self.candidates:
            row: dict[str, object] = {
                "n_edges": cand.n_edges,
                "fitted": cand.fitted,
                "selected": cand.n_edges == self.n_edges,
                "reason": cand.reason,
            }
            if cand.fit is not None:
                row.update(cand.fit.to_dict())
            rows.append(row)
        return pd.DataFrame(rows).reindex(columns=HISTORY_COLUMNS)


def candidate_sizes(n_edges: int, n_steps: int = 10) -> list[int]:
    """
    Nested candidate sizes for an edge list of length ``n_edges``.

    Returns at most min(n_steps, n_edges) strictly increasing sizes, the last
    one equal to ``n_edges``. An empty edge list yields no candidates.

    Raises:
        ValueError: If n_steps < 2 or n_edges < 0
    """
    if int(n_steps) != n_steps or n_steps < 2:
        raise ValueError(f"n_steps must be an integer >= 2, got {n_steps}")
    if n_edges < 0:
        raise ValueError(f"n_edges must be non-negative, got {n_edges}")

    n_steps = int(n_steps)
    sizes = {-(-n_edges * i // n_steps) for i in range(1, n_steps + 1)}
    return sorted(s for s in sizes if s > 0)


def _evaluate_candidate(
    consensus: pd.DataFrame,
    n_edges: int,
    regulators: set[str],
) -> CandidateFit:
    prefix = consensus.iloc[:n_edges]
    degrees = degree_sequence(prefix[[REGULATOR, TARGET]], net_type="grn", regulators=regulators)
    try:
        fit = fit_power_law(degrees.to_numpy())
    except DegenerateDistributionError as e:
        logger.debug(f"Candidate with {n_edges} edges skipped: {e}")
        return CandidateFit(n_edges=n_edges, fit=None, reason=str(e))

    logger.debug(
        f"Candidate with {n_edges} edges: alpha={fit.alpha:.3f}, "
        f"xmin={fit.xmin}, KS p={fit.ks_pvalue:.4g}"
    )
    return CandidateFit(n_edges=n_edges, fit=fit)


def _select(fitted: list[CandidateFit], policy: str, alpha: float) -> CandidateFit:
    if policy == "first":
        for cand in fitted:
            if cand.fit.ks_pvalue >= alpha:
                return cand
        logger.info(f"No candidate reached KS p >= {alpha}; selecting the best fit instead")

    best = fitted[0]
    for cand in fitted[1:]:
        if cand.fit.ks_pvalue > best.fit.ks_pvalue:
            best = cand
    return best


def filter_by_topology(
    consensus: pd.DataFrame,
    n_steps: int = 10,
    regulators: Iterable[str] | None = None,
    policy: str = "best",
    alpha: float = 0.05,
    parallel: bool = False,
    max_workers: int = 4,
) -> FilterResult:
    """
    Select the consensus prefix whose out-degree distribution is most scale-free.

    Args:
        consensus: Consensus edge list sorted by ascending rank
            (Regulator, Target, CombinedRank, ...)
        n_steps: Number of quantile steps k (>= 2, default 10)
        regulators: Nodes whose out-degree is tested. Default: every
            regulator of the consensus.
        policy: "best" (default) or "first"
        alpha: Significance level used by the "first" policy
        parallel: Fit candidates on a thread pool
        max_workers: Upper bound on pool size

    Returns:
        FilterResult with the selected network and the fit history

    Raises:
        UnfittableTopologyError: If no candidate admits a power-law fit
        ValueError: For an unsorted consensus, unknown policy or bad n_steps
    """
    if policy not in FILTER_POLICIES:
        raise ValueError(f"Unknown selection policy: {policy}. Use one of {FILTER_POLICIES}")
    missing = [c for c in (REGULATOR, TARGET) if c not in consensus.columns]
    if missing:
        raise ValueError(f"Consensus edge list is missing columns {missing}")
    if COMBINED_RANK in consensus.columns and not consensus[COMBINED_RANK].is_monotonic_increasing:
        raise ValueError("Consensus edge list must be sorted by ascending CombinedRank")

    sizes = candidate_sizes(len(consensus), n_steps)
    if not sizes:
        raise UnfittableTopologyError("Consensus edge list is empty")

    reg_set = set(consensus[REGULATOR]) if regulators is None else {str(r) for r in regulators}

    logger.info(
        f"Evaluating {len(sizes)} candidate networks "
        f"({sizes[0]}..{sizes[-1]} edges, policy={policy})"
    )

    if parallel and len(sizes) > 1:
        with ThreadPoolExecutor(max_workers=min(max_workers, len(sizes))) as executor:
            candidates = list(executor.map(
                lambda size: _evaluate_candidate(consensus, size, reg_set), sizes
            ))
    else:
        candidates = [_evaluate_candidate(consensus, size, reg_set) for size in sizes]

    fitted = [c for c in candidates if c.fitted]
    n_skipped = len(candidates) - len(fitted)
    if n_skipped:
        logger.warning(f"Skipped {n_skipped}/{len(candidates)} candidates with degenerate degree sequences")

    if not fitted:
        raise UnfittableTopologyError(
            f"None of the {len(candidates)} candidate networks admits a power-law fit"
        )

    chosen = _select(fitted, policy, alpha)
    logger.info(
        f"Selected {chosen.n_edges}/{len(consensus)} edges "
        f"(alpha={chosen.fit.alpha:.3f}, KS p={chosen.fit.ks_pvalue:.4g})"
    )

    return FilterResult(
        network=consensus.iloc[:chosen.n_edges].reset_index(drop=True),
        n_edges=chosen.n_edges,
        fit=chosen.fit,
        candidates=candidates,
        policy=policy,
    )
