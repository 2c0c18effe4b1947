"""
End-to-end network inference: ensemble -> rank aggregation -> topology filter.

Each stage consumes the previous stage's output:

    expression + regulators
        -> run_ensemble        (one edge list per scorer)
        -> aggregate_ranks     (consensus ordering of every scored edge)
        -> filter_by_topology  (most scale-free prefix of the consensus)

Scorer failures are handled by the ensemble's failure policy. A consensus
without any fittable candidate network falls back to the unfiltered
consensus unless the configuration asks for the error to be raised.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from typing import Any, Iterable

import pandas as pd

from grnconsensus.config import PipelineConfig
from grnconsensus.consensus.aggregation import aggregate_ranks
from grnconsensus.core.errors import UnfittableTopologyError
from grnconsensus.inference.ensemble import run_ensemble
from grnconsensus.topology.filtering import HISTORY_COLUMNS, filter_by_topology

logger = logging.getLogger(__name__)

__all__ = ['RunManifest', 'NetworkResult', 'infer_network']


@dataclass
class RunManifest:
    """
    What happened during one inference run.

    Attributes:
        succeeded: Names of scorers that produced an edge list
        failed: Scorer name -> failure message
        n_consensus_edges: Size of the unfiltered consensus
        n_edges: Size of the returned network
        filtered: False when the unfittable fallback returned the whole consensus
        selection_policy: Candidate selection policy
        exponent: Power-law exponent of the selected network (None if unfiltered)
        ks_pvalue: KS p-value of the selected network (None if unfiltered)
        fallback_reason: Why filtering was not applied
    """
    succeeded: list[str]
    failed: dict[str, str]
    n_consensus_edges: int
    n_edges: int
    filtered: bool
    selection_policy: str
    exponent: float | None = None
    ks_pvalue: float | None = None
    fallback_reason: str | None = None
    config: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scorers_succeeded": list(self.succeeded),
            "scorers_failed": dict(self.failed),
            "n_consensus_edges": self.n_consensus_edges,
            "n_edges": self.n_edges,
            "filtered": self.filtered,
            "selection_policy": self.selection_policy,
            "exponent": self.exponent,
            "ks_pvalue": self.ks_pvalue,
            "fallback_reason": self.fallback_reason,
            "config": self.config,
        }


@dataclass
class NetworkResult:
    """
    Output of infer_network.

    Attributes:
        consensus: Full consensus edge list (Regulator, Target, CombinedRank, Support)
        network: Selected network, a prefix of ``consensus``
        history: Fit statistics of every candidate network
        edge_lists: Per-scorer edge lists
        manifest: Run summary
    """
    consensus: pd.DataFrame
    network: pd.DataFrame
    history: pd.DataFrame
    edge_lists: dict[str, pd.DataFrame]
    manifest: RunManifest


def infer_network(
    expression: object,
    regulators: Iterable[str],
    config: PipelineConfig | None = None,
) -> NetworkResult:
    """
    Infer a consensus gene regulatory network.

    Args:
        expression: ExpressionMatrix, genes x samples DataFrame, or an object
            exposing an ``assay`` (e.g. a loaded experiment container)
        regulators: Candidate regulator identifiers
        config: Pipeline configuration. Default: PipelineConfig().

    Returns:
        NetworkResult

    Raises:
        InvalidRegulatorError: If no regulator is present in the matrix
        ScorerFailure: If the failure policy aborts or every scorer fails
        UnfittableTopologyError: If no candidate is fittable and
            ``config.on_unfittable == "raise"``
    """
    if config is None:
        config = PipelineConfig()

    # ExpressionMatrix stores gene IDs as str
    regulators = [str(r) for r in regulators]
    ensemble = run_ensemble(
        expression,
        regulators,
        config.build_scorers(),
        parallel=config.parallel,
        max_workers=config.max_workers,
        timeout=config.timeout,
        on_failure=config.on_adapter_failure,
    )
    logger.info(ensemble.summary())

    consensus = aggregate_ranks(ensemble.edge_lists, tie_break=config.tie_break)

    manifest = RunManifest(
        succeeded=ensemble.succeeded,
        failed={name: f.message for name, f in sorted(ensemble.failures.items())},
        n_consensus_edges=len(consensus),
        n_edges=len(consensus),
        filtered=False,
        selection_policy=config.selection_policy,
        config=config.to_dict(),
    )

    try:
        selection = filter_by_topology(
            consensus,
            n_steps=config.quantile_steps,
            regulators=regulators,
            policy=config.selection_policy,
            alpha=config.alpha,
        )
    except UnfittableTopologyError as e:
        if config.on_unfittable == "raise":
            raise
        message = f"Topology filter not applied, returning the unfiltered consensus: {e}"
        logger.warning(message)
        warnings.warn(message, UserWarning, stacklevel=2)
        manifest.fallback_reason = str(e)
        return NetworkResult(
            consensus=consensus,
            network=consensus.copy(),
            history=pd.DataFrame(columns=HISTORY_COLUMNS),
            edge_lists=ensemble.edge_lists,
            manifest=manifest,
        )

    manifest.n_edges = selection.n_edges
    manifest.filtered = True
    manifest.exponent = selection.fit.alpha
    manifest.ks_pvalue = selection.fit.ks_pvalue

    return NetworkResult(
        consensus=consensus,
        network=selection.network,
        history=selection.history,
        edge_lists=ensemble.edge_lists,
        manifest=manifest,
    )
