"""
Edge scorer adapters and the ensemble runner.

This package provides three scorer adapters that conform to the
``EdgeScorer`` protocol defined in ``types``:

* :class:`GENIE3Scorer` -- tree-ensemble regression importance
* :class:`CLRScorer`    -- context likelihood of relatedness (mutual information)
* :class:`ARACNEScorer` -- mutual information pruned by the data processing inequality

``run_ensemble`` executes any set of scorers on the same input and tolerates
individual scorer failures.
"""

from __future__ import annotations

from .types import EdgeScorer, ScorerName, scorer_label
from .genie3 import GENIE3Scorer
from .clr import CLRScorer
from .aracne import ARACNEScorer
from .registry import create_scorer, default_scorers
from .ensemble import EnsembleResult, run_ensemble

__all__ = [
    "EdgeScorer",
    "ScorerName",
    "scorer_label",
    "GENIE3Scorer",
    "CLRScorer",
    "ARACNEScorer",
    "create_scorer",
    "default_scorers",
    "EnsembleResult",
    "run_ensemble",
]
