"""
Name-based construction of edge scorers.

Configuration files and the CLI refer to scorers by name
(``genie3``, ``clr``, ``aracne``); this module maps those names to adapters.
"""

from __future__ import annotations

from typing import Any

from .aracne import ARACNEScorer
from .clr import CLRScorer
from .genie3 import GENIE3Scorer
from .types import EdgeScorer, ScorerName

__all__ = ["SCORER_CLASSES", "create_scorer", "default_scorers"]

SCORER_CLASSES: dict[ScorerName, type] = {
    ScorerName.GENIE3: GENIE3Scorer,
    ScorerName.CLR: CLRScorer,
    ScorerName.ARACNE: ARACNEScorer,
}


def create_scorer(name: str | ScorerName, **params: Any) -> EdgeScorer:
    """
    Build a scorer adapter from its registered name.

    Args:
        name: Scorer name ("genie3", "clr", "aracne") or ScorerName
        **params: Keyword arguments for the adapter constructor

    Raises:
        ValueError: If the name is unknown or the parameters are invalid
    """
    try:
        key = name if isinstance(name, ScorerName) else ScorerName(str(name).lower())
    except ValueError:
        valid = [n.value for n in ScorerName]
        raise ValueError(f"Unknown scorer: {name}. Use one of {valid}") from None

    try:
        return SCORER_CLASSES[key](**params)
    except TypeError as e:
        raise ValueError(f"Invalid parameters for {key.value}: {e}") from e


def default_scorers(n_trees: int = 1000, random_state: int | None = None) -> list[EdgeScorer]:
    """The three-family default ensemble: GENIE3, CLR and ARACNE."""
    return [
        GENIE3Scorer(n_trees=n_trees, random_state=random_state),
        CLRScorer(estimator="pearson"),
        ARACNEScorer(estimator="spearman", eps=0.0),
    ]
