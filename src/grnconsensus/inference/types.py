"""
Core types for the edge scorer ensemble.

Defines the registered scorer identifiers and the protocol every scorer
adapter satisfies. The ensemble runner depends only on this protocol, so a
new inference family can be added without touching the runner or the rank
aggregator.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Iterable, Protocol, runtime_checkable

if TYPE_CHECKING:
    import pandas as pd

    from grnconsensus.core.expression import ExpressionMatrix


class ScorerName(Enum):
    """
    Registered edge scorers.

    Attributes:
        GENIE3: Tree-ensemble regression importance (regression family)
        CLR: Context likelihood of relatedness over mutual information
            (information-theoretic, direct)
        ARACNE: Mutual information pruned by the data processing inequality
            (information-theoretic, pruned)
    """

    GENIE3 = "genie3"
    CLR = "clr"
    ARACNE = "aracne"


@runtime_checkable
class EdgeScorer(Protocol):
    """
    Protocol for edge scorer adapters.

    All scorers implementing this protocol must:
        1. Have a ``name`` property returning their ScorerName
        2. Have a ``score`` method accepting an ExpressionMatrix and regulators
        3. Return a DataFrame with columns Regulator, Target, Score where a
           higher score means stronger evidence
        4. Be stateless with respect to the inputs (no mutation, so several
           scorers can share the same matrix across threads)

    Example Implementation:
        >>> class ConstantScorer:
        ...     @property
        ...     def name(self) -> ScorerName:
        ...         return ScorerName.CLR
        ...
        ...     def score(self, matrix, regulators):
        ...         return pd.DataFrame(
        ...             {"Regulator": ["TF1"], "Target": ["G1"], "Score": [1.0]}
        ...         )
    """

    @property
    def name(self) -> ScorerName:
        ...

    def score(
        self,
        matrix: ExpressionMatrix,
        regulators: Iterable[str],
    ) -> pd.DataFrame:
        """
        Score every (regulator, target) pair.

        Args:
            matrix: Validated expression matrix (shared, read-only)
            regulators: Regulator identifiers; identifiers missing from the
                matrix are ignored

        Returns:
            Edge list with columns Regulator, Target, Score

        Raises:
            InvalidRegulatorError: If none of the regulators are in the matrix
            ValueError: If the expression data is degenerate for this scorer
        """
        ...


def scorer_label(scorer: EdgeScorer) -> str:
    """String identifier of a scorer, used as key in result mappings."""
    name = scorer.name
    return name.value if isinstance(name, ScorerName) else str(name)


__all__ = [
    "ScorerName",
    "EdgeScorer",
    "scorer_label",
]
