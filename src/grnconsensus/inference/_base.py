"""
Shared base class for the edge scorer adapters.

GENIE3, CLR and ARACNE share the same outer workflow: resolve the regulator
set against the matrix, reject degenerate expression data, compute a
regulators x genes score matrix and flatten it into an edge list. This module
holds that workflow so the concrete adapters only implement
``_score_matrix``.
"""

from __future__ import annotations

import abc
import logging
from typing import TYPE_CHECKING, Iterable

import numpy as np
import pandas as pd

from grnconsensus.core.edges import REGULATOR, SCORE, TARGET
from grnconsensus.core.errors import InvalidRegulatorError

if TYPE_CHECKING:
    from grnconsensus.core.expression import ExpressionMatrix
    from grnconsensus.inference.types import ScorerName

logger = logging.getLogger(__name__)

MIN_SAMPLES = 3


def resolve_regulators(
    matrix: ExpressionMatrix,
    regulators: Iterable[str],
    source: str = "scorer",
) -> list[str]:
    """
    Intersect the regulator set with the matrix rows.

    Regulators absent from the matrix are dropped silently (logged at DEBUG).
    Only a completely disjoint regulator set is an error.

    Raises:
        InvalidRegulatorError: If no regulator exists in the matrix
    """
    requested = list(dict.fromkeys(str(r) for r in regulators))
    present = matrix.present_regulators(requested)

    if not present:
        raise InvalidRegulatorError(
            f"{source}: none of the {len(requested)} regulators were found "
            f"in the expression matrix (e.g. {requested[:3]})"
        )

    n_dropped = len(requested) - len(present)
    if n_dropped:
        logger.debug(f"{source}: ignoring {n_dropped} regulators absent from the matrix")

    return present


def check_expression(matrix: ExpressionMatrix, source: str = "scorer") -> None:
    """
    Reject expression data the scorers cannot handle.

    Raises:
        ValueError: If there are fewer than MIN_SAMPLES samples or any gene
            has zero variance
    """
    if matrix.n_samples < MIN_SAMPLES:
        raise ValueError(
            f"{source}: need at least {MIN_SAMPLES} samples, got {matrix.n_samples}"
        )

    constant = np.ptp(matrix.data, axis=1) == 0
    if constant.any():
        genes = matrix.gene_ids[constant].tolist()
        raise ValueError(
            f"{source}: {len(genes)} genes have zero variance (e.g. {genes[:3]}); "
            "remove them before inference"
        )


def scores_to_edge_list(
    scores: np.ndarray,
    regulators: list[str],
    genes: pd.Index,
    remove_zero: bool = True,
) -> pd.DataFrame:
    """
    Flatten a regulators x genes score matrix into a long edge list.

    Self-loops are dropped, and zero scores too when ``remove_zero`` is set.
    Rows are ordered by descending score, then regulator and target.
    """
    n_genes = len(genes)
    edges = pd.DataFrame({
        REGULATOR: np.repeat(np.asarray(regulators, dtype=object), n_genes),
        TARGET: np.tile(np.asarray(genes, dtype=object), len(regulators)),
        SCORE: np.asarray(scores, dtype=np.float64).ravel(),
    })

    edges = edges[edges[REGULATOR] != edges[TARGET]]
    if remove_zero:
        edges = edges[edges[SCORE] != 0]

    return edges.sort_values(
        [SCORE, REGULATOR, TARGET],
        ascending=[False, True, True],
        kind="mergesort",
    ).reset_index(drop=True)


class _BaseScorer(abc.ABC):
    """
    Shared skeleton for matrix-based edge scorers.

    Subclasses implement:
        * ``name`` property (ScorerName)
        * ``_score_matrix`` (regulators x genes array, higher = stronger)
    """

    def __init__(self, remove_zero: bool = True) -> None:
        self.remove_zero = remove_zero

    @property
    @abc.abstractmethod
    def name(self) -> ScorerName:  # pragma: no cover
        ...

    @abc.abstractmethod
    def _score_matrix(
        self,
        matrix: ExpressionMatrix,
        regulators: list[str],
    ) -> np.ndarray:
        """Return a (len(regulators), n_genes) array of interaction scores."""
        ...

    def score(
        self,
        matrix: ExpressionMatrix,
        regulators: Iterable[str],
    ) -> pd.DataFrame:
        """
        Score every regulator -> target pair of the matrix.

        Workflow:
            1. Resolve regulators against the matrix rows
            2. Reject degenerate expression data
            3. Compute the score matrix (subclass)
            4. Flatten into a Regulator / Target / Score edge list
        """
        label = self.name.value
        present = resolve_regulators(matrix, regulators, source=label)
        check_expression(matrix, source=label)

        scores = self._score_matrix(matrix, present)
        if scores.shape != (len(present), matrix.n_genes):
            raise RuntimeError(
                f"{label}: score matrix has shape {scores.shape}, "
                f"expected {(len(present), matrix.n_genes)}"
            )

        edges = scores_to_edge_list(
            scores, present, matrix.gene_ids, remove_zero=self.remove_zero
        )
        logger.info(
            f"{label}: scored {len(edges)} edges from {len(present)} regulators "
            f"x {matrix.n_genes} genes"
        )
        return edges


__all__ = [
    "MIN_SAMPLES",
    "resolve_regulators",
    "check_expression",
    "scores_to_edge_list",
]
