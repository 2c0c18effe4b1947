"""
ARACNE edge scorer (information-theoretic, pruned).

Starts from the mutual information matrix and removes indirect interactions
with the data processing inequality: in every triplet (i, j, k) the edge
i - j is dropped when

    MI_ij < min(MI_ik, MI_kj) - eps

Surviving edges keep their MI as score; pruned edges score zero and are
therefore absent from the edge list (they abstain in the consensus).

References:
    Margolin, A. A., et al. (2006). ARACNE: an algorithm for the
    reconstruction of gene regulatory networks in a mammalian cellular
    context. BMC Bioinformatics, 7(Suppl 1), S7.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from ._base import _BaseScorer
from .mutual_info import MI_ESTIMATORS, mutual_information_matrix

if TYPE_CHECKING:
    from grnconsensus.core.expression import ExpressionMatrix
    from .types import ScorerName

logger = logging.getLogger(__name__)


def dpi_prune(mim: np.ndarray, rows: np.ndarray, eps: float = 0.0) -> np.ndarray:
    """
    Data processing inequality pruning of selected rows of an MI matrix.

    Args:
        mim: Symmetric (n, n) MI matrix with zero diagonal
        rows: Row indices to prune (the regulators)
        eps: Tolerance; larger values keep more edges

    Returns:
        (len(rows), n) matrix with pruned entries set to zero
    """
    sub = mim[rows, :]
    strongest_path = np.zeros_like(sub)

    # Widest two-step path i -> k -> j over every intermediate k
    for k in range(mim.shape[0]):
        np.maximum(
            strongest_path,
            np.minimum(sub[:, k][:, None], mim[k, :][None, :]),
            out=strongest_path,
        )

    pruned = sub < strongest_path - eps
    out = np.where(pruned, 0.0, sub)
    logger.debug(f"aracne: pruned {int(pruned.sum())}/{pruned.size} entries (eps={eps})")
    return out


class ARACNEScorer(_BaseScorer):
    """
    ARACNE scorer over a Gaussian mutual information matrix.

    Attributes:
        estimator: Correlation behind the MI estimate, "spearman" (default)
            or "pearson"
        eps: DPI tolerance (default 0.0)
    """

    def __init__(
        self,
        estimator: str = "spearman",
        eps: float = 0.0,
        remove_zero: bool = True,
    ) -> None:
        super().__init__(remove_zero=remove_zero)
        if estimator not in MI_ESTIMATORS:
            raise ValueError(f"Unknown estimator: {estimator}. Use one of {MI_ESTIMATORS}")
        if eps < 0:
            raise ValueError(f"eps must be non-negative, got {eps}")
        self.estimator = estimator
        self.eps = eps

    @property
    def name(self) -> ScorerName:
        from .types import ScorerName
        return ScorerName.ARACNE

    def _score_matrix(
        self,
        matrix: ExpressionMatrix,
        regulators: list[str],
    ) -> np.ndarray:
        mim = mutual_information_matrix(matrix.data, self.estimator)
        rows = matrix.gene_ids.get_indexer(regulators)
        return dpi_prune(mim, rows, eps=self.eps)


__all__ = ["ARACNEScorer", "dpi_prune"]
