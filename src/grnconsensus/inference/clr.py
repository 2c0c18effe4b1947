"""
CLR edge scorer (information-theoretic, direct).

Context Likelihood of Relatedness rescales each mutual information value
against the background distribution of both genes involved:

    z_i  = max(0, (MI_ij - mean_i) / sd_i)
    z_j  = max(0, (MI_ij - mean_j) / sd_j)
    CLR_ij = sqrt(z_i^2 + z_j^2)

References:
    Faith, J. J., et al. (2007). Large-scale mapping and validation of
    Escherichia coli transcriptional regulation from a compendium of
    expression profiles. PLoS Biology, 5(1), e8.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from ._base import _BaseScorer
from .mutual_info import MI_ESTIMATORS, mutual_information_matrix

if TYPE_CHECKING:
    from grnconsensus.core.expression import ExpressionMatrix
    from .types import ScorerName


def clr_transform(mim: np.ndarray) -> np.ndarray:
    """Apply the CLR background correction to a symmetric MI matrix."""
    mean = mim.mean(axis=1)
    sd = mim.std(axis=1, ddof=1) if mim.shape[0] > 1 else np.zeros(mim.shape[0])
    sd = np.where(sd > 0, sd, np.inf)

    z_row = np.maximum(0.0, (mim - mean[:, None]) / sd[:, None])
    z_col = np.maximum(0.0, (mim - mean[None, :]) / sd[None, :])
    clr = np.sqrt(z_row ** 2 + z_col ** 2)
    np.fill_diagonal(clr, 0.0)
    return clr


class CLRScorer(_BaseScorer):
    """
    CLR scorer over a Gaussian mutual information matrix.

    Attributes:
        estimator: Correlation behind the MI estimate, "pearson" (default)
            or "spearman"
    """

    def __init__(self, estimator: str = "pearson", remove_zero: bool = True) -> None:
        super().__init__(remove_zero=remove_zero)
        if estimator not in MI_ESTIMATORS:
            raise ValueError(f"Unknown estimator: {estimator}. Use one of {MI_ESTIMATORS}")
        self.estimator = estimator

    @property
    def name(self) -> ScorerName:
        from .types import ScorerName
        return ScorerName.CLR

    def _score_matrix(
        self,
        matrix: ExpressionMatrix,
        regulators: list[str],
    ) -> np.ndarray:
        clr = clr_transform(mutual_information_matrix(matrix.data, self.estimator))
        rows = matrix.gene_ids.get_indexer(regulators)
        return clr[rows, :]


__all__ = ["CLRScorer", "clr_transform"]
