"""
Expression matrix container consumed by the edge scorers.

The inference core does no data cleaning. It receives a genes x samples
matrix that an upstream step has already filtered, imputed and corrected, and
only checks the preconditions the scorers rely on.

Biological Context:
    - Rows = genes (transcription factors and their putative targets)
    - Columns = samples (tissues, conditions, time points)
    - Values = normalized expression (TPM, VST counts, log intensities)

Engineering Design:
    - Immutable: properties only, no setters
    - Validated: unique identifiers, 2D, finite values
    - Unwrapping: containers exposing an ``assay`` (SummarizedExperiment-like
      objects converted by anndata2ri/rpy2, or small wrappers around them) are
      turned into a plain matrix before entering the core

Examples:
    >>> import pandas as pd
    >>> from grnconsensus.core.expression import ExpressionMatrix
    >>> df = pd.DataFrame(
    ...     [[1.0, 2.0, 3.0], [3.0, 1.0, 2.0]],
    ...     index=["TF1", "GENE1"],
    ...     columns=["S1", "S2", "S3"],
    ... )
    >>> matrix = ExpressionMatrix.from_dataframe(df)
    >>> matrix.shape
    (2, 3)
"""

from __future__ import annotations

from typing import Iterable

import numpy as np
import pandas as pd

__all__ = ['ExpressionMatrix', 'to_expression_matrix']


class ExpressionMatrix:
    """
    Immutable genes x samples expression matrix.

    Attributes:
        data: Numerical expression matrix (genes x samples), float64
        gene_ids: Row identifiers
        sample_ids: Column identifiers

    Shape Invariants:
        - data.shape[0] == len(gene_ids)
        - data.shape[1] == len(sample_ids)
        - gene_ids and sample_ids are unique
        - all values are finite
    """

    def __init__(self, data: np.ndarray, gene_ids: pd.Index, sample_ids: pd.Index):
        """
        Initialize ExpressionMatrix with validation.

        Args:
            data: Expression matrix (genes x samples)
            gene_ids: Row identifiers
            sample_ids: Column identifiers

        Raises:
            TypeError: If data or identifiers have the wrong type
            ValueError: If shapes are inconsistent, identifiers repeat or
                values are missing
        """
        if not isinstance(data, np.ndarray):
            raise TypeError(f"data must be np.ndarray, got {type(data)}")
        if not isinstance(gene_ids, pd.Index):
            raise TypeError(f"gene_ids must be pd.Index, got {type(gene_ids)}")
        if not isinstance(sample_ids, pd.Index):
            raise TypeError(f"sample_ids must be pd.Index, got {type(sample_ids)}")

        if data.ndim != 2:
            raise ValueError(f"data must be 2D, got shape {data.shape}")

        n_genes, n_samples = data.shape
        if len(gene_ids) != n_genes:
            raise ValueError(
                f"gene_ids length ({len(gene_ids)}) must match data rows ({n_genes})"
            )
        if len(sample_ids) != n_samples:
            raise ValueError(
                f"sample_ids length ({len(sample_ids)}) must match data columns ({n_samples})"
            )

        if not gene_ids.is_unique:
            dupes = gene_ids[gene_ids.duplicated()].unique().tolist()
            raise ValueError(f"gene_ids must be unique, duplicated: {dupes[:5]}")
        if not sample_ids.is_unique:
            dupes = sample_ids[sample_ids.duplicated()].unique().tolist()
            raise ValueError(f"sample_ids must be unique, duplicated: {dupes[:5]}")

        try:
            values = data.astype(np.float64, copy=False)
        except (TypeError, ValueError) as e:
            raise TypeError(f"data must be numeric: {e}") from e

        if not np.all(np.isfinite(values)):
            n_bad = int(np.sum(~np.isfinite(values)))
            raise ValueError(
                f"data contains {n_bad} missing or non-finite values; "
                "impute or remove them before network inference"
            )

        self._data = values
        self._gene_ids = gene_ids.astype(str)
        self._sample_ids = sample_ids.astype(str)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> ExpressionMatrix:
        """Build from a DataFrame with genes in the index and samples in columns."""
        return cls(
            data=df.to_numpy(dtype=np.float64),
            gene_ids=pd.Index(df.index),
            sample_ids=pd.Index(df.columns),
        )

    @property
    def data(self) -> np.ndarray:
        """Expression matrix (genes x samples)."""
        return self._data

    @property
    def gene_ids(self) -> pd.Index:
        """Row identifiers."""
        return self._gene_ids

    @property
    def sample_ids(self) -> pd.Index:
        """Column identifiers."""
        return self._sample_ids

    @property
    def shape(self) -> tuple[int, int]:
        return self._data.shape

    @property
    def n_genes(self) -> int:
        return self._data.shape[0]

    @property
    def n_samples(self) -> int:
        return self._data.shape[1]

    def present_regulators(self, regulators: Iterable[str]) -> list[str]:
        """
        Regulators that exist in the matrix, in matrix row order.

        Identifiers absent from the matrix are dropped without error; callers
        decide whether an empty result is fatal.
        """
        wanted = {str(r) for r in regulators}
        return [g for g in self._gene_ids if g in wanted]

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self._data, index=self._gene_ids, columns=self._sample_ids)

    def __repr__(self) -> str:
        return f"ExpressionMatrix({self.n_genes} genes × {self.n_samples} samples)"


def to_expression_matrix(expression: object) -> ExpressionMatrix:
    """
    Unwrap supported inputs into an ExpressionMatrix.

    Accepts an ExpressionMatrix (returned as is), a pandas DataFrame
    (genes x samples), or any object with an ``assay`` attribute or
    ``assay()`` method returning a DataFrame.

    Raises:
        TypeError: If the input cannot be interpreted as an expression matrix
    """
    if isinstance(expression, ExpressionMatrix):
        return expression
    if isinstance(expression, pd.DataFrame):
        return ExpressionMatrix.from_dataframe(expression)

    assay = getattr(expression, "assay", None)
    if assay is not None:
        if callable(assay):
            assay = assay()
        if isinstance(assay, pd.DataFrame):
            return ExpressionMatrix.from_dataframe(assay)

    raise TypeError(
        f"Unsupported expression input {type(expression).__name__}; "
        "pass a genes x samples DataFrame or an ExpressionMatrix"
    )
