"""
Loaders for expression matrices and regulator lists.

Expression tables have genes in rows and samples in columns; the first
column holds gene identifiers:

    ```
    "",sample_1,sample_2,sample_3
    AT1G01010,5.1,4.8,6.2
    AT1G01020,0.3,0.9,0.1
    ```

The delimiter is taken from the file extension (.tsv/.tab/.txt -> tab,
.csv -> comma) and sniffed from the content for anything else.

Regulator lists are either plain text (one identifier per line, ``#``
comments allowed) or a table whose first column holds the identifiers.
"""

from __future__ import annotations

import csv
import logging
import warnings
from pathlib import Path

import pandas as pd

from grnconsensus.core.expression import ExpressionMatrix

logger = logging.getLogger(__name__)

__all__ = ['load_expression', 'load_regulators', 'delimiter_for']

_EXTENSION_DELIMITERS = {
    '.csv': ',',
    '.tsv': '\t',
    '.tab': '\t',
    '.txt': '\t',
}


def _strip_compression(path: Path) -> str:
    suffixes = [s.lower() for s in path.suffixes]
    if suffixes and suffixes[-1] in ('.gz', '.bz2', '.xz', '.zip'):
        suffixes = suffixes[:-1]
    return suffixes[-1] if suffixes else ''


def _sniff_delimiter(path: Path, sample_size: int = 8192) -> str:
    with open(path, 'r', encoding='utf-8', errors='ignore') as f:
        sample = f.read(sample_size)

    try:
        return csv.Sniffer().sniff(sample, delimiters='\t,;|').delimiter
    except csv.Error:
        pass

    first_line = sample.split('\n')[0]
    counts = {d: first_line.count(d) for d in ('\t', ',', ';')}
    if max(counts.values()) == 0:
        raise ValueError(f"Could not detect delimiter in {path}")
    return max(counts, key=counts.get)


def delimiter_for(path: Path) -> str:
    """Field delimiter of a table file, from its extension or content."""
    path = Path(path)
    suffix = _strip_compression(path)
    if suffix in _EXTENSION_DELIMITERS:
        return _EXTENSION_DELIMITERS[suffix]
    return _sniff_delimiter(path)


def _check_file(path: Path) -> Path:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    if not path.is_file():
        raise ValueError(f"Path is not a file: {path}")
    return path


def load_expression(path: Path) -> ExpressionMatrix:
    """
    Load a genes x samples expression table.

    Duplicated gene identifiers keep their first occurrence (with a warning).

    Raises:
        FileNotFoundError: If path does not exist
        ValueError: If the table is empty, non-numeric or contains NaN/inf
    """
    path = _check_file(path)

    try:
        df = pd.read_csv(path, sep=delimiter_for(path), index_col=0)
    except pd.errors.EmptyDataError as e:
        raise ValueError(f"Expression file is empty: {path}") from e
    except pd.errors.ParserError as e:
        raise ValueError(f"Failed to parse expression file {path}: {e}") from e

    if df.shape[0] == 0 or df.shape[1] == 0:
        raise ValueError(f"Expression file contains no data: {path}")

    if df.index.duplicated().any():
        n_duplicates = int(df.index.duplicated().sum())
        warnings.warn(
            f"Found {n_duplicates} duplicate gene IDs. Using first occurrence of each.",
            UserWarning
        )
        df = df[~df.index.duplicated(keep='first')]

    df.index = df.index.astype(str)
    df.columns = df.columns.astype(str)

    matrix = ExpressionMatrix.from_dataframe(df)
    logger.info(f"Loaded {matrix.n_genes} genes x {matrix.n_samples} samples from {path}")
    return matrix


def load_regulators(path: Path) -> list[str]:
    """
    Load regulator identifiers, in file order, without duplicates.

    Raises:
        FileNotFoundError: If path does not exist
        ValueError: If the file lists no identifiers
    """
    path = _check_file(path)
    suffix = _strip_compression(path)

    if suffix in ('.csv', '.tsv', '.tab'):
        table = pd.read_csv(path, sep=_EXTENSION_DELIMITERS[suffix], dtype=str)
        if table.shape[1] == 0:
            raise ValueError(f"Regulator table has no columns: {path}")
        ids = table.iloc[:, 0].dropna().str.strip().tolist()
    else:
        with open(path, 'r', encoding='utf-8') as f:
            ids = [line.strip() for line in f]
        ids = [i for i in ids if i and not i.startswith('#')]

    regulators = list(dict.fromkeys(i for i in ids if i))
    if not regulators:
        raise ValueError(f"No regulator identifiers in {path}")

    logger.info(f"Loaded {len(regulators)} regulators from {path}")
    return regulators
