"""
Writers for edge lists and run manifests.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)

__all__ = ['write_edge_list', 'write_manifest']


def _ensure_parent(path: Path) -> Path:
    path = Path(path)
    if path.parent != Path('.') and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    return path


def write_edge_list(edges: pd.DataFrame, path: Path) -> Path:
    """
    Write an edge list as CSV (or TSV for .tsv/.txt paths), without the index.

    Raises:
        OSError: If the file cannot be written
    """
    path = _ensure_parent(path)
    sep = '\t' if path.suffix.lower() in ('.tsv', '.txt') else ','
    try:
        edges.to_csv(path, sep=sep, index=False)
    except OSError as e:
        raise OSError(f"Failed to write edge list {path}: {e}") from e
    logger.info(f"Wrote {len(edges)} edges to {path}")
    return path


def write_manifest(manifest: dict[str, Any], path: Path) -> Path:
    """Write a run manifest as indented JSON."""
    path = _ensure_parent(path)
    with open(path, 'w') as f:
        json.dump(manifest, f, indent=2, default=str)
    logger.info(f"Wrote manifest to {path}")
    return path
