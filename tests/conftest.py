"""
Pytest configuration and shared fixtures.

Provides synthetic expression data with planted regulator -> target
structure, plus small hand-built edge lists for the ranking and topology
tests.
"""

import numpy as np
import pandas as pd
import pytest

from grnconsensus.core.expression import ExpressionMatrix


def generate_grn_expression(
    n_regulators: int = 5,
    n_targets: int = 15,
    n_samples: int = 30,
    noise: float = 0.3,
    seed: int = 42,
):
    """
    Generate an expression table in which every target follows one regulator.

    Args:
        n_regulators: Number of independent regulator profiles
        n_targets: Number of target genes; target j is driven by regulator
            j % n_regulators
        n_samples: Number of samples
        noise: Standard deviation of the target noise
        seed: Random seed for reproducibility

    Returns:
        (DataFrame genes x samples, set of planted (regulator, target) pairs)
    """
    rng = np.random.RandomState(seed)

    regulators = [f"TF_{i:02d}" for i in range(n_regulators)]
    targets = [f"GENE_{i:05d}" for i in range(n_targets)]
    samples = [f"S{i:03d}" for i in range(n_samples)]

    tf_data = rng.randn(n_regulators, n_samples)
    target_rows = []
    planted = set()
    for j, target in enumerate(targets):
        driver = j % n_regulators
        weight = rng.uniform(0.8, 1.5)
        target_rows.append(weight * tf_data[driver] + noise * rng.randn(n_samples))
        planted.add((regulators[driver], target))

    data = np.vstack([tf_data, np.vstack(target_rows)]) + 10.0
    df = pd.DataFrame(data, index=regulators + targets, columns=samples)
    return df, planted


def generate_scale_free_edges(n_regulators: int = 300, exponent: float = 2.2, seed: int = 0) -> pd.DataFrame:
    """Directed edge list whose regulator out-degrees follow a Zipf law."""
    rng = np.random.RandomState(seed)
    degrees = np.minimum(rng.zipf(exponent, size=n_regulators), 500)

    regulators, targets = [], []
    for i, degree in enumerate(degrees):
        for t in range(degree):
            regulators.append(f"R{i:04d}")
            targets.append(f"T{t:04d}")
    return pd.DataFrame({"Regulator": regulators, "Target": targets})


@pytest.fixture
def grn_data():
    return generate_grn_expression()


@pytest.fixture
def expression_df(grn_data):
    """Planted-structure expression table (20 genes x 30 samples)."""
    return grn_data[0]


@pytest.fixture
def planted_edges(grn_data):
    return grn_data[1]


@pytest.fixture
def expression_matrix(expression_df):
    return ExpressionMatrix.from_dataframe(expression_df)


@pytest.fixture
def regulators(expression_df):
    return [g for g in expression_df.index if g.startswith("TF_")]


@pytest.fixture
def scale_free_edges():
    return generate_scale_free_edges()


@pytest.fixture
def ranked_consensus():
    """
    1000-edge consensus over 50 regulators, sorted by CombinedRank.

    Every (Regulator, Target) pair is unique, so the out-degree sum of any
    prefix equals its length.
    """
    n = 1000
    return pd.DataFrame({
        "Regulator": [f"R{i % 50:02d}" for i in range(n)],
        "Target": [f"T{i:04d}" for i in range(n)],
        "CombinedRank": np.arange(1, n + 1, dtype=float),
        "Support": 3,
    })
