"""
End-to-end tests for infer_network().
"""

from __future__ import annotations

import json
from types import SimpleNamespace

import numpy as np
import pandas as pd
import pytest

from grnconsensus import AdapterConfig, PipelineConfig, infer_network
from grnconsensus.core.errors import (
    DegenerateDistributionError,
    InvalidRegulatorError,
    UnfittableTopologyError,
)
from grnconsensus.topology import PowerLawFit, candidate_sizes

FIT_TARGET = "grnconsensus.topology.filtering.fit_power_law"


def _config(**overrides) -> PipelineConfig:
    values = dict(
        adapters=[
            AdapterConfig("genie3", {"n_trees": 10, "random_state": 0}),
            AdapterConfig("clr"),
            AdapterConfig("aracne"),
        ],
        parallel=False,
    )
    values.update(overrides)
    return PipelineConfig(**values)


def _always_degenerate(degrees, *args, **kwargs):
    raise DegenerateDistributionError("all degrees equal")


def _peaked_fit(degrees, *args, **kwargs):
    n_edges = int(np.sum(degrees))
    return PowerLawFit(
        alpha=2.0, xmin=1, ks_statistic=0.1, ks_pvalue=1.0 / (1 + abs(n_edges - 40)),
        n=len(degrees), n_tail=len(degrees), log_likelihood=-1.0,
    )


class TestInferNetwork:

    def test_filtered_run(self, expression_df, regulators, monkeypatch):
        monkeypatch.setattr(FIT_TARGET, _peaked_fit)

        result = infer_network(expression_df, regulators, _config())

        consensus, network = result.consensus, result.network
        assert list(consensus.columns) == ["Regulator", "Target", "CombinedRank", "Support"]
        assert consensus["CombinedRank"].is_monotonic_increasing
        assert result.manifest.filtered
        assert len(network) in candidate_sizes(len(consensus), 10)
        pd.testing.assert_frame_equal(network, consensus.iloc[:len(network)].reset_index(drop=True))
        assert set(result.edge_lists) == {"genie3", "clr", "aracne"}
        assert len(result.history) == len(candidate_sizes(len(consensus), 10))

    def test_manifest(self, expression_df, regulators, monkeypatch):
        monkeypatch.setattr(FIT_TARGET, _peaked_fit)

        manifest = infer_network(expression_df, regulators, _config()).manifest

        assert manifest.succeeded == ["aracne", "clr", "genie3"]
        assert manifest.failed == {}
        assert manifest.selection_policy == "best"
        assert manifest.exponent == 2.0
        assert manifest.fallback_reason is None

        data = json.loads(json.dumps(manifest.to_dict()))
        assert data["scorers_succeeded"] == ["aracne", "clr", "genie3"]
        assert data["config"]["quantile_steps"] == 10

    def test_unfittable_falls_back_to_consensus(self, expression_df, regulators, monkeypatch):
        monkeypatch.setattr(FIT_TARGET, _always_degenerate)

        with pytest.warns(UserWarning, match="unfiltered"):
            result = infer_network(expression_df, regulators, _config())

        assert not result.manifest.filtered
        assert result.manifest.n_edges == result.manifest.n_consensus_edges
        assert "admits a power-law fit" in result.manifest.fallback_reason
        pd.testing.assert_frame_equal(result.network, result.consensus)
        assert result.history.empty

    def test_unfittable_can_raise(self, expression_df, regulators, monkeypatch):
        monkeypatch.setattr(FIT_TARGET, _always_degenerate)

        with pytest.raises(UnfittableTopologyError):
            infer_network(expression_df, regulators, _config(on_unfittable="raise"))

    def test_failed_scorer_is_reported(self, expression_df, regulators, monkeypatch):
        monkeypatch.setattr(FIT_TARGET, _peaked_fit)

        def broken(self, matrix, regs):
            raise RuntimeError("solver diverged")

        monkeypatch.setattr("grnconsensus.inference.clr.CLRScorer._score_matrix", broken)

        result = infer_network(expression_df, regulators, _config())

        assert result.manifest.succeeded == ["aracne", "genie3"]
        assert "solver diverged" in result.manifest.failed["clr"]
        assert result.consensus["Support"].max() == 2

    def test_invalid_regulators_are_fatal(self, expression_df):
        with pytest.raises(InvalidRegulatorError):
            infer_network(expression_df, ["NOT_THERE"], _config())

    def test_accepts_assay_container(self, expression_df, regulators, monkeypatch):
        monkeypatch.setattr(FIT_TARGET, _peaked_fit)
        container = SimpleNamespace(assay=expression_df)
        config = _config(adapters=[AdapterConfig("clr"), AdapterConfig("aracne")])

        result = infer_network(container, regulators, config)

        assert result.manifest.succeeded == ["aracne", "clr"]

    def test_deterministic(self, expression_df, regulators, monkeypatch):
        monkeypatch.setattr(FIT_TARGET, _peaked_fit)

        first = infer_network(expression_df, regulators, _config())
        second = infer_network(expression_df, regulators, _config(parallel=True))

        pd.testing.assert_frame_equal(first.consensus, second.consensus)
        pd.testing.assert_frame_equal(first.network, second.network)


def _skewed_expression(seed: int = 7) -> pd.DataFrame:
    """Regulators 0..11 drive unequal numbers of targets (100, 101, ...)."""
    rng = np.random.RandomState(seed)
    n_targets = [40, 20, 12, 8, 6, 5, 4, 3, 2, 2, 1, 1]
    n_samples = 40

    tf_data = rng.randn(len(n_targets), n_samples)
    rows = list(tf_data)
    for driver, count in enumerate(n_targets):
        for _ in range(count):
            rows.append(rng.uniform(0.8, 1.5) * tf_data[driver] + 0.3 * rng.randn(n_samples))

    index = list(range(len(n_targets))) + list(range(100, 100 + sum(n_targets)))
    return pd.DataFrame(np.vstack(rows) + 10.0, index=index)


class TestRealTopologyFit:

    @pytest.fixture()
    def skewed(self):
        return _skewed_expression()

    def test_filters_without_patching(self, skewed):
        regulators = [str(r) for r in range(12)]
        config = _config(adapters=[AdapterConfig("clr"), AdapterConfig("aracne")])

        result = infer_network(skewed.rename(index=str), regulators, config)

        assert result.manifest.filtered
        assert result.manifest.fallback_reason is None
        assert result.manifest.exponent is not None
        assert len(result.network) in candidate_sizes(len(result.consensus), 10)

    def test_integer_gene_ids(self, skewed):
        config = _config(adapters=[AdapterConfig("clr"), AdapterConfig("aracne")])

        as_int = infer_network(skewed, list(range(12)), config)
        as_str = infer_network(skewed.rename(index=str), [str(r) for r in range(12)], config)

        assert as_int.manifest.filtered
        assert set(as_int.network["Regulator"]) <= {str(r) for r in range(12)}
        pd.testing.assert_frame_equal(as_int.network, as_str.network)
        pd.testing.assert_frame_equal(as_int.history, as_str.history)
