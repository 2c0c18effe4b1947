"""
Tests for failure isolation in run_ensemble().

Verifies that:
1. A failing scorer is recorded in EnsembleResult.failures under "skip"
2. "abort" raises the ScorerFailure of the failing scorer
3. When ALL scorers fail, a ScorerFailure for the ensemble is raised
4. A regulator set disjoint from the matrix is fatal regardless of policy
5. Scorers that exceed the timeout count as failed
6. Results do not depend on scheduling or supply order
"""

from __future__ import annotations

import logging
import time

import pandas as pd
import pytest

from grnconsensus.core.errors import InvalidRegulatorError, ScorerFailure
from grnconsensus.inference import EnsembleResult, run_ensemble


# ---------------------------------------------------------------------------
# Helpers: lightweight fake scorers that satisfy the EdgeScorer protocol
# ---------------------------------------------------------------------------


class _SuccessScorer:
    """A fake scorer that always returns a predetermined edge list."""

    def __init__(self, name: str, edges: pd.DataFrame | None = None, delay: float = 0.0):
        self._name = name
        self._edges = edges if edges is not None else _edges(name)
        self._delay = delay
        self.calls = 0

    @property
    def name(self) -> str:
        return self._name

    def score(self, matrix, regulators) -> pd.DataFrame:
        self.calls += 1
        if self._delay:
            time.sleep(self._delay)
        return self._edges.copy()


class _FailingScorer:
    """A fake scorer that always raises."""

    def __init__(self, name: str, error: Exception | None = None):
        self._name = name
        self._error = error or RuntimeError("kaboom")

    @property
    def name(self) -> str:
        return self._name

    def score(self, matrix, regulators) -> pd.DataFrame:
        raise self._error


def _edges(seed_name: str) -> pd.DataFrame:
    offset = len(seed_name) / 10.0
    return pd.DataFrame({
        "Regulator": ["TF_00", "TF_00", "TF_01"],
        "Target": ["GENE_00000", "GENE_00001", "GENE_00000"],
        "Score": [3.0 + offset, 2.0, 1.0],
    })


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestFailurePolicy:

    def test_skip_records_failure(self, expression_df, regulators, caplog):
        scorers = [_SuccessScorer("clr"), _FailingScorer("genie3")]

        with caplog.at_level(logging.WARNING):
            result = run_ensemble(expression_df, regulators, scorers, on_failure="skip")

        assert isinstance(result, EnsembleResult)
        assert result.succeeded == ["clr"]
        assert result.failed == ["genie3"]

        failure = result.failures["genie3"]
        assert isinstance(failure, ScorerFailure)
        assert failure.scorer_name == "genie3"
        assert isinstance(failure.cause, RuntimeError)
        assert "kaboom" in failure.message
        assert "FAILED" in caplog.text

    def test_summary_lists_failures(self, expression_df, regulators):
        result = run_ensemble(
            expression_df, regulators, [_SuccessScorer("clr"), _FailingScorer("aracne")]
        )
        summary = result.summary()
        assert "succeeded: 1, failed: 1" in summary
        assert "aracne: FAILED (kaboom)" in summary

    def test_abort_raises_scorer_failure(self, expression_df, regulators):
        scorers = [_SuccessScorer("clr"), _FailingScorer("genie3")]

        with pytest.raises(ScorerFailure) as excinfo:
            run_ensemble(expression_df, regulators, scorers, on_failure="abort")

        assert excinfo.value.scorer_name == "genie3"
        assert isinstance(excinfo.value.cause, RuntimeError)

    def test_all_failing_raises(self, expression_df, regulators):
        scorers = [_FailingScorer("clr"), _FailingScorer("genie3", ValueError("bad input"))]

        with pytest.raises(ScorerFailure) as excinfo:
            run_ensemble(expression_df, regulators, scorers)

        assert excinfo.value.scorer_name == "ensemble"
        assert "bad input" in str(excinfo.value)

    def test_malformed_output_counts_as_failure(self, expression_df, regulators):
        self_loop = pd.DataFrame({"Regulator": ["TF_00"], "Target": ["TF_00"], "Score": [1.0]})
        no_score = pd.DataFrame({"Regulator": ["TF_00"], "Target": ["GENE_00000"]})
        scorers = [
            _SuccessScorer("clr"),
            _SuccessScorer("aracne", edges=self_loop),
            _SuccessScorer("genie3", edges=no_score),
        ]

        result = run_ensemble(expression_df, regulators, scorers)

        assert result.succeeded == ["clr"]
        assert "self-loops" in result.failures["aracne"].message
        assert "missing columns" in result.failures["genie3"].message

    def test_unknown_policy(self, expression_df, regulators):
        with pytest.raises(ValueError, match="failure policy"):
            run_ensemble(expression_df, regulators, [_SuccessScorer("clr")], on_failure="retry")


class TestRegulatorValidation:

    def test_disjoint_regulators_are_fatal(self, expression_df):
        scorer = _SuccessScorer("clr")

        with pytest.raises(InvalidRegulatorError):
            run_ensemble(expression_df, ["NOPE_1", "NOPE_2"], [scorer], on_failure="skip")

        assert scorer.calls == 0

    def test_scorer_regulator_error_is_not_converted(self, expression_df, regulators):
        scorers = [
            _SuccessScorer("clr"),
            _FailingScorer("genie3", InvalidRegulatorError("no regulators left")),
        ]
        with pytest.raises(InvalidRegulatorError):
            run_ensemble(expression_df, regulators, scorers, on_failure="skip")


class TestScheduling:

    @pytest.mark.parametrize("parallel", [True, False])
    def test_timeout_marks_scorer_failed(self, expression_df, regulators, parallel):
        scorers = [_SuccessScorer("clr"), _SuccessScorer("genie3", delay=1.0)]

        result = run_ensemble(
            expression_df, regulators, scorers, parallel=parallel, timeout=0.2
        )

        assert result.succeeded == ["clr"]
        assert isinstance(result.failures["genie3"].cause, TimeoutError)

    def test_queued_scorers_get_their_own_timeout(self, expression_df, regulators):
        scorers = [
            _SuccessScorer("aracne", delay=0.3),
            _SuccessScorer("clr", delay=0.3),
            _SuccessScorer("genie3", delay=0.3),
        ]

        result = run_ensemble(
            expression_df, regulators, scorers, parallel=True, max_workers=1, timeout=0.5
        )

        assert result.succeeded == ["aracne", "clr", "genie3"]
        assert result.failed == []

    def test_timed_out_scorer_frees_its_worker(self, expression_df, regulators):
        scorers = [_SuccessScorer("aracne", delay=1.0), _SuccessScorer("clr")]

        result = run_ensemble(
            expression_df, regulators, scorers, parallel=True, max_workers=1, timeout=0.2
        )

        assert result.succeeded == ["clr"]
        assert isinstance(result.failures["aracne"].cause, TimeoutError)

    def test_parallel_equals_sequential(self, expression_df, regulators):
        def make():
            return [_SuccessScorer("clr"), _SuccessScorer("aracne"), _SuccessScorer("genie3")]

        parallel = run_ensemble(expression_df, regulators, make(), parallel=True)
        sequential = run_ensemble(expression_df, regulators, make(), parallel=False)

        assert parallel.succeeded == sequential.succeeded
        for name in parallel.succeeded:
            pd.testing.assert_frame_equal(parallel.edge_lists[name], sequential.edge_lists[name])

    def test_independent_of_supply_order(self, expression_df, regulators):
        forward = run_ensemble(
            expression_df, regulators, [_SuccessScorer("clr"), _FailingScorer("aracne")]
        )
        backward = run_ensemble(
            expression_df, regulators, [_FailingScorer("aracne"), _SuccessScorer("clr")]
        )
        assert forward.succeeded == backward.succeeded
        assert list(forward.edge_lists) == list(backward.edge_lists)

    def test_duplicated_names_rejected(self, expression_df, regulators):
        with pytest.raises(ValueError, match="Duplicated"):
            run_ensemble(expression_df, regulators, [_SuccessScorer("clr"), _SuccessScorer("clr")])
