"""
Ensemble runner: execute several edge scorers on the same input.

Pipeline:
    1. Validate the regulator set once (fatal when disjoint from the matrix)
    2. Dispatch every scorer, optionally on worker threads bounded by
       max_workers, each with its own timeout clock
    3. Collect one edge list per scorer, keyed by scorer name
    4. Convert scorer exceptions and timeouts into ScorerFailure records

Scorers are pure functions of the shared, read-only matrix, so they need no
coordination beyond the join. Results are keyed by name and processed in
sorted-name order, which makes the output independent of completion order.

Failure policy:
    "skip"  (default) -- record the failure, keep the surviving scorers. The
                         consensus is designed to tolerate a missing member.
    "abort"           -- raise the first ScorerFailure (in name order).
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Iterable, Sequence

import pandas as pd

from grnconsensus.core.edges import validate_edge_list
from grnconsensus.core.errors import InvalidRegulatorError, ScorerFailure
from grnconsensus.core.expression import ExpressionMatrix, to_expression_matrix

from ._base import resolve_regulators
from .registry import default_scorers
from .types import EdgeScorer, scorer_label

logger = logging.getLogger(__name__)

FAILURE_POLICIES = ("skip", "abort")


@dataclass
class EnsembleResult:
    """
    Output of one ensemble run.

    Attributes:
        edge_lists: Scorer name -> validated edge list, for scorers that succeeded
        failures: Scorer name -> ScorerFailure, for scorers that failed or timed out
    """

    edge_lists: dict[str, pd.DataFrame]
    failures: dict[str, ScorerFailure] = field(default_factory=dict)

    @property
    def succeeded(self) -> list[str]:
        return sorted(self.edge_lists)

    @property
    def failed(self) -> list[str]:
        return sorted(self.failures)

    def summary(self) -> str:
        lines = [f"Scorers succeeded: {len(self.edge_lists)}, failed: {len(self.failures)}"]
        for name in self.succeeded:
            lines.append(f"  {name}: {len(self.edge_lists[name])} edges")
        for name in self.failed:
            lines.append(f"  {name}: FAILED ({self.failures[name].message})")
        return "\n".join(lines)


def _call_with_timeout(scorer: EdgeScorer, matrix, regulators, timeout: float | None):
    """Run one scorer inline, or on a private thread when a timeout applies."""
    if timeout is None:
        return scorer.score(matrix, regulators)

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="grn-scorer")
    try:
        future = executor.submit(scorer.score, matrix, regulators)
        done, _ = wait([future], timeout=timeout)
        if not done:
            future.cancel()
            raise TimeoutError(f"timed out after {timeout}s")
        return future.result()
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def _run_parallel(
    scorers: dict[str, EdgeScorer],
    matrix: ExpressionMatrix,
    regulators: list[str],
    max_workers: int,
    timeout: float | None,
) -> dict[str, object]:
    """
    Run scorers concurrently, at most ``max_workers`` at a time.

    Each scorer gets a single-worker executor, so its timeout clock starts
    when it starts running rather than when it is queued. A scorer that times
    out releases its slot; its thread is abandoned, not interrupted.
    """
    outcomes: dict[str, object] = {}
    queued = list(scorers.items())
    running: dict[Future, tuple[str, float, ThreadPoolExecutor]] = {}

    try:
        while queued or running:
            while queued and len(running) < max_workers:
                name, scorer = queued.pop(0)
                executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="grn-scorer")
                future = executor.submit(scorer.score, matrix, regulators)
                running[future] = (name, time.monotonic(), executor)

            wait_for = None
            if timeout is not None:
                deadline = min(started + timeout for _, started, _ in running.values())
                wait_for = max(0.0, deadline - time.monotonic())
            done, _ = wait(running, timeout=wait_for, return_when=FIRST_COMPLETED)

            for future in done:
                name, _, executor = running.pop(future)
                executor.shutdown(wait=False)
                try:
                    outcomes[name] = future.result()
                except Exception as e:
                    outcomes[name] = e

            if timeout is None:
                continue
            now = time.monotonic()
            for future, (name, started, executor) in list(running.items()):
                if now - started >= timeout:
                    del running[future]
                    future.cancel()
                    executor.shutdown(wait=False, cancel_futures=True)
                    outcomes[name] = TimeoutError(f"timed out after {timeout}s")
    finally:
        for _, _, executor in running.values():
            executor.shutdown(wait=False, cancel_futures=True)

    return outcomes


def run_ensemble(
    expression: object,
    regulators: Iterable[str],
    scorers: Sequence[EdgeScorer] | None = None,
    *,
    parallel: bool = True,
    max_workers: int = 4,
    timeout: float | None = None,
    on_failure: str = "skip",
) -> EnsembleResult:
    """
    Run every scorer on the same expression matrix and regulator set.

    Args:
        expression: ExpressionMatrix or genes x samples DataFrame
        regulators: Regulator identifiers; identifiers missing from the
            matrix are ignored
        scorers: Scorer adapters to run. Default: GENIE3, CLR and ARACNE.
        parallel: Dispatch scorers to a thread pool
        max_workers: Most scorers running at once (default 4)
        timeout: Seconds each scorer may run before it counts as failed
        on_failure: "skip" (default) or "abort"

    Returns:
        EnsembleResult with one edge list per successful scorer

    Raises:
        InvalidRegulatorError: If none of the regulators are in the matrix
            (regardless of the failure policy)
        ScorerFailure: Under "abort" when any scorer fails, or under "skip"
            when every scorer fails
        ValueError: For an unknown policy or duplicated scorer names
    """
    if on_failure not in FAILURE_POLICIES:
        raise ValueError(f"Unknown failure policy: {on_failure}. Use one of {FAILURE_POLICIES}")
    if max_workers < 1:
        raise ValueError(f"max_workers must be positive, got {max_workers}")

    matrix = to_expression_matrix(expression)
    regulators = list(regulators)
    resolve_regulators(matrix, regulators, source="ensemble")

    if scorers is None:
        scorers = default_scorers()
    if not scorers:
        raise ValueError("At least one scorer is required")

    by_name: dict[str, EdgeScorer] = {}
    for scorer in scorers:
        label = scorer_label(scorer)
        if label in by_name:
            raise ValueError(f"Duplicated scorer name: {label}")
        by_name[label] = scorer

    logger.info(
        f"Running {len(by_name)} scorers ({', '.join(sorted(by_name))}) on "
        f"{matrix.n_genes} genes x {matrix.n_samples} samples"
    )

    if parallel and len(by_name) > 1:
        outcomes = _run_parallel(by_name, matrix, regulators, max_workers, timeout)
    else:
        outcomes = {}
        for name, scorer in by_name.items():
            try:
                outcomes[name] = _call_with_timeout(scorer, matrix, regulators, timeout)
            except Exception as e:
                outcomes[name] = e

    edge_lists: dict[str, pd.DataFrame] = {}
    failures: dict[str, ScorerFailure] = {}

    for name in sorted(outcomes):
        outcome = outcomes[name]

        if isinstance(outcome, InvalidRegulatorError):
            raise outcome

        if not isinstance(outcome, BaseException):
            try:
                edge_lists[name] = validate_edge_list(outcome, source=name)
                logger.info(f"{name}: done ({len(edge_lists[name])} edges)")
                continue
            except (ValueError, TypeError, AttributeError) as e:
                outcome = e

        failure = ScorerFailure(name, str(outcome), cause=outcome)
        if on_failure == "abort":
            raise failure from outcome
        logger.warning(f"{name}: FAILED - {outcome}")
        failures[name] = failure

    if not edge_lists:
        raise ScorerFailure(
            "ensemble",
            f"all {len(by_name)} scorers failed: "
            + "; ".join(str(f) for f in failures.values()),
        )

    return EnsembleResult(edge_lists=edge_lists, failures=failures)


__all__ = [
    "FAILURE_POLICIES",
    "EnsembleResult",
    "run_ensemble",
]
