"""Reduction of per-item outcomes into a batch report."""

from collections.abc import Sequence
import time

from .models import BatchReport, PipelineOutcome


def build_report(
    outcomes: Sequence[PipelineOutcome],
    started_at: float,
    finished_at: float | None = None,
) -> BatchReport:
    """Count successes and failures and compute the elapsed time.

    Args:
        outcomes: One outcome per scheduled work item, in input order.
        started_at: Start timestamp from ``time.time()``.
        finished_at: End timestamp, defaults to now.

    Returns:
        BatchReport summarizing the run.
    """
    if finished_at is None:
        finished_at = time.time()
    succeeded = sum(1 for outcome in outcomes if outcome.success)
    return BatchReport(
        total_items=len(outcomes),
        succeeded=succeeded,
        failed=len(outcomes) - succeeded,
        outcomes=tuple(outcomes),
        elapsed=max(0.0, finished_at - started_at),
    )
