"""Turn final run state into a Report."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loadburst.metrics.models import LatencySummary, OutcomeStats, Report

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from loadburst.engine.outcomes import OutcomeEntry
    from loadburst.engine.protocol import WorkerResult
    from loadburst.metrics.histogram import LatencyHistogram


def _rate(numerator: float, denominator: float) -> float:
    """Divide, returning 0.0 instead of failing on a zero denominator."""
    if denominator <= 0:
        return 0.0
    return numerator / denominator


def summarize_latency(histogram: LatencyHistogram | None) -> LatencySummary:
    """Summarize a latency histogram; all zeros when empty or missing."""
    if histogram is None or histogram.count == 0:
        return LatencySummary()
    return LatencySummary(
        min=histogram.min(),
        avg=histogram.mean(),
        p50=histogram.percentile(50.0),
        p95=histogram.percentile(95.0),
        p99=histogram.percentile(99.0),
        max=histogram.max(),
    )


def build_report(
    *,
    total_requests: int,
    total_errors: int,
    outcomes: Mapping[str, OutcomeEntry],
    elapsed_seconds: float,
    histogram: LatencyHistogram | None = None,
    interrupted: bool = False,
    worker_results: Iterable[WorkerResult] = (),
) -> Report:
    """Compute the final report.

    Must only be called once no worker can still update the inputs.

    Args:
        total_requests: Requests issued across all workers.
        total_errors: Non-200 and failed requests.
        outcomes: Outcome table snapshot.
        elapsed_seconds: Wall time of the run.
        histogram: Merged latency histogram of all workers.
        interrupted: Whether a stop signal ended the run.
        worker_results: Results of all workers.

    Returns:
        The report, with outcomes sorted by label ascending.
    """
    stats = tuple(
        OutcomeStats(
            label=label,
            count=entry.count,
            category=entry.category,
            per_second=_rate(entry.count, elapsed_seconds),
        )
        for label, entry in sorted(outcomes.items())
    )

    return Report(
        total_requests=total_requests,
        total_errors=total_errors,
        error_rate_percent=_rate(total_errors * 100.0, total_requests),
        requests_per_second=_rate(total_requests, elapsed_seconds),
        elapsed_seconds=elapsed_seconds,
        outcomes=stats,
        latency=summarize_latency(histogram),
        interrupted=interrupted,
        worker_failures=tuple(r for r in worker_results if not r.success),
    )
