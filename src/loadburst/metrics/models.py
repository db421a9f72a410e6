"""Report dataclasses produced at the end of a run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from loadburst.engine.outcomes import OutcomeCategory
    from loadburst.engine.protocol import WorkerResult


@dataclass(frozen=True)
class OutcomeStats:
    """Final statistics for one outcome label.

    Attributes:
        label: Status code as text, or a transport error message.
        count: Number of requests with this outcome.
        category: Display category.
        per_second: ``count`` divided by the run's elapsed time.
    """

    label: str
    count: int
    category: OutcomeCategory
    per_second: float = 0.0


@dataclass(frozen=True)
class LatencySummary:
    """Latency distribution over all attempts, in milliseconds."""

    min: float = 0.0
    avg: float = 0.0
    p50: float = 0.0
    p95: float = 0.0
    p99: float = 0.0
    max: float = 0.0


@dataclass(frozen=True)
class Report:
    """Final snapshot of a run, built after every worker has joined.

    Rates are 0.0 whenever they would divide by zero.

    Attributes:
        total_requests: Requests issued across all workers.
        total_errors: Requests that were not answered with a 200.
        error_rate_percent: ``total_errors`` as a percentage of requests.
        requests_per_second: Overall throughput.
        elapsed_seconds: Wall time from run start to the join barrier.
        outcomes: Per-outcome statistics sorted by label.
        latency: Latency distribution summary.
        interrupted: True if a stop signal ended the run.
        worker_failures: Results of workers that stopped on a fatal error.
    """

    total_requests: int
    total_errors: int
    error_rate_percent: float
    requests_per_second: float
    elapsed_seconds: float
    outcomes: tuple[OutcomeStats, ...] = ()
    latency: LatencySummary = field(default_factory=LatencySummary)
    interrupted: bool = False
    worker_failures: tuple[WorkerResult, ...] = ()

    @property
    def error_rate(self) -> float:
        """Return the error rate as a fraction (0.0 to 1.0)."""
        return self.error_rate_percent / 100.0
