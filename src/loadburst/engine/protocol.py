"""Result type passed from worker threads back to the runner."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class WorkerResult:
    """Result returned by a worker thread when its loop ends.

    Attributes:
        worker_id: Identifier of the worker that produced this result.
        requests_issued: Requests this worker claimed from the global count.
        success: False if the worker stopped on a fatal error.
        error_message: Error description if the worker failed.
    """

    worker_id: int
    requests_issued: int
    success: bool = True
    error_message: str | None = None
