"""Shared mutable state of a single run."""

from __future__ import annotations

import threading
import time

from loadburst._internal.logging import get_logger

logger = get_logger("engine.state")


class RunState:
    """Counters and stop flag shared by reference across all workers.

    ``stop_requested`` only ever goes from False to True. The request and
    error counters only grow; each increment happens inside a short
    lock-guarded section and no lock is held across network I/O.

    Attributes:
        start_time: Monotonic timestamp at which the run started.
    """

    def __init__(self, start_time: float | None = None) -> None:
        """Initialize the run state.

        Args:
            start_time: Monotonic start timestamp. Defaults to now.
        """
        self.start_time = time.monotonic() if start_time is None else start_time
        self._stop_event = threading.Event()
        self._lock = threading.Lock()
        self._total_requests = 0
        self._total_errors = 0

    @property
    def stop_requested(self) -> bool:
        """Return True once any stop has been requested."""
        return self._stop_event.is_set()

    @property
    def total_requests(self) -> int:
        """Return the number of requests issued so far."""
        return self._total_requests

    @property
    def total_errors(self) -> int:
        """Return the number of non-200 or failed requests so far."""
        return self._total_errors

    def request_stop(self) -> bool:
        """Ask every worker to stop at its next loop iteration.

        Safe to call repeatedly and from signal handlers.

        Returns:
            True if this call flipped the flag, False if it was already set.
        """
        if self._stop_event.is_set():
            return False
        self._stop_event.set()
        logger.debug("Stop requested")
        return True

    def increment_requests(self) -> int:
        """Count one more issued request.

        Returns:
            The new total.
        """
        with self._lock:
            self._total_requests += 1
            return self._total_requests

    def increment_errors(self) -> int:
        """Count one more error.

        Returns:
            The new total.
        """
        with self._lock:
            self._total_errors += 1
            return self._total_errors

    def duration_expired(self, duration_limit: float, now: float | None = None) -> bool:
        """Return True if a positive ``duration_limit`` has elapsed."""
        if duration_limit <= 0:
            return False
        now = time.monotonic() if now is None else now
        return now >= self.start_time + duration_limit

    def elapsed(self, now: float | None = None) -> float:
        """Return seconds elapsed since ``start_time``."""
        now = time.monotonic() if now is None else now
        return max(now - self.start_time, 0.0)
