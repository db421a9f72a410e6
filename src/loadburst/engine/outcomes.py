"""Thread-safe per-outcome counters shared by all workers."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum


class OutcomeCategory(Enum):
    """Display category of a request outcome."""

    SUCCESS = "success"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    TRANSPORT = "transport"


def classify_status(status_code: int) -> OutcomeCategory:
    """Map an HTTP status code to its display category.

    Only 200 is a success. 5xx responses are server errors; every other
    status, including other 2xx codes, is shown as a client error.

    Args:
        status_code: HTTP response status.

    Returns:
        The outcome category.
    """
    if status_code == 200:
        return OutcomeCategory.SUCCESS
    if 500 <= status_code <= 599:
        return OutcomeCategory.SERVER_ERROR
    return OutcomeCategory.CLIENT_ERROR


@dataclass(frozen=True)
class OutcomeEvent:
    """Classified result of one request attempt.

    Attributes:
        label: Status code as text, or the transport error message.
        category: Display category.
        status_code: HTTP status, or 0 for transport failures.
        latency_ms: Time spent on the attempt in milliseconds.
        worker_id: Worker that made the request.
    """

    label: str
    category: OutcomeCategory
    status_code: int = 0
    latency_ms: float = 0.0
    worker_id: int = 0

    @property
    def is_error(self) -> bool:
        """Return True for anything other than a 200 response."""
        return self.category is not OutcomeCategory.SUCCESS


@dataclass
class OutcomeEntry:
    """Running count for one outcome label."""

    count: int
    category: OutcomeCategory


class OutcomeCounter:
    """Maps outcome labels to running counts.

    ``record`` may be called from any worker thread. A single
    ``threading.Lock`` serializes insert-or-increment, so no update is
    lost. Readers get copies via ``snapshot``.
    """

    def __init__(self) -> None:
        """Initialize an empty outcome table."""
        self._entries: dict[str, OutcomeEntry] = {}
        self._lock = threading.Lock()

    def record(self, label: str, category: OutcomeCategory) -> None:
        """Increment the count for ``label``, creating it if absent.

        The category given with the first record of a label is kept.

        Args:
            label: Outcome label.
            category: Display category for a newly created entry.
        """
        with self._lock:
            entry = self._entries.get(label)
            if entry is None:
                self._entries[label] = OutcomeEntry(count=1, category=category)
            else:
                entry.count += 1

    def snapshot(self) -> dict[str, OutcomeEntry]:
        """Return a copy of the outcome table."""
        with self._lock:
            return {
                label: OutcomeEntry(count=entry.count, category=entry.category)
                for label, entry in self._entries.items()
            }

    def total(self) -> int:
        """Return the sum of all outcome counts."""
        with self._lock:
            return sum(entry.count for entry in self._entries.values())

    def __len__(self) -> int:
        """Return the number of distinct outcome labels."""
        with self._lock:
            return len(self._entries)
