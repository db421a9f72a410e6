"""HDR histogram of request latencies.

Wraps ``hdrh.histogram.HdrHistogram`` with a millisecond API. Values are
stored as integer microseconds. A histogram is not thread-safe: each
worker owns one and the runner merges them after all workers have joined.
"""

from __future__ import annotations

from hdrh.histogram import HdrHistogram  # type: ignore[import-untyped]

# Range: 1 microsecond to 10 minutes (in microseconds)
_LOWEST_TRACKABLE_US = 1
_HIGHEST_TRACKABLE_US = 600_000_000
_SIGNIFICANT_DIGITS = 3


class LatencyHistogram:
    """Latency recorder with percentile queries in milliseconds."""

    def __init__(self) -> None:
        """Initialize an empty histogram."""
        self._histogram: HdrHistogram = HdrHistogram(  # type: ignore[no-any-unimported]
            _LOWEST_TRACKABLE_US, _HIGHEST_TRACKABLE_US, _SIGNIFICANT_DIGITS
        )

    @property
    def count(self) -> int:
        """Return the number of recorded values."""
        return int(self._histogram.total_count)

    def record(self, latency_ms: float) -> None:
        """Record one latency, clamped to the trackable range.

        Args:
            latency_ms: Latency in milliseconds.
        """
        value_us = int(latency_ms * 1000)
        value_us = max(_LOWEST_TRACKABLE_US, min(value_us, _HIGHEST_TRACKABLE_US))
        self._histogram.record_value(value_us)

    def percentile(self, percentile: float) -> float:
        """Return the latency at ``percentile`` (0-100), or 0.0 if empty."""
        if self.count == 0:
            return 0.0
        return float(self._histogram.get_value_at_percentile(percentile)) / 1000.0

    def min(self) -> float:
        if self.count == 0:
            return 0.0
        return float(self._histogram.get_min_value()) / 1000.0

    def max(self) -> float:
        if self.count == 0:
            return 0.0
        return float(self._histogram.get_max_value()) / 1000.0

    def mean(self) -> float:
        if self.count == 0:
            return 0.0
        return float(self._histogram.get_mean_value()) / 1000.0

    def merge(self, other: LatencyHistogram) -> None:
        """Add every value recorded in ``other`` to this histogram."""
        self._histogram.add(other._histogram)
