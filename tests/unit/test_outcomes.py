"""Tests for outcome classification and the shared OutcomeCounter."""

from __future__ import annotations

import threading

import pytest

from loadburst.engine.outcomes import (
    OutcomeCategory,
    OutcomeCounter,
    OutcomeEvent,
    classify_status,
)


class TestClassifyStatus:
    @pytest.mark.parametrize(
        ("status", "category"),
        [
            (200, OutcomeCategory.SUCCESS),
            (201, OutcomeCategory.CLIENT_ERROR),
            (204, OutcomeCategory.CLIENT_ERROR),
            (301, OutcomeCategory.CLIENT_ERROR),
            (404, OutcomeCategory.CLIENT_ERROR),
            (429, OutcomeCategory.CLIENT_ERROR),
            (500, OutcomeCategory.SERVER_ERROR),
            (503, OutcomeCategory.SERVER_ERROR),
        ],
    )
    def test_categories(self, status: int, category: OutcomeCategory):
        assert classify_status(status) is category


class TestOutcomeEvent:
    def test_only_success_is_not_an_error(self):
        assert not OutcomeEvent("200", OutcomeCategory.SUCCESS).is_error
        assert OutcomeEvent("204", OutcomeCategory.CLIENT_ERROR).is_error
        assert OutcomeEvent("503", OutcomeCategory.SERVER_ERROR).is_error
        assert OutcomeEvent("OSError: boom", OutcomeCategory.TRANSPORT).is_error


class TestOutcomeCounter:
    def test_starts_empty(self):
        counter = OutcomeCounter()
        assert len(counter) == 0
        assert counter.total() == 0
        assert counter.snapshot() == {}

    def test_record_creates_then_increments(self):
        counter = OutcomeCounter()
        counter.record("200", OutcomeCategory.SUCCESS)
        counter.record("200", OutcomeCategory.SUCCESS)
        counter.record("404", OutcomeCategory.CLIENT_ERROR)

        snapshot = counter.snapshot()
        assert snapshot["200"].count == 2
        assert snapshot["200"].category is OutcomeCategory.SUCCESS
        assert snapshot["404"].count == 1
        assert counter.total() == 3
        assert len(counter) == 2

    def test_first_category_wins(self):
        counter = OutcomeCounter()
        counter.record("x", OutcomeCategory.TRANSPORT)
        counter.record("x", OutcomeCategory.SUCCESS)
        assert counter.snapshot()["x"].category is OutcomeCategory.TRANSPORT

    def test_snapshot_is_a_copy(self):
        counter = OutcomeCounter()
        counter.record("200", OutcomeCategory.SUCCESS)
        snapshot = counter.snapshot()
        snapshot["200"].count = 99
        snapshot.clear()
        assert counter.snapshot()["200"].count == 1

    def test_no_lost_updates_under_concurrency(self):
        """Concurrent insert-or-increment from many threads loses nothing."""
        counter = OutcomeCounter()
        threads_n = 16
        per_thread = 2000
        labels = ["200", "404", "500", "ClientConnectorError: refused"]
        barrier = threading.Barrier(threads_n)

        def _hammer(offset: int) -> None:
            barrier.wait()
            for i in range(per_thread):
                counter.record(labels[(i + offset) % len(labels)], OutcomeCategory.TRANSPORT)

        threads = [threading.Thread(target=_hammer, args=(n,)) for n in range(threads_n)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert counter.total() == threads_n * per_thread
        assert sum(entry.count for entry in counter.snapshot().values()) == threads_n * per_thread
        assert len(counter) == len(labels)
