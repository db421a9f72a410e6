"""Tests for progress markers and report rendering."""

from __future__ import annotations

import io
import threading

import pytest
from rich.console import Console

from loadburst.cli.report import ProgressPrinter, count_string, render_report
from loadburst.engine.outcomes import OutcomeCategory, OutcomeEvent
from loadburst.metrics.models import LatencySummary, OutcomeStats, Report


def _report(**overrides: object) -> Report:
    values: dict[str, object] = {
        "total_requests": 10,
        "total_errors": 3,
        "error_rate_percent": 30.0,
        "requests_per_second": 4.0,
        "elapsed_seconds": 2.5,
        "outcomes": (
            OutcomeStats("200", 7, OutcomeCategory.SUCCESS, 2.8),
            OutcomeStats("404", 2, OutcomeCategory.CLIENT_ERROR, 0.8),
            OutcomeStats("ClientConnectorError: [Errno 111] refused", 1, OutcomeCategory.TRANSPORT, 0.4),
        ),
    }
    values.update(overrides)
    return Report(**values)  # type: ignore[arg-type]


class TestCountString:
    @pytest.mark.parametrize(
        ("base", "count", "expected"),
        [
            ("error", 1, "1 error"),
            ("error", 0, "0 errors"),
            ("request", 5, "5 requests"),
            ("total request", 1, "1 total request"),
            ("process", 2, "2 processes"),
        ],
    )
    def test_pluralization(self, base: str, count: int, expected: str):
        assert count_string(base, count) == expected


class TestRenderReport:
    def test_layout(self):
        text = render_report(_report())
        assert text.plain.splitlines() == [
            "3 errors of 10 requests (30% error rate) made in 2.500000 seconds.",
            "4.00 requests/second.",
            "Responses:",
            "  200: 7 2.80 per second",
            "  404: 2 0.80 per second",
            "  ClientConnectorError: [Errno 111] refused: 1 0.40 per second",
        ]

    def test_error_rate_is_truncated(self):
        text = render_report(_report(total_errors=2, total_requests=3, error_rate_percent=66.6667))
        assert text.plain.startswith("2 errors of 3 requests (66% error rate)")

    def test_singular_counts(self):
        text = render_report(_report(total_errors=1, total_requests=1, outcomes=()))
        assert text.plain.startswith("1 error of 1 request (")
        assert text.plain.endswith("Responses:")

    def test_latency_block_optional(self):
        report = _report(latency=LatencySummary(min=1.0, avg=2.0, p50=2.0, p95=3.5, p99=4.0, max=5.0))
        assert "Latency:" not in render_report(report).plain
        lines = render_report(report, show_latency=True).plain.splitlines()
        assert "Latency:" in lines
        assert "  p95: 3.50ms" in lines

    def test_counts_are_styled_by_category(self):
        text = render_report(_report())
        styles = {str(span.style) for span in text.spans}
        assert "bold green" in styles
        assert "bold red" in styles
        assert "bold blue" in styles


class TestProgressPrinter:
    def test_one_marker_per_event(self):
        buffer = io.StringIO()
        console = Console(file=buffer, force_terminal=False, width=40)
        printer = ProgressPrinter(console)

        events = [
            OutcomeEvent("200", OutcomeCategory.SUCCESS),
            OutcomeEvent("500", OutcomeCategory.SERVER_ERROR),
            OutcomeEvent("OSError: x", OutcomeCategory.TRANSPORT),
        ]
        for event in events:
            printer(event)

        assert buffer.getvalue() == "..."
        assert printer.printed == 3

    def test_thread_safe(self):
        buffer = io.StringIO()
        printer = ProgressPrinter(Console(file=buffer, force_terminal=False))
        event = OutcomeEvent("200", OutcomeCategory.SUCCESS)

        def _emit() -> None:
            for _ in range(200):
                printer(event)

        threads = [threading.Thread(target=_emit) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert printer.printed == 1600
        assert buffer.getvalue().count(".") == 1600
