"""Progress markers and the end-of-run text report."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from rich.text import Text

from loadburst.engine.outcomes import OutcomeCategory

if TYPE_CHECKING:
    from rich.console import Console

    from loadburst.engine.outcomes import OutcomeEvent
    from loadburst.metrics.models import Report

CATEGORY_STYLES: dict[OutcomeCategory, str] = {
    OutcomeCategory.SUCCESS: "bold green",
    OutcomeCategory.CLIENT_ERROR: "bold red",
    OutcomeCategory.SERVER_ERROR: "bold red",
    OutcomeCategory.TRANSPORT: "bold blue",
}


def count_string(base: str, count: int) -> str:
    """Return ``"<count> <base>"`` pluralized for counts other than one.

    Examples:
        ``count_string("error", 1)`` is ``"1 error"``,
        ``count_string("request", 3)`` is ``"3 requests"``,
        ``count_string("process", 2)`` is ``"2 processes"``.
    """
    text = f"{count} {base}"
    if count == 1:
        return text
    if text.endswith("s"):
        text += "e"
    return text + "s"


class ProgressPrinter:
    """Prints one colored ``.`` per completed request.

    Called from every worker thread; a lock keeps each marker and its
    style together.
    """

    def __init__(self, console: Console, marker: str = ".") -> None:
        self._console = console
        self._marker = marker
        self._lock = threading.Lock()
        self.printed = 0

    def __call__(self, event: OutcomeEvent) -> None:
        with self._lock:
            self._console.print(
                self._marker,
                style=CATEGORY_STYLES[event.category],
                end="",
                soft_wrap=True,
                highlight=False,
            )
            self.printed += 1


def render_report(report: Report, *, show_latency: bool = False) -> Text:
    """Render the final report.

    Layout::

        <N> errors of <M> requests (<P>% error rate) made in <S> seconds.
        <R> requests/second.
        Responses:
          <label>: <count> <rate> per second

    Args:
        report: The final report.
        show_latency: Append a latency block.

    Returns:
        Styled text; ``.plain`` gives the uncolored report.
    """
    text = Text()
    text.append(
        f"{count_string('error', report.total_errors)} of "
        f"{count_string('request', report.total_requests)} "
        f"({int(report.error_rate_percent)}% error rate) "
        f"made in {report.elapsed_seconds:f} seconds.\n"
    )
    text.append(f"{report.requests_per_second:.2f} requests/second.\n")
    text.append("Responses:")
    for outcome in report.outcomes:
        text.append(f"\n  {outcome.label}: ")
        text.append(str(outcome.count), style=CATEGORY_STYLES[outcome.category])
        text.append(f" {outcome.per_second:.2f} per second")

    if show_latency:
        latency = report.latency
        text.append("\nLatency:")
        for name, value in (
            ("min", latency.min),
            ("avg", latency.avg),
            ("p50", latency.p50),
            ("p95", latency.p95),
            ("p99", latency.p99),
            ("max", latency.max),
        ):
            text.append(f"\n  {name}: {value:.2f}ms")

    return text
