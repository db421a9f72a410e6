"""``loadburst run``: hammer one URL and print the outcome report."""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.markup import escape

from loadburst._internal.config import build_config, load_defaults
from loadburst._internal.errors import LoadBurstError
from loadburst.cli.report import ProgressPrinter, count_string, render_report
from loadburst.engine.runner import LoadTestRunner

console = Console()


def _banner(
    threads: int,
    url: str,
    request_limit: int,
    duration_limit: int,
) -> str:
    requests = (
        count_string("total request", request_limit)
        if request_limit > 0
        else "unlimited requests"
    )
    duration = (
        f", maximum duration of {count_string('second', duration_limit)}"
        if duration_limit > 0
        else ""
    )
    return f"Running {count_string('thread', threads)} against: {url} ({requests}){duration}"


def run_cmd(
    url: str = typer.Argument(
        ...,
        help="URL to load test.",
    ),
    method: str | None = typer.Option(
        None,
        "--command",
        "-X",
        help="HTTP method to use (default: GET).",
    ),
    count: int = typer.Option(
        0,
        "--count",
        "-c",
        help="Total number of requests to make. If count < 1 there is no limit.",
    ),
    threads: int | None = typer.Option(
        None,
        "--threads",
        "-t",
        help="How many concurrent threads to use (default: 1).",
    ),
    delay: str = typer.Option(
        "0",
        "--delay",
        help="Wait time between requests in seconds, per thread.",
        show_default=False,
    ),
    duration: int = typer.Option(
        0,
        "--duration",
        help="Maximum duration of the test in seconds.",
    ),
    connect_timeout: int | None = typer.Option(
        None,
        "--connect-timeout",
        help="Maximum time allowed for a request in seconds (default: 3).",
    ),
    data: str | None = typer.Option(
        None,
        "--data",
        "-d",
        help="HTTP request body.",
    ),
    data_file: str | None = typer.Option(
        None,
        "--data-file",
        help="Read the HTTP request body from a file.",
    ),
    headers: list[str] | None = typer.Option(
        None,
        "--header",
        "-H",
        help="Custom header as 'Key: Value'. May be repeated.",
    ),
    insecure: bool = typer.Option(
        False,
        "--insecure",
        "-k",
        help="Allow insecure server connections when using SSL.",
    ),
    latency: bool = typer.Option(
        False,
        "--latency",
        help="Append latency percentiles to the report.",
    ),
    fail_on_error_rate: float | None = typer.Option(
        None,
        "--fail-on-error-rate",
        help="Exit non-zero if the error rate exceeds this fraction (e.g., 0.05).",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose (DEBUG) logging.",
    ),
    log_json: bool = typer.Option(
        False,
        "--log-json",
        help="Emit log records as JSON lines.",
    ),
) -> None:
    """Run a load test against URL and print the outcome report."""
    try:
        defaults = load_defaults()
        config = build_config(
            url,
            method=method if method is not None else defaults.method,
            data=data,
            data_file=data_file,
            headers=headers or (),
            threads=threads if threads is not None else defaults.threads,
            delay=delay,
            count=count,
            duration=duration,
            connect_timeout=(
                connect_timeout if connect_timeout is not None else defaults.connect_timeout
            ),
            insecure=insecure,
        )
    except LoadBurstError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}", soft_wrap=True)
        raise typer.Exit(code=1) from exc

    if data_file is not None:
        console.print(
            f"Read {count_string('byte', len(config.body))} from file: {escape(data_file)}",
            highlight=False,
            soft_wrap=True,
        )

    console.print(
        escape(_banner(config.thread_count, config.url, config.request_limit, config.duration_limit)),
        highlight=False,
        soft_wrap=True,
    )
    if config.is_https and config.skip_certificate_verification:
        console.print("Skipping certificate verification.", highlight=False)

    test_runner = LoadTestRunner(
        config,
        on_outcome=ProgressPrinter(console),
        log_level=logging.DEBUG if verbose else logging.WARNING,
        json_logs=log_json,
    )
    try:
        report = test_runner.run()
    except LoadBurstError as exc:
        console.print(f"\n[red]Load test failed:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    console.print()
    console.print(render_report(report, show_latency=latency), soft_wrap=True)

    if report.worker_failures:
        for failure in report.worker_failures:
            console.print(
                f"[red]Worker {failure.worker_id} stopped:[/red] "
                f"{escape(failure.error_message or 'unknown error')}"
            )
        raise typer.Exit(code=1)

    if fail_on_error_rate is not None and report.error_rate > fail_on_error_rate:
        console.print(
            f"[red]FAIL:[/red] Error rate {report.error_rate_percent:.2f}% "
            f"exceeds threshold {fail_on_error_rate * 100:.2f}%"
        )
        raise typer.Exit(code=1)
