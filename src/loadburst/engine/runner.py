"""Top-level load test orchestrator."""

from __future__ import annotations

import logging
import signal
import threading
from typing import TYPE_CHECKING

from loadburst._internal.errors import EngineError
from loadburst._internal.logging import get_logger, setup_logging
from loadburst.engine.outcomes import OutcomeCounter
from loadburst.engine.protocol import WorkerResult
from loadburst.engine.state import RunState
from loadburst.engine.worker import run_worker
from loadburst.metrics.histogram import LatencyHistogram
from loadburst.metrics.summary import build_report

if TYPE_CHECKING:
    from collections.abc import Callable

    from loadburst._internal.config import RunConfig
    from loadburst.engine.outcomes import OutcomeEvent
    from loadburst.metrics.models import Report

logger = get_logger("engine.runner")

_JOIN_POLL_SECONDS = 0.1


class LoadTestRunner:
    """Runs a fixed pool of worker threads against one URL.

    Wires together the shared run state, the outcome counter, the worker
    threads and the final report. ``run()`` blocks until every worker has
    returned: because the request cap was reached, the duration expired,
    or a stop was requested via SIGINT/SIGTERM or ``stop()``.

    Attributes:
        config: The run configuration.
    """

    def __init__(
        self,
        config: RunConfig,
        *,
        on_outcome: Callable[[OutcomeEvent], None] | None = None,
        log_level: int = logging.INFO,
        json_logs: bool = False,
    ) -> None:
        """Initialize the runner.

        Args:
            config: Validated run configuration.
            on_outcome: Callback invoked from worker threads with every
                ``OutcomeEvent``. Must be thread-safe.
            log_level: Logging level.
            json_logs: Emit JSON log lines instead of plain text.
        """
        self.config = config
        self._on_outcome = on_outcome
        self._log_level = log_level
        self._json_logs = json_logs

        self._state: RunState | None = None
        self._stop_requested = False

    @property
    def state(self) -> RunState | None:
        """Return the shared state of the current or last run."""
        return self._state

    def stop(self) -> None:
        """Request a graceful stop; in-flight requests are allowed to finish.

        Idempotent. May be called before ``run()``, in which case the run
        ends without issuing any request.
        """
        self._stop_requested = True
        if self._state is not None:
            self._state.request_stop()

    def run(self) -> Report:
        """Execute the load test and return the final report.

        Returns:
            Report built after every worker thread has been joined.

        Raises:
            EngineError: If the worker pool cannot be started.
        """
        setup_logging(level=self._log_level, json_format=self._json_logs)

        config = self.config
        logger.info(
            "Starting load test: url=%s, method=%s, threads=%d, requests=%s, duration=%s",
            config.url,
            config.method,
            config.thread_count,
            config.request_limit or "unlimited",
            f"{config.duration_limit}s" if config.duration_limit else "unlimited",
        )

        state = RunState()
        counter = OutcomeCounter()
        self._state = state
        if self._stop_requested:
            state.request_stop()

        histograms = [LatencyHistogram() for _ in range(config.thread_count)]
        results: list[WorkerResult | None] = [None] * config.thread_count

        def _worker_target(worker_id: int) -> None:
            results[worker_id] = run_worker(
                worker_id,
                config,
                state,
                counter,
                on_outcome=self._on_outcome,
                histogram=histograms[worker_id],
            )

        threads = [
            threading.Thread(
                target=_worker_target,
                args=(i,),
                name=f"loadburst-worker-{i}",
                daemon=True,
            )
            for i in range(config.thread_count)
        ]

        restore_signals = self._install_signal_handlers()
        try:
            for thread in threads:
                thread.start()
        except Exception as exc:
            state.request_stop()
            logger.exception("Failed to start worker threads")
            raise EngineError("Failed to start worker threads") from exc
        finally:
            # Join barrier: nothing below may run while a worker is active
            for thread in threads:
                while thread.is_alive():
                    thread.join(timeout=_JOIN_POLL_SECONDS)
            restore_signals()

        elapsed = state.elapsed()

        merged = LatencyHistogram()
        for histogram in histograms:
            merged.merge(histogram)

        worker_results = [
            r
            if r is not None
            else WorkerResult(
                worker_id=i,
                requests_issued=0,
                success=False,
                error_message="No result received",
            )
            for i, r in enumerate(results)
        ]
        for r in worker_results:
            if not r.success:
                logger.warning("Worker %d failed: %s", r.worker_id, r.error_message)

        report = build_report(
            total_requests=state.total_requests,
            total_errors=state.total_errors,
            outcomes=counter.snapshot(),
            elapsed_seconds=elapsed,
            histogram=merged,
            interrupted=self._stop_requested,
            worker_results=worker_results,
        )

        logger.info(
            "Load test completed: duration=%.2fs, total_requests=%d, "
            "rps=%.2f, errors=%d, error_rate=%.2f%%",
            report.elapsed_seconds,
            report.total_requests,
            report.requests_per_second,
            report.total_errors,
            report.error_rate_percent,
        )
        return report

    def _install_signal_handlers(self) -> Callable[[], None]:
        """Install SIGINT/SIGTERM handlers that request a graceful stop.

        Signal handlers can only be installed from the main thread; on any
        other thread this is a no-op and ``stop()`` is the only way to
        interrupt the run.

        Returns:
            A function restoring the previous handlers.
        """
        if threading.current_thread() is not threading.main_thread():
            return lambda: None

        original_sigint = signal.getsignal(signal.SIGINT)
        original_sigterm = signal.getsignal(signal.SIGTERM)

        def _signal_handler(signum: int, _frame: object) -> None:
            if not self._stop_requested:
                logger.info("Signal %d received, initiating graceful shutdown", signum)
            self.stop()

        signal.signal(signal.SIGINT, _signal_handler)
        signal.signal(signal.SIGTERM, _signal_handler)

        def _restore() -> None:
            signal.signal(signal.SIGINT, original_sigint)
            signal.signal(signal.SIGTERM, original_sigterm)

        return _restore
