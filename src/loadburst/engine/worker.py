"""Worker loop: one OS thread, one event loop, one reusable HTTP client."""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING

from loadburst._internal.errors import RequestBuildError
from loadburst._internal.logging import get_logger
from loadburst.engine.dispatcher import RequestDispatcher
from loadburst.engine.http_client import HttpClient
from loadburst.engine.protocol import WorkerResult

if TYPE_CHECKING:
    from collections.abc import Callable

    from loadburst._internal.config import RunConfig
    from loadburst.engine.outcomes import OutcomeCounter, OutcomeEvent
    from loadburst.engine.state import RunState
    from loadburst.metrics.histogram import LatencyHistogram

logger = get_logger("engine.worker")


def _new_event_loop() -> asyncio.AbstractEventLoop:
    """Create a uvloop event loop if available, else the default one.

    uvloop is not available on Windows or when it is not installed.
    """
    if sys.platform != "win32":
        try:
            import uvloop
        except ImportError:
            logger.debug("uvloop not available, using default asyncio event loop")
        else:
            return uvloop.new_event_loop()
    return asyncio.new_event_loop()


def should_continue(config: RunConfig, state: RunState) -> bool:
    """Return True while the run is neither stopped nor at its request cap.

    The cap check reads the shared counter without locking, so concurrent
    workers may overshoot the cap by up to ``thread_count - 1``.
    """
    if state.stop_requested:
        return False
    return config.request_limit == 0 or state.total_requests < config.request_limit


def run_worker(
    worker_id: int,
    config: RunConfig,
    state: RunState,
    counter: OutcomeCounter,
    *,
    on_outcome: Callable[[OutcomeEvent], None] | None = None,
    histogram: LatencyHistogram | None = None,
) -> WorkerResult:
    """Run one worker's request loop to completion on the calling thread.

    Blocks until the shared stop flag is set, the global request cap is
    reached, or request construction fails.

    Args:
        worker_id: Worker identifier.
        config: Run configuration.
        state: Shared run state.
        counter: Shared outcome counter.
        on_outcome: Callback invoked with every ``OutcomeEvent``.
        histogram: Optional worker-local latency histogram.

    Returns:
        The worker's result. ``success`` is False if the loop ended on a
        fatal error.
    """
    dispatcher = RequestDispatcher(
        config,
        state,
        counter,
        on_outcome=on_outcome,
        histogram=histogram,
        worker_id=worker_id,
    )
    try:
        with asyncio.Runner(loop_factory=_new_event_loop) as runner:
            return runner.run(_worker_loop(worker_id, config, state, dispatcher))
    except Exception as exc:
        logger.exception("Worker %d: failed", worker_id)
        return WorkerResult(
            worker_id=worker_id,
            requests_issued=dispatcher.issued,
            success=False,
            error_message=str(exc),
        )


async def _worker_loop(
    worker_id: int,
    config: RunConfig,
    state: RunState,
    dispatcher: RequestDispatcher,
) -> WorkerResult:
    """Issue requests until a stop condition holds.

    Args:
        worker_id: Worker identifier.
        config: Run configuration.
        state: Shared run state.
        dispatcher: This worker's request dispatcher.

    Returns:
        The worker's result.
    """
    logger.debug("Worker %d: started", worker_id)

    async with HttpClient(
        timeout=config.connect_timeout_seconds,
        verify_ssl=config.verify_certificates,
    ) as client:
        try:
            while should_continue(config, state):
                request = dispatcher.build_request()
                dispatcher.claim()
                await dispatcher.dispatch(client, request)

                if state.duration_expired(config.duration_limit) and state.request_stop():
                    logger.info(
                        "Duration limit of %ds reached, stopping all workers",
                        config.duration_limit,
                    )

                if config.delay_seconds > 0 and should_continue(config, state):
                    await asyncio.sleep(config.delay_seconds)
        except RequestBuildError as exc:
            logger.error("Worker %d: %s", worker_id, exc)
            return WorkerResult(
                worker_id=worker_id,
                requests_issued=dispatcher.issued,
                success=False,
                error_message=str(exc),
            )

    logger.debug("Worker %d: stopped after %d requests", worker_id, dispatcher.issued)
    return WorkerResult(worker_id=worker_id, requests_issued=dispatcher.issued)
