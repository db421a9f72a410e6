"""One request/response cycle and its outcome classification."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import aiohttp
from multidict import CIMultiDict
from yarl import URL

from loadburst._internal.config import SUPPORTED_SCHEMES
from loadburst._internal.errors import RequestBuildError
from loadburst._internal.logging import get_logger
from loadburst.engine.http_client import PreparedRequest
from loadburst.engine.outcomes import OutcomeCategory, OutcomeEvent, classify_status

if TYPE_CHECKING:
    from collections.abc import Callable

    from loadburst._internal.config import RunConfig
    from loadburst.engine.http_client import HttpClient
    from loadburst.engine.outcomes import OutcomeCounter
    from loadburst.engine.state import RunState
    from loadburst.metrics.histogram import LatencyHistogram

logger = get_logger("engine.dispatcher")


def _noop_callback(event: OutcomeEvent) -> None:
    """Default no-op outcome callback."""


def describe_error(exc: BaseException) -> str:
    """Return the outcome label for a transport failure.

    Args:
        exc: The exception raised while sending the request.

    Returns:
        ``"<ExceptionType>: <message>"``, or just the type name when the
        exception has no message.
    """
    message = str(exc)
    if not message:
        return type(exc).__name__
    return f"{type(exc).__name__}: {message}"


class RequestDispatcher:
    """Builds, sends and classifies requests for one worker.

    Every completed attempt is recorded in the shared ``OutcomeCounter``;
    every attempt that is not a 200 response also increments the shared
    error count. Transport failures are outcomes, not exceptions.

    Attributes:
        issued: Attempts this dispatcher has claimed so far.
    """

    def __init__(
        self,
        config: RunConfig,
        state: RunState,
        counter: OutcomeCounter,
        *,
        on_outcome: Callable[[OutcomeEvent], None] | None = None,
        histogram: LatencyHistogram | None = None,
        worker_id: int = 0,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            config: Run configuration.
            state: Shared run state.
            counter: Shared outcome counter.
            on_outcome: Callback invoked with every ``OutcomeEvent``.
                Defaults to a no-op.
            histogram: Optional worker-local latency histogram.
            worker_id: Worker identifier for event tagging.
        """
        self._config = config
        self._state = state
        self._counter = counter
        self._on_outcome = on_outcome or _noop_callback
        self._histogram = histogram
        self._worker_id = worker_id
        self.issued = 0

    def claim(self) -> None:
        """Count one attempt against the shared request total."""
        self._state.increment_requests()
        self.issued += 1

    def build_request(self) -> PreparedRequest:
        """Build one request from the run configuration.

        Headers are applied in order, so the last value given for a name
        wins.

        Returns:
            The prepared request.

        Raises:
            RequestBuildError: If the URL is not an absolute http(s) URL.
        """
        try:
            url = URL(self._config.url)
        except ValueError as exc:
            msg = f"Error creating the request: {exc}"
            raise RequestBuildError(msg) from exc

        if url.scheme not in SUPPORTED_SCHEMES or not url.host:
            msg = f"Error creating the request: unsupported URL {self._config.url!r}"
            raise RequestBuildError(msg)

        headers: CIMultiDict[str] = CIMultiDict()
        for name, value in self._config.headers:
            headers[name] = value

        return PreparedRequest(
            method=self._config.method,
            url=url,
            headers=headers,
            body=self._config.body,
        )

    async def dispatch(
        self,
        client: HttpClient,
        request: PreparedRequest | None = None,
    ) -> OutcomeEvent:
        """Send one request and record its classified outcome.

        Args:
            client: The worker's reusable HTTP client.
            request: A request from ``build_request``. Built on the fly
                when omitted.

        Everything raised once the request is handed to the client,
        redirect failures included, is a transport outcome.

        Returns:
            The classified outcome.

        Raises:
            RequestBuildError: If ``request`` is omitted and cannot be
                constructed.
        """
        if request is None:
            request = self.build_request()

        start = time.monotonic()
        try:
            response = await client.send(request)
        except (aiohttp.ClientError, TimeoutError, OSError) as exc:
            event = OutcomeEvent(
                label=describe_error(exc),
                category=OutcomeCategory.TRANSPORT,
                latency_ms=(time.monotonic() - start) * 1000,
                worker_id=self._worker_id,
            )
            logger.debug("Worker %d: transport error: %s", self._worker_id, event.label)
        else:
            event = OutcomeEvent(
                label=str(response.status),
                category=classify_status(response.status),
                status_code=response.status,
                latency_ms=(time.monotonic() - start) * 1000,
                worker_id=self._worker_id,
            )

        self._record(event)
        return event

    def _record(self, event: OutcomeEvent) -> None:
        if event.is_error:
            self._state.increment_errors()
        self._counter.record(event.label, event.category)
        if self._histogram is not None:
            self._histogram.record(event.latency_ms)
        self._on_outcome(event)
