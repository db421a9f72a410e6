"""Reusable aiohttp client used by one worker for its whole loop."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import aiohttp

if TYPE_CHECKING:
    from multidict import CIMultiDict
    from yarl import URL


@dataclass(frozen=True)
class PreparedRequest:
    """A fully built request, ready to be sent.

    Attributes:
        method: Upper-case HTTP method.
        url: Parsed absolute URL.
        headers: Headers to send, one value per name.
        body: Request body; sent again on every attempt.
    """

    method: str
    url: URL
    headers: CIMultiDict[str]
    body: bytes = b""


@dataclass(frozen=True)
class HttpResponse:
    """The parts of a response the dispatcher classifies.

    Attributes:
        status: HTTP status code.
        content_length: Number of body bytes read.
    """

    status: int
    content_length: int


class HttpClient:
    """Async HTTP client wrapping one ``aiohttp.ClientSession``.

    The session, and so its connection pool, is reused for every request
    a worker makes. Must be used as an async context manager.
    """

    def __init__(
        self,
        timeout: float,
        *,
        verify_ssl: bool = True,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            timeout: Upper bound in seconds for one request attempt,
                connection setup included.
            verify_ssl: If False, TLS certificates are not validated.
        """
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._verify_ssl = verify_ssl
        self._session: aiohttp.ClientSession | None = None

    @property
    def verify_ssl(self) -> bool:
        """Return whether TLS certificates are validated."""
        return self._verify_ssl

    async def __aenter__(self) -> HttpClient:
        """Open the underlying aiohttp session."""
        connector = aiohttp.TCPConnector(ssl=self._verify_ssl)
        self._session = aiohttp.ClientSession(
            timeout=self._timeout,
            connector=connector,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        """Close the underlying aiohttp session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def send(self, request: PreparedRequest) -> HttpResponse:
        """Send one request and read the whole response body.

        Args:
            request: The request to send.

        Returns:
            Status and body size of the response.

        Raises:
            RuntimeError: If the client is used outside of an async context
                manager.
            aiohttp.ClientError: On connection, protocol or TLS failures.
            TimeoutError: If the attempt exceeds the timeout.
        """
        if self._session is None:
            msg = "HttpClient must be used as an async context manager"
            raise RuntimeError(msg)

        async with self._session.request(
            request.method,
            request.url,
            headers=request.headers,
            data=request.body or None,
        ) as resp:
            body = await resp.read()
            return HttpResponse(status=resp.status, content_length=len(body))
