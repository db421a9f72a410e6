"""Run configuration: the immutable config record and its validation."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from yarl import URL

from loadburst._internal.errors import ConfigError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from loadburst._internal.types import HeaderPair, Headers

SUPPORTED_METHODS = frozenset({"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"})
SUPPORTED_SCHEMES = frozenset({"http", "https"})


@dataclass(frozen=True)
class RunConfig:
    """Immutable description of a single load test run.

    Attributes:
        url: Target URL.
        method: Upper-case HTTP method.
        body: Request body sent with every request.
        headers: Ordered ``(name, value)`` pairs. Later pairs override
            earlier ones with the same (case-insensitive) name.
        thread_count: Number of concurrent workers.
        delay_seconds: Pause between requests, per worker.
        request_limit: Total request cap across all workers (0 = unlimited).
        duration_limit: Wall-clock cap in seconds (0 = unlimited).
        connect_timeout_seconds: Upper bound for a single request attempt.
        skip_certificate_verification: Disable TLS verification for HTTPS.
    """

    url: str
    method: str = "GET"
    body: bytes = b""
    headers: Headers = ()
    thread_count: int = 1
    delay_seconds: float = 0.0
    request_limit: int = 0
    duration_limit: int = 0
    connect_timeout_seconds: int = 3
    skip_certificate_verification: bool = False

    @property
    def is_https(self) -> bool:
        """Return True if the target URL uses the https scheme."""
        return self.url.lower().startswith("https://")

    @property
    def verify_certificates(self) -> bool:
        """Return False only for HTTPS targets with verification disabled."""
        return not (self.is_https and self.skip_certificate_verification)


@dataclass(frozen=True)
class Defaults:
    """Environment-provided defaults for CLI options.

    Attributes:
        threads: Default worker count.
        connect_timeout: Default connect timeout in seconds.
        method: Default HTTP method.
    """

    threads: int = 1
    connect_timeout: int = 3
    method: str = "GET"


def load_defaults() -> Defaults:
    """Load CLI defaults from environment variables.

    Environment variables:
        LOADBURST_THREADS: Default worker count (default: 1).
        LOADBURST_CONNECT_TIMEOUT: Default timeout in seconds (default: 3).
        LOADBURST_METHOD: Default HTTP method (default: GET).

    Returns:
        Populated Defaults instance.

    Raises:
        ConfigError: If an environment variable has an invalid value.
    """
    threads = _env_int("LOADBURST_THREADS", 1)
    timeout = _env_int("LOADBURST_CONNECT_TIMEOUT", 3)
    method = os.environ.get("LOADBURST_METHOD", "GET").strip().upper()

    if threads < 1:
        msg = f"LOADBURST_THREADS must be >= 1, got: {threads}"
        raise ConfigError(msg)
    if timeout < 1:
        msg = f"LOADBURST_CONNECT_TIMEOUT must be >= 1, got: {timeout}"
        raise ConfigError(msg)
    if method not in SUPPORTED_METHODS:
        msg = f"LOADBURST_METHOD must be one of {', '.join(sorted(SUPPORTED_METHODS))}, got: {method!r}"
        raise ConfigError(msg)

    return Defaults(threads=threads, connect_timeout=timeout, method=method)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        msg = f"{name} must be an integer, got: {raw!r}"
        raise ConfigError(msg) from None


def parse_header(raw: str) -> HeaderPair:
    """Split a ``"Name: value"`` string on its first colon.

    Args:
        raw: Header string as given on the command line.

    Returns:
        The whitespace-trimmed ``(name, value)`` pair.

    Raises:
        ConfigError: If the string has no ``:`` separator.
    """
    name, sep, value = raw.partition(":")
    if not sep:
        msg = f"Invalid header format ({raw}). Expected: key:value"
        raise ConfigError(msg)
    return name.strip(), value.strip()


def parse_delay(raw: str | float) -> float:
    """Parse the per-worker delay, clamping negative values to zero.

    Raises:
        ConfigError: If the value is not a number.
    """
    try:
        delay = float(raw)
    except (TypeError, ValueError):
        msg = f"Invalid delay value ({raw}). Must be a positive float."
        raise ConfigError(msg) from None
    return max(delay, 0.0)


def resolve_data_path(datafile: str) -> Path:
    """Resolve a data file reference to an absolute path.

    Accepts plain paths, ``~`` / ``~user`` prefixed paths and ``file://``
    URLs.

    Args:
        datafile: Path or URL as given on the command line.

    Returns:
        Absolute path to the file.

    Raises:
        ConfigError: If a ``~user`` reference names an unknown user.
    """
    if "://" in datafile:
        return Path(urlparse(datafile).path).absolute()

    expanded = os.path.expanduser(datafile)
    if expanded.startswith("~"):
        user = expanded[1:].split("/", 1)[0]
        msg = f"Cannot resolve home directory for user {user!r} in {datafile}"
        raise ConfigError(msg)
    return Path(expanded).absolute()


def read_data_file(datafile: str) -> bytes:
    """Read the request body from a data file.

    Raises:
        ConfigError: If the path cannot be resolved or read.
    """
    path = resolve_data_path(datafile)
    try:
        return path.read_bytes()
    except OSError as exc:
        msg = f"Cannot read data file {path}: {exc.strerror or exc}"
        raise ConfigError(msg) from exc


def validate_url(url: str) -> str:
    """Return the trimmed URL if it is an absolute http(s) URL.

    Raises:
        ConfigError: If the URL is malformed, relative or not http(s).
    """
    url = url.strip()
    try:
        parsed = URL(url)
    except ValueError as exc:
        msg = f"Invalid URL ({url}): {exc}"
        raise ConfigError(msg) from exc
    if parsed.scheme not in SUPPORTED_SCHEMES or not parsed.host:
        msg = f"Invalid URL ({url}). Expected an absolute http:// or https:// URL."
        raise ConfigError(msg)
    return url


def build_config(
    url: str,
    *,
    method: str = "GET",
    data: str | None = None,
    data_file: str | None = None,
    headers: Iterable[str] = (),
    threads: int = 1,
    delay: str | float = 0.0,
    count: int = 0,
    duration: int = 0,
    connect_timeout: int = 3,
    insecure: bool = False,
) -> RunConfig:
    """Validate raw command-line values and build a RunConfig.

    Counts and durations below 1 mean "unlimited". Negative delays are
    clamped to zero.

    Args:
        url: Target URL.
        method: HTTP method, case-insensitive.
        data: Inline request body.
        data_file: Path or ``file://`` URL of a request body file.
        headers: Raw ``"Name: value"`` header strings.
        threads: Number of concurrent workers.
        delay: Per-worker delay between requests, in seconds.
        count: Total request cap.
        duration: Wall-clock cap in seconds.
        connect_timeout: Request timeout in seconds.
        insecure: Skip TLS certificate verification.

    Returns:
        The validated, immutable run configuration.

    Raises:
        ConfigError: If any value is invalid.
    """
    if threads < 1:
        msg = f"Invalid thread value ({threads}). Must be a positive integer."
        raise ConfigError(msg)
    if connect_timeout < 1:
        msg = f"Invalid timeout value ({connect_timeout}). Must be a positive integer."
        raise ConfigError(msg)

    normalized_method = method.strip().upper()
    if normalized_method not in SUPPORTED_METHODS:
        msg = (
            f"Invalid method ({method}). "
            f"Must be one of: {', '.join(sorted(SUPPORTED_METHODS))}."
        )
        raise ConfigError(msg)

    if data is not None and data_file is not None:
        msg = "Use either --data or --data-file, not both."
        raise ConfigError(msg)

    body = read_data_file(data_file) if data_file is not None else (data or "").encode()

    return RunConfig(
        url=validate_url(url),
        method=normalized_method,
        body=body,
        headers=tuple(parse_header(h) for h in headers),
        thread_count=threads,
        delay_seconds=parse_delay(delay),
        request_limit=max(count, 0),
        duration_limit=max(duration, 0),
        connect_timeout_seconds=connect_timeout,
        skip_certificate_verification=insecure,
    )
