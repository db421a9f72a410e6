"""Custom exception hierarchy for loadburst."""

from __future__ import annotations


class LoadBurstError(Exception):
    """Base exception for all loadburst errors.

    All custom exceptions raised by loadburst inherit from this class,
    so callers can catch any loadburst-specific error with a single
    except clause.
    """


class ConfigError(LoadBurstError):
    """Raised when run configuration is invalid.

    Examples:
        - Thread count or connect timeout is below 1.
        - A header is missing the ``:`` separator.
        - The data file cannot be read.
    """


class RequestBuildError(LoadBurstError):
    """Raised when a request cannot be constructed from the run config.

    Unlike transport failures, which are recorded as outcomes, this stops
    the worker that hit it.
    """


class EngineError(LoadBurstError):
    """Raised when the load test engine fails unexpectedly."""
