"""Shared type aliases for loadburst."""

from __future__ import annotations

# One ``(name, value)`` HTTP header pair.
HeaderPair = tuple[str, str]

# Ordered header pairs; duplicates allowed, the last write per name wins.
Headers = tuple[HeaderPair, ...]
