# Copyright 2024-2026 The spaceship-mcp Authors
# SPDX-License-Identifier: Apache-2.0

"""
In-memory response cache with per-entry TTL and prefix invalidation.

Keys follow the ``<family>/<scope>/<args>`` convention (see
:func:`cache_key`), so that every key of one resource family shares the
prefix ``<family>/<scope>/``. Writes invalidate that prefix without touching
unrelated entries.

The cache is shared by all in-flight tool calls on one event loop. None of
its methods suspend, so each operation is atomic with respect to other
coroutines and no lock is needed. Values are copied in and out, so callers
never share a reference with a stored entry.
"""

from __future__ import annotations

import copy
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class CacheEntry:
    """A cached value and the moment it stops being visible."""

    key: str
    value: Any
    stored_at: float
    ttl: float

    @property
    def expires_at(self) -> float:
        return self.stored_at + self.ttl

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at


def cache_key(family: str, scope: str, **args: Any) -> str:
    """
    Build a deterministic cache key.

    Arguments are sorted by name and ``None`` renders as an empty string,
    so the same request always yields the same key.

    Example:
        >>> cache_key("dns-records", "example.com", take=500, skip=0)
        'dns-records/example.com/skip=0&take=500'
    """
    query = "&".join(f"{k}={'' if v is None else v}" for k, v in sorted(args.items()))
    return f"{cache_prefix(family, scope)}{query}"


def cache_prefix(family: str, scope: str = "") -> str:
    """Invalidation prefix for a resource family, e.g. ``dns-records/example.com/``."""
    if scope:
        return f"{family}/{scope}/"
    return f"{family}/"


class ResponseCache:
    """
    Keyed store with lazy expiry.

    A ``default_ttl`` of zero (or less) disables caching: ``set`` becomes a
    no-op and every ``get`` is a miss.

    Example:
        >>> cache = ResponseCache(default_ttl=30)
        >>> cache.set("domains/example.com/", {"name": "example.com"})
        >>> cache.get("domains/example.com/")
        {'name': 'example.com'}
    """

    def __init__(
        self,
        default_ttl: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    @property
    def enabled(self) -> bool:
        return self._default_ttl > 0

    def get(self, key: str) -> Any | None:
        """Return the cached value, or ``None`` on a miss or an expired entry."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if not entry.is_fresh(self._clock()):
            del self._entries[key]
            return None

        return copy.deepcopy(entry.value)

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store ``value`` under ``key`` until ``now + ttl``. ``None`` values are not stored."""
        effective_ttl = self._default_ttl if ttl is None else ttl
        if effective_ttl <= 0 or value is None:
            return

        self._entries[key] = CacheEntry(
            key=key,
            value=copy.deepcopy(value),
            stored_at=self._clock(),
            ttl=effective_ttl,
        )

    def invalidate_prefix(self, prefix: str) -> int:
        """Remove every entry whose key starts with ``prefix``. Returns the number removed."""
        stale = [key for key in self._entries if key.startswith(prefix)]
        for key in stale:
            del self._entries[key]

        if stale:
            logger.debug("Cache invalidated", prefix=prefix, removed=len(stale))
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()

    def size(self) -> int:
        """Number of stored entries, including expired ones not yet evicted."""
        return len(self._entries)
