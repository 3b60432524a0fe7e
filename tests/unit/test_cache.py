# Copyright 2024-2026 The spaceship-mcp Authors
# SPDX-License-Identifier: Apache-2.0

"""Tests for spaceship_mcp.core.cache module."""

from __future__ import annotations

from spaceship_mcp.core.cache import ResponseCache, cache_key, cache_prefix


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestCacheKeys:
    """Tests for key and prefix construction."""

    def test_key_sorts_arguments(self):
        """Argument order does not change the key."""
        assert cache_key("dns-records", "example.com", take=500, skip=0) == cache_key(
            "dns-records", "example.com", skip=0, take=500
        )
        assert (
            cache_key("dns-records", "example.com", take=500, skip=0)
            == "dns-records/example.com/skip=0&take=500"
        )

    def test_key_renders_none_as_empty(self):
        assert cache_key("domains", "list", orderBy=None) == "domains/list/orderBy="

    def test_key_starts_with_family_prefix(self):
        key = cache_key("dns-records", "example.com", take=10, skip=20)
        assert key.startswith(cache_prefix("dns-records", "example.com"))

    def test_prefix_without_scope(self):
        assert cache_prefix("contacts") == "contacts/"

    def test_prefix_does_not_match_longer_domain(self):
        """The trailing slash keeps example.com from matching example.com.au."""
        key = cache_key("dns-records", "example.com.au", take=500, skip=0)
        assert not key.startswith(cache_prefix("dns-records", "example.com"))


class TestCacheExpiry:
    """Tests for TTL behaviour."""

    def test_get_returns_value_while_fresh(self):
        clock = FakeClock()
        cache = ResponseCache(default_ttl=30, clock=clock)

        cache.set("k", {"v": 1})
        clock.advance(29.9)

        assert cache.get("k") == {"v": 1}

    def test_get_returns_none_after_expiry(self):
        clock = FakeClock()
        cache = ResponseCache(default_ttl=30, clock=clock)

        cache.set("k", {"v": 1})
        clock.advance(30)

        assert cache.get("k") is None

    def test_expired_entry_is_evicted_on_access(self):
        clock = FakeClock()
        cache = ResponseCache(default_ttl=5, clock=clock)
        cache.set("k", "v")
        clock.advance(10)

        assert cache.size() == 1
        cache.get("k")
        assert cache.size() == 0

    def test_per_entry_ttl_overrides_default(self):
        clock = FakeClock()
        cache = ResponseCache(default_ttl=30, clock=clock)

        cache.set("short", "a", ttl=1)
        cache.set("long", "b")
        clock.advance(2)

        assert cache.get("short") is None
        assert cache.get("long") == "b"

    def test_zero_ttl_disables_caching(self):
        cache = ResponseCache(default_ttl=0)

        cache.set("k", "v")

        assert cache.enabled is False
        assert cache.get("k") is None
        assert cache.size() == 0

    def test_none_value_not_stored(self):
        cache = ResponseCache(default_ttl=30)
        cache.set("k", None)
        assert cache.size() == 0

    def test_missing_key(self):
        assert ResponseCache().get("nope") is None


class TestCacheInvalidation:
    """Tests for prefix invalidation."""

    def test_invalidate_prefix_removes_only_matching(self):
        cache = ResponseCache(default_ttl=30)
        cache.set(cache_key("dns-records", "example.com", skip=0, take=500), ["a"])
        cache.set(cache_key("dns-records", "example.com", skip=500, take=500), ["b"])
        cache.set(cache_key("dns-records", "example.com.au", skip=0, take=500), ["c"])
        cache.set(cache_key("domains", "example.com"), {"name": "example.com"})

        removed = cache.invalidate_prefix(cache_prefix("dns-records", "example.com"))

        assert removed == 2
        assert cache.get(cache_key("dns-records", "example.com.au", skip=0, take=500)) == ["c"]
        assert cache.get(cache_key("domains", "example.com")) == {"name": "example.com"}
        assert cache.size() == 2

    def test_invalidate_prefix_no_match(self):
        cache = ResponseCache(default_ttl=30)
        cache.set("domains/list/", [1])
        assert cache.invalidate_prefix("contacts/") == 0
        assert cache.size() == 1

    def test_clear(self):
        cache = ResponseCache(default_ttl=30)
        cache.set("a", 1)
        cache.set("b", 2)

        cache.clear()

        assert cache.size() == 0


class TestCacheOwnership:
    """The cache never shares references with callers."""

    def test_mutating_a_hit_does_not_change_the_entry(self):
        cache = ResponseCache(default_ttl=30, clock=FakeClock())
        cache.set("k", {"items": [{"name": "example.com"}]})

        first = cache.get("k")
        first["items"].append({"name": "other.com"})

        assert cache.get("k") == {"items": [{"name": "example.com"}]}

    def test_mutating_the_stored_value_does_not_change_the_entry(self):
        cache = ResponseCache(default_ttl=30, clock=FakeClock())
        value = {"autoRenew": True}
        cache.set("k", value)

        value["autoRenew"] = False

        assert cache.get("k") == {"autoRenew": True}
