# Copyright 2024-2026 The spaceship-mcp Authors
# SPDX-License-Identifier: Apache-2.0

"""Tests for spaceship_mcp.mcp.resources module."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from spaceship_mcp.core.cache import ResponseCache
from spaceship_mcp.core.client import SpaceshipApiError
from spaceship_mcp.mcp.resources import (
    ResourcePoller,
    Subscription,
    hash_data,
    parse_resource_uri,
    read_dns,
)


def _subscription(fetch, notify=None) -> Subscription:
    return Subscription(
        uri="spaceship://domains/example.com/dns",
        fetch=fetch,
        notify=notify or AsyncMock(),
    )


class TestHashData:
    """Tests for hash_data."""

    def test_key_order_irrelevant(self):
        assert hash_data({"a": 1, "b": [1, 2]}) == hash_data({"b": [1, 2], "a": 1})

    def test_content_changes_hash(self):
        assert hash_data({"a": 1}) != hash_data({"a": 2})
        assert hash_data([1, 2]) != hash_data([2, 1])


class TestParseResourceUri:
    """Tests for parse_resource_uri."""

    @pytest.mark.parametrize(
        ("uri", "expected"),
        [
            ("spaceship://domains", ("domains", None)),
            ("spaceship://domains/", ("domains", None)),
            ("spaceship://domains/Example.com", ("domain", "example.com")),
            ("spaceship://domains/example.com/dns", ("dns", "example.com")),
        ],
    )
    def test_known(self, uri, expected):
        assert parse_resource_uri(uri) == expected

    @pytest.mark.parametrize(
        "uri",
        [
            "spaceship://contacts",
            "spaceship://domainsX",
            "spaceship://domains/example.com/whois",
            "spaceship://domains//dns",
            "https://example.com",
        ],
    )
    def test_unknown(self, uri):
        assert parse_resource_uri(uri) is None


class TestReaders:
    """Tests for resource readers."""

    @pytest.mark.asyncio
    async def test_read_dns(self, fake_api, client, sample_records):
        fake_api.records["example.com"] = sample_records

        data = await read_dns(client, "Example.com.")

        assert data["domain"] == "example.com"
        assert data["count"] == 5
        assert data["by_type"]["TXT"] == 2
        assert data["items"][1]["cname"] == "cname.vercel-dns.com"


class TestPollOnce:
    """Tests for a single poll."""

    @pytest.mark.asyncio
    async def test_change_notifies(self):
        sub = _subscription(AsyncMock(return_value={"v": 2}))
        sub.last_hash = hash_data({"v": 1})

        changed = await ResourcePoller(lambda: None).poll_once(sub)

        assert changed is True
        sub.notify.assert_awaited_once_with(sub.uri)
        assert sub.last_hash == hash_data({"v": 2})
        assert sub.polls == 1

    @pytest.mark.asyncio
    async def test_no_change_no_notification(self):
        sub = _subscription(AsyncMock(return_value={"v": 1}))
        sub.last_hash = hash_data({"v": 1})

        changed = await ResourcePoller(lambda: None).poll_once(sub)

        assert changed is False
        sub.notify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failure_counted_not_raised(self):
        fetch = AsyncMock(side_effect=SpaceshipApiError("boom", status=500))
        sub = _subscription(fetch)
        sub.last_hash = hash_data({"v": 1})
        poller = ResourcePoller(lambda: None)

        assert await poller.poll_once(sub) is False
        assert await poller.poll_once(sub) is False

        assert sub.failures == 2
        assert sub.polls == 2
        assert sub.last_hash == hash_data({"v": 1})
        sub.notify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_recovers_after_failure(self):
        fetch = AsyncMock(side_effect=[RuntimeError("down"), {"v": 2}])
        sub = _subscription(fetch)
        sub.last_hash = hash_data({"v": 1})
        poller = ResourcePoller(lambda: None)

        await poller.poll_once(sub)
        changed = await poller.poll_once(sub)

        assert changed is True
        assert sub.failures == 1

    @pytest.mark.asyncio
    async def test_notify_failure_does_not_raise(self):
        notify = AsyncMock(side_effect=RuntimeError("session closed"))
        sub = _subscription(AsyncMock(return_value={"v": 2}), notify)

        assert await ResourcePoller(lambda: None).poll_once(sub) is False


class TestSubscriptions:
    """Tests for subscribe/unsubscribe and the polling task."""

    @pytest.mark.asyncio
    async def test_subscribe_and_unsubscribe(self, client):
        poller = ResourcePoller(lambda: client, interval=3600)
        uri = "spaceship://domains/example.com/dns"

        assert await poller.subscribe(uri, AsyncMock()) is True
        assert await poller.subscribe(uri, AsyncMock()) is False
        task = poller.subscriptions[uri].task

        assert await poller.unsubscribe(uri) is True
        assert task.cancelled() or task.done()
        assert poller.subscriptions == {}
        assert await poller.unsubscribe(uri) is False

    @pytest.mark.asyncio
    async def test_unknown_uri_rejected(self, client):
        poller = ResourcePoller(lambda: client)

        assert await poller.subscribe("spaceship://contacts", AsyncMock()) is False
        assert poller.subscriptions == {}

    @pytest.mark.asyncio
    async def test_polling_notifies_on_zone_change(self, fake_api, client_factory):
        client = client_factory(cache=ResponseCache(default_ttl=0))
        fake_api.records["example.com"] = [{"type": "A", "name": "@", "address": "1.2.3.4"}]
        changed = asyncio.Event()
        seen: list[str] = []

        async def notify(uri: str) -> None:
            seen.append(uri)
            changed.set()

        poller = ResourcePoller(lambda: client, interval=0.01)
        uri = "spaceship://domains/example.com/dns"
        await poller.subscribe(uri, notify)

        # Wait for the baseline read before changing the zone.
        while not fake_api.requests:
            await asyncio.sleep(0.005)
        fake_api.records["example.com"].append({"type": "TXT", "name": "@", "value": "new"})

        await asyncio.wait_for(changed.wait(), timeout=2)
        await poller.close()

        assert seen[0] == uri
        assert poller.subscriptions == {}

    @pytest.mark.asyncio
    async def test_close_cancels_all(self, client):
        poller = ResourcePoller(lambda: client, interval=3600)
        await poller.subscribe("spaceship://domains", AsyncMock())
        await poller.subscribe("spaceship://domains/example.com", AsyncMock())

        await poller.close()

        assert poller.subscriptions == {}


class TestRegisterResources:
    """Resources are registered on the server."""

    def test_registered(self):
        from spaceship_mcp.mcp.server import mcp

        static = {str(r.uri).rstrip("/") for r in mcp._resource_manager.list_resources()}
        templates = {t.uri_template for t in mcp._resource_manager.list_templates()}

        assert "spaceship://domains" in static
        assert "spaceship://domains/{domain}" in templates
        assert "spaceship://domains/{domain}/dns" in templates
