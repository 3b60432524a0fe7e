# Copyright 2024-2026 The spaceship-mcp Authors
# SPDX-License-Identifier: Apache-2.0

"""
MCP resources and subscription polling.

Resources:
    spaceship://domains                 every domain in the account
    spaceship://domains/{domain}        details of one domain
    spaceship://domains/{domain}/dns    DNS records of one domain

Spaceship has no change feed, so a subscription starts a background task
that re-reads the resource every ``interval`` seconds and sends
``notifications/resources/updated`` when the content hash changes. Poll
failures are counted and logged; they never reach the client.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import structlog
from mcp.server.fastmcp import FastMCP
from pydantic import AnyUrl

from spaceship_mcp.core.client import SpaceshipClient
from spaceship_mcp.core.records import normalize_domain, summarize_by_type

logger = structlog.get_logger(__name__)

SCHEME_PREFIX = "spaceship://domains"
DEFAULT_POLL_INTERVAL = 30.0

Fetcher = Callable[[], Awaitable[Any]]
Notifier = Callable[[str], Awaitable[None]]


def hash_data(data: Any) -> str:
    """Stable content hash: SHA-256 of canonical JSON."""
    payload = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(payload.encode()).hexdigest()


def parse_resource_uri(uri: str) -> tuple[str, str | None] | None:
    """
    Split a resource URI into ``(kind, domain)``.

    Returns ``("domains", None)``, ``("domain", name)``, ``("dns", name)``,
    or ``None`` for URIs this server does not serve.
    """
    uri = uri.rstrip("/")
    if uri == SCHEME_PREFIX:
        return ("domains", None)
    if not uri.startswith(SCHEME_PREFIX + "/"):
        return None

    rest = uri[len(SCHEME_PREFIX) + 1 :]
    if rest.endswith("/dns"):
        kind, rest = "dns", rest[: -len("/dns")]
    else:
        kind = "domain"

    if not rest or "/" in rest:
        return None
    return (kind, normalize_domain(rest))


async def read_domains(client: SpaceshipClient) -> list[dict[str, Any]]:
    return await client.list_all_domains()


async def read_domain(client: SpaceshipClient, domain: str) -> dict[str, Any]:
    return await client.get_domain(normalize_domain(domain))


async def read_dns(client: SpaceshipClient, domain: str) -> dict[str, Any]:
    domain = normalize_domain(domain)
    records = await client.list_all_dns_records(domain)
    return {
        "domain": domain,
        "count": len(records),
        "by_type": summarize_by_type(records),
        "items": [r.comparable_fields() for r in records],
    }


@dataclass
class Subscription:
    """State of one subscribed resource."""

    uri: str
    fetch: Fetcher
    notify: Notifier
    last_hash: str = ""
    failures: int = 0
    polls: int = 0
    task: asyncio.Task | None = field(default=None, repr=False)


class ResourcePoller:
    """
    Polls subscribed resources and notifies on change.

    One asyncio task per subscribed URI. Subscribing twice to the same URI
    is a no-op; unsubscribing cancels the task.
    """

    def __init__(
        self,
        get_client: Callable[[], SpaceshipClient],
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self._get_client = get_client
        self.interval = interval
        self._subscriptions: dict[str, Subscription] = {}

    @property
    def subscriptions(self) -> dict[str, Subscription]:
        return dict(self._subscriptions)

    def fetcher_for(self, uri: str) -> Fetcher | None:
        parsed = parse_resource_uri(uri)
        if parsed is None:
            return None

        kind, domain = parsed
        if kind == "domains":
            return lambda: read_domains(self._get_client())
        if kind == "dns":
            return lambda: read_dns(self._get_client(), domain)
        return lambda: read_domain(self._get_client(), domain)

    async def subscribe(self, uri: str, notify: Notifier) -> bool:
        """Start polling ``uri``. Returns False for unknown or already-subscribed URIs."""
        if uri in self._subscriptions:
            return False

        fetch = self.fetcher_for(uri)
        if fetch is None:
            logger.debug("Ignoring subscription to unknown resource", uri=uri)
            return False

        sub = Subscription(uri=uri, fetch=fetch, notify=notify)
        self._subscriptions[uri] = sub
        sub.task = asyncio.create_task(self._run(sub), name=f"poll:{uri}")
        logger.info("Resource subscribed", uri=uri, interval=self.interval)
        return True

    async def unsubscribe(self, uri: str) -> bool:
        sub = self._subscriptions.pop(uri, None)
        if sub is None:
            return False

        await _cancel(sub.task)
        logger.info("Resource unsubscribed", uri=uri, polls=sub.polls, failures=sub.failures)
        return True

    async def close(self) -> None:
        """Cancel every polling task."""
        for uri in list(self._subscriptions):
            await self.unsubscribe(uri)

    async def _run(self, sub: Subscription) -> None:
        # Baseline first, so the first notification reflects a real change.
        data = await self._fetch(sub)
        if data is not _FAILED:
            sub.last_hash = hash_data(data)

        while True:
            await asyncio.sleep(self.interval)
            await self.poll_once(sub)

    async def poll_once(self, sub: Subscription) -> bool:
        """Re-read ``sub`` once. Returns True when a change was notified."""
        sub.polls += 1
        data = await self._fetch(sub)
        if data is _FAILED:
            return False

        new_hash = hash_data(data)
        if new_hash == sub.last_hash:
            return False

        sub.last_hash = new_hash
        try:
            await sub.notify(sub.uri)
        except Exception as e:
            logger.warning("Resource update notification failed", uri=sub.uri, error=str(e))
            return False

        logger.debug("Resource changed", uri=sub.uri)
        return True

    async def _fetch(self, sub: Subscription) -> Any:
        try:
            return await sub.fetch()
        except Exception as e:
            sub.failures += 1
            logger.warning(
                "Resource poll failed",
                uri=sub.uri,
                failures=sub.failures,
                error=str(e),
            )
            return _FAILED


_FAILED = object()


async def _cancel(task: asyncio.Task | None) -> None:
    if task is None or task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


def register_resources(
    mcp: FastMCP,
    get_client: Callable[[], SpaceshipClient],
    interval: float = DEFAULT_POLL_INTERVAL,
) -> ResourcePoller:
    """Register the domain resources and subscription handlers on ``mcp``."""
    poller = ResourcePoller(get_client, interval=interval)

    @mcp.resource(
        SCHEME_PREFIX,
        name="domains",
        description="All domains in the Spaceship account",
        mime_type="application/json",
    )
    async def domains_resource() -> str:
        return json.dumps(await read_domains(get_client()), indent=2, default=str)

    @mcp.resource(
        SCHEME_PREFIX + "/{domain}",
        name="domain",
        description="Details of one domain: status, expiry, privacy, nameservers",
        mime_type="application/json",
    )
    async def domain_resource(domain: str) -> str:
        return json.dumps(await read_domain(get_client(), domain), indent=2, default=str)

    @mcp.resource(
        SCHEME_PREFIX + "/{domain}/dns",
        name="domain-dns",
        description="DNS records of one domain",
        mime_type="application/json",
    )
    async def dns_resource(domain: str) -> str:
        return json.dumps(await read_dns(get_client(), domain), indent=2, default=str)

    server = mcp._mcp_server

    @server.subscribe_resource()
    async def handle_subscribe(uri: AnyUrl) -> None:
        session = server.request_context.session

        async def notify(changed: str) -> None:
            await session.send_resource_updated(AnyUrl(changed))

        await poller.subscribe(str(uri), notify)

    @server.unsubscribe_resource()
    async def handle_unsubscribe(uri: AnyUrl) -> None:
        await poller.unsubscribe(str(uri))

    return poller
