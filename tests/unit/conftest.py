# Copyright 2024-2026 The spaceship-mcp Authors
# SPDX-License-Identifier: Apache-2.0

"""Shared fixtures: an in-memory Spaceship API behind httpx.MockTransport."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from spaceship_mcp.core.cache import ResponseCache
from spaceship_mcp.core.client import SpaceshipClient
from spaceship_mcp.core.config import ClientConfig

BASE_URL = "https://spaceship.test/api"


class FakeSpaceship:
    """
    Minimal Spaceship API.

    Serves paginated DNS records and domains, records every request, and can
    answer the next ``throttle`` requests with 429.
    """

    def __init__(self) -> None:
        self.records: dict[str, list[dict[str, Any]]] = {}
        self.domains: list[dict[str, Any]] = []
        self.contacts: dict[str, dict[str, Any]] = {}
        self.contact_attributes: dict[str, list[dict[str, str]]] = {}
        self.requests: list[httpx.Request] = []
        self.writes: list[tuple[str, str, Any]] = []
        self.throttle = 0
        self.retry_after: str | None = None
        self.fail_status: int | None = None
        # Reported totals override, to simulate an inconsistent upstream.
        self.total_override: int | None = None

    def get_requests(self, path_suffix: str = "") -> list[httpx.Request]:
        return [
            r for r in self.requests if r.method == "GET" and r.url.path.endswith(path_suffix)
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if self.throttle > 0:
            self.throttle -= 1
            headers = {"Retry-After": self.retry_after} if self.retry_after else {}
            return httpx.Response(429, json={"detail": "Too many requests"}, headers=headers)

        if self.fail_status is not None:
            return httpx.Response(self.fail_status, json={"detail": "Upstream failure"})

        path = request.url.path.removeprefix("/api")
        body = json.loads(request.content) if request.content else None
        parts = path.strip("/").split("/")

        if parts[:3] == ["v1", "dns", "records"]:
            return self._dns(request, parts[3], body)
        if parts[:2] == ["v1", "domains"]:
            return self._domains(request, parts[2:], body)
        if parts[:2] == ["v1", "contacts"]:
            return self._contacts(request, parts[2:], body)
        return httpx.Response(404, json={"detail": f"No route for {path}"})

    def _page(self, request: httpx.Request, items: list[Any]) -> httpx.Response:
        take = int(request.url.params.get("take", "100"))
        skip = int(request.url.params.get("skip", "0"))
        total = len(items) if self.total_override is None else self.total_override
        return httpx.Response(200, json={"items": items[skip : skip + take], "total": total})

    def _dns(self, request: httpx.Request, domain: str, body: Any) -> httpx.Response:
        zone = self.records.setdefault(domain, [])
        if request.method == "GET":
            return self._page(request, zone)
        if request.method == "PUT":
            self.writes.append(("PUT", domain, body))
            zone.extend(body["items"])
            return httpx.Response(204)
        if request.method == "DELETE":
            self.writes.append(("DELETE", domain, body))
            doomed = {json.dumps(r, sort_keys=True) for r in body}
            zone[:] = [r for r in zone if json.dumps(r, sort_keys=True) not in doomed]
            return httpx.Response(204)
        return httpx.Response(405)

    def _domains(self, request: httpx.Request, rest: list[str], body: Any) -> httpx.Response:
        if not rest:
            return self._page(request, self.domains)

        domain = rest[0]
        if request.method == "PUT":
            self.writes.append(("PUT", "/".join(rest), body))
            return httpx.Response(204)

        suffix = "/".join(rest[1:])
        if suffix == "available":
            return httpx.Response(200, json={"domain": domain, "result": "available"})
        if suffix == "transfer/auth-code":
            return httpx.Response(200, json={"authCode": "s3cr3t", "expires": "2026-12-01"})

        for item in self.domains:
            if item["name"] == domain:
                return httpx.Response(200, json=item)
        return httpx.Response(404, json={"detail": f"Domain {domain} not found"})

    def _contacts(self, request: httpx.Request, rest: list[str], body: Any) -> httpx.Response:
        if rest[:1] == ["attributes"]:
            if request.method == "PUT":
                self.writes.append(("PUT", "contacts/attributes", body))
                return httpx.Response(200, json={"contactId": "attr-1"})
            return httpx.Response(200, json=self.contact_attributes.get(rest[1], []))

        if request.method == "PUT":
            self.writes.append(("PUT", "contacts", body))
            contact_id = body.get("contactId") or f"contact-{len(self.contacts) + 1}"
            self.contacts[contact_id] = {**body, "contactId": contact_id}
            return httpx.Response(200, json={"contactId": contact_id})

        contact = self.contacts.get(rest[0])
        if contact is None:
            return httpx.Response(404, json={"detail": "Contact not found"})
        return httpx.Response(200, json=contact)


def make_config(**overrides: Any) -> ClientConfig:
    values: dict[str, Any] = {
        "api_key": "test-key",
        "api_secret": "test-secret",
        "base_url": BASE_URL,
        "retry_base_delay": 0.5,
        "retry_max_delay": 8.0,
    }
    values.update(overrides)
    return ClientConfig(**values)


def make_client(
    fake: FakeSpaceship,
    cache: ResponseCache | None = None,
    **overrides: Any,
) -> SpaceshipClient:
    http_client = httpx.AsyncClient(
        base_url=BASE_URL,
        transport=httpx.MockTransport(fake.handler),
    )
    return SpaceshipClient(make_config(**overrides), cache=cache, http_client=http_client)


@pytest.fixture
def fake_api() -> FakeSpaceship:
    return FakeSpaceship()


@pytest.fixture
def client(fake_api: FakeSpaceship) -> SpaceshipClient:
    return make_client(fake_api)


@pytest.fixture
def sample_records() -> list[dict[str, Any]]:
    return [
        {"type": "A", "name": "@", "address": "76.76.21.21", "ttl": 3600},
        {"type": "CNAME", "name": "www", "cname": "cname.vercel-dns.com", "ttl": 3600},
        {"type": "MX", "name": "@", "exchange": "aspmx.l.google.com", "preference": 1, "ttl": 3600},
        {"type": "TXT", "name": "@", "value": "v=spf1 include:_spf.google.com ~all", "ttl": 3600},
        {"type": "TXT", "name": "_dmarc", "value": "v=DMARC1; p=none", "ttl": 3600},
    ]


@pytest.fixture
def client_factory(fake_api: FakeSpaceship):
    """Build clients with config overrides, all talking to ``fake_api``."""

    def _make(cache: ResponseCache | None = None, **overrides: Any) -> SpaceshipClient:
        return make_client(fake_api, cache=cache, **overrides)

    return _make


@pytest.fixture
def server_client(monkeypatch: pytest.MonkeyPatch, fake_api: FakeSpaceship) -> SpaceshipClient:
    """Point the MCP server's shared client at ``fake_api``."""
    from spaceship_mcp.mcp import server

    client = make_client(fake_api)
    monkeypatch.setattr(server, "_client", client)
    return client
