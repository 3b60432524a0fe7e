# Copyright 2024-2026 The spaceship-mcp Authors
# SPDX-License-Identifier: Apache-2.0

"""
Spaceship API client.

Every upstream call made by the server goes through :class:`SpaceshipClient`,
which adds three behaviours on top of the raw HTTP request:

* read-through caching of read operations, with prefix invalidation after
  writes (see :mod:`spaceship_mcp.core.cache`);
* retry with exponential backoff and jitter when the API answers 429,
  honouring ``Retry-After``;
* aggregation of ``take``/``skip`` pagination into one list.

Errors are typed (see :class:`SpaceshipError` and subclasses) and never
swallowed; callers decide how to present them.

Example:
    >>> async with SpaceshipClient(ClientConfig.from_env()) as client:
    ...     records = await client.list_all_dns_records("example.com")
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from types import TracebackType
from typing import Any, Literal
from urllib.parse import quote

import httpx
import structlog

from spaceship_mcp.core.cache import ResponseCache, cache_key, cache_prefix
from spaceship_mcp.core.config import ClientConfig
from spaceship_mcp.core.records import DnsRecord, parse_records

logger = structlog.get_logger(__name__)

OrderBy = Literal["type", "-type", "name", "-name"]
DomainOrderBy = Literal["name", "-name", "unicodeName", "-unicodeName", "registrationDate",
                        "-registrationDate", "expirationDate", "-expirationDate"]

DNS_PAGE_SIZE = 500
DOMAIN_PAGE_SIZE = 100

# Cache families; each maps 1:1 to an invalidation prefix.
DNS_RECORDS = "dns-records"
DOMAINS = "domains"
AVAILABILITY = "availability"
CONTACTS = "contacts"


class SpaceshipError(Exception):
    """Base class for every failure surfaced by the client."""


class SpaceshipApiError(SpaceshipError):
    """The API answered with a non-2xx status. ``details`` is the raw body."""

    def __init__(self, message: str, status: int, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details


class RateLimitError(SpaceshipApiError):
    """The API kept answering 429 after every allowed retry."""

    def __init__(
        self,
        message: str,
        details: Any = None,
        attempts: int = 1,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, status=429, details=details)
        self.attempts = attempts
        self.retry_after = retry_after


class SpaceshipTransportError(SpaceshipError):
    """Network-level failure (connect, read, timeout). Never retried."""


class MalformedResponseError(SpaceshipError):
    """A 2xx response whose body could not be understood."""


def parse_retry_after(value: str | None) -> float | None:
    """
    Parse a ``Retry-After`` header into seconds.

    Accepts delta-seconds or an HTTP date. Returns ``None`` when the header
    is absent or unparseable.
    """
    if not value:
        return None

    value = value.strip()
    try:
        return max(0.0, float(value))
    except ValueError:
        pass

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    return max(0.0, (when - datetime.now(UTC)).total_seconds())


class SpaceshipClient:
    """
    Resilient async client for the Spaceship REST API.

    Args:
        config: Credentials, cache TTL and retry policy.
        cache: Shared response cache. Built from ``config.cache_ttl_seconds``
            when omitted.
        http_client: Pre-built ``httpx.AsyncClient`` (tests pass one with a
            ``MockTransport``). Its base URL and headers are used as is.
    """

    def __init__(
        self,
        config: ClientConfig,
        cache: ResponseCache | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._cache = cache if cache is not None else ResponseCache(config.cache_ttl_seconds)
        self._client = http_client
        self._base_url = config.base_url.rstrip("/")

    async def __aenter__(self) -> SpaceshipClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the httpx async client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={
                    "X-API-Key": self._config.api_key,
                    "X-API-Secret": self._config.api_secret,
                    "Content-Type": "application/json",
                },
                timeout=self._config.timeout_seconds,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # Request pipeline
    # ------------------------------------------------------------------

    def _backoff_delay(self, retry: int, retry_after: float | None) -> float:
        """Delay before retry number ``retry`` (0-based)."""
        if retry_after is not None:
            return retry_after

        delay = self._config.retry_base_delay * (2**retry)
        return min(delay + random.uniform(0, delay / 2), self._config.retry_max_delay)

    async def _send(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        client = self._get_client()
        try:
            return await client.request(method, path, params=params, json=json)
        except httpx.TransportError as e:
            logger.warning("Spaceship request failed", method=method, path=path, error=str(e))
            raise SpaceshipTransportError(f"{method} {path} failed: {e}") from e

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """
        Send a request, retrying on 429, and return the decoded body.

        Raises:
            RateLimitError: Still throttled after ``max_retries`` retries.
            SpaceshipApiError: Any other non-2xx status.
            SpaceshipTransportError: Network failure.
            MalformedResponseError: 2xx with an undecodable JSON body.
        """
        attempts = self._config.max_retries + 1

        for attempt in range(1, attempts + 1):
            response = await self._send(method, path, params=params, json=json)

            if response.status_code != 429:
                break

            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            if attempt == attempts:
                logger.warning(
                    "Spaceship rate limit retries exhausted",
                    method=method,
                    path=path,
                    attempts=attempt,
                )
                raise RateLimitError(
                    f"Spaceship API rate limit exceeded after {attempt} attempt(s)",
                    details=_decode_body(response),
                    attempts=attempt,
                    retry_after=retry_after,
                )

            delay = self._backoff_delay(attempt - 1, retry_after)
            logger.warning(
                "Spaceship rate limited, backing off",
                method=method,
                path=path,
                attempt=attempt,
                delay=round(delay, 3),
            )
            await asyncio.sleep(delay)

        if not response.is_success:
            raise SpaceshipApiError(
                f"Spaceship API request failed with {response.status_code} "
                f"{response.reason_phrase}",
                status=response.status_code,
                details=_decode_body(response),
            )

        if not response.content:
            return None

        if "application/json" in response.headers.get("content-type", ""):
            try:
                return response.json()
            except ValueError as e:
                raise MalformedResponseError(
                    f"{method} {path} returned invalid JSON: {e}"
                ) from e
        return response.text

    async def _cached_get(
        self,
        key: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """GET with read-through caching on ``key``."""
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Cache hit", key=key)
            return cached

        payload = await self._request("GET", path, params=params)
        self._cache.set(key, payload)
        return payload

    def _invalidate(self, *prefixes: str) -> None:
        for prefix in prefixes:
            self._cache.invalidate_prefix(prefix)

    def _invalidate_domain(self, domain: str) -> None:
        self._invalidate(cache_prefix(DOMAINS, domain), cache_prefix(DOMAINS, "list"))

    # ------------------------------------------------------------------
    # DNS records
    # ------------------------------------------------------------------

    async def list_dns_records(
        self,
        domain: str,
        take: int = DNS_PAGE_SIZE,
        skip: int = 0,
        order_by: OrderBy | None = None,
    ) -> tuple[list[DnsRecord], int]:
        """
        Fetch one page of DNS records.

        Returns:
            ``(records, total)`` where ``total`` is the count the API reports
            for the whole zone.
        """
        params: dict[str, Any] = {"take": take, "skip": skip}
        if order_by:
            params["orderBy"] = order_by

        payload = await self._cached_get(
            cache_key(DNS_RECORDS, domain, take=take, skip=skip, orderBy=order_by),
            f"/v1/dns/records/{quote(domain, safe='')}",
            params=params,
        )
        items, total = _page(payload, f"DNS records for {domain}")
        try:
            return parse_records(items), total
        except ValueError as e:
            raise MalformedResponseError(f"Unparseable DNS record for {domain}: {e}") from e

    async def list_all_dns_records(
        self,
        domain: str,
        order_by: OrderBy | None = None,
    ) -> list[DnsRecord]:
        """Fetch every DNS record of a domain, page by page."""

        async def fetch(take: int, skip: int) -> tuple[list[DnsRecord], int]:
            return await self.list_dns_records(domain, take=take, skip=skip, order_by=order_by)

        return await _collect_pages(fetch, DNS_PAGE_SIZE)

    async def save_dns_records(
        self,
        domain: str,
        records: list[DnsRecord],
        force: bool = False,
    ) -> None:
        """
        Create or update DNS records.

        ``force`` lets the API overwrite conflicting records instead of
        rejecting the request.
        """
        logger.info("Saving DNS records", domain=domain, count=len(records), force=force)
        try:
            await self._request(
                "PUT",
                f"/v1/dns/records/{quote(domain, safe='')}",
                json={"force": force, "items": [r.to_api() for r in records]},
            )
        finally:
            self._invalidate(cache_prefix(DNS_RECORDS, domain))

    async def delete_dns_records(self, domain: str, records: list[DnsRecord]) -> None:
        """Delete DNS records. Records are matched by type, name and value."""
        logger.info("Deleting DNS records", domain=domain, count=len(records))
        try:
            await self._request(
                "DELETE",
                f"/v1/dns/records/{quote(domain, safe='')}",
                json=[r.to_api() for r in records],
            )
        finally:
            self._invalidate(cache_prefix(DNS_RECORDS, domain))

    # ------------------------------------------------------------------
    # Domains
    # ------------------------------------------------------------------

    async def list_domains(
        self,
        take: int = DOMAIN_PAGE_SIZE,
        skip: int = 0,
        order_by: DomainOrderBy | None = None,
    ) -> tuple[list[dict[str, Any]], int]:
        """Fetch one page of domains in the account."""
        params: dict[str, Any] = {"take": take, "skip": skip}
        if order_by:
            params["orderBy"] = order_by

        payload = await self._cached_get(
            cache_key(DOMAINS, "list", take=take, skip=skip, orderBy=order_by),
            "/v1/domains",
            params=params,
        )
        return _page(payload, "domain list")

    async def list_all_domains(self, order_by: DomainOrderBy | None = None) -> list[dict[str, Any]]:
        """Fetch every domain in the account, page by page."""

        async def fetch(take: int, skip: int) -> tuple[list[dict[str, Any]], int]:
            return await self.list_domains(take=take, skip=skip, order_by=order_by)

        return await _collect_pages(fetch, DOMAIN_PAGE_SIZE)

    async def get_domain(self, domain: str) -> dict[str, Any]:
        payload = await self._cached_get(
            cache_key(DOMAINS, domain),
            f"/v1/domains/{quote(domain, safe='')}",
        )
        return _mapping(payload, f"domain {domain}")

    async def check_domain_availability(self, domain: str) -> dict[str, Any]:
        payload = await self._cached_get(
            cache_key(AVAILABILITY, domain),
            f"/v1/domains/{quote(domain, safe='')}/available",
        )
        return _mapping(payload, f"availability of {domain}")

    async def update_nameservers(
        self,
        domain: str,
        provider: Literal["basic", "custom"],
        hosts: list[str] | None = None,
    ) -> Any:
        body: dict[str, Any] = {"provider": provider}
        if provider == "custom":
            body["hosts"] = hosts or []
        return await self._domain_write(domain, "PUT", "nameservers", body)

    async def set_auto_renew(self, domain: str, enabled: bool) -> Any:
        return await self._domain_write(domain, "PUT", "autorenew", {"isEnabled": enabled})

    async def set_transfer_lock(self, domain: str, locked: bool) -> Any:
        return await self._domain_write(domain, "PUT", "transfer/lock", {"isLocked": locked})

    async def get_auth_code(self, domain: str) -> dict[str, Any]:
        """Transfer auth code. Secret material, so never cached."""
        payload = await self._request(
            "GET", f"/v1/domains/{quote(domain, safe='')}/transfer/auth-code"
        )
        return _mapping(payload, f"auth code for {domain}")

    async def set_privacy_level(
        self,
        domain: str,
        level: Literal["high", "public"],
        user_consent: bool,
    ) -> Any:
        return await self._domain_write(
            domain,
            "PUT",
            "privacy/preference",
            {"privacyLevel": level, "userConsent": user_consent},
        )

    async def set_email_protection(self, domain: str, contact_form: bool) -> Any:
        return await self._domain_write(
            domain,
            "PUT",
            "privacy/email-protection-preference",
            {"contactForm": contact_form},
        )

    async def update_domain_contacts(self, domain: str, contacts: dict[str, Any]) -> Any:
        """Assign saved contact IDs to the registrant/admin/tech/billing roles."""
        body = {k: v for k, v in contacts.items() if v is not None}
        return await self._domain_write(domain, "PUT", "contacts", body)

    async def _domain_write(self, domain: str, method: str, suffix: str, body: Any) -> Any:
        logger.info("Updating domain", domain=domain, operation=suffix)
        try:
            return await self._request(
                method, f"/v1/domains/{quote(domain, safe='')}/{suffix}", json=body
            )
        finally:
            self._invalidate_domain(domain)

    # ------------------------------------------------------------------
    # Contacts
    # ------------------------------------------------------------------

    async def save_contact(self, contact: dict[str, Any]) -> dict[str, Any]:
        logger.info("Saving contact")
        try:
            payload = await self._request("PUT", "/v1/contacts", json=contact)
        finally:
            self._invalidate(cache_prefix(CONTACTS))
        return _mapping(payload, "saved contact")

    async def get_contact(self, contact_id: str) -> dict[str, Any]:
        payload = await self._cached_get(
            cache_key(CONTACTS, contact_id),
            f"/v1/contacts/{quote(contact_id, safe='')}",
        )
        return _mapping(payload, f"contact {contact_id}")

    async def save_contact_attributes(self, attributes: dict[str, str]) -> dict[str, Any]:
        logger.info("Saving contact attributes", keys=sorted(attributes))
        try:
            payload = await self._request("PUT", "/v1/contacts/attributes", json=attributes)
        finally:
            self._invalidate(cache_prefix(CONTACTS))
        return _mapping(payload, "saved contact attributes")

    async def get_contact_attributes(self, contact_id: str) -> Any:
        return await self._cached_get(
            cache_key(CONTACTS, f"{contact_id}/attributes"),
            f"/v1/contacts/attributes/{quote(contact_id, safe='')}",
        )


# ----------------------------------------------------------------------
# Payload helpers
# ----------------------------------------------------------------------


def _decode_body(response: httpx.Response) -> Any:
    """Best-effort body for error reports: JSON when possible, else text."""
    if "application/json" in response.headers.get("content-type", ""):
        try:
            return response.json()
        except ValueError:
            pass
    return response.text


def _page(payload: Any, what: str) -> tuple[list[Any], int]:
    if (
        not isinstance(payload, dict)
        or not isinstance(payload.get("items"), list)
        or not isinstance(payload.get("total"), int)
    ):
        raise MalformedResponseError(f"Unexpected page shape for {what}: {payload!r:.200}")
    return payload["items"], payload["total"]


def _mapping(payload: Any, what: str) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise MalformedResponseError(f"Expected a JSON object for {what}, got {payload!r:.200}")
    return payload


async def _collect_pages(
    fetch: Callable[[int, int], Awaitable[tuple[list[Any], int]]],
    page_size: int,
) -> list[Any]:
    """
    Walk ``take``/``skip`` pages until the reported total is reached.

    A page with zero items ends the walk even if ``total`` says more remain,
    so an inconsistent total cannot loop forever.
    """
    collected: list[Any] = []
    skip = 0
    while True:
        items, total = await fetch(page_size, skip)
        if not items:
            break
        collected.extend(items)
        skip += len(items)
        if skip >= total:
            break
    return collected


__all__ = [
    "MalformedResponseError",
    "RateLimitError",
    "SpaceshipApiError",
    "SpaceshipClient",
    "SpaceshipError",
    "SpaceshipTransportError",
    "parse_retry_after",
]
