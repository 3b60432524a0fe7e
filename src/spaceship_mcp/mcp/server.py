# Copyright 2024-2026 The spaceship-mcp Authors
# SPDX-License-Identifier: Apache-2.0

"""
Spaceship MCP Server.

Provides MCP tools for AI agents to manage domains, DNS records and contacts
of a Spaceship registrar account, plus read-only DNS reconciliation helpers.

Usage:
    # Run with stdio transport (default for MCP)
    python -m spaceship_mcp.mcp.server

    # Run with HTTP transport
    python -m spaceship_mcp.mcp.server --transport http --port 8000

    # Or use the console script
    spaceship-mcp

Environment:
    SPACESHIP_API_KEY / SPACESHIP_API_SECRET are required. See
    :mod:`spaceship_mcp.core.config` for the optional settings.

Security Notes:
    - HTTP transport binds to 127.0.0.1 by default (use --host to override)
    - All inputs are validated before any API call
    - Tools that change registrar state are annotated as such; confirm with
      the user before calling them
"""

from __future__ import annotations

import json
import logging
import sys
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Literal

# Configure logging BEFORE importing any spaceship_mcp modules so structlog
# writes to stderr; stdout carries the JSON-RPC stream in stdio mode.
logging.basicConfig(
    level=logging.WARNING,
    stream=sys.stderr,
    format="%(levelname)s: %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

import structlog  # noqa: E402

structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    cache_logger_on_first_use=True,
)

from dotenv import load_dotenv  # noqa: E402
from mcp.server.fastmcp import FastMCP  # noqa: E402
from mcp.types import ToolAnnotations  # noqa: E402
from starlette.requests import Request  # noqa: E402
from starlette.responses import JSONResponse, Response  # noqa: E402

from spaceship_mcp.core.client import (  # noqa: E402
    DNS_PAGE_SIZE,
    DOMAIN_PAGE_SIZE,
    MalformedResponseError,
    RateLimitError,
    SpaceshipApiError,
    SpaceshipClient,
    SpaceshipError,
    SpaceshipTransportError,
)
from spaceship_mcp.core.config import ClientConfig, ConfigError, ServerConfig  # noqa: E402
from spaceship_mcp.core.reconcile import (  # noqa: E402
    build_cutover_targets,
    check_alignment,
    plan_cutover,
)
from spaceship_mcp.core.records import summarize_by_type  # noqa: E402
from spaceship_mcp.mcp.prompts import register_prompts  # noqa: E402
from spaceship_mcp.mcp.resources import ResourcePoller, register_resources  # noqa: E402
from spaceship_mcp.mcp.toolsets import apply_toolsets, enable_dynamic_tools  # noqa: E402
from spaceship_mcp.utils.validation import (  # noqa: E402
    DNS_ORDER_BY,
    DOMAIN_ORDER_BY,
    ValidationError,
    validate_contact,
    validate_contact_id,
    validate_domain,
    validate_expected_records,
    validate_hostname,
    validate_ip,
    validate_nameservers,
    validate_order_by,
    validate_page,
    validate_record_types,
    validate_records,
)

logger = structlog.get_logger(__name__)

# Track server start time for uptime
_start_time = time.time()

# Shared API client; one per process so every tool shares the cache.
_client: SpaceshipClient | None = None


def _get_client() -> SpaceshipClient:
    """Get or create the shared Spaceship client."""
    global _client
    if _client is None:
        _client = SpaceshipClient(ClientConfig.from_env())
    return _client


@asynccontextmanager
async def _lifespan(server: FastMCP) -> AsyncIterator[None]:
    try:
        yield
    finally:
        await _poller.close()
        if _client is not None:
            await _client.close()


# Initialize MCP server
mcp = FastMCP(
    "spaceship-mcp",
    lifespan=_lifespan,
    instructions="""Spaceship MCP manages domains registered at Spaceship.

Use these tools to:
- List and change DNS records of a domain
- Inspect domains, nameservers, auto-renew, transfer lock and WHOIS privacy
- Manage reusable contact profiles
- Compare a zone with the records you expect (check_dns_alignment)
- Plan moving the apex and www records to a new host (analyze_fly_cutover)

Record names are relative to the domain: "@" is the apex, "www" is www.<domain>.
Always confirm with the user before calling a tool that changes registrar state.""",
)

_READ_ONLY = ToolAnnotations(readOnlyHint=True, openWorldHint=True)
_WRITE = ToolAnnotations(
    readOnlyHint=False, destructiveHint=False, idempotentHint=True, openWorldHint=True
)
_DESTRUCTIVE = ToolAnnotations(
    readOnlyHint=False, destructiveHint=True, idempotentHint=False, openWorldHint=True
)


def _format_validation_error(e: ValidationError) -> dict:
    """Format validation error for API response."""
    return {
        "success": False,
        "error": "validation_error",
        "field": e.field,
        "message": e.message,
        "value": e.value,
    }


def _format_error(e: Exception) -> dict:
    """Map a client or configuration failure to a tool error payload."""
    if isinstance(e, RateLimitError):
        return {
            "success": False,
            "error": "rate_limited",
            "status": e.status,
            "attempts": e.attempts,
            "retry_after": e.retry_after,
            "message": e.message,
        }

    if isinstance(e, SpaceshipApiError):
        lines = [f"Spaceship API error: {e.message}", f"Status: {e.status}"]
        if e.details:
            lines.append(f"Details: {json.dumps(e.details, indent=2, default=str)}")
        return {
            "success": False,
            "error": "spaceship_api_error",
            "status": e.status,
            "details": e.details,
            "message": "\n".join(lines),
        }

    if isinstance(e, SpaceshipTransportError):
        return {"success": False, "error": "transport_error", "message": str(e)}

    if isinstance(e, MalformedResponseError):
        return {"success": False, "error": "malformed_response", "message": str(e)}

    if isinstance(e, ConfigError):
        return {"success": False, "error": "configuration_error", "message": str(e)}

    return {"success": False, "error": "spaceship_error", "message": str(e)}


# =============================================================================
# DNS RECORDS
# =============================================================================


@mcp.tool(title="List DNS Records", annotations=_READ_ONLY)
async def list_dns_records(
    domain: str,
    fetch_all: bool = True,
    take: int = DNS_PAGE_SIZE,
    skip: int = 0,
    order_by: Literal["type", "-type", "name", "-name"] | None = None,
) -> dict:
    """
    Read DNS records of a domain.

    Args:
        domain: Domain name, e.g. "example.com".
        fetch_all: Fetch every page (recommended). When False, only the page
            given by take/skip is returned.
        take: Records per page when fetch_all is False (1-500).
        skip: Offset when fetch_all is False.
        order_by: Sort order: "type", "-type", "name" or "-name".

    Returns:
        dict with:
        - success: Whether the records were read
        - domain: Normalized domain
        - count: Number of records returned
        - total: Number of records in the zone
        - by_type: Record count per type
        - items: Records with their type-relevant fields
    """
    try:
        domain = validate_domain(domain)
        take, skip = validate_page(take, skip, DNS_PAGE_SIZE)
        order_by = validate_order_by(order_by, DNS_ORDER_BY)
    except ValidationError as e:
        return _format_validation_error(e)

    try:
        client = _get_client()
        if fetch_all:
            records = await client.list_all_dns_records(domain, order_by=order_by)
            total = len(records)
        else:
            records, total = await client.list_dns_records(
                domain, take=take, skip=skip, order_by=order_by
            )
    except (SpaceshipError, ConfigError) as e:
        return _format_error(e)

    by_type = summarize_by_type(records)
    return {
        "success": True,
        "domain": domain,
        "count": len(records),
        "total": total,
        "by_type": by_type,
        "items": [r.comparable_fields() for r in records],
        "message": f"{len(records)} record(s) for {domain}: {json.dumps(by_type, sort_keys=True)}",
    }


@mcp.tool(title="Save DNS Records", annotations=_WRITE)
async def save_dns_records(
    domain: str,
    records: list[dict[str, Any]],
    force: bool = False,
) -> dict:
    """
    Create or update DNS records of a domain.

    Each record needs "type" and "name" plus the fields of its type:
    A/AAAA "address"; CNAME "cname"; MX "exchange" and "preference";
    TXT "value"; SRV "service", "protocol", "priority", "weight", "port",
    "target"; ALIAS "aliasName"; NS "nameserver"; CAA "flag", "tag",
    "value"; PTR "pointer". "ttl" is optional.

    Args:
        domain: Domain name.
        records: Records to save.
        force: Overwrite conflicting records instead of failing.

    Returns:
        dict with success, domain, saved (count) and message.
    """
    try:
        domain = validate_domain(domain)
        parsed = validate_records(records)
    except ValidationError as e:
        return _format_validation_error(e)

    try:
        await _get_client().save_dns_records(domain, parsed, force=force)
    except (SpaceshipError, ConfigError) as e:
        return _format_error(e)

    return {
        "success": True,
        "domain": domain,
        "saved": len(parsed),
        "message": f"Saved {len(parsed)} record(s) for {domain}",
    }


@mcp.tool(title="Delete DNS Records", annotations=_DESTRUCTIVE)
async def delete_dns_records(domain: str, records: list[dict[str, Any]]) -> dict:
    """
    Delete DNS records of a domain.

    Records are matched by type, name and their type fields, as returned by
    list_dns_records. Confirm with the user before deleting.

    Args:
        domain: Domain name.
        records: Records to delete.

    Returns:
        dict with success, domain, deleted (count) and message.
    """
    try:
        domain = validate_domain(domain)
        parsed = validate_records(records)
    except ValidationError as e:
        return _format_validation_error(e)

    try:
        await _get_client().delete_dns_records(domain, parsed)
    except (SpaceshipError, ConfigError) as e:
        return _format_error(e)

    return {
        "success": True,
        "domain": domain,
        "deleted": len(parsed),
        "message": f"Deleted {len(parsed)} record(s) from {domain}",
    }


# =============================================================================
# DOMAINS
# =============================================================================


@mcp.tool(title="List Domains", annotations=_READ_ONLY)
async def list_domains(
    fetch_all: bool = True,
    take: int = DOMAIN_PAGE_SIZE,
    skip: int = 0,
    order_by: str | None = None,
) -> dict:
    """
    List domains in the Spaceship account.

    Args:
        fetch_all: Fetch every page (recommended).
        take: Domains per page when fetch_all is False (1-100).
        skip: Offset when fetch_all is False.
        order_by: "name", "unicodeName", "registrationDate" or
            "expirationDate", optionally prefixed with "-" for descending.

    Returns:
        dict with success, count, total and domains.
    """
    try:
        take, skip = validate_page(take, skip, DOMAIN_PAGE_SIZE)
        order_by = validate_order_by(order_by, DOMAIN_ORDER_BY)
    except ValidationError as e:
        return _format_validation_error(e)

    try:
        client = _get_client()
        if fetch_all:
            domains = await client.list_all_domains(order_by=order_by)
            total = len(domains)
        else:
            domains, total = await client.list_domains(take=take, skip=skip, order_by=order_by)
    except (SpaceshipError, ConfigError) as e:
        return _format_error(e)

    return {
        "success": True,
        "count": len(domains),
        "total": total,
        "domains": domains,
        "message": f"{len(domains)} domain(s)",
    }


@mcp.tool(title="Get Domain", annotations=_READ_ONLY)
async def get_domain(domain: str) -> dict:
    """
    Get details of one domain: status, expiry, auto-renew, privacy,
    nameservers and contact IDs.
    """
    try:
        domain = validate_domain(domain)
    except ValidationError as e:
        return _format_validation_error(e)

    try:
        info = await _get_client().get_domain(domain)
    except (SpaceshipError, ConfigError) as e:
        return _format_error(e)

    return {"success": True, "domain": domain, "details": info}


@mcp.tool(title="Check Domain Availability", annotations=_READ_ONLY)
async def check_domain_availability(domain: str) -> dict:
    """Check whether a domain is available for registration."""
    try:
        domain = validate_domain(domain)
    except ValidationError as e:
        return _format_validation_error(e)

    try:
        result = await _get_client().check_domain_availability(domain)
    except (SpaceshipError, ConfigError) as e:
        return _format_error(e)

    status = result.get("result")
    return {
        "success": True,
        "domain": domain,
        "available": status == "available",
        "result": status,
        "premium_pricing": result.get("premiumPricing", []),
        "message": f"{domain}: {status}",
    }


@mcp.tool(title="Update Nameservers", annotations=_DESTRUCTIVE)
async def update_nameservers(
    domain: str,
    provider: Literal["basic", "custom"],
    hosts: list[str] | None = None,
) -> dict:
    """
    Change the nameservers of a domain.

    "basic" switches back to Spaceship's nameservers; "custom" needs 2-12
    host names. Moving a domain to other nameservers takes its DNS records
    at Spaceship out of service, so confirm with the user first.
    """
    try:
        domain = validate_domain(domain)
        provider, hosts = validate_nameservers(provider, hosts)
    except ValidationError as e:
        return _format_validation_error(e)

    try:
        await _get_client().update_nameservers(domain, provider, hosts)
    except (SpaceshipError, ConfigError) as e:
        return _format_error(e)

    return {
        "success": True,
        "domain": domain,
        "provider": provider,
        "hosts": hosts,
        "message": f"Nameservers for {domain} set to {provider}"
        + (f": {', '.join(hosts)}" if hosts else ""),
    }


@mcp.tool(title="Set Auto-Renew", annotations=_WRITE)
async def set_auto_renew(domain: str, enabled: bool) -> dict:
    """Enable or disable automatic renewal of a domain."""
    try:
        domain = validate_domain(domain)
    except ValidationError as e:
        return _format_validation_error(e)

    try:
        await _get_client().set_auto_renew(domain, enabled)
    except (SpaceshipError, ConfigError) as e:
        return _format_error(e)

    state = "enabled" if enabled else "disabled"
    return {
        "success": True,
        "domain": domain,
        "auto_renew": enabled,
        "message": f"Auto-renew {state} for {domain}",
    }


@mcp.tool(title="Set Transfer Lock", annotations=_WRITE)
async def set_transfer_lock(domain: str, locked: bool) -> dict:
    """Lock or unlock a domain for transfer to another registrar."""
    try:
        domain = validate_domain(domain)
    except ValidationError as e:
        return _format_validation_error(e)

    try:
        await _get_client().set_transfer_lock(domain, locked)
    except (SpaceshipError, ConfigError) as e:
        return _format_error(e)

    state = "locked" if locked else "unlocked"
    return {
        "success": True,
        "domain": domain,
        "transfer_lock": locked,
        "message": f"{domain} {state} for transfer",
    }


@mcp.tool(title="Get Transfer Auth Code", annotations=_READ_ONLY)
async def get_auth_code(domain: str) -> dict:
    """
    Get the auth (EPP) code needed to transfer a domain away.

    The code grants control over the domain; only show it to the user.
    """
    try:
        domain = validate_domain(domain)
    except ValidationError as e:
        return _format_validation_error(e)

    try:
        result = await _get_client().get_auth_code(domain)
    except (SpaceshipError, ConfigError) as e:
        return _format_error(e)

    return {
        "success": True,
        "domain": domain,
        "auth_code": result.get("authCode"),
        "expires": result.get("expires"),
    }


# =============================================================================
# CONTACTS AND PRIVACY
# =============================================================================


@mcp.tool(title="Save Contact", annotations=_WRITE)
async def save_contact(
    first_name: str,
    last_name: str,
    email: str,
    address1: str,
    city: str,
    country: str,
    phone: str,
    organization: str | None = None,
    address2: str | None = None,
    state_province: str | None = None,
    postal_code: str | None = None,
    phone_extension: str | None = None,
    contact_id: str | None = None,
) -> dict:
    """
    Create or update a reusable contact profile.

    Saved contacts are referenced by ID when updating domain contacts. Pass
    contact_id to update an existing profile.

    Args:
        country: Two-letter ISO country code.
        phone: Phone number in +CC.NUMBER form, e.g. "+1.5555555555".

    Returns:
        dict with success, contact_id and message.
    """
    contact = {
        "firstName": first_name,
        "lastName": last_name,
        "organization": organization,
        "email": email,
        "address1": address1,
        "address2": address2,
        "city": city,
        "stateProvince": state_province,
        "postalCode": postal_code,
        "country": country,
        "phone": phone,
        "phoneExt": phone_extension,
        "contactId": contact_id,
    }
    try:
        contact = validate_contact({k: v for k, v in contact.items() if v is not None})
    except ValidationError as e:
        return _format_validation_error(e)

    try:
        result = await _get_client().save_contact(contact)
    except (SpaceshipError, ConfigError) as e:
        return _format_error(e)

    saved_id = result.get("contactId")
    return {
        "success": True,
        "contact_id": saved_id,
        "message": f"Contact {first_name} {last_name} saved (ID: {saved_id or 'N/A'})",
    }


@mcp.tool(title="Get Contact", annotations=_READ_ONLY)
async def get_contact(contact_id: str) -> dict:
    """Retrieve a saved contact profile by its ID."""
    try:
        contact_id = validate_contact_id(contact_id)
    except ValidationError as e:
        return _format_validation_error(e)

    try:
        contact = await _get_client().get_contact(contact_id)
    except (SpaceshipError, ConfigError) as e:
        return _format_error(e)

    return {"success": True, "contact_id": contact_id, "contact": contact}


@mcp.tool(title="Save Contact Attributes", annotations=_WRITE)
async def save_contact_attributes(attributes: dict[str, str]) -> dict:
    """
    Save TLD-specific contact attributes some registries require.

    Example for .us: {"type": "us", "appPurpose": "P1", "nexusCategory": "C11"}.
    """
    if not attributes:
        return _format_validation_error(
            ValidationError("attributes", "At least one attribute is required", attributes)
        )

    try:
        result = await _get_client().save_contact_attributes(attributes)
    except (SpaceshipError, ConfigError) as e:
        return _format_error(e)

    return {
        "success": True,
        "contact_id": result.get("contactId"),
        "attributes": attributes,
        "message": f"Saved {len(attributes)} contact attribute(s)",
    }


@mcp.tool(title="Get Contact Attributes", annotations=_READ_ONLY)
async def get_contact_attributes(contact_id: str) -> dict:
    """Retrieve the TLD-specific attributes stored for a contact."""
    try:
        contact_id = validate_contact_id(contact_id)
    except ValidationError as e:
        return _format_validation_error(e)

    try:
        result = await _get_client().get_contact_attributes(contact_id)
    except (SpaceshipError, ConfigError) as e:
        return _format_error(e)

    attributes = result if isinstance(result, list) else (result or {}).get("items", [])
    return {
        "success": True,
        "contact_id": contact_id,
        "count": len(attributes),
        "attributes": attributes,
    }


@mcp.tool(title="Update Domain Contacts", annotations=_DESTRUCTIVE)
async def update_domain_contacts(
    domain: str,
    registrant: str | None = None,
    admin: str | None = None,
    tech: str | None = None,
    billing: str | None = None,
    attributes: list[str] | None = None,
) -> dict:
    """
    Assign saved contacts (by ID) to the roles of a domain.

    Omitted roles stay unchanged. Changing the registrant may trigger a
    60-day ICANN transfer lock; confirm with the user first.
    """
    roles = {"registrant": registrant, "admin": admin, "tech": tech, "billing": billing}
    try:
        domain = validate_domain(domain)
        roles = {
            role: validate_contact_id(value, field=role)
            for role, value in roles.items()
            if value is not None
        }
        if not roles:
            raise ValidationError("contacts", "Provide at least one contact role", None)
    except ValidationError as e:
        return _format_validation_error(e)

    body: dict[str, Any] = dict(roles)
    if attributes:
        body["attributes"] = attributes

    try:
        await _get_client().update_domain_contacts(domain, body)
    except (SpaceshipError, ConfigError) as e:
        return _format_error(e)

    return {
        "success": True,
        "domain": domain,
        "updated_roles": list(roles),
        "message": f"Updated contacts for {domain}: {', '.join(roles)}",
    }


@mcp.tool(title="Set WHOIS Privacy Level", annotations=_WRITE)
async def set_privacy_level(
    domain: str,
    level: Literal["high", "public"],
    user_consent: bool,
) -> dict:
    """
    Set the WHOIS privacy level of a domain.

    "high" hides contact details; "public" publishes them, which cannot be
    undone once third parties have indexed them. user_consent must be True
    and reflect the user's explicit agreement.
    """
    try:
        domain = validate_domain(domain)
        if level not in ("high", "public"):
            raise ValidationError("level", "Must be 'high' or 'public'", level)
        if not user_consent:
            raise ValidationError("user_consent", "Explicit user consent is required", user_consent)
    except ValidationError as e:
        return _format_validation_error(e)

    try:
        await _get_client().set_privacy_level(domain, level, user_consent)
    except (SpaceshipError, ConfigError) as e:
        return _format_error(e)

    visibility = "contact info hidden" if level == "high" else "contact info visible"
    return {
        "success": True,
        "domain": domain,
        "privacy_level": level,
        "message": f'WHOIS privacy for {domain} set to "{level}" ({visibility})',
    }


@mcp.tool(title="Set Email Protection", annotations=_WRITE)
async def set_email_protection(domain: str, contact_form: bool) -> dict:
    """
    Show a contact form instead of the registrant email in WHOIS.

    Disabling it exposes the email address; confirm with the user first.
    """
    try:
        domain = validate_domain(domain)
    except ValidationError as e:
        return _format_validation_error(e)

    try:
        await _get_client().set_email_protection(domain, contact_form)
    except (SpaceshipError, ConfigError) as e:
        return _format_error(e)

    state = "enabled" if contact_form else "disabled"
    return {
        "success": True,
        "domain": domain,
        "contact_form": contact_form,
        "message": f"Email protection for {domain}: contact form {state}",
    }


# =============================================================================
# ANALYSIS
# =============================================================================


@mcp.tool(title="Check DNS Alignment", annotations=_READ_ONLY)
async def check_dns_alignment(
    domain: str,
    expected_records: list[dict[str, Any]],
    include_ttl: bool = False,
    types: list[str] | None = None,
) -> dict:
    """
    Compare expected DNS records with the records the domain has now.

    Matching ignores case and trailing dots in names and host names. Only
    records of the selected types are compared and reported.

    Args:
        domain: Domain name.
        expected_records: A, AAAA, CNAME, MX, TXT or SRV records, in the
            same shape as list_dns_records items. TTL, if given, 60-3600.
        include_ttl: Require TTLs to match too.
        types: Record types to compare (default A, AAAA, CNAME, MX, TXT, SRV).

    Returns:
        dict with:
        - success: Whether the check ran
        - aligned: True when nothing is missing or unexpected
        - missing: Expected records not found
        - unexpected: Records of the selected types nobody expected
    """
    try:
        domain = validate_domain(domain)
        expected = validate_expected_records(expected_records)
        selected = validate_record_types(types)
    except ValidationError as e:
        return _format_validation_error(e)

    try:
        actual = await _get_client().list_all_dns_records(domain)
    except (SpaceshipError, ConfigError) as e:
        return _format_error(e)

    result = check_alignment(expected, actual, include_ttl=include_ttl, types=selected)
    return {
        "success": True,
        "domain": domain,
        "include_ttl": include_ttl,
        "types": list(selected),
        "aligned": result.aligned,
        "missing": [r.comparable_fields() for r in result.missing],
        "unexpected": [r.comparable_fields() for r in result.unexpected],
        "message": (
            f"Expected records: {len(expected)}. Missing: {len(result.missing)}. "
            f"Unexpected ({','.join(selected)} only): {len(result.unexpected)}"
        ),
    }


@mcp.tool(title="Analyze Fly Cutover", annotations=_READ_ONLY)
async def analyze_fly_cutover(
    domain: str,
    fly_apex_a: str | None = None,
    fly_apex_aaaa: str | None = None,
    fly_www_cname: str | None = None,
) -> dict:
    """
    Plan moving the apex and www web records of a domain to Fly.io.

    Looks at the A, AAAA, CNAME and ALIAS records at "@" and "www" and
    proposes the upserts and deletes that leave exactly the given targets.
    All other records are preserved. Nothing is changed; apply the plan
    with save_dns_records and delete_dns_records after user confirmation.

    Args:
        domain: Domain name.
        fly_apex_a: Fly IPv4 address for the apex.
        fly_apex_aaaa: Fly IPv6 address for the apex.
        fly_www_cname: Fly host name for www, e.g. "app.fly.dev".
    """
    try:
        domain = validate_domain(domain)
        if fly_apex_a:
            fly_apex_a = validate_ip(fly_apex_a, 4, "fly_apex_a")
        if fly_apex_aaaa:
            fly_apex_aaaa = validate_ip(fly_apex_aaaa, 6, "fly_apex_aaaa")
        if fly_www_cname:
            fly_www_cname = validate_hostname(fly_www_cname, "fly_www_cname")
    except ValidationError as e:
        return _format_validation_error(e)

    try:
        actual = await _get_client().list_all_dns_records(domain)
    except (SpaceshipError, ConfigError) as e:
        return _format_error(e)

    plan = plan_cutover(actual, build_cutover_targets(fly_apex_a, fly_apex_aaaa, fly_www_cname))
    likely_vercel = "vercel" in plan.likely_providers
    return {
        "success": True,
        "domain": domain,
        "likely_vercel": likely_vercel,
        "likely_providers": list(plan.likely_providers),
        "current_web_records": [r.comparable_fields() for r in plan.current_web_records],
        "proposed_upserts": [r.comparable_fields() for r in plan.upserts],
        "proposed_deletes": [r.comparable_fields() for r in plan.deletes],
        "preserved_non_web_record_counts": plan.preserved_counts,
        "message": (
            f"Current root/www web records: {len(plan.current_web_records)}. "
            f"Likely Vercel-managed: {'yes' if likely_vercel else 'no'}. "
            f"Proposed upserts: {len(plan.upserts)}, deletes: {len(plan.deletes)}. "
            "This tool is read-only and does not modify DNS."
        ),
    }


# =============================================================================
# PROMPTS AND RESOURCES
# =============================================================================

register_prompts(mcp, _get_client)
_poller: ResourcePoller = register_resources(mcp, _get_client)


def configure_server(config: ServerConfig) -> None:
    """Apply toolset filtering, dynamic tools and the poll interval."""
    removed = apply_toolsets(mcp, config.toolsets)
    if removed:
        logger.info("Toolsets applied", toolsets=config.toolsets, removed=len(removed))

    if config.dynamic_tools:
        catalog = enable_dynamic_tools(mcp)
        logger.info("Dynamic tools enabled", catalog_size=len(catalog))

    _poller.interval = config.poll_interval_seconds


# =============================================================================
# HEALTH ENDPOINTS (for HTTP transport)
# =============================================================================


@mcp.custom_route(path="/health", methods=["GET"])
async def health_check(request: Request) -> Response:
    """
    Health check endpoint for load balancers and monitoring.
    Returns server status and version information.
    """
    from spaceship_mcp import __version__

    uptime = time.time() - _start_time

    return JSONResponse(
        {
            "status": "healthy",
            "service": "spaceship-mcp",
            "version": __version__,
            "uptime_seconds": round(uptime, 2),
            "tools": sorted(t.name for t in mcp._tool_manager.list_tools()),
        }
    )


@mcp.custom_route(path="/ready", methods=["GET"])
async def readiness_check(request: Request) -> Response:
    """Readiness check: credentials are configured."""
    try:
        ClientConfig.from_env()
    except ConfigError as e:
        return JSONResponse({"ready": False, "error": str(e)}, status_code=503)

    return JSONResponse({"ready": True, "checks": {"credentials": "ok"}})


@mcp.custom_route(path="/", methods=["GET"])
async def root_info(request: Request) -> Response:
    """
    Root endpoint with API information.
    """
    from spaceship_mcp import __version__

    return JSONResponse(
        {
            "service": "Spaceship MCP Server",
            "version": __version__,
            "description": "Domains, DNS records and DNS reconciliation for Spaceship",
            "endpoints": {
                "/mcp": "MCP protocol endpoint (POST)",
                "/health": "Health check (GET)",
                "/ready": "Readiness check (GET)",
            },
        }
    )


def main():
    """Run the MCP server."""
    load_dotenv()

    transport = "stdio"
    # Security: Default to localhost for HTTP transport
    host = "127.0.0.1"
    port = 8000

    # Simple argument parsing
    args = sys.argv[1:]
    i = 0
    while i < len(args):
        if args[i] == "--transport":
            transport = args[i + 1]
            i += 2
        elif args[i] == "--port":
            port = int(args[i + 1])
            i += 2
        elif args[i] == "--host":
            host = args[i + 1]
            i += 2
        elif args[i] in ("--help", "-h"):
            print("""Spaceship MCP Server

Usage: spaceship-mcp [OPTIONS]

Options:
  --transport <TYPE>   Transport type: stdio (default) or http
  --host <HOST>        Host to bind to (default: 127.0.0.1, http only)
  --port <PORT>        Port to listen on (default: 8000, http only)
  --help, -h           Show this help message

Environment:
  SPACESHIP_API_KEY, SPACESHIP_API_SECRET   Required credentials
  SPACESHIP_TOOLSETS        Comma list of dns, domains, contacts, analysis
  SPACESHIP_DYNAMIC_TOOLS   true to expose search/describe/execute meta-tools
  SPACESHIP_CACHE_TTL       Response cache lifetime in seconds (0 disables)
  SPACESHIP_POLL_INTERVAL   Resource subscription poll interval in seconds

HTTP Endpoints:
  /mcp      MCP protocol endpoint
  /health   Health check
  /ready    Readiness check
""")
            return
        else:
            i += 1

    try:
        ClientConfig.from_env()
        server_config = ServerConfig.from_env()
    except ValueError as e:
        print(f"spaceship-mcp: {e}", file=sys.stderr)
        sys.exit(1)

    configure_server(server_config)

    if transport == "http":
        import uvicorn

        # Security warning for binding to all interfaces
        if host == "0.0.0.0":  # nosec B104 - This is a security check, not a bind
            print("WARNING: Binding to 0.0.0.0 exposes this server to all network interfaces.")
            print("         Ensure proper network isolation or use a reverse proxy.")
            print()

        print(f"Starting Spaceship MCP server on http://{host}:{port}")
        print(f"  MCP endpoint: http://{host}:{port}/mcp")
        print(f"  Health check: http://{host}:{port}/health")
        print()
        uvicorn.run(
            mcp.streamable_http_app(),
            host=host,
            port=port,
            log_level="info",
        )
    else:
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
