# Copyright 2024-2026 The spaceship-mcp Authors
# SPDX-License-Identifier: Apache-2.0

"""
Input validation for MCP tool arguments.

Every validator either returns the cleaned value or raises
:class:`ValidationError` naming the offending field, so tool handlers can
report the problem without calling the API.
"""

from __future__ import annotations

import ipaddress
import re
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from spaceship_mcp.core.records import DnsRecord, ExpectedRecord, normalize_domain, parse_record
from spaceship_mcp.core.reconcile import ALIGNMENT_TYPES

# RFC 1035 label: letters, digits, hyphens; no leading/trailing hyphen.
_LABEL_RE = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")

DNS_ORDER_BY = ("type", "-type", "name", "-name")
DOMAIN_ORDER_BY = (
    "name",
    "-name",
    "unicodeName",
    "-unicodeName",
    "registrationDate",
    "-registrationDate",
    "expirationDate",
    "-expirationDate",
)

MIN_EXPECTED_TTL = 60
MAX_EXPECTED_TTL = 3600
MIN_CUSTOM_NAMESERVERS = 2
MAX_CUSTOM_NAMESERVERS = 12

_expected_adapter: TypeAdapter[list[ExpectedRecord]] = TypeAdapter(list[ExpectedRecord])


class ValidationError(ValueError):
    """A tool argument failed validation."""

    def __init__(self, field: str, message: str, value: Any = None) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message
        self.value = value


def validate_domain(domain: str, field: str = "domain") -> str:
    """
    Validate and normalize a registrable domain name.

    Returns:
        The lower-cased domain without a trailing dot.
    """
    if not isinstance(domain, str) or not domain.strip():
        raise ValidationError(field, "Domain is required", domain)

    normalized = normalize_domain(domain)
    if len(normalized) < 4 or len(normalized) > 255:
        raise ValidationError(field, "Domain must be 4-255 characters", domain)

    labels = normalized.split(".")
    if len(labels) < 2:
        raise ValidationError(field, "Domain must contain at least one dot", domain)

    for label in labels:
        # Punycode (xn--) labels pass the same pattern.
        if not _LABEL_RE.match(label):
            raise ValidationError(field, f"Invalid label {label!r}", domain)

    return normalized


def validate_hostname(host: str, field: str = "host") -> str:
    """Validate a host name (nameserver, CNAME target). Returns it normalized."""
    if not isinstance(host, str) or not host.strip():
        raise ValidationError(field, "Host name is required", host)

    normalized = normalize_domain(host)
    if len(normalized) > 253:
        raise ValidationError(field, "Host name exceeds 253 characters", host)

    for label in normalized.split("."):
        if not _LABEL_RE.match(label):
            raise ValidationError(field, f"Invalid label {label!r}", host)
    return normalized


def validate_ip(address: str, version: int, field: str) -> str:
    """Validate an IPv4 (``version=4``) or IPv6 (``version=6``) address."""
    try:
        ip = ipaddress.ip_address(address.strip())
    except (AttributeError, ValueError) as e:
        raise ValidationError(field, f"Not an IP address: {e}", address) from e

    if ip.version != version:
        raise ValidationError(field, f"Expected an IPv{version} address", address)
    return str(ip)


def validate_page(take: int, skip: int, max_take: int) -> tuple[int, int]:
    if take < 1 or take > max_take:
        raise ValidationError("take", f"take must be between 1 and {max_take}", take)
    if skip < 0:
        raise ValidationError("skip", "skip must be >= 0", skip)
    return take, skip


def validate_order_by(order_by: str | None, allowed: tuple[str, ...]) -> str | None:
    if order_by is None or order_by == "":
        return None
    if order_by not in allowed:
        raise ValidationError("order_by", f"Must be one of: {', '.join(allowed)}", order_by)
    return order_by


def validate_record_types(types: list[str] | None) -> tuple[str, ...]:
    """Record types for alignment checks. ``None`` or empty means the default set."""
    if not types:
        return ALIGNMENT_TYPES

    cleaned: list[str] = []
    for record_type in types:
        upper = str(record_type).strip().upper()
        if upper not in ALIGNMENT_TYPES:
            raise ValidationError(
                "types",
                f"Unsupported type {record_type!r}. Allowed: {', '.join(ALIGNMENT_TYPES)}",
                record_type,
            )
        if upper not in cleaned:
            cleaned.append(upper)
    return tuple(cleaned)


def validate_records(items: list[dict[str, Any]], field: str = "records") -> list[DnsRecord]:
    """Parse record dicts of any type for save/delete operations."""
    if not items:
        raise ValidationError(field, "At least one record is required", items)

    records: list[DnsRecord] = []
    for i, item in enumerate(items):
        try:
            records.append(parse_record(item))
        except (PydanticValidationError, ValueError) as e:
            raise ValidationError(f"{field}[{i}]", _first_error(e), item) from e
    return records


def validate_expected_records(items: list[dict[str, Any]]) -> list[DnsRecord]:
    """
    Parse the records an alignment check expects.

    Only A, AAAA, CNAME, MX, TXT and SRV are accepted, and a TTL, when
    given, must be 60-3600 seconds.
    """
    if not items:
        raise ValidationError("expected_records", "At least one expected record is required", items)

    normalized = [
        {**item, "type": item["type"].strip().upper()}
        if isinstance(item, dict) and isinstance(item.get("type"), str)
        else item
        for item in items
    ]
    try:
        records: list[DnsRecord] = _expected_adapter.validate_python(normalized)
    except PydanticValidationError as e:
        raise ValidationError("expected_records", _first_error(e), items) from e

    for i, record in enumerate(records):
        if record.ttl is not None and not MIN_EXPECTED_TTL <= record.ttl <= MAX_EXPECTED_TTL:
            raise ValidationError(
                f"expected_records[{i}].ttl",
                f"TTL must be between {MIN_EXPECTED_TTL} and {MAX_EXPECTED_TTL}",
                record.ttl,
            )
    return records


def validate_nameservers(provider: str, hosts: list[str] | None) -> tuple[str, list[str]]:
    """``basic`` takes no hosts; ``custom`` needs 2-12 valid host names."""
    if provider not in ("basic", "custom"):
        raise ValidationError("provider", "Must be 'basic' or 'custom'", provider)

    if provider == "basic":
        if hosts:
            raise ValidationError("hosts", "Hosts are only allowed with provider 'custom'", hosts)
        return provider, []

    hosts = hosts or []
    if not MIN_CUSTOM_NAMESERVERS <= len(hosts) <= MAX_CUSTOM_NAMESERVERS:
        raise ValidationError(
            "hosts",
            f"Custom nameservers need {MIN_CUSTOM_NAMESERVERS}-{MAX_CUSTOM_NAMESERVERS} hosts",
            hosts,
        )
    return provider, [validate_hostname(h, field="hosts") for h in hosts]


def validate_contact_id(contact_id: str, field: str = "contact_id") -> str:
    if not isinstance(contact_id, str) or not contact_id.strip():
        raise ValidationError(field, "Contact ID is required", contact_id)
    return contact_id.strip()


def validate_contact(contact: dict[str, Any]) -> dict[str, Any]:
    """Check the fields the API requires for a contact profile."""
    required = ("firstName", "lastName", "email", "address1", "city", "country", "phone")
    missing = [key for key in required if not str(contact.get(key) or "").strip()]
    if missing:
        raise ValidationError("contact", f"Missing required field(s): {', '.join(missing)}", contact)

    if "@" not in contact["email"]:
        raise ValidationError("contact.email", "Not an email address", contact["email"])

    country = str(contact["country"]).strip()
    if len(country) != 2 or not country.isalpha():
        raise ValidationError("contact.country", "Use a two-letter ISO country code", country)

    return {**contact, "country": country.upper()}


def _first_error(e: Exception) -> str:
    if isinstance(e, PydanticValidationError):
        err = e.errors()[0]
        loc = ".".join(str(part) for part in err.get("loc", ()))
        return f"{loc}: {err['msg']}" if loc else err["msg"]
    return str(e)
