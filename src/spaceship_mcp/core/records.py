# Copyright 2024-2026 The spaceship-mcp Authors
# SPDX-License-Identifier: Apache-2.0

"""
DNS record models for the Spaceship API.

One pydantic model per record kind, selected by the upper-cased ``type``.
Each kind defines how its owner name and its value compare, which is what
the reconciliation engine fingerprints. Field names follow the Spaceship
API (``address``, ``cname``, ``exchange``, ``aliasName``, ...).

Example:
    >>> a = parse_record({"type": "CNAME", "name": "WWW.", "cname": "App.Fly.dev."})
    >>> b = parse_record({"type": "cname", "name": "www", "cname": "app.fly.dev"})
    >>> fingerprint(a) == fingerprint(b)
    True
"""

from __future__ import annotations

import ipaddress
import json
from collections.abc import Iterable
from typing import Annotated, Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Fields Spaceship attaches to records that say nothing about their content.
_METADATA_FIELDS = frozenset({"group", "id"})


def normalize_host(value: str) -> str:
    """Trim, drop one trailing dot, lowercase. Used only for comparison."""
    value = value.strip()
    if value.endswith("."):
        value = value[:-1]
    return value.lower()


# Owner names and domains follow the same rules as host-bearing fields.
normalize_name = normalize_host
normalize_domain = normalize_host


def _normalize_address(value: str) -> str:
    """
    Trimmed address in canonical IP form, so ``2001:0DB8::0001`` and
    ``2001:db8::1`` compare equal. Text that does not parse is kept as is.
    """
    text = value.strip()
    try:
        return ipaddress.ip_address(text).compressed
    except ValueError:
        return text


def _service_label(value: str) -> str:
    label = normalize_host(value)
    return label if label.startswith("_") else f"_{label}"


class DnsRecord(BaseModel):
    """
    Base record: any type the API returns that has no dedicated model.

    Unknown fields are kept (``extra="allow"``) so they survive a round trip
    back to the API, but they are never validated.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    type: str = Field(..., min_length=1, description="Record type, e.g. 'A' or 'MX'")
    name: str = Field(..., min_length=1, max_length=255, description="Owner name ('@' for apex)")
    ttl: int | None = Field(default=None, ge=0, description="Time-to-live in seconds")

    # Kind-specific fields, in API spelling, in comparison order.
    kind_fields: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="before")
    @classmethod
    def validate_type(cls, data: Any) -> Any:
        """Record types are case-insensitive; store them upper-cased."""
        if isinstance(data, dict) and isinstance(data.get("type"), str):
            return {**data, "type": data["type"].strip().upper()}
        return data

    def owner_name(self) -> str:
        """Normalized owner name used for matching."""
        return normalize_name(self.name)

    def comparable_value(self) -> str:
        """Canonical JSON of the non-metadata extra fields."""
        extra = {k: v for k, v in (self.model_extra or {}).items() if k not in _METADATA_FIELDS}
        return json.dumps(extra, sort_keys=True, separators=(",", ":"), default=str)

    def comparable_fields(self) -> dict[str, Any]:
        """The fields that matter for this kind, for structured tool output."""
        fields: dict[str, Any] = {"type": self.type, "name": self.name, "ttl": self.ttl}
        dumped = self.model_dump(by_alias=True)
        for field in self.kind_fields:
            fields[field] = dumped.get(field)
        if not self.kind_fields:
            fields.update(
                {k: v for k, v in (self.model_extra or {}).items() if k not in _METADATA_FIELDS}
            )
        return fields

    def to_api(self) -> dict[str, Any]:
        """Payload in the shape the Spaceship API expects."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ARecord(DnsRecord):
    """IPv4 address record."""

    type: Literal["A"] = "A"
    address: str = Field(..., min_length=1, max_length=45)

    kind_fields: ClassVar[tuple[str, ...]] = ("address",)

    def comparable_value(self) -> str:
        return _normalize_address(self.address)


class AAAARecord(DnsRecord):
    """IPv6 address record."""

    type: Literal["AAAA"] = "AAAA"
    address: str = Field(..., min_length=1, max_length=45)

    kind_fields: ClassVar[tuple[str, ...]] = ("address",)

    def comparable_value(self) -> str:
        return _normalize_address(self.address)


class CNAMERecord(DnsRecord):
    """Canonical name record."""

    type: Literal["CNAME"] = "CNAME"
    cname: str = Field(..., min_length=1, max_length=255)

    kind_fields: ClassVar[tuple[str, ...]] = ("cname",)

    def comparable_value(self) -> str:
        return normalize_host(self.cname)


class MXRecord(DnsRecord):
    """Mail exchange record."""

    type: Literal["MX"] = "MX"
    exchange: str = Field(..., min_length=1, max_length=255)
    preference: int = Field(..., ge=0, le=65535)

    kind_fields: ClassVar[tuple[str, ...]] = ("exchange", "preference")

    def comparable_value(self) -> str:
        return f"{self.preference}:{normalize_host(self.exchange)}"


class TXTRecord(DnsRecord):
    """Text record. The value is compared verbatim."""

    type: Literal["TXT"] = "TXT"
    value: str = Field(..., max_length=65535)

    kind_fields: ClassVar[tuple[str, ...]] = ("value",)

    def comparable_value(self) -> str:
        return self.value


class SRVRecord(DnsRecord):
    """
    Service locator record.

    Spaceship carries the ``_service._protocol`` labels in separate fields;
    they are part of the owner name, not of the value.
    """

    type: Literal["SRV"] = "SRV"
    service: str = Field(..., min_length=1, max_length=63)
    protocol: str = Field(..., min_length=1, max_length=63)
    priority: int = Field(..., ge=0, le=65535)
    weight: int = Field(..., ge=0, le=65535)
    port: int = Field(..., ge=0, le=65535)
    target: str = Field(..., min_length=1, max_length=255)

    kind_fields: ClassVar[tuple[str, ...]] = (
        "service",
        "protocol",
        "priority",
        "weight",
        "port",
        "target",
    )

    def owner_name(self) -> str:
        labels = f"{_service_label(self.service)}.{_service_label(self.protocol)}"
        name = normalize_name(self.name)
        return labels if name == "@" else f"{labels}.{name}"

    def comparable_value(self) -> str:
        return f"{self.priority}:{self.weight}:{self.port}:{normalize_host(self.target)}"


class AliasRecord(DnsRecord):
    """Apex alias (CNAME flattening) record."""

    type: Literal["ALIAS"] = "ALIAS"
    alias_name: str = Field(..., alias="aliasName", min_length=1, max_length=255)

    kind_fields: ClassVar[tuple[str, ...]] = ("aliasName",)

    def comparable_value(self) -> str:
        return normalize_host(self.alias_name)


class NSRecord(DnsRecord):
    """Delegation record."""

    type: Literal["NS"] = "NS"
    nameserver: str = Field(..., min_length=1, max_length=255)

    kind_fields: ClassVar[tuple[str, ...]] = ("nameserver",)

    def comparable_value(self) -> str:
        return normalize_host(self.nameserver)


class CAARecord(DnsRecord):
    """Certification authority authorization record."""

    type: Literal["CAA"] = "CAA"
    flag: int = Field(default=0, ge=0, le=255)
    tag: str = Field(..., min_length=1)
    value: str

    kind_fields: ClassVar[tuple[str, ...]] = ("flag", "tag", "value")

    def comparable_value(self) -> str:
        return f"{self.flag}:{self.tag.lower()}:{self.value}"


class PTRRecord(DnsRecord):
    """Pointer record."""

    type: Literal["PTR"] = "PTR"
    pointer: str = Field(..., min_length=1, max_length=255)

    kind_fields: ClassVar[tuple[str, ...]] = ("pointer",)

    def comparable_value(self) -> str:
        return normalize_host(self.pointer)


RECORD_MODELS: dict[str, type[DnsRecord]] = {
    "A": ARecord,
    "AAAA": AAAARecord,
    "CNAME": CNAMERecord,
    "MX": MXRecord,
    "TXT": TXTRecord,
    "SRV": SRVRecord,
    "ALIAS": AliasRecord,
    "NS": NSRecord,
    "CAA": CAARecord,
    "PTR": PTRRecord,
}

# Records a caller may describe as "expected" or "desired" in tool input.
ExpectedRecord = Annotated[
    ARecord | AAAARecord | CNAMERecord | MXRecord | TXTRecord | SRVRecord,
    Field(discriminator="type"),
]


def parse_record(data: dict[str, Any]) -> DnsRecord:
    """
    Build the model for one record dict.

    Raises:
        ValueError: If ``data`` is not a dict with a ``type``, or the fields
            of its kind fail validation (pydantic ``ValidationError``).
    """
    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        raise ValueError(f"Not a DNS record: {data!r}")

    record_type = data["type"].strip().upper()
    model = RECORD_MODELS.get(record_type, DnsRecord)
    return model.model_validate({**data, "type": record_type})


def parse_records(items: Iterable[dict[str, Any]]) -> list[DnsRecord]:
    return [parse_record(item) for item in items]


def fingerprint(record: DnsRecord, include_ttl: bool = False) -> str:
    """
    Equality key for reconciliation: ``TYPE|name|value|ttl``.

    TTL only participates when ``include_ttl`` is set; otherwise the last
    segment is empty.
    """
    ttl = "" if not include_ttl or record.ttl is None else str(record.ttl)
    return f"{record.type}|{record.owner_name()}|{record.comparable_value()}|{ttl}"


def summarize_by_type(records: Iterable[DnsRecord]) -> dict[str, int]:
    """Count records per type."""
    counts: dict[str, int] = {}
    for record in records:
        counts[record.type] = counts.get(record.type, 0) + 1
    return counts
