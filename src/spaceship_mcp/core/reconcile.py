# Copyright 2024-2026 The spaceship-mcp Authors
# SPDX-License-Identifier: Apache-2.0

"""
DNS record reconciliation.

Pure functions over :class:`~spaceship_mcp.core.records.DnsRecord` lists:
no I/O, no state, and the same inputs always produce the same result.

* :func:`check_alignment` compares expected records with what the zone
  actually holds.
* :func:`plan_cutover` works out the upserts and deletes that move the
  apex and ``www`` web records to a new host, leaving every other record
  alone.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from spaceship_mcp.core.records import (
    AAAARecord,
    ARecord,
    CNAMERecord,
    DnsRecord,
    fingerprint,
    normalize_host,
    normalize_name,
    summarize_by_type,
)

# Types check_alignment considers when none are given.
ALIGNMENT_TYPES: tuple[str, ...] = ("A", "AAAA", "CNAME", "MX", "TXT", "SRV")

# Records a cutover is allowed to touch.
WEB_TYPES = frozenset({"A", "AAAA", "CNAME", "ALIAS"})
WEB_NAMES = frozenset({"@", "www"})


@dataclass(frozen=True)
class AlignmentResult:
    """Outcome of :func:`check_alignment`."""

    missing: tuple[DnsRecord, ...]
    unexpected: tuple[DnsRecord, ...]

    @property
    def aligned(self) -> bool:
        return not self.missing and not self.unexpected


@dataclass(frozen=True)
class CutoverPlan:
    """Outcome of :func:`plan_cutover`. Informational only; nothing is applied."""

    upserts: tuple[DnsRecord, ...]
    deletes: tuple[DnsRecord, ...]
    current_web_records: tuple[DnsRecord, ...]
    preserved_counts: dict[str, int] = field(default_factory=dict)
    likely_providers: tuple[str, ...] = ()

    @property
    def is_noop(self) -> bool:
        return not self.upserts and not self.deletes


@dataclass(frozen=True)
class HostingSignature:
    """
    Fingerprint of records that point at a hosting provider.

    A record matches when its address is one of ``ips``, starts with one of
    ``ip_prefixes``, or any of its host/value fields contains one of
    ``host_fragments`` (case-insensitive).
    """

    name: str
    ips: frozenset[str] = frozenset()
    ip_prefixes: tuple[str, ...] = ()
    host_fragments: tuple[str, ...] = ()

    def matches(self, record: DnsRecord) -> bool:
        address = getattr(record, "address", None)
        if isinstance(address, str):
            address = address.strip()
            if address in self.ips or address.startswith(self.ip_prefixes):
                return True

        for attr in ("cname", "exchange", "target", "value", "alias_name"):
            text = getattr(record, attr, None)
            if not isinstance(text, str):
                continue
            lowered = text.lower()
            if any(fragment in lowered for fragment in self.host_fragments):
                return True
        return False


VERCEL = HostingSignature(
    name="vercel",
    ips=frozenset({"76.76.21.21"}),
    ip_prefixes=("216.198.79.",),
    host_fragments=("vercel",),
)

KNOWN_PROVIDERS: tuple[HostingSignature, ...] = (VERCEL,)


def is_web_record(record: DnsRecord) -> bool:
    """True for A/AAAA/CNAME/ALIAS records at the apex or ``www``."""
    return record.type in WEB_TYPES and normalize_name(record.name) in WEB_NAMES


def is_likely_provider_record(record: DnsRecord, signature: HostingSignature = VERCEL) -> bool:
    return signature.matches(record)


def detect_providers(
    records: Iterable[DnsRecord],
    providers: Sequence[HostingSignature] = KNOWN_PROVIDERS,
) -> tuple[str, ...]:
    """Names of the providers at least one record points at, in ``providers`` order."""
    records = list(records)
    return tuple(p.name for p in providers if any(p.matches(r) for r in records))


def check_alignment(
    expected: Iterable[DnsRecord],
    actual: Iterable[DnsRecord],
    include_ttl: bool = False,
    types: Iterable[str] = ALIGNMENT_TYPES,
) -> AlignmentResult:
    """
    Compare expected records with the zone's actual records.

    Only actual records whose type is in ``types`` take part: they are both
    the pool expected records match against and the candidates for
    "unexpected". An expected record matches when some actual record has the
    same fingerprint. Several actual records sharing that fingerprint are all
    satisfied by the one expected record.

    Args:
        expected: Records that should exist.
        actual: Records currently in the zone.
        include_ttl: Make TTL part of the match.
        types: Record types to consider.

    Returns:
        Missing expected records and unmatched actual records, both in input
        order.
    """
    wanted_types = {t.strip().upper() for t in types}
    candidates = [r for r in actual if r.type in wanted_types]

    actual_fingerprints = {fingerprint(r, include_ttl) for r in candidates}

    missing: list[DnsRecord] = []
    matched: set[str] = set()
    for record in expected:
        key = fingerprint(record, include_ttl)
        if key in actual_fingerprints:
            matched.add(key)
        else:
            missing.append(record)

    unexpected = [r for r in candidates if fingerprint(r, include_ttl) not in matched]
    return AlignmentResult(missing=tuple(missing), unexpected=tuple(unexpected))


def build_cutover_targets(
    apex_a: str | None = None,
    apex_aaaa: str | None = None,
    www_cname: str | None = None,
) -> list[DnsRecord]:
    """Desired web records for a cutover. Blank or missing inputs are skipped."""
    desired: list[DnsRecord] = []
    if apex_a and apex_a.strip():
        desired.append(ARecord(name="@", address=apex_a.strip()))
    if apex_aaaa and apex_aaaa.strip():
        desired.append(AAAARecord(name="@", address=apex_aaaa.strip()))
    if www_cname and www_cname.strip():
        desired.append(CNAMERecord(name="www", cname=normalize_host(www_cname)))
    return desired


def plan_cutover(
    actual: Iterable[DnsRecord],
    desired: Iterable[DnsRecord],
    providers: Sequence[HostingSignature] = KNOWN_PROVIDERS,
) -> CutoverPlan:
    """
    Plan the change from the current web records to ``desired``.

    Upserts are desired records not already present; deletes are current
    web records not desired. Records outside the web scope are never
    touched and only counted in ``preserved_counts``. TTL is ignored.

    Raises:
        ValueError: If a desired record is outside the web scope.
    """
    desired = list(desired)
    for record in desired:
        if not is_web_record(record):
            raise ValueError(
                f"Cutover target {record.type} {record.name!r} is not an "
                "A/AAAA/CNAME/ALIAS record at '@' or 'www'"
            )

    actual = list(actual)
    web = [r for r in actual if is_web_record(r)]
    preserved = [r for r in actual if not is_web_record(r)]

    current = {fingerprint(r) for r in web}
    wanted = {fingerprint(r) for r in desired}

    upserts: list[DnsRecord] = []
    seen: set[str] = set()
    for record in desired:
        key = fingerprint(record)
        if key not in current and key not in seen:
            upserts.append(record)
        seen.add(key)

    return CutoverPlan(
        upserts=tuple(upserts),
        deletes=tuple(r for r in web if fingerprint(r) not in wanted),
        current_web_records=tuple(web),
        preserved_counts=summarize_by_type(preserved),
        likely_providers=detect_providers(web, providers),
    )


__all__ = [
    "ALIGNMENT_TYPES",
    "AlignmentResult",
    "CutoverPlan",
    "HostingSignature",
    "KNOWN_PROVIDERS",
    "VERCEL",
    "WEB_NAMES",
    "WEB_TYPES",
    "build_cutover_targets",
    "check_alignment",
    "detect_providers",
    "is_likely_provider_record",
    "is_web_record",
    "plan_cutover",
]
