# Copyright 2024-2026 The spaceship-mcp Authors
# SPDX-License-Identifier: Apache-2.0

"""
spaceship-mcp: MCP server for the Spaceship domain registrar.

Exposes domains, DNS records and contacts of a Spaceship account as MCP
tools, and adds DNS reconciliation on top: alignment checks against an
expected record set and web cutover planning.

Example:
    >>> from spaceship_mcp import ClientConfig, SpaceshipClient, check_alignment
    >>>
    >>> async with SpaceshipClient(ClientConfig.from_env()) as client:
    ...     actual = await client.list_all_dns_records("example.com")
    >>> result = check_alignment(expected, actual)
    >>> print(len(result.missing), len(result.unexpected))
"""

from __future__ import annotations

from spaceship_mcp.core.cache import ResponseCache
from spaceship_mcp.core.client import (
    MalformedResponseError,
    RateLimitError,
    SpaceshipApiError,
    SpaceshipClient,
    SpaceshipError,
    SpaceshipTransportError,
)
from spaceship_mcp.core.config import ClientConfig, ConfigError, ServerConfig
from spaceship_mcp.core.reconcile import (
    AlignmentResult,
    CutoverPlan,
    build_cutover_targets,
    check_alignment,
    plan_cutover,
)
from spaceship_mcp.core.records import DnsRecord, fingerprint, parse_record, parse_records

__version__ = "0.3.0"
__all__ = [
    # Client
    "SpaceshipClient",
    "ClientConfig",
    "ServerConfig",
    "ResponseCache",
    # Errors
    "ConfigError",
    "SpaceshipError",
    "SpaceshipApiError",
    "RateLimitError",
    "SpaceshipTransportError",
    "MalformedResponseError",
    # Records
    "DnsRecord",
    "parse_record",
    "parse_records",
    "fingerprint",
    # Reconciliation
    "AlignmentResult",
    "CutoverPlan",
    "check_alignment",
    "build_cutover_targets",
    "plan_cutover",
    "__version__",
]
