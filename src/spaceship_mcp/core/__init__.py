# Copyright 2024-2026 The spaceship-mcp Authors
# SPDX-License-Identifier: Apache-2.0

"""Core functionality: cache, API client, record model, reconciliation."""

from spaceship_mcp.core.cache import ResponseCache, cache_key, cache_prefix
from spaceship_mcp.core.client import SpaceshipClient
from spaceship_mcp.core.config import ClientConfig, ServerConfig
from spaceship_mcp.core.reconcile import AlignmentResult, CutoverPlan, check_alignment, plan_cutover
from spaceship_mcp.core.records import RECORD_MODELS, DnsRecord, fingerprint, parse_record

__all__ = [
    "AlignmentResult",
    "ClientConfig",
    "CutoverPlan",
    "DnsRecord",
    "RECORD_MODELS",
    "ResponseCache",
    "ServerConfig",
    "SpaceshipClient",
    "cache_key",
    "cache_prefix",
    "check_alignment",
    "fingerprint",
    "parse_record",
    "plan_cutover",
]
