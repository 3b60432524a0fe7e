# Copyright 2024-2026 The spaceship-mcp Authors
# SPDX-License-Identifier: Apache-2.0

"""
Client and server configuration.

Values are read once at startup (``from_env``) and handed to the client and
server as plain values; nothing below the server reads the environment.
"""

from __future__ import annotations

import os

from pydantic import BaseModel, Field

DEFAULT_BASE_URL = "https://spaceship.dev/api"

TOOLSET_NAMES = ("dns", "domains", "contacts", "analysis")


class ConfigError(ValueError):
    """Raised when required configuration is missing or invalid."""


class ClientConfig(BaseModel):
    """Configuration for the Spaceship API client."""

    api_key: str = Field(..., min_length=1, description="Spaceship API key.")
    api_secret: str = Field(..., min_length=1, description="Spaceship API secret.")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="API base URL.")

    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Per-request transport timeout in seconds.",
    )

    # Response cache
    cache_ttl_seconds: float = Field(
        default=30.0,
        ge=0,
        description="Lifetime of cached read responses. 0 disables caching.",
    )

    # Throttling
    max_retries: int = Field(
        default=3,
        ge=0,
        description="Retries after a 429 response before giving up.",
    )
    retry_base_delay: float = Field(
        default=1.0,
        ge=0,
        description="First backoff delay in seconds; doubles on each retry.",
    )
    retry_max_delay: float = Field(
        default=30.0,
        ge=0,
        description="Upper bound for a computed backoff delay (Retry-After is not capped).",
    )

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Build config from environment variables."""
        api_key = os.getenv("SPACESHIP_API_KEY")
        api_secret = os.getenv("SPACESHIP_API_SECRET")
        if not api_key or not api_secret:
            raise ConfigError(
                "Missing required env vars: SPACESHIP_API_KEY and SPACESHIP_API_SECRET"
            )

        return cls(
            api_key=api_key,
            api_secret=api_secret,
            base_url=os.getenv("SPACESHIP_BASE_URL", DEFAULT_BASE_URL),
            timeout_seconds=float(os.getenv("SPACESHIP_TIMEOUT", "30")),
            cache_ttl_seconds=float(os.getenv("SPACESHIP_CACHE_TTL", "30")),
            max_retries=int(os.getenv("SPACESHIP_MAX_RETRIES", "3")),
            retry_base_delay=float(os.getenv("SPACESHIP_RETRY_BASE_DELAY", "1.0")),
            retry_max_delay=float(os.getenv("SPACESHIP_RETRY_MAX_DELAY", "30")),
        )


class ServerConfig(BaseModel):
    """Configuration for the MCP server surface."""

    toolsets: list[str] = Field(
        default_factory=lambda: list(TOOLSET_NAMES),
        description="Toolsets to expose: dns, domains, contacts, analysis.",
    )
    dynamic_tools: bool = Field(
        default=False,
        description="Expose search/describe/execute meta-tools instead of the full tool list.",
    )
    poll_interval_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Polling interval for resource subscriptions.",
    )

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Build config from environment variables."""
        raw_toolsets = os.getenv("SPACESHIP_TOOLSETS", "")
        toolsets = [t.strip().lower() for t in raw_toolsets.split(",") if t.strip()]

        unknown = sorted(set(toolsets) - set(TOOLSET_NAMES))
        if unknown:
            raise ConfigError(
                f"Unknown toolset(s): {', '.join(unknown)}. "
                f"Available: {', '.join(TOOLSET_NAMES)}"
            )

        return cls(
            toolsets=toolsets or list(TOOLSET_NAMES),
            dynamic_tools=os.getenv("SPACESHIP_DYNAMIC_TOOLS", "").lower() in ("1", "true", "yes"),
            poll_interval_seconds=float(os.getenv("SPACESHIP_POLL_INTERVAL", "30")),
        )
