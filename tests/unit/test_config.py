# Copyright 2024-2026 The spaceship-mcp Authors
# SPDX-License-Identifier: Apache-2.0

"""Tests for spaceship_mcp.core.config module."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from spaceship_mcp.core.config import (
    DEFAULT_BASE_URL,
    TOOLSET_NAMES,
    ClientConfig,
    ConfigError,
    ServerConfig,
)

_ENV_VARS = (
    "SPACESHIP_API_KEY",
    "SPACESHIP_API_SECRET",
    "SPACESHIP_BASE_URL",
    "SPACESHIP_TIMEOUT",
    "SPACESHIP_CACHE_TTL",
    "SPACESHIP_MAX_RETRIES",
    "SPACESHIP_RETRY_BASE_DELAY",
    "SPACESHIP_RETRY_MAX_DELAY",
    "SPACESHIP_TOOLSETS",
    "SPACESHIP_DYNAMIC_TOOLS",
    "SPACESHIP_POLL_INTERVAL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestClientConfig:
    """Tests for ClientConfig."""

    def test_from_env_defaults(self, monkeypatch):
        monkeypatch.setenv("SPACESHIP_API_KEY", "key")
        monkeypatch.setenv("SPACESHIP_API_SECRET", "secret")

        config = ClientConfig.from_env()

        assert config.api_key == "key"
        assert config.api_secret == "secret"
        assert config.base_url == DEFAULT_BASE_URL
        assert config.cache_ttl_seconds == 30.0
        assert config.max_retries == 3
        assert config.retry_base_delay == 1.0
        assert config.retry_max_delay == 30.0

    def test_from_env_overrides(self, monkeypatch):
        monkeypatch.setenv("SPACESHIP_API_KEY", "key")
        monkeypatch.setenv("SPACESHIP_API_SECRET", "secret")
        monkeypatch.setenv("SPACESHIP_BASE_URL", "https://sandbox.spaceship.test/api")
        monkeypatch.setenv("SPACESHIP_CACHE_TTL", "0")
        monkeypatch.setenv("SPACESHIP_MAX_RETRIES", "5")
        monkeypatch.setenv("SPACESHIP_TIMEOUT", "10")

        config = ClientConfig.from_env()

        assert config.base_url == "https://sandbox.spaceship.test/api"
        assert config.cache_ttl_seconds == 0.0
        assert config.max_retries == 5
        assert config.timeout_seconds == 10.0

    @pytest.mark.parametrize("missing", ["SPACESHIP_API_KEY", "SPACESHIP_API_SECRET"])
    def test_missing_credentials(self, monkeypatch, missing):
        monkeypatch.setenv("SPACESHIP_API_KEY", "key")
        monkeypatch.setenv("SPACESHIP_API_SECRET", "secret")
        monkeypatch.delenv(missing)

        with pytest.raises(ConfigError, match="SPACESHIP_API_KEY and SPACESHIP_API_SECRET"):
            ClientConfig.from_env()

    def test_negative_retries_rejected(self):
        with pytest.raises(ValidationError):
            ClientConfig(api_key="k", api_secret="s", max_retries=-1)

    def test_non_numeric_env_rejected(self, monkeypatch):
        monkeypatch.setenv("SPACESHIP_API_KEY", "key")
        monkeypatch.setenv("SPACESHIP_API_SECRET", "secret")
        monkeypatch.setenv("SPACESHIP_CACHE_TTL", "forever")

        with pytest.raises(ValueError):
            ClientConfig.from_env()


class TestServerConfig:
    """Tests for ServerConfig."""

    def test_defaults(self):
        config = ServerConfig.from_env()

        assert config.toolsets == list(TOOLSET_NAMES)
        assert config.dynamic_tools is False
        assert config.poll_interval_seconds == 30.0

    def test_toolsets_parsed(self, monkeypatch):
        monkeypatch.setenv("SPACESHIP_TOOLSETS", " DNS, analysis ,")
        assert ServerConfig.from_env().toolsets == ["dns", "analysis"]

    def test_unknown_toolset(self, monkeypatch):
        monkeypatch.setenv("SPACESHIP_TOOLSETS", "dns,billing")

        with pytest.raises(ConfigError, match="billing"):
            ServerConfig.from_env()

    @pytest.mark.parametrize(("raw", "expected"), [("1", True), ("TRUE", True), ("no", False)])
    def test_dynamic_tools(self, monkeypatch, raw, expected):
        monkeypatch.setenv("SPACESHIP_DYNAMIC_TOOLS", raw)
        assert ServerConfig.from_env().dynamic_tools is expected

    def test_poll_interval_must_be_positive(self, monkeypatch):
        monkeypatch.setenv("SPACESHIP_POLL_INTERVAL", "0")

        with pytest.raises(ValidationError):
            ServerConfig.from_env()
