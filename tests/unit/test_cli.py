# Copyright 2024-2026 The spaceship-mcp Authors
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for CLI commands."""

import json
import re
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from spaceship_mcp.cli.main import app
from spaceship_mcp.core.client import SpaceshipApiError
from spaceship_mcp.core.records import parse_records

runner = CliRunner()

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def _strip_ansi(text: str) -> str:
    """Strip ANSI escape codes from Rich/Typer output for reliable assertions."""
    return _ANSI_RE.sub("", text)


@pytest.fixture
def records(sample_records):
    return parse_records(sample_records)


@pytest.fixture(autouse=True)
def no_dotenv():
    with patch("dotenv.load_dotenv"):
        yield


class TestVersion:
    """Test version display."""

    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "spaceship-mcp version" in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "Spaceship registrar" in _strip_ansi(result.output)

    def test_quiet_flag(self):
        with patch("spaceship_mcp.utils.logging.configure_logging") as configure:
            result = runner.invoke(app, ["--quiet", "--version"])
        assert result.exit_code == 0
        configure.assert_called_once()


class TestRecordsCommand:
    """Test the records command."""

    def test_table(self, records):
        with patch("spaceship_mcp.cli.main._fetch_records", new=AsyncMock(return_value=records)):
            result = runner.invoke(app, ["records", "Example.com."])

        plain = _strip_ansi(result.output)
        assert result.exit_code == 0
        assert "DNS records of example.com" in plain
        assert "76.76.21.21" in plain
        assert "Total: 5 record(s)" in plain

    def test_type_filter_json(self, records):
        with patch("spaceship_mcp.cli.main._fetch_records", new=AsyncMock(return_value=records)):
            result = runner.invoke(app, ["records", "example.com", "-t", "txt", "--json"])

        data = json.loads(_strip_ansi(result.output))
        assert result.exit_code == 0
        assert data["count"] == 2
        assert data["by_type"] == {"TXT": 2}

    def test_empty_zone(self):
        with patch("spaceship_mcp.cli.main._fetch_records", new=AsyncMock(return_value=[])):
            result = runner.invoke(app, ["records", "example.com"])

        assert result.exit_code == 0
        assert "No DNS records found" in result.output

    def test_api_error_exits(self):
        error = SpaceshipApiError("Spaceship API request failed with 401", status=401, details={"detail": "bad key"})
        with patch("spaceship_mcp.cli.main._fetch_records", new=AsyncMock(side_effect=error)):
            result = runner.invoke(app, ["records", "example.com"])

        assert result.exit_code == 1

    def test_missing_credentials_exit(self, monkeypatch):
        monkeypatch.delenv("SPACESHIP_API_KEY", raising=False)
        monkeypatch.delenv("SPACESHIP_API_SECRET", raising=False)

        result = runner.invoke(app, ["records", "example.com"])

        assert result.exit_code == 1


class TestDomainsCommand:
    """Test the domains command."""

    @patch("spaceship_mcp.cli.main.run_async")
    def test_table(self, mock_run_async):
        mock_run_async.side_effect = lambda coro: (
            coro.close(),
            [{"name": "example.com", "expirationDate": "2027-01-01", "autoRenew": True,
              "privacyProtection": {"level": "high"}}],
        )[1]

        result = runner.invoke(app, ["domains"])

        plain = _strip_ansi(result.output)
        assert result.exit_code == 0
        assert "example.com" in plain
        assert "high" in plain
        assert "Total: 1 domain(s)" in plain

    @patch("spaceship_mcp.cli.main.run_async")
    def test_empty(self, mock_run_async):
        mock_run_async.side_effect = lambda coro: (coro.close(), [])[1]

        result = runner.invoke(app, ["domains"])

        assert "No domains in this account" in result.output


class TestCheckCommand:
    """Test the check command."""

    def _expected_file(self, tmp_path, records):
        path = tmp_path / "expected.json"
        path.write_text(json.dumps(records))
        return path

    def test_aligned(self, tmp_path, records):
        expected = self._expected_file(
            tmp_path, [{"type": "A", "name": "@", "address": "76.76.21.21"}]
        )

        with patch("spaceship_mcp.cli.main._fetch_records", new=AsyncMock(return_value=records)):
            result = runner.invoke(app, ["check", "example.com", "-e", str(expected), "-t", "A"])

        assert result.exit_code == 0
        assert "match the expected set" in result.output

    def test_not_aligned_exits_1(self, tmp_path, records):
        expected = self._expected_file(
            tmp_path, [{"type": "CNAME", "name": "www", "cname": "app.fly.dev"}]
        )

        with patch("spaceship_mcp.cli.main._fetch_records", new=AsyncMock(return_value=records)):
            result = runner.invoke(app, ["check", "example.com", "-e", str(expected), "-t", "CNAME"])

        plain = _strip_ansi(result.output)
        assert result.exit_code == 1
        assert "Missing (1)" in plain
        assert "app.fly.dev" in plain
        assert "cname.vercel-dns.com" in plain

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "expected.json"
        path.write_text("{not json")

        result = runner.invoke(app, ["check", "example.com", "-e", str(path)])

        assert result.exit_code == 1

    def test_invalid_record(self, tmp_path):
        expected = self._expected_file(tmp_path, [{"type": "NS", "name": "@", "nameserver": "ns1.x.net"}])

        result = runner.invoke(app, ["check", "example.com", "-e", str(expected)])

        assert result.exit_code == 1


class TestCutoverCommand:
    """Test the cutover command."""

    def test_plan(self, records):
        with patch("spaceship_mcp.cli.main._fetch_records", new=AsyncMock(return_value=records)):
            result = runner.invoke(
                app,
                ["cutover", "example.com", "--apex-a", "66.241.124.1", "--www-cname", "app.fly.dev"],
            )

        plain = _strip_ansi(result.output)
        assert result.exit_code == 0
        assert "Current hosting: vercel" in plain
        assert "Upserts:" in plain
        assert "Deletes:" in plain
        assert "MX=1, TXT=2" in plain

    def test_json(self, records):
        with patch("spaceship_mcp.cli.main._fetch_records", new=AsyncMock(return_value=records)):
            result = runner.invoke(app, ["cutover", "example.com", "--apex-a", "66.241.124.1", "--json"])

        data = json.loads(_strip_ansi(result.output))
        assert data["likely_providers"] == ["vercel"]
        assert data["proposed_upserts"] == [
            {"type": "A", "name": "@", "ttl": None, "address": "66.241.124.1"}
        ]
        assert len(data["proposed_deletes"]) == 2

    def test_noop(self):
        current = parse_records([{"type": "A", "name": "@", "address": "66.241.124.1"}])
        with patch("spaceship_mcp.cli.main._fetch_records", new=AsyncMock(return_value=current)):
            result = runner.invoke(app, ["cutover", "example.com", "--apex-a", "66.241.124.1"])

        assert "Nothing to change" in result.output

    def test_invalid_address(self):
        result = runner.invoke(app, ["cutover", "example.com", "--apex-a", "not-an-ip"])
        assert result.exit_code == 1
