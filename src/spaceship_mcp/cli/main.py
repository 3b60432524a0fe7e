# Copyright 2024-2026 The spaceship-mcp Authors
# SPDX-License-Identifier: Apache-2.0

"""
Spaceship Command Line Interface.

Usage:
    spaceship records       List DNS records of a domain
    spaceship domains       List domains in the account
    spaceship check         Compare a domain's records with an expected set
    spaceship cutover       Plan moving apex/www web records to a new host
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from spaceship_mcp.core.records import DnsRecord

app = typer.Typer(
    name="spaceship",
    help="Spaceship registrar: domains, DNS records and DNS reconciliation",
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)


def run_async(coro):
    """Run async function in sync context."""
    return asyncio.run(coro)


def _load_config():
    from spaceship_mcp.core.config import ClientConfig, ConfigError

    try:
        return ClientConfig.from_env()
    except ConfigError as e:
        error_console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1) from e


def _fail(e: Exception) -> typer.Exit:
    from spaceship_mcp.core.client import SpaceshipApiError

    if isinstance(e, SpaceshipApiError):
        error_console.print(f"[red]✗ Spaceship API error: {e.message} (status {e.status})[/red]")
        if e.details:
            error_console.print(f"[dim]{json.dumps(e.details, default=str)}[/dim]")
    else:
        error_console.print(f"[red]✗ {e}[/red]")
    return typer.Exit(1)


def _record_value(record: DnsRecord) -> str:
    fields = record.comparable_fields()
    values = [str(v) for k, v in fields.items() if k not in ("type", "name", "ttl") and v is not None]
    return " ".join(values) or "-"


def _records_table(records: list[DnsRecord] | tuple[DnsRecord, ...]) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Type")
    table.add_column("Name")
    table.add_column("Value")
    table.add_column("TTL", justify="right")

    for record in records:
        table.add_row(
            record.type,
            record.name,
            _record_value(record),
            str(record.ttl) if record.ttl is not None else "-",
        )
    return table


async def _fetch_records(domain: str) -> list[DnsRecord]:
    from spaceship_mcp.core.client import SpaceshipClient

    async with SpaceshipClient(_load_config()) as client:
        return await client.list_all_dns_records(domain)


# ============================================================================
# RECORDS COMMAND
# ============================================================================


@app.command()
def records(
    domain: Annotated[str, typer.Argument(help="Domain to list records of")],
    record_type: Annotated[
        list[str] | None,
        typer.Option("--type", "-t", help="Only show this record type (repeatable)"),
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
):
    """
    List DNS records of a domain.

    Example:
        spaceship records example.com
        spaceship records example.com -t MX -t TXT
    """
    from spaceship_mcp.core.client import SpaceshipError
    from spaceship_mcp.core.records import normalize_domain, summarize_by_type

    domain = normalize_domain(domain)
    try:
        items = run_async(_fetch_records(domain))
    except SpaceshipError as e:
        raise _fail(e) from e

    if record_type:
        wanted = {t.strip().upper() for t in record_type}
        items = [r for r in items if r.type in wanted]

    if json_output:
        console.print_json(
            json.dumps(
                {
                    "domain": domain,
                    "count": len(items),
                    "by_type": summarize_by_type(items),
                    "items": [r.comparable_fields() for r in items],
                }
            )
        )
        return

    if not items:
        console.print(f"[yellow]No DNS records found for {domain}[/yellow]")
        return

    console.print(f"\n[bold]DNS records of {domain}:[/bold]\n")
    console.print(_records_table(items))
    console.print(f"\n[dim]Total: {len(items)} record(s)[/dim]")


# ============================================================================
# DOMAINS COMMAND
# ============================================================================


@app.command()
def domains(
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
):
    """
    List domains in the Spaceship account.

    Example:
        spaceship domains
    """
    from spaceship_mcp.core.client import SpaceshipClient, SpaceshipError

    async def _list():
        async with SpaceshipClient(_load_config()) as client:
            return await client.list_all_domains()

    try:
        items = run_async(_list())
    except SpaceshipError as e:
        raise _fail(e) from e

    if json_output:
        console.print_json(json.dumps({"count": len(items), "domains": items}, default=str))
        return

    if not items:
        console.print("[yellow]No domains in this account[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Domain")
    table.add_column("Expires")
    table.add_column("Auto-renew")
    table.add_column("Privacy")

    for item in items:
        table.add_row(
            str(item.get("name", "-")),
            str(item.get("expirationDate", "-")),
            "yes" if item.get("autoRenew") else "no",
            str(item.get("privacyProtection", {}).get("level", "-"))
            if isinstance(item.get("privacyProtection"), dict)
            else "-",
        )

    console.print(table)
    console.print(f"\n[dim]Total: {len(items)} domain(s)[/dim]")


# ============================================================================
# CHECK COMMAND
# ============================================================================


@app.command()
def check(
    domain: Annotated[str, typer.Argument(help="Domain to check")],
    expected: Annotated[
        Path,
        typer.Option(
            "--expected",
            "-e",
            help="JSON file with a list of expected records",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    include_ttl: Annotated[
        bool, typer.Option("--include-ttl", help="Require TTLs to match too")
    ] = False,
    record_type: Annotated[
        list[str] | None,
        typer.Option("--type", "-t", help="Record type to compare (repeatable)"),
    ] = None,
):
    """
    Compare a domain's DNS records with an expected set.

    Exits with status 1 when records are missing or unexpected.

    Example:
        spaceship check example.com --expected records.json
        spaceship check example.com -e records.json -t MX -t TXT --include-ttl
    """
    from spaceship_mcp.core.client import SpaceshipError
    from spaceship_mcp.core.reconcile import check_alignment
    from spaceship_mcp.utils.validation import (
        ValidationError,
        validate_domain,
        validate_expected_records,
        validate_record_types,
    )

    try:
        domain = validate_domain(domain)
        wanted = validate_expected_records(json.loads(expected.read_text()))
        types = validate_record_types(record_type)
    except json.JSONDecodeError as e:
        error_console.print(f"[red]✗ {expected} is not valid JSON: {e}[/red]")
        raise typer.Exit(1) from e
    except ValidationError as e:
        error_console.print(f"[red]✗ Invalid {e.field}: {e.message}[/red]")
        raise typer.Exit(1) from e

    console.print(f"\n[bold]Checking {domain} against {len(wanted)} expected record(s)...[/bold]\n")

    try:
        actual = run_async(_fetch_records(domain))
    except SpaceshipError as e:
        raise _fail(e) from e

    result = check_alignment(wanted, actual, include_ttl=include_ttl, types=types)

    if result.aligned:
        console.print("[green]✓ DNS records match the expected set[/green]")
        return

    if result.missing:
        console.print(f"[red]✗ Missing ({len(result.missing)}):[/red]")
        console.print(_records_table(result.missing))
    if result.unexpected:
        console.print(f"\n[yellow]⚠ Unexpected ({','.join(types)} only, {len(result.unexpected)}):[/yellow]")
        console.print(_records_table(result.unexpected))
    raise typer.Exit(1)


# ============================================================================
# CUTOVER COMMAND
# ============================================================================


@app.command()
def cutover(
    domain: Annotated[str, typer.Argument(help="Domain to plan the cutover for")],
    apex_a: Annotated[
        str | None, typer.Option("--apex-a", help="New IPv4 address for the apex")
    ] = None,
    apex_aaaa: Annotated[
        str | None, typer.Option("--apex-aaaa", help="New IPv6 address for the apex")
    ] = None,
    www_cname: Annotated[
        str | None, typer.Option("--www-cname", help="New CNAME target for www")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
):
    """
    Plan moving the apex and www web records to a new host.

    Read-only: prints the upserts and deletes, changes nothing.

    Example:
        spaceship cutover example.com --apex-a 66.241.124.1 --www-cname app.fly.dev
    """
    from spaceship_mcp.core.client import SpaceshipError
    from spaceship_mcp.core.reconcile import build_cutover_targets, plan_cutover
    from spaceship_mcp.utils.validation import (
        ValidationError,
        validate_domain,
        validate_hostname,
        validate_ip,
    )

    try:
        domain = validate_domain(domain)
        if apex_a:
            apex_a = validate_ip(apex_a, 4, "apex_a")
        if apex_aaaa:
            apex_aaaa = validate_ip(apex_aaaa, 6, "apex_aaaa")
        if www_cname:
            www_cname = validate_hostname(www_cname, "www_cname")
    except ValidationError as e:
        error_console.print(f"[red]✗ Invalid {e.field}: {e.message}[/red]")
        raise typer.Exit(1) from e

    try:
        actual = run_async(_fetch_records(domain))
    except SpaceshipError as e:
        raise _fail(e) from e

    plan = plan_cutover(actual, build_cutover_targets(apex_a, apex_aaaa, www_cname))

    if json_output:
        console.print_json(
            json.dumps(
                {
                    "domain": domain,
                    "likely_providers": list(plan.likely_providers),
                    "current_web_records": [r.comparable_fields() for r in plan.current_web_records],
                    "proposed_upserts": [r.comparable_fields() for r in plan.upserts],
                    "proposed_deletes": [r.comparable_fields() for r in plan.deletes],
                    "preserved_non_web_record_counts": plan.preserved_counts,
                }
            )
        )
        return

    console.print(f"\n[bold]Cutover plan for {domain}:[/bold]\n")
    providers = ", ".join(plan.likely_providers) or "none detected"
    console.print(f"  [bold]Current hosting:[/bold] {providers}")
    console.print(f"  [bold]Web records at @/www:[/bold] {len(plan.current_web_records)}")

    if plan.is_noop:
        console.print("\n[green]✓ Nothing to change[/green]")
    else:
        if plan.upserts:
            console.print("\n  [bold]Upserts:[/bold]")
            console.print(_records_table(plan.upserts))
        if plan.deletes:
            console.print("\n  [bold]Deletes:[/bold]")
            console.print(_records_table(plan.deletes))

    preserved = ", ".join(f"{k}={v}" for k, v in sorted(plan.preserved_counts.items()))
    console.print(f"\n[dim]Preserved records: {preserved or 'none'}[/dim]")
    console.print("[dim]Nothing was changed. Apply with the MCP tools after review.[/dim]")


# ============================================================================
# MAIN
# ============================================================================


def version_callback(value: bool):
    if value:
        from spaceship_mcp import __version__

        console.print(f"spaceship-mcp version {__version__}")
        raise typer.Exit()


def quiet_callback(value: bool):
    if value:
        from spaceship_mcp.utils.logging import silence_logging

        silence_logging()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version"),
    ] = None,
    quiet: Annotated[
        bool | None,
        typer.Option("--quiet", "-q", callback=quiet_callback, is_eager=True, help="Suppress logs"),
    ] = None,
):
    """
    Spaceship: manage a Spaceship registrar account from the terminal.

    Credentials come from SPACESHIP_API_KEY and SPACESHIP_API_SECRET
    (a .env file in the working directory is loaded).
    """
    from dotenv import load_dotenv

    load_dotenv()


if __name__ == "__main__":
    app()
