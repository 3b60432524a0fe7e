# Copyright 2024-2026 The spaceship-mcp Authors
# SPDX-License-Identifier: Apache-2.0

"""
Guided workflow prompts.

Each prompt returns a single user message that walks the model through a
multi-step task using the server's tools, pausing for confirmation before
anything changes. The domain prompts also get argument completion backed
by the account's domain list.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable

import structlog
from mcp.server.fastmcp import FastMCP
from mcp.types import (
    Completion,
    CompletionArgument,
    CompletionContext,
    PromptReference,
    ResourceTemplateReference,
)

from spaceship_mcp.core.client import SpaceshipClient, SpaceshipError
from spaceship_mcp.core.config import ConfigError

logger = structlog.get_logger(__name__)

EMAIL_PROVIDERS = ("google", "microsoft", "fastmail", "custom")

_EMAIL_HINTS = {
    "google": (
        "For Google Workspace, use MX records: aspmx.l.google.com (1), "
        "alt1.aspmx.l.google.com (5), alt2.aspmx.l.google.com (5), "
        "alt3.aspmx.l.google.com (10), alt4.aspmx.l.google.com (10). "
        "SPF: v=spf1 include:_spf.google.com ~all"
    ),
    "microsoft": (
        "For Microsoft 365, I'll need the MX and verification records from the "
        "Microsoft admin portal. Ask me for these values."
    ),
    "fastmail": (
        "For Fastmail, use MX records: in1-smtp.messagingengine.com (10), "
        "in2-smtp.messagingengine.com (20). SPF: v=spf1 include:spf.messagingengine.com ~all"
    ),
    "custom": "For a custom provider, ask me for the MX records, SPF include, and DKIM values.",
}


def setup_domain(domain: str) -> str:
    return "\n".join(
        [
            f'Help me set up the domain "{domain}". Follow these steps:',
            "",
            "1. Confirm the domain is in my account using get_domain. If it is not,",
            "   check it with check_domain_availability and tell me to register it first.",
            "2. Review the current settings from the get_domain result",
            "3. Set nameservers using update_nameservers (ask me which provider to use)",
            "4. Configure essential DNS records using save_dns_records (ask me what services I need)",
            "5. Set privacy level to 'high' using set_privacy_level",
            "6. Enable auto-renew using set_auto_renew",
            "",
            "Wait for my confirmation at each step before proceeding.",
        ]
    )


def audit_domain(domain: str) -> str:
    return "\n".join(
        [
            f'Perform a comprehensive health check on "{domain}". Check the following:',
            "",
            "1. Get domain details using get_domain: status, expiry date, auto-renew and privacy",
            "2. List all DNS records using list_dns_records and review them for completeness",
            "3. Check DNS alignment using check_dns_alignment if I have expected records",
            "4. Review privacy settings: is WHOIS privacy enabled?",
            "5. Check auto-renew status: is the domain protected from accidental expiry?",
            "6. Review the nameservers in the get_domain result: are they correctly configured?",
            "",
            "Summarize findings and flag any issues or recommendations.",
        ]
    )


def setup_email(domain: str, provider: str) -> str:
    hint = _EMAIL_HINTS.get(provider.strip().lower(), _EMAIL_HINTS["custom"])
    return "\n".join(
        [
            f'Set up email DNS records for "{domain}" using {provider} as the email provider.',
            "",
            "1. First, list existing DNS records using list_dns_records to check for conflicts",
            "2. Create MX records for the email provider using save_dns_records",
            "3. Create an SPF TXT record (v=spf1 ...)",
            "4. Create a DKIM TXT record if I provide the DKIM value",
            "5. Create a DMARC TXT record (_dmarc) with a sensible default policy",
            "6. Verify the result using check_dns_alignment",
            "",
            hint,
            "",
            "Confirm each DNS change with me before applying.",
        ]
    )


def migrate_dns(domain: str) -> str:
    return "\n".join(
        [
            f'Help me migrate DNS records for "{domain}". Follow this process:',
            "",
            "1. Export current DNS records using list_dns_records and show me all records",
            "2. Review the records with me and identify which ones to migrate",
            "3. I'll tell you the target setup; create the new records using save_dns_records",
            "4. Verify the new configuration using check_dns_alignment",
            "",
            "Important: Do NOT delete old records until I confirm the new ones are working.",
        ]
    )


# Quick prompts whose ``domain`` argument completes from the account.


def domain_lookup(domain: str) -> str:
    return "\n".join(
        [
            f'Look up the domain "{domain}" using get_domain and summarize:',
            "",
            "- registration status and expiry date",
            "- auto-renew and transfer lock",
            "- WHOIS privacy level",
            "- nameservers",
        ]
    )


def dns_records(domain: str) -> str:
    return "\n".join(
        [
            f'List every DNS record of "{domain}" using list_dns_records.',
            "Group them by type and point out anything that looks misconfigured.",
        ]
    )


def set_privacy(domain: str, level: str = "high") -> str:
    return "\n".join(
        [
            f'Change the WHOIS privacy of "{domain}" to "{level}".',
            "",
            "1. Show me the current privacy level from get_domain",
            "2. Explain what the new level publishes or hides",
            "3. Only after I explicitly agree, apply it with set_privacy_level",
        ]
    )


def update_nameservers_prompt(domain: str) -> str:
    return "\n".join(
        [
            f'Change the nameservers of "{domain}".',
            "",
            "1. Show me the current nameservers from get_domain",
            "2. Ask me whether to use Spaceship's basic nameservers or custom hosts (2 to 12)",
            "3. Apply the change with update_nameservers once I confirm",
        ]
    )


PRIVACY_LEVELS = ("high", "public")

# Completion responses carry at most this many values.
MAX_COMPLETIONS = 100


def _completion(candidates: Iterable[str], prefix: str) -> Completion:
    prefix = prefix.strip().lower()
    matches = [c for c in candidates if c.lower().startswith(prefix)]
    return Completion(
        values=matches[:MAX_COMPLETIONS],
        total=len(matches),
        hasMore=len(matches) > MAX_COMPLETIONS,
    )


def make_completion_handler(
    get_client: Callable[[], SpaceshipClient],
) -> Callable[..., Awaitable[Completion | None]]:
    """
    Build the ``completion/complete`` handler.

    ``domain`` arguments of prompts and resource templates complete from the
    account's domains; ``level`` and ``provider`` complete from fixed lists.
    A failed domain lookup yields no suggestions rather than an error.
    """

    async def complete(
        ref: PromptReference | ResourceTemplateReference,
        argument: CompletionArgument,
        context: CompletionContext | None,
    ) -> Completion | None:
        if isinstance(ref, PromptReference):
            if argument.name == "level" and ref.name == "set-privacy":
                return _completion(PRIVACY_LEVELS, argument.value)
            if argument.name == "provider" and ref.name == "setup-email":
                return _completion(EMAIL_PROVIDERS, argument.value)
            if argument.name != "domain":
                return None
        elif argument.name != "domain" or "{domain}" not in ref.uri:
            return None

        try:
            domains = await get_client().list_all_domains()
        except (SpaceshipError, ConfigError) as e:
            logger.warning("Domain completion unavailable", error=str(e))
            return Completion(values=[], total=0, hasMore=False)

        names = sorted(str(d["name"]) for d in domains if isinstance(d, dict) and d.get("name"))
        return _completion(names, argument.value)

    return complete


def register_prompts(mcp: FastMCP, get_client: Callable[[], SpaceshipClient]) -> None:
    """Register every prompt on ``mcp`` and the argument completion handler."""
    mcp.prompt(
        name="setup-domain",
        title="Setup Domain",
        description="Guided workflow for configuring a domain: nameservers, DNS, privacy and auto-renew",
    )(setup_domain)
    mcp.prompt(
        name="audit-domain",
        title="Audit Domain",
        description="Domain health check: status, DNS, privacy and auto-renew",
    )(audit_domain)
    mcp.prompt(
        name="setup-email",
        title="Setup Email DNS",
        description=f"Configure DNS records for an email provider ({', '.join(EMAIL_PROVIDERS)})",
    )(setup_email)
    mcp.prompt(
        name="migrate-dns",
        title="Migrate DNS",
        description="Step-by-step DNS migration: export, review, recreate and verify",
    )(migrate_dns)
    mcp.prompt(
        name="domain-lookup",
        title="Domain Lookup",
        description="Summarize registration, renewal, privacy and nameservers of a domain",
    )(domain_lookup)
    mcp.prompt(
        name="dns-records",
        title="DNS Records",
        description="List and review the DNS records of a domain",
    )(dns_records)
    mcp.prompt(
        name="set-privacy",
        title="Set WHOIS Privacy",
        description=f"Change the WHOIS privacy level of a domain ({', '.join(PRIVACY_LEVELS)})",
    )(set_privacy)
    mcp.prompt(
        name="update-nameservers",
        title="Update Nameservers",
        description="Switch a domain between basic and custom nameservers",
    )(update_nameservers_prompt)

    mcp.completion()(make_completion_handler(get_client))
