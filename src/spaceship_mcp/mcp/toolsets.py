# Copyright 2024-2026 The spaceship-mcp Authors
# SPDX-License-Identifier: Apache-2.0

"""
Toolset filtering and dynamic tool discovery.

Tools are grouped into toolsets (``dns``, ``domains``, ``contacts``,
``analysis``). A deployment can expose a subset, and can replace the full
tool list with three meta-tools (``search_tools``, ``describe_tools``,
``execute_tool``) for clients that struggle with many tools.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import structlog
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from mcp.server.fastmcp.tools import Tool
from mcp.types import ToolAnnotations

from spaceship_mcp.core.config import TOOLSET_NAMES

logger = structlog.get_logger(__name__)

TOOLSETS: dict[str, tuple[str, ...]] = {
    "dns": ("list_dns_records", "save_dns_records", "delete_dns_records"),
    "domains": (
        "list_domains",
        "get_domain",
        "check_domain_availability",
        "update_nameservers",
        "set_auto_renew",
        "set_transfer_lock",
        "get_auth_code",
    ),
    "contacts": (
        "save_contact",
        "get_contact",
        "save_contact_attributes",
        "get_contact_attributes",
        "update_domain_contacts",
        "set_privacy_level",
        "set_email_protection",
    ),
    "analysis": ("check_dns_alignment", "analyze_fly_cutover"),
}

META_TOOLS = ("search_tools", "describe_tools", "execute_tool")


def toolset_of(tool_name: str) -> str | None:
    for toolset, names in TOOLSETS.items():
        if tool_name in names:
            return toolset
    return None


def apply_toolsets(mcp: FastMCP, enabled: Iterable[str]) -> list[str]:
    """
    Remove every tool that belongs to a toolset not in ``enabled``.

    Returns:
        Names of the removed tools.

    Raises:
        ValueError: If ``enabled`` names an unknown toolset.
    """
    enabled = {name.strip().lower() for name in enabled}
    unknown = sorted(enabled - set(TOOLSET_NAMES))
    if unknown:
        raise ValueError(f"Unknown toolset(s): {', '.join(unknown)}")

    removed: list[str] = []
    for tool in mcp._tool_manager.list_tools():
        toolset = toolset_of(tool.name)
        if toolset is not None and toolset not in enabled:
            mcp._tool_manager._tools.pop(tool.name, None)
            removed.append(tool.name)

    if removed:
        logger.debug("Tools removed by toolset filter", tools=removed)
    return removed


def _summary(tool: Tool) -> dict[str, Any]:
    return {
        "name": tool.name,
        "title": tool.title,
        "toolset": toolset_of(tool.name),
        "description": (tool.description or "").strip().split("\n\n")[0],
    }


def enable_dynamic_tools(mcp: FastMCP) -> dict[str, Tool]:
    """
    Replace the registered tools with search/describe/execute meta-tools.

    The current tools become the catalog the meta-tools work on, so apply
    toolset filtering first.

    Returns:
        The catalog, keyed by tool name.
    """
    catalog = {tool.name: tool for tool in mcp._tool_manager.list_tools()}
    for name in catalog:
        mcp._tool_manager._tools.pop(name, None)

    async def search_tools(query: str) -> dict:
        """
        Search available Spaceship tools by keyword.

        Matches against tool names, titles and descriptions. Use this first
        to find the tools for a task, then describe_tools for parameters.
        """
        q = query.strip().lower()
        matches = [
            _summary(tool)
            for tool in catalog.values()
            if q in tool.name.lower()
            or q in (tool.title or "").lower()
            or q in (tool.description or "").lower()
        ]
        return {
            "success": True,
            "query": query,
            "count": len(matches),
            "tools": matches,
            "message": f"Found {len(matches)} tool(s)"
            if matches
            else f'No tools found matching "{query}"',
        }

    async def describe_tools(tools: list[str]) -> dict:
        """
        Get the full parameter schema of one or more tools.

        Call this after search_tools, before execute_tool.
        """
        described = []
        not_found = []
        for name in tools:
            tool = catalog.get(name)
            if tool is None:
                not_found.append(name)
                continue
            described.append(
                {
                    **_summary(tool),
                    "description": tool.description,
                    "parameters": tool.parameters,
                }
            )
        return {"success": True, "tools": described, "not_found": not_found}

    async def execute_tool(tool: str, arguments: dict[str, Any] | None = None) -> dict:
        """
        Execute a Spaceship tool by name with the given arguments.

        Use describe_tools first to learn the required parameters.
        """
        target = catalog.get(tool)
        if target is None:
            return {
                "success": False,
                "error": "unknown_tool",
                "message": f'Tool "{tool}" not found. Use search_tools to find available tools.',
            }

        try:
            return await target.run(arguments or {})
        except ToolError as e:
            logger.warning("Dynamic tool execution failed", tool=tool, error=str(e))
            return {
                "success": False,
                "error": "tool_error",
                "message": f'Error executing "{tool}": {e}',
            }

    mcp.add_tool(
        search_tools,
        name="search_tools",
        title="Search Tools",
        annotations=ToolAnnotations(readOnlyHint=True),
    )
    mcp.add_tool(
        describe_tools,
        name="describe_tools",
        title="Describe Tools",
        annotations=ToolAnnotations(readOnlyHint=True),
    )
    mcp.add_tool(
        execute_tool,
        name="execute_tool",
        title="Execute Tool",
        annotations=ToolAnnotations(readOnlyHint=False, openWorldHint=True),
    )
    return catalog
