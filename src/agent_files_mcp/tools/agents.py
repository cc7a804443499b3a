"""Agent discovery tools — 1 tool on a FastMCP sub-server."""

from __future__ import annotations

import asyncio

from fastmcp import FastMCP
from mcp.types import ToolAnnotations

from ..bundles import discover_bundles
from ..config import get_config
from ..discovery import discover_definitions
from ..errors import make_tool_error
from ..models.agents import AgentListing

agents_server = FastMCP("agents")


def _list_agents_sync() -> AgentListing:
    cfg = get_config()
    definitions, skipped = discover_definitions(cfg.agents_root)
    return AgentListing(
        definitions=definitions,
        bundle_agents=discover_bundles(cfg.bundles_root),
        skipped=skipped,
    )


@agents_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def agents_list() -> dict:
    """List validated agent definitions and bundle entry-point agents.

    Definition files that fail validation are reported under ``skipped``
    with their errors instead of failing the whole listing.

    Returns:
        Dict with definitions, bundle_agents, and skipped.
    """
    try:
        listing = await asyncio.to_thread(_list_agents_sync)
    except Exception as exc:
        return make_tool_error(exc)
    return listing.model_dump(mode="json")
