"""System tool handlers for MCP server.

This module implements instance-level MCP tools: ``ping`` for checking
connectivity and ``list_instances`` for discovering configured instances.
"""

import logging

import mcp.types as types

from ...core.async_utils import run_sync
from ...core.instances import InstanceRegistry
from .errors import build_json_response
from .registry import ToolSpec

logger = logging.getLogger(__name__)


# Tool definitions for list_tools()
SYSTEM_TOOLS = [
    types.Tool(
        name="ping",
        description="Test connectivity to configured Gitea instances and return each server's version.",
        annotations=types.ToolAnnotations(
            readOnlyHint=True,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=True,
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "instance_id": {
                    "type": "string",
                    "description": "Only check this instance (default: all instances)",
                },
            },
            "required": [],
        },
    ),
    types.Tool(
        name="list_instances",
        description="List configured Gitea instances with their ids, names and base URLs.",
        annotations=types.ToolAnnotations(
            readOnlyHint=True,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=False,
        ),
        inputSchema={
            "type": "object",
            "properties": {},
            "required": [],
        },
    ),
]


async def _handle_ping(
    instances: InstanceRegistry, args: dict
) -> types.CallToolResult:
    """Handle ping.

    Every selected instance is checked; one unreachable instance does not
    hide the others. The result is an error only if no instance answered.
    """
    instance_id = args.get("instance_id")
    if instance_id:
        targets = {instance_id: instances.resolve(instance_id)}
    else:
        targets = dict(instances)

    results = []
    for iid, client in targets.items():
        try:
            version = await run_sync(client.get_version)
            results.append({"id": iid, "connected": True, "version": version})
        except Exception as e:
            logger.warning("Ping failed for instance %s: %s", iid, e)
            results.append({"id": iid, "connected": False, "error": str(e)})

    connected = sum(1 for r in results if r["connected"])
    payload = {
        "connected": connected,
        "total": len(results),
        "instances": results,
    }
    return build_json_response(payload, is_error=connected == 0)


async def _handle_list_instances(
    instances: InstanceRegistry, args: dict
) -> types.CallToolResult:
    """Handle list_instances. Tokens are never included."""
    payload = {
        "instances": [
            {
                "id": iid,
                "name": client.instance.name or iid,
                "base_url": client.instance.base_url,
            }
            for iid, client in instances.items()
        ]
    }
    return build_json_response(payload)


SYSTEM_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=SYSTEM_TOOLS[0],
        scopes=frozenset(),
        handler=_handle_ping,
    ),
    ToolSpec(
        tool=SYSTEM_TOOLS[1],
        scopes=frozenset({"read:instance"}),
        handler=_handle_list_instances,
    ),
]
