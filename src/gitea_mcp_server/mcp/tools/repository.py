"""Repository tool handlers for MCP server.

This module implements ``create_repository``. The blocking client call is
bridged with run_sync_limited(); errors propagate to the registry, which
translates them into structured responses.
"""

import logging

import mcp.types as types

from ...core.async_utils import run_sync_limited
from ...core.instances import InstanceRegistry
from ...validators import validate_repository_name
from .errors import build_error_response, build_json_response
from .registry import ToolSpec

logger = logging.getLogger(__name__)

# Fields of Gitea's Repository object returned to the agent
_REPOSITORY_FIELDS = (
    "id",
    "name",
    "full_name",
    "html_url",
    "clone_url",
    "ssh_url",
    "private",
    "default_branch",
    "created_at",
)


# Tool definitions for list_tools()
REPOSITORY_TOOLS = [
    types.Tool(
        name="create_repository",
        description=(
            "Create a new repository on a Gitea instance, for the token's user "
            "or inside an organization. Fails if the repository already exists."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=False,
            openWorldHint=True,
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "instance_id": {
                    "type": "string",
                    "description": "Gitea instance id (optional when only one instance is configured)",
                },
                "name": {
                    "type": "string",
                    "description": "Repository name (required)",
                },
                "description": {
                    "type": "string",
                    "description": "Repository description",
                },
                "private": {
                    "type": "boolean",
                    "default": True,
                    "description": "Make the repository private",
                },
                "auto_init": {
                    "type": "boolean",
                    "default": True,
                    "description": "Initialize the repository with a README commit",
                },
                "default_branch": {
                    "type": "string",
                    "default": "main",
                    "description": "Default branch name",
                },
                "organization": {
                    "type": "string",
                    "description": "Create the repository in this organization instead of the user account",
                },
            },
            "required": ["name"],
        },
    ),
]


async def _handle_create_repository(
    instances: InstanceRegistry, args: dict
) -> types.CallToolResult:
    """Handle create_repository."""
    name = args.get("name")
    is_valid, error = validate_repository_name(name or "")
    if not is_valid:
        return build_error_response(
            "validation_error",
            error,
            "Provide a name using letters, digits, '-', '_' or '.'.",
        )

    client = instances.resolve(args.get("instance_id"))
    repo = await run_sync_limited(
        client.create_repository,
        name,
        description=args.get("description", ""),
        private=args.get("private", True),
        auto_init=args.get("auto_init", True),
        default_branch=args.get("default_branch") or "main",
        organization=args.get("organization") or None,
    )

    payload = {
        "success": True,
        "instance_id": client.instance.id,
        "repository": {
            key: repo.get(key) for key in _REPOSITORY_FIELDS
        },
    }
    return build_json_response(payload)


REPOSITORY_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=REPOSITORY_TOOLS[0],
        scopes=frozenset({"write:repository"}),
        handler=_handle_create_repository,
    ),
]
