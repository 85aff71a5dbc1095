"""Error response builders and shared utilities for MCP tool handlers.

This module provides structured error responses with corrective actions
to help AI agents recover from errors without human intervention, plus
the JSON result helper shared by the tool modules.
"""

import json
from typing import Any

import mcp.types as types

from ...core.exceptions import (
    ApiError,
    ConflictError,
    GiteaError,
    NotFoundError,
    TransportError,
    ValidationError,
)


def build_error_response(
    error_type: str, message: str, corrective_action: str
) -> types.CallToolResult:
    """Build a structured error response with corrective action.

    Args:
        error_type: Error category (not_found, authentication_failed,
            permission_denied, already_exists, version_conflict,
            connection_error, validation_error, server_error)
        message: Human-readable error description
        corrective_action: Specific action the agent can take to resolve the error

    Returns:
        CallToolResult with isError=True

    Examples:
        >>> build_error_response("not_found", "Repository alice/notes not found", "Check owner and repository.")
        CallToolResult(content=[TextContent(...)], isError=True)
    """
    error_text = f"Error ({error_type}): {message}\n\nAction: {corrective_action}"

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error_text)],
        isError=True,
    )


def build_json_response(
    payload: dict[str, Any], is_error: bool = False
) -> types.CallToolResult:
    """Return *payload* as pretty JSON text plus ``structuredContent``."""
    return types.CallToolResult(
        content=[
            types.TextContent(type="text", text=json.dumps(payload, indent=2))
        ],
        structuredContent=payload,
        isError=is_error,
    )


# ---------------------------------------------------------------------------
# Domain-specific corrective action messages
# ---------------------------------------------------------------------------

_DOMAIN_MESSAGES: dict[str, dict[str, str]] = {
    "repository": {
        "not_found": "Use list_instances to check the instance id, then verify the owner or organization exists.",
        "already_exists": "Choose a different repository name, or use sync_update to change files in '{entity_name}'.",
        "permission": "Use a token with repository creation rights for this user or organization.",
        "server": "Check the Gitea server status or retry later.",
    },
    "files": {
        "not_found": "Verify that repository '{entity_name}' and the target branch exist.",
        "version_conflict": "Retry with detect_changes enabled so current file SHAs are fetched automatically.",
        "permission": "Use a token with write access to '{entity_name}'.",
        "server": "Check the Gitea server status or retry later.",
    },
    "instance": {
        "not_found": "Use list_instances to see configured instance ids.",
        "permission": "Check the token configured for this instance.",
        "server": "Check the Gitea server status or retry later.",
    },
}


def _action(msgs: dict[str, str], key: str, entity_name: str | None) -> str:
    template = msgs.get(key, msgs["server"])
    return template.format(entity_name=entity_name or "the repository")


def translate_gitea_error(
    error: GiteaError,
    domain: str,
    entity_name: str | None = None,
) -> types.CallToolResult:
    """Translate a Gitea exception to a structured error response.

    Args:
        error: Exception raised by the client, registry or engine
        domain: Operation domain ("repository", "files", "instance")
        entity_name: Optional entity name for contextual suggestions
            (e.g., ``owner/repo``)

    Returns:
        CallToolResult with isError=True and corrective action
    """
    msgs = _DOMAIN_MESSAGES.get(domain, _DOMAIN_MESSAGES["instance"])
    message = str(error)

    match error:
        case ValidationError():
            return build_error_response(
                "validation_error",
                message,
                "Check parameter values and retry.",
            )

        case NotFoundError():
            return build_error_response(
                "not_found", message, _action(msgs, "not_found", entity_name)
            )

        case ConflictError() if domain == "repository":
            return build_error_response(
                "already_exists",
                message,
                _action(msgs, "already_exists", entity_name),
            )

        case ConflictError():
            return build_error_response(
                "version_conflict",
                message,
                _action(msgs, "version_conflict", entity_name),
            )

        case ApiError(status_code=401):
            return build_error_response(
                "authentication_failed",
                message,
                "Check the API token configured for this instance (GITEA_TOKEN or GITEA_INSTANCES).",
            )

        case ApiError(status_code=403):
            return build_error_response(
                "permission_denied",
                message,
                _action(msgs, "permission", entity_name),
            )

        case TransportError():
            return build_error_response(
                "connection_error",
                message,
                "Check the instance base URL and network connectivity, then retry.",
            )

        case _:
            return build_error_response(
                "server_error", message, _action(msgs, "server", entity_name)
            )
