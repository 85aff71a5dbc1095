"""File tool handlers for MCP server.

Defines two tools backed by the shared reconciliation engine:

- ``sync_update`` -- reconcile a batch of add/modify/delete operations,
  skipping files that are already up to date.
- ``upload_files`` -- create files, one commit per file, with no change
  detection.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, TypeVar

import mcp.types as types

from ...core.instances import InstanceRegistry
from ...reconcile import (
    ConflictResolution,
    ReconcileRequest,
    Reconciler,
    Strategy,
    summary_to_json,
)
from .errors import build_error_response, build_json_response
from .registry import ToolSpec

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

_REPOSITORY_PROPERTIES: dict[str, Any] = {
    "instance_id": {
        "type": "string",
        "description": "Gitea instance id (optional when only one instance is configured)",
    },
    "owner": {
        "type": "string",
        "description": "Repository owner (user or organization)",
    },
    "repository": {
        "type": "string",
        "description": "Repository name",
    },
    "message": {
        "type": "string",
        "description": "Commit message",
    },
    "branch": {
        "type": "string",
        "default": "main",
        "description": "Target branch",
    },
}


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------


FILE_TOOLS: list[types.Tool] = [
    types.Tool(
        name="sync_update",
        description=(
            "Bring files in an existing repository to the requested state. "
            "Each path is checked first: unchanged files are skipped, modify on a "
            "missing file becomes add, delete on a missing file is a no-op, and "
            "current SHAs are fetched automatically. Multiple add/modify operations "
            "are committed together; use dry_run to preview the plan."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=True,
            idempotentHint=True,
            openWorldHint=True,
        ),
        inputSchema={
            "type": "object",
            "properties": {
                **_REPOSITORY_PROPERTIES,
                "files": {
                    "type": "array",
                    "description": "File operations to perform, applied in order",
                    "items": {
                        "type": "object",
                        "properties": {
                            "path": {
                                "type": "string",
                                "description": "Repository-relative file path",
                            },
                            "content": {
                                "type": "string",
                                "description": "File content (required for add/modify)",
                            },
                            "operation": {
                                "type": "string",
                                "enum": ["add", "modify", "delete"],
                                "default": "add",
                            },
                            "sha": {
                                "type": "string",
                                "description": "Current file SHA (fetched automatically when detect_changes is on)",
                            },
                        },
                        "required": ["path"],
                    },
                },
                "strategy": {
                    "type": "string",
                    "enum": [s.value for s in Strategy],
                    "default": "auto",
                    "description": "auto: batch commit unless a single file or any delete",
                },
                "conflict_resolution": {
                    "type": "string",
                    "enum": [c.value for c in ConflictResolution],
                    "default": "overwrite",
                    "description": "What to do when a supplied sha no longer matches the stored one",
                },
                "detect_changes": {
                    "type": "boolean",
                    "default": True,
                    "description": "Check remote state before writing",
                },
                "dry_run": {
                    "type": "boolean",
                    "default": False,
                    "description": "Preview operations without making changes",
                },
            },
            "required": ["owner", "repository", "files", "message"],
        },
    ),
    types.Tool(
        name="upload_files",
        description=(
            "Create new files in an existing repository, one commit per file. "
            "Fails per file if a path already exists (use sync_update instead)."
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
                **_REPOSITORY_PROPERTIES,
                "files": {
                    "type": "array",
                    "description": "Files to create",
                    "items": {
                        "type": "object",
                        "properties": {
                            "path": {"type": "string"},
                            "content": {"type": "string"},
                        },
                        "required": ["path", "content"],
                    },
                },
            },
            "required": ["owner", "repository", "files", "message"],
        },
    ),
]


# ---------------------------------------------------------------------------
# Individual handlers
# ---------------------------------------------------------------------------


def _parse_enum(enum_cls: type[E], value: Any, default: E, field: str) -> E:
    if value is None:
        return default
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValueError(
            f"{field} must be one of: {allowed} (got '{value}')"
        ) from None


def _missing_argument(args: dict[str, Any]) -> types.CallToolResult | None:
    for key in ("owner", "repository", "message"):
        if not args.get(key):
            return build_error_response(
                "validation_error",
                f"{key} is required",
                f"Provide the '{key}' parameter.",
            )
    if not isinstance(args.get("files"), list):
        return build_error_response(
            "validation_error",
            "files must be a list of file operations",
            "Provide 'files' as a list of objects with at least a 'path'.",
        )
    return None


async def _run(
    instances: InstanceRegistry, args: dict[str, Any], request: ReconcileRequest
) -> types.CallToolResult:
    client = instances.resolve(args.get("instance_id"))
    reconciler = Reconciler(
        client,
        max_files=instances.max_files,
        max_file_size=instances.max_file_size,
    )
    summary = await reconciler.run(request)

    payload = summary_to_json(summary)
    payload["instance_id"] = client.instance.id
    payload["repository"] = f"{request.owner}/{request.repository}"
    payload["branch"] = request.branch
    return build_json_response(payload)


async def _handle_sync_update(
    instances: InstanceRegistry, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``sync_update`` tool."""
    error = _missing_argument(args)
    if error is not None:
        return error

    request = ReconcileRequest(
        owner=args["owner"],
        repository=args["repository"],
        files=args["files"],
        message=args["message"],
        branch=args.get("branch") or "main",
        strategy=_parse_enum(
            Strategy, args.get("strategy"), Strategy.AUTO, "strategy"
        ),
        conflict_resolution=_parse_enum(
            ConflictResolution,
            args.get("conflict_resolution"),
            ConflictResolution.OVERWRITE,
            "conflict_resolution",
        ),
        detect_changes=args.get("detect_changes", True),
        dry_run=args.get("dry_run", False),
    )
    return await _run(instances, args, request)


async def _handle_upload_files(
    instances: InstanceRegistry, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``upload_files`` tool."""
    error = _missing_argument(args)
    if error is not None:
        return error

    files = [
        {**f, "operation": "add"} if isinstance(f, dict) else f
        for f in args["files"]
    ]
    request = ReconcileRequest(
        owner=args["owner"],
        repository=args["repository"],
        files=files,
        message=args["message"],
        branch=args.get("branch") or "main",
        strategy=Strategy.INDIVIDUAL,
        detect_changes=False,
    )
    return await _run(instances, args, request)


FILE_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=FILE_TOOLS[0],
        scopes=frozenset({"write:contents"}),
        handler=_handle_sync_update,
    ),
    ToolSpec(
        tool=FILE_TOOLS[1],
        scopes=frozenset({"write:contents"}),
        handler=_handle_upload_files,
    ),
]
