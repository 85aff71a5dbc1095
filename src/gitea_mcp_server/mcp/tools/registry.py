"""ToolSpec and ToolRegistry for scope-based tool filtering.

This module provides a centralized registry for MCP tools that supports
filtering by scope, enabling operators to restrict which tools are exposed
to AI agents (for example, a read-only deployment without write tools).

Key concepts:
- ToolSpec: Immutable dataclass linking a Tool definition, required scopes,
  and an async handler with standardized signature (instances, args) -> CallToolResult.
- ToolRegistry: Filters specs by allowed scopes at construction time,
  then provides list_tools() and call_tool() dispatch with error translation.
- load_scopes_file: Reads a simple text file of scope names.
"""

import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

import mcp.types as types

from ...core.exceptions import GiteaError
from ...core.instances import InstanceRegistry

logger = logging.getLogger(__name__)

_SCOPE_PATTERN = re.compile(r"^(read|write):[a-z_]+$")


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """Immutable specification for a single MCP tool.

    Attributes:
        tool: The MCP Tool definition (name, description, inputSchema).
        scopes: Scopes required to use this tool.
            Empty frozenset means the tool is always available.
        handler: Async handler with signature (instances, args) -> CallToolResult.
    """

    tool: types.Tool
    scopes: frozenset[str]
    handler: Callable[
        [InstanceRegistry, dict], Awaitable[types.CallToolResult]
    ]


class ToolRegistry:
    """Registry of ToolSpecs with optional scope-based filtering.

    If allowed_scopes is None, all specs are included. Otherwise, a spec is
    included only if:
    - its scopes set is empty (always available), or
    - its scopes are a subset of allowed_scopes.
    """

    def __init__(
        self,
        specs: list[ToolSpec],
        allowed_scopes: frozenset[str] | None = None,
    ):
        self._specs: dict[str, ToolSpec] = {}
        for spec in specs:
            if (
                allowed_scopes is None
                or not spec.scopes
                or spec.scopes <= allowed_scopes
            ):
                self._specs[spec.tool.name] = spec

    def list_tools(self) -> list[types.Tool]:
        """Return list of types.Tool for all registered (permitted) specs."""
        return [spec.tool for spec in self._specs.values()]

    def tool_count(self) -> int:
        """Return number of registered tools."""
        return len(self._specs)

    async def call_tool(
        self,
        name: str,
        arguments: dict | None,
        instances: InstanceRegistry,
    ) -> types.CallToolResult:
        """Dispatch tool call to registered handler.

        Provides centralized error handling for Gitea errors, validation
        errors, and unexpected exceptions, translating them into structured
        CallToolResult responses with corrective actions.

        Args:
            name: Tool name to invoke.
            arguments: Tool arguments (may be None).
            instances: Registry of configured Gitea clients.

        Returns:
            CallToolResult from the handler.

        Raises:
            ValueError: If tool name is not registered (unknown or filtered out).
        """
        from .errors import build_error_response, translate_gitea_error

        spec = self._specs.get(name)
        if spec is None:
            raise ValueError(f"Unknown tool: {name}")
        args = arguments or {}
        try:
            return await spec.handler(instances, args)
        except GiteaError as e:
            logger.warning("Gitea error in %s: %s", name, e)
            return translate_gitea_error(
                e, _domain_from_tool_name(name), _entity_name_from_args(args)
            )
        except ValueError as e:
            return build_error_response(
                "validation_error",
                str(e),
                "Check parameter values and retry.",
            )
        except Exception as e:
            logger.exception("Unexpected error in tool %s", name)
            return build_error_response(
                "server_error",
                str(e),
                "Check the Gitea server status or retry later.",
            )


def _entity_name_from_args(args: dict) -> str | None:
    """Build an ``owner/repo`` label from tool arguments, when present."""
    repository = args.get("repository") or args.get("name")
    if not repository:
        return None
    owner = args.get("owner") or args.get("organization")
    return f"{owner}/{repository}" if owner else repository


def _domain_from_tool_name(name: str) -> str:
    """Map a tool name to its error domain for corrective action messages."""
    if name == "create_repository":
        return "repository"
    if name in ("sync_update", "upload_files"):
        return "files"
    return "instance"


def load_scopes_file(path: str | Path) -> frozenset[str]:
    """Load allowed scopes from a text file.

    Format: one scope per line, ``#`` for comments, blank lines ignored.

    Example file::

        # Read-only deployment
        read:instance

    Args:
        path: Path to the scopes file.

    Returns:
        Frozenset of scope strings.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file contains invalid scopes or is empty.
    """
    path = Path(path)
    scopes: set[str] = set()
    for line_num, line in enumerate(path.read_text().splitlines(), 1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if not _SCOPE_PATTERN.match(stripped):
            raise ValueError(
                f"Invalid scope '{stripped}' at line {line_num} in {path}. "
                "Expected read:<area> or write:<area> (e.g., write:contents)."
            )
        scopes.add(stripped)
    if not scopes:
        raise ValueError(
            f"No scopes found in {path}. File must contain at least one scope."
        )
    return frozenset(scopes)
