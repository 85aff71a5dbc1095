"""MCP tool handlers for Gitea operations.

This package contains MCP tool implementations that wrap the core GiteaClient
and the reconciliation engine with async handlers and structured error
responses.
"""

from .errors import build_error_response, translate_gitea_error
from .files import FILE_SPECS, FILE_TOOLS
from .registry import ToolRegistry, ToolSpec, load_scopes_file
from .repository import REPOSITORY_SPECS, REPOSITORY_TOOLS
from .system import SYSTEM_SPECS, SYSTEM_TOOLS

ALL_SPECS: list[ToolSpec] = SYSTEM_SPECS + REPOSITORY_SPECS + FILE_SPECS

__all__ = [
    "build_error_response",
    "translate_gitea_error",
    # Registry
    "ToolSpec",
    "ToolRegistry",
    "load_scopes_file",
    # Spec lists
    "ALL_SPECS",
    "SYSTEM_SPECS",
    "REPOSITORY_SPECS",
    "FILE_SPECS",
    # Tool lists
    "SYSTEM_TOOLS",
    "REPOSITORY_TOOLS",
    "FILE_TOOLS",
]
