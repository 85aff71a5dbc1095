"""MCP Server for Gitea integration using stdio transport.

This module implements the Model Context Protocol server that enables
AI agents to create repositories and reconcile files on one or more
Gitea instances via standardized tools.

Transport: stdio
Protocol: JSON-RPC 2.0 over MCP
"""

import argparse
import asyncio
import logging
import sys

import mcp.server.stdio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from .. import __version__
from ..core.instances import InstanceRegistry
from ..logger import DEFAULT_LOG_FILE, setup_logging
from .lifespan import server_lifespan
from .tools import (
    ALL_SPECS,
    ToolRegistry,
    build_error_response,
    load_scopes_file,
)

logger = logging.getLogger(__name__)

# Initialize server instance
server = Server("gitea-mcp-server")

# Global instance registry (initialized in lifespan)
_instances: InstanceRegistry | None = None

# Global tool registry (initialized in main)
_registry: ToolRegistry | None = None


# ---------------------------------------------------------------------------
# Global accessors
# ---------------------------------------------------------------------------


def get_instances() -> InstanceRegistry:
    """Get the global InstanceRegistry.

    Raises:
        RuntimeError: If the registry is not initialized
    """
    if _instances is None:
        raise RuntimeError(
            "InstanceRegistry not initialized. Server lifespan not started."
        )
    return _instances


def set_instances(instances: InstanceRegistry | None) -> None:
    """Set the global InstanceRegistry, or None to clear."""
    global _instances
    _instances = instances


def get_registry() -> ToolRegistry:
    """Get the global ToolRegistry instance.

    Raises:
        RuntimeError: If registry is not initialized
    """
    if _registry is None:
        raise RuntimeError("ToolRegistry not initialized.")
    return _registry


def set_registry(registry: ToolRegistry | None) -> None:
    """Set the global ToolRegistry instance, or None to clear."""
    global _registry
    _registry = registry


# ---------------------------------------------------------------------------
# MCP protocol handlers
# ---------------------------------------------------------------------------


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List available Gitea tools.

    Returns all registered (and permitted) tools from the ToolRegistry.
    """
    return get_registry().list_tools()


@server.call_tool()
async def handle_call_tool(
    name: str, arguments: dict | None
) -> types.CallToolResult:
    """Handle tool execution via ToolRegistry dispatch."""
    instances = get_instances()
    try:
        return await get_registry().call_tool(name, arguments, instances)
    except ValueError as e:
        # Unknown or filtered-out tool name
        return build_error_response(
            "unknown_tool",
            str(e),
            "Use list_tools to see available tools.",
        )


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------


def build_registry(scopes_file: str | None = None) -> ToolRegistry:
    """Build the ToolRegistry, filtered by *scopes_file* when given."""
    allowed_scopes = None
    if scopes_file:
        allowed_scopes = load_scopes_file(scopes_file)
        logger.info(
            "Loaded %d scopes from %s", len(allowed_scopes), scopes_file
        )

    registry = ToolRegistry(ALL_SPECS, allowed_scopes)
    logger.info(
        "Registered %d tools (of %d total)",
        registry.tool_count(),
        len(ALL_SPECS),
    )
    return registry


async def main(config_overrides: dict | None = None):
    """Run the MCP server with stdio transport.

    Sets up logging for MCP mode (file only, never stdout), validates the
    configured instances via the lifespan manager, and serves MCP over
    stdio.

    Args:
        config_overrides: Optional dict with config values to override
            (url, token, instance_id, insecure, debug, log_file, scopes_file)
    """
    overrides = config_overrides or {}

    # Must run before stdio_server so nothing reaches stdout during negotiation
    setup_logging(
        mode="mcp",
        debug=overrides.get("debug", False),
        log_file=overrides.get("log_file"),
    )
    logger.info("gitea-mcp-server %s", __version__)

    scopes_file = overrides.get("scopes_file")
    registry = build_registry(scopes_file)
    if scopes_file:
        print(
            f"Scopes file: {scopes_file} "
            f"({registry.tool_count()} of {len(ALL_SPECS)} tools enabled)",
            file=sys.stderr,
        )
    set_registry(registry)

    # set_instances() is called here rather than in the lifespan so that
    # `python -m gitea_mcp_server.mcp.server` updates this module's global,
    # not a second import of it.
    async with server_lifespan(config_overrides=overrides) as ctx:
        set_instances(ctx["instances"])
        try:
            async with mcp.server.stdio.stdio_server() as (
                read_stream,
                write_stream,
            ):
                init_options = InitializationOptions(
                    server_name="gitea-mcp-server",
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                )
                await server.run(read_stream, write_stream, init_options)
        finally:
            set_instances(None)
            set_registry(None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitea-mcp-server",
        description="Gitea MCP Server - Model Context Protocol server for Gitea repositories",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with default config (from .env or .gitea_mcp/config.yml)
  gitea-mcp-server

  # Single instance from the command line
  gitea-mcp-server --url https://gitea.example.com --token $GITEA_TOKEN

  # Use with insecure SSL (development only)
  gitea-mcp-server --url http://localhost:3000 --token $GITEA_TOKEN --insecure

  # Expose only read tools
  gitea-mcp-server --scopes-file /etc/gitea-mcp/read-only.scopes

Note: This server uses stdio transport for JSON-RPC communication with MCP clients.
All user-facing messages are written to stderr. Do not pipe stdin/stdout manually.
        """,
    )

    parser.add_argument(
        "--url",
        help="Override Gitea base URL (takes precedence over GITEA_URL/GITEA_INSTANCES and config files)",
    )
    parser.add_argument(
        "--token",
        help="Override Gitea API token"
        " (visible in process list -- prefer GITEA_TOKEN env var for security)",
    )
    parser.add_argument(
        "--instance-id",
        help="Id for the instance given by --url/--token (default: 'default')",
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Skip SSL certificate verification (use only for development)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-file",
        default=DEFAULT_LOG_FILE,
        help=f"Log file path (default: {DEFAULT_LOG_FILE})",
    )
    parser.add_argument(
        "--scopes-file",
        help="Path to scopes file restricting available tools. "
        "Format: one scope per line (e.g., write:contents), # for comments. "
        "If not specified, all tools are available.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"gitea-mcp-server version {__version__}",
    )
    return parser


def run() -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    args = build_parser().parse_args()

    config_overrides = {}
    if args.url:
        config_overrides["url"] = args.url
    if args.token:
        config_overrides["token"] = args.token
    if args.instance_id:
        config_overrides["instance_id"] = args.instance_id
    if args.insecure:
        config_overrides["insecure"] = True
    if args.debug:
        config_overrides["debug"] = True
    if args.log_file:
        config_overrides["log_file"] = args.log_file
    if args.scopes_file:
        config_overrides["scopes_file"] = args.scopes_file

    override_keys = [k for k in config_overrides if k != "token"]
    if override_keys:
        print(
            f"Config overrides from CLI: {', '.join(override_keys)}",
            file=sys.stderr,
        )

    try:
        asyncio.run(main(config_overrides=config_overrides or None))
    except RuntimeError:
        # Error already printed to stderr by lifespan manager
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
