"""MCP server for Gitea repository and file management."""

__version__ = "1.0.0"
