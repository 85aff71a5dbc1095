"""MCP server exposing Gitea repository and file tools over stdio."""
