"""
Input validation functions for Gitea MCP Server.

Provides validation for repository names, commit messages, file paths and
file content so bad input is rejected before any REST call is made.
"""

import re

# Gitea allows alphanumerics plus '-', '_' and '.'
_REPO_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]+$")
_DRIVE_PREFIX_PATTERN = re.compile(r"^[A-Za-z]:/")
_RESERVED_REPO_NAMES = {".", "..", ".git"}


# ---------------------------------------------------------------------------
# Error message formatting helpers
# ---------------------------------------------------------------------------


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Repository name")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def validate_repository_name(name: str) -> tuple[bool, str]:
    """
    Validate a repository name.

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.
    """
    if not name or not name.strip():
        return (
            False,
            format_validation_error("Repository name", "cannot be empty"),
        )

    if len(name) > 100:
        return (
            False,
            format_validation_error(
                "Repository name", "cannot exceed 100 characters"
            ),
        )

    if name in _RESERVED_REPO_NAMES or name.endswith(".git"):
        return (
            False,
            format_validation_error("Repository name", f"'{name}' is reserved"),
        )

    if not _REPO_NAME_PATTERN.match(name):
        return (
            False,
            format_validation_error(
                "Repository name",
                "may only contain letters, digits, '-', '_' and '.'",
            ),
        )

    return (True, "")


def validate_commit_message(message: str) -> tuple[bool, str]:
    """Validate a commit message. Returns (is_valid, error_message)."""
    if not message or not message.strip():
        return (
            False,
            format_validation_error("Commit message", "cannot be empty"),
        )
    return (True, "")


def normalize_path(path: str) -> tuple[str, str]:
    """
    Normalize a repository-relative file path.

    Backslashes become forward slashes, and empty or ``.`` segments are
    dropped.

    Args:
        path: The path as supplied by the caller

    Returns:
        Tuple of (normalized_path, error_message).
        Returns (path, "") if valid, ("", reason) if invalid.

    Validation rules:
        - Cannot be empty or whitespace-only
        - Cannot be absolute (leading '/' or a drive prefix such as 'C:/')
        - Cannot contain a '..' segment (path traversal protection)
    """
    if not path or not path.strip():
        return ("", format_validation_error("Path", "cannot be empty"))

    unified = path.replace("\\", "/")

    if unified.startswith("/") or _DRIVE_PREFIX_PATTERN.match(unified):
        return (
            "",
            format_validation_error("Path", f"'{path}' must be relative"),
        )

    segments = [s for s in unified.split("/") if s not in ("", ".")]

    if ".." in segments:
        return (
            "",
            format_validation_error("Path", f"'{path}' cannot contain '..'"),
        )

    if not segments:
        return ("", format_validation_error("Path", f"'{path}' names no file"))

    return ("/".join(segments), "")


def validate_content(
    content: str, max_size: int = 10 * 1024 * 1024
) -> tuple[bool, str]:
    """
    Validate file content.

    Args:
        content: The content to validate
        max_size: Maximum size in bytes (default: 10 MiB)

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Empty content is valid; empty files are legitimate repository entries.
    """
    content_bytes = len(content.encode("utf-8"))
    if content_bytes > max_size:
        return (
            False,
            format_validation_error(
                "Content", f"exceeds maximum size of {max_size} bytes"
            ),
        )

    return (True, "")
