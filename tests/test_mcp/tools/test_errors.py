"""Tests for mcp/tools/errors.py -- error response builders and utilities.

Covers:
- build_error_response() structure and format
- build_json_response() text and structured content
- translate_gitea_error() domain-specific error mapping
"""

import json

import mcp.types as types
import pytest

from gitea_mcp_server.core.exceptions import (
    ApiError,
    ConflictError,
    GiteaError,
    NotFoundError,
    TransportError,
    ValidationError,
)
from gitea_mcp_server.mcp.tools.errors import (
    build_error_response,
    build_json_response,
    translate_gitea_error,
)


def _get_error_text(result: types.CallToolResult) -> str:
    content = result.content[0]
    assert isinstance(content, types.TextContent)
    return content.text


class TestBuildErrorResponse:
    def test_format(self):
        result = build_error_response("not_found", "Not found", "Try again")
        assert result.isError is True
        assert _get_error_text(result) == "Error (not_found): Not found\n\nAction: Try again"


class TestBuildJsonResponse:
    def test_text_and_structured_content_agree(self):
        payload = {"success": True, "summary": {"processed": 1}}
        result = build_json_response(payload)
        assert result.isError is False
        assert json.loads(_get_error_text(result)) == payload
        assert result.structuredContent == payload

    def test_error_flag(self):
        assert build_json_response({"connected": 0}, is_error=True).isError is True


class TestTranslateGiteaError:
    @pytest.mark.parametrize(
        "error,domain,error_type",
        [
            (ValidationError("bad path"), "files", "validation_error"),
            (NotFoundError("404: missing"), "files", "not_found"),
            (ConflictError(409, "exists"), "repository", "already_exists"),
            (ConflictError(409, "sha mismatch"), "files", "version_conflict"),
            (ApiError(401, "unauthorized"), "files", "authentication_failed"),
            (ApiError(403, "forbidden"), "repository", "permission_denied"),
            (TransportError("connection refused"), "instance", "connection_error"),
            (ApiError(500, "internal"), "files", "server_error"),
            (GiteaError("odd"), "unknown-domain", "server_error"),
        ],
    )
    def test_error_types(self, error, domain, error_type):
        result = translate_gitea_error(error, domain, "alice/notes")
        assert result.isError is True
        assert _get_error_text(result).startswith(f"Error ({error_type}):")

    def test_entity_name_in_action(self):
        result = translate_gitea_error(
            NotFoundError("404: missing"), "files", "alice/notes"
        )
        assert "Verify that repository 'alice/notes'" in _get_error_text(result)

    def test_default_entity_name(self):
        result = translate_gitea_error(ApiError(403, "forbidden"), "files")
        assert "write access to 'the repository'" in _get_error_text(result)

    def test_message_is_preserved(self):
        result = translate_gitea_error(ApiError(500, "internal"), "files")
        assert "500: internal" in _get_error_text(result)
