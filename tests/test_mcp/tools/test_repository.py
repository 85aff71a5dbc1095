"""Tests for the create_repository tool handler."""

from gitea_mcp_server.core.exceptions import ConflictError
from gitea_mcp_server.core.instances import InstanceRegistry
from gitea_mcp_server.mcp.tools.registry import ToolRegistry
from gitea_mcp_server.mcp.tools.repository import REPOSITORY_SPECS, REPOSITORY_TOOLS


async def _call(client, args):
    return await ToolRegistry(REPOSITORY_SPECS).call_tool(
        "create_repository", args, InstanceRegistry({"main": client})
    )


def test_schema_requires_name():
    assert REPOSITORY_TOOLS[0].inputSchema["required"] == ["name"]


async def test_creates_repository(fake_client):
    result = await _call(fake_client, {"name": "notes", "description": "Notes"})

    assert result.isError is False
    payload = result.structuredContent
    assert payload["success"] is True
    assert payload["instance_id"] == "test"
    assert payload["repository"]["full_name"] == "testuser/notes"
    assert payload["repository"]["private"] is True
    assert set(payload["repository"]) == {
        "id",
        "name",
        "full_name",
        "html_url",
        "clone_url",
        "ssh_url",
        "private",
        "default_branch",
        "created_at",
    }
    assert fake_client.write_calls == [("create_repository", "notes", None)]


async def test_organization_and_options_forwarded(mock_gitea_client):
    mock_gitea_client.create_repository.return_value = {"name": "notes"}
    await _call(
        mock_gitea_client,
        {
            "name": "notes",
            "organization": "acme",
            "private": False,
            "default_branch": "trunk",
        },
    )
    mock_gitea_client.create_repository.assert_called_once_with(
        "notes",
        description="",
        private=False,
        auto_init=True,
        default_branch="trunk",
        organization="acme",
    )


async def test_invalid_name_rejected_before_io(fake_client):
    result = await _call(fake_client, {"name": "bad name"})
    assert result.isError is True
    assert "Error (validation_error)" in result.content[0].text
    assert fake_client.write_calls == []


async def test_missing_name(fake_client):
    result = await _call(fake_client, {})
    assert result.isError is True
    assert "Repository name cannot be empty" in result.content[0].text


async def test_existing_repository(mock_gitea_client):
    mock_gitea_client.create_repository.side_effect = ConflictError(
        409, "The repository with the same name already exists."
    )
    result = await _call(mock_gitea_client, {"name": "notes"})
    assert result.isError is True
    assert "Error (already_exists)" in result.content[0].text
