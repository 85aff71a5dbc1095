"""Tests for the sync_update and upload_files tool handlers.

Handlers are driven through ToolRegistry.call_tool so error translation
is exercised the same way the server does it.
"""

import json

import pytest

from gitea_mcp_server.core.exceptions import TransportError
from gitea_mcp_server.core.instances import InstanceRegistry
from gitea_mcp_server.mcp.tools.files import FILE_SPECS, FILE_TOOLS
from gitea_mcp_server.mcp.tools.registry import ToolRegistry


def _args(files, /, **overrides):
    args = {
        "owner": "alice",
        "repository": "notes",
        "files": files,
        "message": "Update files",
    }
    args.update(overrides)
    return args


async def _call(client, name, args, **limits):
    instances = InstanceRegistry({"main": client}, **limits)
    return await ToolRegistry(FILE_SPECS).call_tool(name, args, instances)


class TestFileTools:
    def test_tool_names(self):
        assert [t.name for t in FILE_TOOLS] == ["sync_update", "upload_files"]

    def test_sync_update_schema_enums(self):
        props = FILE_TOOLS[0].inputSchema["properties"]
        assert props["strategy"]["enum"] == ["auto", "batch", "individual"]
        assert props["conflict_resolution"]["enum"] == ["overwrite", "fail", "skip"]


class TestSyncUpdate:
    async def test_reconciles_and_reports(self, make_fake_client):
        client = make_fake_client({"b.txt": "old", "same.txt": "s"})
        result = await _call(
            client,
            "sync_update",
            _args(
                [
                    {"path": "a.txt", "content": "A"},
                    {"path": "b.txt", "content": "new", "operation": "modify"},
                    {"path": "same.txt", "content": "s", "operation": "modify"},
                ]
            ),
        )

        assert result.isError is False
        payload = result.structuredContent
        assert payload["success"] is True
        assert payload["strategy"] == "batch"
        assert payload["instance_id"] == "test"
        assert payload["repository"] == "alice/notes"
        assert payload["branch"] == "main"
        assert payload["summary"]["needs_update"] == 2
        assert payload["summary"]["skipped"] == 1
        assert payload["details"]["unchanged"] == ["same.txt"]
        assert json.loads(result.content[0].text) == payload
        assert client.text("b.txt") == "new"

    async def test_dry_run_makes_no_writes(self, make_fake_client):
        client = make_fake_client({"b.txt": "old"})
        result = await _call(
            client,
            "sync_update",
            _args(
                [{"path": "b.txt", "content": "new", "operation": "modify"}],
                dry_run=True,
            ),
        )
        payload = result.structuredContent
        assert payload["dry_run"] is True
        assert payload["files_needing_update"] == [
            {"path": "b.txt", "operation": "modify", "has_remote_sha": True}
        ]
        assert client.write_calls == []

    async def test_partial_failure_is_reported_not_raised(self, make_fake_client):
        client = make_fake_client()
        client.write_errors["b.txt"] = TransportError("connection reset")
        result = await _call(
            client,
            "sync_update",
            _args(
                [
                    {"path": "a.txt", "content": "A"},
                    {"path": "b.txt", "content": "B"},
                ],
                strategy="individual",
            ),
        )
        payload = result.structuredContent
        assert result.isError is False
        assert payload["success"] is False
        assert payload["summary"]["succeeded"] == 1
        assert payload["summary"]["failed"] == 1
        assert payload["details"]["operations"][1]["error"] == "connection reset"

    async def test_conflict_resolution_skip(self, make_fake_client):
        client = make_fake_client({"a.txt": "old"})
        result = await _call(
            client,
            "sync_update",
            _args(
                [{"path": "a.txt", "content": "new", "operation": "modify", "sha": "stale"}],
                conflict_resolution="skip",
            ),
        )
        payload = result.structuredContent
        assert payload["details"]["conflicts"][0]["resolution"] == "skip"
        assert client.write_calls == []

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"strategy": "parallel"}, "strategy must be one of"),
            ({"conflict_resolution": "merge"}, "conflict_resolution must be one of"),
            ({"message": ""}, "message is required"),
            ({"owner": None}, "owner is required"),
            ({"files": "a.txt"}, "files must be a list"),
        ],
    )
    async def test_invalid_arguments(self, fake_client, overrides, message):
        result = await _call(
            fake_client,
            "sync_update",
            _args([{"path": "a.txt", "content": "A"}], **overrides),
        )
        assert result.isError is True
        assert "Error (validation_error)" in result.content[0].text
        assert message in result.content[0].text
        assert fake_client.get_calls == []

    async def test_invalid_operation_rejected_before_io(self, fake_client):
        result = await _call(
            fake_client,
            "sync_update",
            _args([{"path": "a.txt", "operation": "rename"}]),
        )
        assert result.isError is True
        assert "unknown operation 'rename'" in result.content[0].text
        assert fake_client.get_calls == []

    async def test_file_limit_from_registry(self, fake_client):
        result = await _call(
            fake_client,
            "sync_update",
            _args([{"path": f"f{i}", "content": "x"} for i in range(3)]),
            max_files=2,
        )
        assert result.isError is True
        assert "Too many files: 3 (maximum is 2)" in result.content[0].text

    async def test_unknown_instance(self, fake_client):
        result = await _call(
            fake_client,
            "sync_update",
            _args([{"path": "a.txt", "content": "A"}], instance_id="nope"),
        )
        assert result.isError is True
        assert "Error (not_found)" in result.content[0].text


class TestUploadFiles:
    async def test_one_commit_per_file_without_probing(self, fake_client):
        result = await _call(
            fake_client,
            "upload_files",
            _args(
                [
                    {"path": "a.txt", "content": "A"},
                    {"path": "b.txt", "content": "B"},
                ]
            ),
        )
        payload = result.structuredContent
        assert payload["success"] is True
        assert payload["strategy"] == "individual"
        assert fake_client.get_calls == []
        assert fake_client.write_calls == [
            ("create", "a.txt", None),
            ("create", "b.txt", None),
        ]

    async def test_operation_is_forced_to_add(self, fake_client):
        result = await _call(
            fake_client,
            "upload_files",
            _args([{"path": "a.txt", "content": "A", "operation": "delete"}]),
        )
        assert result.structuredContent["details"]["operations"][0]["operation"] == "add"

    async def test_existing_file_fails_per_file(self, make_fake_client):
        client = make_fake_client({"a.txt": "exists"})
        result = await _call(
            client,
            "upload_files",
            _args(
                [
                    {"path": "a.txt", "content": "A"},
                    {"path": "b.txt", "content": "B"},
                ]
            ),
        )
        payload = result.structuredContent
        assert payload["summary"]["failed"] == 1
        assert payload["summary"]["succeeded"] == 1
        assert client.text("a.txt") == "exists"
