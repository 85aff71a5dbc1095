"""
Tests for system MCP tool handlers.

These tests verify system tool definitions and handler behavior against
fake Gitea clients.
"""

from gitea_mcp_server.config import InstanceConfig
from gitea_mcp_server.core.exceptions import TransportError
from gitea_mcp_server.core.instances import InstanceRegistry
from gitea_mcp_server.mcp.tools.registry import ToolRegistry
from gitea_mcp_server.mcp.tools.system import SYSTEM_SPECS, SYSTEM_TOOLS


def _registry(**clients):
    return InstanceRegistry(clients)


def _instance(iid):
    return InstanceConfig(
        id=iid,
        name=f"{iid.title()} Gitea",
        base_url=f"https://{iid}.example.com",
        token="t0ken1234",
    )


class TestSystemTools:
    def test_tool_names(self):
        assert [t.name for t in SYSTEM_TOOLS] == ["ping", "list_instances"]

    def test_ping_is_always_available(self):
        registry = ToolRegistry(SYSTEM_SPECS, frozenset({"write:contents"}))
        assert [t.name for t in registry.list_tools()] == ["ping"]


class TestPing:
    async def test_all_instances_connected(self, make_fake_client):
        instances = _registry(
            a=make_fake_client(instance=_instance("a")),
            b=make_fake_client(instance=_instance("b")),
        )
        result = await ToolRegistry(SYSTEM_SPECS).call_tool("ping", {}, instances)

        assert result.isError is False
        assert result.structuredContent["connected"] == 2
        assert result.structuredContent["instances"][0] == {
            "id": "a",
            "connected": True,
            "version": "1.21.0",
        }

    async def test_one_unreachable_instance(self, make_fake_client):
        down = make_fake_client(instance=_instance("down"))

        def _fail():
            raise TransportError("connection refused")

        down.get_version = _fail
        instances = _registry(up=make_fake_client(instance=_instance("up")), down=down)
        result = await ToolRegistry(SYSTEM_SPECS).call_tool("ping", None, instances)

        assert result.isError is False
        assert result.structuredContent["connected"] == 1
        assert result.structuredContent["total"] == 2
        assert result.structuredContent["instances"][1] == {
            "id": "down",
            "connected": False,
            "error": "connection refused",
        }

    async def test_error_when_nothing_reachable(self, make_fake_client):
        client = make_fake_client()

        def _fail():
            raise TransportError("timed out")

        client.get_version = _fail
        result = await ToolRegistry(SYSTEM_SPECS).call_tool(
            "ping", {}, _registry(only=client)
        )
        assert result.isError is True

    async def test_single_instance_by_id(self, make_fake_client):
        instances = _registry(
            a=make_fake_client(instance=_instance("a")),
            b=make_fake_client(instance=_instance("b")),
        )
        result = await ToolRegistry(SYSTEM_SPECS).call_tool(
            "ping", {"instance_id": "b"}, instances
        )
        assert result.structuredContent["total"] == 1
        assert result.structuredContent["instances"][0]["id"] == "b"

    async def test_unknown_instance_id(self, make_fake_client):
        result = await ToolRegistry(SYSTEM_SPECS).call_tool(
            "ping", {"instance_id": "nope"}, _registry(a=make_fake_client())
        )
        assert result.isError is True
        assert "Error (not_found)" in result.content[0].text


class TestListInstances:
    async def test_lists_without_tokens(self, make_fake_client):
        instances = _registry(main=make_fake_client(instance=_instance("main")))
        result = await ToolRegistry(SYSTEM_SPECS).call_tool(
            "list_instances", {}, instances
        )

        assert result.structuredContent == {
            "instances": [
                {
                    "id": "main",
                    "name": "Main Gitea",
                    "base_url": "https://main.example.com",
                }
            ]
        }
        assert "t0ken1234" not in result.content[0].text
