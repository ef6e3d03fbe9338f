"""Tests for the in-memory registry and association store adapters."""

from unittest.mock import AsyncMock

import pytest

from mcpbridge.mcp.config import MCPConfig, MCPServerConfig
from mcpbridge.mcp.executor import MCPExecutionBridge
from mcpbridge.mcp.expansion import project_capability
from mcpbridge.mcp.ports import ConfigWriterPort, StaticCredentialStore, ToolRegistryPort
from mcpbridge.mcp.protocol import CapabilityDescriptor
from mcpbridge.mcp.registry import InMemoryAssociationStore, InMemoryToolRegistry
from mcpbridge.mcp.tool import MCPTool
from mcpbridge.tools.base import ToolCallContext
from mcpbridge.tools.errors import ToolAlreadyRegisteredError, ToolNotFoundError
from mcpbridge.tools.registry import ToolRegistry


def _projection(server_ref: str, name: str):
    return project_capability(server_ref, CapabilityDescriptor(name=name, description=name))


class TestInMemoryToolRegistry:
    def test_satisfies_port(self) -> None:
        assert isinstance(InMemoryToolRegistry(), ToolRegistryPort)

    @pytest.mark.asyncio
    async def test_create_and_list(self) -> None:
        registry = InMemoryToolRegistry()
        await registry.create(_projection("docs", "search"))
        await registry.create(_projection("docs", "fetch"))
        await registry.create(_projection("wiki", "search"))

        assert [t.local_id for t in await registry.list("docs")] == [
            "mcp__docs__fetch",
            "mcp__docs__search",
        ]
        assert len(await registry.list()) == 3

    @pytest.mark.asyncio
    async def test_duplicate_create_raises(self) -> None:
        registry = InMemoryToolRegistry()
        await registry.create(_projection("docs", "search"))
        with pytest.raises(ToolAlreadyRegisteredError):
            await registry.create(_projection("docs", "search"))

    @pytest.mark.asyncio
    async def test_delete(self) -> None:
        registry = InMemoryToolRegistry()
        await registry.create(_projection("docs", "search"))
        await registry.delete("mcp__docs__search")

        assert await registry.list() == []
        assert registry.get("mcp__docs__search") is None

    @pytest.mark.asyncio
    async def test_delete_missing_raises(self) -> None:
        with pytest.raises(ToolNotFoundError):
            await InMemoryToolRegistry().delete("mcp__docs__nothing")

    @pytest.mark.asyncio
    async def test_mirrors_into_host_registry(self, fake_server) -> None:
        bridge = MCPExecutionBridge(
            StaticCredentialStore(MCPConfig(servers={"docs": MCPServerConfig(url="http://docs/mcp")})),
            transport=fake_server.transport,
        )
        host = ToolRegistry()
        registry = InMemoryToolRegistry(host, bridge)

        await registry.create(_projection("docs", "search"))
        tool = host.get("mcp__docs__search")
        assert isinstance(tool, MCPTool)

        result = await tool.execute(
            ToolCallContext(correlation_id="c", task_id="t", agent_id="a"), {}
        )
        assert result.success
        assert result.result["content"] == "called search"

        await registry.delete("mcp__docs__search")
        assert not host.has_tool("mcp__docs__search")


class TestInMemoryAssociationStore:
    def test_satisfies_port(self) -> None:
        assert isinstance(InMemoryAssociationStore(), ConfigWriterPort)

    @pytest.mark.asyncio
    async def test_read_unknown_server(self) -> None:
        assert await InMemoryAssociationStore().read_associated_ids("docs") == []

    @pytest.mark.asyncio
    async def test_write_then_read(self) -> None:
        store = InMemoryAssociationStore()
        await store.write_associated_ids("docs", ["a", "b"])

        assert await store.read_associated_ids("docs") == ["a", "b"]
        assert store.write_count == 1

    @pytest.mark.asyncio
    async def test_on_write_hook(self) -> None:
        hook = AsyncMock()
        store = InMemoryAssociationStore(on_write=hook)
        await store.write_associated_ids("docs", ["a"])
        hook.assert_awaited_once_with("docs", ["a"])
