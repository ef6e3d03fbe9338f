"""In-memory implementations of the registry and config-writer ports."""

import functools
import threading
from typing import Awaitable, Callable, Optional

from mcpbridge.mcp.executor import MCPExecutionBridge
from mcpbridge.mcp.expansion import CapabilityBinding, ProjectedTool
from mcpbridge.mcp.tool import MCPTool
from mcpbridge.observability.logging import get_logger
from mcpbridge.tools.errors import ToolAlreadyRegisteredError, ToolNotFoundError
from mcpbridge.tools.registry import ToolRegistry

logger = get_logger(__name__)

WriteHook = Callable[[str, list[str]], Awaitable[None]]


class InMemoryToolRegistry:
    """Projected-tool store, optionally mirrored into a host ToolRegistry.

    When both ``host_registry`` and ``bridge`` are given, every created
    projection is also registered there as an :class:`MCPTool`, so agents
    can call it like any other tool.
    """

    def __init__(
        self,
        host_registry: Optional[ToolRegistry] = None,
        bridge: Optional[MCPExecutionBridge] = None,
        timeout_ms: int = 60000,
    ) -> None:
        self._tools: dict[str, ProjectedTool] = {}
        self._lock = threading.Lock()
        self._host_registry = host_registry
        self._bridge = bridge
        self._timeout_ms = timeout_ms

    async def create(self, tool: ProjectedTool) -> None:
        """Store a projection.

        Raises:
            ToolAlreadyRegisteredError: If ``tool.local_id`` is already stored
        """
        with self._lock:
            if tool.local_id in self._tools:
                raise ToolAlreadyRegisteredError(tool.local_id, server_ref=tool.server_ref)
            self._tools[tool.local_id] = tool

        if self._host_registry is not None and self._bridge is not None:
            binding = CapabilityBinding(
                projected_tool=tool,
                handler=functools.partial(
                    self._bridge.execute, tool.server_ref, tool.capability_name
                ),
            )
            self._host_registry.register(MCPTool(binding, timeout_ms=self._timeout_ms), replace=True)
        logger.debug("mcp_projection_created", local_id=tool.local_id, server_ref=tool.server_ref)

    async def delete(self, local_id: str) -> None:
        """Remove a projection.

        Raises:
            ToolNotFoundError: If no projection has that id
        """
        with self._lock:
            if local_id not in self._tools:
                raise ToolNotFoundError(local_id)
            del self._tools[local_id]

        if self._host_registry is not None and self._host_registry.has_tool(local_id):
            self._host_registry.unregister(local_id)
        logger.debug("mcp_projection_deleted", local_id=local_id)

    def get(self, local_id: str) -> Optional[ProjectedTool]:
        with self._lock:
            return self._tools.get(local_id)

    async def list(self, server_ref: Optional[str] = None) -> list[ProjectedTool]:
        """List projections sorted by local id, optionally for one server."""
        with self._lock:
            tools = [
                tool
                for tool in self._tools.values()
                if server_ref is None or tool.server_ref == server_ref
            ]
        return sorted(tools, key=lambda tool: tool.local_id)


class InMemoryAssociationStore:
    """Config-writer port keeping each server's owned tool ids in memory.

    ``on_write`` is awaited after every write and stands in for a host
    post-save hook; it may call back into the reconciler.
    """

    def __init__(self, on_write: Optional[WriteHook] = None) -> None:
        self._ids: dict[str, list[str]] = {}
        self._on_write = on_write
        self.write_count = 0

    async def read_associated_ids(self, server_ref: str) -> list[str]:
        return list(self._ids.get(server_ref, []))

    async def write_associated_ids(self, server_ref: str, ids: list[str]) -> None:
        self._ids[server_ref] = list(ids)
        self.write_count += 1
        if self._on_write is not None:
            await self._on_write(server_ref, list(ids))
