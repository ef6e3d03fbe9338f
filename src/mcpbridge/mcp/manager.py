"""MCPServerManager: server-level operations over the bridge.

Wires the execution bridge, the projected-tool registry and the reconciler
together for every configured server, and offers the operations an admin
surface needs: listing servers with their tool counts, inspecting one server,
changing its selection, validating a capability and removing a server.
"""

from typing import Iterable, Optional

import httpx
from pydantic import BaseModel, Field

from mcpbridge.mcp.config import MCPClientSettings, MCPConfig, load_client_settings, load_mcp_config
from mcpbridge.mcp.executor import MCPExecutionBridge
from mcpbridge.mcp.expansion import default_description
from mcpbridge.mcp.naming import derive_server_name, make_projected_tool_id
from mcpbridge.mcp.ports import ConfigWriterPort, StaticCredentialStore, ToolRegistryPort
from mcpbridge.mcp.protocol import CapabilityDescriptor
from mcpbridge.mcp.reconciler import CapabilityReconciler, ReconciliationResult
from mcpbridge.mcp.registry import InMemoryAssociationStore, InMemoryToolRegistry
from mcpbridge.observability.logging import get_logger
from mcpbridge.tools.errors import ToolError, ToolNotFoundError
from mcpbridge.tools.registry import ToolRegistry

logger = get_logger(__name__)


class ServerSummary(BaseModel):
    """One row of :meth:`MCPServerManager.list_servers`."""

    server_ref: str
    name: str
    url: str
    connected: bool = Field(description="Discovery succeeded and returned at least one tool")
    available_tool_count: int = 0
    active_tool_count: int = 0
    error: Optional[str] = None


class ServerToolInfo(BaseModel):
    name: str
    description: str
    local_id: str
    active: bool = Field(description="Whether the capability is currently projected")


class ServerDetails(BaseModel):
    server_ref: str
    name: str
    url: str
    connected: bool
    tools: list[ServerToolInfo] = Field(default_factory=list)


class MCPServerManager:
    """Manages projections for every configured MCP server.

    Usage::

        manager = MCPServerManager(config, host_registry=registry)
        await manager.sync_all()      # project each server's selected_tools
        # ... agents run ...
        await manager.close()
    """

    def __init__(
        self,
        config: MCPConfig,
        *,
        settings: Optional[MCPClientSettings] = None,
        host_registry: Optional[ToolRegistry] = None,
        registry: Optional[ToolRegistryPort] = None,
        config_writer: Optional[ConfigWriterPort] = None,
        bridge: Optional[MCPExecutionBridge] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config
        self._bridge = bridge or MCPExecutionBridge(
            StaticCredentialStore(config), settings, transport=transport
        )
        self._registry = registry or InMemoryToolRegistry(host_registry, self._bridge)
        self._config_writer = config_writer or InMemoryAssociationStore()
        self._reconciler = CapabilityReconciler(self._bridge, self._registry, self._config_writer)
        self._selections: dict[str, frozenset[str]] = {
            server_ref: frozenset(server.selected_tools)
            for server_ref, server in config.servers.items()
        }

    @property
    def server_refs(self) -> list[str]:
        return sorted(self._config.servers)

    @property
    def reconciler(self) -> CapabilityReconciler:
        return self._reconciler

    def selection(self, server_ref: str) -> frozenset[str]:
        return self._selections.get(server_ref, frozenset())

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def sync_all(self) -> dict[str, ReconciliationResult]:
        """Reconcile every configured server against its selection.

        Failed servers are logged and skipped; they do not abort startup.
        """
        results: dict[str, ReconciliationResult] = {}
        for server_ref in self.server_refs:
            try:
                results[server_ref] = await self._reconciler.reconcile(
                    server_ref, self.selection(server_ref)
                )
            except ToolError as exc:
                logger.error("mcp_server_sync_failed", server_ref=server_ref, error=str(exc))
        return results

    async def list_servers(self) -> list[ServerSummary]:
        """Summarise every configured server, probing each with discovery."""
        summaries = []
        for server_ref in self.server_refs:
            url = self._config.servers[server_ref].url
            active = len(await self._registry.list(server_ref))
            try:
                tools = await self._bridge.discover(server_ref)
            except ToolError as exc:
                logger.warning("mcp_server_unreachable", server_ref=server_ref, error=str(exc))
                summaries.append(
                    ServerSummary(
                        server_ref=server_ref,
                        name=derive_server_name(url),
                        url=url,
                        connected=False,
                        active_tool_count=active,
                        error=exc.message,
                    )
                )
                continue

            summaries.append(
                ServerSummary(
                    server_ref=server_ref,
                    name=derive_server_name(url),
                    url=url,
                    connected=len(tools) > 0,
                    available_tool_count=len(tools),
                    active_tool_count=active,
                )
            )
        return summaries

    async def server_details(self, server_ref: str) -> ServerDetails:
        """Describe one server and which of its tools are projected.

        Raises:
            MCPConfigurationError: If the server is not configured
            MCPConnectionError, MCPProtocolError: If discovery fails
        """
        tools = await self._bridge.discover(server_ref)
        active_ids = {tool.local_id for tool in await self._registry.list(server_ref)}
        url = self._config.servers[server_ref].url

        infos = []
        for tool in tools:
            local_id = make_projected_tool_id(server_ref, tool.name)
            infos.append(
                ServerToolInfo(
                    name=tool.name,
                    description=tool.description or default_description(tool.name),
                    local_id=local_id,
                    active=local_id in active_ids,
                )
            )

        return ServerDetails(
            server_ref=server_ref,
            name=derive_server_name(url),
            url=url,
            connected=len(tools) > 0,
            tools=infos,
        )

    async def update_selection(
        self, server_ref: str, capability_names: Iterable[str]
    ) -> ReconciliationResult:
        """Replace a server's selection and reconcile its projections."""
        selected = frozenset(capability_names)
        self._selections[server_ref] = selected
        return await self._reconciler.reconcile(server_ref, selected)

    async def validate_capability(self, server_ref: str, capability_name: str) -> CapabilityDescriptor:
        """Check that a server exposes a capability before it is selected.

        Raises:
            ToolNotFoundError: If the server does not expose the capability
        """
        for tool in await self._bridge.discover(server_ref):
            if tool.name == capability_name:
                return tool
        raise ToolNotFoundError(capability_name, server_ref=server_ref)

    async def delete_server(self, server_ref: str) -> ReconciliationResult:
        """Remove every projection of a server and forget its client."""
        result = await self._reconciler.purge(server_ref)
        self._selections.pop(server_ref, None)
        self._bridge.invalidate(server_ref)
        return result

    async def close(self) -> None:
        await self._bridge.close()


async def create_mcp_manager(
    host_registry: Optional[ToolRegistry] = None,
    config: Optional[MCPConfig] = None,
    settings: Optional[MCPClientSettings] = None,
) -> Optional[MCPServerManager]:
    """Convenience factory: load config, create the manager, sync all servers.

    Args:
        host_registry: Registry projected tools are mirrored into.
        config: Optional pre-loaded MCPConfig. If None, loads from the
                MCPBRIDGE_MCP_CONFIG environment variable.
        settings: Optional client settings. If None, loads from the environment.

    Returns:
        Synced MCPServerManager, or None if no servers are configured.
    """
    resolved_config = config or load_mcp_config()

    if not resolved_config.servers:
        logger.debug("mcp_no_servers_configured")
        return None

    manager = MCPServerManager(
        resolved_config,
        settings=settings or load_client_settings(),
        host_registry=host_registry,
    )
    await manager.sync_all()
    return manager
