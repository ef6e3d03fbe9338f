"""Interfaces to the host's storage and credential services.

The bridge never persists anything itself. It talks to the host through the
ports below; :mod:`mcpbridge.mcp.registry` ships in-memory implementations
used in tests and single-process deployments.
"""

from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from mcpbridge.mcp.config import MCPConfig
from mcpbridge.mcp.errors import MCPConfigurationError

if TYPE_CHECKING:
    from mcpbridge.mcp.expansion import ProjectedTool


class ServerEndpoint(BaseModel):
    """Where and how to reach one MCP server."""

    url: str
    token: Optional[str] = Field(default=None, repr=False)
    headers: dict[str, str] = Field(default_factory=dict)


@runtime_checkable
class ToolRegistryPort(Protocol):
    """Host registry holding projected tools."""

    async def list(self, server_ref: Optional[str] = None) -> list["ProjectedTool"]:
        """List projected tools, optionally only those of one server."""
        ...

    async def create(self, tool: "ProjectedTool") -> None:
        """Store a projected tool. Raises if ``local_id`` is already taken."""
        ...

    async def delete(self, local_id: str) -> None:
        """Remove a projected tool. Raises if it does not exist."""
        ...


@runtime_checkable
class ConfigWriterPort(Protocol):
    """Persists the list of tool ids a connector owns.

    Writing may itself trigger another reconciliation in the host (a
    post-save hook), which is why the reconciler guards against re-entry.
    """

    async def read_associated_ids(self, server_ref: str) -> list[str]: ...

    async def write_associated_ids(self, server_ref: str, ids: list[str]) -> None: ...


@runtime_checkable
class CredentialPort(Protocol):
    """Resolves a server reference to its endpoint and credential."""

    async def get_endpoint_and_credential(self, server_ref: str) -> ServerEndpoint:
        """Raises MCPConfigurationError if the server is unknown."""
        ...


class StaticCredentialStore:
    """Credential port backed by a loaded :class:`MCPConfig`."""

    def __init__(self, config: MCPConfig) -> None:
        self._config = config

    @property
    def server_refs(self) -> list[str]:
        return sorted(self._config.servers)

    async def get_endpoint_and_credential(self, server_ref: str) -> ServerEndpoint:
        server = self._config.servers.get(server_ref)
        if server is None:
            raise MCPConfigurationError(server_ref, "no endpoint configured")
        return ServerEndpoint(url=server.url, token=server.token, headers=dict(server.headers))
