"""Execution bridge between host tool calls and remote MCP servers.

The bridge resolves a server reference to an endpoint through the
credential port, keeps one protocol client per server, and flattens
``tools/call`` results into a single text payload. Failures never escape
:meth:`MCPExecutionBridge.execute`; they come back as
:class:`ExecutionErrorResult` values the caller can hand to an LLM.
"""

import asyncio
import json
from typing import Any, Callable, Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field

from mcpbridge.mcp.client import MCPClient
from mcpbridge.mcp.config import MCPClientSettings
from mcpbridge.mcp.ports import CredentialPort, ServerEndpoint
from mcpbridge.mcp.protocol import CapabilityDescriptor
from mcpbridge.observability.logging import get_logger
from mcpbridge.observability.metrics import get_metrics_collector
from mcpbridge.tools.errors import ToolError

logger = get_logger(__name__)

ClientFactory = Callable[[ServerEndpoint], MCPClient]


class NormalizedResult(BaseModel):
    """Successful tool call, flattened to text."""

    model_config = ConfigDict(frozen=True)

    capability_name: str
    server_ref: str
    content: str = Field(description="Tool output joined into one string")
    is_error: bool = Field(default=False, description="Mirrors the MCP isError flag")
    raw: Any = Field(default=None, repr=False, description="Result payload as received")

    @property
    def success(self) -> bool:
        return True


class ExecutionErrorResult(BaseModel):
    """Failed tool call (transport, protocol, server-side or configuration)."""

    model_config = ConfigDict(frozen=True)

    capability_name: str
    server_ref: str
    message: str
    error_code: str = "TOOL_ERROR"

    @property
    def success(self) -> bool:
        return False


ExecutionOutcome = Union[NormalizedResult, ExecutionErrorResult]


def normalize_result(result: Any) -> str:
    """Flatten a ``tools/call`` result into text.

    - ``content`` list: text blocks contribute their text, other blocks
      their compact JSON, joined with newlines
    - any other non-empty ``content``: its string form
    - otherwise: the whole result as indented JSON
    """
    content = result.get("content") if isinstance(result, dict) else None

    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
            else:
                parts.append(_compact_json(block))
        return "\n".join(parts)

    if content:
        return content if isinstance(content, str) else _compact_json(content)

    return json.dumps(result, indent=2, default=str)


def _compact_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), default=str)


class MCPExecutionBridge:
    """Executes capabilities on remote servers and discovers their tools.

    Usage::

        bridge = MCPExecutionBridge(StaticCredentialStore(config))
        outcome = await bridge.execute("github", "search", {"query": "mcp"})
        if outcome.success:
            print(outcome.content)
    """

    def __init__(
        self,
        credentials: CredentialPort,
        settings: Optional[MCPClientSettings] = None,
        *,
        client_factory: Optional[ClientFactory] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Args:
            credentials: Resolves server references to endpoints.
            settings: Timeout and client identity for created clients.
            client_factory: Overrides how clients are built (tests, custom auth).
            transport: httpx transport handed to default-built clients.
        """
        self._credentials = credentials
        self._settings = settings or MCPClientSettings()
        self._client_factory = client_factory or self._default_client
        self._transport = transport
        self._clients: dict[str, MCPClient] = {}
        self._clients_lock = asyncio.Lock()
        self._metrics = get_metrics_collector()

    def _default_client(self, endpoint: ServerEndpoint) -> MCPClient:
        return MCPClient(
            endpoint.url,
            endpoint.token,
            headers=endpoint.headers,
            timeout_seconds=self._settings.timeout_seconds,
            client_info=self._settings.client_info,
            protocol_version=self._settings.protocol_version,
            transport=self._transport,
        )

    async def get_client(self, server_ref: str) -> MCPClient:
        """Return the cached client for a server, creating it on first use.

        Raises:
            MCPConfigurationError: If the server has no configured endpoint.
        """
        async with self._clients_lock:
            client = self._clients.get(server_ref)
            if client is None:
                endpoint = await self._credentials.get_endpoint_and_credential(server_ref)
                client = self._client_factory(endpoint)
                self._clients[server_ref] = client
                logger.debug("mcp_client_created", server_ref=server_ref, server_url=endpoint.url)
            return client

    async def discover(self, server_ref: str) -> list[CapabilityDescriptor]:
        """List the capabilities a server exposes. Errors propagate."""
        client = await self.get_client(server_ref)
        return await client.list_tools()

    async def execute(
        self,
        server_ref: str,
        capability_name: str,
        arguments: Optional[dict[str, Any]] = None,
    ) -> ExecutionOutcome:
        """Call one capability and normalise its result.

        Returns:
            NormalizedResult on success, ExecutionErrorResult on any failure.
        """
        try:
            client = await self.get_client(server_ref)
            result = await client.call_tool(capability_name, arguments or {})
        except ToolError as exc:
            logger.error(
                "mcp_tool_execution_failed",
                server_ref=server_ref,
                capability_name=capability_name,
                error_code=exc.error_code,
                error=exc.message,
            )
            self._metrics.record_tool_execution(server_ref, "error")
            return ExecutionErrorResult(
                capability_name=capability_name,
                server_ref=server_ref,
                message=exc.message,
                error_code=exc.error_code,
            )

        is_error = bool(result.get("isError")) if isinstance(result, dict) else False
        self._metrics.record_tool_execution(server_ref, "tool_error" if is_error else "success")
        return NormalizedResult(
            capability_name=capability_name,
            server_ref=server_ref,
            content=normalize_result(result),
            is_error=is_error,
            raw=result,
        )

    def invalidate(self, server_ref: str) -> None:
        """Forget the cached client of a server (e.g. after a credential change)."""
        self._clients.pop(server_ref, None)

    async def close(self) -> None:
        """Drop every cached client."""
        self._clients.clear()
