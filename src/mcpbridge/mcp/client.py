"""HTTP protocol client for remote MCP servers.

One :class:`MCPClient` owns one logical connection to one server endpoint:
it performs the ``initialize`` handshake, remembers the negotiated protocol
version and session id, and sends correlated ``tools/list`` and
``tools/call`` requests. Replies may arrive as a single JSON-RPC object, a
batch array, or an event stream; all three are reduced to the message that
answers our request.
"""

import asyncio
import json
from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field

from mcpbridge.mcp.errors import MCPConnectionError, MCPProtocolError, MCPToolCallError
from mcpbridge.mcp.protocol import (
    ACCEPT_JSON,
    ACCEPT_JSON_OR_STREAM,
    DEFAULT_PROTOCOL_VERSION,
    HEADER_PROTOCOL_VERSION,
    HEADER_SESSION_ID,
    METHOD_INITIALIZE,
    METHOD_TOOLS_CALL,
    METHOD_TOOLS_LIST,
    CapabilityDescriptor,
    ClientInfo,
    InitializeParams,
    build_request,
    is_supported_version,
    rpc_error_message,
    select_response,
)
from mcpbridge.mcp.sse import looks_like_event_stream, parse_event_stream
from mcpbridge.observability.logging import get_logger
from mcpbridge.observability.metrics import get_metrics_collector
from mcpbridge.tools.errors import ToolError

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class ServerConnection(BaseModel):
    """Session state of one client/server pair.

    ``session_id`` is only ever set from an ``mcp-session-id`` response
    header. ``initialized`` only goes from False to True, except on reset().
    """

    endpoint_url: str
    token: Optional[str] = Field(default=None, repr=False)
    negotiated_protocol_version: str = DEFAULT_PROTOCOL_VERSION
    session_id: Optional[str] = None
    initialized: bool = False

    def reset(self) -> None:
        """Forget the negotiated session so the next call handshakes again."""
        self.negotiated_protocol_version = DEFAULT_PROTOCOL_VERSION
        self.session_id = None
        self.initialized = False


class MCPClient:
    """Client for a single MCP server reachable over HTTP POST.

    Usage::

        client = MCPClient("https://mcp.example.com/mcp", token="...")
        tools = await client.list_tools()          # handshakes on first use
        result = await client.call_tool("search", {"query": "mcp"})

    The handshake is serialised with an asyncio lock, so one instance may be
    shared by concurrent callers without sending two ``initialize`` requests.
    """

    def __init__(
        self,
        url: str,
        token: Optional[str] = None,
        *,
        headers: Optional[dict[str, str]] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client_info: Optional[ClientInfo] = None,
        protocol_version: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Args:
            url: Endpoint every request is POSTed to.
            token: Optional bearer credential.
            headers: Extra static headers sent with every request.
            timeout_seconds: Per-request timeout.
            client_info: ``clientInfo`` sent during the handshake.
            protocol_version: Version requested in ``initialize`` (None = SDK default).
            transport: Optional httpx transport, mainly for tests.
        """
        self._connection = ServerConnection(endpoint_url=url, token=token)
        self._extra_headers = dict(headers or {})
        self._timeout_seconds = timeout_seconds
        self._client_info = client_info or ClientInfo()
        self._requested_version = protocol_version or DEFAULT_PROTOCOL_VERSION
        self._transport = transport
        self._init_lock = asyncio.Lock()
        self._metrics = get_metrics_collector()

    @property
    def url(self) -> str:
        return self._connection.endpoint_url

    @property
    def connection(self) -> ServerConnection:
        """Current session state (read it, do not mutate it)."""
        return self._connection

    @property
    def is_initialized(self) -> bool:
        return self._connection.initialized

    def reset(self) -> None:
        """Drop session state; the next call performs a fresh handshake."""
        self._connection.reset()

    # ------------------------------------------------------------------
    # MCP operations
    # ------------------------------------------------------------------

    async def initialize(
        self,
        client_info: Optional[ClientInfo] = None,
        protocol_version: Optional[str] = None,
    ) -> None:
        """Perform the ``initialize`` handshake once.

        Calling this on an initialised client is a no-op.

        Raises:
            MCPConnectionError: On transport failure.
            MCPProtocolError: If the reply is malformed or a JSON-RPC error.
        """
        if self._connection.initialized:
            return

        async with self._init_lock:
            if self._connection.initialized:
                return

            params = InitializeParams(
                protocol_version=protocol_version or self._requested_version,
                client_info=client_info or self._client_info,
            )
            result = await self._request(
                METHOD_INITIALIZE, params.to_wire(), accept=ACCEPT_JSON_OR_STREAM
            )

            server_version = result.get("protocolVersion") if isinstance(result, dict) else None
            if server_version:
                if is_supported_version(server_version):
                    self._connection.negotiated_protocol_version = server_version
                else:
                    logger.warning(
                        "mcp_protocol_version_unsupported",
                        server_url=self.url,
                        server_version=server_version,
                        default_version=self._connection.negotiated_protocol_version,
                    )

            self._connection.initialized = True
            logger.debug(
                "mcp_client_initialized",
                server_url=self.url,
                protocol_version=self._connection.negotiated_protocol_version,
                session_id=self._connection.session_id,
            )

    async def list_tools(self) -> list[CapabilityDescriptor]:
        """Discover the tools the server exposes (``tools/list``).

        The first attempt asks for plain JSON only. If that fails for any
        reason other than a JSON-RPC error reply, the request is retried once
        accepting an event stream as well.

        Returns:
            Capability descriptors; empty if the server reports no tools.
        """
        await self._ensure_initialized()

        try:
            result = await self._request(METHOD_TOOLS_LIST, accept=ACCEPT_JSON)
        except (MCPConnectionError, MCPProtocolError) as exc:
            if isinstance(exc, MCPProtocolError) and exc.is_rpc_error:
                raise
            logger.info(
                "mcp_tools_list_retry_with_event_stream",
                server_url=self.url,
                error=str(exc),
            )
            result = await self._request(METHOD_TOOLS_LIST, accept=ACCEPT_JSON_OR_STREAM)

        return self._parse_tools(result)

    async def call_tool(self, name: str, arguments: Optional[dict[str, Any]] = None) -> Any:
        """Invoke a tool (``tools/call``) and return its ``result`` verbatim.

        Raises:
            MCPToolCallError: If the server answers with a JSON-RPC error.
            MCPConnectionError: On transport failure.
            MCPProtocolError: If the reply cannot be decoded.
        """
        await self._ensure_initialized()

        params = {"name": name, "arguments": arguments or {}}
        try:
            return await self._request(METHOD_TOOLS_CALL, params, accept=ACCEPT_JSON_OR_STREAM)
        except MCPProtocolError as exc:
            if exc.is_rpc_error:
                raise MCPToolCallError(
                    name, rpc_error_message(exc.rpc_error), server_url=self.url
                ) from exc
            raise

    # ------------------------------------------------------------------
    # JSON-RPC transport
    # ------------------------------------------------------------------

    async def _ensure_initialized(self) -> None:
        if not self._connection.initialized:
            await self.initialize()

    def _headers(self, accept: str) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": accept,
            **self._extra_headers,
        }
        if self._connection.token:
            headers["Authorization"] = f"Bearer {self._connection.token}"
        if self._connection.initialized:
            headers[HEADER_PROTOCOL_VERSION] = self._connection.negotiated_protocol_version
            if self._connection.session_id:
                headers[HEADER_SESSION_ID] = self._connection.session_id
        return headers

    async def _request(
        self,
        method: str,
        params: Optional[dict[str, Any]] = None,
        *,
        accept: str = ACCEPT_JSON_OR_STREAM,
    ) -> Any:
        """Send one request and return the ``result`` of the matching reply."""
        try:
            result = await self._exchange(method, params, accept)
        except ToolError as exc:
            self._metrics.record_request(method, "error")
            logger.warning("mcp_request_failed", server_url=self.url, method=method, error=str(exc))
            raise
        self._metrics.record_request(method, "success")
        return result

    async def _exchange(self, method: str, params: Optional[dict[str, Any]], accept: str) -> Any:
        request = build_request(method, params)

        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=self._timeout_seconds
            ) as client:
                response = await client.post(self.url, json=request, headers=self._headers(accept))
        except httpx.TimeoutException as exc:
            raise MCPConnectionError(
                self.url, f"request timed out after {self._timeout_seconds}s", method=method
            ) from exc
        except httpx.RequestError as exc:
            raise MCPConnectionError(self.url, f"request failed: {exc}", method=method) from exc

        self._capture_session(response)

        message = select_response(self._decode(method, response), request["id"])
        if not isinstance(message, dict):
            raise MCPProtocolError(method, "response is not a JSON-RPC message")

        error = message.get("error")
        if error:
            raise MCPProtocolError(method, rpc_error_message(error), rpc_error=_as_dict(error))

        return message.get("result")

    def _decode(self, method: str, response: httpx.Response) -> Any:
        """Decode a response body as JSON or as an event stream."""
        body = response.text
        try:
            if looks_like_event_stream(response.headers.get("content-type"), body):
                payload = parse_event_stream(body)
            else:
                payload = json.loads(body)
        except ValueError as exc:
            if response.is_error:
                raise self._http_status_error(method, response) from exc
            raise MCPProtocolError(method, f"unparseable response body: {exc}") from exc

        if response.is_error and not _carries_rpc_error(payload):
            raise self._http_status_error(method, response)
        return payload

    def _http_status_error(self, method: str, response: httpx.Response) -> MCPConnectionError:
        return MCPConnectionError(
            self.url,
            f"HTTP {response.status_code} {response.reason_phrase}".strip(),
            method=method,
            status_code=response.status_code,
        )

    def _capture_session(self, response: httpx.Response) -> None:
        values = response.headers.get_list(HEADER_SESSION_ID)
        if values and values[0] and values[0] != self._connection.session_id:
            self._connection.session_id = values[0]
            logger.debug("mcp_session_established", server_url=self.url, session_id=values[0])

    def _parse_tools(self, result: Any) -> list[CapabilityDescriptor]:
        raw_tools = result.get("tools") if isinstance(result, dict) else None
        if not raw_tools:
            return []
        if not isinstance(raw_tools, list):
            raise MCPProtocolError(METHOD_TOOLS_LIST, "tools is not a list")

        tools: list[CapabilityDescriptor] = []
        for raw in raw_tools:
            if not isinstance(raw, dict) or not isinstance(raw.get("name"), str):
                logger.warning("mcp_tool_entry_skipped", server_url=self.url, entry=repr(raw)[:200])
                continue
            tools.append(CapabilityDescriptor.model_validate(raw))
        return tools


def _as_dict(error: Any) -> dict[str, Any]:
    if isinstance(error, dict):
        return error
    return {"message": str(error)}


def _carries_rpc_error(payload: Any) -> bool:
    messages = payload if isinstance(payload, list) else [payload]
    return any(isinstance(m, dict) and m.get("error") for m in messages)
