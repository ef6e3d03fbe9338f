"""MCP-specific error types.

These extend the ToolError hierarchy so MCP failures integrate with the
host's error handling and carry the server/capability they concern.
"""

from typing import Any, Optional

from mcpbridge.tools.errors import ToolError, ToolExecutionError


class MCPConnectionError(ToolError):
    """Raised on transport failure: network error, timeout or HTTP error status."""

    error_code = "MCP_CONNECTION_ERROR"

    def __init__(self, server_url: str, reason: str, **context: Any) -> None:
        message = f"MCP connection failed for server '{server_url}': {reason}"
        super().__init__(message, server_url=server_url, reason=reason, **context)


class MCPProtocolError(ToolError):
    """Raised when a response is malformed or carries a JSON-RPC error object.

    ``rpc_error`` holds the server's error object when the failure is a
    well-formed JSON-RPC error reply rather than an undecodable body.
    """

    error_code = "MCP_PROTOCOL_ERROR"

    def __init__(
        self,
        method: str,
        reason: str,
        rpc_error: Optional[dict[str, Any]] = None,
        **context: Any,
    ) -> None:
        message = f"MCP {method} failed: {reason}"
        super().__init__(message, method=method, reason=reason, **context)
        self.rpc_error = rpc_error

    @property
    def is_rpc_error(self) -> bool:
        """Whether the server answered with a JSON-RPC error object."""
        return self.rpc_error is not None


class MCPToolCallError(ToolExecutionError):
    """Raised when the server reports failure of a specific ``tools/call``."""

    error_code = "MCP_TOOL_CALL_ERROR"

    def __init__(self, tool_name: str, reason: str, **context: Any) -> None:
        super().__init__(tool_name, reason, **context)
        self.reason = reason


class MCPConfigurationError(ToolError):
    """Raised when no endpoint is configured for a server reference."""

    error_code = "MCP_CONFIGURATION_ERROR"

    def __init__(self, server_ref: str, reason: str, **context: Any) -> None:
        message = f"MCP server '{server_ref}' is not usable: {reason}"
        super().__init__(message, server_ref=server_ref, reason=reason, **context)


class ReconciliationError(ToolError):
    """Raised when a reconciliation pass is aborted because discovery failed."""

    error_code = "MCP_RECONCILIATION_ERROR"

    def __init__(self, server_ref: str, reason: str, **context: Any) -> None:
        message = f"Reconciliation aborted for server '{server_ref}': {reason}"
        super().__init__(message, server_ref=server_ref, reason=reason, **context)
