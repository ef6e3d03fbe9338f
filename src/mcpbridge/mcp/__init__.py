"""MCP client bridge.

Connects to remote MCP servers over HTTP, discovers their tools, executes
them, and projects a selected subset into the host tool registry.

Typical usage::

    from mcpbridge.mcp import create_mcp_manager
    from mcpbridge.tools import ToolRegistry

    registry = ToolRegistry()
    mcp_manager = await create_mcp_manager(registry)

    # ... run agent ...

    if mcp_manager:
        await mcp_manager.close()
"""

from mcpbridge.mcp.client import MCPClient, ServerConnection
from mcpbridge.mcp.config import (
    MCPClientSettings,
    MCPConfig,
    MCPServerConfig,
    load_client_settings,
    load_mcp_config,
)
from mcpbridge.mcp.errors import (
    MCPConfigurationError,
    MCPConnectionError,
    MCPProtocolError,
    MCPToolCallError,
    ReconciliationError,
)
from mcpbridge.mcp.executor import (
    ExecutionErrorResult,
    ExecutionOutcome,
    MCPExecutionBridge,
    NormalizedResult,
    normalize_result,
)
from mcpbridge.mcp.expansion import (
    CapabilityBinding,
    ProjectedTool,
    expand_capabilities,
    project_capability,
)
from mcpbridge.mcp.manager import MCPServerManager, create_mcp_manager
from mcpbridge.mcp.naming import derive_server_name, make_projected_tool_id, to_snake_case
from mcpbridge.mcp.ports import (
    ConfigWriterPort,
    CredentialPort,
    ServerEndpoint,
    StaticCredentialStore,
    ToolRegistryPort,
)
from mcpbridge.mcp.protocol import CapabilityDescriptor, ClientInfo
from mcpbridge.mcp.reconciler import (
    CapabilityReconciler,
    InFlightGuard,
    ReconciliationResult,
    SelectionState,
)
from mcpbridge.mcp.registry import InMemoryAssociationStore, InMemoryToolRegistry
from mcpbridge.mcp.schema import ValidatorDescriptor, to_validator
from mcpbridge.mcp.tool import MCPTool

__all__ = [
    # Config
    "MCPClientSettings",
    "MCPConfig",
    "MCPServerConfig",
    "load_client_settings",
    "load_mcp_config",
    # Protocol client
    "MCPClient",
    "ServerConnection",
    "CapabilityDescriptor",
    "ClientInfo",
    # Errors
    "MCPConfigurationError",
    "MCPConnectionError",
    "MCPProtocolError",
    "MCPToolCallError",
    "ReconciliationError",
    # Schema bridge
    "ValidatorDescriptor",
    "to_validator",
    # Execution bridge
    "MCPExecutionBridge",
    "NormalizedResult",
    "ExecutionErrorResult",
    "ExecutionOutcome",
    "normalize_result",
    # Projection and reconciliation
    "ProjectedTool",
    "CapabilityBinding",
    "expand_capabilities",
    "project_capability",
    "CapabilityReconciler",
    "InFlightGuard",
    "ReconciliationResult",
    "SelectionState",
    # Ports and adapters
    "ToolRegistryPort",
    "ConfigWriterPort",
    "CredentialPort",
    "ServerEndpoint",
    "StaticCredentialStore",
    "InMemoryToolRegistry",
    "InMemoryAssociationStore",
    # Manager
    "MCPServerManager",
    "create_mcp_manager",
    # Naming
    "to_snake_case",
    "make_projected_tool_id",
    "derive_server_name",
    # Tool
    "MCPTool",
]
