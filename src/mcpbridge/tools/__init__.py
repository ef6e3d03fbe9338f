"""Host tool layer for mcpbridge.

Defines the tool interface projected MCP capabilities are exposed through,
the registry they live in, and the shared error hierarchy.
"""

from mcpbridge.tools.base import BaseTool, ToolCallContext, ToolDefinition, ToolResult
from mcpbridge.tools.errors import (
    ToolAlreadyRegisteredError,
    ToolError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolTimeoutError,
    ToolValidationError,
)
from mcpbridge.tools.registry import ToolRegistry
from mcpbridge.tools.types import ToolType

__all__ = [
    # Base classes and models
    "BaseTool",
    "ToolDefinition",
    "ToolCallContext",
    "ToolResult",
    "ToolType",
    # Registry
    "ToolRegistry",
    # Errors
    "ToolError",
    "ToolNotFoundError",
    "ToolAlreadyRegisteredError",
    "ToolValidationError",
    "ToolExecutionError",
    "ToolTimeoutError",
]
