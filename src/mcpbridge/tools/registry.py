"""Host tool registry.

Projected MCP capabilities are registered here as ordinary tools, next to
whatever else the host application provides. Every operation takes the
registry lock, so projections may be added from reconciliation while agents
look tools up.
"""

import threading
from typing import Optional

from mcpbridge.tools.base import BaseTool, ToolDefinition
from mcpbridge.tools.errors import ToolAlreadyRegisteredError, ToolNotFoundError
from mcpbridge.tools.types import ToolType


class ToolRegistry:
    """Thread-safe name -> tool mapping."""

    def __init__(self) -> None:
        self._tools: dict[str, BaseTool] = {}
        # Definitions are captured at registration; MCP tools build theirs on access.
        self._definitions: dict[str, ToolDefinition] = {}
        self._lock = threading.Lock()

    def register(self, tool: BaseTool, replace: bool = False) -> None:
        """Add a tool under its definition name.

        Raises:
            ToolAlreadyRegisteredError: If the name is taken and ``replace`` is False
        """
        definition = tool.definition
        with self._lock:
            if definition.name in self._tools and not replace:
                raise ToolAlreadyRegisteredError(definition.name)
            self._tools[definition.name] = tool
            self._definitions[definition.name] = definition

    def unregister(self, name: str) -> None:
        """Remove a tool.

        Raises:
            ToolNotFoundError: If no tool has that name
        """
        with self._lock:
            if self._tools.pop(name, None) is None:
                raise ToolNotFoundError(name)
            del self._definitions[name]

    def get(self, name: str) -> BaseTool:
        """Look a tool up by name.

        Raises:
            ToolNotFoundError: If no tool has that name
        """
        with self._lock:
            tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        return tool

    def has_tool(self, name: str) -> bool:
        with self._lock:
            return name in self._tools

    def list_tools(
        self, tool_type: Optional[ToolType] = None, server_ref: Optional[str] = None
    ) -> list[str]:
        """Sorted tool names, optionally limited to one type and/or one MCP server."""
        with self._lock:
            return sorted(
                name
                for name, definition in self._definitions.items()
                if (tool_type is None or definition.type == tool_type)
                and (server_ref is None or definition.server_ref == server_ref)
            )
