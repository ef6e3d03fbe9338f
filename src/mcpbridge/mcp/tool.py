"""MCPTool: one projected MCP capability exposed as a host BaseTool.

- The registry name is the projected tool's local id
  (``mcp__{server}__{capability}``).
- The raw JSON Schema is embedded in the description so an LLM can read it,
  and is also carried as ``input_schema``.
- Arguments are checked locally with the validator derived from the schema
  before anything is sent to the server.
"""

import asyncio
import json
import time
from typing import Any

from mcpbridge.mcp.executor import ExecutionErrorResult
from mcpbridge.mcp.expansion import CapabilityBinding, ProjectedTool
from mcpbridge.mcp.schema import ValidatorDescriptor
from mcpbridge.tools.base import BaseTool, ToolCallContext, ToolDefinition, ToolResult
from mcpbridge.tools.errors import ToolTimeoutError, ToolValidationError
from mcpbridge.tools.types import ToolType


class MCPTool(BaseTool):
    """Host tool wrapper for a single projected MCP capability.

    Instances are created by the in-memory registry when a capability is
    projected; they should not normally be instantiated directly.
    """

    def __init__(self, binding: CapabilityBinding, timeout_ms: int = 60000) -> None:
        """
        Args:
            binding: Projected tool plus its bound execution handler.
            timeout_ms: Execution timeout in milliseconds.
        """
        self._binding = binding
        self._timeout_ms = timeout_ms

    @property
    def projected_tool(self) -> ProjectedTool:
        return self._binding.projected_tool

    @property
    def definition(self) -> ToolDefinition:
        tool = self._binding.projected_tool
        schema_json = json.dumps(tool.input_schema, indent=2)
        full_description = (
            f"{tool.description}\n\n"
            f"MCP server: {tool.server_ref}\n"
            f"Parameters (JSON Schema):\n{schema_json}"
        )
        return ToolDefinition(
            name=tool.local_id,
            type=ToolType.MCP,
            description=full_description,
            input_schema=tool.input_schema or {"type": "object", "properties": {}},
            server_ref=tool.server_ref,
            timeout_ms=self._timeout_ms,
        )

    @property
    def validator(self) -> ValidatorDescriptor:
        return self._binding.validator

    async def execute(self, context: ToolCallContext, arguments: dict[str, Any]) -> ToolResult:
        """Call the remote capability and return a ToolResult.

        Args:
            context: Host execution context (not forwarded to the MCP server).
            arguments: Tool arguments forwarded to the MCP server.

        Returns:
            ToolResult with ``{"content": ..., "is_error": ...}`` on success.
        """
        start = time.time()
        timeout_seconds = self._timeout_ms / 1000

        try:
            self.validate_arguments(arguments)
            outcome = await asyncio.wait_for(self._binding(arguments), timeout=timeout_seconds)
        except ToolValidationError as exc:
            return ToolResult(success=False, error=str(exc), duration_ms=_elapsed_ms(start))
        except asyncio.TimeoutError:
            error = ToolTimeoutError(self.projected_tool.local_id, timeout_seconds)
            return ToolResult(success=False, error=str(error), duration_ms=_elapsed_ms(start))

        if isinstance(outcome, ExecutionErrorResult):
            return ToolResult(success=False, error=outcome.message, duration_ms=_elapsed_ms(start))

        return ToolResult(
            success=True,
            result={"content": outcome.content, "is_error": outcome.is_error},
            duration_ms=_elapsed_ms(start),
        )


def _elapsed_ms(start: float) -> int:
    return int((time.time() - start) * 1000)
