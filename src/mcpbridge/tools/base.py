"""Tool interface shared by the host and projected MCP capabilities.

A tool publishes a :class:`ToolDefinition` (name, type, JSON input schema,
timeout) and executes against a :class:`ToolCallContext`, returning a
:class:`ToolResult`. Argument checking is derived from the definition's input
schema through the schema bridge, so every tool validates the same way.
"""

import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from mcpbridge.tools.types import ToolType

if TYPE_CHECKING:
    from mcpbridge.mcp.schema import ValidatorDescriptor

TOOL_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")


def _empty_object_schema() -> dict[str, Any]:
    return {"type": "object", "properties": {}}


class ToolDefinition(BaseModel):
    """What a registered tool is and how to call it."""

    name: str = Field(description="Registry name, snake_case")
    type: ToolType = Field(description="Kind of tool")
    description: str = Field(description="Description shown to the model")
    input_schema: dict[str, Any] = Field(
        default_factory=_empty_object_schema,
        description="JSON Schema of the arguments",
    )
    server_ref: Optional[str] = Field(
        default=None, description="MCP server the tool is projected from, if any"
    )
    timeout_ms: int = Field(default=120000, ge=1000, description="Execution timeout in milliseconds")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Registry names are snake_case and start with a letter."""
        if not TOOL_NAME_PATTERN.match(v):
            raise ValueError(
                f"Tool name '{v}' must be snake_case (lowercase letters, "
                "numbers, underscores, starting with a letter)"
            )
        return v


class ToolCallContext(BaseModel):
    """Who is calling a tool, for correlation in logs."""

    correlation_id: str = Field(description="Correlates the call with its result")
    task_id: str = Field(description="Task the call belongs to")
    agent_id: str = Field(description="Agent making the call")


class ToolResult(BaseModel):
    """Outcome of one tool execution."""

    success: bool = Field(description="Whether the tool execution succeeded")
    result: Optional[dict[str, Any]] = Field(default=None, description="Payload on success")
    error: Optional[str] = Field(default=None, description="Error message on failure")
    duration_ms: int = Field(ge=0, description="Execution duration in milliseconds")

    def model_post_init(self, __context: Any) -> None:
        if not self.success and not self.error:
            raise ValueError("Error message is required when success is False")


class BaseTool(ABC):
    """Abstract base class for everything a :class:`~mcpbridge.tools.registry.ToolRegistry` holds."""

    @property
    @abstractmethod
    def definition(self) -> ToolDefinition:
        """Definition the tool is registered under."""

    @abstractmethod
    async def execute(self, context: ToolCallContext, arguments: dict[str, Any]) -> ToolResult:
        """Run the tool.

        Args:
            context: Caller information
            arguments: Tool arguments, checked with :meth:`validate_arguments`

        Returns:
            ToolResult describing the outcome
        """

    @property
    def validator(self) -> "ValidatorDescriptor":
        """Argument validator built from ``definition.input_schema``.

        Tools that already hold a validator override this to skip the rebuild.
        """
        from mcpbridge.mcp.schema import to_validator

        return to_validator(self.definition.input_schema)

    def validate_arguments(self, arguments: Optional[dict[str, Any]]) -> dict[str, Any]:
        """Check arguments against the input schema.

        Returns:
            The validated arguments, keyed by their original names

        Raises:
            ToolValidationError: If the arguments do not satisfy the schema
        """
        from mcpbridge.mcp.schema import summarize_errors
        from mcpbridge.tools.errors import ToolValidationError

        try:
            return self.validator.validate(arguments)
        except ValidationError as exc:
            raise ToolValidationError(
                tool_name=self.definition.name,
                validation_error=summarize_errors(exc),
            ) from exc
