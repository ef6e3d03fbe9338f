"""Tests for tool base models and the BaseTool interface."""

from typing import Any, Optional

import pytest
from pydantic import ValidationError

from mcpbridge.tools.base import BaseTool, ToolCallContext, ToolDefinition, ToolResult
from mcpbridge.tools.errors import ToolValidationError
from mcpbridge.tools.types import ToolType

ISSUE_SCHEMA = {
    "type": "object",
    "properties": {"number": {"type": "number"}, "repo": {"type": "string"}},
    "required": ["number"],
}


class EchoTool(BaseTool):
    """Tool that returns its validated arguments."""

    def __init__(self, input_schema: Optional[dict[str, Any]] = None) -> None:
        self._definition = ToolDefinition(
            name="echo",
            type=ToolType.FUNCTION,
            description="Echo arguments",
            input_schema=input_schema or {"type": "object", "properties": {}},
        )

    @property
    def definition(self) -> ToolDefinition:
        return self._definition

    async def execute(self, context: ToolCallContext, arguments: dict[str, Any]) -> ToolResult:
        return ToolResult(success=True, result=self.validate_arguments(arguments), duration_ms=0)


# ---------------------------------------------------------------------------
# ToolDefinition
# ---------------------------------------------------------------------------


class TestToolDefinition:
    def test_defaults(self) -> None:
        definition = ToolDefinition(name="search", type=ToolType.MCP, description="Search")

        assert definition.timeout_ms == 120000
        assert definition.server_ref is None
        assert definition.input_schema == {"type": "object", "properties": {}}

    def test_accepts_projected_tool_id(self) -> None:
        definition = ToolDefinition(
            name="mcp__docs__search__h0123abcd",
            type=ToolType.MCP,
            description="Search",
            server_ref="docs",
        )
        assert definition.name == "mcp__docs__search__h0123abcd"
        assert definition.server_ref == "docs"

    @pytest.mark.parametrize("name", ["Search", "1search", "get-issue", ""])
    def test_rejects_non_snake_case_name(self, name: str) -> None:
        with pytest.raises(ValidationError, match="snake_case"):
            ToolDefinition(name=name, type=ToolType.MCP, description="x")

    def test_rejects_tiny_timeout(self) -> None:
        with pytest.raises(ValidationError):
            ToolDefinition(name="search", type=ToolType.MCP, description="x", timeout_ms=10)


# ---------------------------------------------------------------------------
# ToolResult
# ---------------------------------------------------------------------------


class TestToolResult:
    def test_success_result(self) -> None:
        result = ToolResult(success=True, result={"content": "ok"}, duration_ms=5)
        assert result.error is None

    def test_failure_requires_error(self) -> None:
        with pytest.raises(ValidationError, match="Error message is required"):
            ToolResult(success=False, duration_ms=5)

    def test_failure_with_error(self) -> None:
        result = ToolResult(success=False, error="boom", duration_ms=5)
        assert result.error == "boom"


# ---------------------------------------------------------------------------
# BaseTool argument validation
# ---------------------------------------------------------------------------


class TestBaseToolValidation:
    def test_cannot_instantiate_abstract(self) -> None:
        with pytest.raises(TypeError):
            BaseTool()  # type: ignore[abstract]

    def test_validator_built_from_input_schema(self) -> None:
        validator = EchoTool(ISSUE_SCHEMA).validator
        assert validator.required == ("number",)

    def test_valid_arguments_returned(self) -> None:
        tool = EchoTool(ISSUE_SCHEMA)
        assert tool.validate_arguments({"number": 7}) == {"number": 7}

    def test_missing_required(self) -> None:
        with pytest.raises(ToolValidationError, match="number") as exc_info:
            EchoTool(ISSUE_SCHEMA).validate_arguments({"repo": "x"})
        assert exc_info.value.context["tool_name"] == "echo"

    def test_wrong_type(self) -> None:
        with pytest.raises(ToolValidationError, match="repo"):
            EchoTool(ISSUE_SCHEMA).validate_arguments({"number": 1, "repo": 5})

    def test_empty_schema_accepts_anything(self) -> None:
        assert EchoTool().validate_arguments({"free": "form"}) == {"free": "form"}

    @pytest.mark.asyncio
    async def test_execute(self) -> None:
        context = ToolCallContext(correlation_id="c", task_id="t", agent_id="a")
        result = await EchoTool(ISSUE_SCHEMA).execute(context, {"number": 1})
        assert result.result == {"number": 1}
