"""Tests for the tool exception hierarchy."""

import pytest

from mcpbridge.tools.errors import (
    ToolAlreadyRegisteredError,
    ToolError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolTimeoutError,
    ToolValidationError,
)


class TestToolError:
    """Tests for base ToolError exception."""

    def test_tool_error_with_message_only(self) -> None:
        """ToolError should format message with error code."""
        error = ToolError("Something went wrong")

        assert str(error) == "[TOOL_ERROR] Something went wrong"
        assert error.message == "Something went wrong"
        assert error.context == {}

    def test_tool_error_with_context(self) -> None:
        """ToolError should include context in formatted message."""
        error = ToolError("Operation failed", tool_name="search", server_ref="docs")

        assert str(error) == "[TOOL_ERROR] Operation failed (tool_name=search, server_ref=docs)"
        assert error.context == {"tool_name": "search", "server_ref": "docs"}

    def test_tool_error_can_be_raised(self) -> None:
        with pytest.raises(ToolError, match="Test error"):
            raise ToolError("Test error")


class TestToolErrorSubclasses:
    """Messages and codes of the generic tool errors."""

    def test_not_found(self) -> None:
        error = ToolNotFoundError("my_tool")
        assert "Tool 'my_tool' not found" in str(error)
        assert error.error_code == "TOOL_NOT_FOUND"

    def test_already_registered(self) -> None:
        error = ToolAlreadyRegisteredError("my_tool")
        assert "already exists" in str(error)
        assert error.error_code == "TOOL_ALREADY_REGISTERED"

    def test_validation(self) -> None:
        error = ToolValidationError("my_tool", "query: Field required")
        assert "Invalid arguments for tool 'my_tool': query: Field required" in str(error)
        assert error.context["validation_error"] == "query: Field required"
        assert error.error_code == "TOOL_VALIDATION_ERROR"

    def test_execution(self) -> None:
        error = ToolExecutionError("my_tool", "boom")
        assert "Tool 'my_tool' failed: boom" in str(error)

    def test_timeout(self) -> None:
        error = ToolTimeoutError("my_tool", 1.5)
        assert "timed out after 1.5s" in str(error)
        assert error.error_code == "TOOL_TIMEOUT"

    @pytest.mark.parametrize(
        "error",
        [
            ToolNotFoundError("t"),
            ToolAlreadyRegisteredError("t"),
            ToolValidationError("t", "v"),
            ToolExecutionError("t", "e"),
            ToolTimeoutError("t", 1),
        ],
    )
    def test_all_inherit_from_tool_error(self, error: ToolError) -> None:
        assert isinstance(error, ToolError)

