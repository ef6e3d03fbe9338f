"""Errors raised by the host tool layer.

Everything mcpbridge raises derives from :class:`ToolError`. A subclass sets
``error_code``; keyword context is kept on the instance and appended to
``str(error)``, so log lines and error results carry the same detail.
"""

from typing import Any


class ToolError(Exception):
    """Base error with a machine-readable code and free-form context."""

    error_code: str = "TOOL_ERROR"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        text = f"[{self.error_code}] {self.message}"
        if self.context:
            details = ", ".join(f"{key}={value}" for key, value in self.context.items())
            text = f"{text} ({details})"
        return text


class ToolNotFoundError(ToolError):
    """No tool, projection or capability exists under the given name."""

    error_code = "TOOL_NOT_FOUND"

    def __init__(self, tool_name: str, **context: Any) -> None:
        super().__init__(f"Tool '{tool_name}' not found", tool_name=tool_name, **context)


class ToolAlreadyRegisteredError(ToolError):
    """A tool or projection with the same name already exists."""

    error_code = "TOOL_ALREADY_REGISTERED"

    def __init__(self, tool_name: str, **context: Any) -> None:
        super().__init__(f"Tool '{tool_name}' already exists", tool_name=tool_name, **context)


class ToolValidationError(ToolError):
    """Arguments do not satisfy the tool's input schema."""

    error_code = "TOOL_VALIDATION_ERROR"

    def __init__(self, tool_name: str, validation_error: str, **context: Any) -> None:
        super().__init__(
            f"Invalid arguments for tool '{tool_name}': {validation_error}",
            tool_name=tool_name,
            validation_error=validation_error,
            **context,
        )


class ToolExecutionError(ToolError):
    """The tool ran but failed.

    Subclassed for failures reported by a remote server, so callers can catch
    every execution failure with one clause.
    """

    error_code = "TOOL_EXECUTION_ERROR"

    def __init__(self, tool_name: str, execution_error: str, **context: Any) -> None:
        super().__init__(
            f"Tool '{tool_name}' failed: {execution_error}",
            tool_name=tool_name,
            execution_error=execution_error,
            **context,
        )


class ToolTimeoutError(ToolError):
    """The tool did not finish within its timeout."""

    error_code = "TOOL_TIMEOUT"

    def __init__(self, tool_name: str, timeout_seconds: float, **context: Any) -> None:
        super().__init__(
            f"Tool '{tool_name}' timed out after {timeout_seconds}s",
            tool_name=tool_name,
            timeout_seconds=timeout_seconds,
            **context,
        )
