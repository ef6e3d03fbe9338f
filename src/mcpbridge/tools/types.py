"""Shared type definitions for tools.

Kept separate from ``base`` so adapters can import the enum without pulling
in the pydantic models.
"""

from enum import Enum


class ToolType(str, Enum):
    """Type of tool being called."""

    FUNCTION = "function"
    API = "api"
    MCP = "mcp"
    OTHER = "other"
