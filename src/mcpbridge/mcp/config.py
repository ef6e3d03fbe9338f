"""MCP server and client configuration.

Server definitions are read from the ``MCPBRIDGE_MCP_CONFIG`` environment
variable (JSON string or file path) or passed in directly. Client settings
(timeout, client identity, requested protocol version) come from
``MCPBRIDGE_MCP_*`` variables.
"""

import json
import os
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from mcpbridge.mcp.protocol import ClientInfo


class MCPClientSettings(BaseModel):
    """Settings shared by every protocol client the bridge creates.

    Attributes:
        timeout_seconds: Per-request timeout
        client_name: ``clientInfo.name`` sent during the handshake
        client_version: ``clientInfo.version`` sent during the handshake
        protocol_version: Version requested in ``initialize`` (None = SDK default)
    """

    model_config = ConfigDict(frozen=True)

    timeout_seconds: float = Field(default=30.0, gt=0, le=600, description="Request timeout")
    client_name: str = Field(default="mcpbridge", description="Client name sent to servers")
    client_version: str = Field(default="0.1.0", description="Client version sent to servers")
    protocol_version: Optional[str] = Field(
        default=None, description="Protocol version to request (None = SDK default)"
    )

    @property
    def client_info(self) -> ClientInfo:
        return ClientInfo(name=self.client_name, version=self.client_version)


class MCPServerConfig(BaseModel):
    """Configuration for a single remote MCP server."""

    url: str = Field(description="Server endpoint URL")
    token: Optional[str] = Field(default=None, repr=False, description="Bearer token (sensitive)")
    headers: dict[str, str] = Field(default_factory=dict, description="Extra HTTP headers")
    selected_tools: list[str] = Field(
        default_factory=list, description="Capabilities to project into the tool registry"
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Require an absolute http(s) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"MCP server url must start with http:// or https://, got '{v}'")
        return v


class MCPConfig(BaseModel):
    """Top-level MCP configuration (Claude Desktop style JSON)."""

    servers: dict[str, MCPServerConfig] = Field(
        default_factory=dict,
        description="Map of server reference to server configuration",
    )


def load_mcp_config(
    config: Optional[Any] = None,
    env_var: str = "MCPBRIDGE_MCP_CONFIG",
) -> MCPConfig:
    """Load MCP server configuration.

    Priority (highest to lowest):
    1. ``config`` argument (dict or file path / JSON string)
    2. ``MCPBRIDGE_MCP_CONFIG`` environment variable (JSON string or file path)

    Example JSON::

        {
          "mcpServers": {
            "github": {
              "url": "https://mcp.example.com/mcp",
              "token": "...",
              "selected_tools": ["search_repos"]
            }
          }
        }

    Returns:
        MCPConfig parsed from the resolved source, or an empty MCPConfig.
    """
    raw: Optional[dict[str, Any]] = None

    if config is not None:
        if isinstance(config, dict):
            raw = config
        elif isinstance(config, str):
            raw = _load_from_file_or_json(config)
    else:
        env_value = os.environ.get(env_var)
        if env_value:
            raw = _load_from_file_or_json(env_value)

    if raw is None:
        return MCPConfig()

    return _parse_raw_config(raw)


def load_client_settings() -> MCPClientSettings:
    """Load client settings from the environment (and a ``.env`` file if present).

    Reads:
    - MCPBRIDGE_MCP_TIMEOUT_SECONDS
    - MCPBRIDGE_MCP_CLIENT_NAME
    - MCPBRIDGE_MCP_CLIENT_VERSION
    - MCPBRIDGE_MCP_PROTOCOL_VERSION
    """
    load_dotenv()

    values: dict[str, Any] = {}
    timeout = os.getenv("MCPBRIDGE_MCP_TIMEOUT_SECONDS")
    if timeout:
        values["timeout_seconds"] = float(timeout)

    for env_name, field_name in (
        ("MCPBRIDGE_MCP_CLIENT_NAME", "client_name"),
        ("MCPBRIDGE_MCP_CLIENT_VERSION", "client_version"),
        ("MCPBRIDGE_MCP_PROTOCOL_VERSION", "protocol_version"),
    ):
        env_value = os.getenv(env_name)
        if env_value:
            values[field_name] = env_value

    return MCPClientSettings(**values)


def _load_from_file_or_json(value: str) -> dict[str, Any]:
    """Load a JSON dict from a file path or raw JSON string."""
    if os.path.exists(value):
        with open(value) as f:
            return json.load(f)  # type: ignore[no-any-return]

    try:
        result = json.loads(value)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid MCP config JSON: {exc}") from exc
    if not isinstance(result, dict):
        raise ValueError(f"Expected a JSON object, got {type(result).__name__}")
    return result


def _parse_raw_config(raw: dict[str, Any]) -> MCPConfig:
    """Parse a raw config dict, accepting ``mcpServers``, ``servers`` or a bare map."""
    if "mcpServers" in raw:
        servers_raw = raw["mcpServers"]
    elif "servers" in raw:
        servers_raw = raw["servers"]
    else:
        servers_raw = raw

    servers = {name: MCPServerConfig(**server_data) for name, server_data in servers_raw.items()}
    return MCPConfig(servers=servers)
