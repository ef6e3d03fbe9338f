"""Tests for MCP configuration loading."""

import json
import os
import tempfile

import pytest
from pydantic import ValidationError

from mcpbridge.mcp.config import (
    MCPClientSettings,
    MCPConfig,
    MCPServerConfig,
    load_client_settings,
    load_mcp_config,
)


class TestMCPServerConfig:
    def test_valid_server(self) -> None:
        cfg = MCPServerConfig(url="https://mcp.example.com/mcp", selected_tools=["search"])
        assert cfg.url == "https://mcp.example.com/mcp"
        assert cfg.selected_tools == ["search"]
        assert cfg.token is None

    def test_non_http_url_rejected(self) -> None:
        with pytest.raises(ValueError, match="http:// or https://"):
            MCPServerConfig(url="ws://localhost/mcp")

    def test_token_hidden_from_repr(self) -> None:
        cfg = MCPServerConfig(url="http://x.com", token="very-secret")
        assert "very-secret" not in repr(cfg)

    def test_headers(self) -> None:
        cfg = MCPServerConfig(url="http://x.com", headers={"X-Api-Key": "k"})
        assert cfg.headers["X-Api-Key"] == "k"


class TestMCPClientSettings:
    def test_defaults(self) -> None:
        settings = MCPClientSettings()
        assert settings.timeout_seconds == 30.0
        assert settings.protocol_version is None
        assert settings.client_info.name == "mcpbridge"

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            MCPClientSettings(timeout_seconds=0)

    def test_frozen(self) -> None:
        settings = MCPClientSettings()
        with pytest.raises(ValidationError):
            settings.timeout_seconds = 5  # type: ignore[misc]


class TestLoadClientSettings:
    def test_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("MCPBRIDGE_MCP_TIMEOUT_SECONDS", "12.5")
        monkeypatch.setenv("MCPBRIDGE_MCP_CLIENT_NAME", "host-app")
        monkeypatch.setenv("MCPBRIDGE_MCP_CLIENT_VERSION", "3.1.0")
        monkeypatch.setenv("MCPBRIDGE_MCP_PROTOCOL_VERSION", "2025-03-26")

        settings = load_client_settings()

        assert settings.timeout_seconds == 12.5
        assert settings.client_info.name == "host-app"
        assert settings.client_info.version == "3.1.0"
        assert settings.protocol_version == "2025-03-26"

    def test_defaults_without_environment(self, monkeypatch) -> None:
        for name in (
            "MCPBRIDGE_MCP_TIMEOUT_SECONDS",
            "MCPBRIDGE_MCP_CLIENT_NAME",
            "MCPBRIDGE_MCP_CLIENT_VERSION",
            "MCPBRIDGE_MCP_PROTOCOL_VERSION",
        ):
            monkeypatch.delenv(name, raising=False)

        assert load_client_settings() == MCPClientSettings()


class TestLoadMcpConfig:
    def test_empty_returns_empty_config(self, monkeypatch) -> None:
        monkeypatch.delenv("MCPBRIDGE_MCP_CONFIG", raising=False)
        cfg = load_mcp_config()
        assert isinstance(cfg, MCPConfig)
        assert cfg.servers == {}

    def test_from_dict_claude_desktop_format(self) -> None:
        raw = {
            "mcpServers": {
                "github": {
                    "url": "https://mcp.github.com/mcp",
                    "token": "tok",
                    "selected_tools": ["search_repos"],
                }
            }
        }
        cfg = load_mcp_config(config=raw)
        assert cfg.servers["github"].token == "tok"
        assert cfg.servers["github"].selected_tools == ["search_repos"]

    def test_from_dict_servers_format(self) -> None:
        raw = {"servers": {"api": {"url": "http://localhost:8080/mcp"}}}
        cfg = load_mcp_config(config=raw)
        assert cfg.servers["api"].url == "http://localhost:8080/mcp"

    def test_bare_map(self) -> None:
        cfg = load_mcp_config(config={"api": {"url": "http://localhost:8080/mcp"}})
        assert list(cfg.servers) == ["api"]

    def test_from_json_string(self) -> None:
        raw = json.dumps({"mcpServers": {"test": {"url": "http://localhost/mcp"}}})
        cfg = load_mcp_config(config=raw)
        assert "test" in cfg.servers

    def test_from_file(self) -> None:
        raw = {"mcpServers": {"fs": {"url": "http://localhost:9000/mcp"}}}
        with tempfile.NamedTemporaryFile("w", suffix=".json", delete=False) as f:
            json.dump(raw, f)
            path = f.name
        try:
            cfg = load_mcp_config(config=path)
            assert "fs" in cfg.servers
        finally:
            os.unlink(path)

    def test_from_env_var(self, monkeypatch) -> None:
        monkeypatch.setenv(
            "MCPBRIDGE_MCP_CONFIG",
            json.dumps({"mcpServers": {"envsrv": {"url": "http://env.example.com/mcp"}}}),
        )
        cfg = load_mcp_config()
        assert "envsrv" in cfg.servers

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(ValueError, match="Invalid MCP config JSON"):
            load_mcp_config(config="{not json")

    def test_non_object_json_raises(self) -> None:
        with pytest.raises(ValueError, match="Expected a JSON object"):
            load_mcp_config(config="[1, 2]")
