"""Pytest configuration and shared fixtures for the test suite."""

import json
from typing import Any, Optional

import httpx
import pytest

from mcpbridge.mcp.protocol import DEFAULT_PROTOCOL_VERSION

# Configure pytest-asyncio to use auto mode
pytest_plugins = ["pytest_asyncio"]


@pytest.fixture
def anyio_backend():
    """Configure anyio to use asyncio backend."""
    return "asyncio"


class FakeMCPServer:
    """In-process MCP server behind an ``httpx.MockTransport``.

    Answers ``initialize``, ``tools/list`` and ``tools/call`` with plain JSON
    and records every request it receives.
    """

    def __init__(
        self,
        tools: Optional[list[dict[str, Any]]] = None,
        session_id: Optional[str] = "session-1",
        protocol_version: str = DEFAULT_PROTOCOL_VERSION,
    ) -> None:
        self.tools = list(tools or [])
        self.session_id = session_id
        self.protocol_version = protocol_version
        self.call_results: dict[str, Any] = {}
        self.call_errors: dict[str, dict[str, Any]] = {}
        self.list_status: Optional[int] = None
        self.requests: list[httpx.Request] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def bodies(self) -> list[dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests]

    def methods(self) -> list[str]:
        return [body["method"] for body in self.bodies()]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = json.loads(request.content)
        method = body["method"]

        if method == "initialize":
            result: Any = {
                "protocolVersion": self.protocol_version,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": "fake", "version": "1.0.0"},
            }
        elif method == "tools/list":
            if self.list_status is not None:
                return httpx.Response(self.list_status, text="unavailable")
            result = {"tools": self.tools}
        elif method == "tools/call":
            name = body["params"]["name"]
            if name in self.call_errors:
                return self._reply({"jsonrpc": "2.0", "id": body["id"], "error": self.call_errors[name]})
            result = self.call_results.get(
                name, {"content": [{"type": "text", "text": f"called {name}"}]}
            )
        else:
            return self._reply(
                {"jsonrpc": "2.0", "id": body["id"], "error": {"code": -32601, "message": "not found"}}
            )

        return self._reply({"jsonrpc": "2.0", "id": body["id"], "result": result})

    def _reply(self, payload: dict[str, Any]) -> httpx.Response:
        headers = {"mcp-session-id": self.session_id} if self.session_id else {}
        return httpx.Response(200, json=payload, headers=headers)


def make_tool_entry(name: str, description: str = "", **properties: str) -> dict[str, Any]:
    """Build a ``tools/list`` entry whose properties are all required."""
    return {
        "name": name,
        "description": description,
        "inputSchema": {
            "type": "object",
            "properties": {key: {"type": kind} for key, kind in properties.items()},
            "required": list(properties),
        },
    }


@pytest.fixture
def fake_server() -> FakeMCPServer:
    return FakeMCPServer(
        tools=[
            make_tool_entry("search", "Search documents", query="string"),
            make_tool_entry("get_issue", "Fetch an issue", number="number"),
            make_tool_entry("list_repos"),
        ]
    )


@pytest.fixture
def tool_entry():
    """Factory for ``tools/list`` entries (see make_tool_entry)."""
    return make_tool_entry


@pytest.fixture
def server_factory():
    """Factory for additional fake servers."""
    return FakeMCPServer
