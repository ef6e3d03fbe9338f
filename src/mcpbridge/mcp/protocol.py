"""JSON-RPC envelopes and MCP wire models.

Protocol version constants come from the official ``mcp`` SDK so the set of
versions we accept moves together with the SDK release we depend on.
"""

import uuid
from typing import Any, Optional, Union

from mcp.shared.version import SUPPORTED_PROTOCOL_VERSIONS
from mcp.types import DEFAULT_NEGOTIATED_VERSION
from pydantic import BaseModel, ConfigDict, Field, field_validator

JSONRPC_VERSION = "2.0"

# Version sent in ``initialize`` and kept when the server answers with one we
# do not support.
DEFAULT_PROTOCOL_VERSION: str = DEFAULT_NEGOTIATED_VERSION
SUPPORTED_VERSIONS: frozenset[str] = frozenset(SUPPORTED_PROTOCOL_VERSIONS)

METHOD_INITIALIZE = "initialize"
METHOD_TOOLS_LIST = "tools/list"
METHOD_TOOLS_CALL = "tools/call"

HEADER_PROTOCOL_VERSION = "mcp-protocol-version"
HEADER_SESSION_ID = "mcp-session-id"

ACCEPT_JSON = "application/json"
ACCEPT_JSON_OR_STREAM = "application/json, text/event-stream"

RequestId = Union[str, int]


def is_supported_version(version: Optional[str]) -> bool:
    """Return True if ``version`` is a protocol version this client speaks."""
    return version in SUPPORTED_VERSIONS


def new_request_id() -> str:
    """Generate a client-side unique JSON-RPC request id."""
    return f"req_{uuid.uuid4().hex}"


def build_request(
    method: str, params: Optional[dict[str, Any]] = None, request_id: Optional[RequestId] = None
) -> dict[str, Any]:
    """Build a JSON-RPC 2.0 request envelope.

    Args:
        method: JSON-RPC method name
        params: Optional params object; omitted from the envelope when None
        request_id: Explicit id; a fresh unique id is generated when None

    Returns:
        The request as a plain dict ready to be serialised
    """
    message: dict[str, Any] = {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id if request_id is not None else new_request_id(),
        "method": method,
    }
    if params is not None:
        message["params"] = params
    return message


def select_response(payload: Any, request_id: RequestId) -> Any:
    """Pick the reply to ``request_id`` out of a decoded response body.

    A batch array is searched for the entry whose ``id`` matches; when none
    matches, the first element is used as a best effort. Any other payload is
    returned unchanged.
    """
    if not isinstance(payload, list):
        return payload
    if not payload:
        return None
    for message in payload:
        if isinstance(message, dict) and message.get("id") == request_id:
            return message
    return payload[0]


def rpc_error_message(error: Any) -> str:
    """Extract a human-readable message from a JSON-RPC error object."""
    if isinstance(error, dict):
        message = error.get("message")
        if message:
            return str(message)
        if "code" in error:
            return f"error code {error['code']}"
    elif error:
        return str(error)
    return "Unknown error"


class ClientInfo(BaseModel):
    """Client implementation info sent during the handshake."""

    model_config = ConfigDict(frozen=True)

    name: str = "mcpbridge"
    version: str = "0.1.0"


class InitializeParams(BaseModel):
    """Params of the ``initialize`` request."""

    protocol_version: str = Field(default=DEFAULT_PROTOCOL_VERSION, alias="protocolVersion")
    capabilities: dict[str, Any] = Field(default_factory=dict)
    client_info: ClientInfo = Field(default_factory=ClientInfo, alias="clientInfo")

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def _empty_object_schema() -> dict[str, Any]:
    return {"type": "object", "properties": {}}


class CapabilityDescriptor(BaseModel):
    """Immutable snapshot of one tool a server exposes.

    Built from a ``tools/list`` entry; ``inputSchema`` on the wire maps to
    ``input_schema`` here. Malformed schemas are replaced with an empty object
    schema rather than rejected.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str
    description: Optional[str] = None
    input_schema: dict[str, Any] = Field(default_factory=_empty_object_schema, alias="inputSchema")

    @field_validator("input_schema", mode="before")
    @classmethod
    def coerce_schema(cls, value: Any) -> dict[str, Any]:
        if not isinstance(value, dict):
            return _empty_object_schema()
        return value

    @field_validator("description", mode="before")
    @classmethod
    def coerce_description(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    def to_wire(self) -> dict[str, Any]:
        """Serialise back to the ``tools/list`` wire shape."""
        return self.model_dump(by_alias=True, exclude_none=True)
