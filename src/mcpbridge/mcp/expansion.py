"""Expansion of one server connection into per-capability bindings.

A connector exposes N capabilities; each selected one becomes a
:class:`ProjectedTool` with its own local id and validator, plus a handler
already bound to the capability name. Bindings are built once per discovery
cycle, so calls dispatch by lookup rather than by name matching.
"""

import functools
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, InstanceOf

from mcpbridge.mcp.executor import ExecutionOutcome, MCPExecutionBridge
from mcpbridge.mcp.naming import make_projected_tool_id
from mcpbridge.mcp.protocol import CapabilityDescriptor
from mcpbridge.mcp.schema import ValidatorDescriptor, to_validator
from mcpbridge.observability.logging import get_logger

logger = get_logger(__name__)

CapabilityHandler = Callable[[Optional[dict[str, Any]]], Awaitable[ExecutionOutcome]]


def default_description(capability_name: str) -> str:
    return f"MCP tool: {capability_name}"


class ProjectedTool(BaseModel):
    """A remote capability materialised as an entry of the host registry."""

    model_config = ConfigDict(frozen=True)

    local_id: str = Field(description="Registry id, derived from server_ref and capability_name")
    server_ref: str
    capability_name: str
    description: str
    input_schema: dict[str, Any] = Field(default_factory=dict)
    validator: InstanceOf[ValidatorDescriptor] = Field(repr=False)


@dataclass(frozen=True)
class CapabilityBinding:
    """A projected tool together with the handler that executes it."""

    projected_tool: ProjectedTool
    handler: CapabilityHandler

    @property
    def validator(self) -> ValidatorDescriptor:
        return self.projected_tool.validator

    async def __call__(self, arguments: Optional[dict[str, Any]] = None) -> ExecutionOutcome:
        return await self.handler(arguments)


def project_capability(server_ref: str, capability: CapabilityDescriptor) -> ProjectedTool:
    """Build the projected tool for one discovered capability."""
    local_id = make_projected_tool_id(server_ref, capability.name)
    return ProjectedTool(
        local_id=local_id,
        server_ref=server_ref,
        capability_name=capability.name,
        description=capability.description or default_description(capability.name),
        input_schema=capability.input_schema,
        validator=to_validator(capability.input_schema, model_name=_model_name(local_id)),
    )


def expand_capabilities(
    server_ref: str,
    capabilities: Iterable[CapabilityDescriptor],
    selected: Iterable[str],
    bridge: MCPExecutionBridge,
    errors: Optional[dict[str, str]] = None,
) -> dict[str, CapabilityBinding]:
    """Bind every selected capability the server exposes.

    Selected names the server does not report are skipped with a warning.
    A capability that cannot be projected is skipped too; its error message
    is stored in ``errors`` (keyed by capability name) when given.

    Returns:
        Mapping of capability name to binding
    """
    by_name = {capability.name: capability for capability in capabilities}
    bindings: dict[str, CapabilityBinding] = {}

    for name in sorted(set(selected)):
        capability = by_name.get(name)
        if capability is None:
            logger.warning("mcp_capability_not_found", server_ref=server_ref, capability_name=name)
            continue
        try:
            projected_tool = project_capability(server_ref, capability)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "mcp_capability_projection_failed",
                server_ref=server_ref,
                capability_name=name,
                error=str(exc),
            )
            if errors is not None:
                errors[name] = str(exc)
            continue
        bindings[name] = CapabilityBinding(
            projected_tool=projected_tool,
            handler=functools.partial(bridge.execute, server_ref, name),
        )

    return bindings


def _model_name(local_id: str) -> str:
    return "".join(part.capitalize() for part in local_id.split("_") if part) + "Arguments"
