"""Keeps projected tools in step with a server's selected capabilities.

A reconciliation pass diffs the desired capability set against what is
already in the registry for one server, applies deletes and creates, and
records the owned tool ids through the config-writer port. Because writing
those ids can trigger another pass in the host, every pass runs under a
per-server :class:`InFlightGuard`; a pass that finds the guard held returns
immediately without doing anything.
"""

import threading
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from mcpbridge.mcp.errors import ReconciliationError
from mcpbridge.mcp.executor import MCPExecutionBridge
from mcpbridge.mcp.expansion import expand_capabilities
from mcpbridge.mcp.naming import make_projected_tool_id
from mcpbridge.mcp.ports import ConfigWriterPort, ToolRegistryPort
from mcpbridge.observability.logging import get_logger
from mcpbridge.observability.metrics import get_metrics_collector
from mcpbridge.tools.errors import ToolAlreadyRegisteredError, ToolError

logger = get_logger(__name__)


class SelectionState(BaseModel):
    """Capabilities a user selected for one server."""

    model_config = ConfigDict(frozen=True)

    server_ref: str
    selected_capability_names: frozenset[str] = Field(default_factory=frozenset)


class ReconciliationResult(BaseModel):
    """Outcome of one reconciliation (or purge) pass.

    Attributes:
        created: Local ids created in this pass
        deleted: Local ids deleted in this pass
        failed: Local id -> error message for items that could not be applied
        unavailable: Selected capability names the server does not expose
        skipped: True if another pass for the same server was in flight
        associated_ids: Ids owned by the server after the pass
        wrote_ids: Whether the owned ids were written back
    """

    server_ref: str
    created: list[str] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)
    failed: dict[str, str] = Field(default_factory=dict)
    unavailable: list[str] = Field(default_factory=list)
    skipped: bool = False
    associated_ids: list[str] = Field(default_factory=list)
    wrote_ids: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.created or self.deleted or self.wrote_ids)


class InFlightGuard:
    """Non-blocking per-key mutual exclusion.

    ``try_acquire`` is an atomic check-and-set; callers that lose simply do
    not run. Use :meth:`hold` so the key is released on every exit path::

        with guard.hold(server_ref) as acquired:
            if not acquired:
                return
            ...
    """

    def __init__(self) -> None:
        self._held: set[str] = set()
        self._lock = threading.Lock()

    def try_acquire(self, key: str) -> bool:
        with self._lock:
            if key in self._held:
                return False
            self._held.add(key)
            return True

    def release(self, key: str) -> None:
        with self._lock:
            self._held.discard(key)

    def is_held(self, key: str) -> bool:
        with self._lock:
            return key in self._held

    @contextmanager
    def hold(self, key: str) -> Iterator[bool]:
        acquired = self.try_acquire(key)
        try:
            yield acquired
        finally:
            if acquired:
                self.release(key)


class CapabilityReconciler:
    """Applies capability selections to the tool registry.

    Usage::

        reconciler = CapabilityReconciler(bridge, registry, association_store)
        result = await reconciler.reconcile("github", {"search", "get_issue"})
    """

    def __init__(
        self,
        bridge: MCPExecutionBridge,
        registry: ToolRegistryPort,
        config_writer: ConfigWriterPort,
        guard: Optional[InFlightGuard] = None,
    ) -> None:
        self._bridge = bridge
        self._registry = registry
        self._config_writer = config_writer
        self._guard = guard or InFlightGuard()
        self._metrics = get_metrics_collector()

    @property
    def guard(self) -> InFlightGuard:
        return self._guard

    async def reconcile(
        self,
        server_ref: str,
        selection: Union[SelectionState, Iterable[str]],
        guard: Optional[InFlightGuard] = None,
    ) -> ReconciliationResult:
        """Bring the server's projections in line with ``selection``.

        Args:
            server_ref: Server whose projections are reconciled
            selection: Selected capability names (or a SelectionState)
            guard: Guard to use instead of the reconciler's own

        Returns:
            What the pass did; ``skipped`` if a pass was already in flight

        Raises:
            ReconciliationError: If discovery fails (nothing is changed)
        """
        if isinstance(selection, SelectionState):
            if selection.server_ref != server_ref:
                raise ValueError(
                    f"Selection for '{selection.server_ref}' passed for server '{server_ref}'"
                )
            selected = set(selection.selected_capability_names)
        else:
            selected = set(selection)

        with (guard or self._guard).hold(server_ref) as acquired:
            if not acquired:
                logger.info("mcp_reconciliation_skipped", server_ref=server_ref)
                self._metrics.record_reconciliation("skipped")
                return ReconciliationResult(server_ref=server_ref, skipped=True)

            try:
                result = await self._reconcile(server_ref, selected)
            except ReconciliationError:
                self._metrics.record_reconciliation("failed")
                raise

        self._metrics.record_reconciliation("applied" if result.changed else "unchanged")
        logger.info(
            "mcp_reconciliation_completed",
            server_ref=server_ref,
            created=len(result.created),
            deleted=len(result.deleted),
            failed=len(result.failed),
            unavailable=len(result.unavailable),
        )
        return result

    async def purge(
        self, server_ref: str, guard: Optional[InFlightGuard] = None
    ) -> ReconciliationResult:
        """Delete every projection of a server and clear its owned ids."""
        with (guard or self._guard).hold(server_ref) as acquired:
            if not acquired:
                logger.info("mcp_purge_skipped", server_ref=server_ref)
                return ReconciliationResult(server_ref=server_ref, skipped=True)

            result = ReconciliationResult(server_ref=server_ref)
            existing = sorted(tool.local_id for tool in await self._registry.list(server_ref))
            await self._delete_all(existing, result)
            await self._record_owned_ids(server_ref, result)

        logger.info("mcp_purge_completed", server_ref=server_ref, deleted=len(result.deleted))
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _reconcile(self, server_ref: str, selected: set[str]) -> ReconciliationResult:
        try:
            capabilities = await self._bridge.discover(server_ref)
        except ToolError as exc:
            logger.error("mcp_discovery_failed", server_ref=server_ref, error=str(exc))
            raise ReconciliationError(
                server_ref, f"capability discovery failed: {exc.message}"
            ) from exc

        projection_errors: dict[str, str] = {}
        bindings = expand_capabilities(
            server_ref, capabilities, selected, self._bridge, errors=projection_errors
        )
        desired = {make_projected_tool_id(server_ref, name): name for name in selected}
        existing = {
            tool.local_id: tool.capability_name for tool in await self._registry.list(server_ref)
        }

        # Applied in capability-name order
        to_delete = sorted(
            (local_id for local_id in existing if local_id not in desired),
            key=lambda local_id: (existing[local_id], local_id),
        )
        to_create = sorted(
            (local_id for local_id in desired if local_id not in existing),
            key=lambda local_id: desired[local_id],
        )

        result = ReconciliationResult(server_ref=server_ref)
        await self._delete_all(to_delete, result)

        for local_id in to_create:
            capability_name = desired[local_id]
            if capability_name in projection_errors:
                result.failed[local_id] = projection_errors[capability_name]
                continue
            binding = bindings.get(capability_name)
            if binding is None:
                result.unavailable.append(capability_name)
                continue
            try:
                await self._registry.create(binding.projected_tool)
            except ToolAlreadyRegisteredError:
                logger.debug("mcp_projection_already_present", local_id=local_id)
            except Exception as exc:  # noqa: BLE001
                logger.warning("mcp_projection_create_failed", local_id=local_id, error=str(exc))
                result.failed[local_id] = str(exc)
            else:
                result.created.append(local_id)

        result.unavailable.sort()
        await self._record_owned_ids(server_ref, result)
        return result

    async def _delete_all(self, local_ids: list[str], result: ReconciliationResult) -> None:
        for local_id in local_ids:
            try:
                await self._registry.delete(local_id)
            except Exception as exc:  # noqa: BLE001
                logger.warning("mcp_projection_delete_failed", local_id=local_id, error=str(exc))
                result.failed[local_id] = str(exc)
            else:
                result.deleted.append(local_id)

    async def _record_owned_ids(self, server_ref: str, result: ReconciliationResult) -> None:
        owned = sorted(tool.local_id for tool in await self._registry.list(server_ref))
        recorded = sorted(await self._config_writer.read_associated_ids(server_ref))
        result.associated_ids = owned
        if owned != recorded:
            await self._config_writer.write_associated_ids(server_ref, owned)
            result.wrote_ids = True
