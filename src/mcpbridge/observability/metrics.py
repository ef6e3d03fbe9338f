"""Prometheus metrics for the MCP bridge.

Counts outbound JSON-RPC requests, tool executions and reconciliation
passes so operators can see which remote servers misbehave.
"""

from typing import Optional

from prometheus_client import Counter, generate_latest

mcp_requests_total = Counter(
    "mcp_requests_total",
    "Total number of JSON-RPC requests sent to MCP servers",
    labelnames=["method", "status"],
)

mcp_tool_executions_total = Counter(
    "mcp_tool_executions_total",
    "Total number of MCP tool executions",
    labelnames=["server_ref", "status"],
)

mcp_reconciliations_total = Counter(
    "mcp_reconciliations_total",
    "Total number of capability reconciliation passes",
    labelnames=["status"],
)


class MetricsCollector:
    """Records MCP bridge events into the module-level Prometheus counters."""

    def record_request(self, method: str, status: str) -> None:
        """Record one JSON-RPC request.

        Args:
            method: JSON-RPC method (initialize, tools/list, tools/call)
            status: Outcome (success, error)
        """
        mcp_requests_total.labels(method=method, status=status).inc()

    def record_tool_execution(self, server_ref: Optional[str], status: str) -> None:
        """Record one tool execution through the execution bridge.

        Args:
            server_ref: Server reference the tool was executed against
            status: Outcome (success, error)
        """
        mcp_tool_executions_total.labels(server_ref=server_ref or "unknown", status=status).inc()

    def record_reconciliation(self, status: str) -> None:
        """Record one reconciliation pass.

        Args:
            status: Outcome (applied, unchanged, skipped, failed)
        """
        mcp_reconciliations_total.labels(status=status).inc()

    def export(self) -> bytes:
        """Export all metrics in Prometheus text format."""
        return generate_latest()


_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector() -> MetricsCollector:
    """Get the process-wide metrics collector instance."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector
