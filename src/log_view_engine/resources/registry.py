"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from log_view_engine.core.config import resolve_viewer_config
from log_view_engine.core.models import ViewState
from log_view_engine.tools.viewer import ALL_LEVELS, ALL_MODES, default_state_path

SAMPLE_LOG = (
    "2024-01-01 10:00:00.000 [Info]: service started\n"
    '2024-01-01 10:00:01.250 [Debug]: config loaded {"workers": 4, "debug": false}\n'
    "2024-01-01 10:00:03.010 [Warning]: retrying request id=abc123\n"
    '2024-01-01 10:00:04.480 [Error]: upstream timeout {"route": "/api/v1/items"}\n'
    "2024-01-01 10:00:05.000 [Info]: shutting down\n"
)


def register_resources(mcp: FastMCP) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://log-viewer/help")
    def help_resource() -> str:
        """Return a short overview of the log viewer settings and URIs."""
        cfg = resolve_viewer_config()
        return (
            "Resources:\n"
            "- app://log-viewer/help\n"
            "- app://log-viewer/examples/sample-log\n"
            "- app://log-viewer/schemas/view-state\n"
            f"\nLevels: {', '.join(ALL_LEVELS)}\n"
            f"Filter modes: {', '.join(ALL_MODES)}\n"
            f"Log timezone: UTC{cfg.source_utc_offset_hours:+d}\n"
            f"Retained lines: {cfg.retention}\n"
            f"State file: {default_state_path()}\n"
        )

    @mcp.resource("app://log-viewer/examples/sample-log")
    def sample_log() -> str:
        """Return a tiny sample log for demos and tests."""
        return SAMPLE_LOG

    @mcp.resource("app://log-viewer/schemas/view-state")
    def view_state_schema() -> dict[str, Any]:
        """Return the JSON schema of a persisted log view."""
        return ViewState.model_json_schema()
