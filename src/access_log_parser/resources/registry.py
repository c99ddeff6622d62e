"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from access_log_parser.core.handlers import OUTPUT_FORMATS
from access_log_parser.core.models import Metadata
from access_log_parser.core.presets import PRESET_PATTERNS, PRESETS


def register_resources(mcp: FastMCP) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://access-log-parser/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs."""
        formats = ", ".join(sorted(OUTPUT_FORMATS))
        return (
            "Resources:\n"
            "- app://access-log-parser/help\n"
            "- app://access-log-parser/presets\n"
            "- app://access-log-parser/schemas/metadata\n"
            "- app://access-log-parser/examples/apache-log\n"
            f"\nOutput formats: {formats}\n"
        )

    @mcp.resource("app://access-log-parser/presets")
    def presets() -> dict[str, list[str]]:
        """Return preset names and their patterns in priority order.

        The ltsv preset has no patterns; its fields come from each line's labels.
        """
        return {name: list(PRESET_PATTERNS.get(name, ())) for name in PRESETS}

    @mcp.resource("app://access-log-parser/schemas/metadata")
    def metadata_schema() -> dict[str, Any]:
        """Return the JSON schema of run metadata."""
        return Metadata.model_json_schema()

    @mcp.resource("app://access-log-parser/examples/apache-log")
    def sample_log() -> str:
        """Return a tiny Apache combined log for demos and tests."""
        return (
            '192.168.0.1 - - [10/Oct/2000:13:55:36 -0700] "GET /apache_pb.gif HTTP/1.0" '
            '200 2326 "http://www.example.com/start.html" "Mozilla/4.08"\n'
            '192.168.0.2 - frank [10/Oct/2000:13:55:37 -0700] "POST /login HTTP/1.1" 302 -\n'
            "not an access log line\n"
        )
