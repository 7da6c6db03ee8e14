"""Read-only gate: vetoes mutating tools before they reach the API client."""

from __future__ import annotations

from deployhq_mcp.config import READ_ONLY_ENV, READ_ONLY_FLAG
from deployhq_mcp.models import ServerConfig
from deployhq_mcp.tools import ToolDescriptor


def read_only_message(tool_name: str) -> str:
    """User-facing refusal naming both overrides and the reason for the gate."""
    action = tool_name.replace("_", " ")
    return (
        f"FORBIDDEN: Cannot {action} - server is running in read-only mode. "
        f"To enable deployments, set {READ_ONLY_ENV}=false or use the "
        f"{READ_ONLY_FLAG}=false flag. This is a security feature to prevent "
        "unintended deployments by AI assistants."
    )


def is_blocked(tool: ToolDescriptor, server_config: ServerConfig) -> bool:
    """True only for mutating tools while read-only mode is on."""
    return tool.mutating and server_config.read_only_mode
