"""MCP server exposing DeployHQClient operations as tools.

Package structure:
  __init__.py   create_server() factory, re-exports
  _core.py      dispatcher (validate, gate, invoke) and response envelopes
  _security.py  read-only gate
  _hints.py     remediation suggestions for error envelopes

One server per session: each transport builds a DeployHQClient for the
session's credentials and hands it to create_server().
"""

from __future__ import annotations

import logging
from typing import Any

from mcp import types
from mcp.server.lowlevel import Server

from deployhq_mcp import config
from deployhq_mcp.api import DeployHQClient
from deployhq_mcp.mcp_server._core import (  # noqa: F401
    _ROUTES,
    deployment_payload,
    error_result,
    handle_tool_call,
    success_result,
)
from deployhq_mcp.mcp_server._hints import suggest_fixes  # noqa: F401
from deployhq_mcp.mcp_server._security import is_blocked, read_only_message  # noqa: F401
from deployhq_mcp.models import ServerConfig
from deployhq_mcp.tools import list_tool_definitions

log = logging.getLogger(__name__)


def create_server(client: DeployHQClient, server_config: ServerConfig | None = None) -> Server:
    """Build an MCP server bound to one client.

    SDK-side input validation is off: the dispatcher owns validation so its
    errors share the envelope format of every other failure.
    """
    if server_config is None:
        server_config = ServerConfig(read_only_mode=config.DEFAULT_READ_ONLY)
    server: Server = Server(config.SERVER_NAME, version=config.VERSION)

    @server.list_tools()
    async def _list_tools() -> list[types.Tool]:
        log.debug("Listing tools")
        return list_tool_definitions()

    @server.call_tool(validate_input=False)
    async def _call_tool(name: str, arguments: dict[str, Any]) -> types.CallToolResult:
        return await handle_tool_call(client, name, arguments, server_config)

    return server
