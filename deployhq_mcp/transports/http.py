"""Stateless JSON-RPC over ``POST /mcp``: one request, one client, one response."""

from __future__ import annotations

import json
import logging
import traceback
from collections.abc import Callable
from typing import Any

from mcp import types
from mcp.shared.version import SUPPORTED_PROTOCOL_VERSIONS
from pydantic import BaseModel, ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from deployhq_mcp import config
from deployhq_mcp.api import DeployHQClient
from deployhq_mcp.mcp_server import handle_tool_call
from deployhq_mcp.models import Credentials, ServerConfig
from deployhq_mcp.tools import list_tool_definitions
from deployhq_mcp.transports import credentials_from_headers

log = logging.getLogger(__name__)

# JSON-RPC error codes
UNAUTHORIZED = -32000
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


def _rpc_error(request_id, code, message, status_code, data=None):
    error: dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return JSONResponse(
        {"jsonrpc": "2.0", "id": request_id, "error": error},
        status_code=status_code,
    )


def _rpc_result(request_id, result: BaseModel):
    return JSONResponse(
        {
            "jsonrpc": "2.0",
            "id": request_id,
            "result": result.model_dump(by_alias=True, mode="json", exclude_none=True),
        }
    )


def _negotiate_protocol(params: dict[str, Any]) -> str:
    requested = params.get("protocolVersion")
    if requested in SUPPORTED_PROTOCOL_VERSIONS:
        return requested
    return types.LATEST_PROTOCOL_VERSION


class HttpTransport:
    """Handles ``POST /mcp``. Holds no per-request state."""

    def __init__(
        self,
        server_config: ServerConfig,
        *,
        client_factory: Callable[[Credentials], DeployHQClient] | None = None,
    ) -> None:
        self.server_config = server_config
        self._client_factory = client_factory or DeployHQClient.from_credentials

    async def handle(self, request: Request) -> Response:
        body = await request.body()
        try:
            message = json.loads(body)
        except ValueError:
            return _rpc_error(None, PARSE_ERROR, "Parse error", 400)
        if not isinstance(message, dict):
            return _rpc_error(None, INVALID_REQUEST, "Invalid Request", 400)

        request_id = message.get("id")
        credentials = credentials_from_headers(request.headers)
        if credentials is None:
            log.error("Missing credentials in request headers")
            return _rpc_error(
                request_id, UNAUTHORIZED, "Missing credentials in request headers", 401
            )

        if message.get("jsonrpc") != "2.0":
            return _rpc_error(
                request_id, INVALID_REQUEST, 'Invalid Request: jsonrpc must be "2.0"', 400
            )

        method = message.get("method")
        params = message.get("params") or {}
        if "id" not in message:
            log.debug("Notification received: %s", method)
            return Response(status_code=202)

        log.info("HTTP transport request: %s", method)
        if not isinstance(params, dict):
            return _rpc_error(request_id, INVALID_PARAMS, "Invalid params", 400)
        try:
            return await self._dispatch(request_id, method, params, credentials)
        except Exception:
            log.error("Error handling %s", method, exc_info=True)
            return _rpc_error(
                request_id,
                INTERNAL_ERROR,
                "Internal error",
                500,
                data={"details": traceback.format_exc()},
            )

    async def _dispatch(self, request_id, method, params, credentials):
        if method == "initialize":
            return _rpc_result(
                request_id,
                types.InitializeResult(
                    protocolVersion=_negotiate_protocol(params),
                    capabilities=types.ServerCapabilities(tools=types.ToolsCapability()),
                    serverInfo=types.Implementation(
                        name=config.SERVER_NAME, version=config.VERSION
                    ),
                ),
            )

        if method == "ping":
            return _rpc_result(request_id, types.EmptyResult())

        if method == "tools/list":
            return _rpc_result(request_id, types.ListToolsResult(tools=list_tool_definitions()))

        if method == "tools/call":
            try:
                call = types.CallToolRequestParams.model_validate(params)
            except ValidationError as e:
                return _rpc_error(
                    request_id,
                    INVALID_PARAMS,
                    "Invalid params",
                    400,
                    data=json.loads(e.json(include_url=False)),
                )
            client = self._client_factory(credentials)
            result = await handle_tool_call(
                client, call.name, call.arguments, self.server_config
            )
            return _rpc_result(request_id, result)

        return _rpc_error(request_id, METHOD_NOT_FOUND, f"Method not found: {method}", 400)
