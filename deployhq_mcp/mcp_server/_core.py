"""Core dispatcher: validate, gate, invoke, and wrap every outcome in one envelope."""

from __future__ import annotations

import json
import logging
import traceback
from collections.abc import Awaitable, Callable
from typing import Any

from mcp import types
from pydantic import BaseModel, ValidationError

from deployhq_mcp.api import DeployHQClient
from deployhq_mcp.exceptions import DeployHQError, ErrorKind
from deployhq_mcp.mcp_server._hints import suggest_fixes
from deployhq_mcp.mcp_server._security import is_blocked, read_only_message
from deployhq_mcp.models import ServerConfig
from deployhq_mcp.tools import get_tool, validate_arguments

log = logging.getLogger(__name__)

_Route = Callable[[DeployHQClient, Any], Awaitable[Any]]


# ---------------------------------------------------------------------------
# Routes (tool name -> client call with validated arguments)
# ---------------------------------------------------------------------------


async def _list_projects(client, args):
    return await client.list_projects()


async def _get_project(client, args):
    return await client.get_project(args.permalink)


async def _list_servers(client, args):
    return await client.list_servers(args.project)


async def _list_deployments(client, args):
    return await client.list_deployments(args.project, args.page, args.server_uuid)


async def _get_deployment(client, args):
    return await client.get_deployment(args.project, args.uuid)


async def _get_deployment_log(client, args):
    return await client.get_deployment_log(args.project, args.uuid)


async def _create_deployment(client, args):
    project, params = deployment_payload(args)
    return await client.create_deployment(project, params)


_ROUTES: dict[str, _Route] = {
    "list_projects": _list_projects,
    "get_project": _get_project,
    "list_servers": _list_servers,
    "list_deployments": _list_deployments,
    "get_deployment": _get_deployment,
    "get_deployment_log": _get_deployment_log,
    "create_deployment": _create_deployment,
}


def deployment_payload(args: BaseModel) -> tuple[str, dict[str, Any]]:
    """Split validated create_deployment args into (project, deployment params)."""
    params = args.model_dump(exclude={"project"}, exclude_none=True)
    return args.project, params  # type: ignore[attr-defined]


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


def _text_result(payload: Any, *, is_error: bool = False) -> types.CallToolResult:
    text = json.dumps(payload, indent=2, ensure_ascii=False, default=str)
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        isError=is_error,
    )


def _contract_error(tool_name: str, error: DeployHQError) -> dict[str, Any]:
    """Error body: message and tool always; status, details, suggestions when known."""
    payload: dict[str, Any] = {
        "ok": False,
        "error": error.message,
        "tool": tool_name,
        "type": error.kind.value,
    }
    if error.status_code is not None:
        payload["status_code"] = error.status_code
    if error.response not in (None, "", {}, []):
        payload["details"] = error.response
    suggestions = suggest_fixes(error.kind, error.message, error.response, error.status_code)
    if suggestions:
        payload["suggestions"] = suggestions
    return payload


def error_result(tool_name: str, error: DeployHQError) -> types.CallToolResult:
    return _text_result(_contract_error(tool_name, error), is_error=True)


def success_result(result: Any) -> types.CallToolResult:
    return _text_result(result)


def _validation_details(err: ValidationError) -> list[dict[str, Any]]:
    return json.loads(err.json(include_url=False))


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


async def handle_tool_call(
    client: DeployHQClient,
    name: str,
    arguments: dict[str, Any] | None,
    server_config: ServerConfig,
) -> types.CallToolResult:
    """Run one tool call. Never raises; failures come back with isError set."""
    log.info("Calling tool: %s", name)
    log.debug("Tool arguments: %s", json.dumps(arguments, default=str))

    tool = get_tool(name)
    if tool is None:
        log.error("Unknown tool requested: %s", name)
        return error_result(name, DeployHQError.unknown_tool(name))

    try:
        args = validate_arguments(tool, arguments)
    except ValidationError as e:
        log.error("Invalid input parameters for %s: %d error(s)", name, e.error_count())
        return error_result(
            name,
            DeployHQError(
                "Invalid input parameters",
                ErrorKind.VALIDATION,
                response=_validation_details(e),
            ),
        )

    if is_blocked(tool, server_config):
        log.warning("Blocked %s: server is in read-only mode", name)
        return error_result(name, DeployHQError.forbidden(read_only_message(name)))

    try:
        result = await _ROUTES[name](client, args)
    except DeployHQError as e:
        log.error("Error executing tool %s: %s", name, e.message)
        return error_result(name, e)
    except Exception as e:
        log.error("Unexpected error executing tool %s", name, exc_info=True)
        return error_result(
            name,
            DeployHQError.platform(f"Unexpected error: {e}", response=traceback.format_exc()),
        )

    response = success_result(result)
    log.debug("Tool %s completed (%d characters)", name, len(response.content[0].text))
    return response
