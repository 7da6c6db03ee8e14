"""
Hosted entry point: Starlette app serving SSE, HTTP JSON-RPC, health and tools.

Run with: deployhq-mcp-server [--read-only[=true|false]]
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone

import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from deployhq_mcp import config
from deployhq_mcp.models import ServerConfig
from deployhq_mcp.tools import list_tool_definitions
from deployhq_mcp.transports.http import HttpTransport
from deployhq_mcp.transports.sse import SseTransport

log = logging.getLogger(__name__)


async def health(request: Request) -> JSONResponse:
    return JSONResponse(
        {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": config.SERVER_NAME,
            "version": config.VERSION,
        }
    )


async def tools(request: Request) -> JSONResponse:
    """Tool catalogue without credentials, for discovery and smoke checks."""
    definitions = [
        tool.model_dump(by_alias=True, mode="json", exclude_none=True)
        for tool in list_tool_definitions()
    ]
    return JSONResponse({"tools": definitions, "count": len(definitions)})


def create_app(server_config: ServerConfig | None = None, *, client_factory=None) -> Starlette:
    """Build the hosting app. ``client_factory`` overrides client construction."""
    if server_config is None:
        server_config = config.parse_server_config()
    sse = SseTransport(server_config, client_factory=client_factory)
    http = HttpTransport(server_config, client_factory=client_factory)

    routes = [
        Route("/health", endpoint=health, methods=["GET"]),
        Route("/tools", endpoint=tools, methods=["GET"]),
        *sse.routes(),
        Route("/mcp", endpoint=http.handle, methods=["POST"]),
    ]
    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
            allow_headers=[
                "Content-Type",
                config.EMAIL_HEADER,
                config.API_KEY_HEADER,
                config.ACCOUNT_HEADER,
            ],
        )
    ]
    app = Starlette(routes=routes, middleware=middleware)
    app.state.sse = sse
    app.state.server_config = server_config
    return app


def main(argv=None):
    """Resolve configuration and serve until interrupted."""
    args = sys.argv[1:] if argv is None else argv
    config.configure_logging(verbose="--verbose" in args or "-v" in args)
    server_config = config.parse_server_config(args)
    log.info("Starting DeployHQ MCP Server on %s:%d", config.HOST, config.PORT)
    log.info(
        "Read-only mode: %s (source: %s)",
        "enabled" if server_config.read_only_mode else "disabled",
        config.get_config_source(args),
    )
    log.info("SSE endpoint: /sse, HTTP endpoint: /mcp, health: /health")
    uvicorn.run(create_app(server_config), host=config.HOST, port=config.PORT, log_config=None)


if __name__ == "__main__":
    main()
