"""stdio transport: one long-lived session, credentials from the environment.

stdout carries the JSON-RPC stream. Logs go to stderr only.
"""

from __future__ import annotations

import logging

from mcp.server.stdio import stdio_server

from deployhq_mcp import config
from deployhq_mcp.api import DeployHQClient
from deployhq_mcp.exceptions import CliError, DeployHQError, ErrorKind, SetupError
from deployhq_mcp.mcp_server import create_server
from deployhq_mcp.models import Credentials, ServerConfig

log = logging.getLogger(__name__)


async def verify_credentials(credentials: Credentials) -> None:
    """Probe the API once with a short timeout before serving any calls.

    Raises:
        SetupError: credentials rejected by DeployHQ.
        CliError: any other failure (network, timeout, upstream error).
    """
    log.info("Validating credentials...")
    probe = DeployHQClient.from_credentials(
        credentials, timeout_ms=config.CREDENTIAL_CHECK_TIMEOUT_MS
    )
    try:
        await probe.validate_credentials()
    except DeployHQError as e:
        if e.kind is ErrorKind.AUTHENTICATION:
            raise SetupError(
                "[AUTH_FAILED] Invalid credentials or insufficient permissions.\n"
                f"  Please check your {config.EMAIL_ENV} and {config.API_KEY_ENV}."
            ) from e
        raise CliError(
            f"[ERROR] Failed to validate credentials: {e.message}\n"
            "  Please check your network connection and DeployHQ account settings."
        ) from e
    log.info("Credentials validated successfully")


async def run_stdio(
    credentials: Credentials,
    server_config: ServerConfig,
    check_credentials: bool = True,
) -> None:
    """Serve MCP over stdin/stdout until the client disconnects."""
    if check_credentials:
        await verify_credentials(credentials)

    client = DeployHQClient.from_credentials(credentials)
    server = create_server(client, server_config)
    log.debug("Account: %s, client: %r", credentials.account, client)

    async with stdio_server() as (read_stream, write_stream):
        log.info("DeployHQ MCP Server running on stdio")
        await server.run(read_stream, write_stream, server.create_initialization_options())
    log.info("stdio session ended")
