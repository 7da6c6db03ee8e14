"""Transport adapters (stdio, SSE, HTTP JSON-RPC) and shared credential extraction.

Each adapter owns one DeployHQClient per session (stdio: the process, SSE:
the connection, HTTP: the request). Clients are never shared across sessions.
"""

from __future__ import annotations

from collections.abc import Mapping

from deployhq_mcp import config
from deployhq_mcp.models import Credentials


def credentials_from_env(environ: Mapping[str, str] | None = None) -> Credentials | None:
    """Credentials from DEPLOYHQ_EMAIL / DEPLOYHQ_API_KEY / DEPLOYHQ_ACCOUNT, or None."""
    source = config.env if environ is None else environ
    credentials = Credentials(
        email=source.get(config.EMAIL_ENV, "").strip(),
        api_key=source.get(config.API_KEY_ENV, "").strip(),
        account=source.get(config.ACCOUNT_ENV, "").strip(),
    )
    return credentials if credentials.is_complete() else None


def credentials_from_headers(
    headers: Mapping[str, str],
    environ: Mapping[str, str] | None = None,
) -> Credentials | None:
    """Credentials from X-DeployHQ-* headers, each falling back to the environment.

    ``headers`` must be case-insensitive (Starlette ``Headers``) or lowercase-keyed.
    """
    source = config.env if environ is None else environ

    def _pick(header, env_key):
        value = headers.get(header) or headers.get(header.lower()) or source.get(env_key, "")
        return value.strip()

    credentials = Credentials(
        email=_pick(config.EMAIL_HEADER, config.EMAIL_ENV),
        api_key=_pick(config.API_KEY_HEADER, config.API_KEY_ENV),
        account=_pick(config.ACCOUNT_HEADER, config.ACCOUNT_ENV),
    )
    return credentials if credentials.is_complete() else None


MISSING_HEADERS_MESSAGE = (
    f"Missing required headers: {config.EMAIL_HEADER}, "
    f"{config.API_KEY_HEADER}, {config.ACCOUNT_HEADER}"
)
