"""
HTTP request layer and DeployHQClient for deployhq-mcp.

One request attempt per call, bounded by the client timeout. Every failure
leaves this module as a classified DeployHQError.
"""

from __future__ import annotations

import base64
import json
import logging
import time
import urllib.parse
from typing import Any

import anyio
import httpx

from deployhq_mcp import config
from deployhq_mcp.exceptions import DeployHQError
from deployhq_mcp.models import (
    ClientConfig,
    CreateDeploymentParams,
    Credentials,
    PaginatedResponse,
)

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Security and logging helpers
# ---------------------------------------------------------------------------


def _mask_token(token):
    """Show only first 6 chars of a token for safe logging."""
    return token[:6] + "..." if len(token) > 6 else token


def _log_http_event(**fields):
    """Emit structured HTTP logs when DEPLOYHQ_HTTP_LOG is enabled."""
    if not config.HTTP_LOG_ENABLED:
        return
    log.debug("[HTTP] " + json.dumps(fields, ensure_ascii=False, sort_keys=True))


def _segment(value):
    """Percent-encode one path segment."""
    return urllib.parse.quote(str(value), safe="")


def _error_payload(response: httpx.Response) -> Any:
    """Parsed JSON error body, or {} when the body is not JSON."""
    try:
        return response.json()
    except ValueError:
        return {}


def _error_text(response: httpx.Response) -> str:
    """Raw error body text, or a placeholder when it cannot be decoded."""
    try:
        return response.text
    except (httpx.HTTPError, UnicodeDecodeError, LookupError):
        return "Unknown error"


def _deployments_path(project, page=None, server_uuid=None):
    params = []
    if page:
        params.append(("page", str(page)))
    if server_uuid:
        params.append(("to", server_uuid))
    path = f"/projects/{_segment(project)}/deployments"
    if params:
        path += "?" + urllib.parse.urlencode(params)
    return path


# ---------------------------------------------------------------------------
# DeployHQClient
# ---------------------------------------------------------------------------


class DeployHQClient:
    """Async client for the DeployHQ REST API.

    One instance per session, built from that session's credentials.
    Methods return the parsed upstream payload untouched.
    """

    def __init__(
        self,
        client_config: ClientConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            client_config: Credentials and timeout.
            transport: Optional httpx transport (tests use httpx.MockTransport).

        Raises:
            DeployHQError: kind ``configuration`` when a credential is empty.
        """
        creds = client_config.credentials
        if not creds.is_complete():
            raise DeployHQError.configuration()
        self.client_config = client_config
        self.base_url = f"https://{creds.account}.{config.PLATFORM_DOMAIN}"
        self.timeout_seconds = client_config.timeout_seconds
        token = base64.b64encode(f"{creds.email}:{creds.api_key}".encode("utf-8"))
        self._auth_header = "Basic " + token.decode("ascii")
        self._transport = transport

    @classmethod
    def from_credentials(
        cls,
        credentials: Credentials,
        *,
        timeout_ms: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> DeployHQClient:
        return cls(
            ClientConfig(credentials, timeout_ms or config.TIMEOUT_MS),
            transport=transport,
        )

    def __repr__(self) -> str:
        creds = self.client_config.credentials
        return f"DeployHQClient(account={creds.account!r}, user={_mask_token(creds.email)!r})"

    @property
    def auth_header(self) -> str:
        return self._auth_header

    # -------------------------------------------------------------------
    # Request layer
    # -------------------------------------------------------------------

    async def _request(
        self,
        path: str,
        *,
        method: str = "GET",
        body: Any = None,
        as_text: bool = False,
    ) -> Any:
        """Issue one request and classify the outcome."""
        url = self.base_url + path
        headers = {
            "Authorization": self._auth_header,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        content = json.dumps(body).encode("utf-8") if body is not None else None
        start = time.perf_counter()
        _log_http_event(
            phase="request",
            method=method,
            url=url,
            user=_mask_token(self.client_config.credentials.email),
            timeout_seconds=self.timeout_seconds,
        )
        try:
            with anyio.fail_after(self.timeout_seconds):
                async with httpx.AsyncClient(
                    transport=self._transport, timeout=self.timeout_seconds
                ) as http:
                    response = await http.request(method, url, headers=headers, content=content)
        except (TimeoutError, httpx.TimeoutException) as e:
            _log_http_event(phase="network_error", method=method, url=url, error="timeout")
            raise DeployHQError.timeout() from e
        except Exception as e:
            reason = str(e) or type(e).__name__
            _log_http_event(phase="network_error", method=method, url=url, error=reason)
            raise DeployHQError.platform(f"Request failed: {reason}") from e

        status = response.status_code
        _log_http_event(
            phase="response",
            method=method,
            url=url,
            status=status,
            bytes=len(response.content),
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        if status in (401, 403):
            raise DeployHQError.authentication()
        if status == 422:
            raise DeployHQError.validation(_error_payload(response))
        if not response.is_success:
            raise DeployHQError.platform(
                f"API request failed: {response.reason_phrase}",
                status,
                _error_text(response),
            )

        if as_text:
            return response.text
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise DeployHQError.platform(
                "Request failed: unexpected response from DeployHQ API (not valid JSON)"
            ) from e

    # -------------------------------------------------------------------
    # Read operations
    # -------------------------------------------------------------------

    async def list_projects(self) -> list[dict[str, Any]]:
        """List all projects in the account."""
        return await self._request("/projects")

    async def get_project(self, permalink: str) -> dict[str, Any]:
        """Get one project by permalink."""
        return await self._request(f"/projects/{_segment(permalink)}")

    async def list_servers(self, project: str) -> list[dict[str, Any]]:
        # DeployHQ returns servers as a bare array, not wrapped in records.
        return await self._request(f"/projects/{_segment(project)}/servers")

    async def list_deployments(
        self,
        project: str,
        page: int | None = None,
        server_uuid: str | None = None,
    ) -> PaginatedResponse:
        """List deployments for a project.

        Args:
            page: Page number; query ``page`` is added before ``to``.
            server_uuid: Restrict to deployments targeting this server.

        Returns:
            Paginated response with records and pagination.
        """
        return await self._request(_deployments_path(project, page, server_uuid))

    async def get_deployment(self, project: str, uuid: str) -> dict[str, Any]:
        return await self._request(f"/projects/{_segment(project)}/deployments/{_segment(uuid)}")

    async def get_deployment_log(self, project: str, uuid: str) -> str:
        """Return the deployment log as plain text."""
        return await self._request(
            f"/projects/{_segment(project)}/deployments/{_segment(uuid)}/log",
            as_text=True,
        )

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------

    async def create_deployment(
        self, project: str, params: CreateDeploymentParams
    ) -> dict[str, Any]:
        """Queue or preview a deployment. Unset optional fields are omitted."""
        payload = {k: v for k, v in dict(params).items() if v is not None}
        return await self._request(
            f"/projects/{_segment(project)}/deployments",
            method="POST",
            body={"deployment": payload},
        )

    # -------------------------------------------------------------------
    # Credential check
    # -------------------------------------------------------------------

    async def validate_credentials(self) -> None:
        """Cheap authenticated call; raises the classified error on failure."""
        await self._request("/projects")
