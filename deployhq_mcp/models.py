"""
Typed models for client configuration, server configuration and deployment payloads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, TypedDict

DeploymentMode = Literal["queue", "preview"]


@dataclass(frozen=True)
class Credentials:
    """Per-session DeployHQ credentials. Never persisted."""

    email: str
    api_key: str
    account: str

    def is_complete(self) -> bool:
        return bool(self.email and self.api_key and self.account)


@dataclass(frozen=True)
class ClientConfig:
    """Credentials plus request timeout, immutable after construction."""

    credentials: Credentials
    timeout_ms: int = 30_000

    @classmethod
    def build(cls, email, api_key, account, timeout_ms=30_000) -> ClientConfig:
        return cls(Credentials(email=email, api_key=api_key, account=account), timeout_ms)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


@dataclass(frozen=True)
class ServerConfig:
    """Process-wide server settings resolved at startup."""

    read_only_mode: bool = False


class CreateDeploymentParams(TypedDict, total=False):
    """Body of ``{"deployment": ...}`` for POST /projects/{permalink}/deployments."""

    parent_identifier: str
    start_revision: str
    end_revision: str
    branch: str
    mode: DeploymentMode
    copy_config_files: bool
    run_build_commands: bool
    use_build_cache: bool
    use_latest: str


class Pagination(TypedDict):
    total: int
    total_pages: int
    per_page: int
    current_page: int


class PaginatedResponse(TypedDict):
    """Shape of paginated listings. Records are passed through untouched."""

    records: list[dict[str, Any]]
    pagination: Pagination
