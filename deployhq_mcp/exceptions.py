"""
deployhq-mcp exception hierarchy.

All custom exceptions live here to avoid circular imports.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class CliError(Exception):
    """Exit code 1: startup, network, configuration parse errors."""

    exit_code = 1


class SetupError(CliError):
    """Exit code 2: missing or rejected credentials."""

    exit_code = 2


class ErrorKind(str, Enum):
    """Discriminator for DeployHQError."""

    CONFIGURATION = "configuration"
    AUTHENTICATION = "authentication"
    VALIDATION = "validation"
    TIMEOUT = "timeout"
    PLATFORM = "platform"
    FORBIDDEN = "forbidden"
    UNKNOWN_TOOL = "unknown_tool"


class DeployHQError(Exception):
    """Classified failure from the API client or the tool dispatcher.

    A single tagged class rather than a subclass tree: callers branch on
    ``kind`` and read ``status_code`` / ``response`` when present.
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.PLATFORM,
        status_code: int | None = None,
        response: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code
        self.response = response

    def __repr__(self) -> str:
        return (
            f"DeployHQError(kind={self.kind.value!r}, status_code={self.status_code!r}, "
            f"message={self.message!r})"
        )

    @classmethod
    def configuration(
        cls, message: str = "Missing required configuration: username, password, or account"
    ) -> DeployHQError:
        return cls(message, ErrorKind.CONFIGURATION)

    @classmethod
    def authentication(
        cls, message: str = "Invalid credentials or insufficient permissions"
    ) -> DeployHQError:
        return cls(message, ErrorKind.AUTHENTICATION, 401)

    @classmethod
    def validation(cls, response: Any = None, message: str = "Validation failed") -> DeployHQError:
        return cls(message, ErrorKind.VALIDATION, 422, response)

    @classmethod
    def timeout(cls, message: str = "Request timeout") -> DeployHQError:
        return cls(message, ErrorKind.TIMEOUT, 408)

    @classmethod
    def platform(
        cls, message: str, status_code: int | None = None, response: Any = None
    ) -> DeployHQError:
        return cls(message, ErrorKind.PLATFORM, status_code, response)

    @classmethod
    def forbidden(cls, message: str) -> DeployHQError:
        return cls(message, ErrorKind.FORBIDDEN)

    @classmethod
    def unknown_tool(cls, name: str) -> DeployHQError:
        return cls(f"Unknown tool: {name}", ErrorKind.UNKNOWN_TOOL)
