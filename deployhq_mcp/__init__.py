"""
deployhq-mcp: Model Context Protocol server for the DeployHQ deployment platform.
"""

from deployhq_mcp.api import DeployHQClient
from deployhq_mcp.config import VERSION
from deployhq_mcp.exceptions import CliError, DeployHQError, ErrorKind, SetupError
from deployhq_mcp.models import ClientConfig, Credentials, ServerConfig

__all__ = [
    "VERSION",
    "CliError",
    "ClientConfig",
    "Credentials",
    "DeployHQClient",
    "DeployHQError",
    "ErrorKind",
    "ServerConfig",
    "SetupError",
]
