"""
deployhq-mcp shared configuration, constants, and module-level state.
Only imports models from the project (no circular imports).
"""

import logging
import os
import sys

from deployhq_mcp.models import ServerConfig

# ---------------------------------------------------------------------------
# .env path and helpers
# ---------------------------------------------------------------------------

ENV_PATH = os.path.join(os.getcwd(), ".env")

# Keys also read from os.environ (Docker / MCP client config support).
_KNOWN_ENV_KEYS = (
    "DEPLOYHQ_EMAIL",
    "DEPLOYHQ_API_KEY",
    "DEPLOYHQ_ACCOUNT",
    "DEPLOYHQ_READ_ONLY",
    "DEPLOYHQ_TIMEOUT_MS",
    "DEPLOYHQ_HTTP_LOG",
    "LOG_LEVEL",
    "NODE_ENV",
    "PORT",
    "HOST",
)


def load_env():
    """Read KEY=value pairs from .env, then overlay known keys from os.environ."""
    env = {}
    if os.path.exists(ENV_PATH):
        with open(ENV_PATH) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, val = line.split("=", 1)
                    env[key.strip()] = val.strip()
    for key in _KNOWN_ENV_KEYS:
        if key in os.environ:
            env[key] = os.environ[key]
    return env


def _env_bool(key, default=False):
    """Parse common boolean env formats."""
    raw = env.get(key)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(key, default):
    """Parse integer env values with fallback."""
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

VERSION = "1.0.0"
SERVER_NAME = "deployhq-mcp-server"

PLATFORM_DOMAIN = "deployhq.com"
DEFAULT_TIMEOUT_MS = 30_000
CREDENTIAL_CHECK_TIMEOUT_MS = 10_000

EMAIL_ENV = "DEPLOYHQ_EMAIL"
API_KEY_ENV = "DEPLOYHQ_API_KEY"
ACCOUNT_ENV = "DEPLOYHQ_ACCOUNT"

EMAIL_HEADER = "X-DeployHQ-Email"
API_KEY_HEADER = "X-DeployHQ-API-Key"
ACCOUNT_HEADER = "X-DeployHQ-Account"

READ_ONLY_ENV = "DEPLOYHQ_READ_ONLY"
READ_ONLY_FLAG = "--read-only"
DEFAULT_READ_ONLY = False

_TRUE_VALUES = {"true", "1", "yes"}
_FALSE_VALUES = {"false", "0", "no"}

# ---------------------------------------------------------------------------
# Module-level state (loaded from .env / environment)
# ---------------------------------------------------------------------------

env = load_env()

TIMEOUT_MS = max(1, _env_int("DEPLOYHQ_TIMEOUT_MS", DEFAULT_TIMEOUT_MS))
HTTP_LOG_ENABLED = _env_bool("DEPLOYHQ_HTTP_LOG", False)
PORT = _env_int("PORT", 8080)
HOST = env.get("HOST", "0.0.0.0")


# ---------------------------------------------------------------------------
# Read-only mode
# ---------------------------------------------------------------------------


def parse_boolean(value):
    """Parse true/1/yes and false/0/no (case-insensitive).

    Returns None for empty or unrecognized values.
    """
    if not value:
        return None
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    return None


def parse_read_only_flag(argv=None):
    """Return the read-only value from ``--read-only[=value]`` or None if absent.

    The first matching argument wins. A bare ``--read-only`` enables the
    mode; an explicit value that is not a recognized boolean also enables it.
    """
    args = sys.argv[1:] if argv is None else argv
    prefix = READ_ONLY_FLAG + "="
    for arg in args:
        if arg == READ_ONLY_FLAG:
            return True
        if arg.startswith(prefix):
            parsed = parse_boolean(arg[len(prefix) :])
            return True if parsed is None else parsed
    return None


def parse_server_config(argv=None, environ=None):
    """Resolve ServerConfig: CLI flag > DEPLOYHQ_READ_ONLY > DEFAULT_READ_ONLY."""
    flag = parse_read_only_flag(argv)
    if flag is not None:
        return ServerConfig(read_only_mode=flag)

    source = env if environ is None else environ
    env_value = parse_boolean(source.get(READ_ONLY_ENV))
    if env_value is not None:
        return ServerConfig(read_only_mode=env_value)

    return ServerConfig(read_only_mode=DEFAULT_READ_ONLY)


def get_config_source(argv=None, environ=None):
    """Describe where the read-only setting came from (for startup logs)."""
    if parse_read_only_flag(argv) is not None:
        return "CLI flag"
    source = env if environ is None else environ
    raw = source.get(READ_ONLY_ENV)
    if parse_boolean(raw) is not None:
        return f"{READ_ONLY_ENV}={raw}"
    return "default"


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_FORMAT = "[%(levelname)s] %(asctime)s - %(message)s"


def _debug_requested():
    return env.get("LOG_LEVEL", "").lower() == "debug" or env.get("NODE_ENV") == "development"


def configure_logging(verbose=False):
    """Send all package logs to stderr. stdout stays free for the stdio protocol."""
    logger = logging.getLogger("deployhq_mcp")
    if not any(getattr(h, "_deployhq", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._deployhq = True
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose or _debug_requested() else logging.INFO)
    logger.propagate = False
    return logger
