"""Remediation hints for error envelopes.

Best-effort string matching over the error text. Cosmetic only: callers
never depend on the exact hints, and derivation never raises.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from deployhq_mcp.exceptions import ErrorKind

log = logging.getLogger(__name__)

PROJECT_HINT = "Check the project permalink; list_projects shows the available permalinks."
SERVER_HINT = "Check the server UUID; list_servers shows the servers configured for the project."
DEPLOYMENT_HINT = "Check the deployment UUID; list_deployments shows recent deployments."
NOT_FOUND_HINT = "Confirm the resource exists and the DeployHQ account name is correct."

_KIND_HINTS: dict[ErrorKind, tuple[str, ...]] = {
    ErrorKind.AUTHENTICATION: (
        "Verify DEPLOYHQ_EMAIL and DEPLOYHQ_API_KEY "
        "(or the X-DeployHQ-Email / X-DeployHQ-API-Key headers).",
        "Confirm the API key has access to this DeployHQ account.",
    ),
    ErrorKind.TIMEOUT: ("DeployHQ did not respond in time; retry the call.",),
    ErrorKind.VALIDATION: ("Compare the arguments with the tool's input schema (tools/list).",),
    ErrorKind.FORBIDDEN: (
        "Restart the server with DEPLOYHQ_READ_ONLY=false or --read-only=false "
        "to allow deployments.",
    ),
    ErrorKind.UNKNOWN_TOOL: ("Call tools/list to see the available tool names.",),
    ErrorKind.CONFIGURATION: (
        "Provide DEPLOYHQ_EMAIL, DEPLOYHQ_API_KEY and DEPLOYHQ_ACCOUNT.",
    ),
}

# Kinds whose messages are fixed text we wrote ourselves.
_NO_TEXT_MATCH = {ErrorKind.FORBIDDEN, ErrorKind.UNKNOWN_TOOL, ErrorKind.CONFIGURATION}

_TEXT_HINTS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\bprojects?\b|permalink", re.IGNORECASE), PROJECT_HINT),
    (re.compile(r"\bservers?\b|parent_identifier", re.IGNORECASE), SERVER_HINT),
    (re.compile(r"\bdeployments?\b|\buuid\b", re.IGNORECASE), DEPLOYMENT_HINT),
    (re.compile(r"not found", re.IGNORECASE), NOT_FOUND_HINT),
]


_TRACEBACK_PREFIX = "Traceback (most recent call last)"


def _searchable(message: str, detail: Any) -> str:
    # Tracebacks name our own code (args.uuid, project=...), not the caller's input.
    if detail is None or (isinstance(detail, str) and detail.startswith(_TRACEBACK_PREFIX)):
        return message
    if isinstance(detail, str):
        return f"{message} {detail}"
    return f"{message} {json.dumps(detail, default=str)}"


def suggest_fixes(
    kind: ErrorKind | str,
    message: str,
    detail: Any = None,
    status_code: int | None = None,
) -> list[str]:
    """Return a short, de-duplicated list of hints (possibly empty)."""
    try:
        kind = ErrorKind(kind)
        hints = list(_KIND_HINTS.get(kind, ()))
        if kind not in _NO_TEXT_MATCH:
            text = _searchable(message or "", detail)
            for pattern, hint in _TEXT_HINTS:
                if pattern.search(text) and hint not in hints:
                    hints.append(hint)
        if status_code == 404 and NOT_FOUND_HINT not in hints:
            hints.append(NOT_FOUND_HINT)
        return hints
    except Exception:
        log.debug("Could not derive suggestions for %r", message, exc_info=True)
        return []
