"""
Shared test fixtures for deployhq-mcp tests.
Patches config module state so no test reads the real .env or environment.
"""

import pytest

from deployhq_mcp.models import Credentials


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch):
    """Ensure every test starts with a clean config state."""
    from deployhq_mcp import config

    monkeypatch.setattr(config, "env", {})
    monkeypatch.setattr(config, "HTTP_LOG_ENABLED", False)
    monkeypatch.setattr(config, "TIMEOUT_MS", config.DEFAULT_TIMEOUT_MS)


@pytest.fixture
def credentials():
    return Credentials(email="dev@example.com", api_key="key-123456789", account="acme")
