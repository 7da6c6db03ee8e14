"""Tests for cli.py and the stdio transport startup path."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from deployhq_mcp import config
from deployhq_mcp.cli import _extract_global_flags, build_parser, main
from deployhq_mcp.exceptions import CliError, DeployHQError, SetupError
from deployhq_mcp.models import ServerConfig
from deployhq_mcp.transports.stdio import run_stdio, verify_credentials

_FULL_ENV = {
    "DEPLOYHQ_EMAIL": "dev@example.com",
    "DEPLOYHQ_API_KEY": "key-123",
    "DEPLOYHQ_ACCOUNT": "acme",
}

# ---------------------------------------------------------------------------
# _extract_global_flags
# ---------------------------------------------------------------------------


class TestExtractGlobalFlags:
    def test_no_flags(self):
        assert _extract_global_flags([]) == (False, [])

    def test_verbose_anywhere(self):
        verbose, remaining = _extract_global_flags(["--skip-credential-check", "-v"])
        assert verbose is True
        assert remaining == ["--skip-credential-check"]

    def test_read_only_forms_dropped(self):
        verbose, remaining = _extract_global_flags(["--read-only", "--read-only=false"])
        assert remaining == []

    def test_version_exits(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            _extract_global_flags(["--version"])
        assert exc_info.value.code == 0
        assert config.VERSION in capsys.readouterr().out

    def test_help_exits(self, capsys):
        with pytest.raises(SystemExit):
            _extract_global_flags(["--help"])
        assert "DEPLOYHQ_API_KEY" in capsys.readouterr().out


class TestParser:
    def test_unknown_argument_raises_cli_error(self):
        with pytest.raises(CliError):
            build_parser().parse_args(["--bogus"])

    def test_skip_credential_check(self):
        assert build_parser().parse_args(["--skip-credential-check"]).skip_credential_check


# ---------------------------------------------------------------------------
# main()
# ---------------------------------------------------------------------------


class TestMain:
    def test_missing_env_exits_with_setup_code(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == SetupError.exit_code
        err = capsys.readouterr().err
        assert "[SETUP_NEEDED]" in err
        assert "DEPLOYHQ_ACCOUNT" in err

    def test_partial_env_exits(self, monkeypatch):
        monkeypatch.setattr(config, "env", {"DEPLOYHQ_EMAIL": "dev@example.com"})
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 2

    def test_unknown_flag_exits_1(self, monkeypatch):
        monkeypatch.setattr(config, "env", dict(_FULL_ENV))
        with pytest.raises(SystemExit) as exc_info:
            main(["--bogus"])
        assert exc_info.value.code == 1

    @patch("deployhq_mcp.cli.anyio.run")
    def test_runs_stdio_with_resolved_config(self, mock_run, monkeypatch):
        monkeypatch.setattr(config, "env", dict(_FULL_ENV))
        main(["--read-only", "--skip-credential-check"])
        fn, credentials, server_config, check = mock_run.call_args[0]
        assert fn is run_stdio
        assert credentials.account == "acme"
        assert server_config == ServerConfig(read_only_mode=True)
        assert check is False

    @patch("deployhq_mcp.cli.anyio.run")
    def test_cli_error_from_stdio_propagates_exit_code(self, mock_run, monkeypatch, capsys):
        monkeypatch.setattr(config, "env", dict(_FULL_ENV))
        mock_run.side_effect = SetupError("[AUTH_FAILED] nope")
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 2
        assert "[AUTH_FAILED]" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# stdio credential check
# ---------------------------------------------------------------------------


class TestVerifyCredentials:
    def _probe(self, side_effect=None):
        probe = MagicMock()
        probe.validate_credentials = AsyncMock(side_effect=side_effect)
        return probe

    @patch("deployhq_mcp.transports.stdio.DeployHQClient")
    def test_success_uses_short_timeout(self, MockClient, credentials):
        MockClient.from_credentials.return_value = self._probe()
        asyncio.run(verify_credentials(credentials))
        kwargs = MockClient.from_credentials.call_args.kwargs
        assert kwargs["timeout_ms"] == config.CREDENTIAL_CHECK_TIMEOUT_MS

    @patch("deployhq_mcp.transports.stdio.DeployHQClient")
    def test_auth_failure_is_setup_error(self, MockClient, credentials):
        MockClient.from_credentials.return_value = self._probe(DeployHQError.authentication())
        with pytest.raises(SetupError, match="AUTH_FAILED"):
            asyncio.run(verify_credentials(credentials))

    @patch("deployhq_mcp.transports.stdio.DeployHQClient")
    def test_other_failure_is_cli_error(self, MockClient, credentials):
        MockClient.from_credentials.return_value = self._probe(DeployHQError.timeout())
        with pytest.raises(CliError) as exc_info:
            asyncio.run(verify_credentials(credentials))
        assert not isinstance(exc_info.value, SetupError)
        assert "Request timeout" in str(exc_info.value)
