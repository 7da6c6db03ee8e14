"""Tests for config.py: env loading, boolean parsing, read-only resolution, logging."""

import logging

import pytest

from deployhq_mcp import config


class TestLoadEnv:
    @pytest.fixture(autouse=True)
    def _clean_environ(self, monkeypatch):
        """Remove known keys from os.environ so file-parsing tests are isolated."""
        for key in config._KNOWN_ENV_KEYS:
            monkeypatch.delenv(key, raising=False)

    def test_basic_key_value(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("DEPLOYHQ_ACCOUNT=acme\nDEPLOYHQ_EMAIL=dev@example.com\n")
        monkeypatch.setattr(config, "ENV_PATH", str(env_file))
        assert config.load_env() == {
            "DEPLOYHQ_ACCOUNT": "acme",
            "DEPLOYHQ_EMAIL": "dev@example.com",
        }

    def test_skips_comments_and_blank_lines(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("# comment\n\nKEY=val\n")
        monkeypatch.setattr(config, "ENV_PATH", str(env_file))
        assert config.load_env() == {"KEY": "val"}

    def test_value_with_equals_sign(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("DEPLOYHQ_API_KEY=abc=def\n")
        monkeypatch.setattr(config, "ENV_PATH", str(env_file))
        assert config.load_env() == {"DEPLOYHQ_API_KEY": "abc=def"}

    def test_missing_file_returns_empty(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config, "ENV_PATH", str(tmp_path / "nonexistent"))
        assert config.load_env() == {}

    def test_environ_overrides_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("DEPLOYHQ_ACCOUNT=from-file\n")
        monkeypatch.setattr(config, "ENV_PATH", str(env_file))
        monkeypatch.setenv("DEPLOYHQ_ACCOUNT", "from-env")
        assert config.load_env()["DEPLOYHQ_ACCOUNT"] == "from-env"

    def test_unknown_environ_keys_ignored(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config, "ENV_PATH", str(tmp_path / "nonexistent"))
        monkeypatch.setenv("SOME_OTHER_VAR", "x")
        assert "SOME_OTHER_VAR" not in config.load_env()


class TestEnvHelpers:
    def test_env_int_fallback_on_garbage(self, monkeypatch):
        monkeypatch.setattr(config, "env", {"PORT": "abc"})
        assert config._env_int("PORT", 8080) == 8080

    def test_env_int_parses(self, monkeypatch):
        monkeypatch.setattr(config, "env", {"PORT": "3000"})
        assert config._env_int("PORT", 8080) == 3000

    def test_env_bool(self, monkeypatch):
        monkeypatch.setattr(config, "env", {"DEPLOYHQ_HTTP_LOG": "yes"})
        assert config._env_bool("DEPLOYHQ_HTTP_LOG") is True
        assert config._env_bool("MISSING", default=True) is True


class TestParseBoolean:
    @pytest.mark.parametrize("value", ["true", "TRUE", "1", "yes", " Yes "])
    def test_true_values(self, value):
        assert config.parse_boolean(value) is True

    @pytest.mark.parametrize("value", ["false", "False", "0", "no", "NO"])
    def test_false_values(self, value):
        assert config.parse_boolean(value) is False

    @pytest.mark.parametrize("value", [None, "", "maybe", "on", "2"])
    def test_unrecognized(self, value):
        assert config.parse_boolean(value) is None


class TestParseReadOnlyFlag:
    def test_absent(self):
        assert config.parse_read_only_flag(["--verbose"]) is None

    def test_bare_flag(self):
        assert config.parse_read_only_flag(["--read-only"]) is True

    def test_explicit_false(self):
        assert config.parse_read_only_flag(["--read-only=false"]) is False

    def test_explicit_true(self):
        assert config.parse_read_only_flag(["--read-only=1"]) is True

    def test_unrecognized_value_enables(self):
        assert config.parse_read_only_flag(["--read-only=maybe"]) is True

    def test_first_match_wins(self):
        assert config.parse_read_only_flag(["--read-only=false", "--read-only"]) is False
        assert config.parse_read_only_flag(["--read-only", "--read-only=false"]) is True

    def test_similar_prefix_not_matched(self):
        assert config.parse_read_only_flag(["--read-only-ish"]) is None

    def test_defaults_to_sys_argv(self, monkeypatch):
        monkeypatch.setattr("sys.argv", ["deployhq-mcp", "--read-only=no"])
        assert config.parse_read_only_flag() is False


class TestParseServerConfig:
    def test_default_is_disabled(self):
        assert config.parse_server_config([], {}).read_only_mode is False

    def test_env_enables(self):
        assert config.parse_server_config([], {"DEPLOYHQ_READ_ONLY": "true"}).read_only_mode

    def test_flag_beats_env(self):
        cfg = config.parse_server_config(["--read-only=false"], {"DEPLOYHQ_READ_ONLY": "true"})
        assert cfg.read_only_mode is False

    def test_bare_flag_beats_env_false(self):
        cfg = config.parse_server_config(["--read-only"], {"DEPLOYHQ_READ_ONLY": "false"})
        assert cfg.read_only_mode is True

    def test_unrecognized_env_falls_back_to_default(self):
        cfg = config.parse_server_config([], {"DEPLOYHQ_READ_ONLY": "sometimes"})
        assert cfg.read_only_mode is config.DEFAULT_READ_ONLY

    def test_uses_module_env_by_default(self, monkeypatch):
        monkeypatch.setattr(config, "env", {"DEPLOYHQ_READ_ONLY": "yes"})
        assert config.parse_server_config([]).read_only_mode is True


class TestGetConfigSource:
    def test_cli_flag(self):
        assert config.get_config_source(["--read-only"], {}) == "CLI flag"

    def test_env(self):
        assert (
            config.get_config_source([], {"DEPLOYHQ_READ_ONLY": "false"})
            == "DEPLOYHQ_READ_ONLY=false"
        )

    def test_unrecognized_env_is_default(self):
        assert config.get_config_source([], {"DEPLOYHQ_READ_ONLY": "what"}) == "default"

    def test_default(self):
        assert config.get_config_source([], {}) == "default"


class TestConstants:
    def test_version_format(self):
        parts = config.VERSION.split(".")
        assert len(parts) == 3
        assert all(p.isdigit() for p in parts)

    def test_default_timeout(self):
        assert config.DEFAULT_TIMEOUT_MS == 30_000
        assert config.CREDENTIAL_CHECK_TIMEOUT_MS == 10_000


class TestConfigureLogging:
    def test_handler_added_once(self):
        logger = config.configure_logging()
        config.configure_logging()
        marked = [h for h in logger.handlers if getattr(h, "_deployhq", False)]
        assert len(marked) == 1
        assert logger.propagate is False

    def test_verbose_sets_debug(self):
        assert config.configure_logging(verbose=True).level == logging.DEBUG

    def test_log_level_env(self, monkeypatch):
        monkeypatch.setattr(config, "env", {"LOG_LEVEL": "DEBUG"})
        assert config.configure_logging().level == logging.DEBUG

    def test_default_info(self):
        assert config.configure_logging().level == logging.INFO
