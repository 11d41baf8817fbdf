"""Tests for credential configuration."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from drive_helper import config


class TestLoadEnvFile:
    """Test .env parsing."""

    def test_missing_file(self, tmp_path):
        """Should load nothing when the file does not exist."""
        assert config._load_env_file(tmp_path / ".env") == {}

    def test_parses_values(self, tmp_path):
        """Should skip comments and strip quotes."""
        env_file = tmp_path / ".env"
        env_file.write_text(
            "# service account\n"
            "DRIVE_HELPER_TEST_PLAIN=plain\n"
            'DRIVE_HELPER_TEST_DOUBLE="double quoted"\n'
            "DRIVE_HELPER_TEST_SINGLE='single'\n"
            "not a pair\n"
            "\n"
        )

        with patch.dict(os.environ, {}):
            loaded = config._load_env_file(env_file)
            assert os.environ["DRIVE_HELPER_TEST_DOUBLE"] == "double quoted"

        assert loaded == {
            "DRIVE_HELPER_TEST_PLAIN": "plain",
            "DRIVE_HELPER_TEST_DOUBLE": "double quoted",
            "DRIVE_HELPER_TEST_SINGLE": "single",
        }

    def test_environment_takes_precedence(self, tmp_path):
        """Should not override variables already set."""
        env_file = tmp_path / ".env"
        env_file.write_text("DRIVE_HELPER_TEST_KEEP=from-file\n")

        with patch.dict(os.environ, {"DRIVE_HELPER_TEST_KEEP": "from-env"}):
            loaded = config._load_env_file(env_file)
            assert os.environ["DRIVE_HELPER_TEST_KEEP"] == "from-env"

        assert loaded == {}


class TestSettings:
    """Test derived settings."""

    def test_default_key_path(self, monkeypatch):
        """Should default to the in-repo key location."""
        monkeypatch.delenv(config.KEY_PATH_ENV, raising=False)
        assert config.get_service_account_key_path() == config.GOOGLE_SERVICE_ACCOUNT

    def test_key_path_override(self, monkeypatch, tmp_path):
        """Should honour GOOGLE_SERVICE_ACCOUNT_KEY."""
        monkeypatch.setenv(config.KEY_PATH_ENV, str(tmp_path / "key.json"))
        assert config.get_service_account_key_path() == Path(tmp_path / "key.json")

    def test_log_level(self, monkeypatch):
        """Should default to WARNING and normalise case."""
        monkeypatch.delenv(config.LOG_LEVEL_ENV, raising=False)
        assert config.get_log_level() == "WARNING"
        monkeypatch.setenv(config.LOG_LEVEL_ENV, "debug")
        assert config.get_log_level() == "DEBUG"

    def test_unknown_log_level(self, monkeypatch):
        """Should reject names the logging module does not know."""
        monkeypatch.setenv(config.LOG_LEVEL_ENV, "loud")
        with pytest.raises(ValueError, match="LOUD"):
            config.get_log_level()

    def test_credential_status(self, monkeypatch, tmp_path):
        """Should report whether the configured key exists."""
        key_path = tmp_path / "key.json"
        monkeypatch.setenv(config.KEY_PATH_ENV, str(key_path))

        status = config.get_credential_status()
        assert status["service_account"]["exists"] is False
        assert status["service_account"]["from_env"] is True

        key_path.write_text("{}")
        assert config.get_credential_status()["service_account"]["exists"] is True
