"""Tests for settings loading and logging setup."""

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from ztln.config import default_base_dir, load_settings, setup_logging


class TestLoadSettings:
    def test_defaults(self):
        settings = load_settings(env={})
        assert settings.base_dir == default_base_dir()
        assert settings.log_level == "WARNING"
        assert settings.log_file is None

    def test_environment(self, tmp_path):
        settings = load_settings(env={
            "ZTLN_BASE_DIR": str(tmp_path / "repo"),
            "ZTLN_LOG_LEVEL": "debug",
            "ZTLN_LOG_FILE": str(tmp_path / "ztln.log"),
        })
        assert settings.base_dir == tmp_path / "repo"
        assert settings.log_level == "DEBUG"
        assert settings.log_file == tmp_path / "ztln.log"

    def test_explicit_wins(self, tmp_path):
        settings = load_settings(
            base_dir=tmp_path / "explicit",
            log_level="INFO",
            env={"ZTLN_BASE_DIR": "/elsewhere", "ZTLN_LOG_LEVEL": "ERROR"},
        )
        assert settings.base_dir == tmp_path / "explicit"
        assert settings.log_level == "INFO"

    def test_unknown_level(self):
        with pytest.raises(ValidationError):
            load_settings(log_level="LOUD", env={})

    def test_string_base_dir(self):
        assert load_settings(base_dir="some/where", env={}).base_dir == Path("some/where")


class TestSetupLogging:
    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "ztln.log"
        settings = load_settings(base_dir=tmp_path, log_level="INFO", env={"ZTLN_LOG_FILE": str(log_file)})
        setup_logging(settings)
        try:
            logging.getLogger("ztln.test").info("hello from test")
            for handler in logging.getLogger().handlers:
                handler.flush()
            assert "hello from test" in log_file.read_text()
        finally:
            for handler in list(logging.getLogger().handlers):
                if isinstance(handler, logging.FileHandler):
                    logging.getLogger().removeHandler(handler)
                    handler.close()
