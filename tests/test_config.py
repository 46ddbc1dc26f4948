"""Tests for environment-driven settings and logging setup."""

import json
import logging

import pytest
from formlogic.config import Settings
from formlogic.log import PACKAGE_LOGGER, JsonFormatter, setup_logging, setup_logging_from_settings

ENV_KEYS = (
    "FORMLOGIC_LOG_LEVEL",
    "FORMLOGIC_LOG_JSON",
    "FORMLOGIC_VALIDATION_SCOPE",
    "FORMLOGIC_TRANSLATION_TIMEOUT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def package_logger():
    logger = logging.getLogger(PACKAGE_LOGGER)
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)


class TestSettings:
    def test_defaults(self):
        assert Settings.from_env() == Settings()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("FORMLOGIC_LOG_LEVEL", "debug")
        monkeypatch.setenv("FORMLOGIC_LOG_JSON", "yes")
        monkeypatch.setenv("FORMLOGIC_VALIDATION_SCOPE", "CHANGED")
        monkeypatch.setenv("FORMLOGIC_TRANSLATION_TIMEOUT", "2.5")
        settings = Settings.from_env()
        assert settings.log_level == "debug"
        assert settings.log_json is True
        assert settings.validation_scope == "changed"
        assert settings.translation_timeout_seconds == 2.5

    @pytest.mark.parametrize(
        "key,value,attr,expected",
        [
            ("FORMLOGIC_VALIDATION_SCOPE", "partial", "validation_scope", "full"),
            ("FORMLOGIC_TRANSLATION_TIMEOUT", "soon", "translation_timeout_seconds", 10.0),
            ("FORMLOGIC_LOG_LEVEL", "   ", "log_level", "WARNING"),
            ("FORMLOGIC_LOG_JSON", "nope", "log_json", False),
        ],
    )
    def test_malformed_values_fall_back(self, monkeypatch, key, value, attr, expected):
        monkeypatch.setenv(key, value)
        assert getattr(Settings.from_env(), attr) == expected


class TestLogging:
    def test_setup_logging(self, package_logger):
        logger = setup_logging("info")
        assert logger is package_logger
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1

    def test_setup_is_idempotent(self, package_logger):
        setup_logging()
        setup_logging()
        assert len(package_logger.handlers) == 1

    def test_json_formatter_selected(self, package_logger):
        setup_logging(json_logs=True)
        assert isinstance(package_logger.handlers[0].formatter, JsonFormatter)

    def test_from_settings(self, package_logger):
        setup_logging_from_settings(Settings(log_level="ERROR"))
        assert package_logger.level == logging.ERROR

    def test_json_formatter_output(self):
        record = logging.LogRecord("formlogic.state", logging.WARNING, __file__, 1, "hello %s", ("world",), None)
        payload = json.loads(JsonFormatter().format(record))
        assert payload["level"] == "WARNING"
        assert payload["logger"] == "formlogic.state"
        assert payload["msg"] == "hello world"
        assert "ts" in payload
