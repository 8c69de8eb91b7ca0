"""
Configuration Tests

Tests for Settings, FactoryConfig and the diagnostic sink adapter.

Test Categories:
1. TestSettings - environment loading and aliases
2. TestFactoryConfig - building from settings with overrides
3. TestSinkLogger - partial sinks and level aliases
"""

import logging
import os

import pytest
from pydantic import ValidationError
from unittest.mock import MagicMock, patch

from aifactory.config import FactoryConfig, Settings, configure_logging, get_settings
from aifactory.diagnostics import SinkLogger


class TestSettings:
    """Tests for environment-driven Settings."""

    def test_defaults(self):
        """Unset environment gives safe defaults."""
        settings = Settings()

        assert settings.openai_api_key is None
        assert settings.default_provider is None
        assert settings.retries == 0
        assert settings.ollama_base_url == "http://localhost:11434"
        assert settings.lmstudio_base_url == "http://localhost:1234"

    def test_primary_env_names(self):
        """Standard variable names are read."""
        with patch.dict(
            os.environ,
            {"OPENAI_API_KEY": "sk-env", "DEFAULT_PROVIDER": "openai", "RETRIES": "2"},
        ):
            settings = Settings()

        assert settings.openai_api_key.get_secret_value() == "sk-env"
        assert settings.default_provider == "openai"
        assert settings.retries == 2

    def test_legacy_env_names(self):
        """BOT_CLIENT_* names are accepted as aliases."""
        with patch.dict(
            os.environ,
            {"BOT_CLIENT_OPENAI_KEY": "sk-legacy", "BOT_CLIENT_PROVIDER": "ollama"},
        ):
            settings = Settings()

        assert settings.openai_api_key.get_secret_value() == "sk-legacy"
        assert settings.default_provider == "ollama"

    def test_api_key_is_secret(self):
        """Keys never show up in repr."""
        settings = Settings(OPENAI_API_KEY="sk-very-secret")

        assert "sk-very-secret" not in repr(settings)

    def test_blank_values_are_none(self):
        """Empty provider names count as unset."""
        settings = Settings(DEFAULT_PROVIDER="  ", provider_order="")

        assert settings.default_provider is None
        assert settings.provider_order is None

    def test_provider_order_list(self):
        """Comma-separated order is split and trimmed."""
        settings = Settings(provider_order="ollama, openai,,groq ")

        assert settings.provider_order_list() == ["ollama", "openai", "groq"]
        assert Settings().provider_order_list() is None

    def test_negative_retries_rejected(self):
        """Retries must be non-negative."""
        with pytest.raises(ValidationError):
            Settings(retries=-1)

    def test_get_settings_is_cached(self):
        """get_settings() returns the same instance until cleared."""
        assert get_settings() is get_settings()


class TestFactoryConfig:
    """Tests for FactoryConfig."""

    def test_from_settings(self):
        """Settings values populate the config."""
        settings = Settings(
            DEFAULT_PROVIDER="openai",
            fallback_provider="ollama",
            provider_order="groq,ollama",
            retries=3,
            retry_delay=0.25,
        )
        config = FactoryConfig.from_settings(settings)

        assert config.default_provider == "openai"
        assert config.fallback_provider == "ollama"
        assert config.provider_order == ("groq", "ollama")
        assert config.retries == 3
        assert config.retry_delay == 0.25
        assert config.settings is settings
        assert config.providers is None

    def test_overrides_take_precedence(self):
        """Keyword overrides win over settings."""
        settings = Settings(DEFAULT_PROVIDER="openai", retries=3)
        config = FactoryConfig.from_settings(settings, default_provider="groq", retries=0)

        assert config.default_provider == "groq"
        assert config.retries == 0

    def test_providers_become_tuple(self):
        """Provider lists are stored immutably."""
        sentinel = object()
        config = FactoryConfig(providers=[sentinel])

        assert config.providers == (sentinel,)

    def test_frozen(self):
        """Config cannot be modified after creation."""
        config = FactoryConfig()

        with pytest.raises(ValidationError):
            config.retries = 5


class TestSinkLogger:
    """Tests for the diagnostic sink adapter."""

    def test_forwards_to_sink(self, recording_sink):
        """Every level reaches a complete sink."""
        log = SinkLogger(recording_sink)
        log.debug("d")
        log.info("i")
        log.warning("w")
        log.error("e")

        assert recording_sink.messages == {
            "debug": ["d"],
            "info": ["i"],
            "warning": ["w"],
            "error": ["e"],
        }

    def test_missing_levels_are_skipped(self):
        """A sink without some methods does not raise."""
        sink = MagicMock(spec=["info"])
        log = SinkLogger(sink)

        log.debug("ignored")
        log.warning("ignored")
        log.error("ignored")
        log.info("kept")

        sink.info.assert_called_once_with("kept")

    def test_non_callable_attribute_is_skipped(self):
        """A level attribute that is not callable counts as missing."""

        class Sink:
            error = "not a method"

        SinkLogger(Sink()).error("ignored")

    def test_fallback_logger(self, caplog):
        """Without a sink, messages go to the fallback logger."""
        fallback = logging.getLogger("aifactory.tests")

        with caplog.at_level(logging.WARNING, logger="aifactory.tests"):
            SinkLogger(fallback=fallback).warning("careful")

        assert "careful" in caplog.text

    def test_raising_sink_is_contained(self, caplog):
        """A sink method that raises is reported, not propagated."""
        sink = MagicMock(spec=["error"])
        sink.error.side_effect = RuntimeError("sink broke")

        with caplog.at_level(logging.WARNING, logger="aifactory.diagnostics"):
            SinkLogger(sink).error("provider failed")

        sink.error.assert_called_once_with("provider failed")
        assert "sink broke" in caplog.text
        assert "provider failed" in caplog.text

    def test_no_sink_no_fallback(self):
        """With neither sink nor fallback every call is a no-op."""
        log = SinkLogger()
        log.error("nothing happens")


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_quiets_http_libraries(self):
        """Third-party HTTP loggers are raised to WARNING."""
        try:
            configure_logging(Settings(log_level="DEBUG"))

            assert logging.getLogger("httpx").level == logging.WARNING
            assert logging.getLogger("openai").level == logging.WARNING
        finally:
            logging.getLogger("aifactory").setLevel(logging.NOTSET)

    def test_sets_package_level(self):
        """The aifactory logger follows settings.log_level."""
        package_logger = logging.getLogger("aifactory")
        try:
            configure_logging(Settings(log_level="DEBUG"))
            assert package_logger.level == logging.DEBUG

            configure_logging(Settings(log_level="ERROR"))
            assert package_logger.level == logging.ERROR
        finally:
            package_logger.setLevel(logging.NOTSET)

    def test_uses_cached_settings_by_default(self):
        """Without arguments, LOG_LEVEL from the environment applies."""
        package_logger = logging.getLogger("aifactory")
        try:
            configure_logging()
            assert package_logger.level == logging.WARNING
        finally:
            package_logger.setLevel(logging.NOTSET)
