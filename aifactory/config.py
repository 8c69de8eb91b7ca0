"""
AI Factory Configuration Module

This module manages settings and environment variables using pydantic-settings
for type-safe configuration management, plus the immutable FactoryConfig that
a dispatch engine is constructed with.

Environment variables are loaded from .env file or system environment.
All API keys use SecretStr to prevent accidental logging.
"""

from functools import lru_cache
from typing import Any, Literal
import logging
import sys

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings loaded from environment variables.

    Pydantic Settings automatically reads from:
    1. Environment variables
    2. .env file in working directory
    3. Default values defined here

    Every API key is optional. A cloud provider without a key is still
    constructed but fails its connection test, so it never enters the
    registry.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown env vars
        populate_by_name=True,
    )

    openai_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_API_KEY", "BOT_CLIENT_OPENAI_KEY"),
        description="OpenAI API key",
    )

    anthropic_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("ANTHROPIC_API_KEY", "BOT_CLIENT_ANTHROPIC_KEY"),
        description="Anthropic API key",
    )

    gemini_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "BOT_CLIENT_GEMINI_KEY"),
        description="Google Gemini API key",
    )

    groq_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("GROQ_API_KEY", "BOT_CLIENT_GROQ_KEY"),
        description="Groq API key",
    )

    openai_base_url: str | None = Field(
        default=None, description="Override for the OpenAI API base URL"
    )

    anthropic_base_url: str = Field(
        default="https://api.anthropic.com", description="Anthropic API base URL"
    )

    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com",
        description="Gemini API base URL",
    )

    ollama_base_url: str = Field(
        default="http://localhost:11434", description="Local Ollama server"
    )

    lmstudio_base_url: str = Field(
        default="http://localhost:1234", description="Local LM Studio server"
    )

    default_provider: str | None = Field(
        default=None,
        validation_alias=AliasChoices("DEFAULT_PROVIDER", "BOT_CLIENT_PROVIDER"),
        description="Provider used when the request names no model",
    )

    fallback_provider: str | None = Field(
        default=None, description="Provider tried once after retries are exhausted"
    )

    provider_order: str | None = Field(
        default=None,
        description="Comma-separated provider ids tried in order when nothing else matches",
    )

    retries: int = Field(
        default=0, ge=0, description="Extra attempts on the selected provider"
    )

    retry_delay: float = Field(
        default=0.0,
        ge=0.0,
        description="Base delay in seconds between retries (doubles per attempt)",
    )

    request_timeout: float = Field(
        default=30.0, gt=0, description="Per-call HTTP timeout for every provider"
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Application log level"
    )

    @field_validator("default_provider", "fallback_provider", "provider_order")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        """Treat empty environment values as unset."""
        if v is not None and not v.strip():
            return None
        return v

    def provider_order_list(self) -> list[str] | None:
        """Split PROVIDER_ORDER into provider ids."""
        if not self.provider_order:
            return None
        return [p.strip() for p in self.provider_order.split(",") if p.strip()]


@lru_cache
def get_settings() -> Settings:
    """
    Returns cached settings instance.

    Using lru_cache ensures settings are loaded once and reused,
    avoiding repeated file reads and environment parsing.

    Returns:
        Settings: The settings singleton.
    """
    return Settings()


class FactoryConfig(BaseModel):
    """
    Configuration a dispatch engine is constructed with.

    Immutable once built. When `providers` is given it replaces the
    built-in provider list entirely; otherwise one provider of every
    built-in kind is created from `settings`.

    Attributes:
        default_provider: Provider used when the request names no model
        fallback_provider: Provider invoked once after retries are exhausted
        provider_order: Preference order used when no default matches
        providers: Explicit provider instances (bypasses defaults)
        retries: Additional attempts on the selected provider
        retry_delay: Base backoff delay in seconds, 0 disables waiting
        logger: Optional diagnostic sink (see aifactory.diagnostics)
        settings: Settings used to build the default provider list
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    default_provider: str | None = None
    fallback_provider: str | None = None
    provider_order: tuple[str, ...] | None = None
    providers: tuple[Any, ...] | None = None
    retries: int = Field(default=0, ge=0)
    retry_delay: float = Field(default=0.0, ge=0.0)
    logger: Any = None
    settings: Settings | None = None

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **overrides: Any) -> "FactoryConfig":
        """
        Build a FactoryConfig from environment settings.

        Args:
            settings: Settings to read (cached settings when omitted)
            **overrides: Fields that take precedence over the environment

        Returns:
            FactoryConfig populated from settings
        """
        settings = settings or get_settings()
        values: dict[str, Any] = {
            "default_provider": settings.default_provider,
            "fallback_provider": settings.fallback_provider,
            "provider_order": settings.provider_order_list(),
            "retries": settings.retries,
            "retry_delay": settings.retry_delay,
            "settings": settings,
        }
        values.update(overrides)
        return cls(**values)


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# SDK and transport loggers that are chatty at INFO
_QUIET_LOGGERS = ("httpx", "httpcore", "openai", "groq")


def configure_logging(settings: Settings | None = None) -> None:
    """
    Send aifactory logs to stdout at the configured level.

    The package only attaches a NullHandler on import. This sets the
    `aifactory` logger to `settings.log_level` and installs a stdout
    handler on the root logger if the application has none yet. Provider
    SDK loggers stay at WARNING whatever the package level is.

    Args:
        settings: Settings to read `log_level` from (cached settings when omitted)
    """
    settings = settings or get_settings()

    logging.basicConfig(format=LOG_FORMAT, handlers=[logging.StreamHandler(sys.stdout)])
    logging.getLogger("aifactory").setLevel(settings.log_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
