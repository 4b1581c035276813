"""Configuration management for the Fatecrawler turn engine.

This module provides centralized configuration management using
pydantic-settings, supporting environment variables, .env files, and
runtime overrides. The API credential is held as a SecretStr.

The engine never reads these settings implicitly: the bootstrap code builds
a Settings object once and hands the relevant section to the generation
client and the turn orchestrator at construction time.

Environment Variables:
    FATECRAWLER_API_KEY: Credential for the chat-completion endpoint
    FATECRAWLER_BASE_URL: Endpoint base (OpenAI-compatible API)
    FATECRAWLER_MODEL: Model identifier
    FATECRAWLER_GAME_TTS_ENABLED: Narrate turns aloud
    FATECRAWLER_DATABASE_PATH: Path to the SQLite save file
    FATECRAWLER_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fatecrawler.core.exceptions import ConfigurationError


class AIProviderSettings(BaseSettings):
    """Connection settings for the text-generation service.

    Attributes:
        api_key: Credential sent as a bearer token.
        base_url: Base URL of an OpenAI-compatible API.
        model: Model identifier used verbatim in every request.
        temperature: Sampling temperature for all requests.
        turn_max_tokens: Token budget for a turn narration.
        character_max_tokens: Token budget for character details.
        theme_max_tokens: Token budget for theme generation.
        theme_count: Number of themes requested per generation.
        timeout_seconds: Request timeout handed to the HTTP client.
        transport_retries: Retries on connection failures (never on 429).
        app_title: Value of the X-Title header.
        referer: Value of the HTTP-Referer header.
    """

    model_config = SettingsConfigDict(
        env_prefix="FATECRAWLER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: SecretStr | None = Field(
        default=None,
        description="Credential for the generation service",
    )
    base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="OpenAI-compatible endpoint base",
    )
    model: str = Field(
        default="mistralai/devstral-2512:free",
        description="Model identifier",
    )
    temperature: float = Field(default=0.9, ge=0.0, le=2.0)
    turn_max_tokens: int = Field(default=1500, gt=0)
    character_max_tokens: int = Field(default=500, gt=0)
    theme_max_tokens: int = Field(default=2000, gt=0)
    theme_count: int = Field(default=5, ge=1, le=10)
    timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        le=300,
        description="API request timeout",
    )
    transport_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Connection-level retry attempts",
    )
    app_title: str = Field(default="Fatecrawler")
    referer: str = Field(default="https://github.com/fatecrawler/fatecrawler")

    @field_validator("base_url", mode="after")
    @classmethod
    def normalize_base_url(cls, value: str) -> str:
        """Trim whitespace and trailing slashes from the endpoint base.

        Raises:
            ConfigurationError: If the URL is not http(s).
        """
        value = value.strip().rstrip("/")
        if not value.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"base_url must be an http(s) URL, got {value!r}",
                config_key="base_url",
            )
        return value


class GameSettings(BaseSettings):
    """Player preferences that influence the turn loop.

    Attributes:
        tts_enabled: Narrate each successful turn.
        tts_volume: Narration volume (0..1).
        tts_rate: Narration playback rate.
        ui_scale: Presentation scale factor, stored for the UI.
    """

    model_config = SettingsConfigDict(
        env_prefix="FATECRAWLER_GAME_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    tts_enabled: bool = Field(default=False)
    tts_volume: float = Field(default=0.8, ge=0.0, le=1.0)
    tts_rate: float = Field(default=1.0, gt=0.0, le=4.0)
    ui_scale: float = Field(default=0.95, gt=0.0, le=3.0)


class StorageSettings(BaseSettings):
    """Configuration for the save file.

    Attributes:
        database_path: Path to the SQLite database file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FATECRAWLER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_path: Path = Field(
        default=Path.home() / ".fatecrawler" / "fatecrawler.db",
        description="Path to SQLite database",
    )


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        debug: Enable debug mode.
        log_level: Application logging level.
        log_json: Render logs as JSON lines.
        ai: Generation service settings.
        game: Gameplay preferences.
        storage: Save file settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="FATECRAWLER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(default="Fatecrawler")
    debug: bool = Field(default=False)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_json: bool = Field(default=False)

    ai: AIProviderSettings = Field(default_factory=AIProviderSettings)
    game: GameSettings = Field(default_factory=GameSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "AIProviderSettings",
    "GameSettings",
    "StorageSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
