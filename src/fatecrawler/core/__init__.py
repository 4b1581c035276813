"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        FatecrawlerError: Base exception for all application errors.
        AIControlError and subclasses: generation failures.
        GameEngineError and subclasses: turn and rule failures.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        get_logger: Get a configured logger instance.
        bind_session: Tag log entries with the save slot.
        bind_turn: Tag log entries with the turn in flight.
        clear_session: Drop the session tags.
"""

from __future__ import annotations

from fatecrawler.core.config import (
    AIProviderSettings,
    GameSettings,
    Settings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)
from fatecrawler.core.exceptions import (
    AIConnectionError,
    AIControlError,
    AIRateLimitError,
    AIResponseError,
    ConfigurationError,
    DiceRollError,
    EmptyResponseError,
    ExtractionError,
    FatecrawlerError,
    GameEngineError,
    InvalidGameStateError,
    StorageError,
    TurnInProgressError,
    TurnManagementError,
    ValidationError,
    ValidationGapError,
)
from fatecrawler.core.logging import (
    bind_session,
    bind_turn,
    clear_session,
    configure_logging,
    get_logger,
)


__all__ = [
    # Base exception
    "FatecrawlerError",
    # Game engine exceptions
    "GameEngineError",
    "InvalidGameStateError",
    "DiceRollError",
    "TurnManagementError",
    "TurnInProgressError",
    # AI control exceptions
    "AIControlError",
    "AIConnectionError",
    "AIRateLimitError",
    "AIResponseError",
    "EmptyResponseError",
    "ExtractionError",
    "ValidationGapError",
    # Other exceptions
    "ConfigurationError",
    "ValidationError",
    "StorageError",
    # Configuration
    "Settings",
    "AIProviderSettings",
    "GameSettings",
    "StorageSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_session",
    "bind_turn",
    "clear_session",
]
