"""Custom exception hierarchy for the Fatecrawler turn engine.

Every exception raised by the engine inherits from FatecrawlerError so that
the presentation layer can catch failures at a single boundary while still
discriminating between domains (generation, game rules, storage).

Example:
    >>> from fatecrawler.core.exceptions import AIRateLimitError
    >>> raise AIRateLimitError("Model overloaded", retry_after_seconds=2.0)
"""

from __future__ import annotations

from typing import Any


class FatecrawlerError(Exception):
    """Base exception for all Fatecrawler errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Game Engine Domain Exceptions
# =============================================================================


class GameEngineError(FatecrawlerError):
    """Base exception for all game engine errors."""


class InvalidGameStateError(GameEngineError):
    """Raised when an operation is not allowed in the current game state.

    Typical causes are submitting a turn after the hero has died or spending
    a bonus die the player does not own.
    """

    def __init__(
        self,
        message: str,
        *,
        current_state: str | None = None,
        expected_states: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize invalid game state error with state context.

        Args:
            message: Human-readable error description.
            current_state: The current state identifier.
            expected_states: List of states in which the operation is valid.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if current_state:
            combined_details["current_state"] = current_state
        if expected_states:
            combined_details["expected_states"] = expected_states
        super().__init__(message, details=combined_details)


class DiceRollError(GameEngineError):
    """Raised when a dice expression cannot be rolled."""

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize dice roll error with expression context.

        Args:
            message: Human-readable error description.
            expression: The dice expression that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if expression:
            combined_details["expression"] = expression
        super().__init__(message, details=combined_details)


class TurnManagementError(GameEngineError):
    """Raised when the turn sequence is driven out of order."""


class TurnInProgressError(TurnManagementError):
    """Raised when an action is submitted while a generation is in flight."""


# =============================================================================
# AI Control Domain Exceptions
# =============================================================================


class AIControlError(FatecrawlerError):
    """Base exception for every failure of a generation request.

    The turn orchestrator catches this class: any subclass leaves the game
    state untouched and is surfaced to the player as a failed turn.
    """

    def __init__(
        self,
        message: str,
        *,
        model: str | None = None,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize AI control error with model context.

        Args:
            message: Human-readable error description.
            model: Name of the AI model involved.
            provider: Base URL or name of the AI provider.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if model:
            combined_details["model"] = model
        if provider:
            combined_details["provider"] = provider
        super().__init__(message, details=combined_details)


class AIConnectionError(AIControlError):
    """Raised when the generation service cannot be reached or answers non-2xx."""


class AIRateLimitError(AIConnectionError):
    """Raised when the generation service rejects the request with HTTP 429."""

    def __init__(
        self,
        message: str,
        *,
        retry_after_seconds: float | None = None,
        model: str | None = None,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize rate limit error with retry context.

        Args:
            message: Human-readable error description.
            retry_after_seconds: Seconds the service asked us to wait.
            model: Name of the AI model involved.
            provider: Base URL or name of the AI provider.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if retry_after_seconds is not None:
            combined_details["retry_after_seconds"] = retry_after_seconds
        self.retry_after_seconds = retry_after_seconds
        super().__init__(message, model=model, provider=provider, details=combined_details)


class AIResponseError(AIControlError):
    """Raised when a response was received but cannot be used."""


class EmptyResponseError(AIResponseError):
    """Raised when the generation service returned no text at all."""


class ExtractionError(AIResponseError):
    """Raised when no parseable JSON object or array is found in a response."""

    def __init__(
        self,
        message: str = "no structured data found",
        *,
        raw_preview: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize extraction error with a preview of the offending text.

        Args:
            message: Human-readable error description.
            raw_preview: First characters of the raw response.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if raw_preview is not None:
            combined_details["raw_preview"] = raw_preview
        super().__init__(message, details=combined_details)


class ValidationGapError(ExtractionError):
    """Raised when a payload parsed but lacks the required narrative."""


# =============================================================================
# Configuration, Validation & Storage Exceptions
# =============================================================================


class ConfigurationError(FatecrawlerError):
    """Raised when application configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


class ValidationError(FatecrawlerError):
    """Raised when player-supplied data is rejected."""

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error with field context.

        Args:
            message: Human-readable error description.
            field_name: Name of the field that failed validation.
            invalid_value: The value that failed validation.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        if invalid_value is not None:
            combined_details["invalid_value"] = invalid_value
        super().__init__(message, details=combined_details)


class StorageError(FatecrawlerError):
    """Raised when a save slot cannot be written or read."""


__all__ = [
    "FatecrawlerError",
    # Game engine
    "GameEngineError",
    "InvalidGameStateError",
    "DiceRollError",
    "TurnManagementError",
    "TurnInProgressError",
    # AI control
    "AIControlError",
    "AIConnectionError",
    "AIRateLimitError",
    "AIResponseError",
    "EmptyResponseError",
    "ExtractionError",
    "ValidationGapError",
    # Configuration, validation & storage
    "ConfigurationError",
    "ValidationError",
    "StorageError",
]
