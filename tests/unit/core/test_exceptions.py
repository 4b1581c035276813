"""Tests for the exception hierarchy."""

from __future__ import annotations

import pytest

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


class TestFatecrawlerError:
    """Tests for the base FatecrawlerError exception."""

    def test_basic_message(self) -> None:
        """Test exception with basic message."""
        exc = FatecrawlerError("Test error message")
        assert exc.message == "Test error message"
        assert exc.details == {}
        assert str(exc) == "Test error message"

    def test_with_details(self) -> None:
        """Test exception with additional details."""
        exc = FatecrawlerError("Test error", details={"key": "value", "count": 42})
        assert exc.details == {"key": "value", "count": 42}
        assert "key='value'" in str(exc)
        assert "count=42" in str(exc)

    def test_repr(self) -> None:
        """Test exception repr output."""
        repr_str = repr(FatecrawlerError("Test", details={"x": 1}))
        assert "FatecrawlerError" in repr_str
        assert "Test" in repr_str
        assert "x" in repr_str


class TestGameEngineExceptions:
    """Tests for game engine exceptions."""

    def test_invalid_game_state_context(self) -> None:
        """Test InvalidGameStateError records states."""
        exc = InvalidGameStateError(
            "Game over",
            current_state="game_over",
            expected_states=["in_progress"],
        )
        assert exc.details["current_state"] == "game_over"
        assert exc.details["expected_states"] == ["in_progress"]
        assert isinstance(exc, GameEngineError)

    def test_dice_roll_error_expression(self) -> None:
        """Test DiceRollError records the expression."""
        exc = DiceRollError("Bad dice", expression="1d0")
        assert exc.details["expression"] == "1d0"

    def test_turn_in_progress_is_turn_management_error(self) -> None:
        """Test the re-entrancy error belongs to turn management."""
        assert issubclass(TurnInProgressError, TurnManagementError)
        assert issubclass(TurnManagementError, GameEngineError)


class TestAIControlExceptions:
    """Tests for generation failures."""

    def test_model_and_provider_in_details(self) -> None:
        """Test model context is recorded."""
        exc = AIConnectionError("Down", model="test/model", provider="https://x.test")
        assert exc.details == {"model": "test/model", "provider": "https://x.test"}

    def test_rate_limit_is_a_connection_error(self) -> None:
        """Test rate limiting is a distinguishable transport sub-kind."""
        exc = AIRateLimitError("Slow down", retry_after_seconds=2.5)

        assert isinstance(exc, AIConnectionError)
        assert isinstance(exc, AIControlError)
        assert exc.retry_after_seconds == 2.5
        assert exc.details["retry_after_seconds"] == 2.5

    def test_rate_limit_without_retry_after(self) -> None:
        """Test retry-after is optional."""
        exc = AIRateLimitError("Slow down")
        assert exc.retry_after_seconds is None
        assert "retry_after_seconds" not in exc.details

    def test_extraction_error_default_message(self) -> None:
        """Test the extraction failure message and preview."""
        exc = ExtractionError(raw_preview="Once upon a time")
        assert exc.message == "no structured data found"
        assert exc.details["raw_preview"] == "Once upon a time"

    @pytest.mark.parametrize(
        "exc_class",
        [EmptyResponseError, ExtractionError, ValidationGapError],
    )
    def test_response_errors_share_base(self, exc_class: type[AIResponseError]) -> None:
        """Test every unusable-response error is an AIResponseError."""
        assert issubclass(exc_class, AIResponseError)
        assert issubclass(exc_class, AIControlError)

    def test_validation_gap_propagates_as_extraction_failure(self) -> None:
        """Test a missing narrative is handled like an extraction failure."""
        with pytest.raises(ExtractionError):
            raise ValidationGapError("no narrative")


class TestOtherExceptions:
    """Tests for configuration, validation and storage exceptions."""

    def test_configuration_error_key(self) -> None:
        """Test ConfigurationError records the key."""
        exc = ConfigurationError("Bad", config_key="base_url")
        assert exc.details["config_key"] == "base_url"

    def test_validation_error_field(self) -> None:
        """Test ValidationError records field and value."""
        exc = ValidationError("Blank", field_name="name", invalid_value="")
        assert exc.details["field_name"] == "name"
        assert exc.details["invalid_value"] == ""

    @pytest.mark.parametrize(
        "exc_class",
        [ConfigurationError, ValidationError, StorageError, GameEngineError, AIControlError],
    )
    def test_all_inherit_from_base(self, exc_class: type[FatecrawlerError]) -> None:
        """Test one boundary catches everything."""
        assert issubclass(exc_class, FatecrawlerError)
