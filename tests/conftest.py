"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the Fatecrawler test suite. No test touches the network: the OpenAI
client is replaced by a fake exposing ``chat.completions.create``.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import TYPE_CHECKING, Any, Callable

import pytest


if TYPE_CHECKING:
    from collections.abc import Generator

    from fatecrawler.core.config import AIProviderSettings
    from fatecrawler.models.game_state import GameState


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from fatecrawler.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_log_session() -> Generator[None, None, None]:
    """Drop slot and turn tags bound by an earlier test."""
    from fatecrawler.core.logging import clear_session

    clear_session()
    yield
    clear_session()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "FATECRAWLER_API_KEY": "test-api-key",
        "FATECRAWLER_MODEL": "test/model",
        "FATECRAWLER_DEBUG": "true",
        "FATECRAWLER_LOG_LEVEL": "DEBUG",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def ai_settings() -> AIProviderSettings:
    """Provide generation settings with a dummy key and a single retry."""
    from fatecrawler.core.config import AIProviderSettings

    return AIProviderSettings(
        api_key="test-api-key",
        base_url="https://llm.example.test/v1",
        model="test/model",
        transport_retries=1,
    )


# =============================================================================
# Fake Chat Client
# =============================================================================


def make_completion(content: str | None) -> SimpleNamespace:
    """Build an object shaped like an openai ChatCompletion."""
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
    )


class FakeChatClient:
    """Stands in for ``openai.OpenAI``.

    Each call to ``chat.completions.create`` consumes the next scripted
    reply: a string becomes the completion text, an exception is raised.
    """

    def __init__(self, replies: list[Any]) -> None:
        self.replies = list(replies)
        self.calls: list[dict[str, Any]] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs: Any) -> SimpleNamespace:
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return make_completion(reply)


@pytest.fixture
def fake_chat_client() -> Callable[..., FakeChatClient]:
    """Factory of scripted chat clients."""

    def _factory(*replies: Any) -> FakeChatClient:
        return FakeChatClient(list(replies))

    return _factory


@pytest.fixture
def make_generation_client(
    ai_settings: AIProviderSettings,
    fake_chat_client: Callable[..., FakeChatClient],
) -> Callable[..., Any]:
    """Factory of GenerationClients wired to a scripted chat client.

    Returns:
        ``factory(*replies) -> (GenerationClient, FakeChatClient)``.
    """
    from tenacity import wait_none

    from fatecrawler.dm.client import ChatCompletionTransport, GenerationClient

    def _factory(*replies: Any) -> tuple[GenerationClient, FakeChatClient]:
        chat = fake_chat_client(*replies)
        transport = ChatCompletionTransport(ai_settings, client=chat, retry_wait=wait_none())
        return GenerationClient(ai_settings, transport=transport), chat

    return _factory


# =============================================================================
# Scripted Generation Client
# =============================================================================


class ScriptedGenerationClient:
    """Stands in for GenerationClient in orchestrator tests.

    ``generate_turn`` returns the next queued TurnResponse or raises the
    next queued exception, and records what it was asked.
    """

    def __init__(self) -> None:
        self.responses: list[Any] = []
        self.calls: list[dict[str, Any]] = []

    def queue(self, *responses: Any) -> None:
        self.responses.extend(responses)

    def generate_turn(
        self,
        action: str,
        state: GameState,
        dice_roll: int | None = None,
        bonus_roll: Any = None,
    ) -> Any:
        self.calls.append(
            {"action": action, "state": state, "dice_roll": dice_roll, "bonus_roll": bonus_roll}
        )
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response


@pytest.fixture
def scripted_client() -> ScriptedGenerationClient:
    return ScriptedGenerationClient()


class RecordingNarrator:
    """Narrator that records what it is asked to do."""

    def __init__(self, *, fail: bool = False) -> None:
        self.spoken: list[tuple[str, float, float]] = []
        self.cancelled = 0
        self.fail = fail

    def speak(self, text: str, volume: float, rate: float) -> None:
        if self.fail:
            raise RuntimeError("speech engine unavailable")
        self.spoken.append((text, volume, rate))

    def cancel(self) -> None:
        self.cancelled += 1


@pytest.fixture
def narrator() -> RecordingNarrator:
    return RecordingNarrator()


@pytest.fixture
def failing_narrator() -> RecordingNarrator:
    """Narrator whose speech engine always fails."""
    return RecordingNarrator(fail=True)


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def sample_player_data() -> dict[str, Any]:
    """Provide sample player data for testing.

    Returns:
        Dictionary of player data using field names.
    """
    return {
        "name": "Aldric",
        "race": "Human",
        "gender": "Male",
        "class_name": "Sellsword",
        "bio": "Once a guard, now a wanderer.",
        "stats": {
            "strength": 12,
            "dexterity": 11,
            "intelligence": 9,
            "hp": 30,
            "max_hp": 30,
            "mp": 10,
            "max_mp": 10,
        },
        "inventory": [
            {"name": "Torch", "quantity": 2, "description": "Smells of pitch"},
            {"name": "Rusty Sword", "quantity": 1},
        ],
        "gold": 5,
        "bonus_dice": {"d6": 2, "d10": 1, "d20": 0, "d50": 0},
    }


@pytest.fixture
def sample_state(sample_player_data: dict[str, Any]) -> GameState:
    """Create a sample GameState with one narrative entry."""
    from fatecrawler.models.game_state import GameState, LogEntry, LogType, Player

    return GameState(
        player=Player.model_validate(sample_player_data),
        location="Crypt Entrance",
        history=[LogEntry(type=LogType.NARRATIVE, text="You wake among the bones.")],
        turn_count=1,
    )


@pytest.fixture
def turn_response_factory() -> Callable[..., Any]:
    """Factory of TurnResponses with a default narrative."""
    from fatecrawler.models.game_state import TurnResponse

    def _factory(**fields: Any) -> TurnResponse:
        fields.setdefault("narrative", "The torchlight flickers.")
        return TurnResponse(**fields)

    return _factory


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def dice_roller() -> Any:
    """Create a DiceRoller with a fixed seed for reproducible tests.

    Returns:
        DiceRoller instance with fixed seed.
    """
    from fatecrawler.engine.dice import DiceRoller

    return DiceRoller(seed=42)


# =============================================================================
# Utility Fixtures
# =============================================================================


@pytest.fixture
def temp_db_path(tmp_path: Any) -> Any:
    """Path of a throwaway SQLite database."""
    return tmp_path / "saves" / "fatecrawler.db"
