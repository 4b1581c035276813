"""Tests for the chat-completion transport and the generation client."""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest
from openai import (
    APIConnectionError,
    APIError,
    APITimeoutError,
    AuthenticationError,
    InternalServerError,
    OpenAI,
    RateLimitError,
)
from tenacity import wait_none

from fatecrawler.core.config import AIProviderSettings
from fatecrawler.core.constants import FALLBACK_THEME
from fatecrawler.core.exceptions import (
    AIConnectionError,
    AIRateLimitError,
    EmptyResponseError,
    ExtractionError,
    ValidationGapError,
)
from fatecrawler.dm.client import ChatCompletionTransport, complete_theme
from fatecrawler.models.game_state import BonusDie, BonusRoll, GameState, Stats


REQUEST = httpx.Request("POST", "https://llm.example.test/v1/chat/completions")


def _status_error(cls: type, status: int, headers: dict[str, str] | None = None) -> Any:
    response = httpx.Response(status, request=REQUEST, headers=headers or {})
    return cls(f"HTTP {status}", response=response, body=None)


TURN_REPLY = """Here is what happens:
```json
{
  "narrative": "The skeleton crumbles under your blow.",
  "options": [{"id": "1", "title": "Search the bones", "description": "Look for loot"}],
  "hpChange": -2,
  "itemsFound": [{"name": "Bone Key", "quantity": 1}]
}
```"""


class TestChatCompletionTransport:
    """Tests for ChatCompletionTransport."""

    def test_returns_completion_text(
        self, ai_settings: AIProviderSettings, fake_chat_client: Callable[..., Any]
    ) -> None:
        """Test the request parameters and the returned text."""
        chat = fake_chat_client("hello")
        transport = ChatCompletionTransport(ai_settings, client=chat)
        messages = [{"role": "user", "content": "hi"}]

        assert transport.complete(messages, max_tokens=42) == "hello"
        assert chat.calls == [
            {
                "model": "test/model",
                "messages": messages,
                "temperature": 0.9,
                "max_tokens": 42,
            }
        ]

    @pytest.mark.parametrize("content", [None, "", "   \n"])
    def test_blank_content(
        self,
        ai_settings: AIProviderSettings,
        fake_chat_client: Callable[..., Any],
        content: str | None,
    ) -> None:
        """Test a blank completion is an empty response."""
        transport = ChatCompletionTransport(ai_settings, client=fake_chat_client(content))

        with pytest.raises(EmptyResponseError):
            transport.complete([], max_tokens=10)

    def test_rate_limit_not_retried(
        self, ai_settings: AIProviderSettings, fake_chat_client: Callable[..., Any]
    ) -> None:
        """Test 429 surfaces at once as the rate-limited kind."""
        chat = fake_chat_client(
            _status_error(RateLimitError, 429, {"retry-after": "2"}),
            "never reached",
        )
        transport = ChatCompletionTransport(ai_settings, client=chat)

        with pytest.raises(AIRateLimitError) as exc_info:
            transport.complete([], max_tokens=10)

        assert exc_info.value.retry_after_seconds == 2.0
        assert exc_info.value.details["model"] == "test/model"
        assert len(chat.calls) == 1

    def test_connection_error_retried(
        self, ai_settings: AIProviderSettings, fake_chat_client: Callable[..., Any]
    ) -> None:
        """Test a dropped connection is retried once."""
        chat = fake_chat_client(APIConnectionError(request=REQUEST), "recovered")
        transport = ChatCompletionTransport(ai_settings, client=chat, retry_wait=wait_none())

        assert transport.complete([], max_tokens=10) == "recovered"
        assert len(chat.calls) == 2

    def test_connection_retries_exhausted(
        self, ai_settings: AIProviderSettings, fake_chat_client: Callable[..., Any]
    ) -> None:
        """Test retries are bounded by transport_retries."""
        chat = fake_chat_client(
            APIConnectionError(request=REQUEST),
            APITimeoutError(request=REQUEST),
            "too late",
        )
        transport = ChatCompletionTransport(ai_settings, client=chat, retry_wait=wait_none())

        with pytest.raises(AIConnectionError) as exc_info:
            transport.complete([], max_tokens=10)

        assert not isinstance(exc_info.value, AIRateLimitError)
        assert len(chat.calls) == 2

    @pytest.mark.parametrize(
        ("error_class", "status"),
        [(InternalServerError, 500), (AuthenticationError, 401)],
    )
    def test_other_status_errors(
        self,
        ai_settings: AIProviderSettings,
        fake_chat_client: Callable[..., Any],
        error_class: type,
        status: int,
    ) -> None:
        """Test non-2xx answers become connection errors with the status."""
        chat = fake_chat_client(_status_error(error_class, status))
        transport = ChatCompletionTransport(ai_settings, client=chat)

        with pytest.raises(AIConnectionError) as exc_info:
            transport.complete([], max_tokens=10)

        assert exc_info.value.details["status_code"] == status
        assert len(chat.calls) == 1

    def test_unclassified_api_error(
        self, ai_settings: AIProviderSettings, fake_chat_client: Callable[..., Any]
    ) -> None:
        """Test an SDK error without a status still becomes a connection error."""
        chat = fake_chat_client(APIError("stream ended mid-response", request=REQUEST, body=None))
        transport = ChatCompletionTransport(ai_settings, client=chat, retry_wait=wait_none())

        with pytest.raises(AIConnectionError) as exc_info:
            transport.complete([], max_tokens=10)

        assert exc_info.value.message == "API error: stream ended mid-response"
        assert "status_code" not in exc_info.value.details
        assert len(chat.calls) == 1

    def test_missing_api_key(self) -> None:
        """Test no request is attempted without a credential."""
        transport = ChatCompletionTransport(AIProviderSettings(api_key=None))

        with pytest.raises(AIConnectionError) as exc_info:
            transport.complete([], max_tokens=10)
        assert "API key" in exc_info.value.message

    def test_builds_openai_client(self, ai_settings: AIProviderSettings) -> None:
        """Test the SDK client is pointed at the configured endpoint."""
        client = ChatCompletionTransport(ai_settings)._get_client()

        assert isinstance(client, OpenAI)
        assert str(client.base_url).startswith("https://llm.example.test/v1")
        assert client.max_retries == 0


class TestGenerateTurn:
    """Tests for turn generation."""

    def test_parses_fenced_reply(
        self, make_generation_client: Callable[..., Any], sample_state: GameState
    ) -> None:
        """Test a fenced reply becomes a canonical response."""
        client, _ = make_generation_client(TURN_REPLY)

        response = client.generate_turn("Attack the skeleton", sample_state, dice_roll=17)

        assert response.narrative == "The skeleton crumbles under your blow."
        assert response.hp_change == -2
        assert response.options[0].title == "Search the bones"
        assert response.items_found is not None
        assert response.items_found[0].name == "Bone Key"

    def test_prompt_carries_context(
        self, make_generation_client: Callable[..., Any], sample_state: GameState
    ) -> None:
        """Test the prompt includes stats, inventory, action and rolls."""
        client, chat = make_generation_client(TURN_REPLY)

        client.generate_turn(
            "Attack the skeleton",
            sample_state,
            dice_roll=14,
            bonus_roll=BonusRoll(die=BonusDie.D6, value=3),
        )

        call = chat.calls[0]
        system, user = call["messages"]
        assert system["role"] == "system"
        assert "JSON" in system["content"]
        assert "Torch (x2), Rusty Sword (x1)" in user["content"]
        assert "Crypt Entrance" in user["content"]
        assert 'Action: "Attack the skeleton"' in user["content"]
        assert "d20 check: 14 + bonus d6: 3" in user["content"]
        assert call["max_tokens"] == 1500

    def test_special_action_has_no_roll(
        self, make_generation_client: Callable[..., Any], sample_state: GameState
    ) -> None:
        """Test no roll annotation is sent without a roll."""
        client, chat = make_generation_client(TURN_REPLY)

        client.generate_turn("Look around", sample_state)

        assert "d20 check" not in chat.calls[0]["messages"][1]["content"]

    def test_prose_reply_propagates(
        self, make_generation_client: Callable[..., Any], sample_state: GameState
    ) -> None:
        """Test an unstructured reply is not swallowed."""
        client, _ = make_generation_client("The Master is silent today.")

        with pytest.raises(ExtractionError):
            client.generate_turn("Wait", sample_state, dice_roll=3)

    def test_missing_narrative_propagates(
        self, make_generation_client: Callable[..., Any], sample_state: GameState
    ) -> None:
        """Test a payload without narrative is a validation gap."""
        client, _ = make_generation_client(json.dumps({"hpChange": -5}))

        with pytest.raises(ValidationGapError):
            client.generate_turn("Wait", sample_state, dice_roll=3)

    def test_rate_limit_propagates(
        self, make_generation_client: Callable[..., Any], sample_state: GameState
    ) -> None:
        """Test transport errors reach the caller."""
        client, _ = make_generation_client(_status_error(RateLimitError, 429))

        with pytest.raises(AIRateLimitError):
            client.generate_turn("Wait", sample_state, dice_roll=3)


class TestGenerateCharacterDetails:
    """Tests for cosmetic character generation."""

    def test_success(self, make_generation_client: Callable[..., Any]) -> None:
        """Test the suggested details are returned."""
        reply = json.dumps(
            {"name": "Veyra", "race": "Tiefling", "gender": "Female", "class": "Warlock", "bio": "Bound."}
        )
        client, chat = make_generation_client(reply)

        details = client.generate_character_details(Stats(strength=8, intelligence=16))

        assert details.name == "Veyra"
        assert details.class_name == "Warlock"
        assert "Intelligence 16" in chat.calls[0]["messages"][1]["content"]
        assert chat.calls[0]["max_tokens"] == 500

    def test_non_string_fields_dropped(self, make_generation_client: Callable[..., Any]) -> None:
        """Test only text fields are kept."""
        client, _ = make_generation_client('{"name": "Veyra", "race": 7, "bio": "  "}')

        details = client.generate_character_details(Stats())

        assert details.name == "Veyra"
        assert details.race is None
        assert details.bio is None

    @pytest.mark.parametrize(
        "reply",
        [
            "I cannot help with that.",
            "[1, 2, 3]",
            APIConnectionError(request=REQUEST),
        ],
    )
    def test_failure_returns_fallback(
        self, make_generation_client: Callable[..., Any], reply: Any
    ) -> None:
        """Test any failure yields the neutral record."""
        client, _ = make_generation_client(reply, reply)

        details = client.generate_character_details(Stats())

        assert details.name == "Nameless"
        assert details.race == "Human"
        assert details.bio == "..."


class TestGenerateThemes:
    """Tests for cosmetic theme generation."""

    THEME = {
        "name": "Necromancer",
        "colors": {
            "dark": "#0b0f0b",
            "panel": "#141d14",
            "gold": "#7CFC00",
            "red": "#b00020",
            "blue": "#5b3fa8",
            "text": "#e0ffe0",
            "muted": "#7a8f7a",
            "diceBg": "#000000",
            "diceText": "#7CFC00",
            "diceBorder": "#7CFC00",
        },
    }

    def test_array_reply(self, make_generation_client: Callable[..., Any]) -> None:
        """Test an array of themes."""
        client, chat = make_generation_client(json.dumps([self.THEME, {**self.THEME, "name": "Echo"}]))

        themes = client.generate_themes()

        assert [theme.name for theme in themes] == ["Necromancer", "Echo"]
        assert themes[0].colors.gold == "#7CFC00"
        assert "Strictly DARK" in chat.calls[0]["messages"][1]["content"]
        assert chat.calls[0]["max_tokens"] == 2000

    def test_object_with_themes_key(self, make_generation_client: Callable[..., Any]) -> None:
        """Test a wrapper object."""
        client, chat = make_generation_client(json.dumps({"themes": [self.THEME]}))

        themes = client.generate_themes(allow_light=True)

        assert [theme.name for theme in themes] == ["Necromancer"]
        assert "LIGHT" in chat.calls[0]["messages"][1]["content"]

    def test_single_theme_object(self, make_generation_client: Callable[..., Any]) -> None:
        """Test a lone theme object."""
        client, _ = make_generation_client(json.dumps(self.THEME))
        assert [theme.name for theme in client.generate_themes()] == ["Necromancer"]

    def test_failure_returns_fallback(self, make_generation_client: Callable[..., Any]) -> None:
        """Test failures yield the built-in theme."""
        client, _ = make_generation_client(_status_error(InternalServerError, 503))

        themes = client.generate_themes()

        assert len(themes) == 1
        assert themes[0].name == FALLBACK_THEME["name"]

    def test_no_usable_entries(self, make_generation_client: Callable[..., Any]) -> None:
        """Test an array without objects yields the built-in theme."""
        client, _ = make_generation_client('["red", "blue"]')
        assert [theme.name for theme in client.generate_themes()] == [FALLBACK_THEME["name"]]


class TestCompleteTheme:
    """Tests for theme back-filling."""

    def test_dice_colors_from_siblings(self) -> None:
        """Test dice colors copy panel, gold and muted."""
        theme = complete_theme(
            {
                "name": "Vampire",
                "colors": {"panel": "#200000", "gold": "#ff0033", "muted": "#886666"},
            }
        )

        assert theme is not None
        assert theme.colors.dice_bg == "#200000"
        assert theme.colors.dice_text == "#ff0033"
        assert theme.colors.dice_border == "#886666"

    def test_other_colors_from_fallback(self) -> None:
        """Test any other gap is filled from the fallback theme."""
        theme = complete_theme({"name": "Sparse", "colors": {"gold": "#00ffff"}})

        assert theme is not None
        assert theme.colors.gold == "#00ffff"
        assert theme.colors.dice_text == "#00ffff"
        assert theme.colors.red == FALLBACK_THEME["colors"]["red"]
        assert theme.colors.dice_bg == FALLBACK_THEME["colors"]["diceBg"]

    def test_missing_name(self) -> None:
        """Test unnamed themes are numbered."""
        theme = complete_theme({"colors": {}}, index=3)
        assert theme is not None
        assert theme.name == "Theme 3"

    def test_non_object(self) -> None:
        """Test non-objects are skipped."""
        assert complete_theme("Crimson") is None
