"""Generation client: prompts in, validated game data out.

The client talks to any OpenAI-compatible chat-completion endpoint
(OpenRouter by default) through the openai SDK. It owns three requests:

- turn narration, whose failures always propagate as AIControlError
  subclasses so a failed turn can never corrupt the game state;
- character details and color themes, which are cosmetic: their failures
  are logged and replaced with fixed fallbacks.
"""

from __future__ import annotations

from typing import Any

from openai import APIConnectionError, APIError, APIStatusError, OpenAI, RateLimitError
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from fatecrawler.core.config import AIProviderSettings
from fatecrawler.core.constants import FALLBACK_CHARACTER_DETAILS, FALLBACK_THEME
from fatecrawler.core.exceptions import (
    AIConnectionError,
    AIControlError,
    AIRateLimitError,
    EmptyResponseError,
)
from fatecrawler.core.logging import get_logger
from fatecrawler.dm.extractor import extract_json
from fatecrawler.dm.normalize import normalize_turn_payload
from fatecrawler.dm.prompts import (
    CHARACTER_SYSTEM_PROMPT,
    GM_SYSTEM_PROMPT,
    THEME_SYSTEM_PROMPT,
    build_character_prompt,
    build_theme_prompt,
    build_turn_prompt,
)
from fatecrawler.models.game_state import (
    BonusRoll,
    CharacterDetails,
    GameState,
    Stats,
    TurnResponse,
)
from fatecrawler.models.theme import Theme, ThemeColors


logger = get_logger(__name__)


# =============================================================================
# Transport
# =============================================================================


def _retry_after_seconds(exc: APIStatusError) -> float | None:
    """Read the Retry-After header of a rate-limited response, if any."""
    value = exc.response.headers.get("retry-after") if exc.response is not None else None
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class ChatCompletionTransport:
    """One logical operation: "generate chat completion".

    Connection failures are retried with tenacity up to
    ``config.transport_retries`` times. Rate limiting is never retried here:
    it surfaces immediately as AIRateLimitError.
    """

    def __init__(
        self,
        config: AIProviderSettings,
        *,
        client: Any = None,
        retry_wait: wait_base | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            config: Endpoint, model, credential and limits.
            client: Pre-built OpenAI-compatible client (tests inject fakes).
            retry_wait: tenacity wait strategy between connection retries.
        """
        self._config = config
        self._client = client
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=8)

    @property
    def model(self) -> str:
        return self._config.model

    def _get_client(self) -> Any:
        """Get or create the OpenAI client configured for the endpoint."""
        if self._client is None:
            api_key = self._config.api_key
            if api_key is None or not api_key.get_secret_value().strip():
                raise AIConnectionError(
                    "API key not configured",
                    provider=self._config.base_url,
                    details={"env_var": "FATECRAWLER_API_KEY"},
                )
            self._client = OpenAI(
                api_key=api_key.get_secret_value().strip(),
                base_url=self._config.base_url,
                timeout=self._config.timeout_seconds,
                max_retries=0,
                default_headers={
                    "HTTP-Referer": self._config.referer,
                    "X-Title": self._config.app_title,
                },
            )
        return self._client

    def complete(self, messages: list[dict[str, str]], *, max_tokens: int) -> str:
        """Send the messages and return the completion text.

        Raises:
            AIRateLimitError: The service answered 429.
            AIConnectionError: Network failure or any other non-2xx answer.
            EmptyResponseError: The completion carried no text.
        """
        client = self._get_client()
        provider = self._config.base_url

        retrying = Retrying(
            retry=retry_if_exception_type(APIConnectionError),
            stop=stop_after_attempt(self._config.transport_retries + 1),
            wait=self._retry_wait,
            reraise=True,
        )

        try:
            for attempt in retrying:
                with attempt:
                    response = client.chat.completions.create(
                        model=self._config.model,
                        messages=messages,
                        temperature=self._config.temperature,
                        max_tokens=max_tokens,
                    )
        except RateLimitError as exc:
            raise AIRateLimitError(
                "The model is overloaded (429). Try again later.",
                retry_after_seconds=_retry_after_seconds(exc),
                model=self._config.model,
                provider=provider,
            ) from exc
        except APIConnectionError as exc:
            raise AIConnectionError(
                f"Failed to connect to the generation service: {exc}",
                model=self._config.model,
                provider=provider,
            ) from exc
        except APIStatusError as exc:
            raise AIConnectionError(
                f"API error: {exc.status_code}",
                model=self._config.model,
                provider=provider,
                details={"status_code": exc.status_code},
            ) from exc
        except APIError as exc:
            raise AIConnectionError(
                f"API error: {exc.message}",
                model=self._config.model,
                provider=provider,
            ) from exc

        content = ""
        if response.choices:
            content = response.choices[0].message.content or ""
        if not content.strip():
            raise EmptyResponseError("Empty response", model=self._config.model, provider=provider)

        logger.debug("Completion received", model=self._config.model, length=len(content))
        return content


# =============================================================================
# Theme Completion
# =============================================================================


DICE_COLOR_SOURCES = {
    "diceBg": "panel",
    "diceText": "gold",
    "diceBorder": "muted",
}


def complete_theme(raw: Any, *, index: int = 1) -> Theme | None:
    """Turn one generated theme into a fully specified Theme.

    Dice colors missing from the payload are copied from their sibling
    fields; any other missing color comes from the fallback theme.

    Returns:
        The completed theme, or None if the entry is not an object.
    """
    if not isinstance(raw, dict):
        return None

    raw_colors = raw.get("colors")
    colors = _camel_color_keys(raw_colors) if isinstance(raw_colors, dict) else {}

    for dice_key, source_key in DICE_COLOR_SOURCES.items():
        if dice_key not in colors and source_key in colors:
            colors[dice_key] = colors[source_key]

    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        name = f"Theme {index}"
    filled = {**FALLBACK_THEME["colors"], **colors}
    return Theme(name=name.strip(), colors=ThemeColors.model_validate(filled))


def _camel_color_keys(colors: dict[str, Any]) -> dict[str, str]:
    """Keep string colors, accepting snake_case keys for the dice fields."""
    renamed = {"dice_bg": "diceBg", "dice_text": "diceText", "dice_border": "diceBorder"}
    return {
        renamed.get(key, key): value.strip()
        for key, value in colors.items()
        if isinstance(value, str) and value.strip()
    }


def fallback_themes() -> list[Theme]:
    return [Theme.model_validate(FALLBACK_THEME)]


# =============================================================================
# Generation Client
# =============================================================================


class GenerationClient:
    """Builds prompts from game context and turns replies into game data.

    Example:
        >>> client = GenerationClient(settings.ai)
        >>> response = client.generate_turn("Open the door", state, dice_roll=14)
        >>> response.narrative
        'The hinges scream...'
    """

    def __init__(
        self,
        config: AIProviderSettings,
        *,
        transport: ChatCompletionTransport | None = None,
    ) -> None:
        """Initialize the generation client.

        Args:
            config: Generation service settings, used verbatim.
            transport: Transport override; built from ``config`` if omitted.
        """
        self._config = config
        self._transport = transport or ChatCompletionTransport(config)
        logger.info("GenerationClient initialized", model=config.model, base_url=config.base_url)

    def generate_turn(
        self,
        action: str,
        state: GameState,
        dice_roll: int | None = None,
        bonus_roll: BonusRoll | None = None,
    ) -> TurnResponse:
        """Narrate the outcome of one player action.

        Args:
            action: Action text as the player chose or typed it.
            state: State the action is taken in.
            dice_roll: d20 skill check, absent for special actions.
            bonus_roll: Bonus die spent on this action.

        Returns:
            The canonical turn response.

        Raises:
            AIControlError: Transport, empty response, extraction or
                validation failure. Never swallowed.
        """
        messages = [
            {"role": "system", "content": GM_SYSTEM_PROMPT},
            {"role": "user", "content": build_turn_prompt(action, state, dice_roll, bonus_roll)},
        ]
        logger.debug("Requesting turn", action=action[:100], dice_roll=dice_roll)

        content = self._transport.complete(messages, max_tokens=self._config.turn_max_tokens)
        return normalize_turn_payload(extract_json(content))

    def generate_character_details(self, stats: Stats) -> CharacterDetails:
        """Suggest a name, race, gender, class and bio for rolled stats.

        Never raises: any failure yields the neutral fallback record.
        """
        messages = [
            {"role": "system", "content": CHARACTER_SYSTEM_PROMPT},
            {"role": "user", "content": build_character_prompt(stats)},
        ]
        try:
            content = self._transport.complete(
                messages, max_tokens=self._config.character_max_tokens
            )
            payload = extract_json(content)
            if not isinstance(payload, dict):
                raise EmptyResponseError("Character payload is not a JSON object")
            details = {
                key: value.strip()
                for key, value in payload.items()
                if isinstance(value, str) and value.strip()
            }
            return CharacterDetails.model_validate(details)
        except AIControlError as exc:
            logger.warning("Character generation failed, using fallback", error=str(exc))
            return CharacterDetails.model_validate(FALLBACK_CHARACTER_DETAILS)

    def generate_themes(self, allow_light: bool = False) -> list[Theme]:
        """Generate candidate color themes for the presentation layer.

        Never raises: any failure yields the single built-in fallback theme.
        """
        messages = [
            {"role": "system", "content": THEME_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": build_theme_prompt(self._config.theme_count, allow_light),
            },
        ]
        try:
            content = self._transport.complete(messages, max_tokens=self._config.theme_max_tokens)
            payload = extract_json(content)
        except AIControlError as exc:
            logger.warning("Theme generation failed, using fallback", error=str(exc))
            return fallback_themes()

        if isinstance(payload, list):
            entries = payload
        elif isinstance(payload.get("themes"), list):
            entries = payload["themes"]
        else:
            entries = [payload]

        themes = [
            theme
            for theme in (complete_theme(entry, index=i) for i, entry in enumerate(entries, start=1))
            if theme is not None
        ]
        if not themes:
            logger.warning("No usable themes in response, using fallback")
            return fallback_themes()

        logger.info("Themes generated", count=len(themes))
        return themes


__all__ = [
    "ChatCompletionTransport",
    "GenerationClient",
    "complete_theme",
    "fallback_themes",
]
