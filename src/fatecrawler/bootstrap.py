"""Wiring of settings, generation client, save store and orchestrator.

This is the only place that reads the ambient settings; everything it
builds receives its configuration explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass

from fatecrawler.core.config import Settings, get_settings
from fatecrawler.core.constants import DEFAULT_SAVE_SLOT
from fatecrawler.core.logging import bind_session, configure_logging, get_logger
from fatecrawler.dm.client import GenerationClient
from fatecrawler.engine.dice import DiceRoller
from fatecrawler.engine.orchestrator import Narrator, TurnOrchestrator
from fatecrawler.models.game_state import GameState
from fatecrawler.models.theme import Preferences
from fatecrawler.storage.database import SaveStore


logger = get_logger(__name__)


@dataclass
class GameSession:
    """Everything a front end needs to run a game.

    Attributes:
        settings: Settings the session was built from.
        client: Generation client, also used for characters and themes.
        store: Save store.
        orchestrator: Turn orchestrator holding the loaded game.
        slot: Save slot the game was loaded from.
    """

    settings: Settings
    client: GenerationClient
    store: SaveStore
    orchestrator: TurnOrchestrator
    slot: str = DEFAULT_SAVE_SLOT

    def save(self) -> None:
        self.orchestrator.save(self.store, self.slot)

    def new_game(self, state: GameState | None = None) -> None:
        """Start over and delete the game stored in this session's slot.

        Raises:
            TurnInProgressError: If a turn is in flight; the slot is kept.
        """
        self.orchestrator.new_game(state)
        self.store.delete_game(self.slot)


def create_session(
    settings: Settings | None = None,
    *,
    narrator: Narrator | None = None,
    roller: DiceRoller | None = None,
    slot: str = DEFAULT_SAVE_SLOT,
    setup_logging: bool = True,
) -> GameSession:
    """Build a ready-to-play session, resuming the game stored in ``slot``.

    Args:
        settings: Settings to use; the cached application settings if omitted.
        narrator: Optional text-to-speech collaborator.
        roller: Dice roller override.
        slot: Save slot to load.
        setup_logging: Configure structlog from the settings.

    Returns:
        The wired session. A missing or corrupted save yields a fresh game.
    """
    settings = settings or get_settings()
    if setup_logging:
        configure_logging(
            level="DEBUG" if settings.debug else settings.log_level,
            json_format=settings.log_json,
        )
    bind_session(slot)

    store = SaveStore(settings.storage.database_path)
    preferences = store.load_preferences(Preferences.from_settings(settings.game))
    state = store.load_game_or_default(slot)

    client = GenerationClient(settings.ai)
    orchestrator = TurnOrchestrator(
        client,
        roller=roller,
        state=state,
        preferences=preferences,
        narrator=narrator,
    )

    logger.info(
        "Session created",
        slot=slot,
        turn=state.turn_count,
        model=settings.ai.model,
    )
    return GameSession(
        settings=settings,
        client=client,
        store=store,
        orchestrator=orchestrator,
        slot=slot,
    )


__all__ = [
    "GameSession",
    "create_session",
]
