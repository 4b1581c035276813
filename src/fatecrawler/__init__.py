"""Fatecrawler - a turn engine for a text RPG narrated by a language model.

The model narrates; Python owns truth:
- Python owns STATE (GameState, dice rolls via d20, clamping, inventory)
- The model produces only a structured turn response
- Every response is extracted, normalized and folded in by a pure reducer

Example:
    >>> from fatecrawler import create_session
    >>>
    >>> session = create_session()
    >>> orchestrator = session.orchestrator
    >>> outcome = orchestrator.take_turn("Light a torch and step inside")
    >>> print(outcome.narrative if outcome.succeeded else orchestrator.last_error)

Modules:
    core: Configuration, logging, constants and exceptions.
    models: Pydantic V2 models of the game state and themes.
    dm: Prompts, chat-completion transport, extraction and normalization.
    engine: Dice, character creation, reducer and turn orchestrator.
    storage: Snapshots and the SQLite save store.
"""

from __future__ import annotations

# Core
from fatecrawler.core.config import Settings, get_settings
from fatecrawler.core.exceptions import FatecrawlerError
from fatecrawler.core.logging import configure_logging, get_logger

# Models
from fatecrawler.models import (
    GameState,
    InventoryItem,
    LogEntry,
    LogType,
    Player,
    Preferences,
    Stats,
    Theme,
    TurnResponse,
)

# Game Master
from fatecrawler.dm import GenerationClient, extract_json, normalize_turn_payload

# Engine
from fatecrawler.engine import (
    CharacterCreator,
    DiceRoller,
    TurnOrchestrator,
    TurnOutcome,
    TurnPhase,
    apply_turn,
    create_player,
    new_game_state,
)

# Storage
from fatecrawler.storage import SaveStore, load_snapshot_or_default

from fatecrawler.bootstrap import GameSession, create_session


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "FatecrawlerError",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Models
    "GameState",
    "InventoryItem",
    "LogEntry",
    "LogType",
    "Player",
    "Preferences",
    "Stats",
    "Theme",
    "TurnResponse",
    # Game Master
    "GenerationClient",
    "extract_json",
    "normalize_turn_payload",
    # Engine
    "CharacterCreator",
    "DiceRoller",
    "TurnOrchestrator",
    "TurnOutcome",
    "TurnPhase",
    "apply_turn",
    "create_player",
    "new_game_state",
    # Storage
    "SaveStore",
    "load_snapshot_or_default",
    # Session
    "GameSession",
    "create_session",
]
