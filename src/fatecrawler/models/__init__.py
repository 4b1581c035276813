"""Pydantic models of the game state, generated turns and themes."""

from __future__ import annotations

from fatecrawler.models.game_state import (
    ActionOption,
    BonusDice,
    BonusDie,
    BonusRoll,
    CharacterDetails,
    FoundItem,
    GameModel,
    GameState,
    InventoryItem,
    LogEntry,
    LogType,
    Player,
    Stats,
    TurnResponse,
    new_id,
)
from fatecrawler.models.theme import Preferences, Theme, ThemeColors


__all__ = [
    "new_id",
    "GameModel",
    "LogType",
    "BonusDie",
    "Stats",
    "BonusDice",
    "InventoryItem",
    "Player",
    "LogEntry",
    "GameState",
    "ActionOption",
    "FoundItem",
    "BonusRoll",
    "TurnResponse",
    "CharacterDetails",
    "ThemeColors",
    "Theme",
    "Preferences",
]
