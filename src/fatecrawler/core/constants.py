"""Application-wide constants for the Fatecrawler turn engine.

This module defines the fixed phrases that mark special actions, the
starting values of a fresh game and the fallback records returned when
cosmetic generation fails.
"""

from __future__ import annotations

# =============================================================================
# Special Actions
# =============================================================================

OPENING_ACTION_PREFIX = "Begin the adventure"
"""Prefix of the scene-setting action issued after character creation."""

LOOK_AROUND_ACTION = "Look around"
"""Reflexive action issued when a saved game is resumed."""

USE_ITEM_PREFIX = "Use item:"
"""Prefix of an item-use action; the item name follows."""

INSPECT_ITEM_PREFIX = "Inspect item:"
"""Prefix of an item inspection; a regular, rolled action."""

DROP_ITEM_PREFIX = "Drop item:"
"""Prefix of an item drop; a regular, rolled action."""

CUSTOM_OPTION_ID = "custom"
"""Option id of a free-text action typed by the player."""

# =============================================================================
# Dice
# =============================================================================

CHECK_DIE_FACES = 20
"""Faces of the skill-check die."""

BONUS_DIE_FACES = {"d6": 6, "d10": 10, "d20": 20, "d50": 50}
"""Face count of every bonus die kind."""

# =============================================================================
# Fresh Game Defaults
# =============================================================================

BASE_ABILITY_SCORE = 10
BASE_MAX_HP = 30
BASE_MAX_MP = 10
DEFAULT_LOCATION = "Unknown"
CHARACTER_REROLLS = 3

DEFAULT_RACE = "Human"
DEFAULT_GENDER = "Unknown"
DEFAULT_CLASS = "Wanderer"
DEFAULT_BIO = "The hero's story is yet unwritten..."

LEGACY_ITEM_DESCRIPTION = "An item from a past life..."
"""Description given to items migrated from bare-name inventories."""

# =============================================================================
# Fallback Records
# =============================================================================

FALLBACK_CHARACTER_DETAILS = {"name": "Nameless", "race": "Human", "bio": "..."}
"""Returned when character detail generation fails."""

FALLBACK_THEME = {
    "name": "Classic Darkness",
    "colors": {
        "dark": "#1a1b1e",
        "panel": "#25262b",
        "gold": "#c2b36e",
        "red": "#e03131",
        "blue": "#1971c2",
        "text": "#c1c2c5",
        "muted": "#909296",
        "diceBg": "#111111",
        "diceText": "#c2b36e",
        "diceBorder": "#c2b36e",
    },
}
"""Returned when theme generation fails; also fills gaps in generated themes."""

DEFAULT_THEME = {
    "name": "Material Dark",
    "colors": {
        "dark": "#141218",
        "panel": "#1D1B20",
        "gold": "#D0BCFF",
        "red": "#F2B8B5",
        "blue": "#A8C7FA",
        "text": "#E6E1E5",
        "muted": "#CAC4D0",
        "diceBg": "#2B2930",
        "diceText": "#D0BCFF",
        "diceBorder": "transparent",
    },
}
"""Theme of a fresh installation."""

# =============================================================================
# Messages
# =============================================================================

TURN_FAILED_LOG_TEXT = "The link with reality is broken (API error)."
"""System log entry appended when a turn fails."""

TURN_FAILED_DEFAULT_MESSAGE = "The Game Master could not be reached."
"""User-facing message when a failure carries no message of its own."""

GAME_SAVED_LOG_TEXT = "Progress saved."

DEFAULT_SAVE_SLOT = "autosave"
"""Save slot used when the caller does not name one."""

CUSTOM_ACTION_TITLE = "Custom action"


__all__ = [
    "OPENING_ACTION_PREFIX",
    "LOOK_AROUND_ACTION",
    "USE_ITEM_PREFIX",
    "INSPECT_ITEM_PREFIX",
    "DROP_ITEM_PREFIX",
    "CUSTOM_OPTION_ID",
    "CHECK_DIE_FACES",
    "BONUS_DIE_FACES",
    "BASE_ABILITY_SCORE",
    "BASE_MAX_HP",
    "BASE_MAX_MP",
    "DEFAULT_LOCATION",
    "CHARACTER_REROLLS",
    "DEFAULT_RACE",
    "DEFAULT_GENDER",
    "DEFAULT_CLASS",
    "DEFAULT_BIO",
    "LEGACY_ITEM_DESCRIPTION",
    "FALLBACK_CHARACTER_DETAILS",
    "FALLBACK_THEME",
    "DEFAULT_THEME",
    "TURN_FAILED_LOG_TEXT",
    "TURN_FAILED_DEFAULT_MESSAGE",
    "GAME_SAVED_LOG_TEXT",
    "DEFAULT_SAVE_SLOT",
    "CUSTOM_ACTION_TITLE",
]
