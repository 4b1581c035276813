"""Pydantic V2 models of the game state and of a generated turn.

Python owns truth: the game state below is only ever replaced wholesale by
the state reducer. The language model only ever produces a TurnResponse,
which the reducer validates and folds into a new state.

All models serialize with camelCase aliases (``maxHp``, ``bonusDice``,
``isGameOver``) so a snapshot keeps the long-standing save format, while
Python code works with snake_case attributes.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Annotated
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from fatecrawler.core.constants import (
    BASE_ABILITY_SCORE,
    BASE_MAX_HP,
    BASE_MAX_MP,
    BONUS_DIE_FACES,
    DEFAULT_LOCATION,
)


def new_id() -> str:
    """Mint an identifier unique within a game session."""
    return uuid4().hex


NonNegativeInt = Annotated[int, Field(ge=0)]


class GameModel(BaseModel):
    """Base class of every game-state model.

    Instances are frozen: a new state is produced with ``model_copy`` and
    never by mutating a previous one.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# =============================================================================
# Enumerations
# =============================================================================


class LogType(StrEnum):
    """Kind of a game log entry."""

    NARRATIVE = "narrative"
    """Story text produced by the Game Master."""

    ACTION = "action"
    """Action text submitted by the player."""

    SYSTEM = "system"
    """Engine notices (saves, failures)."""

    ROLL = "roll"
    """Dice results."""


class BonusDie(StrEnum):
    """Kinds of reusable fate dice a player can hold."""

    D6 = "d6"
    D10 = "d10"
    D20 = "d20"
    D50 = "d50"

    @property
    def faces(self) -> int:
        return BONUS_DIE_FACES[self.value]


# =============================================================================
# Player
# =============================================================================


class Stats(GameModel):
    """Ability scores and resource pools of the hero."""

    strength: int = Field(default=BASE_ABILITY_SCORE, alias="str")
    dexterity: int = Field(default=BASE_ABILITY_SCORE, alias="dex")
    intelligence: int = Field(default=BASE_ABILITY_SCORE, alias="int")
    hp: NonNegativeInt = Field(default=BASE_MAX_HP)
    max_hp: NonNegativeInt = Field(default=BASE_MAX_HP)
    mp: NonNegativeInt = Field(default=BASE_MAX_MP)
    max_mp: NonNegativeInt = Field(default=BASE_MAX_MP)


class BonusDice(GameModel):
    """Counts of unspent bonus dice, keyed by die kind."""

    d6: NonNegativeInt = 0
    d10: NonNegativeInt = 0
    d20: NonNegativeInt = 0
    d50: NonNegativeInt = 0

    def count(self, die: BonusDie) -> int:
        return getattr(self, BonusDie(die).value)

    def spend(self, die: BonusDie) -> BonusDice:
        """Return a copy with one die of the given kind fewer (floored at 0)."""
        key = BonusDie(die).value
        return self.model_copy(update={key: max(0, self.count(die) - 1)})

    def available(self) -> list[BonusDie]:
        """Return the die kinds the player still holds."""
        return [die for die in BonusDie if self.count(die) > 0]


class InventoryItem(GameModel):
    """A stack of identically named items."""

    id: str = Field(default_factory=new_id)
    name: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)
    description: str | None = None


class Player(GameModel):
    """The hero and everything they carry."""

    name: str = ""
    race: str = ""
    gender: str = ""
    class_name: str = Field(default="", alias="class")
    bio: str = ""
    stats: Stats = Field(default_factory=Stats)
    inventory: list[InventoryItem] = Field(default_factory=list)
    gold: NonNegativeInt = 0
    bonus_dice: BonusDice = Field(default_factory=BonusDice)
    level: int = Field(default=1, ge=1)
    exp: NonNegativeInt = 0

    def find_item(self, name: str) -> InventoryItem | None:
        """Return the stack with exactly this name, if any."""
        for item in self.inventory:
            if item.name == name:
                return item
        return None

    def inventory_summary(self) -> str:
        """Flatten the inventory to ``"Torch (x2), Rope (x1)"``."""
        return ", ".join(f"{item.name} (x{item.quantity})" for item in self.inventory)


# =============================================================================
# Log & Game State
# =============================================================================


class LogEntry(GameModel):
    """One line of the append-only game log."""

    id: str = Field(default_factory=new_id)
    type: LogType
    text: str
    timestamp: datetime = Field(default_factory=datetime.now)


class GameState(GameModel):
    """The complete state of one playthrough.

    Owned by the turn orchestrator and replaced wholesale by the reducer.
    """

    player: Player = Field(default_factory=Player)
    location: str = DEFAULT_LOCATION
    history: list[LogEntry] = Field(default_factory=list)
    turn_count: NonNegativeInt = 0
    is_game_over: bool = False

    def to_ai_context(self) -> dict[str, object]:
        """Compact, read-only view of the state sent to the model."""
        stats = self.player.stats
        return {
            "player": {
                "str": stats.strength,
                "dex": stats.dexterity,
                "int": stats.intelligence,
                "hp": stats.hp,
                "maxHp": stats.max_hp,
                "mp": stats.mp,
                "maxMp": stats.max_mp,
                "race": self.player.race,
                "class": self.player.class_name,
                "inventory": self.player.inventory_summary(),
            },
            "location": self.location,
        }


# =============================================================================
# Generated Turn
# =============================================================================


class ActionOption(GameModel):
    """An action the Game Master offers the player."""

    id: str
    title: str
    description: str = ""


class FoundItem(GameModel):
    """An item the narration hands to the player."""

    name: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)
    description: str | None = None


class BonusRoll(GameModel):
    """Result of spending one bonus die."""

    die: BonusDie
    value: int = Field(ge=1)


class TurnResponse(GameModel):
    """Canonical, fully-defaulted result of one turn generation."""

    narrative: str = Field(min_length=1)
    options: list[ActionOption] = Field(default_factory=list)
    location_update: str | None = None
    hp_change: int | None = None
    mp_change: int | None = None
    gold_change: int | None = None
    items_found: list[FoundItem] | None = None
    item_lost: str | None = None


class CharacterDetails(GameModel):
    """Cosmetic character details proposed by the model."""

    name: str | None = None
    race: str | None = None
    gender: str | None = None
    class_name: str | None = Field(default=None, alias="class")
    bio: str | None = None


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
]
