"""Character creation: rolled stats, limited rerolls and the player factory."""

from __future__ import annotations

import math
from dataclasses import dataclass

from fatecrawler.core.constants import (
    BASE_MAX_HP,
    BASE_MAX_MP,
    CHARACTER_REROLLS,
    DEFAULT_BIO,
    DEFAULT_CLASS,
    DEFAULT_GENDER,
    DEFAULT_RACE,
)
from fatecrawler.core.exceptions import ValidationError
from fatecrawler.core.logging import get_logger
from fatecrawler.engine.dice import DiceRoller
from fatecrawler.models.game_state import BonusDice, GameState, Player, Stats


logger = get_logger(__name__)

ABILITY_ROLL = "1d13+3"
"""Ability score in 4..16, centred on 10."""

GOLD_ROLL = "1d11-1"

BONUS_DICE_ROLLS = {
    "d6": "1d51-1",
    "d10": "1d31-1",
    "d20": "1d11-1",
    "d50": "1d2-1",
}


@dataclass(frozen=True)
class CharacterDraft:
    """Rolled numbers of a character that has not been named yet."""

    stats: Stats
    gold: int
    bonus_dice: BonusDice


def derive_stats(strength: int, dexterity: int, intelligence: int) -> Stats:
    """Compute pools from ability scores; strength feeds HP, intelligence MP."""
    max_hp = max(1, BASE_MAX_HP + math.floor((strength - 10) * 1.5))
    max_mp = max(0, BASE_MAX_MP + (intelligence - 10))
    return Stats(
        strength=strength,
        dexterity=dexterity,
        intelligence=intelligence,
        hp=max_hp,
        max_hp=max_hp,
        mp=max_mp,
        max_mp=max_mp,
    )


def roll_character_draft(roller: DiceRoller) -> CharacterDraft:
    """Roll abilities, starting gold and the bonus dice pouch."""
    stats = derive_stats(
        roller.roll(ABILITY_ROLL).total,
        roller.roll(ABILITY_ROLL).total,
        roller.roll(ABILITY_ROLL).total,
    )
    gold = roller.roll(GOLD_ROLL).total
    bonus_dice = BonusDice(
        **{die: roller.roll(expression).total for die, expression in BONUS_DICE_ROLLS.items()}
    )
    logger.debug("Character draft rolled", max_hp=stats.max_hp, gold=gold)
    return CharacterDraft(stats=stats, gold=gold, bonus_dice=bonus_dice)


class CharacterCreator:
    """Holds the current draft and the rerolls left to the player.

    Example:
        >>> creator = CharacterCreator(DiceRoller())
        >>> creator.reroll().stats.max_hp > 0
        True
    """

    def __init__(self, roller: DiceRoller, *, rerolls: int = CHARACTER_REROLLS) -> None:
        self._roller = roller
        self._rerolls_left = rerolls
        self._draft = roll_character_draft(roller)

    @property
    def draft(self) -> CharacterDraft:
        return self._draft

    @property
    def rerolls_left(self) -> int:
        return self._rerolls_left

    def reroll(self) -> CharacterDraft:
        """Replace the draft with a fresh roll.

        Raises:
            ValidationError: If no rerolls are left.
        """
        if self._rerolls_left <= 0:
            raise ValidationError("No rerolls left", field_name="rerolls_left", invalid_value=0)
        self._rerolls_left -= 1
        self._draft = roll_character_draft(self._roller)
        return self._draft


def create_player(
    draft: CharacterDraft,
    name: str,
    *,
    race: str = "",
    gender: str = "",
    class_name: str = "",
    bio: str = "",
) -> Player:
    """Name a rolled draft, defaulting every blank detail except the name.

    Raises:
        ValidationError: If the name is blank.
    """
    if not name or not name.strip():
        raise ValidationError("The hero needs a name", field_name="name", invalid_value=name)

    return Player(
        name=name.strip(),
        race=race.strip() or DEFAULT_RACE,
        gender=gender.strip() or DEFAULT_GENDER,
        class_name=class_name.strip() or DEFAULT_CLASS,
        bio=bio.strip() or DEFAULT_BIO,
        stats=draft.stats,
        gold=draft.gold,
        inventory=[],
        bonus_dice=draft.bonus_dice,
    )


def new_game_state(player: Player | None = None) -> GameState:
    """Start a playthrough with an empty history."""
    if player is None:
        return GameState()
    return GameState(player=player)


__all__ = [
    "CharacterDraft",
    "CharacterCreator",
    "derive_stats",
    "roll_character_draft",
    "create_player",
    "new_game_state",
]
