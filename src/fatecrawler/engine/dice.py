"""Dice rolling for skill checks, bonus dice and character creation.

Rolls go through the d20 dice-notation library. Python owns every random
number in the game: the model is told the result of a roll, it never
invents one.
"""

from __future__ import annotations

import random
from dataclasses import dataclass

import d20

from fatecrawler.core.constants import CHECK_DIE_FACES
from fatecrawler.core.exceptions import DiceRollError
from fatecrawler.core.logging import get_logger
from fatecrawler.models.game_state import BonusDie, BonusRoll


logger = get_logger(__name__)


@dataclass(frozen=True)
class DiceExpression:
    """A rolled dice expression.

    Attributes:
        expression: The dice expression string.
        total: The total result of the roll.
        details: d20's rendering of the roll, e.g. ``1d20 (14) = `14```.
    """

    expression: str
    total: int
    details: str


class DiceRoller:
    """Dice roller backed by the d20 library.

    Example:
        >>> roller = DiceRoller()
        >>> 1 <= roller.roll_check() <= 20
        True
    """

    def __init__(self, *, seed: int | None = None) -> None:
        """Initialize the dice roller.

        Args:
            seed: Optional random seed for reproducible rolls.
        """
        self._seed = seed
        if seed is not None:
            random.seed(seed)
        logger.debug("DiceRoller initialized", seed=seed)

    def roll(self, expression: str) -> DiceExpression:
        """Roll an arbitrary dice expression.

        Args:
            expression: Dice expression (e.g., '1d20', '1d13+3').

        Returns:
            DiceExpression with the total.

        Raises:
            DiceRollError: If the expression is empty or invalid.
        """
        if not expression or not expression.strip():
            raise DiceRollError("Empty dice expression", expression=expression)

        try:
            result = d20.roll(expression)
        except d20.RollError as exc:
            raise DiceRollError(
                f"Invalid dice expression: {exc}",
                expression=expression,
            ) from exc

        logger.debug("Dice rolled", expression=expression, total=result.total)
        return DiceExpression(expression=expression, total=result.total, details=str(result))

    def roll_d(self, faces: int) -> int:
        """Roll a single die, uniformly distributed over ``[1, faces]``.

        Raises:
            DiceRollError: If ``faces`` is below 1.
        """
        if faces < 1:
            raise DiceRollError(f"A die needs at least one face, got {faces}")
        return self.roll(f"1d{faces}").total

    def roll_check(self) -> int:
        """Roll the d20 skill check of a contested action."""
        return self.roll_d(CHECK_DIE_FACES)

    def roll_bonus(self, die: BonusDie) -> BonusRoll:
        """Roll one bonus die of the given kind."""
        die = BonusDie(die)
        return BonusRoll(die=die, value=self.roll_d(die.faces))


# Module-level convenience roller
_default_roller: DiceRoller | None = None


def roll_d(faces: int) -> int:
    """Convenience function rolling one die with the shared roller.

    Example:
        >>> 1 <= roll_d(6) <= 6
        True
    """
    global _default_roller  # noqa: PLW0603
    if _default_roller is None:
        _default_roller = DiceRoller()
    return _default_roller.roll_d(faces)


__all__ = [
    "DiceExpression",
    "DiceRoller",
    "roll_d",
]
