"""Turn orchestrator: sequences one player turn from action to new state.

A turn runs through these phases::

    IDLE -> ROLL_PENDING (optional) -> AWAITING_GENERATION -> APPLYING -> IDLE
                                               |
                                               +-> FAILED -> IDLE

The orchestrator owns the game state exclusively. Dice rolls, the spent
bonus die and the action text are committed to the log before the
generation request; the reducer output is committed only when the request
succeeds. A failed request leaves everything else untouched, appends one
system log entry and exposes ``last_error``: retrying is up to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

from fatecrawler.core.constants import (
    CUSTOM_ACTION_TITLE,
    CUSTOM_OPTION_ID,
    DROP_ITEM_PREFIX,
    GAME_SAVED_LOG_TEXT,
    INSPECT_ITEM_PREFIX,
    LOOK_AROUND_ACTION,
    OPENING_ACTION_PREFIX,
    TURN_FAILED_DEFAULT_MESSAGE,
    TURN_FAILED_LOG_TEXT,
    USE_ITEM_PREFIX,
)
from fatecrawler.core.exceptions import (
    AIControlError,
    InvalidGameStateError,
    TurnInProgressError,
    TurnManagementError,
    ValidationError,
)
from fatecrawler.core.logging import bind_turn, get_logger
from fatecrawler.dm.prompts import build_opening_action
from fatecrawler.engine.dice import DiceRoller
from fatecrawler.engine.reducer import append_log, apply_turn, spend_bonus_die
from fatecrawler.models.game_state import (
    ActionOption,
    BonusDie,
    BonusRoll,
    GameState,
    InventoryItem,
    LogType,
)
from fatecrawler.models.theme import Preferences


if TYPE_CHECKING:
    from fatecrawler.dm.client import GenerationClient
    from fatecrawler.storage.database import SaveStore

logger = get_logger(__name__)


# =============================================================================
# Turn Phase & Outcome
# =============================================================================


class TurnPhase(StrEnum):
    """Where the orchestrator is within the current turn."""

    IDLE = "idle"
    """Ready for the next action."""

    ROLL_PENDING = "roll_pending"
    """An action is chosen; waiting for the bonus die decision."""

    AWAITING_GENERATION = "awaiting_generation"
    """The generation request is in flight."""

    APPLYING = "applying"
    """The response is being folded into the state."""

    FAILED = "failed"
    """The generation request failed; the state is unchanged."""


IN_FLIGHT_PHASES = frozenset({TurnPhase.AWAITING_GENERATION, TurnPhase.APPLYING})


@dataclass
class TurnOutcome:
    """Result of one submitted action.

    Attributes:
        succeeded: Whether the response was applied to the state.
        action: Action text sent to the Game Master.
        dice_roll: d20 check, None for special actions.
        bonus_roll: Bonus die spent on the action, if any.
        narrative: Narration of the turn when it succeeded.
        error: User-facing failure message when it did not.
    """

    succeeded: bool
    action: str
    dice_roll: int | None = None
    bonus_roll: BonusRoll | None = None
    narrative: str = ""
    error: str = ""


class Narrator(Protocol):
    """Text-to-speech side channel. Best-effort, never blocks the engine."""

    def speak(self, text: str, volume: float, rate: float) -> None: ...

    def cancel(self) -> None: ...


def is_special_action(action: str) -> bool:
    """Check whether an action skips the skill check.

    The opening scene, looking around and using an item are reflexive or
    system-initiated: they are neither rolled nor logged as player actions.
    """
    return (
        action.startswith(OPENING_ACTION_PREFIX)
        or action == LOOK_AROUND_ACTION
        or action.startswith(USE_ITEM_PREFIX)
    )


def option_action_text(option: ActionOption) -> str:
    """Action text sent for a chosen option."""
    if option.id == CUSTOM_OPTION_ID:
        return option.description
    return f"{option.title}: {option.description}"


# =============================================================================
# Turn Orchestrator
# =============================================================================


class TurnOrchestrator:
    """Sequences turns and owns the game state.

    Attributes:
        state: Current game state, replaced wholesale after every change.
        options: Options offered by the last successful turn.
        phase: Current turn phase.
        last_error: Message of the last failed turn, cleared on the next one.
        pending_action: Option chosen but not yet resolved.

    Example:
        >>> orchestrator = TurnOrchestrator(client, state=state)
        >>> outcome = orchestrator.take_turn("Force the door")
        >>> outcome.succeeded, orchestrator.state.turn_count
        (True, 1)
    """

    def __init__(
        self,
        client: GenerationClient,
        *,
        roller: DiceRoller | None = None,
        state: GameState | None = None,
        preferences: Preferences | None = None,
        narrator: Narrator | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            client: Generation client used for every turn.
            roller: Dice roller for checks and bonus dice.
            state: Starting state; a fresh game if omitted.
            preferences: Narration preferences.
            narrator: Optional text-to-speech collaborator.
        """
        self._client = client
        self._roller = roller or DiceRoller()
        self._state = state or GameState()
        self._preferences = preferences or Preferences()
        self._narrator = narrator
        self._options: list[ActionOption] = []
        self._phase = TurnPhase.IDLE
        self._last_error: str | None = None
        self._pending_action: ActionOption | None = None

        logger.info(
            "TurnOrchestrator initialized",
            turn=self._state.turn_count,
            game_over=self._state.is_game_over,
        )

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def options(self) -> list[ActionOption]:
        return list(self._options)

    @property
    def phase(self) -> TurnPhase:
        return self._phase

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def pending_action(self) -> ActionOption | None:
        return self._pending_action

    @property
    def preferences(self) -> Preferences:
        return self._preferences

    @property
    def is_busy(self) -> bool:
        """Whether a generation request is in flight."""
        return self._phase in IN_FLIGHT_PHASES

    # -------------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------------

    def _ensure_not_busy(self) -> None:
        if self.is_busy:
            raise TurnInProgressError(
                "A turn is already in progress",
                details={"phase": self._phase.value},
            )

    def _ensure_playable(self) -> None:
        self._ensure_not_busy()
        if self._state.is_game_over:
            raise InvalidGameStateError(
                "The hero has fallen; start a new game",
                current_state="game_over",
                expected_states=["in_progress"],
            )

    def _ensure_owns_die(self, die: BonusDie) -> None:
        if self._state.player.bonus_dice.count(die) <= 0:
            raise InvalidGameStateError(
                f"No {BonusDie(die).value} bonus die left",
                details={"die": BonusDie(die).value},
            )

    # -------------------------------------------------------------------------
    # Narration
    # -------------------------------------------------------------------------

    def _cancel_narration(self) -> None:
        if self._narrator is None:
            return
        try:
            self._narrator.cancel()
        except Exception:
            logger.exception("Narration cancel failed")

    def _narrate(self, text: str) -> None:
        if self._narrator is None or not self._preferences.tts_enabled:
            return
        try:
            self._narrator.speak(
                text, self._preferences.tts_volume, self._preferences.tts_rate
            )
        except Exception:
            logger.exception("Narration failed")

    # -------------------------------------------------------------------------
    # Turn
    # -------------------------------------------------------------------------

    def take_turn(self, action: str, *, bonus_die: BonusDie | None = None) -> TurnOutcome:
        """Submit one action and run the turn to completion.

        Args:
            action: Action text.
            bonus_die: Bonus die to spend on this action.

        Returns:
            TurnOutcome; ``succeeded`` is False when generation failed.

        Raises:
            TurnInProgressError: If a turn is already in flight.
            InvalidGameStateError: If the game is over or the die is not owned.
            ValidationError: If the action text is blank.
        """
        self._ensure_playable()
        if not action or not action.strip():
            raise ValidationError("Action text is empty", field_name="action", invalid_value=action)
        if bonus_die is not None:
            self._ensure_owns_die(bonus_die)

        bind_turn(self._state.turn_count + 1)
        self._cancel_narration()
        self._pending_action = None
        self._last_error = None

        bonus_roll: BonusRoll | None = None
        if bonus_die is not None:
            bonus_roll = self._roller.roll_bonus(bonus_die)
            self._state = spend_bonus_die(self._state, bonus_roll.die)
            self._state = append_log(
                self._state, LogType.ROLL, f"Bonus {bonus_roll.die.value}: {bonus_roll.value}"
            )

        dice_roll: int | None = None
        if not is_special_action(action):
            dice_roll = self._roller.roll_check()
            self._state = append_log(self._state, LogType.ROLL, f"Skill check (d20): {dice_roll}")
            self._state = append_log(self._state, LogType.ACTION, action)

        logger.info(
            "Turn started",
            action=action[:100],
            roll=dice_roll,
            bonus=bonus_roll.value if bonus_roll else None,
        )
        self._phase = TurnPhase.AWAITING_GENERATION

        try:
            response = self._client.generate_turn(action, self._state, dice_roll, bonus_roll)
        except AIControlError as exc:
            self._phase = TurnPhase.FAILED
            self._last_error = exc.message or TURN_FAILED_DEFAULT_MESSAGE
            self._state = append_log(self._state, LogType.SYSTEM, TURN_FAILED_LOG_TEXT)
            logger.warning("Turn failed", action=action[:100], error=str(exc))
            self._phase = TurnPhase.IDLE
            return TurnOutcome(
                succeeded=False,
                action=action,
                dice_roll=dice_roll,
                bonus_roll=bonus_roll,
                error=self._last_error,
            )
        except Exception:
            self._phase = TurnPhase.IDLE
            raise

        self._phase = TurnPhase.APPLYING
        try:
            self._state = apply_turn(self._state, response)
            self._options = list(response.options)
        finally:
            self._phase = TurnPhase.IDLE

        self._narrate(response.narrative)
        return TurnOutcome(
            succeeded=True,
            action=action,
            dice_roll=dice_roll,
            bonus_roll=bonus_roll,
            narrative=response.narrative,
        )

    def start_adventure(self) -> TurnOutcome:
        """Run the scene-setting opening turn of a new character."""
        return self.take_turn(build_opening_action(self._state.player.gold))

    def look_around(self) -> TurnOutcome:
        return self.take_turn(LOOK_AROUND_ACTION)

    def resume(self) -> TurnOutcome | None:
        """Re-describe the scene of a loaded game that offers no options.

        Returns:
            The look-around outcome, or None if nothing had to be done.
        """
        if not self._state.history or self._options or self._state.is_game_over:
            return None
        logger.info("Resuming game without options", turn=self._state.turn_count)
        return self.look_around()

    # -------------------------------------------------------------------------
    # Pending Action
    # -------------------------------------------------------------------------

    def select_option(self, option: ActionOption | str) -> ActionOption:
        """Choose an offered option; the turn waits for the bonus die decision.

        Args:
            option: The option, or the id of an offered option.

        Raises:
            ValidationError: If no offered option has the given id.
        """
        self._ensure_playable()
        if isinstance(option, str):
            chosen = next((o for o in self._options if o.id == option), None)
            if chosen is None:
                raise ValidationError(
                    f"Unknown option: {option}", field_name="option", invalid_value=option
                )
            option = chosen

        self._pending_action = option
        self._phase = TurnPhase.ROLL_PENDING
        logger.debug("Option selected", option=option.id)
        return option

    def submit_custom_action(self, text: str) -> ActionOption:
        """Queue a free-text action typed by the player.

        Raises:
            ValidationError: If the text is blank.
        """
        if not text or not text.strip():
            raise ValidationError("Action text is empty", field_name="action", invalid_value=text)
        return self.select_option(
            ActionOption(id=CUSTOM_OPTION_ID, title=CUSTOM_ACTION_TITLE, description=text.strip())
        )

    def resolve_pending(self, bonus_die: BonusDie | None = None) -> TurnOutcome:
        """Run the pending action, optionally spending a bonus die.

        Raises:
            TurnManagementError: If no action is pending.
        """
        if self._pending_action is None:
            raise TurnManagementError(
                "No action is pending",
                details={"phase": self._phase.value},
            )
        return self.take_turn(option_action_text(self._pending_action), bonus_die=bonus_die)

    def cancel_pending(self) -> None:
        self._pending_action = None
        if self._phase is TurnPhase.ROLL_PENDING:
            self._phase = TurnPhase.IDLE

    # -------------------------------------------------------------------------
    # Inventory Actions
    # -------------------------------------------------------------------------

    def _require_item(self, name: str) -> InventoryItem:
        item = self._state.player.find_item(name)
        if item is None:
            raise ValidationError(
                f"No item named {name!r} in the inventory",
                field_name="item",
                invalid_value=name,
            )
        return item

    def use_item(self, name: str) -> TurnOutcome:
        """Use an inventory item; reflexive, so not rolled."""
        item = self._require_item(name)
        return self.take_turn(f"{USE_ITEM_PREFIX} {item.name}")

    def inspect_item(self, name: str) -> TurnOutcome:
        item = self._require_item(name)
        return self.take_turn(f"{INSPECT_ITEM_PREFIX} {item.name}")

    def drop_item(self, name: str) -> TurnOutcome:
        item = self._require_item(name)
        return self.take_turn(f"{DROP_ITEM_PREFIX} {item.name}")

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    def new_game(self, state: GameState | None = None) -> None:
        """Discard the current playthrough and start from ``state``.

        Raises:
            TurnInProgressError: If a turn is in flight.
        """
        self._ensure_not_busy()
        self._cancel_narration()
        self._state = state or GameState()
        self._options = []
        self._pending_action = None
        self._last_error = None
        self._phase = TurnPhase.IDLE
        bind_turn(self._state.turn_count)
        logger.info("New game", player=self._state.player.name)

    def update_preferences(self, preferences: Preferences) -> None:
        """Replace the preferences; disabling narration silences it at once."""
        self._preferences = preferences
        if not preferences.tts_enabled:
            self._cancel_narration()

    def save(self, store: SaveStore, slot: str | None = None) -> None:
        """Persist the current state and note it in the log.

        The log entry is only kept once the write succeeds.

        Raises:
            StorageError: If the store could not write the game.
        """
        saved = append_log(self._state, LogType.SYSTEM, GAME_SAVED_LOG_TEXT)
        if slot is None:
            store.save_game(self._state)
        else:
            store.save_game(self._state, slot=slot)
        self._state = saved


__all__ = [
    "TurnPhase",
    "TurnOutcome",
    "Narrator",
    "TurnOrchestrator",
    "is_special_action",
    "option_action_text",
]
