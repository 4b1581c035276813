"""Game engine module for Fatecrawler.

This module provides the deterministic half of the game: dice, character
creation, the pure state reducer and the turn orchestrator that sequences
a turn around the generation request.

Submodules:
    dice: Dice rolling (d20 library)
    character: Rolled stats, rerolls and the player factory
    reducer: Pure folding of a generated turn into the game state
    orchestrator: Turn phases, logging and failure handling

Example:
    >>> from fatecrawler.engine import TurnOrchestrator
    >>>
    >>> orchestrator = TurnOrchestrator(client, state=state)
    >>> outcome = orchestrator.take_turn("Search the altar")
    >>> if not outcome.succeeded:
    ...     print(orchestrator.last_error)
"""

from __future__ import annotations

# =============================================================================
# Dice Rolling
# =============================================================================
from fatecrawler.engine.dice import (
    DiceExpression,
    DiceRoller,
    roll_d,
)

# =============================================================================
# Character Creation
# =============================================================================
from fatecrawler.engine.character import (
    CharacterCreator,
    CharacterDraft,
    create_player,
    derive_stats,
    new_game_state,
    roll_character_draft,
)

# =============================================================================
# State Reducer
# =============================================================================
from fatecrawler.engine.reducer import (
    append_log,
    apply_turn,
    spend_bonus_die,
)

# =============================================================================
# Turn Orchestration
# =============================================================================
from fatecrawler.engine.orchestrator import (
    Narrator,
    TurnOrchestrator,
    TurnOutcome,
    TurnPhase,
    is_special_action,
)


__all__ = [
    # Dice
    "DiceExpression",
    "DiceRoller",
    "roll_d",
    # Character creation
    "CharacterCreator",
    "CharacterDraft",
    "create_player",
    "derive_stats",
    "new_game_state",
    "roll_character_draft",
    # Reducer
    "append_log",
    "apply_turn",
    "spend_bonus_die",
    # Orchestration
    "Narrator",
    "TurnOrchestrator",
    "TurnOutcome",
    "TurnPhase",
    "is_special_action",
]
