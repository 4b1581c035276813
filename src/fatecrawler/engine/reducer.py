"""State reducer: folds a generated turn into a new game state.

Every function here is pure. The previous state is never mutated; each
derived field is recomputed from the previous state so that values cannot
drift across turns. Only freshly minted ids and timestamps differ between
two applications of the same response to the same state.

Invariants guaranteed on the returned state:
- ``0 <= hp <= max_hp`` and ``0 <= mp <= max_mp``
- ``gold >= 0``
- at most one inventory stack per name, every stack has ``quantity >= 1``
- ``is_game_over`` never goes from True back to False
"""

from __future__ import annotations

from fatecrawler.core.logging import get_logger
from fatecrawler.models.game_state import (
    BonusDie,
    FoundItem,
    GameState,
    InventoryItem,
    LogEntry,
    LogType,
    Stats,
    TurnResponse,
)


logger = get_logger(__name__)


def clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(upper, value))


def apply_stat_changes(stats: Stats, hp_change: int | None, mp_change: int | None) -> Stats:
    """Apply hp/mp deltas, clamped into their pools."""
    return stats.model_copy(
        update={
            "hp": clamp(stats.hp + (hp_change or 0), 0, stats.max_hp),
            "mp": clamp(stats.mp + (mp_change or 0), 0, stats.max_mp),
        }
    )


def merge_found_items(
    inventory: list[InventoryItem],
    found: list[FoundItem] | None,
) -> list[InventoryItem]:
    """Stack found items onto the inventory, in the order they were found."""
    merged = list(inventory)
    for new_item in found or []:
        for index, existing in enumerate(merged):
            if existing.name == new_item.name:
                merged[index] = existing.model_copy(
                    update={"quantity": existing.quantity + new_item.quantity}
                )
                break
        else:
            merged.append(
                InventoryItem(
                    name=new_item.name,
                    quantity=new_item.quantity,
                    description=new_item.description,
                )
            )
    return merged


def remove_lost_item(inventory: list[InventoryItem], item_lost: str | None) -> list[InventoryItem]:
    """Take one unit from the first stack whose name contains ``item_lost``.

    Matching is a case-insensitive substring test and stops at the first
    stack in inventory order, so "sword" hits "Rusty Sword" before
    "Broken Sword". No match is not an error.
    """
    if not item_lost:
        return list(inventory)

    needle = item_lost.lower()
    remaining = list(inventory)
    for index, item in enumerate(remaining):
        if needle in item.name.lower():
            if item.quantity > 1:
                remaining[index] = item.model_copy(update={"quantity": item.quantity - 1})
            else:
                del remaining[index]
            return remaining

    logger.debug("Lost item not in inventory", item_lost=item_lost)
    return remaining


def append_log(state: GameState, log_type: LogType, text: str) -> GameState:
    """Return the state with one more log entry at the end of its history."""
    entry = LogEntry(type=log_type, text=text)
    return state.model_copy(update={"history": [*state.history, entry]})


def spend_bonus_die(state: GameState, die: BonusDie) -> GameState:
    """Return the state with one bonus die of the given kind fewer."""
    player = state.player
    return state.model_copy(
        update={"player": player.model_copy(update={"bonus_dice": player.bonus_dice.spend(die)})}
    )


def apply_turn(previous: GameState, response: TurnResponse) -> GameState:
    """Fold a canonical turn response into a new game state.

    Args:
        previous: State the turn was generated from.
        response: Normalized response; its narrative must be non-empty.

    Returns:
        The next state, with one new narrative log entry.
    """
    player = previous.player
    stats = apply_stat_changes(player.stats, response.hp_change, response.mp_change)
    gold = max(0, player.gold + (response.gold_change or 0))

    inventory = merge_found_items(player.inventory, response.items_found)
    inventory = remove_lost_item(inventory, response.item_lost)

    location = response.location_update or previous.location
    is_game_over = previous.is_game_over or stats.hp <= 0

    next_state = previous.model_copy(
        update={
            "player": player.model_copy(
                update={"stats": stats, "gold": gold, "inventory": inventory}
            ),
            "location": location,
            "turn_count": previous.turn_count + 1,
            "is_game_over": is_game_over,
        }
    )
    next_state = append_log(next_state, LogType.NARRATIVE, response.narrative)

    logger.info(
        "Turn applied",
        turn=next_state.turn_count,
        hp=stats.hp,
        mp=stats.mp,
        gold=gold,
        items=len(inventory),
        game_over=is_game_over,
    )
    return next_state


__all__ = [
    "clamp",
    "apply_stat_changes",
    "merge_found_items",
    "remove_lost_item",
    "append_log",
    "spend_bonus_die",
    "apply_turn",
]
