"""Serialized game-state snapshots.

A snapshot is the camelCase JSON form of a GameState. Loading tolerates one
known legacy shape: saves written before items were stackable stored the
inventory as bare names (``["Rope", "Lantern"]``) and had no bonus dice.
"""

from __future__ import annotations

import copy
import json
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from fatecrawler.core.constants import LEGACY_ITEM_DESCRIPTION
from fatecrawler.core.exceptions import StorageError
from fatecrawler.core.logging import get_logger
from fatecrawler.models.game_state import BonusDice, GameState, new_id


logger = get_logger(__name__)


def serialize_snapshot(state: GameState) -> str:
    """Serialize a state to its snapshot JSON."""
    return state.model_dump_json(by_alias=True)


def _migrate_inventory(inventory: list[Any]) -> list[Any]:
    return [
        {
            "id": new_id(),
            "name": entry,
            "quantity": 1,
            "description": LEGACY_ITEM_DESCRIPTION,
        }
        if isinstance(entry, str)
        else entry
        for entry in inventory
    ]


def migrate_snapshot(data: dict[str, Any]) -> dict[str, Any]:
    """Upgrade a decoded snapshot to the current shape.

    Returns a new dict; the input is left untouched.
    """
    migrated = copy.deepcopy(data)
    player = migrated.get("player")
    if not isinstance(player, dict):
        return migrated

    inventory = player.get("inventory")
    if isinstance(inventory, list) and any(isinstance(entry, str) for entry in inventory):
        player["inventory"] = _migrate_inventory(inventory)
        logger.info("Migrated legacy inventory", items=len(inventory))

    if not player.get("bonusDice") and not player.get("bonus_dice"):
        player["bonusDice"] = BonusDice().model_dump(by_alias=True)

    return migrated


def load_snapshot(raw: str | bytes | dict[str, Any]) -> GameState:
    """Decode, migrate and validate a snapshot.

    Raises:
        StorageError: If the snapshot is not valid JSON or not a game state.
    """
    try:
        data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
    except json.JSONDecodeError as exc:
        raise StorageError("Snapshot is not valid JSON", details={"error": str(exc)}) from exc

    if not isinstance(data, dict):
        raise StorageError(
            "Snapshot is not a JSON object",
            details={"type": type(data).__name__},
        )

    try:
        return GameState.model_validate(migrate_snapshot(data))
    except PydanticValidationError as exc:
        raise StorageError(
            "Snapshot does not describe a game state",
            details={"errors": exc.error_count()},
        ) from exc


def load_snapshot_or_default(raw: str | bytes | dict[str, Any] | None) -> GameState:
    """Load a snapshot, falling back to a fresh game when missing or corrupted."""
    if raw is None:
        return GameState()
    try:
        return load_snapshot(raw)
    except StorageError as exc:
        logger.warning("Save file corrupted, starting fresh", error=str(exc))
        return GameState()


__all__ = [
    "serialize_snapshot",
    "migrate_snapshot",
    "load_snapshot",
    "load_snapshot_or_default",
]
