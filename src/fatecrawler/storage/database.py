"""SQLite persistence layer for Fatecrawler.

Provides persistent storage for:
- Saved games (one snapshot per named slot)
- Player preferences (TTS, UI scale, theme)

Storage location: ~/.fatecrawler/fatecrawler.db
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Generator

from pydantic import ValidationError as PydanticValidationError

from fatecrawler.core.constants import DEFAULT_SAVE_SLOT
from fatecrawler.core.exceptions import StorageError
from fatecrawler.core.logging import get_logger
from fatecrawler.models.game_state import GameState
from fatecrawler.models.theme import Preferences
from fatecrawler.storage.snapshot import (
    load_snapshot,
    load_snapshot_or_default,
    serialize_snapshot,
)


logger = get_logger(__name__)


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class SaveRecord:
    """Record of a saved game.

    Attributes:
        slot: Slot name, unique.
        player_name: Hero name, for listing.
        turn_count: Turns played, for listing.
        snapshot_json: Serialized GameState.
        created_at: When the slot was first written.
        updated_at: When the slot was last written.
    """

    slot: str
    player_name: str
    turn_count: int
    snapshot_json: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> SaveRecord:
        """Create from database row."""
        return cls(
            slot=row[0],
            player_name=row[1],
            turn_count=row[2],
            snapshot_json=row[3],
            created_at=datetime.fromisoformat(row[4]),
            updated_at=datetime.fromisoformat(row[5]),
        )


# =============================================================================
# Save Store
# =============================================================================


class SaveStore:
    """SQLite store of saved games and preferences.

    Database location: ~/.fatecrawler/fatecrawler.db unless a path is given.
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: str | Path | None = None) -> None:
        """Initialize the store.

        Args:
            db_path: Path to database file. If None, uses default location.
        """
        if db_path is None:
            self.db_path = self._get_default_path()
        else:
            self.db_path = Path(db_path).expanduser()

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

        logger.info("SaveStore initialized", path=str(self.db_path))

    @staticmethod
    def _get_default_path() -> Path:
        return Path.home() / ".fatecrawler" / "fatecrawler.db"

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection with proper cleanup."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StorageError(f"Database error: {exc}", details={"path": str(self.db_path)}) from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS saves (
                    slot TEXT PRIMARY KEY,
                    player_name TEXT NOT NULL,
                    turn_count INTEGER NOT NULL,
                    snapshot_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS preferences (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    preferences_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_saves_updated
                ON saves(updated_at DESC)
            """)

            cursor.execute("""
                INSERT OR REPLACE INTO schema_version (version) VALUES (?)
            """, (self.SCHEMA_VERSION,))

    # =========================================================================
    # Game Operations
    # =========================================================================

    def save_game(self, state: GameState, slot: str = DEFAULT_SAVE_SLOT) -> SaveRecord:
        """Write a game state to a slot, replacing what it held.

        Args:
            state: State to persist.
            slot: Slot name.

        Returns:
            The saved record.
        """
        now = datetime.now()
        snapshot_json = serialize_snapshot(state)

        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT created_at FROM saves WHERE slot = ?", (slot,))
            row = cursor.fetchone()
            created_at = datetime.fromisoformat(row[0]) if row else now

            cursor.execute("""
                INSERT OR REPLACE INTO saves
                (slot, player_name, turn_count, snapshot_json, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (slot, state.player.name, state.turn_count, snapshot_json,
                  created_at.isoformat(), now.isoformat()))

        logger.info("Game saved", slot=slot, turn=state.turn_count)

        return SaveRecord(
            slot=slot,
            player_name=state.player.name,
            turn_count=state.turn_count,
            snapshot_json=snapshot_json,
            created_at=created_at,
            updated_at=now,
        )

    def _get_record(self, slot: str) -> SaveRecord | None:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT slot, player_name, turn_count, snapshot_json, created_at, updated_at
                FROM saves WHERE slot = ?
            """, (slot,))
            row = cursor.fetchone()

            if row:
                return SaveRecord.from_row(tuple(row))
            return None

    def load_game(self, slot: str = DEFAULT_SAVE_SLOT) -> GameState | None:
        """Load the game in a slot.

        Returns:
            The migrated state, or None if the slot is empty.

        Raises:
            StorageError: If the stored snapshot is corrupted.
        """
        record = self._get_record(slot)
        if record is None:
            return None
        return load_snapshot(record.snapshot_json)

    def load_game_or_default(self, slot: str = DEFAULT_SAVE_SLOT) -> GameState:
        """Load the game in a slot, or a fresh game if it is empty or corrupted."""
        record = self._get_record(slot)
        return load_snapshot_or_default(record.snapshot_json if record else None)

    def delete_game(self, slot: str = DEFAULT_SAVE_SLOT) -> bool:
        """Delete a slot.

        Returns:
            True if deleted, False if not found.
        """
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM saves WHERE slot = ?", (slot,))
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info("Game deleted", slot=slot)

        return deleted

    def list_slots(self) -> list[SaveRecord]:
        """Get all saved games, most recently updated first."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT slot, player_name, turn_count, snapshot_json, created_at, updated_at
                FROM saves ORDER BY updated_at DESC
            """)

            return [SaveRecord.from_row(tuple(row)) for row in cursor.fetchall()]

    # =========================================================================
    # Preferences
    # =========================================================================

    def save_preferences(self, preferences: Preferences) -> None:
        with self._get_connection() as conn:
            conn.execute("""
                INSERT OR REPLACE INTO preferences (id, preferences_json, updated_at)
                VALUES (1, ?, ?)
            """, (preferences.model_dump_json(by_alias=True), datetime.now().isoformat()))

        logger.debug("Preferences saved", theme=preferences.theme.name)

    def load_preferences(self, default: Preferences | None = None) -> Preferences:
        """Load stored preferences.

        Args:
            default: Returned when nothing usable is stored.
        """
        fallback = default or Preferences()
        with self._get_connection() as conn:
            row = conn.execute("SELECT preferences_json FROM preferences WHERE id = 1").fetchone()

        if row is None:
            return fallback
        try:
            return Preferences.model_validate(json.loads(row[0]))
        except (json.JSONDecodeError, PydanticValidationError) as exc:
            logger.warning("Stored preferences corrupted, using defaults", error=str(exc))
            return fallback


__all__ = [
    "SaveRecord",
    "SaveStore",
]
