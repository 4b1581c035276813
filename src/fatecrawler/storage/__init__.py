"""Storage module for Fatecrawler persistence."""

from fatecrawler.storage.database import SaveRecord, SaveStore
from fatecrawler.storage.snapshot import (
    load_snapshot,
    load_snapshot_or_default,
    migrate_snapshot,
    serialize_snapshot,
)

__all__ = [
    "SaveRecord",
    "SaveStore",
    "load_snapshot",
    "load_snapshot_or_default",
    "migrate_snapshot",
    "serialize_snapshot",
]
