"""Map an extracted, untyped payload onto the canonical TurnResponse.

``normalize_turn_payload`` is total: every payload either becomes a fully
defaulted TurnResponse or raises ValidationGapError. Recognized alternate
shapes:

- ``itemFound`` (legacy, singular): a comma-separated string of names, or a
  single item object.
- snake_case keys (``hp_change``, ``items_found``, ``location_update``...).
- options given as plain strings, or without ids.

Values of the wrong type are dropped rather than trusted.
"""

from __future__ import annotations

from typing import Any

from fatecrawler.core.exceptions import ValidationGapError
from fatecrawler.core.logging import get_logger
from fatecrawler.models.game_state import ActionOption, FoundItem, TurnResponse


logger = get_logger(__name__)

FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "narrative": ("narrative",),
    "options": ("options",),
    "location_update": ("locationUpdate", "location_update"),
    "hp_change": ("hpChange", "hp_change"),
    "mp_change": ("mpChange", "mp_change"),
    "gold_change": ("goldChange", "gold_change"),
    "items_found": ("itemsFound", "items_found"),
    "item_lost": ("itemLost", "item_lost"),
}

LEGACY_ITEM_FOUND_KEYS = ("itemFound", "item_found")


def _lookup(payload: dict[str, Any], names: tuple[str, ...]) -> Any:
    for name in names:
        value = payload.get(name)
        if value is not None:
            return value
    return None


def _coerce_int(value: Any) -> int | None:
    """Coerce 5, 5.0 and "5" to 5; anything else to None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _coerce_text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _normalize_item(raw: Any) -> FoundItem | None:
    if isinstance(raw, str):
        name = _coerce_text(raw)
        return FoundItem(name=name) if name else None
    if not isinstance(raw, dict):
        return None

    name = _coerce_text(raw.get("name"))
    if name is None:
        return None
    quantity = 1 if raw.get("quantity") is None else _coerce_int(raw.get("quantity"))
    if quantity is None or quantity < 1:
        return None
    return FoundItem(name=name, quantity=quantity, description=_coerce_text(raw.get("description")))


def normalize_items(raw: Any) -> list[FoundItem] | None:
    """Normalize a found-items list, dropping unusable entries."""
    if raw is None:
        return None
    entries = raw if isinstance(raw, list) else [raw]
    items = [item for item in (_normalize_item(entry) for entry in entries) if item is not None]
    if len(items) != len(entries):
        logger.debug("Dropped malformed found items", kept=len(items), received=len(entries))
    return items


def split_legacy_item_found(raw: Any) -> list[FoundItem] | None:
    """Convert the legacy singular ``itemFound`` field to found items."""
    if isinstance(raw, str):
        return [FoundItem(name=name.strip()) for name in raw.split(",") if name.strip()]
    if isinstance(raw, dict):
        return normalize_items([raw])
    return None


def normalize_options(raw: Any) -> list[ActionOption]:
    """Normalize the offered options; absent or malformed means none.

    Options without an id, or repeating an earlier one, get ``opt-<position>``.
    """
    if not isinstance(raw, list):
        return []

    options: list[ActionOption] = []
    seen: set[str] = set()
    for index, entry in enumerate(raw, start=1):
        if isinstance(entry, str) and entry.strip():
            seen.add(f"opt-{index}")
            options.append(
                ActionOption(id=f"opt-{index}", title=entry.strip(), description=entry.strip())
            )
        elif isinstance(entry, dict):
            title = _coerce_text(entry.get("title"))
            description = _coerce_text(entry.get("description")) or ""
            if title is None and not description:
                continue
            raw_id = entry.get("id")
            option_id = str(raw_id) if raw_id not in (None, "") else ""
            if not option_id or option_id in seen:
                option_id = f"opt-{index}"
            seen.add(option_id)
            options.append(
                ActionOption(id=option_id, title=title or description, description=description)
            )
    return options


def normalize_turn_payload(payload: Any) -> TurnResponse:
    """Build the canonical turn response from an extracted payload.

    Args:
        payload: Output of ``extract_json``.

    Returns:
        A fully defaulted TurnResponse.

    Raises:
        ValidationGapError: If the payload is not an object or has no narrative.
    """
    if not isinstance(payload, dict):
        raise ValidationGapError(
            "Turn payload is not a JSON object",
            details={"payload_type": type(payload).__name__},
        )

    narrative = _coerce_text(_lookup(payload, FIELD_ALIASES["narrative"]))
    if narrative is None:
        raise ValidationGapError(
            "Turn payload has no narrative",
            details={"keys": sorted(payload)},
        )

    items_found = normalize_items(_lookup(payload, FIELD_ALIASES["items_found"]))
    if items_found is None:
        legacy = _lookup(payload, LEGACY_ITEM_FOUND_KEYS)
        if legacy is not None:
            items_found = split_legacy_item_found(legacy)
            logger.debug("Legacy itemFound converted", items=len(items_found or []))

    return TurnResponse(
        narrative=narrative,
        options=normalize_options(_lookup(payload, FIELD_ALIASES["options"])),
        location_update=_coerce_text(_lookup(payload, FIELD_ALIASES["location_update"])),
        hp_change=_coerce_int(_lookup(payload, FIELD_ALIASES["hp_change"])),
        mp_change=_coerce_int(_lookup(payload, FIELD_ALIASES["mp_change"])),
        gold_change=_coerce_int(_lookup(payload, FIELD_ALIASES["gold_change"])),
        items_found=items_found,
        item_lost=_coerce_text(_lookup(payload, FIELD_ALIASES["item_lost"])),
    )


__all__ = [
    "normalize_items",
    "normalize_options",
    "split_legacy_item_found",
    "normalize_turn_payload",
]
