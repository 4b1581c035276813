"""Recover a JSON payload from free-form model output.

The generation service reliably embeds a single JSON object or array
somewhere in its reply, but it is not reliably constrained to emit only
JSON: replies come wrapped in markdown fences or surrounded by commentary.
Extraction runs two stages and stops at the first success:

1. Strip fence markers and parse the remaining text strictly.
2. Parse the span from the first ``{`` or ``[`` (whichever comes first)
   to the last matching closer.

This is a tolerant heuristic, not a validator: callers still check the
shape of what comes back (see ``fatecrawler.dm.normalize``).
"""

from __future__ import annotations

import json
import re
from typing import Any

from fatecrawler.core.exceptions import ExtractionError
from fatecrawler.core.logging import get_logger


logger = get_logger(__name__)

FENCE_PATTERN = re.compile(r"```(?:json|JSON)?")

PREVIEW_LENGTH = 200


def strip_fences(text: str) -> str:
    """Remove every markdown code fence marker from the text."""
    return FENCE_PATTERN.sub("", text).strip()


def _parse_structured(text: str) -> Any | None:
    """Strictly parse text, accepting only an object or an array."""
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return None
    if isinstance(value, (dict, list)):
        return value
    return None


def _bracket_span(text: str) -> tuple[int, int] | None:
    """Locate the outermost candidate JSON span.

    Returns:
        ``(start, end)`` indices of the first opener and its last closer,
        or None when no ordered pair exists.
    """
    first_brace = text.find("{")
    first_bracket = text.find("[")

    if first_bracket != -1 and (first_brace == -1 or first_bracket < first_brace):
        start, end = first_bracket, text.rfind("]")
    elif first_brace != -1:
        start, end = first_brace, text.rfind("}")
    else:
        return None

    if end == -1 or end <= start:
        return None
    return start, end


def extract_json(raw_text: str) -> Any:
    """Extract the JSON object or array embedded in a model reply.

    Args:
        raw_text: Raw completion text.

    Returns:
        The parsed dict or list.

    Raises:
        ExtractionError: If no structured data can be parsed.
    """
    clean = strip_fences(raw_text or "")

    value = _parse_structured(clean)
    if value is not None:
        return value

    span = _bracket_span(clean)
    if span is not None:
        start, end = span
        value = _parse_structured(clean[start : end + 1])
        if value is not None:
            logger.debug("JSON recovered from bracket span", start=start, end=end)
            return value

    logger.warning("No structured data in response", preview=clean[:PREVIEW_LENGTH])
    raise ExtractionError("no structured data found", raw_preview=clean[:PREVIEW_LENGTH])


__all__ = [
    "strip_fences",
    "extract_json",
]
