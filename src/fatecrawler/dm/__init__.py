"""Game Master module for Fatecrawler.

This module talks to the language model:
- Prompt construction from the game context
- Chat-completion transport (openai SDK, OpenRouter by default)
- Tolerant JSON extraction from free-form replies
- Total normalization into the canonical turn response

The model narrates; Python owns truth. Dice are rolled by the engine and
every change the model proposes goes through the state reducer.
"""

from __future__ import annotations

from .client import ChatCompletionTransport, GenerationClient, complete_theme
from .extractor import extract_json, strip_fences
from .normalize import normalize_turn_payload

__all__ = [
    "ChatCompletionTransport",
    "GenerationClient",
    "complete_theme",
    "extract_json",
    "strip_fences",
    "normalize_turn_payload",
]
