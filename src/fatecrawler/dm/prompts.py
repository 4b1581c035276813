"""Prompt templates for the Game Master and the cosmetic generators."""

from __future__ import annotations

import json

from fatecrawler.core.constants import OPENING_ACTION_PREFIX
from fatecrawler.models.game_state import BonusRoll, GameState, Stats


# =============================================================================
# Game Master
# =============================================================================


GM_SYSTEM_PROMPT = """You are the Game Master of a dark-fantasy dungeon crawl. Narrate in the second person, vividly and briefly (3-6 sentences).

## RULES

1. The engine rolls every die. When the message contains a d20 check, honour it: 1-5 is a failure with a cost, 6-14 a partial success, 15-19 a success, 20 a triumph. A bonus die adds to the check.
2. Never invent dice results and never restate the player's numbers as a table.
3. Damage, healing, mana, gold and loot happen ONLY through the JSON fields below. Keep changes proportionate: a goblin's blow is -2 to -6 HP, not -40.
4. When the player uses an item, describe its effect and remove it through "itemLost".
5. When the player finds loot, list it in "itemsFound".
6. Never offer item use as one of the "options"; the player has an inventory for that.
7. Offer 2-4 options that follow from the scene.

## RESPONSE FORMAT

Reply with ONE JSON object and nothing else:

{
  "narrative": "What happens (required).",
  "options": [{"id": "1", "title": "Short title", "description": "What the hero attempts"}],
  "locationUpdate": "New location name, only when the hero moves",
  "hpChange": 0,
  "mpChange": 0,
  "goldChange": 0,
  "itemsFound": [{"name": "Torch", "quantity": 1, "description": "Smells of pitch"}],
  "itemLost": "Name of ONE item consumed or lost"
}

Omit any field that does not change."""


OPENING_ACTION_TEMPLATE = (
    OPENING_ACTION_PREFIX + ".\n"
    "Context: the hero wakes up in an unknown place.\n"
    "The hero ALREADY HAS {gold} gold coins (do not add them again through goldChange).\n"
    "Create an atmospheric starting location.\n"
    "Grant 3 random items (in itemsFound).\n"
    "Describe the awakening, the place and the discovery of these coins and items."
)


def build_opening_action(gold: int) -> str:
    """Scene-setting action issued right after character creation."""
    return OPENING_ACTION_TEMPLATE.format(gold=gold)


def format_roll_annotation(dice_roll: int | None, bonus_roll: BonusRoll | None) -> str:
    """Describe the rolls of this turn, e.g. ``d20 check: 14 + bonus d6: 3``."""
    parts: list[str] = []
    if dice_roll is not None:
        parts.append(f"d20 check: {dice_roll}")
    if bonus_roll is not None:
        parts.append(f"bonus {bonus_roll.die.value}: {bonus_roll.value}")
    return " + ".join(parts)


def build_turn_prompt(
    action: str,
    state: GameState,
    dice_roll: int | None = None,
    bonus_roll: BonusRoll | None = None,
) -> str:
    """Serialize the compact turn context into the user message."""
    context = state.to_ai_context()
    context["lastAction"] = action

    lines = [
        f"State: {json.dumps(context, ensure_ascii=False)}",
        f'Action: "{action}"',
    ]
    roll_text = format_roll_annotation(dice_roll, bonus_roll)
    if roll_text:
        lines.append(roll_text)
    lines.extend(
        [
            "",
            "IMPORTANT:",
            "1. If the player uses an item, describe the effect and remove it via 'itemLost'.",
            "2. If the player finds loot, add it to 'itemsFound'.",
            "3. Do not suggest using items in 'options'.",
        ]
    )
    return "\n".join(lines)


# =============================================================================
# Character Details
# =============================================================================


CHARACTER_SYSTEM_PROMPT = "You are a character generator. Reply with JSON only."

CHARACTER_PROMPT_TEMPLATE = """Create a fantasy hero profile.
Stats: Strength {strength}, Dexterity {dexterity}, Intelligence {intelligence}.

Return JSON:
{{
  "name": "Name (resonant, fantasy)",
  "race": "Race",
  "gender": "Gender",
  "class": "Class",
  "bio": "Backstory (1-2 sentences)"
}}"""


def build_character_prompt(stats: Stats) -> str:
    return CHARACTER_PROMPT_TEMPLATE.format(
        strength=stats.strength,
        dexterity=stats.dexterity,
        intelligence=stats.intelligence,
    )


# =============================================================================
# Themes
# =============================================================================


THEME_SYSTEM_PROMPT = "You are a designer. Reply with a JSON array."

THEME_PROMPT_TEMPLATE = """You are a UI/UX designer. Generate {count} color schemes for an RPG.
{style}

ABOUT THE COLORS:
1. "gold" is the PRIMARY ACCENT color.
2. It does NOT have to be yellow!
3. For a "Necromancer" theme make "gold" toxic green or purple.
4. For a "Cyberpunk" theme make "gold" neon pink or cyan.
5. For a "Vampire" theme make "gold" blood red.

Color fields (all required, HEX):
- dark: page background (usually very dark).
- panel: card/panel background (slightly lighter than dark).
- gold: PRIMARY ACCENT (buttons, headings). ANY BRIGHT COLOR.
- red: danger / HP.
- blue: magic / MP.
- text: main text.
- muted: secondary text.
- diceBg: dice background.
- diceText: dice numbers (usually the same as gold).
- diceBorder: dice outline.

Return a JSON array of objects: [{{"name": "Theme name", "colors": {{...}}}}, ...]"""

LIGHT_STYLE = "Both DARK and LIGHT themes are allowed."
DARK_STYLE = "Strictly DARK themes (dark mode)."


def build_theme_prompt(count: int, allow_light: bool) -> str:
    return THEME_PROMPT_TEMPLATE.format(
        count=count,
        style=LIGHT_STYLE if allow_light else DARK_STYLE,
    )


__all__ = [
    "GM_SYSTEM_PROMPT",
    "CHARACTER_SYSTEM_PROMPT",
    "THEME_SYSTEM_PROMPT",
    "build_opening_action",
    "format_roll_annotation",
    "build_turn_prompt",
    "build_character_prompt",
    "build_theme_prompt",
]
