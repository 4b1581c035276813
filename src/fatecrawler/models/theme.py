"""Color themes and player preferences.

Themes are generated by the model for the presentation layer. The engine
guarantees that every Theme it hands out is fully specified; see
``fatecrawler.dm.client.GenerationClient.generate_themes``.
"""

from __future__ import annotations

from pydantic import Field

from fatecrawler.core.config import GameSettings
from fatecrawler.core.constants import DEFAULT_THEME
from fatecrawler.models.game_state import GameModel


class ThemeColors(GameModel):
    """Every color slot of a theme, as CSS color strings."""

    dark: str
    panel: str
    gold: str
    """Primary accent color; not necessarily yellow."""
    red: str
    blue: str
    text: str
    muted: str
    dice_bg: str
    dice_text: str
    dice_border: str


class Theme(GameModel):
    """A named color scheme."""

    name: str
    colors: ThemeColors


class Preferences(GameModel):
    """Runtime preferences the player can change between turns."""

    tts_enabled: bool = False
    tts_volume: float = Field(default=0.8, ge=0.0, le=1.0)
    tts_rate: float = Field(default=1.0, gt=0.0)
    ui_scale: float = Field(default=0.95, gt=0.0)
    theme: Theme = Field(default_factory=lambda: Theme.model_validate(DEFAULT_THEME))

    @classmethod
    def from_settings(cls, settings: GameSettings) -> Preferences:
        """Seed preferences from the configured defaults."""
        return cls(
            tts_enabled=settings.tts_enabled,
            tts_volume=settings.tts_volume,
            tts_rate=settings.tts_rate,
            ui_scale=settings.ui_scale,
        )


__all__ = [
    "ThemeColors",
    "Theme",
    "Preferences",
]
