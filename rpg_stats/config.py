"""
Runtime configuration for rpg-stats.

Defaults can be overridden per instance or through environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from rpg_stats.errors import ValidationError


def _env_int(name: str) -> int | None:
    """Read a non-negative integer from the environment, if set."""
    raw = os.getenv(name)
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer, got {raw!r}", field=name) from None
    if value < 0:
        raise ValidationError(f"{name} cannot be negative, got {value}", field=name)
    return value


@dataclass
class StatsConfig:
    """
    Limits and defaults shared by the dice roller and stat blocks.

    Configuration via environment variables:
        RPG_STATS_HISTORY_LIMIT: Roll history entries kept per stat block (default: 100)
        RPG_STATS_MAX_DICE: Largest dice count accepted in notation (default: 10000)
        RPG_STATS_MAX_SIDES: Largest die size accepted in notation (default: 1000000)
        RPG_STATS_MAX_EXPLOSIONS: Rolls allowed per exploding die (default: 100)
    """

    history_limit: int = 100
    max_dice: int = 10_000
    max_sides: int = 1_000_000
    max_explosions: int = 100

    def __post_init__(self) -> None:
        """Apply environment overrides."""
        history_limit = _env_int("RPG_STATS_HISTORY_LIMIT")
        if history_limit is not None:
            self.history_limit = history_limit

        max_dice = _env_int("RPG_STATS_MAX_DICE")
        if max_dice is not None:
            self.max_dice = max_dice

        max_sides = _env_int("RPG_STATS_MAX_SIDES")
        if max_sides is not None:
            self.max_sides = max_sides

        max_explosions = _env_int("RPG_STATS_MAX_EXPLOSIONS")
        if max_explosions is not None:
            self.max_explosions = max_explosions
