"""
Stateless Skills for rpg-stats.

Skills are pure functions that:
- Take structured input (notation strings, Pydantic models, stat blocks)
- Execute game logic (parsing, dice, checks, tables)
- Return structured output
- Draw randomness only from an injectable source
"""

from rpg_stats.skills.checks import (
    check,
    contest,
    get_ability_modifier,
    roll_table,
    save_throw,
    stat_modifier,
)
from rpg_stats.skills.dice import (
    RandomSource,
    default_rng,
    execute_roll,
    roll_advantage,
    roll_d20,
    roll_dice,
    roll_disadvantage,
)
from rpg_stats.skills.notation import parse_notation

__all__ = [
    # Notation
    "parse_notation",
    # Dice
    "RandomSource",
    "default_rng",
    "execute_roll",
    "roll_dice",
    "roll_d20",
    "roll_advantage",
    "roll_disadvantage",
    # Checks & Tables
    "check",
    "save_throw",
    "contest",
    "roll_table",
    "get_ability_modifier",
    "stat_modifier",
]
