"""
Dice Rolling Skill.

Executes parsed dice notation: explode, then reroll, then keep/drop, then
flat modifiers. Randomness comes from an injectable source so rolls can be
replayed deterministically in tests.
"""

from __future__ import annotations

import math
import secrets
from collections.abc import Callable
from dataclasses import dataclass

from rpg_stats.config import StatsConfig
from rpg_stats.models.dice import ParsedNotation, RerollCondition, RollResult
from rpg_stats.skills.notation import parse_notation


RandomSource = Callable[[], float]
"""Zero-argument callable returning a float in [0, 1)."""

_system_random = secrets.SystemRandom()


def default_rng() -> float:
    """Cryptographically seeded uniform float in [0, 1)."""
    return _system_random.random()


@dataclass
class DieRoll:
    """One raw roll of a single die."""

    value: int
    exploded: bool = False  # Rolled because the previous roll hit max
    rerolled: bool = False  # Replaced by the roll after it


def roll_die(sides: int, rng: RandomSource) -> int:
    """Roll one die with the given number of sides."""
    return math.floor(rng() * sides) + 1


def should_reroll(value: int, conditions: tuple[RerollCondition, ...]) -> bool:
    """Check a value against reroll conditions (any match triggers)."""
    return any(condition.matches(value) for condition in conditions)


def roll_single_die(
    parsed: ParsedNotation,
    rng: RandomSource,
    max_explosions: int = 100,
) -> list[DieRoll]:
    """
    Roll one die slot, resolving explosions and then at most one reroll.

    Args:
        parsed: Notation describing the die
        rng: Random source
        max_explosions: Cap on rolls in one explosion chain

    Returns:
        Every roll made for this slot, in order
    """
    value = roll_die(parsed.sides, rng)
    rolls = [DieRoll(value=value)]

    while parsed.exploding and value == parsed.sides and len(rolls) < max_explosions:
        value = roll_die(parsed.sides, rng)
        rolls.append(DieRoll(value=value, exploded=True))

    # Only the final roll of the chain is checked, and only once
    if parsed.reroll_conditions and should_reroll(rolls[-1].value, parsed.reroll_conditions):
        rolls[-1].rerolled = True
        rolls.append(DieRoll(value=roll_die(parsed.sides, rng)))

    return rolls


def die_contribution(rolls: list[DieRoll]) -> int:
    """
    Value one die slot contributes before keep/drop.

    Explosions add up; a rerolled value is swapped for its replacement.
    """
    for index, die_roll in enumerate(rolls):
        if die_roll.rerolled:
            replacement = rolls[index + 1].value if index + 1 < len(rolls) else 0
            return sum(r.value for r in rolls[:index]) + replacement
    return sum(r.value for r in rolls)


def select_kept_dice(
    values: list[int],
    keep_highest: int | None = None,
    keep_lowest: int | None = None,
    drop_highest: int | None = None,
    drop_lowest: int | None = None,
) -> list[int]:
    """
    Apply keep/drop selection to per-die values.

    Keeping more dice than were rolled keeps them all; keeping zero keeps
    none. The result is sorted ascending.
    """
    if not values:
        return []

    count = len(values)
    keep = count
    if keep_highest is not None:
        keep = min(keep, keep_highest)
    if keep_lowest is not None:
        keep = min(keep, keep_lowest)
    if drop_highest is not None:
        keep = min(keep, count - drop_highest)
    if drop_lowest is not None:
        keep = min(keep, count - drop_lowest)
    keep = max(0, min(keep, count))

    if keep == 0:
        return []

    ordered = sorted(values)
    if keep_highest is not None or drop_lowest is not None:
        return ordered[-keep:]
    if keep_lowest is not None or drop_highest is not None:
        return ordered[:keep]
    return ordered


def execute_roll(
    parsed: ParsedNotation,
    rng: RandomSource | None = None,
    config: StatsConfig | None = None,
) -> RollResult:
    """
    Roll already-parsed notation.

    Args:
        parsed: Output of parse_notation
        rng: Random source (defaults to a cryptographic one)
        config: Supplies the explosion cap

    Returns:
        RollResult with raw rolls, kept dice and total
    """
    rng = rng or default_rng
    config = config or StatsConfig()

    rolls: list[int] = []
    values: list[int] = []
    for _ in range(parsed.count):
        die_rolls = roll_single_die(parsed, rng, config.max_explosions)
        rolls.extend(r.value for r in die_rolls)
        values.append(die_contribution(die_rolls))

    kept = select_kept_dice(
        values,
        keep_highest=parsed.keep_highest,
        keep_lowest=parsed.keep_lowest,
        drop_highest=parsed.drop_highest,
        drop_lowest=parsed.drop_lowest,
    )

    return RollResult(
        total=sum(kept) + parsed.modifier,
        rolls=rolls,
        kept=kept,
        notation=parsed.notation,
        modifier=parsed.modifier,
    )


def roll_dice(
    notation: str,
    rng: RandomSource | None = None,
    config: StatsConfig | None = None,
) -> RollResult:
    """
    Roll dice using standard notation.

    Args:
        notation: Dice notation string
        rng: Random source (defaults to a cryptographic one)
        config: Parser limits and explosion cap

    Returns:
        RollResult with individual rolls and total

    Raises:
        ParseError: If the notation is invalid

    Examples:
        >>> result = roll_dice("2d6+3")
        >>> result.total  # Sum of 2d6 plus 3
        >>> result.rolls  # [4, 2] (example)

        >>> result = roll_dice("4d6kh3")
        >>> result.kept   # [4, 5, 6] (highest 3, ascending)
        >>> result.rolls  # [6, 5, 4, 1] (all 4 rolls)

        >>> result = roll_dice("1d6!")
        >>> result.rolls  # [6, 6, 2] (exploded twice)
        >>> result.total  # 14
    """
    parsed = parse_notation(notation, config)
    return execute_roll(parsed, rng, config)


def _with_modifier(notation: str, modifier: int) -> str:
    if not modifier:
        return notation
    return f"{notation}{'+' if modifier >= 0 else ''}{modifier}"


def roll_d20(
    modifier: int = 0,
    rng: RandomSource | None = None,
    config: StatsConfig | None = None,
) -> RollResult:
    """Convenience function for d20 rolls."""
    return roll_dice(_with_modifier("1d20", modifier), rng, config)


def roll_advantage(
    modifier: int = 0,
    rng: RandomSource | None = None,
    config: StatsConfig | None = None,
) -> RollResult:
    """Roll with advantage (2d20, keep highest)."""
    return roll_dice(_with_modifier("2d20kh1", modifier), rng, config)


def roll_disadvantage(
    modifier: int = 0,
    rng: RandomSource | None = None,
    config: StatsConfig | None = None,
) -> RollResult:
    """Roll with disadvantage (2d20, keep lowest)."""
    return roll_dice(_with_modifier("2d20kl1", modifier), rng, config)
