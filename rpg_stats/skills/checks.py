"""
Check, Contest and Random Table Skills.

Stateless helpers that combine dice rolls with stat block values:
- check / save_throw: roll + stat modifier against a difficulty
- contest: opposed rolls between two sides
- roll_table: weighted random selection
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

from rpg_stats.config import StatsConfig
from rpg_stats.errors import StatOperationError, ValidationError
from rpg_stats.models.checks import CheckResult, ContestResult, ContestSides, RollTableEntry
from rpg_stats.models.stats import HistoryEntry
from rpg_stats.services.stat_block import StatBlock
from rpg_stats.skills.dice import RandomSource, default_rng, roll_dice


T = TypeVar("T")


def get_ability_modifier(value: float) -> int:
    """D20-style modifier: floor((value - 10) / 2)."""
    return math.floor((value - 10) / 2)


def stat_modifier(stat_block: StatBlock, value: float) -> float:
    """Modifier for a stat value using the block's formula, or the D20 default."""
    if stat_block.modifier_formula is not None:
        return stat_block.modifier_formula(value)
    return get_ability_modifier(value)


def check(
    stat_block: StatBlock,
    stat_name: str,
    difficulty: float,
    *,
    dice: str = "1d20",
    advantage: bool = False,
    disadvantage: bool = False,
    bonus: float = 0,
    modifier: float | None = None,
    context: str | None = None,
    rng: RandomSource | None = None,
    config: StatsConfig | None = None,
) -> CheckResult:
    """
    Roll a stat check.

    Args:
        stat_block: Stat block holding the stat
        stat_name: Stat to check
        difficulty: Target number; total >= difficulty succeeds
        dice: Dice notation to roll (flat modifiers in it are ignored)
        advantage: Roll twice, keep the higher
        disadvantage: Roll twice, keep the lower (cancels advantage)
        bonus: Situational bonus added to the total
        modifier: Use this instead of the stat's computed modifier
        context: Label stored in the roll history
        rng: Random source (defaults to the stat block's, then a cryptographic one)
        config: Dice limits (defaults to the stat block's)

    Returns:
        CheckResult with roll, modifier, total and margin

    Raises:
        StatOperationError: If the stat doesn't exist
        ParseError: If `dice` is invalid
    """
    stat_value = stat_block.get(stat_name)
    if stat_value is None:
        raise StatOperationError(f"Cannot check non-existent stat: '{stat_name}'", stat=stat_name)

    if modifier is None:
        modifier = stat_modifier(stat_block, stat_value)

    rng = rng or stat_block.rng or default_rng
    config = config or stat_block.config

    if advantage != disadvantage:
        first = roll_dice(dice, rng, config)
        second = roll_dice(dice, rng, config)
        rolls = [first.dice_total, second.dice_total]
        selected = max(rolls) if advantage else min(rolls)
    else:
        # Neither, or both cancelling out
        result = roll_dice(dice, rng, config)
        rolls = list(result.rolls)
        selected = result.dice_total

    total = selected + modifier + bonus

    stat_block.record_roll(
        HistoryEntry(
            notation=dice,
            result=total,
            rolls=rolls,
            stat=stat_name,
            context=context,
        )
    )

    return CheckResult(
        success=total >= difficulty,
        roll=selected,
        rolls=rolls,
        modifier=modifier,
        bonus=bonus,
        total=total,
        difficulty=difficulty,
        margin=total - difficulty,
    )


def save_throw(
    stat_block: StatBlock,
    stat_name: str,
    difficulty: float,
    rng: RandomSource | None = None,
    config: StatsConfig | None = None,
) -> bool:
    """Saving throw: a plain check that only reports success."""
    return check(
        stat_block, stat_name, difficulty, context="save", rng=rng, config=config
    ).success


def contest(
    a: StatBlock | float,
    b: str | float,
    c: StatBlock | None = None,
    d: str | None = None,
    *,
    dice: str = "1d20",
    rng: RandomSource | None = None,
    config: StatsConfig | None = None,
) -> ContestResult:
    """
    Opposed roll between two sides.

    Call as contest(modifier_a, modifier_b) with raw modifiers, or as
    contest(block_a, "stat_a", block_b, "stat_b") to use stat modifiers.

    Returns:
        ContestResult; the strictly higher total wins, equal totals tie

    Raises:
        TypeError: If the arguments match neither form
        StatOperationError: If either stat doesn't exist
    """
    if (
        isinstance(a, StatBlock)
        and isinstance(b, str)
        and isinstance(c, StatBlock)
        and isinstance(d, str)
    ):
        value_a = a.get(b)
        value_b = c.get(d)
        if value_a is None:
            raise StatOperationError(f"Cannot contest with non-existent stat: '{b}'", stat=b)
        if value_b is None:
            raise StatOperationError(f"Cannot contest with non-existent stat: '{d}'", stat=d)
        modifier_a = stat_modifier(a, value_a)
        modifier_b = stat_modifier(c, value_b)
        rng = rng or a.rng or default_rng
        config = config or a.config
    elif _is_number(a) and _is_number(b) and c is None and d is None:
        modifier_a = a
        modifier_b = b
        rng = rng or default_rng
    else:
        raise TypeError("Invalid contest arguments")

    roll_a = roll_dice(dice, rng, config).dice_total
    roll_b = roll_dice(dice, rng, config).dice_total
    total_a = roll_a + modifier_a
    total_b = roll_b + modifier_b

    if total_a > total_b:
        winner = "a"
    elif total_b > total_a:
        winner = "b"
    else:
        winner = "tie"

    return ContestResult(
        winner=winner,
        rolls=ContestSides(a=roll_a, b=roll_b),
        totals=ContestSides(a=total_a, b=total_b),
        margin=abs(total_a - total_b),
    )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def roll_table(
    entries: Sequence[RollTableEntry[T] | Mapping[str, Any]],
    rng: RandomSource | None = None,
) -> T:
    """
    Pick a value from a weighted table.

    Args:
        entries: Rows with a weight and a value
        rng: Random source

    Returns:
        The chosen row's value

    Raises:
        ValidationError: If the table is empty, has a negative weight, or
            all weights are zero

    Example:
        >>> roll_table([
        ...     {"weight": 10, "value": "common"},
        ...     {"weight": 1, "value": "rare"},
        ... ])
    """
    if not entries:
        raise ValidationError("Roll table cannot be empty", field="entries")

    rows = [
        entry if isinstance(entry, RollTableEntry) else RollTableEntry.model_validate(entry)
        for entry in entries
    ]

    for row in rows:
        if row.weight < 0:
            raise ValidationError("Roll table weights cannot be negative", field="weight")

    total_weight = sum(row.weight for row in rows)
    if total_weight == 0:
        raise ValidationError("Roll table must have at least one non-zero weight", field="weight")

    target = (rng or default_rng)() * total_weight
    cumulative = 0.0
    for row in rows:
        cumulative += row.weight
        if target < cumulative:
            return row.value

    # Floating point fallback
    return rows[-1].value
