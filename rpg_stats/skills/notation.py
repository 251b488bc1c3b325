"""
Dice Notation Parser.

Turns strings like "4d6kh3", "1d20+5" or "3d10!r<2" into ParsedNotation.
Pure: no randomness, no state.
"""

from __future__ import annotations

import re

from rpg_stats.config import StatsConfig
from rpg_stats.errors import ParseError
from rpg_stats.models.dice import ParsedNotation, RerollCondition, RerollOperator


_WHITESPACE = re.compile(r"\s+")
_NEGATIVE_COUNT = re.compile(r"^-\d+d", re.IGNORECASE | re.ASCII)
_NEGATIVE_SIDES = re.compile(r"d-\d+", re.IGNORECASE | re.ASCII)
_HEAD = re.compile(r"^(?P<count>[\d.]*)d(?P<sides>\d[\d.]*)", re.IGNORECASE | re.ASCII)
_DIGITS = re.compile(r"\d+", re.ASCII)
_REROLL = re.compile(r"(<=|>=|<|>|=)?(\d+)", re.ASCII)

# Longest digit run accepted for a modifier, keep/drop count or reroll value
_MAX_TERM_DIGITS = 15

# Two-letter keep/drop tokens -> ParsedNotation field
_KEEP_DROP = {
    "kh": "keep_highest",
    "kl": "keep_lowest",
    "dh": "drop_highest",
    "dl": "drop_lowest",
}


def parse_notation(notation: str, config: StatsConfig | None = None) -> ParsedNotation:
    """
    Parse dice notation.

    Supports:
    - NdX / dX: Roll N dice with X sides (count defaults to 1)
    - +M / -M: Flat modifiers, any number of them, summed
    - khN / klN: Keep highest / lowest N dice
    - dhN / dlN: Drop highest / lowest N dice
    - !: Exploding dice (roll again on the maximum face)
    - rN, r<N, r<=N, r>N, r>=N, r=N: Reroll once on a match (bare "r" means r1)

    Terms after the NdX head may appear in any order. Case and whitespace
    are ignored.

    Args:
        notation: Dice notation string
        config: Limits for dice count and die size

    Returns:
        ParsedNotation describing the roll

    Raises:
        ParseError: If the notation is malformed or out of range
    """
    config = config or StatsConfig()

    trimmed = notation.strip()
    if not trimmed:
        raise ParseError("Dice notation cannot be empty", notation)

    clean = _WHITESPACE.sub("", trimmed)

    if _NEGATIVE_COUNT.match(clean):
        raise ParseError("Cannot roll negative number of dice", notation)
    if _NEGATIVE_SIDES.search(clean):
        raise ParseError("Die cannot have negative sides", notation)

    match = _HEAD.match(clean)
    if not match:
        raise ParseError(f'Invalid dice notation: "{notation}"', notation)

    count_str = match.group("count")
    sides_str = match.group("sides")

    if "." in count_str:
        raise ParseError("Dice count must be an integer", notation)
    if "." in sides_str:
        raise ParseError("Die size must be an integer", notation)

    # Digit runs longer than the limits allow never reach int()
    if len(count_str.lstrip("0")) > len(str(config.max_dice)):
        raise ParseError(f"Cannot roll more than {config.max_dice} dice", notation)
    if len(sides_str.lstrip("0")) > len(str(config.max_sides)):
        raise ParseError(f"Die cannot have more than {config.max_sides} sides", notation)

    count = int(count_str) if count_str else 1
    sides = int(sides_str)

    if count == 0:
        raise ParseError("Cannot roll zero dice", notation)
    if sides == 0:
        raise ParseError("Die must have at least 1 side", notation)
    if count > config.max_dice:
        raise ParseError(f"Cannot roll more than {config.max_dice} dice", notation)
    if sides > config.max_sides:
        raise ParseError(f"Die cannot have more than {config.max_sides} sides", notation)

    fields: dict[str, int] = {}
    modifier = 0
    exploding = False
    reroll_conditions: list[RerollCondition] = []

    remainder = clean[match.end():]
    pos = 0
    while pos < len(remainder):
        char = remainder[pos]

        # Numeric modifiers
        if char in "+-":
            sign = 1 if char == "+" else -1
            pos += 1

            if pos < len(remainder) and remainder[pos] in "+-":
                raise ParseError("Invalid modifier syntax", notation)

            digits = _DIGITS.match(remainder, pos)
            if not digits:
                raise ParseError("Incomplete modifier", notation)
            pos = digits.end()

            if pos < len(remainder) and remainder[pos] == ".":
                raise ParseError("Modifiers must be integers", notation)

            modifier += sign * _term_int(digits.group(), notation, "Modifier too large")
            continue

        # Keep / drop
        token = remainder[pos:pos + 2].lower()
        if token in _KEEP_DROP:
            pos += 2
            digits = _DIGITS.match(remainder, pos)
            if digits:
                fields[_KEEP_DROP[token]] = _term_int(
                    digits.group(), notation, "Keep/drop count too large"
                )
                pos = digits.end()
            continue

        # Exploding
        if char == "!":
            exploding = True
            pos += 1
            continue

        # Reroll
        if char in "rR":
            pos += 1
            condition = _REROLL.match(remainder, pos)
            if condition:
                reroll_conditions.append(
                    RerollCondition(
                        operator=RerollOperator(condition.group(1) or "="),
                        value=_term_int(
                            condition.group(2), notation, "Reroll value too large"
                        ),
                    )
                )
                pos = condition.end()
            else:
                reroll_conditions.append(RerollCondition(operator=RerollOperator.EQ, value=1))
            continue

        raise ParseError(f'Unexpected character: "{char}"', notation)

    return ParsedNotation(
        notation=notation,
        count=count,
        sides=sides,
        modifier=modifier,
        exploding=exploding,
        reroll_conditions=tuple(reroll_conditions),
        **fields,
    )


def _term_int(digits: str, notation: str, message: str) -> int:
    """Convert a term's digit run, rejecting absurdly long ones."""
    if len(digits.lstrip("0")) > _MAX_TERM_DIGITS:
        raise ParseError(message, notation)
    return int(digits)
