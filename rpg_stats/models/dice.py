"""
Dice Models for rpg-stats.

Parsed notation and roll results exchanged between the parser, the roller
and callers.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class RerollOperator(str, Enum):
    """Comparison used by a reroll condition."""

    EQ = "="
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="


class RerollCondition(BaseModel):
    """Reroll a die whose final value satisfies `value <operator> threshold`."""

    model_config = {"frozen": True}

    operator: RerollOperator = RerollOperator.EQ
    value: int

    def matches(self, rolled: int) -> bool:
        """Check whether a rolled value triggers this condition."""
        if self.operator == RerollOperator.EQ:
            return rolled == self.value
        elif self.operator == RerollOperator.LT:
            return rolled < self.value
        elif self.operator == RerollOperator.GT:
            return rolled > self.value
        elif self.operator == RerollOperator.LE:
            return rolled <= self.value
        elif self.operator == RerollOperator.GE:
            return rolled >= self.value
        return False


class ParsedNotation(BaseModel):
    """
    Structured form of a dice notation string.

    Produced by the parser, consumed by a single roll, never stored.
    """

    model_config = {"frozen": True}

    notation: str = Field(description="Original notation string")
    count: int = Field(ge=1, description="Number of dice")
    sides: int = Field(ge=1, description="Faces per die")
    modifier: int = Field(default=0, description="Sum of all +/- terms")
    keep_highest: int | None = None
    keep_lowest: int | None = None
    drop_highest: int | None = None
    drop_lowest: int | None = None
    exploding: bool = False
    reroll_conditions: tuple[RerollCondition, ...] = ()


class RollResult(BaseModel):
    """Result of a dice roll."""

    total: int = Field(description="Sum of kept dice plus modifier")
    rolls: list[int] = Field(description="Every raw die result, explosions and rerolls included")
    kept: list[int] = Field(description="Per-die values counted toward the total")
    notation: str = Field(description="Original dice notation")
    modifier: int = Field(default=0, description="Any +/- modifier")

    @property
    def dice_total(self) -> int:
        """Total without the flat modifier."""
        return self.total - self.modifier
