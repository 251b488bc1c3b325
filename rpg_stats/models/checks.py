"""
Check and Contest Models for rpg-stats.
"""

from __future__ import annotations

from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, Field


T = TypeVar("T")


class CheckResult(BaseModel):
    """Result of a stat check against a difficulty."""

    success: bool
    roll: int = Field(description="Dice result that was used")
    rolls: list[int] = Field(description="Raw rolls, or both results on advantage/disadvantage")
    modifier: float = Field(description="Stat modifier added to the roll")
    bonus: float = Field(default=0, description="Situational bonus")
    total: float
    difficulty: float
    margin: float = Field(description="total - difficulty")


class ContestSides(BaseModel):
    """A pair of per-side values."""

    a: float
    b: float


class ContestResult(BaseModel):
    """Result of an opposed roll."""

    winner: Literal["a", "b", "tie"]
    rolls: ContestSides
    totals: ContestSides
    margin: float = Field(description="Absolute difference between totals")


class RollTableEntry(BaseModel, Generic[T]):
    """One weighted row of a random table."""

    weight: float
    value: T
