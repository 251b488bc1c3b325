"""
Stat and Modifier Models for rpg-stats.

Definitions, modifiers, change events and the versioned snapshot format.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


SNAPSHOT_VERSION = 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Definitions
# =============================================================================


class StatDefinition(BaseModel):
    """Initial value and optional bounds for a stat."""

    base: float = Field(description="Starting base value")
    min: float | None = Field(default=None, description="Lowest allowed base value")
    max: float | None = Field(default=None, description="Highest allowed base value")

    def clamp(self, value: float) -> float:
        """Clamp a value into this definition's bounds."""
        return clamp(value, self.min, self.max)


def clamp(value: float, low: float | None, high: float | None) -> float:
    """Clamp a value into optional bounds."""
    if low is not None:
        value = max(value, low)
    if high is not None:
        value = min(value, high)
    return value


# =============================================================================
# Modifiers
# =============================================================================


class ModifierType(str, Enum):
    """How a modifier is applied to the base value."""

    FLAT = "flat"  # Added before any multiplier
    MULTIPLY = "multiply"  # Applied after all flats, in insertion order


class Modifier(BaseModel):
    """
    A modifier as supplied by a caller.

    Examples: +2 strength from a potion, x1.5 damage from rage.
    """

    value: float = Field(description="Amount to add, or factor to multiply by")
    source: str = Field(description="Unique key for this modifier on its stat")
    type: ModifierType = ModifierType.FLAT
    duration: Literal["permanent", "temporary"] | int = Field(
        default="permanent",
        description="'permanent', 'temporary' (one tick) or a number of ticks",
    )


class ModifierInfo(BaseModel):
    """A modifier as reported by a stat block; duration is what remains."""

    value: float
    source: str
    type: ModifierType
    duration: Literal["permanent"] | int


class ActiveModifier(BaseModel):
    """A modifier attached to a stat, tracking its remaining ticks."""

    value: float
    source: str
    type: ModifierType = ModifierType.FLAT
    remaining: int | None = Field(
        default=None, description="Ticks left before expiry (None = permanent)"
    )

    @classmethod
    def from_modifier(cls, modifier: Modifier) -> ActiveModifier:
        """Resolve a caller's modifier into its tracked form."""
        if modifier.duration == "permanent":
            remaining = None
        elif modifier.duration == "temporary":
            remaining = 1
        else:
            remaining = modifier.duration
        return cls(
            value=modifier.value,
            source=modifier.source,
            type=modifier.type,
            remaining=remaining,
        )

    @property
    def remaining_duration(self) -> float:
        """Remaining ticks, infinite for permanent modifiers."""
        return math.inf if self.remaining is None else self.remaining

    def tick(self) -> bool:
        """
        Advance the modifier by one tick.

        Returns:
            True if the modifier has expired, False otherwise.
        """
        if self.remaining is None:
            return False

        self.remaining -= 1
        return self.remaining <= 0

    def info(self) -> ModifierInfo:
        """Public view of this modifier."""
        return ModifierInfo(
            value=self.value,
            source=self.source,
            type=self.type,
            duration="permanent" if self.remaining is None else self.remaining,
        )


# =============================================================================
# Events and History
# =============================================================================


class StatChangeEvent(BaseModel):
    """Fired when a stat's effective value changes."""

    stat: str
    old_value: float
    new_value: float
    base_changed: bool = False
    modifiers_changed: bool = False


class HistoryEntry(BaseModel):
    """A roll recorded against a stat block."""

    notation: str
    result: float = Field(description="Final total of the roll")
    rolls: list[int] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_utcnow)
    stat: str | None = Field(default=None, description="Stat the roll was made with")
    context: str | None = Field(default=None, description="Free-form label, e.g. 'attack'")


# =============================================================================
# Snapshot
# =============================================================================


class StatBlockSnapshot(BaseModel):
    """
    Serialized stat block state.

    Holds base values and modifiers of regular stats only. Derived stats,
    bounds and roll history are not part of a snapshot.
    """

    version: int = SNAPSHOT_VERSION
    stats: dict[str, float] = Field(default_factory=dict)
    modifiers: dict[str, list[ModifierInfo]] = Field(default_factory=dict)
