"""
Data Models for rpg-stats.

Every value that crosses a public boundary (definitions, modifiers, events,
roll and check results, snapshots) is a pydantic model defined here.
"""

from rpg_stats.models.checks import (
    CheckResult,
    ContestResult,
    ContestSides,
    RollTableEntry,
)
from rpg_stats.models.dice import (
    ParsedNotation,
    RerollCondition,
    RerollOperator,
    RollResult,
)
from rpg_stats.models.stats import (
    SNAPSHOT_VERSION,
    ActiveModifier,
    HistoryEntry,
    Modifier,
    ModifierInfo,
    ModifierType,
    StatBlockSnapshot,
    StatChangeEvent,
    StatDefinition,
)

__all__ = [
    # Dice
    "ParsedNotation",
    "RerollCondition",
    "RerollOperator",
    "RollResult",
    # Stats
    "SNAPSHOT_VERSION",
    "ActiveModifier",
    "HistoryEntry",
    "Modifier",
    "ModifierInfo",
    "ModifierType",
    "StatBlockSnapshot",
    "StatChangeEvent",
    "StatDefinition",
    # Checks
    "CheckResult",
    "ContestResult",
    "ContestSides",
    "RollTableEntry",
]
