"""
rpg-stats: dice notation and stat blocks for tabletop-style games.

Layers:
- models: Pydantic data models (notation, rolls, modifiers, snapshots)
- skills: Stateless functions (parse, roll, check, contest, roll tables)
- services: Stateful stat blocks, derived stats and templates
"""

from rpg_stats.config import StatsConfig
from rpg_stats.errors import (
    CircularDependencyError,
    ParseError,
    StatOperationError,
    StatsError,
    ValidationError,
    VersionError,
)
from rpg_stats.models import (
    CheckResult,
    ContestResult,
    HistoryEntry,
    Modifier,
    ModifierInfo,
    ModifierType,
    ParsedNotation,
    RollResult,
    RollTableEntry,
    StatBlockSnapshot,
    StatChangeEvent,
    StatDefinition,
)
from rpg_stats.services import (
    DerivedStat,
    StatBlock,
    StatTemplate,
    create_derived_stat,
    create_stat_block,
    create_stat_template,
)
from rpg_stats.skills import (
    check,
    contest,
    execute_roll,
    get_ability_modifier,
    parse_notation,
    roll_advantage,
    roll_d20,
    roll_dice,
    roll_disadvantage,
    roll_table,
    save_throw,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "StatsConfig",
    # Errors
    "StatsError",
    "ParseError",
    "ValidationError",
    "CircularDependencyError",
    "VersionError",
    "StatOperationError",
    # Models
    "CheckResult",
    "ContestResult",
    "HistoryEntry",
    "Modifier",
    "ModifierInfo",
    "ModifierType",
    "ParsedNotation",
    "RollResult",
    "RollTableEntry",
    "StatBlockSnapshot",
    "StatChangeEvent",
    "StatDefinition",
    # Dice
    "parse_notation",
    "execute_roll",
    "roll_dice",
    "roll_d20",
    "roll_advantage",
    "roll_disadvantage",
    # Checks
    "check",
    "save_throw",
    "contest",
    "roll_table",
    "get_ability_modifier",
    # Stat blocks
    "StatBlock",
    "create_stat_block",
    "DerivedStat",
    "create_derived_stat",
    "StatTemplate",
    "create_stat_template",
]
