"""
Stateful Services for rpg-stats.

- StatBlock: stats, modifiers, ticks, events, snapshots
- Derived stats with dependency cycle detection
- Stat templates
"""

from rpg_stats.services.derived import (
    DependencyTracker,
    DerivedStat,
    create_derived_stat,
)
from rpg_stats.services.events import ListenerRegistry, Subscription
from rpg_stats.services.stat_block import StatBlock, create_stat_block
from rpg_stats.services.template import StatTemplate, TemplateStat, create_stat_template

__all__ = [
    "StatBlock",
    "create_stat_block",
    "DependencyTracker",
    "DerivedStat",
    "create_derived_stat",
    "ListenerRegistry",
    "Subscription",
    "StatTemplate",
    "TemplateStat",
    "create_stat_template",
]
