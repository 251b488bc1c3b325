"""
Stat Templates.

A template holds default stat values and bounds and stamps out independent
stat blocks, each with its own overrides.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

from rpg_stats.models.stats import StatDefinition
from rpg_stats.services.stat_block import StatBlock, create_stat_block

logger = logging.getLogger(__name__)

# Override keys that are never applied
RESERVED_KEYS = frozenset({"__proto__", "constructor", "prototype"})


class TemplateStat(BaseModel):
    """Default value and bounds for one stat in a template."""

    default: float
    min: float | None = None
    max: float | None = None


class StatTemplate(BaseModel):
    """
    Reusable stat layout.

    `options` are passed through to create_stat_block for every block.
    """

    stats: dict[str, TemplateStat] = Field(default_factory=dict)
    options: dict[str, Any] = Field(default_factory=dict)

    def create(self, overrides: Mapping[str, float] | None = None) -> StatBlock:
        """
        Create a stat block from this template.

        Args:
            overrides: Stat name -> base value replacing the default

        Returns:
            A new, independent StatBlock
        """
        overrides = dict(overrides or {})
        definitions: dict[str, StatDefinition] = {}

        for name, stat in self.stats.items():
            base = stat.default
            if name in overrides and name not in RESERVED_KEYS:
                base = overrides[name]
            definitions[name] = StatDefinition(base=base, min=stat.min, max=stat.max)

        for name in overrides:
            if name in RESERVED_KEYS:
                logger.warning("Ignoring reserved override key: %s", name)
            elif name not in self.stats:
                logger.warning("Override for unknown stat: %s", name)

        return create_stat_block(definitions, **self.options)


def create_stat_template(
    stats: Mapping[str, TemplateStat | Mapping[str, Any]],
    **options: Any,
) -> StatTemplate:
    """
    Factory function to create a stat template.

    Args:
        stats: Stat name -> {"default": ..., "min": ..., "max": ...}
        **options: Keyword arguments for create_stat_block (history_limit,
            modifier_formula, rng, config)

    Returns:
        Configured StatTemplate

    Example:
        >>> template = create_stat_template({
        ...     "strength": {"default": 10, "min": 1, "max": 20},
        ...     "health": {"default": 100, "min": 0},
        ... })
        >>> hero = template.create({"strength": 16})
        >>> goblin = template.create({"strength": 8, "health": 30})
    """
    return StatTemplate(stats=dict(stats), options=options)
