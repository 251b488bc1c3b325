"""
Change Listener Registry for stat blocks.

Synchronous pub/sub: global listeners first, then per-stat listeners, each
in registration order. A listener that raises is logged and skipped.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from rpg_stats.models.stats import StatChangeEvent

logger = logging.getLogger(__name__)

Listener = Callable[[StatChangeEvent], None]


@dataclass
class Subscription:
    """
    Handle returned by a subscribe call.

    Calling it (or `cancel()`) removes the listener. Safe to call twice.
    """

    id: int
    registry: ListenerRegistry = field(repr=False)

    def cancel(self) -> bool:
        """Remove the listener; True if it was still registered."""
        return self.registry.unsubscribe(self.id)

    def __call__(self) -> bool:
        return self.cancel()


@dataclass
class ListenerRegistry:
    """Listeners keyed by subscription id, optionally scoped to one stat."""

    _global: dict[int, Listener] = field(default_factory=dict)
    _by_stat: dict[str, dict[int, Listener]] = field(default_factory=dict)
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1))

    def subscribe(self, callback: Listener, stat: str | None = None) -> Subscription:
        """
        Register a listener.

        Args:
            callback: Called with each StatChangeEvent
            stat: Only receive events for this stat (None = all stats)

        Returns:
            Subscription handle for removal
        """
        sub_id = next(self._ids)
        if stat is None:
            self._global[sub_id] = callback
        else:
            self._by_stat.setdefault(stat, {})[sub_id] = callback
        return Subscription(id=sub_id, registry=self)

    def unsubscribe(self, sub_id: int) -> bool:
        """Remove a listener by subscription id."""
        if self._global.pop(sub_id, None) is not None:
            return True
        for listeners in self._by_stat.values():
            if listeners.pop(sub_id, None) is not None:
                return True
        return False

    def emit(self, event: StatChangeEvent) -> None:
        """Deliver an event to global listeners, then to the stat's listeners."""
        # Copy so listeners may unsubscribe while we iterate
        for callback in list(self._global.values()):
            try:
                callback(event)
            except Exception:
                logger.exception("Change listener failed for stat %r", event.stat)

        for callback in list(self._by_stat.get(event.stat, {}).values()):
            try:
                callback(event)
            except Exception:
                logger.exception("Stat listener failed for stat %r", event.stat)

    def clear(self) -> None:
        """Drop every listener."""
        self._global.clear()
        self._by_stat.clear()

    def __len__(self) -> int:
        return len(self._global) + sum(len(listeners) for listeners in self._by_stat.values())
