"""
Stat Block Service for rpg-stats.

Holds named stats with bounded base values and ordered modifier lists,
computes effective values, expires modifiers on tick, notifies listeners of
changes and hosts derived (formula) stats.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from rpg_stats.config import StatsConfig
from rpg_stats.errors import (
    CircularDependencyError,
    StatOperationError,
    ValidationError,
    VersionError,
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
    clamp,
)
from rpg_stats.services.derived import DependencyRecorder, DependencyTracker, Formula
from rpg_stats.services.events import Listener, ListenerRegistry, Subscription

if TYPE_CHECKING:
    from rpg_stats.skills.dice import RandomSource

logger = logging.getLogger(__name__)

ModifierFormula = Callable[[float], float]


@dataclass
class StatEntry:
    """
    Internal state of one stat.

    A regular stat has a bounded base and modifiers; a derived stat has a
    formula instead and a base fixed at 0.
    """

    base: float
    min: float | None = None
    max: float | None = None
    modifiers: list[ActiveModifier] = field(default_factory=list)
    formula: Formula | None = None

    @property
    def is_derived(self) -> bool:
        return self.formula is not None

    def find_modifier(self, source: str) -> int | None:
        """Index of the modifier with this source, if any."""
        for index, modifier in enumerate(self.modifiers):
            if modifier.source == source:
                return index
        return None


class StatBlock:
    """
    A collection of named numeric stats.

    Effective value = (base + all flat modifiers) * each multiply modifier,
    in the order they were added. Bounds apply to the base only; modifiers
    may push the effective value outside them.

    Use create_stat_block() to construct one.
    """

    def __init__(
        self,
        definitions: Mapping[str, StatDefinition | Mapping[str, Any]] | None = None,
        *,
        history_limit: int | None = None,
        modifier_formula: ModifierFormula | None = None,
        from_json: StatBlockSnapshot | Mapping[str, Any] | None = None,
        rng: RandomSource | None = None,
        config: StatsConfig | None = None,
    ) -> None:
        self.config = config or StatsConfig()
        self.history_limit = self.config.history_limit if history_limit is None else history_limit
        if self.history_limit < 0:
            raise ValidationError("history_limit cannot be negative", field="history_limit")

        self._modifier_formula = modifier_formula
        self._rng = rng
        self._stats: dict[str, StatEntry] = {}
        self._listeners = ListenerRegistry()
        self._dependencies = DependencyTracker()
        self._recorder: DependencyRecorder | None = None
        self._history: list[HistoryEntry] = []

        for name, raw in (definitions or {}).items():
            definition = (
                raw if isinstance(raw, StatDefinition) else StatDefinition.model_validate(raw)
            )
            if (
                definition.min is not None
                and definition.max is not None
                and definition.min > definition.max
            ):
                raise ValidationError(
                    f"Min ({definition.min}) cannot be greater than max ({definition.max}) "
                    f"for stat '{name}'",
                    field=name,
                )
            self._stats[name] = StatEntry(
                base=definition.clamp(definition.base),
                min=definition.min,
                max=definition.max,
            )

        if from_json is not None:
            self._restore(from_json)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def modifier_formula(self) -> ModifierFormula | None:
        """Custom stat -> check modifier formula, if configured."""
        return self._modifier_formula

    @property
    def rng(self) -> RandomSource | None:
        """Random source used by checks against this block, if configured."""
        return self._rng

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get(self, name: str) -> float | None:
        """
        Get a stat's effective value.

        Derived stats are recomputed on every call; a failing formula yields 0.

        Returns:
            Effective value, or None if the stat doesn't exist
        """
        recorder = self._recorder
        if recorder is not None:
            # Only the defining formula's own reads are dependencies
            recorder.record(name)
            self._recorder = None
            try:
                return self._value_of(name)
            finally:
                self._recorder = recorder
        return self._value_of(name)

    def get_base(self, name: str) -> float | None:
        """Get a stat's base value, ignoring modifiers (0 for derived stats)."""
        entry = self._stats.get(name)
        return None if entry is None else entry.base

    def has(self, name: str) -> bool:
        """Check whether a stat exists."""
        return name in self._stats

    def names(self) -> list[str]:
        """All stat names, derived included, in definition order."""
        return list(self._stats)

    def is_derived(self, name: str) -> bool:
        """Check whether a stat is derived."""
        entry = self._stats.get(name)
        return entry is not None and entry.is_derived

    def __contains__(self, name: object) -> bool:
        return name in self._stats

    # -------------------------------------------------------------------------
    # Base value mutation
    # -------------------------------------------------------------------------

    def set(self, name: str, value: float) -> float:
        """
        Set a stat's base value, clamped to its bounds.

        Returns:
            The new base value

        Raises:
            StatOperationError: If the stat doesn't exist or is derived
        """
        entry = self._require_mutable(name, "set")
        with self._tracking(name, entry, base_changed=True):
            entry.base = clamp(value, entry.min, entry.max)
        return entry.base

    def modify(self, name: str, delta: float) -> float:
        """
        Adjust a stat's base value by delta, clamped to its bounds.

        Returns:
            The new base value

        Raises:
            StatOperationError: If the stat doesn't exist or is derived
        """
        entry = self._require_mutable(name, "modify")
        with self._tracking(name, entry, base_changed=True):
            entry.base = clamp(entry.base + delta, entry.min, entry.max)
        return entry.base

    # -------------------------------------------------------------------------
    # Modifiers
    # -------------------------------------------------------------------------

    def add_modifier(self, name: str, modifier: Modifier | Mapping[str, Any]) -> Modifier:
        """
        Attach a modifier to a stat.

        A modifier with the same source as an existing one replaces it in
        place (one change event, not a remove and an add).

        Args:
            name: Stat to modify
            modifier: Modifier or mapping with value, source, type, duration

        Returns:
            The modifier as added, with defaults filled in

        Raises:
            StatOperationError: If the stat doesn't exist or is derived
        """
        entry = self._require_mutable(name, "add modifier to")
        if not isinstance(modifier, Modifier):
            modifier = Modifier.model_validate(modifier)

        active = ActiveModifier.from_modifier(modifier)
        with self._tracking(name, entry, modifiers_changed=True):
            index = entry.find_modifier(modifier.source)
            if index is None:
                entry.modifiers.append(active)
            else:
                entry.modifiers[index] = active

        return modifier.model_copy()

    def remove_modifier(self, name: str, source: str) -> bool:
        """
        Remove a modifier by source.

        Returns:
            True if a modifier was removed, False if stat or source not found
        """
        entry = self._stats.get(name)
        if entry is None:
            return False

        index = entry.find_modifier(source)
        if index is None:
            return False

        with self._tracking(name, entry, modifiers_changed=True):
            del entry.modifiers[index]
        return True

    def get_modifiers(self, name: str) -> list[ModifierInfo] | None:
        """
        Get a stat's active modifiers in the order they apply.

        Returns:
            Copies of the modifiers with remaining duration, or None if the
            stat doesn't exist
        """
        entry = self._stats.get(name)
        if entry is None:
            return None
        return [modifier.info() for modifier in entry.modifiers]

    def clear_modifiers(self, name: str | None = None) -> int:
        """
        Remove all modifiers from one stat, or from every stat.

        Returns:
            Number of modifiers removed
        """
        if name is not None:
            entry = self._stats.get(name)
            if entry is None or not entry.modifiers:
                return 0
            count = len(entry.modifiers)
            with self._tracking(name, entry, modifiers_changed=True):
                entry.modifiers.clear()
            return count

        count = 0
        derived_before = self._capture_derived()
        for stat_name, entry in list(self._stats.items()):
            if not entry.modifiers:
                continue
            old_value = self._compute(stat_name, entry)
            count += len(entry.modifiers)
            entry.modifiers.clear()
            new_value = self._compute(stat_name, entry)
            if old_value != new_value:
                self._emit(stat_name, old_value, new_value, modifiers_changed=True)

        self._emit_derived_changes(derived_before)
        return count

    def get_remaining_duration(self, name: str, source: str) -> float | None:
        """
        Ticks left on a modifier.

        Returns:
            Remaining ticks, math.inf for permanent modifiers, None if the
            stat or modifier doesn't exist
        """
        entry = self._stats.get(name)
        if entry is None:
            return None
        index = entry.find_modifier(source)
        if index is None:
            return None
        return entry.modifiers[index].remaining_duration

    def tick(self) -> list[str]:
        """
        Advance time by one tick.

        Every timed modifier loses one tick; those reaching zero are removed.
        Derived stat events fire once, after every stat has been processed.

        Returns:
            Sources of the modifiers that expired
        """
        expired: list[str] = []
        derived_before = self._capture_derived()

        for name, entry in list(self._stats.items()):
            if not entry.modifiers:
                continue

            old_value = self._compute(name, entry)
            remaining: list[ActiveModifier] = []
            for modifier in entry.modifiers:
                if modifier.tick():
                    expired.append(modifier.source)
                else:
                    remaining.append(modifier)

            if len(remaining) < len(entry.modifiers):
                entry.modifiers = remaining
                new_value = self._compute(name, entry)
                if old_value != new_value:
                    self._emit(name, old_value, new_value, modifiers_changed=True)

        self._emit_derived_changes(derived_before)
        return expired

    # -------------------------------------------------------------------------
    # Derived stats
    # -------------------------------------------------------------------------

    def define_derived(self, name: str, formula: Formula) -> None:
        """
        Register a read-only stat computed by `formula`.

        The formula runs once here, with reads recorded, to discover its
        dependencies. Errors other than a cycle are ignored at this point;
        the formula runs again on every read.

        Raises:
            CircularDependencyError: If the formula reads `name`, directly
                or through other derived stats
        """
        recorder = self._dependencies.recorder(name)
        self._recorder = recorder
        try:
            formula(self)
        except CircularDependencyError:
            raise
        except Exception:
            logger.debug(
                "Formula for derived stat %r failed during dependency discovery",
                name,
                exc_info=True,
            )
        finally:
            self._recorder = None

        self._dependencies.commit(recorder)
        previous = self._stats.get(name)
        if previous is not None:
            logger.debug(
                "Replacing %s stat %r with derived formula (%d modifier(s) dropped)",
                "derived" if previous.is_derived else "regular",
                name,
                len(previous.modifiers),
            )
        self._stats[name] = StatEntry(base=0, formula=formula)

    def dependencies_of(self, name: str) -> set[str]:
        """Names a derived stat's formula read when it was defined."""
        return self._dependencies.dependencies_of(name)

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def on_change(self, callback: Listener) -> Subscription:
        """
        Listen for changes to any stat.

        Returns:
            Subscription; call it to unsubscribe
        """
        return self._listeners.subscribe(callback)

    def on_stat(self, name: str, callback: Listener) -> Subscription:
        """
        Listen for changes to one stat.

        Returns:
            Subscription; call it to unsubscribe

        Raises:
            StatOperationError: If the stat doesn't exist
        """
        if name not in self._stats:
            raise StatOperationError(f"Cannot listen to non-existent stat: '{name}'", stat=name)
        return self._listeners.subscribe(callback, stat=name)

    # -------------------------------------------------------------------------
    # Roll history
    # -------------------------------------------------------------------------

    def record_roll(self, entry: HistoryEntry) -> None:
        """Add a roll to the history (newest first), honouring history_limit."""
        if self.history_limit == 0:
            return
        self._history.insert(0, entry)
        del self._history[self.history_limit:]

    def get_roll_history(self, limit: int | None = None) -> list[HistoryEntry]:
        """Recorded rolls, newest first, optionally only the latest `limit`."""
        if limit is None:
            return list(self._history)
        return self._history[:limit]

    def clear_roll_history(self) -> None:
        """Forget all recorded rolls."""
        self._history.clear()

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_snapshot(self) -> StatBlockSnapshot:
        """Capture base values and modifiers of all regular stats."""
        snapshot = StatBlockSnapshot()
        for name, entry in self._stats.items():
            if entry.is_derived:
                continue
            snapshot.stats[name] = entry.base
            if entry.modifiers:
                snapshot.modifiers[name] = [modifier.info() for modifier in entry.modifiers]
        return snapshot

    def to_json(self) -> dict[str, Any]:
        """Snapshot as a JSON-compatible dict."""
        return self.to_snapshot().model_dump(mode="json")

    def dispose(self) -> None:
        """Drop all listeners and roll history."""
        self._listeners.clear()
        self._history.clear()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _restore(self, data: StatBlockSnapshot | Mapping[str, Any]) -> None:
        if isinstance(data, StatBlockSnapshot):
            snapshot = data
        else:
            version = data.get("version")
            if version is not None and version != SNAPSHOT_VERSION:
                raise VersionError(f"Unsupported version: {version}", version)
            snapshot = StatBlockSnapshot.model_validate(data)

        if snapshot.version != SNAPSHOT_VERSION:
            raise VersionError(f"Unsupported version: {snapshot.version}", snapshot.version)

        for name, base in snapshot.stats.items():
            entry = self._stats.get(name)
            if entry is None or entry.is_derived:
                logger.warning("Unknown stat in snapshot: %s", name)
                continue
            entry.base = clamp(base, entry.min, entry.max)

        for name, modifiers in snapshot.modifiers.items():
            entry = self._stats.get(name)
            if entry is None or entry.is_derived:
                logger.warning("Unknown stat in snapshot modifiers: %s", name)
                continue
            for info in modifiers:
                self.add_modifier(name, Modifier(**info.model_dump()))

    def _require_mutable(self, name: str, action: str) -> StatEntry:
        entry = self._stats.get(name)
        if entry is None:
            raise StatOperationError(f"Cannot {action} non-existent stat: '{name}'", stat=name)
        if entry.is_derived:
            raise StatOperationError(f"Cannot {action} derived stat '{name}'", stat=name)
        return entry

    def _value_of(self, name: str) -> float | None:
        entry = self._stats.get(name)
        if entry is None:
            return None
        return self._compute(name, entry)

    def _compute(self, name: str, entry: StatEntry) -> float:
        if entry.formula is not None:
            try:
                return entry.formula(self)
            except Exception:
                logger.exception("Error calculating derived stat %r", name)
                return 0

        value = entry.base
        for modifier in entry.modifiers:
            if modifier.type == ModifierType.FLAT:
                value += modifier.value
        for modifier in entry.modifiers:
            if modifier.type == ModifierType.MULTIPLY:
                value *= modifier.value
        return value

    def _capture_derived(self) -> dict[str, float]:
        return {
            name: self._compute(name, entry)
            for name, entry in self._stats.items()
            if entry.is_derived
        }

    def _emit_derived_changes(self, before: dict[str, float]) -> None:
        for name, old_value in before.items():
            entry = self._stats.get(name)
            if entry is None:
                continue
            new_value = self._compute(name, entry)
            if old_value != new_value:
                self._emit(name, old_value, new_value)

    def _emit(
        self,
        name: str,
        old_value: float,
        new_value: float,
        *,
        base_changed: bool = False,
        modifiers_changed: bool = False,
    ) -> None:
        self._listeners.emit(
            StatChangeEvent(
                stat=name,
                old_value=old_value,
                new_value=new_value,
                base_changed=base_changed,
                modifiers_changed=modifiers_changed,
            )
        )

    @contextmanager
    def _tracking(
        self,
        name: str,
        entry: StatEntry,
        *,
        base_changed: bool = False,
        modifiers_changed: bool = False,
    ) -> Iterator[None]:
        """Emit an event for `name`, then derived cascades, if the body changes it."""
        old_value = self._compute(name, entry)
        derived_before = self._capture_derived()
        yield
        new_value = self._compute(name, entry)
        if old_value != new_value:
            self._emit(
                name,
                old_value,
                new_value,
                base_changed=base_changed,
                modifiers_changed=modifiers_changed,
            )
            self._emit_derived_changes(derived_before)


def create_stat_block(
    definitions: Mapping[str, StatDefinition | Mapping[str, Any]] | None = None,
    *,
    history_limit: int | None = None,
    modifier_formula: ModifierFormula | None = None,
    from_json: StatBlockSnapshot | Mapping[str, Any] | None = None,
    rng: RandomSource | None = None,
    config: StatsConfig | None = None,
) -> StatBlock:
    """
    Factory function to create a stat block.

    Args:
        definitions: Stat name -> {"base": ..., "min": ..., "max": ...}
        history_limit: Roll history entries to keep (0 disables history)
        modifier_formula: Stat value -> check modifier (default: D20 style)
        from_json: Snapshot from to_json() to restore
        rng: Random source for checks made against this block
        config: Limits and defaults

    Returns:
        Configured StatBlock

    Raises:
        ValidationError: If any definition has min > max
        VersionError: If the snapshot version is unsupported

    Example:
        >>> stats = create_stat_block({
        ...     "strength": {"base": 14, "min": 1, "max": 20},
        ...     "health": {"base": 100, "min": 0},
        ... })
        >>> stats.add_modifier("strength", {"value": 2, "source": "buff"})
        >>> stats.get("strength")  # 16
    """
    return StatBlock(
        definitions,
        history_limit=history_limit,
        modifier_formula=modifier_formula,
        from_json=from_json,
        rng=rng,
        config=config,
    )
