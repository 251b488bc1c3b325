"""
Derived Stat Tracking.

A derived stat is a read-only stat computed from a formula over other
stats. Its dependencies are discovered once, when it is defined, by running
the formula while the stat block records every name it reads. Reading the
stat being defined, directly or through other derived stats, is a cycle
and is rejected on the spot.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rpg_stats.errors import CircularDependencyError

if TYPE_CHECKING:
    from rpg_stats.services.stat_block import StatBlock

logger = logging.getLogger(__name__)

Formula = Callable[["StatBlock"], float]


@dataclass
class DependencyRecorder:
    """Collects the names a formula reads while its stat is being defined."""

    tracker: DependencyTracker
    target: str
    dependencies: set[str] = field(default_factory=set)

    def record(self, name: str) -> None:
        """
        Record a read of `name`.

        Raises:
            CircularDependencyError: If the read closes a cycle back to target
        """
        if name == self.target:
            raise _cycle_error([self.target, self.target])

        self.dependencies.add(name)

        path = self.tracker.find_path(name, self.target)
        if path:
            raise _cycle_error([self.target, *path])


@dataclass
class DependencyTracker:
    """Directed graph of derived stat -> names its formula reads."""

    edges: dict[str, set[str]] = field(default_factory=dict)

    def recorder(self, target: str) -> DependencyRecorder:
        """Start recording dependencies for `target`."""
        return DependencyRecorder(tracker=self, target=target)

    def commit(self, recorder: DependencyRecorder) -> None:
        """Store what a recorder collected as the target's dependencies."""
        self.edges[recorder.target] = set(recorder.dependencies)

    def dependencies_of(self, name: str) -> set[str]:
        """Direct dependencies of a stat (empty for regular stats)."""
        return set(self.edges.get(name, ()))

    def transitive_dependencies(self, name: str) -> set[str]:
        """Every stat `name` depends on, directly or indirectly."""
        seen: set[str] = set()
        stack = list(self.edges.get(name, ()))
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self.edges.get(current, ()))
        return seen

    def find_path(self, start: str, goal: str) -> list[str] | None:
        """
        Find a dependency path from `start` to `goal`.

        Returns:
            The path including both ends, or None if goal is unreachable
        """
        visited: set[str] = set()

        def walk(node: str) -> list[str] | None:
            if node == goal:
                return [node]
            if node in visited:
                return None
            visited.add(node)
            for dependency in sorted(self.edges.get(node, ())):
                rest = walk(dependency)
                if rest is not None:
                    return [node, *rest]
            return None

        if start == goal:
            return None
        return walk(start)


def _cycle_error(cycle: list[str]) -> CircularDependencyError:
    return CircularDependencyError(
        f"Circular dependency detected in derived stat '{cycle[0]}': {' -> '.join(cycle)}",
        cycle,
    )


class DerivedStat:
    """Accessor returned by create_derived_stat."""

    def __init__(self, stat_block: StatBlock, name: str) -> None:
        self.stat_block = stat_block
        self.name = name

    def get_value(self) -> float:
        """Current value of the derived stat (0 if its formula fails)."""
        value = self.stat_block.get(self.name)
        return 0 if value is None else value

    @property
    def dependencies(self) -> set[str]:
        """Names the formula read when it was defined."""
        return self.stat_block.dependencies_of(self.name)

    def __repr__(self) -> str:
        return f"DerivedStat(name={self.name!r})"


def create_derived_stat(stat_block: StatBlock, name: str, formula: Formula) -> DerivedStat:
    """
    Add a read-only stat computed from other stats.

    Args:
        stat_block: Stat block to add the stat to
        name: Name of the derived stat
        formula: Called with the stat block, returns the stat's value

    Returns:
        DerivedStat accessor

    Raises:
        CircularDependencyError: If the formula reads `name`, directly or
            through other derived stats

    Example:
        >>> stats = create_stat_block({"strength": {"base": 16}})
        >>> create_derived_stat(stats, "carry", lambda s: s.get("strength") * 10)
        >>> stats.get("carry")  # 160
    """
    stat_block.define_derived(name, formula)
    return DerivedStat(stat_block, name)
