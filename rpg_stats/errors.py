"""
Exception types for rpg-stats.

Every error raised by the package derives from StatsError. Each class also
derives from the built-in error a caller would naturally expect, so
``except ValueError`` still catches bad notation and ``except TypeError``
still catches operations on the wrong kind of stat.
"""

from __future__ import annotations


class StatsError(Exception):
    """Base class for all rpg-stats errors."""


class ParseError(StatsError, ValueError):
    """Malformed dice notation."""

    def __init__(self, message: str, notation: str | None = None) -> None:
        super().__init__(message)
        self.notation = notation


class ValidationError(StatsError, ValueError):
    """Bad configuration: inverted bounds, degenerate roll tables, etc."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class CircularDependencyError(StatsError, ValueError):
    """A derived stat formula reads itself, directly or transitively."""

    def __init__(self, message: str, cycle: list[str] | None = None) -> None:
        super().__init__(message)
        self.cycle = cycle or []


class VersionError(StatsError, ValueError):
    """Unsupported snapshot version."""

    def __init__(self, message: str, version: object = None) -> None:
        super().__init__(message)
        self.version = version


class StatOperationError(StatsError, TypeError):
    """Operation on a stat that doesn't exist or is derived (read-only)."""

    def __init__(self, message: str, stat: str | None = None) -> None:
        super().__init__(message)
        self.stat = stat
