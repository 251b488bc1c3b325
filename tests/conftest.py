"""Shared fixtures for rpg-stats tests."""

from __future__ import annotations

import pytest


ENV_VARS = (
    "RPG_STATS_HISTORY_LIMIT",
    "RPG_STATS_MAX_DICE",
    "RPG_STATS_MAX_SIDES",
    "RPG_STATS_MAX_EXPLOSIONS",
)


def make_sequence_rng(sides, values):
    """
    Random source that rolls the given die faces in order.

    Each face v maps to (v - 0.5) / sides, which floor(rng() * sides) + 1
    turns back into v.
    """
    queue = list(values)

    def rng():
        if not queue:
            raise AssertionError("random source exhausted")
        return (queue.pop(0) - 0.5) / sides

    return rng


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep configuration env vars from leaking into tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sequence_rng():
    """Factory: sequence_rng(sides, [faces...]) -> random source."""
    return make_sequence_rng


@pytest.fixture
def d20(sequence_rng):
    """Factory for d20 random sources: d20(12, 5, ...)."""

    def factory(*faces):
        return sequence_rng(20, faces)

    return factory
