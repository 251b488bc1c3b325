"""
Tests for StatsConfig and the error hierarchy.
"""

from __future__ import annotations

import pytest

from rpg_stats.config import StatsConfig
from rpg_stats.errors import (
    CircularDependencyError,
    ParseError,
    StatOperationError,
    StatsError,
    ValidationError,
    VersionError,
)
from rpg_stats.services.stat_block import create_stat_block
from rpg_stats.skills.dice import roll_dice
from rpg_stats.skills.notation import parse_notation


class TestStatsConfig:
    """Tests for StatsConfig."""

    def test_defaults(self):
        config = StatsConfig()
        assert config.history_limit == 100
        assert config.max_dice == 10_000
        assert config.max_sides == 1_000_000
        assert config.max_explosions == 100

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("RPG_STATS_HISTORY_LIMIT", "3")
        monkeypatch.setenv("RPG_STATS_MAX_DICE", "5")
        monkeypatch.setenv("RPG_STATS_MAX_SIDES", "12")
        monkeypatch.setenv("RPG_STATS_MAX_EXPLOSIONS", "2")

        config = StatsConfig()

        assert config.history_limit == 3
        assert config.max_dice == 5
        assert config.max_sides == 12
        assert config.max_explosions == 2

    def test_env_applies_to_parser(self, monkeypatch):
        monkeypatch.setenv("RPG_STATS_MAX_DICE", "5")
        with pytest.raises(ParseError, match="Cannot roll more than 5 dice"):
            parse_notation("6d6")

    def test_env_applies_to_explosions(self, monkeypatch):
        monkeypatch.setenv("RPG_STATS_MAX_EXPLOSIONS", "3")
        assert len(roll_dice("1d6!", lambda: 5.5 / 6).rolls) == 3

    def test_env_applies_to_stat_block(self, monkeypatch):
        monkeypatch.setenv("RPG_STATS_HISTORY_LIMIT", "7")
        assert create_stat_block({}).history_limit == 7

    def test_explicit_history_limit_wins(self, monkeypatch):
        monkeypatch.setenv("RPG_STATS_HISTORY_LIMIT", "7")
        assert create_stat_block({}, history_limit=2).history_limit == 2

    def test_empty_env_ignored(self, monkeypatch):
        monkeypatch.setenv("RPG_STATS_MAX_DICE", "")
        assert StatsConfig().max_dice == 10_000

    def test_non_integer_env(self, monkeypatch):
        monkeypatch.setenv("RPG_STATS_MAX_DICE", "lots")
        with pytest.raises(ValidationError, match="must be an integer") as exc_info:
            StatsConfig()
        assert exc_info.value.field == "RPG_STATS_MAX_DICE"

    def test_negative_env(self, monkeypatch):
        monkeypatch.setenv("RPG_STATS_HISTORY_LIMIT", "-1")
        with pytest.raises(ValidationError, match="cannot be negative"):
            StatsConfig()


class TestErrors:
    """Tests for the exception hierarchy."""

    @pytest.mark.parametrize(
        "error,builtin",
        [
            (ParseError("x"), ValueError),
            (ValidationError("x"), ValueError),
            (CircularDependencyError("x"), ValueError),
            (VersionError("x"), ValueError),
            (StatOperationError("x"), TypeError),
        ],
    )
    def test_bases(self, error, builtin):
        assert isinstance(error, StatsError)
        assert isinstance(error, builtin)

    def test_payloads(self):
        assert ParseError("bad", "1d").notation == "1d"
        assert ValidationError("bad", "weight").field == "weight"
        assert CircularDependencyError("bad", ["a", "a"]).cycle == ["a", "a"]
        assert CircularDependencyError("bad").cycle == []
        assert VersionError("bad", 9).version == 9
        assert StatOperationError("bad", "luck").stat == "luck"
