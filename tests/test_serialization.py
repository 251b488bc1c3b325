"""
Tests for StatBlock snapshots (to_json / from_json).
"""

from __future__ import annotations

import json
import logging

import pytest

from rpg_stats.errors import VersionError
from rpg_stats.models.stats import StatBlockSnapshot
from rpg_stats.services.derived import create_derived_stat
from rpg_stats.services.stat_block import create_stat_block


DEFINITIONS = {
    "strength": {"base": 10, "min": 1, "max": 20},
    "health": {"base": 100, "min": 0},
    "speed": {"base": 30},
}


@pytest.fixture
def stats():
    return create_stat_block(DEFINITIONS)


class TestToJson:
    """Tests for producing snapshots."""

    def test_format(self, stats):
        stats.set("strength", 15)
        stats.add_modifier("strength", {"value": 2, "source": "belt"})
        stats.add_modifier(
            "speed", {"value": 1.5, "source": "haste", "type": "multiply", "duration": 3}
        )

        data = stats.to_json()

        assert data["version"] == 1
        assert data["stats"] == {"strength": 15, "health": 100, "speed": 30}
        assert data["modifiers"] == {
            "strength": [
                {"value": 2, "source": "belt", "type": "flat", "duration": "permanent"}
            ],
            "speed": [
                {"value": 1.5, "source": "haste", "type": "multiply", "duration": 3}
            ],
        }

    def test_json_serializable(self, stats):
        stats.add_modifier("health", {"value": 10, "source": "blessing", "duration": 2})
        text = json.dumps(stats.to_json())
        assert json.loads(text)["modifiers"]["health"][0]["duration"] == 2

    def test_derived_excluded(self, stats):
        create_derived_stat(stats, "carry", lambda s: s.get("strength") * 15)
        data = stats.to_json()
        assert "carry" not in data["stats"]
        assert "carry" not in data["modifiers"]

    def test_snapshot_model(self, stats):
        snapshot = stats.to_snapshot()
        assert isinstance(snapshot, StatBlockSnapshot)
        assert snapshot.stats["health"] == 100


class TestFromJson:
    """Tests for restoring snapshots."""

    def test_round_trip(self, stats):
        stats.set("strength", 17)
        stats.modify("health", -35)
        stats.add_modifier("strength", {"value": 2, "source": "belt"})
        stats.add_modifier("speed", {"value": 2, "source": "haste", "type": "multiply"})
        stats.add_modifier("health", {"value": 10, "source": "blessing", "duration": 4})
        stats.tick()

        restored = create_stat_block(DEFINITIONS, from_json=stats.to_json())

        for name in DEFINITIONS:
            assert restored.get(name) == stats.get(name)
            assert restored.get_base(name) == stats.get_base(name)
        assert restored.get_remaining_duration("health", "blessing") == 3
        assert restored.get_modifiers("speed") == stats.get_modifiers("speed")

    def test_restored_modifiers_keep_expiring(self, stats):
        stats.add_modifier("health", {"value": 10, "source": "blessing", "duration": 2})
        stats.tick()
        restored = create_stat_block(DEFINITIONS, from_json=stats.to_json())
        assert restored.tick() == ["blessing"]

    def test_accepts_snapshot_model(self, stats):
        stats.set("speed", 40)
        restored = create_stat_block(DEFINITIONS, from_json=stats.to_snapshot())
        assert restored.get("speed") == 40

    def test_missing_version_is_current(self):
        restored = create_stat_block(DEFINITIONS, from_json={"stats": {"speed": 25}})
        assert restored.get("speed") == 25

    def test_unsupported_version(self):
        with pytest.raises(VersionError, match="Unsupported version: 2") as exc_info:
            create_stat_block(DEFINITIONS, from_json={"version": 2, "stats": {}})
        assert exc_info.value.version == 2

    def test_bases_clamped_to_definitions(self):
        data = {"version": 1, "stats": {"strength": 50}}
        restored = create_stat_block(DEFINITIONS, from_json=data)
        assert restored.get("strength") == 20

    def test_unknown_stat_skipped(self, caplog):
        data = {
            "version": 1,
            "stats": {"strength": 12, "luck": 7},
            "modifiers": {"luck": [{"value": 1, "source": "clover"}]},
        }

        with caplog.at_level(logging.WARNING, logger="rpg_stats.services.stat_block"):
            restored = create_stat_block(DEFINITIONS, from_json=data)

        assert restored.get("strength") == 12
        assert not restored.has("luck")
        assert "Unknown stat in snapshot: luck" in caplog.text
        assert "Unknown stat in snapshot modifiers: luck" in caplog.text
