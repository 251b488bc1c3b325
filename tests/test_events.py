"""
Tests for stat change listeners.
"""

from __future__ import annotations

import logging

import pytest

from rpg_stats.errors import StatOperationError
from rpg_stats.models.stats import StatChangeEvent
from rpg_stats.services.derived import create_derived_stat
from rpg_stats.services.events import ListenerRegistry
from rpg_stats.services.stat_block import create_stat_block


@pytest.fixture
def stats():
    return create_stat_block(
        {
            "strength": {"base": 10, "min": 1, "max": 20},
            "health": {"base": 50, "min": 0},
        }
    )


class TestOnChange:
    """Tests for global listeners."""

    def test_set_emits_event(self, stats):
        events = []
        stats.on_change(events.append)

        stats.set("strength", 15)

        assert events == [
            StatChangeEvent(
                stat="strength",
                old_value=10,
                new_value=15,
                base_changed=True,
                modifiers_changed=False,
            )
        ]

    def test_modifier_emits_event(self, stats):
        events = []
        stats.on_change(events.append)
        stats.add_modifier("strength", {"value": 2, "source": "buff"})
        stats.remove_modifier("strength", "buff")

        assert [(e.old_value, e.new_value) for e in events] == [(10, 12), (12, 10)]
        assert all(e.modifiers_changed for e in events)

    def test_no_event_without_change(self, stats):
        events = []
        stats.on_change(events.append)

        stats.set("strength", 10)
        stats.set("strength", 20)
        stats.set("strength", 25)  # Clamped to 20 again
        stats.modify("health", 0)

        assert len(events) == 1

    def test_registration_order(self, stats):
        calls = []
        stats.on_change(lambda e: calls.append("first"))
        stats.on_change(lambda e: calls.append("second"))
        stats.set("health", 10)
        assert calls == ["first", "second"]

    def test_global_before_stat_listeners(self, stats):
        calls = []
        stats.on_stat("health", lambda e: calls.append("stat"))
        stats.on_change(lambda e: calls.append("global"))
        stats.set("health", 10)
        assert calls == ["global", "stat"]


class TestOnStat:
    """Tests for per-stat listeners."""

    def test_only_that_stat(self, stats):
        events = []
        stats.on_stat("health", events.append)
        stats.set("strength", 12)
        stats.modify("health", -5)
        assert [e.stat for e in events] == ["health"]

    def test_unknown_stat(self, stats):
        with pytest.raises(StatOperationError, match="Cannot listen to non-existent stat: 'luck'"):
            stats.on_stat("luck", lambda e: None)

    def test_derived_cascade(self, stats):
        """Test that changing a dependency notifies derived listeners."""
        create_derived_stat(stats, "carry", lambda s: s.get("strength") * 15)
        events = []
        stats.on_stat("carry", events.append)

        stats.set("strength", 12)

        assert len(events) == 1
        assert events[0].old_value == 150
        assert events[0].new_value == 180


class TestUnsubscribe:
    """Tests for subscription handles."""

    def test_call_to_unsubscribe(self, stats):
        events = []
        unsubscribe = stats.on_change(events.append)

        assert unsubscribe() is True
        assert unsubscribe() is False
        stats.set("strength", 15)
        assert events == []

    def test_cancel_stat_listener(self, stats):
        events = []
        subscription = stats.on_stat("health", events.append)
        assert subscription.cancel() is True
        stats.set("health", 1)
        assert events == []

    def test_unsubscribe_during_emit(self, stats):
        """Test that a listener can remove itself while being called."""
        calls = []

        def once(event):
            calls.append(event.new_value)
            subscription()

        subscription = stats.on_change(once)
        stats.set("strength", 11)
        stats.set("strength", 12)
        assert calls == [11]

    def test_dispose(self, stats):
        events = []
        stats.on_change(events.append)
        stats.on_stat("strength", events.append)
        stats.dispose()
        stats.set("strength", 15)
        assert events == []


class TestListenerErrors:
    """Tests for failing listeners."""

    def test_failing_listener_is_skipped(self, stats, caplog):
        calls = []

        def broken(event):
            raise RuntimeError("boom")

        stats.on_change(broken)
        stats.on_change(lambda e: calls.append("after"))
        stats.on_stat("strength", lambda e: calls.append("stat"))

        with caplog.at_level(logging.ERROR, logger="rpg_stats.services.events"):
            stats.set("strength", 14)

        assert calls == ["after", "stat"]
        assert stats.get("strength") == 14
        assert "Change listener failed for stat 'strength'" in caplog.text

    def test_failing_stat_listener(self, stats, caplog):
        stats.on_stat("strength", lambda e: 1 / 0)
        with caplog.at_level(logging.ERROR, logger="rpg_stats.services.events"):
            stats.set("strength", 14)
        assert "Stat listener failed" in caplog.text


class TestListenerRegistry:
    """Tests for ListenerRegistry."""

    def test_ids_are_unique(self):
        registry = ListenerRegistry()
        first = registry.subscribe(lambda e: None)
        second = registry.subscribe(lambda e: None, stat="a")
        assert first.id != second.id
        assert len(registry) == 2

    def test_unsubscribe_unknown_id(self):
        registry = ListenerRegistry()
        assert registry.unsubscribe(42) is False

    def test_clear(self):
        registry = ListenerRegistry()
        registry.subscribe(lambda e: None)
        registry.subscribe(lambda e: None, stat="a")
        registry.clear()
        assert len(registry) == 0
