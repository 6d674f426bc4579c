"""Tests for ActionCatalog lookups and unlock flags."""
from __future__ import annotations

import logging

import pytest

from tick_idle import ActionCatalog, ActionDef, new_state


def _catalog() -> ActionCatalog:
    defs = (
        ActionDef("beg", duration=2),
        ActionDef("rest", duration=10, is_rest=True),
        ActionDef("read", duration=3, unlocked=False),
    )
    return ActionCatalog(defs, new_state((), defs))


class TestLookup:
    def test_get_and_has(self) -> None:
        catalog = _catalog()
        assert catalog.get("beg").duration == 2
        assert catalog.get("dance") is None
        assert catalog.has("rest")
        assert "read" in catalog
        assert "dance" not in catalog
        assert len(catalog) == 3

    def test_list_in_definition_order(self) -> None:
        assert [d.id for d in _catalog().list()] == ["beg", "rest", "read"]

    def test_list_with_predicate(self) -> None:
        catalog = _catalog()
        assert [d.id for d in catalog.list(lambda d: d.duration > 2)] == ["rest", "read"]
        assert [d.id for d in catalog.rest_actions()] == ["rest"]

    def test_duplicate_ids_raise(self) -> None:
        defs = (ActionDef("beg", duration=2), ActionDef("beg", duration=3))
        with pytest.raises(ValueError, match="duplicate action id"):
            ActionCatalog(defs, new_state((), ()))


class TestUnlock:
    def test_locked_until_unlocked(self) -> None:
        catalog = _catalog()
        assert catalog.is_unlocked("read") is False
        assert [d.id for d in catalog.unlocked()] == ["beg", "rest"]
        assert catalog.unlock("read") is True
        assert catalog.is_unlocked("read") is True
        assert catalog.unlock("read") is False

    def test_unlock_flag_lives_in_state(self) -> None:
        defs = (ActionDef("read", duration=3, unlocked=False),)
        state = new_state((), defs)
        ActionCatalog(defs, state).unlock("read")
        assert state.actions["read"].unlocked is True
        # A fresh view over the same state sees the flag.
        assert ActionCatalog(defs, state).is_unlocked("read") is True

    def test_unlock_unknown_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="tick_idle.catalog"):
            assert _catalog().unlock("dance") is False
        assert "unknown action 'dance'" in caplog.text

    def test_unknown_is_not_unlocked(self) -> None:
        assert _catalog().is_unlocked("dance") is False
