"""Tests for SkillBook XP and level-ups."""
from __future__ import annotations

import logging

import pytest

from tick_idle import SignalBus, SkillBook, SkillDef, new_state
from tick_idle.signals import SKILL_LEVEL_UP


def _book(bus: SignalBus | None = None) -> SkillBook:
    skills = (
        SkillDef("begging", "Begging", next_level_experience=100, growth=1.5),
        SkillDef("magic", "Magic", unlocked=False),
    )
    return SkillBook(new_state((), (), skills), bus)


class TestAddXp:
    def test_below_threshold(self) -> None:
        book = _book()
        assert book.add_xp("begging", 40) == 40
        assert book.get("begging").experience == 40
        assert book.level("begging") == 0

    def test_multiple_level_ups(self) -> None:
        bus = SignalBus()
        book = _book(bus)
        book.add_xp("begging", 250)
        skill = book.get("begging")
        assert skill.level == 2
        assert skill.experience == 0
        assert skill.next_level_experience == 225
        assert [data["level"] for name, data in bus.pending() if name == SKILL_LEVEL_UP] == [1, 2]

    def test_locked_skill_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        book = _book()
        with caplog.at_level(logging.WARNING, logger="tick_idle.skills"):
            assert book.add_xp("magic", 10) == 0
        assert book.get("magic").experience == 0
        assert "locked skill 'magic'" in caplog.text

    def test_unknown_skill_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        book = _book()
        with caplog.at_level(logging.WARNING, logger="tick_idle.skills"):
            assert book.add_xp("juggling", 10) == 0
        assert book.level("juggling") == 0
        assert "unknown skill 'juggling'" in caplog.text

    def test_negative_raises(self) -> None:
        with pytest.raises(ValueError):
            _book().add_xp("begging", -1)

    def test_unlock(self) -> None:
        book = _book()
        assert book.unlock("magic") is True
        assert book.unlock("magic") is False
        assert book.add_xp("magic", 10) == 10
