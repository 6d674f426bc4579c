"""Shared fixtures: a small beggar-themed content table and a fake clock."""
from __future__ import annotations

from typing import Any

import pytest

from tick_idle import Content, Game, load_content


def beggar_table() -> dict[str, Any]:
    return {
        "rest_action": "rest",
        "resources": [
            {"id": "gold", "name": "Gold", "current": 0, "max": 10},
            {"id": "stamina", "name": "Stamina", "current": 10, "max": 10, "type": "stat"},
            {"id": "health", "name": "Health", "current": 10, "max": 10, "type": "stat"},
            {"id": "mana", "name": "Mana", "current": 0, "max": 10, "type": "stat",
             "unlocked": False},
            {"id": "scrolls", "name": "Scrolls", "current": 0, "max": 5, "unlocked": False},
        ],
        "skills": [
            {"id": "begging", "name": "Begging", "next_level_experience": 10},
        ],
        "actions": [
            {"id": "beg", "name": "Beg", "duration": 2,
             "cost": [{"resource": "stamina", "amount": 1}],
             "reward": [{"resource": "gold", "min": 0, "max": 2}]},
            {"id": "rest", "name": "Rest", "duration": 10, "is_rest": True,
             "reward": [{"resource": "stamina", "min": 5},
                        {"resource": "health", "min": 5}]},
            {"id": "study", "name": "Study", "duration": 4,
             "cost": [{"resource": "gold", "amount": 2}],
             "reward": [{"skill": "begging", "min": 4}]},
            {"id": "buy_bag", "name": "Buy a bag", "duration": 1, "auto_repeat": False,
             "cost": [{"resource": "gold", "amount": 5}],
             "reward": [{"resource": "gold", "max_change": 5},
                        {"unlock": "scrolls"}]},
            {"id": "read", "name": "Read", "duration": 3, "unlocked": False},
        ],
    }


class FakeClock:
    """Millisecond wall clock that only moves when told to."""

    def __init__(self, ms: int = 1_000) -> None:
        self.ms = ms

    def __call__(self) -> int:
        return self.ms

    def advance(self, seconds: float) -> None:
        self.ms += int(seconds * 1000)


@pytest.fixture
def table() -> dict[str, Any]:
    return beggar_table()


@pytest.fixture
def content(table: dict[str, Any]) -> Content:
    return load_content(table)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def game(content: Content, clock: FakeClock) -> Game:
    # rng 0.5 rolls the middle of every range: beg pays exactly 1 gold.
    return Game(content, rng=lambda: 0.5, now=clock)
