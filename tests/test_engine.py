"""Tests for the ActionEngine state machine."""
from __future__ import annotations

import dataclasses
import logging

import pytest

from tick_idle import Content, Game, StartFailure
from tick_idle.signals import ACTION_COMPLETED, ACTION_STARTED, ACTION_STOPPED


def _resources(game: Game) -> dict[str, float]:
    return {rid: r.current for rid, r in game.state.resources.items()}


class TestStart:
    def test_start_pays_cost_once(self, game: Game) -> None:
        result = game.engine.start("beg")
        assert result.ok is True
        assert result.resumed is False
        assert game.engine.current_action_id == "beg"
        assert game.ledger.amount("stamina") == 9
        assert game.state.actions["beg"].last_start_time == 1_000
        assert game.engine.current().name == "Beg"
        assert game.engine.runtime("beg").paid is True

    def test_unknown_action(self, game: Game, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="tick_idle.engine"):
            result = game.engine.start("dance")
        assert result.ok is False
        assert result.reason == StartFailure.UNKNOWN
        assert "unknown action 'dance'" in caplog.text

    def test_locked_action(self, game: Game) -> None:
        assert game.engine.start("read").reason == StartFailure.LOCKED
        game.catalog.unlock("read")
        assert game.engine.start("read").ok is True

    def test_busy_does_not_stop_running_action(self, game: Game) -> None:
        game.engine.start("beg")
        result = game.engine.start("rest")
        assert result.reason == StartFailure.BUSY
        assert game.engine.current_action_id == "beg"

    def test_cant_afford_mutates_nothing(self, game: Game) -> None:
        game.ledger.debit("stamina", 10)
        game.bus.clear()
        before = _resources(game)
        result = game.engine.start("beg")
        assert result.ok is False
        assert result.reason == StartFailure.CANT_AFFORD
        assert game.state.current_action_id is None
        assert game.state.previous_action_id is None
        assert _resources(game) == before
        assert game.bus.pending() == []

    def test_started_signal(self, game: Game) -> None:
        game.engine.start("beg")
        assert (ACTION_STARTED, {"action_id": "beg", "resumed": False}) in game.bus.pending()


    def test_is_startable(self, game: Game) -> None:
        assert game.engine.is_startable("beg") is True
        assert game.engine.is_startable("study") is False
        assert game.engine.is_startable("read") is False
        assert game.engine.is_startable("dance") is False
        game.ledger.credit("gold", 2)
        game.engine.start("study")
        game.engine.stop()
        # Paid for, so resumable even when broke.
        assert game.ledger.amount("gold") == 0
        assert game.engine.is_startable("study") is True


class TestPause:
    def test_stop_preserves_progress_and_resume_is_free(self, game: Game) -> None:
        game.engine.start("beg")
        game.engine.tick(1.0)
        assert game.engine.stop() == "beg"
        assert game.state.actions["beg"].current_progress == 0.5
        assert game.state.previous_action_id == "beg"
        assert game.state.actions["beg"].last_start_time is None

        result = game.engine.start("beg")
        assert result.resumed is True
        assert game.state.actions["beg"].current_progress == 0.5
        assert game.ledger.amount("stamina") == 9

    def test_immediate_stop_does_not_charge_twice(self, game: Game) -> None:
        game.engine.start("beg")
        game.engine.stop()
        assert game.state.actions["beg"].current_progress == 0
        assert game.engine.start("beg").resumed is True
        assert game.ledger.amount("stamina") == 9

    def test_stop_when_idle(self, game: Game) -> None:
        assert game.engine.stop() is None

    def test_stopping_rest_is_not_remembered(self, game: Game) -> None:
        game.engine.start("rest")
        game.engine.stop()
        assert game.state.previous_action_id is None
        assert any(name == ACTION_STOPPED for name, _ in game.bus.pending())


class TestTick:
    def test_idle_tick_is_noop(self, game: Game) -> None:
        result = game.engine.tick(1.0)
        assert result.completed is False
        assert result.event is None

    def test_beg_scenario(self, game: Game) -> None:
        game.engine.start("beg")
        result = game.engine.tick(2.0)
        assert result.completed is True
        assert result.event.action_id == "beg"
        runtime = game.state.actions["beg"]
        assert runtime.completion_count == 1
        assert 0 <= game.ledger.amount("gold") <= 2
        assert game.ledger.amount("gold") == 1
        # Auto-repeat paid for the next cycle.
        assert game.engine.current_action_id == "beg"
        assert runtime.current_progress == 0
        assert game.ledger.amount("stamina") == 8

    def test_progress_accumulates(self, game: Game) -> None:
        game.engine.start("beg")
        assert game.engine.tick(0.5).completed is False
        assert game.engine.tick(0.5).completed is False
        assert game.state.actions["beg"].current_progress == 0.5
        assert game.state.actions["beg"].total_time_spent == 1.0

    def test_at_most_one_completion_per_tick(self, game: Game) -> None:
        game.engine.start("beg")
        game.engine.tick(10.0)
        runtime = game.state.actions["beg"]
        assert runtime.completion_count == 1
        assert runtime.current_progress == 0

    def test_one_shot_action_goes_idle(self, game: Game) -> None:
        game.ledger.credit("gold", 5)
        game.engine.start("buy_bag")
        assert game.ledger.amount("gold") == 0
        result = game.engine.tick(1.0)
        assert result.event.rewards.capacity == {"gold": 5}
        assert result.event.rewards.unlocked == ["scrolls"]
        assert game.engine.is_idle()
        assert game.ledger.get("gold").max == 15
        assert game.ledger.get("scrolls").unlocked is True

    def test_unaffordable_repeat_switches_to_rest(self, game: Game) -> None:
        game.ledger.debit("stamina", 9)
        game.engine.start("beg")
        assert game.ledger.amount("stamina") == 0
        game.engine.tick(2.0)
        assert game.engine.current_action_id == "rest"
        assert game.state.previous_action_id == "beg"
        assert game.state.actions["beg"].current_progress == 0

    def test_unaffordable_repeat_without_rest_goes_idle(self, content: Content) -> None:
        game = Game(dataclasses.replace(content, rest_action=None), rng=lambda: 0.5)
        game.ledger.debit("stamina", 9)
        game.engine.start("beg")
        game.engine.tick(2.0)
        assert game.engine.is_idle()
        assert game.state.previous_action_id is None


class TestComplete:
    def test_complete_counts_once_regardless_of_rewards(self, game: Game) -> None:
        game.engine.start("beg")
        game.engine.tick(1.0)
        event = game.engine.complete("beg")
        runtime = game.state.actions["beg"]
        assert runtime.completion_count == 1
        assert runtime.current_progress == 0
        assert event.timestamp == 1_000

    def test_zero_roll_still_completes(self, content: Content) -> None:
        game = Game(content, rng=lambda: 0.0)
        game.engine.start("beg")
        result = game.engine.tick(2.0)
        assert result.event.rewards.resources == {}
        assert game.state.actions["beg"].completion_count == 1

    def test_complete_logs_one_entry(self, game: Game) -> None:
        game.engine.start("beg")
        game.engine.tick(2.0)
        entry = game.state.log.last(ACTION_COMPLETED)
        assert entry.message == "You completed Beg. Received +1 Gold."
        assert entry.data["rewards"]["resources"] == {"gold": 1}

    def test_complete_unknown_warns_and_changes_nothing(
        self, game: Game, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="tick_idle.engine"):
            assert game.engine.complete("dance") is None
        assert "completion of unknown action 'dance'" in caplog.text
        assert "dance" not in game.state.actions
        assert len(game.state.log) == 0

    def test_skill_reward_reaches_skill_book(self, game: Game) -> None:
        game.ledger.credit("gold", 4)
        game.engine.start("study")
        game.engine.tick(4.0)
        assert game.skills.get("begging").experience == 4
        assert game.ledger.amount("gold") == 0
