"""Tests for definition types and their validation."""
from __future__ import annotations

import pytest

from tick_idle import ActionDef, Cost, EngineConfig, ResourceDef, Reward, Rewards, SkillDef


class TestResourceDef:
    def test_defaults(self) -> None:
        defn = ResourceDef("gold", max=10)
        assert defn.current == 0.0
        assert defn.unlocked is True
        assert defn.type == "currency"
        assert defn.generates is None

    def test_empty_id_raises(self) -> None:
        with pytest.raises(ValueError, match="non-empty"):
            ResourceDef("", max=1)

    def test_negative_max_raises(self) -> None:
        with pytest.raises(ValueError, match="max must be >= 0"):
            ResourceDef("gold", max=-1)

    def test_current_above_max_raises(self) -> None:
        with pytest.raises(ValueError, match="current must be within"):
            ResourceDef("gold", current=11, max=10)


class TestActionDef:
    def test_zero_duration_raises(self) -> None:
        with pytest.raises(ValueError, match="duration must be > 0"):
            ActionDef("beg", duration=0)

    def test_costs_and_rewards_become_tuples(self) -> None:
        defn = ActionDef(
            "beg", duration=2,
            costs=[Cost("stamina", 1)],
            rewards=[Reward("gold", min=0, max=2)],
        )
        assert defn.costs == (Cost("stamina", 1),)
        assert isinstance(defn.rewards, tuple)
        assert defn.auto_repeat is True
        assert defn.is_rest is False


class TestCostAndReward:
    def test_negative_cost_raises(self) -> None:
        with pytest.raises(ValueError, match="amount must be >= 0"):
            Cost("stamina", -1)

    def test_reward_max_defaults_to_min(self) -> None:
        assert Reward("gold", min=3).max == 3

    def test_unknown_reward_kind_raises(self) -> None:
        with pytest.raises(ValueError, match="unknown reward kind"):
            Reward("gold", kind="teleport")


class TestSkillDef:
    def test_threshold_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="next_level_experience"):
            SkillDef("begging", next_level_experience=0)


class TestRewards:
    def test_add_accumulates_and_skips_zero(self) -> None:
        rewards = Rewards()
        rewards.add("resources", "gold", 1)
        rewards.add("resources", "gold", 2)
        rewards.add("resources", "stamina", 0)
        assert rewards.resources == {"gold": 3}

    def test_to_dict_copies(self) -> None:
        rewards = Rewards(resources={"gold": 1.0}, unlocked=["scrolls"])
        data = rewards.to_dict()
        data["resources"]["gold"] = 99
        data["unlocked"].append("mana")
        assert rewards.resources == {"gold": 1.0}
        assert rewards.unlocked == ["scrolls"]


class TestEngineConfig:
    def test_defaults(self) -> None:
        config = EngineConfig()
        assert config.tps == 10
        assert config.max_offline_seconds == 8 * 60 * 60
        assert config.log_max_entries == 100
        assert config.default_rest_action is None

    @pytest.mark.parametrize("field,value", [
        ("tps", 0),
        ("max_offline_seconds", -1),
        ("log_max_entries", -5),
        ("autosave_interval", -1.0),
    ])
    def test_invalid_values_raise(self, field: str, value: float) -> None:
        with pytest.raises(ValueError):
            EngineConfig(**{field: value})
