"""Declarative content tables: plain dicts (or a JSON file) to definitions.

A content table looks like::

    {
        "rest_action": "rest",
        "resources": [{"id": "gold", "max": 10}, ...],
        "skills": [{"id": "begging"}],
        "actions": [
            {"id": "beg", "duration": 2,
             "cost": [{"resource": "stamina", "amount": 1}],
             "reward": [{"resource": "gold", "min": 0, "max": 2},
                        {"skill": "begging", "min": 1},
                        {"resource": "stamina", "max_change": 1},
                        {"unlock": "scrolls"}]},
        ],
    }
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from tick_idle.types import CURRENCY, ActionDef, Cost, ResourceDef, Reward, SkillDef


@dataclass(frozen=True)
class Content:
    resources: tuple[ResourceDef, ...] = ()
    actions: tuple[ActionDef, ...] = ()
    skills: tuple[SkillDef, ...] = ()
    rest_action: str | None = None


def resource_from_dict(data: Mapping[str, Any]) -> ResourceDef:
    return ResourceDef(
        id=data["id"],
        name=data.get("name", ""),
        current=data.get("current", 0.0),
        max=data.get("max", 0.0),
        unlocked=bool(data.get("unlocked", True)),
        type=data.get("type", CURRENCY),
        generation_rate=data.get("generation_rate", 0.0),
        generates=data.get("generates"),
    )


def cost_from_dict(data: Mapping[str, Any]) -> Cost:
    return Cost(resource=data["resource"], amount=data.get("amount", 0))


def reward_from_dict(data: Mapping[str, Any]) -> Reward:
    """Build a reward; the key naming the target decides its kind."""
    if "unlock" in data:
        return Reward(target=data["unlock"], kind="unlock")
    if "skill" in data:
        return Reward(target=data["skill"], kind="skill",
                      min=data.get("min", 0), max=data.get("max"))
    if "max_change" in data:
        return Reward(target=data["resource"], kind="capacity",
                      max_change=data["max_change"])
    if "resource" in data:
        return Reward(target=data["resource"], kind="resource",
                      min=data.get("min", 0), max=data.get("max"))
    raise ValueError(f"reward entry names no target: {dict(data)!r}")


def action_from_dict(data: Mapping[str, Any]) -> ActionDef:
    return ActionDef(
        id=data["id"],
        name=data.get("name", ""),
        duration=data["duration"],
        costs=tuple(cost_from_dict(c) for c in data.get("cost", ())),
        rewards=tuple(reward_from_dict(r) for r in data.get("reward", ())),
        is_rest=bool(data.get("is_rest", False)),
        unlocked=bool(data.get("unlocked", True)),
        auto_repeat=bool(data.get("auto_repeat", True)),
    )


def skill_from_dict(data: Mapping[str, Any]) -> SkillDef:
    return SkillDef(
        id=data["id"],
        name=data.get("name", ""),
        next_level_experience=data.get("next_level_experience", 100.0),
        growth=data.get("growth", 1.5),
        unlocked=bool(data.get("unlocked", True)),
    )


def load_content(source: Mapping[str, Any] | str | Path) -> Content:
    """Parse a content table, or the JSON file at *source*.

    Raises ValueError (or KeyError for a missing id/duration) on malformed
    tables; content errors surface at load time, never mid-game.
    """
    if isinstance(source, (str, Path)):
        data = json.loads(Path(source).read_text(encoding="utf-8"))
    else:
        data = source
    resources = tuple(resource_from_dict(r) for r in data.get("resources", ()))
    actions = tuple(action_from_dict(a) for a in data.get("actions", ()))
    skills = tuple(skill_from_dict(s) for s in data.get("skills", ()))
    rest_action = data.get("rest_action")
    if rest_action is not None and rest_action not in {a.id for a in actions}:
        raise ValueError(f"rest_action {rest_action!r} is not a defined action")
    return Content(resources=resources, actions=actions, skills=skills,
                   rest_action=rest_action)
