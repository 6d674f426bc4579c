"""EngineState aggregate, snapshot serialization, and repair-on-load."""
from __future__ import annotations

import copy
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable

from tick_idle.log import ActionLog
from tick_idle.types import CURRENCY, STAT, ActionDef, ResourceDef, SkillDef

logger = logging.getLogger(__name__)


@dataclass
class Resource:
    """Mutable runtime resource. Mutate only through ResourceLedger."""

    id: str
    name: str
    current: float
    max: float
    unlocked: bool = True
    type: str = CURRENCY
    generation_rate: float = 0.0
    generates: str | None = None

    @property
    def is_stat(self) -> bool:
        return self.type == STAT

    @property
    def is_full(self) -> bool:
        return self.current >= self.max

    @property
    def is_empty(self) -> bool:
        return self.current <= 0


@dataclass
class ActionState:
    """Per-action runtime data, owned by ActionEngine."""

    id: str
    current_progress: float = 0.0
    completion_count: int = 0
    last_start_time: int | None = None
    total_time_spent: float = 0.0
    unlocked: bool = True
    paid: bool = False


@dataclass
class Skill:
    id: str
    name: str
    level: int = 0
    experience: float = 0.0
    next_level_experience: float = 100.0
    growth: float = 1.5
    unlocked: bool = True


@dataclass
class EngineState:
    current_action_id: str | None = None
    previous_action_id: str | None = None
    default_rest_action_id: str | None = None
    resources: dict[str, Resource] = field(default_factory=dict)
    actions: dict[str, ActionState] = field(default_factory=dict)
    skills: dict[str, Skill] = field(default_factory=dict)
    log: ActionLog = field(default_factory=ActionLog)


def _new_resource(defn: ResourceDef) -> Resource:
    return Resource(
        id=defn.id,
        name=defn.name or defn.id,
        current=float(defn.current),
        max=float(defn.max),
        unlocked=defn.unlocked,
        type=defn.type,
        generation_rate=max(0.0, float(defn.generation_rate)),
        generates=defn.generates,
    )


def _new_skill(defn: SkillDef) -> Skill:
    return Skill(
        id=defn.id,
        name=defn.name or defn.id,
        next_level_experience=float(defn.next_level_experience),
        growth=defn.growth,
        unlocked=defn.unlocked,
    )


def new_state(
    resources: Iterable[ResourceDef],
    actions: Iterable[ActionDef],
    skills: Iterable[SkillDef] = (),
    default_rest_action: str | None = None,
    log_max_entries: int = 0,
) -> EngineState:
    """Build the new-game state from content definitions."""
    return EngineState(
        default_rest_action_id=default_rest_action,
        resources={d.id: _new_resource(d) for d in resources},
        actions={d.id: ActionState(id=d.id, unlocked=d.unlocked) for d in actions},
        skills={d.id: _new_skill(d) for d in skills},
        log=ActionLog(max_entries=log_max_entries),
    )


def dump_state(state: EngineState, timestamp: int, version: int = 1) -> dict[str, Any]:
    """Serialize runtime state to a JSON-compatible snapshot."""
    return {
        "version": version,
        "timestamp": timestamp,
        "current_action_id": state.current_action_id,
        "previous_action_id": state.previous_action_id,
        "resources": {
            r.id: {
                "current": r.current,
                "max": r.max,
                "unlocked": r.unlocked,
                "generation_rate": r.generation_rate,
            }
            for r in state.resources.values()
        },
        "actions": {
            a.id: {
                "current_progress": a.current_progress,
                "completion_count": a.completion_count,
                "last_start_time": a.last_start_time,
                "total_time_spent": a.total_time_spent,
                "unlocked": a.unlocked,
                "paid": a.paid,
            }
            for a in state.actions.values()
        },
        "skills": {
            s.id: {
                "level": s.level,
                "experience": s.experience,
                "next_level_experience": s.next_level_experience,
                "unlocked": s.unlocked,
            }
            for s in state.skills.values()
        },
        "log": copy.deepcopy(state.log.snapshot()),
    }


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


class _Merger:
    """Copies surviving scalar fields onto new-game objects, noting each repair."""

    def __init__(self) -> None:
        self.repairs: list[str] = []

    def note(self, where: str) -> None:
        self.repairs.append(where)

    def section(self, data: dict[str, Any], key: str) -> dict[str, Any]:
        value = data.get(key)
        if isinstance(value, dict):
            return value
        self.note(key)
        return {}

    def number(self, target: Any, attr: str, saved: dict[str, Any], key: str,
               where: str, minimum: float | None = 0.0, integer: bool = False) -> None:
        value = saved.get(key)
        if not _is_number(value):
            self.note(f"{where}.{key}")
            return
        if minimum is not None and value < minimum:
            self.note(f"{where}.{key}")
            value = minimum
        setattr(target, attr, int(value) if integer else float(value))

    def flag(self, target: Any, attr: str, saved: dict[str, Any], key: str,
             where: str) -> None:
        value = saved.get(key)
        if isinstance(value, bool):
            setattr(target, attr, value)
        else:
            self.note(f"{where}.{key}")

    def action_id(self, data: dict[str, Any], key: str,
                  known: dict[str, ActionState]) -> str | None:
        value = data.get(key)
        if value is None:
            if key not in data:
                self.note(key)
            return None
        if isinstance(value, str) and value in known:
            return value
        self.note(key)
        return None


def load_state(
    data: Any,
    resources: Iterable[ResourceDef],
    actions: Iterable[ActionDef],
    skills: Iterable[SkillDef] = (),
    default_rest_action: str | None = None,
    log_max_entries: int = 0,
    timestamp: int | None = None,
) -> EngineState:
    """Merge a snapshot onto new-game values, repairing what is missing.

    Never raises for bad snapshot contents. Missing or invalid fields keep
    their new-game values, surviving scalars are clamped into range, unknown
    ids are dropped, and a single ``repair`` log entry records that repair
    happened.
    """
    skills = list(skills)
    state = new_state(resources, actions, skills, default_rest_action, log_max_entries)
    merger = _Merger()
    if not isinstance(data, dict):
        merger.note("snapshot")
        data = {}

    saved_log = data.get("log")
    if isinstance(saved_log, list):
        if state.log.restore(copy.deepcopy(saved_log)):
            merger.note("log")
    else:
        merger.note("log")

    saved_resources = merger.section(data, "resources")
    for rid, res in state.resources.items():
        saved = saved_resources.get(rid)
        where = f"resources.{rid}"
        if not isinstance(saved, dict):
            merger.note(where)
            continue
        merger.number(res, "max", saved, "max", where)
        merger.number(res, "current", saved, "current", where)
        merger.number(res, "generation_rate", saved, "generation_rate", where)
        merger.flag(res, "unlocked", saved, "unlocked", where)
        if res.current > res.max:
            merger.note(f"{where}.current")
            res.current = res.max

    saved_actions = merger.section(data, "actions")
    for aid, act in state.actions.items():
        saved = saved_actions.get(aid)
        where = f"actions.{aid}"
        if not isinstance(saved, dict):
            merger.note(where)
            continue
        merger.number(act, "current_progress", saved, "current_progress", where)
        merger.number(act, "completion_count", saved, "completion_count", where,
                      integer=True)
        merger.number(act, "total_time_spent", saved, "total_time_spent", where)
        merger.flag(act, "unlocked", saved, "unlocked", where)
        merger.flag(act, "paid", saved, "paid", where)
        started = saved.get("last_start_time")
        if started is None or _is_number(started):
            act.last_start_time = None if started is None else int(started)
        else:
            merger.note(f"{where}.last_start_time")
        if act.current_progress > 1.0:
            merger.note(f"{where}.current_progress")
            act.current_progress = 1.0

    if state.skills:
        saved_skills = merger.section(data, "skills")
        for sid, skill in state.skills.items():
            saved = saved_skills.get(sid)
            where = f"skills.{sid}"
            if not isinstance(saved, dict):
                merger.note(where)
                continue
            merger.number(skill, "level", saved, "level", where, integer=True)
            merger.number(skill, "experience", saved, "experience", where)
            merger.number(skill, "next_level_experience", saved,
                          "next_level_experience", where, minimum=None)
            merger.flag(skill, "unlocked", saved, "unlocked", where)
            if skill.next_level_experience <= 0:
                merger.note(f"{where}.next_level_experience")
                skill.next_level_experience = next(
                    (float(d.next_level_experience) for d in skills if d.id == sid),
                    100.0,
                )

    state.current_action_id = merger.action_id(data, "current_action_id", state.actions)
    state.previous_action_id = merger.action_id(data, "previous_action_id", state.actions)

    if merger.repairs:
        if timestamp is None:
            saved_at = data.get("timestamp")
            timestamp = int(saved_at) if _is_number(saved_at) else 0
        logger.warning("repaired snapshot fields: %s", ", ".join(merger.repairs))
        state.log.record_repair(timestamp, merger.repairs)
    return state
