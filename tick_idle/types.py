"""Core data types for actions, resources, and skills."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

STAT = "stat"
CURRENCY = "currency"

REWARD_KINDS = ("resource", "capacity", "skill", "unlock")


@dataclass(frozen=True)
class ResourceDef:
    """Immutable new-game definition of a resource.

    Attributes:
        id: Unique identifier.
        name: Display name.
        current: Starting amount.
        max: Starting cap.
        unlocked: Whether gameplay may touch it from the start.
        type: ``"stat"`` for pools restored by resting, ``"currency"`` otherwise.
        generation_rate: Passive rate, per unit held per second.
        generates: Resource id credited by passive generation.
    """

    id: str
    name: str = ""
    current: float = 0.0
    max: float = 0.0
    unlocked: bool = True
    type: str = CURRENCY
    generation_rate: float = 0.0
    generates: str | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("ResourceDef id must be non-empty")
        if self.max < 0:
            raise ValueError(f"max must be >= 0, got {self.max}")
        if not 0 <= self.current <= self.max:
            raise ValueError(
                f"current must be within [0, {self.max}], got {self.current}"
            )


@dataclass(frozen=True)
class Cost:
    """Amount of a resource paid once per action cycle."""

    resource: str
    amount: float

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError(f"amount must be >= 0, got {self.amount}")


@dataclass(frozen=True)
class Reward:
    """One completion reward entry.

    Attributes:
        target: Resource or skill id the reward applies to.
        kind: ``"resource"`` credits a rolled amount, ``"capacity"`` raises the
            resource cap by ``max_change``, ``"skill"`` grants rolled XP and
            ``"unlock"`` unlocks the resource.
        min: Lower bound of the roll (inclusive).
        max: Upper bound of the roll (inclusive). Defaults to ``min``.
        max_change: Cap delta for capacity rewards.
    """

    target: str
    kind: str = "resource"
    min: float = 0
    max: float | None = None
    max_change: float = 0.0

    def __post_init__(self) -> None:
        if self.kind not in REWARD_KINDS:
            raise ValueError(f"unknown reward kind {self.kind!r}")
        if self.max is None:
            object.__setattr__(self, "max", self.min)


@dataclass(frozen=True)
class ActionDef:
    """Immutable definition of a player-selectable action.

    Attributes:
        id: Unique identifier.
        name: Display name.
        duration: Seconds for one cycle. Must be positive.
        costs: Paid in full when progress leaves 0.
        rewards: Resolved on every completion.
        is_rest: Whether this action restores stats.
        unlocked: New-game unlock state.
        auto_repeat: Start the next cycle automatically after completing.
    """

    id: str
    duration: float
    name: str = ""
    costs: tuple[Cost, ...] = ()
    rewards: tuple[Reward, ...] = ()
    is_rest: bool = False
    unlocked: bool = True
    auto_repeat: bool = True

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("ActionDef id must be non-empty")
        if self.duration <= 0:
            raise ValueError(f"duration must be > 0, got {self.duration}")
        object.__setattr__(self, "costs", tuple(self.costs))
        object.__setattr__(self, "rewards", tuple(self.rewards))


@dataclass(frozen=True)
class SkillDef:
    """Definition of a skill that actions can grant XP to."""

    id: str
    name: str = ""
    next_level_experience: float = 100.0
    growth: float = 1.5
    unlocked: bool = True

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("SkillDef id must be non-empty")
        if self.next_level_experience <= 0:
            raise ValueError(
                f"next_level_experience must be > 0, got {self.next_level_experience}"
            )


class StartFailure:
    """Reasons a start request can be refused."""

    UNKNOWN = "unknown"
    LOCKED = "locked"
    BUSY = "busy"
    CANT_AFFORD = "cant-afford"


@dataclass(frozen=True)
class StartResult:
    ok: bool
    action_id: str
    resumed: bool = False
    reason: str | None = None


@dataclass(frozen=True)
class Debit:
    ok: bool
    applied: float = 0.0


@dataclass
class Rewards:
    """Deltas actually applied by one completion (or one bulk replay)."""

    resources: dict[str, float] = field(default_factory=dict)
    capacity: dict[str, float] = field(default_factory=dict)
    skills: dict[str, float] = field(default_factory=dict)
    unlocked: list[str] = field(default_factory=list)

    def add(self, bucket: str, key: str, amount: float) -> None:
        if not amount:
            return
        totals: dict[str, float] = getattr(self, bucket)
        totals[key] = totals.get(key, 0) + amount

    def merge(self, other: Rewards) -> None:
        for bucket in ("resources", "capacity", "skills"):
            for key, amount in getattr(other, bucket).items():
                self.add(bucket, key, amount)
        self.unlocked.extend(rid for rid in other.unlocked if rid not in self.unlocked)

    def to_dict(self) -> dict[str, Any]:
        return {
            "resources": dict(self.resources),
            "capacity": dict(self.capacity),
            "skills": dict(self.skills),
            "unlocked": list(self.unlocked),
        }


@dataclass(frozen=True)
class CompletionEvent:
    action_id: str
    rewards: Rewards
    timestamp: int


@dataclass(frozen=True)
class TickResult:
    completed: bool
    event: CompletionEvent | None = None
