"""Reward resolution for completed actions."""
from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Callable, Iterable

from tick_idle.types import Reward, Rewards

if TYPE_CHECKING:
    from tick_idle.ledger import ResourceLedger
    from tick_idle.skills import SkillBook

logger = logging.getLogger(__name__)


def _bounds(entry: Reward) -> tuple[float, float]:
    # Misconfigured ranges never turn a reward into a debit.
    lo = max(0.0, entry.min)
    hi = max(lo, entry.max)
    return lo, hi


def average(entry: Reward) -> float:
    """Expected value of one roll of *entry*."""
    lo, hi = _bounds(entry)
    return (lo + hi) / 2


def roll(entry: Reward, rng: Callable[[], float]) -> float:
    """Uniform integer roll in ``[min, max]``: ``floor(rng() * (max - min + 1)) + min``."""
    lo, hi = _bounds(entry)
    if lo == hi:
        return lo
    value = math.floor(rng() * (hi - lo + 1)) + lo
    return min(max(value, lo), hi)


def _apply(
    entry: Reward,
    amount: float,
    times: int,
    ledger: ResourceLedger,
    skills: SkillBook | None,
    out: Rewards,
) -> None:
    if entry.kind == "resource":
        if not ledger.has(entry.target):
            logger.warning("reward references unknown resource %r", entry.target)
            return
        out.add("resources", entry.target, ledger.credit(entry.target, amount))
    elif entry.kind == "capacity":
        if not ledger.has(entry.target):
            logger.warning("reward references unknown resource %r", entry.target)
            return
        out.add("capacity", entry.target,
                ledger.change_max(entry.target, entry.max_change * times))
    elif entry.kind == "skill":
        if skills is None:
            logger.warning("skill reward %r with no skill book", entry.target)
            return
        out.add("skills", entry.target, skills.add_xp(entry.target, amount))
    elif entry.kind == "unlock":
        if ledger.unlock(entry.target):
            out.unlocked.append(entry.target)


def roll_rewards(
    entries: Iterable[Reward],
    ledger: ResourceLedger,
    skills: SkillBook | None,
    rng: Callable[[], float],
) -> Rewards:
    """Resolve one completion's rewards, rolling each ranged entry once."""
    out = Rewards()
    for entry in entries:
        amount = roll(entry, rng) if entry.kind in ("resource", "skill") else 0.0
        _apply(entry, amount, 1, ledger, skills, out)
    return out


def average_rewards(
    entries: Iterable[Reward],
    ledger: ResourceLedger,
    skills: SkillBook | None,
    completions: int,
) -> Rewards:
    """Resolve *completions* rewards at once using the average of each range.

    Consumes no randomness, so bulk replays are repeatable.
    """
    out = Rewards()
    if completions <= 0:
        return out
    for entry in entries:
        amount = average(entry) * completions
        _apply(entry, amount, completions, ledger, skills, out)
    return out
