"""SkillBook: the skill-progression collaborator actions grant XP to."""
from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from tick_idle.signals import SKILL_LEVEL_UP

if TYPE_CHECKING:
    from tick_idle.signals import SignalBus
    from tick_idle.state import EngineState, Skill

logger = logging.getLogger(__name__)


class SkillBook:
    """XP sink and level-up rules. The action engine never reads levels."""

    def __init__(self, state: EngineState, bus: SignalBus | None = None) -> None:
        self._state = state
        self._bus = bus

    def get(self, skill_id: str) -> Skill | None:
        return self._state.skills.get(skill_id)

    def level(self, skill_id: str) -> int:
        skill = self._state.skills.get(skill_id)
        return skill.level if skill is not None else 0

    def add_xp(self, skill_id: str, amount: float) -> float:
        """Grant XP, levelling up as thresholds are crossed. Returns XP applied."""
        if amount < 0:
            raise ValueError(f"amount must be >= 0, got {amount}")
        skill = self._state.skills.get(skill_id)
        if skill is None:
            logger.warning("xp for unknown skill %r", skill_id)
            return 0.0
        if not skill.unlocked:
            logger.warning("xp for locked skill %r ignored", skill_id)
            return 0.0
        if amount == 0:
            return 0.0
        skill.experience += amount
        while skill.experience >= skill.next_level_experience:
            skill.experience -= skill.next_level_experience
            skill.level += 1
            skill.next_level_experience = math.ceil(
                skill.next_level_experience * max(1.0, skill.growth)
            )
            logger.debug("skill %s reached level %d", skill_id, skill.level)
            if self._bus is not None:
                self._bus.publish(SKILL_LEVEL_UP, skill_id=skill_id, level=skill.level)
        return amount

    def unlock(self, skill_id: str) -> bool:
        skill = self._state.skills.get(skill_id)
        if skill is None or skill.unlocked:
            return False
        skill.unlocked = True
        return True
