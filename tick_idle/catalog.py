"""ActionCatalog: read-only view over action definitions."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Iterable

from tick_idle.types import ActionDef

if TYPE_CHECKING:
    from tick_idle.state import EngineState

logger = logging.getLogger(__name__)


class ActionCatalog:
    """Definitions keyed by id, in definition order.

    Definitions never change during a session. Unlock flags live in the
    bound EngineState so they are saved with it; ``unlock`` is the hook for
    progression systems outside the engine.
    """

    def __init__(self, definitions: Iterable[ActionDef], state: EngineState) -> None:
        self._definitions: dict[str, ActionDef] = {}
        for defn in definitions:
            if defn.id in self._definitions:
                raise ValueError(f"duplicate action id {defn.id!r}")
            self._definitions[defn.id] = defn
        self._state = state

    def get(self, action_id: str) -> ActionDef | None:
        return self._definitions.get(action_id)

    def has(self, action_id: str) -> bool:
        return action_id in self._definitions

    def is_unlocked(self, action_id: str) -> bool:
        runtime = self._state.actions.get(action_id)
        if runtime is not None:
            return runtime.unlocked
        defn = self._definitions.get(action_id)
        return defn is not None and defn.unlocked

    def list(self, predicate: Callable[[ActionDef], bool] | None = None) -> list[ActionDef]:
        if predicate is None:
            return list(self._definitions.values())
        return [d for d in self._definitions.values() if predicate(d)]

    def unlocked(self) -> list[ActionDef]:
        return self.list(lambda d: self.is_unlocked(d.id))

    def rest_actions(self) -> list[ActionDef]:
        return self.list(lambda d: d.is_rest)

    def unlock(self, action_id: str) -> bool:
        """Unlock an action. Returns True only if it was locked before."""
        runtime = self._state.actions.get(action_id)
        if runtime is None:
            logger.warning("unlock of unknown action %r", action_id)
            return False
        if runtime.unlocked:
            return False
        runtime.unlocked = True
        return True

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, action_id: object) -> bool:
        return action_id in self._definitions
