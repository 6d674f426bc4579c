"""RestPolicy: when to force a rest, and when to go back to work."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tick_idle.signals import REST_SWITCH_ENGAGED, REST_SWITCH_RESOLVED

if TYPE_CHECKING:
    from tick_idle.catalog import ActionCatalog
    from tick_idle.ledger import ResourceLedger
    from tick_idle.signals import SignalBus
    from tick_idle.state import EngineState

logger = logging.getLogger(__name__)


class RestPolicy:
    """Decides rest switches; owns ``previous_action_id`` bookkeeping.

    The policy never starts actions itself. It returns the id the engine
    should switch to, or None to leave things as they are, and is told
    through ``resolve`` when a resume actually happened.
    """

    def __init__(
        self,
        state: EngineState,
        catalog: ActionCatalog,
        ledger: ResourceLedger,
        bus: SignalBus | None = None,
    ) -> None:
        self._state = state
        self._catalog = catalog
        self._ledger = ledger
        self._bus = bus

    @property
    def rest_action_id(self) -> str | None:
        return self._state.default_rest_action_id

    @property
    def previous_action_id(self) -> str | None:
        return self._state.previous_action_id

    def is_rest(self, action_id: str | None) -> bool:
        if action_id is None:
            return False
        defn = self._catalog.get(action_id)
        return defn is not None and defn.is_rest

    def is_rested(self) -> bool:
        """True when every unlocked stat resource is exactly at its cap."""
        return all(r.current == r.max for r in self._ledger.stats())

    def on_cant_afford(self, action_id: str) -> str | None:
        """Rest action to switch to when *action_id* cannot pay, if any.

        Records *action_id* as the action to resume once rested.
        """
        rest_id = self.rest_action_id
        if rest_id is None or self.is_rest(action_id):
            return None
        if not self._catalog.has(rest_id) or not self._catalog.is_unlocked(rest_id):
            logger.warning("default rest action %r is unavailable", rest_id)
            return None
        self._state.previous_action_id = action_id
        logger.debug("resting instead of %s", action_id)
        if self._bus is not None:
            self._bus.publish(REST_SWITCH_ENGAGED, action_id=action_id, rest_action_id=rest_id)
        return rest_id

    def after_completion(self, action_id: str) -> str | None:
        """Action to resume after *action_id* completes, if the player is rested.

        The action stays recorded until ``resolve`` is called, so a resume
        that cannot start is tried again at the next rest completion.
        """
        if not self.is_rest(action_id):
            return None
        previous = self._state.previous_action_id
        if previous is None or not self.is_rested():
            return None
        return previous

    def resolve(self, rest_action_id: str) -> None:
        """The recorded action was resumed after *rest_action_id*; clear it."""
        previous = self._state.previous_action_id
        if previous is None:
            return
        self._state.previous_action_id = None
        logger.debug("rested, resumed %s", previous)
        if self._bus is not None:
            self._bus.publish(
                REST_SWITCH_RESOLVED, action_id=previous, rest_action_id=rest_action_id
            )

    def forget(self) -> None:
        """Drop the recorded action after a manual switch."""
        self._state.previous_action_id = None
