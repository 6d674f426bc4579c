"""ActionEngine: the single-slot action progress state machine."""
from __future__ import annotations

import logging
import random
import time
from typing import TYPE_CHECKING, Callable

from tick_idle.rewards import roll_rewards
from tick_idle.signals import ACTION_COMPLETED, ACTION_STARTED, ACTION_STOPPED
from tick_idle.state import ActionState
from tick_idle.types import (
    ActionDef,
    CompletionEvent,
    StartFailure,
    StartResult,
    TickResult,
)

if TYPE_CHECKING:
    from tick_idle.catalog import ActionCatalog
    from tick_idle.ledger import ResourceLedger
    from tick_idle.rest import RestPolicy
    from tick_idle.signals import SignalBus
    from tick_idle.skills import SkillBook
    from tick_idle.state import EngineState

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class ActionEngine:
    """Runs at most one action at a time.

    Idle -> Running -> (Completing) -> Running or Idle. Costs are paid once
    per cycle, when progress leaves 0; stopping pauses without refunding, and
    a paused action resumes from the same progress without paying again.

    Calls must not be re-entered from signal handlers; the bus is only
    flushed by the caller after an operation returns.
    """

    def __init__(
        self,
        state: EngineState,
        catalog: ActionCatalog,
        ledger: ResourceLedger,
        rest: RestPolicy | None = None,
        skills: SkillBook | None = None,
        bus: SignalBus | None = None,
        rng: Callable[[], float] | None = None,
        now: Callable[[], int] | None = None,
    ) -> None:
        self._state = state
        self._catalog = catalog
        self._ledger = ledger
        self._rest = rest
        self._skills = skills
        self._bus = bus
        self._rng = rng if rng is not None else random.random
        self._now = now if now is not None else _now_ms

    # --- Queries ---

    @property
    def current_action_id(self) -> str | None:
        return self._state.current_action_id

    def current(self) -> ActionDef | None:
        action_id = self._state.current_action_id
        return self._catalog.get(action_id) if action_id is not None else None

    def runtime(self, action_id: str) -> ActionState | None:
        return self._state.actions.get(action_id)

    def is_idle(self) -> bool:
        return self._state.current_action_id is None

    def can_afford(self, action_id: str) -> bool:
        defn = self._catalog.get(action_id)
        if defn is None:
            return False
        return self._ledger.can_afford(defn.costs)

    def is_startable(self, action_id: str) -> bool:
        """True when *action_id* is known, unlocked, and resumable or affordable."""
        if not self._catalog.has(action_id) or not self._catalog.is_unlocked(action_id):
            return False
        return self._resumable(action_id) or self.can_afford(action_id)

    # --- Commands ---

    def start(self, action_id: str) -> StartResult:
        """Start or resume *action_id*. Refuses while another action runs."""
        refused = self._check(action_id)
        if refused is not None:
            return refused
        if self._state.current_action_id is not None:
            return StartResult(ok=False, action_id=action_id, reason=StartFailure.BUSY)
        return self._begin(self._catalog.get(action_id))

    def switch(self, action_id: str) -> StartResult:
        """Policy-driven start: halts the running action first.

        The halted action is not recorded as previous. Nothing changes when
        the target is refused.
        """
        refused = self._check(action_id)
        if refused is not None:
            return refused
        if not self.is_startable(action_id):
            return StartResult(
                ok=False, action_id=action_id, reason=StartFailure.CANT_AFFORD
            )
        if self._state.current_action_id is not None:
            self._halt()
        return self._begin(self._catalog.get(action_id))

    def stop(self) -> str | None:
        """Pause the running action, keeping its progress. Returns its id."""
        action_id = self._state.current_action_id
        if action_id is None:
            return None
        self._halt()
        # A stopped rest is never something to resume into.
        if self._rest is None or not self._rest.is_rest(action_id):
            self._state.previous_action_id = action_id
        logger.debug("stopped %s", action_id)
        self._publish(ACTION_STOPPED, action_id=action_id)
        return action_id

    def tick(self, dt: float) -> TickResult:
        """Advance the running action by *dt* seconds.

        At most one completion happens per call; progress past 1.0 is
        discarded. Large gaps belong to OfflineCatchup, not to a big *dt*.
        """
        action_id = self._state.current_action_id
        if action_id is None or dt <= 0:
            return TickResult(completed=False)
        defn = self._catalog.get(action_id)
        if defn is None:
            logger.warning("running action %r is not defined; going idle", action_id)
            self._state.current_action_id = None
            return TickResult(completed=False)

        runtime = self._runtime(action_id)
        runtime.current_progress += dt / defn.duration
        runtime.total_time_spent += dt
        if runtime.current_progress < 1.0:
            return TickResult(completed=False)

        event = self.complete(action_id)
        if self._state.current_action_id != action_id:
            return TickResult(completed=True, event=event)
        if not defn.auto_repeat:
            self._halt()
            return TickResult(completed=True, event=event)
        if not self._pay_cycle(defn, runtime):
            rest_id = self._rest.on_cant_afford(action_id) if self._rest else None
            if rest_id is None or not self.switch(rest_id).ok:
                if rest_id is not None:
                    self._rest.forget()
                logger.debug("%s cannot repeat; going idle", action_id)
                self._halt()
        return TickResult(completed=True, event=event)

    def complete(self, action_id: str) -> CompletionEvent | None:
        """Resolve one completion of *action_id*.

        Rolls rewards, bumps ``completion_count`` by exactly one, resets
        progress and consults the rest policy, which may switch the running
        action back to the one interrupted by a forced rest. Returns None,
        changing nothing, for an undefined action.
        """
        defn = self._catalog.get(action_id)
        if defn is None:
            logger.warning("completion of unknown action %r", action_id)
            return None
        runtime = self._runtime(action_id)
        rewards = roll_rewards(defn.rewards, self._ledger, self._skills, self._rng)
        runtime.completion_count += 1
        runtime.current_progress = 0.0
        runtime.paid = False
        timestamp = self._now()
        runtime.last_start_time = timestamp
        event = CompletionEvent(action_id=action_id, rewards=rewards, timestamp=timestamp)

        logger.debug("completed %s (#%d)", action_id, runtime.completion_count)
        self._state.log.record_completion(event, defn.name or defn.id, self._names())
        self._publish(
            ACTION_COMPLETED, action_id=action_id, rewards=rewards.to_dict(),
            timestamp=timestamp,
        )

        if self._rest is not None:
            resume_id = self._rest.after_completion(action_id)
            if resume_id is not None:
                if self.switch(resume_id).ok:
                    self._rest.resolve(action_id)
                else:
                    logger.debug("could not resume %s; still resting", resume_id)
        return event

    # --- Internal helpers ---

    def _check(self, action_id: str) -> StartResult | None:
        if not self._catalog.has(action_id):
            logger.warning("start of unknown action %r", action_id)
            return StartResult(ok=False, action_id=action_id, reason=StartFailure.UNKNOWN)
        if not self._catalog.is_unlocked(action_id):
            return StartResult(ok=False, action_id=action_id, reason=StartFailure.LOCKED)
        return None

    def _resumable(self, action_id: str) -> bool:
        runtime = self._state.actions.get(action_id)
        return runtime is not None and (runtime.current_progress > 0 or runtime.paid)

    def _begin(self, defn: ActionDef) -> StartResult:
        runtime = self._runtime(defn.id)
        resumed = runtime.current_progress > 0 or runtime.paid
        if not resumed and not self._pay_cycle(defn, runtime):
            return StartResult(ok=False, action_id=defn.id, reason=StartFailure.CANT_AFFORD)
        self._state.current_action_id = defn.id
        runtime.last_start_time = self._now()
        logger.debug("%s %s", "resumed" if resumed else "started", defn.id)
        self._publish(ACTION_STARTED, action_id=defn.id, resumed=resumed)
        return StartResult(ok=True, action_id=defn.id, resumed=resumed)

    def _pay_cycle(self, defn: ActionDef, runtime: ActionState) -> bool:
        if not self._ledger.pay(defn.costs):
            return False
        runtime.paid = True
        return True

    def _halt(self) -> None:
        action_id = self._state.current_action_id
        if action_id is None:
            return
        runtime = self._state.actions.get(action_id)
        if runtime is not None:
            runtime.last_start_time = None
        self._state.current_action_id = None

    def _runtime(self, action_id: str) -> ActionState:
        runtime = self._state.actions.get(action_id)
        if runtime is None:
            runtime = ActionState(id=action_id)
            self._state.actions[action_id] = runtime
        return runtime

    def _names(self) -> dict[str, str]:
        names = {r.id: r.name for r in self._state.resources.values()}
        names.update({s.id: s.name for s in self._state.skills.values()})
        return names

    def _publish(self, signal_name: str, **data: object) -> None:
        if self._bus is not None:
            self._bus.publish(signal_name, **data)
