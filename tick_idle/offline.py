"""OfflineCatchup: closed-form replay of time spent away."""
from __future__ import annotations

import copy
import logging
import math
from typing import TYPE_CHECKING, Any, Iterable

from tick_idle.catalog import ActionCatalog
from tick_idle.config import EngineConfig
from tick_idle.ledger import ResourceLedger
from tick_idle.rest import RestPolicy
from tick_idle.rewards import average, average_rewards
from tick_idle.skills import SkillBook
from tick_idle.state import dump_state, load_state
from tick_idle.types import ActionDef, Cost, Rewards

if TYPE_CHECKING:
    from tick_idle.state import ActionState, EngineState
    from tick_idle.types import ResourceDef, SkillDef

logger = logging.getLogger(__name__)

# Guards floor() against float noise such as 0.3 / 0.1 == 2.9999999999999996.
_EPSILON = 1e-9


class _Replay:
    """Components wired around the state being replayed, with no bus."""

    def __init__(self, state: EngineState, actions: tuple[ActionDef, ...]) -> None:
        self.state = state
        self.catalog = ActionCatalog(actions, state)
        self.ledger = ResourceLedger(state)
        self.skills = SkillBook(state)
        self.rest = RestPolicy(state, self.catalog, self.ledger)


class OfflineCatchup:
    """Replays elapsed time against a snapshot without ticking.

    ``apply`` is a pure function of ``(snapshot, elapsed_ms)``: no randomness
    is consumed (ranged rewards pay their average) and the returned
    timestamp is derived from the snapshot, never from the wall clock.

    The window is replayed as a chain of segments, one per running action.
    An action that runs out of resources hands over to the rest action,
    and a rest that leaves every stat full hands back to the interrupted
    action, as in live play.

    Simplifications relative to live play: passive generation for the whole
    window is credited first; within a segment, costs of all replayed
    cycles are paid before their rewards are granted; and when a rested
    resume cannot be paid for, the rest keeps running to the end of the
    window without trying again.
    """

    def __init__(
        self,
        resources: Iterable[ResourceDef],
        actions: Iterable[ActionDef],
        skills: Iterable[SkillDef] = (),
        config: EngineConfig | None = None,
    ) -> None:
        self._resources = tuple(resources)
        self._actions = tuple(actions)
        self._skills = tuple(skills)
        self._config = config if config is not None else EngineConfig()

    @property
    def max_elapsed_ms(self) -> float:
        return self._config.max_offline_seconds * 1000

    def apply(self, snapshot: dict[str, Any], elapsed_ms: float) -> dict[str, Any]:
        """Return a new snapshot advanced by *elapsed_ms* (clamped)."""
        elapsed_ms = max(0.0, float(elapsed_ms))
        window_ms = min(elapsed_ms, self.max_elapsed_ms)
        seconds = window_ms / 1000

        saved_at = snapshot.get("timestamp") if isinstance(snapshot, dict) else None
        if not isinstance(saved_at, (int, float)) or isinstance(saved_at, bool):
            saved_at = 0
        now = int(saved_at + elapsed_ms)

        state = load_state(
            copy.deepcopy(snapshot),
            self._resources,
            self._actions,
            self._skills,
            default_rest_action=self._config.default_rest_action,
            log_max_entries=self._config.log_max_entries,
            timestamp=int(saved_at),
        )
        replay = _Replay(state, self._actions)

        generated = replay.ledger.generate(seconds)
        action_id = state.current_action_id
        counts, rewards = self._replay(replay, seconds)

        logger.debug("offline %.1fs from %s: %s", seconds, action_id, counts)
        state.log.record_offline(
            now, counts,
            names={aid: replay.catalog.get(aid).name or aid for aid in counts},
            elapsed_ms=window_ms,
            action_id=action_id,
            rewards=rewards.to_dict(),
            generated=generated,
        )
        version = snapshot.get("version") if isinstance(snapshot, dict) else None
        if not isinstance(version, int):
            version = self._config.snapshot_version
        return dump_state(state, now, version)

    def _replay(self, replay: _Replay, seconds: float) -> tuple[dict[str, int], Rewards]:
        state = replay.state
        counts: dict[str, int] = {}
        total = Rewards()
        while seconds > 0 and state.current_action_id is not None:
            action_id = state.current_action_id
            defn = replay.catalog.get(action_id)
            runtime = state.actions.get(action_id)
            if defn is None or runtime is None:
                break
            if defn.is_rest and state.previous_action_id is not None:
                done, rewards, left = self._rest(replay, defn, runtime, seconds)
            else:
                done, rewards, left = self._run(replay, defn, runtime, seconds)
            if done:
                counts[action_id] = counts.get(action_id, 0) + done
            total.merge(rewards)
            if left >= seconds and not done:
                break
            seconds = left
        return counts, total

    def _run(
        self, replay: _Replay, defn: ActionDef, runtime: ActionState, seconds: float
    ) -> tuple[int, Rewards, float]:
        """Run *defn* in bulk. Returns completions, rewards and unused seconds."""
        state = replay.state
        # Finish the cycle already in progress (its cost was paid before saving).
        to_finish = defn.duration * (1.0 - runtime.current_progress)
        if seconds < to_finish:
            runtime.current_progress += seconds / defn.duration
            runtime.total_time_spent += seconds
            return 0, Rewards(), 0.0
        remaining = seconds - to_finish
        runtime.total_time_spent += to_finish
        completions = 1
        exhausted = False

        if not defn.auto_repeat:
            runtime.current_progress = 0.0
            runtime.paid = False
            runtime.last_start_time = None
            state.current_action_id = None
        else:
            full_cycles = math.floor(remaining / defn.duration + _EPSILON)
            # One payment per cycle started: each full cycle plus the partial one.
            wanted = full_cycles + 1
            payments = self._affordable(replay.ledger, defn.costs, wanted)
            for cost in defn.costs:
                if replay.ledger.has(cost.resource) and cost.amount > 0 and payments > 0:
                    replay.ledger.debit(
                        cost.resource,
                        min(cost.amount * payments, replay.ledger.amount(cost.resource)),
                    )
            if payments == wanted:
                completions += full_cycles
                runtime.total_time_spent += remaining
                leftover = remaining - full_cycles * defn.duration
                runtime.current_progress = min(max(leftover / defn.duration, 0.0), 1.0)
                runtime.paid = True
                remaining = 0.0
            else:
                completions += payments
                runtime.total_time_spent += payments * defn.duration
                remaining -= payments * defn.duration
                runtime.current_progress = 0.0
                runtime.paid = False
                exhausted = True

        runtime.completion_count += completions
        rewards = average_rewards(defn.rewards, replay.ledger, replay.skills, completions)
        if exhausted:
            self._out_of_resources(replay, defn.id)
        return completions, rewards, remaining

    def _rest(
        self, replay: _Replay, defn: ActionDef, runtime: ActionState, seconds: float
    ) -> tuple[int, Rewards, float]:
        """Rest cycle by cycle until rested, then resume the recorded action."""
        if not self._refills_stats(replay.ledger, defn):
            return self._run(replay, defn, runtime, seconds)
        state = replay.state
        completions = 0
        rewards = Rewards()
        while True:
            to_finish = defn.duration * (1.0 - runtime.current_progress)
            if seconds < to_finish:
                runtime.current_progress += seconds / defn.duration
                runtime.total_time_spent += seconds
                return completions, rewards, 0.0
            seconds -= to_finish
            runtime.total_time_spent += to_finish
            runtime.current_progress = 0.0
            runtime.paid = False
            runtime.completion_count += 1
            completions += 1
            rewards.merge(average_rewards(defn.rewards, replay.ledger, replay.skills, 1))

            resume_id = replay.rest.after_completion(defn.id)
            if resume_id is not None:
                runtime.last_start_time = None
                if self._enter(replay, resume_id):
                    replay.rest.resolve(defn.id)
                    return completions, rewards, seconds
            if not defn.auto_repeat or not replay.ledger.pay(defn.costs):
                runtime.last_start_time = None
                state.current_action_id = None
                return completions, rewards, seconds
            runtime.paid = True
            if resume_id is not None:
                # Rested but unable to resume: more rest changes nothing.
                more, more_rewards, seconds = self._run(replay, defn, runtime, seconds)
                rewards.merge(more_rewards)
                return completions + more, rewards, seconds

    @staticmethod
    def _refills_stats(ledger: ResourceLedger, defn: ActionDef) -> bool:
        """True when every unlocked stat below its cap gains from *defn*."""
        gains: dict[str, float] = {}
        for entry in defn.rewards:
            if entry.kind == "resource":
                gains[entry.target] = gains.get(entry.target, 0.0) + average(entry)
        return all(r.current >= r.max or gains.get(r.id, 0.0) > 0 for r in ledger.stats())

    @staticmethod
    def _affordable(ledger: ResourceLedger, costs: tuple[Cost, ...], wanted: int) -> int:
        """How many of *wanted* cycle payments the ledger can cover."""
        payments = wanted
        for cost in costs:
            res = ledger.get(cost.resource)
            if res is None:
                logger.warning("cost references unknown resource %r", cost.resource)
                continue
            if cost.amount <= 0:
                continue
            if not res.unlocked:
                return 0
            payments = min(payments, math.floor(res.current / cost.amount + _EPSILON))
        return max(payments, 0)

    @staticmethod
    def _enter(replay: _Replay, action_id: str) -> bool:
        """Make *action_id* current, paying for a fresh cycle when needed."""
        defn = replay.catalog.get(action_id)
        runtime = replay.state.actions.get(action_id)
        if defn is None or runtime is None or not replay.catalog.is_unlocked(action_id):
            return False
        if runtime.current_progress <= 0 and not runtime.paid:
            if not replay.ledger.pay(defn.costs):
                return False
            runtime.paid = True
        replay.state.current_action_id = action_id
        return True

    def _out_of_resources(self, replay: _Replay, action_id: str) -> None:
        state = replay.state
        state.actions[action_id].last_start_time = None
        state.current_action_id = None
        rest_id = replay.rest.on_cant_afford(action_id)
        if rest_id is not None and not self._enter(replay, rest_id):
            replay.rest.forget()
