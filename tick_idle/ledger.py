"""ResourceLedger: the only code path that mutates resource values."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from tick_idle.signals import (
    RESOURCE_CHANGED,
    RESOURCE_DEPLETED,
    RESOURCE_FULL,
    RESOURCE_UNLOCKED,
)
from tick_idle.types import Cost, Debit

if TYPE_CHECKING:
    from tick_idle.signals import SignalBus
    from tick_idle.state import EngineState, Resource

logger = logging.getLogger(__name__)


class ResourceLedger:
    """Clamped credit/debit over the resources of one EngineState.

    Every mutation keeps ``0 <= current <= max`` and refuses to touch locked
    resources. Transitions are published on the bus when one is given.
    """

    def __init__(self, state: EngineState, bus: SignalBus | None = None) -> None:
        self._state = state
        self._bus = bus

    # --- Queries ---

    def get(self, resource_id: str) -> Resource | None:
        return self._state.resources.get(resource_id)

    def has(self, resource_id: str) -> bool:
        return resource_id in self._state.resources

    def amount(self, resource_id: str) -> float:
        res = self._state.resources.get(resource_id)
        return res.current if res is not None else 0.0

    def is_full(self, resource_id: str) -> bool:
        res = self._state.resources.get(resource_id)
        return res is not None and res.is_full

    def is_empty(self, resource_id: str) -> bool:
        res = self._state.resources.get(resource_id)
        return res is None or res.is_empty

    def stats(self, unlocked_only: bool = True) -> list[Resource]:
        """Stat-type resources in definition order."""
        return [
            r for r in self._state.resources.values()
            if r.is_stat and (r.unlocked or not unlocked_only)
        ]

    def can_afford(self, costs: Iterable[Cost]) -> bool:
        """Check a whole cost list. Pure; unknown resources are skipped."""
        for cost in costs:
            res = self._state.resources.get(cost.resource)
            if res is None:
                logger.warning("cost references unknown resource %r", cost.resource)
                continue
            if not res.unlocked or res.current < cost.amount:
                return False
        return True

    # --- Mutation ---

    def credit(self, resource_id: str, amount: float) -> float:
        """Add up to *amount*, clamped to max. Returns the amount applied."""
        if amount < 0:
            raise ValueError(f"amount must be >= 0, got {amount}")
        res = self._usable(resource_id, "credit")
        if res is None or amount == 0:
            return 0.0
        return self._set_current(res, min(res.current + amount, res.max))

    def debit(self, resource_id: str, amount: float) -> Debit:
        """Remove exactly *amount*, or nothing at all."""
        if amount < 0:
            raise ValueError(f"amount must be >= 0, got {amount}")
        res = self._usable(resource_id, "debit")
        if res is None or res.current < amount:
            return Debit(ok=False)
        if amount == 0:
            return Debit(ok=True)
        applied = -self._set_current(res, max(res.current - amount, 0.0))
        return Debit(ok=True, applied=applied)

    def pay(self, costs: Iterable[Cost]) -> bool:
        """Debit a whole cost list atomically. Returns False without mutating."""
        costs = list(costs)
        if not self.can_afford(costs):
            return False
        for cost in costs:
            if cost.resource in self._state.resources:
                self.debit(cost.resource, cost.amount)
        return True

    def set_max(self, resource_id: str, new_max: float,
                fill_current: bool = False) -> None:
        """Move the cap. Fills to the new cap, or clamps current down to it."""
        res = self._usable(resource_id, "set_max")
        if res is None:
            return
        res.max = max(0.0, float(new_max))
        if fill_current:
            self._set_current(res, res.max)
        elif res.current > res.max:
            self._set_current(res, res.max)

    def change_max(self, resource_id: str, delta: float) -> float:
        """Relative cap change. Returns the cap delta actually applied."""
        res = self._usable(resource_id, "change_max")
        if res is None:
            return 0.0
        before = res.max
        self.set_max(resource_id, before + delta)
        return res.max - before

    def unlock(self, resource_id: str) -> bool:
        """Unlock a resource. Returns True only if it was locked before."""
        res = self._state.resources.get(resource_id)
        if res is None:
            logger.warning("unlock of unknown resource %r", resource_id)
            return False
        if res.unlocked:
            return False
        res.unlocked = True
        logger.debug("resource %s unlocked", resource_id)
        self._publish(RESOURCE_UNLOCKED, resource_id=resource_id)
        return True

    def generate(self, dt: float) -> dict[str, float]:
        """Passive generation for *dt* seconds. Returns credited amounts per target.

        Rates are read from the resources as they stand before this step, so a
        resource that both generates and is generated does not compound within
        a single call.
        """
        if dt <= 0:
            return {}
        pending: list[tuple[Resource, float]] = []
        for res in self._state.resources.values():
            if not res.unlocked or res.generates is None:
                continue
            rate = max(0.0, res.generation_rate)
            if rate == 0 or res.current <= 0:
                continue
            target = self._state.resources.get(res.generates)
            if target is None:
                logger.warning(
                    "resource %r generates unknown resource %r", res.id, res.generates
                )
                continue
            if not target.unlocked:
                continue
            pending.append((target, rate * res.current * dt))

        credited: dict[str, float] = {}
        for target, amount in pending:
            applied = self._set_current(target, min(target.current + amount, target.max))
            if applied:
                credited[target.id] = credited.get(target.id, 0.0) + applied
        return credited

    # --- Internal helpers ---

    def _usable(self, resource_id: str, op: str) -> Resource | None:
        res = self._state.resources.get(resource_id)
        if res is None:
            logger.warning("%s on unknown resource %r", op, resource_id)
            return None
        if not res.unlocked:
            logger.warning("%s on locked resource %r ignored", op, resource_id)
            return None
        return res

    def _set_current(self, res: Resource, value: float) -> float:
        old = res.current
        new = min(max(value, 0.0), res.max)
        if new == old:
            return 0.0
        res.current = new
        self._publish(RESOURCE_CHANGED, resource_id=res.id, old=old, new=new)
        if new >= res.max and old < res.max:
            self._publish(RESOURCE_FULL, resource_id=res.id)
        if new <= 0 and old > 0:
            self._publish(RESOURCE_DEPLETED, resource_id=res.id)
        return new - old

    def _publish(self, signal_name: str, **data: object) -> None:
        if self._bus is not None:
            self._bus.publish(signal_name, **data)
