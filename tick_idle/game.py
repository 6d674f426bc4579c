"""Game: composition root and command surface for the view layer."""
from __future__ import annotations

import dataclasses
import logging
import os
import random
import time
from typing import TYPE_CHECKING, Any, Callable

from tick_idle.catalog import ActionCatalog
from tick_idle.config import EngineConfig
from tick_idle.engine import ActionEngine
from tick_idle.ledger import ResourceLedger
from tick_idle.offline import OfflineCatchup
from tick_idle.rest import RestPolicy
from tick_idle.signals import Handler, SignalBus
from tick_idle.skills import SkillBook
from tick_idle.state import EngineState, dump_state, load_state, new_state
from tick_idle.types import StartFailure, StartResult, TickResult

if TYPE_CHECKING:
    from tick_idle.content import Content
    from tick_idle.store import Store

logger = logging.getLogger(__name__)


class Game:
    """Owns one EngineState and every component that works on it.

    There is no global state: each Game wires its own ledger, catalog,
    skill book, rest policy and engine around its state, and rewires them
    when a save is loaded. Subscriptions live on the bus, which survives
    rewiring.

    ``load()`` applies offline catch-up; GameLoop calls it before its first
    tick, so elapsed time is never applied twice.
    """

    def __init__(
        self,
        content: Content,
        config: EngineConfig | None = None,
        store: Store | None = None,
        rng: Callable[[], float] | None = None,
        seed: int | None = None,
        now: Callable[[], int] | None = None,
    ) -> None:
        config = config if config is not None else EngineConfig()
        if config.default_rest_action is None and content.rest_action is not None:
            config = dataclasses.replace(config, default_rest_action=content.rest_action)
        self._content = content
        self._config = config
        self._store = store
        if rng is None:
            if seed is None:
                seed = int.from_bytes(os.urandom(8), "big")
            rng = random.Random(seed).random
        self._seed = seed
        self._rng = rng
        self._now = now if now is not None else lambda: int(time.time() * 1000)
        self._bus = SignalBus()
        self._offline = OfflineCatchup(
            content.resources, content.actions, content.skills, config
        )
        self._wire(self._fresh_state())

    # --- Wiring ---

    def _fresh_state(self) -> EngineState:
        return new_state(
            self._content.resources,
            self._content.actions,
            self._content.skills,
            default_rest_action=self._config.default_rest_action,
            log_max_entries=self._config.log_max_entries,
        )

    def _wire(self, state: EngineState) -> None:
        self._state = state
        self._ledger = ResourceLedger(state, self._bus)
        self._catalog = ActionCatalog(self._content.actions, state)
        self._skills = SkillBook(state, self._bus)
        self._rest = RestPolicy(state, self._catalog, self._ledger, self._bus)
        self._engine = ActionEngine(
            state, self._catalog, self._ledger,
            rest=self._rest, skills=self._skills, bus=self._bus,
            rng=self._rng, now=self._now,
        )

    # --- Accessors ---

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def seed(self) -> int | None:
        return self._seed

    @property
    def has_store(self) -> bool:
        return self._store is not None

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def bus(self) -> SignalBus:
        return self._bus

    @property
    def ledger(self) -> ResourceLedger:
        return self._ledger

    @property
    def catalog(self) -> ActionCatalog:
        return self._catalog

    @property
    def skills(self) -> SkillBook:
        return self._skills

    @property
    def rest(self) -> RestPolicy:
        return self._rest

    @property
    def engine(self) -> ActionEngine:
        return self._engine

    def subscribe(self, signal_name: str, handler: Handler) -> Callable[[], None]:
        return self._bus.subscribe(signal_name, handler)

    # --- Commands ---

    def start(self, action_id: str) -> StartResult:
        """Player asked for *action_id*.

        Stops whatever is running first, but only once *action_id* is known
        to start. A manual switch to a non-rest action forgets any action
        waiting on a rest; an unaffordable start sends the player to rest, to
        come back to *action_id* afterwards, and changes nothing when there
        is no rest to send them to.
        """
        if self._state.current_action_id == action_id:
            return StartResult(ok=True, action_id=action_id, resumed=True)
        result = self._engine.start(action_id)
        if result.reason == StartFailure.BUSY:
            if self._engine.is_startable(action_id):
                self._engine.stop()
                result = self._engine.start(action_id)
            else:
                result = StartResult(
                    ok=False, action_id=action_id, reason=StartFailure.CANT_AFFORD
                )
        if result.ok:
            if not self._rest.is_rest(action_id):
                self._rest.forget()
        elif result.reason == StartFailure.CANT_AFFORD:
            self._send_to_rest(action_id)
        self._bus.flush()
        return result

    def _send_to_rest(self, action_id: str) -> None:
        previous = self._state.previous_action_id
        rest_id = self._rest.on_cant_afford(action_id)
        if rest_id is None or self._state.current_action_id == rest_id:
            return
        if not self._engine.switch(rest_id).ok:
            self._state.previous_action_id = previous

    def stop(self) -> str | None:
        stopped = self._engine.stop()
        self._bus.flush()
        return stopped

    def can_afford(self, action_id: str) -> bool:
        return self._engine.can_afford(action_id)

    def tick(self, dt: float) -> TickResult:
        """One loop step: passive generation, then the running action."""
        self._ledger.generate(dt)
        result = self._engine.tick(dt)
        self._bus.flush()
        return result

    def get_state(self) -> dict[str, Any]:
        """Read-only view for rendering. Mutating it changes nothing."""
        return dump_state(self._state, self._now(), self._config.snapshot_version)

    # --- Persistence ---

    def new_game(self) -> None:
        self._wire(self._fresh_state())
        self._bus.clear()

    def save(self) -> bool:
        if self._store is None:
            return False
        snapshot = dump_state(self._state, self._now(), self._config.snapshot_version)
        ok = self._store.save(snapshot)
        if ok:
            logger.info("game saved")
        else:
            logger.warning("game save failed")
        return ok

    def load(self) -> bool:
        """Replace the state with the stored one, caught up to now.

        Returns False, leaving the current game alone, when there is nothing
        to load.
        """
        data = self._store.load() if self._store is not None else None
        if data is None:
            return False
        saved_at = data.get("timestamp")
        if isinstance(saved_at, (int, float)) and not isinstance(saved_at, bool):
            elapsed_ms = self._now() - saved_at
        else:
            elapsed_ms = 0
        caught_up = self._offline.apply(data, elapsed_ms)
        self._wire(load_state(
            caught_up,
            self._content.resources,
            self._content.actions,
            self._content.skills,
            default_rest_action=self._config.default_rest_action,
            log_max_entries=self._config.log_max_entries,
        ))
        self._bus.clear()
        logger.info("game loaded, %d ms offline", max(0, elapsed_ms))
        return True
