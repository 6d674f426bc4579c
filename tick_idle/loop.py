"""GameLoop: the fixed-timestep driver that owns a Game's cadence."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from tick_idle.game import Game
    from tick_idle.types import TickResult

logger = logging.getLogger(__name__)

# Keeps 0.1 s steps from drifting past an autosave boundary.
_EPSILON = 1e-9


@dataclass(frozen=True)
class LoopTick:
    """What a listener sees once the game has ticked."""

    tick_number: int
    dt: float
    elapsed: float
    result: TickResult
    request_stop: Callable[[], None]


Listener = Callable[[LoopTick], None]


class GameLoop:
    """Drives one Game at a fixed rate, single-threaded.

    The first ``step``/``run`` (or an explicit ``start``) loads the saved
    game, so offline catch-up is applied exactly once and always before the
    first live tick. Every tick then runs ``game.tick(dt)``, saves after
    each ``autosave_interval`` seconds of ticked time and calls the
    listeners in order. A run that ends saves once more.
    """

    def __init__(
        self,
        game: Game,
        tps: int | None = None,
        autosave_interval: float | None = None,
    ) -> None:
        tps = tps if tps is not None else game.config.tps
        if tps <= 0:
            raise ValueError(f"tps must be > 0, got {tps}")
        if autosave_interval is None:
            autosave_interval = game.config.autosave_interval
        if autosave_interval < 0:
            raise ValueError(f"autosave_interval must be >= 0, got {autosave_interval}")
        self._game = game
        self._tps = tps
        self._dt = 1.0 / tps
        self._autosave_interval = autosave_interval
        self._tick_number = 0
        self._since_save = 0.0
        self._started = False
        self._stop_requested = False
        self._listeners: list[Listener] = []

    @property
    def game(self) -> Game:
        return self._game

    @property
    def tps(self) -> int:
        return self._tps

    @property
    def dt(self) -> float:
        return self._dt

    @property
    def tick_number(self) -> int:
        return self._tick_number

    @property
    def elapsed(self) -> float:
        """Seconds of game time ticked by this loop."""
        return self._tick_number * self._dt

    @property
    def autosaves(self) -> bool:
        return self._game.has_store and self._autosave_interval > 0

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def request_stop(self) -> None:
        self._stop_requested = True

    def start(self) -> bool:
        """Load the saved game, caught up to now. Only the first call loads.

        Returns True when a save was loaded.
        """
        if self._started:
            return False
        self._started = True
        return self._game.load()

    def step(self) -> TickResult:
        self.start()
        self._tick_number += 1
        result = self._game.tick(self._dt)
        if self.autosaves:
            self._since_save += self._dt
            if self._since_save >= self._autosave_interval - _EPSILON:
                self._since_save = 0.0
                self._game.save()
        tick = LoopTick(self._tick_number, self._dt, self.elapsed, result, self.request_stop)
        for listener in list(self._listeners):
            listener(tick)
        return result

    def run(self, ticks: int) -> int:
        """Run at most *ticks* ticks as fast as possible. Returns ticks run."""
        self._stop_requested = False
        ran = 0
        while ran < ticks and not self._stop_requested:
            self.step()
            ran += 1
        self._finish()
        return ran

    def run_forever(self) -> None:
        """Run in real time until a listener calls ``request_stop``."""
        self._stop_requested = False
        while not self._stop_requested:
            began = time.monotonic()
            self.step()
            if self._stop_requested:
                break
            sleep_time = self._dt - (time.monotonic() - began)
            if sleep_time > 0:
                time.sleep(sleep_time)
        self._finish()

    def _finish(self) -> None:
        logger.debug("loop stopped after %d ticks", self._tick_number)
        if self.autosaves:
            self._since_save = 0.0
            self._game.save()
