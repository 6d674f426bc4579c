"""Engine signals and the queued bus that carries them to the view layer."""
from __future__ import annotations

from typing import Any, Callable

Handler = Callable[[str, dict[str, Any]], None]

ACTION_STARTED = "action-started"
ACTION_STOPPED = "action-stopped"
ACTION_COMPLETED = "action-completed"
RESOURCE_CHANGED = "resource-changed"
RESOURCE_DEPLETED = "resource-depleted"
RESOURCE_FULL = "resource-full"
RESOURCE_UNLOCKED = "resource-unlocked"
REST_SWITCH_ENGAGED = "rest-switch-engaged"
REST_SWITCH_RESOLVED = "rest-switch-resolved"
SKILL_LEVEL_UP = "skill-level-up"

SIGNALS = frozenset({
    ACTION_STARTED,
    ACTION_STOPPED,
    ACTION_COMPLETED,
    RESOURCE_CHANGED,
    RESOURCE_DEPLETED,
    RESOURCE_FULL,
    RESOURCE_UNLOCKED,
    REST_SWITCH_ENGAGED,
    REST_SWITCH_RESOLVED,
    SKILL_LEVEL_UP,
})

# Subscribing to ANY receives every signal.
ANY = "*"


def _check(signal_name: str, allow_any: bool = False) -> None:
    if signal_name in SIGNALS or (allow_any and signal_name == ANY):
        return
    raise ValueError(f"unknown signal {signal_name!r}")


class SignalBus:
    """Queues engine signals during an operation and delivers them after it.

    Components publish while they mutate state; the Game flushes once per
    tick or command, so handlers always see a consistent state and may call
    back into the Game. Signals published by handlers wait for the next
    flush.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Handler]] = {}
        self._queue: list[tuple[str, dict[str, Any]]] = []

    def subscribe(self, signal_name: str, handler: Handler) -> Callable[[], None]:
        """Register *handler*; returns a callable that unregisters it."""
        _check(signal_name, allow_any=True)
        self._subscribers.setdefault(signal_name, []).append(handler)
        return lambda: self.unsubscribe(signal_name, handler)

    def unsubscribe(self, signal_name: str, handler: Handler) -> None:
        handlers = self._subscribers.get(signal_name, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, signal_name: str, **data: Any) -> None:
        _check(signal_name)
        self._queue.append((signal_name, data))

    def pending(self, signal_name: str | None = None) -> list[tuple[str, dict[str, Any]]]:
        """Queued signals not yet delivered, oldest first."""
        return [s for s in self._queue if signal_name is None or s[0] == signal_name]

    def flush(self) -> int:
        """Deliver every queued signal. Returns the number of handler calls."""
        queued = self._queue
        self._queue = []
        calls = 0
        for signal_name, data in queued:
            handlers = self._subscribers.get(signal_name, []) + self._subscribers.get(ANY, [])
            for handler in handlers:
                handler(signal_name, data)
                calls += 1
        return calls

    def clear(self) -> None:
        self._queue.clear()
