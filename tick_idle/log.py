"""The player-facing action log: completions, offline summaries and repairs."""
from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterator

if TYPE_CHECKING:
    from tick_idle.types import CompletionEvent

COMPLETED = "action-completed"
OFFLINE_PROGRESS = "offline-progress"
REPAIR = "repair"


@dataclass(frozen=True)
class LogEntry:
    timestamp: int
    type: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def action_id(self) -> str | None:
        return self.data.get("action_id")


def _valid_timestamp(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


class ActionLog:
    """What happened to the player, oldest first, newest kept.

    Entries are written through the ``record_*`` methods so every entry of
    a type carries the same data keys. ``max_entries=0`` keeps everything.
    """

    def __init__(self, max_entries: int = 0) -> None:
        self._max = max_entries
        self._entries: deque[LogEntry] = deque(
            maxlen=max_entries if max_entries > 0 else None
        )

    @property
    def max_entries(self) -> int:
        return self._max

    # --- Writing ---

    def record_completion(self, event: CompletionEvent, action_name: str,
                          names: dict[str, str] | None = None) -> LogEntry:
        return self._add(LogEntry(
            timestamp=event.timestamp,
            type=COMPLETED,
            message=format_completion(event, action_name, names),
            data={"action_id": event.action_id, "rewards": event.rewards.to_dict()},
        ))

    def record_offline(self, timestamp: int, completed: dict[str, int],
                       names: dict[str, str] | None = None, **data: Any) -> LogEntry:
        """Summarize a catch-up. *completed* maps action ids to completions."""
        names = names or {}
        message = format_offline({names.get(aid, aid): n for aid, n in completed.items()})
        data.update(completions=sum(completed.values()), by_action=dict(completed))
        return self._add(LogEntry(timestamp, OFFLINE_PROGRESS, message, data))

    def record_repair(self, timestamp: int, fields: list[str]) -> LogEntry:
        return self._add(LogEntry(
            timestamp, REPAIR, "Your save was damaged and has been repaired.",
            {"fields": list(fields)},
        ))

    def _add(self, entry: LogEntry) -> LogEntry:
        self._entries.append(entry)
        return entry

    # --- Reading ---

    def query(self, type: str | None = None, since: int | None = None) -> list[LogEntry]:
        """Entries of *type* (any when None) stamped at or after *since*."""
        return [
            e for e in self._entries
            if (type is None or e.type == type) and (since is None or e.timestamp >= since)
        ]

    def completions(self, action_id: str | None = None) -> list[LogEntry]:
        return [
            e for e in self._entries
            if e.type == COMPLETED and (action_id is None or e.action_id == action_id)
        ]

    def last(self, type: str | None = None) -> LogEntry | None:
        for e in reversed(self._entries):
            if type is None or e.type == type:
                return e
        return None

    # --- Persistence ---

    def snapshot(self) -> list[dict[str, Any]]:
        return [
            {"timestamp": e.timestamp, "type": e.type, "message": e.message,
             "data": e.data}
            for e in self._entries
        ]

    def restore(self, data: list[Any]) -> int:
        """Replace the entries with *data*. Returns how many were unusable.

        An entry needs a numeric ``timestamp`` and a string ``type``; a bad
        ``message`` or ``data`` is blanked rather than dropping the entry.
        """
        self._entries.clear()
        dropped = 0
        for d in data:
            if not isinstance(d, dict) or not _valid_timestamp(d.get("timestamp")) \
                    or not isinstance(d.get("type"), str):
                dropped += 1
                continue
            message = d.get("message")
            extra = d.get("data")
            self._entries.append(LogEntry(
                timestamp=int(d["timestamp"]),
                type=d["type"],
                message=message if isinstance(message, str) else "",
                data=extra if isinstance(extra, dict) else {},
            ))
        return dropped

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


def _format_amount(amount: float) -> str:
    if float(amount).is_integer():
        return f"{int(amount):+d}"
    return f"{amount:+.2f}"


def format_completion(event: CompletionEvent, action_name: str,
                      names: dict[str, str] | None = None) -> str:
    """One message per completion, covering every reward it granted."""
    names = names or {}
    rewards = event.rewards
    parts = [f"You completed {action_name}."]
    if rewards.resources:
        gained = ", ".join(
            f"{_format_amount(amount)} {names.get(rid, rid)}"
            for rid, amount in rewards.resources.items()
        )
        parts.append(f"Received {gained}.")
    if rewards.capacity:
        raised = ", ".join(
            f"{names.get(rid, rid)} cap {_format_amount(amount)}"
            for rid, amount in rewards.capacity.items()
        )
        parts.append(f"{raised}.")
    if rewards.skills:
        xp = ", ".join(
            f"{_format_amount(amount)} {names.get(sid, sid)} XP"
            for sid, amount in rewards.skills.items()
        )
        parts.append(f"{xp}.")
    if rewards.unlocked:
        parts.append(
            "Unlocked " + ", ".join(names.get(rid, rid) for rid in rewards.unlocked) + "."
        )
    return " ".join(parts)


def format_offline(completed: dict[str, int]) -> str:
    """Offline summary; *completed* maps action names to completion counts."""
    if not completed:
        return "While you were away, your resources kept working."
    parts = [
        f"{name} {count} {'time' if count == 1 else 'times'}"
        for name, count in completed.items()
    ]
    if len(parts) > 1:
        parts = [", ".join(parts[:-1]), parts[-1]]
    return "While you were away, you completed " + " and ".join(parts) + "."
