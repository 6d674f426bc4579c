"""Engine configuration dataclass."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EngineConfig:
    """Immutable configuration for one game session.

    Attributes:
        tps: GameLoop ticks per second (10 gives the 100 ms cadence).
        max_offline_seconds: Upper bound on replayed offline time.
        log_max_entries: Action log ring-buffer size.
        autosave_interval: Seconds of simulated time between autosaves.
        default_rest_action: Action forced when costs cannot be paid.
        snapshot_version: Version stamped on saved snapshots.
    """

    tps: int = 10
    max_offline_seconds: float = 8 * 60 * 60
    log_max_entries: int = 100
    autosave_interval: float = 30.0
    default_rest_action: str | None = None
    snapshot_version: int = 1

    def __post_init__(self) -> None:
        if self.tps <= 0:
            raise ValueError("tps must be positive")
        if self.max_offline_seconds < 0:
            raise ValueError(
                f"max_offline_seconds must be >= 0, got {self.max_offline_seconds}"
            )
        if self.log_max_entries < 0:
            raise ValueError(
                f"log_max_entries must be >= 0, got {self.log_max_entries}"
            )
        if self.autosave_interval < 0:
            raise ValueError(
                f"autosave_interval must be >= 0, got {self.autosave_interval}"
            )
