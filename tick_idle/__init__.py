"""tick-idle - Action/resource progression engine for incremental games."""
from tick_idle.catalog import ActionCatalog
from tick_idle.config import EngineConfig
from tick_idle.content import Content, load_content
from tick_idle.engine import ActionEngine
from tick_idle.game import Game
from tick_idle.ledger import ResourceLedger
from tick_idle.log import ActionLog, LogEntry
from tick_idle.loop import GameLoop, LoopTick
from tick_idle.offline import OfflineCatchup
from tick_idle.rest import RestPolicy
from tick_idle.signals import SignalBus
from tick_idle.skills import SkillBook
from tick_idle.state import (
    ActionState,
    EngineState,
    Resource,
    Skill,
    dump_state,
    load_state,
    new_state,
)
from tick_idle.store import JsonFileStore, MemoryStore, Store
from tick_idle.types import (
    ActionDef,
    CompletionEvent,
    Cost,
    Debit,
    ResourceDef,
    Reward,
    Rewards,
    SkillDef,
    StartFailure,
    StartResult,
    TickResult,
)

__all__ = [
    "ActionCatalog",
    "ActionDef",
    "ActionEngine",
    "ActionLog",
    "ActionState",
    "CompletionEvent",
    "Content",
    "Cost",
    "Debit",
    "EngineConfig",
    "EngineState",
    "Game",
    "GameLoop",
    "JsonFileStore",
    "LogEntry",
    "LoopTick",
    "MemoryStore",
    "OfflineCatchup",
    "Resource",
    "ResourceDef",
    "ResourceLedger",
    "RestPolicy",
    "Reward",
    "Rewards",
    "SignalBus",
    "Skill",
    "SkillBook",
    "SkillDef",
    "StartFailure",
    "StartResult",
    "Store",
    "TickResult",
    "dump_state",
    "load_content",
    "load_state",
    "new_state",
]
