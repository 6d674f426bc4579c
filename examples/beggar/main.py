"""Alley Beggar: a headless tick-idle session.

Begs until stamina runs out, sleeps it off, goes back to begging, and buys
a bigger pouch once it can afford one. With ``--save`` the session is
persisted to a JSON file; run it again later to see offline progress.

Run:
    python examples/beggar/main.py
    python examples/beggar/main.py --ticks 3000 --save /tmp/beggar.json
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any

from tick_idle import EngineConfig, Game, GameLoop, JsonFileStore, LoopTick, load_content
from tick_idle.log import COMPLETED, OFFLINE_PROGRESS
from tick_idle.signals import (
    ACTION_COMPLETED,
    REST_SWITCH_ENGAGED,
    REST_SWITCH_RESOLVED,
    SKILL_LEVEL_UP,
)

CONTENT = Path(__file__).with_name("content.json")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--ticks", type=int, default=1200, help="ticks to run (10 per second)")
    parser.add_argument("--save", type=Path, default=None, help="JSON save file")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args()


def print_status(game: Game) -> None:
    resources = ", ".join(
        f"{r.name} {r.current:.0f}/{r.max:.0f}"
        for r in game.state.resources.values() if r.unlocked
    )
    print(f"  [{game.engine.current_action_id or 'idle'}] {resources}")


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    store = JsonFileStore(args.save) if args.save else None
    game = Game(load_content(CONTENT), EngineConfig(autosave_interval=10.0),
                store=store, seed=args.seed)

    def on_completed(name: str, data: dict[str, Any]) -> None:
        print(game.state.log.last(COMPLETED).message)
        if data["action_id"] == "buy_pouch":
            game.start("beg")
        elif game.can_afford("buy_pouch") and not game.state.resources["beggars"].unlocked:
            game.start("buy_pouch")

    def on_rest(name: str, data: dict[str, Any]) -> None:
        verb = "Too tired to" if name == REST_SWITCH_ENGAGED else "Rested, back to"
        print(f"{verb} {data['action_id']}.")
        print_status(game)

    game.subscribe(ACTION_COMPLETED, on_completed)
    game.subscribe(REST_SWITCH_ENGAGED, on_rest)
    game.subscribe(REST_SWITCH_RESOLVED, on_rest)
    game.subscribe(SKILL_LEVEL_UP, lambda name, data: print(
        f"Begging skill is now level {data['level']}."))

    loop = GameLoop(game)
    if loop.start():
        offline = game.state.log.last(OFFLINE_PROGRESS)
        if offline is not None:
            print(offline.message)
    if game.engine.is_idle():
        game.start("beg")

    def every_minute(tick: LoopTick) -> None:
        if tick.tick_number % (60 * loop.tps) == 0:
            print_status(game)

    loop.add_listener(every_minute)
    loop.run(args.ticks)
    print_status(game)


if __name__ == "__main__":
    main()
