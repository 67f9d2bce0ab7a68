#!/usr/bin/env python3
"""
Headless runner for Henhouse.

Runs the simulation without any UI, optionally playing the player's part,
and keeps progress in a JSON snapshot between runs.

Usage:
    henhouse --seconds 300 --hire 1 --autoplay
    henhouse --reset
"""
import argparse
import logging
import time
from typing import List, Optional

from henhouse.config import get_settings, load_game_config
from henhouse.constants import DEFAULT_DT
from henhouse.game import Game
from henhouse.persistence import JsonSnapshotStore

logger = logging.getLogger(__name__)


class AutoPlayer:
    """
    Plays the player's part: field -> chicken -> store, over and over,
    buying the cheapest affordable upgrade whenever there is one.
    """

    def __init__(self, game: Game):
        self.game = game
        self.upgrades_bought: int = 0

    def step(self) -> None:
        game = self.game
        if game.dispatcher.pending is None and not game.dispatcher.is_moving:
            game.handle_input(self._next_target().position)

        offers = [o for o in game.upgrades.offers() if o.affordable and not o.maxed]
        if offers:
            cheapest = min(offers, key=lambda o: o.cost)
            if game.purchase_upgrade(cheapest.kind):
                self.upgrades_bought += 1

        if game.is_tutorial_active():
            game.acknowledge_tutorial()

    def _next_target(self):
        game = self.game
        ledger = game.ledger
        if game.producer.uncollected > 0:
            return game.producer
        if ledger.eggs > 0:
            return game.market
        if ledger.corn >= game.producer.feed_cost:
            return game.producer
        return game.field


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Henhouse headless simulation")
    parser.add_argument("--seconds", type=float, default=60.0, help="Simulated seconds to run")
    parser.add_argument("--dt", type=float, default=DEFAULT_DT, help="Seconds per tick")
    parser.add_argument("--hire", type=int, default=0, help="Helpers to try to hire at start")
    parser.add_argument("--autoplay", action="store_true", help="Let the runner play the player")
    parser.add_argument("--realtime", action="store_true", help="Sleep between ticks")
    parser.add_argument("--reset", action="store_true", help="Start over from the starting config")
    parser.add_argument("--config", default=None, help="GameConfig JSON file")
    parser.add_argument("--save", default=None, help="Snapshot file (overrides HENHOUSE_SAVE_PATH)")
    return parser


def print_summary(game: Game) -> None:
    ledger = game.ledger
    stats = game.get_stats()
    print()
    print(f"Day {game.clock.day}, {game.get_time_string()} after {stats.elapsed:.1f}s")
    print(f"  corn={ledger.corn} eggs={ledger.eggs} coins={ledger.coins} helpers={ledger.agent_count}")
    print(f"  harvested={stats.corn_harvested} laid={stats.eggs_laid} sold={stats.eggs_sold} "
          f"earned={stats.coins_earned}")
    for offer in game.get_upgrade_offers():
        print(f"  {offer['kind']:<11} level {offer['level']}/{offer['max_level']} next={offer['cost']}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.dt <= 0:
        logger.error(f"--dt must be positive, got {args.dt}")
        return 2

    config = load_game_config(args.config or settings.config_path)
    store = JsonSnapshotStore(args.save or settings.save_path)

    game = Game(config, seed=settings.seed)
    if args.reset:
        store.clear()
    else:
        game.restore(store.load())

    for _ in range(args.hire):
        if not game.hire_agent():
            logger.info(f"Cannot afford helper ({game.get_hire_cost()} coins)")
            break

    player = AutoPlayer(game) if args.autoplay else None
    tick_seconds = settings.tick_rate_ms / 1000.0
    since_save = 0.0

    try:
        while game.elapsed < args.seconds:
            if player is not None:
                player.step()
            game.update(args.dt)

            since_save += args.dt
            if settings.autosave_interval_seconds > 0 and since_save >= settings.autosave_interval_seconds:
                store.save(game.snapshot())
                since_save = 0.0

            if args.realtime:
                time.sleep(tick_seconds)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        store.save(game.snapshot())

    print_summary(game)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
