#!/usr/bin/env python3
"""
Command-line interface for the stats engine.

Usage:
    python -m elo_insight.cli games                       # Supported games and platforms
    python -m elo_insight.cli show                        # Load, refresh and print all stats
    python -m elo_insight.cli add "Dota 2" Steam          # Track a game on a platform
    python -m elo_insight.cli remove 42                   # Stop tracking selection 42
    python -m elo_insight.cli refresh                     # Refresh stale selections
    python -m elo_insight.cli refresh --id 42             # Refresh one selection now
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator

from .core.config import get_settings
from .core.errors import MissingAccountError, StatsError
from .core.models import StatSelection
from .core.types import GAME_REGISTRY, PLATFORM_LINK_FIELDS
from .providers import BackendClient, UpstreamFetchDispatcher
from .services import AggregationOrchestrator

logger = logging.getLogger("elo_insight.cli")


@asynccontextmanager
async def open_orchestrator() -> AsyncIterator[AggregationOrchestrator]:
    """Build an orchestrator with live clients and close them afterwards."""
    settings = get_settings()
    async with BackendClient(settings) as backend, UpstreamFetchDispatcher(settings) as dispatcher:
        orchestrator = AggregationOrchestrator(backend, dispatcher, settings=settings)
        try:
            yield orchestrator
        finally:
            await orchestrator.close()


def _print_selections(selections: list[StatSelection]) -> None:
    print(json.dumps([s.model_dump(mode="json") for s in selections], indent=2))


def cmd_games(args: argparse.Namespace) -> int:
    """Print the game -> platforms table."""
    print(f"{'Game':<20} {'Platform':<12} Requires")
    print("-" * 60)
    for config in GAME_REGISTRY.values():
        for platform in config.platforms:
            required = PLATFORM_LINK_FIELDS[platform]
            if required is None:
                requires = "-"
            elif isinstance(required, tuple):
                requires = " or ".join(required)
            else:
                requires = required
            print(f"{config.id.value:<20} {platform.value:<12} {requires}")
    return 0


async def cmd_show_async(args: argparse.Namespace) -> int:
    async with open_orchestrator() as orchestrator:
        selections = await orchestrator.start()
    _print_selections(selections)
    return 0


async def cmd_add_async(args: argparse.Namespace) -> int:
    async with open_orchestrator() as orchestrator:
        await orchestrator.load_selections()
        try:
            selection = await orchestrator.add_selection(args.game, args.platform)
        except MissingAccountError as e:
            logger.error(e.message)
            return 1
        # Let the scheduled first refresh finish before the clients close.
        await orchestrator.drain()
        _print_selections([orchestrator.get_selection(selection.id) or selection])
    return 0


async def cmd_remove_async(args: argparse.Namespace) -> int:
    async with open_orchestrator() as orchestrator:
        await orchestrator.load_selections()
        try:
            removed = await orchestrator.remove_selection(args.id)
        except KeyError:
            logger.error("No stat selection with id %d", args.id)
            return 1
    logger.info("Stopped tracking %s on %s", removed.game.value, removed.platform.value)
    return 0


async def cmd_refresh_async(args: argparse.Namespace) -> int:
    async with open_orchestrator() as orchestrator:
        await orchestrator.load_profile()
        await orchestrator.load_selections()
        if args.id is None:
            selections = await orchestrator.refresh_all()
        else:
            try:
                selections = [await orchestrator.refresh_one(args.id)]
            except KeyError:
                logger.error("No stat selection with id %d", args.id)
                return 1
    _print_selections(selections)
    return 0


def _run(coro_func):
    """Wrap an async command: run it and turn engine errors into exit code 1."""

    def runner(args: argparse.Namespace) -> int:
        try:
            return asyncio.run(coro_func(args))
        except StatsError as e:
            logger.error("%s failed: %s", args.command, e.message)
            return 1

    return runner


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    parser = argparse.ArgumentParser(
        description="Elo Insight stats CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("games", help="List supported games and platforms")
    subparsers.add_parser("show", help="Load, refresh and print all tracked stats")

    add_parser = subparsers.add_parser("add", help="Track a game on a platform")
    add_parser.add_argument("game", help='Game name, e.g. "CS2" or "League of Legends"')
    add_parser.add_argument("platform", help='Platform name, e.g. "Steam" or "Riot"')

    remove_parser = subparsers.add_parser("remove", help="Stop tracking a selection")
    remove_parser.add_argument("id", type=int, help="Selection id")

    refresh_parser = subparsers.add_parser("refresh", help="Refresh tracked stats")
    refresh_parser.add_argument("--id", type=int, help="Refresh only this selection, ignoring freshness")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    commands = {
        "games": cmd_games,
        "show": _run(cmd_show_async),
        "add": _run(cmd_add_async),
        "remove": _run(cmd_remove_async),
        "refresh": _run(cmd_refresh_async),
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
