#!/usr/bin/env python
"""Pokédex list browser entry point.

Runs the list engine headless on a qasync event loop and prints the
resulting list, page by page.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

import qasync
from PySide6.QtCore import QCoreApplication

from pokedex.app import ApplicationContext
from pokedex.domain.models import Failed, ListFilters, Ready, SortKey, SortOrder
from pokedex.services.debounce import normalize_query


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Browse the Pokédex list from the terminal.")
    parser.add_argument("--search", help="Search by name instead of browsing")
    parser.add_argument("--type", dest="type_", help="Filter by type, e.g. fire")
    parser.add_argument("--generation", type=int, help="Filter by generation id")
    parser.add_argument("--ability", help="Filter by ability name (substring)")
    parser.add_argument("--sort-by", choices=[key.value for key in SortKey], default=SortKey.ID.value)
    parser.add_argument("--desc", action="store_true", help="Sort descending")
    parser.add_argument("--pages", type=int, default=1, help="Number of pages to fetch")
    parser.add_argument("--settings", type=Path, help="Settings file path")
    return parser


def print_state(state) -> None:
    """Print a ViewState in a terminal-friendly form."""
    if isinstance(state, Failed):
        print(f"Error: {state.message}")
        return

    if not isinstance(state, Ready):
        return

    for entity in state.items:
        generation = f"gen {entity.group_id}" if entity.group_id else ""
        print(f"#{entity.id:<5} {entity.display_name:<24} {entity.tags_label:<20} {generation}")

    if state.load_more_error:
        print(f"(could not load more: {state.load_more_error})")

    suffix = "" if state.exhausted else ", more available"
    print(f"{len(state.items)} shown{suffix}")


async def browse(ctx: ApplicationContext, args: argparse.Namespace) -> int:
    engine = ctx.engine

    try:
        if args.search:
            engine.search(normalize_query(args.search))
        else:
            filters = ListFilters(type=args.type_, generation=args.generation, ability=args.ability)
            engine.load_list(
                filters,
                SortOrder.DESC if args.desc else SortOrder.ASC,
                SortKey(args.sort_by),
            )
        await engine.drain()

        for _ in range(max(args.pages, 1) - 1):
            if engine.load_more() is None:
                break
            await engine.drain()

        print_state(engine.current_state())
        return 1 if isinstance(engine.current_state(), Failed) else 0
    finally:
        await ctx.close()


def run(argv: Optional[list[str]] = None) -> None:
    """Run the browser on a qasync event loop."""
    args = build_argument_parser().parse_args(argv)

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    app.setApplicationName("Pokedex")

    ctx = ApplicationContext(settings_path=args.settings)
    ctx.configure_logging()

    loop = qasync.QEventLoop(app)
    asyncio.set_event_loop(loop)

    with loop:
        try:
            exit_code = loop.run_until_complete(browse(ctx, args))
        except KeyboardInterrupt:
            print("\nShutting down...")
            exit_code = 130

    sys.exit(exit_code)


if __name__ == "__main__":
    run()
