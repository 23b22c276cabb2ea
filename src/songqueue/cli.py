"""
songqueue CLI - search the catalog, play a song, inspect the saved queue.
"""

import argparse
import asyncio
import sys
from typing import Any, Callable, Optional

from loguru import logger
from rich.table import Table

from songqueue.context import AppContext
from songqueue.core import (
    Config,
    SQLiteKeyValueStore,
    get_console,
    get_database_path,
    get_log_file_path,
    load_config,
    log,
    setup_loguru,
)
from songqueue.domain.catalog import CatalogClient, CatalogError, SearchPage
from songqueue.domain.playback import PlaybackError, PlaybackState
from songqueue.domain.playback.mpv import check_mpv_available
from songqueue.domain.playback.persistence import load_persisted
from songqueue.utils import format_duration, format_millis

SEARCH_TYPES = ("songs", "artists", "albums")


def render_search_page(
    page: SearchPage, kind: str, artwork_url: Optional[Callable[[Any], str]] = None
) -> Table:
    """Build a Rich table for one page of search results.

    Args:
        page: Search results
        kind: songs, artists or albums
        artwork_url: When given, adds an Artwork column with its result per item
    """
    table = Table(title=f"{kind.title()} ({page.total} total)")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Name")

    if kind == "songs":
        table.add_column("Artist")
        table.add_column("Length", justify="right")
        rows = [
            [t.name, t.artist_display_name, format_duration(t.duration_seconds)]
            for t in page.items
        ]
    elif kind == "artists":
        table.add_column("Role")
        rows = [[a.name, a.role] for a in page.items]
    else:
        table.add_column("Artist")
        table.add_column("Year", justify="right")
        rows = [
            [a.name, a.artist_display_name, str(a.year or "")] for a in page.items
        ]

    if artwork_url is not None:
        table.add_column("Artwork", overflow="fold")
        for row, item in zip(rows, page.items):
            row.append(artwork_url(item))

    for i, row in enumerate(rows, start=page.start + 1):
        table.add_row(str(i), *row)
    return table


def run_search(
    config: Config, query: str, kind: str, page: int, show_artwork: bool = False
) -> int:
    """Search the catalog and print one page of results.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    client = CatalogClient(config.catalog)
    search = getattr(client, f"search_{kind}")
    try:
        results = search(query, page)
    except CatalogError as e:
        log(f"Search failed: {e}", level="error")
        return 1

    if not results.items:
        log(f"No {kind} found for '{query}'", level="warning")
        return 0

    artwork_url = client.artwork_url if show_artwork else None
    get_console().print(render_search_page(results, kind, artwork_url))
    return 0


def run_queue(config: Config) -> int:
    """Print the persisted queue, marking the last played track."""
    queue, last_track = load_persisted(SQLiteKeyValueStore(get_database_path(config)))
    if not queue:
        log("Queue is empty")
        return 0

    table = Table(title=f"Queue ({len(queue)} tracks)")
    table.add_column("", width=1)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Name")
    table.add_column("Artist")
    table.add_column("Length", justify="right")
    for i, track in enumerate(queue, start=1):
        marker = "▶" if last_track is not None and track.same_as(last_track) else ""
        table.add_row(
            marker,
            str(i),
            track.name,
            track.artist_display_name,
            format_duration(track.duration_seconds),
        )
    get_console().print(table)
    return 0


async def _play(config: Config, query: str) -> int:
    ctx = AppContext.create(config, console=get_console())
    try:
        results = await asyncio.to_thread(ctx.catalog.search_songs, query)
    except CatalogError as e:
        log(f"Search failed: {e}", level="error")
        return 1
    if not results.items:
        log(f"No songs found for '{query}'", level="warning")
        return 1

    track = results.items[0]
    finished = asyncio.Event()
    previous: Optional[PlaybackState] = None

    def on_state(state: PlaybackState) -> None:
        nonlocal previous
        if previous is not None and previous.is_playing and not state.is_playing:
            if not state.is_busy_loading:
                finished.set()
        previous = state

    await ctx.start()
    ctx.coordinator.subscribe(on_state)
    try:
        log(f"▶ {track.name} - {track.artist_display_name}")
        try:
            await ctx.coordinator.play_track(track)
        except PlaybackError as e:
            log(f"Playback failed: {e}", level="error")
            return 1

        with get_console().status("") as status:
            while not finished.is_set():
                state = ctx.coordinator.state
                status.update(
                    f"{format_millis(state.position_ms)} / {format_millis(state.duration_ms)}"
                )
                try:
                    await asyncio.wait_for(finished.wait(), timeout=1.0)
                except asyncio.TimeoutError:
                    continue
        return 0
    finally:
        await ctx.close()


def run_play(config: Config, query: str) -> int:
    """Search for query and play the first song until it ends."""
    if not check_mpv_available():
        log("mpv is not installed or not on PATH", level="error")
        return 1
    try:
        return asyncio.run(_play(config, query))
    except KeyboardInterrupt:
        return 130


def main() -> None:
    """Main entry point for the songqueue command."""
    parser = argparse.ArgumentParser(
        description="songqueue - search and play songs from the catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")

    search_parser = subparsers.add_parser("search", help="Search the catalog")
    search_parser.add_argument("query", nargs="+", help="Search text")
    search_parser.add_argument(
        "--type", dest="kind", choices=SEARCH_TYPES, default="songs",
        help="What to search for (default: songs)",
    )
    search_parser.add_argument("--page", type=int, default=1, help="Result page")
    search_parser.add_argument(
        "--artwork", action="store_true", help="Show artwork URLs"
    )

    play_parser = subparsers.add_parser("play", help="Play the best match for a query")
    play_parser.add_argument("query", nargs="+", help="Search text")

    subparsers.add_parser("queue", help="Show the saved queue")

    args = parser.parse_args()
    if not args.subcommand:
        parser.print_help()
        sys.exit(1)

    config = load_config()
    setup_loguru(
        get_log_file_path(config),
        level=config.logging.level,
        console_output=config.logging.console_output,
    )
    logger.debug(f"Running subcommand: {args.subcommand}")

    if args.subcommand == "search":
        sys.exit(run_search(
            config, " ".join(args.query), args.kind, args.page, args.artwork
        ))
    elif args.subcommand == "play":
        sys.exit(run_play(config, " ".join(args.query)))
    elif args.subcommand == "queue":
        sys.exit(run_queue(config))


if __name__ == "__main__":
    main()
