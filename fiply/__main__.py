from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path

from fiply.config import load_config
from fiply.errors import CatalogError, CollectionError
from fiply.fip_client import FipClient
from fiply.history import HistoryCollector, RetryPolicy
from fiply.logging_utils import configure_logging
from fiply.ranking import rank
from fiply.selection import most_played_cutoff, order_most_aired, order_played_once
from fiply.spotify_client import SpotifyCatalog, find_tracks_metadata, get_spotify_client

logger = logging.getLogger("fiply")

A_DAY = 60 * 60 * 24


def _print_progress(label: str):
    def progress(i: int, total: int, group) -> None:
        print(f"   [{i}/{total}] {label}: {group.title} ({group.count})")
    return progress


def main() -> int:
    ap = argparse.ArgumentParser(
        description="fiply: turn the last days of FIP airplay into two Spotify playlists."
    )
    ap.add_argument("--config", default=None, help="Path to config file (default: ~/.config/fiply/config.toml)")

    # History walk
    ap.add_argument("--days", type=float, default=None, help="Lookback window in days (default 7)")
    ap.add_argument("--max-pages", type=int, default=None, help="Stop after this many extra history pages (default 100)")
    ap.add_argument(
        "--allow-partial",
        action="store_true",
        help="Keep the songs fetched so far when a page keeps failing instead of aborting",
    )

    # Playlists
    ap.add_argument("--top-n", type=int, default=None, help="Rank of the most played cutoff (default 150)")
    ap.add_argument("--limit", type=int, default=None, help="Tracks per playlist (default 100)")
    ap.add_argument("--dry-run", action="store_true", help="Rank and print, do not touch Spotify")

    # Logging
    ap.add_argument("--log-level", default="WARNING", help="Console log level (default WARNING)")
    ap.add_argument("--log-file", default=None, help="Also write DEBUG logs to this file")

    args = ap.parse_args()

    configure_logging(level=args.log_level, log_file=args.log_file)
    cfg = load_config(Path(args.config) if args.config else None)

    hist_cfg = cfg["history"]
    lookback_days = args.days if args.days is not None else float(hist_cfg["lookback_days"])
    max_pages = args.max_pages if args.max_pages is not None else int(hist_cfg["max_pages"])
    allow_partial = args.allow_partial or bool(hist_cfg["allow_partial"])

    pl_cfg = cfg["playlists"]
    top_n = args.top_n if args.top_n is not None else int(pl_cfg["top_n"])
    limit = args.limit if args.limit is not None else int(pl_cfg["limit"])

    started = time.monotonic()

    print("Getting songs from FIP...")
    collector = HistoryCollector(
        FipClient.from_config(cfg),
        retry_policy=RetryPolicy(
            max_attempts=int(hist_cfg["retry_attempts"]),
            delay=float(hist_cfg["retry_delay_ms"]) / 1000.0,
        ),
        max_pages=max_pages,
        allow_partial=allow_partial,
    )
    try:
        songs = collector.collect_since(lookback_days * A_DAY)
    except CollectionError as e:
        logger.error("History collection failed: %s", e)
        print(f"Could not fetch FIP history ({e}); playlists left untouched.")
        return 1

    ranked, played_once = rank(songs)
    most_played = most_played_cutoff(ranked, top_n=top_n)
    print(
        f"Fetched {len(songs)} plays: {len(ranked)} distinct titles, "
        f"{len(most_played)} most played, {len(played_once)} played once"
    )

    if args.dry_run:
        print("Most aired:")
        for g in most_played[:limit]:
            print(f"   {g.count:3d}  {g.title} - {', '.join(g.event.interpreters)}")
        print("Played once:")
        for g in played_once[:limit]:
            print(f"   {g.count:3d}  {g.title} - {', '.join(g.event.interpreters)}")
        return 0

    if not songs:
        print("No songs collected; playlists left untouched.")
        return 1

    spotify_cfg = cfg["spotify"]
    delay = float(spotify_cfg["search_delay_ms"]) / 1000.0
    catalog = SpotifyCatalog(get_spotify_client(cache_path=spotify_cfg.get("cache_path")))

    try:
        # fail early if we cannot reach the playlists
        catalog.check_playlists([pl_cfg["most_aired"], pl_cfg["played_once"]])

        print(f"Getting most aired tracks ({len(most_played)}) metadata from Spotify...")
        popular_meta = find_tracks_metadata(
            catalog, most_played, delay=delay, progress=_print_progress("most aired")
        )
        most_aired_ids = order_most_aired(popular_meta, limit=limit)

        print(f"Getting played once tracks ({len(played_once)}) metadata from Spotify...")
        once_meta = find_tracks_metadata(
            catalog, played_once, delay=delay, progress=_print_progress("played once")
        )
        played_once_ids = order_played_once(once_meta, limit=limit)

        catalog.replace_playlist(pl_cfg["most_aired"], most_aired_ids)
        print(f"Playlist \"Discover FIPly\" updated with {len(most_aired_ids)} tracks")
        catalog.replace_playlist(pl_cfg["played_once"], played_once_ids)
        print(f"Playlist \"What the Fip ?!\" updated with {len(played_once_ids)} tracks")
    except CatalogError as e:
        logger.error("Spotify update failed: %s", e)
        print(f"Spotify update failed: {e}")
        return 1

    print(f"Done in {time.monotonic() - started:.1f}s")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
