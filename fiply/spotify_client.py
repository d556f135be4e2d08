from __future__ import annotations

import logging
import os
import sys
import time
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

import requests
from spotipy import Spotify
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyOAuth

from fiply.config import load_env
from fiply.errors import CatalogError
from fiply.history import RetryPolicy
from fiply.types import RankedGroup, TrackMetadata

logger = logging.getLogger(__name__)


SCOPES = [
    "playlist-modify-private",
    "playlist-modify-public",
]

DEFAULT_CACHE_PATH = Path("~/.cache/fiply/spotify_token").expanduser()

# Spotify accepts at most 100 items per playlist request
_PLAYLIST_BATCH = 100

_CATALOG_RETRYABLE = (
    SpotifyException,
    requests.exceptions.Timeout,
    requests.exceptions.ConnectionError,
)

# rate limiting and server-side failures; other 4xx are permanent
_RETRY_STATUSES = (429, 500, 502, 503, 504)


def is_transient(e: BaseException) -> bool:
    if isinstance(e, SpotifyException):
        return e.http_status in _RETRY_STATUSES
    return True


def check_env() -> List[str]:
    required = ["SPOTIFY_CLIENT_ID", "SPOTIFY_CLIENT_SECRET", "SPOTIFY_REDIRECT_URI"]
    return [k for k in required if not os.getenv(k)]


def get_spotify_client(
    cache_path: Optional[Path] = None,
    open_browser: bool = True,
) -> Spotify:
    """
    Create an authenticated Spotify client from SPOTIFY_* environment
    variables (or a .env file). The OAuth token is cached on disk.
    """
    load_env()

    missing = check_env()
    if missing:
        print(
            f"Missing environment variables: {', '.join(missing)}\n"
            "Create a Spotify app at https://developer.spotify.com/dashboard\n"
            "and set them in a .env file or your environment.",
            file=sys.stderr,
        )
        raise SystemExit(1)

    cache_path = Path(cache_path or DEFAULT_CACHE_PATH).expanduser()
    cache_path.parent.mkdir(parents=True, exist_ok=True)

    oauth = SpotifyOAuth(
        scope=SCOPES,
        redirect_uri=os.getenv("SPOTIFY_REDIRECT_URI"),
        client_id=os.getenv("SPOTIFY_CLIENT_ID"),
        client_secret=os.getenv("SPOTIFY_CLIENT_SECRET"),
        open_browser=open_browser,
        cache_path=str(cache_path),
    )
    return Spotify(auth_manager=oauth)


def build_query(title: str, disambiguator: Optional[str], by: str = "album") -> str:
    q = f"track:{title}"
    if disambiguator:
        q += f" {by}:{disambiguator}"
    return q


class SpotifyCatalog:
    """Track search and playlist replacement on top of a spotipy client."""

    def __init__(self, sp: Spotify, retry_policy: Optional[RetryPolicy] = None):
        self.sp = sp
        self.retry_policy = retry_policy or RetryPolicy(retry_on=_CATALOG_RETRYABLE, retry_if=is_transient)

    def _call(self, func: Callable, *args, **kwargs):
        try:
            return self.retry_policy.call(func, *args, **kwargs)
        except _CATALOG_RETRYABLE as e:
            raise CatalogError(f"Spotify call {getattr(func, '__name__', func)} failed: {e}") from e

    def resolve(self, title: str, disambiguator: Optional[str], by: str = "album") -> Optional[Tuple[str, int]]:
        """Best match for a track as ("spotify:track:<id>", popularity), or None."""
        q = build_query(title, disambiguator, by=by)
        logger.debug("Searching for track with query %s", q)
        res = self._call(self.sp.search, q=q, type="track", limit=1)
        items = (res or {}).get("tracks", {}).get("items") or []
        if not items:
            return None
        best = items[0]
        track_id = best.get("id")
        if not track_id:
            return None
        return f"spotify:track:{track_id}", int(best.get("popularity") or 0)

    def resolve_group(self, group: RankedGroup) -> Optional[Tuple[str, int]]:
        ev = group.event
        if ev.album:
            return self.resolve(ev.title, ev.album, by="album")
        return self.resolve(ev.title, ev.primary_interpreter, by="artist")

    def check_playlists(self, playlist_ids: Iterable[str]) -> None:
        """Fetch each playlist so auth or id problems surface before any update."""
        for pid in playlist_ids:
            self._call(self.sp.playlist, pid, fields="id,name")

    def replace_playlist(self, playlist_id: str, uris: Sequence[str]) -> None:
        logger.info("Updating playlist %s with %d tracks", playlist_id, len(uris))
        uris = list(uris)
        self._call(self.sp.playlist_replace_items, playlist_id, uris[:_PLAYLIST_BATCH])
        for i in range(_PLAYLIST_BATCH, len(uris), _PLAYLIST_BATCH):
            self._call(self.sp.playlist_add_items, playlist_id, uris[i:i + _PLAYLIST_BATCH])


def find_tracks_metadata(
    catalog: SpotifyCatalog,
    groups: Sequence[RankedGroup],
    delay: float = 0.05,
    sleep: Callable[[float], None] = time.sleep,
    progress: Optional[Callable[[int, int, RankedGroup], None]] = None,
) -> List[Tuple[RankedGroup, TrackMetadata]]:
    """
    Resolve each group against the catalog, one call at a time with `delay`
    seconds between calls to stay under the Spotify rate limit. Groups with no
    match are dropped.
    """
    metas: List[Tuple[RankedGroup, TrackMetadata]] = []
    total = len(groups)
    for i, g in enumerate(groups, start=1):
        found = catalog.resolve_group(g)
        logger.debug("Search result for %r: %s", g.title, found)
        if found is not None:
            spotify_id, popularity = found
            metas.append((g, TrackMetadata(
                spotify_id=spotify_id,
                spotify_popularity=popularity,
                fip_occ=g.count,
            )))
        if progress is not None:
            progress(i, total, g)
        sleep(delay)
    return metas
