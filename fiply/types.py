from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from fiply.errors import RecordParseError


@dataclass(frozen=True)
class PlayEvent:
    title: str                               # feed field "subtitle"; grouping key
    start_time: int                          # seconds since epoch
    album: str = ""
    interpreters: Tuple[str, ...] = ()
    year: Optional[int] = None

    @property
    def primary_interpreter(self) -> Optional[str]:
        return self.interpreters[0] if self.interpreters else None

    @classmethod
    def from_node(cls, node: Any) -> "PlayEvent":
        """
        Build a PlayEvent from one `node` of the timeline feed.

        subtitle, start_time, album and interpreters are required; year may be
        missing or null. Anything else in the node is ignored.
        """
        if not isinstance(node, dict):
            raise RecordParseError(f"node is not an object: {type(node).__name__}")

        subtitle = node.get("subtitle")
        if not isinstance(subtitle, str):
            raise RecordParseError("missing or invalid 'subtitle'")

        start_time = node.get("start_time")
        # bool is an int subclass, reject it explicitly
        if not isinstance(start_time, int) or isinstance(start_time, bool) or start_time < 0:
            raise RecordParseError("missing or invalid 'start_time'")

        album = node.get("album")
        if not isinstance(album, str):
            raise RecordParseError("missing or invalid 'album'")

        interpreters = node.get("interpreters")
        if not isinstance(interpreters, list) or not all(isinstance(i, str) for i in interpreters):
            raise RecordParseError("missing or invalid 'interpreters'")

        year = node.get("year")
        if year is not None and (not isinstance(year, int) or isinstance(year, bool)):
            raise RecordParseError("invalid 'year'")

        return cls(
            title=subtitle,
            start_time=start_time,
            album=album,
            interpreters=tuple(interpreters),
            year=year,
        )


@dataclass(frozen=True)
class PageInfo:
    end_cursor: str
    has_next_page: bool


@dataclass(frozen=True)
class Page:
    events: List[PlayEvent]      # feed order, not time-sorted
    page_info: PageInfo


@dataclass(frozen=True)
class RankedGroup:
    event: PlayEvent      # one occurrence of the title, not a merge
    count: int

    @property
    def title(self) -> str:
        return self.event.title


@dataclass(frozen=True)
class TrackMetadata:
    spotify_id: str               # "spotify:track:<id>"
    spotify_popularity: int
    fip_occ: int                  # times aired in the lookback window
