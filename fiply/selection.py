from __future__ import annotations

from typing import List, Sequence, Tuple

from fiply.types import RankedGroup, TrackMetadata

TOP_N = 150
PLAYLIST_LIMIT = 100


def most_played_cutoff(ranked: Sequence[RankedGroup], top_n: int = TOP_N) -> List[RankedGroup]:
    """
    Groups played at least as often as the top_n-th most played one.

    Everything tied with the top_n-th group is kept, so the result can be longer
    than top_n. With fewer than top_n groups every group is returned.
    """
    if not ranked or top_n <= 0:
        return []
    if len(ranked) < top_n:
        return list(ranked)
    occ_limit = ranked[top_n - 1].count
    out: List[RankedGroup] = []
    for g in ranked:
        if g.count < occ_limit:
            break
        out.append(g)
    return out


def order_most_aired(metas: Sequence[Tuple[RankedGroup, TrackMetadata]], limit: int = PLAYLIST_LIMIT) -> List[str]:
    # most aired first, Spotify popularity breaks ties
    ordered = sorted(metas, key=lambda m: (m[1].fip_occ, m[1].spotify_popularity), reverse=True)
    return [m[1].spotify_id for m in ordered[:limit]]


def order_played_once(metas: Sequence[Tuple[RankedGroup, TrackMetadata]], limit: int = PLAYLIST_LIMIT) -> List[str]:
    # least known first
    ordered = sorted(metas, key=lambda m: (m[1].fip_occ, m[1].spotify_popularity))
    return [m[1].spotify_id for m in ordered[:limit]]
