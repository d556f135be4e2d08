from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from fiply.types import PlayEvent, RankedGroup


def count_occurrences(events: Iterable[PlayEvent]) -> List[RankedGroup]:
    """
    One RankedGroup per distinct title (exact, case-sensitive), in the order
    titles were first seen. The first occurrence is kept as representative.
    """
    counts: Dict[str, int] = {}
    first_seen: Dict[str, PlayEvent] = {}
    for ev in events:
        if ev.title not in counts:
            counts[ev.title] = 0
            first_seen[ev.title] = ev
        counts[ev.title] += 1

    return [RankedGroup(event=first_seen[t], count=c) for t, c in counts.items()]


def rank(events: Iterable[PlayEvent]) -> Tuple[List[RankedGroup], List[RankedGroup]]:
    """
    Returns (most played first, played exactly once).

    Ties keep first-seen order: sorted() is stable and the groups come out
    of count_occurrences in that order.
    """
    groups = count_occurrences(events)
    by_count = sorted(groups, key=lambda g: -g.count)
    once = [g for g in groups if g.count == 1]
    return by_count, once
