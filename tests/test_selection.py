"""Tests for picking and ordering the playlist tracks."""
from fiply.selection import most_played_cutoff, order_most_aired, order_played_once
from fiply.types import PlayEvent, RankedGroup, TrackMetadata


def groups(counts):
    return [RankedGroup(event=PlayEvent(title=f"t{i}", start_time=i), count=c) for i, c in enumerate(counts)]


def meta(uri, occ, pop):
    g = RankedGroup(event=PlayEvent(title=uri, start_time=0), count=occ)
    return g, TrackMetadata(spotify_id=uri, spotify_popularity=pop, fip_occ=occ)


class TestMostPlayedCutoff:

    def test_keeps_ties_at_cutoff(self):
        ranked = groups([9, 7, 5, 5, 5, 2])
        assert [g.count for g in most_played_cutoff(ranked, top_n=3)] == [9, 7, 5, 5, 5]

    def test_exact_cutoff(self):
        ranked = groups([9, 7, 5, 2])
        assert [g.count for g in most_played_cutoff(ranked, top_n=2)] == [9, 7]

    def test_short_list_returns_everything(self):
        ranked = groups([3, 1])
        assert most_played_cutoff(ranked, top_n=150) == ranked

    def test_empty(self):
        assert most_played_cutoff([], top_n=150) == []
        assert most_played_cutoff(groups([1]), top_n=0) == []


class TestOrdering:

    def test_most_aired_by_occurrences_then_popularity(self):
        metas = [meta("a", 2, 90), meta("b", 5, 10), meta("c", 5, 40), meta("d", 1, 100)]
        assert order_most_aired(metas) == ["c", "b", "a", "d"]

    def test_played_once_least_popular_first(self):
        metas = [meta("a", 1, 50), meta("b", 1, 3), meta("c", 1, 20)]
        assert order_played_once(metas) == ["b", "c", "a"]

    def test_limit(self):
        metas = [meta(f"u{i}", 1, i) for i in range(250)]
        assert len(order_most_aired(metas, limit=100)) == 100
        assert order_played_once(metas, limit=2) == ["u0", "u1"]
