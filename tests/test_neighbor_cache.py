from __future__ import annotations

from engine.neighbor_cache import RecentNeighborCache
from metadata.types import Artist, NeighborEdge, TrackEvidence


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _edges(source: Artist, *names: str) -> list[NeighborEdge]:
    return [
        NeighborEdge(source=source, artist=Artist(name.lower(), name), tracks=(TrackEvidence(title=f"{name} song"),))
        for name in names
    ]


def test_put_and_lookup_by_id_or_name() -> None:
    cache = RecentNeighborCache(ttl_seconds=60, max_entries=10)
    artist = Artist("mbid-1", "Eminem")
    cache.put_edges(artist, _edges(artist, "Rihanna", "Dido"), limit=50)

    by_id = cache.lookup("mbid-1")
    by_name = cache.lookup("  eMiNeM ")

    assert by_id is not None and by_name is not None
    assert by_id == by_name
    assert [edge.artist.name for edge in by_id.edges] == ["Rihanna", "Dido"]
    payload = by_id.to_dict()
    assert payload["artist"] == {"id": "mbid-1", "name": "Eminem"}
    assert payload["count"] == 2
    assert payload["neighbors"][0]["tracks"][0]["name"] == "Rihanna song"


def test_entries_expire() -> None:
    clock = _Clock()
    cache = RecentNeighborCache(ttl_seconds=10, max_entries=10, clock=clock)
    artist = Artist("a", "A")
    cache.put_edges(artist, _edges(artist, "B"))

    clock.now = 9.0
    assert cache.get("a") is not None
    clock.now = 10.0
    assert cache.get("a") is None
    assert cache.lookup("A") is None
    assert len(cache) == 0


def test_least_recently_used_entry_is_evicted() -> None:
    cache = RecentNeighborCache(ttl_seconds=60, max_entries=2)
    for name in ("a", "b"):
        cache.put_edges(Artist(name, name.upper()), [])
    assert cache.get("a") is not None  # touch "a" so "b" is the oldest
    cache.put_edges(Artist("c", "C"), [])

    assert cache.get("b") is None
    assert cache.lookup("B") is None
    assert cache.get("a") is not None
    assert cache.get("c") is not None


def test_get_edges_requires_a_large_enough_limit() -> None:
    cache = RecentNeighborCache(ttl_seconds=60, max_entries=10)
    artist = Artist("a", "A")
    cache.put_edges(artist, _edges(artist, "B"), limit=100)

    assert cache.get_edges("a", min_limit=100) is not None
    assert cache.get_edges("a", min_limit=200) is None
    assert cache.get_edges("missing") is None


def test_replacing_an_entry_updates_name_index() -> None:
    cache = RecentNeighborCache(ttl_seconds=60, max_entries=10)
    cache.put_edges(Artist("a", "Old Name"), [])
    cache.put_edges(Artist("a", "New Name"), [])

    assert cache.lookup("old name") is None
    assert cache.lookup("new name").artist.name == "New Name"
