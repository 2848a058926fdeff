"""Recently expanded neighbor sets, shared between searches and the lookup endpoint."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from config import settings
from metadata.types import Artist, NeighborEdge


@dataclass(frozen=True)
class NeighborCacheEntry:
    artist: Artist
    edges: tuple[NeighborEdge, ...]
    limit: int
    stored_at: float
    expires_at: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "artist": self.artist.to_dict(),
            "neighbors": [
                {
                    "id": edge.artist.id,
                    "name": edge.artist.name,
                    "link": edge.link,
                    "tracks": [track.to_dict() for track in edge.tracks],
                }
                for edge in self.edges
            ],
            "count": len(self.edges),
        }


class RecentNeighborCache:
    """Thread-safe TTL + LRU map of artist id to its last neighbor set.

    Entries are also reachable by lower-cased artist name. Writers are
    running searches; readers are other searches and status endpoints.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float | None = None,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = float(settings.NEIGHBOR_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds)
        self.max_entries = max(1, int(settings.NEIGHBOR_CACHE_MAX_ENTRIES if max_entries is None else max_entries))
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: OrderedDict[str, NeighborCacheEntry] = OrderedDict()
        self._names: dict[str, str] = {}

    def _drop_locked(self, artist_id: str) -> None:
        entry = self._entries.pop(artist_id, None)
        if entry is None:
            return
        name_key = entry.artist.name.strip().lower()
        if name_key and self._names.get(name_key) == artist_id:
            self._names.pop(name_key, None)

    def _live_locked(self, artist_id: str, now: float) -> NeighborCacheEntry | None:
        entry = self._entries.get(artist_id)
        if entry is None:
            return None
        if entry.expires_at <= now:
            self._drop_locked(artist_id)
            return None
        self._entries.move_to_end(artist_id)
        return entry

    def put_edges(self, artist: Artist, edges: Iterable[NeighborEdge], *, limit: int = 0) -> None:
        if artist is None or not artist.id:
            return
        now = self._clock()
        entry = NeighborCacheEntry(
            artist=artist,
            edges=tuple(edges),
            limit=int(limit),
            stored_at=now,
            expires_at=now + self.ttl_seconds,
        )
        with self._lock:
            self._drop_locked(artist.id)
            self._entries[artist.id] = entry
            name_key = artist.name.strip().lower()
            if name_key:
                self._names[name_key] = artist.id
            while len(self._entries) > self.max_entries:
                oldest = next(iter(self._entries))
                self._drop_locked(oldest)

    def get(self, artist_id: str) -> NeighborCacheEntry | None:
        with self._lock:
            return self._live_locked(artist_id, self._clock())

    def get_edges(self, artist_id: str, *, min_limit: int = 0) -> tuple[NeighborEdge, ...] | None:
        entry = self.get(artist_id)
        if entry is None or entry.limit < min_limit:
            return None
        return entry.edges

    def lookup(self, key: str) -> NeighborCacheEntry | None:
        """Find an entry by artist id or, failing that, by case-insensitive name."""
        cleaned = (key or "").strip()
        if not cleaned:
            return None
        with self._lock:
            now = self._clock()
            entry = self._live_locked(cleaned, now)
            if entry is not None:
                return entry
            artist_id = self._names.get(cleaned.lower())
            if artist_id is None:
                return None
            return self._live_locked(artist_id, now)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._names.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["NeighborCacheEntry", "RecentNeighborCache"]
