"""Neighbor resolvers: who did an artist record with, and on which tracks.

A resolver answers ``resolve(artist, limit, offline)`` with a
``NeighborLookup``. The status follows HTTP conventions whatever the
backend: 400 when the artist has no id, 429 when an upstream rate limit was
hit, 500 when the backing store failed and 200 otherwise, including the
empty case. Resolvers are shared by concurrent searches and keep no
per-search state.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from app.musicbrainz.client import MusicBrainzRateLimitError
from config import settings
from db.collab_store import CollabStore, cover_art_url
from engine.errors import (
    STATUS_INTERNAL_ERROR,
    STATUS_INVALID_INPUT,
    STATUS_OK,
    STATUS_RATE_LIMITED,
)
from metadata.types import Artist, NeighborEdge, TrackEvidence

if TYPE_CHECKING:
    from app.musicbrainz.service import MusicBrainzService
    from engine.neighbor_cache import RecentNeighborCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NeighborLookup:
    edges: tuple[NeighborEdge, ...] = ()
    status: int = STATUS_OK
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK

    @property
    def rate_limited(self) -> bool:
        return self.status == STATUS_RATE_LIMITED


class NeighborResolver(Protocol):
    def resolve(self, artist: Artist, limit: int = 0, offline: bool = False) -> NeighborLookup:
        ...


def clamp_neighbor_limit(limit: int | None) -> int:
    """Apply the default for ``limit <= 0`` and the hard ceiling."""
    try:
        value = int(limit or 0)
    except (TypeError, ValueError):
        value = 0
    if value <= 0:
        value = settings.DEFAULT_NEIGHBOR_LIMIT
    return min(value, settings.MAX_NEIGHBOR_LIMIT)


@dataclass
class _EdgeBuilder:
    """Groups evidence per neighbor, dropping repeated track ids per neighbor only."""

    source: Artist
    order: list[str] = field(default_factory=list)
    artists: dict[str, Artist] = field(default_factory=dict)
    tracks: dict[str, list[TrackEvidence]] = field(default_factory=dict)
    seen: dict[str, set[str]] = field(default_factory=dict)

    def add(self, neighbor: Artist, track: TrackEvidence) -> None:
        if neighbor.id not in self.artists:
            self.order.append(neighbor.id)
            self.artists[neighbor.id] = neighbor
            self.tracks[neighbor.id] = []
            self.seen[neighbor.id] = set()
        key = track.id or track.recording_id
        if key and key in self.seen[neighbor.id]:
            return
        if key:
            self.seen[neighbor.id].add(key)
        self.tracks[neighbor.id].append(track)

    def __len__(self) -> int:
        return len(self.order)

    def __contains__(self, neighbor_id: str) -> bool:
        return neighbor_id in self.artists

    def build(self) -> tuple[NeighborEdge, ...]:
        return tuple(
            NeighborEdge(
                source=self.source,
                artist=self.artists[neighbor_id],
                tracks=tuple(self.tracks[neighbor_id]),
            )
            for neighbor_id in self.order
        )


class StoreNeighborResolver:
    """Neighbors from the local ``artist_collab`` index."""

    def __init__(self, store: CollabStore) -> None:
        self.store = store

    def resolve(self, artist: Artist, limit: int = 0, offline: bool = False) -> NeighborLookup:
        # offline has no meaning for a local store.
        if artist is None or not (artist.id or "").strip():
            return NeighborLookup(status=STATUS_INVALID_INPUT, error="artist missing id")
        limit = clamp_neighbor_limit(limit)
        try:
            rows = self.store.fetch_collaborations(artist.id, limit)
        except sqlite3.Error:
            logger.exception("collaboration query failed artist_id=%s", artist.id)
            return NeighborLookup(status=STATUS_INTERNAL_ERROR, error="neighbor store unavailable")

        builder = _EdgeBuilder(source=artist)
        for row in rows:
            if not row.track_gid:
                logger.debug("skipping track without id neighbor=%s", row.neighbor_name)
                continue
            builder.add(
                Artist(id=row.neighbor_gid, name=row.neighbor_name),
                TrackEvidence(
                    title=row.track_name,
                    id=row.track_gid,
                    recording_id=row.recording_gid,
                    recording_name=row.recording_name,
                    cover_url=row.cover_url,
                ),
            )
        return NeighborLookup(edges=builder.build())


class MusicBrainzNeighborResolver:
    """Neighbors from co-credited artists on the artist's MusicBrainz recordings."""

    def __init__(
        self,
        service: "MusicBrainzService | None" = None,
        *,
        page_limit: int | None = None,
        max_pages: int | None = None,
    ) -> None:
        if service is None:
            from app.musicbrainz.service import get_musicbrainz_service

            service = get_musicbrainz_service()
        self.service = service
        self.page_limit = page_limit or settings.MUSICBRAINZ_RECORDING_PAGE_LIMIT
        self.max_pages = max(1, max_pages or settings.MUSICBRAINZ_MAX_RECORDING_PAGES)

    def resolve(self, artist: Artist, limit: int = 0, offline: bool = False) -> NeighborLookup:
        if artist is None or not (artist.id or "").strip():
            return NeighborLookup(status=STATUS_INVALID_INPUT, error="artist missing id")
        limit = clamp_neighbor_limit(limit)
        builder = _EdgeBuilder(source=artist)
        offset = 0
        for page_number in range(self.max_pages):
            try:
                page = self.service.browse_artist_recordings(
                    artist.id,
                    offset=offset,
                    limit=self.page_limit,
                    cache_only=offline,
                )
            except MusicBrainzRateLimitError as exc:
                logger.warning("musicbrainz rate limited artist_id=%s", artist.id)
                return NeighborLookup(status=STATUS_RATE_LIMITED, error=str(exc))
            if page is None:
                if page_number == 0 and not offline:
                    return NeighborLookup(status=STATUS_INTERNAL_ERROR, error="musicbrainz lookup failed")
                break
            for recording in page.recordings:
                evidence = TrackEvidence(
                    title=recording.title,
                    id=recording.id,
                    recording_id=recording.id,
                    recording_name=recording.title,
                    cover_url=cover_art_url(recording.release_id),
                )
                for credited in recording.artists:
                    if credited.id == artist.id:
                        continue
                    if credited.id not in builder and len(builder) >= limit:
                        continue
                    builder.add(Artist(id=credited.id, name=credited.name), evidence)
            if not page.has_more:
                break
            offset = page.next_offset
        return NeighborLookup(edges=builder.build())


class CachingNeighborResolver:
    """Answers from the recent-neighbor cache before asking ``inner``.

    Only successful lookups are cached; a cached entry is reused when it was
    fetched with at least the requested limit.
    """

    def __init__(self, inner: NeighborResolver, cache: "RecentNeighborCache") -> None:
        self.inner = inner
        self.cache = cache

    def resolve(self, artist: Artist, limit: int = 0, offline: bool = False) -> NeighborLookup:
        limit = clamp_neighbor_limit(limit)
        if artist is not None and artist.id:
            cached = self.cache.get_edges(artist.id, min_limit=limit)
            if cached is not None:
                return NeighborLookup(edges=tuple(cached[:limit]))
        lookup = self.inner.resolve(artist, limit, offline)
        if lookup.ok:
            self.cache.put_edges(artist, lookup.edges, limit=limit)
        return lookup


__all__ = [
    "CachingNeighborResolver",
    "MusicBrainzNeighborResolver",
    "NeighborLookup",
    "NeighborResolver",
    "StoreNeighborResolver",
    "clamp_neighbor_limit",
]
