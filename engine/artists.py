"""Turn a user-supplied artist name or MBID into an ``Artist``."""

from __future__ import annotations

import logging
import re
import sqlite3
from typing import TYPE_CHECKING, Protocol

from app.musicbrainz.client import MusicBrainzRateLimitError
from db.collab_store import CollabStore
from engine.errors import RateLimitedError, ResolverFailure
from metadata.types import Artist

if TYPE_CHECKING:
    from app.musicbrainz.service import MusicBrainzService

_MBID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)
logger = logging.getLogger(__name__)


def looks_like_mbid(value: str) -> bool:
    return bool(_MBID_RE.match((value or "").strip()))


class ArtistResolver(Protocol):
    def resolve(self, query: str, offline: bool = False) -> Artist | None:
        ...


class IdentityArtistResolver:
    """Treats the query as the artist id; used when callers already hold ids."""

    def resolve(self, query: str, offline: bool = False) -> Artist | None:
        cleaned = (query or "").strip()
        if not cleaned:
            return None
        return Artist(id=cleaned, name=cleaned)


class StoreArtistResolver:
    def __init__(self, store: CollabStore) -> None:
        self.store = store

    def resolve(self, query: str, offline: bool = False) -> Artist | None:
        cleaned = (query or "").strip()
        if not cleaned:
            return None
        try:
            stored = None
            if looks_like_mbid(cleaned):
                stored = self.store.lookup_artist_by_gid(cleaned.lower())
            if stored is None:
                stored = self.store.lookup_artist_by_name(cleaned)
        except sqlite3.Error:
            logger.exception("artist lookup failed query=%s", cleaned)
            raise ResolverFailure("artist lookup failed") from None
        if stored is None:
            return None
        return Artist(id=stored.gid, name=stored.name)


class MusicBrainzArtistResolver:
    def __init__(self, service: "MusicBrainzService | None" = None) -> None:
        if service is None:
            from app.musicbrainz.service import get_musicbrainz_service

            service = get_musicbrainz_service()
        self.service = service

    def resolve(self, query: str, offline: bool = False) -> Artist | None:
        cleaned = (query or "").strip()
        if not cleaned:
            return None
        try:
            if looks_like_mbid(cleaned):
                found = self.service.get_artist(cleaned.lower(), cache_only=offline)
                if found is not None:
                    return Artist(id=found.id, name=found.name)
            hits = self.service.search_artists(cleaned, limit=5, cache_only=offline)
        except MusicBrainzRateLimitError:
            raise RateLimitedError() from None
        if not hits:
            return None
        best = hits[0]
        return Artist(id=best.id, name=best.name or cleaned)


__all__ = [
    "ArtistResolver",
    "IdentityArtistResolver",
    "MusicBrainzArtistResolver",
    "StoreArtistResolver",
    "looks_like_mbid",
]
