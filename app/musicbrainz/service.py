import logging
import threading
from dataclasses import dataclass
from typing import Any

from app.musicbrainz.client import (
    ARTIST_RECORDINGS_TTL_SECONDS,
    ARTIST_SEARCH_TTL_SECONDS,
    MusicBrainzClient,
    get_musicbrainz_client,
)

_ARTIST_ENDPOINT = "/ws/2/artist"
_RECORDING_ENDPOINT = "/ws/2/recording"
_MAX_PAGE_LIMIT = 100
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MBArtist:
    id: str
    name: str
    score: int = 0


@dataclass(frozen=True)
class MBRecording:
    id: str
    title: str
    artists: tuple[MBArtist, ...] = ()
    release_id: str = ""


@dataclass(frozen=True)
class RecordingPage:
    recordings: tuple[MBRecording, ...]
    offset: int
    total: int

    @property
    def next_offset(self) -> int:
        return self.offset + len(self.recordings)

    @property
    def has_more(self) -> bool:
        return bool(self.recordings) and self.next_offset < self.total


def _safe_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _lucene_escape(text: str) -> str:
    return (text or "").replace("\\", "\\\\").replace('"', '\\"')


def _decode_artist(payload: Any) -> MBArtist | None:
    if not isinstance(payload, dict):
        return None
    artist_id = str(payload.get("id") or "").strip()
    if not artist_id:
        return None
    return MBArtist(
        id=artist_id,
        name=str(payload.get("name") or "").strip(),
        score=_safe_int(payload.get("score")),
    )


def _decode_credits(artist_credit: Any) -> tuple[MBArtist, ...]:
    if not isinstance(artist_credit, list):
        return ()
    seen: set[str] = set()
    out: list[MBArtist] = []
    for part in artist_credit:
        if not isinstance(part, dict):
            continue
        artist = _decode_artist(part.get("artist"))
        if artist is None or artist.id in seen:
            continue
        seen.add(artist.id)
        # The credited name is what the recording shows; fall back to the artist's own name.
        credited = str(part.get("name") or "").strip()
        out.append(MBArtist(id=artist.id, name=artist.name or credited))
    return tuple(out)


def _decode_recording(payload: Any) -> MBRecording | None:
    if not isinstance(payload, dict):
        return None
    recording_id = str(payload.get("id") or "").strip()
    if not recording_id:
        return None
    release_id = ""
    releases = payload.get("releases")
    if isinstance(releases, list):
        for release in releases:
            if isinstance(release, dict) and release.get("id"):
                release_id = str(release["id"])
                break
    return MBRecording(
        id=recording_id,
        title=str(payload.get("title") or "").strip(),
        artists=_decode_credits(payload.get("artist-credit")),
        release_id=release_id,
    )


class MusicBrainzService:
    """Typed reads over the MusicBrainz web service.

    JSON shapes are decoded here, once, into the dataclasses above so the
    engine never handles raw payloads.
    """

    def __init__(self, client: MusicBrainzClient | None = None) -> None:
        self._client = client or get_musicbrainz_client()

    def search_artists(self, name: str, *, limit: int = 5, cache_only: bool = False) -> list[MBArtist]:
        cleaned = str(name or "").strip()
        if not cleaned:
            return []
        limit = max(1, min(int(limit), _MAX_PAGE_LIMIT))
        query = f'artist:"{_lucene_escape(cleaned)}"'
        payload = self._client.get_json(
            _ARTIST_ENDPOINT,
            params={"query": query, "limit": limit, "fmt": "json"},
            cache_key=f"artist_search:{cleaned.lower()}:{limit}",
            ttl_seconds=ARTIST_SEARCH_TTL_SECONDS,
            cache_only=cache_only,
        )
        if payload is None:
            return []
        artists = payload.get("artists")
        if not isinstance(artists, list):
            return []
        decoded = [artist for artist in (_decode_artist(item) for item in artists) if artist is not None]
        decoded.sort(key=lambda artist: -artist.score)
        return decoded

    def get_artist(self, artist_id: str, *, cache_only: bool = False) -> MBArtist | None:
        cleaned = str(artist_id or "").strip()
        if not cleaned:
            return None
        payload = self._client.get_json(
            f"{_ARTIST_ENDPOINT}/{cleaned}",
            params={"fmt": "json"},
            cache_key=f"artist:{cleaned}",
            ttl_seconds=ARTIST_SEARCH_TTL_SECONDS,
            cache_only=cache_only,
        )
        return _decode_artist(payload)

    def browse_artist_recordings(
        self,
        artist_id: str,
        *,
        offset: int = 0,
        limit: int = _MAX_PAGE_LIMIT,
        cache_only: bool = False,
    ) -> RecordingPage | None:
        """One page of the artist's recordings with credits and releases.

        Returns None when the page could not be fetched (or, with
        ``cache_only``, was not cached). A 429 propagates as
        ``MusicBrainzRateLimitError``.
        """
        cleaned = str(artist_id or "").strip()
        if not cleaned:
            return None
        offset = max(0, int(offset))
        limit = max(1, min(int(limit), _MAX_PAGE_LIMIT))
        payload = self._client.get_json(
            _RECORDING_ENDPOINT,
            params={"artist": cleaned, "inc": "artist-credits+releases", "offset": offset, "limit": limit, "fmt": "json"},
            cache_key=f"artist_recordings:{cleaned}:{offset}:{limit}",
            ttl_seconds=ARTIST_RECORDINGS_TTL_SECONDS,
            cache_only=cache_only,
        )
        if payload is None:
            return None
        items = payload.get("recordings")
        if not isinstance(items, list):
            items = []
        recordings = tuple(rec for rec in (_decode_recording(item) for item in items) if rec is not None)
        total = _safe_int(payload.get("recording-count"), len(recordings) + offset)
        logger.debug(f"[MUSICBRAINZ] recordings artist={cleaned} offset={offset} count={len(recordings)} total={total}")
        return RecordingPage(recordings=recordings, offset=offset, total=total)


_SERVICE: MusicBrainzService | None = None
_SERVICE_LOCK = threading.Lock()


def get_musicbrainz_service() -> MusicBrainzService:
    global _SERVICE
    if _SERVICE is not None:
        return _SERVICE
    with _SERVICE_LOCK:
        if _SERVICE is None:
            _SERVICE = MusicBrainzService()
    return _SERVICE
