from app.musicbrainz.client import (
    MUSICBRAINZ_USER_AGENT,
    MusicBrainzClient,
    MusicBrainzRateLimitError,
    get_musicbrainz_client,
)
from app.musicbrainz.service import (
    MBArtist,
    MBRecording,
    MusicBrainzService,
    RecordingPage,
    get_musicbrainz_service,
)

__all__ = [
    "MUSICBRAINZ_USER_AGENT",
    "MBArtist",
    "MBRecording",
    "MusicBrainzClient",
    "MusicBrainzRateLimitError",
    "MusicBrainzService",
    "RecordingPage",
    "get_musicbrainz_client",
    "get_musicbrainz_service",
]
