"""Application settings constants."""

from __future__ import annotations

import os


def _env_float(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Wall-clock ceiling for one path search.
SEARCH_MAX_DURATION_SECONDS = _env_float("MELODYMAP_SEARCH_MAX_DURATION_SECONDS", 3000.0)

# Neighbor cap the engine asks for at each expanded artist.
SEARCH_NEIGHBOR_LIMIT = _env_int("MELODYMAP_SEARCH_NEIGHBOR_LIMIT", 5000)

# Resolver fallback when a caller passes limit <= 0, and the hard ceiling.
DEFAULT_NEIGHBOR_LIMIT = _env_int("MELODYMAP_DEFAULT_NEIGHBOR_LIMIT", 200)
MAX_NEIGHBOR_LIMIT = _env_int("MELODYMAP_MAX_NEIGHBOR_LIMIT", 20000)

# Similarity thresholds: edges found mid-search use the looser one.
EDGE_DEDUPE_THRESHOLD = _env_float("MELODYMAP_EDGE_DEDUPE_THRESHOLD", 0.65)
TRACK_DEDUPE_THRESHOLD = _env_float("MELODYMAP_TRACK_DEDUPE_THRESHOLD", 0.72)

# "store" reads the local collaboration index, "musicbrainz" calls the web service.
NEIGHBOR_BACKEND = (os.getenv("MELODYMAP_NEIGHBOR_BACKEND") or "store").strip().lower()

NEIGHBOR_CACHE_TTL_SECONDS = _env_int("MELODYMAP_NEIGHBOR_CACHE_TTL_SECONDS", 60 * 60)
NEIGHBOR_CACHE_MAX_ENTRIES = _env_int("MELODYMAP_NEIGHBOR_CACHE_MAX_ENTRIES", 2048)

SEARCH_JOB_WORKERS = _env_int("MELODYMAP_SEARCH_JOB_WORKERS", 4)

# Recording browse paging for the web-service backend (MusicBrainz caps limit at 100).
MUSICBRAINZ_RECORDING_PAGE_LIMIT = _env_int("MELODYMAP_MUSICBRAINZ_RECORDING_PAGE_LIMIT", 100)
MUSICBRAINZ_MAX_RECORDING_PAGES = _env_int("MELODYMAP_MUSICBRAINZ_MAX_RECORDING_PAGES", 5)
