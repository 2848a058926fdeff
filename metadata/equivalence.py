"""Same-track predicate used by the deduplicator."""

from __future__ import annotations

from rapidfuzz.distance import Levenshtein

from config import settings
from metadata.canonical import TrackSignature, canonicalize
from metadata.types import TrackEvidence

def default_threshold() -> float:
    """Track-list threshold, overridable with MELODYMAP_TRACK_DEDUPE_THRESHOLD."""
    return float(settings.TRACK_DEDUPE_THRESHOLD)


def title_similarity(a: str, b: str) -> float:
    """Return ``1 - levenshtein(a, b) / max(len(a), len(b))``."""
    return float(Levenshtein.normalized_similarity(a, b))


def same_track(a: TrackSignature, b: TrackSignature, threshold: float | None = None) -> bool:
    """Return True when two signatures describe the same recording.

    Cascade, first hit wins: shared cover art, shared track id, equal core,
    core substring, equal sorted tokens, token subset, edit similarity
    ``>= threshold``. Substring and subset checks need both cores non-empty.
    """
    if threshold is None:
        threshold = default_threshold()
    if a.cover_url and b.cover_url and a.cover_url == b.cover_url:
        return True
    if a.track_id and b.track_id and a.track_id == b.track_id:
        return True
    if a.core == b.core:
        return True

    both_present = bool(a.core) and bool(b.core)
    if both_present and (a.core in b.core or b.core in a.core):
        return True
    if a.sorted_core == b.sorted_core:
        return True
    if both_present and (a.token_set <= b.token_set or b.token_set <= a.token_set):
        return True
    return title_similarity(a.core, b.core) >= threshold


def is_likely_same_track(
    name_a: str,
    name_b: str,
    cover_url_a: str = "",
    cover_url_b: str = "",
    id_a: str = "",
    id_b: str = "",
    threshold: float | None = None,
) -> bool:
    """Raw-field form of ``same_track`` for callers without ``TrackEvidence`` values."""
    return same_track(
        canonicalize(TrackEvidence(title=name_a, id=id_a, cover_url=cover_url_a)),
        canonicalize(TrackEvidence(title=name_b, id=id_b, cover_url=cover_url_b)),
        threshold,
    )


__all__ = [
    "default_threshold",
    "is_likely_same_track",
    "same_track",
    "title_similarity",
]
