"""Comparable signatures for track evidence."""

from __future__ import annotations

from dataclasses import dataclass

from metadata.normalize import normalize_title, strip_version_noise
from metadata.types import TrackEvidence


@dataclass(frozen=True)
class TrackSignature:
    track: TrackEvidence
    normalized: str
    core: str
    tokens: tuple[str, ...]
    token_set: frozenset[str]
    sorted_core: str

    @property
    def track_id(self) -> str:
        return self.track.id

    @property
    def cover_url(self) -> str:
        return self.track.cover_url


def canonicalize(track: TrackEvidence) -> TrackSignature:
    """Build the signature bundle used by the equivalence cascade.

    A title made only of version markers (e.g. "Remix") keeps its normalized
    form as core; an empty core would be a substring of every other title.
    """
    normalized = normalize_title(track.title)
    core = strip_version_noise(normalized) or normalized
    tokens = tuple(core.split())
    return TrackSignature(
        track=track,
        normalized=normalized,
        core=core,
        tokens=tokens,
        token_set=frozenset(tokens),
        sorted_core=" ".join(sorted(tokens)),
    )


__all__ = ["TrackSignature", "canonicalize"]
