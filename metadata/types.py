"""Value types shared by the track pipeline and the path search engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

LINK_TRACK_COLLABORATION = "track-collaboration"


@dataclass(frozen=True)
class Artist:
    """An artist identified by an opaque external id (usually an MBID)."""

    id: str
    name: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "name": self.name}


@dataclass(frozen=True)
class TrackEvidence:
    """One recording that proves a collaboration between two artists."""

    title: str
    id: str = ""
    recording_id: str = ""
    recording_name: str = ""
    cover_url: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "name": self.title,
            "recordingID": self.recording_id,
            "recordingName": self.recording_name,
            "photoURL": self.cover_url,
        }


@dataclass(frozen=True)
class NeighborEdge:
    """A directed collaboration from ``source`` to ``artist`` backed by ``tracks``."""

    source: Artist
    artist: Artist
    tracks: tuple[TrackEvidence, ...] = ()
    link: str = LINK_TRACK_COLLABORATION


@dataclass(frozen=True)
class Hop:
    from_artist: Artist
    to_artist: Artist
    tracks: tuple[TrackEvidence, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.from_artist.name,
            "to": self.to_artist.name,
            "fromID": self.from_artist.id,
            "toID": self.to_artist.id,
            "tracks": [track.to_dict() for track in self.tracks],
        }


@dataclass(frozen=True)
class SearchResult:
    """Terminal value of one path search.

    ``nodes`` lists the artists along the path (start first). A successful
    search from an artist to itself has one node and no hops; every failed
    search has no nodes and no hops.
    """

    start: Artist
    target: Artist
    status: int
    hops: tuple[Hop, ...] = ()
    nodes: tuple[Artist, ...] = ()
    message: str = ""
    elapsed_seconds: float = field(default=0.0, compare=False)

    @property
    def hop_count(self) -> int:
        return len(self.hops)

    @property
    def ok(self) -> bool:
        return self.status == 200

    @property
    def path_ids(self) -> list[str]:
        return [artist.id for artist in self.nodes]

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "start": self.start.name,
            "target": self.target.name,
            "startID": self.start.id,
            "targetID": self.target.id,
            "hops": self.hop_count,
            "path": [hop.to_dict() for hop in self.hops],
            "nodes": [artist.to_dict() for artist in self.nodes],
            "status": self.status,
        }
        if self.message:
            payload["message"] = self.message
        return payload


__all__ = [
    "LINK_TRACK_COLLABORATION",
    "Artist",
    "Hop",
    "NeighborEdge",
    "SearchResult",
    "TrackEvidence",
]
