from .dedupe import deduplicate_tracks
from .equivalence import is_likely_same_track, same_track
from .types import Artist, Hop, NeighborEdge, SearchResult, TrackEvidence

__all__ = [
    "Artist",
    "Hop",
    "NeighborEdge",
    "SearchResult",
    "TrackEvidence",
    "deduplicate_tracks",
    "is_likely_same_track",
    "same_track",
]
