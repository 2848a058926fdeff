"""Rebuild the start-to-target path from BFS predecessor links."""

from __future__ import annotations

from typing import Mapping, NamedTuple, Sequence

from engine.errors import InternalInvariantError
from metadata.types import Artist, Hop, TrackEvidence


class EdgeKey(NamedTuple):
    parent_id: str
    child_id: str


def reconstruct_path(
    predecessors: Mapping[str, str],
    evidence: Mapping[EdgeKey, Sequence[TrackEvidence]],
    start_id: str,
    target_id: str,
    artists: Mapping[str, Artist] | None = None,
) -> tuple[list[Artist], list[Hop]]:
    """Walk predecessor links back from ``target_id`` and return ``(nodes, hops)``.

    A broken chain, a cycle or a missing evidence entry means the search
    claimed success without a consistent predecessor map; that is reported
    as ``InternalInvariantError``, never as "no path".
    """
    artists = artists or {}

    def _artist(artist_id: str) -> Artist:
        return artists.get(artist_id) or Artist(id=artist_id)

    if start_id == target_id:
        return [_artist(start_id)], []

    ids = [target_id]
    seen = {target_id}
    current = target_id
    while current != start_id:
        parent = predecessors.get(current)
        if parent is None:
            raise InternalInvariantError(f"predecessor chain broken at {current}")
        if parent in seen:
            raise InternalInvariantError(f"predecessor cycle at {parent}")
        seen.add(parent)
        ids.append(parent)
        current = parent
    ids.reverse()

    hops: list[Hop] = []
    for parent_id, child_id in zip(ids, ids[1:]):
        key = EdgeKey(parent_id, child_id)
        if key not in evidence:
            raise InternalInvariantError(f"missing evidence for {parent_id} -> {child_id}")
        hops.append(Hop(from_artist=_artist(parent_id), to_artist=_artist(child_id), tracks=tuple(evidence[key])))
    return [_artist(artist_id) for artist_id in ids], hops


__all__ = ["EdgeKey", "reconstruct_path"]
