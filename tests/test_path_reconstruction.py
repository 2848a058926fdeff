from __future__ import annotations

import pytest

from engine.errors import InternalInvariantError
from engine.path_reconstruction import EdgeKey, reconstruct_path
from metadata.types import Artist, TrackEvidence


def _ev(title: str) -> tuple[TrackEvidence, ...]:
    return (TrackEvidence(title=title, id=title.lower()),)


def test_reconstructs_in_start_to_target_order() -> None:
    predecessors = {"b": "a", "c": "b"}
    evidence = {EdgeKey("a", "b"): _ev("AB"), EdgeKey("b", "c"): _ev("BC")}
    artists = {"a": Artist("a", "Alpha"), "b": Artist("b", "Bravo"), "c": Artist("c", "Charlie")}

    nodes, hops = reconstruct_path(predecessors, evidence, "a", "c", artists)

    assert [node.id for node in nodes] == ["a", "b", "c"]
    assert [(hop.from_artist.name, hop.to_artist.name) for hop in hops] == [("Alpha", "Bravo"), ("Bravo", "Charlie")]
    assert hops[0].tracks == _ev("AB")
    assert hops[1].tracks == _ev("BC")
    for left, right in zip(hops, hops[1:]):
        assert left.to_artist.id == right.from_artist.id


def test_start_equals_target_is_a_single_node() -> None:
    nodes, hops = reconstruct_path({}, {}, "a", "a", {"a": Artist("a", "Alpha")})

    assert nodes == [Artist("a", "Alpha")]
    assert hops == []


def test_unknown_artists_fall_back_to_bare_ids() -> None:
    nodes, hops = reconstruct_path({"b": "a"}, {EdgeKey("a", "b"): _ev("AB")}, "a", "b")

    assert nodes == [Artist("a"), Artist("b")]
    assert hops[0].to_artist == Artist("b")


def test_broken_chain_is_an_internal_error() -> None:
    with pytest.raises(InternalInvariantError):
        reconstruct_path({"c": "b"}, {EdgeKey("b", "c"): _ev("BC")}, "a", "c")


def test_cycle_is_an_internal_error() -> None:
    with pytest.raises(InternalInvariantError):
        reconstruct_path({"c": "b", "b": "c"}, {}, "a", "c")


def test_missing_evidence_is_an_internal_error() -> None:
    with pytest.raises(InternalInvariantError) as excinfo:
        reconstruct_path({"b": "a"}, {}, "a", "b")
    assert excinfo.value.status == 500


def test_edge_key_is_a_composite_not_a_string() -> None:
    assert EdgeKey("a->b", "c") != EdgeKey("a", "b->c")
