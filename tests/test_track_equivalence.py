from __future__ import annotations

import pytest

from metadata.canonical import canonicalize
from metadata.equivalence import is_likely_same_track, same_track, title_similarity
from metadata.types import TrackEvidence


def _sig(title: str, track_id: str = "", cover_url: str = ""):
    return canonicalize(TrackEvidence(title=title, id=track_id, cover_url=cover_url))


def test_shared_cover_art_matches_despite_titles() -> None:
    assert same_track(_sig("Song Alpha", cover_url="http://x"), _sig("Song Beta", cover_url="http://x"))


def test_empty_cover_art_is_not_a_match_signal() -> None:
    assert not same_track(_sig("Forever"), _sig("Never Ever"))


def test_shared_track_id_matches_despite_titles() -> None:
    assert same_track(_sig("Forever (Remastered 2020)", "ABC"), _sig("Completely Different", "ABC"))


def test_different_ids_do_not_block_title_match() -> None:
    assert same_track(_sig("Airplanes", "1"), _sig("Airplanes", "2"))


def test_core_substring_matches() -> None:
    assert same_track(_sig("Renegade"), _sig("Da Renegade"))


def test_reordered_tokens_match() -> None:
    assert same_track(_sig("Love Me Baby"), _sig("Baby Love Me"))


def test_token_subset_matches() -> None:
    assert same_track(_sig("Run This Town"), _sig("Town Run This Now"))


def test_edit_similarity_respects_threshold() -> None:
    assert title_similarity("colour", "color") == pytest.approx(1 - 1 / 6)
    assert same_track(_sig("Colour"), _sig("Color"), 0.72)
    assert not same_track(_sig("Colour"), _sig("Color"), 0.9)


def test_dissimilar_titles_do_not_match() -> None:
    assert not same_track(_sig("Forever", "1"), _sig("Never Ever", "2"), 0.72)


def test_version_markers_are_ignored() -> None:
    assert same_track(_sig("Stan (Live)"), _sig("Stan - Album Version"))


def test_is_likely_same_track_raw_fields() -> None:
    assert is_likely_same_track("Song Alpha", "Song Beta", "http://x", "http://x")
    assert is_likely_same_track("A", "B", id_a="same", id_b="same")
    assert not is_likely_same_track("Forever", "Never Ever", id_a="1", id_b="2")
