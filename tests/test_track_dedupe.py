from __future__ import annotations

from itertools import combinations

import pytest

from config import settings
from metadata.canonical import canonicalize
from metadata.dedupe import DedupeMetricsLog, deduplicate_tracks, merge_tracks
from metadata.equivalence import same_track
from metadata.types import TrackEvidence


def _t(title: str, track_id: str = "", cover_url: str = "") -> TrackEvidence:
    return TrackEvidence(title=title, id=track_id, cover_url=cover_url)


@pytest.fixture
def metrics() -> DedupeMetricsLog:
    return DedupeMetricsLog()


_MIXED = [
    _t("Airplanes", "1"),
    _t("Airplanes feat Hayley Williams", "1"),
    _t("Nothin' on You", "2"),
    _t("Nothin On You (Radio Edit)", ""),
    _t("Magic", "3"),
    _t("Forever", "4"),
    _t("Never Ever", "5"),
    _t("Song Alpha", "", "http://x"),
    _t("Song Beta", "", "http://x"),
    _t("Symphony No. II", "6"),
    _t("Symphony No 2", "7"),
]


def test_exact_duplicates_collapse(metrics) -> None:
    out = deduplicate_tracks([_t("Airplanes", "1"), _t("Airplanes", "1")], 0.72, metrics=metrics)
    assert len(out) == 1


def test_roman_numeral_variants_collapse(metrics) -> None:
    out = deduplicate_tracks(
        [_t("Symphony No. II", "x1"), _t("Symphony No. 2", "x1"), _t("Symphony No II", "x1")],
        0.72,
        metrics=metrics,
    )
    assert len(out) == 1


def test_shared_id_forces_merge(metrics) -> None:
    out = deduplicate_tracks([_t("Forever (Remastered 2020)", "ABC"), _t("Forever", "ABC")], 0.72, metrics=metrics)
    assert len(out) == 1
    assert out[0].title == "Forever (Remastered 2020)"


def test_shared_cover_art_forces_merge(metrics) -> None:
    out = deduplicate_tracks([_t("Song Alpha", "", "http://x"), _t("Song Beta", "", "http://x")], 0.72, metrics=metrics)
    assert len(out) == 1


def test_longer_title_becomes_representative(metrics) -> None:
    out = deduplicate_tracks([_t("Airplanes", "1"), _t("Airplanes feat Hayley Williams", "1")], 0.72, metrics=metrics)
    assert [track.title for track in out] == ["Airplanes feat Hayley Williams"]


def test_dissimilar_titles_are_kept(metrics) -> None:
    out = deduplicate_tracks([_t("Forever", "1"), _t("Never Ever", "2")], 0.72, metrics=metrics)
    assert len(out) == 2


def test_output_keeps_cluster_creation_order(metrics) -> None:
    out = deduplicate_tracks([_t("Stan"), _t("Lose Yourself"), _t("Stan (Live)")], 0.72, metrics=metrics)
    assert [track.title for track in out] == ["Stan (Live)", "Lose Yourself"]


def test_merge_fills_missing_id_and_cover(metrics) -> None:
    out = deduplicate_tracks([_t("Airplanes"), _t("Airplanes", "7", "http://cover")], 0.72, metrics=metrics)
    assert out == [_t("Airplanes", "7", "http://cover")]


def test_merge_never_overwrites_existing_id() -> None:
    merged = merge_tracks(_t("Airplanes", "1", "http://a"), _t("Airplanes!", "2", "http://b"))
    assert merged.id == "1"
    assert merged.cover_url == "http://a"
    assert merged.title == "Airplanes!"


def test_merge_returns_representative_when_nothing_changes() -> None:
    rep = _t("Airplanes", "1")
    assert merge_tracks(rep, _t("Airplanes", "1")) is rep


@pytest.mark.parametrize("threshold", [0.5, 0.65, 0.72, 0.9])
def test_dedupe_is_idempotent(threshold, metrics) -> None:
    once = deduplicate_tracks(_MIXED, threshold, metrics=metrics)
    assert deduplicate_tracks(once, threshold, metrics=metrics) == once


@pytest.mark.parametrize("threshold", [0.5, 0.65, 0.72, 0.9])
def test_dedupe_leaves_no_equivalent_pairs(threshold, metrics) -> None:
    out = deduplicate_tracks(_MIXED, threshold, metrics=metrics)
    for left, right in combinations(out, 2):
        assert not same_track(canonicalize(left), canonicalize(right), threshold)


@pytest.mark.parametrize(
    "titles",
    [
        pytest.param(
            ["Airplanes (feat. Hayley Williams)", "Airplanes", "Airplanes \u2013 official video"],
            id="featured-and-video-variants",
        ),
        pytest.param(
            [
                "Lose Yourself",
                "Lose Yourself \u2013 Live in Detroit 2009",
                "Lose Yourself (Album Version)",
                "Lose Yourself (Explicit)",
                "Lose Yourself - Remastered",
            ],
            id="version-noise",
        ),
        pytest.param(
            [
                "Cleanin' Out My Closet",
                "Cleanin Out My Closet - Radio Edit",
                "Cleaning Out My Closet",
                "Cleanin-Out-My-Closet",
            ],
            id="apostrophe-and-hyphen-spellings",
        ),
        pytest.param(["Superman", "S\u016bp\u0113rman", "S\u00faperman"], id="diacritics"),
    ],
)
def test_title_variants_collapse_without_ids(titles, metrics) -> None:
    out = deduplicate_tracks([_t(title) for title in titles], 0.72, metrics=metrics)
    assert len(out) == 1


def test_longest_variant_wins_without_ids(metrics) -> None:
    out = deduplicate_tracks(
        [
            _t("Lose Yourself"),
            _t("Lose Yourself (Album Version)"),
            _t("Lose Yourself \u2013 Live in Detroit 2009"),
        ],
        0.72,
        metrics=metrics,
    )
    assert [track.title for track in out] == ["Lose Yourself \u2013 Live in Detroit 2009"]


def test_default_threshold_comes_from_settings(monkeypatch, metrics) -> None:
    tracks = [_t("Colour", "1"), _t("Color", "2")]

    monkeypatch.setattr(settings, "TRACK_DEDUPE_THRESHOLD", 0.72)
    assert len(deduplicate_tracks(tracks, metrics=metrics)) == 1

    monkeypatch.setattr(settings, "TRACK_DEDUPE_THRESHOLD", 0.9)
    assert len(deduplicate_tracks(tracks, metrics=metrics)) == 2
    assert not same_track(canonicalize(tracks[0]), canonicalize(tracks[1]))


def test_empty_input(metrics) -> None:
    assert deduplicate_tracks([], 0.72, metrics=metrics) == []


def test_metrics_log_appends_csv_rows(tmp_path) -> None:
    path = tmp_path / "logs" / "dedupe.csv"
    log = DedupeMetricsLog(path)

    deduplicate_tracks([_t("Airplanes", "1"), _t("Airplanes", "1")], 0.72, metrics=log)
    deduplicate_tracks([_t("Magic")], 0.65, metrics=log)

    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "ts,input_count,output_count,reduction_pct,threshold,elapsed_ms"
    assert lines[1].split(",")[1:5] == ["2", "1", "50.00", "0.720"]
    assert lines[2].split(",")[1:5] == ["1", "1", "0.00", "0.650"]
    assert len(lines) == 3
