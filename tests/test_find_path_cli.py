from __future__ import annotations

import json

from metadata.types import Artist, Hop, SearchResult, TrackEvidence


class _Engine:
    def __init__(self, result: SearchResult) -> None:
        self.result = result
        self.calls = []

    def run_search(self, start, target, depth):
        self.calls.append((start, target, depth))
        return self.result


def _found() -> SearchResult:
    a, b = Artist("a", "Alpha"), Artist("b", "Bravo")
    return SearchResult(
        start=a,
        target=b,
        status=200,
        hops=(Hop(a, b, (TrackEvidence(title="Duet", id="t1"),)),),
        nodes=(a, b),
    )


def test_find_path_prints_json(monkeypatch, capsys) -> None:
    from scripts import find_path

    engine = _Engine(_found())
    monkeypatch.setattr(find_path, "build_default_engine", lambda backend, db_path=None: engine)

    assert find_path.main(["Alpha", "Bravo", "--depth", "3", "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["hops"] == 1
    assert payload["nodes"] == [{"id": "a", "name": "Alpha"}, {"id": "b", "name": "Bravo"}]
    assert engine.calls == [("Alpha", "Bravo", 3)]


def test_find_path_reports_failure(monkeypatch, capsys) -> None:
    from scripts import find_path

    failed = SearchResult(start=Artist("a", "Alpha"), target=Artist("", "Nobody"), status=404, message="target artist not found")
    monkeypatch.setattr(find_path, "build_default_engine", lambda backend, db_path=None: _Engine(failed))

    assert find_path.main(["Alpha", "Nobody"]) == 1
    assert "status=404 target artist not found" in capsys.readouterr().out
