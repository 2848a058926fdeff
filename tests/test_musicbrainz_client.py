from __future__ import annotations

import json

import pytest
import requests

from app.musicbrainz.cache import MusicBrainzCache
from app.musicbrainz.client import MusicBrainzClient, MusicBrainzRateLimitError


class _Response:
    def __init__(self, status_code: int, payload=None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.content = b"" if payload is None else json.dumps(payload).encode("utf-8")

    def json(self):
        if self._payload is None:
            raise ValueError("no body")
        return self._payload


class _Session:
    def __init__(self, responses) -> None:
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _client(session, cache=None) -> MusicBrainzClient:
    return MusicBrainzClient(
        base_url="https://mb.example",
        timeout_seconds=3,
        min_interval_seconds=0,
        cache=cache if cache is not None else MusicBrainzCache(),
        session=session,
    )


def test_get_json_returns_payload_and_caches_it() -> None:
    session = _Session([_Response(200, {"artists": []})])
    client = _client(session)

    first = client.get_json("/ws/2/artist", params={"query": "x"}, cache_key="k", ttl_seconds=60)
    second = client.get_json("/ws/2/artist", params={"query": "x"}, cache_key="k", ttl_seconds=60)

    assert first == {"artists": []}
    assert second == first
    assert len(session.calls) == 1
    call = session.calls[0]
    assert call["url"] == "https://mb.example/ws/2/artist"
    assert call["timeout"] == 3.0
    assert "User-Agent" in call["headers"]


def test_rate_limit_raises() -> None:
    client = _client(_Session([_Response(429)]))
    with pytest.raises(MusicBrainzRateLimitError):
        client.get_json("/ws/2/recording", cache_key="k", ttl_seconds=60)


def test_server_error_returns_none_and_is_not_cached() -> None:
    session = _Session([_Response(503), _Response(200, {"ok": True})])
    client = _client(session)

    assert client.get_json("/ws/2/recording", cache_key="k", ttl_seconds=60) is None
    assert client.get_json("/ws/2/recording", cache_key="k", ttl_seconds=60) == {"ok": True}


def test_transport_error_returns_none() -> None:
    client = _client(_Session([requests.ConnectionError("down")]))
    assert client.get_json("/ws/2/recording") is None


def test_cache_only_never_touches_the_network() -> None:
    session = _Session([])
    cache = MusicBrainzCache()
    cache.set("cached", {"hit": True}, 60)
    client = _client(session, cache)

    assert client.get_json("/ws/2/recording", cache_key="cached", cache_only=True) == {"hit": True}
    assert client.get_json("/ws/2/recording", cache_key="missing", cache_only=True) is None
    assert session.calls == []


def test_cache_persists_to_disk(tmp_path) -> None:
    path = tmp_path / "cache" / "mb.json"
    MusicBrainzCache(path).set("k", {"v": 1}, 60)

    assert MusicBrainzCache(path).get("k") == {"v": 1}


def test_cache_evicts_when_full() -> None:
    cache = MusicBrainzCache(max_entries=2)
    cache.set("a", 1, 10)
    cache.set("b", 2, 100)
    cache.set("c", 3, 100)

    assert len(cache) == 2
    assert cache.get("a") is None
    assert cache.get("c") == 3
