import logging
import os
import threading
import time
from typing import Any
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from app.musicbrainz.cache import MusicBrainzCache

logger = logging.getLogger(__name__)

MUSICBRAINZ_BASE_URL = os.getenv("MUSICBRAINZ_BASE_URL", "https://musicbrainz.org")
MUSICBRAINZ_USER_AGENT = os.getenv(
    "MUSICBRAINZ_USER_AGENT",
    "MelodyMap/1.0 (+https://github.com/melodymap/melodymap)",
)
MUSICBRAINZ_TIMEOUT_SECONDS = float(os.getenv("MUSICBRAINZ_TIMEOUT_SECONDS", "12"))
MUSICBRAINZ_MIN_INTERVAL_SECONDS = float(os.getenv("MUSICBRAINZ_MIN_INTERVAL_SECONDS", "1.0"))

ARTIST_SEARCH_TTL_SECONDS = 24 * 60 * 60
ARTIST_RECORDINGS_TTL_SECONDS = 7 * 24 * 60 * 60


class MusicBrainzRateLimitError(RuntimeError):
    """The web service answered 429; callers must stop, not retry this request."""


class MusicBrainzClient:
    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        min_interval_seconds: float | None = None,
        cache: MusicBrainzCache | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = (base_url or MUSICBRAINZ_BASE_URL).rstrip("/") + "/"
        self.timeout_seconds = MUSICBRAINZ_TIMEOUT_SECONDS if timeout_seconds is None else float(timeout_seconds)
        interval = MUSICBRAINZ_MIN_INTERVAL_SECONDS if min_interval_seconds is None else float(min_interval_seconds)
        self.min_interval_seconds = max(0.0, interval)
        self._cache = cache if cache is not None else MusicBrainzCache()
        self._rate_lock = threading.Lock()
        self._last_request_ts = 0.0
        if session is None:
            session = requests.Session()
            # 429 is left out on purpose: it has to reach the search as a rate-limit signal.
            retry = Retry(
                total=3,
                backoff_factor=0.4,
                status_forcelist=(500, 502, 503, 504),
                allowed_methods=frozenset({"GET"}),
                raise_on_status=False,
            )
            adapter = HTTPAdapter(max_retries=retry)
            session.mount("https://", adapter)
            session.mount("http://", adapter)
        self._session = session

    def _sleep_for_rate_limit(self) -> None:
        with self._rate_lock:
            now = time.monotonic()
            elapsed = now - self._last_request_ts
            wait_for = self.min_interval_seconds - elapsed
            if wait_for > 0:
                time.sleep(wait_for)
            self._last_request_ts = time.monotonic()

    def get_json(
        self,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        cache_key: str | None = None,
        ttl_seconds: int | None = None,
        cache_only: bool = False,
    ) -> dict[str, Any] | None:
        """GET ``endpoint`` and return the decoded JSON object.

        Returns None on any non-200 answer, transport error or undecodable
        body. Raises ``MusicBrainzRateLimitError`` on 429. With
        ``cache_only`` no request is made and a cache miss returns None.
        """
        if cache_key:
            cached = self._cache.get(cache_key)
            if isinstance(cached, dict):
                logger.info(f"[MUSICBRAINZ] request={endpoint} status=200 cache=hit")
                return cached
        if cache_only:
            logger.info(f"[MUSICBRAINZ] request={endpoint} status=skipped cache=miss offline=1")
            return None

        self._sleep_for_rate_limit()
        url = urljoin(self.base_url, endpoint.lstrip("/"))
        try:
            resp = self._session.get(
                url,
                params=params or {},
                headers={"User-Agent": MUSICBRAINZ_USER_AGENT, "Accept": "application/json"},
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            logger.info(f"[MUSICBRAINZ] request={endpoint} status=error cache=miss error={exc.__class__.__name__}")
            return None

        status = int(resp.status_code)
        logger.info(f"[MUSICBRAINZ] request={endpoint} status={status} cache=miss")
        if status == 429:
            raise MusicBrainzRateLimitError(f"musicbrainz rate limit reached for {endpoint}")
        if status != 200:
            return None
        try:
            payload = resp.json() if resp.content else {}
        except ValueError:
            logger.info(f"[MUSICBRAINZ] request={endpoint} status=invalid_json")
            return None
        if not isinstance(payload, dict):
            return None
        if cache_key and ttl_seconds:
            self._cache.set(cache_key, payload, ttl_seconds)
        return payload


_CLIENT: MusicBrainzClient | None = None
_CLIENT_LOCK = threading.Lock()


def get_musicbrainz_client() -> MusicBrainzClient:
    global _CLIENT
    if _CLIENT is not None:
        return _CLIENT
    with _CLIENT_LOCK:
        if _CLIENT is None:
            from engine.paths import MUSICBRAINZ_CACHE_PATH

            _CLIENT = MusicBrainzClient(cache=MusicBrainzCache(MUSICBRAINZ_CACHE_PATH))
    return _CLIENT
