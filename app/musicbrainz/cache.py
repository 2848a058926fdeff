import json
import logging
import threading
import time
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 5000


class MusicBrainzCache:
    """Thread-safe TTL cache for decoded MusicBrainz payloads.

    With a ``cache_path`` the entries are mirrored to a JSON file so lookups
    survive restarts; without one the cache lives in memory only. When full,
    the entry closest to expiry is evicted first.
    """

    def __init__(self, cache_path: str | Path | None = None, *, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        self._path = Path(cache_path) if cache_path else None
        self._max_entries = max(1, int(max_entries))
        self._lock = threading.Lock()
        self._data: dict[str, dict[str, Any]] = {}
        self._loaded = self._path is None

    def _load_locked(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        try:
            if self._path.exists():
                payload = json.loads(self._path.read_text(encoding="utf-8"))
                if isinstance(payload, dict):
                    self._data = payload
        except (OSError, ValueError):
            logger.warning("musicbrainz cache unreadable; starting empty path=%s", self._path)
            self._data = {}

    def _persist_locked(self) -> None:
        if self._path is None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(f"{self._path.suffix}.tmp")
            tmp_path.write_text(json.dumps(self._data, ensure_ascii=True, separators=(",", ":")), encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError:
            logger.warning("musicbrainz cache persist failed path=%s", self._path, exc_info=True)

    def _evict_locked(self, now: float) -> None:
        expired = [key for key, row in self._data.items() if float(row.get("expires_at") or 0.0) <= now]
        for key in expired:
            self._data.pop(key, None)
        overflow = len(self._data) - self._max_entries
        if overflow > 0:
            by_expiry = sorted(self._data, key=lambda key: float(self._data[key].get("expires_at") or 0.0))
            for key in by_expiry[:overflow]:
                self._data.pop(key, None)

    def get(self, key: str) -> Any:
        now = time.time()
        with self._lock:
            self._load_locked()
            row = self._data.get(key)
            if not isinstance(row, dict):
                return None
            expires_at = float(row.get("expires_at") or 0.0)
            if expires_at <= now:
                self._data.pop(key, None)
                self._persist_locked()
                return None
            return row.get("value")

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        now = time.time()
        with self._lock:
            self._load_locked()
            self._data[key] = {
                "expires_at": now + max(1, int(ttl_seconds)),
                "value": value,
            }
            self._evict_locked(now)
            self._persist_locked()

    def __len__(self) -> int:
        with self._lock:
            self._load_locked()
            return len(self._data)
