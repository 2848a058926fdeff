import os
from dataclasses import dataclass
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parent.parent

def _is_container_runtime():
    if os.path.exists("/.dockerenv"):
        return True
    return os.path.isdir("/data")


def _default_root_paths():
    if _is_container_runtime():
        return {
            "data": Path("/data"),
            "logs": Path("/logs"),
        }
    base = PROJECT_ROOT / "data"
    return {
        "data": base,
        "logs": base / "logs",
    }


_DEFAULTS = _default_root_paths()

DATA_DIR = Path(os.environ.get("MELODYMAP_DATA_DIR", _DEFAULTS["data"])).resolve()
LOG_DIR = Path(os.environ.get("MELODYMAP_LOG_DIR", _DEFAULTS["logs"])).resolve()
DB_PATH = Path(os.environ.get("MELODYMAP_DB_PATH", DATA_DIR / "database" / "musicbrainz.sqlite")).resolve()
MUSICBRAINZ_CACHE_PATH = Path(
    os.environ.get("MUSICBRAINZ_CACHE_PATH", DATA_DIR / "cache" / "musicbrainz_cache.json")
).resolve()


@dataclass(frozen=True)
class EnginePaths:
    log_dir: str
    db_path: str
    musicbrainz_cache_path: str


def ensure_dir(path):
    if path:
        os.makedirs(path, exist_ok=True)


def build_engine_paths():
    for d in (DB_PATH.parent, MUSICBRAINZ_CACHE_PATH.parent, LOG_DIR):
        ensure_dir(d)

    return EnginePaths(
        log_dir=str(LOG_DIR),
        db_path=str(DB_PATH),
        musicbrainz_cache_path=str(MUSICBRAINZ_CACHE_PATH),
    )
