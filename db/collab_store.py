"""Read access to the artist collaboration index."""

from __future__ import annotations

import logging
import os
import sqlite3
from dataclasses import dataclass

from db.migrations import ensure_musicbrainz_tables, rebuild_artist_collab

_DEFAULT_DB_ENV_KEY = "MELODYMAP_DB_PATH"
COVER_ART_URL_TEMPLATE = "https://coverartarchive.org/release/{release_gid}/front"
logger = logging.getLogger(__name__)


def _resolve_db_path() -> str:
    return os.environ.get(_DEFAULT_DB_ENV_KEY, os.path.join(os.getcwd(), "musicbrainz.sqlite"))


def cover_art_url(release_gid: str) -> str:
    gid = (release_gid or "").strip()
    if not gid:
        return ""
    return COVER_ART_URL_TEMPLATE.format(release_gid=gid)


@dataclass(frozen=True)
class StoredArtist:
    internal_id: int
    gid: str
    name: str


@dataclass(frozen=True)
class CollaborationRow:
    """One (neighbor, recording, track, release) tuple for an artist."""

    neighbor_gid: str
    neighbor_name: str
    recording_gid: str
    recording_name: str
    track_gid: str
    track_name: str
    release_gid: str

    @property
    def cover_url(self) -> str:
        return cover_art_url(self.release_gid)


class CollabStore:
    """SQLite-backed view of who recorded with whom.

    A connection is opened per call so one store can be shared by
    concurrent searches.
    """

    def __init__(self, db_path: str | None = None) -> None:
        self.db_path = db_path or _resolve_db_path()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, check_same_thread=False, timeout=30)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        ensure_musicbrainz_tables(conn)
        return conn

    def ensure_schema(self) -> None:
        """Ensure the schema exists."""
        conn = self._connect()
        conn.close()

    def lookup_artist_by_gid(self, gid: str) -> StoredArtist | None:
        key = (gid or "").strip()
        if not key:
            return None
        conn = self._connect()
        try:
            cur = conn.cursor()
            cur.execute("SELECT id, gid, name FROM artist WHERE gid=? LIMIT 1", (key,))
            row = cur.fetchone()
            if not row:
                return None
            return StoredArtist(internal_id=int(row["id"]), gid=row["gid"], name=row["name"])
        finally:
            conn.close()

    def lookup_artist_by_name(self, name: str) -> StoredArtist | None:
        """Case-insensitive exact match; the lowest internal id is the canonical artist."""
        key = (name or "").strip()
        if not key:
            return None
        conn = self._connect()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT id, gid, name
                FROM artist
                WHERE lower(name) = lower(?)
                ORDER BY id ASC
                LIMIT 1
                """,
                (key,),
            )
            row = cur.fetchone()
            if not row:
                return None
            return StoredArtist(internal_id=int(row["id"]), gid=row["gid"], name=row["name"])
        finally:
            conn.close()

    def fetch_collaborations(self, artist_gid: str, neighbor_limit: int) -> list[CollaborationRow]:
        """Return collaboration rows for at most ``neighbor_limit`` distinct neighbors.

        Rows are ordered by neighbor, then recording, then track, so edge
        enumeration order is stable across calls.
        """
        gid = (artist_gid or "").strip()
        if not gid:
            return []
        conn = self._connect()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                WITH input_artist AS (
                    SELECT id FROM artist WHERE gid = ?
                ),
                neighbors AS (
                    SELECT DISTINCT c.neighbor_artist_id AS id
                    FROM artist_collab c
                    JOIN input_artist ia ON ia.id = c.artist_id
                    ORDER BY 1
                    LIMIT ?
                )
                SELECT
                    a2.gid   AS neighbor_gid,
                    a2.name  AS neighbor_name,
                    r.gid    AS recording_gid,
                    r.name   AS recording_name,
                    t.gid    AS track_gid,
                    t.name   AS track_name,
                    rl.gid   AS release_gid
                FROM artist_collab c
                JOIN input_artist ia ON ia.id = c.artist_id
                JOIN neighbors n     ON n.id = c.neighbor_artist_id
                JOIN recording r     ON r.id = c.recording_id
                JOIN track t         ON t.recording = r.id
                JOIN medium m        ON m.id = t.medium
                JOIN release rl      ON rl.id = m.release
                JOIN artist a2       ON a2.id = c.neighbor_artist_id
                ORDER BY a2.id, r.id, t.id
                """,
                (gid, int(neighbor_limit)),
            )
            return [
                CollaborationRow(
                    neighbor_gid=row["neighbor_gid"],
                    neighbor_name=row["neighbor_name"],
                    recording_gid=row["recording_gid"],
                    recording_name=row["recording_name"],
                    track_gid=row["track_gid"] or "",
                    track_name=row["track_name"] or "",
                    release_gid=row["release_gid"] or "",
                )
                for row in cur.fetchall()
            ]
        finally:
            conn.close()

    def rebuild_collab_index(self) -> int:
        conn = self._connect()
        try:
            count = rebuild_artist_collab(conn)
            logger.info("artist_collab rebuilt rows=%s db=%s", count, self.db_path)
            return count
        finally:
            conn.close()
