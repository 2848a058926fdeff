"""SQLite migrations for the local MusicBrainz collaboration store."""

from __future__ import annotations

import sqlite3


def ensure_musicbrainz_tables(conn: sqlite3.Connection) -> None:
    """Ensure the MusicBrainz subset and the artist_collab index exist.

    Only the columns the neighbor query reads are kept; ``gid`` columns hold
    the public MBIDs, ``id`` columns the internal row ids.
    """
    cur = conn.cursor()
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS artist (
            id INTEGER PRIMARY KEY,
            gid TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL
        )
        """
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_artist_lower_name ON artist (lower(name), id)")
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS artist_credit (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL DEFAULT ''
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS artist_credit_name (
            artist_credit INTEGER NOT NULL,
            position INTEGER NOT NULL,
            artist INTEGER NOT NULL,
            name TEXT NOT NULL DEFAULT '',
            PRIMARY KEY (artist_credit, position),
            FOREIGN KEY (artist_credit) REFERENCES artist_credit(id),
            FOREIGN KEY (artist) REFERENCES artist(id)
        )
        """
    )
    cur.execute(
        "CREATE INDEX IF NOT EXISTS idx_artist_credit_name_artist "
        "ON artist_credit_name (artist)"
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS recording (
            id INTEGER PRIMARY KEY,
            gid TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL,
            artist_credit INTEGER,
            FOREIGN KEY (artist_credit) REFERENCES artist_credit(id)
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS release (
            id INTEGER PRIMARY KEY,
            gid TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS medium (
            id INTEGER PRIMARY KEY,
            release INTEGER NOT NULL,
            FOREIGN KEY (release) REFERENCES release(id)
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS track (
            id INTEGER PRIMARY KEY,
            gid TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL,
            recording INTEGER NOT NULL,
            medium INTEGER NOT NULL,
            FOREIGN KEY (recording) REFERENCES recording(id),
            FOREIGN KEY (medium) REFERENCES medium(id)
        )
        """
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_track_recording ON track (recording)")
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS artist_collab (
            artist_id INTEGER NOT NULL,
            neighbor_artist_id INTEGER NOT NULL,
            recording_id INTEGER NOT NULL,
            PRIMARY KEY (artist_id, neighbor_artist_id, recording_id)
        )
        """
    )
    cur.execute(
        "CREATE INDEX IF NOT EXISTS idx_artist_collab_neighbor "
        "ON artist_collab (neighbor_artist_id)"
    )
    cur.execute(
        "CREATE INDEX IF NOT EXISTS idx_artist_collab_recording "
        "ON artist_collab (recording_id)"
    )
    conn.commit()


def rebuild_artist_collab(conn: sqlite3.Connection) -> int:
    """Derive artist_collab from shared recording credits.

    Every ordered pair of distinct artists credited on the same recording
    becomes a row. Existing rows are kept. Returns the table's row count.
    """
    cur = conn.cursor()
    cur.execute(
        """
        INSERT OR IGNORE INTO artist_collab (artist_id, neighbor_artist_id, recording_id)
        SELECT acn1.artist, acn2.artist, r.id
        FROM recording r
        JOIN artist_credit_name acn1 ON acn1.artist_credit = r.artist_credit
        JOIN artist_credit_name acn2 ON acn2.artist_credit = r.artist_credit
        WHERE acn1.artist <> acn2.artist
        """
    )
    conn.commit()
    cur.execute("SELECT COUNT(*) FROM artist_collab")
    row = cur.fetchone()
    return int(row[0]) if row else 0
