"""Database helpers for MelodyMap."""

from db.collab_store import CollaborationRow, CollabStore, StoredArtist

__all__ = ["CollabStore", "CollaborationRow", "StoredArtist"]
