#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging

from db.collab_store import CollabStore
from engine.paths import DB_PATH


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Derive artist_collab rows from shared recording credits.")
    parser.add_argument("--db", default=str(DB_PATH), help="SQLite database holding the MusicBrainz subset.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
    count = CollabStore(args.db).rebuild_collab_index()
    print(f"artist_collab rows={count}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
