#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import logging

from engine.search_engine import build_default_engine
from metadata.types import SearchResult


def _print_result(result: SearchResult) -> None:
    if not result.ok:
        print(f"status={result.status} {result.message}")
        return
    print(f"{result.start.name} -> {result.target.name}: {result.hop_count} hops ({result.elapsed_seconds:.1f}s)")
    for idx, hop in enumerate(result.hops, start=1):
        print(f"{idx}. {hop.from_artist.name} -> {hop.to_artist.name}")
        for track in hop.tracks:
            print(f"     - {track.title}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Find the shortest collaboration path between two artists.")
    parser.add_argument("start", help="Start artist name or MBID.")
    parser.add_argument("target", help="Target artist name or MBID.")
    parser.add_argument("--depth", type=int, default=0, help="Deepest level to expand; 0 means unbounded.")
    parser.add_argument("--backend", choices=("store", "musicbrainz"), default=None)
    parser.add_argument("--db", default=None, help="SQLite database for the store backend.")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON.")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    engine = build_default_engine(args.backend, db_path=args.db)
    result = engine.run_search(args.start, args.target, args.depth)
    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        _print_result(result)
    return 0 if result.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
