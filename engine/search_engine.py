"""Breadth-first search for the shortest collaboration chain between two artists.

The graph is never materialized: each dequeued artist is expanded by asking
a ``NeighborResolver`` who it recorded with. Every edge's track evidence is
deduplicated before use and edges left without evidence are ignored. The
search stops the moment the target shows up as a neighbor.

One ``SearchState`` belongs to exactly one search. The engine itself holds
only shared, thread-safe collaborators, so one engine may serve many
concurrent searches.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Any, Callable

from config import settings
from engine.artists import ArtistResolver, IdentityArtistResolver
from engine.errors import (
    STATUS_OK,
    ArtistNotFoundError,
    InvalidInputError,
    PathNotFoundError,
    RateLimitedError,
    SearchCancelledError,
    SearchError,
    SearchTimeoutError,
)
from engine.json_utils import safe_json_dumps
from engine.neighbor_cache import RecentNeighborCache
from engine.neighbors import NeighborResolver, clamp_neighbor_limit
from engine.path_reconstruction import EdgeKey, reconstruct_path
from metadata.dedupe import DedupeMetricsLog, deduplicate_tracks
from metadata.types import Artist, NeighborEdge, SearchResult, TrackEvidence

logger = logging.getLogger(__name__)


def _log_event(level, message, **fields):
    payload = {"message": message, **fields}
    try:
        logger.log(level, safe_json_dumps(payload, sort_keys=True))
    except (TypeError, ValueError) as exc:
        logger.log(level, f"log_event_serialization_failed: {exc} message={message}")


class SearchProgress:
    """Live progress of one search, written by the search and read by pollers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.current_artist = ""
        self.processed = 0
        self.total = 0
        self.max_depth = 0
        self.expanded = 0
        self.discovered = 0

    def enter_node(self, artist_name: str) -> None:
        with self._lock:
            self.current_artist = artist_name
            self.processed = 0
            self.total = 0

    def begin_node(self, neighbor_count: int) -> None:
        with self._lock:
            self.processed = 0
            self.total = int(neighbor_count)
            self.expanded += 1

    def visit_edge(self, processed: int) -> None:
        with self._lock:
            self.processed = int(processed)

    def discover(self, depth: int) -> None:
        with self._lock:
            self.discovered += 1
            if depth > self.max_depth:
                self.max_depth = depth

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "currentArtist": self.current_artist,
                "processed": self.processed,
                "total": self.total,
                "maxDepth": self.max_depth,
                "expanded": self.expanded,
                "discovered": self.discovered,
            }


@dataclass
class SearchState:
    visited: set[str] = field(default_factory=set)
    predecessors: dict[str, str] = field(default_factory=dict)
    evidence: dict[EdgeKey, tuple[TrackEvidence, ...]] = field(default_factory=dict)
    artists: dict[str, Artist] = field(default_factory=dict)
    names: dict[str, str] = field(default_factory=dict)
    progress: SearchProgress = field(default_factory=SearchProgress)

    def register(self, artist: Artist) -> Artist:
        """Record ``artist``, keeping the first real display name seen for its id."""
        known = self.artists.get(artist.id)
        if known is None or (artist.name and known.name in ("", known.id)):
            known = artist
            self.artists[artist.id] = artist
        if known.name:
            self.names.setdefault(known.name.strip().lower(), known.id)
        return known

    def artist(self, artist_id: str) -> Artist:
        return self.artists.get(artist_id) or Artist(id=artist_id)


class PathSearchEngine:
    def __init__(
        self,
        resolver: NeighborResolver,
        artist_resolver: ArtistResolver | None = None,
        *,
        neighbor_limit: int | None = None,
        max_duration_seconds: float | None = None,
        edge_threshold: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        neighbor_cache: RecentNeighborCache | None = None,
        metrics: DedupeMetricsLog | None = None,
    ) -> None:
        self.resolver = resolver
        self.artist_resolver = artist_resolver or IdentityArtistResolver()
        self.neighbor_limit = settings.SEARCH_NEIGHBOR_LIMIT if neighbor_limit is None else int(neighbor_limit)
        self.max_duration_seconds = (
            settings.SEARCH_MAX_DURATION_SECONDS if max_duration_seconds is None else float(max_duration_seconds)
        )
        self.edge_threshold = settings.EDGE_DEDUPE_THRESHOLD if edge_threshold is None else float(edge_threshold)
        self.clock = clock
        self.neighbor_cache = neighbor_cache
        self.metrics = metrics

    def run_search(self, start: str, target: str, depth: int = 0) -> SearchResult:
        return self.search(start, target, max_depth=depth)

    def search(
        self,
        start: str,
        target: str,
        max_depth: int = 0,
        *,
        state: SearchState | None = None,
        cancel_event: threading.Event | None = None,
        offline: bool = False,
    ) -> SearchResult:
        """Find the shortest chain from ``start`` to ``target``.

        ``start`` and ``target`` are whatever the artist resolver accepts
        (names or MBIDs). ``max_depth <= 0`` means unbounded; otherwise
        artists dequeued deeper than ``max_depth`` are not expanded.
        Failures come back as a ``SearchResult`` with a non-200 status and
        an empty path, never as an exception.
        """
        state = state or SearchState()
        started = self.clock()
        start_artist = Artist(id="", name=(start or "").strip())
        target_artist = Artist(id="", name=(target or "").strip())
        _log_event(logging.INFO, "search_started", start=start, target=target, max_depth=max_depth)
        try:
            if not (start or "").strip() or not (target or "").strip():
                raise InvalidInputError()
            start_artist = self._resolve_artist(start, "start", offline)
            target_artist = self._resolve_artist(target, "target", offline)
            state.register(start_artist)
            state.register(target_artist)
            nodes, hops = self._bfs(state, start_artist, target_artist, max_depth, started, cancel_event, offline)
        except SearchError as exc:
            elapsed = self.clock() - started
            _log_event(
                logging.INFO if exc.status < 500 else logging.WARNING,
                "search_failed",
                start=start,
                target=target,
                status=exc.status,
                error=exc.message,
                elapsed_seconds=round(elapsed, 3),
            )
            return SearchResult(
                start=state.artists.get(start_artist.id, start_artist),
                target=state.artists.get(target_artist.id, target_artist),
                status=exc.status,
                message=exc.message,
                elapsed_seconds=elapsed,
            )

        elapsed = self.clock() - started
        _log_event(
            logging.INFO,
            "search_found",
            start=start_artist.id,
            target=target_artist.id,
            hops=len(hops),
            elapsed_seconds=round(elapsed, 3),
        )
        return SearchResult(
            start=state.artist(start_artist.id),
            target=state.artist(target_artist.id),
            status=STATUS_OK,
            hops=tuple(hops),
            nodes=tuple(nodes),
            elapsed_seconds=elapsed,
        )

    def _resolve_artist(self, query: str, role: str, offline: bool) -> Artist:
        artist = self.artist_resolver.resolve(query, offline=offline)
        if artist is None or not artist.id:
            raise ArtistNotFoundError(f"{role} artist not found")
        return artist

    def _bfs(
        self,
        state: SearchState,
        start: Artist,
        target: Artist,
        max_depth: int,
        started: float,
        cancel_event: threading.Event | None,
        offline: bool,
    ):
        if start.id == target.id:
            return reconstruct_path(state.predecessors, state.evidence, start.id, target.id, state.artists)

        state.visited.add(start.id)
        frontier: deque[tuple[str, int]] = deque([(start.id, 0)])
        while frontier:
            if cancel_event is not None and cancel_event.is_set():
                raise SearchCancelledError()
            if self.clock() - started > self.max_duration_seconds:
                _log_event(logging.WARNING, "search_timed_out", start=start.id, target=target.id)
                raise SearchTimeoutError()

            current_id, depth = frontier.popleft()
            current = state.artist(current_id)
            state.progress.enter_node(current.name)
            if max_depth > 0 and depth > max_depth:
                continue

            lookup = self.resolver.resolve(current, self.neighbor_limit, offline)
            if lookup.rate_limited:
                _log_event(logging.WARNING, "search_rate_limited", artist_id=current_id, error=lookup.error)
                raise RateLimitedError()
            if not lookup.ok:
                _log_event(
                    logging.WARNING,
                    "search_resolver_failure",
                    artist_id=current_id,
                    status=lookup.status,
                    error=lookup.error,
                )
                continue

            state.progress.begin_node(len(lookup.edges))
            _log_event(
                logging.DEBUG,
                "search_expand",
                artist_id=current_id,
                artist=current.name,
                depth=depth,
                neighbors=len(lookup.edges),
                frontier=len(frontier),
            )
            kept: list[NeighborEdge] = []
            for processed, edge in enumerate(lookup.edges, start=1):
                state.progress.visit_edge(processed)
                tracks = deduplicate_tracks(edge.tracks, self.edge_threshold, metrics=self.metrics)
                if not tracks:
                    continue
                neighbor = state.register(edge.artist)
                kept.append(replace(edge, tracks=tuple(tracks)))
                if neighbor.id not in state.visited:
                    state.visited.add(neighbor.id)
                    state.predecessors[neighbor.id] = current_id
                    state.evidence[EdgeKey(current_id, neighbor.id)] = tuple(tracks)
                    frontier.append((neighbor.id, depth + 1))
                    state.progress.discover(depth + 1)
                if neighbor.id == target.id:
                    self._remember(current, kept, lookup.edges[processed:])
                    return reconstruct_path(state.predecessors, state.evidence, start.id, target.id, state.artists)
            self._remember(current, kept)

        raise PathNotFoundError()

    def _remember(self, artist: Artist, kept: list[NeighborEdge], rest: tuple[NeighborEdge, ...] = ()) -> None:
        """Cache the full deduplicated neighbor set of ``artist``.

        ``rest`` holds edges skipped by an early exit; they are deduplicated
        here so the cached entry never holds a partial neighbor list.
        """
        if self.neighbor_cache is None:
            return
        edges = list(kept)
        for edge in rest:
            tracks = deduplicate_tracks(edge.tracks, self.edge_threshold, metrics=self.metrics)
            if tracks:
                edges.append(replace(edge, tracks=tuple(tracks)))
        self.neighbor_cache.put_edges(artist, edges, limit=clamp_neighbor_limit(self.neighbor_limit))


def build_default_engine(
    backend: str | None = None,
    *,
    db_path: str | None = None,
    neighbor_cache: RecentNeighborCache | None = None,
) -> PathSearchEngine:
    from db.collab_store import CollabStore
    from engine.artists import MusicBrainzArtistResolver, StoreArtistResolver
    from engine.neighbors import CachingNeighborResolver, MusicBrainzNeighborResolver, StoreNeighborResolver

    name = (backend or settings.NEIGHBOR_BACKEND or "store").strip().lower()
    if name == "musicbrainz":
        resolver: NeighborResolver = MusicBrainzNeighborResolver()
        if neighbor_cache is not None:
            # Web-service lookups are slow; reuse recent expansions across searches.
            resolver = CachingNeighborResolver(resolver, neighbor_cache)
        artist_resolver: ArtistResolver = MusicBrainzArtistResolver()
    elif name == "store":
        if db_path is None:
            from engine.paths import DB_PATH

            db_path = str(DB_PATH)
        store = CollabStore(db_path)
        resolver = StoreNeighborResolver(store)
        artist_resolver = StoreArtistResolver(store)
    else:
        raise ValueError(f"unknown neighbor backend: {backend}")
    return PathSearchEngine(resolver, artist_resolver, neighbor_cache=neighbor_cache)


_DEFAULT_ENGINE: PathSearchEngine | None = None
_DEFAULT_ENGINE_LOCK = threading.Lock()


def get_default_engine() -> PathSearchEngine:
    global _DEFAULT_ENGINE
    if _DEFAULT_ENGINE is not None:
        return _DEFAULT_ENGINE
    with _DEFAULT_ENGINE_LOCK:
        if _DEFAULT_ENGINE is None:
            _DEFAULT_ENGINE = build_default_engine(neighbor_cache=RecentNeighborCache())
    return _DEFAULT_ENGINE


def run_search(start: str, target: str, depth: int = 0) -> SearchResult:
    """Entry point for job runners: search with the configured backend."""
    return get_default_engine().run_search(start, target, depth)


__all__ = [
    "EdgeKey",
    "PathSearchEngine",
    "SearchProgress",
    "SearchState",
    "build_default_engine",
    "get_default_engine",
    "run_search",
]
