"""Greedy near-duplicate collapsing for track evidence lists."""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import replace
from pathlib import Path
from typing import Iterable

from metadata.canonical import TrackSignature, canonicalize
from metadata.equivalence import default_threshold, same_track
from metadata.types import TrackEvidence

logger = logging.getLogger(__name__)

_DEDUPE_LOG_ENV_KEY = "MELODYMAP_DEDUPE_LOG_PATH"
_CSV_HEADER = "ts,input_count,output_count,reduction_pct,threshold,elapsed_ms\n"


class DedupeMetricsLog:
    """Append-only CSV of per-call dedupe statistics.

    Without a path only a DEBUG log line is emitted.
    """

    def __init__(self, path: str | os.PathLike[str] | None = None) -> None:
        self._path = Path(path) if path else None
        self._lock = threading.Lock()

    @property
    def path(self) -> Path | None:
        return self._path

    def record(self, *, input_count: int, output_count: int, threshold: float, elapsed_ms: int) -> None:
        reduction = 0.0
        if input_count:
            reduction = (input_count - output_count) / input_count * 100
        logger.debug(
            "dedupe input=%d output=%d reduction_pct=%.2f threshold=%.3f elapsed_ms=%d",
            input_count,
            output_count,
            reduction,
            threshold,
            elapsed_ms,
        )
        if self._path is None:
            return
        row = f"{int(time.time())},{input_count},{output_count},{reduction:.2f},{threshold:.3f},{elapsed_ms}\n"
        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                write_header = not self._path.exists()
                with self._path.open("a", encoding="utf-8") as handle:
                    if write_header:
                        handle.write(_CSV_HEADER)
                    handle.write(row)
            except OSError:
                logger.warning("dedupe metrics write failed path=%s", self._path, exc_info=True)


_DEFAULT_METRICS: DedupeMetricsLog | None = None
_DEFAULT_METRICS_LOCK = threading.Lock()


def get_dedupe_metrics_log() -> DedupeMetricsLog:
    global _DEFAULT_METRICS
    if _DEFAULT_METRICS is not None:
        return _DEFAULT_METRICS
    with _DEFAULT_METRICS_LOCK:
        if _DEFAULT_METRICS is None:
            _DEFAULT_METRICS = DedupeMetricsLog(os.getenv(_DEDUPE_LOG_ENV_KEY) or None)
    return _DEFAULT_METRICS


def merge_tracks(representative: TrackEvidence, incoming: TrackEvidence) -> TrackEvidence:
    """Fold ``incoming`` into a cluster representative.

    The longer title wins; id and cover art are only filled when missing.
    """
    updates = {}
    if len(incoming.title) > len(representative.title):
        updates["title"] = incoming.title
    if not representative.id and incoming.id:
        updates["id"] = incoming.id
    if not representative.cover_url and incoming.cover_url:
        updates["cover_url"] = incoming.cover_url
    if not updates:
        return representative
    return replace(representative, **updates)


def _greedy_pass(
    signatures: list[TrackSignature],
    threshold: float,
) -> list[TrackSignature]:
    # A cluster keeps its seed's title signature; only the merged id and
    # cover art take part in later comparisons within the pass.
    clusters: list[TrackSignature] = []
    for signature in signatures:
        for idx, cluster in enumerate(clusters):
            if same_track(cluster, signature, threshold):
                clusters[idx] = replace(cluster, track=merge_tracks(cluster.track, signature.track))
                break
        else:
            clusters.append(signature)
    return clusters


def deduplicate_tracks(
    tracks: Iterable[TrackEvidence],
    threshold: float | None = None,
    verbose: bool = False,
    *,
    metrics: DedupeMetricsLog | None = None,
) -> list[TrackEvidence]:
    """Collapse near-duplicate recordings into canonical representatives.

    Each track is compared against the clusters accepted so far, in insertion
    order, and merged into the first one that matches; otherwise it opens a
    new cluster. Output keeps cluster creation order, so the result depends
    on input order.

    A merge can lengthen a representative's title or fill its id/cover art,
    which may make two earlier clusters equivalent. The pass is repeated over
    the representatives until nothing merges, so the result never holds two
    tracks ``same_track`` considers equal and a second call is a no-op.
    """
    if threshold is None:
        threshold = default_threshold()
    started = time.monotonic()
    items = list(tracks)
    signatures = [canonicalize(track) for track in items]
    while True:
        clusters = _greedy_pass(signatures, threshold)
        result = [cluster.track for cluster in clusters]
        if len(clusters) == len(signatures):
            break
        signatures = [canonicalize(track) for track in result]
    if verbose and len(result) != len(items):
        logger.info("deduplicated tracks from %d to %d", len(items), len(result))
        for position, track in enumerate(result, start=1):
            logger.info("%d. %s", position, track.title)

    elapsed_ms = int((time.monotonic() - started) * 1000)
    (metrics or get_dedupe_metrics_log()).record(
        input_count=len(items),
        output_count=len(result),
        threshold=threshold,
        elapsed_ms=elapsed_ms,
    )
    return result


__all__ = [
    "DedupeMetricsLog",
    "deduplicate_tracks",
    "get_dedupe_metrics_log",
    "merge_tracks",
]
