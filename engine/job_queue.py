"""In-process registry of background path searches."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from config import settings
from engine.errors import STATUS_CANCELLED, STATUS_OK
from engine.json_utils import safe_json_dumps
from engine.search_engine import PathSearchEngine, SearchState
from metadata.types import SearchResult

JOB_PENDING = "pending"
JOB_RUNNING = "running"
JOB_FINISHED = "finished"
JOB_ERROR = "error"
JOB_CANCELLED = "cancelled"
TERMINAL_JOB_STATUSES = frozenset({JOB_FINISHED, JOB_ERROR, JOB_CANCELLED})

logger = logging.getLogger(__name__)


def utc_now():
    return datetime.now(timezone.utc).isoformat()


def _log_event(level, message, **fields):
    payload = {"message": message, **fields}
    try:
        logger.log(level, safe_json_dumps(payload, sort_keys=True))
    except (TypeError, ValueError) as exc:
        logger.log(level, f"log_event_serialization_failed: {exc} message={message}")


@dataclass
class SearchJob:
    id: str
    start: str
    target: str
    depth: int
    status: str = JOB_PENDING
    created_at: str = field(default_factory=utc_now)
    started_at: str | None = None
    finished_at: str | None = None
    result: SearchResult | None = None
    error: str | None = None
    state: SearchState = field(default_factory=SearchState)
    cancel_event: threading.Event = field(default_factory=threading.Event)

    def to_dict(self) -> dict[str, Any]:
        return {
            "jobID": self.id,
            "status": self.status,
            "start": self.start,
            "target": self.target,
            "depth": self.depth,
            "createdAt": self.created_at,
            "startedAt": self.started_at,
            "finishedAt": self.finished_at,
            "progress": self.state.progress.snapshot(),
            "result": self.result.to_dict() if self.result is not None else None,
            "error": self.error,
        }


class SearchJobRegistry:
    """Runs searches on a worker pool and keeps their status for polling.

    Each job owns its ``SearchState``, so progress read by a poller always
    belongs to that job. Jobs stay in memory for the life of the registry.
    """

    def __init__(
        self,
        engine: PathSearchEngine,
        *,
        max_workers: int | None = None,
        executor: Executor | None = None,
    ) -> None:
        self.engine = engine
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max(1, max_workers or settings.SEARCH_JOB_WORKERS),
            thread_name_prefix="search-job",
        )
        self._lock = threading.Lock()
        self._jobs: dict[str, SearchJob] = {}

    def submit(self, start: str, target: str, depth: int = 0) -> str:
        job = SearchJob(id=uuid4().hex, start=start, target=target, depth=int(depth or 0))
        with self._lock:
            self._jobs[job.id] = job
        _log_event(logging.INFO, "search_job_created", job_id=job.id, start=start, target=target, depth=job.depth)
        self._executor.submit(self._run, job)
        return job.id

    def _update(self, job: SearchJob, **changes: Any) -> None:
        with self._lock:
            for key, value in changes.items():
                setattr(job, key, value)

    def _run(self, job: SearchJob) -> None:
        if job.cancel_event.is_set():
            self._update(job, status=JOB_CANCELLED, finished_at=utc_now(), error="search cancelled")
            return
        self._update(job, status=JOB_RUNNING, started_at=utc_now())
        try:
            result = self.engine.search(
                job.start,
                job.target,
                max_depth=job.depth,
                state=job.state,
                cancel_event=job.cancel_event,
            )
        except Exception as exc:
            logger.exception("search job crashed job_id=%s", job.id)
            self._update(job, status=JOB_ERROR, finished_at=utc_now(), error=f"internal error: {exc.__class__.__name__}")
            return

        if result.status == STATUS_OK:
            status, error = JOB_FINISHED, None
        elif result.status == STATUS_CANCELLED:
            status, error = JOB_CANCELLED, result.message
        else:
            status, error = JOB_ERROR, result.message
        self._update(job, status=status, result=result, error=error, finished_at=utc_now())
        _log_event(logging.INFO, "search_job_done", job_id=job.id, status=status, search_status=result.status)

    def get(self, job_id: str) -> dict[str, Any] | None:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None
            return job.to_dict()

    def cancel(self, job_id: str) -> bool:
        """Ask a job to stop; returns False for unknown or already finished jobs."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.status in TERMINAL_JOB_STATUSES:
                return False
            job.cancel_event.set()
        _log_event(logging.INFO, "search_job_cancel_requested", job_id=job_id)
        return True

    def shutdown(self, wait: bool = False) -> None:
        with self._lock:
            for job in self._jobs.values():
                if job.status not in TERMINAL_JOB_STATUSES:
                    job.cancel_event.set()
        if self._owns_executor:
            self._executor.shutdown(wait=wait)


__all__ = [
    "JOB_CANCELLED",
    "JOB_ERROR",
    "JOB_FINISHED",
    "JOB_PENDING",
    "JOB_RUNNING",
    "SearchJob",
    "SearchJobRegistry",
]
