"""Search error taxonomy.

Every error carries an HTTP-style ``status`` and a ``message`` that is safe
to show to a user. Only rate limiting, timeouts, cancellation and internal
invariant failures end a search early; a ``ResolverFailure`` at one node is
logged and the node is skipped.
"""

from __future__ import annotations

STATUS_OK = 200
STATUS_INVALID_INPUT = 400
STATUS_NOT_FOUND = 404
STATUS_RATE_LIMITED = 429
STATUS_CANCELLED = 499
STATUS_INTERNAL_ERROR = 500
STATUS_TIMED_OUT = 504


class SearchError(Exception):
    status = STATUS_INTERNAL_ERROR
    default_message = "search failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(SearchError):
    status = STATUS_INVALID_INPUT
    default_message = "start or target empty"


class ArtistNotFoundError(SearchError):
    status = STATUS_NOT_FOUND
    default_message = "artist not found"


class PathNotFoundError(SearchError):
    status = STATUS_NOT_FOUND
    default_message = "no path found"


class RateLimitedError(SearchError):
    status = STATUS_RATE_LIMITED
    default_message = "external rate limit reached; try again later"


class ResolverFailure(SearchError):
    status = STATUS_INTERNAL_ERROR
    default_message = "neighbor lookup failed"


class SearchTimeoutError(SearchError):
    status = STATUS_TIMED_OUT
    default_message = "search exceeded its time limit"


class SearchCancelledError(SearchError):
    status = STATUS_CANCELLED
    default_message = "search cancelled"


class InternalInvariantError(SearchError):
    status = STATUS_INTERNAL_ERROR
    default_message = "internal error while reconstructing the path"


__all__ = [
    "STATUS_CANCELLED",
    "STATUS_INTERNAL_ERROR",
    "STATUS_INVALID_INPUT",
    "STATUS_NOT_FOUND",
    "STATUS_OK",
    "STATUS_RATE_LIMITED",
    "STATUS_TIMED_OUT",
    "ArtistNotFoundError",
    "InternalInvariantError",
    "InvalidInputError",
    "PathNotFoundError",
    "RateLimitedError",
    "ResolverFailure",
    "SearchCancelledError",
    "SearchError",
    "SearchTimeoutError",
]
