"""Error taxonomy for rank lookups.

``MissingHandle`` and ``UpstreamUnavailable`` reach the caller as distinct
HTTP responses. ``ParseDegraded`` never does: the loader and the engine log
it and fall through to the next representation or strategy. A lookup that
simply finds nothing is not an error at all.
"""

from __future__ import annotations


class LeaderboardError(Exception):
    """Base class for lookup errors."""


class MissingHandle(LeaderboardError):
    """The required handle was not supplied."""


class UpstreamUnavailable(LeaderboardError):
    """The leaderboard page could not be fetched or loaded."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ParseDegraded(LeaderboardError):
    """A document representation or strategy could not be evaluated."""
