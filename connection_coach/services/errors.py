from __future__ import annotations


class RecommendationError(Exception):
    """Base class for errors raised while building recommendations."""


class NotFoundError(RecommendationError):
    """A record the core depends on (usually the child) does not exist."""


class UpstreamReadError(RecommendationError):
    """A storage read failed for a reason other than a missing record."""


class FallbackExhaustionError(RecommendationError):
    """The fallback strategy could not find the child either.

    This is the only failure surfaced to callers of the recommendation engine.
    """
