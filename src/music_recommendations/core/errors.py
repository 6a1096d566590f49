"""Errors raised by the scoring engine.

Transports translate these into client-facing statuses.
"""


class RecommendationError(Exception):
    """Base class for recommendation engine errors."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ConflictError(RecommendationError):
    """A recommendation with the same name already exists."""


class NotFoundError(RecommendationError):
    """No recommendation matched the lookup."""

    def __init__(self, message: str = "Recommendation not found"):
        super().__init__(message)
