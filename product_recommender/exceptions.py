"""
Error types raised by the recommender core
"""

from typing import Optional


class RecommenderError(Exception):
    """Base class for all recommender errors."""


class UnknownUserError(RecommenderError, KeyError):
    """Raised when a user has no recorded preferences."""

    def __init__(self, user_id: int):
        super().__init__(user_id)
        self.user_id = user_id

    def __str__(self) -> str:
        return f"Unknown user: {self.user_id}"


class NotComputableError(RecommenderError):
    """Raised when an estimate has no similarity signal behind it."""

    def __init__(self, user_id: int, item_id: int, reason: Optional[str] = None):
        self.user_id = user_id
        self.item_id = item_id
        self.reason = reason or "no similar rated items"
        super().__init__(
            f"Cannot estimate preference of user {user_id} for item {item_id}: {self.reason}"
        )


class InvalidArgumentError(RecommenderError, ValueError):
    """Raised for malformed identifiers or counts."""
