# ruff: noqa: D107
"""Subscriber-related exceptions."""

from .base import NotFoundError


class SubscriberNotFoundError(NotFoundError):
    """Raised when a subscriber is not found."""

    def __init__(self, message: str = "Subscriber not found"):
        super().__init__(message=message, error_code="SUBSCRIBER_NOT_FOUND")
