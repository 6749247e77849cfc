# ruff: noqa: D107
"""RSS feed exceptions."""

from .base import ConflictError, NotFoundError


class FeedNotFoundError(NotFoundError):
    """Raised when an RSS feed source is not found."""

    def __init__(self, message: str = "RSS feed not found"):
        super().__init__(message=message, error_code="FEED_NOT_FOUND")


class DuplicateFeedError(ConflictError):
    """Raised when registering a feed URL that already exists."""

    def __init__(self, message: str = "An RSS feed with this URL already exists"):
        super().__init__(message=message, error_code="DUPLICATE_FEED")


class FeedError(Exception):
    """Base class for feed retrieval problems; handled inside the poller."""

    def __init__(self, url: str, message: str):
        self.url = url
        self.message = message
        super().__init__(f"{url}: {message}")


class FeedFetchError(FeedError):
    """The feed document could not be downloaded."""


class FeedParseError(FeedError):
    """The feed document could not be parsed."""
