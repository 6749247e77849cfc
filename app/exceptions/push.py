# ruff: noqa: D107
"""Web Push exceptions."""

from typing import Any

from .base import BaseAppException, ServiceUnavailableError


class PushNotConfiguredError(ServiceUnavailableError):
    """Raised when VAPID credentials are missing."""

    def __init__(self, message: str = "Web Push is not configured (missing VAPID keys)"):
        super().__init__(message=message, error_code="PUSH_NOT_CONFIGURED")


class PayloadTooLargeError(BaseAppException):
    """Raised when an encoded notification payload exceeds the push size limit."""

    def __init__(
        self,
        message: str = "Notification payload exceeds the push service size limit",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            status_code=413,
            error_code="PAYLOAD_TOO_LARGE",
            details=details,
        )
