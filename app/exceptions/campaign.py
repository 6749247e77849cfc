# ruff: noqa: D107
"""Campaign-related exceptions."""

from typing import Any

from .base import ConflictError, NotFoundError, ServiceUnavailableError


class CampaignNotFoundError(NotFoundError):
    """Raised when a campaign is not found."""

    def __init__(self, message: str = "Campaign not found"):
        super().__init__(message=message, error_code="CAMPAIGN_NOT_FOUND")


class CampaignAlreadySentError(ConflictError):
    """Raised when a send is requested for a campaign that already left draft."""

    def __init__(
        self,
        message: str = "Campaign has already been sent or is being sent",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message=message, error_code="CAMPAIGN_ALREADY_SENT", details=details)


class CampaignNotEditableError(ConflictError):
    """Raised when modifying a campaign that is no longer a draft."""

    def __init__(self, message: str = "Only draft or scheduled campaigns can be modified"):
        super().__init__(message=message, error_code="CAMPAIGN_NOT_EDITABLE")


class TemplateNotFoundError(NotFoundError):
    """Raised when a template is not found."""

    def __init__(self, message: str = "Template not found"):
        super().__init__(message=message, error_code="TEMPLATE_NOT_FOUND")


class CampaignDeliveryError(ServiceUnavailableError):
    """Raised when a send aborts on a systemic failure such as a storage outage."""

    def __init__(
        self,
        message: str = "Campaign delivery aborted",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message=message, error_code="CAMPAIGN_DELIVERY_FAILED", details=details)
