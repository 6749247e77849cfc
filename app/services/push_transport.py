"""Web Push transport adapter.

Wraps ``pywebpush`` behind a single coroutine that performs exactly one
delivery attempt and reports the outcome as a ``DeliveryResult``. Push service
HTTP status codes never leave this module; callers branch on
``DeliveryOutcome`` instead.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from functools import partial

from pywebpush import WebPushException, webpush
from requests import RequestException

from app.core.config import settings


logger = logging.getLogger(__name__)


class DeliveryOutcome(str, Enum):
    """Closed set of delivery outcomes."""

    SENT = "sent"
    ENDPOINT_GONE = "endpoint_gone"
    TRANSIENT_FAILURE = "transient_failure"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    UNAUTHORIZED = "unauthorized"


@dataclass(frozen=True)
class SubscriptionInfo:
    """Endpoint and encryption keys of one push subscription."""

    endpoint: str
    p256dh: str
    auth: str

    @classmethod
    def from_subscriber(cls, subscriber) -> "SubscriptionInfo":
        return cls(
            endpoint=subscriber.endpoint,
            p256dh=subscriber.p256dh_key,
            auth=subscriber.auth_key,
        )

    @property
    def is_well_formed(self) -> bool:
        return bool(self.endpoint and self.p256dh and self.auth)

    def as_dict(self) -> dict:
        return {"endpoint": self.endpoint, "keys": {"p256dh": self.p256dh, "auth": self.auth}}


@dataclass(frozen=True)
class DeliveryResult:
    """Result of one delivery attempt."""

    outcome: DeliveryOutcome
    status_code: int | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is DeliveryOutcome.SENT

    @property
    def is_fatal(self) -> bool:
        """Fatal outcomes abort the rest of the batch."""
        return self.outcome is DeliveryOutcome.UNAUTHORIZED

    @property
    def deactivates_subscriber(self) -> bool:
        return self.outcome is DeliveryOutcome.ENDPOINT_GONE


def classify_status(status_code: int | None) -> DeliveryOutcome:
    """Map a push service HTTP status code to a delivery outcome."""
    if status_code is None:
        return DeliveryOutcome.TRANSIENT_FAILURE
    if 200 <= status_code < 300:
        return DeliveryOutcome.SENT
    if status_code in (404, 410):
        return DeliveryOutcome.ENDPOINT_GONE
    if status_code in (401, 403):
        return DeliveryOutcome.UNAUTHORIZED
    if status_code == 413:
        return DeliveryOutcome.PAYLOAD_TOO_LARGE
    return DeliveryOutcome.TRANSIENT_FAILURE


class PushTransport:
    """Delivers encrypted payloads to push service endpoints with VAPID auth."""

    def __init__(
        self,
        vapid_private_key: str | None = None,
        vapid_claims: dict | None = None,
        timeout: float | None = None,
        ttl: int | None = None,
        max_payload_bytes: int | None = None,
    ):
        self.vapid_private_key = vapid_private_key or settings.vapid_private_key
        self.vapid_claims = vapid_claims or settings.vapid_claims
        self.timeout = timeout if timeout is not None else settings.push_timeout_seconds
        self.ttl = ttl if ttl is not None else settings.push_ttl_seconds
        self.max_payload_bytes = max_payload_bytes or settings.push_max_payload_bytes

    @property
    def is_configured(self) -> bool:
        return bool(self.vapid_private_key)

    def check_payload_size(self, payload: bytes) -> bool:
        return len(payload) <= self.max_payload_bytes

    async def deliver(self, subscription: SubscriptionInfo, payload: bytes) -> DeliveryResult:
        """Perform one delivery attempt. Never raises for per-endpoint problems."""
        if not self.check_payload_size(payload):
            return DeliveryResult(
                DeliveryOutcome.PAYLOAD_TOO_LARGE,
                reason=f"payload is {len(payload)} bytes, limit {self.max_payload_bytes}",
            )

        if not subscription.is_well_formed:
            # A stored subscription without keys can never be delivered
            return DeliveryResult(DeliveryOutcome.ENDPOINT_GONE, reason="malformed subscription")

        if not self.is_configured:
            return DeliveryResult(DeliveryOutcome.UNAUTHORIZED, reason="VAPID private key missing")

        send = partial(
            webpush,
            subscription_info=subscription.as_dict(),
            data=payload,
            vapid_private_key=self.vapid_private_key,
            vapid_claims=dict(self.vapid_claims),
            ttl=self.ttl,
            timeout=self.timeout,
        )

        loop = asyncio.get_running_loop()
        try:
            response = await asyncio.wait_for(
                loop.run_in_executor(None, send),
                # requests enforces self.timeout per socket operation; this bounds the whole call
                timeout=self.timeout * 2,
            )
        except WebPushException as e:
            status_code = e.response.status_code if e.response is not None else None
            outcome = classify_status(status_code)
            logger.debug(f"Push to {subscription.endpoint[:60]} failed: {status_code} {e.message}")
            return DeliveryResult(outcome, status_code=status_code, reason=str(e.message))
        except asyncio.TimeoutError:
            return DeliveryResult(DeliveryOutcome.TRANSIENT_FAILURE, reason="timed out")
        except RequestException as e:
            return DeliveryResult(DeliveryOutcome.TRANSIENT_FAILURE, reason=str(e))
        except ValueError as e:
            # py_vapid raises ValueError for unusable keys or claims
            logger.error(f"VAPID signing failed: {str(e)}")
            return DeliveryResult(DeliveryOutcome.UNAUTHORIZED, reason=str(e))

        status_code = getattr(response, "status_code", None)
        outcome = classify_status(status_code) if status_code is not None else DeliveryOutcome.SENT
        return DeliveryResult(outcome, status_code=status_code)


# Create singleton instance
push_transport = PushTransport()
