"""
Webhook delivery exceptions.

Exception Hierarchy:
    WebhookError (base)
    ├── WebhookDeliveryError - One delivery attempt failed
    └── NoWebhookUrl - Merchant has no webhook URL configured

Usage:
    from webhooks.exceptions import WebhookDeliveryError

    if not response.ok:
        raise WebhookDeliveryError(
            f"HTTP {response.status_code}: {response.reason}",
            status_code=response.status_code,
        )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError

if TYPE_CHECKING:
    from typing import Any


class WebhookError(BaseApplicationError):
    """Base exception for webhook operations."""

    default_error_code: str = "WEBHOOK_ERROR"


class WebhookDeliveryError(WebhookError):
    """
    Raised when one delivery attempt fails.

    Never leaves the engine: the failure is recorded on the delivery
    record and the record is rescheduled or marked failed.

    Attributes:
        status_code: HTTP status if the receiver answered
    """

    default_error_code: str = "WEBHOOK_DELIVERY_FAILED"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.status_code = status_code
        full_details: dict[str, Any] = {}
        if status_code is not None:
            full_details["status_code"] = status_code
        if details:
            full_details.update(details)
        super().__init__(message=message, error_code=error_code, details=full_details)


class NoWebhookUrl(WebhookError):
    default_error_code: str = "NO_WEBHOOK_URL"
