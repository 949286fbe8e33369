"""
Webhook delivery records.

Each record is one event to deliver to one merchant URL. The record is
the retry schedule: the engine claims due records, attempts delivery
and writes the outcome back.

Usage:
    from webhooks.models import WebhookDelivery, WebhookStatus

    due = WebhookDelivery.objects.filter(
        status__in=WebhookStatus.active(),
        next_retry_at__lte=timezone.now(),
    )
"""

from __future__ import annotations

from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class WebhookStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    RETRYING = "retrying", "Retrying"
    DELIVERED = "delivered", "Delivered"
    FAILED = "failed", "Failed"

    @classmethod
    def active(cls) -> list[str]:
        """States a drainer may still select."""
        return [cls.PENDING, cls.RETRYING]


class WebhookEventType(models.TextChoices):
    PAYMENT_DETECTED = "payment.detected", "Payment detected"
    PAYMENT_CONFIRMED = "payment.confirmed", "Payment confirmed"
    TEST = "test", "Test"


class WebhookDelivery(UUIDPrimaryKeyMixin, BaseModel):
    """
    One outbound webhook and its delivery state.

    Status Flow:
        PENDING -> DELIVERED
        PENDING -> RETRYING -> ... -> DELIVERED | FAILED
        DELIVERED and FAILED are terminal.

    Fields:
        merchant: Merchant the event belongs to
        event_type: Payload "type" value
        url: Target URL captured at enqueue time
        payload: JSON body
        status: Delivery state
        attempts: Attempts made so far (only increases)
        last_attempt_at: When the last attempt finished
        next_retry_at: Earliest time a drainer may claim the record
        last_error: Error of the last failed attempt
        last_response: Status, reason and headers of the last response
        delivered_at / failed_at: Terminal timestamps
        claim_token: Token of the drainer currently holding the record

    Note:
        The id is sent as X-Webhook-Id; receivers deduplicate on it.
    """

    merchant = models.ForeignKey(
        "merchants.Merchant",
        on_delete=models.PROTECT,
        related_name="webhook_deliveries",
    )
    event_type = models.CharField(
        max_length=50,
        choices=WebhookEventType.choices,
        db_index=True,
    )
    url = models.URLField(max_length=500)
    payload = models.JSONField()

    status = models.CharField(
        max_length=20,
        choices=WebhookStatus.choices,
        default=WebhookStatus.PENDING,
        db_index=True,
    )
    attempts = models.PositiveSmallIntegerField(default=0)
    last_attempt_at = models.DateTimeField(null=True, blank=True)
    next_retry_at = models.DateTimeField(null=True, blank=True)
    last_error = models.TextField(null=True, blank=True)
    last_response = models.JSONField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)
    claim_token = models.UUIDField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Webhook Delivery"
        verbose_name_plural = "Webhook Deliveries"
        indexes = [
            models.Index(fields=["status", "next_retry_at"], name="webhook_status_due_idx"),
            models.Index(fields=["merchant", "created_at"], name="webhook_merchant_created_idx"),
        ]

    def __str__(self) -> str:
        return f"WebhookDelivery({self.pk}, {self.event_type}, {self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in (WebhookStatus.DELIVERED, WebhookStatus.FAILED)
