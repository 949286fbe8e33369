"""
Webhook delivery with retries and terminal states.

Records are queued by enqueue() and delivered by whichever worker claims
them first. A claim is a conditional UPDATE that pushes next_retry_at
forward by a lease and stamps a fresh claim token; only the worker whose
UPDATE matched delivers, and every outcome write is conditioned on that
token. A worker that dies mid-delivery loses nothing: the lease runs
out and the record is claimed again.

Delivery:
    1. Sign "{timestamp}.{body}" with the merchant secret (HMAC-SHA256)
    2. POST with X-Webhook-Id / X-Webhook-Timestamp / X-Webhook-Signature
    3. 2xx -> DELIVERED
    4. Anything else -> RETRYING with exponential backoff, or FAILED
       once WEBHOOK_MAX_RETRIES attempts have been made

Usage:
    from webhooks.engine import webhook_engine

    webhook_id = webhook_engine.enqueue(merchant.webhook_url, payload, merchant.id)

    # From the periodic drainer
    webhook_engine.drain_due(limit=50)
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta

import requests
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from merchants.models import Merchant
from webhooks.exceptions import NoWebhookUrl, WebhookDeliveryError
from webhooks.models import WebhookDelivery, WebhookStatus
from webhooks.signing import serialize_payload, signature_header

logger = logging.getLogger(__name__)


def backoff_delay(attempt: int) -> timedelta:
    """
    Delay before retrying after failed attempt number `attempt` (1-based).

    min(WEBHOOK_INITIAL_DELAY_MS * 2^(attempt-1), WEBHOOK_MAX_DELAY_MS)
    """
    delay_ms = min(
        settings.WEBHOOK_INITIAL_DELAY_MS * 2 ** (attempt - 1),
        settings.WEBHOOK_MAX_DELAY_MS,
    )
    return timedelta(milliseconds=delay_ms)


def response_metadata(response: requests.Response) -> dict:
    return {
        "status": response.status_code,
        "reason": response.reason,
        "headers": dict(response.headers),
    }


class WebhookDeliveryEngine:
    """
    Queue, claim and deliver webhook records.

    Attributes:
        session: HTTP session used for delivery POSTs
    """

    def __init__(self, session: requests.Session | None = None):
        self.session = session

    # ==========================================================================
    # Queueing
    # ==========================================================================

    def enqueue(
        self,
        url: str,
        payload: dict,
        merchant_id,
        event_type: str | None = None,
    ) -> uuid.UUID:
        """
        Create a PENDING delivery record due immediately.

        Delivery is also kicked once the surrounding transaction commits;
        if that kick is lost the periodic drainer picks the record up.

        Returns:
            The webhook id (sent as X-Webhook-Id)
        """
        delivery = WebhookDelivery.objects.create(
            merchant_id=merchant_id,
            event_type=event_type or payload.get("type", ""),
            url=url,
            payload=payload,
            status=WebhookStatus.PENDING,
            attempts=0,
            next_retry_at=timezone.now(),
        )
        webhook_id = delivery.pk
        transaction.on_commit(lambda: self._kick(webhook_id))

        logger.info(
            f"Webhook {delivery.event_type} queued for delivery to {url}",
            extra={
                "webhook_id": str(webhook_id),
                "merchant_id": str(merchant_id),
                "event_type": delivery.event_type,
            },
        )
        return webhook_id

    def enqueue_for_merchant(self, merchant: Merchant, payload: dict) -> uuid.UUID:
        """
        Enqueue a payload to the merchant's configured URL.

        Raises:
            NoWebhookUrl: If the merchant has no webhook URL
        """
        if not merchant.webhook_url:
            raise NoWebhookUrl(
                "No webhook URL configured for merchant",
                details={"merchant_id": str(merchant.pk)},
            )
        return self.enqueue(merchant.webhook_url, payload, merchant.pk)

    def _kick(self, webhook_id: uuid.UUID) -> None:
        from webhooks.tasks import deliver_webhook

        try:
            deliver_webhook.delay(str(webhook_id))
        except Exception as e:
            logger.error(
                f"Failed to queue webhook delivery, leaving it to the drainer: {e}",
                extra={"webhook_id": str(webhook_id), "error": str(e)},
            )

    # ==========================================================================
    # Claiming
    # ==========================================================================

    def claim(self, webhook_id, now: datetime | None = None) -> uuid.UUID | None:
        """
        Try to take exclusive ownership of a due record.

        Returns:
            The claim token, or None if the record is not due, is
            terminal, or another worker claimed it first
        """
        now = now or timezone.now()
        token = uuid.uuid4()
        updated = WebhookDelivery.objects.filter(
            pk=webhook_id,
            status__in=WebhookStatus.active(),
            next_retry_at__lte=now,
        ).update(
            next_retry_at=now + timedelta(seconds=settings.WEBHOOK_CLAIM_LEASE_SECONDS),
            claim_token=token,
            updated_at=now,
        )
        return token if updated == 1 else None

    def due_ids(self, limit: int, now: datetime | None = None) -> list[uuid.UUID]:
        """Ids of records a drainer may claim, oldest due first."""
        now = now or timezone.now()
        return list(
            WebhookDelivery.objects.filter(
                status__in=WebhookStatus.active(),
                next_retry_at__lte=now,
            )
            .order_by("next_retry_at")
            .values_list("pk", flat=True)[:limit]
        )

    def claim_due(self, limit: int) -> list[tuple[uuid.UUID, uuid.UUID]]:
        """Claim up to limit due records; returns (webhook_id, token) pairs."""
        claims = []
        for webhook_id in self.due_ids(limit):
            token = self.claim(webhook_id)
            if token:
                claims.append((webhook_id, token))
        return claims

    # ==========================================================================
    # Delivery
    # ==========================================================================

    def deliver(self, webhook_id, claim_token: uuid.UUID) -> str | None:
        """
        Make one delivery attempt for a claimed record.

        Returns:
            The record's new status, or None if the claim was lost
        """
        delivery = (
            WebhookDelivery.objects.select_related("merchant")
            .filter(pk=webhook_id, claim_token=claim_token)
            .first()
        )
        if delivery is None or delivery.is_terminal:
            logger.info(
                "Webhook claim lost before delivery",
                extra={"webhook_id": str(webhook_id)},
            )
            return None

        attempt = delivery.attempts + 1
        try:
            metadata = self._post(delivery)
        except WebhookDeliveryError as e:
            metadata = e.details.get("response")
            return self._record_failure(delivery, claim_token, attempt, e.message, metadata)

        return self._record_success(delivery, claim_token, attempt, metadata)

    def deliver_one(self, webhook_id) -> str | None:
        """Claim and deliver a single record if it is due."""
        token = self.claim(webhook_id)
        if token is None:
            return None
        return self.deliver(webhook_id, token)

    def drain_due(self, limit: int | None = None) -> dict:
        """
        Claim and deliver due records in this process.

        Each record is handled independently; an unexpected error on one
        leaves its claim to expire and does not stop the others.

        Returns:
            Dict with counts per outcome
        """
        limit = limit or settings.WEBHOOK_BATCH_SIZE
        results = {"claimed": 0, "delivered": 0, "retrying": 0, "failed": 0, "errors": 0}

        for webhook_id, token in self.claim_due(limit):
            results["claimed"] += 1
            try:
                outcome = self.deliver(webhook_id, token)
            except Exception as e:
                results["errors"] += 1
                logger.error(
                    f"Unexpected error delivering webhook: {e}",
                    extra={"webhook_id": str(webhook_id), "error": str(e)},
                    exc_info=True,
                )
                continue
            if outcome in results:
                results[outcome] += 1

        return results

    def _post(self, delivery: WebhookDelivery) -> dict:
        """
        POST the signed payload.

        Returns:
            Response metadata on 2xx

        Raises:
            WebhookDeliveryError: On timeout, network error or non-2xx
        """
        body = serialize_payload(delivery.payload)
        timestamp = int(timezone.now().timestamp())
        headers = {
            "Content-Type": "application/json",
            "X-Webhook-Id": str(delivery.pk),
            "X-Webhook-Timestamp": str(timestamp),
            "X-Webhook-Signature": signature_header(
                delivery.merchant.signing_secret(), timestamp, body
            ),
            "User-Agent": settings.WEBHOOK_USER_AGENT,
        }

        post = self.session.post if self.session is not None else requests.post
        try:
            response = post(
                delivery.url,
                data=body.encode("utf-8"),
                headers=headers,
                timeout=settings.WEBHOOK_TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            raise WebhookDeliveryError(f"Request failed: {e}") from e

        metadata = response_metadata(response)
        if not 200 <= response.status_code < 300:
            raise WebhookDeliveryError(
                f"HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
                details={"response": metadata},
            )
        return metadata

    def _record_success(
        self,
        delivery: WebhookDelivery,
        claim_token: uuid.UUID,
        attempt: int,
        metadata: dict,
    ) -> str | None:
        now = timezone.now()
        updated = WebhookDelivery.objects.filter(
            pk=delivery.pk, claim_token=claim_token
        ).update(
            status=WebhookStatus.DELIVERED,
            attempts=attempt,
            last_attempt_at=now,
            delivered_at=now,
            next_retry_at=None,
            last_response=metadata,
            claim_token=None,
            updated_at=now,
        )
        if not updated:
            logger.warning(
                "Webhook delivered but claim was lost; outcome not recorded",
                extra={"webhook_id": str(delivery.pk), "attempt": attempt},
            )
            return None

        logger.info(
            f"Webhook {delivery.pk} delivered on attempt {attempt}",
            extra={
                "webhook_id": str(delivery.pk),
                "attempt": attempt,
                "status_code": metadata["status"],
            },
        )
        return WebhookStatus.DELIVERED

    def _record_failure(
        self,
        delivery: WebhookDelivery,
        claim_token: uuid.UUID,
        attempt: int,
        error: str,
        metadata: dict | None,
    ) -> str | None:
        now = timezone.now()
        fields = {
            "attempts": attempt,
            "last_attempt_at": now,
            "last_error": error,
            "claim_token": None,
            "updated_at": now,
        }
        if metadata is not None:
            fields["last_response"] = metadata

        if attempt < settings.WEBHOOK_MAX_RETRIES:
            new_status = WebhookStatus.RETRYING
            fields.update(status=new_status, next_retry_at=now + backoff_delay(attempt))
        else:
            new_status = WebhookStatus.FAILED
            fields.update(status=new_status, next_retry_at=None, failed_at=now)

        updated = WebhookDelivery.objects.filter(
            pk=delivery.pk, claim_token=claim_token
        ).update(**fields)
        if not updated:
            logger.warning(
                "Webhook attempt failed and claim was lost; outcome not recorded",
                extra={"webhook_id": str(delivery.pk), "attempt": attempt},
            )
            return None

        if new_status == WebhookStatus.FAILED:
            logger.error(
                f"Webhook {delivery.pk} failed permanently after {attempt} attempts: {error}",
                extra={"webhook_id": str(delivery.pk), "attempt": attempt, "error": error},
            )
        else:
            logger.warning(
                f"Webhook {delivery.pk} attempt {attempt} failed, retry at "
                f"{fields['next_retry_at'].isoformat()}: {error}",
                extra={"webhook_id": str(delivery.pk), "attempt": attempt, "error": error},
            )
        return new_status


# Singleton instance for convenience
# Usage: from webhooks.engine import webhook_engine
webhook_engine = WebhookDeliveryEngine()
