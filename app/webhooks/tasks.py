"""
Celery tasks for webhook delivery.

Tasks:
- drain_due_webhooks: Periodic scan queueing a delivery task per due record
- deliver_webhook: Claim and deliver one record

Retries are driven by each record's next_retry_at, not by Celery: a
failed attempt is written back to the record and the drainer picks it
up again once it is due.

Usage:
    # Typically called via celery-beat schedule (every minute)
    from webhooks.tasks import drain_due_webhooks

    drain_due_webhooks.delay()
"""

from __future__ import annotations

import logging

from celery import shared_task
from django.conf import settings

logger = logging.getLogger(__name__)


@shared_task(bind=True)
def drain_due_webhooks(self) -> dict:
    """
    Queue a delivery task for every due webhook record.

    Duplicate queueing is harmless: only one task wins the claim.

    Returns:
        Dict with queued_count
    """
    from webhooks.engine import webhook_engine

    logger.info("Starting webhook drain scan")

    queued_count = 0
    for webhook_id in webhook_engine.due_ids(settings.WEBHOOK_BATCH_SIZE):
        try:
            deliver_webhook.delay(str(webhook_id))
            queued_count += 1
        except Exception as e:
            logger.error(
                f"Failed to queue webhook for delivery: {e}",
                extra={"webhook_id": str(webhook_id), "error": str(e)},
            )

    logger.info(
        f"Webhook drain scan complete: queued {queued_count} deliveries",
        extra={"queued_count": queued_count},
    )
    return {"queued_count": queued_count}


@shared_task(bind=True, acks_late=True)
def deliver_webhook(self, webhook_id: str) -> dict:
    """
    Claim and deliver one webhook record.

    Returns:
        Dict with webhook_id and the resulting status, or "skipped" when
        the record was not due or another worker holds the claim
    """
    from webhooks.engine import webhook_engine

    outcome = webhook_engine.deliver_one(webhook_id)
    return {"webhook_id": webhook_id, "status": outcome or "skipped"}
