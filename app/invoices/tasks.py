"""
Celery tasks for invoice payment tracking.

Tasks:
- watch_pending_invoices: Periodic scan (every minute) expiring overdue
  invoices and queueing a payment check per pending invoice
- check_invoice_payment: Look for a payment to one invoice
- refresh_payment_confirmations: Periodic scan (every two minutes)
  queueing a confirmation refresh per tracked payment
- refresh_single_payment: Recompute one payment's confirmations

Usage:
    # Typically called via celery-beat schedule
    from invoices.tasks import watch_pending_invoices

    watch_pending_invoices.delay()

    # Check a specific invoice
    check_invoice_payment.delay(str(invoice.id))
"""

from __future__ import annotations

import logging

from celery import shared_task

from invoices.tracker import ConfirmationTracker

logger = logging.getLogger(__name__)


# =============================================================================
# Periodic Task: Watch Pending Invoices
# =============================================================================


@shared_task(bind=True)
def watch_pending_invoices(self) -> dict:
    """
    Expire overdue invoices and queue payment checks for pending ones.

    Returns:
        Dict with expired_count and queued_count
    """
    logger.info("Starting pending invoice scan")
    tracker = ConfirmationTracker()

    expired_count = tracker.expire_overdue()

    queued_count = 0
    for invoice_id in tracker.pending_invoice_ids():
        try:
            check_invoice_payment.delay(str(invoice_id))
            queued_count += 1
        except Exception as e:
            logger.error(
                f"Failed to queue invoice for payment check: {e}",
                extra={"invoice_id": str(invoice_id), "error": str(e)},
            )

    logger.info(
        f"Pending invoice scan complete: expired {expired_count}, queued {queued_count}",
        extra={"expired_count": expired_count, "queued_count": queued_count},
    )
    return {"expired_count": expired_count, "queued_count": queued_count}


@shared_task(bind=True, acks_late=True)
def check_invoice_payment(self, invoice_id: str) -> dict:
    """
    Check one invoice for a qualifying on-chain payment.

    Returns:
        Dict with invoice_id and status: "paid" when a payment was
        recorded, "no_payment", or "provider_unavailable"
    """
    result = ConfirmationTracker().check_invoice(invoice_id)
    if not result:
        return {
            "invoice_id": invoice_id,
            "status": "provider_unavailable",
            "error_code": result.error_code,
        }
    if result.data is None:
        return {"invoice_id": invoice_id, "status": "no_payment"}
    return {
        "invoice_id": invoice_id,
        "status": "paid",
        "payment_id": str(result.data.pk),
    }


# =============================================================================
# Periodic Task: Refresh Payment Confirmations
# =============================================================================


@shared_task(bind=True)
def refresh_payment_confirmations(self) -> dict:
    """
    Queue a confirmation refresh for every tracked payment.

    Returns:
        Dict with queued_count
    """
    logger.info("Starting payment confirmation scan")

    queued_count = 0
    for payment_id in ConfirmationTracker.refreshable_payment_ids():
        try:
            refresh_single_payment.delay(str(payment_id))
            queued_count += 1
        except Exception as e:
            logger.error(
                f"Failed to queue payment for confirmation refresh: {e}",
                extra={"payment_id": str(payment_id), "error": str(e)},
            )

    logger.info(
        f"Payment confirmation scan complete: queued {queued_count} payments",
        extra={"queued_count": queued_count},
    )
    return {"queued_count": queued_count}


@shared_task(bind=True, acks_late=True)
def refresh_single_payment(self, payment_id: str) -> dict:
    result = ConfirmationTracker().refresh_payment(payment_id)
    if not result:
        return {
            "payment_id": payment_id,
            "status": "provider_unavailable",
            "error_code": result.error_code,
        }
    return {"payment_id": payment_id, "status": "ok", "confirmations": result.data}
