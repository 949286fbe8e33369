"""
Celery tasks for ledger maintenance.

Tasks:
- sweep_hot_addresses: Periodic scan queueing one sweep check per store
- sweep_single_store: Record sweep intents for one store

Usage:
    # Typically called via celery-beat schedule (every 6 hours)
    from ledger.tasks import sweep_hot_addresses

    sweep_hot_addresses.delay()
"""

from __future__ import annotations

import logging

from celery import shared_task

from merchants.models import Store

logger = logging.getLogger(__name__)


@shared_task(bind=True)
def sweep_hot_addresses(self) -> dict:
    """
    Queue a sweep check for every store.

    Returns:
        Dict with queued_count
    """
    logger.info("Starting hot address sweep scan")

    queued_count = 0
    for store_id in Store.objects.order_by("created_at").values_list("id", flat=True):
        try:
            sweep_single_store.delay(str(store_id))
            queued_count += 1
        except Exception as e:
            logger.error(
                f"Failed to queue store for sweeping: {e}",
                extra={"store_id": str(store_id), "error": str(e)},
            )

    logger.info(
        f"Hot address sweep scan complete: queued {queued_count} stores",
        extra={"queued_count": queued_count},
    )
    return {"queued_count": queued_count}


@shared_task(bind=True, acks_late=True)
def sweep_single_store(self, store_id: str) -> dict:
    """
    Record sweep intents for one store's deposit addresses.

    Returns:
        Dict with status, store_id and the number of intents recorded
    """
    from ledger.sweeps import sweep_store_addresses

    try:
        store = Store.objects.get(pk=store_id)
    except Store.DoesNotExist:
        logger.warning("Store not found for sweep", extra={"store_id": store_id})
        return {"status": "not_found", "store_id": store_id}

    intents = sweep_store_addresses(store)
    return {"status": "ok", "store_id": store_id, "intents": len(intents)}
