"""
Confirmation tracking for pending invoices and detected payments.

Three passes, each bounded to TRACKER_BATCH_SIZE items per run and each
item handled on its own:

1. Discovery: PENDING invoices still inside their window are checked for
   a transaction paying at least the invoiced amount. The first new
   qualifying transaction is recorded as a Payment, the invoice moves to
   PAID (or straight to CONFIRMED), a webhook is queued and the ledger
   credited, all in one database transaction.
2. Confirmation refresh: payments under CONFIRMATION_TRACKING_LIMIT
   confirmations are recomputed from the chain tip. Unmined payments are
   looked up again until their block is known. PAID invoices that reach
   their threshold move to CONFIRMED.
3. Expiry: PENDING invoices past their window move to EXPIRED.

Provider failure skips the item for this cycle. No payment or
confirmation data is ever made up.

Usage:
    from invoices.tracker import ConfirmationTracker

    tracker = ConfirmationTracker()
    result = tracker.check_invoice(invoice_id)
    if result and result.data:
        payment = result.data
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from django_fsm import can_proceed

from chains.assets import chain_for_asset, normalize_address, same_address
from chains.exceptions import ChainError
from chains.pool import ChainProviderPool, get_pool
from chains.providers import ChainTransaction
from core.services import ServiceResult
from invoices.models import Invoice, InvoiceStatus, Payment
from invoices.services import InvoiceService
from ledger.services import fee_ledger
from webhooks.engine import webhook_engine
from webhooks.payloads import payment_confirmed_payload, payment_detected_payload

logger = logging.getLogger(__name__)

# Payments at or above this many confirmations are no longer refreshed
CONFIRMATION_TRACKING_LIMIT = 50


class ConfirmationTracker:
    """
    Drives invoices through PENDING -> PAID -> CONFIRMED and EXPIRED.

    Attributes:
        pool: Chain provider pool (process pool unless given)
    """

    def __init__(self, pool: ChainProviderPool | None = None):
        self._pool = pool

    @property
    def pool(self) -> ChainProviderPool:
        return self._pool or get_pool()

    # ==========================================================================
    # Selection
    # ==========================================================================

    @staticmethod
    def pending_invoice_ids(limit: int | None = None) -> list:
        """PENDING invoices still inside their window, oldest first."""
        return list(
            Invoice.objects.filter(
                status=InvoiceStatus.PENDING,
                expires_at__gt=timezone.now(),
            )
            .order_by("created_at")
            .values_list("pk", flat=True)[: limit or settings.TRACKER_BATCH_SIZE]
        )

    @staticmethod
    def overdue_invoice_ids(limit: int | None = None) -> list:
        return list(
            Invoice.objects.filter(
                status=InvoiceStatus.PENDING,
                expires_at__lt=timezone.now(),
            )
            .order_by("expires_at")
            .values_list("pk", flat=True)[: limit or settings.TRACKER_BATCH_SIZE]
        )

    @staticmethod
    def refreshable_payment_ids(limit: int | None = None) -> list:
        """Mined payments oldest first, then unmined ones in the remaining slots."""
        limit = limit or settings.TRACKER_BATCH_SIZE
        tracked = Payment.objects.filter(confirmations__lt=CONFIRMATION_TRACKING_LIMIT)
        ids = list(
            tracked.filter(block_height__isnull=False)
            .order_by("created_at")
            .values_list("pk", flat=True)[:limit]
        )
        if len(ids) < limit:
            ids += list(
                tracked.filter(block_height__isnull=True)
                .order_by("updated_at")
                .values_list("pk", flat=True)[: limit - len(ids)]
            )
        return ids

    # ==========================================================================
    # Discovery
    # ==========================================================================

    def check_invoice(self, invoice_id) -> ServiceResult[Payment | None]:
        """
        Look for a payment to one PENDING invoice.

        Returns:
            ServiceResult with the recorded Payment, with None when no new
            qualifying transaction was found, or a failure when every
            provider failed
        """
        invoice = Invoice.objects.filter(pk=invoice_id).first()
        if invoice is None or invoice.status != InvoiceStatus.PENDING:
            return ServiceResult.success(None)

        if invoice.is_past_expiry():
            InvoiceService.expire_if_overdue(invoice.pk)
            return ServiceResult.success(None)

        try:
            transactions = self.pool.get_transactions(invoice.asset, invoice.address)
        except ChainError as e:
            logger.warning(
                f"Provider error checking invoice {invoice.pk}, skipping this cycle: {e}",
                extra={"invoice_id": str(invoice.pk), "asset": invoice.asset},
            )
            return ServiceResult.from_exception(e)

        for tx in transactions:
            reason = self.rejection_reason(invoice, tx)
            if reason:
                logger.debug(
                    f"Transaction {tx.txid} not applied to invoice {invoice.pk}: {reason}",
                    extra={"invoice_id": str(invoice.pk), "txid": tx.txid, "reason": reason},
                )
                continue
            # First qualifying transaction wins
            return ServiceResult.success(self.record_payment(invoice.pk, tx))

        return ServiceResult.success(None)

    @staticmethod
    def rejection_reason(invoice: Invoice, tx: ChainTransaction) -> str | None:
        """
        Return why a transaction cannot pay an invoice, or None if it can.

        Deposit addresses may be shared by several invoices of a store, so
        a txid already recorded for any invoice on the same address and
        asset is never applied again.
        """
        if tx.amount < invoice.amount_crypto:
            return "amount below invoice"
        if tx.asset and tx.asset != invoice.asset:
            return f"asset {tx.asset}"
        if tx.to_address and not same_address(invoice.asset, tx.to_address, invoice.address):
            return "not sent to deposit address"
        if tx.from_address and same_address(invoice.asset, tx.from_address, invoice.address):
            return "sent from deposit address"
        if tx.timestamp is not None and tx.timestamp < invoice.created_at.timestamp():
            return "predates invoice"
        if Payment.objects.filter(
            txid=tx.txid,
            asset=invoice.asset,
            address=normalize_address(invoice.asset, invoice.address),
        ).exists():
            return "already recorded"
        return None

    def record_payment(self, invoice_id, tx: ChainTransaction) -> Payment | None:
        """
        Record a detected transaction against an invoice.

        In one database transaction: create the Payment, move the invoice
        to PAID or CONFIRMED, queue the webhook and credit the ledger.

        Returns:
            The Payment, or None if the invoice was no longer PENDING or
            the transaction is already recorded on the same address
        """
        with transaction.atomic():
            invoice = (
                Invoice.objects.select_for_update()
                .select_related("merchant")
                .get(pk=invoice_id)
            )
            confirmations = max(tx.confirmations, 0)
            direct = confirmations >= invoice.confirmations_required
            transition = invoice.confirm_directly if direct else invoice.mark_paid
            if invoice.status != InvoiceStatus.PENDING or not can_proceed(transition):
                return None

            try:
                with transaction.atomic():
                    payment = Payment.objects.create(
                        invoice=invoice,
                        merchant_id=invoice.merchant_id,
                        asset=invoice.asset,
                        address=normalize_address(invoice.asset, invoice.address),
                        txid=tx.txid,
                        block_height=tx.block_height,
                        amount=tx.amount,
                        confirmations=confirmations,
                    )
            except IntegrityError:
                logger.info(
                    f"Transaction {tx.txid} already recorded on {invoice.address}, "
                    f"invoice {invoice.pk} not paid",
                    extra={"invoice_id": str(invoice.pk), "txid": tx.txid},
                )
                return None

            invoice.raise_confirmations(confirmations)
            transition()
            if direct:
                payload = payment_confirmed_payload(invoice, payment, confirmations)
            else:
                payload = payment_detected_payload(invoice, payment)
            invoice.save(
                update_fields=[
                    "status",
                    "confirmations_seen",
                    "paid_at",
                    "confirmed_at",
                    "updated_at",
                ]
            )

            self._notify(invoice, payload)
            fee_ledger.credit(
                invoice.merchant_id,
                invoice.asset,
                payment.amount,
                idempotency_key=f"payment:{payment.pk}",
            )

        logger.info(
            f"Payment {tx.txid} recorded for invoice {invoice.pk}, status {invoice.status}",
            extra={
                "invoice_id": str(invoice.pk),
                "payment_id": str(payment.pk),
                "txid": tx.txid,
                "confirmations": payment.confirmations,
                "status": invoice.status,
            },
        )
        return payment

    # ==========================================================================
    # Confirmation refresh
    # ==========================================================================

    def refresh_payment(self, payment_id) -> ServiceResult[int | None]:
        """
        Recompute a payment's confirmations from the chain tip.

        A payment recorded before it was mined is looked up again at its
        deposit address until the provider reports its block.

        Returns:
            ServiceResult with the new confirmation count, None when the
            payment is missing or still unmined, or a failure when every
            provider failed
        """
        payment = Payment.objects.select_related("invoice").filter(pk=payment_id).first()
        if payment is None:
            return ServiceResult.success(None)

        try:
            if payment.block_height is None and not self.find_block_height(payment):
                return ServiceResult.success(None)
            height = self.pool.get_current_block_height(chain_for_asset(payment.asset))
        except ChainError as e:
            logger.warning(
                f"Provider error refreshing payment {payment.pk}, skipping this cycle: {e}",
                extra={"payment_id": str(payment.pk), "asset": payment.asset},
            )
            return ServiceResult.from_exception(e)

        confirmations = max(0, height - payment.block_height + 1)
        self.apply_confirmations(payment.pk, payment.invoice_id, confirmations)
        return ServiceResult.success(confirmations)

    def find_block_height(self, payment: Payment) -> bool:
        """
        Store the block of an unmined payment once the provider reports it.

        Raises:
            ChainError: If every provider failed
        """
        for tx in self.pool.get_transactions(payment.asset, payment.invoice.address):
            if tx.txid != payment.txid or tx.block_height is None:
                continue
            Payment.objects.filter(pk=payment.pk, block_height__isnull=True).update(
                block_height=tx.block_height,
                updated_at=timezone.now(),
            )
            payment.block_height = tx.block_height
            logger.info(
                f"Payment {payment.pk} mined in block {tx.block_height}",
                extra={"payment_id": str(payment.pk), "block_height": tx.block_height},
            )
            return True

        # Moves the payment behind other unmined ones in the next batch
        Payment.objects.filter(pk=payment.pk).update(updated_at=timezone.now())
        return False

    def apply_confirmations(self, payment_id, invoice_id, confirmations: int) -> bool:
        """
        Persist a confirmation count and confirm the invoice if due.

        Locks the invoice before the payment, matching record_payment.

        Returns:
            True if the invoice moved to CONFIRMED
        """
        confirmed = False
        with transaction.atomic():
            invoice = (
                Invoice.objects.select_for_update()
                .select_related("merchant")
                .get(pk=invoice_id)
            )
            payment = Payment.objects.select_for_update().get(pk=payment_id)

            if confirmations > payment.confirmations:
                payment.confirmations = confirmations
                payment.save(update_fields=["confirmations", "updated_at"])

            changed = invoice.raise_confirmations(confirmations)
            if (
                invoice.status == InvoiceStatus.PAID
                and confirmations >= invoice.confirmations_required
                and can_proceed(invoice.confirm)
            ):
                invoice.confirm()
                confirmed = True

            if changed or confirmed:
                invoice.save(
                    update_fields=["status", "confirmations_seen", "confirmed_at", "updated_at"]
                )
            if confirmed:
                self._notify(invoice, payment_confirmed_payload(invoice, payment, confirmations))

        if confirmed:
            logger.info(
                f"Invoice {invoice.pk} confirmed with {confirmations} confirmations",
                extra={
                    "invoice_id": str(invoice.pk),
                    "payment_id": str(payment.pk),
                    "confirmations": confirmations,
                },
            )
        return confirmed

    # ==========================================================================
    # Expiry
    # ==========================================================================

    def expire_overdue(self, limit: int | None = None) -> int:
        """Expire overdue PENDING invoices; returns how many this call expired."""
        expired = 0
        for invoice_id in self.overdue_invoice_ids(limit):
            _, did_expire = InvoiceService.expire_if_overdue(invoice_id)
            if did_expire:
                expired += 1
        return expired

    # ==========================================================================
    # Helpers
    # ==========================================================================

    @staticmethod
    def _notify(invoice: Invoice, payload: dict) -> None:
        if not invoice.merchant.webhook_url:
            logger.debug(
                f"No webhook URL configured for merchant {invoice.merchant_id}",
                extra={"invoice_id": str(invoice.pk), "merchant_id": str(invoice.merchant_id)},
            )
            return
        webhook_engine.enqueue(invoice.merchant.webhook_url, payload, invoice.merchant_id)
