"""
Tests for invoice tracking Celery tasks.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from chains.exceptions import AllProvidersFailed
from chains.providers import ChainTransaction
from invoices.models import Invoice, InvoiceStatus
from invoices.tasks import (
    check_invoice_payment,
    refresh_payment_confirmations,
    refresh_single_payment,
    watch_pending_invoices,
)
from invoices.tests.factories import InvoiceFactory, PaymentFactory


@pytest.fixture
def pool(mocker):
    """Replace the process pool with a mock."""
    fake = mocker.MagicMock()
    mocker.patch("invoices.tracker.get_pool", return_value=fake)
    return fake


class TestCeleryTaskConfiguration:
    def test_per_item_tasks_ack_late(self):
        assert check_invoice_payment.acks_late is True
        assert refresh_single_payment.acks_late is True

    def test_scans_are_registered(self):
        assert callable(watch_pending_invoices.delay)
        assert callable(refresh_payment_confirmations.delay)


@pytest.mark.django_db
class TestWatchPendingInvoices:
    def test_expires_overdue_and_queues_pending(self, mocker):
        mock_delay = mocker.patch("invoices.tasks.check_invoice_payment.delay")
        pending = InvoiceFactory.create_batch(2)
        overdue = InvoiceFactory(expires_at=timezone.now() - timedelta(minutes=1))
        InvoiceFactory(status=InvoiceStatus.PAID)

        result = watch_pending_invoices()

        assert result == {"expired_count": 1, "queued_count": 2}
        assert Invoice.objects.get(pk=overdue.pk).status == InvoiceStatus.EXPIRED
        queued = {call.args[0] for call in mock_delay.call_args_list}
        assert queued == {str(invoice.pk) for invoice in pending}

    def test_queue_failure_is_isolated(self, mocker):
        mocker.patch(
            "invoices.tasks.check_invoice_payment.delay",
            side_effect=[ConnectionError("broker down"), None],
        )
        InvoiceFactory.create_batch(2)

        result = watch_pending_invoices()

        assert result["queued_count"] == 1

    def test_respects_batch_size(self, mocker, settings):
        settings.TRACKER_BATCH_SIZE = 1
        mock_delay = mocker.patch("invoices.tasks.check_invoice_payment.delay")
        InvoiceFactory.create_batch(3)

        watch_pending_invoices()

        assert mock_delay.call_count == 1


@pytest.mark.django_db
class TestCheckInvoicePayment:
    def test_reports_paid(self, pool):
        invoice = InvoiceFactory()
        pool.get_transactions.return_value = [
            ChainTransaction(txid="0xpay", block_height=10, confirmations=1, amount=Decimal("101"))
        ]

        result = check_invoice_payment(str(invoice.pk))

        assert result["status"] == "paid"
        assert result["invoice_id"] == str(invoice.pk)
        assert "payment_id" in result

    def test_reports_no_payment(self, pool):
        invoice = InvoiceFactory()
        pool.get_transactions.return_value = []

        result = check_invoice_payment(str(invoice.pk))

        assert result == {"invoice_id": str(invoice.pk), "status": "no_payment"}

    def test_reports_provider_unavailable(self, pool):
        invoice = InvoiceFactory()
        pool.get_transactions.side_effect = AllProvidersFailed("ethereum", ["timeout"])

        result = check_invoice_payment(str(invoice.pk))

        assert result["status"] == "provider_unavailable"
        assert result["error_code"] == "ALL_PROVIDERS_FAILED"


@pytest.mark.django_db
class TestRefreshPaymentConfirmations:
    def test_queues_tracked_payments(self, mocker):
        mock_delay = mocker.patch("invoices.tasks.refresh_single_payment.delay")
        tracked = PaymentFactory(confirmations=3)
        PaymentFactory(confirmations=60)

        result = refresh_payment_confirmations()

        assert result == {"queued_count": 1}
        mock_delay.assert_called_once_with(str(tracked.pk))

    def test_single_refresh_reports_count(self, pool):
        payment = PaymentFactory(block_height=100, confirmations=1)
        pool.get_current_block_height.return_value = 104

        result = refresh_single_payment(str(payment.pk))

        assert result == {"payment_id": str(payment.pk), "status": "ok", "confirmations": 5}
