"""
Tests for Invoice and Payment models.

These tests verify:
- FSM transitions and their timestamps
- Protected status and immutable address / confirmation threshold
- Monotonic confirmations_seen
- One payment per (txid, invoice)
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from django.db import IntegrityError
from django.utils import timezone
from django_fsm import TransitionNotAllowed, can_proceed

from core.exceptions import ValidationError
from invoices.models import Invoice, InvoiceStatus, Payment
from invoices.tests.factories import InvoiceFactory, PaymentFactory


@pytest.mark.django_db
class TestInvoiceTransitions:
    def test_mark_paid_sets_paid_at(self):
        invoice = InvoiceFactory()

        invoice.mark_paid()
        invoice.save()

        reloaded = Invoice.objects.get(pk=invoice.pk)
        assert reloaded.status == InvoiceStatus.PAID
        assert reloaded.paid_at is not None
        assert reloaded.confirmed_at is None

    def test_confirm_after_paid(self):
        invoice = InvoiceFactory(status=InvoiceStatus.PAID, paid_at=timezone.now())

        invoice.confirm()
        invoice.save()

        reloaded = Invoice.objects.get(pk=invoice.pk)
        assert reloaded.status == InvoiceStatus.CONFIRMED
        assert reloaded.confirmed_at is not None

    def test_confirm_directly_sets_both_timestamps(self):
        invoice = InvoiceFactory()

        invoice.confirm_directly()

        assert invoice.status == InvoiceStatus.CONFIRMED
        assert invoice.paid_at == invoice.confirmed_at

    def test_expire_from_pending(self):
        invoice = InvoiceFactory()

        invoice.expire()

        assert invoice.status == InvoiceStatus.EXPIRED
        assert invoice.expired_at is not None
        assert invoice.is_terminal

    @pytest.mark.parametrize(
        "terminal_status",
        [InvoiceStatus.CONFIRMED, InvoiceStatus.EXPIRED, InvoiceStatus.UNDERPAID],
    )
    def test_terminal_states_have_no_exits(self, terminal_status):
        invoice = InvoiceFactory(status=terminal_status)

        for method in (invoice.mark_paid, invoice.confirm, invoice.confirm_directly, invoice.expire):
            assert not can_proceed(method)
        with pytest.raises(TransitionNotAllowed):
            invoice.mark_paid()

    def test_paid_cannot_expire(self):
        invoice = InvoiceFactory(status=InvoiceStatus.PAID)

        assert not can_proceed(invoice.expire)

    def test_status_cannot_be_assigned_directly(self):
        invoice = InvoiceFactory()

        with pytest.raises(AttributeError):
            invoice.status = InvoiceStatus.CONFIRMED


@pytest.mark.django_db
class TestInvoiceInvariants:
    def test_address_is_immutable(self):
        invoice = Invoice.objects.get(pk=InvoiceFactory().pk)
        invoice.address = "0x3333333333333333333333333333333333333333"

        with pytest.raises(ValidationError) as exc_info:
            invoice.save()

        assert exc_info.value.error_code == "IMMUTABLE_FIELD"
        assert exc_info.value.details["field"] == "address"

    def test_address_is_immutable_on_created_instance(self):
        invoice = InvoiceFactory()
        invoice.address = "0x3333333333333333333333333333333333333333"

        with pytest.raises(ValidationError) as exc_info:
            invoice.save()

        assert exc_info.value.details["field"] == "address"
        assert Invoice.objects.get(pk=invoice.pk).address != invoice.address

    def test_confirmations_required_is_immutable(self):
        invoice = Invoice.objects.get(pk=InvoiceFactory().pk)
        invoice.confirmations_required = 1

        with pytest.raises(ValidationError):
            invoice.save()

    def test_other_fields_still_save(self):
        invoice = Invoice.objects.get(pk=InvoiceFactory().pk)
        invoice.external_id = "order-42"

        invoice.save()

        assert Invoice.objects.get(pk=invoice.pk).external_id == "order-42"

    def test_confirmations_never_decrease(self):
        invoice = InvoiceFactory(confirmations_seen=5)

        assert invoice.raise_confirmations(3) is False
        assert invoice.confirmations_seen == 5
        assert invoice.raise_confirmations(7) is True
        assert invoice.confirmations_seen == 7

    def test_confirmations_remaining_floors_at_zero(self):
        invoice = InvoiceFactory(confirmations_required=12, confirmations_seen=4)
        assert invoice.confirmations_remaining == 8

        invoice.raise_confirmations(20)
        assert invoice.confirmations_remaining == 0

    def test_expiry_is_strictly_after_expires_at(self):
        invoice = InvoiceFactory()

        assert not invoice.is_past_expiry(invoice.expires_at)
        assert invoice.is_past_expiry(invoice.expires_at + timedelta(microseconds=1))

    def test_status_url_joins_public_base(self, settings):
        settings.STATUS_URL_BASE = "https://pay.example.com/"
        invoice = InvoiceFactory()

        assert invoice.status_url == (
            f"https://pay.example.com/api/v1/status/{invoice.pk}/{invoice.status_token}/"
        )


@pytest.mark.django_db
class TestPayment:
    def test_one_payment_per_txid_and_invoice(self):
        payment = PaymentFactory(txid="0xdup")

        with pytest.raises(IntegrityError):
            Payment.objects.create(
                invoice=payment.invoice,
                merchant=payment.merchant,
                asset=payment.asset,
                txid="0xdup",
                amount=payment.amount,
            )

    def test_same_txid_may_pay_invoices_on_different_addresses(self):
        first = PaymentFactory(txid="0xshared")
        second = PaymentFactory(
            txid="0xshared", invoice__address="0x3333333333333333333333333333333333333333"
        )

        assert first.invoice_id != second.invoice_id

    def test_one_payment_per_txid_on_shared_address(self):
        first = PaymentFactory(txid="0xshared")
        other = InvoiceFactory(store=first.invoice.store, merchant=first.merchant)

        with pytest.raises(IntegrityError):
            PaymentFactory(invoice=other, txid="0xshared")

    def test_address_is_stored_lowercase_on_evm_chains(self):
        payment = PaymentFactory(
            invoice__address="0xAbCdEf0000000000000000000000000000000001"
        )

        assert payment.address == "0xabcdef0000000000000000000000000000000001"
