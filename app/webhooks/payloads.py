"""
Webhook payload builders.

Payload "type" values: payment.detected, payment.confirmed, test.
Amounts are decimal strings with 8 places; timestamps are Unix seconds.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from django.utils import timezone

from webhooks.models import WebhookEventType

if TYPE_CHECKING:
    from invoices.models import Invoice, Payment
    from merchants.models import Merchant

AMOUNT_PLACES = Decimal("0.00000001")


def decimal_string(value: Decimal) -> str:
    return format(Decimal(value).quantize(AMOUNT_PLACES), "f")


def _payment_fields(event_type: str, invoice: Invoice, payment: Payment) -> dict:
    return {
        "type": event_type,
        "invoiceId": str(invoice.pk),
        "merchantId": str(invoice.merchant_id),
        "asset": invoice.asset,
        "amount": decimal_string(invoice.amount_crypto),
        "txid": payment.txid,
        "confirmationsRemaining": invoice.confirmations_remaining,
        "confirmationsRequired": invoice.confirmations_required,
    }


def payment_detected_payload(invoice: Invoice, payment: Payment) -> dict:
    payload = _payment_fields(str(WebhookEventType.PAYMENT_DETECTED), invoice, payment)
    payload["statusUrl"] = invoice.status_url
    return payload


def payment_confirmed_payload(invoice: Invoice, payment: Payment, confirmations: int) -> dict:
    payload = _payment_fields(str(WebhookEventType.PAYMENT_CONFIRMED), invoice, payment)
    paid_at = invoice.paid_at or timezone.now()
    payload["confirmations"] = confirmations
    payload["paidAt"] = int(paid_at.timestamp())
    return payload


def merchant_test_payload(merchant: Merchant) -> dict:
    return {
        "type": str(WebhookEventType.TEST),
        "merchantId": str(merchant.pk),
        "timestamp": int(timezone.now().timestamp()),
        "message": "This is a test webhook",
    }
