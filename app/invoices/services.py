"""
Invoice service layer.

Creation locks a USD rate from the rate cache, derives the deposit
address and fixes the confirmation threshold from the store policy.
Status reads are authorized by the invoice's status token and never
call a chain provider; they only expire overdue PENDING invoices.

Usage:
    from invoices.services import create_invoice, read_invoice_status

    invoice = create_invoice(
        merchant_id=merchant.id,
        store_id=store.id,
        asset="usdt_erc20",
        fiat_amount=Decimal("100.00"),
    )

    report = read_invoice_status(invoice.id, invoice.status_token)
    report.status  # "PENDING"
"""

from __future__ import annotations

import hmac
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_UP, Decimal, InvalidOperation

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils import timezone

from django_fsm import can_proceed

from chains.assets import chain_for_asset, confirmation_policy_for
from core.services import BaseService
from invoices.addresses import deposit_address_for
from invoices.exceptions import (
    InvalidAmount,
    InvalidToken,
    InvoiceNotFound,
    MerchantInactive,
    MerchantNotFound,
    StoreNotFound,
    UnsupportedCurrency,
)
from invoices.models import Invoice, InvoiceStatus
from merchants.models import Merchant, Store
from rates.cache import rate_cache

AMOUNT_PLACES = Decimal("0.00000001")
SUPPORTED_CURRENCIES = ("USD",)


@dataclass(frozen=True)
class InvoiceStatusReport:
    """Public view of an invoice's payment progress."""

    status: str
    confirmations_seen: int
    confirmations_required: int
    confirmations_remaining: int
    amount_crypto: Decimal
    address: str
    asset: str
    expires_at: datetime

    @classmethod
    def from_invoice(cls, invoice: Invoice) -> InvoiceStatusReport:
        return cls(
            status=invoice.status,
            confirmations_seen=invoice.confirmations_seen,
            confirmations_required=invoice.confirmations_required,
            confirmations_remaining=invoice.confirmations_remaining,
            amount_crypto=invoice.amount_crypto,
            address=invoice.address,
            asset=invoice.asset,
            expires_at=invoice.expires_at,
        )


def crypto_amount_for(fiat_amount: Decimal, rate: Decimal, buffer_pct) -> Decimal:
    """
    Convert fiat to crypto at rate, buffered upward by buffer_pct percent.

    Rounded up to 8 places so the buyer never pays less than quoted.
    """
    buffer = 1 + Decimal(str(buffer_pct)) / 100
    return (fiat_amount / rate * buffer).quantize(AMOUNT_PLACES, rounding=ROUND_UP)


class InvoiceService(BaseService):
    """
    Invoice creation, status reads and expiry.

    Key features:
    - Rate locked at creation (fresh cache entry or live fetch)
    - Opaque 64-hex status token compared in constant time
    - Lazy expiry on read under a row lock (each invoice expires once)
    """

    @classmethod
    def create_invoice(
        cls,
        merchant_id,
        store_id,
        asset: str,
        fiat_amount,
        external_id: str | None = None,
        currency: str = "USD",
    ) -> Invoice:
        """
        Create a PENDING invoice.

        Args:
            merchant_id: Merchant issuing the invoice
            store_id: Store of that merchant
            asset: Asset code the buyer will pay in
            fiat_amount: Price in USD
            external_id: Merchant's own reference
            currency: Fiat currency, only USD is accepted

        Returns:
            The created Invoice

        Raises:
            InvalidAmount: If fiat_amount is not a positive number
            UnsupportedCurrency: If currency is not USD
            UnsupportedAsset: If the asset code is unknown
            MerchantNotFound / MerchantInactive: Merchant missing or suspended
            StoreNotFound: Store missing or owned by another merchant
            AddressUnavailable: If no deposit address exists for the asset
        """
        try:
            fiat_amount = Decimal(str(fiat_amount))
        except InvalidOperation:
            raise InvalidAmount(
                f"Invalid fiat amount: {fiat_amount}",
                details={"fiat_amount": str(fiat_amount)},
            ) from None
        if not fiat_amount.is_finite() or fiat_amount <= 0:
            raise InvalidAmount(
                f"Fiat amount must be positive, got {fiat_amount}",
                details={"fiat_amount": str(fiat_amount)},
            )
        if currency not in SUPPORTED_CURRENCIES:
            raise UnsupportedCurrency(
                f"Unsupported currency: {currency}",
                details={"currency": currency},
            )
        chain_for_asset(asset)

        merchant = Merchant.objects.filter(pk=merchant_id).first()
        if merchant is None:
            raise MerchantNotFound(
                "Merchant not found",
                details={"merchant_id": str(merchant_id)},
            )
        if not merchant.is_active:
            raise MerchantInactive(
                "Merchant is not active",
                details={"merchant_id": str(merchant_id)},
            )

        store = Store.objects.filter(pk=store_id, merchant=merchant).first()
        if store is None:
            raise StoreNotFound(
                "Store not found or does not belong to merchant",
                details={"merchant_id": str(merchant_id), "store_id": str(store_id)},
            )

        rate = rate_cache.get_rate(asset)
        amount_crypto = crypto_amount_for(
            fiat_amount, rate, settings.INVOICE_RATE_BUFFER_PERCENT
        )
        address = deposit_address_for(store, asset)
        policy = confirmation_policy_for(asset, store.confirm_policy)

        invoice = Invoice.objects.create(
            merchant=merchant,
            store=store,
            external_id=external_id or None,
            fiat_currency=currency,
            fiat_amount=fiat_amount,
            asset=asset,
            amount_crypto=amount_crypto,
            rate=rate,
            address=address,
            expires_at=timezone.now() + timedelta(minutes=settings.INVOICE_EXPIRY_MINUTES),
            status_token=secrets.token_hex(32),
            confirmations_required=policy["confirmedAt"],
        )

        cls.get_logger().info(
            f"Invoice created: {amount_crypto} {asset} for {fiat_amount} {currency}",
            extra={
                "invoice_id": str(invoice.id),
                "merchant_id": str(merchant.pk),
                "store_id": str(store.pk),
                "asset": asset,
                "rate": str(rate),
            },
        )
        return invoice

    @classmethod
    def read_invoice_status(cls, invoice_id, status_token: str) -> InvoiceStatusReport:
        """
        Return the public status of an invoice.

        Expires a PENDING invoice read past its expiry.

        Raises:
            InvoiceNotFound: If the invoice does not exist
            InvalidToken: If status_token does not match
        """
        invoice = cls.get_invoice(invoice_id)
        if not hmac.compare_digest(
            invoice.status_token.encode(), (status_token or "").encode()
        ):
            cls.get_logger().warning(
                "Invalid status token presented",
                extra={"invoice_id": str(invoice.pk)},
            )
            raise InvalidToken(invoice.pk)

        if invoice.status == InvoiceStatus.PENDING and invoice.is_past_expiry():
            invoice, _ = cls.expire_if_overdue(invoice.pk)

        return InvoiceStatusReport.from_invoice(invoice)

    @staticmethod
    def get_invoice(invoice_id) -> Invoice:
        """
        Raises:
            InvoiceNotFound: If no invoice has this id
        """
        try:
            return Invoice.objects.get(pk=invoice_id)
        except (Invoice.DoesNotExist, DjangoValidationError, ValueError):
            raise InvoiceNotFound(invoice_id) from None

    @classmethod
    def expire_if_overdue(cls, invoice_id, now=None) -> tuple[Invoice, bool]:
        """
        Expire a PENDING invoice whose window has closed.

        Runs under a row lock so concurrent readers and the watcher
        expire each invoice exactly once.

        Returns:
            (invoice, expired) where expired is True only for the caller
            that made the transition
        """
        with cls.atomic():
            invoice = Invoice.objects.select_for_update().get(pk=invoice_id)
            if not (
                invoice.status == InvoiceStatus.PENDING
                and invoice.is_past_expiry(now)
                and can_proceed(invoice.expire)
            ):
                return invoice, False

            invoice.expire()
            invoice.save(update_fields=["status", "expired_at", "updated_at"])

        cls.get_logger().info(
            "Invoice expired",
            extra={"invoice_id": str(invoice.pk), "expires_at": invoice.expires_at.isoformat()},
        )
        return invoice, True


create_invoice = InvoiceService.create_invoice
read_invoice_status = InvoiceService.read_invoice_status
