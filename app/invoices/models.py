"""
Invoice and Payment models.

An Invoice asks for a fixed crypto amount at one deposit address. Its
status is driven by django-fsm; only the confirmation tracker and the
lazy expiry on status reads move it.

Usage:
    from invoices.models import Invoice, InvoiceStatus

    # Payment seen with too few confirmations
    invoice.mark_paid()
    invoice.raise_confirmations(1)
    invoice.save()

    # Later, once enough blocks are mined
    invoice.confirm()
    invoice.save()
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.urls import reverse
from django.utils import timezone

from django_fsm import FSMField, transition

from chains.assets import Asset
from core.exceptions import ValidationError
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

AMOUNT_FIELD_OPTIONS = {"max_digits": 36, "decimal_places": 18}

# Fields that may not change once the invoice is stored
IMMUTABLE_FIELDS = ("address", "confirmations_required")


class InvoiceStatus(models.TextChoices):
    """
    Invoice lifecycle states.

    CONFIRMED, UNDERPAID and EXPIRED are terminal.
    """

    PENDING = "PENDING", "Pending"
    PAID = "PAID", "Paid"
    CONFIRMED = "CONFIRMED", "Confirmed"
    UNDERPAID = "UNDERPAID", "Underpaid"
    EXPIRED = "EXPIRED", "Expired"


TERMINAL_STATUSES = (
    InvoiceStatus.CONFIRMED,
    InvoiceStatus.UNDERPAID,
    InvoiceStatus.EXPIRED,
)


class Invoice(UUIDPrimaryKeyMixin, BaseModel):
    """
    A request for payment in one asset.

    State Flow:
        PENDING -> PAID -> CONFIRMED
        PENDING -> CONFIRMED (enough confirmations on first sight)
        PENDING -> EXPIRED (unpaid past expires_at)

    Fields:
        merchant / store: Owner of the invoice
        external_id: Merchant's own reference
        fiat_currency / fiat_amount: Price as quoted to the buyer
        asset: Asset the buyer pays in
        amount_crypto: Amount due, rate locked at creation plus buffer
        rate: USD rate locked at creation
        address: Deposit address watched for the payment
        status: Current FSM state
        expires_at: End of the payment window
        status_token: Secret that authorizes public status reads
        confirmations_required: Fixed at creation from the store policy
        confirmations_seen: Highest confirmation count observed
        paid_at / confirmed_at / expired_at: Transition timestamps

    Invariants:
        - confirmations_seen never decreases (see raise_confirmations)
        - address and confirmations_required never change after insert
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    merchant = models.ForeignKey(
        "merchants.Merchant",
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    store = models.ForeignKey(
        "merchants.Store",
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    external_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Merchant-side order reference",
    )

    # ==========================================================================
    # Amounts
    # ==========================================================================

    fiat_currency = models.CharField(max_length=3, default="USD")
    fiat_amount = models.DecimalField(max_digits=18, decimal_places=2)
    asset = models.CharField(max_length=20, choices=Asset.choices)
    amount_crypto = models.DecimalField(**AMOUNT_FIELD_OPTIONS)
    rate = models.DecimalField(
        help_text="USD per unit of asset at creation",
        **AMOUNT_FIELD_OPTIONS,
    )
    address = models.CharField(max_length=128, db_index=True)

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=InvoiceStatus.PENDING,
        choices=InvoiceStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current state of the invoice (managed by FSM)",
    )
    expires_at = models.DateTimeField(db_index=True)
    status_token = models.CharField(max_length=64)

    confirmations_required = models.PositiveIntegerField()
    confirmations_seen = models.PositiveIntegerField(default=0)

    paid_at = models.DateTimeField(null=True, blank=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    expired_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "expires_at"], name="invoice_status_expiry_idx"),
            models.Index(fields=["store", "status"], name="invoice_store_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Invoice({self.pk}, {self.amount_crypto} {self.asset}, {self.status})"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_values = {
            name: getattr(instance, name)
            for name in IMMUTABLE_FIELDS
            if name in field_names
        }
        return instance

    def save(self, *args, **kwargs):
        """
        Save the invoice, refusing changes to immutable fields.

        Raises:
            ValidationError: If address or confirmations_required changed
        """
        loaded = getattr(self, "_loaded_values", {})
        for name, original in loaded.items():
            if getattr(self, name) != original:
                raise ValidationError(
                    f"Invoice {name} cannot be changed",
                    error_code="IMMUTABLE_FIELD",
                    details={"invoice_id": str(self.pk), "field": name},
                )
        super().save(*args, **kwargs)
        self._loaded_values = {name: getattr(self, name) for name in IMMUTABLE_FIELDS}

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def confirmations_remaining(self) -> int:
        return max(0, self.confirmations_required - self.confirmations_seen)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def is_past_expiry(self, now=None) -> bool:
        return (now or timezone.now()) > self.expires_at

    @property
    def status_path(self) -> str:
        return reverse("invoices:invoice-status", args=[self.pk, self.status_token])

    @property
    def status_url(self) -> str:
        """Absolute public status URL (STATUS_URL_BASE + status_path)."""
        return f"{settings.STATUS_URL_BASE.rstrip('/')}{self.status_path}"

    def raise_confirmations(self, count: int) -> bool:
        """
        Raise confirmations_seen to count if count is higher.

        Note: Does not save - caller must save after calling.

        Returns:
            True if the value changed
        """
        if count > self.confirmations_seen:
            self.confirmations_seen = count
            return True
        return False

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=InvoiceStatus.PENDING,
        target=InvoiceStatus.PAID,
    )
    def mark_paid(self):
        """
        Payment seen, still short of the required confirmations.

        Transition: PENDING -> PAID
        """
        self.paid_at = timezone.now()

    @transition(
        field=status,
        source=InvoiceStatus.PAID,
        target=InvoiceStatus.CONFIRMED,
    )
    def confirm(self):
        """
        Required confirmations reached.

        Transition: PAID -> CONFIRMED
        """
        self.confirmed_at = timezone.now()

    @transition(
        field=status,
        source=InvoiceStatus.PENDING,
        target=InvoiceStatus.CONFIRMED,
    )
    def confirm_directly(self):
        """
        Payment first seen with enough confirmations already.

        Transition: PENDING -> CONFIRMED
        """
        now = timezone.now()
        self.paid_at = now
        self.confirmed_at = now

    @transition(
        field=status,
        source=InvoiceStatus.PENDING,
        target=InvoiceStatus.EXPIRED,
    )
    def expire(self):
        """
        Payment window closed without a payment.

        Transition: PENDING -> EXPIRED
        """
        self.expired_at = timezone.now()


class Payment(UUIDPrimaryKeyMixin, BaseModel):
    """
    One on-chain transaction credited against an invoice.

    Fields:
        invoice: Invoice the transaction paid
        merchant: Invoice merchant (denormalized for reporting)
        asset: Asset code
        address: Deposit address credited (lowercased on EVM chains)
        txid: Chain transaction hash
        block_height: Block the transaction was mined in (null if unmined)
        amount: Amount received
        confirmations: Latest confirmation count

    Constraints:
        - Unique (txid, invoice)
        - Unique (asset, address, txid): one transfer pays one invoice even
          when invoices share a deposit address
    """

    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.PROTECT,
        related_name="payments",
    )
    merchant = models.ForeignKey(
        "merchants.Merchant",
        on_delete=models.PROTECT,
        related_name="payments",
    )
    asset = models.CharField(max_length=20, choices=Asset.choices)
    address = models.CharField(max_length=128, default="")
    txid = models.CharField(max_length=128)
    block_height = models.PositiveBigIntegerField(null=True, blank=True)
    amount = models.DecimalField(default=Decimal("0"), **AMOUNT_FIELD_OPTIONS)
    confirmations = models.PositiveIntegerField(default=0, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["txid", "invoice"],
                name="invoices_unique_payment_per_tx",
            ),
            models.UniqueConstraint(
                fields=["asset", "address", "txid"],
                name="invoices_unique_payment_per_address_tx",
            ),
        ]

    def __str__(self) -> str:
        return f"Payment({self.txid}, {self.amount} {self.asset})"
