"""
Merchant, store and platform fee models.

Usage:
    from merchants.models import Merchant, PlatformSettings

    merchant = Merchant.objects.get(pk=merchant_id)
    pct = merchant.fee_percent()  # override or global fee
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class MerchantStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    SUSPENDED = "suspended", "Suspended"


class Merchant(UUIDPrimaryKeyMixin, BaseModel):
    """
    A business accepting crypto payments.

    Fields:
        name: Display name
        status: active or suspended (suspended merchants cannot invoice)
        owner: User allowed to act for the merchant through the API
        webhook_url: Endpoint receiving payment events (optional)
        webhook_secret: HMAC key for webhook signatures (optional)
        custom_fee_pct: Per-merchant fee override in percent (optional)
    """

    name = models.CharField(max_length=255)
    status = models.CharField(
        max_length=20,
        choices=MerchantStatus.choices,
        default=MerchantStatus.ACTIVE,
        db_index=True,
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="merchants",
        help_text="User allowed to act for this merchant",
    )
    webhook_url = models.URLField(
        max_length=500,
        null=True,
        blank=True,
        help_text="Payment events are POSTed here when set",
    )
    webhook_secret = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="HMAC-SHA256 key for webhook signatures",
    )
    custom_fee_pct = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Overrides the platform fee percentage when set",
    )

    def __str__(self) -> str:
        return self.name

    @property
    def is_active(self) -> bool:
        return self.status == MerchantStatus.ACTIVE

    def signing_secret(self) -> str:
        """Webhook secret, falling back to the configured default."""
        return self.webhook_secret or settings.WEBHOOK_DEFAULT_SECRET

    def fee_percent(self) -> Decimal:
        """Fee percentage applied to this merchant's payments."""
        if self.custom_fee_pct is not None:
            return Decimal(self.custom_fee_pct)
        return PlatformSettings.global_fee_percent()

    def is_accessible_by(self, user) -> bool:
        return bool(user and user.is_authenticated and (user.is_staff or self.owner_id == user.pk))


class Store(UUIDPrimaryKeyMixin, BaseModel):
    """
    A storefront belonging to a merchant.

    Fields:
        merchant: Owning merchant
        name: Display name
        confirm_policy: Asset -> {"paidAt": n, "confirmedAt": m} overrides
        deposit_addresses: Asset -> address used by the default deriver
    """

    merchant = models.ForeignKey(
        Merchant,
        on_delete=models.CASCADE,
        related_name="stores",
    )
    name = models.CharField(max_length=255)
    confirm_policy = models.JSONField(
        default=dict,
        blank=True,
        help_text='Per-asset overrides, e.g. {"btc": {"paidAt": 1, "confirmedAt": 6}}',
    )
    deposit_addresses = models.JSONField(
        default=dict,
        blank=True,
        help_text="Per-asset deposit addresses",
    )

    def __str__(self) -> str:
        return f"{self.name} ({self.merchant_id})"


class PlatformSettings(BaseModel):
    """
    Singleton row holding platform-wide configuration.

    Only key="global" is read. When the row is missing the
    PLATFORM_FEE_PERCENT setting is used.
    """

    GLOBAL_KEY = "global"

    key = models.CharField(max_length=50, unique=True, default=GLOBAL_KEY)
    fee_pct = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        help_text="Platform fee in percent of each payment",
    )

    class Meta(BaseModel.Meta):
        verbose_name = "platform settings"
        verbose_name_plural = "platform settings"

    def __str__(self) -> str:
        return f"{self.key}: {self.fee_pct}%"

    @classmethod
    def global_fee_percent(cls) -> Decimal:
        row = cls.objects.filter(key=cls.GLOBAL_KEY).values_list("fee_pct", flat=True).first()
        if row is not None:
            return Decimal(row)
        return Decimal(str(settings.PLATFORM_FEE_PERCENT))
