"""
Ledger service layer.

FeeLedger is the only writer of Balance rows. Every operation runs in a
single database transaction, locks the balance rows it touches in id
order and applies F() increments, so concurrent credits for the same
merchant or for the shared platform balance never lose updates.

Usage:
    from ledger.services import fee_ledger

    # Credit a detected payment (idempotent per payment)
    split = fee_ledger.credit(
        merchant_id=invoice.merchant_id,
        asset="usdt_erc20",
        gross=Decimal("101"),
        idempotency_key=f"payment:{payment.id}",
    )

    # Record a withdrawal intent
    withdrawal = fee_ledger.request_withdrawal(merchant.id, "btc",
                                               Decimal("0.5"), "bc1q...")
"""

from __future__ import annotations

import uuid
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.db import IntegrityError, OperationalError, transaction
from django.db.models import F
from django.utils import timezone

from chains.assets import chain_for_asset
from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.services import BaseService
from ledger.exceptions import BalanceNotFound, InsufficientBalance
from ledger.models import PLATFORM_OWNER, Balance, FeeSplit, Withdrawal
from merchants.models import Merchant, PlatformSettings

AMOUNT_PLACES = Decimal("0.00000001")


def split_fee(gross: Decimal, fee_pct: Decimal) -> tuple[Decimal, Decimal]:
    """
    Split a gross amount into (fee, merchant share).

    The fee is rounded half-up to 8 places; the merchant share is the
    exact remainder so the two always sum to gross.
    """
    fee = (gross * fee_pct / Decimal("100")).quantize(AMOUNT_PLACES, rounding=ROUND_HALF_UP)
    return fee, gross - fee


class FeeLedger(BaseService):
    """
    Atomic balance operations for merchants and the platform.

    Key features:
    - Fee split credit with merchant override or global percentage
    - Idempotency via FeeSplit.idempotency_key (safe to retry)
    - Deadlock-free locking (balance rows locked in id order)
    - Bounded retry on database conflicts
    """

    @classmethod
    def credit(
        cls,
        merchant_id,
        asset: str,
        gross: Decimal,
        idempotency_key: str | None = None,
    ) -> FeeSplit:
        """
        Credit a payment to a merchant, net of the platform fee.

        Args:
            merchant_id: Merchant receiving the payment
            asset: Asset code
            gross: Amount received
            idempotency_key: Repeated keys return the original FeeSplit

        Returns:
            The created (or previously created) FeeSplit

        Raises:
            ValidationError: If gross is not positive
            UnsupportedAsset: If the asset is unknown
            OperationalError: If conflicts persist past LEDGER_CONFLICT_RETRIES
        """
        chain_for_asset(asset)
        gross = Decimal(gross)
        if gross <= 0:
            raise ValidationError(
                f"Credit amount must be positive, got {gross}",
                error_code="INVALID_AMOUNT",
                details={"asset": asset, "gross": str(gross)},
            )

        merchant = Merchant.objects.filter(pk=merchant_id).first()
        fee_pct = merchant.fee_percent() if merchant else PlatformSettings.global_fee_percent()
        key = idempotency_key or f"credit:{uuid.uuid4()}"

        retries = max(1, settings.LEDGER_CONFLICT_RETRIES)
        attempt = 1
        while True:
            try:
                return cls._credit_once(str(merchant_id), asset, gross, fee_pct, key)
            except OperationalError as e:
                if attempt >= retries:
                    cls.get_logger().error(
                        f"Ledger credit failed after {attempt} attempts: {e}",
                        extra={"merchant_id": str(merchant_id), "asset": asset, "key": key},
                    )
                    raise
                cls.get_logger().warning(
                    f"Ledger conflict on attempt {attempt}, retrying: {e}",
                    extra={"merchant_id": str(merchant_id), "asset": asset, "key": key},
                )
                attempt += 1

    @classmethod
    def _credit_once(
        cls,
        merchant_id: str,
        asset: str,
        gross: Decimal,
        fee_pct: Decimal,
        key: str,
    ) -> FeeSplit:
        with transaction.atomic():
            existing = FeeSplit.objects.filter(idempotency_key=key).first()
            if existing:
                return existing

            fee, merchant_amount = split_fee(gross, fee_pct)

            balance_ids = [
                Balance.objects.get_or_create(owner=owner, asset=asset)[0].pk
                for owner in (merchant_id, PLATFORM_OWNER)
            ]
            # Lock in id order so concurrent credits cannot deadlock
            list(Balance.objects.select_for_update().filter(pk__in=balance_ids).order_by("id"))

            try:
                with transaction.atomic():
                    split = FeeSplit.objects.create(
                        merchant_id=merchant_id,
                        asset=asset,
                        gross=gross,
                        fee_pct=fee_pct,
                        fee_amount=fee,
                        merchant_amount=merchant_amount,
                        idempotency_key=key,
                    )
            except IntegrityError:
                # Same key committed by a concurrent credit while we waited
                return FeeSplit.objects.get(idempotency_key=key)

            now = timezone.now()
            Balance.objects.filter(owner=merchant_id, asset=asset).update(
                available=F("available") + merchant_amount,
                updated_at=now,
            )
            Balance.objects.filter(owner=PLATFORM_OWNER, asset=asset).update(
                available=F("available") + fee,
                updated_at=now,
            )

        cls.get_logger().info(
            f"Credited {merchant_amount} {asset} to merchant {merchant_id}, fee {fee}",
            extra={
                "merchant_id": merchant_id,
                "asset": asset,
                "gross": str(gross),
                "fee_pct": str(fee_pct),
                "fee": str(fee),
                "key": key,
            },
        )
        return split

    @classmethod
    def request_withdrawal(
        cls,
        merchant_id,
        asset: str,
        amount: Decimal,
        to_address: str,
    ) -> Withdrawal:
        """
        Record a withdrawal intent and reserve the amount.

        Moves amount from available to pending on the merchant balance.

        Raises:
            NotFoundError: If the merchant does not exist
            ConflictError: If the merchant is suspended
            ValidationError: If amount is not positive
            BalanceNotFound: If the merchant never held the asset
            InsufficientBalance: If available < amount
        """
        chain_for_asset(asset)
        amount = Decimal(amount)
        if amount <= 0:
            raise ValidationError(
                f"Withdrawal amount must be positive, got {amount}",
                error_code="INVALID_AMOUNT",
                details={"asset": asset, "amount": str(amount)},
            )

        try:
            merchant = Merchant.objects.get(pk=merchant_id)
        except Merchant.DoesNotExist:
            raise NotFoundError(
                f"Merchant {merchant_id} not found",
                error_code="MERCHANT_NOT_FOUND",
                details={"merchant_id": str(merchant_id)},
            ) from None
        if not merchant.is_active:
            raise ConflictError(
                f"Merchant {merchant_id} is not active",
                error_code="MERCHANT_INACTIVE",
                details={"merchant_id": str(merchant_id)},
            )

        owner = str(merchant.pk)
        with transaction.atomic():
            balance = (
                Balance.objects.select_for_update()
                .filter(owner=owner, asset=asset)
                .first()
            )
            if balance is None:
                raise BalanceNotFound(
                    f"No {asset} balance for merchant {owner}",
                    details={"owner": owner, "asset": asset},
                )
            if balance.available < amount:
                raise InsufficientBalance(
                    owner, asset, required=amount, available=balance.available
                )

            Balance.objects.filter(pk=balance.pk).update(
                available=F("available") - amount,
                pending=F("pending") + amount,
                updated_at=timezone.now(),
            )
            withdrawal = Withdrawal.objects.create(
                merchant=merchant,
                asset=asset,
                amount=amount,
                to_address=to_address,
            )

        cls.get_logger().info(
            f"Withdrawal of {amount} {asset} recorded for merchant {owner}",
            extra={
                "merchant_id": owner,
                "withdrawal_id": str(withdrawal.id),
                "asset": asset,
                "amount": str(amount),
            },
        )
        return withdrawal

    @staticmethod
    def get_balance(owner, asset: str) -> Balance:
        """
        Raises:
            BalanceNotFound: If the owner never held the asset
        """
        try:
            return Balance.objects.get(owner=str(owner), asset=asset)
        except Balance.DoesNotExist:
            raise BalanceNotFound(
                f"No {asset} balance for {owner}",
                details={"owner": str(owner), "asset": asset},
            ) from None

    @staticmethod
    def balances_for(owner) -> list[Balance]:
        return list(Balance.objects.filter(owner=str(owner)).order_by("asset"))


# Singleton instance for convenience
# Usage: from ledger.services import fee_ledger
fee_ledger = FeeLedger()
