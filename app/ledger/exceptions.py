"""
Ledger-specific exceptions.

Exception Hierarchy:
    LedgerError (base)
    ├── BalanceNotFound - No balance row for (owner, asset)
    └── InsufficientBalance - Available balance below the requested amount

Usage:
    from ledger.exceptions import InsufficientBalance

    if balance.available < amount:
        raise InsufficientBalance(owner, asset, required=amount,
                                  available=balance.available)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError

if TYPE_CHECKING:
    from decimal import Decimal
    from typing import Any


class LedgerError(BaseApplicationError):
    """
    Base exception for all ledger operations.

    Example:
        try:
            fee_ledger.request_withdrawal(...)
        except LedgerError as e:
            return Response(e.to_dict(), status=400)
    """

    default_error_code: str = "LEDGER_ERROR"


class BalanceNotFound(LedgerError):
    """Raised when an owner has never held the asset."""

    default_error_code: str = "BALANCE_NOT_FOUND"


class InsufficientBalance(LedgerError):
    """
    Raised when available balance cannot cover an amount.

    Attributes:
        owner: Merchant id (or "admin") whose balance was checked
        asset: Asset code
        required: Amount requested
        available: Amount available at check time
    """

    default_error_code: str = "INSUFFICIENT_BALANCE"

    def __init__(
        self,
        owner: str,
        asset: str,
        required: Decimal,
        available: Decimal,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.owner = owner
        self.asset = asset
        self.required = required
        self.available = available

        message = (
            f"Insufficient {asset} balance for {owner}: "
            f"required {required}, available {available}"
        )

        full_details = {
            "owner": owner,
            "asset": asset,
            "required": str(required),
            "available": str(available),
        }
        if details:
            full_details.update(details)

        super().__init__(message=message, error_code=error_code, details=full_details)
