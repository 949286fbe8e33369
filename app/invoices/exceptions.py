"""
Invoice-specific exceptions.

Exception Hierarchy:
    InvoiceError (base)
    ├── InvoiceNotFound - Invoice does not exist
    ├── InvalidToken - Status token does not match the invoice (PermissionDeniedError)
    ├── MerchantNotFound - Merchant does not exist
    ├── MerchantInactive - Merchant is suspended
    ├── StoreNotFound - Store missing or owned by another merchant
    ├── InvalidAmount - Fiat amount is not positive
    ├── UnsupportedCurrency - Fiat currency other than USD
    └── AddressUnavailable - No deposit address for the asset

Usage:
    from core.exceptions import PermissionDeniedError
    from invoices.exceptions import InvoiceNotFound

    try:
        status = read_invoice_status(invoice_id, token)
    except PermissionDeniedError as e:
        return Response(e.to_dict(), status=403)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, PermissionDeniedError

if TYPE_CHECKING:
    from typing import Any


class InvoiceError(BaseApplicationError):
    """Base exception for invoice operations."""

    default_error_code: str = "INVOICE_ERROR"


class InvoiceNotFound(InvoiceError):
    default_error_code: str = "INVOICE_NOT_FOUND"

    def __init__(
        self,
        invoice_id,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.invoice_id = str(invoice_id)
        full_details = {"invoice_id": self.invoice_id}
        if details:
            full_details.update(details)
        super().__init__(
            message="Invoice not found",
            error_code=error_code,
            details=full_details,
        )


class InvalidToken(InvoiceError, PermissionDeniedError):
    """
    Raised when a status token does not match the invoice.

    Also a PermissionDeniedError, so views answer it with 403.

    The message never echoes either token.
    """

    default_error_code: str = "INVALID_TOKEN"

    def __init__(self, invoice_id, error_code: str | None = None):
        self.invoice_id = str(invoice_id)
        super().__init__(
            message="Invalid status token",
            error_code=error_code,
            details={"invoice_id": self.invoice_id},
        )


class MerchantNotFound(InvoiceError):
    default_error_code: str = "MERCHANT_NOT_FOUND"


class MerchantInactive(InvoiceError):
    default_error_code: str = "MERCHANT_INACTIVE"


class StoreNotFound(InvoiceError):
    default_error_code: str = "STORE_NOT_FOUND"


class InvalidAmount(InvoiceError):
    default_error_code: str = "INVALID_AMOUNT"


class AddressUnavailable(InvoiceError):
    """Raised when the address deriver has no address for the asset."""

    default_error_code: str = "ADDRESS_UNAVAILABLE"


class UnsupportedCurrency(InvoiceError):
    default_error_code: str = "UNSUPPORTED_CURRENCY"
