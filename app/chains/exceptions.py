"""
Chain provider exceptions.

Exception Hierarchy:
    ChainError (base)
    ├── UnsupportedAsset - Asset code has no chain mapping
    ├── ProviderRequestError - A single backend call failed
    └── AllProvidersFailed - Every backend for a chain failed

Usage:
    from chains.exceptions import AllProvidersFailed

    try:
        height = pool.get_current_block_height("ethereum")
    except AllProvidersFailed:
        logger.warning("Skipping payment this cycle")

Note:
    ProviderRequestError never escapes the pool: the pool swallows and
    logs it, then moves to the next backend. Only AllProvidersFailed
    reaches callers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError

if TYPE_CHECKING:
    from typing import Any


class ChainError(BaseApplicationError):
    """Base exception for chain provider operations."""

    default_error_code: str = "CHAIN_ERROR"


class UnsupportedAsset(ChainError):
    """
    Raised when an asset code cannot be mapped to a chain.

    Fatal to the single request or invoice being processed.

    Attributes:
        asset: The rejected asset code
    """

    default_error_code: str = "UNSUPPORTED_ASSET"

    def __init__(
        self,
        asset: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.asset = asset
        full_details = {"asset": asset}
        if details:
            full_details.update(details)
        super().__init__(
            message=f"Unsupported asset: {asset}",
            error_code=error_code,
            details=full_details,
        )


class ProviderRequestError(ChainError):
    """
    Raised by a backend when one HTTP call fails.

    Attributes:
        provider: Backend name (e.g. "quicknode")
        status_code: HTTP status if a response was received
    """

    default_error_code: str = "PROVIDER_REQUEST_FAILED"

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: int | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.provider = provider
        self.status_code = status_code
        full_details: dict[str, Any] = {"provider": provider}
        if status_code is not None:
            full_details["status_code"] = status_code
        if details:
            full_details.update(details)
        super().__init__(message=message, error_code=error_code, details=full_details)


class AllProvidersFailed(ChainError):
    """
    Raised when every registered backend for a chain failed an operation.

    Degrades the current poll item to a no-op; the item is retried on the
    next scheduler run.

    Attributes:
        chain: Chain the operation targeted
        errors: Per-backend error strings, in attempt order
    """

    default_error_code: str = "ALL_PROVIDERS_FAILED"

    def __init__(
        self,
        chain: str,
        errors: list[str] | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.chain = chain
        self.errors = errors or []
        full_details: dict[str, Any] = {"chain": chain, "errors": self.errors}
        if details:
            full_details.update(details)
        super().__init__(
            message=f"All providers failed for chain {chain}",
            error_code=error_code,
            details=full_details,
        )
