"""
Rate lookup exceptions.

Exception Hierarchy:
    RateSourceError (ExternalServiceError) - Price source call failed

RateSourceError never reaches RateCache callers; the cache falls back to
the static table instead.
"""

from __future__ import annotations

from core.exceptions import ExternalServiceError


class RateSourceError(ExternalServiceError):
    """Raised when the price source cannot produce a rate for an asset."""

    default_error_code: str = "RATE_SOURCE_ERROR"
