"""
Rates app: USD price lookups with a short-lived shared cache.

Usage:
    from rates.cache import rate_cache

    rate = rate_cache.get_rate("eth")
    quoted = rate_cache.get_rate_with_buffer("eth", 0.5)
"""
