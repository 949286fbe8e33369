"""
URL configuration for the rates app.

Rates - Quotes:
    GET /rates/?asset=<asset>   - Rate for one asset
    GET /rates/all/             - Rates for every supported asset

Rates - Cache:
    GET /rates/cache-stats/     - Cache introspection (staff)
    POST /rates/clear-cache/    - Empty the cache (staff)

All routes are prefixed with /api/v1/ when included in the main URLconf.
"""

from django.urls import path

from rates.views import AllRatesView, RateCacheClearView, RateCacheStatsView, RateView

app_name = "rates"

urlpatterns = [
    path("rates/", RateView.as_view(), name="rate"),
    path("rates/all/", AllRatesView.as_view(), name="all"),
    path("rates/cache-stats/", RateCacheStatsView.as_view(), name="cache-stats"),
    path("rates/clear-cache/", RateCacheClearView.as_view(), name="clear-cache"),
]
