"""
API views for USD rates.

Endpoints:
    GET /api/v1/rates/?asset=btc - Rate for one asset
    GET /api/v1/rates/all/ - Rates for every supported asset
    GET /api/v1/rates/cache-stats/ - Cache introspection (staff)
    POST /api/v1/rates/clear-cache/ - Empty the cache (staff)
"""

from __future__ import annotations

from django.utils import timezone
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from chains.assets import Asset
from rates.cache import rate_cache
from rates.serializers import CacheStatsSerializer, RateQuerySerializer, RateSerializer


class RateView(APIView):
    """
    Get the USD rate for one asset.

    GET /api/v1/rates/?asset=eth

    Response:
        200 OK: {"asset", "rate", "currency", "timestamp"}
        400 Bad Request: Missing or unsupported asset
    """

    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="get_rate",
        summary="Get asset rate",
        description="USD rate for one asset, served from a 60 second cache.",
        parameters=[
            OpenApiParameter(name="asset", required=True, type=str, location="query"),
        ],
        responses={
            200: OpenApiResponse(response=RateSerializer, description="Current rate"),
            400: OpenApiResponse(description="Missing or unsupported asset"),
        },
        tags=["Rates - Quotes"],
    )
    def get(self, request):
        query = RateQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)

        asset = query.validated_data["asset"]
        serializer = RateSerializer(
            {
                "asset": asset,
                "rate": rate_cache.get_rate(asset),
                "currency": "USD",
                "timestamp": timezone.now(),
            }
        )
        return Response(serializer.data)


class AllRatesView(APIView):
    """
    Get USD rates for every supported asset.

    GET /api/v1/rates/all/
    """

    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="get_all_rates",
        summary="Get all rates",
        responses={200: OpenApiResponse(description="Rates keyed by asset")},
        tags=["Rates - Quotes"],
    )
    def get(self, request):
        now = timezone.now()
        rates = {
            asset: RateSerializer(
                {
                    "asset": asset,
                    "rate": rate_cache.get_rate(asset),
                    "currency": "USD",
                    "timestamp": now,
                }
            ).data
            for asset in Asset.values
        }
        return Response({"rates": rates, "timestamp": now.isoformat()})


class RateCacheStatsView(APIView):
    """
    Inspect the rate cache.

    GET /api/v1/rates/cache-stats/
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="get_rate_cache_stats",
        summary="Get rate cache stats",
        responses={
            200: OpenApiResponse(response=CacheStatsSerializer, description="Cache contents"),
            403: OpenApiResponse(description="Staff access required"),
        },
        tags=["Rates - Cache"],
    )
    def get(self, request):
        return Response(CacheStatsSerializer(rate_cache.stats()).data)


class RateCacheClearView(APIView):
    """
    Empty the rate cache.

    POST /api/v1/rates/clear-cache/
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="clear_rate_cache",
        summary="Clear rate cache",
        request=None,
        responses={
            200: OpenApiResponse(description="Cache cleared"),
            403: OpenApiResponse(description="Staff access required"),
        },
        tags=["Rates - Cache"],
    )
    def post(self, request):
        rate_cache.clear()
        return Response({"success": True, "message": "Rate cache cleared successfully"})
