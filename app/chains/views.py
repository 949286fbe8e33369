"""
API views for chain provider health.

Endpoints:
    GET /api/v1/providers/status/ - Backend health per chain with summary

Security:
    - Staff only; exposes infrastructure detail
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from chains.health import HealthStatus
from chains.pool import get_pool
from chains.serializers import ProviderStatusSerializer


class ProviderStatusView(APIView):
    """
    Report the health registry of the process pool.

    GET /api/v1/providers/status/

    Response:
        200 OK: {"providers": [...], "summary": {...}}
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="get_provider_status",
        summary="Get chain provider status",
        description=(
            "Health of every registered chain backend as seen by this worker "
            "process, with counts per status and the mean last response time."
        ),
        responses={
            200: OpenApiResponse(
                response=ProviderStatusSerializer,
                description="Provider health and summary",
            ),
            403: OpenApiResponse(description="Staff access required"),
        },
        tags=["Chains - Providers"],
    )
    def get(self, request):
        records = get_pool().health_snapshot()
        timings = [
            record.response_time_ms
            for record in records
            if record.response_time_ms is not None
        ]

        summary = {
            "total_providers": len(records),
            "healthy_providers": sum(
                1 for record in records if record.status == HealthStatus.HEALTHY
            ),
            "degraded_providers": sum(
                1 for record in records if record.status == HealthStatus.DEGRADED
            ),
            "offline_providers": sum(
                1 for record in records if record.status == HealthStatus.OFFLINE
            ),
            "average_response_time_ms": (
                round(sum(timings) / len(timings)) if timings else None
            ),
        }

        serializer = ProviderStatusSerializer(
            {"providers": records, "summary": summary}
        )
        return Response(serializer.data)
