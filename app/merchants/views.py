"""
API views for merchant settings and platform administration.

Endpoints:
    PUT /api/v1/merchants/<merchant_id>/webhook/ - Set webhook URL (and secret)
    GET /api/v1/admin/merchants/ - List merchants
    GET /api/v1/admin/fees/ - Global platform fee
    PUT /api/v1/admin/fees/ - Set global platform fee
    PUT /api/v1/admin/merchants/<merchant_id>/fee/ - Set or clear a fee override
    PUT /api/v1/admin/merchants/<merchant_id>/suspend/ - Suspend a merchant
    GET /api/v1/admin/fee-stats/ - Platform fee totals per asset
    GET /api/v1/admin/system-stats/ - Merchant, invoice and payment counts

Security:
    - Webhook settings: authenticated; caller must own the merchant or be staff
    - /admin/ routes: staff only
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from merchants.models import Merchant, PlatformSettings
from merchants.serializers import (
    FeeStatsSerializer,
    GlobalFeeSerializer,
    MerchantFeeSerializer,
    MerchantSerializer,
    SystemStatsSerializer,
    WebhookSettingsSerializer,
)
from merchants.services import MerchantService, fee_stats, system_stats

logger = logging.getLogger(__name__)

MERCHANT_NOT_FOUND = {"error": "Merchant not found", "error_code": "MERCHANT_NOT_FOUND"}


class MerchantWebhookView(APIView):
    """
    Set where a merchant receives payment webhooks.

    PUT /api/v1/merchants/<merchant_id>/webhook/

    Request body:
        {"webhook_url": "https://shop.example/hooks", "webhook_secret": "optional"}

    Response:
        200 OK: Webhook URL stored
        400 Bad Request: Invalid URL
        403 Forbidden: Caller cannot act for the merchant
        404 Not Found: Merchant not found
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="update_merchant_webhook",
        summary="Update merchant webhook settings",
        request=WebhookSettingsSerializer,
        responses={
            200: OpenApiResponse(description="Webhook URL updated"),
            400: OpenApiResponse(description="Invalid input"),
            403: OpenApiResponse(description="Not allowed for this merchant"),
            404: OpenApiResponse(description="Merchant not found"),
        },
        tags=["Merchants"],
    )
    def put(self, request, merchant_id):
        merchant = Merchant.objects.filter(pk=merchant_id).first()
        if merchant is None:
            return Response(MERCHANT_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        if not merchant.is_accessible_by(request.user):
            return Response(
                {"error": "You don't have access to this merchant"},
                status=status.HTTP_403_FORBIDDEN,
            )

        serializer = WebhookSettingsSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data

        merchant = MerchantService.update_webhook(
            merchant, data["webhook_url"], data.get("webhook_secret") or None
        )
        return Response(
            {
                "success": True,
                "webhook_url": merchant.webhook_url,
                "message": "Webhook URL updated successfully",
            }
        )


class MerchantListView(APIView):
    """
    List every merchant.

    GET /api/v1/admin/merchants/
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="list_merchants",
        summary="List merchants",
        responses={
            200: OpenApiResponse(response=MerchantSerializer(many=True), description="Merchants"),
            403: OpenApiResponse(description="Staff access required"),
        },
        tags=["Admin"],
    )
    def get(self, request):
        merchants = Merchant.objects.order_by("name")
        return Response(MerchantSerializer(merchants, many=True).data)


class PlatformFeeView(APIView):
    """
    Read or change the global platform fee.

    GET /api/v1/admin/fees/
    PUT /api/v1/admin/fees/

    The fee applies to payments credited after the change; merchants with a
    custom fee keep theirs.
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="get_platform_fee",
        summary="Get global platform fee",
        responses={
            200: OpenApiResponse(response=GlobalFeeSerializer, description="Global fee"),
            403: OpenApiResponse(description="Staff access required"),
        },
        tags=["Admin"],
    )
    def get(self, request):
        return Response(GlobalFeeSerializer({"fee_pct": PlatformSettings.global_fee_percent()}).data)

    @extend_schema(
        operation_id="update_platform_fee",
        summary="Set global platform fee",
        request=GlobalFeeSerializer,
        responses={
            200: OpenApiResponse(response=GlobalFeeSerializer, description="Global fee updated"),
            400: OpenApiResponse(description="Fee outside 0-100"),
            403: OpenApiResponse(description="Staff access required"),
        },
        tags=["Admin"],
    )
    def put(self, request):
        serializer = GlobalFeeSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        row = MerchantService.set_global_fee(serializer.validated_data["fee_pct"])
        logger.info(f"Platform fee changed by user {request.user.pk}")
        return Response(GlobalFeeSerializer({"fee_pct": row.fee_pct}).data)


class MerchantFeeView(APIView):
    """
    Set or clear a merchant's fee override.

    PUT /api/v1/admin/merchants/<merchant_id>/fee/

    Request body:
        {"custom_fee_pct": "1.25"} or {"custom_fee_pct": null}
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="update_merchant_fee",
        summary="Set merchant fee override",
        request=MerchantFeeSerializer,
        responses={
            200: OpenApiResponse(response=MerchantSerializer, description="Merchant updated"),
            400: OpenApiResponse(description="Fee outside 0-100"),
            403: OpenApiResponse(description="Staff access required"),
            404: OpenApiResponse(description="Merchant not found"),
        },
        tags=["Admin"],
    )
    def put(self, request, merchant_id):
        merchant = Merchant.objects.filter(pk=merchant_id).first()
        if merchant is None:
            return Response(MERCHANT_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)

        serializer = MerchantFeeSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        merchant = MerchantService.set_custom_fee(merchant, serializer.validated_data["custom_fee_pct"])
        return Response(MerchantSerializer(merchant).data)


class MerchantSuspendView(APIView):
    """
    Suspend a merchant.

    PUT /api/v1/admin/merchants/<merchant_id>/suspend/
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="suspend_merchant",
        summary="Suspend merchant",
        request=None,
        responses={
            200: OpenApiResponse(response=MerchantSerializer, description="Merchant suspended"),
            403: OpenApiResponse(description="Staff access required"),
            404: OpenApiResponse(description="Merchant not found"),
        },
        tags=["Admin"],
    )
    def put(self, request, merchant_id):
        merchant = Merchant.objects.filter(pk=merchant_id).first()
        if merchant is None:
            return Response(MERCHANT_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)

        merchant = MerchantService.suspend(merchant)
        return Response(MerchantSerializer(merchant).data)


class FeeStatsView(APIView):
    """
    Platform fee totals per asset.

    GET /api/v1/admin/fee-stats/
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="get_fee_stats",
        summary="Get platform fee statistics",
        responses={
            200: OpenApiResponse(response=FeeStatsSerializer, description="Fee totals"),
            403: OpenApiResponse(description="Staff access required"),
        },
        tags=["Admin"],
    )
    def get(self, request):
        return Response(FeeStatsSerializer(fee_stats()).data)


class SystemStatsView(APIView):
    """
    Counts of merchants, invoices (per status) and payments.

    GET /api/v1/admin/system-stats/
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="get_system_stats",
        summary="Get system statistics",
        responses={
            200: OpenApiResponse(response=SystemStatsSerializer, description="System counts"),
            403: OpenApiResponse(description="Staff access required"),
        },
        tags=["Admin"],
    )
    def get(self, request):
        return Response(SystemStatsSerializer(system_stats()).data)
