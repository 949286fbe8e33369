"""
API views for webhooks.

Endpoints:
    POST /api/v1/webhooks/test/ - Queue a test webhook for a merchant
    GET /api/v1/webhooks/<webhook_id>/ - Delivery status of one webhook

Security:
    - Authenticated; caller must own the merchant or be staff
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from merchants.models import Merchant
from webhooks.engine import webhook_engine
from webhooks.exceptions import NoWebhookUrl
from webhooks.models import WebhookDelivery
from webhooks.payloads import merchant_test_payload
from webhooks.serializers import (
    WebhookTestRequestSerializer,
    WebhookTestResponseSerializer,
    WebhookDeliverySerializer,
)


class WebhookTestView(APIView):
    """
    Queue a "test" webhook to the merchant's configured URL.

    POST /api/v1/webhooks/test/

    Request body:
        {"merchant_id": "..."}

    Response:
        202 Accepted: Webhook queued
        400 Bad Request: Invalid input or no webhook URL configured
        403 Forbidden: Caller cannot act for the merchant
        404 Not Found: Merchant not found
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="send_test_webhook",
        summary="Send test webhook",
        description=(
            "Queue a signed webhook of type 'test' to the merchant's webhook URL. "
            "Delivery follows the normal retry schedule."
        ),
        request=WebhookTestRequestSerializer,
        responses={
            202: OpenApiResponse(response=WebhookTestResponseSerializer, description="Webhook queued"),
            400: OpenApiResponse(description="No webhook URL configured"),
            403: OpenApiResponse(description="Not allowed for this merchant"),
            404: OpenApiResponse(description="Merchant not found"),
        },
        tags=["Webhooks"],
    )
    def post(self, request):
        serializer = WebhookTestRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        merchant = Merchant.objects.filter(pk=serializer.validated_data["merchant_id"]).first()
        if merchant is None:
            return Response(
                {"error": "Merchant not found", "error_code": "MERCHANT_NOT_FOUND"},
                status=status.HTTP_404_NOT_FOUND,
            )
        if not merchant.is_accessible_by(request.user):
            return Response(
                {"error": "You don't have access to this merchant"},
                status=status.HTTP_403_FORBIDDEN,
            )

        try:
            webhook_id = webhook_engine.enqueue_for_merchant(
                merchant, merchant_test_payload(merchant)
            )
        except NoWebhookUrl as e:
            return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)

        response = WebhookTestResponseSerializer(
            {
                "success": True,
                "webhook_id": webhook_id,
                "message": "Test webhook queued for delivery",
            }
        )
        return Response(response.data, status=status.HTTP_202_ACCEPTED)


class WebhookDeliveryDetailView(APIView):
    """
    Delivery status of one webhook.

    GET /api/v1/webhooks/<webhook_id>/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_webhook_delivery",
        summary="Get webhook delivery",
        responses={
            200: OpenApiResponse(response=WebhookDeliverySerializer, description="Delivery record"),
            404: OpenApiResponse(description="Webhook not found"),
        },
        tags=["Webhooks"],
    )
    def get(self, request, webhook_id):
        delivery = (
            WebhookDelivery.objects.select_related("merchant")
            .filter(pk=webhook_id)
            .first()
        )
        if delivery is None or not delivery.merchant.is_accessible_by(request.user):
            return Response({"error": "Webhook not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(WebhookDeliverySerializer(delivery).data)
