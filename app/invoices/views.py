"""
API views for invoices.

Endpoints:
    POST /api/v1/invoices/ - Create an invoice
    GET /api/v1/invoices/<invoice_id>/ - Invoice detail
    GET /api/v1/status/<invoice_id>/<status_token>/ - Public status

Security:
    - Create and detail require authentication; the caller must own the
      merchant or be staff
    - Status reads are public and authorized by the status token only
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from chains.exceptions import UnsupportedAsset
from core.exceptions import PermissionDeniedError
from invoices.exceptions import (
    InvoiceError,
    InvoiceNotFound,
    MerchantNotFound,
    StoreNotFound,
)
from invoices.models import Invoice
from invoices.serializers import (
    InvoiceCreatedSerializer,
    InvoiceCreateSerializer,
    InvoiceSerializer,
    InvoiceStatusSerializer,
)
from invoices.services import create_invoice, read_invoice_status
from merchants.models import Merchant

logger = logging.getLogger(__name__)


class InvoiceCreateView(APIView):
    """
    Create an invoice.

    POST /api/v1/invoices/

    Request body:
        {
            "merchant_id": "...",
            "store_id": "...",
            "asset": "usdt_erc20",
            "fiat_amount": "100.00",
            "external_id": "order-42"
        }

    Response:
        201 Created: Invoice created
        400 Bad Request: Invalid input, unsupported asset or inactive merchant
        403 Forbidden: Caller cannot act for the merchant
        404 Not Found: Merchant or store not found
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_invoice",
        summary="Create invoice",
        description=(
            "Create a PENDING invoice. The USD price is converted at the current "
            "rate plus a 0.5% buffer and the invoice expires after 15 minutes."
        ),
        request=InvoiceCreateSerializer,
        responses={
            201: OpenApiResponse(response=InvoiceCreatedSerializer, description="Invoice created"),
            400: OpenApiResponse(description="Invalid input or merchant inactive"),
            403: OpenApiResponse(description="Not allowed for this merchant"),
            404: OpenApiResponse(description="Merchant or store not found"),
        },
        tags=["Invoices"],
    )
    def post(self, request):
        serializer = InvoiceCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data

        merchant = Merchant.objects.filter(pk=data["merchant_id"]).first()
        if merchant is not None and not merchant.is_accessible_by(request.user):
            return Response(
                {"error": "You don't have access to this merchant"},
                status=status.HTTP_403_FORBIDDEN,
            )

        try:
            invoice = create_invoice(
                merchant_id=data["merchant_id"],
                store_id=data["store_id"],
                asset=data["asset"],
                fiat_amount=data["fiat_amount"],
                external_id=data.get("external_id"),
                currency=data["currency"],
            )
        except (MerchantNotFound, StoreNotFound) as e:
            return Response(e.to_dict(), status=status.HTTP_404_NOT_FOUND)
        except (InvoiceError, UnsupportedAsset) as e:
            return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)

        return Response(
            InvoiceCreatedSerializer(invoice).data,
            status=status.HTTP_201_CREATED,
        )


class InvoiceDetailView(APIView):
    """
    Get an invoice.

    GET /api/v1/invoices/<invoice_id>/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_invoice",
        summary="Get invoice",
        responses={
            200: OpenApiResponse(response=InvoiceSerializer, description="Invoice"),
            404: OpenApiResponse(description="Invoice not found"),
        },
        tags=["Invoices"],
    )
    def get(self, request, invoice_id):
        invoice = Invoice.objects.select_related("merchant").filter(pk=invoice_id).first()
        # Invoices of other merchants are reported as missing
        if invoice is None or not invoice.merchant.is_accessible_by(request.user):
            return Response(
                InvoiceNotFound(invoice_id).to_dict(),
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(InvoiceSerializer(invoice).data)


class InvoiceStatusView(APIView):
    """
    Public invoice status.

    GET /api/v1/status/<invoice_id>/<status_token>/

    Reads never contact a chain provider. A PENDING invoice read past its
    expiry is expired by the read.

    Response:
        200 OK: Status and confirmation progress
        403 Forbidden: Invalid status token
        404 Not Found: Invoice not found
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        operation_id="get_invoice_status",
        summary="Get invoice status",
        responses={
            200: OpenApiResponse(response=InvoiceStatusSerializer, description="Invoice status"),
            403: OpenApiResponse(description="Invalid status token"),
            404: OpenApiResponse(description="Invoice not found"),
        },
        tags=["Invoices - Public"],
    )
    def get(self, request, invoice_id, status_token):
        try:
            report = read_invoice_status(invoice_id, status_token)
        except InvoiceNotFound as e:
            return Response(e.to_dict(), status=status.HTTP_404_NOT_FOUND)
        except PermissionDeniedError as e:
            return Response(e.to_dict(), status=status.HTTP_403_FORBIDDEN)

        return Response(InvoiceStatusSerializer(report).data)
