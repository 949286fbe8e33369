"""
API views for merchant balances and withdrawals.

Endpoints:
    POST /api/v1/withdrawals/ - Record a withdrawal intent
    GET /api/v1/merchants/<merchant_id>/balances/ - List merchant balances

Security:
    - Authenticated; caller must own the merchant or be staff
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import ConflictError, NotFoundError, ValidationError
from ledger.exceptions import LedgerError
from ledger.serializers import BalanceSerializer, WithdrawalCreateSerializer, WithdrawalSerializer
from ledger.services import fee_ledger
from merchants.models import Merchant

logger = logging.getLogger(__name__)


class WithdrawalCreateView(APIView):
    """
    Record a withdrawal intent.

    POST /api/v1/withdrawals/

    Request body:
        {"merchant_id": "...", "asset": "btc", "amount": "0.5", "address": "bc1q..."}

    Response:
        201 Created: Withdrawal recorded, amount moved to pending
        400 Bad Request: Invalid input or insufficient balance
        403 Forbidden: Caller cannot act for the merchant
        404 Not Found: Merchant not found
        409 Conflict: Merchant suspended
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_withdrawal",
        summary="Request withdrawal",
        description=(
            "Reserve part of the merchant's available balance for a withdrawal. "
            "The withdrawal is recorded as PENDING; no transaction is broadcast."
        ),
        request=WithdrawalCreateSerializer,
        responses={
            201: OpenApiResponse(response=WithdrawalSerializer, description="Withdrawal recorded"),
            400: OpenApiResponse(description="Invalid input or insufficient balance"),
            403: OpenApiResponse(description="Not allowed for this merchant"),
            404: OpenApiResponse(description="Merchant not found"),
            409: OpenApiResponse(description="Merchant is suspended"),
        },
        tags=["Ledger - Withdrawals"],
    )
    def post(self, request):
        serializer = WithdrawalCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data

        merchant = Merchant.objects.filter(pk=data["merchant_id"]).first()
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
            withdrawal = fee_ledger.request_withdrawal(
                merchant.pk, data["asset"], data["amount"], data["address"]
            )
        except NotFoundError as e:
            return Response(e.to_dict(), status=status.HTTP_404_NOT_FOUND)
        except ConflictError as e:
            return Response(e.to_dict(), status=status.HTTP_409_CONFLICT)
        except (LedgerError, ValidationError) as e:
            return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)

        return Response(WithdrawalSerializer(withdrawal).data, status=status.HTTP_201_CREATED)


class MerchantBalancesView(APIView):
    """
    List a merchant's balances.

    GET /api/v1/merchants/<merchant_id>/balances/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_merchant_balances",
        summary="List merchant balances",
        responses={
            200: OpenApiResponse(response=BalanceSerializer(many=True), description="Balances per asset"),
            403: OpenApiResponse(description="Not allowed for this merchant"),
            404: OpenApiResponse(description="Merchant not found"),
        },
        tags=["Ledger - Balances"],
    )
    def get(self, request, merchant_id):
        merchant = Merchant.objects.filter(pk=merchant_id).first()
        if merchant is None:
            return Response({"error": "Merchant not found"}, status=status.HTTP_404_NOT_FOUND)
        if not merchant.is_accessible_by(request.user):
            return Response(
                {"error": "You don't have access to this merchant"},
                status=status.HTTP_403_FORBIDDEN,
            )

        balances = fee_ledger.balances_for(merchant.pk)
        return Response(BalanceSerializer(balances, many=True).data)
