"""
Tests for ledger endpoints.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from django.urls import reverse
from rest_framework import status

from ledger.tests.factories import BalanceFactory
from merchants.tests.factories import MerchantFactory


@pytest.mark.django_db
class TestWithdrawalCreateView:
    """Test POST /api/v1/withdrawals/."""

    def test_owner_records_withdrawal(self, api_client, user):
        merchant = MerchantFactory(owner=user)
        BalanceFactory(owner=str(merchant.id), asset="eth", available=Decimal("2"))
        api_client.force_authenticate(user=user)

        response = api_client.post(
            reverse("ledger:withdrawal-create"),
            {"merchant_id": str(merchant.id), "asset": "eth", "amount": "1.5", "address": "0xdest"},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["status"] == "pending"

    def test_insufficient_balance_is_400(self, api_client, user):
        merchant = MerchantFactory(owner=user)
        BalanceFactory(owner=str(merchant.id), asset="eth", available=Decimal("1"))
        api_client.force_authenticate(user=user)

        response = api_client.post(
            reverse("ledger:withdrawal-create"),
            {"merchant_id": str(merchant.id), "asset": "eth", "amount": "5", "address": "0xdest"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "INSUFFICIENT_BALANCE"

    def test_other_users_merchant_forbidden(self, authenticated_client):
        merchant = MerchantFactory()

        response = authenticated_client.post(
            reverse("ledger:withdrawal-create"),
            {"merchant_id": str(merchant.id), "asset": "eth", "amount": "1", "address": "0xdest"},
            format="json",
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_requires_authentication(self, api_client):
        response = api_client.post(reverse("ledger:withdrawal-create"), {}, format="json")

        assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)


@pytest.mark.django_db
class TestMerchantBalancesView:
    def test_lists_balances(self, api_client, user):
        merchant = MerchantFactory(owner=user)
        BalanceFactory(owner=str(merchant.id), asset="btc", available=Decimal("0.5"))
        api_client.force_authenticate(user=user)

        response = api_client.get(reverse("ledger:merchant-balances", args=[merchant.id]))

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 1
        assert Decimal(response.data[0]["available"]) == Decimal("0.5")
