"""
Tests for the read-only directory repositories (customers, products, sellers).

The Supabase client is replaced by a MagicMock; no database is needed.
"""

from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from fakes import BIKE_A_ID, CUSTOMER_ID, SELLER_ID
from repositories.customer_repository import SupabaseCustomerDirectory
from repositories.product_repository import SupabaseProductCatalog
from repositories.seller_repository import SupabaseSellerDirectory


def _client_returning(data, error=None) -> MagicMock:
    client = MagicMock()
    query = client.table.return_value.select.return_value.eq.return_value.limit.return_value
    query.execute.return_value = SimpleNamespace(data=data, error=error)
    return client


def test_get_customer_maps_row() -> None:
    client = _client_returning(
        [
            {
                "customer_id": str(CUSTOMER_ID),
                "first_name": "Ana",
                "last_name": "Rossi",
                "email": "ana@example.com",
                "is_active": True,
                "is_deleted": False,
            }
        ]
    )

    customer = SupabaseCustomerDirectory(client=client).get_customer(CUSTOMER_ID)

    assert customer.customer_id == CUSTOMER_ID
    assert customer.display_name == "Ana Rossi"
    assert customer.can_purchase() is True
    client.table.assert_called_once_with("customers")


def test_deleted_customer_cannot_purchase() -> None:
    client = _client_returning([{"customer_id": str(CUSTOMER_ID), "is_active": True, "is_deleted": True}])

    customer = SupabaseCustomerDirectory(client=client).get_customer(CUSTOMER_ID)

    assert customer.can_purchase() is False


def test_missing_customer_is_none() -> None:
    assert SupabaseCustomerDirectory(client=_client_returning([])).get_customer(CUSTOMER_ID) is None


def test_get_product_maps_row() -> None:
    client = _client_returning(
        [{"motorcycle_id": str(BIKE_A_ID), "brand": "Honda", "model": "CB500F", "price": 6899.5, "is_active": True}]
    )

    product = SupabaseProductCatalog(client=client).get_product(BIKE_A_ID)

    assert product.product_id == BIKE_A_ID
    assert product.price == Decimal("6899.5")
    assert product.name == "Honda CB500F"
    client.table.assert_called_once_with("motorcycles")


def test_storage_errors_raise_runtime_error() -> None:
    client = _client_returning(None, error="connection reset")

    with pytest.raises(RuntimeError):
        SupabaseProductCatalog(client=client).get_product(BIKE_A_ID)


def _seller_client_returning(data) -> MagicMock:
    client = MagicMock()
    query = client.table.return_value.select.return_value.eq.return_value.eq.return_value.limit.return_value
    query.execute.return_value = SimpleNamespace(data=data, error=None)
    return client


def test_get_seller_filters_on_the_seller_role() -> None:
    client = _seller_client_returning(
        [{"user_id": str(SELLER_ID), "first_name": "Sam", "last_name": "Ortiz", "is_active": True}]
    )

    seller = SupabaseSellerDirectory(client=client).get_seller(SELLER_ID)

    assert seller.user_id == SELLER_ID
    assert seller.display_name == "Sam Ortiz"
    assert seller.can_sell() is True
    client.table.assert_called_once_with("users")
    select = client.table.return_value.select.return_value
    select.eq.assert_called_once_with("user_id", str(SELLER_ID))
    select.eq.return_value.eq.assert_called_once_with("role", "seller")


def test_missing_seller_is_none() -> None:
    assert SupabaseSellerDirectory(client=_seller_client_returning([])).get_seller(SELLER_ID) is None
