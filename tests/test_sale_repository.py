"""
Tests for `repositories/sale_repository.py`.

Covers:
- Mapping Supabase rows (with embedded sale_items and joined names) to Sale.
- Unique violations on sale_number surface as SaleNumberConflict.
- A conditional update that matches no row surfaces as ConcurrentModificationError.

The Supabase client is replaced by a MagicMock; no database is needed.
"""

from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock
from uuid import UUID

import pytest
from postgrest.exceptions import APIError

from domain.errors import ConcurrentModificationError, SaleNumberConflict
from domain.sale import PaymentStatus, SaleStatus
from fakes import ADMIN_ID, NOW, build_sale
from repositories.sale_repository import SupabaseSaleStore, _row_to_sale, _sale_to_row

SALE_ROW = {
    "sale_id": "00000000-0000-0000-0000-000000000500",
    "sale_number": "SALE-2025030007",
    "customer_id": "00000000-0000-0000-0000-000000000010",
    "seller_id": "00000000-0000-0000-0000-000000000002",
    "subtotal": "1200.00",
    "tax_rate": "10.00",
    "tax_amount": "120.00",
    "discount_amount": "0.00",
    "total_amount": "1320.00",
    "paid_amount": "500.00",
    "status": "in_transit",
    "payment_status": "partial",
    "status_history": [
        {"status": "pending", "timestamp": "2025-03-15T10:00:00Z", "actor_id": None, "comment": "Sale created"},
        {
            "status": "in_transit",
            "timestamp": "2025-03-16T09:30:00+00:00",
            "actor_id": "00000000-0000-0000-0000-000000000001",
            "comment": "",
        },
    ],
    "is_deleted": False,
    "is_delivered": False,
    "cancelled_at_utc": None,
    "payment_method": "card",
    "notes": None,
    "internal_notes": "VIP",
    "delivery_address": "1 Main St",
    "delivery_date": None,
    "estimated_delivery_date": "2025-03-20",
    "shipping_carrier": "UPS",
    "tracking_number": "1Z999",
    "version": 4,
    "created_at_utc": "2025-03-15T10:00:00Z",
    "updated_at_utc": "2025-03-16T09:30:00Z",
    "customers": {"first_name": "Ana", "last_name": "Rossi"},
    "seller": {"first_name": "Sam", "last_name": None},
    "sale_items": [
        {
            "sale_item_id": "00000000-0000-0000-0000-000000000602",
            "line_number": 2,
            "motorcycle_id": "00000000-0000-0000-0000-000000000101",
            "quantity": 1,
            "unit_price": "300.00",
            "total_price": "300.00",
            "discount_percent": "0",
            "discount_amount": "0",
            "notes": None,
            "motorcycles": {"brand": "Yamaha", "model": "PW50"},
        },
        {
            "sale_item_id": "00000000-0000-0000-0000-000000000601",
            "line_number": 1,
            "motorcycle_id": "00000000-0000-0000-0000-000000000100",
            "quantity": 2,
            "unit_price": "500.00",
            "total_price": "1000.00",
            "discount_percent": "10.00",
            "discount_amount": "100.00",
            "notes": "Two-tone paint",
            "motorcycles": {"brand": "Honda", "model": "CB500F"},
        },
    ],
}


def _response(data) -> SimpleNamespace:
    return SimpleNamespace(data=data, error=None)


def test_row_to_sale_maps_header_lines_and_history() -> None:
    sale = _row_to_sale(SALE_ROW)

    assert sale.sale_number == "SALE-2025030007"
    assert sale.status is SaleStatus.IN_TRANSIT
    assert sale.payment_status is PaymentStatus.PARTIAL
    assert sale.total_amount == Decimal("1320.00")
    assert sale.balance_amount == Decimal("820.00")
    assert sale.version == 4
    assert sale.customer_name == "Ana Rossi"
    assert sale.seller_name == "Sam"
    assert sale.created_at == NOW
    assert sale.estimated_delivery_date.isoformat() == "2025-03-20"

    assert [line.product_name for line in sale.lines] == ["Honda CB500F", "Yamaha PW50"]
    assert sale.lines[0].final_price == Decimal("900.00")

    assert [e.status for e in sale.status_history] == [SaleStatus.PENDING, SaleStatus.IN_TRANSIT]
    assert sale.status_history[1].actor_id == ADMIN_ID


def test_sale_to_row_serializes_money_as_strings() -> None:
    row = _sale_to_row(build_sale())

    assert row["total_amount"] == "1320.00"
    assert row["status"] == "pending"
    assert row["version"] == 1
    assert row["created_at_utc"] == "2025-03-15T10:00:00+00:00"
    assert row["status_history"][0]["actor_id"] == str(ADMIN_ID)


def test_find_last_sale_number_reads_greatest_in_bucket() -> None:
    client = MagicMock()
    query = client.table.return_value.select.return_value.like.return_value.order.return_value.limit.return_value
    query.execute.return_value = _response([{"sale_number": "SALE-2025030007"}])

    store = SupabaseSaleStore(client=client)

    assert store.find_last_sale_number("SALE-202503") == "SALE-2025030007"
    client.table.return_value.select.return_value.like.assert_called_once_with("sale_number", "SALE-202503%")


def test_insert_duplicate_number_raises_sale_number_conflict() -> None:
    client = MagicMock()
    client.rpc.return_value.execute.side_effect = APIError(
        {"code": "23505", "message": "duplicate key value violates unique constraint", "details": "", "hint": ""}
    )

    store = SupabaseSaleStore(client=client)

    with pytest.raises(SaleNumberConflict):
        store.insert_sale(build_sale())


def test_insert_treats_success_payload_as_success() -> None:
    client = MagicMock()
    client.rpc.return_value.execute.side_effect = APIError(
        {"success": True, "sale_id": "00000000-0000-0000-0000-000000000500"}
    )

    store = SupabaseSaleStore(client=client)
    assert store.insert_sale(build_sale()) == "SALE-2025030001"

    name, params = client.rpc.call_args.args
    assert name == "create_sale_with_lines"
    assert params["p_lines"][0]["line_number"] == 1


def test_insert_returns_the_number_settled_by_the_database() -> None:
    client = MagicMock()
    client.rpc.return_value.execute.return_value = _response(
        {"success": True, "sale_id": "00000000-0000-0000-0000-000000000500", "sale_number": "SALE-2025030004"}
    )

    store = SupabaseSaleStore(client=client)

    assert store.insert_sale(build_sale(sale_number="SALE-2025030002")) == "SALE-2025030004"


def test_insert_other_failures_raise_runtime_error() -> None:
    client = MagicMock()
    client.rpc.return_value.execute.side_effect = APIError(
        {"code": "23503", "message": "foreign key violation", "details": "", "hint": ""}
    )

    store = SupabaseSaleStore(client=client)

    with pytest.raises(RuntimeError):
        store.insert_sale(build_sale())


def test_update_with_stale_version_raises() -> None:
    client = MagicMock()
    update_query = client.table.return_value.update.return_value
    update_query.eq.return_value.eq.return_value.execute.return_value = _response([])

    store = SupabaseSaleStore(client=client)
    sale = build_sale()

    with pytest.raises(ConcurrentModificationError):
        store.update_sale(sale, expected_version=3)

    payload = client.table.return_value.update.call_args.args[0]
    assert payload["version"] == 4
    update_query.eq.return_value.eq.assert_called_once_with("version", 3)
    assert UUID(update_query.eq.call_args.args[1]) == sale.sale_id
