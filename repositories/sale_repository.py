"""
Sale repository (persistence).

This module provides *only* persistence operations for the Sale aggregate. It
does not enforce business rules (transitions, scope, payment limits); it maps
rows to domain entities and relies on the database for the two guarantees the
services depend on:

- `create_sale_with_lines()` (sql/sales_schema.sql) inserts the header and all
  lines in one transaction, taking the final sale number under a per-bucket
  advisory lock; the UNIQUE constraint on sale_number still turns any
  remaining collision into SaleNumberConflict.
- Header updates are conditional on the stored version (optimistic
  concurrency); a stale version raises ConcurrentModificationError.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence
from uuid import UUID

from postgrest.exceptions import APIError

from domain.access import SaleFilters
from domain.errors import ConcurrentModificationError, SaleNumberConflict
from domain.sale import PaymentStatus, Sale, SaleLine, SaleStatus, StatusHistoryEntry
from domain.time import require_utc_timestamp
from repositories.client import get_supabase

logger = logging.getLogger(__name__)

# Supabase table names for sale records.
# Keep these aligned with sql/sales_schema.sql.
_SALES_TABLE: str = "sales"
_SALE_ITEMS_TABLE: str = "sale_items"
_CREATE_SALE_RPC: str = "create_sale_with_lines"

# PostgreSQL SQLSTATE for unique_violation
_UNIQUE_VIOLATION = "23505"

_SALE_SELECT = (
    "*, sale_items(*, motorcycles(brand, model)), "
    "customers(first_name, last_name), seller:users(first_name, last_name)"
)


def _to_iso_utc(dt: datetime, *, name: str) -> str:
    """Serialize a UTC datetime to ISO-8601 (timezone-aware, offset 0)."""

    require_utc_timestamp(name, dt)
    return dt.astimezone(timezone.utc).isoformat()


def _parse_utc_datetime(value: Any) -> datetime:
    """
    Parse a Supabase timestamp into a timezone-aware UTC datetime.

    Supabase commonly returns ISO-8601 strings, sometimes with a trailing 'Z'.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _parse_optional_datetime(value: Any) -> Optional[datetime]:
    return _parse_utc_datetime(value) if value else None


def _parse_optional_date(value: Any) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    return date.fromisoformat(str(value)[:10])


def _parse_optional_uuid(value: Any) -> Optional[UUID]:
    return UUID(str(value)) if value else None


def _joined_name(value: Any) -> Optional[str]:
    """Build 'First Last' from an embedded PostgREST relation (dict or None)."""

    if not isinstance(value, Mapping):
        return None
    parts = [value.get("first_name"), value.get("last_name")]
    name = " ".join(str(p) for p in parts if p)
    return name or None


def _product_name(value: Any) -> Optional[str]:
    if not isinstance(value, Mapping):
        return None
    name = " ".join(str(p) for p in (value.get("brand"), value.get("model")) if p)
    return name or None


def _history_to_json(history: Sequence[StatusHistoryEntry]) -> List[Dict[str, Any]]:
    return [
        {
            "status": entry.status.value,
            "timestamp": _to_iso_utc(entry.timestamp, name="status_history.timestamp"),
            "actor_id": str(entry.actor_id) if entry.actor_id else None,
            "comment": entry.comment,
        }
        for entry in history
    ]


def _history_from_json(value: Any) -> tuple[StatusHistoryEntry, ...]:
    if not value:
        return ()
    return tuple(
        StatusHistoryEntry(
            status=SaleStatus(str(item["status"])),
            timestamp=_parse_utc_datetime(item["timestamp"]),
            actor_id=_parse_optional_uuid(item.get("actor_id")),
            comment=str(item.get("comment") or ""),
        )
        for item in value
    )


def _row_to_line(row: Mapping[str, Any]) -> SaleLine:
    """Convert a sale_items row into a SaleLine."""

    return SaleLine(
        line_id=UUID(str(row["sale_item_id"])),
        product_id=UUID(str(row["motorcycle_id"])),
        quantity=int(row["quantity"]),
        unit_price=Decimal(str(row["unit_price"])),
        line_total=Decimal(str(row["total_price"])),
        discount_percent=Decimal(str(row.get("discount_percent") or "0")),
        discount_amount=Decimal(str(row.get("discount_amount") or "0")),
        notes=row.get("notes"),
        product_name=_product_name(row.get("motorcycles")),
    )


def _row_to_sale(row: Mapping[str, Any]) -> Sale:
    """Convert a Supabase sales row (with embedded sale_items) into a Sale."""

    line_rows = sorted(row.get(_SALE_ITEMS_TABLE) or [], key=lambda r: int(r.get("line_number") or 0))

    return Sale(
        sale_id=UUID(str(row["sale_id"])),
        sale_number=str(row["sale_number"]),
        customer_id=UUID(str(row["customer_id"])),
        seller_id=_parse_optional_uuid(row.get("seller_id")),
        lines=tuple(_row_to_line(r) for r in line_rows),
        subtotal=Decimal(str(row["subtotal"])),
        tax_rate=Decimal(str(row.get("tax_rate") or "0")),
        tax_amount=Decimal(str(row.get("tax_amount") or "0")),
        discount_amount=Decimal(str(row.get("discount_amount") or "0")),
        total_amount=Decimal(str(row["total_amount"])),
        paid_amount=Decimal(str(row.get("paid_amount") or "0")),
        created_at=_parse_utc_datetime(row["created_at_utc"]),
        updated_at=_parse_utc_datetime(row["updated_at_utc"]),
        status=SaleStatus(str(row["status"])),
        payment_status=PaymentStatus(str(row["payment_status"])),
        status_history=_history_from_json(row.get("status_history")),
        is_deleted=bool(row.get("is_deleted", False)),
        is_delivered=bool(row.get("is_delivered", False)),
        cancelled_at=_parse_optional_datetime(row.get("cancelled_at_utc")),
        payment_method=row.get("payment_method"),
        notes=row.get("notes"),
        internal_notes=row.get("internal_notes"),
        delivery_address=row.get("delivery_address"),
        delivery_date=_parse_optional_date(row.get("delivery_date")),
        estimated_delivery_date=_parse_optional_date(row.get("estimated_delivery_date")),
        shipping_carrier=row.get("shipping_carrier"),
        tracking_number=row.get("tracking_number"),
        version=int(row.get("version") or 1),
        customer_name=_joined_name(row.get("customers")),
        seller_name=_joined_name(row.get("seller")),
    )


def _header_payload(sale: Sale) -> Dict[str, Any]:
    """Mutable header columns. Lines and identity columns are never rewritten."""

    return {
        "paid_amount": str(sale.paid_amount),
        "status": sale.status.value,
        "payment_status": sale.payment_status.value,
        "status_history": _history_to_json(sale.status_history),
        "is_deleted": sale.is_deleted,
        "is_delivered": sale.is_delivered,
        "cancelled_at_utc": _to_iso_utc(sale.cancelled_at, name="cancelled_at") if sale.cancelled_at else None,
        "payment_method": sale.payment_method,
        "notes": sale.notes,
        "internal_notes": sale.internal_notes,
        "delivery_address": sale.delivery_address,
        "delivery_date": sale.delivery_date.isoformat() if sale.delivery_date else None,
        "estimated_delivery_date": (
            sale.estimated_delivery_date.isoformat() if sale.estimated_delivery_date else None
        ),
        "shipping_carrier": sale.shipping_carrier,
        "tracking_number": sale.tracking_number,
        "updated_at_utc": _to_iso_utc(sale.updated_at, name="updated_at"),
    }


def _sale_to_row(sale: Sale) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "sale_id": str(sale.sale_id),
        "sale_number": sale.sale_number,
        "customer_id": str(sale.customer_id),
        "seller_id": str(sale.seller_id) if sale.seller_id else None,
        "subtotal": str(sale.subtotal),
        "tax_rate": str(sale.tax_rate),
        "tax_amount": str(sale.tax_amount),
        "discount_amount": str(sale.discount_amount),
        "total_amount": str(sale.total_amount),
        "version": sale.version,
        "created_at_utc": _to_iso_utc(sale.created_at, name="created_at"),
    }
    payload.update(_header_payload(sale))
    return payload


def _line_to_row(line: SaleLine, sale_id: UUID, line_number: int) -> Dict[str, Any]:
    return {
        "sale_item_id": str(line.line_id),
        "sale_id": str(sale_id),
        "line_number": line_number,
        "motorcycle_id": str(line.product_id),
        "quantity": line.quantity,
        "unit_price": str(line.unit_price),
        "total_price": str(line.line_total),
        "discount_percent": str(line.discount_percent),
        "discount_amount": str(line.discount_amount),
        "notes": line.notes,
    }


def _api_error_payload(error: APIError) -> Dict[str, Any]:
    try:
        data = error.json() if callable(getattr(error, "json", None)) else {}
    except (TypeError, ValueError):
        data = {}
    return data if isinstance(data, dict) else {}


def _api_error_code(error: APIError) -> Optional[str]:
    code = getattr(error, "code", None)
    if code:
        return str(code)
    data = _api_error_payload(error)
    return str(data["code"]) if data.get("code") else None


class SupabaseSaleStore:
    """SaleStore backed by the Supabase `sales` and `sale_items` tables."""

    def __init__(self, client: Any = None) -> None:
        self._client = client if client is not None else get_supabase()

    def find_last_sale_number(self, prefix: str) -> Optional[str]:
        """
        Greatest sale_number starting with `prefix`, or None.

        Example:
            store.find_last_sale_number("SALE-202510")
            # Returns "SALE-2025100042"
        """
        response = (
            self._client.table(_SALES_TABLE)
            .select("sale_number")
            .like("sale_number", f"{prefix}%")
            .order("sale_number", desc=True)
            .limit(1)
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to read last sale number: {error}")

        rows = getattr(response, "data", None) or []
        return str(rows[0]["sale_number"]) if rows else None

    def insert_sale(self, sale: Sale) -> str:
        """
        Insert header + lines atomically via create_sale_with_lines().

        The function re-reads the bucket under a per-bucket lock and moves the
        sale to the next free number when the proposed one is already behind.

        Returns:
            The sale number actually stored

        Raises:
            SaleNumberConflict: If the stored number is still taken (bucket exhausted)
            RuntimeError: On any other storage failure (nothing is persisted)
        """
        params = {
            "p_sale": _sale_to_row(sale),
            "p_lines": [_line_to_row(line, sale.sale_id, i) for i, line in enumerate(sale.lines, start=1)],
        }

        try:
            response = self._client.rpc(_CREATE_SALE_RPC, params).execute()
        except APIError as e:
            # supabase-py can raise APIError for a JSON body returned by the
            # function even when the call succeeded
            payload = _api_error_payload(e)
            if payload.get("success") is True:
                return str(payload.get("sale_number") or sale.sale_number)
            if _api_error_code(e) == _UNIQUE_VIOLATION:
                raise SaleNumberConflict(f"Sale number {sale.sale_number} is already taken")
            raise RuntimeError(f"Failed to create sale: {e}") from e

        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to create sale: {error}")

        data = getattr(response, "data", None)
        payload = data if isinstance(data, dict) else {}
        return str(payload.get("sale_number") or sale.sale_number)

    def get_sale(self, sale_id: UUID) -> Optional[Sale]:
        response = (
            self._client.table(_SALES_TABLE)
            .select(_SALE_SELECT)
            .eq("sale_id", str(sale_id))
            .limit(1)
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to get sale: {error}")

        rows = getattr(response, "data", None) or []
        if not rows:
            return None
        return _row_to_sale(rows[0])

    def list_sales(self, filters: SaleFilters) -> List[Sale]:
        """Sales matching filters, newest first."""

        query = self._client.table(_SALES_TABLE).select(_SALE_SELECT)

        if not filters.include_deleted:
            query = query.eq("is_deleted", False)
        if filters.status is not None:
            query = query.eq("status", filters.status.value)
        if filters.exclude_status is not None:
            query = query.neq("status", filters.exclude_status.value)
        if filters.payment_status is not None:
            query = query.eq("payment_status", filters.payment_status.value)
        if filters.customer_id is not None:
            query = query.eq("customer_id", str(filters.customer_id))
        if filters.seller_id is not None:
            query = query.eq("seller_id", str(filters.seller_id))
        if filters.from_date is not None:
            query = query.gte("created_at_utc", _to_iso_utc(filters.from_date, name="from_date"))
        if filters.to_date is not None:
            query = query.lte("created_at_utc", _to_iso_utc(filters.to_date, name="to_date"))

        response = query.order("created_at_utc", desc=True).execute()
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to list sales: {error}")

        rows = getattr(response, "data", None) or []
        return [_row_to_sale(row) for row in rows]

    def update_sale(self, sale: Sale, expected_version: int) -> Sale:
        """
        Write header fields if the stored version still equals expected_version.

        Raises:
            ConcurrentModificationError: If another writer got there first
        """
        payload = _header_payload(sale)
        payload["version"] = expected_version + 1

        response = (
            self._client.table(_SALES_TABLE)
            .update(payload)
            .eq("sale_id", str(sale.sale_id))
            .eq("version", expected_version)
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to update sale: {error}")

        rows = getattr(response, "data", None) or []
        if not rows:
            logger.warning(
                f"Stale write rejected for sale {sale.sale_id}",
                extra={"sale_id": str(sale.sale_id), "expected_version": expected_version},
            )
            raise ConcurrentModificationError(
                f"Sale {sale.sale_number} was modified concurrently; reload and retry"
            )

        stored = self.get_sale(sale.sale_id)
        if stored is None:
            raise RuntimeError(f"Sale {sale.sale_id} disappeared after update")
        return stored


__all__ = ["SupabaseSaleStore"]
