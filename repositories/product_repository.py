"""
Product repository.

Read-only lookups against the motorcycle catalog: existence, active flag and
list price of the models that appear on sale lines.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping, Optional
from uuid import UUID

from domain.customer import ProductRef
from repositories.client import get_supabase

_MOTORCYCLES_TABLE: str = "motorcycles"


def _row_to_product(row: Mapping[str, Any]) -> ProductRef:
    name = " ".join(str(p) for p in (row.get("brand"), row.get("model")) if p) or None
    return ProductRef(
        product_id=UUID(str(row["motorcycle_id"])),
        is_active=bool(row.get("is_active", False)),
        price=Decimal(str(row.get("price") or "0")),
        name=name,
    )


class SupabaseProductCatalog:
    """ProductCatalog backed by the Supabase `motorcycles` table."""

    def __init__(self, client: Any = None) -> None:
        self._client = client if client is not None else get_supabase()

    def get_product(self, product_id: UUID) -> Optional[ProductRef]:
        """
        Get a motorcycle by ID.

        Returns:
            ProductRef or None if not found

        Example:
            product = catalog.get_product(motorcycle_id)
            # ProductRef(product_id=..., is_active=True, price=Decimal('8999.00'), name='Honda CB500F')
        """
        response = (
            self._client.table(_MOTORCYCLES_TABLE)
            .select("motorcycle_id, brand, model, price, is_active")
            .eq("motorcycle_id", str(product_id))
            .limit(1)
            .execute()
        )

        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to fetch motorcycle: {error}")

        rows = getattr(response, "data", None) or []

        if not rows:
            return None

        return _row_to_product(rows[0])


__all__ = ["SupabaseProductCatalog"]
