"""
Customer repository.

Read-only access to the customer directory for sale validation. Customer
records are owned by the customers module; the sale core never writes them.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional
from uuid import UUID

from domain.customer import CustomerRef
from repositories.client import get_supabase

_CUSTOMERS_TABLE: str = "customers"


def _row_to_customer(row: Mapping[str, Any]) -> CustomerRef:
    return CustomerRef(
        customer_id=UUID(str(row["customer_id"])),
        is_active=bool(row.get("is_active", False)),
        is_deleted=bool(row.get("is_deleted", False)),
        first_name=row.get("first_name"),
        last_name=row.get("last_name"),
        email=row.get("email"),
    )


class SupabaseCustomerDirectory:
    """CustomerDirectory backed by the Supabase `customers` table."""

    def __init__(self, client: Any = None) -> None:
        self._client = client if client is not None else get_supabase()

    def get_customer(self, customer_id: UUID) -> Optional[CustomerRef]:
        """
        Get a customer by ID.

        Returns:
            CustomerRef or None if not found

        Example:
            customer = directory.get_customer(UUID('12345678-1234-1234-1234-123456789012'))
            if customer and customer.can_purchase():
                # Customer may be sold to
        """
        response = (
            self._client.table(_CUSTOMERS_TABLE)
            .select("customer_id, first_name, last_name, email, is_active, is_deleted")
            .eq("customer_id", str(customer_id))
            .limit(1)
            .execute()
        )

        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to fetch customer: {error}")

        rows = getattr(response, "data", None) or []

        if not rows:
            return None

        return _row_to_customer(rows[0])


__all__ = ["SupabaseCustomerDirectory"]
