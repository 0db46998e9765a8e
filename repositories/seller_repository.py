"""
Seller repository.

Read-only lookups against the `users` table for the seller attached to a new
sale. Accounts are owned by the auth module; the sale core never writes them.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional
from uuid import UUID

from domain.actor import Role
from domain.customer import SellerRef
from repositories.client import get_supabase

_USERS_TABLE: str = "users"


def _row_to_seller(row: Mapping[str, Any]) -> SellerRef:
    return SellerRef(
        user_id=UUID(str(row["user_id"])),
        is_active=bool(row.get("is_active", False)),
        first_name=row.get("first_name"),
        last_name=row.get("last_name"),
    )


class SupabaseSellerDirectory:
    """SellerDirectory backed by the Supabase `users` table."""

    def __init__(self, client: Any = None) -> None:
        self._client = client if client is not None else get_supabase()

    def get_seller(self, user_id: UUID) -> Optional[SellerRef]:
        """
        Get a seller account by user ID.

        Users with any other role are reported as missing.

        Returns:
            SellerRef or None if not found
        """
        response = (
            self._client.table(_USERS_TABLE)
            .select("user_id, first_name, last_name, is_active")
            .eq("user_id", str(user_id))
            .eq("role", Role.SELLER.value)
            .limit(1)
            .execute()
        )

        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to fetch seller: {error}")

        rows = getattr(response, "data", None) or []

        if not rows:
            return None

        return _row_to_seller(rows[0])


__all__ = ["SupabaseSellerDirectory"]
