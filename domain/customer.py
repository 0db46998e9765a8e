"""
Domain: Customer, seller and product references.

Read-only views of records owned by the customer directory, the user accounts
module and the motorcycle catalog. The sale core validates against them at
creation time but never modifies them.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional
from uuid import UUID


@dataclass(frozen=True, slots=True)
class CustomerRef:
    """
    Customer record as seen by the sale core.

    A customer can buy only while active and not soft-deleted.
    """

    customer_id: UUID
    is_active: bool
    is_deleted: bool = False
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None

    def can_purchase(self) -> bool:
        return self.is_active and not self.is_deleted

    @property
    def display_name(self) -> Optional[str]:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) if parts else None


@dataclass(frozen=True, slots=True)
class ProductRef:
    """Catalog entry (a motorcycle model) that can appear on a sale line."""

    product_id: UUID
    is_active: bool
    price: Decimal
    name: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SellerRef:
    """
    A user account with the seller role.

    Only active sellers can be attached to a new sale.
    """

    user_id: UUID
    is_active: bool
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    def can_sell(self) -> bool:
        return self.is_active

    @property
    def display_name(self) -> Optional[str]:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) if parts else None
