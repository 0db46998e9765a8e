"""
Collaborator interfaces for the sale core.

Services receive these through their constructors. Production wiring uses the
Supabase implementations in this package; tests pass in-memory fakes.
"""

from __future__ import annotations

from typing import List, Optional, Protocol
from uuid import UUID

from domain.access import SaleFilters
from domain.customer import CustomerRef, ProductRef, SellerRef
from domain.sale import Sale


class CustomerDirectory(Protocol):
    def get_customer(self, customer_id: UUID) -> Optional[CustomerRef]:
        """Return the customer record, or None if it does not exist."""
        ...


class ProductCatalog(Protocol):
    def get_product(self, product_id: UUID) -> Optional[ProductRef]:
        """Return the catalog entry, or None if it does not exist."""
        ...


class SellerDirectory(Protocol):
    def get_seller(self, user_id: UUID) -> Optional[SellerRef]:
        """Return the user if it has the seller role, or None."""
        ...


class SaleStore(Protocol):
    """
    Persistence handle for the sale aggregate.

    Contract:
    - insert_sale writes the header and every line in one transaction and
      returns the sale number actually stored. It may move a proposed number
      that a concurrent creation overtook to the next free one, and raises
      SaleNumberConflict when the number is still taken.
    - update_sale writes header fields only (lines are immutable) and raises
      ConcurrentModificationError unless the stored version equals
      expected_version. The returned sale carries the incremented version.
    """

    def find_last_sale_number(self, prefix: str) -> Optional[str]:
        ...

    def insert_sale(self, sale: Sale) -> str:
        ...

    def get_sale(self, sale_id: UUID) -> Optional[Sale]:
        ...

    def list_sales(self, filters: SaleFilters) -> List[Sale]:
        ...

    def update_sale(self, sale: Sale, expected_version: int) -> Sale:
        ...


__all__ = ["CustomerDirectory", "ProductCatalog", "SellerDirectory", "SaleStore"]
