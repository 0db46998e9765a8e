"""
Access-scoped sale queries.

Every read of a sale goes through this service, and every mutation loads the
sale through `find_one` first, so scope is enforced in one place:
- Admins see every sale.
- Sellers see the sales they made.
- Customers see their own purchases.

A sale outside the caller's scope is reported as NotFoundError, exactly like
a sale that does not exist.
"""

from __future__ import annotations

import logging
from typing import List
from uuid import UUID

from domain.access import SaleFilters, is_visible, scope_filters
from domain.actor import Actor
from domain.errors import ForbiddenError, NotFoundError
from domain.sale import Sale
from repositories.base import SaleStore

logger = logging.getLogger(__name__)


class SaleQueryService:
    def __init__(self, store: SaleStore) -> None:
        self._store = store

    def find_one(self, sale_id: UUID, actor: Actor, *, include_deleted: bool = True) -> Sale:
        """
        Load a single sale visible to `actor`.

        Soft-deleted sales remain readable by admins for audit unless
        include_deleted is False (tracking and mutation paths).

        Raises:
            NotFoundError: If the sale does not exist or is outside the actor's scope
        """
        sale = self._store.get_sale(sale_id)

        if sale is None or not is_visible(sale, actor):
            raise NotFoundError(f"Sale with ID {sale_id} not found")

        if sale.is_deleted and (not include_deleted or not actor.is_admin):
            raise NotFoundError(f"Sale with ID {sale_id} not found")

        return sale

    def find_all(self, filters: SaleFilters, actor: Actor) -> List[Sale]:
        """Sales matching filters within the actor's scope, newest first."""

        scoped = scope_filters(filters, actor)
        if scoped is None:
            logger.info(
                f"Filters outside scope for {actor.role.value} {actor.user_id}; returning no sales",
                extra={"user_id": str(actor.user_id), "role": actor.role.value},
            )
            return []
        return self._store.list_sales(scoped)

    def find_by_customer(self, customer_id: UUID, actor: Actor) -> List[Sale]:
        return self.find_all(SaleFilters(customer_id=customer_id), actor)

    def get_customer_orders(self, actor: Actor) -> List[Sale]:
        """The calling customer's own orders ("my orders")."""

        if not actor.is_customer:
            raise ForbiddenError("Only customer accounts have orders")
        return self.find_all(SaleFilters(customer_id=actor.customer_id), actor)

    def get_order_tracking(self, sale_id: UUID, actor: Actor) -> Sale:
        return self.find_one(sale_id, actor, include_deleted=False)


__all__ = ["SaleQueryService"]
