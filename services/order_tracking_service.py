"""
Order tracking service.

Drives a sale through the fulfillment status machine:
1. Load the sale through the access-scoped query layer (NotFound outside scope)
2. Check the transition against the role table (Forbidden if not allowed)
3. Append the status history entry and apply delivery metadata
4. Persist with an optimistic version check
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Optional
from uuid import UUID

from domain.actor import Actor
from domain.fulfillment import apply_status_change
from domain.sale import Sale, SaleStatus
from domain.time import utc_now
from repositories.base import SaleStore
from services.sale_query_service import SaleQueryService

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TrackingUpdate:
    """
    Requested status change plus optional delivery metadata.
    """
    status: SaleStatus
    comment: Optional[str] = None
    tracking_number: Optional[str] = None
    shipping_carrier: Optional[str] = None
    estimated_delivery_date: Optional[date] = None


class OrderTrackingService:
    def __init__(
        self,
        store: SaleStore,
        queries: Optional[SaleQueryService] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._queries = queries if queries is not None else SaleQueryService(store)
        self._clock = clock

    def get_order_tracking(self, sale_id: UUID, actor: Actor) -> Sale:
        return self._queries.get_order_tracking(sale_id, actor)

    def update_order_status(self, sale_id: UUID, update: TrackingUpdate, actor: Actor) -> Sale:
        """
        Apply a status transition on behalf of `actor`.

        Raises:
            NotFoundError: If the sale is missing, deleted or out of scope
            ForbiddenError: If the transition is not allowed for the actor's role
            ConcurrentModificationError: If the sale changed since it was loaded

        Example:
            sale = tracking.update_order_status(
                sale_id,
                TrackingUpdate(status=SaleStatus.IN_TRANSIT, tracking_number="1Z999", shipping_carrier="UPS"),
                actor,
            )
        """
        sale = self._queries.find_one(sale_id, actor, include_deleted=False)
        previous = sale.status

        updated = apply_status_change(
            sale,
            update.status,
            actor=actor,
            at=self._clock(),
            comment=update.comment,
            tracking_number=update.tracking_number,
            shipping_carrier=update.shipping_carrier,
            estimated_delivery_date=update.estimated_delivery_date,
        )

        stored = self._store.update_sale(updated, expected_version=sale.version)

        logger.info(
            f"Sale {sale.sale_number} moved from {previous.value} to {update.status.value}",
            extra={
                "sale_id": str(sale.sale_id),
                "from_status": previous.value,
                "to_status": update.status.value,
                "user_id": str(actor.user_id),
                "role": actor.role.value,
            },
        )
        return stored


__all__ = ["TrackingUpdate", "OrderTrackingService"]
