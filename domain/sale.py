"""
Domain: Sale aggregate.

A Sale is the header record plus its owned, immutable lines. Contract rules
enforced here:
- Monetary fields are non-negative and total = subtotal + tax - discount.
- Lines: quantity >= 1, unit_price >= 0, discount_percent in [0, 100],
  line_total = quantity * unit_price,
  discount_amount = line_total * discount_percent / 100.
- status is the single source of truth for the fulfillment stage.
- status_history is append-only and its latest entry matches status.

Entities are frozen; every change returns a new Sale (see `record_status`,
domain/fulfillment.py and domain/payment.py). All timestamps are UTC.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple
from uuid import UUID

from .pricing import HUNDRED, ZERO
from .time import require_utc_timestamp


class SaleStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    PREPARING = "preparing"
    READY_FOR_PICKUP = "ready_for_pickup"
    IN_TRANSIT = "in_transit"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    REFUNDED = "refunded"


@dataclass(frozen=True, slots=True)
class SaleLine:
    """One priced line of a sale. Owned by the sale; never edited after creation."""

    line_id: UUID
    product_id: UUID
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    discount_percent: Decimal = ZERO
    discount_amount: Decimal = ZERO
    notes: Optional[str] = None
    product_name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")
        if self.unit_price < ZERO:
            raise ValueError("unit_price must be >= 0")
        if not ZERO <= self.discount_percent <= HUNDRED:
            raise ValueError("discount_percent must be between 0 and 100")
        if self.line_total != self.unit_price * self.quantity:
            raise ValueError("line_total must equal quantity * unit_price")

    @property
    def final_price(self) -> Decimal:
        return self.line_total - self.discount_amount


@dataclass(frozen=True, slots=True)
class StatusHistoryEntry:
    status: SaleStatus
    timestamp: datetime
    actor_id: Optional[UUID] = None
    comment: str = ""

    def __post_init__(self) -> None:
        require_utc_timestamp("timestamp", self.timestamp)


@dataclass(frozen=True, slots=True)
class Sale:
    """
    Sale aggregate root.

    version is the optimistic concurrency counter; the store increments it on
    every successful write and rejects writes carrying a stale version.

    customer_name and seller_name are denormalized for callers and are not
    part of the aggregate's consistency boundary.
    """

    sale_id: UUID
    sale_number: str
    customer_id: UUID
    seller_id: Optional[UUID]
    lines: Tuple[SaleLine, ...]

    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal

    created_at: datetime
    updated_at: datetime

    paid_amount: Decimal = ZERO
    status: SaleStatus = SaleStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    status_history: Tuple[StatusHistoryEntry, ...] = ()

    is_deleted: bool = False
    is_delivered: bool = False
    cancelled_at: Optional[datetime] = None

    payment_method: Optional[str] = None
    notes: Optional[str] = None
    internal_notes: Optional[str] = None

    # Delivery metadata
    delivery_address: Optional[str] = None
    delivery_date: Optional[date] = None
    estimated_delivery_date: Optional[date] = None
    shipping_carrier: Optional[str] = None
    tracking_number: Optional[str] = None

    version: int = 1

    customer_name: Optional[str] = None
    seller_name: Optional[str] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
        require_utc_timestamp("updated_at", self.updated_at)
        if self.cancelled_at is not None:
            require_utc_timestamp("cancelled_at", self.cancelled_at)

        for name in ("subtotal", "tax_rate", "tax_amount", "discount_amount", "total_amount", "paid_amount"):
            if getattr(self, name) < ZERO:
                raise ValueError(f"{name} must be >= 0")

        if self.total_amount != self.subtotal + self.tax_amount - self.discount_amount:
            raise ValueError("total_amount must equal subtotal + tax_amount - discount_amount")

        if self.status_history and self.status_history[-1].status is not self.status:
            raise ValueError("latest status_history entry must match status")

    @property
    def balance_amount(self) -> Decimal:
        return self.total_amount - self.paid_amount

    @property
    def is_fully_paid(self) -> bool:
        return self.paid_amount >= self.total_amount

    @property
    def latest_status_entry(self) -> Optional[StatusHistoryEntry]:
        return self.status_history[-1] if self.status_history else None

    def record_status(
        self,
        status: SaleStatus,
        *,
        at: datetime,
        actor_id: Optional[UUID],
        comment: str = "",
    ) -> "Sale":
        """
        Return a new Sale moved to `status` with one history entry appended.

        Entering COMPLETED marks the sale delivered; entering CANCELLED stamps
        cancelled_at. No transition rules are checked here (see
        domain/fulfillment.py).
        """

        require_utc_timestamp("at", at)

        entry = StatusHistoryEntry(status=status, timestamp=at, actor_id=actor_id, comment=comment)
        is_delivered = True if status is SaleStatus.COMPLETED else self.is_delivered
        cancelled_at = at if status is SaleStatus.CANCELLED else self.cancelled_at

        return replace(
            self,
            status=status,
            status_history=self.status_history + (entry,),
            is_delivered=is_delivered,
            cancelled_at=cancelled_at,
            updated_at=at,
        )


__all__ = [
    "SaleStatus",
    "PaymentStatus",
    "SaleLine",
    "StatusHistoryEntry",
    "Sale",
]
