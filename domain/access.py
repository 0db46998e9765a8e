"""
Domain: Access scope for sales (pure).

| Role     | Visible sales                          |
|----------|----------------------------------------|
| admin    | all                                    |
| seller   | sales where seller_id == actor.user_id |
| customer | sales where customer_id == actor.customer_id |

A sale outside the caller's scope is reported as not found. Scope applies to
every read and is checked before every mutation.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional
from uuid import UUID

from .actor import Actor, Role
from .sale import PaymentStatus, Sale, SaleStatus


@dataclass(frozen=True, slots=True)
class SaleFilters:
    """Optional list filters. None means "do not filter on this field"."""

    status: Optional[SaleStatus] = None
    payment_status: Optional[PaymentStatus] = None
    customer_id: Optional[UUID] = None
    seller_id: Optional[UUID] = None
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    include_deleted: bool = False
    exclude_status: Optional[SaleStatus] = None


def is_visible(sale: Sale, actor: Actor) -> bool:
    if actor.role is Role.ADMIN:
        return True
    if actor.role is Role.SELLER:
        return sale.seller_id == actor.user_id
    if actor.role is Role.CUSTOMER:
        return sale.customer_id == actor.customer_id
    return False


def scope_filters(filters: SaleFilters, actor: Actor) -> Optional[SaleFilters]:
    """
    Narrow caller-supplied filters to the actor's scope.

    Returns None when the requested filters cannot match anything the actor
    may see (e.g. a seller filtering on another seller's id).
    """

    if actor.role is Role.ADMIN:
        return filters

    if actor.role is Role.SELLER:
        if filters.seller_id is not None and filters.seller_id != actor.user_id:
            return None
        return replace(filters, seller_id=actor.user_id, include_deleted=False)

    if actor.role is Role.CUSTOMER:
        if filters.customer_id is not None and filters.customer_id != actor.customer_id:
            return None
        return replace(filters, customer_id=actor.customer_id, include_deleted=False)

    return None


def matches(sale: Sale, filters: SaleFilters) -> bool:
    """Evaluate filters against a loaded sale (used by in-memory stores)."""

    if not filters.include_deleted and sale.is_deleted:
        return False
    if filters.status is not None and sale.status is not filters.status:
        return False
    if filters.exclude_status is not None and sale.status is filters.exclude_status:
        return False
    if filters.payment_status is not None and sale.payment_status is not filters.payment_status:
        return False
    if filters.customer_id is not None and sale.customer_id != filters.customer_id:
        return False
    if filters.seller_id is not None and sale.seller_id != filters.seller_id:
        return False
    if filters.from_date is not None and sale.created_at < filters.from_date:
        return False
    if filters.to_date is not None and sale.created_at > filters.to_date:
        return False
    return True


__all__ = ["SaleFilters", "is_visible", "scope_filters", "matches"]
