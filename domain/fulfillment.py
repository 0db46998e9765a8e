"""
Domain: Fulfillment status state machine (pure).

Transitions are defined by one explicit table keyed by (role, current status).
- Admin: any status to any status (corrections).
- Seller: forward through the fulfillment pipeline, cancel before
  preparation, refund after cancellation.
- Customer: read-only.

Applying a transition appends exactly one status history entry; history is
never edited or truncated.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional, Tuple

from .actor import Actor, Role
from .errors import ForbiddenError
from .sale import Sale, SaleStatus

_ALL_STATUSES: FrozenSet[SaleStatus] = frozenset(SaleStatus)

_SELLER_TRANSITIONS: Mapping[SaleStatus, FrozenSet[SaleStatus]] = {
    SaleStatus.PENDING: frozenset({SaleStatus.CONFIRMED, SaleStatus.CANCELLED}),
    SaleStatus.CONFIRMED: frozenset({SaleStatus.PROCESSING, SaleStatus.CANCELLED}),
    SaleStatus.PROCESSING: frozenset({SaleStatus.PREPARING, SaleStatus.CANCELLED}),
    SaleStatus.PREPARING: frozenset({SaleStatus.READY_FOR_PICKUP, SaleStatus.IN_TRANSIT}),
    SaleStatus.READY_FOR_PICKUP: frozenset({SaleStatus.COMPLETED}),
    SaleStatus.IN_TRANSIT: frozenset({SaleStatus.COMPLETED}),
    SaleStatus.COMPLETED: frozenset(),
    SaleStatus.CANCELLED: frozenset({SaleStatus.REFUNDED}),
    SaleStatus.REFUNDED: frozenset(),
}

TRANSITIONS: Mapping[Tuple[Role, SaleStatus], FrozenSet[SaleStatus]] = MappingProxyType(
    {
        **{(Role.ADMIN, status): _ALL_STATUSES for status in SaleStatus},
        **{(Role.SELLER, status): allowed for status, allowed in _SELLER_TRANSITIONS.items()},
        **{(Role.CUSTOMER, status): frozenset() for status in SaleStatus},
    }
)


def allowed_targets(role: Role, current: SaleStatus) -> FrozenSet[SaleStatus]:
    return TRANSITIONS[(role, current)]


def can_transition(role: Role, current: SaleStatus, target: SaleStatus) -> bool:
    return target in allowed_targets(role, current)


def validate_transition(role: Role, current: SaleStatus, target: SaleStatus) -> None:
    if not can_transition(role, current, target):
        raise ForbiddenError(
            f"Role '{role.value}' is not allowed to change sale status "
            f"from '{current.value}' to '{target.value}'"
        )


def apply_status_change(
    sale: Sale,
    target: SaleStatus,
    *,
    actor: Actor,
    at: datetime,
    comment: Optional[str] = None,
    tracking_number: Optional[str] = None,
    shipping_carrier: Optional[str] = None,
    estimated_delivery_date: Optional[date] = None,
) -> Sale:
    """
    Validate and apply a status transition for `actor`.

    Delivery metadata supplied in the same call overwrites the stored values;
    omitted values are left unchanged.

    Raises:
        ForbiddenError: If the transition is not in the table for actor.role
    """

    validate_transition(actor.role, sale.status, target)

    updated = sale.record_status(target, at=at, actor_id=actor.user_id, comment=comment or "")

    changes = {}
    if tracking_number:
        changes["tracking_number"] = tracking_number
    if shipping_carrier:
        changes["shipping_carrier"] = shipping_carrier
    if estimated_delivery_date is not None:
        changes["estimated_delivery_date"] = estimated_delivery_date

    return replace(updated, **changes) if changes else updated


__all__ = [
    "TRANSITIONS",
    "allowed_targets",
    "can_transition",
    "validate_transition",
    "apply_status_change",
]
