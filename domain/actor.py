"""
Domain: Caller identity.

Authentication happens upstream; the sale core receives an already-validated
identity carrying the user's id, role and (for customer accounts) the linked
customer record.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from uuid import UUID


class Role(str, Enum):
    ADMIN = "admin"
    SELLER = "seller"
    CUSTOMER = "customer"


@dataclass(frozen=True, slots=True)
class Actor:
    """
    The user on whose behalf an operation runs.

    customer_id is only meaningful for Role.CUSTOMER: it links the login to the
    customer record whose sales the user may see.
    """

    user_id: UUID
    role: Role
    customer_id: Optional[UUID] = None

    def __post_init__(self) -> None:
        if self.role is Role.CUSTOMER and self.customer_id is None:
            raise ValueError("customer actors must carry a customer_id")

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def is_seller(self) -> bool:
        return self.role is Role.SELLER

    @property
    def is_customer(self) -> bool:
        return self.role is Role.CUSTOMER
