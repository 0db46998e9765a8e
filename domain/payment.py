"""
Domain: Payment ledger (pure).

Partial payments accumulate into paid_amount; payment_status is derived:
PAID once paid_amount reaches total_amount, PARTIAL while some but not all of
the total is paid. A payment that would exceed the outstanding balance is
rejected as a whole.

Payments are independent of the fulfillment status: a sale can receive money
at any stage.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from decimal import Decimal

from .errors import ConflictError, SaleValidationError
from .pricing import ZERO, to_money
from .sale import PaymentStatus, Sale
from .time import require_utc_timestamp


def derive_payment_status(paid_amount: Decimal, total_amount: Decimal, current: PaymentStatus) -> PaymentStatus:
    if paid_amount >= total_amount:
        return PaymentStatus.PAID
    if paid_amount > ZERO:
        return PaymentStatus.PARTIAL
    return current


def apply_payment(sale: Sale, amount: Decimal, payment_method: str, *, at: datetime) -> Sale:
    """
    Return a new Sale with `amount` added to paid_amount.

    Raises:
        SaleValidationError: If amount is not positive or has sub-cent precision
        ConflictError: If paid_amount + amount would exceed total_amount
    """

    require_utc_timestamp("at", at)

    if amount <= ZERO:
        raise SaleValidationError(f"Payment amount must be > 0, got {amount}")
    if amount != to_money(amount):
        raise SaleValidationError("Payment amount must have at most 2 decimal places")

    new_paid = sale.paid_amount + amount
    if new_paid > sale.total_amount:
        raise ConflictError(
            f"Payment amount {amount} exceeds remaining balance {sale.balance_amount}"
        )

    return replace(
        sale,
        paid_amount=new_paid,
        payment_method=payment_method,
        payment_status=derive_payment_status(new_paid, sale.total_amount, sale.payment_status),
        updated_at=at,
    )


__all__ = ["derive_payment_status", "apply_payment"]
