"""
Tests for `domain/payment.py`.

Covers contract rules:
- paid_amount accumulates; payment_status is PARTIAL until the total is
  reached, then PAID.
- A payment above the remaining balance is rejected as a whole.
- Non-positive amounts are validation errors.
- Payments are accepted at any fulfillment stage.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from domain.errors import ConflictError, SaleValidationError
from domain.payment import apply_payment, derive_payment_status
from domain.sale import PaymentStatus, SaleStatus
from fakes import NOW, build_sale


def test_partial_then_full_payment() -> None:
    sale = build_sale()  # total 1320.00

    partial = apply_payment(sale, Decimal("500.00"), "cash", at=NOW)
    assert partial.paid_amount == Decimal("500.00")
    assert partial.balance_amount == Decimal("820.00")
    assert partial.payment_status is PaymentStatus.PARTIAL
    assert partial.payment_method == "cash"

    paid = apply_payment(partial, Decimal("820.00"), "card", at=NOW)
    assert paid.paid_amount == Decimal("1320.00")
    assert paid.payment_status is PaymentStatus.PAID
    assert paid.is_fully_paid is True


def test_overpayment_is_rejected_without_change() -> None:
    sale = build_sale(paid_amount=Decimal("1300.00"))

    with pytest.raises(ConflictError):
        apply_payment(sale, Decimal("20.01"), "cash", at=NOW)

    assert sale.paid_amount == Decimal("1300.00")


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-10.00"), Decimal("0.001")])
def test_invalid_amounts_are_rejected(amount: Decimal) -> None:
    with pytest.raises(SaleValidationError):
        apply_payment(build_sale(), amount, "cash", at=NOW)


def test_payments_are_independent_of_fulfillment_status() -> None:
    for status in (SaleStatus.PENDING, SaleStatus.IN_TRANSIT, SaleStatus.COMPLETED):
        paid = apply_payment(build_sale(status=status), Decimal("1320.00"), "transfer", at=NOW)
        assert paid.status is status
        assert paid.payment_status is PaymentStatus.PAID


def test_zero_total_sale_rejects_any_payment() -> None:
    sale = build_sale(subtotal=Decimal("0.00"), tax_amount=Decimal("0.00"))

    with pytest.raises(ConflictError):
        apply_payment(sale, Decimal("0.01"), "cash", at=NOW)


def test_derive_payment_status_keeps_overdue_until_money_arrives() -> None:
    assert derive_payment_status(Decimal("0"), Decimal("100"), PaymentStatus.OVERDUE) is PaymentStatus.OVERDUE
    assert derive_payment_status(Decimal("10"), Decimal("100"), PaymentStatus.OVERDUE) is PaymentStatus.PARTIAL
    assert derive_payment_status(Decimal("100"), Decimal("100"), PaymentStatus.PARTIAL) is PaymentStatus.PAID
