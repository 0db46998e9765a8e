"""
Tests for `domain/pricing.py`.

Covers contract rules:
- line_total = quantity * unit_price; line discount = line_total * pct / 100.
- subtotal is the sum of net line amounts; tax applies to subtotal; the
  header discount applies after tax.
- Malformed input and negative totals are rejected, never clamped.
- Rounding to cents keeps total = subtotal + tax - discount exactly.
"""

from __future__ import annotations

import random
from decimal import ROUND_DOWN, Decimal

import pytest

from domain.errors import SaleValidationError
from domain.pricing import (
    CENT,
    ZERO,
    LineInput,
    as_decimal,
    calculate_sale_totals,
    price_line,
    to_money,
)


def test_two_line_sale_with_line_discount_and_tax() -> None:
    """2 x 500 at 10% off plus 1 x 300, tax 10%: 1200 + 120 = 1320."""

    totals = calculate_sale_totals(
        [
            LineInput(quantity=2, unit_price=Decimal("500.00"), discount_percent=Decimal("10")),
            LineInput(quantity=1, unit_price=Decimal("300.00")),
        ],
        tax_rate=Decimal("10"),
    )

    first, second = totals.lines
    assert first.line_total == Decimal("1000")
    assert first.discount_amount == Decimal("100")
    assert first.net_amount == Decimal("900")
    assert second.line_total == Decimal("300")
    assert second.discount_amount == ZERO

    assert totals.subtotal == Decimal("1200")
    assert totals.tax_amount == Decimal("120")
    assert totals.discount_amount == ZERO
    assert totals.total_amount == Decimal("1320")


def test_header_discount_applies_after_tax() -> None:
    totals = calculate_sale_totals(
        [LineInput(quantity=1, unit_price=Decimal("1000.00"))],
        tax_rate=Decimal("10"),
        discount_amount=Decimal("50.00"),
    )

    assert totals.tax_amount == Decimal("100")
    assert totals.total_amount == Decimal("1050")


def test_discount_larger_than_subtotal_plus_tax_is_rejected() -> None:
    """A negative computed total is a validation error, not a zero total."""

    with pytest.raises(SaleValidationError):
        calculate_sale_totals(
            [LineInput(quantity=1, unit_price=Decimal("100.00"))],
            tax_rate=Decimal("10"),
            discount_amount=Decimal("110.01"),
        )


def test_discount_equal_to_subtotal_plus_tax_gives_zero_total() -> None:
    totals = calculate_sale_totals(
        [LineInput(quantity=1, unit_price=Decimal("100.00"))],
        tax_rate=Decimal("10"),
        discount_amount=Decimal("110.00"),
    )

    assert totals.total_amount == ZERO


def test_sale_without_lines_is_rejected() -> None:
    with pytest.raises(SaleValidationError):
        calculate_sale_totals([])


@pytest.mark.parametrize(
    "line",
    [
        LineInput(quantity=0, unit_price=Decimal("10.00")),
        LineInput(quantity=-1, unit_price=Decimal("10.00")),
        LineInput(quantity=True, unit_price=Decimal("10.00")),  # type: ignore[arg-type]
        LineInput(quantity=1, unit_price=Decimal("-0.01")),
        LineInput(quantity=1, unit_price=Decimal("10.001")),
        LineInput(quantity=1, unit_price=Decimal("10.00"), discount_percent=Decimal("-1")),
        LineInput(quantity=1, unit_price=Decimal("10.00"), discount_percent=Decimal("100.01")),
        LineInput(quantity=1, unit_price=Decimal("10.00"), discount_percent=Decimal("12.345")),
    ],
)
def test_malformed_line_is_rejected(line: LineInput) -> None:
    with pytest.raises(SaleValidationError):
        price_line(line)


def test_full_line_discount_and_free_items_are_allowed() -> None:
    free = price_line(LineInput(quantity=3, unit_price=ZERO))
    comped = price_line(LineInput(quantity=2, unit_price=Decimal("10.00"), discount_percent=Decimal("100")))

    assert free.line_total == ZERO
    assert comped.net_amount == ZERO


@pytest.mark.parametrize(
    ("tax_rate", "discount_amount"),
    [
        (Decimal("-1"), ZERO),
        (Decimal("7.125"), ZERO),
        (ZERO, Decimal("-5.00")),
        (ZERO, Decimal("0.001")),
    ],
)
def test_malformed_header_amounts_are_rejected(tax_rate: Decimal, discount_amount: Decimal) -> None:
    with pytest.raises(SaleValidationError):
        calculate_sale_totals(
            [LineInput(quantity=1, unit_price=Decimal("10.00"))],
            tax_rate=tax_rate,
            discount_amount=discount_amount,
        )


def test_intermediate_values_keep_full_precision_until_rounded() -> None:
    """3 x 9.99 at 33.33% off: the line discount is not rounded while pricing."""

    totals = calculate_sale_totals(
        [LineInput(quantity=3, unit_price=Decimal("9.99"), discount_percent=Decimal("33.33"))],
        tax_rate=Decimal("8.25"),
    )

    assert totals.lines[0].line_total == Decimal("29.97")
    assert totals.lines[0].discount_amount == Decimal("9.989001")

    rounded = totals.rounded()
    assert rounded.lines[0].discount_amount == Decimal("9.99")
    assert rounded.subtotal == Decimal("19.98")
    assert rounded.tax_amount == to_money(rounded.subtotal * Decimal("8.25") / 100)
    assert rounded.total_amount == rounded.subtotal + rounded.tax_amount - rounded.discount_amount


def test_rounded_line_nets_add_up_to_the_subtotal() -> None:
    """Two lines of 1 x 0.05 at 50% off: each line discount rounds to 0.03."""

    line = LineInput(quantity=1, unit_price=Decimal("0.05"), discount_percent=Decimal("50"))

    rounded = calculate_sale_totals([line, line], tax_rate=Decimal("10")).rounded()

    assert [r.net_amount for r in rounded.lines] == [Decimal("0.02"), Decimal("0.02")]
    assert rounded.subtotal == Decimal("0.04")
    assert rounded.tax_amount == Decimal("0.00")
    assert rounded.total_amount == Decimal("0.04")


def test_to_money_rounds_half_up() -> None:
    assert to_money(Decimal("0.005")) == Decimal("0.01")
    assert to_money(Decimal("2.675")) == Decimal("2.68")
    assert to_money(Decimal("2.674999")) == Decimal("2.67")


def test_as_decimal_accepts_numbers_and_rejects_garbage() -> None:
    assert as_decimal("12.50") == Decimal("12.50")
    assert as_decimal(3) == Decimal("3")
    assert as_decimal(0.1) == Decimal("0.1")

    for bad in (True, "abc", "NaN", "Infinity", None, [1]):
        with pytest.raises(SaleValidationError):
            as_decimal(bad)


def test_totals_identity_holds_for_random_line_sets() -> None:
    """Property check over 1000 seeded random sales."""

    rng = random.Random(20250315)

    for _ in range(1000):
        lines = [
            LineInput(
                quantity=rng.randint(1, 5),
                unit_price=Decimal(rng.randint(0, 2_000_000)) / 100,
                discount_percent=Decimal(rng.randint(0, 10_000)) / 100,
            )
            for _ in range(rng.randint(1, 6))
        ]
        tax_rate = Decimal(rng.randint(0, 3_000)) / 100

        undiscounted = calculate_sale_totals(lines, tax_rate=tax_rate)
        gross = min(undiscounted.total_amount, undiscounted.rounded().total_amount)
        discount = (gross * rng.randint(0, 100) / 100).quantize(CENT, rounding=ROUND_DOWN)

        totals = calculate_sale_totals(lines, tax_rate=tax_rate, discount_amount=discount)

        for line, result in zip(lines, totals.lines):
            assert result.line_total == line.unit_price * line.quantity
            assert result.discount_amount == result.line_total * line.discount_percent / 100

        assert totals.subtotal == sum((r.net_amount for r in totals.lines), ZERO)
        assert totals.total_amount == totals.subtotal + totals.tax_amount - totals.discount_amount
        assert totals.total_amount >= ZERO

        rounded = totals.rounded()
        assert rounded.subtotal == sum((r.net_amount for r in rounded.lines), ZERO)
        assert rounded.total_amount == rounded.subtotal + rounded.tax_amount - rounded.discount_amount
        assert rounded.total_amount == to_money(rounded.total_amount)
        assert rounded.total_amount >= ZERO
