"""
Domain: Sale line and total calculation (pure).

Rules:
- line_total = quantity * unit_price
- line_discount = line_total * discount_percent / 100
- subtotal = sum(line_total - line_discount)
- tax_amount = subtotal * tax_rate / 100
- total_amount = subtotal + tax_amount - header discount_amount

All arithmetic is Decimal. Intermediate values are kept at full precision;
rounding to cents happens only when values are persisted (see `to_money`).
A negative total is rejected rather than clamped: a header discount larger
than subtotal + tax is a data-entry mistake.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Sequence, Tuple

from .errors import SaleValidationError

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def as_decimal(value: Any, *, name: str = "value") -> Decimal:
    """Convert int/str/Decimal (or a float via its repr) into a Decimal."""

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise SaleValidationError(f"{name} must be a number, got {value!r}")
    elif isinstance(value, (int, str, float)):
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            raise SaleValidationError(f"{name} must be a number, got {value!r}")
    else:
        raise SaleValidationError(f"{name} must be a number, got {type(value).__name__}")

    if not result.is_finite():
        raise SaleValidationError(f"{name} must be a finite number")
    return result


def to_money(value: Decimal) -> Decimal:
    """Round a monetary amount to cents for persistence."""

    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True, slots=True)
class LineInput:
    quantity: int
    unit_price: Decimal
    discount_percent: Decimal = ZERO


@dataclass(frozen=True, slots=True)
class LineResult:
    quantity: int
    unit_price: Decimal
    discount_percent: Decimal
    line_total: Decimal
    discount_amount: Decimal

    @property
    def net_amount(self) -> Decimal:
        return self.line_total - self.discount_amount


@dataclass(frozen=True, slots=True)
class SaleTotals:
    """Unrounded result of pricing a sale."""

    lines: Tuple[LineResult, ...]
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal

    def rounded(self) -> "SaleTotals":
        """
        Cents-rounded copy for persistence.

        Line amounts are rounded first. The subtotal is re-derived from the
        rounded line nets, tax from the rounded subtotal, and the total from
        those, so the stored lines add up to the stored header exactly.
        """

        lines = tuple(
            LineResult(
                quantity=line.quantity,
                unit_price=line.unit_price,
                discount_percent=line.discount_percent,
                line_total=to_money(line.line_total),
                discount_amount=to_money(line.discount_amount),
            )
            for line in self.lines
        )
        subtotal = ZERO
        for line in lines:
            subtotal += line.net_amount
        tax_amount = to_money(subtotal * self.tax_rate / HUNDRED)
        discount_amount = to_money(self.discount_amount)
        total_amount = subtotal + tax_amount - discount_amount

        if total_amount < ZERO:
            raise SaleValidationError(f"Computed total is negative after rounding ({total_amount})")

        return SaleTotals(
            lines=lines,
            subtotal=subtotal,
            tax_rate=self.tax_rate,
            tax_amount=tax_amount,
            discount_amount=discount_amount,
            total_amount=total_amount,
        )


def validate_line(line: LineInput, *, index: int = 0) -> None:
    """Reject malformed line data before it is priced."""

    if isinstance(line.quantity, bool) or not isinstance(line.quantity, int):
        raise SaleValidationError(f"Line {index}: quantity must be an integer")
    if line.quantity < 1:
        raise SaleValidationError(f"Line {index}: quantity must be >= 1, got {line.quantity}")
    if line.unit_price < ZERO:
        raise SaleValidationError(f"Line {index}: unit_price must be >= 0, got {line.unit_price}")
    if line.unit_price != to_money(line.unit_price):
        raise SaleValidationError(f"Line {index}: unit_price must have at most 2 decimal places")
    if line.discount_percent < ZERO or line.discount_percent > HUNDRED:
        raise SaleValidationError(
            f"Line {index}: discount_percent must be between 0 and 100, got {line.discount_percent}"
        )
    if line.discount_percent != to_money(line.discount_percent):
        raise SaleValidationError(f"Line {index}: discount_percent must have at most 2 decimal places")


def price_line(line: LineInput, *, index: int = 0) -> LineResult:
    validate_line(line, index=index)

    line_total = line.unit_price * line.quantity
    discount_amount = line_total * line.discount_percent / HUNDRED

    return LineResult(
        quantity=line.quantity,
        unit_price=line.unit_price,
        discount_percent=line.discount_percent,
        line_total=line_total,
        discount_amount=discount_amount,
    )


def calculate_sale_totals(
    lines: Sequence[LineInput],
    tax_rate: Decimal = ZERO,
    discount_amount: Decimal = ZERO,
) -> SaleTotals:
    """
    Price every line and aggregate the sale totals.

    Args:
        lines: Raw line inputs (at least one)
        tax_rate: Header tax rate as a percentage (e.g. Decimal("10") for 10%)
        discount_amount: Header discount applied after tax

    Returns:
        SaleTotals with per-line results and unrounded header amounts

    Raises:
        SaleValidationError: On malformed input or a negative computed total

    Example:
        totals = calculate_sale_totals(
            [LineInput(2, Decimal("500"), Decimal("10")), LineInput(1, Decimal("300"))],
            tax_rate=Decimal("10"),
        )
        # totals.subtotal == 1200, totals.tax_amount == 120, totals.total_amount == 1320
    """
    if not lines:
        raise SaleValidationError("A sale must have at least one line")
    if tax_rate < ZERO:
        raise SaleValidationError(f"tax_rate must be >= 0, got {tax_rate}")
    if tax_rate != to_money(tax_rate):
        raise SaleValidationError("tax_rate must have at most 2 decimal places")
    if discount_amount < ZERO:
        raise SaleValidationError(f"discount_amount must be >= 0, got {discount_amount}")
    if discount_amount != to_money(discount_amount):
        raise SaleValidationError("discount_amount must have at most 2 decimal places")

    priced = tuple(price_line(line, index=i) for i, line in enumerate(lines))

    subtotal = ZERO
    for result in priced:
        subtotal += result.net_amount

    tax_amount = subtotal * tax_rate / HUNDRED
    total_amount = subtotal + tax_amount - discount_amount

    if total_amount < ZERO:
        raise SaleValidationError(
            f"Computed total is negative ({total_amount}): discount_amount {discount_amount} "
            f"exceeds subtotal plus tax ({subtotal + tax_amount})"
        )

    return SaleTotals(
        lines=priced,
        subtotal=subtotal,
        tax_rate=tax_rate,
        tax_amount=tax_amount,
        discount_amount=discount_amount,
        total_amount=total_amount,
    )


__all__ = [
    "LineInput",
    "LineResult",
    "SaleTotals",
    "as_decimal",
    "to_money",
    "validate_line",
    "price_line",
    "calculate_sale_totals",
]
