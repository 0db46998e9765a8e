"""
Sale service for creating and maintaining sales.

Handles:
- Building a sale aggregate (customer + product validation, pricing, sale
  number allocation) and persisting header and lines as one atomic unit
- Bounded retry when a concurrent creation takes the same sale number
- Header updates, cancellation and soft deletion
- The payment ledger (partial payments, derived payment status)
- Sales reporting over the caller's scope
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, List, Optional
from uuid import UUID, uuid4

from config import get_settings
from domain.access import SaleFilters
from domain.actor import Actor
from domain.customer import CustomerRef, ProductRef
from domain.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    SaleNumberConflict,
    SaleValidationError,
)
from domain.fulfillment import apply_status_change
from domain.payment import apply_payment
from domain.pricing import ZERO, LineInput, SaleTotals, as_decimal, calculate_sale_totals
from domain.sale import PaymentStatus, Sale, SaleLine, SaleStatus, StatusHistoryEntry
from domain.sale_number import bucket_prefix_for, next_sale_number
from domain.time import utc_now
from repositories.base import CustomerDirectory, ProductCatalog, SaleStore, SellerDirectory
from services.sale_query_service import SaleQueryService

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SaleLineRequest:
    """
    One requested line. unit_price defaults to the catalog price when omitted.
    """
    product_id: UUID
    quantity: int
    unit_price: Optional[Decimal] = None
    discount_percent: Decimal = ZERO
    notes: Optional[str] = None


@dataclass(frozen=True, slots=True)
class CreateSaleRequest:
    """
    Request to create a sale.

    seller_id is only honoured for admins entering a sale on a seller's
    behalf; a seller always sells as themselves.
    """
    customer_id: UUID
    lines: List[SaleLineRequest]
    discount_amount: Decimal = ZERO
    tax_rate: Decimal = ZERO
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    delivery_date: Optional[date] = None
    delivery_address: Optional[str] = None
    seller_id: Optional[UUID] = None


@dataclass(frozen=True, slots=True)
class SaleUpdate:
    """Partial header update. None means "leave unchanged"."""
    status: Optional[SaleStatus] = None
    payment_status: Optional[PaymentStatus] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    delivery_date: Optional[date] = None
    delivery_address: Optional[str] = None
    is_delivered: Optional[bool] = None
    comment: Optional[str] = None


@dataclass(frozen=True, slots=True)
class PaymentRequest:
    amount: Decimal
    payment_method: str
    notes: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SalesReport:
    """
    Totals over non-cancelled sales in the caller's scope.

    pending_amount: total_revenue - total_paid
    """
    total_sales: int
    total_revenue: Decimal
    total_paid: Decimal
    pending_amount: Decimal
    sales: List[Sale]


class SaleService:
    def __init__(
        self,
        store: SaleStore,
        customers: CustomerDirectory,
        products: ProductCatalog,
        sellers: SellerDirectory,
        *,
        queries: Optional[SaleQueryService] = None,
        clock: Callable[[], datetime] = utc_now,
        max_number_attempts: Optional[int] = None,
    ) -> None:
        self._store = store
        self._customers = customers
        self._products = products
        self._sellers = sellers
        self._queries = queries if queries is not None else SaleQueryService(store)
        self._clock = clock
        self._max_number_attempts = (
            max_number_attempts if max_number_attempts is not None else get_settings().sale_number_max_attempts
        )

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def _resolve_seller(self, request: CreateSaleRequest, actor: Actor) -> Optional[UUID]:
        if actor.is_customer:
            raise ForbiddenError("Customers cannot create sales")
        if actor.is_seller:
            if request.seller_id is not None and request.seller_id != actor.user_id:
                raise ForbiddenError("Sellers can only create sales for themselves")
            return actor.user_id
        if request.seller_id is None:
            return None
        seller = self._sellers.get_seller(request.seller_id)
        if seller is None or not seller.can_sell():
            raise NotFoundError(f"Seller with ID {request.seller_id} not found")
        return seller.user_id

    def _require_customer(self, customer_id: UUID) -> CustomerRef:
        customer = self._customers.get_customer(customer_id)
        if customer is None or not customer.can_purchase():
            raise NotFoundError(f"Customer with ID {customer_id} not found")
        return customer

    def _require_products(self, lines: List[SaleLineRequest]) -> List[ProductRef]:
        products: List[ProductRef] = []
        for line in lines:
            product = self._products.get_product(line.product_id)
            if product is None or not product.is_active:
                raise NotFoundError(f"Motorcycle with ID {line.product_id} not found")
            products.append(product)
        return products

    def _build_sale(
        self,
        request: CreateSaleRequest,
        actor: Actor,
        seller_id: Optional[UUID],
        customer: CustomerRef,
        products: List[ProductRef],
        totals: SaleTotals,
        sale_number: str,
        now: datetime,
    ) -> Sale:
        lines = tuple(
            SaleLine(
                line_id=uuid4(),
                product_id=line_request.product_id,
                quantity=priced.quantity,
                unit_price=priced.unit_price,
                line_total=priced.line_total,
                discount_percent=priced.discount_percent,
                discount_amount=priced.discount_amount,
                notes=line_request.notes,
                product_name=product.name,
            )
            for line_request, product, priced in zip(request.lines, products, totals.lines)
        )

        return Sale(
            sale_id=uuid4(),
            sale_number=sale_number,
            customer_id=request.customer_id,
            seller_id=seller_id,
            lines=lines,
            subtotal=totals.subtotal,
            tax_rate=totals.tax_rate,
            tax_amount=totals.tax_amount,
            discount_amount=totals.discount_amount,
            total_amount=totals.total_amount,
            created_at=now,
            updated_at=now,
            status_history=(
                StatusHistoryEntry(
                    status=SaleStatus.PENDING,
                    timestamp=now,
                    actor_id=actor.user_id,
                    comment="Sale created",
                ),
            ),
            payment_method=request.payment_method,
            notes=request.notes,
            internal_notes=request.internal_notes,
            delivery_date=request.delivery_date,
            delivery_address=request.delivery_address,
            customer_name=customer.display_name,
        )

    def create_sale(self, request: CreateSaleRequest, actor: Actor) -> Sale:
        """
        Create a sale with all of its lines.

        Process:
        1. Validate the customer exists, is active and not deleted (and the
           seller, when an admin names one)
        2. Validate every product exists and is active (any miss fails the whole sale)
        3. Price lines and totals (Decimal; cents rounding for persistence only)
        4. Propose the next sale number for the current year+month
        5. Insert header + lines atomically; the store settles the final
           number under a per-bucket lock. On a sale number collision,
           re-allocate and retry up to the configured attempt limit
        6. Return the stored sale

        Raises:
            ForbiddenError: If the actor may not create sales
            NotFoundError: If the customer, the seller or any product is
                missing/inactive
            SaleValidationError: On malformed lines or a negative total
            ConflictError: If no unique sale number could be allocated

        Example:
            sale = service.create_sale(
                CreateSaleRequest(
                    customer_id=customer_id,
                    lines=[SaleLineRequest(product_id=bike_id, quantity=1, unit_price=Decimal("8999.00"))],
                    tax_rate=Decimal("10"),
                ),
                actor,
            )
            print(f"Created {sale.sale_number} for ${sale.total_amount}")
        """
        seller_id = self._resolve_seller(request, actor)

        if not request.lines:
            raise SaleValidationError("A sale must have at least one line")

        # 1. Customer
        customer = self._require_customer(request.customer_id)

        # 2. Products
        products = self._require_products(request.lines)

        # 3. Pricing
        line_inputs = [
            LineInput(
                quantity=line.quantity,
                unit_price=as_decimal(
                    line.unit_price if line.unit_price is not None else product.price,
                    name=f"lines[{i}].unit_price",
                ),
                discount_percent=as_decimal(line.discount_percent, name=f"lines[{i}].discount_percent"),
            )
            for i, (line, product) in enumerate(zip(request.lines, products))
        ]
        totals = calculate_sale_totals(
            line_inputs,
            tax_rate=as_decimal(request.tax_rate, name="tax_rate"),
            discount_amount=as_decimal(request.discount_amount, name="discount_amount"),
        ).rounded()

        # 4-5. Allocate + insert, retrying on collisions
        for attempt in range(1, self._max_number_attempts + 1):
            now = self._clock()
            last_number = self._store.find_last_sale_number(bucket_prefix_for(now))
            sale_number = next_sale_number(last_number, now.year, now.month)

            sale = self._build_sale(request, actor, seller_id, customer, products, totals, sale_number, now)

            try:
                stored_number = self._store.insert_sale(sale)
            except SaleNumberConflict:
                logger.warning(
                    f"Sale number {sale_number} collided (attempt {attempt}/{self._max_number_attempts})",
                    extra={"sale_number": sale_number, "attempt": attempt},
                )
                continue

            if stored_number != sale_number:
                sale = replace(sale, sale_number=stored_number)
                sale_number = stored_number

            logger.info(
                f"Sale created with ID: {sale.sale_id}, Number: {sale_number}",
                extra={
                    "sale_id": str(sale.sale_id),
                    "sale_number": sale_number,
                    "customer_id": str(sale.customer_id),
                    "total_amount": str(sale.total_amount),
                },
            )

            # 6. Reload for denormalized names
            stored = self._store.get_sale(sale.sale_id)
            return stored if stored is not None else sale

        logger.error(
            f"Could not allocate a unique sale number after {self._max_number_attempts} attempts",
            extra={"customer_id": str(request.customer_id)},
        )
        raise ConflictError(
            f"Could not allocate a unique sale number after {self._max_number_attempts} attempts"
        )

    # ------------------------------------------------------------------
    # Header updates and cancellation
    # ------------------------------------------------------------------

    def _load_for_update(self, sale_id: UUID, actor: Actor) -> Sale:
        sale = self._queries.find_one(sale_id, actor, include_deleted=False)
        if actor.is_customer:
            raise ForbiddenError("Customers cannot modify sales")
        return sale

    def update_sale(self, sale_id: UUID, update: SaleUpdate, actor: Actor) -> Sale:
        """
        Apply a partial header update.

        A status change here follows the same transition table and history
        rules as the order tracking path.
        """
        sale = self._load_for_update(sale_id, actor)
        now = self._clock()

        updated = sale
        if update.status is not None and update.status is not sale.status:
            updated = apply_status_change(updated, update.status, actor=actor, at=now, comment=update.comment)

        changes = {
            name: getattr(update, name)
            for name in (
                "payment_status",
                "payment_method",
                "notes",
                "internal_notes",
                "delivery_date",
                "delivery_address",
                "is_delivered",
            )
            if getattr(update, name) is not None
        }
        updated = replace(updated, updated_at=now, **changes)

        stored = self._store.update_sale(updated, expected_version=sale.version)
        logger.info(f"Sale updated with ID: {sale_id}", extra={"sale_id": str(sale_id)})
        return stored

    def cancel_sale(self, sale_id: UUID, actor: Actor, comment: Optional[str] = None) -> Sale:
        """
        Cancel a sale. Completed sales can never be cancelled.

        Raises:
            ConflictError: If the sale is completed or already cancelled
            ForbiddenError: If the actor's role cannot cancel from the current status
        """
        sale = self._load_for_update(sale_id, actor)

        if sale.status is SaleStatus.COMPLETED:
            raise ConflictError("Cannot cancel a completed sale")
        if sale.status is SaleStatus.CANCELLED:
            raise ConflictError("Sale is already cancelled")

        cancelled = apply_status_change(
            sale,
            SaleStatus.CANCELLED,
            actor=actor,
            at=self._clock(),
            comment=comment or "Sale cancelled",
        )
        stored = self._store.update_sale(cancelled, expected_version=sale.version)
        logger.info(f"Sale cancelled with ID: {sale_id}", extra={"sale_id": str(sale_id)})
        return stored

    def remove_sale(self, sale_id: UUID, actor: Actor) -> Sale:
        """
        Soft-delete a sale (admin only).

        The sale is cancelled and hidden from listings; the row and its lines
        stay for audit and invoicing.

        Raises:
            ForbiddenError: If the actor is not an admin
            ConflictError: If the sale is completed or refunded
        """
        sale = self._load_for_update(sale_id, actor)

        if not actor.is_admin:
            raise ForbiddenError("Only admins can delete sales")

        if sale.status in (SaleStatus.COMPLETED, SaleStatus.REFUNDED):
            raise ConflictError(f"Cannot delete sale with status {sale.status.value}")

        cancelled = apply_status_change(
            sale,
            SaleStatus.CANCELLED,
            actor=actor,
            at=self._clock(),
            comment="Sale deleted",
        )
        stored = self._store.update_sale(replace(cancelled, is_deleted=True), expected_version=sale.version)

        logger.info(f"Sale with ID: {sale_id} has been deleted/cancelled", extra={"sale_id": str(sale_id)})
        return stored

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def add_payment(self, sale_id: UUID, payment: PaymentRequest, actor: Actor) -> Sale:
        """
        Record a (partial) payment against a sale.

        Raises:
            SaleValidationError: If the amount is not positive
            ConflictError: If the payment exceeds the remaining balance
        """
        sale = self._load_for_update(sale_id, actor)

        amount = as_decimal(payment.amount, name="amount")
        paid = apply_payment(sale, amount, payment.payment_method, at=self._clock())
        stored = self._store.update_sale(paid, expected_version=sale.version)

        logger.info(
            f"Payment of {payment.amount} added to sale {sale_id}",
            extra={
                "sale_id": str(sale_id),
                "amount": str(payment.amount),
                "payment_method": payment.payment_method,
                "payment_notes": payment.notes,
                "payment_status": stored.payment_status.value,
            },
        )
        return stored

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def get_sales_report(
        self,
        actor: Actor,
        *,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        seller_id: Optional[UUID] = None,
    ) -> SalesReport:
        filters = SaleFilters(
            seller_id=seller_id,
            from_date=from_date,
            to_date=to_date,
            exclude_status=SaleStatus.CANCELLED,
        )
        sales = self._queries.find_all(filters, actor)

        total_revenue = sum((s.total_amount for s in sales), ZERO)
        total_paid = sum((s.paid_amount for s in sales), ZERO)

        return SalesReport(
            total_sales=len(sales),
            total_revenue=total_revenue,
            total_paid=total_paid,
            pending_amount=total_revenue - total_paid,
            sales=sales,
        )


__all__ = [
    "SaleLineRequest",
    "CreateSaleRequest",
    "SaleUpdate",
    "PaymentRequest",
    "SalesReport",
    "SaleService",
]
