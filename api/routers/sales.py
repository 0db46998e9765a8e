"""
Sales API Endpoints.

Endpoints for creating sales, browsing them within the caller's scope,
updating headers, recording payments, cancelling and soft-deleting.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_current_actor, get_query_service, get_sale_service
from api.models import (
    AddPaymentRequest,
    CancelSaleRequest,
    CreateSaleRequest as APICreateSaleRequest,
    ErrorResponse,
    SaleEnvelope,
    SaleListEnvelope,
    SaleResponse,
    SalesReportData,
    SalesReportEnvelope,
    UpdateSaleRequest,
)
from domain.access import SaleFilters
from domain.actor import Actor
from domain.sale import PaymentStatus, SaleStatus
from services.sale_query_service import SaleQueryService
from services.sale_service import (
    CreateSaleRequest,
    PaymentRequest,
    SaleLineRequest,
    SaleService,
    SaleUpdate,
)

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Query datetimes without an offset are taken as UTC."""

    if value is None:
        return None
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@router.post(
    "/sales",
    response_model=SaleEnvelope,
    status_code=201,
    responses=_ERROR_RESPONSES,
    summary="Create Sale",
    description="Create a sale with all of its lines (admin/seller only)."
)
def create_sale(
    request: APICreateSaleRequest,
    actor: Actor = Depends(get_current_actor),
    service: SaleService = Depends(get_sale_service),
):
    """
    Create a new sale.

    **Process:**
    1. Validates the customer exists and is active
    2. Validates every motorcycle on the lines exists and is active
    3. Prices the lines (quantity x unit price, minus line discount)
    4. Applies tax and the header discount
    5. Allocates the next `SALE-YYYYMM####` number and stores everything atomically

    **Example:** two lines, 2 @ 500 with 10% off and 1 @ 300, tax 10%
    gives subtotal 1200.00, tax 120.00, total 1320.00.
    """
    service_request = CreateSaleRequest(
        customer_id=request.customer_id,
        lines=[
            SaleLineRequest(
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
                discount_percent=line.discount_percent,
                notes=line.notes,
            )
            for line in request.lines
        ],
        discount_amount=request.discount_amount,
        tax_rate=request.tax_rate,
        payment_method=request.payment_method,
        notes=request.notes,
        internal_notes=request.internal_notes,
        delivery_date=request.delivery_date,
        delivery_address=request.delivery_address,
        seller_id=request.seller_id,
    )

    sale = service.create_sale(service_request, actor)

    return SaleEnvelope(message="Sale created successfully", data=SaleResponse.from_domain(sale))


@router.get(
    "/sales",
    response_model=SaleListEnvelope,
    summary="List Sales",
    description="List sales visible to the caller, newest first."
)
def list_sales(
    status: Optional[SaleStatus] = Query(None, description="Filter by fulfillment status"),
    payment_status: Optional[PaymentStatus] = Query(None, description="Filter by payment status"),
    customer_id: Optional[UUID] = Query(None, description="Filter by customer ID"),
    seller_id: Optional[UUID] = Query(None, description="Filter by seller ID"),
    from_date: Optional[datetime] = Query(None, description="Created at or after (UTC)"),
    to_date: Optional[datetime] = Query(None, description="Created at or before (UTC)"),
    actor: Actor = Depends(get_current_actor),
    queries: SaleQueryService = Depends(get_query_service),
):
    """
    Sellers only ever see their own sales and customers their own purchases,
    whatever filters they pass.

    **Example usage:**
    - All visible sales: `GET /api/v1/sales`
    - Pending only: `GET /api/v1/sales?status=pending`
    - One customer: `GET /api/v1/sales?customer_id=...`
    """
    filters = SaleFilters(
        status=status,
        payment_status=payment_status,
        customer_id=customer_id,
        seller_id=seller_id,
        from_date=_as_utc(from_date),
        to_date=_as_utc(to_date),
    )
    sales = queries.find_all(filters, actor)

    return SaleListEnvelope(
        message="Sales retrieved successfully",
        data=[SaleResponse.from_domain(s) for s in sales],
    )


@router.get(
    "/sales/report",
    response_model=SalesReportEnvelope,
    summary="Sales Report",
    description="Revenue, paid and pending totals over non-cancelled sales in the caller's scope."
)
def sales_report(
    from_date: Optional[datetime] = Query(None),
    to_date: Optional[datetime] = Query(None),
    seller_id: Optional[UUID] = Query(None),
    actor: Actor = Depends(get_current_actor),
    service: SaleService = Depends(get_sale_service),
):
    report = service.get_sales_report(
        actor,
        from_date=_as_utc(from_date),
        to_date=_as_utc(to_date),
        seller_id=seller_id,
    )

    return SalesReportEnvelope(
        message="Sales report generated successfully",
        data=SalesReportData(
            total_sales=report.total_sales,
            total_revenue=report.total_revenue,
            total_paid=report.total_paid,
            pending_amount=report.pending_amount,
            sales=[SaleResponse.from_domain(s) for s in report.sales],
        ),
    )


@router.get(
    "/sales/customer/{customer_id}",
    response_model=SaleListEnvelope,
    summary="Sales by Customer"
)
def sales_by_customer(
    customer_id: UUID,
    actor: Actor = Depends(get_current_actor),
    queries: SaleQueryService = Depends(get_query_service),
):
    sales = queries.find_by_customer(customer_id, actor)
    return SaleListEnvelope(
        message="Customer sales retrieved successfully",
        data=[SaleResponse.from_domain(s) for s in sales],
    )


@router.get(
    "/sales/{sale_id}",
    response_model=SaleEnvelope,
    responses=_ERROR_RESPONSES,
    summary="Get Sale"
)
def get_sale(
    sale_id: UUID,
    actor: Actor = Depends(get_current_actor),
    queries: SaleQueryService = Depends(get_query_service),
):
    sale = queries.find_one(sale_id, actor)
    return SaleEnvelope(message="Sale retrieved successfully", data=SaleResponse.from_domain(sale))


@router.patch(
    "/sales/{sale_id}",
    response_model=SaleEnvelope,
    responses=_ERROR_RESPONSES,
    summary="Update Sale",
    description="Partial header update (admin/seller only). Status changes follow the transition table."
)
def update_sale(
    sale_id: UUID,
    request: UpdateSaleRequest,
    actor: Actor = Depends(get_current_actor),
    service: SaleService = Depends(get_sale_service),
):
    update = SaleUpdate(
        status=request.status,
        payment_status=request.payment_status,
        payment_method=request.payment_method,
        notes=request.notes,
        internal_notes=request.internal_notes,
        delivery_date=request.delivery_date,
        delivery_address=request.delivery_address,
        is_delivered=request.is_delivered,
        comment=request.comment,
    )
    sale = service.update_sale(sale_id, update, actor)
    return SaleEnvelope(message="Sale updated successfully", data=SaleResponse.from_domain(sale))


@router.post(
    "/sales/{sale_id}/payments",
    response_model=SaleEnvelope,
    responses=_ERROR_RESPONSES,
    summary="Add Payment",
    description="Record a partial or full payment. Payments above the remaining balance are rejected."
)
def add_payment(
    sale_id: UUID,
    request: AddPaymentRequest,
    actor: Actor = Depends(get_current_actor),
    service: SaleService = Depends(get_sale_service),
):
    sale = service.add_payment(
        sale_id,
        PaymentRequest(amount=request.amount, payment_method=request.payment_method, notes=request.notes),
        actor,
    )
    return SaleEnvelope(message="Payment added successfully", data=SaleResponse.from_domain(sale))


@router.post(
    "/sales/{sale_id}/cancel",
    response_model=SaleEnvelope,
    responses=_ERROR_RESPONSES,
    summary="Cancel Sale"
)
def cancel_sale(
    sale_id: UUID,
    request: Optional[CancelSaleRequest] = None,
    actor: Actor = Depends(get_current_actor),
    service: SaleService = Depends(get_sale_service),
):
    sale = service.cancel_sale(sale_id, actor, comment=request.comment if request else None)
    return SaleEnvelope(message="Sale cancelled successfully", data=SaleResponse.from_domain(sale))


@router.delete(
    "/sales/{sale_id}",
    response_model=SaleEnvelope,
    responses=_ERROR_RESPONSES,
    summary="Delete Sale",
    description="Soft delete (admin only): the sale is cancelled and hidden from listings."
)
def delete_sale(
    sale_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: SaleService = Depends(get_sale_service),
):
    sale = service.remove_sale(sale_id, actor)
    return SaleEnvelope(message="Sale deleted successfully", data=SaleResponse.from_domain(sale))
