"""
Order Tracking API Endpoints.

Endpoints for customers to follow their orders and for staff to move orders
through the fulfillment statuses.
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from api.dependencies import get_current_actor, get_query_service, get_tracking_service
from api.models import ErrorResponse, SaleEnvelope, SaleListEnvelope, SaleResponse, StatusUpdateRequest
from domain.actor import Actor
from services.order_tracking_service import OrderTrackingService, TrackingUpdate
from services.sale_query_service import SaleQueryService

router = APIRouter()


@router.get(
    "/orders/my-orders",
    response_model=SaleListEnvelope,
    responses={403: {"model": ErrorResponse}},
    summary="My Orders",
    description="All orders of the calling customer."
)
def my_orders(
    actor: Actor = Depends(get_current_actor),
    queries: SaleQueryService = Depends(get_query_service),
):
    orders = queries.get_customer_orders(actor)
    return SaleListEnvelope(
        message="Orders retrieved successfully",
        data=[SaleResponse.from_domain(o) for o in orders],
    )


@router.get(
    "/orders/{sale_id}/tracking",
    response_model=SaleEnvelope,
    responses={404: {"model": ErrorResponse}},
    summary="Order Tracking",
    description="Status, history and delivery details of one order."
)
def order_tracking(
    sale_id: UUID,
    actor: Actor = Depends(get_current_actor),
    tracking: OrderTrackingService = Depends(get_tracking_service),
):
    order = tracking.get_order_tracking(sale_id, actor)
    return SaleEnvelope(
        message="Tracking details retrieved successfully",
        data=SaleResponse.from_domain(order),
    )


@router.post(
    "/orders/{sale_id}/status",
    response_model=SaleEnvelope,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Update Order Status",
    description="Move an order to a new fulfillment status (admin/seller)."
)
def update_order_status(
    sale_id: UUID,
    request: StatusUpdateRequest,
    actor: Actor = Depends(get_current_actor),
    tracking: OrderTrackingService = Depends(get_tracking_service),
):
    """
    **Seller transitions:**
    - pending → confirmed / cancelled
    - confirmed → processing / cancelled
    - processing → preparing / cancelled
    - preparing → ready_for_pickup / in_transit
    - ready_for_pickup, in_transit → completed
    - cancelled → refunded

    Admins may move an order to any status. Customers cannot change status.
    """
    order = tracking.update_order_status(
        sale_id,
        TrackingUpdate(
            status=request.status,
            comment=request.comment,
            tracking_number=request.tracking_number,
            shipping_carrier=request.shipping_carrier,
            estimated_delivery_date=request.estimated_delivery_date,
        ),
        actor,
    )
    return SaleEnvelope(message="Order status updated successfully", data=SaleResponse.from_domain(order))
