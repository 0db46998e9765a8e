"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.sale import PaymentStatus, Sale, SaleStatus


# ============================================================================
# Sale Request Models
# ============================================================================

class SaleLineCreate(BaseModel):
    """Single requested line. unit_price defaults to the catalog price."""
    product_id: UUID
    quantity: int = Field(..., ge=1)
    unit_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    discount_percent: Decimal = Field(Decimal("0"), ge=0, le=100, decimal_places=2)
    notes: Optional[str] = None


class CreateSaleRequest(BaseModel):
    """Request to create a sale."""
    customer_id: UUID
    lines: List[SaleLineCreate] = Field(..., min_length=1)
    discount_amount: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    tax_rate: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    delivery_date: Optional[date] = None
    delivery_address: Optional[str] = None
    seller_id: Optional[UUID] = Field(None, description="Admins only: seller credited with the sale")

    class Config:
        json_schema_extra = {
            "example": {
                "customer_id": "123e4567-e89b-12d3-a456-426614174002",
                "lines": [
                    {
                        "product_id": "123e4567-e89b-12d3-a456-426614174000",
                        "quantity": 2,
                        "unit_price": "500.00",
                        "discount_percent": "10"
                    },
                    {
                        "product_id": "123e4567-e89b-12d3-a456-426614174001",
                        "quantity": 1,
                        "unit_price": "300.00"
                    }
                ],
                "tax_rate": "10",
                "payment_method": "card"
            }
        }


class UpdateSaleRequest(BaseModel):
    """Partial header update."""
    status: Optional[SaleStatus] = None
    payment_status: Optional[PaymentStatus] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    delivery_date: Optional[date] = None
    delivery_address: Optional[str] = None
    is_delivered: Optional[bool] = None
    comment: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    """Fulfillment status transition."""
    status: SaleStatus
    comment: Optional[str] = None
    tracking_number: Optional[str] = None
    shipping_carrier: Optional[str] = None
    estimated_delivery_date: Optional[date] = None

    class Config:
        json_schema_extra = {
            "example": {
                "status": "in_transit",
                "comment": "Picked up by carrier",
                "tracking_number": "1Z999AA10123456784",
                "shipping_carrier": "UPS",
                "estimated_delivery_date": "2025-02-01"
            }
        }


class AddPaymentRequest(BaseModel):
    """Payment against a sale."""
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    payment_method: str
    notes: Optional[str] = None


class CancelSaleRequest(BaseModel):
    comment: Optional[str] = None


# ============================================================================
# Sale Response Models
# ============================================================================

class SaleLineResponse(BaseModel):
    line_id: UUID
    product_id: UUID
    product_name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    discount_percent: Decimal
    discount_amount: Decimal
    final_price: Decimal
    notes: Optional[str] = None


class StatusHistoryEntryResponse(BaseModel):
    status: SaleStatus
    timestamp: datetime
    actor_id: Optional[UUID] = None
    comment: str = ""


class SaleResponse(BaseModel):
    """Full sale with lines and status history."""
    sale_id: UUID
    sale_number: str
    customer_id: UUID
    customer_name: Optional[str] = None
    seller_id: Optional[UUID] = None
    seller_name: Optional[str] = None
    lines: List[SaleLineResponse]
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    balance_amount: Decimal
    status: SaleStatus
    payment_status: PaymentStatus
    payment_method: Optional[str] = None
    status_history: List[StatusHistoryEntryResponse]
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    delivery_address: Optional[str] = None
    delivery_date: Optional[date] = None
    estimated_delivery_date: Optional[date] = None
    shipping_carrier: Optional[str] = None
    tracking_number: Optional[str] = None
    is_delivered: bool
    is_deleted: bool
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, sale: Sale) -> "SaleResponse":
        return cls(
            sale_id=sale.sale_id,
            sale_number=sale.sale_number,
            customer_id=sale.customer_id,
            customer_name=sale.customer_name,
            seller_id=sale.seller_id,
            seller_name=sale.seller_name,
            lines=[
                SaleLineResponse(
                    line_id=line.line_id,
                    product_id=line.product_id,
                    product_name=line.product_name,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    line_total=line.line_total,
                    discount_percent=line.discount_percent,
                    discount_amount=line.discount_amount,
                    final_price=line.final_price,
                    notes=line.notes,
                )
                for line in sale.lines
            ],
            subtotal=sale.subtotal,
            tax_rate=sale.tax_rate,
            tax_amount=sale.tax_amount,
            discount_amount=sale.discount_amount,
            total_amount=sale.total_amount,
            paid_amount=sale.paid_amount,
            balance_amount=sale.balance_amount,
            status=sale.status,
            payment_status=sale.payment_status,
            payment_method=sale.payment_method,
            status_history=[
                StatusHistoryEntryResponse(
                    status=entry.status,
                    timestamp=entry.timestamp,
                    actor_id=entry.actor_id,
                    comment=entry.comment,
                )
                for entry in sale.status_history
            ],
            notes=sale.notes,
            internal_notes=sale.internal_notes,
            delivery_address=sale.delivery_address,
            delivery_date=sale.delivery_date,
            estimated_delivery_date=sale.estimated_delivery_date,
            shipping_carrier=sale.shipping_carrier,
            tracking_number=sale.tracking_number,
            is_delivered=sale.is_delivered,
            is_deleted=sale.is_deleted,
            cancelled_at=sale.cancelled_at,
            created_at=sale.created_at,
            updated_at=sale.updated_at,
        )


class SaleEnvelope(BaseModel):
    message: str
    data: SaleResponse


class SaleListEnvelope(BaseModel):
    message: str
    data: List[SaleResponse]


class SalesReportData(BaseModel):
    total_sales: int
    total_revenue: Decimal
    total_paid: Decimal
    pending_amount: Decimal
    sales: List[SaleResponse]


class SalesReportEnvelope(BaseModel):
    message: str
    data: SalesReportData


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    status_code: int

    class Config:
        json_schema_extra = {
            "example": {
                "error": "not_found",
                "detail": "Sale with ID 123e4567-e89b-12d3-a456-426614174003 not found",
                "status_code": 404
            }
        }
