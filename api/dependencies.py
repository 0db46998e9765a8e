"""
FastAPI dependencies: caller identity and service wiring.

Authentication is handled by the gateway in front of this API, which forwards
the validated identity in headers:
- X-User-Id: the user's UUID
- X-User-Role: admin, seller or customer
- X-Customer-Id: the linked customer record (customer accounts only)

Tests override the store, directory and catalog providers with in-memory fakes.
"""

from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException

from domain.actor import Actor, Role
from repositories.base import CustomerDirectory, ProductCatalog, SaleStore, SellerDirectory
from repositories.customer_repository import SupabaseCustomerDirectory
from repositories.product_repository import SupabaseProductCatalog
from repositories.sale_repository import SupabaseSaleStore
from repositories.seller_repository import SupabaseSellerDirectory
from services.order_tracking_service import OrderTrackingService
from services.sale_query_service import SaleQueryService
from services.sale_service import SaleService


def get_current_actor(
    x_user_id: UUID = Header(..., description="Authenticated user ID"),
    x_user_role: str = Header(..., description="admin, seller or customer"),
    x_customer_id: Optional[UUID] = Header(None, description="Customer profile ID (customers only)"),
) -> Actor:
    try:
        role = Role(x_user_role.lower())
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown role '{x_user_role}'")

    if role is Role.CUSTOMER and x_customer_id is None:
        raise HTTPException(status_code=403, detail="User has no customer profile")

    return Actor(
        user_id=x_user_id,
        role=role,
        customer_id=x_customer_id if role is Role.CUSTOMER else None,
    )


def get_sale_store() -> SaleStore:
    return SupabaseSaleStore()


def get_customer_directory() -> CustomerDirectory:
    return SupabaseCustomerDirectory()


def get_product_catalog() -> ProductCatalog:
    return SupabaseProductCatalog()


def get_seller_directory() -> SellerDirectory:
    return SupabaseSellerDirectory()


def get_query_service(store: SaleStore = Depends(get_sale_store)) -> SaleQueryService:
    return SaleQueryService(store)


def get_sale_service(
    store: SaleStore = Depends(get_sale_store),
    customers: CustomerDirectory = Depends(get_customer_directory),
    products: ProductCatalog = Depends(get_product_catalog),
    sellers: SellerDirectory = Depends(get_seller_directory),
) -> SaleService:
    return SaleService(store, customers, products, sellers)


def get_tracking_service(store: SaleStore = Depends(get_sale_store)) -> OrderTrackingService:
    return OrderTrackingService(store)
