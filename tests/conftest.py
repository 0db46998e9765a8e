"""
Pytest configuration for the sale core tests.

This file adds the project root to the Python path so that tests can import
config, domain, repositories, services and api, and provides services wired
to the in-memory fakes in tests/fakes.py.
"""

import sys
from pathlib import Path

import pytest

# Add the project root (and this directory, for `fakes`) to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent))

from fakes import NOW, InMemorySaleStore, default_customers, default_products, default_sellers  # noqa: E402
from services.order_tracking_service import OrderTrackingService  # noqa: E402
from services.sale_query_service import SaleQueryService  # noqa: E402
from services.sale_service import SaleService  # noqa: E402


@pytest.fixture
def store() -> InMemorySaleStore:
    return InMemorySaleStore()


@pytest.fixture
def queries(store: InMemorySaleStore) -> SaleQueryService:
    return SaleQueryService(store)


@pytest.fixture
def sale_service(store: InMemorySaleStore) -> SaleService:
    return SaleService(
        store,
        default_customers(),
        default_products(),
        default_sellers(),
        clock=lambda: NOW,
        max_number_attempts=5,
    )


@pytest.fixture
def tracking(store: InMemorySaleStore) -> OrderTrackingService:
    return OrderTrackingService(store, clock=lambda: NOW)
