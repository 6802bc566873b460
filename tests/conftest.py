"""
Shared fixtures for order analytics tests
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, List, Optional

import pytest

from commerce_gateway.config import AnalyticsConfig, AppConfig, OrderServiceConfig
from commerce_gateway.data_sources.base import (
    Order,
    OrderLineItem,
    OrderPage,
    OrderPageRequest,
    OrderSource,
    OrderStatus,
)
from commerce_gateway.services import create_service_context


class ListOrderSource(OrderSource):
    """Pages over a fixed list of orders and records every request"""

    def __init__(self, orders: List[Order], *, total_count: Optional[int] = None) -> None:
        self.name = "list_source"
        self.orders = list(orders)
        self.total_count = total_count
        self.requests: List[OrderPageRequest] = []
        self.closed = False

    async def list_orders(self, request: OrderPageRequest) -> OrderPage:
        self.requests.append(request)
        offset = (request.page - 1) * request.page_size
        total = len(self.orders) if self.total_count is None else self.total_count
        return OrderPage(items=self.orders[offset:offset + request.page_size], total_count=total)

    async def aclose(self) -> None:
        self.closed = True


class FailingOrderSource(OrderSource):
    """Raises the given exception on the first request"""

    def __init__(self, exc: BaseException) -> None:
        self.name = "failing_source"
        self.exc = exc
        self.requests: List[OrderPageRequest] = []

    async def list_orders(self, request: OrderPageRequest) -> OrderPage:
        self.requests.append(request)
        raise self.exc


def line(product_id: str = "prod-001", price: str = "10.00", quantity: int = 1,
         sku: Optional[str] = None, name: Optional[str] = None) -> OrderLineItem:
    return OrderLineItem(
        product_id=product_id,
        sku=sku or f"SKU-{product_id}",
        name=name or f"Product {product_id}",
        unit_price=Decimal(price),
        quantity=quantity,
    )


def make_order(order_id: str, status: OrderStatus = OrderStatus.COMPLETED,
               created_at: Optional[datetime] = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc),
               items=None, storefront_id: str = "store-main") -> Order:
    return Order(
        id=order_id,
        status=status,
        created_at=created_at,
        storefront_id=storefront_id,
        items=tuple(items if items is not None else [line()]),
    )


@pytest.fixture
def order_factory() -> Callable[..., Order]:
    return make_order


@pytest.fixture
def line_factory() -> Callable[..., OrderLineItem]:
    return line


@pytest.fixture
def analytics_config() -> AnalyticsConfig:
    return AnalyticsConfig()


@pytest.fixture
def context_for(analytics_config):
    """Build a ServiceContext around an arbitrary order source"""

    def _build(source: OrderSource):
        config = AppConfig(analytics=analytics_config, order_service=OrderServiceConfig())
        return create_service_context(config, source=source)

    return _build
