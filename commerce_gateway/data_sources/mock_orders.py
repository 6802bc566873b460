"""提供可复现的模拟订单源，方便在没有订单服务时本地开发与测试。"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from .base import Order, OrderLineItem, OrderPage, OrderPageRequest, OrderSource, OrderStatus

DEFAULT_CATALOG: Tuple[Tuple[str, str, str, str], ...] = (
    ("prod-001", "SKU-TEA-01", "Jasmine Green Tea", "12.50"),
    ("prod-002", "SKU-MUG-02", "Ceramic Mug", "18.00"),
    ("prod-003", "SKU-KTL-03", "Electric Kettle", "49.99"),
    ("prod-004", "SKU-INF-04", "Tea Infuser", "7.25"),
    ("prod-005", "SKU-SET-05", "Gift Set", "89.90"),
    ("prod-006", "SKU-TRY-06", "Bamboo Tray", "24.00"),
)

# 状态按权重抽样，完成单占多数。
_STATUS_WEIGHTS: Tuple[Tuple[OrderStatus, float], ...] = (
    (OrderStatus.COMPLETED, 0.55),
    (OrderStatus.CONFIRMED, 0.2),
    (OrderStatus.PENDING, 0.15),
    (OrderStatus.CANCELLED, 0.1),
)


@dataclass
class MockOrderSourceSettings:
    """
    控制模拟订单源行为的配置项。

    属性:
        seed (int): 伪随机种子，确保数据可复现。
        storefronts (List[str]): 生成订单时轮换使用的店铺 ID。
        default_window_days (int): 请求未给出时间范围时回溯的天数。
        min_orders_per_day (int): 每天最少订单数。
        max_orders_per_day (int): 每天最多订单数。
    """

    seed: int = 2024
    storefronts: List[str] = field(default_factory=lambda: ["store-main", "store-outlet"])
    default_window_days: int = 30
    min_orders_per_day: int = 2
    max_orders_per_day: int = 9


class MockOrderSource(OrderSource):
    """
    基于线性同余发生器的可复现订单源。

    每天的订单只由种子与日期决定，因此同一时间范围的分页结果稳定一致。
    """

    def __init__(
        self,
        settings: MockOrderSourceSettings | None = None,
        *,
        today: Optional[date] = None,
    ) -> None:
        """
        功能说明:
            创建模拟订单源实例。
        参数:
            settings (Optional[MockOrderSourceSettings]): 控制伪随机行为的配置。
            today (Optional[date]): 缺省时间范围的锚点，默认取当天。
        """
        self.name = "mock_order_service"
        self._settings = settings or MockOrderSourceSettings()
        self._today = today

    async def list_orders(self, request: OrderPageRequest) -> OrderPage:
        """
        功能说明:
            生成过滤条件下的全部订单并返回指定页。
        参数:
            request (OrderPageRequest): 分页与过滤条件。
        返回:
            OrderPage: 当前页订单以及过滤后的总数。
        """
        matched = [
            order
            for order in self._generate(request.date_from, request.date_to)
            if _matches(order, request)
        ]
        offset = (request.page - 1) * request.page_size
        return OrderPage(
            items=matched[offset:offset + request.page_size],
            total_count=len(matched),
        )

    def _generate(self, date_from: Optional[datetime], date_to: Optional[datetime]) -> Iterable[Order]:
        start, end = self._window(date_from, date_to)
        for day in _iter_days(start, end):
            yield from self._orders_for_day(day)

    def _window(self, date_from: Optional[datetime], date_to: Optional[datetime]) -> Tuple[date, date]:
        span = timedelta(days=max(self._settings.default_window_days, 1) - 1)
        end = date_to.date() if date_to else None
        start = date_from.date() if date_from else None
        if end is None:
            end = max(self._today or date.today(), start) if start else (self._today or date.today())
        if start is None:
            start = end - span
        return start, end

    def _orders_for_day(self, day: date) -> List[Order]:
        settings = self._settings
        rng = _PseudoRandom(settings.seed * 100003 + day.toordinal())
        count = rng.randint(settings.min_orders_per_day, settings.max_orders_per_day + 1)
        orders: List[Order] = []
        for index in range(count):
            created_at = datetime.combine(
                day,
                time(hour=rng.randint(0, 24), minute=rng.randint(0, 60)),
                tzinfo=timezone.utc,
            )
            line_count = rng.randint(1, 4)
            items = []
            for _ in range(line_count):
                product_id, sku, name, price = DEFAULT_CATALOG[rng.randint(0, len(DEFAULT_CATALOG))]
                items.append(
                    OrderLineItem(
                        product_id=product_id,
                        sku=sku,
                        name=name,
                        unit_price=Decimal(price),
                        quantity=rng.randint(1, 4),
                    )
                )
            orders.append(
                Order(
                    id=f"ord-{day:%Y%m%d}-{index:03d}",
                    status=_pick_status(rng.uniform(0, 1)),
                    created_at=created_at,
                    storefront_id=settings.storefronts[index % len(settings.storefronts)],
                    items=tuple(items),
                )
            )
        return orders


def _matches(order: Order, request: OrderPageRequest) -> bool:
    if request.storefront_id and order.storefront_id != request.storefront_id:
        return False
    if order.created_at is not None:
        if request.date_from is not None and order.created_at < request.date_from:
            return False
        if request.date_to is not None and order.created_at > request.date_to:
            return False
    return True


def _pick_status(roll: float) -> OrderStatus:
    cumulative = 0.0
    for status, weight in _STATUS_WEIGHTS:
        cumulative += weight
        if roll < cumulative:
            return status
    return OrderStatus.COMPLETED


def _iter_days(start: date, end: date) -> Iterable[date]:
    """
    功能说明:
        生成起止日期（闭区间）内的所有日期。
    参数:
        start (date): 开始日期。
        end (date): 结束日期。
    返回:
        Iterable[date]: 逐日迭代器。
    """
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


class _PseudoRandom:
    """MINSTD 线性同余伪随机数发生器，用于生成可复现的订单。"""

    def __init__(self, seed: int) -> None:
        self._state = seed % 2147483647 or 42

    def _next(self) -> float:
        self._state = (self._state * 48271) % 2147483647
        return self._state / 2147483647

    def uniform(self, low: float, high: float) -> float:
        return low + (high - low) * self._next()

    def randint(self, low: int, high: int) -> int:
        """返回 [low, high) 区间内的整数。"""
        return int(low + (high - low) * self._next())
