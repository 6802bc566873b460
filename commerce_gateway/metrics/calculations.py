"""订单汇总、状态分布、时间趋势与热销商品排名的计算逻辑。"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_EVEN, Decimal
from enum import Enum
from typing import Dict, List, Optional, Set

from ..data_sources.base import Order, OrderStatus
from ..errors import InvalidGranularity
from ..pipeline.fetcher import FetchResult
from .anonymity import suppress_small_groups

_CENT = Decimal("0.01")


class Granularity(str, Enum):
    """趋势统计的时间桶宽度。"""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @classmethod
    def parse(cls, value: str) -> "Granularity":
        try:
            return cls(value)
        except ValueError:
            raise InvalidGranularity(value) from None


@dataclass
class NoOrders:
    """过滤条件下没有任何订单时的统一结果，避免除零。"""

    total_orders: int = 0


@dataclass
class OrderSummary:
    """
    订单汇总。

    属性:
        total_orders (int): 上游报告的订单总数。
        fetched_orders (int): 实际参与计算的订单数。
        total_revenue (Decimal): 总销售额（两位小数）。
        avg_order_value (Decimal): 客单价（两位小数）。
        orders_by_status (Dict[OrderStatus, int]): 五种状态的订单数。
    """

    total_orders: int
    fetched_orders: int
    total_revenue: Decimal
    avg_order_value: Decimal
    orders_by_status: Dict[OrderStatus, int]


@dataclass
class StatusShare:
    status: OrderStatus
    count: int
    percentage: float


@dataclass
class StatusDistribution:
    """
    订单状态分布。

    属性:
        total_orders (int): 上游报告的订单总数。
        fetched_orders (int): 实际参与计算的订单数。
        breakdown (List[StatusShare]): 按数量降序的状态占比。
        conversion_rate (float): 完成单占比（百分比，一位小数）。
        cancellation_rate (float): 取消单占比（百分比，一位小数）。
    """

    total_orders: int
    fetched_orders: int
    breakdown: List[StatusShare]
    conversion_rate: float
    cancellation_rate: float


@dataclass
class TrendPeriod:
    """单个时间桶，order_count 即参与 k-匿名判断的不同订单数。"""

    period: str
    order_count: int
    revenue: Decimal
    avg_order_value: Decimal


@dataclass
class OrderTrends:
    """
    时间趋势结果。

    属性:
        total_orders (int): 上游报告的订单总数。
        fetched_orders (int): 实际取回的订单数（含缺少创建时间的订单）。
        granularity (Granularity): 时间桶宽度。
        periods (List[TrendPeriod]): 通过 k-匿名过滤的时间桶，按键升序。
        suppressed_periods (int): 被抑制的时间桶数量。
        threshold (int): 使用的 k-匿名阈值。
    """

    total_orders: int
    fetched_orders: int
    granularity: Granularity
    periods: List[TrendPeriod]
    suppressed_periods: int
    threshold: int


@dataclass
class ProductSales:
    """单个商品的销售汇总，order_count 为包含该商品的不同订单数。"""

    product_id: str
    name: str
    sku: str
    order_count: int
    total_quantity: int
    total_revenue: Decimal


@dataclass
class TopProducts:
    """
    热销商品排名。

    属性:
        total_orders (int): 上游报告的订单总数。
        fetched_orders (int): 实际参与计算的订单数。
        products (List[ProductSales]): 通过 k-匿名过滤并截断后的商品。
        threshold (int): 使用的 k-匿名阈值。
    """

    total_orders: int
    fetched_orders: int
    products: List[ProductSales]
    threshold: int


def round_money(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_EVEN)


def _percentage(count: int, total: int) -> float:
    return round(100.0 * count / total, 1)


def build_order_summary(result: FetchResult) -> OrderSummary | NoOrders:
    """
    功能说明:
        计算总销售额、客单价与五种状态的订单数。
    参数:
        result (FetchResult): 取数结果。
    返回:
        OrderSummary | NoOrders: 汇总结果；无订单时返回 NoOrders。
    """
    orders = result.orders
    if not orders:
        return NoOrders()

    total_revenue = sum((order.revenue for order in orders), Decimal("0"))
    counts = Counter(order.status for order in orders)
    return OrderSummary(
        total_orders=result.total_count,
        fetched_orders=len(orders),
        total_revenue=round_money(total_revenue),
        avg_order_value=round_money(total_revenue / len(orders)),
        orders_by_status={status: counts.get(status, 0) for status in OrderStatus},
    )


def build_status_distribution(result: FetchResult) -> StatusDistribution | NoOrders:
    """
    功能说明:
        统计出现过的每种状态的数量与占比，并计算转化率和取消率。
    参数:
        result (FetchResult): 取数结果。
    返回:
        StatusDistribution | NoOrders: 状态分布；无订单时返回 NoOrders。
    """
    orders = result.orders
    if not orders:
        return NoOrders()

    total = len(orders)
    # Counter 保留首次出现顺序，sorted 稳定排序，数量相同的状态按出现先后排列。
    counts = Counter(order.status for order in orders)
    breakdown = [
        StatusShare(status=status, count=count, percentage=_percentage(count, total))
        for status, count in sorted(counts.items(), key=lambda item: item[1], reverse=True)
    ]
    return StatusDistribution(
        total_orders=result.total_count,
        fetched_orders=total,
        breakdown=breakdown,
        conversion_rate=_percentage(counts.get(OrderStatus.COMPLETED, 0), total),
        cancellation_rate=_percentage(counts.get(OrderStatus.CANCELLED, 0), total),
    )


def period_key(created_at: datetime, granularity: Granularity) -> str:
    """
    功能说明:
        按粒度生成时间桶键，三种格式的字典序即时间先后。
    参数:
        created_at (datetime): 订单创建时间，按其自身时区取日期。
        granularity (Granularity): 粒度。
    返回:
        str: ``YYYY-MM-DD``、``YYYY-Www``（ISO 周）或 ``YYYY-MM``。
    """
    if granularity is Granularity.WEEK:
        iso_year, iso_week, _ = created_at.isocalendar()
        return f"{iso_year:04d}-W{iso_week:02d}"
    if granularity is Granularity.MONTH:
        return f"{created_at.year:04d}-{created_at.month:02d}"
    return created_at.date().isoformat()


def build_order_trends(
    result: FetchResult,
    granularity: Granularity,
    *,
    threshold: int,
) -> OrderTrends | NoOrders:
    """
    功能说明:
        将带创建时间的订单按时间桶分组，计算订单数、销售额与客单价，
        再执行 k-匿名抑制。缺少创建时间的订单不进入任何时间桶。
    参数:
        result (FetchResult): 取数结果。
        granularity (Granularity): 时间桶宽度。
        threshold (int): k-匿名阈值。
    返回:
        OrderTrends | NoOrders: 趋势结果；无订单时返回 NoOrders。
    """
    if not result.orders:
        return NoOrders()

    # 按订单 ID 去重，分页重叠返回的同一订单只计一次。
    grouped: Dict[str, Dict[str, Order]] = {}
    for order in result.orders:
        if order.created_at is None:
            continue
        grouped.setdefault(period_key(order.created_at, granularity), {}).setdefault(order.id, order)

    periods: List[TrendPeriod] = []
    for key in sorted(grouped):
        bucket = list(grouped[key].values())
        revenue = sum((order.revenue for order in bucket), Decimal("0"))
        periods.append(
            TrendPeriod(
                period=key,
                order_count=len(bucket),
                revenue=round_money(revenue),
                avg_order_value=round_money(revenue / len(bucket)),
            )
        )

    suppression = suppress_small_groups(periods, threshold)
    return OrderTrends(
        total_orders=result.total_count,
        fetched_orders=result.fetched_count,
        granularity=granularity,
        periods=suppression.visible,
        suppressed_periods=suppression.suppressed,
        threshold=threshold,
    )


def clamp_limit(limit: Optional[int], *, default: int, maximum: int) -> int:
    """将返回数量限制在 [1, maximum] 之内，未提供时使用默认值。"""
    if limit is None:
        limit = default
    return max(1, min(limit, maximum))


def build_top_products(
    result: FetchResult,
    *,
    limit: int,
    threshold: int,
) -> TopProducts | NoOrders:
    """
    功能说明:
        按商品聚合销量与销售额，统计包含该商品的不同订单数，
        过滤不满足 k-匿名阈值的商品后排序并截断。
        排序依次为：销量降序、销售额降序、商品 ID 升序。
    参数:
        result (FetchResult): 取数结果。
        limit (int): 已夹紧的返回数量。
        threshold (int): k-匿名阈值。
    返回:
        TopProducts | NoOrders: 商品排名；无订单时返回 NoOrders。
    """
    if not result.orders:
        return NoOrders()

    aggregated: Dict[str, Dict[str, object]] = {}
    for order in result.orders:
        for item in order.items:
            entry = aggregated.setdefault(
                item.product_id,
                {
                    "name": item.name,
                    "sku": item.sku,
                    "orders": set(),
                    "quantity": 0,
                    "revenue": Decimal("0"),
                },
            )
            order_ids: Set[str] = entry["orders"]  # type: ignore[assignment]
            order_ids.add(order.id)
            entry["quantity"] += item.quantity  # type: ignore[operator]
            entry["revenue"] += item.revenue  # type: ignore[operator]

    candidates = [
        ProductSales(
            product_id=product_id,
            name=str(values["name"]),
            sku=str(values["sku"]),
            order_count=len(values["orders"]),  # type: ignore[arg-type]
            total_quantity=int(values["quantity"]),  # type: ignore[call-overload]
            total_revenue=round_money(values["revenue"]),  # type: ignore[arg-type]
        )
        for product_id, values in aggregated.items()
    ]
    visible = suppress_small_groups(candidates, threshold).visible
    visible.sort(key=lambda product: (-product.total_quantity, -product.total_revenue, product.product_id))

    return TopProducts(
        total_orders=result.total_count,
        fetched_orders=result.fetched_count,
        products=visible[:limit],
        threshold=threshold,
    )
