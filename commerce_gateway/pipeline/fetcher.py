"""按页顺序拉取订单历史，受页数上限约束。"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from ..config import AnalyticsConfig
from ..data_sources.base import Order, OrderPage, OrderPageRequest, OrderSource
from ..utils.dates import DateRange

logger = logging.getLogger(__name__)


class FetchStop(str, Enum):
    """分页循环的终止原因。"""

    TOTAL_REACHED = "total_reached"
    SHORT_PAGE = "short_page"
    PAGE_CAP_REACHED = "page_cap_reached"


@dataclass
class FetchResult:
    """
    单次请求内存中的取数结果，聚合完成后即丢弃。

    属性:
        orders (List[Order]): 实际取回的订单。
        total_count (int): 上游报告的过滤后订单总数，可能大于已取回数量。
        pages_fetched (int): 实际请求的页数。
        stop_reason (Optional[FetchStop]): 分页终止原因。
    """

    orders: List[Order]
    total_count: int
    pages_fetched: int = 0
    stop_reason: Optional[FetchStop] = None

    @property
    def fetched_count(self) -> int:
        return len(self.orders)

    @property
    def is_partial(self) -> bool:
        return self.fetched_count < self.total_count


@dataclass
class PaginationState:
    """
    分页循环的状态机，三个终止条件各自独立判定。

    属性:
        page_size (int): 每页条数。
        max_pages (int): 最大页数。
        pages_fetched (int): 已请求页数。
        accumulated (int): 已累计订单数。
        total_count (int): 最近一页报告的总数。
        last_page_size (int): 最近一页的实际条数。
    """

    page_size: int
    max_pages: int
    pages_fetched: int = 0
    accumulated: int = 0
    total_count: int = 0
    last_page_size: int = 0

    @property
    def next_page(self) -> int:
        return self.pages_fetched + 1

    def record(self, page: OrderPage) -> None:
        self.pages_fetched += 1
        self.accumulated += len(page.items)
        self.total_count = page.total_count
        self.last_page_size = len(page.items)

    def total_reached(self) -> bool:
        return self.accumulated >= self.total_count

    def short_page(self) -> bool:
        return self.last_page_size < self.page_size

    def page_cap_reached(self) -> bool:
        return self.pages_fetched >= self.max_pages

    def stop_reason(self) -> Optional[FetchStop]:
        """按固定顺序返回首个成立的终止条件，均不成立时返回 None。"""
        if self.total_reached():
            return FetchStop.TOTAL_REACHED
        if self.short_page():
            return FetchStop.SHORT_PAGE
        if self.page_cap_reached():
            return FetchStop.PAGE_CAP_REACHED
        return None


async def fetch_orders(
    source: OrderSource,
    *,
    config: AnalyticsConfig,
    date_range: Optional[DateRange] = None,
    storefront_id: Optional[str] = None,
) -> FetchResult:
    """
    功能说明:
        逐页请求订单，直到总数取满、出现不满页或达到页数上限。
        订单源抛出的异常与任务取消均原样向上传播，不返回部分结果。
    参数:
        source (OrderSource): 上游订单源。
        config (AnalyticsConfig): 提供分页大小与页数上限。
        date_range (Optional[DateRange]): 已校验的时间范围。
        storefront_id (Optional[str]): 店铺过滤条件。
    返回:
        FetchResult: 取回的订单及上游总数。
    """
    date_range = date_range or DateRange()
    state = PaginationState(page_size=config.page_size, max_pages=config.max_pages)
    orders: List[Order] = []

    while True:
        request = OrderPageRequest(
            page=state.next_page,
            page_size=config.page_size,
            storefront_id=storefront_id or None,
            date_from=date_range.start,
            date_to=date_range.end,
        )
        page = await source.list_orders(request)
        orders.extend(page.items)
        state.record(page)
        logger.debug(
            "订单第 %s 页：%s 条，累计 %s/%s",
            request.page, len(page.items), state.accumulated, state.total_count,
        )
        reason = state.stop_reason()
        if reason is not None:
            break

    result = FetchResult(
        orders=orders,
        total_count=state.total_count,
        pages_fetched=state.pages_fetched,
        stop_reason=reason,
    )
    if result.is_partial:
        logger.warning(
            "订单未取全：%s/%s（source=%s, pages=%s, reason=%s）",
            result.fetched_count, result.total_count, source.name, result.pages_fetched, reason.value,
        )
    else:
        logger.debug("取数结束：%s 条，原因 %s", result.fetched_count, reason.value)
    return result
