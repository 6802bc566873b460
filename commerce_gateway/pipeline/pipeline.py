from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, TypeVar, Union

from ..config import AnalyticsConfig
from ..data_sources.base import OrderSource
from ..errors import UnknownStatistic
from ..metrics.calculations import (
    Granularity,
    NoOrders,
    OrderSummary,
    OrderTrends,
    StatusDistribution,
    TopProducts,
    build_order_summary,
    build_order_trends,
    build_status_distribution,
    build_top_products,
    clamp_limit,
)
from ..utils.dates import DateRange, parse_date_range
from .fetcher import FetchResult, fetch_orders

ResultT = TypeVar("ResultT")

STATISTICS: List[str] = [
    "order_summary",
    "order_status_distribution",
    "order_trends",
    "top_selling_products",
]


@dataclass
class AnalyticsRun(Generic[ResultT]):
    """一次管道执行的产物，附带调用方原始的起止时间字符串。"""

    result: Union[ResultT, NoOrders]
    fetch: FetchResult
    period_start: Optional[str] = None
    period_end: Optional[str] = None


class OrderAnalyticsPipeline:
    """串联 校验 → 取数 → 聚合 → 抑制 的订单分析主流程，实例本身无请求间状态。"""

    def __init__(self, *, config: AnalyticsConfig, source: OrderSource) -> None:
        """初始化管道。

        参数:
            config: 分页、阈值、跨度等不可变参数。
            source: 实际的订单源实现（可为 HTTP 或模拟）。
        """
        self._config = config
        self._source = source

    @property
    def config(self) -> AnalyticsConfig:
        return self._config

    @property
    def source(self) -> OrderSource:
        return self._source

    async def order_summary(
        self,
        *,
        period_start: Optional[str] = None,
        period_end: Optional[str] = None,
        storefront_id: Optional[str] = None,
    ) -> AnalyticsRun[OrderSummary]:
        date_range = self._validate(period_start, period_end)
        fetched = await self._fetch(date_range, storefront_id)
        return AnalyticsRun(build_order_summary(fetched), fetched, period_start, period_end)

    async def status_distribution(
        self,
        *,
        period_start: Optional[str] = None,
        period_end: Optional[str] = None,
        storefront_id: Optional[str] = None,
    ) -> AnalyticsRun[StatusDistribution]:
        date_range = self._validate(period_start, period_end)
        fetched = await self._fetch(date_range, storefront_id)
        return AnalyticsRun(build_status_distribution(fetched), fetched, period_start, period_end)

    async def order_trends(
        self,
        *,
        granularity: str = "day",
        period_start: Optional[str] = None,
        period_end: Optional[str] = None,
        storefront_id: Optional[str] = None,
    ) -> AnalyticsRun[OrderTrends]:
        """执行趋势统计。

        参数:
            granularity: day / week / month，非法取值在取数前即被拒绝。
            period_start: 统计开始时间。
            period_end: 统计结束时间。
            storefront_id: 店铺过滤条件。

        返回:
            AnalyticsRun，result 为经过 k-匿名抑制的趋势或 NoOrders。
        """
        parsed_granularity = Granularity.parse(granularity)
        date_range = self._validate(period_start, period_end)
        fetched = await self._fetch(date_range, storefront_id)
        trends = build_order_trends(
            fetched,
            parsed_granularity,
            threshold=self._config.k_anonymity_threshold,
        )
        return AnalyticsRun(trends, fetched, period_start, period_end)

    async def top_products(
        self,
        *,
        limit: Optional[int] = None,
        period_start: Optional[str] = None,
        period_end: Optional[str] = None,
        storefront_id: Optional[str] = None,
    ) -> AnalyticsRun[TopProducts]:
        effective_limit = clamp_limit(
            limit,
            default=self._config.default_top_limit,
            maximum=self._config.max_top_limit,
        )
        date_range = self._validate(period_start, period_end)
        fetched = await self._fetch(date_range, storefront_id)
        ranking = build_top_products(
            fetched,
            limit=effective_limit,
            threshold=self._config.k_anonymity_threshold,
        )
        return AnalyticsRun(ranking, fetched, period_start, period_end)

    async def run(self, statistic: str, **kwargs: Any) -> AnalyticsRun[Any]:
        """按统计名称分派到对应的聚合流程，名称未注册时抛出 UnknownStatistic。"""
        handlers: Dict[str, Callable[..., Awaitable[AnalyticsRun[Any]]]] = {
            "order_summary": self.order_summary,
            "order_status_distribution": self.status_distribution,
            "order_trends": self.order_trends,
            "top_selling_products": self.top_products,
        }
        handler = handlers.get(statistic)
        if handler is None:
            raise UnknownStatistic(statistic, STATISTICS)
        return await handler(**kwargs)

    def _validate(self, period_start: Optional[str], period_end: Optional[str]) -> DateRange:
        return parse_date_range(period_start, period_end, max_days=self._config.max_range_days)

    async def _fetch(self, date_range: DateRange, storefront_id: Optional[str]) -> FetchResult:
        return await fetch_orders(
            self._source,
            config=self._config,
            date_range=date_range,
            storefront_id=storefront_id,
        )
