from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .config import AppConfig
from .data_sources.base import OrderSource
from .data_sources.mock_orders import MockOrderSource
from .data_sources.order_service import HttpOrderSource
from .errors import ValidationError
from .pipeline.pipeline import STATISTICS, OrderAnalyticsPipeline
from .reporting.formatter import run_to_document

logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    config: AppConfig
    source: OrderSource
    pipeline: OrderAnalyticsPipeline

    async def aclose(self) -> None:
        await self.source.aclose()


def create_service_context(
    config: AppConfig,
    *,
    source: Optional[OrderSource] = None,
) -> ServiceContext:
    if source is None:
        if config.order_service.use_mock:
            logger.info("ORDER_SERVICE_URL 未配置，使用模拟订单源")
            source = MockOrderSource()
        else:
            source = HttpOrderSource(config.order_service)
    pipeline = OrderAnalyticsPipeline(config=config.analytics, source=source)
    return ServiceContext(config=config, source=source, pipeline=pipeline)


def _validation_error(statistic: str, exc: ValidationError) -> Dict[str, Any]:
    logger.info("拒绝 %s 请求：%s", statistic, exc.message)
    return {"error": exc.message}


async def run_statistic(context: ServiceContext, statistic: str, **kwargs: Any) -> Dict[str, Any]:
    # 校验失败在本地转为 {"error": ...}；传输异常继续向上抛出。
    try:
        run = await context.pipeline.run(statistic, **kwargs)
    except ValidationError as exc:
        return _validation_error(statistic, exc)
    return run_to_document(run)


async def order_summary(
    context: ServiceContext,
    *,
    period_start: Optional[str] = None,
    period_end: Optional[str] = None,
    storefront_id: Optional[str] = None,
) -> Dict[str, Any]:
    return await run_statistic(
        context,
        "order_summary",
        period_start=period_start,
        period_end=period_end,
        storefront_id=storefront_id,
    )


async def order_status_distribution(
    context: ServiceContext,
    *,
    period_start: Optional[str] = None,
    period_end: Optional[str] = None,
    storefront_id: Optional[str] = None,
) -> Dict[str, Any]:
    return await run_statistic(
        context,
        "order_status_distribution",
        period_start=period_start,
        period_end=period_end,
        storefront_id=storefront_id,
    )


async def order_trends(
    context: ServiceContext,
    *,
    granularity: str = "day",
    period_start: Optional[str] = None,
    period_end: Optional[str] = None,
    storefront_id: Optional[str] = None,
) -> Dict[str, Any]:
    return await run_statistic(
        context,
        "order_trends",
        granularity=granularity,
        period_start=period_start,
        period_end=period_end,
        storefront_id=storefront_id,
    )


async def top_selling_products(
    context: ServiceContext,
    *,
    limit: Optional[int] = None,
    period_start: Optional[str] = None,
    period_end: Optional[str] = None,
    storefront_id: Optional[str] = None,
) -> Dict[str, Any]:
    return await run_statistic(
        context,
        "top_selling_products",
        limit=limit,
        period_start=period_start,
        period_end=period_end,
        storefront_id=storefront_id,
    )


def describe_configuration(context: ServiceContext) -> Dict[str, Any]:
    analytics = context.config.analytics
    return {
        "source": context.source.name,
        "statistics": list(STATISTICS),
        "pageSize": analytics.page_size,
        "maxPages": analytics.max_pages,
        "kAnonymityThreshold": analytics.k_anonymity_threshold,
        "maxRangeDays": analytics.max_range_days,
        "defaultTopLimit": analytics.default_top_limit,
        "maxTopLimit": analytics.max_top_limit,
    }
