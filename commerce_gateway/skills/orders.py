"""围绕订单分析场景的具体 Skill 实现。

这些 Skill 是对 ``services`` 层的二次封装，使 MCP 服务与命令行
以相同的名称、说明和参数调用四种统计。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .base import Skill
from ..services import (
    ServiceContext,
    order_status_distribution,
    order_summary,
    order_trends,
    run_statistic,
    top_selling_products,
)


@dataclass
class _ContextBoundSkill(Skill):
    """带有 ServiceContext 依赖的技能基类。"""

    context: ServiceContext


@dataclass
class OrderSummarySkill(_ContextBoundSkill):
    """订单总数、销售额、客单价与状态计数。"""

    def __init__(self, context: ServiceContext) -> None:
        super().__init__(
            name="order_summary",
            description=(
                "Get aggregated order statistics: total count, revenue, "
                "average order value, breakdown by status."
            ),
            context=context,
        )

    async def invoke(
        self,
        *,
        period_start: Optional[str] = None,
        period_end: Optional[str] = None,
        storefront_id: Optional[str] = None,
        **_: Any,
    ) -> Dict[str, Any]:
        return await order_summary(
            self.context,
            period_start=period_start,
            period_end=period_end,
            storefront_id=storefront_id,
        )


@dataclass
class OrderStatusDistributionSkill(_ContextBoundSkill):
    """订单状态占比、转化率与取消率。"""

    def __init__(self, context: ServiceContext) -> None:
        super().__init__(
            name="order_status_distribution",
            description="Get order status breakdown with counts, percentages, and conversion rate.",
            context=context,
        )

    async def invoke(
        self,
        *,
        period_start: Optional[str] = None,
        period_end: Optional[str] = None,
        storefront_id: Optional[str] = None,
        **_: Any,
    ) -> Dict[str, Any]:
        return await order_status_distribution(
            self.context,
            period_start=period_start,
            period_end=period_end,
            storefront_id=storefront_id,
        )


@dataclass
class OrderTrendsSkill(_ContextBoundSkill):
    """按天、周、月统计订单趋势，小样本时间桶会被抑制。"""

    def __init__(self, context: ServiceContext) -> None:
        super().__init__(
            name="order_trends",
            description="Analyze order trends over time with configurable granularity (day, week, month).",
            context=context,
        )

    async def invoke(
        self,
        *,
        granularity: Optional[str] = None,
        period_start: Optional[str] = None,
        period_end: Optional[str] = None,
        storefront_id: Optional[str] = None,
        **_: Any,
    ) -> Dict[str, Any]:
        return await order_trends(
            self.context,
            granularity=granularity if granularity is not None else "day",
            period_start=period_start,
            period_end=period_end,
            storefront_id=storefront_id,
        )


@dataclass
class TopSellingProductsSkill(_ContextBoundSkill):
    """按销量排名的热销商品，不包含任何顾客信息。"""

    def __init__(self, context: ServiceContext) -> None:
        super().__init__(
            name="top_selling_products",
            description="Get best-selling products by quantity and revenue (aggregated, no customer data).",
            context=context,
        )

    async def invoke(
        self,
        *,
        limit: Optional[int] = None,
        period_start: Optional[str] = None,
        period_end: Optional[str] = None,
        storefront_id: Optional[str] = None,
        **_: Any,
    ) -> Dict[str, Any]:
        return await top_selling_products(
            self.context,
            limit=limit,
            period_start=period_start,
            period_end=period_end,
            storefront_id=storefront_id,
        )


def build_order_skills(context: ServiceContext) -> List[Skill]:
    """基于给定的 ``ServiceContext`` 构建全部订单分析技能。"""
    return [
        OrderSummarySkill(context),
        OrderStatusDistributionSkill(context),
        OrderTrendsSkill(context),
        TopSellingProductsSkill(context),
    ]


async def invoke_order_skill(context: ServiceContext, name: str, **kwargs: Any) -> Dict[str, Any]:
    """按名称调用技能；名称未注册时交由服务层返回 ``{"error": ...}``。"""
    for skill in build_order_skills(context):
        if skill.name == name:
            return await skill.invoke(**kwargs)
    return await run_statistic(context, name, **kwargs)
