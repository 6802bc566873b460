"""Skill 抽象与订单分析技能的统一入口。

订单分析的四种统计（汇总、状态分布、趋势、热销商品）都封装为 Skill，
MCP 服务与命令行共用同一组名称和说明。
"""

from .base import Skill
from .orders import (
    OrderStatusDistributionSkill,
    OrderSummarySkill,
    OrderTrendsSkill,
    TopSellingProductsSkill,
    build_order_skills,
    invoke_order_skill,
)

__all__ = [
    "Skill",
    "OrderSummarySkill",
    "OrderStatusDistributionSkill",
    "OrderTrendsSkill",
    "TopSellingProductsSkill",
    "build_order_skills",
    "invoke_order_skill",
]
