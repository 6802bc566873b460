"""
Tests for the order skills registry
"""

import pytest

from commerce_gateway.skills import (
    OrderTrendsSkill,
    TopSellingProductsSkill,
    build_order_skills,
    invoke_order_skill,
)

from conftest import ListOrderSource, line, make_order


class TestOrderSkills:
    def test_registry_names_match_tools(self, context_for):
        skills = build_order_skills(context_for(ListOrderSource([])))
        assert [skill.name for skill in skills] == [
            "order_summary",
            "order_status_distribution",
            "order_trends",
            "top_selling_products",
        ]
        assert all(skill.to_descriptor()["description"] for skill in skills)

    @pytest.mark.asyncio
    async def test_invoke_by_name(self, context_for):
        orders = [make_order(f"o{i}") for i in range(5)]
        document = await invoke_order_skill(context_for(ListOrderSource(orders)), "order_summary")
        assert document["totalOrders"] == 5

    @pytest.mark.asyncio
    async def test_unknown_name_returns_error(self, context_for):
        document = await invoke_order_skill(context_for(ListOrderSource([])), "customer_list")
        assert document["error"] == (
            "Unknown statistic: customer_list. Expected one of: order_summary, "
            "order_status_distribution, order_trends, top_selling_products"
        )

    @pytest.mark.asyncio
    async def test_trends_skill_defaults_to_day(self, context_for):
        orders = [make_order(f"o{i}") for i in range(5)]
        document = await OrderTrendsSkill(context_for(ListOrderSource(orders))).invoke(granularity=None)
        assert document["granularity"] == "day"

    @pytest.mark.asyncio
    async def test_trends_skill_rejects_empty_granularity(self, context_for):
        """Only a missing granularity falls back to day"""
        source = ListOrderSource([make_order(f"o{i}") for i in range(5)])
        document = await invoke_order_skill(context_for(source), "order_trends", granularity="")
        assert document == {"error": "granularity must be 'day', 'week', or 'month'"}
        assert source.requests == []

    @pytest.mark.asyncio
    async def test_top_products_skill_passes_limit(self, context_for):
        orders = [make_order(f"o{i}", items=[line("prod-1"), line("prod-2")]) for i in range(5)]
        skill = TopSellingProductsSkill(context_for(ListOrderSource(orders)))
        document = await skill.invoke(limit=1)
        assert len(document["products"]) == 1

    @pytest.mark.asyncio
    async def test_unused_arguments_are_ignored(self, context_for):
        orders = [make_order(f"o{i}") for i in range(5)]
        document = await invoke_order_skill(
            context_for(ListOrderSource(orders)), "order_status_distribution", limit=3
        )
        assert document["conversionRate"] == 100.0
