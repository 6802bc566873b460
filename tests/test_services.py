"""
End-to-end tests for the service layer documents
"""

from datetime import datetime, timezone

import httpx
import pytest

from commerce_gateway.config import AnalyticsConfig, AppConfig, OrderServiceConfig
from commerce_gateway.data_sources.base import OrderStatus
from commerce_gateway.data_sources.mock_orders import MockOrderSource
from commerce_gateway.data_sources.order_service import HttpOrderSource
from commerce_gateway.services import (
    create_service_context,
    describe_configuration,
    order_status_distribution,
    order_summary,
    order_trends,
    run_statistic,
    top_selling_products,
)

from conftest import FailingOrderSource, ListOrderSource, line, make_order

TOOLS = [order_summary, order_status_distribution, order_trends, top_selling_products]


class TestValidationErrors:
    """Validation failures become error documents without touching the source"""

    @pytest.mark.asyncio
    async def test_inverted_range(self, context_for):
        source = ListOrderSource([make_order("o1")])
        context = context_for(source)
        document = await order_summary(context, period_start="2024-12-31", period_end="2024-01-01")
        assert document == {"error": "periodEnd must be after periodStart"}
        assert source.requests == []

    @pytest.mark.asyncio
    async def test_range_too_large(self, context_for):
        source = ListOrderSource([make_order("o1")])
        document = await order_status_distribution(
            context_for(source), period_start="2023-01-01", period_end="2024-06-01"
        )
        assert document == {"error": "Date range cannot exceed 1 year"}
        assert source.requests == []

    @pytest.mark.asyncio
    async def test_bad_granularity_skips_fetch(self, context_for):
        source = ListOrderSource([make_order("o1")])
        document = await order_trends(context_for(source), granularity="hour", period_start="bad")
        assert document == {"error": "granularity must be 'day', 'week', or 'month'"}
        assert source.requests == []

    @pytest.mark.asyncio
    async def test_unknown_statistic(self, context_for):
        document = await run_statistic(context_for(ListOrderSource([])), "refund_rate")
        assert document["error"].startswith("Unknown statistic: refund_rate.")


class TestEmptyResults:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("tool", TOOLS)
    async def test_every_tool_reports_no_orders(self, context_for, tool):
        document = await tool(context_for(ListOrderSource([])))
        assert document == {"totalOrders": 0, "message": "No orders found for the specified period"}


class TestDocuments:
    @pytest.mark.asyncio
    async def test_summary_document(self, context_for):
        orders = [
            make_order("o1", OrderStatus.COMPLETED, items=[line(price="100.00")]),
            make_order("o2", OrderStatus.CANCELLED, items=[line(price="50.00")]),
        ]
        document = await order_summary(
            context_for(ListOrderSource(orders)),
            period_start="2024-03-01",
            period_end="2024-03-31",
        )
        assert document["totalOrders"] == 2
        assert document["fetchedOrders"] == 2
        assert document["totalRevenue"] == 150.0
        assert document["avgOrderValue"] == 75.0
        assert document["ordersByStatus"]["completed"] == 1
        assert document["ordersByStatus"]["confirmed"] == 0
        assert document["periodStart"] == "2024-03-01"
        assert document["periodEnd"] == "2024-03-31"
        assert "note" not in document

    @pytest.mark.asyncio
    async def test_open_period_echoes_none(self, context_for):
        document = await order_summary(context_for(ListOrderSource([make_order("o1")])))
        assert document["periodStart"] is None
        assert document["periodEnd"] is None

    @pytest.mark.asyncio
    async def test_top_products_document(self, context_for):
        orders = [
            make_order(f"k{i}", items=[line("prod-003", "49.99", 2, sku="SKU-KTL-03", name="Electric Kettle")])
            for i in range(6)
        ]
        document = await top_selling_products(context_for(ListOrderSource(orders)))
        assert document["products"] == [
            {
                "productId": "prod-003",
                "name": "Electric Kettle",
                "sku": "SKU-KTL-03",
                "totalQuantity": 12,
                "totalRevenue": 599.88,
            }
        ]
        assert "note" not in document

    @pytest.mark.asyncio
    async def test_top_products_below_threshold(self, context_for):
        orders = [make_order(f"s{i}", items=[line("prod-001")]) for i in range(3)]
        document = await top_selling_products(context_for(ListOrderSource(orders)))
        assert document["products"] == []
        assert "k-anonymity" in document["note"]

    @pytest.mark.asyncio
    async def test_trends_document_reports_suppression(self, context_for):
        day_one = datetime(2024, 3, 1, 9, tzinfo=timezone.utc)
        day_two = datetime(2024, 3, 2, 9, tzinfo=timezone.utc)
        orders = [make_order(f"a{i}", created_at=day_one) for i in range(5)]
        orders += [make_order(f"b{i}", created_at=day_two) for i in range(2)]
        document = await order_trends(context_for(ListOrderSource(orders)), granularity="day")
        assert document["granularity"] == "day"
        assert [period["period"] for period in document["periods"]] == ["2024-03-01"]
        assert document["suppressedPeriods"] == 1
        assert document["suppressionNote"] == (
            "1 period(s) suppressed due to k-anonymity threshold (<5 orders)"
        )

    @pytest.mark.asyncio
    async def test_trends_without_suppression_omit_keys(self, context_for):
        day_one = datetime(2024, 3, 1, 9, tzinfo=timezone.utc)
        orders = [make_order(f"a{i}", created_at=day_one) for i in range(5)]
        document = await order_trends(context_for(ListOrderSource(orders)))
        assert "suppressedPeriods" not in document
        assert "suppressionNote" not in document

    @pytest.mark.asyncio
    async def test_partial_fetch_adds_note(self):
        orders = [make_order(f"p{i:04d}") for i in range(30)]
        config = AppConfig(
            analytics=AnalyticsConfig(page_size=10, max_pages=2),
            order_service=OrderServiceConfig(),
        )
        context = create_service_context(config, source=ListOrderSource(orders))
        document = await order_status_distribution(context)
        assert document["fetchedOrders"] == 20
        assert document["totalOrders"] == 30
        assert document["note"] == "Analysis based on 20 of 30 orders"

    @pytest.mark.asyncio
    async def test_storefront_filter_reaches_source(self, context_for):
        source = ListOrderSource([make_order("o1")])
        await order_summary(context_for(source), storefront_id="store-outlet")
        assert source.requests[0].storefront_id == "store-outlet"


class TestTransportErrors:
    @pytest.mark.asyncio
    async def test_upstream_errors_propagate(self, context_for):
        context = context_for(FailingOrderSource(httpx.ReadTimeout("timed out")))
        with pytest.raises(httpx.ReadTimeout):
            await order_summary(context)


class TestServiceContext:
    def test_mock_source_when_url_missing(self):
        context = create_service_context(
            AppConfig(analytics=AnalyticsConfig(), order_service=OrderServiceConfig())
        )
        assert isinstance(context.source, MockOrderSource)

    @pytest.mark.asyncio
    async def test_http_source_when_url_configured(self):
        context = create_service_context(
            AppConfig(
                analytics=AnalyticsConfig(),
                order_service=OrderServiceConfig(base_url="https://orders.example.test"),
            )
        )
        assert isinstance(context.source, HttpOrderSource)
        await context.aclose()

    def test_describe_configuration(self, context_for):
        payload = describe_configuration(context_for(ListOrderSource([])))
        assert payload["source"] == "list_source"
        assert payload["pageSize"] == 50
        assert payload["maxPages"] == 20
        assert payload["kAnonymityThreshold"] == 5
        assert payload["statistics"] == [
            "order_summary",
            "order_status_distribution",
            "order_trends",
            "top_selling_products",
        ]
