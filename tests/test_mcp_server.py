"""
Tests for the MCP server wiring, CLI and bridge helpers
"""

import json
from pathlib import Path
from types import SimpleNamespace

import pytest
from mcp.client.stdio import get_default_environment

from commerce_gateway import cli, mcp_bridge, mcp_server

from conftest import ListOrderSource, make_order

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _ctx(service_context):
    return SimpleNamespace(
        request_context=SimpleNamespace(
            lifespan_context=mcp_server.GatewayAppContext(service_context=service_context)
        )
    )


class TestTools:
    @pytest.mark.asyncio
    async def test_summary_tool_uses_lifespan_context(self, context_for):
        context = context_for(ListOrderSource([make_order(f"o{i}") for i in range(3)]))
        document = await mcp_server.tool_order_summary(_ctx(context), period_start="2024-01-01")
        assert document["totalOrders"] == 3
        assert document["periodStart"] == "2024-01-01"

    @pytest.mark.asyncio
    async def test_trends_tool_validation_error(self, context_for):
        context = context_for(ListOrderSource([]))
        document = await mcp_server.tool_order_trends(_ctx(context), granularity="quarter")
        assert document == {"error": "granularity must be 'day', 'week', or 'month'"}

    @pytest.mark.asyncio
    async def test_global_context_fallback(self, context_for, monkeypatch):
        context = context_for(ListOrderSource([]))
        monkeypatch.setattr(mcp_server, "GLOBAL_SERVICE_CONTEXT", context)
        document = await mcp_server.tool_top_selling_products(SimpleNamespace(), limit=3)
        assert document["totalOrders"] == 0

    def test_missing_context_raises(self, monkeypatch):
        monkeypatch.setattr(mcp_server, "GLOBAL_SERVICE_CONTEXT", None)
        with pytest.raises(RuntimeError):
            mcp_server._service(SimpleNamespace())


class TestLifespan:
    @pytest.mark.asyncio
    async def test_lifespan_builds_and_closes_context(self, monkeypatch):
        monkeypatch.delenv("ORDER_SERVICE_URL", raising=False)
        async with mcp_server.app_lifespan(mcp_server.mcp) as app_context:
            assert app_context.service_context.source.name == "mock_order_service"
            assert mcp_server.GLOBAL_SERVICE_CONTEXT is app_context.service_context
            payload = mcp_server.read_configuration()
            assert [skill["name"] for skill in payload["skills"]][0] == "order_summary"
        assert mcp_server.GLOBAL_SERVICE_CONTEXT is None


class TestPrompt:
    def test_sales_report_prompt(self):
        text = mcp_server.sales_report_prompt("2024-01-01", "2024-01-31", "store-main")
        assert "store-main" in text
        for tool in ("order_summary", "order_status_distribution", "order_trends", "top_selling_products"):
            assert tool in text
        assert "personally identifiable" in text


class TestCli:
    def test_build_arguments_for_trends(self):
        args = cli.parse_args(["order_trends", "--start", "2024-01-01", "--granularity", "week"])
        assert cli.build_arguments(args) == {
            "period_start": "2024-01-01",
            "period_end": None,
            "storefront_id": None,
            "granularity": "week",
        }

    def test_window_days_fills_missing_bounds(self):
        args = cli.parse_args(["top_selling_products", "--window-days", "7", "--limit", "3"])
        arguments = cli.build_arguments(args)
        assert arguments["period_start"] is not None
        assert arguments["period_end"].endswith("T23:59:59")
        assert arguments["limit"] == 3

    def test_run_cli_writes_json(self, tmp_path, monkeypatch, capsys):
        monkeypatch.delenv("ORDER_SERVICE_URL", raising=False)
        output = tmp_path / "report.json"
        cli.run_cli(["order_summary", "--window-days", "14", "--output-json", str(output)])
        document = json.loads(output.read_text(encoding="utf-8"))
        assert document["fetchedOrders"] > 0
        assert "Revenue $" in capsys.readouterr().out


class TestBridgeHelpers:
    def test_parse_args_accepts_json_or_spaces(self):
        assert mcp_bridge._parse_args('["-m", "commerce_gateway.mcp_server"]') == ["-m", "commerce_gateway.mcp_server"]
        assert mcp_bridge._parse_args("-m  commerce_gateway.mcp_server") == ["-m", "commerce_gateway.mcp_server"]

    def test_parse_env(self):
        assert mcp_bridge._parse_env('{"ORDER_SERVICE_URL": "http://x"}') == {"ORDER_SERVICE_URL": "http://x"}
        assert mcp_bridge._parse_env("[1, 2]") is None
        assert mcp_bridge._parse_env(None) is None


class TestBridgeRoundTrip:
    """Calls tools on a server spawned over stdio"""

    @pytest.mark.asyncio
    async def test_order_summary_over_stdio(self):
        env = {
            **get_default_environment(),
            "PYTHONPATH": str(PROJECT_ROOT),
            "MCP_SERVER_LOG_LEVEL": "WARNING",
        }
        document = await mcp_bridge.call_tool_async("order_summary", {}, env=env)
        assert document["totalOrders"] > 0
        assert document["fetchedOrders"] == document["totalOrders"]
        assert set(document["ordersByStatus"]) == {"pending", "confirmed", "completed", "cancelled", "unknown"}

    @pytest.mark.asyncio
    async def test_validation_error_over_stdio(self):
        env = {**get_default_environment(), "PYTHONPATH": str(PROJECT_ROOT)}
        document = await mcp_bridge.call_tool_async(
            "order_trends", {"granularity": "hour"}, env=env
        )
        assert document == {"error": "granularity must be 'day', 'week', or 'month'"}

    def test_cli_via_mcp_drops_unset_options(self, monkeypatch, capsys):
        calls = []

        def fake_call(tool_name, args):
            calls.append((tool_name, args))
            return {"error": "Date range cannot exceed 1 year"}

        monkeypatch.setattr(cli, "call_mcp_tool", fake_call)
        cli.run_cli(["top_selling_products", "--start", "2024-01-01", "--via-mcp"])
        assert calls == [("top_selling_products", {"period_start": "2024-01-01"})]
        assert "Error: Date range cannot exceed 1 year" in capsys.readouterr().out
