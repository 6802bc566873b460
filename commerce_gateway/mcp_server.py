"""Commerce Gateway MCP 服务模块，基于 FastMCP 暴露订单分析工具、资源与提示模板。"""

import argparse
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from types import MethodType
from typing import Any, Dict, List, Optional

from typing_extensions import TypedDict

from mcp.server.fastmcp import Context, FastMCP
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response
from starlette.routing import Route

from commerce_gateway.config import AppConfig
from commerce_gateway.services import (
    ServiceContext,
    create_service_context,
    describe_configuration,
    order_status_distribution as _order_status_distribution,
    order_summary as _order_summary,
    order_trends as _order_trends,
    top_selling_products as _top_selling_products,
)
from commerce_gateway.skills import build_order_skills


logger = logging.getLogger(__name__)
logging.basicConfig(level=os.getenv('MCP_SERVER_LOG_LEVEL', 'INFO').upper(), format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')

GLOBAL_SERVICE_CONTEXT: Optional[ServiceContext] = None


class SkillDescriptorPayload(TypedDict):
    name: str
    description: str


class ConfigurationPayload(TypedDict):
    source: str
    statistics: List[str]
    pageSize: int
    maxPages: int
    kAnonymityThreshold: int
    maxRangeDays: int
    defaultTopLimit: int
    maxTopLimit: int
    skills: List[SkillDescriptorPayload]


class GatewayAppContext:
    """封装 MCP 生命周期中共享的业务依赖。

    Attributes:
        service_context (ServiceContext): 包含订单源与分析管道的聚合上下文。
    """

    def __init__(self, service_context: ServiceContext) -> None:
        self.service_context = service_context


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[GatewayAppContext]:
    """FastMCP 生命周期钩子，创建并共享业务上下文，退出时关闭订单源连接。

    Args:
        server (FastMCP): FastMCP 框架传入的服务器实例，本实现中仅为保持签名一致。

    Yields:
        GatewayAppContext: 包含业务依赖的上下文对象，供请求期间复用。
    """

    config = AppConfig.from_env()
    service_context = create_service_context(config)
    logger.info(
        "Order analytics ready: source=%s page_size=%s max_pages=%s k=%s",
        service_context.source.name,
        config.analytics.page_size,
        config.analytics.max_pages,
        config.analytics.k_anonymity_threshold,
    )
    global GLOBAL_SERVICE_CONTEXT
    GLOBAL_SERVICE_CONTEXT = service_context
    try:
        yield GatewayAppContext(service_context=service_context)
    finally:
        GLOBAL_SERVICE_CONTEXT = None
        await service_context.aclose()


mcp = FastMCP(
    name="Commerce Gateway",
    instructions=(
        "Expose e-commerce order analytics through MCP tools. "
        "All statistics are aggregated; groups smaller than the k-anonymity "
        "threshold are suppressed and no customer data is returned."
    ),
    lifespan=app_lifespan,
    streamable_http_path="/mcp",
)

_original_streamable_http_app = mcp.streamable_http_app


def _streamable_http_app_with_cors(self: FastMCP):
    app = _original_streamable_http_app()

    async def _handle_preflight(request):
        requested_headers = request.headers.get("Access-Control-Request-Headers", "")
        return Response(
            status_code=204,
            headers={
                "Access-Control-Allow-Origin": "*",
                "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
                "Access-Control-Allow-Headers": requested_headers or "*",
                "Access-Control-Max-Age": "600",
            },
        )

    app.router.routes.insert(
        0,
        Route(self.settings.streamable_http_path, _handle_preflight, methods=["OPTIONS"]),
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["MCP-Session-Id"],
    )
    return app


mcp.streamable_http_app = MethodType(_streamable_http_app_with_cors, mcp)


def _service(ctx: Context) -> ServiceContext:
    """从请求上下文里提取共享业务依赖。

    Args:
        ctx (Context): FastMCP 提供的请求上下文。

    Returns:
        ServiceContext: 生命周期内构建的业务上下文实例。
    """

    try:
        return ctx.request_context.lifespan_context.service_context
    except (AttributeError, ValueError):
        pass
    if GLOBAL_SERVICE_CONTEXT is not None:
        return GLOBAL_SERVICE_CONTEXT
    raise RuntimeError("Service context is not available; lifespan may not be initialized.")


@mcp.resource("commerce-gateway://config", mime_type="application/json")
def read_configuration() -> ConfigurationPayload:
    """返回当前订单分析的限制参数与可用统计，供客户端参考。

    Returns:
        ConfigurationPayload: 分页、阈值、跨度与技能列表。
    """

    if GLOBAL_SERVICE_CONTEXT is None:
        raise RuntimeError("Service context is not available; lifespan may not be initialized.")
    settings = describe_configuration(GLOBAL_SERVICE_CONTEXT)
    skills = [
        SkillDescriptorPayload(name=skill.name, description=skill.description)
        for skill in build_order_skills(GLOBAL_SERVICE_CONTEXT)
    ]
    return ConfigurationPayload(skills=skills, **settings)


@mcp.tool(name="order_summary")
async def tool_order_summary(
    ctx: Context,
    period_start: Optional[str] = None,
    period_end: Optional[str] = None,
    storefront_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Get aggregated order statistics: total count, revenue, average order value, breakdown by status.

    Args:
        ctx (Context): FastMCP 请求上下文。
        period_start (Optional[str]): 统计开始时间（ISO 8601，例如 2024-01-01）。
        period_end (Optional[str]): 统计结束时间（ISO 8601，例如 2024-12-31）。
        storefront_id (Optional[str]): 限定分析范围的店铺 ID。

    Returns:
        Dict[str, Any]: 汇总文档、无订单提示或 ``{"error": ...}``。
    """

    return await _order_summary(
        _service(ctx),
        period_start=period_start,
        period_end=period_end,
        storefront_id=storefront_id,
    )


@mcp.tool(name="order_status_distribution")
async def tool_order_status_distribution(
    ctx: Context,
    period_start: Optional[str] = None,
    period_end: Optional[str] = None,
    storefront_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Get order status breakdown with counts, percentages, and conversion rate.

    Args:
        ctx (Context): FastMCP 请求上下文。
        period_start (Optional[str]): 统计开始时间（ISO 8601）。
        period_end (Optional[str]): 统计结束时间（ISO 8601）。
        storefront_id (Optional[str]): 限定分析范围的店铺 ID。

    Returns:
        Dict[str, Any]: 状态分布文档、无订单提示或 ``{"error": ...}``。
    """

    return await _order_status_distribution(
        _service(ctx),
        period_start=period_start,
        period_end=period_end,
        storefront_id=storefront_id,
    )


@mcp.tool(name="order_trends")
async def tool_order_trends(
    ctx: Context,
    period_start: Optional[str] = None,
    period_end: Optional[str] = None,
    granularity: str = "day",
    storefront_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Analyze order trends over time with configurable granularity (day, week, month).

    Args:
        ctx (Context): FastMCP 请求上下文。
        period_start (Optional[str]): 统计开始时间（ISO 8601）。
        period_end (Optional[str]): 统计结束时间（ISO 8601）。
        granularity (str): 时间粒度：day、week 或 month，默认 day。
        storefront_id (Optional[str]): 限定分析范围的店铺 ID。

    Returns:
        Dict[str, Any]: 趋势文档（含被抑制的时间桶数量）、无订单提示或 ``{"error": ...}``。
    """

    return await _order_trends(
        _service(ctx),
        granularity=granularity,
        period_start=period_start,
        period_end=period_end,
        storefront_id=storefront_id,
    )


@mcp.tool(name="top_selling_products")
async def tool_top_selling_products(
    ctx: Context,
    period_start: Optional[str] = None,
    period_end: Optional[str] = None,
    limit: int = 10,
    storefront_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Get best-selling products by quantity and revenue (aggregated, no customer data).

    Args:
        ctx (Context): FastMCP 请求上下文。
        period_start (Optional[str]): 统计开始时间（ISO 8601）。
        period_end (Optional[str]): 统计结束时间（ISO 8601）。
        limit (int): 返回商品数量，默认 10，最大 50。
        storefront_id (Optional[str]): 限定分析范围的店铺 ID。

    Returns:
        Dict[str, Any]: 热销商品文档、无订单提示或 ``{"error": ...}``。
    """

    return await _top_selling_products(
        _service(ctx),
        limit=limit,
        period_start=period_start,
        period_end=period_end,
        storefront_id=storefront_id,
    )


@mcp.prompt(name="sales_report")
def sales_report_prompt(
    period_start: str,
    period_end: str,
    storefront_id: Optional[str] = None,
) -> str:
    """Generate a sales summary report for a given period from the order analytics tools."""

    scope = f"for storefront '{storefront_id}'" if storefront_id else "across all storefronts"
    steps: List[str] = [
        "1. Call 'order_summary' for total orders, revenue and average order value.",
        "2. Call 'order_status_distribution' for the status breakdown, conversion and cancellation rates.",
        "3. Call 'order_trends' with granularity 'day' (or 'week' for periods longer than a month).",
        "4. Call 'top_selling_products' for the best sellers by quantity and revenue.",
    ]
    return "\n".join(
        [
            "You are a sales analytics assistant for an e-commerce platform.",
            "",
            f"Generate a sales report {scope} for the period {period_start} to {period_end}.",
            "",
            "Steps:",
            *steps,
            "",
            "Important:",
            "- If a tool returns a 'note', mention that the figures may undercount.",
            "- Suppressed periods or products are hidden for privacy; do not try to infer them.",
            "- Do NOT include any personally identifiable information.",
            "- Format the report in markdown with tables where appropriate.",
        ]
    )


def main(argv: Optional[list[str]] = None) -> None:
    """命令行入口，支持选择传输方式与监听参数。

    Args:
        argv (Optional[list[str]]): 手动传入的参数列表，通常由命令行自动提供。
    """

    parser = argparse.ArgumentParser(
        description="Run the Commerce Gateway MCP server."
    )
    parser.add_argument(
        "transport",
        nargs="?",
        default="stdio",
        choices=["stdio", "sse", "streamable-http"],
        help="Transport mechanism to expose (default: stdio).",
    )
    parser.add_argument("--host", default=None, help="Optional host binding for HTTP-based transports.")
    parser.add_argument("--port", type=int, default=None, help="Optional port binding for HTTP-based transports.")
    args = parser.parse_args(argv)

    if args.host:
        mcp.settings.host = args.host
    if args.port is not None:
        mcp.settings.port = args.port

    logger.info("Starting MCP server transport=%s host=%s port=%s streamable_http_path=%s",
                args.transport, mcp.settings.host, mcp.settings.port, mcp.settings.streamable_http_path)

    mcp.run(transport=args.transport)


if __name__ == "__main__":
    main()
