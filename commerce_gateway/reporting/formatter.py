"""将分析结果转换为对外返回的 JSON 文档与控制台文本。"""

from __future__ import annotations

from typing import Any, Dict, List

from ..metrics.anonymity import period_suppression_note, product_suppression_note
from ..metrics.calculations import (
    NoOrders,
    OrderSummary,
    OrderTrends,
    StatusDistribution,
    TopProducts,
)
from ..pipeline.fetcher import FetchResult
from ..pipeline.pipeline import AnalyticsRun

NO_ORDERS_MESSAGE = "No orders found for the specified period"
# 起止时间即使未提供也保留字段，与调用方输入一一对应。
_ALWAYS_PRESENT = {"periodStart", "periodEnd"}


def no_orders_document() -> Dict[str, Any]:
    return {"totalOrders": 0, "message": NO_ORDERS_MESSAGE}


def partial_fetch_note(fetch: FetchResult) -> str | None:
    """取数未覆盖上游总数时返回提示文本，否则返回 None。"""
    if not fetch.is_partial:
        return None
    return f"Analysis based on {fetch.fetched_count} of {fetch.total_count} orders"


def run_to_document(run: AnalyticsRun[Any]) -> Dict[str, Any]:
    """
    功能说明:
        根据结果类型生成对应的工具返回文档，省略值为 None 的可选字段。
    参数:
        run (AnalyticsRun[Any]): 管道执行结果。
    返回:
        Dict[str, Any]: 可 JSON 序列化的文档。
    """
    result = run.result
    if isinstance(result, NoOrders):
        return no_orders_document()
    if isinstance(result, OrderSummary):
        document = summary_to_dict(result, run)
    elif isinstance(result, StatusDistribution):
        document = status_distribution_to_dict(result, run)
    elif isinstance(result, OrderTrends):
        document = trends_to_dict(result, run)
    elif isinstance(result, TopProducts):
        document = top_products_to_dict(result, run)
    else:
        raise TypeError(f"Unsupported analytics result: {type(result).__name__}")
    return {key: value for key, value in document.items() if value is not None or key in _ALWAYS_PRESENT}


def summary_to_dict(summary: OrderSummary, run: AnalyticsRun[Any]) -> Dict[str, Any]:
    return {
        "totalOrders": summary.total_orders,
        "fetchedOrders": summary.fetched_orders,
        "totalRevenue": float(summary.total_revenue),
        "avgOrderValue": float(summary.avg_order_value),
        "ordersByStatus": {status.value: count for status, count in summary.orders_by_status.items()},
        "periodStart": run.period_start,
        "periodEnd": run.period_end,
        "note": partial_fetch_note(run.fetch),
    }


def status_distribution_to_dict(distribution: StatusDistribution, run: AnalyticsRun[Any]) -> Dict[str, Any]:
    return {
        "totalOrders": distribution.total_orders,
        "fetchedOrders": distribution.fetched_orders,
        "statusBreakdown": [
            {"status": share.status.value, "count": share.count, "percentage": share.percentage}
            for share in distribution.breakdown
        ],
        "conversionRate": distribution.conversion_rate,
        "cancellationRate": distribution.cancellation_rate,
        "periodStart": run.period_start,
        "periodEnd": run.period_end,
        "note": partial_fetch_note(run.fetch),
    }


def trends_to_dict(trends: OrderTrends, run: AnalyticsRun[Any]) -> Dict[str, Any]:
    suppressed = trends.suppressed_periods
    return {
        "totalOrders": trends.total_orders,
        "fetchedOrders": trends.fetched_orders,
        "granularity": trends.granularity.value,
        "periods": [
            {
                "period": period.period,
                "orderCount": period.order_count,
                "revenue": float(period.revenue),
                "avgOrderValue": float(period.avg_order_value),
            }
            for period in trends.periods
        ],
        "suppressedPeriods": suppressed if suppressed > 0 else None,
        "suppressionNote": period_suppression_note(suppressed, trends.threshold) if suppressed > 0 else None,
        "note": partial_fetch_note(run.fetch),
    }


def top_products_to_dict(ranking: TopProducts, run: AnalyticsRun[Any]) -> Dict[str, Any]:
    if ranking.products:
        note = partial_fetch_note(run.fetch)
    else:
        note = product_suppression_note(ranking.threshold)
    return {
        "totalOrders": ranking.total_orders,
        "fetchedOrders": ranking.fetched_orders,
        "products": [
            {
                "productId": product.product_id,
                "name": product.name,
                "sku": product.sku,
                "totalQuantity": product.total_quantity,
                "totalRevenue": float(product.total_revenue),
            }
            for product in ranking.products
        ],
        "periodStart": run.period_start,
        "periodEnd": run.period_end,
        "note": note,
    }


def format_text_report(document: Dict[str, Any]) -> str:
    """
    功能说明:
        生成适合在控制台展示的分析文本。
    参数:
        document (Dict[str, Any]): ``run_to_document`` 或服务层返回的文档。
    返回:
        str: 多行字符串。
    """
    if "error" in document:
        return f"Error: {document['error']}"
    if "message" in document:
        return document["message"]

    lines: List[str] = []
    window = f"{document.get('periodStart') or '-'} to {document.get('periodEnd') or '-'}"
    lines.append(f"Window: {window}")
    lines.append(f"Orders: {document['fetchedOrders']} fetched of {document['totalOrders']}")

    if "ordersByStatus" in document:
        revenue = "$" + format(document["totalRevenue"], ",.2f")
        aov = "$" + format(document["avgOrderValue"], ",.2f")
        lines.append(f"Revenue {revenue}, AOV {aov}")
        lines.append(
            "By status: "
            + ", ".join(f"{status} {count}" for status, count in document["ordersByStatus"].items())
        )
    elif "statusBreakdown" in document:
        for share in document["statusBreakdown"]:
            lines.append(f"  {share['status']:<10} {share['count']:>6}  {share['percentage']:.1f}%")
        lines.append(
            f"Conversion {document['conversionRate']:.1f}%, "
            f"Cancellation {document['cancellationRate']:.1f}%"
        )
    elif "periods" in document:
        lines.append(f"Granularity: {document['granularity']}")
        for period in document["periods"]:
            revenue = "$" + format(period["revenue"], ",.2f")
            lines.append(f"  {period['period']}  orders {period['orderCount']:>5}  revenue {revenue}")
        if document.get("suppressionNote"):
            lines.append(document["suppressionNote"])
    elif "products" in document:
        if document["products"]:
            lines.append("Top products (by quantity):")
        for idx, product in enumerate(document["products"], start=1):
            revenue = "$" + format(product["totalRevenue"], ",.2f")
            lines.append(
                f"{idx}. {product['name']} ({product['sku']}) - "
                f"Units {product['totalQuantity']}, Revenue {revenue}"
            )

    if document.get("note"):
        lines.append(f"Note: {document['note']}")
    return "\n".join(lines)
