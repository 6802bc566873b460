"""订单分析的命令行入口，默认在进程内运行管道，也可经 MCP stdio 调用服务端工具。"""

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import AppConfig
from .mcp_bridge import call_mcp_tool
from .pipeline.pipeline import STATISTICS
from .reporting.formatter import format_text_report
from .services import create_service_context
from .skills import invoke_order_skill
from .utils.dates import recent_period


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    功能说明:
        构建并解析命令行参数，返回解析后的命名空间。
    参数:
        argv (Optional[List[str]]): 手动传入的参数，默认读取 ``sys.argv``。
    返回:
        argparse.Namespace: 包含用户指定的运行选项。
    """
    parser = argparse.ArgumentParser(description="Commerce gateway order analytics runner")
    parser.add_argument("statistic", choices=STATISTICS, help="Which statistic to compute.")
    parser.add_argument("--start", type=str, help="Optional period start, ISO 8601.")
    parser.add_argument("--end", type=str, help="Optional period end, ISO 8601.")
    parser.add_argument(
        "--window-days",
        type=int,
        help="Rolling window length in days, used when --start/--end are omitted.",
    )
    parser.add_argument("--storefront", type=str, help="Restrict to one storefront id.")
    parser.add_argument("--granularity", default="day", help="Bucket size for order_trends: day/week/month.")
    parser.add_argument("--limit", type=int, help="How many products order top_selling_products returns.")
    parser.add_argument("--output-json", type=Path, help="Path to save the JSON document.")
    parser.add_argument(
        "--via-mcp",
        action="store_true",
        help="Call the tool on a spawned MCP server over stdio instead of in-process.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable DEBUG logging.")
    return parser.parse_args(argv)


def build_arguments(args: argparse.Namespace) -> Dict[str, Any]:
    """
    功能说明:
        将命令行选项转换为技能调用参数。
    参数:
        args (argparse.Namespace): 解析后的命令行参数。
    返回:
        Dict[str, Any]: 传给 ``invoke_order_skill`` 的关键字参数。
    """
    period_start, period_end = args.start, args.end
    if args.window_days and not (period_start or period_end):
        start, end = recent_period(args.window_days)
        period_start, period_end = start.isoformat(), f"{end.isoformat()}T23:59:59"

    arguments: Dict[str, Any] = {
        "period_start": period_start,
        "period_end": period_end,
        "storefront_id": args.storefront,
    }
    if args.statistic == "order_trends":
        arguments["granularity"] = args.granularity
    if args.statistic == "top_selling_products":
        arguments["limit"] = args.limit
    return arguments


async def run_statistic_once(statistic: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
    context = create_service_context(AppConfig.from_env())
    try:
        return await invoke_order_skill(context, statistic, **arguments)
    finally:
        await context.aclose()


def run_cli(argv: Optional[List[str]] = None) -> None:
    """
    功能说明:
        命令行主入口：读取参数、执行统计、输出报告并按需写出 JSON。
    """
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    arguments = build_arguments(args)
    if args.via_mcp:
        # 工具参数不接受 null，未提供的选项交给服务端默认值。
        document = call_mcp_tool(
            args.statistic,
            {key: value for key, value in arguments.items() if value is not None},
        )
    else:
        document = asyncio.run(run_statistic_once(args.statistic, arguments))
    print(format_text_report(document))

    if args.output_json:
        args.output_json.parent.mkdir(parents=True, exist_ok=True)
        args.output_json.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
        print(f"JSON report written to: {args.output_json}")


if __name__ == "__main__":  # pragma: no cover
    run_cli()
