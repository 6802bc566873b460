"""MCP 桥接模块，使用官方 Python SDK 通过 stdio 方式调用订单分析工具。"""

from __future__ import annotations

import asyncio
import json
import os
import sys
from typing import Any, Dict, Optional

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.types import TextContent

# 默认用于启动 MCP 服务器的可执行命令，可通过环境变量覆盖。
DEFAULT_COMMAND = os.getenv("MCP_BRIDGE_COMMAND", sys.executable)
# 以 JSON 数组形式存储的命令行参数，默认以当前解释器执行 `-m commerce_gateway.mcp_server`。
DEFAULT_ARGS = os.getenv(
    "MCP_BRIDGE_ARGS",
    json.dumps(["-m", "commerce_gateway.mcp_server"]),
)
# 可选的环境变量补丁，例如注入 ORDER_SERVICE_URL。
DEFAULT_ENV = os.getenv("MCP_BRIDGE_ENV")


def _parse_args(raw: str) -> list[str]:
    """将字符串形式的命令行参数解析为列表。

    参数:
        raw (str): 以 JSON 数组或空格分隔方式提供的参数字符串。

    返回:
        list[str]: 解析后的参数列表。
    """

    try:
        value = json.loads(raw)
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            return value
    except json.JSONDecodeError:
        pass
    return [item for item in raw.split(" ") if item]


def _parse_env(raw: Optional[str]) -> Optional[Dict[str, str]]:
    """解析子进程需要的环境变量补丁，非法输入返回 ``None``。"""

    if not raw:
        return None
    try:
        value = json.loads(raw)
        if isinstance(value, dict) and all(isinstance(k, str) and isinstance(v, str) for k, v in value.items()):
            return value
    except json.JSONDecodeError:
        pass
    return None


def _server_parameters(env: Optional[Dict[str, str]] = None) -> StdioServerParameters:
    """构建 stdio 传输所需的服务器启动参数。

    参数:
        env (Optional[Dict[str, str]]): 显式传入的环境变量，优先于 ``MCP_BRIDGE_ENV``。

    返回:
        StdioServerParameters: 可执行文件、参数与环境变量。
    """

    return StdioServerParameters(
        command=DEFAULT_COMMAND,
        args=_parse_args(DEFAULT_ARGS),
        env=env if env is not None else _parse_env(DEFAULT_ENV),
    )


async def call_tool_async(
    tool_name: str,
    arguments: Dict[str, Any],
    *,
    env: Optional[Dict[str, str]] = None,
) -> Any:
    """异步调用 MCP 工具，优先返回结构化结果。

    参数:
        tool_name (str): 工具名称，例如 ``order_summary``。
        arguments (Dict[str, Any]): 工具参数，必须可被 JSON 序列化。
        env (Optional[Dict[str, str]]): 子进程环境变量。

    返回:
        Any: 结构化结果；服务器只返回文本时尝试按 JSON 解析。

    异常:
        RuntimeError: 工具调用失败或服务器返回错误状态。
    """

    params = _server_parameters(env)
    async with stdio_client(params) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()
            result = await session.call_tool(tool_name, arguments=arguments)

            texts = [block.text for block in result.content if isinstance(block, TextContent)]
            if getattr(result, "isError", False):
                raise RuntimeError(
                    f"MCP tool '{tool_name}' failed: {'; '.join(texts) if texts else 'unknown error'}"
                )

            structured = getattr(result, "structuredContent", None)
            if structured is not None:
                return structured
            if not texts:
                return None
            try:
                return json.loads(texts[0])
            except json.JSONDecodeError:
                return texts[0]


def call_mcp_tool(tool_name: str, args: Dict[str, Any]) -> Any:
    """同步接口，封装异步 MCP 工具调用流程。

    参数:
        tool_name (str): MCP 工具名称。
        args (Dict[str, Any]): 传入工具的参数字典。

    返回:
        Any: 工具返回的结构化或文本结果。

    异常:
        RuntimeError: 无法启动服务器进程或工具执行失败。
    """

    try:
        return asyncio.run(call_tool_async(tool_name, args))
    except FileNotFoundError as exc:
        raise RuntimeError(f"Unable to start MCP server process: {exc}") from exc
