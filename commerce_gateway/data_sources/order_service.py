"""基于 HTTP 的订单服务客户端，将 JSON 响应转换为订单模型。"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

import httpx

from ..config import OrderServiceConfig
from .base import Order, OrderLineItem, OrderPage, OrderPageRequest, OrderSource, OrderStatus

logger = logging.getLogger(__name__)


class HttpOrderSource(OrderSource):
    """
    通过 ``GET {base_url}/orders`` 分页读取订单。

    非 2xx 响应以 ``httpx.HTTPStatusError`` 抛出，连接失败等以
    ``httpx.HTTPError`` 子类抛出，本类不做重试。
    """

    def __init__(
        self,
        config: OrderServiceConfig,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        功能说明:
            创建订单服务客户端。
        参数:
            config (OrderServiceConfig): 服务地址、令牌与超时设置。
            client (Optional[httpx.AsyncClient]): 外部注入的客户端，便于测试复用。
        """
        self.name = "order_service"
        self._config = config
        headers = {"Accept": "application/json"}
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            headers=headers,
        )

    async def list_orders(self, request: OrderPageRequest) -> OrderPage:
        params: Dict[str, Any] = {"page": request.page, "pageSize": request.page_size}
        if request.storefront_id:
            params["storefrontId"] = request.storefront_id
        if request.date_from is not None:
            params["from"] = request.date_from.isoformat()
        if request.date_to is not None:
            params["to"] = request.date_to.isoformat()

        response = await self._client.get("/orders", params=params)
        response.raise_for_status()
        payload = response.json()
        return OrderPage(
            items=[parse_order(item) for item in payload.get("items") or []],
            total_count=int(payload.get("totalCount") or 0),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def parse_order(payload: Dict[str, Any]) -> Order:
    """
    功能说明:
        将订单服务的 JSON 对象转换为 Order。
    参数:
        payload (Dict[str, Any]): 单个订单的 JSON 结构。
    返回:
        Order: 不可变的订单快照。
    """
    return Order(
        id=str(payload.get("id", "")),
        status=OrderStatus.from_wire(payload.get("status")),
        created_at=_parse_timestamp(payload.get("createdAt")),
        storefront_id=str(payload.get("storefrontId") or ""),
        items=tuple(_parse_line_item(item) for item in payload.get("items") or []),
    )


def _parse_line_item(payload: Dict[str, Any]) -> OrderLineItem:
    try:
        unit_price = Decimal(str(payload.get("unitPrice", "0")))
    except InvalidOperation:
        raise ValueError(f"Invalid unitPrice in order line: {payload.get('unitPrice')!r}") from None
    return OrderLineItem(
        product_id=str(payload.get("productId", "")),
        sku=str(payload.get("sku") or ""),
        name=str(payload.get("name") or ""),
        unit_price=unit_price,
        quantity=int(payload.get("quantity") or 0),
    )


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError:
        # 时间戳不可解析时按缺失处理，趋势统计会跳过该订单。
        logger.debug("忽略无法解析的 createdAt：%s", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
