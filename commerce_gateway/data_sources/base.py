"""定义订单分析所需的订单模型与上游订单源抽象。"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional, Tuple


class OrderStatus(str, Enum):
    """订单状态的封闭集合，未识别的上游取值统一归入 UNKNOWN。"""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"

    @classmethod
    def from_wire(cls, value: Any) -> "OrderStatus":
        """
        功能说明:
            将上游返回的状态值映射为枚举，兼容大小写与 ``ORDER_STATUS_`` 前缀。
        参数:
            value (Any): 上游原始状态值。
        返回:
            OrderStatus: 对应的枚举；任何无法识别的值返回 UNKNOWN，不抛异常。
        """
        if not isinstance(value, str):
            return cls.UNKNOWN
        normalized = value.strip().lower()
        if normalized.startswith("order_status_"):
            normalized = normalized[len("order_status_"):]
        return _STATUS_BY_WIRE.get(normalized, cls.UNKNOWN)


_STATUS_BY_WIRE = {status.value: status for status in OrderStatus}


@dataclass(frozen=True)
class OrderLineItem:
    """
    订单中的单个商品行。

    属性:
        product_id (str): 商品 ID。
        sku (str): 商品 SKU。
        name (str): 展示名称。
        unit_price (Decimal): 单价。
        quantity (int): 购买数量。
    """

    product_id: str
    sku: str
    name: str
    unit_price: Decimal
    quantity: int

    @property
    def revenue(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Order:
    """
    上游返回的订单快照，本系统只读不改。

    属性:
        id (str): 订单 ID。
        status (OrderStatus): 订单状态。
        created_at (Optional[datetime]): 创建时间，可能缺失。
        storefront_id (str): 所属店铺 ID。
        items (Tuple[OrderLineItem, ...]): 商品行列表。
    """

    id: str
    status: OrderStatus
    created_at: Optional[datetime]
    storefront_id: str
    items: Tuple[OrderLineItem, ...] = ()

    @property
    def revenue(self) -> Decimal:
        return sum((item.revenue for item in self.items), Decimal("0"))


@dataclass(frozen=True)
class OrderPageRequest:
    """
    对订单源的一次分页请求。

    属性:
        page (int): 页码，从 1 开始。
        page_size (int): 每页条数。
        storefront_id (Optional[str]): 店铺过滤条件。
        date_from (Optional[datetime]): 起始时间（含）。
        date_to (Optional[datetime]): 结束时间（含）。
    """

    page: int
    page_size: int
    storefront_id: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None


@dataclass(frozen=True)
class OrderPage:
    """订单源返回的一页数据及过滤条件下的订单总数。"""

    items: List[Order]
    total_count: int


class OrderSource(ABC):
    """
    抽象基类，描述如何分页读取订单历史。

    子类只负责单页请求，分页循环与终止条件由取数器统一控制；
    任何传输异常都应原样抛出。
    """

    name: str

    @abstractmethod
    async def list_orders(self, request: OrderPageRequest) -> OrderPage:
        """
        功能说明:
            获取一页订单。
        参数:
            request (OrderPageRequest): 分页与过滤条件。
        返回:
            OrderPage: 当前页订单及总数。
        """

    async def aclose(self) -> None:
        """释放底层连接，默认无需处理。"""
