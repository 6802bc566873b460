"""订单分析网关的配置模型，支持环境变量加载。"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AnalyticsConfig:
    """
    订单分析管道的固定参数，以不可变配置注入取数器与匿名化过滤器。

    属性:
        page_size (int): 每次向订单服务请求的分页大小。
        max_pages (int): 单次分析最多请求的页数。
        k_anonymity_threshold (int): 对外暴露的分组至少包含的不同订单数。
        max_range_days (int): 允许的最大统计跨度（天）。
        default_top_limit (int): 热销商品默认返回数量。
        max_top_limit (int): 热销商品返回数量上限。
    """

    page_size: int = 50
    max_pages: int = 20
    k_anonymity_threshold: int = 5
    max_range_days: int = 365
    default_top_limit: int = 10
    max_top_limit: int = 50

    @classmethod
    def from_env(cls, prefix: str = "ANALYTICS_") -> "AnalyticsConfig":
        """
        功能说明:
            从环境变量读取分析参数，未设置的项使用默认值。
        参数:
            prefix (str): 环境变量前缀。
        返回:
            AnalyticsConfig: 填充完成的配置实例。
        """
        return cls(
            page_size=int(os.getenv(f"{prefix}PAGE_SIZE", 50)),
            max_pages=int(os.getenv(f"{prefix}MAX_PAGES", 20)),
            k_anonymity_threshold=int(os.getenv(f"{prefix}K_ANONYMITY", 5)),
            max_range_days=int(os.getenv(f"{prefix}MAX_RANGE_DAYS", 365)),
            default_top_limit=int(os.getenv(f"{prefix}TOP_LIMIT", 10)),
            max_top_limit=int(os.getenv(f"{prefix}MAX_TOP_LIMIT", 50)),
        )


@dataclass
class OrderServiceConfig:
    """
    上游订单服务的连接设置。

    属性:
        base_url (str): 订单服务根地址，为空时回退到模拟数据源。
        api_key (Optional[str]): 访问令牌，以 Bearer 方式发送。
        timeout_seconds (float): 单次 HTTP 请求超时时间。
    """

    base_url: str = ""
    api_key: Optional[str] = None
    timeout_seconds: float = 10.0

    @property
    def use_mock(self) -> bool:
        return not self.base_url

    @classmethod
    def from_env(cls, prefix: str = "ORDER_SERVICE_") -> "OrderServiceConfig":
        """
        功能说明:
            从环境变量读取订单服务地址与凭证。
        参数:
            prefix (str): 变量名前缀。
        返回:
            OrderServiceConfig: 连接配置实例。
        """
        base_url = os.getenv(f"{prefix}URL", "").rstrip("/")
        api_key = os.getenv(f"{prefix}API_KEY") or None
        timeout_seconds = float(os.getenv(f"{prefix}TIMEOUT", "10"))
        return cls(base_url=base_url, api_key=api_key, timeout_seconds=timeout_seconds)


@dataclass
class AppConfig:
    """
    顶层组合配置，聚合分析参数与订单服务连接。

    属性:
        analytics (AnalyticsConfig): 管道参数。
        order_service (OrderServiceConfig): 上游订单服务设置。
    """

    analytics: AnalyticsConfig
    order_service: OrderServiceConfig

    @classmethod
    def from_env(cls) -> "AppConfig":
        """统一从环境变量载入所有子配置。"""
        return cls(
            analytics=AnalyticsConfig.from_env(),
            order_service=OrderServiceConfig.from_env(),
        )
