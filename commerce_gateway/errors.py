"""订单分析管道中可在本地恢复的校验类异常。"""

from __future__ import annotations


class ValidationError(ValueError):
    """
    所有参数校验失败的基类。

    服务层会捕获该异常并转换为 ``{"error": message}`` 结构，
    抛出时保证尚未发起任何网络请求。
    """

    @property
    def message(self) -> str:
        return str(self)


class InvalidDateFormat(ValidationError):
    """日期字符串无法解析。"""

    def __init__(self, field: str, value: str) -> None:
        super().__init__(f"Invalid {field} format: {value}")
        self.field = field
        self.value = value


class RangeInverted(ValidationError):
    """结束时间早于开始时间。"""

    def __init__(self) -> None:
        super().__init__("periodEnd must be after periodStart")


class RangeTooLarge(ValidationError):
    """时间跨度超过上限。"""

    def __init__(self, max_days: int = 365) -> None:
        if max_days == 365:
            message = "Date range cannot exceed 1 year"
        else:
            message = f"Date range cannot exceed {max_days} days"
        super().__init__(message)
        self.max_days = max_days


class InvalidGranularity(ValidationError):
    """趋势粒度不在 day/week/month 之内。"""

    def __init__(self, value: str) -> None:
        super().__init__("granularity must be 'day', 'week', or 'month'")
        self.value = value


class UnknownStatistic(ValidationError):
    """请求了未注册的统计类型。"""

    def __init__(self, value: str, expected: list[str]) -> None:
        super().__init__(
            f"Unknown statistic: {value}. Expected one of: {', '.join(expected)}"
        )
        self.value = value
