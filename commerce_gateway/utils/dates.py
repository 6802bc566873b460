"""封装统计时间范围的解析、校验与常用日期计算。"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from ..errors import InvalidDateFormat, RangeInverted, RangeTooLarge


@dataclass(frozen=True)
class DateRange:
    """
    经过校验的统计区间，上下界均为闭区间且带时区。

    属性:
        start (Optional[datetime]): 起始时间。
        end (Optional[datetime]): 结束时间。
    """

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.start is None and self.end is None


def parse_date_range(
    period_start: Optional[str],
    period_end: Optional[str],
    *,
    max_days: int = 365,
) -> DateRange:
    """
    功能说明:
        解析并校验调用方提供的起止时间，按格式、先后、跨度的顺序检查。
    参数:
        period_start (Optional[str]): ISO 8601 起始时间，空字符串视为未提供。
        period_end (Optional[str]): ISO 8601 结束时间。
        max_days (int): 允许的最大跨度天数。
    返回:
        DateRange: 校验通过的时间范围。
    异常:
        InvalidDateFormat: 任一时间无法解析。
        RangeInverted: 结束时间早于开始时间。
        RangeTooLarge: 跨度超过 ``max_days``。
    """
    start = _parse_timestamp("periodStart", period_start)
    end = _parse_timestamp("periodEnd", period_end)

    if start is not None and end is not None:
        if end < start:
            raise RangeInverted()
        if end - start > timedelta(days=max_days):
            raise RangeTooLarge(max_days)

    return DateRange(start=start, end=end)


def _parse_timestamp(field: str, value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        raise InvalidDateFormat(field, value) from None
    # 未带时区的输入统一按 UTC 处理，保证上下界可比较。
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def recent_period(days: int, *, today: Optional[date] = None) -> tuple[date, date]:
    """
    功能说明:
        根据给定天数返回最近的起止日期（包含当天）。
    参数:
        days (int): 包含的天数，至少为 1。
        today (Optional[date]): 计算锚点，默认取当天。
    返回:
        tuple[date, date]: (start, end) 日期元组。
    """
    end = today or date.today()
    start = end - timedelta(days=max(days, 1) - 1)
    return start, end
