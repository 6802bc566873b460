"""k-匿名抑制：隐藏不同订单数过少的聚合分组。"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, List, Protocol, Sequence, TypeVar


class CountedBucket(Protocol):
    """任何带有不同订单数的聚合分组。"""

    @property
    def order_count(self) -> int: ...


BucketT = TypeVar("BucketT", bound=CountedBucket)


@dataclass
class SuppressionResult(Generic[BucketT]):
    """
    抑制后的结果。

    属性:
        visible (List[BucketT]): 满足阈值、可以对外暴露的分组，保持原顺序。
        suppressed (int): 被整体移除的分组数量。
        threshold (int): 本次使用的阈值。
    """

    visible: List[BucketT]
    suppressed: int
    threshold: int


def suppress_small_groups(buckets: Sequence[BucketT], threshold: int) -> SuppressionResult[BucketT]:
    """
    功能说明:
        丢弃不同订单数低于阈值的分组；不置零、也不合并为“其他”分组。
    参数:
        buckets (Sequence[BucketT]): 待过滤的分组。
        threshold (int): 最少不同订单数。
    返回:
        SuppressionResult[BucketT]: 可见分组与被抑制数量。
    """
    visible = [bucket for bucket in buckets if bucket.order_count >= threshold]
    return SuppressionResult(
        visible=visible,
        suppressed=len(buckets) - len(visible),
        threshold=threshold,
    )


def period_suppression_note(suppressed: int, threshold: int) -> str:
    return (
        f"{suppressed} period(s) suppressed due to k-anonymity threshold "
        f"(<{threshold} orders)"
    )


def product_suppression_note(threshold: int) -> str:
    return f"No products met the k-anonymity threshold (>={threshold} distinct orders)"
