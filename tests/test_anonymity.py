"""
Tests for k-anonymity suppression
"""

from dataclasses import dataclass

from commerce_gateway.metrics.anonymity import (
    period_suppression_note,
    product_suppression_note,
    suppress_small_groups,
)


@dataclass
class Bucket:
    key: str
    order_count: int


class TestSuppressSmallGroups:
    def test_drops_buckets_below_threshold(self):
        buckets = [Bucket("a", 5), Bucket("b", 4), Bucket("c", 12), Bucket("d", 0)]
        result = suppress_small_groups(buckets, 5)
        assert [bucket.key for bucket in result.visible] == ["a", "c"]
        assert result.suppressed == 2
        assert result.threshold == 5

    def test_threshold_is_inclusive(self):
        result = suppress_small_groups([Bucket("edge", 5)], 5)
        assert result.suppressed == 0

    def test_empty_input(self):
        result = suppress_small_groups([], 5)
        assert result.visible == []
        assert result.suppressed == 0


class TestSuppressionNotes:
    def test_period_note(self):
        assert period_suppression_note(3, 5) == (
            "3 period(s) suppressed due to k-anonymity threshold (<5 orders)"
        )

    def test_product_note(self):
        assert product_suppression_note(5) == (
            "No products met the k-anonymity threshold (>=5 distinct orders)"
        )
