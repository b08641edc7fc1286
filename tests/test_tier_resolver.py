"""Tests for shop tier resolution — proves thresholds and monotonicity hold."""

import pytest
from pathlib import Path

from vendorpay.commission.tiers import (
    next_tier_threshold,
    resolve_shop_tier,
    shop_tier_label,
)
from vendorpay.policy.rate_table import RateTable


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


@pytest.fixture
def table() -> RateTable:
    return RateTable.from_config_dir(CONFIG_DIR)


class TestResolveShopTier:
    @pytest.mark.parametrize(
        "sales, expected",
        [
            (0, 1),
            (14_999, 1),
            (15_000, 2),
            (49_999, 2),
            (50_000, 3),
            (10_000_000, 3),
        ],
    )
    def test_thresholds(self, table: RateTable, sales: int, expected: int) -> None:
        assert resolve_shop_tier(sales, table) == expected

    def test_tier_four_never_automatic(self, table: RateTable) -> None:
        """Gold+ shares Gold's threshold and is reached by promotion only."""
        for sales in (50_000, 500_000, 50_000_000):
            assert resolve_shop_tier(sales, table) != 4

    def test_monotonic_non_decreasing(self, table: RateTable) -> None:
        previous = resolve_shop_tier(0, table)
        for sales in range(0, 120_000, 250):
            tier = resolve_shop_tier(sales, table)
            assert tier >= previous
            previous = tier

    def test_negative_sales_is_bronze(self, table: RateTable) -> None:
        assert resolve_shop_tier(-100, table) == 1

    def test_default_table(self) -> None:
        assert resolve_shop_tier(20_000) == 2


class TestTierHelpers:
    def test_labels(self, table: RateTable) -> None:
        assert shop_tier_label(1, table) == "Bronze"
        assert shop_tier_label(4, table) == "Gold+"

    def test_next_threshold(self, table: RateTable) -> None:
        assert next_tier_threshold(1, table) == 15_000
        assert next_tier_threshold(2, table) == 50_000

    def test_no_threshold_into_manual_tier(self, table: RateTable) -> None:
        assert next_tier_threshold(3, table) is None

    def test_no_threshold_above_top(self, table: RateTable) -> None:
        assert next_tier_threshold(4, table) is None
