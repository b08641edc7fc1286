"""Tests for monthly volume derivation — proves per-vendor month totals and order counts."""

from datetime import datetime, timedelta, timezone

from vendorpay.models.order import LineItem, Order
from vendorpay.settlement.volume import (
    MonthlyVolume,
    derive_monthly_volumes,
    monthly_volume_history,
    volumes_for_month,
)


def _order(order_id: str, created: datetime, *items: LineItem, currency: str = "USD") -> Order:
    return Order(order_id=order_id, created_at=created, currency_code=currency, items=items)


def _orders() -> list[Order]:
    utc = timezone.utc
    return [
        _order(
            "o-1", datetime(2026, 2, 10, tzinfo=utc),
            LineItem("p-1", 1_000, 2, vendor_id="v-1"),
            LineItem("p-2", 500, 1, vendor_id="v-1"),
        ),
        _order(
            "o-2", datetime(2026, 3, 2, tzinfo=utc),
            LineItem("p-3", 4_000, 1, vendor_id="v-1"),
            LineItem("p-4", 700, 1, vendor_id="v-2"),
            LineItem("p-5", 300, 1),
        ),
        _order("o-3", datetime(2026, 3, 20, tzinfo=utc), LineItem("p-6", 9_000, 1, vendor_id="v-1")),
    ]


class TestHistory:
    def test_month_totals_and_order_counts(self) -> None:
        history = monthly_volume_history(_orders())
        assert history[("v-1", 2026, 2)] == MonthlyVolume("v-1", 2026, 2, 2_500, 1)
        assert history[("v-1", 2026, 3)] == MonthlyVolume("v-1", 2026, 3, 13_000, 2)
        assert history[("v-2", 2026, 3)].order_count == 1

    def test_unattributed_items_not_counted(self) -> None:
        history = monthly_volume_history(_orders())
        assert all(key[0] != "__unattributed__" for key in history)

    def test_currency_filter(self) -> None:
        eur = _order(
            "o-eur", datetime(2026, 3, 5, tzinfo=timezone.utc),
            LineItem("p-9", 50_000, 1, vendor_id="v-2"),
            currency="EUR",
        )
        history = monthly_volume_history(_orders() + [eur], currency_code="usd")
        assert history[("v-2", 2026, 3)].total_sales == 700

    def test_volumes_for_month(self) -> None:
        history = monthly_volume_history(_orders())
        assert volumes_for_month(history, 2026, 3) == {"v-1": 13_000, "v-2": 700}
        assert volumes_for_month(history, 2025, 12) == {}


class TestDerive:
    def test_month_to_date(self) -> None:
        now = datetime(2026, 3, 15, tzinfo=timezone.utc)
        assert derive_monthly_volumes(_orders(), now) == {"v-1": 4_000, "v-2": 700}

    def test_month_judged_in_timezone_of_now(self) -> None:
        """00:30 UTC on 01 Mar is still 28 Feb at UTC-5."""
        minus_five = timezone(timedelta(hours=-5))
        now = datetime(2026, 3, 1, 20, 0, tzinfo=minus_five)
        orders = [
            _order(
                "o-1", datetime(2026, 3, 1, 0, 30, tzinfo=timezone.utc),
                LineItem("p-1", 1_000, 1, vendor_id="v-1"),
            ),
        ]
        assert derive_monthly_volumes(orders, now) == {}
