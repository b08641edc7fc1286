"""Tests for the settlement service facade — proves results, not exceptions, cross the seam."""

import pytest
from datetime import datetime, timezone
from pathlib import Path

from vendorpay.models.order import LineItem, Order, OrderStatus
from vendorpay.models.settlement import SettlementPeriod
from vendorpay.models.vendor import Vendor, VendorType
from vendorpay.policy.rate_table import RateTable
from vendorpay.service import SettlementService


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


@pytest.fixture
def service() -> SettlementService:
    return SettlementService(RateTable.from_config_dir(CONFIG_DIR))


def _now() -> datetime:
    return datetime(2026, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


def _order() -> Order:
    return Order(
        order_id="o-1",
        created_at=datetime(2026, 3, 5, tzinfo=timezone.utc),
        currency_code="usd",
        items=(
            LineItem("p-1", 2_500, 2, vendor_id="vendor-a"),
            LineItem("p-2", 1_200, 1),
            LineItem("p-3", 20_000, 1, vendor_id="brand-1"),
        ),
    )


def _vendors() -> list[dict]:
    return [
        {"id": "vendor-a", "type": "shop", "commission_tier": 2},
        {"id": "brand-1", "type": "brand"},
    ]


class TestQuote:
    def test_quote_shop(self, service: SettlementService) -> None:
        result = service.quote(
            {"id": "shop-1", "type": "shop", "commission_tier": 1},
            1_000_000, now=_now(),
        )
        assert result.success
        assert result.data == {
            "vendor_id": "shop-1",
            "base_amount": 1_000_000,
            "commission": 150_000,
            "payout": 850_000,
            "rate": "15.00",
            "tier": "Bronze",
        }

    def test_quote_accepts_vendor_object(self, service: SettlementService) -> None:
        vendor = Vendor(vendor_id="brand-1", vendor_type=VendorType.BRAND)
        result = service.quote(vendor, 20_000, monthly_volume=600_000, now=_now())
        assert result.success
        assert result.data["commission"] == 4_000
        assert result.data["tier"] == "Enterprise"

    def test_invalid_type_is_a_failed_result(self, service: SettlementService) -> None:
        result = service.quote({"id": "x", "type": "wholesaler"}, 1_000, now=_now())
        assert not result.success
        assert "wholesaler" in result.errors[0]

    def test_negative_amount_is_a_failed_result(self, service: SettlementService) -> None:
        result = service.quote({"id": "x", "type": "shop"}, -5, now=_now())
        assert not result.success


class TestSplit:
    def test_split_reports_unattributed(self, service: SettlementService) -> None:
        result = service.split(_order())
        assert result.success
        assert result.data["vendors"] == {"vendor-a": 5_000, "brand-1": 20_000}
        assert result.data["unattributed"] == 1_200
        assert result.data["total"] == 26_200


class TestSettleOrder:
    def test_settle_order(self, service: SettlementService) -> None:
        result = service.settle_order(_order(), _vendors())
        assert result.success
        data = result.data
        assert data["currency_code"] == "USD"
        assert data["vendor_count"] == 2
        assert data["total_commission"] == 900 + 2_000
        assert data["total_vendor_payout"] == 4_100 + 18_000
        assert data["unattributed_subtotal"] == 1_200
        assert data["unattributed_items"] == ["p-2"]
        assert len(data["digest"]) == 64

    def test_settle_order_is_deterministic(self, service: SettlementService) -> None:
        first = service.settle_order(_order(), _vendors())
        second = service.settle_order(_order(), _vendors())
        assert first.data == second.data

    def test_unknown_vendor_fails_order(self, service: SettlementService) -> None:
        result = service.settle_order(_order(), _vendors()[:1])
        assert not result.success
        assert result.errors == ["Unknown vendor: brand-1"]

    def test_monthly_volume_applied(self, service: SettlementService) -> None:
        result = service.settle_order(
            _order(), _vendors(), monthly_volumes={"brand-1": 600_000},
        )
        shares = {s["vendor_id"]: s for s in result.data["shares"]}
        assert shares["brand-1"]["commission_amount"] == 4_000
        assert shares["brand-1"]["tier_applied"] == "Enterprise"


class TestSettlePeriod:
    def test_settle_period(self, service: SettlementService) -> None:
        statuses = {"o-1": OrderStatus("o-1", "captured", "delivered")}
        result = service.settle_period(
            _vendors(), [_order()], statuses,
            period=SettlementPeriod(now=_now()),
        )
        assert result.success
        assert result.errors == []
        summary = result.data["summaries"]["vendor-a"]
        assert summary["total_sales"] == 5_000
        assert summary["completed_payouts"] == 900
        assert result.data["status_reports"]["vendor-a"]["completed"]["net"] == 4_100
        assert result.data["platform"]["totals"]["commission"] == 900 + 2_000
        assert summary["current_tier"] == "Silver"
        assert set(result.data["digests"]) == {"vendor-a", "brand-1"}
        assert set(result.data["tier_checks"]) == {"vendor-a"}

    def test_partial_failure_keeps_good_summaries(
        self, service: SettlementService,
    ) -> None:
        vendors = _vendors() + [{"id": "bad-1", "type": "wholesaler"}]
        result = service.settle_period(
            vendors, [_order()], period=SettlementPeriod(now=_now()),
        )
        assert not result.success
        assert len(result.errors) == 1
        assert result.errors[0].startswith("bad-1: ")
        assert set(result.data["summaries"]) == {"vendor-a", "brand-1"}


class TestTierCheck:
    def test_check_tier(self, service: SettlementService) -> None:
        result = service.check_tier(
            {"id": "shop-1", "type": "shop", "commission_tier": 2}, 52_000,
        )
        assert result.success
        assert result.data["can_upgrade"] is True
        assert result.data["resolved_tier"] == 3
        assert result.data["current_label"] == "Silver"
        assert result.data["resolved_label"] == "Gold"

    def test_check_tier_rejects_brand(self, service: SettlementService) -> None:
        result = service.check_tier({"id": "b", "type": "brand"}, 1_000)
        assert not result.success

    def test_resolve_tier(self, service: SettlementService) -> None:
        result = service.resolve_tier(20_000)
        assert result.data == {"tier": 2, "label": "Silver"}
