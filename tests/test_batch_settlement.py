"""Tests for batch settlement — proves per-vendor failure isolation and concurrency safety."""

import logging

import pytest
from datetime import datetime, timezone
from pathlib import Path

from vendorpay.models.order import LineItem, Order, OrderStatus
from vendorpay.models.settlement import SettlementPeriod
from vendorpay.models.vendor import Vendor, VendorType
from vendorpay.policy.rate_table import RateTable
from vendorpay.settlement.batch import BatchSettlementRunner


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


@pytest.fixture
def table() -> RateTable:
    return RateTable.from_config_dir(CONFIG_DIR)


@pytest.fixture
def runner(table: RateTable) -> BatchSettlementRunner:
    return BatchSettlementRunner(table)


def _now() -> datetime:
    return datetime(2026, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


def _period() -> SettlementPeriod:
    return SettlementPeriod(now=_now())


def _vendor_records() -> list[dict]:
    return [
        {"id": "shop-1", "type": "shop", "commission_tier": 1},
        {"id": "brand-1", "type": "brand"},
        {"id": "bad-1", "type": "wholesaler"},
        {"id": "dist-1", "type": "distributor", "pioneer_until": "2026-12-31T00:00:00Z"},
    ]


def _orders() -> list[Order]:
    utc = timezone.utc
    return [
        Order(
            order_id="o-1",
            created_at=datetime(2026, 3, 5, tzinfo=utc),
            currency_code="USD",
            items=(
                LineItem("p-1", 5_000, 2, vendor_id="shop-1"),
                LineItem("p-2", 20_000, 1, vendor_id="brand-1"),
                LineItem("p-3", 1_200, 1),
            ),
        ),
        Order(
            order_id="o-2",
            created_at=datetime(2026, 3, 8, tzinfo=utc),
            currency_code="USD",
            items=(
                LineItem("p-4", 3_000, 1, vendor_id="bad-1"),
                LineItem("p-5", 25_000, 2, vendor_id="dist-1"),
            ),
        ),
        Order(
            order_id="o-3",
            created_at=datetime(2026, 3, 9, tzinfo=utc),
            currency_code="USD",
            items=(LineItem("p-6", 700, 1, vendor_id="ghost-1"),),
        ),
    ]


def _statuses() -> dict[str, OrderStatus]:
    return {
        "o-1": OrderStatus("o-1", payment_status="captured", fulfillment_status="delivered"),
        "o-2": OrderStatus("o-2", payment_status="captured", fulfillment_status="shipped"),
    }


def _run(runner: BatchSettlementRunner):
    return runner.run(
        _vendor_records(), _orders(), _statuses(),
        period=_period(),
        monthly_volumes={"brand-1": 600_000},
    )


class TestBatchResults:
    def test_healthy_vendors_settle(self, runner: BatchSettlementRunner) -> None:
        result = _run(runner)
        assert set(result.summaries) == {"shop-1", "brand-1", "dist-1"}

    def test_shop_summary(self, runner: BatchSettlementRunner) -> None:
        summary = _run(runner).summaries["shop-1"]
        assert summary.total_sales == 10_000
        assert summary.total_commission == 1_500
        assert summary.completed_payout == 1_500
        assert summary.pending_payout == 0

    def test_brand_uses_supplied_volume(self, runner: BatchSettlementRunner) -> None:
        summary = _run(runner).summaries["brand-1"]
        assert summary.total_commission == 4_000
        assert summary.current_tier == "Enterprise"

    def test_pioneer_distributor_pending(self, runner: BatchSettlementRunner) -> None:
        summary = _run(runner).summaries["dist-1"]
        assert summary.total_commission == 1_500
        assert summary.pending_payout == 1_500
        assert summary.completed_payout == 0
        assert summary.current_tier == "Pioneer"

    def test_unattributed_reported(self, runner: BatchSettlementRunner) -> None:
        result = _run(runner)
        assert list(result.unattributed) == ["o-1"]
        assert result.unattributed_total == 1_200

    def test_summaries_in_input_order(self, runner: BatchSettlementRunner) -> None:
        assert list(_run(runner).summaries) == ["shop-1", "brand-1", "dist-1"]


class TestFailureIsolation:
    def test_invalid_type_isolated(self, runner: BatchSettlementRunner) -> None:
        result = _run(runner)
        assert "bad-1" in result.failures
        assert "wholesaler" in result.failures["bad-1"]
        assert result.succeeded is False

    def test_missing_vendor_reported(self, runner: BatchSettlementRunner) -> None:
        result = _run(runner)
        assert result.failures["ghost-1"] == "Unknown vendor: ghost-1"

    def test_failure_does_not_change_other_vendors(
        self, runner: BatchSettlementRunner,
    ) -> None:
        """Dropping the broken vendor leaves every other summary unchanged."""
        with_bad = _run(runner)
        records = [r for r in _vendor_records() if r["id"] != "bad-1"]
        without_bad = runner.run(
            records, _orders(), _statuses(),
            period=_period(),
            monthly_volumes={"brand-1": 600_000},
        )
        for vendor_id, summary in without_bad.summaries.items():
            assert with_bad.summaries[vendor_id] == summary

    def test_failures_logged(
        self, runner: BatchSettlementRunner, caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="vendorpay.settlement.batch"):
            _run(runner)
        assert any("bad-1" in r.getMessage() for r in caplog.records)

    def test_currency_mismatch_isolated(self, runner: BatchSettlementRunner) -> None:
        eur = Order(
            order_id="o-eur",
            created_at=datetime(2026, 3, 6, tzinfo=timezone.utc),
            currency_code="EUR",
            items=(LineItem("p-9", 1_000, 1, vendor_id="shop-1"),),
        )
        result = runner.run(
            _vendor_records(), _orders() + [eur], _statuses(), period=_period(),
        )
        assert "shop-1" in result.failures
        assert "brand-1" in result.summaries

    def test_malformed_tier_isolated(self, runner: BatchSettlementRunner) -> None:
        records = _vendor_records() + [
            {"id": "odd-1", "type": "shop", "commission_tier": [2]},
        ]
        result = runner.run(
            records, _orders(), _statuses(),
            period=_period(),
            monthly_volumes={"brand-1": 600_000},
        )
        assert "odd-1" in result.failures
        assert result.summaries["shop-1"].total_sales == 10_000

    def test_unexpected_error_isolated(
        self, runner: BatchSettlementRunner, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        real_aggregate = runner._aggregator.aggregate

        def failing(vendor, *args, **kwargs):
            if vendor.vendor_id == "brand-1":
                raise RuntimeError("ledger unavailable")
            return real_aggregate(vendor, *args, **kwargs)

        monkeypatch.setattr(runner._aggregator, "aggregate", failing)
        result = _run(runner)
        assert result.failures["brand-1"] == "RuntimeError: ledger unavailable"
        assert set(result.summaries) == {"shop-1", "dist-1"}

    def test_period_required(self, runner: BatchSettlementRunner) -> None:
        with pytest.raises(ValueError):
            runner.run(_vendor_records(), _orders())


class TestConcurrency:
    def test_worker_count_does_not_change_results(self, table: RateTable) -> None:
        serial = _run(BatchSettlementRunner(table, max_workers=1))
        parallel = _run(BatchSettlementRunner(table, max_workers=8))
        assert serial.summaries == parallel.summaries
        assert serial.failures == parallel.failures

    def test_rerun_is_identical(self, runner: BatchSettlementRunner) -> None:
        assert _run(runner) == _run(runner)

    def test_vendor_objects_accepted(self, runner: BatchSettlementRunner) -> None:
        vendors = [Vendor(vendor_id="shop-1", vendor_type=VendorType.SHOP)]
        result = runner.run(vendors, _orders()[:1], _statuses(), period=_period())
        assert result.summaries["shop-1"].total_sales == 10_000
        assert result.failures == {"brand-1": "Unknown vendor: brand-1"}


class TestBatchReport:
    def test_to_dict(self, runner: BatchSettlementRunner) -> None:
        data = _run(runner).to_dict()
        assert data["summaries"]["shop-1"]["completed_payouts"] == 1_500
        assert data["status_reports"]["dist-1"]["pending"]["net"] == 48_500
        assert data["platform"]["totals"]["commission"] == 1_500 + 4_000 + 1_500
        assert data["unattributed"] == {"o-1": 1_200}
        assert data["unattributed_total"] == 1_200
        assert set(data["failures"]) == {"bad-1", "ghost-1"}


class TestDerivedVolumes:
    def test_volumes_derived_when_not_supplied(self, runner: BatchSettlementRunner) -> None:
        """Without supplied volumes, brand-1's 20,000 this month keeps it on Starter."""
        result = runner.run(_vendor_records(), _orders(), _statuses(), period=_period())
        summary = result.summaries["brand-1"]
        assert summary.current_tier == "Starter"
        assert summary.total_commission == 2_000

    def test_derived_volume_crosses_ladder_step(self, runner: BatchSettlementRunner) -> None:
        big = Order(
            order_id="o-big",
            created_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
            currency_code="USD",
            items=(LineItem("p-7", 90_000, 1, vendor_id="brand-1"),),
        )
        result = runner.run(
            _vendor_records(), _orders() + [big], _statuses(), period=_period(),
        )
        summary = result.summaries["brand-1"]
        assert summary.current_tier == "Growth"
        assert summary.total_commission == 3_000 + 13_500

    def test_empty_mapping_means_zero_volume(self, runner: BatchSettlementRunner) -> None:
        result = runner.run(
            _vendor_records(), _orders(), _statuses(),
            period=_period(), monthly_volumes={},
        )
        assert result.summaries["brand-1"].current_tier == "Starter"


class TestPlatformRollup:
    def test_by_vendor_type(self, runner: BatchSettlementRunner) -> None:
        rollup = _run(runner).platform()
        assert set(rollup.by_vendor_type) == {"brand", "distributor", "shop"}
        assert rollup.by_vendor_type["brand"].commission == 4_000
        assert rollup.by_vendor_type["distributor"].net == 48_500

    def test_by_status(self, runner: BatchSettlementRunner) -> None:
        rollup = _run(runner).platform()
        assert rollup.by_status["completed"].count == 2
        assert rollup.by_status["completed"].sales == 30_000
        assert rollup.by_status["pending"].count == 1
        assert rollup.by_status["pending"].commission == 1_500

    def test_totals_and_average_rate(self, runner: BatchSettlementRunner) -> None:
        data = _run(runner).platform().to_dict()
        totals = data["totals"]
        assert totals["count"] == 3
        assert totals["sales"] == 80_000
        assert totals["commission"] == 7_000
        assert totals["net"] == 73_000
        assert totals["avg_commission_rate"] == "8.75"
        assert data["by_vendor_type"]["shop"]["avg_commission_rate"] == "15.00"
