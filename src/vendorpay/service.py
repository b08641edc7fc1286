"""vendorpay service — unified facade for the commission and settlement engine.

This is the primary interface for request handlers. It composes the pure
subsystems:
- Commission quotes (one vendor, one amount)
- Order settlement (split + per-vendor shares)
- Period settlement (batch summaries with per-vendor failure isolation)
- Tier checks (shop upgrade eligibility)

All operations produce typed results. Engine errors never escape as
exceptions: they are returned as ServiceResult(success=False, errors=...).
The service holds no state beyond its injected rate table, so concurrent
callers can share one instance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional

from vendorpay.commission.engine import CommissionCalculator
from vendorpay.commission.splitter import split_order
from vendorpay.commission.tiers import resolve_shop_tier, shop_tier_label
from vendorpay.errors import VendorPayError
from vendorpay.models.order import Order, OrderStatus
from vendorpay.models.settlement import SettlementPeriod
from vendorpay.models.vendor import Vendor
from vendorpay.policy.rate_table import RateTable
from vendorpay.settlement.aggregator import SettlementAggregator
from vendorpay.settlement.batch import BatchSettlementRunner, VendorInput
from vendorpay.settlement.digest import order_digest, summary_digest
from vendorpay.settlement.order import settle_order

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)


class SettlementService:
    """Commission and settlement facade.

    Usage:
        table = RateTable.from_config_dir(config_dir)
        service = SettlementService(table)

        result = service.quote(vendor, 20_000, monthly_volume=600_000)
        result = service.settle_order(order, vendors, monthly_volumes)
        result = service.settle_period(vendor_records, orders, statuses, period)
        result = service.check_tier(vendor, monthly_sales=52_000)
    """

    def __init__(self, rate_table: RateTable, max_workers: Optional[int] = None) -> None:
        self._table = rate_table
        self._calculator = CommissionCalculator(rate_table)
        self._aggregator = SettlementAggregator(rate_table)
        self._runner = BatchSettlementRunner(rate_table, max_workers=max_workers)

    @property
    def rate_table(self) -> RateTable:
        return self._table

    # ------------------------------------------------------------------
    # Commission
    # ------------------------------------------------------------------

    def quote(
        self,
        vendor: VendorInput,
        amount: int,
        monthly_volume: int = 0,
        now: Optional[datetime] = None,
    ) -> ServiceResult:
        """Quote commission and payout for one vendor on one amount."""
        try:
            v = _as_vendor(vendor)
            quote = self._calculator.calculate(v, amount, monthly_volume, now)
        except (VendorPayError, ValueError) as e:
            return ServiceResult(success=False, errors=[str(e)])
        return ServiceResult(
            success=True,
            data={
                "vendor_id": v.vendor_id,
                "base_amount": quote.base_amount,
                "commission": quote.commission,
                "payout": quote.payout,
                "rate": str(quote.rate),
                "tier": quote.tier_label,
            },
        )

    def split(self, order: Order) -> ServiceResult:
        """Partition an order into vendor bundles without pricing them."""
        split = split_order(order)
        return ServiceResult(
            success=True,
            data={
                "order_id": split.order_id,
                "vendors": {
                    vendor_id: bundle.subtotal
                    for vendor_id, bundle in split.vendor_bundles.items()
                },
                "unattributed": split.unattributed.subtotal,
                "total": split.total,
            },
        )

    def settle_order(
        self,
        order: Order,
        vendors: Iterable[VendorInput],
        monthly_volumes: Optional[Mapping[str, int]] = None,
        now: Optional[datetime] = None,
    ) -> ServiceResult:
        """Compute every vendor share of one order."""
        try:
            lookup = {v.vendor_id: v for v in (_as_vendor(r) for r in vendors)}
            settlement = settle_order(
                order, lookup, self._calculator,
                monthly_volumes=monthly_volumes,
                now=now or order.created_at,
            )
        except (VendorPayError, ValueError) as e:
            logger.warning(f"Order {order.order_id} could not be settled: {e}")
            return ServiceResult(success=False, errors=[str(e)])
        data = settlement.to_dict()
        data["digest"] = order_digest(settlement)
        return ServiceResult(success=True, data=data)

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def settle_period(
        self,
        vendors: Iterable[VendorInput],
        orders: Iterable[Order],
        statuses: Optional[Mapping[str, OrderStatus]] = None,
        period: Optional[SettlementPeriod] = None,
        monthly_volumes: Optional[Mapping[str, int]] = None,
    ) -> ServiceResult:
        """Settle a period for many vendors.

        success is False when any vendor failed, but data still carries
        every vendor that settled. errors lists one message per failure.
        """
        if period is None:
            period = SettlementPeriod(
                now=datetime.now(timezone.utc),
                currency_code=self._table.settlement.default_currency,
            )
        batch = self._runner.run(
            vendors, orders, statuses,
            period=period,
            monthly_volumes=monthly_volumes,
        )
        data = batch.to_dict()
        data["digests"] = {
            vendor_id: summary_digest(summary)
            for vendor_id, summary in batch.summaries.items()
        }
        data["tier_checks"] = {
            vendor_id: summary.tier_check.to_dict()
            for vendor_id, summary in batch.summaries.items()
            if summary.tier_check is not None
        }
        errors = [f"{vendor_id}: {msg}" for vendor_id, msg in batch.failures.items()]
        return ServiceResult(success=batch.succeeded, errors=errors, data=data)

    def check_tier(self, vendor: VendorInput, monthly_sales: int) -> ServiceResult:
        """Evaluate a shop vendor's tier against monthly_sales."""
        try:
            v = _as_vendor(vendor)
            check = self._aggregator.check_tier(v, monthly_sales)
        except (VendorPayError, ValueError) as e:
            return ServiceResult(success=False, errors=[str(e)])
        data = check.to_dict()
        data["vendor_id"] = v.vendor_id
        data["current_label"] = shop_tier_label(check.current_tier, self._table)
        data["resolved_label"] = shop_tier_label(check.resolved_tier, self._table)
        return ServiceResult(success=True, data=data)

    def resolve_tier(self, monthly_sales: int) -> ServiceResult:
        tier = resolve_shop_tier(monthly_sales, self._table)
        return ServiceResult(
            success=True,
            data={"tier": tier, "label": shop_tier_label(tier, self._table)},
        )


def _as_vendor(record: VendorInput) -> Vendor:
    return record if isinstance(record, Vendor) else Vendor.from_record(record)
