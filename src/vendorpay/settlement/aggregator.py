"""Settlement aggregator — folds a vendor's order shares into period totals.

The summary is a pure fold over an explicit entry sequence: running it
twice over the same entries produces equal summaries. This is what makes
settlements reproducible for audit and dispute resolution.

Classification rules:
- total_*           every entry inside the period window
- current_month_*   entries in the calendar month of period.now
- last_month_*      entries in the calendar month before period.now
- completed_payout  commission of orders both captured and delivered
- pending_payout    commission of every other order
- by_status         count, sales, commission and net per payout status

Entries outside the period window are skipped before the currency and
duplicate checks, so an out-of-window entry never fails a settlement.

Tier evaluation (shops only) compares current_month_sales against the
shop tier thresholds. Upgrades are flagged, never applied here; a
downgrade is only ever a recommendation.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from vendorpay.commission.engine import CommissionCalculator, effective_percentage
from vendorpay.commission.tiers import (
    next_shop_tier,
    next_tier_threshold,
    resolve_shop_tier,
)
from vendorpay.errors import CurrencyMismatch
from vendorpay.models.settlement import (
    PAYOUT_COMPLETED,
    PAYOUT_PENDING,
    SettlementEntry,
    SettlementPeriod,
    SettlementSummary,
    StatusBucket,
    TierCheck,
)
from vendorpay.models.vendor import Vendor, VendorType
from vendorpay.policy.rate_table import RateTable


def _month_key(ts: datetime) -> tuple[int, int]:
    return ts.year, ts.month


def _previous_month(key: tuple[int, int]) -> tuple[int, int]:
    year, month = key
    if month == 1:
        return year - 1, 12
    return year, month - 1


class SettlementAggregator:
    """Builds per-vendor settlement summaries.

    Usage:
        aggregator = SettlementAggregator(rate_table)
        summary = aggregator.aggregate(vendor, entries, period)
        summary.to_report()
    """

    def __init__(self, rate_table: RateTable) -> None:
        self._table = rate_table
        self._calculator = CommissionCalculator(rate_table)

    def aggregate(
        self,
        vendor: Vendor,
        entries: Iterable[SettlementEntry],
        period: SettlementPeriod,
        monthly_volume: Optional[int] = None,
    ) -> SettlementSummary:
        """Fold entries for vendor over period into a SettlementSummary.

        Brand and distributor tiers are reported at monthly_volume, the
        trailing volume their rates were charged at; when omitted, the
        period's current-month sales stand in for it.

        Raises:
            ValueError: an entry belongs to another vendor, or the same
                order appears twice.
            CurrencyMismatch: an entry's currency differs from the period's.
        """
        policy = self._table.settlement
        tz = period.now.tzinfo
        current_key = _month_key(period.now)
        last_key = _previous_month(current_key)

        total_sales = 0
        total_commission = 0
        pending = 0
        completed = 0
        cm_sales = 0
        cm_commission = 0
        lm_sales = 0
        lm_commission = 0
        seen_orders: set[str] = set()
        buckets: dict[str, StatusBucket] = {}

        for entry in entries:
            share = entry.share
            if share.vendor_id != vendor.vendor_id:
                raise ValueError(
                    f"Share for vendor {share.vendor_id} passed to settlement "
                    f"of vendor {vendor.vendor_id}"
                )
            if not period.contains(entry.order_created_at):
                continue
            if entry.currency_code.upper() != period.currency_code:
                raise CurrencyMismatch(
                    f"Order {share.order_id} is in {entry.currency_code}, "
                    f"settlement for vendor {vendor.vendor_id} is in "
                    f"{period.currency_code}"
                )
            if share.order_id in seen_orders:
                raise ValueError(
                    f"Order {share.order_id} appears twice in settlement of "
                    f"vendor {vendor.vendor_id}"
                )
            seen_orders.add(share.order_id)

            total_sales += share.subtotal
            total_commission += share.commission_amount

            if (
                entry.payment_status == policy.completed_payment_status
                and entry.fulfillment_status == policy.completed_fulfillment_status
            ):
                completed += share.commission_amount
                status = PAYOUT_COMPLETED
            else:
                pending += share.commission_amount
                status = PAYOUT_PENDING
            buckets[status] = buckets.get(status, StatusBucket()).add(share)

            key = _month_key(entry.order_created_at.astimezone(tz))
            if key == current_key:
                cm_sales += share.subtotal
                cm_commission += share.commission_amount
            elif key == last_key:
                lm_sales += share.subtotal
                lm_commission += share.commission_amount

        tier_check: Optional[TierCheck] = None
        if vendor.vendor_type is VendorType.SHOP:
            tier_check = self.check_tier(vendor, cm_sales)
            current_tier = self._table.shop_tier(vendor.commission_tier).label
            threshold = next_tier_threshold(vendor.commission_tier, self._table)
        else:
            volume = cm_sales if monthly_volume is None else monthly_volume
            current_tier = self._calculator.tier_label(vendor, volume, period.now)
            threshold = self._ladder_threshold(vendor, volume, period.now)

        return SettlementSummary(
            vendor_id=vendor.vendor_id,
            total_sales=total_sales,
            total_commission=total_commission,
            pending_payout=pending,
            completed_payout=completed,
            current_month_sales=cm_sales,
            current_month_commission=cm_commission,
            last_month_sales=lm_sales,
            last_month_commission=lm_commission,
            commission_rate=effective_percentage(total_commission, total_sales),
            current_tier=current_tier,
            next_tier_threshold=threshold,
            currency_code=period.currency_code,
            order_count=len(seen_orders),
            tier_check=tier_check,
            vendor_type=vendor.vendor_type,
            by_status=dict(sorted(buckets.items())),
        )

    def check_tier(self, vendor: Vendor, monthly_sales: int) -> TierCheck:
        """Evaluate a shop's tier against monthly_sales.

        can_upgrade is set when the sales resolve to a tier above the stored
        one. Otherwise sales_needed is the gap to the next automatically
        assignable tier, clamped at zero.
        """
        if vendor.vendor_type is not VendorType.SHOP:
            raise ValueError(
                f"Tier checks apply to shops only; vendor {vendor.vendor_id} "
                f"is a {vendor.vendor_type.value}"
            )
        current = vendor.commission_tier
        resolved = resolve_shop_tier(monthly_sales, self._table)

        if resolved > current:
            return TierCheck(
                current_tier=current,
                resolved_tier=resolved,
                can_upgrade=True,
                next_tier=resolved,
                next_tier_threshold=self._table.shop_tier(resolved).threshold,
                sales_needed=0,
            )

        threshold = next_tier_threshold(current, self._table)
        nxt = next_shop_tier(current, self._table)
        downgrade = (
            resolved < current
            and monthly_sales < self._table.shop_tier(current).threshold
        )
        return TierCheck(
            current_tier=current,
            resolved_tier=resolved,
            can_upgrade=False,
            next_tier=nxt.tier if nxt is not None and threshold is not None else None,
            next_tier_threshold=threshold,
            sales_needed=max(0, threshold - monthly_sales) if threshold is not None else 0,
            recommend_downgrade=downgrade,
        )

    def _ladder_threshold(
        self, vendor: Vendor, monthly_sales: int, now: datetime,
    ) -> Optional[int]:
        if vendor.pioneer_active(now):
            return None
        ladder = (
            self._table.brand if vendor.vendor_type is VendorType.BRAND
            else self._table.distributor
        )
        step = ladder.next_step(monthly_sales)
        return step.threshold if step is not None else None
