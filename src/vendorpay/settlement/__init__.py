"""Settlement subsystem — per-order shares, period summaries, batch runs."""

from vendorpay.settlement.aggregator import SettlementAggregator
from vendorpay.settlement.analytics import PlatformRollup, platform_rollup
from vendorpay.settlement.batch import BatchSettlement, BatchSettlementRunner
from vendorpay.settlement.digest import order_digest, summary_digest
from vendorpay.settlement.order import entries_for, settle_order
from vendorpay.settlement.volume import (
    MonthlyVolume,
    derive_monthly_volumes,
    monthly_volume_history,
    volumes_for_month,
)

__all__ = [
    "BatchSettlement",
    "BatchSettlementRunner",
    "MonthlyVolume",
    "PlatformRollup",
    "SettlementAggregator",
    "derive_monthly_volumes",
    "entries_for",
    "monthly_volume_history",
    "order_digest",
    "platform_rollup",
    "settle_order",
    "summary_digest",
    "volumes_for_month",
]
