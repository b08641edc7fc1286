"""Commission subsystem — tier resolution, rate selection, order splitting."""

from vendorpay.commission.engine import CommissionCalculator
from vendorpay.commission.splitter import split_order
from vendorpay.commission.tiers import (
    next_tier_threshold,
    resolve_shop_tier,
    shop_tier_label,
)

__all__ = [
    "CommissionCalculator",
    "next_tier_threshold",
    "resolve_shop_tier",
    "shop_tier_label",
    "split_order",
]
