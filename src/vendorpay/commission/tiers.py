"""Shop tier resolution — maps trailing monthly sales to a commission tier.

Tier thresholds come from the rate table:

    tier 1 Bronze   sales < 15000
    tier 2 Silver   15000 <= sales < 50000
    tier 3 Gold     sales >= 50000
    tier 4 Gold+    sales >= 50000, manual_only

Tiers 3 and 4 share a threshold in the source data, so volume alone cannot
tell them apart. Tier 4 is therefore manual_only: automatic resolution
never returns it, and it is reached by administrative promotion. The
shared threshold is kept as configured pending product-owner
clarification.
"""

from __future__ import annotations

from typing import Optional

from vendorpay.policy.rate_table import RateTable, TierRate


def _table(rate_table: Optional[RateTable]) -> RateTable:
    return rate_table if rate_table is not None else RateTable.default()


def resolve_shop_tier(monthly_sales: int, rate_table: Optional[RateTable] = None) -> int:
    """Resolve the tier a shop qualifies for on monthly_sales.

    Returns the highest automatically assignable tier whose threshold does
    not exceed monthly_sales. Always returns a tier; never raises.
    Monotonic non-decreasing in monthly_sales.
    """
    table = _table(rate_table)
    resolved = 1
    for tier, tier_rate in table.shop.items():
        if tier_rate.manual_only:
            continue
        if monthly_sales >= tier_rate.threshold:
            resolved = max(resolved, tier)
    return resolved


def shop_tier_label(tier: int, rate_table: Optional[RateTable] = None) -> str:
    return _table(rate_table).shop_tier(tier).label


def next_shop_tier(tier: int, rate_table: Optional[RateTable] = None) -> Optional[TierRate]:
    """The tier directly above tier, or None at the top."""
    return _table(rate_table).shop.get(tier + 1)


def next_tier_threshold(tier: int, rate_table: Optional[RateTable] = None) -> Optional[int]:
    """Sales needed in a month to earn the next tier automatically.

    None when there is no higher tier or the next tier is manual_only,
    since no sales figure unlocks it.
    """
    nxt = next_shop_tier(tier, rate_table)
    if nxt is None or nxt.manual_only:
        return None
    return nxt.threshold
