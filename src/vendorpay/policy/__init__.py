"""Commission rate configuration."""

from vendorpay.policy.rate_table import (
    LadderStep,
    PromotionalRate,
    RateTable,
    SettlementPolicy,
    TierRate,
    VolumeLadder,
)

__all__ = [
    "LadderStep",
    "PromotionalRate",
    "RateTable",
    "SettlementPolicy",
    "TierRate",
    "VolumeLadder",
]
