"""Settlement models — derived commission and payout records.

All monetary values are integers in the minor currency unit. Rates are
Decimal percentages with two decimal places. No floats in finance.

Invariants enforced by these models:
- payout_amount + commission_amount == subtotal for every vendor share
- the unattributed bucket is a named bundle, never dropped
- every record is frozen; recomputation replaces, never mutates
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from vendorpay.models.order import LineItem
from vendorpay.models.vendor import VendorType, parse_timestamp


UNATTRIBUTED = "__unattributed__"

PAYOUT_COMPLETED = "completed"
PAYOUT_PENDING = "pending"


@dataclass(frozen=True)
class VendorBundle:
    """The line items of one order owned by one vendor."""
    vendor_id: str
    subtotal: int
    items: tuple[LineItem, ...] = field(default_factory=tuple)

    @property
    def is_unattributed(self) -> bool:
        return self.vendor_id == UNATTRIBUTED


@dataclass(frozen=True)
class OrderSplit:
    """An order partitioned into per-vendor bundles.

    vendor_bundles is ordered by first appearance in the order. That
    ordering is for display only.
    """
    order_id: str
    vendor_bundles: Mapping[str, VendorBundle]
    unattributed: VendorBundle

    @property
    def attributed_total(self) -> int:
        return sum(b.subtotal for b in self.vendor_bundles.values())

    @property
    def total(self) -> int:
        return self.attributed_total + self.unattributed.subtotal

    @property
    def vendor_ids(self) -> list[str]:
        return list(self.vendor_bundles)


@dataclass(frozen=True)
class CommissionQuote:
    """Commission for one vendor on one monetary base.

    rate is the percentage reported to vendors (e.g. Decimal("15.00")).
    """
    base_amount: int
    commission: int
    rate: Decimal
    tier_label: str

    @property
    def payout(self) -> int:
        return self.base_amount - self.commission


@dataclass(frozen=True)
class VendorOrderShare:
    """The portion of one order attributable to one vendor.

    Invariant: payout_amount + commission_amount == subtotal
    """
    vendor_id: str
    order_id: str
    subtotal: int
    commission_rate: Decimal
    commission_amount: int
    payout_amount: int
    tier_applied: str

    def __post_init__(self) -> None:
        if self.payout_amount + self.commission_amount != self.subtotal:
            raise ValueError(
                f"Share for vendor {self.vendor_id} on order {self.order_id} "
                f"does not conserve money: {self.payout_amount} + "
                f"{self.commission_amount} != {self.subtotal}"
            )
        if self.payout_amount < 0 or self.commission_amount < 0:
            raise ValueError(
                f"Share for vendor {self.vendor_id} on order {self.order_id} "
                f"has a negative amount"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "vendor_id": self.vendor_id,
            "order_id": self.order_id,
            "subtotal": self.subtotal,
            "commission_rate": str(self.commission_rate),
            "commission_amount": self.commission_amount,
            "payout_amount": self.payout_amount,
            "tier_applied": self.tier_applied,
        }


@dataclass(frozen=True)
class OrderSettlement:
    """Every vendor share of one order, plus the unattributed remainder."""
    order_id: str
    currency_code: str
    shares: tuple[VendorOrderShare, ...]
    unattributed: VendorBundle

    @property
    def vendor_count(self) -> int:
        return len(self.shares)

    @property
    def total_commission(self) -> int:
        return sum(s.commission_amount for s in self.shares)

    @property
    def total_vendor_payout(self) -> int:
        return sum(s.payout_amount for s in self.shares)

    @property
    def attributed_total(self) -> int:
        return sum(s.subtotal for s in self.shares)

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "currency_code": self.currency_code,
            "vendor_count": self.vendor_count,
            "shares": [s.to_dict() for s in self.shares],
            "total_commission": self.total_commission,
            "total_vendor_payout": self.total_vendor_payout,
            "unattributed_subtotal": self.unattributed.subtotal,
            "unattributed_items": [i.product_id for i in self.unattributed.items],
        }


@dataclass(frozen=True)
class SettlementEntry:
    """A vendor share together with the facts about its order.

    payment_status and fulfillment_status are read from other
    collaborators and treated as immutable for the run.
    """
    share: VendorOrderShare
    order_created_at: datetime
    currency_code: str
    payment_status: str = "pending"
    fulfillment_status: str = "pending"

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "order_created_at", parse_timestamp(self.order_created_at),
        )


@dataclass(frozen=True)
class SettlementPeriod:
    """The window a settlement summary covers.

    now anchors the current/last calendar month split. When start or end
    is set, entries outside [start, end) are left out of every total.
    """
    now: datetime
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    currency_code: str = "USD"

    def __post_init__(self) -> None:
        object.__setattr__(self, "now", parse_timestamp(self.now))
        if self.now is None:
            raise ValueError("Settlement period requires a reference time")
        object.__setattr__(self, "start", parse_timestamp(self.start))
        object.__setattr__(self, "end", parse_timestamp(self.end))
        object.__setattr__(self, "currency_code", self.currency_code.upper())
        if self.start and self.end and self.start >= self.end:
            raise ValueError("Settlement period start must precede end")

    def contains(self, ts: datetime) -> bool:
        if self.start is not None and ts < self.start:
            return False
        if self.end is not None and ts >= self.end:
            return False
        return True


@dataclass(frozen=True)
class TierCheck:
    """Tier-upgrade evaluation for a shop vendor.

    Upgrades are flagged for the vendor-management collaborator to apply.
    A downgrade is only ever a recommendation.
    """
    current_tier: int
    resolved_tier: int
    can_upgrade: bool
    next_tier: Optional[int]
    next_tier_threshold: Optional[int]
    sales_needed: int
    recommend_downgrade: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_tier": self.current_tier,
            "resolved_tier": self.resolved_tier,
            "can_upgrade": self.can_upgrade,
            "next_tier": self.next_tier,
            "next_tier_threshold": self.next_tier_threshold,
            "sales_needed": self.sales_needed,
            "recommend_downgrade": self.recommend_downgrade,
        }


@dataclass(frozen=True)
class StatusBucket:
    """Running totals of vendor shares that share a payout status.

    net is the vendor payout, sales minus commission.
    """
    count: int = 0
    sales: int = 0
    commission: int = 0
    net: int = 0

    def add(self, share: VendorOrderShare) -> StatusBucket:
        return StatusBucket(
            count=self.count + 1,
            sales=self.sales + share.subtotal,
            commission=self.commission + share.commission_amount,
            net=self.net + share.payout_amount,
        )

    def merge(self, other: StatusBucket) -> StatusBucket:
        return StatusBucket(
            count=self.count + other.count,
            sales=self.sales + other.sales,
            commission=self.commission + other.commission,
            net=self.net + other.net,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "count": self.count,
            "sales": self.sales,
            "commission": self.commission,
            "net": self.net,
        }


REPORT_FIELDS = (
    "total_sales",
    "total_commission",
    "pending_payouts",
    "completed_payouts",
    "current_month_sales",
    "current_month_commission",
    "last_month_sales",
    "last_month_commission",
    "commission_rate",
    "current_tier",
    "next_tier_threshold",
    "currency_code",
)


@dataclass(frozen=True)
class SettlementSummary:
    """Per-vendor, per-period totals used for payout and tier decisions."""
    vendor_id: str
    total_sales: int
    total_commission: int
    pending_payout: int
    completed_payout: int
    current_month_sales: int
    current_month_commission: int
    last_month_sales: int
    last_month_commission: int
    commission_rate: Decimal
    current_tier: str
    next_tier_threshold: Optional[int]
    currency_code: str
    order_count: int = 0
    tier_check: Optional[TierCheck] = None
    vendor_type: Optional[VendorType] = None
    by_status: dict[str, StatusBucket] = field(default_factory=dict)

    def status_report(self) -> dict[str, dict[str, int]]:
        """Count, sales, commission and net per payout status."""
        return {status: b.to_dict() for status, b in self.by_status.items()}

    def to_report(self) -> dict[str, Any]:
        """The reporting payload, keyed exactly as downstream consumers expect."""
        return {
            "total_sales": self.total_sales,
            "total_commission": self.total_commission,
            "pending_payouts": self.pending_payout,
            "completed_payouts": self.completed_payout,
            "current_month_sales": self.current_month_sales,
            "current_month_commission": self.current_month_commission,
            "last_month_sales": self.last_month_sales,
            "last_month_commission": self.last_month_commission,
            "commission_rate": str(self.commission_rate),
            "current_tier": self.current_tier,
            "next_tier_threshold": self.next_tier_threshold,
            "currency_code": self.currency_code,
        }
