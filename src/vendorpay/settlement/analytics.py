"""Platform analytics — commission rolled up across vendor summaries.

Totals are grouped by vendor type and by payout status. Each group
reports its average commission rate as commission / sales, in percent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from vendorpay.commission.engine import effective_percentage
from vendorpay.models.settlement import SettlementSummary, StatusBucket

UNKNOWN_TYPE = "unknown"


def _bucket_dict(bucket: StatusBucket) -> dict[str, Any]:
    data: dict[str, Any] = bucket.to_dict()
    data["avg_commission_rate"] = str(
        effective_percentage(bucket.commission, bucket.sales)
    )
    return data


@dataclass(frozen=True)
class PlatformRollup:
    totals: StatusBucket = field(default_factory=StatusBucket)
    by_vendor_type: dict[str, StatusBucket] = field(default_factory=dict)
    by_status: dict[str, StatusBucket] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totals": _bucket_dict(self.totals),
            "by_vendor_type": {
                key: _bucket_dict(b) for key, b in self.by_vendor_type.items()
            },
            "by_status": {
                key: _bucket_dict(b) for key, b in self.by_status.items()
            },
        }


def platform_rollup(summaries: Iterable[SettlementSummary]) -> PlatformRollup:
    """Combine per-vendor status buckets into platform-wide totals."""
    totals = StatusBucket()
    by_type: dict[str, StatusBucket] = {}
    by_status: dict[str, StatusBucket] = {}
    for summary in summaries:
        type_key = summary.vendor_type.value if summary.vendor_type else UNKNOWN_TYPE
        for status, bucket in summary.by_status.items():
            totals = totals.merge(bucket)
            by_type[type_key] = by_type.get(type_key, StatusBucket()).merge(bucket)
            by_status[status] = by_status.get(status, StatusBucket()).merge(bucket)
    return PlatformRollup(
        totals=totals,
        by_vendor_type=dict(sorted(by_type.items())),
        by_status=dict(sorted(by_status.items())),
    )
