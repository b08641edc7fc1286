"""Monthly volume — per-vendor, per-calendar-month sales derived from orders.

Brand and distributor rates depend on a vendor's monthly volume. Callers
that track it elsewhere pass it in; otherwise it is folded here from the
same order history the settlement run already holds.

Only attributed bundles count. An order counts once per vendor it
contains, whatever the number of its line items.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Iterable, Optional

from vendorpay.commission.splitter import split_order
from vendorpay.models.order import Order


@dataclass(frozen=True)
class MonthlyVolume:
    """One vendor's attributed sales in one calendar month."""
    vendor_id: str
    year: int
    month: int
    total_sales: int = 0
    order_count: int = 0

    def add(self, amount: int) -> MonthlyVolume:
        return MonthlyVolume(
            vendor_id=self.vendor_id,
            year=self.year,
            month=self.month,
            total_sales=self.total_sales + amount,
            order_count=self.order_count + 1,
        )


VolumeKey = tuple[str, int, int]


def monthly_volume_history(
    orders: Iterable[Order],
    tz: Optional[tzinfo] = None,
    currency_code: Optional[str] = None,
    until: Optional[datetime] = None,
) -> dict[VolumeKey, MonthlyVolume]:
    """Fold orders into {(vendor_id, year, month): MonthlyVolume}.

    Months are calendar months in tz (the order's own offset when None).
    Orders in another currency than currency_code, or created after
    until, are left out.
    """
    history: dict[VolumeKey, MonthlyVolume] = {}
    for order in orders:
        if currency_code and order.currency_code != currency_code.upper():
            continue
        if until is not None and order.created_at > until:
            continue
        ts = order.created_at.astimezone(tz) if tz is not None else order.created_at
        for vendor_id, bundle in split_order(order).vendor_bundles.items():
            key = (vendor_id, ts.year, ts.month)
            current = history.get(key) or MonthlyVolume(vendor_id, ts.year, ts.month)
            history[key] = current.add(bundle.subtotal)
    return history


def volumes_for_month(
    history: dict[VolumeKey, MonthlyVolume], year: int, month: int,
) -> dict[str, int]:
    return {
        vendor_id: volume.total_sales
        for (vendor_id, y, m), volume in history.items()
        if (y, m) == (year, month)
    }


def derive_monthly_volumes(
    orders: Iterable[Order],
    now: datetime,
    currency_code: Optional[str] = None,
) -> dict[str, int]:
    """Month-to-date attributed sales per vendor, as of now.

    The month is the calendar month of now, judged in now's timezone.
    """
    history = monthly_volume_history(
        orders, tz=now.tzinfo, currency_code=currency_code, until=now,
    )
    return volumes_for_month(history, now.year, now.month)
