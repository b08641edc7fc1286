"""Per-order settlement — one VendorOrderShare per attributed vendor.

Shares are emitted in the order each vendor first appears in the order.
Unattributed items are carried alongside the shares so callers can report
them; they never receive a commission.

Invariant: sum(share.subtotal) == split.attributed_total
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Mapping, Optional

from vendorpay.commission.engine import CommissionCalculator
from vendorpay.commission.splitter import split_order
from vendorpay.errors import UnknownVendor
from vendorpay.models.order import Order, OrderStatus
from vendorpay.models.settlement import OrderSettlement, SettlementEntry
from vendorpay.models.vendor import Vendor


def settle_order(
    order: Order,
    vendors: Mapping[str, Vendor],
    calculator: CommissionCalculator,
    monthly_volumes: Optional[Mapping[str, int]] = None,
    now: Optional[datetime] = None,
) -> OrderSettlement:
    """Compute every vendor's share of order.

    Raises:
        UnknownVendor: an attributed vendor_id is missing from vendors.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    volumes = monthly_volumes or {}
    split = split_order(order)

    shares = []
    for vendor_id, bundle in split.vendor_bundles.items():
        vendor = vendors.get(vendor_id)
        if vendor is None:
            raise UnknownVendor(vendor_id)
        shares.append(
            calculator.share_for(
                vendor, bundle, order.order_id,
                monthly_volume=volumes.get(vendor_id, 0),
                now=now,
            )
        )

    return OrderSettlement(
        order_id=order.order_id,
        currency_code=order.currency_code,
        shares=tuple(shares),
        unattributed=split.unattributed,
    )


def entries_for(
    settlement: OrderSettlement,
    order: Order,
    status: Optional[OrderStatus] = None,
) -> list[SettlementEntry]:
    """Pair each share of a settled order with the order's status facts.

    A missing status reads as pending on both axes.
    """
    if status is None:
        status = OrderStatus(order_id=order.order_id)
    return [
        SettlementEntry(
            share=share,
            order_created_at=order.created_at,
            currency_code=order.currency_code,
            payment_status=status.payment_status,
            fulfillment_status=status.fulfillment_status,
        )
        for share in settlement.shares
    ]
