"""Order splitter — partitions a multi-vendor order into vendor bundles.

Line items are grouped by their upstream vendor attribution. Items with a
missing or blank vendor_id land in the reserved "__unattributed__" bucket:
they are reported, never dropped and never assigned to a placeholder vendor.

Invariant: attributed_total + unattributed.subtotal == order.total

Bundle subtotals do not depend on line-item order. Bundle ordering is the
order of each vendor's first appearance and is meant for display only.
"""

from __future__ import annotations

from vendorpay.models.order import LineItem, Order
from vendorpay.models.settlement import UNATTRIBUTED, OrderSplit, VendorBundle


def split_order(order: Order) -> OrderSplit:
    """Split order into per-vendor bundles plus the unattributed bucket."""
    grouped: dict[str, list[LineItem]] = {}
    unattributed: list[LineItem] = []
    for item in order.items:
        if item.is_attributed and item.vendor_id != UNATTRIBUTED:
            grouped.setdefault(item.vendor_id, []).append(item)
        else:
            unattributed.append(item)

    bundles = {
        vendor_id: _bundle(vendor_id, items)
        for vendor_id, items in grouped.items()
    }
    return OrderSplit(
        order_id=order.order_id,
        vendor_bundles=bundles,
        unattributed=_bundle(UNATTRIBUTED, unattributed),
    )


def _bundle(vendor_id: str, items: list[LineItem]) -> VendorBundle:
    return VendorBundle(
        vendor_id=vendor_id,
        subtotal=sum(item.total for item in items),
        items=tuple(items),
    )
