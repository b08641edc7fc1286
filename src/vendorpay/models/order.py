"""Order models — orders, line items, and their external status facts.

Orders arrive fully hydrated from the order reader. Vendor attribution on
each line item is resolved upstream; it may be missing, in which case the
splitter isolates the item instead of guessing an owner.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from vendorpay.models.vendor import parse_timestamp


@dataclass(frozen=True)
class LineItem:
    """One product line of an order. unit_price is in minor units."""
    product_id: str
    unit_price: int
    quantity: int
    vendor_id: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.unit_price, bool) or not isinstance(self.unit_price, int):
            raise ValueError(
                f"unit_price must be an integer minor-unit amount, "
                f"got {self.unit_price!r} for product {self.product_id}"
            )
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValueError(
                f"quantity must be an integer, got {self.quantity!r} "
                f"for product {self.product_id}"
            )
        if self.unit_price < 0 or self.quantity < 0:
            raise ValueError(
                f"Line item for product {self.product_id} has a negative "
                f"price or quantity"
            )

    @property
    def total(self) -> int:
        return self.unit_price * self.quantity

    @property
    def is_attributed(self) -> bool:
        return bool(self.vendor_id and self.vendor_id.strip())

    @staticmethod
    def from_record(record: Mapping[str, Any]) -> LineItem:
        vendor_id = str(record.get("vendor_id") or "").strip()
        return LineItem(
            product_id=str(record["product_id"]),
            unit_price=int(record["unit_price"]),
            quantity=int(record["quantity"]),
            vendor_id=vendor_id or None,
        )


@dataclass(frozen=True)
class Order:
    """A customer order spanning one or more vendors.

    Immutable once settled; recomputation always starts from the same
    record.
    """
    order_id: str
    created_at: datetime
    currency_code: str
    items: tuple[LineItem, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))
        object.__setattr__(self, "created_at", parse_timestamp(self.created_at))
        object.__setattr__(self, "currency_code", self.currency_code.upper())

    @property
    def total(self) -> int:
        return sum(item.total for item in self.items)

    @staticmethod
    def from_record(record: Mapping[str, Any]) -> Order:
        return Order(
            order_id=str(record.get("id") or record["order_id"]),
            created_at=parse_timestamp(record["created_at"]),
            currency_code=str(record["currency_code"]),
            items=tuple(
                LineItem.from_record(item)
                for item in record.get("items", record.get("line_items", []))
            ),
        )


@dataclass(frozen=True)
class OrderStatus:
    """Payment and fulfillment status of an order.

    Owned by the payment and fulfillment collaborators and read here only
    to classify payouts as pending or completed.
    """
    order_id: str
    payment_status: str = "pending"
    fulfillment_status: str = "pending"

    def is_completed(
        self,
        completed_payment_status: str = "captured",
        completed_fulfillment_status: str = "delivered",
    ) -> bool:
        return (
            self.payment_status == completed_payment_status
            and self.fulfillment_status == completed_fulfillment_status
        )

    @staticmethod
    def from_record(record: Mapping[str, Any]) -> OrderStatus:
        return OrderStatus(
            order_id=str(record.get("id") or record["order_id"]),
            payment_status=str(record.get("payment_status") or "pending"),
            fulfillment_status=str(record.get("fulfillment_status") or "pending"),
        )
