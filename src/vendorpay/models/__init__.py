"""Core data models for vendorpay."""

from vendorpay.models.order import LineItem, Order, OrderStatus
from vendorpay.models.settlement import (
    UNATTRIBUTED,
    CommissionQuote,
    OrderSettlement,
    OrderSplit,
    SettlementEntry,
    SettlementPeriod,
    SettlementSummary,
    StatusBucket,
    TierCheck,
    VendorBundle,
    VendorOrderShare,
)
from vendorpay.models.vendor import Vendor, VendorType

__all__ = [
    "UNATTRIBUTED",
    "CommissionQuote",
    "LineItem",
    "Order",
    "OrderSettlement",
    "OrderSplit",
    "OrderStatus",
    "SettlementEntry",
    "SettlementPeriod",
    "SettlementSummary",
    "StatusBucket",
    "TierCheck",
    "Vendor",
    "VendorBundle",
    "VendorOrderShare",
    "VendorType",
]
