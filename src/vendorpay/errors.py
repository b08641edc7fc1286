"""Errors raised by the commission and settlement engine.

Every error is local to one vendor or one order. Batch runs catch these
per vendor and report them individually.
"""

from __future__ import annotations


class VendorPayError(Exception):
    """Base class for engine errors."""


class InvalidVendorType(VendorPayError, ValueError):
    """A vendor record carries a type outside shop/brand/distributor."""

    def __init__(self, vendor_type: object, vendor_id: str | None = None) -> None:
        self.vendor_type = vendor_type
        self.vendor_id = vendor_id
        where = f" for vendor {vendor_id}" if vendor_id else ""
        super().__init__(f"Unknown vendor type{where}: {vendor_type!r}")


class UnknownVendor(VendorPayError, KeyError):
    """An order references a vendor the lookup did not supply."""

    def __init__(self, vendor_id: str) -> None:
        self.vendor_id = vendor_id
        super().__init__(vendor_id)

    def __str__(self) -> str:
        return f"Unknown vendor: {self.vendor_id}"


class CurrencyMismatch(VendorPayError, ValueError):
    """Shares in one settlement carry different currencies."""


class RateTableError(VendorPayError, ValueError):
    """The commission rate configuration is malformed."""
