"""Vendor models — the read-only view of a marketplace vendor.

Vendors are owned by the vendor-management collaborator. The engine reads
them and never writes them back: tier promotions produced by settlement
are recommendations for that collaborator to apply.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from vendorpay.errors import InvalidVendorType


class VendorType(str, enum.Enum):
    """Commercial relationship between the vendor and the platform.

    Each type selects its commission rate by a different rule:
        SHOP         — stored commission tier
        BRAND        — monthly volume ladder
        DISTRIBUTOR  — Pioneer promotion, then volume-discount ladder
    """
    SHOP = "shop"
    BRAND = "brand"
    DISTRIBUTOR = "distributor"

    @classmethod
    def parse(cls, value: Any, vendor_id: Optional[str] = None) -> VendorType:
        """Parse a raw type value, case-insensitively."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidVendorType(value, vendor_id)


SHOP_TIERS = (1, 2, 3, 4)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Coerce an ISO-8601 string or datetime to an aware UTC datetime.

    Naive values are taken to be UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        ts = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Cannot interpret {value!r} as a timestamp")
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _coerce_tier(value: Any, vendor_id: str) -> int:
    if value is None:
        return 1
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValueError(
        f"Commission tier for vendor {vendor_id or '?'} must be an integer, "
        f"got {value!r}"
    )


@dataclass(frozen=True)
class Vendor:
    """A vendor as supplied by the vendor lookup.

    commission_tier is only meaningful for shops; pioneer_until only for
    distributors. Both are carried for every type so a record can be
    passed through unchanged.
    """
    vendor_id: str
    vendor_type: VendorType
    commission_tier: int = 1
    pioneer_until: Optional[datetime] = None
    is_active: bool = True
    name: str = ""

    def __post_init__(self) -> None:
        if not self.vendor_id:
            raise ValueError("Vendor id must be non-empty")
        if not isinstance(self.vendor_type, VendorType):
            object.__setattr__(
                self, "vendor_type",
                VendorType.parse(self.vendor_type, self.vendor_id),
            )
        if self.commission_tier not in SHOP_TIERS:
            raise ValueError(
                f"Commission tier must be one of {SHOP_TIERS}, "
                f"got {self.commission_tier!r} for vendor {self.vendor_id}"
            )
        if self.pioneer_until is not None:
            object.__setattr__(
                self, "pioneer_until", parse_timestamp(self.pioneer_until),
            )

    def pioneer_active(self, now: datetime) -> bool:
        """True while a distributor's Pioneer window is still open."""
        if self.vendor_type is not VendorType.DISTRIBUTOR:
            return False
        if self.pioneer_until is None:
            return False
        return now < self.pioneer_until

    @staticmethod
    def from_record(record: Mapping[str, Any]) -> Vendor:
        """Build a vendor from a lookup record.

        Accepts the lookup contract keys
        {id, type, commission_tier, pioneer_until, is_active} and the
        dataclass field names (vendor_id, vendor_type) interchangeably.
        """
        if not isinstance(record, Mapping):
            raise ValueError(f"Vendor record must be a mapping, got {record!r}")
        vendor_id = str(record.get("id") or record.get("vendor_id") or "")
        raw_type = record.get("type", record.get("vendor_type"))
        return Vendor(
            vendor_id=vendor_id,
            vendor_type=VendorType.parse(raw_type, vendor_id or None),
            commission_tier=_coerce_tier(record.get("commission_tier"), vendor_id),
            pioneer_until=parse_timestamp(record.get("pioneer_until")),
            is_active=bool(record.get("is_active", True)),
            name=str(record.get("name") or ""),
        )
