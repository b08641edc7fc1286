"""Settlement snapshots — materialised engine inputs in one JSON document.

The engine performs no I/O of its own. Collaborators that cannot call it
in-process (batch jobs, the CLI) export their data as a snapshot:

    {
      "vendors":  [{"id": "v-1", "type": "shop", "commission_tier": 1, ...}],
      "orders":   [{"id": "o-1", "created_at": "...", "currency_code": "USD",
                    "items": [{"product_id": "p", "vendor_id": "v-1",
                               "unit_price": 500, "quantity": 2}]}],
      "statuses": [{"order_id": "o-1", "payment_status": "captured",
                    "fulfillment_status": "delivered"}],
      "monthly_volumes": {"v-1": 12000}
    }

When monthly_volumes is absent, settlement derives it from the orders.

Vendor records are kept raw so that an invalid vendor fails its own
settlement rather than the whole load.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from vendorpay.models.order import Order, OrderStatus


@dataclass(frozen=True)
class Snapshot:
    vendors: list[dict[str, Any]] = field(default_factory=list)
    orders: list[Order] = field(default_factory=list)
    statuses: dict[str, OrderStatus] = field(default_factory=dict)
    monthly_volumes: Optional[dict[str, int]] = None

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> Snapshot:
        statuses = [OrderStatus.from_record(s) for s in data.get("statuses", [])]
        return Snapshot(
            vendors=[dict(v) for v in data.get("vendors", [])],
            orders=[Order.from_record(o) for o in data.get("orders", [])],
            statuses={s.order_id: s for s in statuses},
            monthly_volumes=(
                {str(k): int(v) for k, v in data["monthly_volumes"].items()}
                if data.get("monthly_volumes") is not None else None
            ),
        )


def load_snapshot(path: Path) -> Snapshot:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        return Snapshot.from_dict(json.load(handle))
