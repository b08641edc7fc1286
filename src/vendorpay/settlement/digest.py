"""Settlement digests — content hashes for reproducible settlements.

A digest is the SHA-256 of the canonical JSON of a summary's report
payload. Re-running a settlement over the same inputs must yield the same
digest; a differing digest in a dispute means the inputs differed.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from vendorpay.models.settlement import OrderSettlement, SettlementSummary


def _canonical(payload: dict[str, Any]) -> bytes:
    return json.dumps(
        payload, sort_keys=True, separators=(",", ":"), default=str,
    ).encode("utf-8")


def summary_digest(summary: SettlementSummary) -> str:
    payload = {"vendor_id": summary.vendor_id, **summary.to_report()}
    return hashlib.sha256(_canonical(payload)).hexdigest()


def order_digest(settlement: OrderSettlement) -> str:
    return hashlib.sha256(_canonical(settlement.to_dict())).hexdigest()
