"""Batch settlement — period summaries for many vendors at once.

Each vendor is one independent unit of work: its shares are computed from
its own bundles and folded into its own summary. No vendor reads or writes
another vendor's state, so units run concurrently on a thread pool and a
failure in one is recorded without touching the others.

A run that is abandoned part-way leaves every already-finished summary
valid; a vendor's summary is produced whole or not at all.

Failure isolation:
- InvalidVendorType, CurrencyMismatch, UnknownVendor and ValueError are
  recorded per vendor in BatchSettlement.failures; any other exception
  raised while settling a vendor is recorded the same way and logged as
  an error
- bundles attributed to a vendor id missing from the lookup are reported
  as failures for that id, never dropped
- unattributed items are reported per order in BatchSettlement.unattributed

When no monthly volumes are supplied they are derived from the orders of
the run: month-to-date attributed sales as of period.now.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Union

from vendorpay.commission.engine import CommissionCalculator
from vendorpay.commission.splitter import split_order
from vendorpay.errors import UnknownVendor, VendorPayError
from vendorpay.models.order import Order, OrderStatus
from vendorpay.models.settlement import (
    SettlementEntry,
    SettlementPeriod,
    SettlementSummary,
    VendorBundle,
)
from vendorpay.models.vendor import Vendor
from vendorpay.policy.rate_table import RateTable
from vendorpay.settlement.aggregator import SettlementAggregator
from vendorpay.settlement.analytics import PlatformRollup, platform_rollup
from vendorpay.settlement.volume import derive_monthly_volumes

logger = logging.getLogger(__name__)

VendorInput = Union[Vendor, Mapping[str, Any]]


@dataclass(frozen=True)
class BatchSettlement:
    """Outcome of a batch run.

    summaries and failures are keyed by vendor id in input order.
    """
    summaries: dict[str, SettlementSummary] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)
    unattributed: dict[str, VendorBundle] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return not self.failures

    @property
    def unattributed_total(self) -> int:
        return sum(b.subtotal for b in self.unattributed.values())

    def platform(self) -> PlatformRollup:
        return platform_rollup(self.summaries.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "summaries": {
                vendor_id: summary.to_report()
                for vendor_id, summary in self.summaries.items()
            },
            "failures": dict(self.failures),
            "unattributed": {
                order_id: bundle.subtotal
                for order_id, bundle in self.unattributed.items()
            },
            "unattributed_total": self.unattributed_total,
            "status_reports": {
                vendor_id: summary.status_report()
                for vendor_id, summary in self.summaries.items()
            },
            "platform": self.platform().to_dict(),
        }


@dataclass(frozen=True)
class _Placement:
    order: Order
    bundle: VendorBundle


class BatchSettlementRunner:
    """Runs period settlement for a set of vendors.

    Usage:
        runner = BatchSettlementRunner(rate_table)
        result = runner.run(vendor_records, orders, statuses, period)
        result.summaries["v-1"].to_report()
        result.failures   # vendor_id -> error message
    """

    def __init__(self, rate_table: RateTable, max_workers: Optional[int] = None) -> None:
        self._table = rate_table
        self._calculator = CommissionCalculator(rate_table)
        self._aggregator = SettlementAggregator(rate_table)
        self._max_workers = max_workers or rate_table.settlement.max_workers

    def run(
        self,
        vendors: Iterable[VendorInput],
        orders: Iterable[Order],
        statuses: Optional[Mapping[str, OrderStatus]] = None,
        period: Optional[SettlementPeriod] = None,
        monthly_volumes: Optional[Mapping[str, int]] = None,
    ) -> BatchSettlement:
        statuses = statuses or {}
        if period is None:
            raise ValueError("A settlement period is required")
        orders = list(orders)
        if monthly_volumes is None:
            volumes = derive_monthly_volumes(
                orders, period.now, currency_code=period.currency_code,
            )
        else:
            volumes = dict(monthly_volumes)

        placements: dict[str, list[_Placement]] = {}
        unattributed: dict[str, VendorBundle] = {}
        for order in orders:
            split = split_order(order)
            for vendor_id, bundle in split.vendor_bundles.items():
                placements.setdefault(vendor_id, []).append(_Placement(order, bundle))
            if split.unattributed.items:
                unattributed[order.order_id] = split.unattributed
                logger.info(
                    f"Order {order.order_id}: {len(split.unattributed.items)} "
                    f"unattributed item(s), subtotal {split.unattributed.subtotal}"
                )

        keyed: list[tuple[str, VendorInput]] = []
        for index, record in enumerate(vendors):
            keyed.append((_vendor_key(record, index), record))
        known = {key for key, _ in keyed}

        results: dict[str, SettlementSummary] = {}
        failures: dict[str, str] = {}
        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            futures = {
                key: pool.submit(
                    self._settle_vendor,
                    record,
                    placements.get(key, []),
                    statuses,
                    period,
                    volumes.get(key, 0),
                )
                for key, record in keyed
            }
            for key, future in futures.items():
                try:
                    results[key] = future.result()
                except (VendorPayError, ValueError) as exc:
                    failures[key] = str(exc)
                    logger.warning(f"Settlement failed for vendor {key}: {exc}")
                except Exception as exc:
                    failures[key] = f"{type(exc).__name__}: {exc}"
                    logger.error(f"Unexpected settlement error for vendor {key}: {exc}")

        for vendor_id in placements:
            if vendor_id not in known:
                failures[vendor_id] = str(UnknownVendor(vendor_id))
                logger.warning(
                    f"Orders reference vendor {vendor_id} missing from the lookup"
                )

        logger.info(
            f"Batch settlement complete: {len(results)} settled, "
            f"{len(failures)} failed, {len(unattributed)} order(s) with "
            f"unattributed items"
        )
        return BatchSettlement(
            summaries=results,
            failures=failures,
            unattributed=unattributed,
        )

    def _settle_vendor(
        self,
        record: VendorInput,
        placements: list[_Placement],
        statuses: Mapping[str, OrderStatus],
        period: SettlementPeriod,
        monthly_volume: int,
    ) -> SettlementSummary:
        vendor = record if isinstance(record, Vendor) else Vendor.from_record(record)
        logger.debug(
            f"Settling vendor {vendor.vendor_id} over {len(placements)} order(s)"
        )
        entries = []
        for placement in placements:
            order = placement.order
            share = self._calculator.share_for(
                vendor, placement.bundle, order.order_id,
                monthly_volume=monthly_volume,
                now=order.created_at,
            )
            status = statuses.get(order.order_id) or OrderStatus(order.order_id)
            entries.append(
                SettlementEntry(
                    share=share,
                    order_created_at=order.created_at,
                    currency_code=order.currency_code,
                    payment_status=status.payment_status,
                    fulfillment_status=status.fulfillment_status,
                )
            )
        return self._aggregator.aggregate(
            vendor, entries, period, monthly_volume=monthly_volume,
        )


def _vendor_key(record: VendorInput, index: int) -> str:
    if isinstance(record, Vendor):
        return record.vendor_id
    if not isinstance(record, Mapping):
        return f"#{index}"
    key = record.get("id") or record.get("vendor_id")
    return str(key) if key else f"#{index}"
