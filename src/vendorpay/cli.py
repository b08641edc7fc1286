"""vendorpay CLI — command-line interface for the settlement engine.

Usage:
    python -m vendorpay.cli quote --type shop --tier 1 --amount 1000000
    python -m vendorpay.cli quote --type brand --amount 20000 --volume 600000
    python -m vendorpay.cli tier --sales 52000 --current-tier 2
    python -m vendorpay.cli split --snapshot data/snapshot.json --order-id o-1
    python -m vendorpay.cli settle --snapshot data/snapshot.json --now 2026-03-31T23:59:59Z
    python -m vendorpay.cli check-invariants
    python -m vendorpay.cli verify-examples

Environment (a .env file in the working directory is honoured):
    VENDORPAY_CONFIG_DIR   directory holding commission_rates.json
    VENDORPAY_LOG_LEVEL    logging level (default WARNING)
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv

from vendorpay.models.settlement import SettlementPeriod
from vendorpay.models.vendor import VendorType, parse_timestamp
from vendorpay.persistence.snapshot import load_snapshot
from vendorpay.policy.rate_table import DEFAULT_CONFIG_DIR, RateTable
from vendorpay.service import ServiceResult, SettlementService


def _make_service(config_dir: Path) -> SettlementService:
    return SettlementService(RateTable.from_config_dir(config_dir))


def _emit(result: ServiceResult) -> int:
    if result.success:
        print(json.dumps(result.data, indent=2, default=str))
        return 0
    if result.data:
        print(json.dumps(result.data, indent=2, default=str))
    print(f"Failed: {'; '.join(result.errors)}", file=sys.stderr)
    return 1


def cmd_quote(args: argparse.Namespace) -> int:
    service = _make_service(args.config)
    record = {
        "id": args.vendor_id,
        "type": args.type,
        "commission_tier": args.tier,
        "pioneer_until": args.pioneer_until,
    }
    return _emit(service.quote(
        record, args.amount,
        monthly_volume=args.volume,
        now=parse_timestamp(args.now),
    ))


def cmd_tier(args: argparse.Namespace) -> int:
    service = _make_service(args.config)
    if args.current_tier is None:
        return _emit(service.resolve_tier(args.sales))
    record = {"id": args.vendor_id, "type": "shop", "commission_tier": args.current_tier}
    return _emit(service.check_tier(record, args.sales))


def cmd_split(args: argparse.Namespace) -> int:
    service = _make_service(args.config)
    snapshot = load_snapshot(args.snapshot)
    orders = [o for o in snapshot.orders if args.order_id in (None, o.order_id)]
    if not orders:
        print(f"Unknown order: {args.order_id}", file=sys.stderr)
        return 1
    exit_code = 0
    for order in orders:
        result = service.settle_order(
            order, snapshot.vendors,
            monthly_volumes=snapshot.monthly_volumes,
        )
        exit_code = max(exit_code, _emit(result))
    return exit_code


def cmd_settle(args: argparse.Namespace) -> int:
    service = _make_service(args.config)
    snapshot = load_snapshot(args.snapshot)
    period = SettlementPeriod(
        now=parse_timestamp(args.now) or datetime.now(timezone.utc),
        start=parse_timestamp(args.start),
        end=parse_timestamp(args.end),
        currency_code=args.currency or service.rate_table.settlement.default_currency,
    )
    return _emit(service.settle_period(
        snapshot.vendors, snapshot.orders, snapshot.statuses,
        period=period,
        monthly_volumes=snapshot.monthly_volumes,
    ))


def cmd_check_invariants(args: argparse.Namespace) -> int:
    """Run rate-table invariant checks."""
    tools_dir = Path(__file__).resolve().parents[2] / "tools"
    sys.path.insert(0, str(tools_dir))
    from check_invariants import check
    return check(Path(args.config) / "commission_rates.json")


def cmd_verify_examples(args: argparse.Namespace) -> int:
    """Check the worked examples against the shipped rate table."""
    tools_dir = Path(__file__).resolve().parents[2] / "tools"
    sys.path.insert(0, str(tools_dir))
    from verify_examples import main as verify
    return verify()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vendorpay",
        description="vendorpay — marketplace commission and settlement engine CLI",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path(os.environ.get("VENDORPAY_CONFIG_DIR", DEFAULT_CONFIG_DIR)),
        help="Path to config directory (default: config/)",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("VENDORPAY_LOG_LEVEL", "WARNING"),
        help="Logging level (default: WARNING)",
    )
    sub = parser.add_subparsers(dest="command")

    # quote
    p_quote = sub.add_parser("quote", help="Quote commission for one vendor")
    p_quote.add_argument(
        "--type", required=True,
        choices=[t.value for t in VendorType],
        help="Vendor type",
    )
    p_quote.add_argument("--amount", required=True, type=int, help="Base amount (minor units)")
    p_quote.add_argument("--tier", type=int, default=1, help="Shop commission tier (default: 1)")
    p_quote.add_argument("--volume", type=int, default=0, help="Monthly volume (minor units)")
    p_quote.add_argument("--pioneer-until", help="Distributor Pioneer end (ISO-8601)")
    p_quote.add_argument("--now", help="Evaluation time (ISO-8601, default: now)")
    p_quote.add_argument("--vendor-id", default="cli-vendor", help="Vendor ID")

    # tier
    p_tier = sub.add_parser("tier", help="Resolve or check a shop tier")
    p_tier.add_argument("--sales", required=True, type=int, help="Monthly sales (minor units)")
    p_tier.add_argument("--current-tier", type=int, help="Stored tier to check against")
    p_tier.add_argument("--vendor-id", default="cli-vendor", help="Vendor ID")

    # split
    p_split = sub.add_parser("split", help="Settle individual orders from a snapshot")
    p_split.add_argument("--snapshot", required=True, type=Path, help="Snapshot JSON file")
    p_split.add_argument("--order-id", help="Only this order (default: all)")

    # settle
    p_settle = sub.add_parser("settle", help="Settle a period from a snapshot")
    p_settle.add_argument("--snapshot", required=True, type=Path, help="Snapshot JSON file")
    p_settle.add_argument("--now", help="Period anchor (ISO-8601, default: now)")
    p_settle.add_argument("--start", help="Period start, inclusive (ISO-8601)")
    p_settle.add_argument("--end", help="Period end, exclusive (ISO-8601)")
    p_settle.add_argument("--currency", help="Settlement currency (default: from config)")

    # check-invariants
    sub.add_parser("check-invariants", help="Run rate-table invariant checks")

    # verify-examples
    sub.add_parser("verify-examples", help="Check worked commission examples")

    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=str(args.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "quote": cmd_quote,
        "tier": cmd_tier,
        "split": cmd_split,
        "settle": cmd_settle,
        "check-invariants": cmd_check_invariants,
        "verify-examples": cmd_verify_examples,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
