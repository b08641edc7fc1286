#!/usr/bin/env python3
"""Validate worked commission examples against the configured rate table."""

import json
import sys
from pathlib import Path

from vendorpay.models.order import Order
from vendorpay.models.vendor import parse_timestamp
from vendorpay.policy.rate_table import RateTable
from vendorpay.service import SettlementService


ROOT = Path(__file__).resolve().parents[1]
CONFIG_DIR = ROOT / "config"
EXAMPLES_DIR = ROOT / "examples" / "worked_examples"
EXAMPLE_FILES = [
    EXAMPLES_DIR / "commission_examples.json",
]


def load_json(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def validate_examples(bundle: dict, service: SettlementService) -> list[str]:
    errors: list[str] = []
    now = parse_timestamp(bundle["now"])

    for example in bundle.get("quotes", []):
        name = example["name"]
        result = service.quote(
            example["vendor"], example["amount"],
            monthly_volume=example.get("monthly_volume", 0),
            now=now,
        )
        if not result.success:
            errors.append(f"{name}: {'; '.join(result.errors)}")
            continue
        for key, expected in example["expect"].items():
            actual = result.data.get(key)
            if actual != expected:
                errors.append(f"{name}: {key} expected {expected!r}, got {actual!r}")

    for example in bundle.get("splits", []):
        name = example["name"]
        result = service.split(Order.from_record(example["order"]))
        for key, expected in example["expect"].items():
            actual = result.data.get(key)
            if actual != expected:
                errors.append(f"{name}: {key} expected {expected!r}, got {actual!r}")

    return errors


def main() -> int:
    service = SettlementService(RateTable.from_config_dir(CONFIG_DIR))
    errors: list[str] = []
    for path in EXAMPLE_FILES:
        errors.extend(
            f"{path.name}: {err}" for err in validate_examples(load_json(path), service)
        )

    if errors:
        print("Worked example validation failed:")
        for err in errors:
            print(f"- {err}")
        return 1

    print("Worked example validation passed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
