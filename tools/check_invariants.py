#!/usr/bin/env python3
"""vendorpay invariant checks against the commission rate configuration."""

import json
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
RATES_PATH = ROOT / "config" / "commission_rates.json"


def load_json(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def check_rate(value, label: str, errors: list[str]) -> Decimal:
    """Rates are fractions in [0, 1) given as strings."""
    if not isinstance(value, str):
        errors.append(f"{label} must be a decimal string, got {value!r}")
    try:
        rate = Decimal(str(value))
    except InvalidOperation:
        errors.append(f"{label} is not a number: {value!r}")
        return Decimal("0")
    if not (Decimal("0") <= rate < Decimal("1")):
        errors.append(f"{label} must be in [0, 1), got {rate}")
    return rate


def check_ladder(ladder: dict, label: str, errors: list[str]) -> list[Decimal]:
    """Validate a volume ladder and return its rates, base first."""
    rates = [check_rate(ladder["base"]["rate"], f"{label}.base.rate", errors)]
    previous = 0
    for i, step in enumerate(ladder.get("steps", [])):
        threshold = step.get("threshold")
        if not isinstance(threshold, int) or threshold <= previous:
            errors.append(
                f"{label}.steps[{i}].threshold must be an integer above {previous}"
            )
        else:
            previous = threshold
        rates.append(check_rate(step["rate"], f"{label}.steps[{i}].rate", errors))
        if not step.get("label"):
            errors.append(f"{label}.steps[{i}] missing label")
    return rates


def check(path: Path = RATES_PATH) -> int:
    rates = load_json(path)
    errors: list[str] = []

    # --- Shop tier invariants ---
    tiers = rates["shop"]["tiers"]
    if sorted(tiers) != ["1", "2", "3", "4"]:
        errors.append(f"shop tiers must be exactly 1-4, got {sorted(tiers)}")
    else:
        shop_rates = [
            check_rate(tiers[t]["rate"], f"shop.tiers.{t}.rate", errors)
            for t in ("1", "2", "3", "4")
        ]
        thresholds = [tiers[t]["threshold"] for t in ("1", "2", "3", "4")]
        if thresholds[0] != 0:
            errors.append("shop tier 1 threshold must be 0")
        if thresholds != sorted(thresholds):
            errors.append("shop tier thresholds must be non-decreasing")
        if shop_rates != sorted(shop_rates):
            errors.append("shop tier rates must be non-decreasing by tier")
        if tiers["1"].get("manual_only"):
            errors.append("shop tier 1 cannot be manual_only")
        # A tier sharing its threshold with the tier below cannot be told
        # apart by volume and must be promoted by hand.
        for lower, higher in (("1", "2"), ("2", "3"), ("3", "4")):
            if (
                tiers[higher]["threshold"] == tiers[lower]["threshold"]
                and not tiers[higher].get("manual_only")
            ):
                errors.append(
                    f"shop tier {higher} shares tier {lower}'s threshold "
                    f"and must be manual_only"
                )

    # --- Brand ladder invariants ---
    brand_rates = check_ladder(rates["brand"], "brand", errors)
    if brand_rates != sorted(brand_rates):
        errors.append("brand platform fee must not fall as volume grows")

    # --- Distributor ladder invariants ---
    distributor = rates["distributor"]
    dist_rates = check_ladder(distributor, "distributor", errors)
    if dist_rates != sorted(dist_rates, reverse=True):
        errors.append("distributor volume discounts must not rise as volume grows")
    pioneer = check_rate(distributor["pioneer"]["rate"], "distributor.pioneer.rate", errors)
    if dist_rates and pioneer > dist_rates[0]:
        errors.append("distributor pioneer rate must not exceed the standard rate")

    # --- Settlement policy invariants ---
    settlement = rates.get("settlement", {})
    if settlement.get("max_workers", 1) < 1:
        errors.append("settlement.max_workers must be >= 1")
    currency = settlement.get("default_currency", "USD")
    if not (isinstance(currency, str) and len(currency) == 3 and currency.isalpha()):
        errors.append(f"settlement.default_currency must be an ISO-4217 code, got {currency!r}")

    if errors:
        print("Invariant check failed:")
        for err in errors:
            print(f"- {err}")
        return 1

    print("Invariant check passed.")
    return 0


if __name__ == "__main__":
    target = Path(sys.argv[1]) if len(sys.argv) > 1 else RATES_PATH
    raise SystemExit(check(target))
