"""Rate table — immutable commission configuration per vendor type.

The table is plain data loaded from config/commission_rates.json and
passed explicitly into every calculation. There is no module-level
singleton: two tables can coexist (e.g. one per deployment, or an
override in a test) without interfering.

Selection rules:
    shop         — TierRate keyed by the vendor's stored tier
    brand        — VolumeLadder on monthly volume
    distributor  — PromotionalRate while Pioneer, else VolumeLadder

Load-time invariants:
- every rate is in [0, 1)
- ladder thresholds are positive and strictly increasing
- shop tiers 1..4 are present with non-decreasing thresholds
"""

from __future__ import annotations

import functools
import json
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Mapping, Optional

from vendorpay.errors import RateTableError


CONFIG_FILENAME = "commission_rates.json"
DEFAULT_CONFIG_DIR = Path(__file__).resolve().parents[3] / "config"


def _rate(value: Any, where: str) -> Decimal:
    try:
        rate = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise RateTableError(f"{where}: rate {value!r} is not a number")
    if not (Decimal("0") <= rate < Decimal("1")):
        raise RateTableError(f"{where}: rate must be in [0, 1), got {rate}")
    return rate


def _threshold(value: Any, where: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise RateTableError(f"{where}: threshold must be an integer, got {value!r}")
    if value < 0:
        raise RateTableError(f"{where}: threshold must be >= 0, got {value}")
    return value


@dataclass(frozen=True)
class TierRate:
    """One shop commission tier.

    manual_only tiers are never assigned from sales volume; they exist for
    administrative promotion.
    """
    tier: int
    label: str
    rate: Decimal
    threshold: int
    manual_only: bool = False


@dataclass(frozen=True)
class LadderStep:
    label: str
    rate: Decimal
    threshold: int = 0


@dataclass(frozen=True)
class VolumeLadder:
    """Volume-based rate selection with a base rate below the first step."""
    base: LadderStep
    steps: tuple[LadderStep, ...]

    def select(self, volume: int) -> LadderStep:
        """Highest step whose threshold does not exceed volume, else base."""
        chosen = self.base
        for step in self.steps:
            if volume >= step.threshold:
                chosen = step
            else:
                break
        return chosen

    def next_step(self, volume: int) -> Optional[LadderStep]:
        """The first step above volume, if any."""
        for step in self.steps:
            if step.threshold > volume:
                return step
        return None


@dataclass(frozen=True)
class PromotionalRate:
    """A flat promotional rate applied inside a vendor's time box."""
    label: str
    rate: Decimal


@dataclass(frozen=True)
class SettlementPolicy:
    completed_payment_status: str = "captured"
    completed_fulfillment_status: str = "delivered"
    default_currency: str = "USD"
    max_workers: int = 4


@dataclass(frozen=True)
class RateTable:
    """Commission configuration for all vendor types.

    Usage:
        table = RateTable.from_config_dir(config_dir)
        step = table.brand.select(monthly_volume)
    """
    shop: Mapping[int, TierRate]
    brand: VolumeLadder
    distributor: VolumeLadder
    pioneer: PromotionalRate
    settlement: SettlementPolicy = SettlementPolicy()

    def shop_tier(self, tier: int) -> TierRate:
        try:
            return self.shop[tier]
        except KeyError:
            raise RateTableError(f"No shop tier {tier} in rate table")

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> RateTable:
        """Build and validate a table from its JSON structure."""
        try:
            shop = _parse_shop(data["shop"])
            brand = _parse_ladder(data["brand"], "brand")
            distributor = _parse_ladder(data["distributor"], "distributor")
            pioneer_raw = data["distributor"]["pioneer"]
            pioneer = PromotionalRate(
                label=str(pioneer_raw.get("label", "Pioneer")),
                rate=_rate(pioneer_raw["rate"], "distributor.pioneer"),
            )
        except KeyError as exc:
            raise RateTableError(f"Rate table missing key: {exc.args[0]}")
        settlement_raw = data.get("settlement", {})
        settlement = SettlementPolicy(
            completed_payment_status=str(
                settlement_raw.get("completed_payment_status", "captured")
            ),
            completed_fulfillment_status=str(
                settlement_raw.get("completed_fulfillment_status", "delivered")
            ),
            default_currency=str(settlement_raw.get("default_currency", "USD")).upper(),
            max_workers=int(settlement_raw.get("max_workers", 4)),
        )
        if settlement.max_workers < 1:
            raise RateTableError("settlement.max_workers must be >= 1")
        return RateTable(
            shop=shop,
            brand=brand,
            distributor=distributor,
            pioneer=pioneer,
            settlement=settlement,
        )

    @staticmethod
    def from_config_dir(config_dir: Path) -> RateTable:
        path = Path(config_dir) / CONFIG_FILENAME
        if not path.exists():
            raise FileNotFoundError(f"Rate table not found: {path}")
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        return RateTable.from_dict(data)

    @staticmethod
    def default() -> RateTable:
        """The table shipped in the repository config/ directory."""
        return _default_table()


def _parse_shop(raw: Mapping[str, Any]) -> dict[int, TierRate]:
    tiers: dict[int, TierRate] = {}
    for key, entry in raw["tiers"].items():
        tier = int(key)
        where = f"shop.tiers.{tier}"
        tiers[tier] = TierRate(
            tier=tier,
            label=str(entry["label"]),
            rate=_rate(entry["rate"], where),
            threshold=_threshold(entry["threshold"], where),
            manual_only=bool(entry.get("manual_only", False)),
        )
    if sorted(tiers) != [1, 2, 3, 4]:
        raise RateTableError(
            f"shop.tiers must define tiers 1-4, got {sorted(tiers)}"
        )
    if tiers[1].manual_only:
        raise RateTableError("shop tier 1 cannot be manual_only")
    ordered = [tiers[t] for t in sorted(tiers)]
    for lower, higher in zip(ordered, ordered[1:]):
        if higher.threshold < lower.threshold:
            raise RateTableError(
                f"shop tier {higher.tier} threshold must be >= tier {lower.tier}"
            )
    return dict(sorted(tiers.items()))


def _parse_ladder(raw: Mapping[str, Any], name: str) -> VolumeLadder:
    base_raw = raw["base"]
    base = LadderStep(
        label=str(base_raw["label"]),
        rate=_rate(base_raw["rate"], f"{name}.base"),
    )
    steps = tuple(
        LadderStep(
            label=str(s["label"]),
            rate=_rate(s["rate"], f"{name}.steps[{i}]"),
            threshold=_threshold(s["threshold"], f"{name}.steps[{i}]"),
        )
        for i, s in enumerate(raw.get("steps", []))
    )
    previous = 0
    for step in steps:
        if step.threshold <= previous:
            raise RateTableError(
                f"{name} ladder thresholds must be positive and strictly increasing"
            )
        previous = step.threshold
    return VolumeLadder(base=base, steps=steps)


@functools.lru_cache(maxsize=1)
def _default_table() -> RateTable:
    return RateTable.from_config_dir(DEFAULT_CONFIG_DIR)
