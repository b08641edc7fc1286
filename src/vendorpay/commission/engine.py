"""Commission calculator — the platform's cut of one vendor's order subtotal.

The rate is a pure function of (vendor type, stored shop tier, monthly
volume, Pioneer status) evaluated against an injected RateTable:

    shop         rate = shop[tier].rate
    brand        rate = brand ladder at monthly_volume
    distributor  rate = pioneer.rate if now < pioneer_until
                        else distributor ladder at monthly_volume

    commission = round_half_away_from_zero(base_amount × rate)
    payout     = base_amount − commission

Rounding happens once, on the final minor-unit amount. Rates are never
rounded before use, so repeated calculations do not compound error.

Reported rates are percentages with two decimal places. Shops report the
nominal tier rate; brands and distributors report the effective rate
commission / base_amount, as vendors see it on their statements.

Invariants:
- commission + payout == base_amount, exactly
- base_amount == 0 short-circuits to zero commission and a 0.00 rate
- rate in [0, 1) means payout is never negative
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Optional

from vendorpay.errors import InvalidVendorType
from vendorpay.models.settlement import CommissionQuote, VendorBundle, VendorOrderShare
from vendorpay.models.vendor import Vendor, VendorType
from vendorpay.policy.rate_table import LadderStep, RateTable


ZERO_RATE = Decimal("0.00")
_CENT = Decimal("0.01")
_UNIT = Decimal("1")
_HUNDRED = Decimal("100")


def round_minor(amount: Decimal) -> int:
    """Round a minor-unit amount half away from zero."""
    return int(amount.quantize(_UNIT, rounding=ROUND_HALF_UP))


def as_percentage(rate: Decimal) -> Decimal:
    """Express a fractional rate as a 2-dp percentage (0.15 -> 15.00)."""
    return (rate * _HUNDRED).quantize(_CENT, rounding=ROUND_HALF_UP)


def effective_percentage(commission: int, base_amount: int) -> Decimal:
    if base_amount == 0:
        return ZERO_RATE
    return (Decimal(commission) * _HUNDRED / Decimal(base_amount)).quantize(
        _CENT, rounding=ROUND_HALF_UP,
    )


# Selected rate, its label, and whether the reported rate is nominal.
_Selection = tuple[Decimal, str, bool]


class CommissionCalculator:
    """Computes commission and payout for one vendor on one base amount.

    Usage:
        calculator = CommissionCalculator(RateTable.from_config_dir(config_dir))
        quote = calculator.calculate(vendor, 1_000_000, monthly_volume=0)
        quote.commission, quote.payout, quote.rate, quote.tier_label
    """

    def __init__(self, rate_table: RateTable) -> None:
        self._table = rate_table
        self._rules: dict[VendorType, Callable[[Vendor, int, datetime], _Selection]] = {
            VendorType.SHOP: self._shop_rate,
            VendorType.BRAND: self._brand_rate,
            VendorType.DISTRIBUTOR: self._distributor_rate,
        }
        missing = set(VendorType) - set(self._rules)
        if missing:
            raise RuntimeError(
                f"No commission rule for vendor types: "
                f"{', '.join(sorted(t.value for t in missing))}"
            )

    @property
    def rate_table(self) -> RateTable:
        return self._table

    def calculate(
        self,
        vendor: Vendor,
        base_amount: int,
        monthly_volume: int = 0,
        now: Optional[datetime] = None,
    ) -> CommissionQuote:
        """Compute the commission quote for vendor on base_amount.

        Args:
            vendor: The vendor owning the subtotal.
            base_amount: Subtotal in minor currency units.
            monthly_volume: Trailing monthly sales volume for ladder rates.
            now: Evaluation time for Pioneer windows (defaults to UTC now).

        Raises:
            InvalidVendorType: vendor.vendor_type has no commission rule.
            ValueError: base_amount is negative.
        """
        if base_amount < 0:
            raise ValueError(
                f"Commission base for vendor {vendor.vendor_id} cannot be "
                f"negative: {base_amount}"
            )
        if now is None:
            now = datetime.now(timezone.utc)

        rule = self._rules.get(vendor.vendor_type)
        if rule is None:
            raise InvalidVendorType(vendor.vendor_type, vendor.vendor_id)
        rate, label, nominal = rule(vendor, monthly_volume, now)

        if base_amount == 0:
            return CommissionQuote(
                base_amount=0,
                commission=0,
                rate=ZERO_RATE,
                tier_label=label,
            )

        commission = round_minor(Decimal(base_amount) * rate)
        reported = (
            as_percentage(rate) if nominal
            else effective_percentage(commission, base_amount)
        )
        return CommissionQuote(
            base_amount=base_amount,
            commission=commission,
            rate=reported,
            tier_label=label,
        )

    def share_for(
        self,
        vendor: Vendor,
        bundle: VendorBundle,
        order_id: str,
        monthly_volume: int = 0,
        now: Optional[datetime] = None,
    ) -> VendorOrderShare:
        """Compute the vendor's share of one order from its bundle."""
        if bundle.vendor_id != vendor.vendor_id:
            raise ValueError(
                f"Bundle for vendor {bundle.vendor_id} passed with vendor "
                f"{vendor.vendor_id}"
            )
        quote = self.calculate(vendor, bundle.subtotal, monthly_volume, now)
        return VendorOrderShare(
            vendor_id=vendor.vendor_id,
            order_id=order_id,
            subtotal=bundle.subtotal,
            commission_rate=quote.rate,
            commission_amount=quote.commission,
            payout_amount=quote.payout,
            tier_applied=quote.tier_label,
        )

    def tier_label(
        self,
        vendor: Vendor,
        monthly_volume: int = 0,
        now: Optional[datetime] = None,
    ) -> str:
        """The label of the rate the vendor would be charged right now."""
        if now is None:
            now = datetime.now(timezone.utc)
        rule = self._rules.get(vendor.vendor_type)
        if rule is None:
            raise InvalidVendorType(vendor.vendor_type, vendor.vendor_id)
        return rule(vendor, monthly_volume, now)[1]

    # ------------------------------------------------------------------
    # Per-type rules
    # ------------------------------------------------------------------

    def _shop_rate(self, vendor: Vendor, monthly_volume: int, now: datetime) -> _Selection:
        tier_rate = self._table.shop_tier(vendor.commission_tier)
        return tier_rate.rate, tier_rate.label, True

    def _brand_rate(self, vendor: Vendor, monthly_volume: int, now: datetime) -> _Selection:
        step: LadderStep = self._table.brand.select(monthly_volume)
        return step.rate, step.label, False

    def _distributor_rate(
        self, vendor: Vendor, monthly_volume: int, now: datetime,
    ) -> _Selection:
        if vendor.pioneer_active(now):
            return self._table.pioneer.rate, self._table.pioneer.label, False
        step = self._table.distributor.select(monthly_volume)
        return step.rate, step.label, False
