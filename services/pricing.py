"""Home-visit fee calculation.

Everything here is pure: no database, no request context. Amounts are naira
as ``Decimal`` rounded to kobo.
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from utils.errors import ValidationError

KOBO = Decimal("0.01")

EMERGENCY_RATE = Decimal("0.5")
WEEKEND_RATE = Decimal("0.2")
VAT_RATE = Decimal("0.05")

DEFAULT_TRANSPORT_FEE = Decimal("3000")
TRANSPORT_FEES = {
    "lagos": Decimal("2000"),
    "abuja": Decimal("3000"),
    "fct": Decimal("3000"),
    "federal capital territory": Decimal("3000"),
    "kano": Decimal("2500"),
    "rivers": Decimal("2500"),
    "oyo": Decimal("2000"),
    "kaduna": Decimal("2500"),
    "ogun": Decimal("1500"),
    "ondo": Decimal("2000"),
    "osun": Decimal("2000"),
    "delta": Decimal("2500"),
    "anambra": Decimal("2500"),
    "imo": Decimal("2500"),
    "enugu": Decimal("2500"),
    "edo": Decimal("2000"),
    "plateau": Decimal("3000"),
}

PROMO_CODES = {
    "FIRSTTIME": Decimal("0.10"),
    "ROYAL20": Decimal("0.20"),
    "HEALTH15": Decimal("0.15"),
    "NURSE10": Decimal("0.10"),
}

# emergency visits outside 08:00-18:59 are billed at the off-hours rate
OFF_HOURS_BEFORE = 8
OFF_HOURS_AFTER = 18


@dataclass(frozen=True)
class PricingBreakdown:
    service_price: Decimal
    emergency_fee: Decimal
    weekend_fee: Decimal
    transport_fee: Decimal
    discount: Decimal
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    currency: str = "NGN"

    def to_dict(self) -> dict:
        return {
            "servicePrice": float(self.service_price),
            "emergencyFee": float(self.emergency_fee),
            "weekendFee": float(self.weekend_fee),
            "transportFee": float(self.transport_fee),
            "discount": float(self.discount),
            "subtotal": float(self.subtotal),
            "tax": float(self.tax),
            "total": float(self.total),
            "currency": self.currency,
        }


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(KOBO, rounding=ROUND_HALF_UP)


def transport_fee_for(state: Optional[str]) -> Decimal:
    key = (state or "").strip().lower().replace("-", " ")
    return TRANSPORT_FEES.get(key, DEFAULT_TRANSPORT_FEE)


def promo_discount(base_price, promo_code: Optional[str]) -> Decimal:
    if not promo_code:
        return Decimal("0")
    rate = PROMO_CODES.get(promo_code.strip().upper())
    if rate is None:
        raise ValidationError("Invalid promo code")
    return _money(Decimal(str(base_price)) * rate)


def is_emergency_off_hours(category: str, scheduled_time: str) -> bool:
    if category != "emergency":
        return False
    hour = int(scheduled_time.split(":")[0])
    return hour < OFF_HOURS_BEFORE or hour > OFF_HOURS_AFTER


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def calculate_pricing(base_price, is_emergency_off_hours: bool, is_weekend: bool,
                      state: Optional[str], promo_discount=0) -> PricingBreakdown:
    base = _money(base_price)
    if base < 0:
        raise ValidationError("Base price cannot be negative")

    discount = _money(promo_discount or 0)
    if discount < 0:
        raise ValidationError("Discount cannot be negative")

    emergency_fee = _money(base * EMERGENCY_RATE) if is_emergency_off_hours else _money(0)
    weekend_fee = _money(base * WEEKEND_RATE) if is_weekend else _money(0)
    transport_fee = _money(transport_fee_for(state))

    subtotal = base + emergency_fee + weekend_fee + transport_fee - discount
    tax = _money(subtotal * VAT_RATE)

    return PricingBreakdown(
        service_price=base,
        emergency_fee=emergency_fee,
        weekend_fee=weekend_fee,
        transport_fee=transport_fee,
        discount=discount,
        subtotal=subtotal,
        tax=tax,
        total=subtotal + tax,
    )


def calculate_total(base_price, is_emergency_off_hours: bool, is_weekend: bool,
                    state: Optional[str], promo_discount=0) -> Decimal:
    return calculate_pricing(base_price, is_emergency_off_hours, is_weekend, state, promo_discount).total


def quote(base_price, category: str, scheduled_date: date, scheduled_time: str,
          state: Optional[str], promo_code: Optional[str] = None) -> PricingBreakdown:
    """Decides the surcharge flags for a booking request and prices it."""
    emergency = is_emergency_off_hours(category, scheduled_time)
    # emergency visits carry their own surcharge, weekends are free for them
    weekend = is_weekend(scheduled_date) and category != "emergency"
    discount = promo_discount(base_price, promo_code)
    return calculate_pricing(base_price, emergency, weekend, state, discount)
