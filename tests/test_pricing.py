from datetime import date
from decimal import Decimal

import pytest

from services import pricing
from services.assessments import ASSESSMENT_PRICE, get_assessment, list_assessments
from utils.errors import ValidationError

SATURDAY = date(2026, 10, 24)
SUNDAY = date(2026, 10, 25)
TUESDAY = date(2026, 10, 20)


def test_plain_visit_in_lagos():
    b = pricing.calculate_pricing(5000, False, False, "Lagos")
    assert b.transport_fee == Decimal("2000.00")
    assert b.subtotal == Decimal("7000.00")
    assert b.tax == Decimal("350.00")
    assert b.total == Decimal("7350.00")


def test_all_surcharges():
    b = pricing.calculate_pricing(5000, True, True, "Kano")
    assert b.emergency_fee == Decimal("2500.00")
    assert b.weekend_fee == Decimal("1000.00")
    assert b.transport_fee == Decimal("2500.00")
    assert b.total == Decimal("11550.00")


@pytest.mark.parametrize("base,emergency,weekend,state,discount", [
    (5000, False, False, "Ogun", 0),
    (5000, True, False, "Abuja", 500),
    (7250.50, False, True, "Plateau", 0),
    (5000, True, True, "Nowhere", 1000),
])
def test_total_is_subtotal_plus_vat(base, emergency, weekend, state, discount):
    b = pricing.calculate_pricing(base, emergency, weekend, state, discount)
    expected = (b.service_price + b.emergency_fee + b.weekend_fee + b.transport_fee - b.discount) * Decimal("1.05")
    assert b.total == expected.quantize(Decimal("0.01"))
    assert pricing.calculate_total(base, emergency, weekend, state, discount) == b.total


@pytest.mark.parametrize("state,fee", [
    ("Lagos", "2000"),
    ("LAGOS", "2000"),
    ("  ogun ", "1500"),
    ("FCT", "3000"),
    ("federal-capital-territory", "3000"),
    ("Ekiti", "3000"),
    (None, "3000"),
])
def test_transport_fee_table(state, fee):
    assert pricing.transport_fee_for(state) == Decimal(fee)


def test_negative_base_price_rejected():
    with pytest.raises(ValidationError):
        pricing.calculate_pricing(-1, False, False, "Lagos")


def test_promo_codes():
    assert pricing.promo_discount(5000, "royal20") == Decimal("1000.00")
    assert pricing.promo_discount(5000, "FIRSTTIME") == Decimal("500.00")
    assert pricing.promo_discount(5000, None) == Decimal("0")
    with pytest.raises(ValidationError):
        pricing.promo_discount(5000, "FREEBIE")


@pytest.mark.parametrize("category,time,expected", [
    ("emergency", "07:59", True),
    ("emergency", "08:00", False),
    ("emergency", "18:59", False),
    ("emergency", "19:00", True),
    ("emergency", "23:30", True),
    ("general", "02:00", False),
])
def test_emergency_off_hours(category, time, expected):
    assert pricing.is_emergency_off_hours(category, time) is expected


def test_weekend_detection():
    assert pricing.is_weekend(SATURDAY)
    assert pricing.is_weekend(SUNDAY)
    assert not pricing.is_weekend(TUESDAY)


def test_quote_weekend_for_regular_assessment():
    b = pricing.quote(5000, "general", SATURDAY, "10:00", "Lagos")
    assert b.weekend_fee == Decimal("1000.00")
    assert b.emergency_fee == Decimal("0.00")


def test_quote_emergency_skips_weekend_fee():
    b = pricing.quote(5000, "emergency", SATURDAY, "20:00", "Lagos")
    assert b.emergency_fee == Decimal("2500.00")
    assert b.weekend_fee == Decimal("0.00")


def test_quote_with_promo():
    b = pricing.quote(5000, "routine", TUESDAY, "10:00", "Lagos", "ROYAL20")
    assert b.discount == Decimal("1000.00")
    assert b.total == Decimal("6300.00")


def test_breakdown_serializes_to_floats():
    data = pricing.calculate_pricing(5000, False, False, "Lagos").to_dict()
    assert data["total"] == 7350.0
    assert data["currency"] == "NGN"


def test_catalog_is_flat_priced():
    items = list_assessments()
    assert len(items) == 9
    assert {a["price"] for a in items} == {ASSESSMENT_PRICE}
    assert get_assessment("emergency-assessment")["category"] == "emergency"
    assert get_assessment("x-ray") is None
