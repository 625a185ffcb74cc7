from datetime import datetime, timedelta

import pytest

from tiffin_api.core.config import settings
from tiffin_api.core.errors import CouponInvalid, PricingValidationError
from tiffin_api.models import AddOnSelection, BookingType, Coupon, DiscountType, WeeklyCustomization
from tiffin_api.services.pricing import (
    BOOKING_TYPE_RULES,
    add_on_total,
    applicable_days,
    base_price,
    compute_total,
    customization_total,
    delivery_charge,
)

NOW = datetime(2026, 10, 19, 12, 0)


def coupon(**overrides):
    data = dict(
        code="SAVE10",
        discount_type=DiscountType.PERCENTAGE,
        discount_value=10.0,
        min_order_amount=0.0,
        max_discount_amount=None,
        valid_from=NOW - timedelta(days=1),
        valid_until=NOW + timedelta(days=1),
        usage_limit=5,
        used_count=0,
        is_active=True,
    )
    data.update(overrides)
    return Coupon(**data)


def test_add_on_total_multiplies_price_by_quantity():
    assert add_on_total([AddOnSelection(name="Roti", price=12.5, quantity=4)]) == 50.0
    assert add_on_total([
        AddOnSelection(name="Roti", price=10, quantity=2),
        AddOnSelection(name="Raita", price=25, quantity=1),
    ]) == 45.0


def test_add_on_total_of_nothing_is_zero():
    assert add_on_total([]) == 0
    assert add_on_total(None) == 0


def test_add_on_total_accepts_plain_dicts():
    assert add_on_total([{"name": "Roti", "price": 10, "quantity": 3}]) == 30.0


@pytest.mark.parametrize("price,quantity", [(-1, 1), (10, 0), (10, -2), (float("nan"), 1)])
def test_add_on_total_rejects_bad_lines(price, quantity):
    with pytest.raises(PricingValidationError):
        add_on_total([AddOnSelection(name="Roti", price=price, quantity=quantity)])


def test_customization_charged_only_on_selected_days():
    paneer = WeeklyCustomization(name="Paneer", price=20, days=["Mon", "Tue", "Wed"])
    assert customization_total([paneer], ["Mon", "Wed", "Fri"]) == 40


def test_customization_day_order_does_not_matter():
    paneer = WeeklyCustomization(name="Paneer", price=20, days=["Wed", "Mon", "Tue"])
    assert customization_total([paneer], ["Fri", "Wed", "Mon"]) == customization_total(
        [paneer], ["Mon", "Wed", "Fri"]
    )


def test_customization_without_selected_days_uses_every_day_by_default():
    paneer = WeeklyCustomization(name="Paneer", price=20, days=["Mon", "Tue", "Wed"])
    assert customization_total([paneer], []) == 60
    assert customization_total([paneer], [], full_days_when_unselected=False) == 0


def test_customization_with_no_overlap_costs_nothing():
    paneer = WeeklyCustomization(name="Paneer", price=20, days=["Sat"])
    assert customization_total([paneer], ["Mon"]) == 0
    assert applicable_days(paneer, ["Mon"]) == set()


def test_customization_rejects_negative_price():
    with pytest.raises(PricingValidationError):
        customization_total([WeeklyCustomization(name="Bad", price=-5, days=["Mon"])], ["Mon"])


@pytest.mark.parametrize("booking_type,expected", [
    ("single", 19.0),
    ("trial", 19.0),
    ("weekly", 0.0),
    ("monthly", 0.0),
])
def test_delivery_charge_by_booking_type(booking_type, expected):
    assert delivery_charge(booking_type) == expected


def test_delivery_charge_uses_configured_flat_charge(monkeypatch):
    monkeypatch.setattr(settings, "DELIVERY_CHARGE", 25.0)
    assert delivery_charge(BookingType.SINGLE) == 25.0


def test_every_booking_type_has_a_rule():
    assert set(BOOKING_TYPE_RULES) == set(BookingType)


def test_only_weekly_base_price_scales_with_days():
    days = ["Mon", "Wed", "Fri"]
    assert base_price(100, 1, "weekly", days) == 300
    assert base_price(100, 1, "monthly", days) == 100
    assert base_price(100, 2, "single", days) == 200


def test_weekly_booking_needs_days():
    with pytest.raises(PricingValidationError):
        base_price(100, 1, "weekly", [])


def test_single_booking_total():
    breakdown = compute_total(tiffin_base_price=100, quantity=2, booking_type="single")
    assert breakdown.base_price == 200
    assert breakdown.delivery_charge == 19
    assert breakdown.discount_amount == 0
    assert breakdown.total_price == 219


def test_weekly_booking_total():
    breakdown = compute_total(
        tiffin_base_price=100, quantity=1, booking_type="weekly", selected_days=["Mon", "Wed", "Fri"]
    )
    assert breakdown.base_price == 300
    assert breakdown.delivery_charge == 0
    assert breakdown.total_price == 300


def test_breakdown_adds_up():
    breakdown = compute_total(
        tiffin_base_price=100,
        quantity=1,
        booking_type="weekly",
        selected_days=["Mon", "Wed", "Fri"],
        add_ons=[AddOnSelection(name="Roti", price=10, quantity=3)],
        customizations=[WeeklyCustomization(name="Paneer", price=20, days=["Mon", "Tue", "Wed"])],
        coupon=coupon(discount_type=DiscountType.FIXED, discount_value=50),
        now=NOW,
    )
    assert breakdown.add_ons_price == 30
    assert breakdown.customizations_price == 40
    assert breakdown.subtotal == 370
    assert breakdown.discount_amount == 50
    assert breakdown.coupon_code == "SAVE10"
    assert breakdown.total_price == pytest.approx(
        breakdown.base_price + breakdown.add_ons_price + breakdown.customizations_price
        + breakdown.delivery_charge - breakdown.discount_amount
    )


def test_percentage_coupon_capped_at_max_discount():
    breakdown = compute_total(
        tiffin_base_price=1000, quantity=1, booking_type="monthly",
        coupon=coupon(discount_value=10, max_discount_amount=50), now=NOW,
    )
    assert breakdown.subtotal == 1000
    assert breakdown.discount_amount == 50
    assert breakdown.total_price == 950


def test_fixed_coupon_larger_than_order_never_goes_negative():
    breakdown = compute_total(
        tiffin_base_price=300, quantity=1, booking_type="single",
        coupon=coupon(discount_type=DiscountType.FIXED, discount_value=500), now=NOW,
    )
    assert breakdown.discount_amount == 300
    assert breakdown.total_price == 19
    assert breakdown.total_price >= 0


def test_exhausted_coupon_rejected_then_booking_prices_without_it():
    exhausted = coupon(usage_limit=5, used_count=5)
    with pytest.raises(CouponInvalid) as exc:
        compute_total(tiffin_base_price=100, quantity=1, booking_type="single", coupon=exhausted, now=NOW)
    assert exc.value.reason == "LIMIT_REACHED"

    breakdown = compute_total(tiffin_base_price=100, quantity=1, booking_type="single")
    assert breakdown.discount_amount == 0
    assert breakdown.total_price == 119


def test_coupon_minimum_checked_against_subtotal_without_delivery():
    needs_120 = coupon(min_order_amount=119.5)
    with pytest.raises(CouponInvalid) as exc:
        compute_total(tiffin_base_price=100, quantity=1, booking_type="single", coupon=needs_120, now=NOW)
    assert exc.value.reason == "BELOW_MINIMUM"


def test_delivery_charge_override():
    breakdown = compute_total(
        tiffin_base_price=100, quantity=1, booking_type="weekly",
        selected_days=["Mon"], delivery_charge_override=19,
    )
    assert breakdown.delivery_charge == 19
    assert breakdown.total_price == 119

    with pytest.raises(PricingValidationError):
        compute_total(tiffin_base_price=100, quantity=1, booking_type="single", delivery_charge_override=-1)


@pytest.mark.parametrize("kwargs", [
    {"tiffin_base_price": -100, "quantity": 1, "booking_type": "single"},
    {"tiffin_base_price": 100, "quantity": 0, "booking_type": "single"},
    {"tiffin_base_price": 100, "quantity": 1.5, "booking_type": "single"},
    {"tiffin_base_price": 100, "quantity": 1, "booking_type": "yearly"},
    {"tiffin_base_price": float("inf"), "quantity": 1, "booking_type": "single"},
])
def test_compute_total_rejects_malformed_input(kwargs):
    with pytest.raises(PricingValidationError):
        compute_total(**kwargs)


def test_compute_total_is_repeatable():
    kwargs = dict(
        tiffin_base_price=120,
        quantity=2,
        booking_type="weekly",
        selected_days=["Tue", "Thu"],
        add_ons=[AddOnSelection(name="Raita", price=25, quantity=2)],
        customizations=[WeeklyCustomization(name="Paneer", price=20, days=["Mon", "Tue"])],
        coupon=coupon(),
        now=NOW,
    )
    assert compute_total(**kwargs) == compute_total(**kwargs)
