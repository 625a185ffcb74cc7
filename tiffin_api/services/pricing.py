"""Booking price and discount computation.

Pure functions over already-fetched data. Every booking total, quoted or
persisted, goes through ``compute_total`` so the customer and seller always
see the same breakdown.
"""
import logging
import math
from typing import Iterable, List, NamedTuple, Optional, Set
from datetime import datetime
from tiffin_api.core.config import settings
from tiffin_api.core.errors import CouponInvalid, PricingValidationError
from tiffin_api.models.coupon import Coupon
from tiffin_api.models.pricing import (
    AddOnSelection,
    BookingPriceBreakdown,
    BookingType,
    WeeklyCustomization,
)
from tiffin_api.services.coupon import validate_coupon

logger = logging.getLogger(__name__)


class BookingTypeRule(NamedTuple):
    multiply_by_days: bool  # base price is charged once per selected day
    delivery_charged: bool


BOOKING_TYPE_RULES = {
    BookingType.SINGLE: BookingTypeRule(multiply_by_days=False, delivery_charged=True),
    BookingType.TRIAL: BookingTypeRule(multiply_by_days=False, delivery_charged=True),
    BookingType.WEEKLY: BookingTypeRule(multiply_by_days=True, delivery_charged=False),
    BookingType.MONTHLY: BookingTypeRule(multiply_by_days=False, delivery_charged=False),
}


def booking_type_rule(booking_type) -> BookingTypeRule:
    try:
        return BOOKING_TYPE_RULES[BookingType(booking_type)]
    except ValueError:
        raise PricingValidationError(f"Unknown booking type: {booking_type!r}")


def _check_amount(value, label: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PricingValidationError(f"{label} must be a number")
    if not math.isfinite(value) or value < 0:
        raise PricingValidationError(f"{label} must be a non-negative number")
    return float(value)


def _check_quantity(value, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise PricingValidationError(f"{label} must be a whole number of at least 1")
    return value


def add_on_total(add_ons: Iterable[AddOnSelection]) -> float:
    total = 0.0
    for add_on in add_ons or []:
        if isinstance(add_on, dict):
            add_on = AddOnSelection.model_validate(add_on)
        price = _check_amount(add_on.price, f"Price of add-on {add_on.name!r}")
        quantity = _check_quantity(add_on.quantity, f"Quantity of add-on {add_on.name!r}")
        total += price * quantity
    return total


def applicable_days(customization: WeeklyCustomization, selected_days: Iterable[str],
                    full_days_when_unselected: bool = True) -> Set[str]:
    days = set(customization.days)
    selected = set(selected_days or [])
    if not selected:
        return days if full_days_when_unselected else set()
    return days & selected


def customization_total(customizations: Iterable[WeeklyCustomization], selected_days: Iterable[str],
                        full_days_when_unselected: bool = True) -> float:
    """Sum of ``price * |days ∩ selected_days|`` over all customizations.

    With no days selected, ``full_days_when_unselected`` decides whether each
    customization is priced for every day it runs (the default) or for none.
    """
    selected_days = list(selected_days or [])
    total = 0.0
    for customization in customizations or []:
        if isinstance(customization, dict):
            customization = WeeklyCustomization.model_validate(customization)
        price = _check_amount(customization.price, f"Price of customization {customization.name!r}")
        total += price * len(applicable_days(customization, selected_days, full_days_when_unselected))
    return total


def delivery_charge(booking_type, flat_charge: Optional[float] = None) -> float:
    if not booking_type_rule(booking_type).delivery_charged:
        return 0.0
    return settings.DELIVERY_CHARGE if flat_charge is None else flat_charge


def base_price(unit_price: float, quantity: int, booking_type, selected_days: Iterable[str]) -> float:
    rule = booking_type_rule(booking_type)
    price = _check_amount(unit_price, "Tiffin price") * _check_quantity(quantity, "Quantity")
    if rule.multiply_by_days:
        days = set(selected_days or [])
        if not days:
            raise PricingValidationError("Select at least one day for a weekly booking")
        price *= len(days)
    return price


def compute_total(
    tiffin_base_price: float,
    quantity: int,
    booking_type,
    selected_days: Optional[List[str]] = None,
    add_ons: Optional[List[AddOnSelection]] = None,
    customizations: Optional[List[WeeklyCustomization]] = None,
    delivery_charge_override: Optional[float] = None,
    coupon: Optional[Coupon] = None,
    now: Optional[datetime] = None,
    full_days_when_unselected: bool = True,
) -> BookingPriceBreakdown:
    """Derive the payable amount for a booking.

    Raises ``PricingValidationError`` for malformed input and ``CouponInvalid``
    when a coupon is given but does not apply to the subtotal.
    """
    selected_days = list(selected_days or [])

    base = round(base_price(tiffin_base_price, quantity, booking_type, selected_days), 2)
    add_ons_price = round(add_on_total(add_ons or []), 2)
    customizations_price = round(
        customization_total(customizations or [], selected_days, full_days_when_unselected), 2
    )
    subtotal = round(base + add_ons_price + customizations_price, 2)

    if delivery_charge_override is not None:
        delivery = _check_amount(delivery_charge_override, "Delivery charge")
    else:
        delivery = delivery_charge(booking_type)

    discount = 0.0
    coupon_code = None
    if coupon is not None:
        validation = validate_coupon(coupon, subtotal, now)
        if not validation.is_valid:
            raise CouponInvalid(validation.reason, validation.message)
        discount = validation.discount_amount
        coupon_code = coupon.code

    total = round(max(0.0, subtotal + delivery - discount), 2)

    breakdown = BookingPriceBreakdown(
        base_price=base,
        add_ons_price=add_ons_price,
        customizations_price=customizations_price,
        subtotal=subtotal,
        delivery_charge=round(delivery, 2),
        discount_amount=discount,
        coupon_code=coupon_code,
        total_price=total,
    )
    logger.debug("Computed booking price: %s", breakdown.model_dump())
    return breakdown
