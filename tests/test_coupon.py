from datetime import datetime, timedelta

import pytest
from fastapi import HTTPException

from tiffin_api.core.errors import CouponRaceLost
from tiffin_api.models import Coupon, CouponUsage, DiscountType
from tiffin_api.services.coupon import CouponService, compute_discount, validate_coupon

NOW = datetime(2026, 10, 19, 12, 0)


def coupon(**overrides):
    data = dict(
        code="FEAST",
        description="Feast offer",
        discount_type=DiscountType.PERCENTAGE,
        discount_value=10.0,
        min_order_amount=100.0,
        max_discount_amount=None,
        valid_from=NOW - timedelta(days=1),
        valid_until=NOW + timedelta(days=1),
        usage_limit=5,
        used_count=0,
        is_active=True,
    )
    data.update(overrides)
    return Coupon(**data)


def test_valid_coupon_reports_discount():
    result = validate_coupon(coupon(), 500, NOW)
    assert result.is_valid
    assert result.reason is None
    assert result.discount_amount == 50
    assert result.coupon_code == "FEAST"


@pytest.mark.parametrize("c,reason", [
    (None, "NOT_FOUND"),
    (coupon(is_active=False), "INACTIVE"),
    (coupon(valid_from=NOW + timedelta(hours=1)), "NOT_YET_VALID"),
    (coupon(valid_until=NOW - timedelta(seconds=1)), "EXPIRED"),
    (coupon(used_count=5), "LIMIT_REACHED"),
    (coupon(min_order_amount=1000), "BELOW_MINIMUM"),
])
def test_each_failure_has_its_own_reason(c, reason):
    result = validate_coupon(c, 500, NOW)
    assert not result.is_valid
    assert result.reason == reason
    assert result.discount_amount == 0


def test_first_failing_condition_wins():
    # Inactive, expired, exhausted and below minimum all at once
    everything_wrong = coupon(
        is_active=False, valid_until=NOW - timedelta(days=1), used_count=9, min_order_amount=10_000
    )
    assert validate_coupon(everything_wrong, 50, NOW).reason == "INACTIVE"

    everything_wrong.is_active = True
    assert validate_coupon(everything_wrong, 50, NOW).reason == "EXPIRED"

    everything_wrong.valid_until = NOW + timedelta(days=1)
    assert validate_coupon(everything_wrong, 50, NOW).reason == "LIMIT_REACHED"

    everything_wrong.used_count = 0
    assert validate_coupon(everything_wrong, 50, NOW).reason == "BELOW_MINIMUM"


def test_validity_window_is_inclusive():
    c = coupon(valid_from=NOW, valid_until=NOW)
    assert validate_coupon(c, 500, NOW).is_valid


def test_minimum_message_mentions_amount():
    result = validate_coupon(coupon(min_order_amount=250), 100, NOW)
    assert "250.00" in result.message


def test_fixed_discount_never_exceeds_order():
    assert compute_discount(coupon(discount_type=DiscountType.FIXED, discount_value=500), 300) == 300
    assert compute_discount(coupon(discount_type=DiscountType.FIXED, discount_value=50), 300) == 50


def test_percentage_discount_respects_cap():
    assert compute_discount(coupon(discount_value=10, max_discount_amount=50), 1000) == 50
    assert compute_discount(coupon(discount_value=10, max_discount_amount=None), 1000) == 100
    assert compute_discount(coupon(discount_value=10, max_discount_amount=500), 1000) == 100


def test_percentage_discount_rounded_to_paise():
    assert compute_discount(coupon(discount_value=10), 333.33) == 33.33


def new_coupon_data(**overrides):
    data = {
        "code": " welcome50 ",
        "description": "Welcome offer",
        "discount_type": DiscountType.FIXED,
        "discount_value": 50.0,
        "min_order_amount": 200.0,
        "valid_from": datetime.utcnow() - timedelta(days=1),
        "valid_until": datetime.utcnow() + timedelta(days=30),
        "usage_limit": 2,
    }
    data.update(overrides)
    return data


def test_create_coupon_normalizes_code(session):
    service = CouponService(session)
    created = service.create_coupon(new_coupon_data())
    assert created.code == "WELCOME50"
    assert created.used_count == 0
    assert service.get_by_code("Welcome50").id == created.id


def test_create_coupon_rejects_duplicate_code(session):
    service = CouponService(session)
    service.create_coupon(new_coupon_data())
    with pytest.raises(HTTPException) as exc:
        service.create_coupon(new_coupon_data(code="WELCOME50"))
    assert exc.value.status_code == 400


@pytest.mark.parametrize("overrides", [
    {"discount_value": 0},
    {"discount_type": DiscountType.PERCENTAGE, "discount_value": 150},
    {"usage_limit": 0},
    {"valid_until": datetime.utcnow() - timedelta(days=5)},
    {"code": "AB"},
])
def test_create_coupon_rejects_bad_terms(session, overrides):
    with pytest.raises(HTTPException) as exc:
        CouponService(session).create_coupon(new_coupon_data(**overrides))
    assert exc.value.status_code == 400


def test_update_coupon_can_clear_cap(session, make_coupon):
    c = make_coupon(max_discount_amount=40)
    updated = CouponService(session).update_coupon(c.id, {"max_discount_amount": None, "usage_limit": 10})
    assert updated.max_discount_amount is None
    assert updated.usage_limit == 10


def test_redeem_stops_at_usage_limit(session, make_coupon):
    c = make_coupon(code="LASTONE", usage_limit=2, used_count=1)
    service = CouponService(session)

    service.redeem("lastone")
    session.commit()
    session.refresh(c)
    assert c.used_count == 2

    with pytest.raises(CouponRaceLost):
        service.redeem("LASTONE")
    session.rollback()
    session.refresh(c)
    assert c.used_count == 2


def test_redeem_skips_inactive_coupon(session, make_coupon):
    make_coupon(code="PAUSED", is_active=False)
    with pytest.raises(CouponRaceLost):
        CouponService(session).redeem("PAUSED")


def test_validate_by_code(session, make_coupon):
    make_coupon(code="SAVE10", discount_value=10)
    service = CouponService(session)
    assert service.validate("save10", 400).discount_amount == 40
    assert service.validate("NOPE", 400).reason == "NOT_FOUND"


def test_stats(session, make_coupon):
    live = make_coupon(code="LIVE", used_count=3)
    make_coupon(code="OLD", valid_from=datetime.utcnow() - timedelta(days=10),
                valid_until=datetime.utcnow() - timedelta(days=1), used_count=2)
    make_coupon(code="SPENT", usage_limit=2, used_count=2)
    session.add(CouponUsage(coupon_id=live.id, booking_id=1, discount_applied=40.0))
    session.add(CouponUsage(coupon_id=live.id, booking_id=2, discount_applied=12.5))
    session.commit()

    stats = CouponService(session).get_stats()
    assert stats == {
        "total_coupons": 3,
        "active_coupons": 1,
        "expired_coupons": 1,
        "total_usage": 7,
        "total_discount_given": 52.5,
    }
