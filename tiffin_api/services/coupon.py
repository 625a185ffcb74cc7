import logging
from typing import List, Optional
from datetime import datetime
from enum import Enum
from fastapi import HTTPException
from sqlalchemy import update, func
from sqlmodel import Session, select
from tiffin_api.core.errors import CouponRaceLost
from tiffin_api.models.coupon import Coupon, CouponUsage, DiscountType
from tiffin_api.models.pricing import CouponValidation

logger = logging.getLogger(__name__)


class CouponReason(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    INACTIVE = "INACTIVE"
    NOT_YET_VALID = "NOT_YET_VALID"
    EXPIRED = "EXPIRED"
    LIMIT_REACHED = "LIMIT_REACHED"
    BELOW_MINIMUM = "BELOW_MINIMUM"


REASON_MESSAGES = {
    CouponReason.NOT_FOUND: "Invalid coupon code",
    CouponReason.INACTIVE: "Coupon is not active",
    CouponReason.NOT_YET_VALID: "Coupon is not yet valid",
    CouponReason.EXPIRED: "Coupon has expired",
    CouponReason.LIMIT_REACHED: "Coupon usage limit reached",
    CouponReason.BELOW_MINIMUM: "Minimum order amount of ₹{min_order_amount:.2f} required for this coupon",
}


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def _rejected(reason: CouponReason, coupon: Optional[Coupon] = None) -> CouponValidation:
    message = REASON_MESSAGES[reason]
    if coupon is not None:
        message = message.format(min_order_amount=coupon.min_order_amount)
    return CouponValidation(
        is_valid=False,
        reason=reason.value,
        message=message,
        discount_amount=0.0,
        coupon_code=coupon.code if coupon is not None else None,
    )


def compute_discount(coupon: Coupon, order_amount: float) -> float:
    """Discount a valid coupon gives on ``order_amount``.

    Fixed coupons never exceed the order amount. Percentage coupons are capped
    at ``max_discount_amount`` when one is set.
    """
    if coupon.discount_type == DiscountType.FIXED:
        discount = min(coupon.discount_value, order_amount)
    else:
        discount = order_amount * coupon.discount_value / 100
        if coupon.max_discount_amount is not None:
            discount = min(discount, coupon.max_discount_amount)
        discount = min(discount, order_amount)
    return round(max(discount, 0.0), 2)


def validate_coupon(coupon: Optional[Coupon], order_amount: float, now: Optional[datetime] = None) -> CouponValidation:
    """Check a coupon against an order amount.

    Conditions are checked in a fixed priority order and the first failing one
    is reported: existence, active flag, validity window, usage limit, minimum
    order amount.
    """
    now = now or datetime.utcnow()

    if coupon is None:
        return _rejected(CouponReason.NOT_FOUND)
    if not coupon.is_active:
        return _rejected(CouponReason.INACTIVE, coupon)
    if now < coupon.valid_from:
        return _rejected(CouponReason.NOT_YET_VALID, coupon)
    if now > coupon.valid_until:
        return _rejected(CouponReason.EXPIRED, coupon)
    if coupon.used_count >= coupon.usage_limit:
        return _rejected(CouponReason.LIMIT_REACHED, coupon)
    if order_amount < coupon.min_order_amount:
        return _rejected(CouponReason.BELOW_MINIMUM, coupon)

    return CouponValidation(
        is_valid=True,
        message=f"Coupon applied: {coupon.description}" if coupon.description else "Coupon applied successfully",
        discount_amount=compute_discount(coupon, order_amount),
        coupon_code=coupon.code,
    )


class CouponService:
    def __init__(self, session: Session):
        self.session = session

    def get_by_code(self, code: str) -> Optional[Coupon]:
        code = normalize_code(code)
        if not code:
            return None
        return self.session.exec(select(Coupon).where(Coupon.code == code)).first()

    def get_coupon(self, coupon_id: int) -> Coupon:
        coupon = self.session.get(Coupon, coupon_id)
        if not coupon:
            raise HTTPException(status_code=404, detail="Coupon not found")
        return coupon

    def get_all_coupons(self) -> List[Coupon]:
        return self.session.exec(select(Coupon).order_by(Coupon.created_at.desc())).all()

    def _check_terms(self, coupon: Coupon):
        if coupon.discount_value <= 0:
            raise HTTPException(status_code=400, detail="Discount value must be greater than 0")
        if coupon.discount_type == DiscountType.PERCENTAGE and coupon.discount_value > 100:
            raise HTTPException(status_code=400, detail="Percentage discount cannot exceed 100")
        if coupon.min_order_amount < 0:
            raise HTTPException(status_code=400, detail="Minimum order amount cannot be negative")
        if coupon.usage_limit < 1:
            raise HTTPException(status_code=400, detail="Usage limit must be at least 1")
        if coupon.valid_until <= coupon.valid_from:
            raise HTTPException(status_code=400, detail="valid_until must be after valid_from")

    def create_coupon(self, data: dict) -> Coupon:
        data = dict(data)
        data["code"] = normalize_code(data.get("code"))
        if len(data["code"]) < 3:
            raise HTTPException(status_code=400, detail="Coupon code must be at least 3 characters")
        if self.get_by_code(data["code"]):
            raise HTTPException(status_code=400, detail="Coupon code already exists")

        coupon = Coupon(**data)
        self._check_terms(coupon)

        self.session.add(coupon)
        self.session.commit()
        self.session.refresh(coupon)
        logger.info("Created coupon %s (%s %s)", coupon.code, DiscountType(coupon.discount_type).value, coupon.discount_value)
        return coupon

    def update_coupon(self, coupon_id: int, data: dict) -> Coupon:
        coupon = self.get_coupon(coupon_id)

        if data.get("code") is not None:
            code = normalize_code(data["code"])
            existing = self.get_by_code(code)
            if existing and existing.id != coupon.id:
                raise HTTPException(status_code=400, detail="Coupon code already exists")
            data = {**data, "code": code}

        for field, value in data.items():
            # max_discount_amount may be cleared, every other field is required
            if value is not None or field == "max_discount_amount":
                setattr(coupon, field, value)
        self._check_terms(coupon)
        coupon.updated_at = datetime.utcnow()

        self.session.add(coupon)
        self.session.commit()
        self.session.refresh(coupon)
        return coupon

    def delete_coupon(self, coupon_id: int):
        coupon = self.get_coupon(coupon_id)
        self.session.delete(coupon)
        self.session.commit()
        return {"message": "Coupon deleted successfully"}

    def validate(self, code: str, order_amount: float, now: Optional[datetime] = None) -> CouponValidation:
        result = validate_coupon(self.get_by_code(code), order_amount, now)
        if not result.is_valid:
            logger.warning("Coupon %s rejected: %s", normalize_code(code), result.reason)
        return result

    def redeem(self, code: str):
        """Count one use of the coupon.

        The increment is a single conditional UPDATE, so concurrent bookings
        can never push ``used_count`` past ``usage_limit``. Raises
        ``CouponRaceLost`` when no row qualified. The caller owns the commit.
        """
        code = normalize_code(code)
        statement = (
            update(Coupon)
            .where(
                Coupon.code == code,
                Coupon.is_active == True,  # noqa: E712
                Coupon.used_count < Coupon.usage_limit,
            )
            .values(used_count=Coupon.used_count + 1, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        result = self.session.exec(statement)
        if result.rowcount != 1:
            logger.warning("Coupon %s redemption lost the race for its last use", code)
            raise CouponRaceLost(code)
        logger.info("Redeemed coupon %s", code)

    def record_usage(self, coupon: Coupon, booking_id: int, discount_applied: float) -> CouponUsage:
        usage = CouponUsage(coupon_id=coupon.id, booking_id=booking_id, discount_applied=discount_applied)
        self.session.add(usage)
        return usage

    def get_stats(self, now: Optional[datetime] = None) -> dict:
        now = now or datetime.utcnow()
        coupons = self.get_all_coupons()
        total_discount = self.session.exec(select(func.sum(CouponUsage.discount_applied))).one()
        return {
            "total_coupons": len(coupons),
            "active_coupons": sum(
                1 for c in coupons
                if c.is_active and c.valid_until >= now and c.used_count < c.usage_limit
            ),
            "expired_coupons": sum(1 for c in coupons if c.valid_until < now),
            "total_usage": sum(c.used_count for c in coupons),
            "total_discount_given": round(total_discount or 0.0, 2),
        }
