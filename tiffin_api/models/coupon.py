from typing import Optional
from datetime import datetime
from sqlmodel import Field, SQLModel
from enum import Enum

class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"

class Coupon(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # Coupon Details
    code: str = Field(unique=True, index=True)  # always stored upper-case, e.g. "WELCOME50"
    description: str = ""

    # Discount
    discount_type: DiscountType
    discount_value: float  # Percentage (0-100) or fixed amount
    max_discount_amount: Optional[float] = None  # Cap for percentage coupons, None = uncapped

    # Usage Limits
    usage_limit: int = Field(default=100)
    used_count: int = Field(default=0)

    # Validity
    valid_from: datetime
    valid_until: datetime

    # Minimum Order
    min_order_amount: float = Field(default=0.0)

    # Status
    is_active: bool = Field(default=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class CouponUsage(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # References
    coupon_id: int = Field(foreign_key="coupon.id", index=True)
    booking_id: int = Field(foreign_key="booking.id", unique=True)

    # Usage Details
    discount_applied: float  # Actual discount amount applied

    # Timestamp
    used_at: datetime = Field(default_factory=datetime.utcnow)
