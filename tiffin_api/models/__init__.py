# Import all models to register them with SQLModel
from tiffin_api.models.pricing import (
    BookingType,
    AddOnSelection,
    WeeklyCustomization,
    BookingPriceBreakdown,
    CouponValidation,
)
from tiffin_api.models.seller import Seller
from tiffin_api.models.tiffin import Tiffin, TiffinCategory, ServiceType, MealType
from tiffin_api.models.coupon import Coupon, CouponUsage, DiscountType
from tiffin_api.models.booking import Booking, BookingStatus

__all__ = [
    "BookingType",
    "AddOnSelection",
    "WeeklyCustomization",
    "BookingPriceBreakdown",
    "CouponValidation",
    "Seller",
    "Tiffin",
    "TiffinCategory",
    "ServiceType",
    "MealType",
    "Coupon",
    "CouponUsage",
    "DiscountType",
    "Booking",
    "BookingStatus",
]
