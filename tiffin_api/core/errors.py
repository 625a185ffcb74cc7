from typing import Optional


class BookingError(Exception):
    """Base class for failures raised while pricing or placing a booking."""


class PricingValidationError(BookingError):
    """Malformed numeric input or unknown enum value."""


class CouponInvalid(BookingError):
    def __init__(self, reason, message: Optional[str] = None):
        self.reason = reason
        self.message = message or str(reason)
        super().__init__(self.message)


class CouponRaceLost(BookingError):
    """The coupon hit its usage limit between validation and redemption."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Coupon {code} reached its usage limit, retry without it")
