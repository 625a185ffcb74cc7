from typing import List, Optional
from enum import Enum
from pydantic import BaseModel

class BookingType(str, Enum):
    SINGLE = "single"
    TRIAL = "trial"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

class AddOnSelection(BaseModel):
    name: str
    price: float
    quantity: int = 1

class WeeklyCustomization(BaseModel):
    name: str
    description: str = ""
    price: float  # charged once per applicable day
    days: List[str] = []
    available: bool = True

class BookingPriceBreakdown(BaseModel):
    """Price fields persisted on a booking and shown to both customer and seller."""
    base_price: float
    add_ons_price: float
    customizations_price: float
    subtotal: float
    delivery_charge: float
    discount_amount: float = 0.0
    coupon_code: Optional[str] = None
    total_price: float

class CouponValidation(BaseModel):
    is_valid: bool
    reason: Optional[str] = None
    message: str
    discount_amount: float = 0.0
    coupon_code: Optional[str] = None
