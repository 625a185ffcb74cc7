from typing import List, Optional
from datetime import datetime
from enum import Enum
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import JSON
from tiffin_api.core.config import settings
from tiffin_api.models.pricing import BookingType

class TiffinCategory(str, Enum):
    VEG = "Veg"
    NON_VEG = "Non-Veg"
    JAIN = "Jain"

class ServiceType(str, Enum):
    MEAL = "meal"
    TIFFIN = "tiffin"

class MealType(str, Enum):
    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"
    FULL_DAY = "Full Day"

class Tiffin(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    seller_id: int = Field(foreign_key="seller.id", index=True)

    # Basic Info
    title: str = Field(index=True)
    description: str
    category: TiffinCategory
    service_type: ServiceType = Field(default=ServiceType.MEAL)
    meal_type: MealType = Field(default=MealType.LUNCH)

    # Pricing
    price: float
    trial_price: Optional[float] = None
    monthly_price: Optional[float] = None

    # Schedule
    available_days: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    slots: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    # Published extras: add-ons are {name, description, price, available},
    # weekly customizations additionally carry the list of days they run on
    add_ons: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    weekly_customizations: List[dict] = Field(default_factory=list, sa_column=Column(JSON))

    image_url: Optional[str] = None

    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def unit_price_for(self, booking_type: BookingType) -> float:
        """Per-tiffin price the plan is quoted at before quantity and days are applied."""
        if booking_type == BookingType.TRIAL:
            return self.trial_price or settings.DEFAULT_TRIAL_PRICE
        if booking_type == BookingType.MONTHLY:
            return self.monthly_price or settings.DEFAULT_MONTHLY_PRICE
        return self.price
