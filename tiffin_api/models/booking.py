from typing import List, Optional
from datetime import datetime
from enum import Enum
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import JSON
from tiffin_api.models.pricing import BookingType

class BookingStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"
    DELIVERED = "Delivered"

class Booking(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # Customer
    customer_name: str
    customer_email: str = Field(index=True)
    customer_phone: str
    delivery_address: str

    # Listing
    tiffin_id: int = Field(foreign_key="tiffin.id", index=True)
    seller_id: int = Field(foreign_key="seller.id", index=True)

    # Schedule
    booking_type: BookingType
    date: datetime
    slot: str
    quantity: int
    selected_days: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    # Snapshot of what was ordered
    add_ons: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    weekly_customizations: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    customization: Optional[str] = None  # free-text note for the seller

    # Price breakdown, written once at creation
    base_price: float
    add_ons_price: float = Field(default=0.0)
    customizations_price: float = Field(default=0.0)
    delivery_charge: float = Field(default=0.0)
    discount_amount: float = Field(default=0.0)
    coupon_code: Optional[str] = None
    total_price: float

    # Status
    status: BookingStatus = Field(default=BookingStatus.PENDING)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
