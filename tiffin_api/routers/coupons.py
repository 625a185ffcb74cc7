from typing import List, Optional
from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from sqlmodel import Session
from pydantic import BaseModel, Field, field_validator
from tiffin_api.core.security import require_admin
from tiffin_api.db.session import get_session
from tiffin_api.models.coupon import Coupon, DiscountType
from tiffin_api.models.pricing import CouponValidation
from tiffin_api.services.coupon import CouponService

router = APIRouter()

def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Columns store naive UTC, so offsets are folded in before any comparison
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

class CouponCreate(BaseModel):
    code: str
    description: str = ""
    discount_type: DiscountType
    discount_value: float
    min_order_amount: float = 0.0
    max_discount_amount: Optional[float] = None
    valid_from: datetime
    valid_until: datetime
    usage_limit: int = 100
    is_active: bool = True

    @field_validator("valid_from", "valid_until")
    @classmethod
    def naive_window(cls, v):
        return to_naive_utc(v)

class CouponUpdate(BaseModel):
    code: Optional[str] = None
    description: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[float] = None
    min_order_amount: Optional[float] = None
    max_discount_amount: Optional[float] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    usage_limit: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator("valid_from", "valid_until")
    @classmethod
    def naive_window(cls, v):
        return to_naive_utc(v)

class CouponValidateRequest(BaseModel):
    coupon_code: str
    total_amount: float = Field(ge=0)

class CouponStats(BaseModel):
    total_coupons: int
    active_coupons: int
    expired_coupons: int
    total_usage: int
    total_discount_given: float

def get_coupon_service(session: Session = Depends(get_session)) -> CouponService:
    return CouponService(session)

@router.get("/", response_model=List[Coupon], dependencies=[Depends(require_admin)])
def list_coupons(service: CouponService = Depends(get_coupon_service)):
    return service.get_all_coupons()

@router.post("/", response_model=Coupon, status_code=201, dependencies=[Depends(require_admin)])
def create_coupon(coupon_in: CouponCreate, service: CouponService = Depends(get_coupon_service)):
    return service.create_coupon(coupon_in.model_dump())

@router.get("/stats", response_model=CouponStats, dependencies=[Depends(require_admin)])
def coupon_stats(service: CouponService = Depends(get_coupon_service)):
    return service.get_stats()

@router.post("/validate", response_model=CouponValidation)
def validate_coupon(body: CouponValidateRequest, service: CouponService = Depends(get_coupon_service)):
    """Check a code against an order amount without using it up"""
    return service.validate(body.coupon_code, body.total_amount)

@router.put("/{id}", response_model=Coupon, dependencies=[Depends(require_admin)])
def update_coupon(id: int, coupon_in: CouponUpdate, service: CouponService = Depends(get_coupon_service)):
    return service.update_coupon(id, coupon_in.model_dump(exclude_unset=True))

@router.delete("/{id}", dependencies=[Depends(require_admin)])
def delete_coupon(id: int, service: CouponService = Depends(get_coupon_service)):
    return service.delete_coupon(id)
