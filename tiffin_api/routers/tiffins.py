import logging
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from pydantic import BaseModel, Field
from tiffin_api.core.security import require_admin
from tiffin_api.db.session import get_session
from tiffin_api.models.seller import Seller
from tiffin_api.models.tiffin import MealType, ServiceType, Tiffin, TiffinCategory

logger = logging.getLogger(__name__)

router = APIRouter()

class AddOnIn(BaseModel):
    name: str
    description: str = ""
    price: float = Field(ge=0)
    available: bool = True

class WeeklyCustomizationIn(AddOnIn):
    days: List[str] = []

class TiffinCreate(BaseModel):
    seller_id: int
    title: str
    description: str
    category: TiffinCategory
    service_type: ServiceType = ServiceType.MEAL
    meal_type: MealType = MealType.LUNCH
    price: float = Field(ge=0)
    trial_price: Optional[float] = Field(default=None, ge=0)
    monthly_price: Optional[float] = Field(default=None, ge=0)
    available_days: List[str] = []
    slots: List[str] = []
    add_ons: List[AddOnIn] = []
    weekly_customizations: List[WeeklyCustomizationIn] = []
    image_url: Optional[str] = None

class TiffinUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[TiffinCategory] = None
    service_type: Optional[ServiceType] = None
    meal_type: Optional[MealType] = None
    price: Optional[float] = Field(default=None, ge=0)
    trial_price: Optional[float] = Field(default=None, ge=0)
    monthly_price: Optional[float] = Field(default=None, ge=0)
    available_days: Optional[List[str]] = None
    slots: Optional[List[str]] = None
    add_ons: Optional[List[AddOnIn]] = None
    weekly_customizations: Optional[List[WeeklyCustomizationIn]] = None
    image_url: Optional[str] = None
    is_active: Optional[bool] = None

def _get_or_404(session: Session, id: int) -> Tiffin:
    tiffin = session.get(Tiffin, id)
    if not tiffin:
        raise HTTPException(status_code=404, detail="Tiffin not found")
    return tiffin

@router.post("/", response_model=Tiffin, status_code=201, dependencies=[Depends(require_admin)])
def create_tiffin(tiffin_in: TiffinCreate, session: Session = Depends(get_session)):
    if not session.get(Seller, tiffin_in.seller_id):
        raise HTTPException(status_code=404, detail="Seller not found")

    tiffin = Tiffin(**tiffin_in.model_dump())
    session.add(tiffin)
    session.commit()
    session.refresh(tiffin)
    return tiffin

@router.get("/", response_model=List[Tiffin])
def list_tiffins(
    category: Optional[TiffinCategory] = None,
    session: Session = Depends(get_session),
):
    query = select(Tiffin).where(Tiffin.is_active == True)  # noqa: E712
    if category:
        query = query.where(Tiffin.category == category)
    return session.exec(query.order_by(Tiffin.created_at.desc())).all()

@router.get("/{id}", response_model=Tiffin)
def get_tiffin(id: int, session: Session = Depends(get_session)):
    return _get_or_404(session, id)

@router.put("/{id}", response_model=Tiffin, dependencies=[Depends(require_admin)])
def update_tiffin(id: int, tiffin_in: TiffinUpdate, session: Session = Depends(get_session)):
    tiffin = _get_or_404(session, id)
    # Existing bookings keep their own price snapshot, only new quotes see the change
    for field, value in tiffin_in.model_dump(exclude_unset=True).items():
        if value is not None or field in ("trial_price", "monthly_price", "image_url"):
            setattr(tiffin, field, value)
    tiffin.updated_at = datetime.utcnow()
    session.add(tiffin)
    session.commit()
    session.refresh(tiffin)
    logger.info("Updated tiffin %s", tiffin.id)
    return tiffin

@router.delete("/{id}", dependencies=[Depends(require_admin)])
def deactivate_tiffin(id: int, session: Session = Depends(get_session)):
    """Take a listing off the menu. The row stays so past bookings still resolve."""
    tiffin = _get_or_404(session, id)
    tiffin.is_active = False
    tiffin.updated_at = datetime.utcnow()
    session.add(tiffin)
    session.commit()
    logger.info("Deactivated tiffin %s", tiffin.id)
    return {"message": "Tiffin deactivated successfully"}
