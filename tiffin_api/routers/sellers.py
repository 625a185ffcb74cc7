from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session
from pydantic import BaseModel
from tiffin_api.core.security import require_admin
from tiffin_api.db.session import get_session
from tiffin_api.models.booking import Booking
from tiffin_api.models.seller import Seller
from tiffin_api.routers.bookings import BookingStatusUpdate, get_booking_service
from tiffin_api.services.booking import BookingService

router = APIRouter()

class SellerCreate(BaseModel):
    name: str
    email: str
    contact_number: str
    business_address: Optional[str] = None

@router.post("/", response_model=Seller, status_code=201, dependencies=[Depends(require_admin)])
def create_seller(seller_in: SellerCreate, session: Session = Depends(get_session)):
    seller = Seller(**seller_in.model_dump())
    session.add(seller)
    session.commit()
    session.refresh(seller)
    return seller

@router.get("/{id}", response_model=Seller)
def get_seller(id: int, session: Session = Depends(get_session)):
    seller = session.get(Seller, id)
    if not seller:
        raise HTTPException(status_code=404, detail="Seller not found")
    return seller

@router.get("/{id}/bookings", response_model=List[Booking], dependencies=[Depends(require_admin)])
def list_seller_bookings(id: int, service: BookingService = Depends(get_booking_service)):
    """Orders for the seller dashboard, newest first"""
    return service.get_bookings_by_seller(id)

@router.patch(
    "/{id}/bookings/{booking_id}/status",
    response_model=Booking,
    dependencies=[Depends(require_admin)],
)
def update_seller_booking_status(
    id: int,
    booking_id: int,
    update: BookingStatusUpdate,
    service: BookingService = Depends(get_booking_service),
):
    return service.update_status(booking_id, update.status, seller_id=id)
