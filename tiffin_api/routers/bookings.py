from typing import List
from fastapi import APIRouter, Depends
from sqlmodel import Session
from pydantic import BaseModel
from tiffin_api.core.security import require_admin
from tiffin_api.db.session import get_session
from tiffin_api.models.booking import Booking, BookingStatus
from tiffin_api.services.booking import BookingCreate, BookingQuote, BookingRequest, BookingService

router = APIRouter()

class BookingStatusUpdate(BaseModel):
    status: BookingStatus

def get_booking_service(session: Session = Depends(get_session)) -> BookingService:
    return BookingService(session)

@router.post("/calculate-price", response_model=BookingQuote)
def calculate_price(request: BookingRequest, service: BookingService = Depends(get_booking_service)):
    """Price a booking without placing it. A coupon that does not apply is reported, not raised."""
    return service.quote(request)

@router.post("/", response_model=Booking, status_code=201)
def create_booking(booking_in: BookingCreate, service: BookingService = Depends(get_booking_service)):
    return service.create_booking(booking_in)

@router.get("/", response_model=List[Booking])
def list_bookings(email: str, service: BookingService = Depends(get_booking_service)):
    return service.get_bookings_by_email(email)

@router.get("/{id}", response_model=Booking)
def get_booking(id: int, service: BookingService = Depends(get_booking_service)):
    return service.get_booking(id)

@router.patch("/{id}/status", response_model=Booking, dependencies=[Depends(require_admin)])
def update_booking_status(
    id: int,
    update: BookingStatusUpdate,
    service: BookingService = Depends(get_booking_service),
):
    return service.update_status(id, update.status)
