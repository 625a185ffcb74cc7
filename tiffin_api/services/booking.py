import logging
from typing import List, Optional
from datetime import datetime
from fastapi import HTTPException
from pydantic import BaseModel, field_validator
from sqlmodel import Session, select
from tiffin_api.core.config import settings
from tiffin_api.core.errors import CouponInvalid, CouponRaceLost, PricingValidationError
from tiffin_api.models.booking import Booking, BookingStatus
from tiffin_api.models.coupon import Coupon
from tiffin_api.models.pricing import (
    AddOnSelection,
    BookingPriceBreakdown,
    BookingType,
    WeeklyCustomization,
)
from tiffin_api.models.seller import Seller
from tiffin_api.models.tiffin import ServiceType, Tiffin
from tiffin_api.services import email
from tiffin_api.services.coupon import REASON_MESSAGES, CouponReason, CouponService, normalize_code
from tiffin_api.services.pricing import applicable_days, compute_total

logger = logging.getLogger(__name__)

class AddOnChoice(BaseModel):
    name: str
    quantity: int = 1

class BookingRequest(BaseModel):
    """What the customer picked on the listing page"""
    tiffin_id: int
    booking_type: BookingType = BookingType.SINGLE
    quantity: int = 1
    selected_days: List[str] = []
    add_ons: List[AddOnChoice] = []
    weekly_customizations: List[str] = []  # names of the listing's customizations
    coupon_code: Optional[str] = None

    @field_validator("selected_days")
    @classmethod
    def unique_days(cls, v):
        return list(dict.fromkeys(v))

class BookingCreate(BookingRequest):
    customer_name: str
    customer_email: str
    customer_phone: str
    delivery_address: str
    date: datetime
    slot: str
    customization: Optional[str] = None

class BookingQuote(BookingPriceBreakdown):
    coupon_applied: bool = False
    coupon_message: str = ""

# Pending -> Confirmed/Cancelled -> Delivered
ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.DELIVERED, BookingStatus.CANCELLED},
    BookingStatus.DELIVERED: set(),
    BookingStatus.CANCELLED: set(),
}

class BookingService:
    def __init__(self, session: Session):
        self.session = session
        self.coupons = CouponService(session)

    def get_tiffin(self, tiffin_id: int) -> Tiffin:
        tiffin = self.session.get(Tiffin, tiffin_id)
        if not tiffin:
            raise HTTPException(status_code=404, detail="Tiffin not found")
        if not tiffin.is_active:
            raise HTTPException(status_code=400, detail=f"{tiffin.title} is not available")
        return tiffin

    def resolve_add_ons(self, tiffin: Tiffin, choices: List[AddOnChoice]) -> List[AddOnSelection]:
        # Prices always come from the listing, never from the request
        offered = {a["name"]: a for a in tiffin.add_ons if a.get("available", True)}
        selections = []
        for choice in choices:
            add_on = offered.get(choice.name)
            if not add_on:
                raise HTTPException(status_code=400, detail=f"Add-on {choice.name} is not offered for {tiffin.title}")
            selections.append(AddOnSelection(name=choice.name, price=add_on["price"], quantity=choice.quantity))
        return selections

    def resolve_customizations(self, tiffin: Tiffin, names: List[str]) -> List[WeeklyCustomization]:
        offered = {c["name"]: c for c in tiffin.weekly_customizations if c.get("available", True)}
        selections = []
        for name in dict.fromkeys(names):
            custom = offered.get(name)
            if not custom:
                raise HTTPException(status_code=400, detail=f"Customization {name} is not offered for {tiffin.title}")
            selections.append(WeeklyCustomization.model_validate(custom))
        return selections

    def _check_days(self, tiffin: Tiffin, selected_days: List[str]):
        if not tiffin.available_days:
            return
        unavailable = [day for day in selected_days if day not in tiffin.available_days]
        if unavailable:
            raise HTTPException(status_code=400, detail=f"{tiffin.title} is not delivered on {', '.join(unavailable)}")

    def price(self, tiffin: Tiffin, request: BookingRequest, coupon: Optional[Coupon] = None,
              now: Optional[datetime] = None) -> BookingPriceBreakdown:
        """Price a request against its listing. Raises CouponInvalid for a coupon that does not apply."""
        self._check_days(tiffin, request.selected_days)
        try:
            return compute_total(
                tiffin_base_price=tiffin.unit_price_for(request.booking_type),
                quantity=request.quantity,
                booking_type=request.booking_type,
                selected_days=request.selected_days,
                add_ons=self.resolve_add_ons(tiffin, request.add_ons),
                customizations=self.resolve_customizations(tiffin, request.weekly_customizations),
                # Meal service pays for delivery on every plan
                delivery_charge_override=settings.DELIVERY_CHARGE if tiffin.service_type == ServiceType.MEAL else None,
                coupon=coupon,
                now=now,
                full_days_when_unselected=settings.PRICE_FULL_DAYS_WHEN_NONE_SELECTED,
            )
        except PricingValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))

    def find_coupon(self, code: Optional[str]) -> Optional[Coupon]:
        """None when no code was given. Unknown codes raise CouponInvalid."""
        if not normalize_code(code):
            return None
        coupon = self.coupons.get_by_code(code)
        if not coupon:
            raise CouponInvalid(CouponReason.NOT_FOUND.value, REASON_MESSAGES[CouponReason.NOT_FOUND])
        return coupon

    def quote(self, request: BookingRequest, now: Optional[datetime] = None) -> BookingQuote:
        tiffin = self.get_tiffin(request.tiffin_id)

        try:
            coupon = self.find_coupon(request.coupon_code)
            breakdown = self.price(tiffin, request, coupon, now)
        except CouponInvalid as e:
            # Quote without the discount and tell the customer why
            logger.warning("Coupon %s not applied to quote: %s", normalize_code(request.coupon_code), e.reason)
            return BookingQuote(**self.price(tiffin, request).model_dump(), coupon_message=e.message)

        if coupon is None:
            return BookingQuote(**breakdown.model_dump())
        return BookingQuote(**breakdown.model_dump(), coupon_applied=True, coupon_message="Coupon applied")

    def _customization_snapshot(self, customizations: List[WeeklyCustomization], selected_days: List[str]) -> List[dict]:
        # Each customization keeps only the days it is actually charged for
        snapshot = []
        for custom in customizations:
            days = applicable_days(custom, selected_days, settings.PRICE_FULL_DAYS_WHEN_NONE_SELECTED)
            snapshot.append({**custom.model_dump(), "days": [d for d in dict.fromkeys(custom.days) if d in days]})
        return snapshot

    def create_booking(self, form: BookingCreate, now: Optional[datetime] = None) -> Booking:
        tiffin = self.get_tiffin(form.tiffin_id)
        seller = self.session.get(Seller, tiffin.seller_id)
        if not seller:
            raise HTTPException(status_code=400, detail=f"Seller for {tiffin.title} no longer exists")
        if tiffin.slots and form.slot not in tiffin.slots:
            raise HTTPException(status_code=400, detail=f"Slot {form.slot} is not offered for {tiffin.title}")

        try:
            coupon = self.find_coupon(form.coupon_code)
            breakdown = self.price(tiffin, form, coupon, now)
        except CouponInvalid as e:
            raise HTTPException(status_code=400, detail={"code": e.reason, "message": e.message})

        booking = Booking(
            customer_name=form.customer_name,
            customer_email=form.customer_email,
            customer_phone=form.customer_phone,
            delivery_address=form.delivery_address,
            tiffin_id=tiffin.id,
            seller_id=seller.id,
            booking_type=form.booking_type,
            date=form.date,
            slot=form.slot,
            quantity=form.quantity,
            selected_days=list(form.selected_days),
            add_ons=[a.model_dump() for a in self.resolve_add_ons(tiffin, form.add_ons)],
            weekly_customizations=self._customization_snapshot(
                self.resolve_customizations(tiffin, form.weekly_customizations), form.selected_days
            ),
            customization=form.customization,
            base_price=breakdown.base_price,
            add_ons_price=breakdown.add_ons_price,
            customizations_price=breakdown.customizations_price,
            delivery_charge=breakdown.delivery_charge,
            discount_amount=breakdown.discount_amount,
            coupon_code=breakdown.coupon_code,
            total_price=breakdown.total_price,
        )

        try:
            if coupon:
                self.coupons.redeem(coupon.code)
            self.session.add(booking)
            self.session.flush()
            if coupon:
                self.coupons.record_usage(coupon, booking.id, breakdown.discount_amount)
            self.session.commit()
        except CouponRaceLost as e:
            self.session.rollback()
            raise HTTPException(status_code=409, detail={"code": "RACE_LOST", "message": str(e)})
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(booking)
        logger.info("Created booking %s for tiffin %s, total %.2f", booking.id, tiffin.id, booking.total_price)

        # Don't fail the booking if notifications fail
        try:
            email.send_order_notification_to_seller(booking, tiffin, seller)
            email.send_booking_confirmation_to_customer(booking, tiffin, seller)
        except Exception as e:
            logger.warning("Booking %s created but notification failed: %s", booking.id, e)

        return booking

    def get_booking(self, booking_id: int) -> Booking:
        booking = self.session.get(Booking, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    def get_bookings_by_email(self, customer_email: str) -> List[Booking]:
        return self.session.exec(
            select(Booking).where(Booking.customer_email == customer_email).order_by(Booking.created_at.desc())
        ).all()

    def get_bookings_by_seller(self, seller_id: int) -> List[Booking]:
        if not self.session.get(Seller, seller_id):
            raise HTTPException(status_code=404, detail="Seller not found")
        return self.session.exec(
            select(Booking).where(Booking.seller_id == seller_id).order_by(Booking.created_at.desc())
        ).all()

    def update_status(self, booking_id: int, new_status: BookingStatus,
                      seller_id: Optional[int] = None) -> Booking:
        booking = self.get_booking(booking_id)
        if seller_id is not None and booking.seller_id != seller_id:
            raise HTTPException(status_code=403, detail="Booking belongs to another seller")
        if new_status == booking.status:
            return booking
        if new_status not in ALLOWED_TRANSITIONS[booking.status]:
            raise HTTPException(
                status_code=400,
                detail=f"Cannot move booking from {booking.status.value} to {new_status.value}",
            )

        # Only the status moves, price fields stay as created
        booking.status = new_status
        booking.updated_at = datetime.utcnow()
        self.session.add(booking)
        self.session.commit()
        self.session.refresh(booking)

        try:
            tiffin = self.session.get(Tiffin, booking.tiffin_id)
            email.send_booking_status_update(booking, tiffin.title if tiffin else "your tiffin")
        except Exception as e:
            logger.warning("Failed to send status update for booking %s: %s", booking.id, e)

        return booking
