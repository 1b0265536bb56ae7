from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from booking_service import payments
from booking_service.auth import verify_token
from booking_service.bookings import get_booking, list_for_email
from booking_service.database import get_db
from booking_service.models import User

router = APIRouter()


class PaymentRequest(BaseModel):
    bookingId: str


class Customer(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class Address(BaseModel):
    line1: Optional[str] = None
    line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postalCode: Optional[str] = None
    country: str = "IN"


class PaymentLinkRequest(BaseModel):
    bookingId: str
    customer: Optional[Customer] = None
    address: Optional[Address] = None


@router.post("/payments/create-order", tags=["payments"])
def create_order_api(request: PaymentRequest, db: Session = Depends(get_db)):
    return payments.create_order(db, request.bookingId)


@router.post("/payments/create-payment-link", tags=["payments"])
def create_payment_link_api(request: PaymentLinkRequest, db: Session = Depends(get_db)):
    return payments.create_payment_link(
        db,
        request.bookingId,
        customer=request.customer.model_dump() if request.customer else None,
        address=request.address.model_dump() if request.address else None,
    )


@router.post("/payments/reconcile", tags=["payments"])
def reconcile_api(request: PaymentRequest, db: Session = Depends(get_db)):
    booking = payments.reconcile(db, request.bookingId)
    return booking.to_dict()


@router.get("/bookings", tags=["bookings"])
def my_bookings(user_id: str = Depends(verify_token), db: Session = Depends(get_db)):
    user = db.get(User, user_id)
    if user is None:
        return []
    return [booking.to_dict() for booking in list_for_email(db, user.email)]


@router.get("/bookings/{booking_id}", tags=["bookings"])
def booking_detail(booking_id: str, db: Session = Depends(get_db)):
    return get_booking(db, booking_id).to_dict()
