from booking_service.errors import BookingNotFound, NotPayable
from booking_service.models import Booking, PENDING_PAYMENT

DEFAULT_AMOUNT = 250000  # INR 2500.00 in paise


def create_pending_booking(db, email, details):
    booking = Booking(
        email=email,
        event_id=details.get("eventId"),
        guests=int(details.get("guests") or 1),
        amount=int(details.get("amount") or DEFAULT_AMOUNT),
        currency="INR",
        status=PENDING_PAYMENT,
        provider="razorpay",
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


def get_booking(db, booking_id):
    booking = db.get(Booking, booking_id)
    if booking is None:
        raise BookingNotFound()
    return booking


def get_payable_booking(db, booking_id):
    booking = get_booking(db, booking_id)
    if not booking.is_payable():
        raise NotPayable()
    return booking


def find_by_provider_order(db, order_id):
    return db.query(Booking).filter_by(provider_order_id=order_id).first()


def find_by_payment_link(db, link_id):
    return db.query(Booking).filter_by(provider_link_id=link_id).first()


def list_for_email(db, email):
    return (
        db.query(Booking)
        .filter_by(email=email)
        .order_by(Booking.created_at.desc())
        .all()
    )
