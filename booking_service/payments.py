import json
import logging
import os

from razorpay.errors import SignatureVerificationError

from booking_service import razorpay_service
from booking_service.bookings import (
    find_by_payment_link,
    find_by_provider_order,
    get_booking,
    get_payable_booking,
)
from booking_service.errors import InvalidSignature, NotPayable, UpstreamError, ValidationError
from booking_service.models import Booking, PAID

logger = logging.getLogger(__name__)

PAID_EVENTS = ("payment.captured", "order.paid", "payment_link.paid")


def _drop_empty(values):
    return {k: v for k, v in values.items() if v is not None}


def create_order(db, booking_id):
    booking = get_payable_booking(db, booking_id)

    try:
        order = razorpay_service.create_order(
            amount=booking.amount,
            currency=booking.currency or "INR",
            receipt=f"booking_{booking.id}",
            notes={"bookingId": booking.id, "email": booking.email},
        )
    except Exception as exc:
        logger.error("create-order error for booking %s: %s", booking.id, exc)
        raise UpstreamError("Failed to create order", str(exc)) from exc

    booking.provider_order_id = order["id"]
    db.commit()
    logger.info("Razorpay order %s created for booking %s", order["id"], booking.id)

    return {
        "orderId": order["id"],
        "amount": order["amount"],
        "currency": order["currency"],
        "bookingId": booking.id,
        "keyId": os.getenv("RAZORPAY_KEY_ID"),
    }


def create_payment_link(db, booking_id, customer=None, address=None):
    booking = get_payable_booking(db, booking_id)
    customer = customer or {}
    address = address or {}

    payload = {
        "amount": booking.amount,
        "currency": booking.currency or "INR",
        "accept_partial": False,
        "description": f"Payment for booking {booking.id}",
        "notes": _drop_empty({
            "bookingId": booking.id,
            "email": booking.email,
            "address_line1": address.get("line1"),
            "address_line2": address.get("line2"),
            "address_city": address.get("city"),
            "address_state": address.get("state"),
            "address_postalCode": address.get("postalCode"),
            "address_country": address.get("country") or "IN",
        }),
        "customer": _drop_empty({
            "name": customer.get("name"),
            "email": customer.get("email") or booking.email,
            "contact": customer.get("phone"),
        }),
        "notify": {"sms": True, "email": True},
        "reminder_enable": True,
    }
    app_url = os.getenv("APP_URL")
    if app_url:
        payload["callback_url"] = f"{app_url.rstrip('/')}/booking-success"
        payload["callback_method"] = "get"

    try:
        plink = razorpay_service.create_payment_link(payload)
    except Exception as exc:
        logger.error("create-payment-link error for booking %s: %s", booking.id, exc)
        raise UpstreamError("Failed to create payment link", str(exc)) from exc

    booking.provider_link_id = plink["id"]
    db.commit()
    logger.info("Razorpay payment link %s created for booking %s", plink["id"], booking.id)

    return {
        "id": plink["id"],
        "short_url": plink.get("short_url"),
        "amount": plink["amount"],
        "currency": plink["currency"],
        "bookingId": booking.id,
    }


def reconcile(db, booking_id):
    """Ask Razorpay for the order's state and mark the booking paid if it is."""
    booking = get_booking(db, booking_id)
    if booking.status == PAID:
        return booking
    if not booking.provider_order_id:
        raise NotPayable("Booking has no payment order")

    try:
        order = razorpay_service.fetch_order(booking.provider_order_id)
        payment_id = None
        if order.get("status") == "paid":
            payments = razorpay_service.fetch_order_payments(booking.provider_order_id)
            captured = [p for p in payments.get("items", []) if p.get("status") == "captured"]
            payment_id = captured[0]["id"] if captured else None
    except Exception as exc:
        logger.error("order-status error for booking %s: %s", booking.id, exc)
        raise UpstreamError("Failed to fetch order status", str(exc)) from exc

    if order.get("status") == "paid":
        booking.mark_paid(payment_id)
        db.commit()
        logger.info("Booking %s reconciled as paid", booking.id)
    return booking


def verify_webhook(body: bytes, signature, secret):
    if not signature or not signature.isascii():
        raise InvalidSignature()
    try:
        payload = body.decode("utf-8")
        razorpay_service.verify_webhook_signature(payload, signature, secret)
    except (UnicodeDecodeError, TypeError, SignatureVerificationError) as exc:
        raise InvalidSignature() from exc

    try:
        event = json.loads(payload)
    except ValueError as exc:
        raise ValidationError("Invalid payload") from exc
    if not isinstance(event, dict):
        raise ValidationError("Invalid payload")
    return event


def _entity(event, name):
    return ((event.get("payload") or {}).get(name) or {}).get("entity") or {}


def resolve_booking(db, event):
    payment = _entity(event, "payment")
    order = _entity(event, "order")
    link = _entity(event, "payment_link")

    order_id = payment.get("order_id") or order.get("id") or link.get("order_id")
    if order_id:
        booking = find_by_provider_order(db, order_id)
        if booking:
            return booking

    for notes in (payment.get("notes"), link.get("notes")):
        booking_id = notes.get("bookingId") if isinstance(notes, dict) else None
        if booking_id:
            booking = db.get(Booking, booking_id)
            if booking:
                return booking

    if link.get("id"):
        return find_by_payment_link(db, link["id"])
    return None


def handle_webhook_event(db, event):
    """Apply a verified Razorpay event. Replays repeat the same update."""
    event_type = event.get("event")
    if event_type not in PAID_EVENTS:
        logger.info("Ignoring webhook event %s", event_type)
        return None

    booking = resolve_booking(db, event)
    if booking is None:
        logger.warning("Webhook %s matched no booking", event_type)
        return None

    booking.mark_paid(_entity(event, "payment").get("id"))
    db.commit()
    logger.info("Booking %s marked paid via %s", booking.id, event_type)
    return booking
