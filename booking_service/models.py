import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, DateTime
from booking_service.database import Base

PENDING_PAYMENT = "pending_payment"
PAID = "paid"
FAILED = "failed"
CANCELLED = "cancelled"
BOOKING_STATUSES = (PENDING_PAYMENT, PAID, FAILED, CANCELLED)


def _new_id():
    return uuid.uuid4().hex


def _utcnow():
    return datetime.now(timezone.utc)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(32), primary_key=True, default=_new_id)
    email = Column(String, nullable=False, index=True)
    event_id = Column(String, nullable=True)
    guests = Column(Integer, nullable=False, default=1)
    amount = Column(Integer, nullable=False)                  # in paise
    currency = Column(String, nullable=False, default="INR")
    status = Column(String, nullable=False, default=PENDING_PAYMENT)
    provider = Column(String, nullable=False, default="razorpay")
    provider_order_id = Column(String, index=True)            # Razorpay order_...
    provider_payment_id = Column(String)                      # Razorpay pay_...
    provider_link_id = Column(String, index=True)             # Razorpay plink_...
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def is_payable(self):
        return self.status == PENDING_PAYMENT

    def mark_paid(self, payment_id=None):
        self.status = PAID
        if payment_id:
            self.provider_payment_id = payment_id

    def summary(self):
        return {
            "id": self.id,
            "amount": self.amount,
            "currency": self.currency,
            "status": self.status,
        }

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "eventId": self.event_id,
            "guests": self.guests,
            "amount": self.amount,
            "currency": self.currency,
            "status": self.status,
            "provider": self.provider,
            "providerOrderId": self.provider_order_id,
            "providerPaymentId": self.provider_payment_id,
            "providerLinkId": self.provider_link_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    def to_dict(self):
        return {"id": self.id, "name": self.name, "email": self.email}
