import logging
import secrets
import string
import time
from dataclasses import dataclass
from typing import Optional

from booking_service.bookings import create_pending_booking
from booking_service.config import is_production
from booking_service.errors import OtpExpired, OtpMismatch, OtpNotFound, UpstreamError
from booking_service.mailer import Mailer, render_otp_email
from booking_service.otp_store import InMemoryOtpStore, OtpEntry

logger = logging.getLogger(__name__)

OTP_LENGTH = 6
OTP_TTL_SECONDS = 5 * 60
OTP_SUBJECT = "Your OTP for Event Booking"


def generate_code(length=OTP_LENGTH):
    return "".join(secrets.choice(string.digits) for _ in range(length))


@dataclass
class OtpDispatch:
    message: str
    message_id: Optional[str] = None
    otp: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self):
        payload = {"message": self.message}
        if self.message_id:
            payload["messageId"] = self.message_id
        if self.otp:
            payload["otp"] = self.otp
        if self.error:
            payload["error"] = self.error
        return payload


class OtpService:
    def __init__(self, store=None, mailer=None, clock=time.time, ttl_seconds=OTP_TTL_SECONDS):
        self.store = store if store is not None else InMemoryOtpStore()
        self.mailer = mailer if mailer is not None else Mailer()
        self.clock = clock
        self.ttl_seconds = ttl_seconds

    def send(self, email, details=None):
        """Issue a fresh code for ``email``, replacing any pending one, and mail it.

        Outside production a missing or failing SMTP transport is not fatal:
        the code goes to the log and back in the response instead.
        """
        details = details or {}
        code = generate_code()
        self.store.delete(email)
        self.store.set(email, OtpEntry(
            email=email,
            code=code,
            expires_at=self.clock() + self.ttl_seconds,
            pending_details=details,
        ))

        html = render_otp_email(code, details)

        if not self.mailer.configured:
            if is_production():
                raise UpstreamError("Failed to send OTP", "SMTP is not configured")
            self._log_code(email, code)
            return OtpDispatch(message="OTP logged to console (no SMTP configured)", otp=code)

        try:
            message_id = self.mailer.send(email, OTP_SUBJECT, html)
        except Exception as exc:
            logger.error("SMTP send error for %s: %s", email, exc)
            if is_production():
                raise UpstreamError("Failed to send OTP", str(exc)) from exc
            self._log_code(email, code)
            return OtpDispatch(
                message="SMTP failed, OTP logged to console (development fallback)",
                otp=code,
                error=str(exc),
            )

        return OtpDispatch(message="OTP sent successfully", message_id=message_id)

    def verify(self, db, email, code):
        entry = self.store.get(email)
        if entry is None:
            raise OtpNotFound()
        if entry.is_expired(self.clock()):
            self.store.delete(email)
            raise OtpExpired()
        if not secrets.compare_digest(entry.code, str(code)):
            raise OtpMismatch()

        booking = create_pending_booking(db, email, entry.pending_details)
        self.store.delete(email)
        logger.info("OTP verified for %s, booking %s created", email, booking.id)
        return booking

    @staticmethod
    def _log_code(email, code):
        logger.warning("===== EMAIL LOG ===== to=%s subject=%r otp=%s", email, OTP_SUBJECT, code)
