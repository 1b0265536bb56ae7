import re
import smtplib
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from booking_service.config import is_production
from booking_service.database import get_db
from booking_service.otp_service import OtpService

router = APIRouter(prefix="/otp", tags=["otp"])

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_otp_service = OtpService()


def get_otp_service():
    return _otp_service


class EventDetails(BaseModel):
    eventName: Optional[str] = None
    eventDate: Optional[str] = None
    guests: int = Field(1, ge=1)
    eventId: Optional[str] = None
    amount: Optional[int] = Field(None, gt=0)   # paise
    additionalNotes: Optional[str] = None


class SendOtpRequest(BaseModel):
    email: str
    eventDetails: Optional[EventDetails] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, value):
        if not EMAIL_RE.match(value):
            raise ValueError("Please enter a valid email address")
        return value.lower()


class VerifyOtpRequest(BaseModel):
    email: str = Field(..., min_length=1)
    otp: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value):
        return value.lower()


@router.post("/send")
def send_otp(request: SendOtpRequest, service: OtpService = Depends(get_otp_service)):
    details = request.eventDetails.model_dump(exclude_none=True) if request.eventDetails else {}
    return service.send(request.email, details).to_dict()


@router.post("/verify")
def verify_otp(
    request: VerifyOtpRequest,
    db: Session = Depends(get_db),
    service: OtpService = Depends(get_otp_service),
):
    booking = service.verify(db, request.email, request.otp)
    return {"message": "OTP verified successfully", "booking": booking.summary()}


@router.get("/debug")
def smtp_debug(service: OtpService = Depends(get_otp_service)):
    if is_production():
        raise HTTPException(status_code=404, detail="Not Found")

    mailer = service.mailer
    if not mailer.configured:
        return {
            "transporter": "not_configured",
            "config": mailer.describe(),
            "verify": "skipped (no transporter)",
        }

    try:
        mailer.check_connection()
        verify = "ok"
    except (smtplib.SMTPException, OSError) as exc:
        verify = {"error": str(exc)}

    return {"transporter": "configured", "config": mailer.describe(), "verify": verify}
