import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from booking_service.auth import check_password, create_token, hash_password, verify_token
from booking_service.database import get_db
from booking_service.errors import InvalidCredentials, UserExists
from booking_service.models import User
from booking_service.otp_routes import EMAIL_RE

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: str
    password: str = Field(..., min_length=6)

    @field_validator("email")
    @classmethod
    def check_email(cls, value):
        if not EMAIL_RE.match(value):
            raise ValueError("Please include a valid email")
        return value.lower()


class LoginRequest(BaseModel):
    email: str
    password: str


def _session_payload(user):
    return {**user.to_dict(), "token": create_token(user.id)}


@router.post("/register", status_code=201)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    if db.query(User).filter_by(email=request.email).first():
        raise UserExists()

    user = User(
        name=request.name,
        email=request.email,
        password_hash=hash_password(request.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("New user registered: %s", user.email)
    return _session_payload(user)


@router.post("/login")
def login(request: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter_by(email=request.email.lower()).first()
    if not user or not check_password(request.password, user.password_hash):
        raise InvalidCredentials()
    return _session_payload(user)


@router.get("/me")
def me(user_id: str = Depends(verify_token), db: Session = Depends(get_db)):
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid or missing token")
    return user.to_dict()
