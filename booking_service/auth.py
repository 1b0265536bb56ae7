import os
from datetime import datetime, timedelta, timezone

import bcrypt
from fastapi import Header, HTTPException
from jose import JWTError, jwt

from booking_service.config import is_production

ALGORITHM = "HS256"
TOKEN_LIFETIME = timedelta(days=30)
DEV_SECRET = "dev-jwt-secret"


def _secret():
    secret = os.getenv("JWT_SECRET")
    if secret:
        return secret
    if is_production():
        raise RuntimeError("JWT_SECRET is not set. Check your .env file.")
    return DEV_SECRET


def _password_bytes(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes
    return password.encode("utf-8")[:72]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))


def create_token(user_id: str) -> str:
    expires = datetime.now(timezone.utc) + TOKEN_LIFETIME
    return jwt.encode({"sub": user_id, "exp": expires}, _secret(), algorithm=ALGORITHM)


def verify_token(authorization: str = Header(...)):
    """Dependency returning the user id from a ``Bearer`` token."""
    try:
        scheme, token = authorization.split()
        if scheme.lower() != "bearer":
            raise ValueError("not a bearer token")
        claims = jwt.decode(token, _secret(), algorithms=[ALGORITHM])
        return claims["sub"]
    except (ValueError, KeyError, JWTError):
        raise HTTPException(status_code=401, detail="Invalid or missing token")
