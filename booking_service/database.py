import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from booking_service import config  # noqa: F401  loads .env

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set. Check your .env file.")

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
Base = declarative_base()


def get_db():
    """Request-scoped session; routes commit their own writes."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
