import os

# Must be set before booking_service.database is imported.
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_app.db")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ["ENVIRONMENT"] = "development"
for name in ("MAIL_SERVER", "MAIL_USERNAME", "MAIL_PASSWORD", "WEBHOOK_SECRET"):
    os.environ.pop(name, None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from booking_service.database import Base, get_db
from booking_service.main import app as fastapi_app
from booking_service.otp_routes import get_otp_service
from booking_service.otp_service import OtpService
from booking_service.otp_store import InMemoryOtpStore

SQLALCHEMY_DATABASE_URL = "sqlite:///./test_temp.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={
                       "check_same_thread": False})
TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=engine)


class FakeClock:
    def __init__(self, start=1_700_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeMailer:
    """Records messages instead of talking SMTP."""

    def __init__(self, configured=True, fail_with=None):
        self.configured = configured
        self.fail_with = fail_with
        self.sent = []

    def send(self, to_email, subject, html):
        if self.fail_with:
            raise self.fail_with
        self.sent.append((to_email, subject, html))
        return f"<msg-{len(self.sent)}@test>"

    def describe(self):
        return {"host": "smtp.test", "user": "[set]", "pass": "[set]"}

    def check_connection(self):
        if self.fail_with:
            raise self.fail_with


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db():
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def otp_service(clock, mailer):
    return OtpService(store=InMemoryOtpStore(), mailer=mailer, clock=clock)


@pytest.fixture
def client(otp_service):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_otp_service] = lambda: otp_service
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()
