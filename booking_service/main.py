import logging
import os
import time

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from booking_service.auth_routes import router as auth_router
from booking_service.config import is_production
from booking_service.database import Base, engine, get_db
from booking_service.errors import BookingServiceError, UpstreamError
from booking_service.otp_routes import router as otp_router
from booking_service.payments import handle_webhook_event, verify_webhook
from booking_service.routes import router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("booking_service")

app = FastAPI(title="Event Booking Service")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(otp_router)
app.include_router(router)

Base.metadata.create_all(bind=engine)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info("%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


@app.exception_handler(BookingServiceError)
async def booking_error_handler(request: Request, exc: BookingServiceError):
    body = {"detail": exc.message}
    if isinstance(exc, UpstreamError) and exc.reason and not is_production():
        body["message"] = exc.reason
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg")}
        for err in exc.errors()
    ]
    detail = errors[0]["msg"] if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"detail": detail, "errors": errors})


@app.get("/")
def health():
    return {"status": "Server is running"}


async def raw_body(request: Request) -> bytes:
    return await request.body()


@app.post("/payments/webhook", tags=["payments"])
def razorpay_webhook(
    payload: bytes = Depends(raw_body),
    x_razorpay_signature: str = Header(None),
    db: Session = Depends(get_db),
):
    secret = os.getenv("WEBHOOK_SECRET")
    if not secret:
        raise HTTPException(status_code=500, detail="WEBHOOK_SECRET not configured")

    event = verify_webhook(payload, x_razorpay_signature, secret)
    handle_webhook_event(db, event)
    return {"ok": True}
