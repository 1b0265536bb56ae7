import os
from pathlib import Path
from dotenv import load_dotenv
import razorpay

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=BASE_DIR / ".env")


def get_client():
    key_id = os.getenv("RAZORPAY_KEY_ID")
    key_secret = os.getenv("RAZORPAY_KEY_SECRET")
    if not key_id or not key_secret:
        raise RuntimeError("Razorpay keys missing: set RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET")
    return razorpay.Client(auth=(key_id, key_secret))


def create_order(amount: int, currency: str, receipt: str, notes: dict):
    return get_client().order.create(data={
        "amount": amount,
        "currency": currency,
        "receipt": receipt,
        "notes": notes,
    })


def create_payment_link(payload: dict):
    return get_client().payment_link.create(data=payload)


def fetch_order(order_id: str):
    return get_client().order.fetch(order_id)


def fetch_order_payments(order_id: str):
    return get_client().order.payments(order_id)


def verify_webhook_signature(body: str, signature: str, secret: str):
    # Signature check is pure HMAC and needs no API keys.
    return razorpay.Client().utility.verify_webhook_signature(body, signature, secret)
