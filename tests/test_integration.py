import hashlib
import hmac
import json

from conftest import TestingSessionLocal
from booking_service.models import Booking


def test_full_booking_lifecycle_integration(client, otp_service, mocker, monkeypatch):
    """
    Test the full lifecycle:
    1. Send OTP (API -> OTP store + mail)
    2. Verify OTP (API -> DB booking in pending_payment)
    3. Create Razorpay order (API -> DB + Razorpay mocked)
    4. Webhook order.paid (Razorpay -> API -> DB), delivered twice
    """
    monkeypatch.setenv("RAZORPAY_KEY_ID", "rzp_test_key")
    monkeypatch.setenv("RAZORPAY_KEY_SECRET", "rzp_test_secret")
    monkeypatch.setenv("WEBHOOK_SECRET", "whsec_integration")

    # --- 1. SEND OTP ---
    response = client.post("/otp/send", json={
        "email": "lifecycle@example.com",
        "eventDetails": {"eventName": "Birthday", "guests": 25, "amount": 500000},
    })
    assert response.status_code == 200
    code = otp_service.store.get("lifecycle@example.com").code

    # --- 2. VERIFY OTP ---
    response = client.post("/otp/verify", json={"email": "lifecycle@example.com", "otp": code})
    assert response.status_code == 200
    booking_id = response.json()["booking"]["id"]
    assert response.json()["booking"]["amount"] == 500000

    # --- 3. CREATE ORDER ---
    mock_client = mocker.Mock()
    mock_client.order.create.return_value = {"id": "order_int_1", "amount": 500000, "currency": "INR"}
    mocker.patch("booking_service.razorpay_service.get_client", return_value=mock_client)

    response = client.post("/payments/create-order", json={"bookingId": booking_id})
    assert response.status_code == 200
    assert response.json()["orderId"] == "order_int_1"
    sent = mock_client.order.create.call_args.kwargs["data"]
    assert sent["amount"] == 500000
    assert sent["currency"] == "INR"

    db = TestingSessionLocal()
    booking = db.get(Booking, booking_id)
    assert booking.status == "pending_payment"
    assert booking.provider_order_id == "order_int_1"
    db.close()

    # --- 4. WEBHOOK (twice, replay is harmless) ---
    body = json.dumps({
        "event": "order.paid",
        "payload": {
            "order": {"entity": {"id": "order_int_1", "status": "paid"}},
            "payment": {"entity": {"id": "pay_int_1", "order_id": "order_int_1"}},
        },
    }).encode()
    signature = hmac.new(b"whsec_integration", body, hashlib.sha256).hexdigest()

    for _ in range(2):
        response = client.post("/payments/webhook", content=body, headers={"x-razorpay-signature": signature})
        assert response.status_code == 200

    db = TestingSessionLocal()
    booking = db.get(Booking, booking_id)
    assert booking.status == "paid"
    assert booking.provider_payment_id == "pay_int_1"
    assert db.query(Booking).count() == 1
    db.close()

    # A paid booking can no longer be paid for.
    response = client.post("/payments/create-payment-link", json={"bookingId": booking_id})
    assert response.status_code == 400
    mock_client.payment_link.create.assert_not_called()


def test_otp_cannot_be_reused(client, otp_service):
    client.post("/otp/send", json={"email": "once@example.com"})
    code = otp_service.store.get("once@example.com").code

    first = client.post("/otp/verify", json={"email": "once@example.com", "otp": code})
    second = client.post("/otp/verify", json={"email": "once@example.com", "otp": code})

    assert first.status_code == 200
    assert second.status_code == 400

    db = TestingSessionLocal()
    assert db.query(Booking).filter_by(email="once@example.com").count() == 1
    db.close()


def test_expired_otp_over_http(client, otp_service, clock):
    client.post("/otp/send", json={"email": "late@example.com"})
    code = otp_service.store.get("late@example.com").code
    clock.advance(5 * 60 + 1)

    response = client.post("/otp/verify", json={"email": "late@example.com", "otp": code})

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid or expired OTP"
