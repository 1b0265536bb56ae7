import smtplib

import pytest

from booking_service.mailer import Mailer, render_otp_email


def test_render_includes_code_and_escapes_details():
    html = render_otp_email("123456", {"eventName": "<script>x</script>", "guests": 2})

    assert "123456" in html
    assert "&lt;script&gt;" in html
    assert "<script>" not in html
    assert "Guests:</strong> 2" in html


def test_render_without_details_has_no_booking_block():
    assert "Booking Details" not in render_otp_email("123456")


def test_mailer_configured_from_env(monkeypatch):
    monkeypatch.setenv("MAIL_SERVER", "smtp.example.com")
    monkeypatch.setenv("MAIL_USERNAME", "bot@example.com")
    monkeypatch.setenv("MAIL_PASSWORD", "app-password")
    monkeypatch.setenv("MAIL_PORT", "2525")

    mailer = Mailer()

    assert mailer.configured
    assert mailer.port == 2525
    assert mailer.sender == "bot@example.com"
    assert mailer.describe()["pass"] == "[set]"


def test_mailer_not_configured_without_credentials():
    assert not Mailer(server="smtp.example.com").configured


def test_send_uses_starttls_and_login(mocker):
    smtp = mocker.patch("booking_service.mailer.smtplib.SMTP")
    mailer = Mailer(server="smtp.example.com", port=587, username="bot@example.com",
                    password="pw", use_tls=True)

    message_id = mailer.send("guest@example.com", "Subject", "<p>hi</p>")

    server = smtp.return_value
    smtp.assert_called_once_with("smtp.example.com", 587, timeout=30)
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("bot@example.com", "pw")
    sent = server.send_message.call_args.args[0]
    assert sent["To"] == "guest@example.com"
    assert sent["Message-ID"] == message_id
    server.quit.assert_called_once()


def test_failed_login_closes_connection(mocker):
    smtp = mocker.patch("booking_service.mailer.smtplib.SMTP")
    server = smtp.return_value
    server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
    mailer = Mailer(server="smtp.example.com", username="bot@example.com", password="pw")

    with pytest.raises(smtplib.SMTPAuthenticationError):
        mailer.check_connection()
    with pytest.raises(smtplib.SMTPAuthenticationError):
        mailer.send("guest@example.com", "Subject", "<p>hi</p>")

    assert server.close.call_count == 2
    server.send_message.assert_not_called()
