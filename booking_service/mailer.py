import html
import logging
import os
import smtplib
from email.message import EmailMessage
from email.utils import make_msgid

from booking_service.config import env_flag

logger = logging.getLogger(__name__)


class Mailer:
    """Thin SMTP sender configured from MAIL_* environment variables."""

    def __init__(self, server=None, port=None, username=None, password=None, use_tls=None, sender=None):
        self.server = server or os.getenv("MAIL_SERVER")
        self.port = int(port or os.getenv("MAIL_PORT", 587))
        self.username = username or os.getenv("MAIL_USERNAME")
        self.password = password or os.getenv("MAIL_PASSWORD")
        self.use_tls = env_flag("MAIL_USE_TLS", True) if use_tls is None else use_tls
        self.sender = sender or os.getenv("MAIL_SENDER") or self.username

    @property
    def configured(self):
        return bool(self.server and self.username and self.password)

    def describe(self):
        return {
            "host": self.server,
            "port": self.port,
            "user": "[set]" if self.username else "[missing]",
            "pass": "[set]" if self.password else "[missing]",
            "tls": self.use_tls,
        }

    def _connect(self):
        server = smtplib.SMTP(self.server, self.port, timeout=30)
        try:
            server.ehlo()
            if self.use_tls:
                server.starttls()
                server.ehlo()
            server.login(self.username, self.password)
        except Exception:
            server.close()
            raise
        return server

    def check_connection(self):
        server = self._connect()
        try:
            server.noop()
        finally:
            server.quit()

    def send(self, to_email, subject, html):
        msg = EmailMessage()
        msg["From"] = f'"Event Management" <{self.sender}>'
        msg["To"] = to_email
        msg["Subject"] = subject
        msg["Message-ID"] = make_msgid()
        msg.set_content("Please view this message in an HTML-capable mail client.")
        msg.add_alternative(html, subtype="html")

        server = self._connect()
        try:
            server.send_message(msg)
        finally:
            server.quit()

        logger.info("Sent %r to %s", subject, to_email)
        return msg["Message-ID"]


def render_otp_email(code, details=None):
    details = {k: html.escape(str(v)) for k, v in (details or {}).items() if v is not None}
    booking_block = ""
    if details:
        notes = details.get("additionalNotes")
        booking_block = f"""
        <div style="margin-top: 20px; padding: 10px; background: #f5f5f5; border-radius: 5px;">
          <h3>Booking Details:</h3>
          <p><strong>Event:</strong> {details.get("eventName") or "N/A"}</p>
          <p><strong>Date:</strong> {details.get("eventDate") or "N/A"}</p>
          <p><strong>Guests:</strong> {details.get("guests") or 1}</p>
          {f"<p><strong>Notes:</strong> {notes}</p>" if notes else ""}
        </div>"""

    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
      <h2>Your OTP for Event Booking</h2>
      <p>Your One-Time Password (OTP) is:</p>
      <h1 style="font-size: 2.5em; letter-spacing: 5px; color: #4CAF50;">{code}</h1>
      <p>This OTP is valid for 5 minutes.</p>{booking_block}
      <p style="margin-top: 20px; font-size: 0.9em; color: #666;">
        If you didn't request this OTP, please ignore this email.
      </p>
    </div>
    """
