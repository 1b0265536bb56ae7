"""Domain errors. Each carries the HTTP status main.py renders it with."""


class BookingServiceError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)

    @property
    def message(self):
        return str(self)


class ValidationError(BookingServiceError):
    status_code = 400
    default_message = "Invalid request"


class BookingNotFound(BookingServiceError):
    status_code = 404
    default_message = "Booking not found"


class NotPayable(BookingServiceError):
    status_code = 400
    default_message = "Booking not payable"


class InvalidOrExpiredOtp(BookingServiceError):
    status_code = 400
    default_message = "Invalid or expired OTP"


class OtpNotFound(InvalidOrExpiredOtp):
    pass


class OtpMismatch(InvalidOrExpiredOtp):
    pass


class OtpExpired(InvalidOrExpiredOtp):
    pass


class InvalidSignature(BookingServiceError):
    status_code = 400
    default_message = "Invalid signature"


class InvalidCredentials(BookingServiceError):
    status_code = 400
    default_message = "Invalid credentials"


class UserExists(BookingServiceError):
    status_code = 400
    default_message = "User already exists"


class UpstreamError(BookingServiceError):
    """A mail or payment provider call failed.

    ``detail`` is the public summary; the provider's own message is kept in
    ``reason`` and only shown outside production.
    """

    status_code = 500
    default_message = "Upstream service failed"

    def __init__(self, detail, reason=None):
        super().__init__(detail)
        self.reason = reason
