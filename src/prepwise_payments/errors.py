"""Error taxonomy for the payment OTP lifecycle.

Every failure the services raise derives from :class:`PaymentOTPError` and
carries a machine-readable ``code``, the HTTP status the API answers with and
a user-facing ``message``.  The API layer turns them into the
``{"success": false, "message": ..., "code": ...}`` envelope.
"""

from __future__ import annotations


class PaymentOTPError(Exception):
    """Base class for all user-recoverable payment OTP failures."""

    code = "payment_otp_error"
    status_code = 400
    default_message = "Payment verification failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "message": self.message, "code": self.code}


class InvalidInput(PaymentOTPError):
    """Malformed code, contact or missing request fields."""

    code = "invalid_input"
    default_message = "Please enter a valid 6-digit verification code"


class InvalidContext(PaymentOTPError):
    """The referenced transaction does not exist, is closed, or does not match."""

    code = "invalid_context"
    default_message = "This training cannot be booked right now"

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class NoActiveChallenge(PaymentOTPError):
    code = "no_active_challenge"
    default_message = "Verification code not found or expired. Please request a new code."


class Expired(PaymentOTPError):
    code = "expired"
    default_message = "Verification code has expired. Please request a new code."


class InvalidCode(PaymentOTPError):
    """Wrong code; the challenge stays active until expiry or lockout."""

    code = "invalid_code"
    default_message = "Invalid verification code."

    def __init__(self, attempts_remaining: int | None = None) -> None:
        self.attempts_remaining = attempts_remaining
        message = self.default_message
        if attempts_remaining is not None:
            plural = "attempt" if attempts_remaining == 1 else "attempts"
            message = f"{message} {attempts_remaining} {plural} remaining."
        super().__init__(message)


class AttemptsExceeded(PaymentOTPError):
    code = "attempts_exceeded"
    status_code = 429
    default_message = "Too many failed attempts. Please request a new verification code."


class AlreadyConsumed(PaymentOTPError):
    code = "already_consumed"
    status_code = 409
    default_message = "This verification code has already been used."


class DeliveryFailed(PaymentOTPError):
    code = "delivery_failed"
    status_code = 503
    default_message = "Failed to send verification code. Please try again."
