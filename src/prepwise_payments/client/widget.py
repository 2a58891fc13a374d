"""Payment OTP widget — client-side state machine for the confirmation step."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass

from prepwise_payments.client.api_client import APIResult, PaymentAPIClient
from prepwise_payments.client.code_input import CodeInput
from prepwise_payments.client.countdown import Countdown
from prepwise_payments.config import settings
from prepwise_payments.validation import is_valid_code

logger = logging.getLogger(__name__)

INCOMPLETE_CODE_MESSAGE = "Please enter complete 6-digit OTP"


class WidgetState(str, enum.Enum):
    SENT = "sent"
    EXPIRED = "expired"
    VERIFYING = "verifying"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass
class Notification:
    """A message the front-end must show to the user."""

    level: str  # "success" | "error" | "info"
    text: str


@dataclass
class PaymentContext:
    """What the payment page hands over to the OTP step."""

    training_id: str
    registration_data: dict
    payment_details: dict
    amount: str | None = None
    selected_slot: str | None = None

    @property
    def email(self) -> str:
        return self.registration_data["participantInfo"]["email"]


class PaymentOTPWidget:
    """Collects the payment code, tracks its validity window and gates resend.

    Lifecycle
    ---------
    1. ``open()`` is called once the first code has been sent; the
       countdown starts and the state is ``sent``.
    2. When the countdown reaches zero the state becomes ``expired`` and
       ``resend()`` is allowed.
    3. ``submit()`` sends the code; the result is ``confirmed`` or
       ``failed`` (retryable).  Nothing is retried automatically.
    4. ``close()`` cancels the countdown task.
    """

    def __init__(
        self,
        api: PaymentAPIClient,
        context: PaymentContext,
        notify: Callable[[Notification], None] | None = None,
        countdown: Countdown | None = None,
        code_length: int | None = None,
    ) -> None:
        self._api = api
        self.context = context
        self._notify = notify or self._log_notification
        self.code = CodeInput(code_length or settings.otp_length)
        self.countdown = countdown or Countdown()
        self.countdown.on_expire = self._on_expire
        self.state = WidgetState.SENT
        self.is_submitting = False
        self.is_resending = False
        self.confirmation: dict | None = None

    # ── Lifecycle ────────────────────────────────────────

    def open(self) -> None:
        self.state = WidgetState.SENT
        self.countdown.start()

    def close(self) -> None:
        self.countdown.cancel()

    @property
    def can_resend(self) -> bool:
        return self.countdown.expired and not self.is_resending

    # ── Actions ──────────────────────────────────────────

    async def submit(self) -> bool:
        """Verify the entered code; returns ``True`` once the payment is confirmed."""
        otp = self.code.value
        if not is_valid_code(otp, self.code.length):
            self._notify(Notification("error", INCOMPLETE_CODE_MESSAGE))
            return False
        if self.is_submitting:
            return False

        self.is_submitting = True
        self.state = WidgetState.VERIFYING
        try:
            result = await self._api.verify_payment_otp(
                training_id=self.context.training_id,
                registration_data=self.context.registration_data,
                payment_details=self.context.payment_details,
                otp=otp,
                selected_slot=self.context.selected_slot,
            )
        finally:
            self.is_submitting = False

        if result.success:
            self.state = WidgetState.CONFIRMED
            self.confirmation = result.data
            self.countdown.cancel()
            self._notify(Notification("success", "Payment confirmed successfully!"))
            return True

        self._fail(result)
        return False

    async def resend(self) -> bool:
        """Request a new code; only allowed after the current one expired."""
        if not self.can_resend:
            return False

        self.is_resending = True
        try:
            result = await self._api.send_payment_otp(
                email=self.context.email,
                training_id=self.context.training_id,
                registration_data=self.context.registration_data,
                payment_details=self.context.payment_details,
                amount=self.context.amount,
                selected_slot=self.context.selected_slot,
            )
        finally:
            self.is_resending = False

        if not result.success:
            self._notify(Notification("error", result.message or "Failed to resend OTP"))
            return False

        self.code.clear()
        self.countdown.reset()
        self.state = WidgetState.SENT
        self._notify(Notification("success", "OTP sent successfully!"))
        return True

    # ── Private helpers ──────────────────────────────────

    def _on_expire(self) -> None:
        if self.state in (WidgetState.SENT, WidgetState.FAILED):
            self.state = WidgetState.EXPIRED
            self._notify(Notification("info", "Your code has expired. You can request a new one."))

    def _fail(self, result: APIResult) -> None:
        self.state = WidgetState.EXPIRED if self.countdown.expired else WidgetState.FAILED
        self._notify(Notification("error", result.message or "OTP verification failed"))

    @staticmethod
    def _log_notification(notification: Notification) -> None:
        logger.info("[%s] %s", notification.level, notification.text)
