"""Payment API client — async HTTP client for the training payment endpoints.

Used by the payment OTP widget.  Every call returns an :class:`APIResult`;
HTTP and transport failures are turned into a failed result with a
user-facing message instead of raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from prepwise_payments.config import settings

logger = logging.getLogger(__name__)


@dataclass
class APIResult:
    """Lightweight value object returned by every API call."""

    success: bool
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    code: str | None = None


class PaymentAPIClient:
    """Async HTTP wrapper around ``/api/trainings`` payment endpoints."""

    def __init__(
        self,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or settings.api_base_url).rstrip("/")
        self._transport = transport

    async def send_payment_otp(
        self,
        email: str,
        training_id: str,
        registration_data: dict,
        payment_details: dict,
        amount: str | None = None,
        selected_slot: str | None = None,
    ) -> APIResult:
        """Ask the server to issue and email a fresh payment code."""
        payload = {
            "email": email,
            "trainingId": training_id,
            "amount": amount,
            "registrationData": registration_data,
            "paymentDetails": payment_details,
            "selectedSlot": selected_slot,
        }
        return await self._post(
            "/api/trainings/send-payment-otp", payload, "Failed to send verification code"
        )

    async def verify_payment_otp(
        self,
        training_id: str,
        registration_data: dict,
        payment_details: dict,
        otp: str,
        selected_slot: str | None = None,
    ) -> APIResult:
        """Submit a payment code; on success ``data`` holds the confirmation."""
        payload = {
            "trainingId": training_id,
            "registrationData": registration_data,
            "paymentDetails": payment_details,
            "otp": otp,
            "selectedSlot": selected_slot,
        }
        return await self._post(
            "/api/trainings/verify-payment-otp", payload, "Verification failed. Please try again."
        )

    async def _post(self, path: str, payload: dict, fallback: str) -> APIResult:
        url = f"{self._base_url}{path}"
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                resp = await client.post(url, json=payload)
        except httpx.HTTPError as exc:
            logger.exception("Request to %s failed: %s", path, exc)
            return APIResult(success=False, message=fallback)

        try:
            body = resp.json()
        except ValueError:
            logger.error("Non-JSON response from %s: %s %s", path, resp.status_code, resp.text)
            return APIResult(success=False, message=fallback)

        if not isinstance(body, dict):
            logger.error("Unexpected JSON body from %s: %s %r", path, resp.status_code, body)
            return APIResult(success=False, message=fallback)

        if resp.status_code == 200 and body.get("success"):
            data = body.get("data")
            if data is None:
                data = {k: v for k, v in body.items() if k not in ("success", "message")}
            return APIResult(success=True, message=body.get("message", ""), data=data)

        logger.info("%s rejected: %s %s", path, resp.status_code, body.get("code"))
        return APIResult(
            success=False,
            message=body.get("message") or fallback,
            code=body.get("code"),
        )
