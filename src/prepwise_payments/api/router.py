"""Training payment router — the OTP request and verification endpoints.

Endpoints
---------
POST /api/trainings/send-payment-otp     → issue and email a payment code
POST /api/trainings/verify-payment-otp   → verify the code, confirm the booking
GET  /api/trainings/{training_id}        → training summary for the payment page
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from prepwise_payments.database.engine import get_session
from prepwise_payments.schemas import (
    ErrorResponse,
    SendPaymentOTPRequest,
    SendPaymentOTPResponse,
    TrainingOut,
    VerifyPaymentOTPRequest,
    VerifyPaymentOTPResponse,
)
from prepwise_payments.services.email_service import EmailService
from prepwise_payments.services.payment_service import PaymentOTPService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/trainings",
    tags=["training-payments"],
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)


# ── Dependencies ─────────────────────────────────────────

def get_email_service() -> EmailService:
    return EmailService()


def get_payment_service(
    session: AsyncSession = Depends(get_session),
    email_service: EmailService = Depends(get_email_service),
) -> PaymentOTPService:
    return PaymentOTPService(session, email_service)


# ── Endpoints ────────────────────────────────────────────

@router.post("/send-payment-otp", response_model=SendPaymentOTPResponse)
async def send_payment_otp(
    body: SendPaymentOTPRequest,
    service: PaymentOTPService = Depends(get_payment_service),
):
    """Generate a payment code and email it to the participant.

    The code itself is never part of the response.
    """
    logger.info("Payment OTP request for training %s", body.training_id)
    expires_in = await service.request_code(body)
    return SendPaymentOTPResponse(
        success=True,
        message="Payment verification code sent to your email",
        expires_in_seconds=expires_in,
    )


@router.post("/verify-payment-otp", response_model=VerifyPaymentOTPResponse)
async def verify_payment_otp(
    body: VerifyPaymentOTPRequest,
    service: PaymentOTPService = Depends(get_payment_service),
):
    """Validate the payment code and complete the registration."""
    logger.info("Payment OTP verification for training %s", body.training_id)
    confirmation = await service.verify(body)
    return VerifyPaymentOTPResponse(
        success=True,
        message="Payment confirmed successfully! Registration completed.",
        data=confirmation,
    )


@router.get("/{training_id}", response_model=TrainingOut)
async def get_training(
    training_id: str,
    service: PaymentOTPService = Depends(get_payment_service),
):
    """Look up a training for display on the payment page."""
    training = await service.get_training(training_id)
    return TrainingOut(
        id=training.id,
        title=training.title,
        training_type=training.training_type,
        price=training.display_price,
        status=training.status,
        time_slot=training.time_slot,
        available_spots=training.available_spots,
        is_fully_booked=training.is_fully_booked,
    )
