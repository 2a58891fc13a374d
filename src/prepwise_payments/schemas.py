"""Request / response models for the payment OTP API.

Field names are snake_case in Python and camelCase on the wire
(``trainingId``, ``registrationData`` …).
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Affiliation = Literal["undergraduate", "intern", "postgraduate", "professional", "other"]
PaymentMethod = Literal["card", "bank", "mobile", "free"]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ── Transaction context ──────────────────────────────────

class ParticipantInfo(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=256)
    email: str = Field(min_length=3, max_length=256)
    contact: str = Field(min_length=1, max_length=32)
    affiliation: Affiliation


class RegistrationData(CamelModel):
    participant_info: ParticipantInfo


class PaymentDetails(CamelModel):
    method: PaymentMethod
    amount: str | None = None


# ── Requests ─────────────────────────────────────────────

class SendPaymentOTPRequest(CamelModel):
    email: str | None = None
    training_id: str | None = None
    amount: str | None = Field(None, description="Display only; the training price wins")
    registration_data: RegistrationData | None = None
    payment_details: PaymentDetails | None = None
    selected_slot: str | None = None


class VerifyPaymentOTPRequest(CamelModel):
    training_id: str | None = None
    registration_data: RegistrationData | None = None
    payment_details: PaymentDetails | None = None
    otp: str | None = None
    selected_slot: str | None = None


# ── Responses ────────────────────────────────────────────

class SendPaymentOTPResponse(CamelModel):
    success: bool
    message: str
    expires_in_seconds: int | None = None


class RegistrationConfirmation(CamelModel):
    registration_id: str
    confirmation_code: str
    training_link: str | None = None
    registered_participants: int
    available_spots: int


class VerifyPaymentOTPResponse(CamelModel):
    success: bool
    message: str
    data: RegistrationConfirmation | None = None


class ErrorResponse(CamelModel):
    success: bool = False
    message: str
    code: str


class TrainingOut(CamelModel):
    id: str
    title: str
    training_type: str
    price: str
    status: str
    time_slot: str | None = None
    available_spots: int
    is_fully_booked: bool
