"""Payment OTP service — request a code, verify it, finalize the registration."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

import aiosmtplib
from sqlalchemy.ext.asyncio import AsyncSession

from prepwise_payments.config import settings
from prepwise_payments.database.repository import TrainingRepository
from prepwise_payments.errors import DeliveryFailed, InvalidContext, InvalidInput
from prepwise_payments.models.challenge import VerificationChallenge
from prepwise_payments.models.training import Training, TrainingRegistration
from prepwise_payments.schemas import (
    ParticipantInfo,
    RegistrationConfirmation,
    SendPaymentOTPRequest,
    VerifyPaymentOTPRequest,
)
from prepwise_payments.services.challenge_store import ChallengeStore
from prepwise_payments.services.email_service import EmailService
from prepwise_payments.validation import normalize_email, validate_code

logger = logging.getLogger(__name__)

_DELIVERY_ERRORS = (aiosmtplib.SMTPException, OSError, TimeoutError)


class PaymentOTPService:
    """Runs the OTP-gated payment confirmation for training registrations.

    Flow
    ----
    1. ``request_code`` validates the pending registration, snapshots it in a
       new challenge (superseding any earlier one) and emails the code.
    2. ``verify`` checks the submitted code against that challenge, validates
       the client's copy of the registration against the snapshot and, on a
       match, consumes the challenge and books the seat in one transaction.
    """

    def __init__(
        self,
        session: AsyncSession,
        email_service: EmailService,
        *,
        clock: Callable[[], datetime] | None = None,
        code_factory: Callable[[], str] | None = None,
        max_attempts: int | None = None,
    ) -> None:
        self._session = session
        self._email = email_service
        self._trainings = TrainingRepository(session)
        self._store = ChallengeStore(
            session, clock=clock, code_factory=code_factory, max_attempts=max_attempts
        )

    @property
    def store(self) -> ChallengeStore:
        return self._store

    # ── Queries ──────────────────────────────────────────

    async def get_training(self, training_id: str) -> Training:
        training = await self._trainings.get(training_id)
        if training is None:
            raise InvalidContext("Training not found", status_code=404)
        return training

    # ── Issue ────────────────────────────────────────────

    async def request_code(self, payload: SendPaymentOTPRequest) -> int:
        """Issue and deliver a payment code; returns its lifetime in seconds."""
        if not payload.training_id or payload.registration_data is None:
            raise InvalidInput("Email and training ID are required")
        if payload.payment_details is None:
            raise InvalidInput("Missing required payment information")

        participant = payload.registration_data.participant_info
        contact = normalize_email(payload.email or participant.email)
        if normalize_email(participant.email) != contact:
            raise InvalidInput("Email does not match the participant email")

        training = await self.get_training(payload.training_id)
        if not training.is_open:
            raise InvalidContext("Training is fully booked or no longer open")
        slot = self._resolve_slot(training, payload.selected_slot)
        if await self._trainings.find_confirmed_registration(training.id, contact):
            raise InvalidContext("You are already registered for this training")

        if payload.amount and payload.amount != training.display_price:
            logger.debug(
                "Ignoring client amount %r for training %s (price %r)",
                payload.amount,
                training.id,
                training.display_price,
            )

        context = {
            "participant_info": self._participant_dict(participant),
            "payment_method": payload.payment_details.method,
            "selected_slot": slot,
            "amount": training.display_price,
        }
        challenge, code = await self._store.issue(contact, training.id, context)
        await self._session.commit()

        try:
            await asyncio.wait_for(
                self._email.send_payment_code(
                    to_email=contact,
                    code=code,
                    training_title=training.title,
                    amount=training.display_price,
                    ttl_seconds=self._store.ttl_seconds,
                ),
                timeout=settings.smtp_timeout_seconds,
            )
        except _DELIVERY_ERRORS as exc:
            logger.error("Payment code delivery to %s failed: %s", contact, exc)
            await self._store.discard(challenge)
            raise DeliveryFailed() from exc

        return self._store.ttl_seconds

    # ── Verify ───────────────────────────────────────────

    async def verify(self, payload: VerifyPaymentOTPRequest) -> RegistrationConfirmation:
        """Verify the submitted code and finalize the registration exactly once."""
        code = validate_code(payload.otp)
        if (
            not payload.training_id
            or payload.registration_data is None
            or payload.payment_details is None
        ):
            raise InvalidInput("Missing required payment information")

        participant = payload.registration_data.participant_info
        contact = normalize_email(participant.email)

        challenge = await self._store.active(contact, payload.training_id)
        self._check_context(
            challenge, participant, payload.payment_details.method, payload.selected_slot
        )
        await self._store.match_code(challenge, code)

        try:
            training, registration = await self._finalize(challenge)
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise

        logger.info(
            "Payment confirmed for %s / training %s (registration %s)",
            contact,
            training.id,
            registration.id,
        )
        await self._send_confirmation(training, registration)

        return RegistrationConfirmation(
            registration_id=registration.id,
            confirmation_code=registration.confirmation_code,
            training_link=training.online_link,
            registered_participants=training.registered_participants,
            available_spots=training.available_spots,
        )

    async def purge_expired(self) -> int:
        return await self._store.purge_expired()

    # ── Private helpers ──────────────────────────────────

    async def _finalize(
        self, challenge: VerificationChallenge
    ) -> tuple[Training, TrainingRegistration]:
        await self._store.consume(challenge)

        training_id = challenge.training_id
        contact = challenge.subject_contact
        if await self._trainings.find_confirmed_registration(training_id, contact):
            raise InvalidContext("You are already registered for this training")
        if not await self._trainings.reserve_seat(training_id):
            raise InvalidContext("Training is fully booked")

        training = await self.get_training(training_id)
        await self._session.refresh(training)

        context = challenge.context
        info = context["participant_info"]
        registration = TrainingRegistration(
            training_id=training_id,
            participant_name=info["name"],
            participant_email=contact,
            participant_contact=info["contact"],
            affiliation=info["affiliation"],
            selected_slot=context.get("selected_slot"),
            payment_status="confirmed",
            payment_method=context["payment_method"],
            amount=context.get("amount"),
            registration_status="registered",
            confirmed_at=self._store.now(),
        )
        self._trainings.add_registration(registration)
        await self._session.flush()
        return training, registration

    async def _send_confirmation(
        self, training: Training, registration: TrainingRegistration
    ) -> None:
        """Best-effort receipt; the registration is already final."""
        try:
            await self._email.send_payment_confirmation(
                to_email=registration.participant_email,
                participant_name=registration.participant_name,
                training_title=training.title,
                confirmation_code=registration.confirmation_code,
                payment_method=registration.payment_method,
                training_link=training.online_link,
            )
        except _DELIVERY_ERRORS:
            logger.exception(
                "Confirmation email for registration %s could not be sent", registration.id
            )

    @staticmethod
    def _resolve_slot(training: Training, selected_slot: str | None) -> str | None:
        if not training.requires_slot:
            return None
        if not selected_slot:
            raise InvalidContext("Please select a time slot for this training")
        return selected_slot

    @staticmethod
    def _participant_dict(participant: ParticipantInfo) -> dict:
        return {
            "name": participant.name,
            "email": participant.email.lower(),
            "contact": participant.contact,
            "affiliation": participant.affiliation,
        }

    def _check_context(
        self,
        challenge: VerificationChallenge,
        participant: ParticipantInfo,
        payment_method: str,
        selected_slot: str | None,
    ) -> None:
        """The stored snapshot wins; a diverging client copy is rejected."""
        stored = challenge.context
        matches = (
            stored.get("participant_info") == self._participant_dict(participant)
            and stored.get("payment_method") == payment_method
            and (stored.get("selected_slot") is None or stored["selected_slot"] == selected_slot)
        )
        if not matches:
            logger.warning("Client context mismatch for challenge %s", challenge.id)
            raise InvalidContext("Payment details do not match the verification request")
