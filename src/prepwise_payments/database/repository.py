"""Repositories — data access layer for trainings, registrations and challenges."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from prepwise_payments.models.challenge import VerificationChallenge
from prepwise_payments.models.training import Training, TrainingRegistration


class TrainingRepository:
    """Encapsulates all database queries related to trainings and registrations."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, training_id: str) -> Training | None:
        return await self._session.get(Training, training_id)

    async def reserve_seat(self, training_id: str) -> bool:
        """Atomically take one seat; ``False`` when the training is full."""
        stmt = (
            update(Training)
            .where(
                Training.id == training_id,
                Training.registered_participants < Training.available_slots,
            )
            .values(registered_participants=Training.registered_participants + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def find_confirmed_registration(
        self, training_id: str, email: str
    ) -> TrainingRegistration | None:
        """Find a live, paid registration of *email* for *training_id*."""
        stmt = select(TrainingRegistration).where(
            TrainingRegistration.training_id == training_id,
            TrainingRegistration.participant_email == email,
            TrainingRegistration.payment_status == "confirmed",
            TrainingRegistration.registration_status != "cancelled",
        )
        result = await self._session.execute(stmt)
        return result.scalars().first()

    def add_registration(self, registration: TrainingRegistration) -> None:
        self._session.add(registration)


class ChallengeRepository:
    """Persistence for payment verification challenges.

    The pair ``(subject_contact, training_id)`` identifies a challenge slot;
    only the most recently issued challenge of a pair is ever consulted.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def latest_for(self, contact: str, training_id: str) -> VerificationChallenge | None:
        """The pair's unconsumed challenge, else its most recent consumed one."""
        stmt = (
            select(VerificationChallenge)
            .where(
                VerificationChallenge.subject_contact == contact,
                VerificationChallenge.training_id == training_id,
            )
            .order_by(
                VerificationChallenge.consumed.asc(),
                VerificationChallenge.issued_at.desc(),
            )
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def delete_unconsumed(self, contact: str, training_id: str) -> int:
        """Drop every unconsumed challenge of the pair (supersede)."""
        stmt = delete(VerificationChallenge).where(
            VerificationChallenge.subject_contact == contact,
            VerificationChallenge.training_id == training_id,
            VerificationChallenge.consumed.is_(False),
        )
        result = await self._session.execute(stmt)
        return result.rowcount

    def add(self, challenge: VerificationChallenge) -> None:
        self._session.add(challenge)

    async def delete(self, challenge_id: str) -> None:
        stmt = delete(VerificationChallenge).where(VerificationChallenge.id == challenge_id)
        await self._session.execute(stmt)

    async def mark_consumed(self, challenge_id: str, now: datetime) -> bool:
        """Compare-and-set ``consumed`` from false to true.

        Returns ``True`` only for the single caller that flipped the flag.
        """
        stmt = (
            update(VerificationChallenge)
            .where(
                VerificationChallenge.id == challenge_id,
                VerificationChallenge.consumed.is_(False),
            )
            .values(consumed=True, consumed_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def record_failed_attempt(self, challenge_id: str) -> int:
        """Increment the wrong-code counter and return its new value."""
        stmt = (
            update(VerificationChallenge)
            .where(VerificationChallenge.id == challenge_id)
            .values(attempts=VerificationChallenge.attempts + 1)
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)
        result = await self._session.execute(
            select(VerificationChallenge.attempts).where(VerificationChallenge.id == challenge_id)
        )
        return result.scalar_one_or_none() or 0

    async def purge_expired(self, now: datetime) -> int:
        """Delete unconsumed challenges whose window closed before *now*."""
        stmt = delete(VerificationChallenge).where(
            VerificationChallenge.expires_at < now,
            VerificationChallenge.consumed.is_(False),
        )
        result = await self._session.execute(stmt)
        return result.rowcount
