"""Challenge store — issues, checks and consumes one-time payment codes."""

from __future__ import annotations

import hashlib
import logging
import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from prepwise_payments.config import settings
from prepwise_payments.database.repository import ChallengeRepository
from prepwise_payments.errors import (
    AlreadyConsumed,
    AttemptsExceeded,
    Expired,
    InvalidCode,
    NoActiveChallenge,
)
from prepwise_payments.models.challenge import VerificationChallenge

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC)


def generate_code(length: int | None = None) -> str:
    """Uniform fixed-width numeric code, zero-padded (``000000``-``999999``)."""
    length = length or settings.otp_length
    return f"{secrets.randbelow(10**length):0{length}d}"


def hash_code(contact: str, code: str) -> str:
    raw = f"{contact}:{code}".encode("utf-8")
    return hashlib.sha256(raw).hexdigest()


class ChallengeStore:
    """Database-backed store of payment verification challenges.

    Each ``(contact, training_id)`` pair has at most one unconsumed challenge;
    issuing a new one deletes the previous.  ``issue`` and ``consume`` leave
    the transaction open for the caller.  Failure paths that must persist
    (attempt counting, lockout) commit before raising.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        clock: Clock | None = None,
        code_factory: Callable[[], str] | None = None,
        ttl_seconds: int | None = None,
        max_attempts: int | None = None,
    ) -> None:
        self._session = session
        self._repo = ChallengeRepository(session)
        self._clock = clock or utcnow
        self._code_factory = code_factory or generate_code
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.otp_ttl_seconds
        self.max_attempts = (
            max_attempts if max_attempts is not None else settings.otp_max_attempts
        )

    def now(self) -> datetime:
        return self._clock()

    async def issue(
        self, contact: str, training_id: str, context: dict
    ) -> tuple[VerificationChallenge, str]:
        """Create a fresh challenge for the pair and return it with its plain code."""
        superseded = await self._repo.delete_unconsumed(contact, training_id)
        if superseded:
            logger.info(
                "Superseded %d pending challenge(s) for %s / training %s",
                superseded,
                contact,
                training_id,
            )

        code = self._code_factory()
        now = self.now()
        challenge = VerificationChallenge(
            subject_contact=contact,
            training_id=training_id,
            context=context,
            code_hash=hash_code(contact, code),
            issued_at=now,
            expires_at=now + timedelta(seconds=self.ttl_seconds),
            consumed=False,
            attempts=0,
        )
        self._repo.add(challenge)
        await self._session.flush()
        logger.info("Challenge %s issued for %s / training %s", challenge.id, contact, training_id)
        return challenge, code

    async def discard(self, challenge: VerificationChallenge) -> None:
        await self._repo.delete(challenge.id)
        await self._session.commit()
        logger.info("Challenge %s discarded", challenge.id)

    async def active(self, contact: str, training_id: str) -> VerificationChallenge:
        """Return the pair's challenge if it can still be verified."""
        challenge = await self._repo.latest_for(contact, training_id)
        if challenge is None:
            raise NoActiveChallenge()
        if challenge.consumed:
            raise AlreadyConsumed()
        if challenge.is_expired(self.now()):
            logger.info("Challenge %s expired", challenge.id)
            raise Expired()
        return challenge

    async def match_code(self, challenge: VerificationChallenge, code: str) -> None:
        """Compare *code* against the challenge, counting wrong attempts."""
        expected = challenge.code_hash
        if secrets.compare_digest(hash_code(challenge.subject_contact, code), expected):
            return

        attempts = await self._repo.record_failed_attempt(challenge.id)
        if self.max_attempts and attempts >= self.max_attempts:
            await self._repo.delete(challenge.id)
            await self._session.commit()
            logger.warning(
                "Challenge %s locked after %d wrong codes", challenge.id, attempts
            )
            raise AttemptsExceeded()

        await self._session.commit()
        logger.info("Wrong code for challenge %s (attempt %d)", challenge.id, attempts)
        remaining = self.max_attempts - attempts if self.max_attempts else None
        raise InvalidCode(attempts_remaining=remaining)

    async def consume(self, challenge: VerificationChallenge) -> None:
        """Mark the challenge consumed; exactly one concurrent caller wins."""
        if not await self._repo.mark_consumed(challenge.id, self.now()):
            raise AlreadyConsumed()

    async def purge_expired(self) -> int:
        purged = await self._repo.purge_expired(self.now())
        await self._session.commit()
        if purged:
            logger.info("Purged %d expired challenge(s)", purged)
        return purged
