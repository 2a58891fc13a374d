"""SQLAlchemy VerificationChallenge model."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from prepwise_payments.models.training import Base


def as_utc(value: datetime) -> datetime:
    """SQLite hands timestamps back naive; they are always stored in UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class VerificationChallenge(Base):
    """A one-time payment code issued to a participant for one training.

    Only the hash of the code is persisted.  ``context`` is the server-side
    snapshot of the pending registration taken when the code was issued.
    """

    __tablename__ = "payment_challenges"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    subject_contact: Mapped[str] = mapped_column(String(256), nullable=False)
    training_id: Mapped[str] = mapped_column(String(36), nullable=False)
    context: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    code_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    consumed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    consumed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (
        Index("ix_payment_challenges_pair", "subject_contact", "training_id"),
        Index("ix_payment_challenges_expires_at", "expires_at"),
    )

    def is_expired(self, now: datetime) -> bool:
        return now > as_utc(self.expires_at)

    def seconds_left(self, now: datetime) -> int:
        return max(0, int((as_utc(self.expires_at) - now).total_seconds()))

    def __repr__(self) -> str:
        return (
            f"<VerificationChallenge id={self.id} contact={self.subject_contact!r} "
            f"training={self.training_id} consumed={self.consumed}>"
        )
