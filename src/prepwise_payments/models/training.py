"""SQLAlchemy Training and TrainingRegistration models."""

import secrets
import string
import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

TRAINING_TYPES = ("technical", "soft skills")
AFFILIATIONS = ("undergraduate", "intern", "postgraduate", "professional", "other")
PAYMENT_METHODS = ("card", "bank", "mobile", "free")


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


def generate_confirmation_code() -> str:
    """Return a registration confirmation code like ``TRN482915K7QZ``."""
    digits = "".join(secrets.choice(string.digits) for _ in range(6))
    suffix = "".join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(4))
    return f"TRN{digits}{suffix}"


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""


class Training(Base):
    """A bookable training session published by a trainer."""

    __tablename__ = "trainings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    training_type: Mapped[str] = mapped_column(
        String(32), nullable=False, doc="'technical' or 'soft skills'"
    )
    price: Mapped[str] = mapped_column(
        String(32), default="", doc="Display price, empty for free trainings"
    )
    available_slots: Mapped[int] = mapped_column(Integer, default=0)
    registered_participants: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(String(16), default="upcoming")
    time_slot: Mapped[str | None] = mapped_column(String(64), nullable=True)
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    online_link: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    @property
    def available_spots(self) -> int:
        return max(0, (self.available_slots or 0) - (self.registered_participants or 0))

    @property
    def is_fully_booked(self) -> bool:
        return self.available_spots == 0

    @property
    def is_open(self) -> bool:
        """Whether new registrations can still be paid for."""
        return self.status != "completed" and not self.is_fully_booked

    @property
    def display_price(self) -> str:
        return self.price or "Free"

    @property
    def requires_slot(self) -> bool:
        return self.training_type == "soft skills"

    def __repr__(self) -> str:
        return f"<Training id={self.id} title={self.title!r} spots={self.available_spots}>"


class TrainingRegistration(Base):
    """A participant's paid (or pending) seat in a training."""

    __tablename__ = "training_registrations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    training_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("trainings.id", ondelete="CASCADE"), nullable=False
    )
    participant_name: Mapped[str] = mapped_column(String(256), nullable=False)
    participant_email: Mapped[str] = mapped_column(String(256), nullable=False)
    participant_contact: Mapped[str] = mapped_column(String(32), nullable=False)
    affiliation: Mapped[str] = mapped_column(String(32), nullable=False)
    selected_slot: Mapped[str | None] = mapped_column(String(64), nullable=True)
    payment_status: Mapped[str] = mapped_column(String(16), default="pending")
    payment_method: Mapped[str | None] = mapped_column(String(16), nullable=True)
    amount: Mapped[str | None] = mapped_column(String(32), nullable=True)
    registration_status: Mapped[str] = mapped_column(String(16), default="registered")
    confirmation_code: Mapped[str | None] = mapped_column(
        String(32), unique=True, nullable=True, default=generate_confirmation_code
    )
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        Index("ix_registrations_training_email", "training_id", "participant_email"),
        Index("ix_registrations_payment_status", "payment_status"),
    )

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "confirmed"

    def __repr__(self) -> str:
        return (
            f"<TrainingRegistration id={self.id} training={self.training_id} "
            f"email={self.participant_email!r} status={self.payment_status}>"
        )
