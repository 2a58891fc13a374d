"""Shared fixtures: a throwaway SQLite database, seeded trainings, fakes."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker

from prepwise_payments.database.engine import build_engine, init_db
from prepwise_payments.models.training import Training
from prepwise_payments.schemas import SendPaymentOTPRequest, VerifyPaymentOTPRequest
from prepwise_payments.services.email_service import EmailService
from prepwise_payments.services.payment_service import PaymentOTPService

PARTICIPANT = {
    "name": "Asha Rao",
    "email": "asha@example.com",
    "contact": "+919812345678",
    "affiliation": "undergraduate",
}


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self) -> None:
        self.now = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


# ── Database ─────────────────────────────────────────────

@pytest_asyncio.fixture
async def engine(tmp_path):
    """Fresh file-backed SQLite database per test (safe for concurrent sessions)."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'payments.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def trainings(session_factory):
    """Seed trainings covering the open / slot / full / closed cases."""
    async with session_factory() as session:
        session.add_all(
            [
                Training(
                    id="py-101",
                    title="Python Foundations",
                    training_type="technical",
                    price="₹499",
                    available_slots=10,
                    online_link="https://meet.example.com/py-101",
                ),
                Training(
                    id="comm-201",
                    title="Interview Communication",
                    training_type="soft skills",
                    price="₹299",
                    available_slots=5,
                    time_slot="Sat 10:00-12:00",
                ),
                Training(
                    id="last-seat",
                    title="Git Basics",
                    training_type="technical",
                    price="",
                    available_slots=1,
                ),
                Training(
                    id="full-301",
                    title="SQL Crash Course",
                    training_type="technical",
                    price="₹199",
                    available_slots=2,
                    registered_participants=2,
                ),
                Training(
                    id="done-401",
                    title="Old Workshop",
                    training_type="technical",
                    price="₹99",
                    available_slots=20,
                    status="completed",
                ),
            ]
        )
        await session.commit()


@pytest_asyncio.fixture
async def db_session(session_factory, trainings):
    async with session_factory() as session:
        yield session


# ── Fakes ────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def participant_unchanged():
    """Fail any test that mutates the shared participant payload."""
    before = dict(PARTICIPANT)
    yield
    assert PARTICIPANT == before


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def email_service():
    """Mocked email service — never actually sends emails."""
    svc = EmailService()
    svc.send_payment_code = AsyncMock()
    svc.send_payment_confirmation = AsyncMock()
    return svc


@pytest.fixture
def make_service(email_service, clock):
    """Build a service with a fixed (or scripted) code and the fake clock."""

    def _make(session, code: str | list[str] = "123456", **kwargs) -> PaymentOTPService:
        if isinstance(code, list):
            code_factory = iter(code).__next__
        else:
            code_factory = lambda: code  # noqa: E731
        return PaymentOTPService(
            session, email_service, clock=clock, code_factory=code_factory, **kwargs
        )

    return _make


# ── Payloads ─────────────────────────────────────────────

def send_body(training_id="py-101", participant=None, method="card", slot=None, amount=None):
    participant = dict(participant or PARTICIPANT)
    return {
        "email": participant["email"],
        "trainingId": training_id,
        "amount": amount,
        "registrationData": {"participantInfo": participant},
        "paymentDetails": {"method": method},
        "selectedSlot": slot,
    }


def verify_body(otp, training_id="py-101", participant=None, method="card", slot=None):
    participant = dict(participant or PARTICIPANT)
    return {
        "trainingId": training_id,
        "registrationData": {"participantInfo": participant},
        "paymentDetails": {"method": method},
        "otp": otp,
        "selectedSlot": slot,
    }


@pytest.fixture
def make_send():
    def _make(**kwargs) -> SendPaymentOTPRequest:
        return SendPaymentOTPRequest.model_validate(send_body(**kwargs))

    return _make


@pytest.fixture
def make_verify():
    def _make(otp, **kwargs) -> VerifyPaymentOTPRequest:
        return VerifyPaymentOTPRequest.model_validate(verify_body(otp, **kwargs))

    return _make


@pytest.fixture
def send_json():
    return send_body


@pytest.fixture
def verify_json():
    return verify_body
