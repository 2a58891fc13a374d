"""Seed script — populates the database with sample trainings for testing."""

import asyncio
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from prepwise_payments.database.engine import async_session_factory, init_db
from prepwise_payments.models.training import Training

_NEXT_WEEK = datetime.now(UTC) + timedelta(days=7)

SAMPLE_TRAININGS = [
    Training(
        id="python-foundations",
        title="Python Foundations for Freshers",
        training_type="technical",
        price="₹499",
        available_slots=30,
        status="upcoming",
        start_date=_NEXT_WEEK,
        online_link="https://meet.example.com/python-foundations",
    ),
    Training(
        id="interview-communication",
        title="Communicating in Technical Interviews",
        training_type="soft skills",
        price="₹299",
        available_slots=12,
        status="upcoming",
        time_slot="Sat 10:00-12:00",
        start_date=_NEXT_WEEK,
        online_link="https://meet.example.com/interview-communication",
    ),
    Training(
        id="git-basics",
        title="Git Basics",
        training_type="technical",
        price="",
        available_slots=2,
        status="active",
        start_date=_NEXT_WEEK,
    ),
]


async def seed() -> None:
    """Insert sample trainings into the database."""
    await init_db()
    async with async_session_factory() as session:
        session: AsyncSession
        for training in SAMPLE_TRAININGS:
            session.add(training)
        await session.commit()
    print(f"✅ Seeded {len(SAMPLE_TRAININGS)} trainings into the database.")


if __name__ == "__main__":
    asyncio.run(seed())
