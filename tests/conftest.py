import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import date, time

import pytest
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from cohort_scheduler.models import Base, Mentor, Student, SuperMentor, schedule_table

TABLE = "basic1_1_schedule"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.run_sync(lambda sync_conn: schedule_table(TABLE).create(sync_conn))
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def directory(db):
    """Mentor Saswata (1), substitute Priya (2), three students in Basic 1.1, two super-mentors."""
    db.add_all([
        Mentor(mentor_id=1, name="Saswata", email="saswata@example.com", phone="9876543210"),
        Mentor(mentor_id=2, name="Priya", email="priya@example.com", phone="09123456789"),
        Student(name="Asha", email="asha@example.com", cohort_type="Basic", cohort_number="1.1"),
        Student(name="Ravi", email="ravi@example.com", cohort_type="Basic", cohort_number="1.1"),
        Student(name="No Mail", email="not-an-email", cohort_type="Basic", cohort_number="1.1"),
        Student(name="Other", email="other@example.com", cohort_type="Basic", cohort_number="2.0"),
        SuperMentor(name="Lead One", email="lead1@example.com", phone_num="9000000001"),
        SuperMentor(name="Lead Two", email="lead2@example.com", phone_num="12345"),
    ])
    await db.commit()


def session_row(**overrides):
    row = {
        "week_number": 1,
        "session_number": 1,
        "date": date(2026, 1, 5),
        "day": "Monday",
        "time": time(19, 0),
        "session_type": "Live Session",
        "subject_type": "Core",
        "subject_name": "Web Development",
        "subject_topic": "HTML basics",
        "mentor_id": 1,
        "swapped_mentor_id": None,
        "teams_meeting_link": None,
        "session_recording": None,
        "initial_session_material": None,
    }
    row.update(overrides)
    return row


@pytest.fixture
def add_sessions(db):
    async def _add(*rows, table_name: str = TABLE):
        await db.execute(insert(schedule_table(table_name)), [session_row(**row) for row in rows])
        await db.commit()
    return _add
