from datetime import date, datetime, time, timedelta

from sqlalchemy import select

from cohort_scheduler.core.config import settings
from cohort_scheduler.core.exceptions import GraphAPIError
from cohort_scheduler.models import schedule_table
from cohort_scheduler.services.meeting_service import MeetingProvisioningJob
from tests.conftest import TABLE
from tests.fakes import FakeGraphClient

TODAY = date(2026, 1, 5)
WINDOW_END = TODAY + timedelta(days=7)


async def stored_links(db):
    table = schedule_table(TABLE)
    result = await db.execute(select(table.c.id, table.c.teams_meeting_link).order_by(table.c.id))
    return dict(result.all())


async def test_provisions_meeting_with_mentor_and_students(db, directory, add_sessions):
    await add_sessions({"id": 1, "date": date(2026, 1, 6), "time": time(18, 30)})
    client = FakeGraphClient()

    result = await MeetingProvisioningJob(db, client).provision_table(TABLE, TODAY, WINDOW_END)

    assert result.status == "success"
    assert (result.sessions_found, result.meetings_created, result.meetings_failed) == (1, 1, 0)
    assert result.students_in_cohort == 2

    event = client.events[0]
    assert event.subject == "Cohort Basic 1.1 - Web Development - Saswata"
    assert event.attendees == ["saswata@example.com", "asha@example.com", "ravi@example.com"]
    assert event.start == datetime(2026, 1, 6, 18, 30, tzinfo=settings.timezone)
    assert event.end - event.start == timedelta(minutes=90)
    assert client.recording_enabled == ["meeting-for-event-1"]
    assert (await stored_links(db))[1] == "https://teams.example/join/event-1"


async def test_missing_time_defaults_to_evening(db, directory, add_sessions):
    await add_sessions({"id": 1, "date": date(2026, 1, 7), "time": None})
    client = FakeGraphClient()

    await MeetingProvisioningJob(db, client).provision_table(TABLE, TODAY, WINDOW_END)

    assert client.events[0].start == datetime(2026, 1, 7, 19, 0, tzinfo=settings.timezone)


async def test_existing_links_are_never_replaced(db, directory, add_sessions):
    await add_sessions(
        {"id": 1, "date": date(2026, 1, 6), "teams_meeting_link": "https://teams.example/existing"},
        {"id": 2, "date": date(2026, 1, 7), "teams_meeting_link": "  null "},
        {"id": 3, "date": date(2026, 1, 8), "teams_meeting_link": "   "},
    )
    client = FakeGraphClient()

    result = await MeetingProvisioningJob(db, client).provision_table(TABLE, TODAY, WINDOW_END)

    assert result.meetings_created == 2
    assert len(client.events) == 2
    links = await stored_links(db)
    assert links[1] == "https://teams.example/existing"
    assert links[2].startswith("https://teams.example/join/")
    assert links[3].startswith("https://teams.example/join/")


async def test_falls_back_to_standalone_meeting(db, directory, add_sessions):
    await add_sessions({"id": 1, "date": date(2026, 1, 6)})
    client = FakeGraphClient()
    client.calendar_error = GraphAPIError("Create calendar event", 403, "Forbidden")

    result = await MeetingProvisioningJob(db, client).provision_table(TABLE, TODAY, WINDOW_END)

    assert result.meetings_created == 1
    assert client.standalone_meetings[0].subject == "Cohort Basic 1.1 - Web Development - Saswata"
    assert (await stored_links(db))[1] == "https://teams.example/join/standalone-1"


async def test_auto_recording_failure_does_not_fail_the_session(db, directory, add_sessions):
    await add_sessions({"id": 1, "date": date(2026, 1, 6)})
    client = FakeGraphClient()
    client.lookup_error = GraphAPIError("Find online meeting", 404, "Not found")

    result = await MeetingProvisioningJob(db, client).provision_table(TABLE, TODAY, WINDOW_END)

    assert result.meetings_created == 1
    assert client.standalone_meetings == []


async def test_session_counted_failed_when_both_strategies_fail(db, directory, add_sessions):
    await add_sessions({"id": 1, "date": date(2026, 1, 6)}, {"id": 2, "date": date(2026, 1, 7)})
    client = FakeGraphClient()
    client.calendar_error = GraphAPIError("Create calendar event", 500, "boom")
    client.standalone_error = GraphAPIError("Create online meeting", 500, "boom")

    result = await MeetingProvisioningJob(db, client).provision_table(TABLE, TODAY, WINDOW_END)

    assert result.status == "success"
    assert (result.meetings_created, result.meetings_failed) == (0, 2)
    assert set((await stored_links(db)).values()) == {None}


async def test_window_and_session_type_filter(db, directory, add_sessions):
    await add_sessions(
        {"id": 1, "date": date(2026, 1, 4)},
        {"id": 2, "date": date(2026, 1, 13)},
        {"id": 3, "date": date(2026, 1, 12)},
        {"id": 4, "date": date(2026, 1, 6), "session_type": None},
        {"id": 5, "date": None},
    )
    client = FakeGraphClient()

    result = await MeetingProvisioningJob(db, client).provision_table(TABLE, TODAY, WINDOW_END)

    assert result.sessions_found == 1
    assert list((await stored_links(db)).values()) == [None, None, "https://teams.example/join/event-1", None, None]


async def test_no_sessions_in_window(db, directory):
    result = await MeetingProvisioningJob(db, FakeGraphClient()).provision_table(TABLE, TODAY, WINDOW_END)

    assert result.status == "no_sessions"


async def test_table_without_link_column_needs_column(db, engine, directory):
    async with engine.begin() as conn:
        await conn.exec_driver_sql(
            "CREATE TABLE basic2_0_schedule ("
            "id INTEGER PRIMARY KEY, week_number INTEGER, session_number INTEGER, date DATE, day TEXT, "
            "time TIME, session_type TEXT, subject_type TEXT, subject_name TEXT, subject_topic TEXT, "
            "mentor_id INTEGER, swapped_mentor_id INTEGER, session_recording TEXT, "
            "initial_session_material TEXT)"
        )

    result = await MeetingProvisioningJob(db, FakeGraphClient()).provision_table(
        "basic2_0_schedule", TODAY, WINDOW_END
    )

    assert result.status == "needs_column"
    assert "teams_meeting_link" in result.message


async def test_missing_table_is_reported_and_batch_continues(db, directory, add_sessions):
    await add_sessions({"id": 1, "date": date(2026, 1, 6)})

    results = await MeetingProvisioningJob(db, FakeGraphClient()).run(
        ["basic3_0_schedule", TABLE], TODAY, WINDOW_END
    )

    assert [r.status for r in results] == ["error", "success"]
    assert results[1].meetings_created == 1


async def test_concurrent_writer_wins(db, directory, add_sessions, monkeypatch):
    await add_sessions({"id": 1, "date": date(2026, 1, 6)})
    client = FakeGraphClient()
    job = MeetingProvisioningJob(db, client)
    original = client.create_calendar_event

    async def racing_create(*args, **kwargs):
        # another run stores its link while this one is talking to the provider
        table = schedule_table(TABLE)
        await db.execute(table.update().where(table.c.id == 1).values(teams_meeting_link="https://teams.example/other-run"))
        await db.commit()
        return await original(*args, **kwargs)

    monkeypatch.setattr(client, "create_calendar_event", racing_create)

    result = await job.provision_table(TABLE, TODAY, WINDOW_END)

    assert (result.meetings_created, result.meetings_failed) == (0, 1)
    assert (await stored_links(db))[1] == "https://teams.example/other-run"


async def test_failed_session_rolls_back_before_the_next(db, directory, add_sessions, monkeypatch):
    await add_sessions(
        {"id": 1, "date": date(2026, 1, 6)},
        {"id": 2, "date": date(2026, 1, 7), "session_number": 2},
    )
    job = MeetingProvisioningJob(db, FakeGraphClient())
    real_get_mentor = job.directory.get_mentor
    calls = []

    async def flaky_get_mentor(mentor_id):
        calls.append(mentor_id)
        if len(calls) == 1:
            raise RuntimeError("current transaction is aborted")
        return await real_get_mentor(mentor_id)

    real_rollback = db.rollback
    rollbacks = []

    async def counting_rollback():
        rollbacks.append(len(calls))
        await real_rollback()

    monkeypatch.setattr(job.directory, "get_mentor", flaky_get_mentor)
    monkeypatch.setattr(db, "rollback", counting_rollback)

    result = await job.provision_table(TABLE, TODAY, WINDOW_END)

    assert (result.meetings_created, result.meetings_failed) == (1, 1)
    assert rollbacks == [1]
    assert (await stored_links(db)) == {1: None, 2: "https://teams.example/join/event-1"}
