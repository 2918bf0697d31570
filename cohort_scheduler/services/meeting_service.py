# cohort_scheduler/services/meeting_service.py
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from cohort_scheduler.core.config import settings
from cohort_scheduler.core.errors import ExternalServiceError
from cohort_scheduler.core.exceptions import SchemaNotReadyException
from cohort_scheduler.core.logging import logger
from cohort_scheduler.schemas.meeting import CreateMeetingRequest, CreateMeetingResponse
from cohort_scheduler.schemas.scheduler import (
    NoSessions,
    ProvisionedTable,
    SchemaNotReady,
    TableFailed,
    TableResult
)
from cohort_scheduler.schemas.session import ScheduledSession
from cohort_scheduler.utils.cohort import build_meeting_subject, parse_cohort_from_table_name
from .base_service import BaseService
from .directory_service import DirectoryService, StudentEmailCache
from .schedule_store import ScheduleStore


@dataclass
class MeetingRequest:
    subject: str
    start: datetime
    end: datetime
    attendees: List[str]


@dataclass
class MeetingResult:
    strategy: str
    join_url: Optional[str] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return bool(self.join_url)


class CalendarEventStrategy:
    """Calendar invite with an online meeting and chat, then best-effort auto-recording."""
    name = "calendar_event"

    def __init__(self, client):
        self.client = client

    async def create(self, request: MeetingRequest) -> MeetingResult:
        try:
            join_url = await self.client.create_calendar_event(
                request.subject, request.start, request.end, request.attendees
            )
        except Exception as e:
            return MeetingResult(strategy=self.name, reason=str(e))

        await self._enable_recording(join_url)
        return MeetingResult(strategy=self.name, join_url=join_url)

    async def _enable_recording(self, join_url: str) -> None:
        try:
            meeting_id = await self.client.find_online_meeting_id(join_url)
            if not meeting_id:
                logger.warning("Online meeting not found for join URL; auto-recording left off")
                return
            await self.client.enable_auto_recording(meeting_id)
        except Exception as e:
            logger.warning(f"Could not enable auto-recording: {str(e)}")


class StandaloneMeetingStrategy:
    """Online meeting without invites or chat; recording is on from creation."""
    name = "standalone_meeting"

    def __init__(self, client):
        self.client = client

    async def create(self, request: MeetingRequest) -> MeetingResult:
        try:
            join_url = await self.client.create_online_meeting(request.subject, request.start, request.end)
        except Exception as e:
            return MeetingResult(strategy=self.name, reason=str(e))
        return MeetingResult(strategy=self.name, join_url=join_url)


def default_strategies(client) -> list:
    return [CalendarEventStrategy(client), StandaloneMeetingStrategy(client)]


async def create_meeting(strategies: Sequence, request: MeetingRequest) -> MeetingResult:
    """Try each strategy in order and return the first success, or the last failure."""
    result = MeetingResult(strategy="none", reason="no strategies configured")
    for strategy in strategies:
        result = await strategy.create(request)
        if result.ok:
            return result
        logger.warning(f"Meeting strategy {strategy.name} failed for '{request.subject}': {result.reason}")
    return result


def to_regional(value: datetime) -> datetime:
    """Attach the regional zone to naive values; convert aware ones into it."""
    if value.tzinfo is None:
        return value.replace(tzinfo=settings.timezone)
    return value.astimezone(settings.timezone)


async def create_adhoc_meeting(client, request: CreateMeetingRequest) -> CreateMeetingResponse:
    """Create one meeting on demand through the same fallback chain the batch uses.

    Raises ExternalServiceError when every strategy fails.
    """
    if request.use_calendar_event:
        strategies = default_strategies(client)
    else:
        strategies = [StandaloneMeetingStrategy(client)]

    result = await create_meeting(strategies, MeetingRequest(
        subject=request.subject.strip(),
        start=to_regional(request.start_date_time),
        end=to_regional(request.end_date_time),
        attendees=list(dict.fromkeys(request.attendees)),
    ))
    if not result.ok:
        raise ExternalServiceError(
            message="Failed to create Teams meeting",
            details={"strategy": result.strategy, "reason": result.reason}
        )

    logger.info(f"Ad-hoc meeting '{request.subject}' created via {result.strategy}")
    return CreateMeetingResponse(
        join_url=result.join_url,
        strategy=result.strategy,
        has_chat=result.strategy == CalendarEventStrategy.name,
    )


def session_start(session: ScheduledSession) -> datetime:
    """Session start as an aware datetime in the regional timezone."""
    start_time = session.time or settings.DEFAULT_SESSION_TIME
    return datetime.combine(session.date, start_time, tzinfo=settings.timezone)


class MeetingProvisioningJob(BaseService):
    def __init__(self, db: AsyncSession, client, strategies: Optional[Sequence] = None):
        super().__init__(db)
        self.store = ScheduleStore(db)
        self.directory = DirectoryService(db)
        self.students = StudentEmailCache(self.directory)
        self.strategies = list(strategies) if strategies is not None else default_strategies(client)
        self.duration = timedelta(minutes=settings.MEETING_DURATION_MINUTES)

    async def run(self, tables: List[str], start: date, end: date) -> List[TableResult]:
        results = []
        for table in tables:
            result = await self.provision_table(table, start, end)
            logger.info(f"Provisioning {table}: {result.status}", extra={"table": table})
            results.append(result)
        return results

    async def provision_table(self, table: str, start: date, end: date) -> TableResult:
        try:
            sessions = await self.store.sessions_between(table, start, end)
        except SchemaNotReadyException as e:
            logger.warning(e.message, extra={"table": table})
            return SchemaNotReady(table=table, message=e.message)
        except Exception as e:
            logger.error(f"Failed to query {table}: {str(e)}", extra={"table": table})
            return TableFailed(table=table, message=str(e))

        if not sessions:
            return NoSessions(table=table, message=f"No sessions between {start} and {end}")

        cohort = parse_cohort_from_table_name(table)
        try:
            student_emails = await self.students.get(cohort) if cohort else []
        except Exception as e:
            logger.error(f"Failed to load students for {table}: {str(e)}", extra={"table": table})
            await self.db.rollback()
            student_emails = []

        created = failed = 0
        for session in sessions:
            if session.has_meeting_link or session.date is None:
                continue
            try:
                if await self.provision_session(table, session, student_emails):
                    created += 1
                else:
                    failed += 1
            except Exception as e:
                logger.error(
                    f"Provisioning session {session.id} in {table} failed: {str(e)}",
                    extra={"table": table, "session_id": session.id}
                )
                await self.db.rollback()
                failed += 1

        return ProvisionedTable(
            table=table,
            sessions_found=len(sessions),
            meetings_created=created,
            meetings_failed=failed,
            students_in_cohort=len(student_emails),
        )

    async def provision_session(self, table: str, session: ScheduledSession, student_emails: List[str]) -> bool:
        """Create and persist a meeting for one session. Returns False when no meeting could be stored."""
        mentor = await self.directory.get_mentor(session.mentor_id)
        attendees = []
        for email in ([mentor.email] if mentor and mentor.email else []) + student_emails:
            if email not in attendees:
                attendees.append(email)

        start = session_start(session)
        request = MeetingRequest(
            subject=build_meeting_subject(table, session.subject_name, mentor.name if mentor else None),
            start=start,
            end=start + self.duration,
            attendees=attendees,
        )

        result = await create_meeting(self.strategies, request)
        if not result.ok:
            logger.error(
                f"No meeting created for session {session.id} in {table}: {result.reason}",
                extra={"table": table, "session_id": session.id}
            )
            return False

        stored = await self.store.set_meeting_link_if_absent(table, session.id, result.join_url)
        if not stored:
            logger.warning(
                f"Session {session.id} in {table} got a link from another run; meeting {result.join_url} is orphaned",
                extra={"table": table, "session_id": session.id}
            )
            return False

        logger.info(
            f"Meeting created for session {session.id} in {table} via {result.strategy}",
            extra={"table": table, "session_id": session.id}
        )
        return True
