# cohort_scheduler/services/recording_service.py
from datetime import date
from typing import List, Optional, Sequence, Union

from sqlalchemy.ext.asyncio import AsyncSession

from cohort_scheduler.core.logging import logger
from cohort_scheduler.schemas.recording import Recording
from cohort_scheduler.schemas.scheduler import RecordingSummary, RecordingTableResult
from cohort_scheduler.schemas.session import ScheduledSession
from cohort_scheduler.utils.cohort import build_meeting_subject
from .base_service import BaseService
from .directory_service import DirectoryService
from .schedule_store import ScheduleStore


class RecordingCache:
    """Recordings folder listing, fetched at most once between resets.

    A failed or empty listing is remembered as an empty list so that every
    session of the run does not retry the lookup.
    """

    def __init__(self, client):
        self.client = client
        self._recordings: Optional[List[Recording]] = None

    def reset(self) -> None:
        self._recordings = None

    async def get_recordings(self) -> List[Recording]:
        if self._recordings is None:
            try:
                self._recordings = list(await self.client.list_recordings())
                logger.info(f"Loaded {len(self._recordings)} recordings")
            except Exception as e:
                logger.error(f"Failed to list recordings: {str(e)}")
                self._recordings = []
        return self._recordings


def find_recording_for_session(
    recordings: Sequence[Recording],
    session_date: Union[date, str],
    subject: str
) -> Optional[Recording]:
    """Pick the recording for a session by date stamp, then subject.

    The filename must contain the session date as YYYYMMDD. Among those, the
    first name starting with the subject wins; failing that, the first name
    containing every " - " separated part of the subject. Ties go to listing
    order.
    """
    date_key = (session_date.isoformat() if isinstance(session_date, date) else session_date).replace("-", "")
    candidates = [r for r in recordings if date_key in r.name]
    if not candidates:
        return None

    target = subject.strip().lower()
    for recording in candidates:
        if recording.name.lower().startswith(target):
            return recording

    parts = [part.strip().lower() for part in subject.split(" - ")]
    for recording in candidates:
        name = recording.name.lower()
        if all(part in name for part in parts):
            return recording

    return None


class RecordingReconciliationJob(BaseService):
    def __init__(self, db: AsyncSession, client, cache: RecordingCache):
        super().__init__(db)
        self.client = client
        self.cache = cache
        self.store = ScheduleStore(db)
        self.directory = DirectoryService(db)

    async def run(self, tables: List[str], day: date) -> RecordingSummary:
        summary = RecordingSummary(date=day.isoformat())
        for table in tables:
            try:
                result = await self.reconcile_table(table, day)
            except Exception as e:
                logger.error(f"Recording reconciliation skipped {table}: {str(e)}", extra={"table": table})
                await self.db.rollback()
                continue
            if result.recordings_fetched > 0:
                summary.results.append(result)
                summary.total_fetched += result.recordings_fetched
        return summary

    async def reconcile_table(self, table: str, day: date) -> RecordingTableResult:
        sessions = [
            s for s in await self.store.sessions_on(table, day)
            if s.has_meeting_link and not s.has_recording
        ]
        fetched = 0
        for session in sessions:
            try:
                if await self.reconcile_session(table, session):
                    fetched += 1
            except Exception as e:
                logger.error(
                    f"Recording lookup for session {session.id} in {table} failed: {str(e)}",
                    extra={"table": table, "session_id": session.id}
                )
                await self.db.rollback()
        return RecordingTableResult(table=table, sessions_checked=len(sessions), recordings_fetched=fetched)

    async def reconcile_session(self, table: str, session: ScheduledSession) -> bool:
        mentor = await self.directory.get_mentor(session.mentor_id)
        subject = build_meeting_subject(
            table,
            session.subject_name,
            mentor.name if mentor else None,
            unknown_cohort_label=None
        )

        recording = find_recording_for_session(await self.cache.get_recordings(), session.date, subject)
        if not recording:
            logger.info(f"No recording yet for '{subject}' on {session.date}", extra={"table": table})
            return False

        share_url = await self._share_url(recording)
        if not share_url:
            logger.warning(f"Recording {recording.name} has no usable URL", extra={"table": table})
            return False

        stored = await self.store.set_recording_if_absent(table, session.id, share_url)
        if stored:
            logger.info(
                f"Recording stored for session {session.id} in {table}",
                extra={"table": table, "session_id": session.id}
            )
        return stored

    async def _share_url(self, recording: Recording) -> Optional[str]:
        try:
            link = await self.client.create_share_link(recording.id)
        except Exception as e:
            logger.warning(f"Share link creation failed for {recording.name}: {str(e)}")
            link = None
        return link or recording.web_url
