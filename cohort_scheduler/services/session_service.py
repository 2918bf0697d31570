# cohort_scheduler/services/session_service.py
from datetime import date, time, timedelta
from typing import Iterable, List, Optional, Set, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from cohort_scheduler.core.config import regional_now, settings
from cohort_scheduler.core.errors import NotFoundError, ValidationError
from cohort_scheduler.core.logging import logger
from cohort_scheduler.schemas.session import (
    MaterialsResponse,
    MentorProfile,
    RescheduleDirection,
    RescheduleOptionsResponse,
    RescheduleRequest,
    RescheduleResponse,
    ScheduledSession,
    SwapMentorRequest,
    SwapMentorResponse,
    SwapNotice
)
from cohort_scheduler.utils.cohort import cohort_display_name
from cohort_scheduler.utils.datetime_utils import format_date_for_display, format_time_for_display
from cohort_scheduler.utils.materials import merge_materials
from .base_service import BaseService
from .directory_service import DirectoryService
from .notification_service import NotificationFanout
from .schedule_store import ScheduleStore


def adjacent_sessions(
    sessions: List[ScheduledSession],
    session_id: int
) -> Tuple[Optional[ScheduledSession], Optional[ScheduledSession]]:
    """Previous and next session in (week_number, session_number) order."""
    ordered = sorted(sessions, key=lambda s: (s.order_key, s.id))
    for index, session in enumerate(ordered):
        if session.id == session_id:
            previous = ordered[index - 1] if index > 0 else None
            following = ordered[index + 1] if index + 1 < len(ordered) else None
            return previous, following
    return None, None


def candidate_window(
    current: date,
    neighbour_date: Optional[date],
    direction: RescheduleDirection,
    today: date,
    horizon_days: int
) -> Tuple[date, date]:
    """Inclusive [start, end] range a session may move to; start > end means no room."""
    if direction == RescheduleDirection.POSTPONE:
        start = current + timedelta(days=1)
        if neighbour_date is not None:
            end = neighbour_date - timedelta(days=1)
        else:
            end = current + timedelta(days=horizon_days)
    else:
        end = current - timedelta(days=1)
        if neighbour_date is not None:
            start = neighbour_date + timedelta(days=1)
        else:
            start = current - timedelta(days=horizon_days)
        start = max(start, today)
    return start, end


def candidate_dates(
    current: date,
    neighbour_date: Optional[date],
    direction: RescheduleDirection,
    occupied: Iterable[date],
    today: date,
    horizon_days: int
) -> List[date]:
    start, end = candidate_window(current, neighbour_date, direction, today, horizon_days)
    taken: Set[date] = set(occupied)
    dates = []
    day = start
    while day <= end:
        if day not in taken:
            dates.append(day)
        day += timedelta(days=1)
    return dates


class SessionService(BaseService):
    """Reschedule, mentor swap and materials edits on a single session."""

    def __init__(
        self,
        db: AsyncSession,
        fanout: Optional[NotificationFanout] = None,
        today: Optional[date] = None
    ):
        super().__init__(db)
        self.store = ScheduleStore(db)
        self.directory = DirectoryService(db)
        self.fanout = fanout
        self._today = today

    @property
    def today(self) -> date:
        return self._today or regional_now().date()

    async def _load(self, table_name: str, session_id: int) -> ScheduledSession:
        session = await self.store.get_session(table_name, session_id)
        if not session:
            raise NotFoundError(
                message="Session not found",
                details={"table": table_name, "session_id": session_id}
            )
        return session

    async def _available_dates(
        self,
        table_name: str,
        session: ScheduledSession,
        direction: RescheduleDirection
    ) -> Tuple[List[date], date, date]:
        if session.date is None:
            raise ValidationError(
                message="Session has no date to move from",
                details={"table": table_name, "session_id": session.id}
            )
        sessions = await self.store.all_sessions(table_name)
        previous, following = adjacent_sessions(sessions, session.id)
        neighbour = following if direction == RescheduleDirection.POSTPONE else previous
        neighbour_date = neighbour.date if neighbour else None
        occupied = [s.date for s in sessions if s.id != session.id and s.date is not None]

        horizon = settings.RESCHEDULE_HORIZON_DAYS
        start, end = candidate_window(session.date, neighbour_date, direction, self.today, horizon)
        dates = candidate_dates(session.date, neighbour_date, direction, occupied, self.today, horizon)
        return dates, start, end

    async def reschedule_options(
        self,
        table_name: str,
        session_id: int,
        direction: RescheduleDirection
    ) -> RescheduleOptionsResponse:
        session = await self._load(table_name, session_id)
        dates, start, end = await self._available_dates(table_name, session, direction)
        return RescheduleOptionsResponse(
            table_name=table_name,
            session_id=session_id,
            action_type=direction,
            current_date=session.date,
            window_start=start,
            window_end=end,
            available_dates=dates,
        )

    async def reschedule(self, request: RescheduleRequest) -> RescheduleResponse:
        table_name, session_id = request.table_name, request.session_id
        direction = request.action_type
        session = await self._load(table_name, session_id)

        current_date = session.date
        current_time = session.time
        new_date = request.new_date or current_date
        new_time = request.new_time or current_time

        if new_date is None:
            raise ValidationError(message="Session has no date; provide newDate")

        if new_date == current_date and new_time == current_time:
            raise ValidationError(
                message="New date and time are the same as the current schedule",
                details={"date": str(current_date), "time": str(current_time)}
            )

        if new_date != current_date:
            dates, _, _ = await self._available_dates(table_name, session, direction)
            if new_date not in dates:
                raise ValidationError(
                    message=f"{new_date.isoformat()} is not available to {direction.value} this session",
                    details={"available_dates": [d.isoformat() for d in dates]}
                )
        else:
            self._check_time_only_change(direction, current_time, new_time)

        logger.info(
            f"{request.mentor_name or 'Unknown'} {direction.value}s {table_name}#{session_id} "
            f"from {request.original_date or current_date} {request.original_time or current_time} "
            f"to {new_date} {new_time}",
            extra={"table": table_name, "session_id": session_id}
        )
        await self.store.update_schedule(table_name, session_id, new_date, new_time)

        updated = await self._load(table_name, session_id)
        return RescheduleResponse(
            message=f"Session {direction.value}d successfully",
            table_name=table_name,
            session_id=session_id,
            session=updated,
            action_type=direction,
        )

    @staticmethod
    def _check_time_only_change(
        direction: RescheduleDirection,
        current_time: Optional[time],
        new_time: Optional[time]
    ) -> None:
        reference = current_time or settings.DEFAULT_SESSION_TIME
        candidate = new_time or settings.DEFAULT_SESSION_TIME
        if direction == RescheduleDirection.POSTPONE and not candidate > reference:
            raise ValidationError(
                message="A postponed session on the same day must start later",
                details={"current_time": reference.isoformat(), "new_time": candidate.isoformat()}
            )
        if direction == RescheduleDirection.PREPONE and not candidate < reference:
            raise ValidationError(
                message="A preponed session on the same day must start earlier",
                details={"current_time": reference.isoformat(), "new_time": candidate.isoformat()}
            )

    async def swap_mentor(self, request: SwapMentorRequest) -> SwapMentorResponse:
        table_name, session_id = request.table_name, request.session_id
        session = await self._load(table_name, session_id)

        original_mentor = await self.directory.get_mentor(session.mentor_id)
        new_mentor = None
        if request.swapped_mentor_id is not None:
            new_mentor = await self.directory.get_mentor(request.swapped_mentor_id)
            if not new_mentor:
                logger.warning(
                    f"Mentor {request.swapped_mentor_id} not found; swap stored without notifications",
                    extra={"table": table_name, "session_id": session_id}
                )

        await self.store.set_swapped_mentor(table_name, session_id, request.swapped_mentor_id)

        if request.swapped_mentor_id is not None and new_mentor:
            await self._notify_swap(table_name, session, original_mentor, new_mentor, request.swapped_by_name)

        updated = await self._load(table_name, session_id)
        return SwapMentorResponse(
            message="Mentor swapped successfully" if request.swapped_mentor_id is not None else "Mentor swap removed",
            table_name=table_name,
            session_id=session_id,
            session=updated,
            swapped_mentor_id=request.swapped_mentor_id,
        )

    async def _notify_swap(
        self,
        table_name: str,
        session: ScheduledSession,
        original_mentor: Optional[MentorProfile],
        new_mentor: MentorProfile,
        swapped_by: Optional[str]
    ) -> None:
        if self.fanout is None:
            logger.warning("No notification senders configured; mentor swap not announced")
            return
        notice = SwapNotice(
            cohort_name=cohort_display_name(table_name),
            session_date=format_date_for_display(session.date, long=True),
            session_time=format_time_for_display(session.time),
            subject_name=session.subject_name or "Session",
            subject_topic=session.subject_topic,
            original_mentor_name=(original_mentor.name if original_mentor else None) or "Unknown",
            new_mentor_name=new_mentor.name or "Unknown",
            swapped_by=swapped_by or "Admin",
            swapped_at=regional_now().strftime("%d/%m/%Y, %I:%M:%S %p"),
            meeting_link=session.teams_meeting_link if session.has_meeting_link else None,
        )
        try:
            super_mentors = await self.directory.list_super_mentors()
            await self.fanout.notify_mentor_swap(super_mentors, new_mentor, notice)
        except Exception as e:
            logger.error(f"Mentor swap notifications aborted: {str(e)}", extra={"table": table_name})

    async def add_materials(self, table_name: str, session_id: int, links: List[str]) -> MaterialsResponse:
        session = await self._load(table_name, session_id)
        materials = merge_materials(session.materials, links)
        if materials != session.materials:
            await self.store.save_materials(table_name, session_id, materials)
        return MaterialsResponse(table_name=table_name, session_id=session_id, materials=materials)

    async def remove_material(self, table_name: str, session_id: int, link: str) -> MaterialsResponse:
        session = await self._load(table_name, session_id)
        target = link.strip()
        if target not in session.materials:
            raise NotFoundError(
                message="Material link not found on this session",
                details={"link": target}
            )
        materials = [m for m in session.materials if m != target]
        await self.store.save_materials(table_name, session_id, materials)
        return MaterialsResponse(table_name=table_name, session_id=session_id, materials=materials)
