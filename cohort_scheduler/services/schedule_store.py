# cohort_scheduler/services/schedule_store.py
from datetime import date, time
from typing import List, Optional

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from cohort_scheduler.core.errors import DatabaseError
from cohort_scheduler.core.exceptions import SchemaNotReadyException
from cohort_scheduler.core.logging import logger
from cohort_scheduler.models.schedule import schedule_table
from cohort_scheduler.schemas.session import ScheduledSession
from cohort_scheduler.utils.materials import serialize_materials
from .base_service import BaseService


def _link_is_blank(column):
    """SQL mirror of is_blank_link: NULL, whitespace-only or the string 'null'."""
    trimmed = func.trim(column)
    return or_(column.is_(None), trimmed == "", trimmed == "null")


class ScheduleStore(BaseService):
    """Reads and writes rows of the per-cohort schedule tables."""

    async def _fetch(self, table_name: str, *criteria, order_by=None) -> List[ScheduledSession]:
        table = schedule_table(table_name)
        query = select(table)
        if criteria:
            query = query.where(and_(*criteria))
        if order_by is not None:
            query = query.order_by(*order_by)
        try:
            result = await self.db.execute(query)
        except DBAPIError as e:
            await self.db.rollback()
            if "teams_meeting_link" in str(e.orig).lower():
                raise SchemaNotReadyException(table_name) from e
            raise
        return [ScheduledSession.from_row(row) for row in result.mappings().all()]

    async def sessions_between(self, table_name: str, start: date, end: date) -> List[ScheduledSession]:
        """Sessions with a type whose date falls in [start, end], earliest first."""
        table = schedule_table(table_name)
        return await self._fetch(
            table_name,
            table.c.date >= start,
            table.c.date <= end,
            table.c.session_type.is_not(None),
            order_by=(table.c.date, table.c.time),
        )

    async def sessions_on(self, table_name: str, day: date) -> List[ScheduledSession]:
        table = schedule_table(table_name)
        return await self._fetch(
            table_name,
            table.c.date == day,
            order_by=(table.c.time, table.c.id),
        )

    async def all_sessions(self, table_name: str) -> List[ScheduledSession]:
        """Every session of a cohort in (week_number, session_number) order."""
        table = schedule_table(table_name)
        return await self._fetch(
            table_name,
            order_by=(table.c.week_number, table.c.session_number, table.c.id),
        )

    async def get_session(self, table_name: str, session_id: int) -> Optional[ScheduledSession]:
        table = schedule_table(table_name)
        try:
            sessions = await self._fetch(table_name, table.c.id == session_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load session {session_id} from {table_name}: {str(e)}")
            raise DatabaseError(
                message="Failed to load session",
                details={"table": table_name, "session_id": session_id}
            )
        return sessions[0] if sessions else None

    async def set_meeting_link_if_absent(self, table_name: str, session_id: int, join_url: str) -> bool:
        """Store the join URL unless another run already wrote one. Returns True when written."""
        table = schedule_table(table_name)
        stmt = (
            update(table)
            .where(table.c.id == session_id, _link_is_blank(table.c.teams_meeting_link))
            .values(teams_meeting_link=join_url)
        )
        async with self.transaction():
            result = await self.db.execute(stmt)
        return result.rowcount > 0

    async def set_recording_if_absent(self, table_name: str, session_id: int, share_url: str) -> bool:
        table = schedule_table(table_name)
        recording = table.c.session_recording
        stmt = (
            update(table)
            .where(
                table.c.id == session_id,
                or_(recording.is_(None), func.trim(recording) == "")
            )
            .values(session_recording=share_url)
        )
        async with self.transaction():
            result = await self.db.execute(stmt)
        return result.rowcount > 0

    async def update_schedule(
        self,
        table_name: str,
        session_id: int,
        new_date: date,
        new_time: Optional[time]
    ) -> None:
        """Move a session and drop its meeting link in one transaction."""
        table = schedule_table(table_name)
        stmt = (
            update(table)
            .where(table.c.id == session_id)
            .values(
                date=new_date,
                day=new_date.strftime("%A"),
                time=new_time,
                teams_meeting_link=None
            )
        )
        try:
            async with self.transaction():
                await self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Reschedule of {table_name}#{session_id} rolled back: {str(e)}")
            raise DatabaseError(
                message="Failed to update session schedule",
                details={"table": table_name, "session_id": session_id}
            )

    async def set_swapped_mentor(self, table_name: str, session_id: int, mentor_id: Optional[int]) -> None:
        table = schedule_table(table_name)
        stmt = update(table).where(table.c.id == session_id).values(swapped_mentor_id=mentor_id)
        try:
            async with self.transaction():
                await self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Mentor swap on {table_name}#{session_id} rolled back: {str(e)}")
            raise DatabaseError(
                message="Failed to update mentor assignment",
                details={"table": table_name, "session_id": session_id}
            )

    async def save_materials(self, table_name: str, session_id: int, links: List[str]) -> None:
        table = schedule_table(table_name)
        stmt = (
            update(table)
            .where(table.c.id == session_id)
            .values(initial_session_material=serialize_materials(links))
        )
        try:
            async with self.transaction():
                await self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Saving materials for {table_name}#{session_id} failed: {str(e)}")
            raise DatabaseError(
                message="Failed to save session materials",
                details={"table": table_name, "session_id": session_id}
            )
