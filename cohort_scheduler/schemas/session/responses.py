from datetime import date
from typing import List, Optional

from cohort_scheduler.schemas.common import CamelModel
from .base import ScheduledSession
from .requests import RescheduleDirection


class SessionMutationResponse(CamelModel):
    success: bool = True
    message: str
    table_name: str
    session_id: int
    session: ScheduledSession


class RescheduleResponse(SessionMutationResponse):
    action_type: RescheduleDirection
    meeting_link_cleared: bool = True


class SwapMentorResponse(SessionMutationResponse):
    swapped_mentor_id: Optional[int] = None


class RescheduleOptionsResponse(CamelModel):
    table_name: str
    session_id: int
    action_type: RescheduleDirection
    current_date: Optional[date] = None
    window_start: Optional[date] = None
    window_end: Optional[date] = None
    available_dates: List[date]


class MaterialsResponse(CamelModel):
    success: bool = True
    table_name: str
    session_id: int
    materials: List[str]
