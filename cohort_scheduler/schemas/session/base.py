# cohort_scheduler/schemas/session/base.py
from datetime import date as date_type, time as time_type
from typing import Any, List, Mapping, Optional, Tuple

from pydantic import Field

from cohort_scheduler.schemas.common import CamelModel
from cohort_scheduler.utils.materials import parse_materials


def is_blank_link(value: Optional[str]) -> bool:
    """Null, empty, whitespace-only and the literal string "null" all mean "no link"."""
    if value is None:
        return True
    stripped = value.strip()
    return stripped == "" or stripped == "null"


class ScheduledSession(CamelModel):
    """One row of a cohort schedule table."""
    id: int
    week_number: Optional[int] = None
    session_number: Optional[int] = None
    date: Optional[date_type] = None
    day: Optional[str] = None
    time: Optional[time_type] = None
    session_type: Optional[str] = None
    subject_type: Optional[str] = None
    subject_name: Optional[str] = None
    subject_topic: Optional[str] = None
    mentor_id: Optional[int] = None
    swapped_mentor_id: Optional[int] = None
    teams_meeting_link: Optional[str] = None
    session_recording: Optional[str] = None
    materials: List[str] = Field(default_factory=list)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ScheduledSession":
        data = dict(row)
        data["materials"] = parse_materials(data.pop("initial_session_material", None))
        return cls.model_validate(data)

    @property
    def effective_mentor_id(self) -> Optional[int]:
        if self.swapped_mentor_id is not None:
            return self.swapped_mentor_id
        return self.mentor_id

    @property
    def has_meeting_link(self) -> bool:
        return not is_blank_link(self.teams_meeting_link)

    @property
    def has_recording(self) -> bool:
        return bool(self.session_recording and self.session_recording.strip())

    @property
    def order_key(self) -> Tuple[int, int]:
        return (self.week_number or 0, self.session_number or 0)


class MentorProfile(CamelModel):
    mentor_id: int
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class SuperMentorProfile(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = Field(default=None, validation_alias="phone_num")


class SwapNotice(CamelModel):
    """Display-ready facts about one mentor swap, shared by every notification channel."""
    cohort_name: str
    session_date: str
    session_time: str
    subject_name: str
    subject_topic: Optional[str] = None
    original_mentor_name: str
    new_mentor_name: str
    swapped_by: str
    swapped_at: str
    meeting_link: Optional[str] = None
