# cohort_scheduler/schemas/meeting.py
from datetime import datetime
from typing import List, Optional

from pydantic import EmailStr, Field, model_validator

from .common import CamelModel


class CreateMeetingRequest(CamelModel):
    """An ad-hoc meeting outside any cohort schedule.

    Naive datetimes are read as regional wall-clock time.
    """
    subject: str = Field(..., min_length=1)
    start_date_time: datetime
    end_date_time: datetime
    attendees: List[EmailStr] = Field(default_factory=list)
    use_calendar_event: bool = Field(True, description="Send invites and open a chat; False creates a bare meeting")

    @model_validator(mode="after")
    def check_order(self):
        if (self.start_date_time.tzinfo is None) != (self.end_date_time.tzinfo is None):
            raise ValueError("startDateTime and endDateTime must both carry an offset or neither")
        if self.end_date_time <= self.start_date_time:
            raise ValueError("endDateTime must be after startDateTime")
        return self


class CreateMeetingResponse(CamelModel):
    success: bool = True
    join_url: str
    strategy: str
    has_chat: bool
    message: Optional[str] = None
