from datetime import date, time
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from cohort_scheduler.models.schedule import is_schedule_table_name
from cohort_scheduler.schemas.common import CamelModel


class RescheduleDirection(str, Enum):
    PREPONE = "prepone"
    POSTPONE = "postpone"


class SessionTarget(CamelModel):
    table_name: str = Field(..., description="Cohort schedule table, e.g. basic1_1_schedule")
    session_id: int = Field(..., description="Row id within the table")

    @field_validator("table_name")
    @classmethod
    def validate_table_name(cls, v: str) -> str:
        v = v.strip()
        if not is_schedule_table_name(v):
            raise ValueError("table_name must be a cohort schedule table ending in _schedule")
        return v


class RescheduleRequest(SessionTarget):
    original_date: Optional[date] = Field(None, description="Date shown to the user; informative only")
    original_time: Optional[time] = Field(None, description="Time shown to the user; informative only")
    new_date: Optional[date] = None
    new_time: Optional[time] = None
    action_type: RescheduleDirection
    mentor_name: Optional[str] = Field(None, description="Who requested the change")

    @model_validator(mode="after")
    def require_new_value(self):
        if self.new_date is None and self.new_time is None:
            raise ValueError("Either newDate or newTime is required")
        return self


class SwapMentorRequest(SessionTarget):
    swapped_mentor_id: Optional[int] = Field(None, description="New presenter; null removes the swap")
    swapped_by_name: Optional[str] = None


class MaterialsRequest(SessionTarget):
    links: List[str] = Field(..., min_length=1)


class MaterialRemoveRequest(SessionTarget):
    link: str = Field(..., min_length=1)
