# cohort_scheduler/schemas/scheduler/results.py
from datetime import date
from typing import Annotated, List, Literal, Optional, Union

from pydantic import Field

from cohort_scheduler.schemas.common import CamelModel


class ProvisionedTable(CamelModel):
    status: Literal["success"] = "success"
    table: str
    sessions_found: int
    meetings_created: int
    meetings_failed: int
    students_in_cohort: int


class SchemaNotReady(CamelModel):
    status: Literal["needs_column"] = "needs_column"
    table: str
    message: str


class NoSessions(CamelModel):
    status: Literal["no_sessions"] = "no_sessions"
    table: str
    message: str = "No sessions in next 7 days"


class TableFailed(CamelModel):
    status: Literal["error"] = "error"
    table: str
    message: str


TableResult = Annotated[
    Union[ProvisionedTable, SchemaNotReady, NoSessions, TableFailed],
    Field(discriminator="status")
]


class RecordingTableResult(CamelModel):
    table: str
    sessions_checked: int
    recordings_fetched: int


class RecordingSummary(CamelModel):
    date: str
    results: List[RecordingTableResult] = Field(default_factory=list)
    total_fetched: int = 0


class DateRange(CamelModel):
    start: date = Field(..., alias="from")
    end: date = Field(..., alias="to")


class BatchReport(CamelModel):
    success: bool = True
    date_range: DateRange
    results: List[TableResult] = Field(default_factory=list)
    recordings: RecordingSummary
    error: Optional[str] = None


class FanoutReport(CamelModel):
    """Delivery counters for one mentor-swap notification round."""
    super_mentors: int = 0
    super_mentor_emails_sent: int = 0
    super_mentor_whatsapp_sent: int = 0
    new_mentor_email_sent: bool = False
    new_mentor_whatsapp_sent: bool = False
