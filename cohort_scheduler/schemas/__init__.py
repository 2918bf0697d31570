# cohort_scheduler/schemas/__init__.py

# Import common schemas
from .common import CamelModel, ErrorResponse

# Import recording schemas
from .recording import Recording

# Import meeting schemas
from .meeting import CreateMeetingRequest, CreateMeetingResponse

# Import session schemas
from .session import (
    ScheduledSession,
    MentorProfile,
    SuperMentorProfile,
    SwapNotice,
    RescheduleDirection,
    RescheduleRequest,
    SwapMentorRequest,
    MaterialsRequest,
    MaterialRemoveRequest,
    RescheduleResponse,
    RescheduleOptionsResponse,
    SwapMentorResponse,
    MaterialsResponse
)

# Import batch schemas
from .scheduler import (
    ProvisionedTable,
    SchemaNotReady,
    NoSessions,
    TableFailed,
    TableResult,
    RecordingTableResult,
    RecordingSummary,
    DateRange,
    BatchReport,
    FanoutReport
)

__all__ = [
    'CamelModel',
    'ErrorResponse',
    'Recording',
    'CreateMeetingRequest',
    'CreateMeetingResponse',
    'ScheduledSession',
    'MentorProfile',
    'SuperMentorProfile',
    'SwapNotice',
    'RescheduleDirection',
    'RescheduleRequest',
    'SwapMentorRequest',
    'MaterialsRequest',
    'MaterialRemoveRequest',
    'RescheduleResponse',
    'RescheduleOptionsResponse',
    'SwapMentorResponse',
    'MaterialsResponse',
    'ProvisionedTable',
    'SchemaNotReady',
    'NoSessions',
    'TableFailed',
    'TableResult',
    'RecordingTableResult',
    'RecordingSummary',
    'DateRange',
    'BatchReport',
    'FanoutReport',
]
