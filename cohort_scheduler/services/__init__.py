from .schedule_store import ScheduleStore
from .directory_service import DirectoryService
from .cohort_registry import CohortRegistry
from .graph_client import GraphClient, GraphTokenProvider
from .meeting_service import MeetingProvisioningJob
from .recording_service import RecordingCache, RecordingReconciliationJob, find_recording_for_session
from .email_service import EmailService
from .whatsapp_service import WhatsAppService
from .notification_service import NotificationFanout
from .session_service import SessionService
from .scheduler_service import BatchDriver

__all__ = [
    "ScheduleStore",
    "DirectoryService",
    "CohortRegistry",
    "GraphClient",
    "GraphTokenProvider",
    "MeetingProvisioningJob",
    "RecordingCache",
    "RecordingReconciliationJob",
    "find_recording_for_session",
    "EmailService",
    "WhatsAppService",
    "NotificationFanout",
    "SessionService",
    "BatchDriver"
]
