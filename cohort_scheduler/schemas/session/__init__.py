from .base import ScheduledSession, MentorProfile, SuperMentorProfile, SwapNotice, is_blank_link
from .requests import (
    RescheduleDirection,
    RescheduleRequest,
    SwapMentorRequest,
    MaterialsRequest,
    MaterialRemoveRequest
)
from .responses import (
    RescheduleResponse,
    RescheduleOptionsResponse,
    SwapMentorResponse,
    MaterialsResponse
)

__all__ = [
    'ScheduledSession',
    'MentorProfile',
    'SuperMentorProfile',
    'SwapNotice',
    'is_blank_link',
    'RescheduleDirection',
    'RescheduleRequest',
    'SwapMentorRequest',
    'MaterialsRequest',
    'MaterialRemoveRequest',
    'RescheduleResponse',
    'RescheduleOptionsResponse',
    'SwapMentorResponse',
    'MaterialsResponse',
]
